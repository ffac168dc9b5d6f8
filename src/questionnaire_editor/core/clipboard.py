"""
Subtree clipboard.

``copy`` keeps a deep copy of a node; ``paste`` inserts a fresh copy of it
under a target node, with every id reallocated from the target document's
counter. The clipboard can be backed by a JSON file so a copied subtree is
still there for the next session:

    {"node": {...node payload...}, "timestamp": "2024-05-01T12:00:00"}

The last copy wins. Pasting from an empty clipboard, or onto a target that
does not accept the copied node type, is a logged no-op.
"""

import json
from datetime import datetime
from logging import getLogger
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from questionnaire_editor.business_rules.containment import can_contain
from questionnaire_editor.core.ids import IdAllocator
from questionnaire_editor.core.operations import refusable
from questionnaire_editor.core.tree import find_node, index_of
from questionnaire_editor.exceptions.editing import (
    ContainmentError,
    EmptyClipboardError,
    NodeNotFoundError,
    RootNodeError,
)
from questionnaire_editor.models.questionnaire import FormNode, Questionnaire, node_adapter
from questionnaire_editor.utils.validation_messages import FindingMessage

logger = getLogger(__name__)


class Clipboard:
    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else None
        self._node: Optional[FormNode] = None
        self.copied_at: Optional[datetime] = None
        if self.path is not None:
            self._load()

    @property
    def node(self) -> Optional[FormNode]:
        """A copy of the clipboard content, None when empty"""
        return self._node.model_copy(deep=True) if self._node is not None else None

    @property
    def is_empty(self) -> bool:
        return self._node is None

    def copy(self, questionnaire: Questionnaire, node_id: str) -> bool:
        """Put a deep copy of a node on the clipboard.

        Returns:
            True if the node was copied
        """
        node = find_node(questionnaire, node_id)
        if node is None:
            logger.warning(f"Cannot copy '{node_id}': no such node")
            return False
        if node is questionnaire:
            logger.warning("The questionnaire root cannot be copied")
            return False

        self._node = node.model_copy(deep=True)
        self.copied_at = datetime.now()
        self._save()
        logger.info(f"Copied {node.node_type} '{node_id}' to the clipboard")
        return True

    def clear(self) -> None:
        self._node = None
        self.copied_at = None
        if self.path is not None and self.path.exists():
            self.path.unlink()

    def can_paste(self, questionnaire: Questionnaire, target_id: str) -> bool:
        if self._node is None:
            return False
        target = find_node(questionnaire, target_id)
        return target is not None and can_contain(target.node_type, self._node.node_type)

    def paste(
        self,
        questionnaire: Questionnaire,
        target_id: str,
        selected_id: Optional[str] = None,
        strict: bool = False,
    ) -> Questionnaire:
        """Insert a copy of the clipboard node under ``target_id``.

        The copy goes right after ``selected_id`` when the target holds that
        child, else at the end. All of its ids come from the document counter.

        Returns:
            The new snapshot, or the given one if nothing could be pasted
        """
        return _paste(
            questionnaire, self._node, target_id, selected_id, strict=strict
        )

    def _save(self) -> None:
        if self.path is None or self._node is None:
            return
        payload = {
            "node": self._node.model_dump(mode="json"),
            "timestamp": self.copied_at.isoformat(),
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not save clipboard to {self.path}: {e}")

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            self._node = node_adapter.validate_python(payload["node"])
            self.copied_at = datetime.fromisoformat(payload["timestamp"])
        except (OSError, ValueError, KeyError, TypeError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable clipboard file {self.path}: {e}")
            self._node = None
            self.copied_at = None


@refusable
def _paste(
    questionnaire: Questionnaire,
    node: Optional[FormNode],
    target_id: str,
    selected_id: Optional[str] = None,
) -> Questionnaire:
    if node is None:
        raise EmptyClipboardError(FindingMessage.EMPTY_CLIPBOARD.value)
    if node.node_type == "questionnaire":
        raise RootNodeError("A whole questionnaire cannot be pasted", node_id=node.id)

    updated = questionnaire.model_copy(deep=True)
    target = find_node(updated, target_id)
    if target is None:
        raise NodeNotFoundError(f"No paste target with id '{target_id}'", node_id=target_id)
    if not can_contain(target.node_type, node.node_type):
        raise ContainmentError(
            f"Cannot paste <{node.node_type}> into <{target.node_type}> '{target_id}'",
            node_id=target_id,
            parent_type=target.node_type,
            child_type=node.node_type,
        )

    allocator = IdAllocator.for_questionnaire(updated)
    pasted = allocator.assign_fresh_ids(node.model_copy(deep=True))

    position = index_of(target.children, selected_id) if selected_id else -1
    if position < 0:
        target.children.append(pasted)
    else:
        target.children.insert(position + 1, pasted)
    logger.info(f"Pasted {pasted.node_type} '{pasted.id}' into '{target_id}'")
    return allocator.apply(updated)
