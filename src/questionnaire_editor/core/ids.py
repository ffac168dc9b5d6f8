"""
Node id allocation.

An id is ``<counter><suffix>``: the document's ``next_id`` counter followed by
its fixed five digit suffix, so ids from different documents stay apart.
The root takes counter 1, new documents start allocating at 2. Allocated ids
are never handed out again, even once the node holding them is deleted.
"""

import random
import re
from logging import getLogger
from typing import Optional, Tuple

from questionnaire_editor.core.tree import iter_nodes
from questionnaire_editor.models.questionnaire import FormNode, Questionnaire

logger = getLogger(__name__)

SUFFIX_LENGTH = 5
_DIGITS = re.compile(r"[0-9]+")


def generate_suffix(rng: Optional[random.Random] = None) -> str:
    """Pick a random five digit suffix (10000-99999)"""
    rng = rng or random
    return str(rng.randint(10 ** (SUFFIX_LENGTH - 1), 10 ** SUFFIX_LENGTH - 1))


def is_valid_suffix(suffix: str) -> bool:
    return len(suffix) == SUFFIX_LENGTH and _DIGITS.fullmatch(suffix) is not None


def format_id(counter: int, suffix: str) -> str:
    return f"{counter}{suffix}"


def id_counter(node_id: str, suffix: str) -> Optional[int]:
    """Get the counter part of an id carrying ``suffix``, None otherwise"""
    if not suffix or not node_id.endswith(suffix):
        return None
    head = node_id[: -len(suffix)]
    return int(head) if _DIGITS.fullmatch(head) else None


class IdAllocator:
    """Hands out sequential ids for one document.

    Used on a working copy during a single edit; ``apply`` writes the advanced
    counter back into that copy.
    """

    def __init__(self, suffix: str, next_id: int):
        self.suffix = suffix
        self.next_id = next_id

    @classmethod
    def for_questionnaire(cls, questionnaire: Questionnaire) -> "IdAllocator":
        return cls(questionnaire.suffix, questionnaire.next_id)

    def allocate(self) -> str:
        node_id = format_id(self.next_id, self.suffix)
        self.next_id += 1
        return node_id

    def assign_fresh_ids(self, node: FormNode) -> FormNode:
        """Give a node and all its descendants new ids, in pre-order (in place)"""
        for descendant in iter_nodes(node):
            descendant.id = self.allocate()
        return node

    def apply(self, questionnaire: Questionnaire) -> Questionnaire:
        questionnaire.next_id = self.next_id
        return questionnaire


def allocate_id(questionnaire: Questionnaire) -> Tuple[Questionnaire, str]:
    """Allocate one id.

    Returns:
        Tuple of (questionnaire snapshot with the advanced counter, new id).
        The given snapshot is left untouched; the returned one shares its
        children.
    """
    node_id = format_id(questionnaire.next_id, questionnaire.suffix)
    advanced = questionnaire.model_copy(update={"next_id": questionnaire.next_id + 1})
    return advanced, node_id


def regenerate_all_ids(questionnaire: Questionnaire) -> Questionnaire:
    """Renumber every node, root included, as ``1<suffix>, 2<suffix>, ...``.

    Numbering follows a pre-order traversal; ``next_id`` ends one past the
    last number assigned.
    """
    renumbered = questionnaire.model_copy(deep=True)
    allocator = IdAllocator(renumbered.suffix, 1)
    allocator.assign_fresh_ids(renumbered)
    logger.info(
        f"Regenerated {allocator.next_id - 1} ids with suffix '{renumbered.suffix}'"
    )
    return allocator.apply(renumbered)
