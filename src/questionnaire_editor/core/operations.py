"""
Structural edits of a questionnaire.

Every operation takes a questionnaire snapshot and returns a new one; the
given snapshot and every node in it are left untouched, so earlier snapshots
can be kept for undo. An edit that breaks a structural rule (a child type the
parent does not accept, detaching the root, an unknown id) is refused: the
operation logs a warning and returns the very snapshot it was given. Pass
``strict=True`` to get the ``EditingError`` raised instead.
"""

from functools import wraps
from logging import getLogger
from typing import Callable, List, Optional, Union

from pydantic import ValidationError

from questionnaire_editor.business_rules.containment import can_contain
from questionnaire_editor.core.factory import new_reference
from questionnaire_editor.core.ids import IdAllocator, regenerate_all_ids
from questionnaire_editor.core.tree import find_node, iter_nodes, iter_with_parent
from questionnaire_editor.exceptions.editing import (
    ContainmentError,
    EditingError,
    FieldUpdateError,
    InvalidMoveError,
    NodeNotFoundError,
    RootNodeError,
)
from questionnaire_editor.models.questionnaire import (
    FormNode,
    ProfileReferenceField,
    QuestionType,
    Questionnaire,
)
from questionnaire_editor.utils.validation_messages import FindingMessage

logger = getLogger(__name__)

__all__ = [
    "add_nodes",
    "delete_node",
    "duplicate_node",
    "insert_child",
    "move_node",
    "regenerate_all_ids",
    "set_reference",
    "update_node",
]

# Fields update_node never touches
PROTECTED_FIELDS = frozenset({"id", "node_type", "children"})

NodeBuilder = Callable[[IdAllocator], Union[FormNode, List[FormNode]]]


def refusable(operation):
    """Turn EditingError from an edit into a logged no-op unless strict=True"""

    @wraps(operation)
    def wrapper(questionnaire: Questionnaire, *args, strict: bool = False, **kwargs):
        try:
            return operation(questionnaire, *args, **kwargs)
        except EditingError as e:
            if strict:
                raise
            logger.warning(FindingMessage.REFUSED_EDIT.format(reason=e))
            return questionnaire

    return wrapper


def _locate(root: Questionnaire, node_id: str):
    """Find a node and its parent; raise if the node is unknown"""
    for parent, node in iter_with_parent(root):
        if node.id == node_id:
            return parent, node
    raise NodeNotFoundError(f"No node with id '{node_id}'", node_id=node_id)


def _position(children: List[FormNode], node: FormNode) -> int:
    # by identity, ids may repeat
    return next(i for i, child in enumerate(children) if child is node)


def _check_containment(parent: FormNode, child: FormNode) -> None:
    if not can_contain(parent.node_type, child.node_type):
        raise ContainmentError(
            f"<{child.node_type}> is not allowed inside <{parent.node_type}> '{parent.id}'",
            node_id=child.id,
            parent_type=parent.node_type,
            child_type=child.node_type,
        )


def _insertion_index(
    children: List[FormNode], index: Optional[int], selected_id: Optional[str]
) -> int:
    if index is not None:
        return max(0, min(index, len(children)))
    if selected_id is not None:
        for position, child in enumerate(children):
            if child.id == selected_id:
                return position + 1
    return len(children)


@refusable
def insert_child(
    questionnaire: Questionnaire,
    parent_id: str,
    node: FormNode,
    index: Optional[int] = None,
    selected_id: Optional[str] = None,
) -> Questionnaire:
    """Insert a copy of ``node`` under the parent with ``parent_id``.

    Args:
        questionnaire: Snapshot to edit
        parent_id: Id of the new parent
        node: Node (with its subtree) to insert
        index: Position among the parent's children; clamped to the list
        selected_id: Without an index, insert right after this child if the
            parent holds it, else append

    Returns:
        The new snapshot
    """
    updated = questionnaire.model_copy(deep=True)
    parent = find_node(updated, parent_id)
    if parent is None:
        raise NodeNotFoundError(f"No parent with id '{parent_id}'", node_id=parent_id)
    _check_containment(parent, node)

    children = parent.children
    children.insert(
        _insertion_index(children, index, selected_id), node.model_copy(deep=True)
    )
    return updated


@refusable
def add_nodes(
    questionnaire: Questionnaire,
    parent_id: str,
    build: NodeBuilder,
    index: Optional[int] = None,
    selected_id: Optional[str] = None,
) -> Questionnaire:
    """Create nodes from the document's id counter and insert them.

    ``build`` receives the allocator of the new snapshot and returns one node
    or a list of nodes; a list is inserted as consecutive siblings.
    """
    updated = questionnaire.model_copy(deep=True)
    parent = find_node(updated, parent_id)
    if parent is None:
        raise NodeNotFoundError(f"No parent with id '{parent_id}'", node_id=parent_id)

    allocator = IdAllocator.for_questionnaire(updated)
    built = build(allocator)
    new_nodes = built if isinstance(built, list) else [built]
    for node in new_nodes:
        _check_containment(parent, node)

    position = _insertion_index(parent.children, index, selected_id)
    parent.children[position:position] = new_nodes
    return allocator.apply(updated)


@refusable
def move_node(
    questionnaire: Questionnaire, node_id: str, new_parent_id: str, index: int
) -> Questionnaire:
    """Detach a node and insert it under ``new_parent_id`` at ``index``.

    ``index`` counts positions in the parent's child list as it is before
    the move. Within the same parent, moving forward lands the node where
    the target position ends up once the node has been taken out, so
    [A, B, C] with A moved to 2 gives [B, A, C].
    """
    updated = questionnaire.model_copy(deep=True)
    if updated.id == node_id:
        raise RootNodeError("The questionnaire root cannot be moved", node_id=node_id)

    old_parent, node = _locate(updated, node_id)
    new_parent = find_node(updated, new_parent_id)
    if new_parent is None:
        raise NodeNotFoundError(
            f"No parent with id '{new_parent_id}'", node_id=new_parent_id
        )
    if any(descendant is new_parent for descendant in iter_nodes(node)):
        raise InvalidMoveError(
            f"Node '{node_id}' cannot be moved into its own subtree", node_id=node_id
        )
    _check_containment(new_parent, node)

    old_index = _position(old_parent.children, node)
    del old_parent.children[old_index]
    if new_parent is old_parent and index > old_index:
        index -= 1

    children = new_parent.children
    children.insert(max(0, min(index, len(children))), node)
    return updated


@refusable
def delete_node(questionnaire: Questionnaire, node_id: str) -> Questionnaire:
    """Remove a node together with its whole subtree"""
    if questionnaire.id == node_id:
        raise RootNodeError("The questionnaire root cannot be deleted", node_id=node_id)

    updated = questionnaire.model_copy(deep=True)
    parent, node = _locate(updated, node_id)
    del parent.children[_position(parent.children, node)]
    return updated


@refusable
def duplicate_node(questionnaire: Questionnaire, node_id: str) -> Questionnaire:
    """Insert a deep copy with fresh ids right after the original.

    Ids of the copy are allocated in pre-order from the document counter.
    """
    if questionnaire.id == node_id:
        raise RootNodeError(
            "The questionnaire root cannot be duplicated", node_id=node_id
        )

    updated = questionnaire.model_copy(deep=True)
    parent, node = _locate(updated, node_id)

    allocator = IdAllocator.for_questionnaire(updated)
    clone = allocator.assign_fresh_ids(node.model_copy(deep=True))
    parent.children.insert(_position(parent.children, node) + 1, clone)
    return allocator.apply(updated)


@refusable
def update_node(questionnaire: Questionnaire, node_id: str, **changes) -> Questionnaire:
    """Replace some fields of a node.

    The changed node is validated again, so values are coerced to the field
    types. ``id``, ``node_type`` and ``children`` cannot be changed this way.
    """
    updated = questionnaire.model_copy(deep=True)
    parent, node = _locate(updated, node_id)

    unknown = set(changes) - set(type(node).model_fields)
    protected = set(changes) & PROTECTED_FIELDS
    if unknown or protected:
        raise FieldUpdateError(
            f"Cannot update field(s) {sorted(unknown | protected)} of {node.node_type}",
            node_id=node_id,
        )

    values = node.model_dump(exclude={"children"})
    values.update(changes)
    try:
        replacement = type(node).model_validate(values)
    except ValidationError as e:
        raise FieldUpdateError(
            f"Invalid value for {node.node_type} '{node_id}'",
            node_id=node_id,
            validation_error=e,
        ) from e

    if hasattr(node, "children"):
        replacement.children = node.children
    if parent is None:
        return replacement
    parent.children[_position(parent.children, node)] = replacement
    return updated


@refusable
def set_reference(
    questionnaire: Questionnaire,
    question_id: str,
    field: str = ProfileReferenceField.FULLNAME.value,
) -> Questionnaire:
    """Turn a question into a profile reference pointing at ``field``.

    Any reference the question already holds is replaced.
    """
    updated = questionnaire.model_copy(deep=True)
    _, question = _locate(updated, question_id)
    if question.node_type != "question":
        raise ContainmentError(
            f"Only questions hold references, '{question_id}' is a {question.node_type}",
            node_id=question_id,
            parent_type=question.node_type,
            child_type="reference",
        )

    allocator = IdAllocator.for_questionnaire(updated)
    question.type = QuestionType.PROFILE_REFERENCE.value
    question.children = [
        child for child in question.children if child.node_type != "reference"
    ]
    question.children.append(new_reference(allocator, field))
    return allocator.apply(updated)
