"""
Containment rules for questionnaire trees.

Which node types a container accepts is decided by the container's own type.
The same table drives child discovery in the XML parser and the checks of
every structural edit (insert, move, paste), so a tree built through the
editor always parses back with the same shape.
"""

from typing import Dict, FrozenSet

# Node types that may appear inside a content container
CONTENT_TYPES: FrozenSet[str] = frozenset(
    {
        "question",
        "entity",
        "conditionset",
        "description",
        "warning",
        "note",
        "includeform",
        "required-doc",
    }
)

ALLOWED_CHILDREN: Dict[str, FrozenSet[str]] = {
    "questionnaire": frozenset({"section"}),
    "section": frozenset({"subsection"}),
    "subsection": CONTENT_TYPES,
    "entity": CONTENT_TYPES,
    "conditional": CONTENT_TYPES,
    "conditionset": frozenset(
        {"question", "conditional", "description", "warning", "note", "required-doc"}
    ),
    "question": frozenset({"description", "option", "reference"}),
}


def allowed_children(parent_type: str) -> FrozenSet[str]:
    """Get the child types accepted by a parent type.

    Leaf types accept nothing.
    """
    return ALLOWED_CHILDREN.get(parent_type, frozenset())


def can_contain(parent_type: str, child_type: str) -> bool:
    """Check if a node of ``parent_type`` may hold a node of ``child_type``"""
    return child_type in allowed_children(parent_type)


def is_container(node_type: str) -> bool:
    return node_type in ALLOWED_CHILDREN
