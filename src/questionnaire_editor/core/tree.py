"""
Read-only queries over a questionnaire tree.

All searches are pre-order and depth-first from the given node; the first
match wins. Ids are expected to be unique but nothing here relies on it.
"""

from typing import Iterator, List, Optional, Sequence, Tuple

from questionnaire_editor.models.questionnaire import FormNode


def children_of(node: FormNode) -> List[FormNode]:
    """Get the child list of a node (a new empty list for leaf nodes)"""
    return getattr(node, "children", None) or []


def iter_nodes(node: FormNode) -> Iterator[FormNode]:
    """Yield a node and all of its descendants in pre-order"""
    yield node
    for child in children_of(node):
        yield from iter_nodes(child)


def iter_with_parent(
    node: FormNode, parent: Optional[FormNode] = None
) -> Iterator[Tuple[Optional[FormNode], FormNode]]:
    """Yield (parent, node) pairs in pre-order; the root's parent is None"""
    yield parent, node
    for child in children_of(node):
        yield from iter_with_parent(child, node)


def find_node(root: FormNode, node_id: str) -> Optional[FormNode]:
    for node in iter_nodes(root):
        if node.id == node_id:
            return node
    return None


def find_parent(root: FormNode, node_id: str) -> Optional[FormNode]:
    """Find the container holding the node ``find_node`` would return.

    Returns None for the root itself and for unknown ids.
    """
    for parent, node in iter_with_parent(root):
        if node.id == node_id:
            return parent
    return None


def get_node_path(root: FormNode, node_id: str) -> List[str]:
    """Get the ids from the root down to the node, empty if not found"""
    if root.id == node_id:
        return [root.id]
    for child in children_of(root):
        path = get_node_path(child, node_id)
        if path:
            return [root.id] + path
    return []


def collect_ids(root: FormNode) -> List[str]:
    return [node.id for node in iter_nodes(root)]


def index_of(children: Sequence[FormNode], node_id: str) -> int:
    """Position of the first child with ``node_id``, -1 if absent"""
    for index, child in enumerate(children):
        if child.id == node_id:
            return index
    return -1


def group_children_by_tag(children: Sequence[FormNode]) -> List[FormNode]:
    """Order children the way they are written to XML.

    Children with the same node type are kept together, in their original
    relative order; the groups follow the order in which each type first
    appears.
    """
    groups = {}
    for child in children:
        groups.setdefault(child.node_type, []).append(child)
    return [child for group in groups.values() for child in group]


def normalize_child_order(root: FormNode) -> FormNode:
    """Return a deep copy of the tree with every child list grouped by tag.

    This is the shape ``parse_xml(build_xml(tree))`` yields.
    """
    copy = root.model_copy(deep=True)
    for node in iter_nodes(copy):
        if hasattr(node, "children"):
            node.children = group_children_by_tag(node.children)
    return copy
