from collections import Counter
from typing import Dict, List, Optional

import networkx as nx

from questionnaire_editor.core.tree import children_of
from questionnaire_editor.models.questionnaire import FormNode, Questionnaire


class GraphConversionError(Exception):
    """Raised when a questionnaire cannot be turned into a structure graph"""
    pass


class StructureGraph:
    """Directed parent → child view of a questionnaire tree.

    Graph vertices are keyed by object identity rather than node id, so a
    node object reachable from two parents shows up as a vertex with two
    incoming edges, and repeated ids do not collapse distinct nodes. Each
    vertex carries ``node_id``, ``node_type``, ``label`` and ``depth``. A node
    listed twice by the same parent gets two parallel edges.
    """

    def __init__(self):
        self.graph = nx.MultiDiGraph()
        self._root_key: Optional[int] = None

    def from_questionnaire(self, questionnaire: Questionnaire) -> nx.MultiDiGraph:
        """Build the graph for a questionnaire"""
        if questionnaire is None:
            raise GraphConversionError("No questionnaire to convert")

        self.graph = nx.MultiDiGraph()
        self._root_key = id(questionnaire)
        self._add_subtree(questionnaire, parent_key=None, depth=0)
        return self.graph

    def _add_subtree(self, node: FormNode, parent_key: Optional[int], depth: int) -> None:
        key = id(node)
        seen = key in self.graph
        if not seen:
            self.graph.add_node(
                key,
                node_id=node.id,
                node_type=node.node_type,
                label=_label_of(node),
                depth=depth,
            )
        if parent_key is not None:
            self.graph.add_edge(parent_key, key)
        if seen:
            return  # shared or cyclic structure, already expanded
        for child in children_of(node):
            self._add_subtree(child, key, depth + 1)

    def is_single_owner_tree(self) -> bool:
        """True if every node has exactly one parent and there are no cycles"""
        return self.graph.number_of_nodes() > 0 and nx.is_arborescence(self.graph)

    def shared_nodes(self) -> List[str]:
        """Ids of node objects reachable through more than one parent"""
        return [
            self.graph.nodes[key]["node_id"]
            for key in self.graph.nodes
            if self.graph.in_degree(key) > 1
        ]

    def node_type_counts(self) -> Dict[str, int]:
        return dict(Counter(data["node_type"] for _, data in self.graph.nodes(data=True)))

    def max_depth(self) -> int:
        if self._root_key is None:
            return 0
        return max(nx.single_source_shortest_path_length(self.graph, self._root_key).values())

    def leaf_count(self) -> int:
        return sum(1 for key in self.graph.nodes if self.graph.out_degree(key) == 0)


def _label_of(node: FormNode) -> str:
    """Short human readable label: title, text or the first description"""
    for attribute in ("title", "text", "condition"):
        value = getattr(node, attribute, None)
        if value:
            return value
    for child in children_of(node):
        if child.node_type == "description" and child.text:
            return child.text
    return node.node_type


def build_structure_graph(questionnaire: Questionnaire) -> StructureGraph:
    structure = StructureGraph()
    structure.from_questionnaire(questionnaire)
    return structure
