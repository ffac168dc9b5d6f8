from typing import Dict, Optional, Tuple, Union
from pathlib import Path
from lxml import etree as ET
import logging

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import networkx as nx

from questionnaire_editor.business_rules.document_rules import DocumentValidator
from questionnaire_editor.core.graph import StructureGraph, build_structure_graph
from questionnaire_editor.core.parser import QuestionnaireXmlParser
from questionnaire_editor.models.questionnaire import Questionnaire
from questionnaire_editor.utils.validation import ValidationCollector, ValidationLevel

logger = logging.getLogger(__name__)

# Fill colors of the debug rendering, by node type
NODE_COLORS = {
    "questionnaire": "#4c72b0",
    "section": "#55a868",
    "subsection": "#8fd19e",
    "entity": "#c44e52",
    "conditionset": "#dd8452",
    "conditional": "#f2b880",
    "question": "#8172b3",
}
DEFAULT_NODE_COLOR = "#cccccc"


def setup_debug_logging(level=logging.INFO):
    """Set up logging configuration for debugging purposes.
    level: DEBUG also shows every attribute fallback and id allocation,
    level: INFO shows parse and edit summaries"""
    # Reset root logger handlers
    root = logging.getLogger()
    if root.handlers:
        root.handlers.clear()

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def print_xml_structure(element: ET._Element, level: int = 0):
    """Print the XML structure in a readable format"""
    indent = "  " * level
    print(f"{indent}Tag: {element.tag}")

    if element.attrib:
        print(f"{indent}Attributes:")
        for key, value in element.attrib.items():
            print(f"{indent}  {key}: {value}")

    if element.text and element.text.strip():
        print(f"{indent}Text: {element.text.strip()}")

    for child in element:
        if isinstance(child.tag, str):
            print_xml_structure(child, level + 1)


def inspect_questionnaire(questionnaire: Questionnaire) -> StructureGraph:
    """Print a summary of a questionnaire tree"""
    structure = build_structure_graph(questionnaire)

    print("\n=== Questionnaire Summary ===")
    print(f"Title: {questionnaire.title}")
    print(f"Suffix: {questionnaire.suffix}  Next id: {questionnaire.next_id}")
    print(f"Total nodes: {structure.graph.number_of_nodes()}")
    print(f"Leaf nodes: {structure.leaf_count()}")
    print(f"Depth: {structure.max_depth()}")
    print(f"Single-owner tree: {structure.is_single_owner_tree()}")

    print("\n=== Amount of Node Types ===")
    for node_type, count in sorted(structure.node_type_counts().items()):
        print(f"{node_type}: {count}")

    return structure


def _tree_layout(structure: StructureGraph) -> Dict[int, Tuple[float, float]]:
    """Place nodes in rows by depth, leaves spread evenly left to right"""
    graph = structure.graph
    positions: Dict[int, Tuple[float, float]] = {}
    next_leaf = [0.0]

    def place(key: int) -> float:
        y = -float(graph.nodes[key]["depth"])
        positions[key] = (0.0, y)
        children = [child for child in graph.successors(key) if child not in positions]
        xs = [place(child) for child in children]
        if xs:
            x = sum(xs) / len(xs)
        else:
            x = next_leaf[0]
            next_leaf[0] += 1.0
        positions[key] = (x, y)
        return x

    for key in graph.nodes:
        if graph.in_degree(key) == 0 and key not in positions:
            place(key)
    return positions


def visualize_tree(questionnaire: Questionnaire, output_path: Union[str, Path],
                   with_labels: bool = True) -> Path:
    """Render the questionnaire tree to an image file (PNG, SVG, PDF by suffix)"""
    structure = build_structure_graph(questionnaire)
    graph = structure.graph
    positions = _tree_layout(structure)

    width = max(8.0, structure.leaf_count() * 0.6)
    height = max(4.0, (structure.max_depth() + 1) * 1.2)
    fig, ax = plt.subplots(figsize=(width, height))
    colors = [NODE_COLORS.get(data["node_type"], DEFAULT_NODE_COLOR)
              for _, data in graph.nodes(data=True)]
    labels = {key: (data["label"][:24] if with_labels else data["node_type"])
              for key, data in graph.nodes(data=True)}

    nx.draw(graph, pos=positions, ax=ax, labels=labels, node_color=colors,
            node_size=300, font_size=6, arrows=False)
    ax.set_title(questionnaire.title)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Saved tree rendering to {output_path}")
    return output_path


def debug_parsing(xml_path: Path, validation_level: ValidationLevel = ValidationLevel.LENIENT,
                  logging_level=logging.INFO, image_path: Optional[Path] = None
                  ) -> Tuple[Optional[Questionnaire], ValidationCollector]:
    """Run a complete debugging session for a questionnaire XML file

    Args:
        xml_path: Path to the XML file to parse
        validation_level: Validation strictness level (default: LENIENT for debugging)
        logging_level: Root logging level for the session
        image_path: Where to render the tree, if wanted
    """
    setup_debug_logging(logging_level)

    parser = QuestionnaireXmlParser(validation_level=validation_level)
    questionnaire, validator = parser.parse_file(xml_path)
    if questionnaire is None:
        logger.error(f"Could not parse {xml_path}")
        return None, validator

    inspect_questionnaire(questionnaire)
    DocumentValidator(validator).validate(questionnaire)
    if image_path is not None:
        visualize_tree(questionnaire, image_path)

    return questionnaire, validator
