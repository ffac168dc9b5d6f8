"""
Data-quality checks over a whole questionnaire.

The checks never change the document and never block editing; every problem
becomes a finding in a ``ValidationCollector``:

- ERROR: duplicate ids, empty ids, disallowed parent/child pairs, node
  objects owned by more than one parent
- WARNING: ids at or above the ``nextid`` counter, unknown question types,
  selection questions without options, conditionsets without a trigger
"""

from collections import defaultdict
from logging import getLogger
from typing import Dict, Iterator, List, Optional, Tuple

from questionnaire_editor.business_rules.containment import can_contain
from questionnaire_editor.core.graph import build_structure_graph
from questionnaire_editor.core.ids import id_counter
from questionnaire_editor.core.tree import children_of
from questionnaire_editor.models.questionnaire import (
    SELECTION_QUESTION_TYPES,
    FormNode,
    QuestionType,
    Questionnaire,
)
from questionnaire_editor.utils.validation import (
    ValidationCollector,
    ValidationResult,
    ValidationSeverity,
)
from questionnaire_editor.utils.validation_messages import FindingMessage

logger = getLogger(__name__)

KNOWN_QUESTION_TYPES = frozenset(question_type.value for question_type in QuestionType)


def _walk(root: FormNode) -> Iterator[Tuple[Optional[FormNode], FormNode]]:
    """Pre-order (parent, node) pairs, visiting each node object once"""
    seen = set()
    stack: List[Tuple[Optional[FormNode], FormNode]] = [(None, root)]
    while stack:
        parent, node = stack.pop()
        yield parent, node
        if id(node) in seen:
            continue
        seen.add(id(node))
        stack.extend((node, child) for child in reversed(children_of(node)))


class DocumentValidator:
    """Runs every document check and reports through a collector"""

    def __init__(self, collector: Optional[ValidationCollector] = None):
        self.validator = collector or ValidationCollector()

    def validate(self, questionnaire: Questionnaire) -> List[ValidationResult]:
        """Check a questionnaire.

        Returns:
            The findings of this run, in check order
        """
        first = len(self.validator.results)
        pairs = list(_walk(questionnaire))
        nodes = _unique_nodes(pairs)

        self._check_duplicate_ids(nodes)
        self._check_empty_ids(nodes)
        self._check_next_id(questionnaire, nodes)
        self._check_containment(pairs)
        self._check_single_owner(questionnaire)
        self._check_questions(nodes)
        self._check_condition_sets(nodes)

        findings = self.validator.results[first:]
        logger.info(f"Document check found {len(findings)} issue(s)")
        return findings

    def _check_duplicate_ids(self, nodes: List[FormNode]) -> None:
        types_by_id: Dict[str, List[str]] = defaultdict(list)
        for node in nodes:
            if node.id:
                types_by_id[node.id].append(node.node_type)

        for node_id, node_types in types_by_id.items():
            if len(node_types) > 1:
                self.validator.add_result(
                    severity=ValidationSeverity.ERROR,
                    message=FindingMessage.DUPLICATE_ID.format(
                        node_id=node_id,
                        count=len(node_types),
                        node_types=", ".join(node_types),
                    ),
                    node_id=node_id,
                )

    def _check_empty_ids(self, nodes: List[FormNode]) -> None:
        empty = [node for node in nodes if not node.id]
        if empty:
            self.validator.add_result(
                severity=ValidationSeverity.ERROR,
                message=FindingMessage.EMPTY_IDS.format(count=len(empty)),
            )

    def _check_next_id(self, questionnaire: Questionnaire, nodes: List[FormNode]) -> None:
        for node in nodes:
            counter = id_counter(node.id, questionnaire.suffix)
            if counter is not None and counter >= questionnaire.next_id:
                self.validator.add_result(
                    severity=ValidationSeverity.WARNING,
                    message=FindingMessage.STALE_NEXT_ID.format(
                        node_id=node.id, next_id=questionnaire.next_id
                    ),
                    node_id=node.id,
                    node_type=node.node_type,
                    field_name="next_id",
                )

    def _check_containment(self, pairs) -> None:
        for parent, node in pairs:
            if parent is not None and not can_contain(parent.node_type, node.node_type):
                self.validator.add_result(
                    severity=ValidationSeverity.ERROR,
                    message=FindingMessage.CONTAINMENT.format(
                        child_type=node.node_type,
                        parent_type=parent.node_type,
                        parent_id=parent.id,
                    ),
                    node_id=node.id,
                    node_type=node.node_type,
                )

    def _check_single_owner(self, questionnaire: Questionnaire) -> None:
        structure = build_structure_graph(questionnaire)
        if structure.is_single_owner_tree():
            return
        for node_id in structure.shared_nodes():
            self.validator.add_result(
                severity=ValidationSeverity.ERROR,
                message=FindingMessage.SHARED_STRUCTURE.format(node_id=node_id),
                node_id=node_id,
            )

    def _check_questions(self, nodes: List[FormNode]) -> None:
        for node in nodes:
            if node.node_type != "question":
                continue
            if node.type not in KNOWN_QUESTION_TYPES:
                self.validator.add_result(
                    severity=ValidationSeverity.WARNING,
                    message=FindingMessage.UNKNOWN_QUESTION_TYPE.format(
                        node_id=node.id, question_type=node.type
                    ),
                    node_id=node.id,
                    node_type=node.node_type,
                    field_name="type",
                )
            elif node.type in SELECTION_QUESTION_TYPES and not any(
                child.node_type == "option" for child in node.children
            ):
                self.validator.add_result(
                    severity=ValidationSeverity.WARNING,
                    message=FindingMessage.MISSING_OPTIONS.format(
                        node_id=node.id, question_type=node.type
                    ),
                    node_id=node.id,
                    node_type=node.node_type,
                )

    def _check_condition_sets(self, nodes: List[FormNode]) -> None:
        for node in nodes:
            if node.node_type == "conditionset" and not any(
                child.node_type == "question" for child in node.children
            ):
                self.validator.add_result(
                    severity=ValidationSeverity.WARNING,
                    message=FindingMessage.MISSING_TRIGGER.format(node_id=node.id),
                    node_id=node.id,
                    node_type=node.node_type,
                )


def _unique_nodes(pairs) -> List[FormNode]:
    seen = set()
    nodes = []
    for _, node in pairs:
        if id(node) not in seen:
            seen.add(id(node))
            nodes.append(node)
    return nodes


def validate_questionnaire(
    questionnaire: Questionnaire, collector: Optional[ValidationCollector] = None
) -> List[ValidationResult]:
    return DocumentValidator(collector).validate(questionnaire)

