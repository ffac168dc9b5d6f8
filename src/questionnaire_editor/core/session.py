"""
Editing session over one questionnaire document.

``FormEditor`` holds the current snapshot, the selected node, an undo/redo
history and a clipboard. Every edit goes through the snapshot operations in
``core.operations``; a refused edit leaves the document as it was and is
recorded as a WARNING finding in ``editor.validator``.

Add operations work relative to the selection: without an explicit parent,
the new node goes into the selected node if it accepts that type, else next
to the selected node in its parent. The new node becomes the selection.
"""

from logging import getLogger
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Union

from questionnaire_editor.business_rules.containment import can_contain
from questionnaire_editor.business_rules.document_rules import DocumentValidator
from questionnaire_editor.core import factory
from questionnaire_editor.core.builder import QuestionnaireXmlBuilder
from questionnaire_editor.core.clipboard import Clipboard
from questionnaire_editor.core.history import SnapshotHistory
from questionnaire_editor.core.ids import IdAllocator
from questionnaire_editor.core.operations import (
    add_nodes,
    delete_node,
    duplicate_node,
    move_node,
    regenerate_all_ids,
    set_reference,
    update_node,
)
from questionnaire_editor.core.parser import QuestionnaireXmlParser
from questionnaire_editor.core.tree import collect_ids, find_node, find_parent, get_node_path
from questionnaire_editor.core.visibility import evaluate_condition_set
from questionnaire_editor.exceptions.editing import EditingError
from questionnaire_editor.models.questionnaire import (
    EntityType,
    FormNode,
    ProfileReferenceField,
    QuestionType,
    Questionnaire,
)
from questionnaire_editor.utils.config import EditorSettings
from questionnaire_editor.utils.validation import (
    ValidationCollector,
    ValidationResult,
    ValidationSeverity,
)
from questionnaire_editor.utils.validation_messages import FindingMessage

logger = getLogger(__name__)


class FormEditor:
    """Stateful editing session; the document itself is never mutated"""

    def __init__(
        self,
        questionnaire: Optional[Questionnaire] = None,
        settings: Optional[EditorSettings] = None,
    ):
        self.settings = settings or EditorSettings()
        self.validator = ValidationCollector(self.settings.validation_level)
        self.history: SnapshotHistory[Questionnaire] = SnapshotHistory(
            self.settings.history_limit
        )
        self.clipboard = Clipboard(self.settings.clipboard_path)
        self.selected_id: Optional[str] = None
        self.modified = False
        self.questionnaire = questionnaire or factory.create_empty_questionnaire()
        self.history.reset(self.questionnaire)

    # Documents

    def new_document(self, title: str = "New Form", suffix: Optional[str] = None) -> Questionnaire:
        """Start over with an empty questionnaire"""
        self._replace_document(factory.create_empty_questionnaire(title, suffix))
        return self.questionnaire

    def open(self, filepath: Union[str, Path]) -> bool:
        """Load a questionnaire file; the current document stays on failure"""
        parser = self._parser()
        questionnaire, _ = parser.parse_file(Path(filepath))
        return self._accept_parsed(questionnaire, parser)

    def load_xml(self, xml_text: Union[str, bytes]) -> bool:
        parser = self._parser()
        return self._accept_parsed(parser.parse_xml(xml_text), parser)

    def export_xml(self) -> str:
        return self._builder().build_xml(self.questionnaire)

    def save(self, filepath: Union[str, Path]) -> Path:
        path = self._builder().write_file(self.questionnaire, filepath)
        self.modified = False
        return path

    # Selection

    @property
    def selected_node(self) -> Optional[FormNode]:
        if self.selected_id is None:
            return None
        return find_node(self.questionnaire, self.selected_id)

    def select(self, node_id: Optional[str]) -> bool:
        if node_id is not None and find_node(self.questionnaire, node_id) is None:
            logger.warning(f"Cannot select '{node_id}': no such node")
            return False
        self.selected_id = node_id
        return True

    def selected_path(self) -> List[str]:
        if self.selected_id is None:
            return []
        return get_node_path(self.questionnaire, self.selected_id)

    # Adding nodes

    def add_section(self, title: str = "New Section") -> Optional[str]:
        return self._add(
            "section",
            lambda allocator: factory.new_section(allocator, title),
            self.questionnaire.id,
        )

    def add_subsection(self, title: str = "New Subsection", parent_id: Optional[str] = None) -> Optional[str]:
        return self._add(
            "subsection", lambda allocator: factory.new_subsection(allocator, title), parent_id
        )

    def add_question(
        self,
        question_type: str = QuestionType.CHAR.value,
        text: str = "New Question",
        parent_id: Optional[str] = None,
    ) -> Optional[str]:
        return self._add(
            "question",
            lambda allocator: factory.new_question(allocator, question_type, text),
            parent_id,
        )

    def add_entity(
        self,
        entity_type: str = EntityType.SINGLE.value,
        title: str = "New Entity",
        parent_id: Optional[str] = None,
    ) -> Optional[str]:
        return self._add(
            "entity",
            lambda allocator: factory.new_entity(allocator, title, entity_type),
            parent_id,
        )

    def add_condition_set(self, parent_id: Optional[str] = None) -> Optional[str]:
        return self._add("conditionset", factory.new_condition_set, parent_id)

    def add_conditional(self, condition: str = "true", parent_id: Optional[str] = None) -> Optional[str]:
        return self._add(
            "conditional",
            lambda allocator: factory.new_conditional(allocator, condition),
            parent_id,
        )

    def add_option(self, value: str, text: str, parent_id: Optional[str] = None) -> Optional[str]:
        return self._add(
            "option", lambda allocator: factory.new_option(allocator, value, text), parent_id
        )

    def add_description(self, text: str, prefix: str = "", parent_id: Optional[str] = None) -> Optional[str]:
        return self._add(
            "description",
            lambda allocator: factory.new_description(allocator, text, prefix),
            parent_id,
        )

    def add_warning(self, text: str, parent_id: Optional[str] = None) -> Optional[str]:
        return self._add(
            "warning", lambda allocator: factory.new_warning(allocator, text), parent_id
        )

    def add_note(self, text: str, is_check_item: bool = False, parent_id: Optional[str] = None) -> Optional[str]:
        return self._add(
            "note",
            lambda allocator: factory.new_note(allocator, text, is_check_item),
            parent_id,
        )

    def add_include_form(self, form_name: str, title: str, parent_id: Optional[str] = None) -> Optional[str]:
        return self._add(
            "includeform",
            lambda allocator: factory.new_include_form(allocator, form_name, title),
            parent_id,
        )

    def add_required_doc(self, title: str, parent_id: Optional[str] = None) -> Optional[str]:
        return self._add(
            "required-doc",
            lambda allocator: factory.new_required_document(allocator, title),
            parent_id,
        )

    def add_address_set(self, parent_id: Optional[str] = None) -> Optional[str]:
        """Add the seven address questions; the first one gets selected"""
        return self._add("question", factory.new_address_set, parent_id)

    def add_reference(
        self,
        field: str = ProfileReferenceField.FULLNAME.value,
        question_id: Optional[str] = None,
    ) -> Optional[str]:
        """Make a question a profile reference, replacing an existing reference"""
        question_id = question_id or self.selected_id
        if question_id is None:
            self._refuse("No question selected to hold the reference")
            return None
        reference_id = self._next_id()
        if self._apply(set_reference, question_id, field):
            self.selected_id = reference_id
            return reference_id
        return None

    # Changing nodes

    def update(self, node_id: str, **changes) -> bool:
        return self._apply(update_node, node_id, **changes)

    def delete(self, node_id: Optional[str] = None) -> bool:
        """Delete a node (the selection by default) with its subtree"""
        node_id = node_id or self.selected_id
        if node_id is None:
            return False
        parent = find_parent(self.questionnaire, node_id)
        selected_path = self.selected_path()
        if not self._apply(delete_node, node_id):
            return False
        if node_id in selected_path:
            self.selected_id = parent.id if parent is not None else None
        return True

    def move(self, node_id: str, new_parent_id: str, index: int) -> bool:
        return self._apply(move_node, node_id, new_parent_id, index)

    def duplicate(self, node_id: Optional[str] = None) -> Optional[str]:
        """Duplicate a node next to itself; the copy gets selected"""
        node_id = node_id or self.selected_id
        if node_id is None:
            return None
        clone_id = self._next_id()
        if self._apply(duplicate_node, node_id):
            self.selected_id = clone_id
            return clone_id
        return None

    def regenerate_all_ids(self) -> None:
        """Renumber the whole document, keeping the selection on the same node"""
        old_ids = collect_ids(self.questionnaire)
        position = old_ids.index(self.selected_id) if self.selected_id in old_ids else None
        self._commit(regenerate_all_ids(self.questionnaire))
        if position is not None:
            self.selected_id = collect_ids(self.questionnaire)[position]

    # Clipboard

    def copy(self, node_id: Optional[str] = None) -> bool:
        node_id = node_id or self.selected_id
        if node_id is None:
            return False
        return self.clipboard.copy(self.questionnaire, node_id)

    def paste(self, target_id: Optional[str] = None) -> Optional[str]:
        """Paste the clipboard into a target (by default the selection or its parent)"""
        if target_id is None:
            copied = self.clipboard.node
            target_id = self._target_for(copied.node_type, None) if copied else self.selected_id
        if target_id is None:
            self._refuse(FindingMessage.EMPTY_CLIPBOARD.value if self.clipboard.is_empty
                         else "No target selected to paste into")
            return None
        pasted_id = self._next_id()
        if self._apply(self.clipboard.paste, target_id, selected_id=self.selected_id):
            self.selected_id = pasted_id
            return pasted_id
        return None

    # History

    def undo(self) -> bool:
        return self._restore(self.history.undo())

    def redo(self) -> bool:
        return self._restore(self.history.redo())

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    # Checks

    def validate(self) -> List[ValidationResult]:
        return DocumentValidator(self.validator).validate(self.questionnaire)

    def branch_visibility(self, condition_set_id: str, answers: Mapping[str, object]) -> Dict[str, bool]:
        condition_set = find_node(self.questionnaire, condition_set_id)
        if condition_set is None or condition_set.node_type != "conditionset":
            logger.warning(f"'{condition_set_id}' is not a conditionset")
            return {}
        return evaluate_condition_set(condition_set, answers)

    # Internals

    def _parser(self) -> QuestionnaireXmlParser:
        return QuestionnaireXmlParser(
            self.settings.validation_level, self.settings.synthetic_id_prefix
        )

    def _builder(self) -> QuestionnaireXmlBuilder:
        return QuestionnaireXmlBuilder(self.settings.indent)

    def _accept_parsed(self, questionnaire: Optional[Questionnaire], parser: QuestionnaireXmlParser) -> bool:
        self.validator.results.extend(parser.validator.results)
        if questionnaire is None:
            return False
        self._replace_document(questionnaire)
        return True

    def _replace_document(self, questionnaire: Questionnaire) -> None:
        self.questionnaire = questionnaire
        self.history.reset(questionnaire)
        self.selected_id = None
        self.modified = False

    def _next_id(self) -> str:
        """The id the next allocation in the current document will hand out"""
        return IdAllocator.for_questionnaire(self.questionnaire).allocate()

    def _target_for(self, child_type: str, parent_id: Optional[str]) -> Optional[str]:
        if parent_id is not None:
            return parent_id
        selected = self.selected_node
        if selected is None:
            return None
        if can_contain(selected.node_type, child_type):
            return selected.id
        parent = find_parent(self.questionnaire, selected.id)
        if parent is not None and can_contain(parent.node_type, child_type):
            return parent.id
        return None

    def _add(self, child_type: str, build: Callable, parent_id: Optional[str]) -> Optional[str]:
        parent_id = self._target_for(child_type, parent_id)
        if parent_id is None:
            self._refuse(f"No place for a new {child_type} next to the selection")
            return None

        created: List[FormNode] = []

        def build_and_record(allocator: IdAllocator):
            built = build(allocator)
            created.extend(built if isinstance(built, list) else [built])
            return built

        if not self._apply(add_nodes, parent_id, build_and_record, selected_id=self.selected_id):
            return None
        self.selected_id = created[0].id
        return self.selected_id

    def _apply(self, operation: Callable, *args, **kwargs) -> bool:
        try:
            updated = operation(self.questionnaire, *args, strict=True, **kwargs)
        except EditingError as e:
            self._refuse(str(e), node_id=e.node_id)
            return False
        self._commit(updated)
        return True

    def _commit(self, updated: Questionnaire) -> None:
        self.questionnaire = updated
        self.history.push(updated)
        self.modified = True

    def _refuse(self, reason: str, node_id: Optional[str] = None) -> None:
        self.validator.add_result(
            severity=ValidationSeverity.WARNING,
            message=FindingMessage.REFUSED_EDIT.format(reason=reason),
            node_id=node_id,
        )

    def _restore(self, snapshot: Optional[Questionnaire]) -> bool:
        if snapshot is None:
            return False
        self.questionnaire = snapshot
        self.modified = True
        if self.selected_id is not None and find_node(snapshot, self.selected_id) is None:
            self.selected_id = None
        return True
