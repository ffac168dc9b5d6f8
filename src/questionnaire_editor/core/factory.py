"""
Factories for new documents and new nodes.

Every factory takes the ``IdAllocator`` of the working copy it is building
for and allocates ids in pre-order (parent before its children), so a
freshly added subtree reads ``n, n+1, n+2, ...`` from the top down.
"""

from typing import List, Optional

from questionnaire_editor.core.ids import (
    IdAllocator,
    format_id,
    generate_suffix,
    is_valid_suffix,
)
from questionnaire_editor.models.questionnaire import (
    SELECTION_QUESTION_TYPES,
    ConditionOperator,
    Conditional,
    ConditionSet,
    Description,
    Entity,
    EntityType,
    IncludeForm,
    Note,
    Option,
    ProfileReferenceField,
    Question,
    QuestionType,
    Questionnaire,
    Reference,
    RequiredDocument,
    Section,
    SubSection,
    WarningNode,
)

# (label, question type, required) of the questions an address set adds
ADDRESS_FIELDS = (
    ("Address 1", QuestionType.CHAR, True),
    ("Address 2", QuestionType.CHAR, False),
    ("City", QuestionType.CHAR, True),
    ("State", QuestionType.STATE, True),
    ("County", QuestionType.COUNTY, True),
    ("Country", QuestionType.COUNTRY, True),
    ("Zip", QuestionType.ZIP, True),
)


def create_empty_questionnaire(
    title: str = "New Form", suffix: Optional[str] = None
) -> Questionnaire:
    """Create a document with no sections.

    The root gets id ``1<suffix>`` and the counter starts at 2.

    Raises:
        ValueError: If a supplied suffix is not five digits
    """
    if suffix is None:
        suffix = generate_suffix()
    elif not is_valid_suffix(suffix):
        raise ValueError(f"Suffix must be a 5-digit string, got '{suffix}'")

    return Questionnaire(id=format_id(1, suffix), title=title, suffix=suffix, next_id=2)


def new_subsection(allocator: IdAllocator, title: str = "New Subsection") -> SubSection:
    return SubSection(id=allocator.allocate(), title=title, show_in_bar_admin=False)


def new_section(allocator: IdAllocator, title: str = "New Section") -> Section:
    """A section always starts with one empty subsection"""
    section_id = allocator.allocate()
    return Section(
        id=section_id,
        title=title,
        show_in_bar_admin=False,
        children=[new_subsection(allocator)],
    )


def new_option(allocator: IdAllocator, value: str, text: str) -> Option:
    return Option(id=allocator.allocate(), value=value, text=text)


def _yes_no_options(allocator: IdAllocator) -> List[Option]:
    return [new_option(allocator, "yes", "Yes"), new_option(allocator, "no", "No")]


def new_description(allocator: IdAllocator, text: str, prefix: str = "") -> Description:
    return Description(id=allocator.allocate(), prefix=prefix, text=text)


def new_question(
    allocator: IdAllocator,
    question_type: str = QuestionType.CHAR.value,
    text: str = "New Question",
    required: bool = True,
    question_format: str = "",
) -> Question:
    """A question labelled by one description; selection kinds get yes/no options"""
    question_type = getattr(question_type, "value", question_type)
    question_id = allocator.allocate()
    children = [new_description(allocator, text)]
    if question_type in SELECTION_QUESTION_TYPES:
        children.extend(_yes_no_options(allocator))

    return Question(
        id=question_id,
        type=question_type,
        format=question_format,
        required=required,
        children=children,
    )


def new_entity(
    allocator: IdAllocator,
    title: str = "New Entity",
    entity_type: str = EntityType.SINGLE.value,
) -> Entity:
    entity_type = getattr(entity_type, "value", entity_type)
    return Entity(
        id=allocator.allocate(),
        title=title,
        type=entity_type,
        min=0,
        max=10 if entity_type == EntityType.ADDMORE.value else 0,
        show_in_bar_admin=False,
    )


def new_conditional(allocator: IdAllocator, condition: str = "true") -> Conditional:
    return Conditional(id=allocator.allocate(), condition=condition)


def new_condition_set(allocator: IdAllocator) -> ConditionSet:
    """A conditionset with a yes/no radio trigger and one "true" branch"""
    condition_set_id = allocator.allocate()
    trigger = new_question(
        allocator, QuestionType.RADIO.value, text="Trigger Question", required=False
    )
    trigger.trigger_value = "yes"
    return ConditionSet(
        id=condition_set_id,
        operator=ConditionOperator.AND.value,
        children=[trigger, new_conditional(allocator)],
    )


def new_warning(allocator: IdAllocator, text: str) -> WarningNode:
    return WarningNode(id=allocator.allocate(), text=text)


def new_note(allocator: IdAllocator, text: str, is_check_item: bool = False) -> Note:
    return Note(id=allocator.allocate(), text=text, is_check_item=is_check_item)


def new_include_form(allocator: IdAllocator, form_name: str, title: str) -> IncludeForm:
    return IncludeForm(
        id=allocator.allocate(),
        form_name=form_name,
        title=title,
        type="online",
        multiple_include=False,
        required=True,
    )


def new_required_document(allocator: IdAllocator, title: str) -> RequiredDocument:
    return RequiredDocument(id=allocator.allocate(), title=title, prevent_submit=True)


def new_reference(
    allocator: IdAllocator, field: str = ProfileReferenceField.FULLNAME.value
) -> Reference:
    return Reference(
        id=allocator.allocate(), table="profile", field=getattr(field, "value", field)
    )


def new_address_set(allocator: IdAllocator) -> List[Question]:
    return [
        new_question(allocator, question_type.value, text=label, required=required)
        for label, question_type, required in ADDRESS_FIELDS
    ]
