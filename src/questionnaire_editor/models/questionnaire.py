"""
Data model for bar-association questionnaire definitions.

A questionnaire is a single rooted tree of node variants. Every variant is a
plain pydantic record tagged by its ``node_type`` field; consumers narrow a
node by switching on that tag, never by calling methods on it. Containers
declare their children as discriminated unions, so a payload read from XML or
JSON is validated straight into the right variant.

Fields that are absent from a document fall back to the defaults declared
here, which are the same defaults the XML parser applies.
"""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class QuestionType(str, Enum):
    """Enumeration of the question kinds the form runtime understands"""

    CHAR = "char"
    TEXT = "text"
    SSN = "ssn"
    RADIO = "radio"
    RADIO_SEPARATE = "radioseperate"  # spelling is part of the file format
    SELECT = "select"
    DATE = "date"
    TIME = "time"
    EMP_DATE_START = "emp_date_start"
    EMP_DATE_END = "emp_date_end"
    RES_DATE_START = "res_date_start"
    RES_DATE_END = "res_date_end"
    STATE = "state"
    STATE_UBE = "state_ube"
    STATE_MUTUAL = "state_mutual"
    COUNTRY = "country"
    COUNTY = "county"
    ZIP = "zip"
    LAWSCHOOL = "lawschool"
    EXAMSITE = "examsite"
    SIGNATURE = "signature"
    PROFILE_REFERENCE = "profilereference"
    EXAM_REFERENCE = "examreference"
    NOTICE = "notice"


# Question kinds whose answer is picked from <option> children
SELECTION_QUESTION_TYPES = {
    QuestionType.RADIO.value,
    QuestionType.RADIO_SEPARATE.value,
    QuestionType.SELECT.value,
}


class ConditionOperator(str, Enum):
    """How the trigger answers of a conditionset are combined"""

    AND = "and"
    OR = "or"
    SMALLER = "smaller"
    SWITCH = "switch"
    CONTAIN = "contain"
    ELSE = "else"


class EntityType(str, Enum):
    SINGLE = "single"
    ADDMORE = "addmore"


class ValidatorClass(str, Enum):
    """Server-side validators a question may name"""

    EMAIL = "ilg.common.validators.EmailValidator"
    CURRENCY = "ilg.common.validators.CurrencyValidator"
    SIGNATURE = "ilg.common.validators.SignatureValidator"
    RESIDENCE_DATE_GAP = "ilg.common.validators.ResidenceDateGapValidator"
    EMP_DATE_GAP = "ilg.common.validators.EmpDateGapValidator"
    WA_CERTIFICATION_DATE = "ilg.common.validators.WaCertificationDate"


class ProfileReferenceField(str, Enum):
    """Applicant profile fields a reference node can point at"""

    FULLNAME = "fullname"
    SSN = "ssn"
    DOB = "dob"
    PLACE_OF_BIRTH = "place_of_birth"
    TITLE = "title"
    NCBE_NUMBER = "ncbe_number"
    ADDRESS1 = "address1"
    ADDRESS2 = "address2"
    CITY = "city"
    STATE = "state"
    ZIP = "zip"
    COUNTY = "county"
    COUNTRY = "country"
    EMAIL = "email"
    CELLPHONE = "cellphone"
    PRIMARYPHONE = "primaryphone"
    FAX = "fax"
    FIRMNAME = "firmname"
    ADDRESSTYPE = "addresstype"


class BaseNode(BaseModel):
    """Fields shared by every node of the tree"""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    order: Optional[int] = None


# Leaf nodes


class Option(BaseNode):
    node_type: Literal["option"] = "option"
    value: str = ""
    text: str = ""


class Description(BaseNode):
    """Label text of a question or a free-standing paragraph.
    The text may carry inline markup such as <strong>."""

    node_type: Literal["description"] = "description"
    prefix: str = ""
    text: str = ""


class WarningNode(BaseNode):
    node_type: Literal["warning"] = "warning"
    text: str = ""


class Note(BaseNode):
    node_type: Literal["note"] = "note"
    text: str = ""
    is_check_item: bool = False


class Reference(BaseNode):
    """Points a profilereference question at an applicant profile field"""

    node_type: Literal["reference"] = "reference"
    table: str = ""
    field: str = ProfileReferenceField.FULLNAME.value


class IncludeForm(BaseNode):
    node_type: Literal["includeform"] = "includeform"
    form_name: str = ""
    title: str = ""
    type: str = "online"
    multiple_include: bool = False
    required: bool = False


class RequiredDocument(BaseNode):
    node_type: Literal["required-doc"] = "required-doc"
    title: str = ""
    prevent_submit: bool = True


# Question

QuestionChild = Annotated[
    Union[Description, Option, Reference],
    Field(discriminator="node_type"),
]


class Question(BaseNode):
    """A single input of the form.

    Besides its label (a description child) a question can hold options
    (radio/select kinds) and one profile reference (profilereference kind).
    The ncbe/ilg names control how the answer is exported.
    """

    node_type: Literal["question"] = "question"
    type: str = QuestionType.CHAR.value
    format: str = ""
    option: str = ""
    required: bool = False
    trigger_value: str = ""
    comment: str = ""
    maxlength: int = 0
    refname: str = ""
    app_type: str = ""
    app_type_trigger: str = ""
    is_amended: bool = False
    validator_class: str = ""
    validation_message: str = ""
    ncbe_name: str = ""
    ncbe_currently: bool = False
    ilg_name: str = ""
    children: List[QuestionChild] = Field(default_factory=list)


# Containers


class Entity(BaseNode):
    """A single or repeatable ("addmore") group of content"""

    node_type: Literal["entity"] = "entity"
    title: str = ""
    type: str = EntityType.SINGLE.value
    min: int = 0
    max: int = 0
    next_order: int = 1
    show_in_bar_admin: bool = True
    is_amended: bool = False
    group_type: str = ""
    ncbe_name: str = ""
    ncbe_value: str = ""
    ilg_name: str = ""
    ilg_value: str = ""
    children: List["ContentNode"] = Field(default_factory=list)


class ConditionSet(BaseNode):
    """Trigger questions plus the conditional branches they drive.

    The split into triggers, branches and passive annotations is not stored;
    see ``core.visibility.partition_condition_set``.
    """

    node_type: Literal["conditionset"] = "conditionset"
    operator: str = ConditionOperator.AND.value
    children: List["ConditionSetChild"] = Field(default_factory=list)


class Conditional(BaseNode):
    node_type: Literal["conditional"] = "conditional"
    condition: str = "true"
    children: List["ContentNode"] = Field(default_factory=list)


class SubSection(BaseNode):
    node_type: Literal["subsection"] = "subsection"
    title: str = ""
    show_in_bar_admin: bool = True
    children: List["ContentNode"] = Field(default_factory=list)


class Section(BaseNode):
    node_type: Literal["section"] = "section"
    title: str = ""
    show_in_bar_admin: bool = True
    children: List[SubSection] = Field(default_factory=list)


class Questionnaire(BaseNode):
    """Root of a document. ``suffix`` and ``next_id`` drive id allocation."""

    node_type: Literal["questionnaire"] = "questionnaire"
    title: str = "Untitled Form"
    suffix: str = ""
    next_id: int = 1
    children: List[Section] = Field(default_factory=list)


ContentNode = Annotated[
    Union[
        Question,
        Entity,
        ConditionSet,
        Description,
        WarningNode,
        Note,
        IncludeForm,
        RequiredDocument,
    ],
    Field(discriminator="node_type"),
]

ConditionSetChild = Annotated[
    Union[Question, Conditional, Description, WarningNode, Note, RequiredDocument],
    Field(discriminator="node_type"),
]

FormNode = Union[
    Questionnaire,
    Section,
    SubSection,
    Question,
    Entity,
    ConditionSet,
    Conditional,
    Option,
    Description,
    WarningNode,
    Note,
    Reference,
    IncludeForm,
    RequiredDocument,
]

AnyNode = Annotated[FormNode, Field(discriminator="node_type")]

for _model in (Entity, ConditionSet, Conditional, SubSection, Section, Questionnaire):
    _model.model_rebuild()

# Validates a free-standing node payload into its variant
node_adapter: TypeAdapter = TypeAdapter(AnyNode)

# node_type tag -> model class
NODE_CLASSES = {
    "questionnaire": Questionnaire,
    "section": Section,
    "subsection": SubSection,
    "question": Question,
    "entity": Entity,
    "conditionset": ConditionSet,
    "conditional": Conditional,
    "option": Option,
    "description": Description,
    "warning": WarningNode,
    "note": Note,
    "reference": Reference,
    "includeform": IncludeForm,
    "required-doc": RequiredDocument,
}
