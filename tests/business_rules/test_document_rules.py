import pytest
from questionnaire_editor.business_rules.document_rules import DocumentValidator, validate_questionnaire
from questionnaire_editor.core import factory
from questionnaire_editor.core.operations import add_nodes
from questionnaire_editor.models.questionnaire import (
    ConditionSet,
    Conditional,
    Description,
    Option,
    Question,
    Questionnaire,
    Section,
    SubSection,
)
from questionnaire_editor.utils.validation import (
    ValidationCollector,
    ValidationLevel,
    ValidationSeverity,
)


def wrap(*content, next_id=100):
    """Provides a questionnaire holding ``content`` in one subsection"""
    return Questionnaire(
        id="112345",
        suffix="12345",
        next_id=next_id,
        children=[Section(id="212345", children=[SubSection(id="312345", children=list(content))])],
    )


@pytest.fixture
def clean_questionnaire():
    document = factory.create_empty_questionnaire(suffix="12345")
    document = add_nodes(document, document.id, factory.new_section)
    return add_nodes(document, "312345", factory.new_condition_set)


def test_clean_document_has_no_findings(clean_questionnaire):
    assert validate_questionnaire(clean_questionnaire) == []


def test_duplicate_ids():
    findings = validate_questionnaire(
        wrap(Question(id="x", type="date"), Description(id="x", text="Label"))
    )
    assert len(findings) == 1
    assert findings[0].severity == ValidationSeverity.ERROR
    assert findings[0].message == 'Duplicate ID "x" found 2 times (question, description)'


def test_empty_ids():
    findings = validate_questionnaire(wrap(Question(type="date"), Description(text="Label")))
    assert [finding.message for finding in findings] == ["2 node(s) have empty IDs"]


def test_stale_next_id():
    findings = validate_questionnaire(wrap(Question(id="512345", type="date"), next_id=5))
    assert len(findings) == 1
    assert findings[0].severity == ValidationSeverity.WARNING
    assert findings[0].node_id == "512345"


def test_ids_with_other_suffix_do_not_count():
    assert validate_questionnaire(wrap(Question(id="99999999", type="date"), next_id=5)) == []


def test_ids_with_non_ascii_digits_do_not_count():
    assert validate_questionnaire(wrap(Question(id="²12345", type="date"), next_id=5)) == []


def test_containment_violation():
    subsection = SubSection(id="312345")
    subsection.children.append(Option(id="412345", value="x"))
    document = Questionnaire(
        id="112345", suffix="12345", next_id=9,
        children=[Section(id="212345", children=[subsection])],
    )
    findings = validate_questionnaire(document)
    assert len(findings) == 1
    assert findings[0].severity == ValidationSeverity.ERROR
    assert "<option> is not allowed inside <subsection>" in findings[0].message


def test_shared_structure():
    question = Question(id="412345", type="date")
    document = wrap(question)
    document.children[0].children[0].children.append(question)
    messages = [finding.message for finding in validate_questionnaire(document)]
    assert "Node '412345' appears more than once in the tree." in messages


def test_question_checks():
    findings = validate_questionnaire(
        wrap(
            Question(id="412345", type="dropdown"),
            Question(id="512345", type="select"),
            Question(id="612345", type="radio", children=[Option(id="712345", value="a")]),
        )
    )
    assert [(finding.node_id, finding.field_name) for finding in findings] == [
        ("412345", "type"),
        ("512345", None),
    ]
    assert all(finding.severity == ValidationSeverity.WARNING for finding in findings)


def test_condition_set_without_trigger():
    findings = validate_questionnaire(
        wrap(ConditionSet(id="412345", children=[Conditional(id="512345")]))
    )
    assert [finding.message for finding in findings] == [
        "Conditionset '412345' has no trigger question."
    ]


def test_findings_go_to_collector():
    collector = ValidationCollector()
    validator = DocumentValidator(collector)
    validator.validate(wrap(Question(type="date")))
    findings = validator.validate(wrap(Question(type="date")))
    assert len(findings) == 1
    assert len(collector.results) == 2


def test_strict_level_raises():
    validator = DocumentValidator(ValidationCollector(ValidationLevel.STRICT))
    with pytest.raises(ValueError):
        validator.validate(wrap(Question(type="date")))
