from pathlib import Path
import pytest
from questionnaire_editor.core.parser import QuestionnaireXmlParser, parse_xml
from questionnaire_editor.models.questionnaire import Questionnaire
from questionnaire_editor.utils.validation import ValidationSeverity

TEST_DATA = Path(__file__).parent.parent / "test_data"


@pytest.fixture
def parser():
    """Provides a fresh parser instance for each test"""
    return QuestionnaireXmlParser()


@pytest.fixture
def sample_questionnaire(parser):
    questionnaire, _ = parser.parse_file(TEST_DATA / "sample_questionnaire.xml")
    return questionnaire


def test_parse_sample_file(sample_questionnaire):
    """Test reading a complete document from disk"""
    assert isinstance(sample_questionnaire, Questionnaire)
    assert sample_questionnaire.id == "112345"
    assert sample_questionnaire.title == "Character and Fitness"
    assert sample_questionnaire.suffix == "12345"
    assert sample_questionnaire.next_id == 20

    subsection = sample_questionnaire.children[0].children[0]
    assert subsection.show_in_bar_admin is False
    assert [child.node_type for child in subsection.children] == [
        "question",
        "question",
        "conditionset",
    ]


def test_cdata_text_kept_verbatim(sample_questionnaire):
    """Test that label markup inside CDATA survives unchanged"""
    first_question = sample_questionnaire.children[0].children[0].children[0]
    assert first_question.required is True
    assert first_question.ncbe_name == "first_name"
    assert first_question.children[0].text == "First <strong>name</strong>"


def test_condition_set_children(sample_questionnaire):
    condition_set = sample_questionnaire.children[0].children[0].children[2]
    assert condition_set.operator == "and"
    trigger, branch, else_branch = condition_set.children
    assert trigger.trigger_value == "yes"
    assert [option.value for option in trigger.children[1:]] == ["yes", "no"]
    assert branch.condition == "yes"
    assert else_branch.condition == "else"
    assert else_branch.children[0].is_check_item is True
    assert else_branch.children[0].text == "No explanation needed."


def test_attribute_defaults():
    """Test that absent attributes fall back to their defaults"""
    questionnaire = parse_xml(
        '<questionnaire id="1">'
        '<section id="2"><subsection id="3">'
        '<question id="4"/>'
        '<entity id="5"/>'
        '<conditionset id="6"><conditional id="7"/></conditionset>'
        '<includeform id="8"/>'
        '<required-doc id="9"/>'
        '</subsection></section>'
        '</questionnaire>'
    )

    assert questionnaire.title == "Untitled Form"
    assert questionnaire.next_id == 1
    section = questionnaire.children[0]
    assert section.show_in_bar_admin is True
    question, entity, condition_set, include_form, required_doc = section.children[0].children
    assert question.type == "char"
    assert question.required is False
    assert question.maxlength == 0
    assert entity.type == "single"
    assert (entity.min, entity.max, entity.next_order) == (0, 0, 1)
    assert condition_set.operator == "and"
    assert condition_set.children[0].condition == "true"
    assert include_form.type == "online"
    assert include_form.multiple_include is False
    assert required_doc.prevent_submit is True


@pytest.mark.parametrize(
    "raw, expected",
    [("true", True), ("false", False), ("TRUE", False), ("1", False), ("yes", False)],
)
def test_flag_defaulting_to_false_needs_literal_true(raw, expected):
    questionnaire = parse_xml(
        f'<questionnaire id="1"><section id="2"><subsection id="3">'
        f'<question id="4" required="{raw}"/></subsection></section></questionnaire>'
    )
    assert questionnaire.children[0].children[0].children[0].required is expected


@pytest.mark.parametrize(
    "raw, expected",
    [("false", False), ("true", True), ("no", True), ("", True)],
)
def test_flag_defaulting_to_true_needs_literal_false(raw, expected):
    questionnaire = parse_xml(
        f'<questionnaire id="1"><section id="2" showinbaradmin="{raw}"><subsection id="3">'
        f'<required-doc id="4" preventsubmit="{raw}"/></subsection></section></questionnaire>'
    )
    section = questionnaire.children[0]
    assert section.show_in_bar_admin is expected
    assert section.children[0].children[0].prevent_submit is expected


def test_malformed_integer_falls_back_with_warning(parser):
    questionnaire = parser.parse_xml(
        '<questionnaire id="1" nextid="abc"><section id="2"><subsection id="3">'
        '<question id="4" maxlength="12"/></subsection></section></questionnaire>'
    )
    assert questionnaire.next_id == 1
    assert questionnaire.children[0].children[0].children[0].maxlength == 12
    warnings = parser.validator.get_results_by_severity(ValidationSeverity.WARNING)
    assert any(result.field_name == "next_id" for result in warnings)


def test_empty_string_attribute_is_kept():
    questionnaire = parse_xml('<questionnaire id="1" title=""/>')
    assert questionnaire.title == ""


def test_plain_text_trimmed_cdata_verbatim():
    questionnaire = parse_xml(
        '<questionnaire id="1"><section id="2"><subsection id="3">'
        '<description id="4">   Plain label   </description>'
        '<warning id="5"><![CDATA[  spaced  ]]></warning>'
        '<note id="6">ignored <![CDATA[kept]]></note>'
        '</subsection></section></questionnaire>'
    )
    description, warning, note = questionnaire.children[0].children[0].children
    assert description.text == "Plain label"
    assert warning.text == "  spaced  "
    assert note.text == "kept"


def test_missing_ids_get_synthetic_ids(parser):
    """Test that elements without an id get per-parse counter ids"""
    xml_text = (
        '<questionnaire><section><subsection id="3"><question/></subsection>'
        '</section></questionnaire>'
    )
    questionnaire = parser.parse_xml(xml_text)

    assert questionnaire.id == "node_1"
    assert questionnaire.children[0].id == "node_2"
    assert questionnaire.children[0].children[0].id == "3"
    assert questionnaire.children[0].children[0].children[0].id == "node_3"
    assert len(parser.validator.get_results_by_severity(ValidationSeverity.WARNING)) == 3

    # a fresh counter per call
    assert parser.parse_xml(xml_text).id == "node_1"


def test_custom_id_factory():
    ids = iter(["a", "b"])
    questionnaire = parse_xml(
        "<questionnaire><section/></questionnaire>", id_factory=lambda: next(ids)
    )
    assert questionnaire.id == "a"
    assert questionnaire.children[0].id == "b"


def test_disallowed_children_are_ignored(parser):
    questionnaire = parser.parse_xml(
        '<questionnaire id="1"><section id="2"><question id="3"/>'
        '<subsection id="4"><option id="5"/><unknown id="6"/></subsection>'
        '</section><!-- comment --></questionnaire>'
    )
    section = questionnaire.children[0]
    assert [child.id for child in section.children] == ["4"]
    assert section.children[0].children == []
    ignored = [
        result
        for result in parser.validator.results
        if "was ignored" in result.message
    ]
    assert len(ignored) == 3


def test_required_doc_inside_condition_set():
    questionnaire = parse_xml(
        '<questionnaire id="1"><section id="2"><subsection id="3">'
        '<conditionset id="4"><required-doc id="5" title="Transcript"/></conditionset>'
        '</subsection></section></questionnaire>'
    )
    condition_set = questionnaire.children[0].children[0].children[0]
    assert condition_set.children[0].title == "Transcript"


def test_children_in_document_order():
    questionnaire = parse_xml(
        '<questionnaire id="1"><section id="2"><subsection id="3">'
        '<question id="a"/><note id="b"/><question id="c"/>'
        '</subsection></section></questionnaire>'
    )
    ids = [child.id for child in questionnaire.children[0].children[0].children]
    assert ids == ["a", "b", "c"]


def test_parse_malformed_xml(parser):
    """Test that text that is not XML gives None and an ERROR finding"""
    assert parser.parse_xml("<questionnaire><section></questionnaire>") is None
    errors = parser.validator.get_results_by_severity(ValidationSeverity.ERROR)
    assert len(errors) == 1
    assert "Could not parse" in errors[0].message


def test_parse_wrong_root(parser):
    assert parser.parse_xml('<form id="1"/>') is None
    assert "<form>" in parser.validator.results[0].message


def test_parse_missing_file(parser, tmp_path):
    questionnaire, validator = parser.parse_file(tmp_path / "missing.xml")
    assert questionnaire is None
    assert validator.has_errors


def test_parse_file_writes_report(parser, tmp_path):
    report = tmp_path / "reports" / "report.txt"
    parser.parse_file(TEST_DATA / "sample_questionnaire.xml", report_path=report)
    assert report.read_text(encoding="utf-8").startswith("Questionnaire Validation Report")
