import pytest
from pydantic import ValidationError
from questionnaire_editor.models.questionnaire import (
    NODE_CLASSES,
    ConditionSet,
    Entity,
    IncludeForm,
    Question,
    Questionnaire,
    RequiredDocument,
    Section,
    SubSection,
    ValidatorClass,
    node_adapter,
)


@pytest.fixture
def questionnaire_payload():
    """Provides a nested questionnaire payload as plain data"""
    return {
        "node_type": "questionnaire",
        "id": "112345",
        "suffix": "12345",
        "next_id": 6,
        "children": [
            {
                "node_type": "section",
                "id": "212345",
                "children": [
                    {
                        "node_type": "subsection",
                        "id": "312345",
                        "children": [
                            {"node_type": "question", "id": "412345", "type": "date"},
                            {"node_type": "warning", "id": "512345", "text": "Careful"},
                        ],
                    }
                ],
            }
        ],
    }


def test_defaults_of_absent_fields():
    """Test that absent fields take the documented defaults"""
    assert Questionnaire().title == "Untitled Form"
    assert Questionnaire().next_id == 1
    assert Question().type == "char"
    assert Question().required is False
    assert Entity().type == "single"
    assert Entity().next_order == 1
    assert Entity().show_in_bar_admin is True
    assert ConditionSet().operator == "and"
    assert IncludeForm().type == "online"
    assert RequiredDocument().prevent_submit is True
    assert SubSection().show_in_bar_admin is True


def test_payload_validates_into_variants(questionnaire_payload):
    """Test that nested payloads become the right node classes by node_type"""
    questionnaire = Questionnaire.model_validate(questionnaire_payload)

    section = questionnaire.children[0]
    assert isinstance(section, Section)
    subsection = section.children[0]
    assert [child.node_type for child in subsection.children] == ["question", "warning"]
    assert subsection.children[0].type == "date"
    assert subsection.children[1].text == "Careful"


def test_node_adapter_picks_variant():
    node = node_adapter.validate_python(
        {"node_type": "required-doc", "id": "7", "title": "Transcript"}
    )
    assert isinstance(node, RequiredDocument)
    assert node.title == "Transcript"


def test_node_adapter_rejects_unknown_node_type():
    with pytest.raises(ValidationError):
        node_adapter.validate_python({"node_type": "paragraph", "id": "1"})


def test_content_lists_reject_foreign_variants():
    """A section holds subsections only"""
    with pytest.raises(ValidationError):
        Section.model_validate(
            {"node_type": "section", "children": [{"node_type": "question"}]}
        )


def test_node_classes_cover_every_tag():
    for tag, model in NODE_CLASSES.items():
        assert model().node_type == tag


def test_validator_class_is_free_text():
    """Known validator names are listed but any string is accepted"""
    question = Question(validator_class=ValidatorClass.EMAIL.value)
    assert question.validator_class == "ilg.common.validators.EmailValidator"
    assert Question(validator_class="custom.Validator").validator_class == "custom.Validator"
