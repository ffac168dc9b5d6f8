import pytest
from questionnaire_editor.core.visibility import (
    evaluate_condition_set,
    partition_condition_set,
    values_match,
    visible_branches,
)
from questionnaire_editor.models.questionnaire import (
    Conditional,
    ConditionSet,
    Description,
    Question,
)


def make_condition_set(operator, conditions, trigger_ids=("q1",)):
    """Provides a conditionset with the given triggers and branch conditions"""
    children = [Question(id=trigger_id, type="radio") for trigger_id in trigger_ids]
    children += [
        Conditional(id=f"c{index}", condition=condition)
        for index, condition in enumerate(conditions, start=1)
    ]
    return ConditionSet(id="cs", operator=operator, children=children)


def test_partition():
    condition_set = make_condition_set("and", ["yes", "else"], ("q1", "q2"))
    condition_set.children.append(Description(id="d", text="Hint"))
    parts = partition_condition_set(condition_set)
    assert [trigger.id for trigger in parts.triggers] == ["q1", "q2"]
    assert [branch.id for branch in parts.branches] == ["c1"]
    assert [branch.id for branch in parts.else_branches] == ["c2"]
    assert [node.id for node in parts.annotations] == ["d"]


@pytest.mark.parametrize(
    "value, condition, expected",
    [
        ("yes", "yes", True),
        ("Yes", "yes", True),
        ("true", "yes", True),
        ("1", "TRUE", True),
        ("no", "false", True),
        ("0", "no", True),
        ("no", "yes", False),
        ("maybe", "yes", False),
        ("", "yes", False),
    ],
)
def test_values_match(value, condition, expected):
    assert values_match(value, condition) is expected


def test_and_operator():
    """Every answered trigger must match the branch condition"""
    condition_set = make_condition_set("and", ["yes"], ("q1", "q2"))
    assert evaluate_condition_set(condition_set, {"q1": "yes", "q2": "no"}) == {"c1": False}
    assert evaluate_condition_set(condition_set, {"q1": "yes", "q2": "yes"}) == {"c1": True}


def test_and_operator_ignores_triggers_without_answer_entry():
    condition_set = make_condition_set("and", ["yes"], ("q1", "q2"))
    assert evaluate_condition_set(condition_set, {"q1": "yes"}) == {"c1": True}


def test_else_fallback():
    """The else branch shows once something is answered and nothing else shows"""
    condition_set = make_condition_set("and", ["yes", "else"])
    assert evaluate_condition_set(condition_set, {"q1": "maybe"}) == {"c1": False, "c2": True}
    assert evaluate_condition_set(condition_set, {"q1": ""}) == {"c1": False, "c2": False}
    assert evaluate_condition_set(condition_set, {"q1": "yes"}) == {"c1": True, "c2": False}


def test_nothing_visible_while_unanswered():
    condition_set = make_condition_set("or", ["yes", "no", "else"])
    assert not any(evaluate_condition_set(condition_set, {}).values())
    assert not any(evaluate_condition_set(condition_set, {"q1": None}).values())
    assert not any(evaluate_condition_set(condition_set, {"q1": "   "}).values())


def test_or_operator():
    condition_set = make_condition_set("or", ["yes"], ("q1", "q2"))
    assert evaluate_condition_set(condition_set, {"q1": "no", "q2": "Yes"}) == {"c1": True}
    assert evaluate_condition_set(condition_set, {"q1": "no", "q2": ""}) == {"c1": False}


@pytest.mark.parametrize("operator", ["smaller", "else", "unknown"])
def test_unknown_operators_behave_like_or(operator):
    condition_set = make_condition_set(operator, ["yes"], ("q1", "q2"))
    assert evaluate_condition_set(condition_set, {"q1": "no", "q2": "yes"}) == {"c1": True}


def test_contain_operator():
    condition_set = make_condition_set("contain", ["felony"])
    assert evaluate_condition_set(condition_set, {"q1": "Convicted of a FELONY"}) == {"c1": True}
    assert evaluate_condition_set(condition_set, {"q1": "misdemeanor"}) == {"c1": False}


@pytest.mark.parametrize(
    "condition, value, expected",
    [
        (";ca;ny;", "ny", True),
        ("ca;ny", "ca", True),
        (";tx", "tx", True),
        (";ca;ny;", "wa", False),
        ("plain", "plain", True),
        (";ca;ny;", "c", False),
    ],
)
def test_switch_operator(condition, value, expected):
    condition_set = make_condition_set("switch", [condition])
    assert evaluate_condition_set(condition_set, {"q1": value}) == {"c1": expected}


def test_visible_branches_in_document_order():
    condition_set = make_condition_set("or", ["no", "yes", "true", "else"])
    visible = visible_branches(condition_set, {"q1": "yes"})
    assert [branch.id for branch in visible] == ["c2", "c3"]


def test_evaluation_is_pure():
    condition_set = make_condition_set("and", ["yes"])
    before = condition_set.model_copy(deep=True)
    answers = {"q1": "yes"}
    evaluate_condition_set(condition_set, answers)
    assert condition_set == before
    assert answers == {"q1": "yes"}
