"""
Visibility of conditional branches.

A conditionset holds trigger questions and conditional branches. Given the
live answers of the trigger questions, the conditionset's operator decides
which branches are shown:

- and: every trigger present in the answers matches the branch condition
- or: at least one trigger matches (also used for unknown operators)
- contain: a trigger answer contains the condition, ignoring case
- switch: a trigger answer is one of the ``;v1;v2;`` values of the condition

A trigger answer matches a condition when both are equal, equal ignoring
case, or read as the same yes/no token. Nothing is shown while no trigger has
been answered; an ``else`` branch is shown once something is answered and no
other branch is.

Evaluation is a pure function of the conditionset and the answers.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from questionnaire_editor.models.questionnaire import (
    ConditionOperator,
    Conditional,
    ConditionSet,
    FormNode,
    Question,
)

ELSE_CONDITION = "else"

_TRUE_TOKENS = frozenset({"yes", "true", "1"})
_FALSE_TOKENS = frozenset({"no", "false", "0"})


@dataclass
class ConditionSetParts:
    """A conditionset's children split by role"""

    triggers: List[Question] = field(default_factory=list)
    branches: List[Conditional] = field(default_factory=list)
    else_branches: List[Conditional] = field(default_factory=list)
    annotations: List[FormNode] = field(default_factory=list)


def partition_condition_set(condition_set: ConditionSet) -> ConditionSetParts:
    parts = ConditionSetParts()
    for child in condition_set.children:
        if child.node_type == "question":
            parts.triggers.append(child)
        elif child.node_type == "conditional":
            if child.condition == ELSE_CONDITION:
                parts.else_branches.append(child)
            else:
                parts.branches.append(child)
        else:
            parts.annotations.append(child)
    return parts


def _boolean_token(value: str) -> Optional[bool]:
    token = value.strip().lower()
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    return None


def values_match(value: str, condition: str) -> bool:
    """Check a trigger answer against a branch condition"""
    if value == condition or value.lower() == condition.lower():
        return True
    token = _boolean_token(value)
    return token is not None and token == _boolean_token(condition)


def _switch_match(value: str, condition: str) -> bool:
    # ";a;b;", "a;b" and ";a" all list the same values
    options = [option for option in condition.split(";") if option]
    return value in options or value == condition


def _contain_match(value: str, condition: str) -> bool:
    return condition.lower() in value.lower()


def _answer_of(answers: Mapping[str, object], question_id: str) -> str:
    value = answers.get(question_id)
    return "" if value is None else str(value)


def _is_answered(value: str) -> bool:
    return bool(value.strip())


def _branch_visible(
    operator: str, condition: str, trigger_answers: List[str]
) -> bool:
    if operator == ConditionOperator.AND.value:
        return all(values_match(value, condition) for value in trigger_answers)

    matcher: Callable[[str, str], bool]
    if operator == ConditionOperator.CONTAIN.value:
        matcher = _contain_match
    elif operator == ConditionOperator.SWITCH.value:
        matcher = _switch_match
    else:
        matcher = values_match
    return any(
        _is_answered(value) and matcher(value, condition) for value in trigger_answers
    )


def evaluate_condition_set(
    condition_set: ConditionSet, answers: Mapping[str, object]
) -> Dict[str, bool]:
    """Decide which conditional branches of a conditionset are visible.

    Args:
        condition_set: The conditionset to evaluate
        answers: Current answers, keyed by question id. Missing ids and None
            count as unanswered.

    Returns:
        Mapping of conditional id to visibility, else branches included
    """
    parts = partition_condition_set(condition_set)

    # and-semantics only look at triggers present in the answers
    trigger_answers = [
        _answer_of(answers, trigger.id)
        for trigger in parts.triggers
        if trigger.id in answers
    ]
    anything_answered = any(_is_answered(value) for value in trigger_answers)

    visibility = {}
    for branch in parts.branches:
        visibility[branch.id] = anything_answered and _branch_visible(
            condition_set.operator, branch.condition, trigger_answers
        )

    show_else = anything_answered and not any(visibility.values())
    for branch in parts.else_branches:
        visibility[branch.id] = show_else
    return visibility


def visible_branches(
    condition_set: ConditionSet, answers: Mapping[str, object]
) -> List[Conditional]:
    """Get the visible conditional branches, in document order"""
    visibility = evaluate_condition_set(condition_set, answers)
    return [
        child
        for child in condition_set.children
        if child.node_type == "conditional" and visibility.get(child.id, False)
    ]
