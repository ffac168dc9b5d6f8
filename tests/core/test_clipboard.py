import json
import pytest
from questionnaire_editor.core import factory
from questionnaire_editor.core.clipboard import Clipboard
from questionnaire_editor.core.operations import add_nodes
from questionnaire_editor.core.tree import collect_ids, find_node
from questionnaire_editor.exceptions.editing import ContainmentError, EmptyClipboardError

SUBSECTION_ID = "312345"


@pytest.fixture
def questionnaire():
    """Provides a document with one radio question (ids 4-7) in subsection 3"""
    document = factory.create_empty_questionnaire(suffix="12345")
    document = add_nodes(document, document.id, factory.new_section)
    return add_nodes(
        document, SUBSECTION_ID, lambda allocator: factory.new_question(allocator, "radio")
    )


def test_copy_and_paste(questionnaire):
    clipboard = Clipboard()
    assert clipboard.copy(questionnaire, "412345")

    pasted = clipboard.paste(questionnaire, SUBSECTION_ID)
    children = find_node(pasted, SUBSECTION_ID).children
    assert [child.id for child in children] == ["412345", "812345"]
    assert collect_ids(children[1]) == ["812345", "912345", "1012345", "1112345"]
    assert pasted.next_id == 12
    assert children[1].type == "radio"


def test_paste_after_selected(questionnaire):
    document = add_nodes(questionnaire, SUBSECTION_ID, factory.new_condition_set)
    clipboard = Clipboard()
    clipboard.copy(document, "412345")
    pasted = clipboard.paste(document, SUBSECTION_ID, selected_id="412345")
    ids = [child.id for child in find_node(pasted, SUBSECTION_ID).children]
    assert ids[0] == "412345"
    assert ids[2] == "812345"
    assert len(ids) == 3


def test_clipboard_holds_a_copy(questionnaire):
    clipboard = Clipboard()
    clipboard.copy(questionnaire, "412345")
    first = clipboard.paste(questionnaire, SUBSECTION_ID)
    second = clipboard.paste(first, SUBSECTION_ID)
    assert len(find_node(second, SUBSECTION_ID).children) == 3
    assert clipboard.node.id == "412345"


def test_paste_empty_clipboard_is_noop(questionnaire):
    clipboard = Clipboard()
    assert clipboard.paste(questionnaire, SUBSECTION_ID) is questionnaire
    with pytest.raises(EmptyClipboardError):
        clipboard.paste(questionnaire, SUBSECTION_ID, strict=True)


def test_paste_into_incompatible_target(questionnaire):
    clipboard = Clipboard()
    clipboard.copy(questionnaire, "412345")
    assert not clipboard.can_paste(questionnaire, "212345")
    assert clipboard.can_paste(questionnaire, SUBSECTION_ID)
    assert clipboard.paste(questionnaire, "212345") is questionnaire
    with pytest.raises(ContainmentError):
        clipboard.paste(questionnaire, "212345", strict=True)


def test_copy_unknown_or_root(questionnaire):
    clipboard = Clipboard()
    assert not clipboard.copy(questionnaire, "missing")
    assert not clipboard.copy(questionnaire, questionnaire.id)
    assert clipboard.is_empty


def test_last_copy_wins(questionnaire):
    clipboard = Clipboard()
    clipboard.copy(questionnaire, "412345")
    clipboard.copy(questionnaire, "612345")
    assert clipboard.node.node_type == "option"


def test_persisted_clipboard(questionnaire, tmp_path):
    path = tmp_path / "clipboard.json"
    Clipboard(path).copy(questionnaire, "412345")

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["node"]["node_type"] == "question"
    assert "timestamp" in payload

    restored = Clipboard(path)
    assert restored.node == find_node(questionnaire, "412345")
    assert restored.copied_at is not None

    restored.clear()
    assert not path.exists()


def test_unreadable_clipboard_file(tmp_path):
    path = tmp_path / "clipboard.json"
    path.write_text("{not json", encoding="utf-8")
    assert Clipboard(path).is_empty
