from pathlib import Path
from lxml import etree as ET
from questionnaire_editor.utils.debugging import (
    debug_parsing,
    inspect_questionnaire,
    print_xml_structure,
    visualize_tree,
)

TEST_DATA = Path(__file__).parent.parent / "test_data"


def test_debug_parsing_renders_tree(tmp_path, capsys):
    image = tmp_path / "tree.png"
    questionnaire, validator = debug_parsing(TEST_DATA / "sample_questionnaire.xml", image_path=image)

    assert questionnaire is not None
    assert not validator.has_errors
    assert image.stat().st_size > 0
    assert "Total nodes: 19" in capsys.readouterr().out


def test_inspect_questionnaire(capsys):
    questionnaire, _ = debug_parsing(TEST_DATA / "sample_questionnaire.xml")
    structure = inspect_questionnaire(questionnaire)
    assert structure.is_single_owner_tree()
    assert "question: 4" in capsys.readouterr().out


def test_visualize_creates_directories(tmp_path):
    questionnaire, _ = debug_parsing(TEST_DATA / "sample_questionnaire.xml")
    output = visualize_tree(questionnaire, tmp_path / "nested" / "tree.svg", with_labels=False)
    assert output.exists()


def test_print_xml_structure(capsys):
    root = ET.fromstring('<questionnaire id="1"><section id="2">Intro<!-- c --></section></questionnaire>')
    print_xml_structure(root)
    out = capsys.readouterr().out
    assert "Tag: questionnaire" in out
    assert "  Tag: section" in out
    assert "    id: 2" in out
    assert "  Text: Intro" in out
