import logging
from pathlib import Path
from questionnaire_editor.core.session import FormEditor
from questionnaire_editor.utils.config import load_settings
from questionnaire_editor.utils.debugging import debug_parsing, visualize_tree
from questionnaire_editor.utils.logging import setup_logger
from questionnaire_editor.utils.validation import ValidationLevel


if __name__ == "__main__":
    # Replace with path to your questionnaire file
    xml_path = Path("tests/test_data/sample_questionnaire.xml")
    questionnaire, validator = debug_parsing(xml_path, validation_level=ValidationLevel.LENIENT, logging_level=logging.INFO)
    validator.save_report(Path("logs/sample_questionnaire_report.txt"))

    logger = setup_logger("try_editor")
    editor = FormEditor(questionnaire, settings=load_settings())
    subsection_id = editor.questionnaire.children[0].children[0].id
    editor.add_condition_set(parent_id=subsection_id)
    editor.add_address_set(parent_id=subsection_id)
    for finding in editor.validate():
        logger.warning(finding.message)

    editor.save(Path("logs/sample_questionnaire_edited.xml"))
    visualize_tree(editor.questionnaire, Path("logs/sample_questionnaire.png"))

    print('reached end of code')
