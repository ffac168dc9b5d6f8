import re
import uuid
from logging import getLogger
from pathlib import Path
from typing import Union

from lxml import etree as ET

from questionnaire_editor.core.attributes import TEXT_ELEMENTS, attribute_specs
from questionnaire_editor.core.tree import group_children_by_tag
from questionnaire_editor.models.questionnaire import FormNode, Questionnaire

logger = getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

# Characters XML 1.0 cannot carry, not even escaped
_NON_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


class QuestionnaireXmlBuilder:
    """Serializes a questionnaire tree into the XML dialect.

    Attributes equal to their parse default are left out. Text of description,
    warning, note and option elements goes into CDATA so embedded markup
    survives untouched. Children are written grouped by tag, groups ordered by
    first occurrence.
    """

    def __init__(self, indent: str = "    "):
        self.indent = indent
        # stands in for a CDATA section break until the tree is serialized
        self._cdata_break = f"\ue000{uuid.uuid4().hex}\ue000"

    def build_xml(self, questionnaire: Questionnaire) -> str:
        """Build the XML text of a questionnaire. Never fails."""
        root = self._build_element(questionnaire)
        ET.indent(root, space=self.indent)
        body = ET.tostring(root, encoding="unicode").replace(self._cdata_break, "]]><![CDATA[")
        return f"{XML_DECLARATION}\n{body}\n"

    def write_file(self, questionnaire: Questionnaire, filepath: Union[str, Path]) -> Path:
        """Write the XML text of a questionnaire to a UTF-8 file"""
        filepath = Path(filepath)
        filepath.write_text(self.build_xml(questionnaire), encoding="utf-8")
        logger.info(f"Wrote questionnaire '{questionnaire.title}' to {filepath}")
        return filepath

    def _build_element(self, node: FormNode) -> ET._Element:
        element = ET.Element(node.node_type)

        for row in attribute_specs(node.node_type):
            value = row.encode(getattr(node, row.field))
            if value is not None:
                element.set(row.attribute, self._xml_safe(value, node))

        if node.node_type in TEXT_ELEMENTS and node.text:
            element.text = self._text_content(node)

        for child in group_children_by_tag(getattr(node, "children", [])):
            element.append(self._build_element(child))

        return element

    def _text_content(self, node: FormNode):
        text = self._xml_safe(node.text, node)
        if "]]>" in text:
            # a CDATA section cannot contain its own terminator, split it over two
            logger.debug(f"Text of {node.node_type} '{node.id}' split over CDATA sections")
            text = text.replace("]]>", f"]]{self._cdata_break}>")
        return ET.CDATA(text)

    @staticmethod
    def _xml_safe(value: str, node: FormNode) -> str:
        cleaned = _NON_XML_CHARS.sub("", value)
        if cleaned != value:
            logger.warning(
                f"Dropped characters XML cannot represent from {node.node_type} '{node.id}'"
            )
        return cleaned


def build_xml(questionnaire: Questionnaire, indent: str = "    ") -> str:
    """Serialize a questionnaire into XML text."""
    return QuestionnaireXmlBuilder(indent=indent).build_xml(questionnaire)
