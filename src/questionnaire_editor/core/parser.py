import re
from itertools import count
from logging import getLogger
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from lxml import etree as ET

from questionnaire_editor.business_rules.containment import (
    allowed_children,
    is_container,
)
from questionnaire_editor.core.attributes import TEXT_ELEMENTS, attribute_specs
from questionnaire_editor.exceptions.parsing import (
    MissingRootElementError,
    XMLParsingError,
)
from questionnaire_editor.models.questionnaire import (
    NODE_CLASSES,
    FormNode,
    Questionnaire,
)
from questionnaire_editor.utils.validation import (
    ValidationCollector,
    ValidationLevel,
    ValidationSeverity,
)
from questionnaire_editor.utils.validation_messages import FindingMessage

logger = getLogger(__name__)

_CDATA_BLOCK = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)

IdFactory = Callable[[], str]


def counter_id_factory(prefix: str = "node_") -> IdFactory:
    """Create an id source yielding ``<prefix>1``, ``<prefix>2``, ...

    A fresh source is created for every parse call, so parsing the same text
    twice assigns the same synthetic ids.
    """
    counter = count(1)
    return lambda: f"{prefix}{next(counter)}"


class QuestionnaireXmlParser:
    """Parser for converting questionnaire XML documents into the node model.

    Parsing is lenient: attributes that are missing or malformed fall back to
    their defaults, elements without an id get a synthetic one and elements a
    parent does not accept are skipped. Each of those is recorded as a finding.
    The only failure is a document that is not XML at all or whose root is not
    <questionnaire>; then ``parse_xml`` returns None.
    """

    def __init__(
        self,
        validation_level: ValidationLevel = ValidationLevel.LENIENT,
        synthetic_id_prefix: str = "node_",
    ):
        self.validator = ValidationCollector(validation_level)
        self.synthetic_id_prefix = synthetic_id_prefix
        # keep CDATA sections so label markup can be told apart from plain text
        self._xml_parser = ET.XMLParser(
            strip_cdata=False, resolve_entities=False, no_network=True
        )

    def parse_file(
        self, filepath: Path, report_path: Optional[Path] = None
    ) -> Tuple[Optional[Questionnaire], ValidationCollector]:
        """Parse a questionnaire XML file.

        Args:
            filepath: Path to the XML file
            report_path: Where to write the findings report, if wanted

        Returns:
            Tuple of (Questionnaire or None, ValidationCollector)
        """
        try:
            data = Path(filepath).read_bytes()
        except OSError as e:
            self.validator.add_result(
                severity=ValidationSeverity.ERROR,
                message=f"Failed to read questionnaire file {filepath}: {e}",
                node_type="questionnaire",
            )
            questionnaire = None
        else:
            logger.info(f"Parsing questionnaire file: {filepath}")
            questionnaire = self.parse_xml(data)

        if report_path is not None:
            self.validator.save_report(report_path)
        return questionnaire, self.validator

    def parse_xml(
        self, xml_text: Union[str, bytes], id_factory: Optional[IdFactory] = None
    ) -> Optional[Questionnaire]:
        """Parse questionnaire XML text.

        Args:
            xml_text: The document, as text or raw bytes
            id_factory: Source of ids for elements without one. Defaults to a
                fresh counter per call.

        Returns:
            The questionnaire, or None if the document could not be parsed
        """
        next_id = id_factory or counter_id_factory(self.synthetic_id_prefix)
        try:
            root = self._read_root(xml_text)
        except XMLParsingError as e:
            self.validator.add_result(
                severity=ValidationSeverity.ERROR,
                message=str(e),
                node_type="questionnaire",
            )
            return None

        questionnaire = self._parse_element(root, next_id)
        logger.debug(
            f"Parsed questionnaire '{questionnaire.title}' "
            f"with {len(questionnaire.children)} section(s)"
        )
        return questionnaire

    def _read_root(self, xml_text: Union[str, bytes]) -> ET._Element:
        """Read the document and return its <questionnaire> root element"""
        data = xml_text.encode("utf-8") if isinstance(xml_text, str) else xml_text
        try:
            root = ET.fromstring(data, self._xml_parser)
        except ET.XMLSyntaxError as e:
            raise XMLParsingError(FindingMessage.MALFORMED_XML.format(error=e)) from e

        if root.tag != "questionnaire":
            raise MissingRootElementError(
                FindingMessage.MISSING_ROOT.format(root_tag=root.tag),
                root_tag=root.tag,
            )
        return root

    def _parse_element(self, element: ET._Element, next_id: IdFactory) -> FormNode:
        """Create the node for an element, recursing into its children"""
        tag = element.tag
        values = self._decode_attributes(element)

        if not values["id"]:
            values["id"] = next_id()
            self.validator.add_result(
                severity=ValidationSeverity.WARNING,
                message=FindingMessage.SYNTHETIC_ID.format(tag=tag, node_id=values["id"]),
                node_id=values["id"],
                node_type=tag,
                field_name="id",
            )

        if tag in TEXT_ELEMENTS:
            values["text"] = self._extract_text(element)

        if is_container(tag):
            values["children"] = self._parse_children(element, next_id)

        return NODE_CLASSES[tag](**values)

    def _parse_children(
        self, element: ET._Element, next_id: IdFactory
    ) -> List[FormNode]:
        """Parse the child elements a parent accepts, in document order"""
        accepted = allowed_children(element.tag)
        children = []
        for child in element:
            if not isinstance(child.tag, str):
                continue  # comments and processing instructions
            if child.tag not in accepted:
                self.validator.add_result(
                    severity=ValidationSeverity.WARNING,
                    message=FindingMessage.IGNORED_ELEMENT.format(
                        tag=child.tag, parent_tag=element.tag
                    ),
                    node_id=element.get("id"),
                    node_type=element.tag,
                )
                continue
            children.append(self._parse_element(child, next_id))
        return children

    def _decode_attributes(self, element: ET._Element) -> Dict[str, object]:
        """Map the attributes of an element onto node fields"""
        values = {}
        for row in attribute_specs(element.tag):
            raw = element.get(row.attribute)
            if raw is not None and not row.accepts(raw):
                self.validator.add_result(
                    severity=ValidationSeverity.WARNING,
                    message=FindingMessage.INVALID_ATTRIBUTE.format(
                        attribute=row.attribute,
                        tag=element.tag,
                        value=raw,
                        default=row.default,
                    ),
                    node_id=element.get("id"),
                    node_type=element.tag,
                    field_name=row.field,
                )
            values[row.field] = row.decode(raw)
        return values

    def _extract_text(self, element: ET._Element) -> str:
        """Get the text content of a text-bearing element.

        CDATA content wins over plain text and is kept verbatim; plain text is
        trimmed.
        """
        markup = ET.tostring(element, encoding="unicode", with_tail=False)
        blocks = _CDATA_BLOCK.findall(markup)
        if blocks:
            return "".join(blocks)
        return "".join(element.xpath("text()")).strip()


def parse_xml(
    xml_text: Union[str, bytes], id_factory: Optional[IdFactory] = None
) -> Optional[Questionnaire]:
    """Parse questionnaire XML text, returning None if it cannot be read."""
    return QuestionnaireXmlParser().parse_xml(xml_text, id_factory=id_factory)
