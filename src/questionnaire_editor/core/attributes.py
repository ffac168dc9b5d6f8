"""
Attribute mapping between questionnaire XML elements and node fields.

Each element type has a fixed table of (field, attribute) pairs. The coercion
kind and the default of an entry are taken from the node model, so the parser
and the builder share one notion of "default":

- the parser falls back to the default when an attribute is absent or cannot
  be converted,
- the builder leaves out every attribute whose value equals the default.

That asymmetry keeps documents compact while ``parse(build(tree))`` still
reproduces the tree.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from questionnaire_editor.models.questionnaire import NODE_CLASSES


class AttributeKind(Enum):
    """How a raw attribute string is turned into a field value"""

    TEXT = "text"
    FLAG = "flag"
    INTEGER = "integer"
    OPTIONAL_INTEGER = "optional_integer"


@dataclass(frozen=True)
class AttributeSpec:
    """One row of the mapping table"""

    field: str
    attribute: str
    kind: AttributeKind
    default: Any

    def decode(self, raw: Optional[str]) -> Any:
        """Convert a raw attribute value (None when absent) into a field value"""
        if raw is None:
            return self.default

        if self.kind == AttributeKind.FLAG:
            # A flag that defaults to true only turns off on a literal "false"
            if self.default:
                return raw != "false"
            return raw == "true"

        if self.kind in (AttributeKind.INTEGER, AttributeKind.OPTIONAL_INTEGER):
            try:
                return int(raw.strip())
            except ValueError:
                return self.default

        return raw

    def accepts(self, raw: str) -> bool:
        """Check if a present attribute value converts without falling back"""
        if self.kind in (AttributeKind.INTEGER, AttributeKind.OPTIONAL_INTEGER):
            try:
                int(raw.strip())
            except ValueError:
                return False
        return True

    def encode(self, value: Any) -> Optional[str]:
        """Convert a field value into an attribute string, None to omit it"""
        if value is None or value == self.default:
            return None
        if self.kind == AttributeKind.FLAG:
            return "true" if value else "false"
        if self.kind in (AttributeKind.INTEGER, AttributeKind.OPTIONAL_INTEGER):
            return str(int(value))
        return str(value)


def _kind_for(default: Any) -> AttributeKind:
    if default is None:
        return AttributeKind.OPTIONAL_INTEGER
    if isinstance(default, bool):
        return AttributeKind.FLAG
    if isinstance(default, int):
        return AttributeKind.INTEGER
    return AttributeKind.TEXT


# field name -> attribute name, per element tag. id/order are added to all.
_FIELD_ATTRIBUTES: Dict[str, Tuple[Tuple[str, str], ...]] = {
    "questionnaire": (
        ("title", "title"),
        ("suffix", "suffix"),
        ("next_id", "nextid"),
    ),
    "section": (
        ("title", "title"),
        ("show_in_bar_admin", "showinbaradmin"),
    ),
    "subsection": (
        ("title", "title"),
        ("show_in_bar_admin", "showinbaradmin"),
    ),
    "entity": (
        ("title", "title"),
        ("type", "type"),
        ("min", "min"),
        ("max", "max"),
        ("next_order", "nextorder"),
        ("show_in_bar_admin", "showinbaradmin"),
        ("is_amended", "isamended"),
        ("group_type", "grouptype"),
        ("ncbe_name", "ncbe_name"),
        ("ncbe_value", "ncbe_value"),
        ("ilg_name", "ilg_name"),
        ("ilg_value", "ilg_value"),
    ),
    "conditionset": (("operator", "operator"),),
    "conditional": (("condition", "condition"),),
    "question": (
        ("type", "type"),
        ("format", "format"),
        ("option", "option"),
        ("required", "required"),
        ("trigger_value", "triggervalue"),
        ("comment", "comment"),
        ("maxlength", "maxlength"),
        ("refname", "refname"),
        ("app_type", "app_type"),
        ("app_type_trigger", "app_type_trigger"),
        ("is_amended", "isamended"),
        ("validator_class", "validatorclass"),
        ("validation_message", "validationmessage"),
        ("ncbe_name", "ncbe_name"),
        ("ncbe_currently", "ncbe_currently"),
        ("ilg_name", "ilg_name"),
    ),
    "option": (("value", "value"),),
    "description": (("prefix", "prefix"),),
    "warning": (),
    "note": (("is_check_item", "ischeckitem"),),
    "reference": (
        ("table", "table"),
        ("field", "field"),
    ),
    "includeform": (
        ("form_name", "formname"),
        ("title", "title"),
        ("type", "type"),
        ("multiple_include", "multipleinclude"),
        ("required", "required"),
    ),
    "required-doc": (
        ("title", "title"),
        ("prevent_submit", "preventsubmit"),
    ),
}

# Elements whose character data (preferably CDATA) is the node's ``text``
TEXT_ELEMENTS = frozenset({"description", "warning", "note", "option"})


def _build_table() -> Dict[str, Tuple[AttributeSpec, ...]]:
    table = {}
    for tag, pairs in _FIELD_ATTRIBUTES.items():
        model_fields = NODE_CLASSES[tag].model_fields
        specs = []
        for field_name, attribute in (("id", "id"), ("order", "order")) + pairs:
            default = model_fields[field_name].default
            specs.append(
                AttributeSpec(
                    field=field_name,
                    attribute=attribute,
                    kind=_kind_for(default),
                    default=default,
                )
            )
        table[tag] = tuple(specs)
    return table


ATTRIBUTE_TABLE: Dict[str, Tuple[AttributeSpec, ...]] = _build_table()


def attribute_specs(tag: str) -> Tuple[AttributeSpec, ...]:
    """Get the mapping rows of an element tag (empty for unknown tags)"""
    return ATTRIBUTE_TABLE.get(tag, ())
