from enum import Enum


class FindingMessage(Enum):
    """Message templates for findings about questionnaire documents.

    Each value is a template with placeholders like {node_id}; ``format``
    fills them in when the finding is recorded.
    """
    # Reading documents
    MALFORMED_XML = "Could not parse questionnaire XML: {error}"
    MISSING_ROOT = "No questionnaire element found (root element is <{root_tag}>)."
    SYNTHETIC_ID = "<{tag}> element has no id, assigned '{node_id}'."
    IGNORED_ELEMENT = "<{tag}> is not allowed inside <{parent_tag}> and was ignored."
    INVALID_ATTRIBUTE = "Attribute '{attribute}' of <{tag}> has invalid value '{value}', using '{default}'."

    # Data quality
    DUPLICATE_ID = 'Duplicate ID "{node_id}" found {count} times ({node_types})'
    EMPTY_IDS = "{count} node(s) have empty IDs"
    STALE_NEXT_ID = 'ID "{node_id}" >= nextId ({next_id}). nextId should be higher.'
    CONTAINMENT = "<{child_type}> is not allowed inside <{parent_type}> '{parent_id}'."
    SHARED_STRUCTURE = "Node '{node_id}' appears more than once in the tree."
    UNKNOWN_QUESTION_TYPE = "Question '{node_id}' has unknown type '{question_type}'."
    MISSING_OPTIONS = "Question '{node_id}' of type '{question_type}' has no options."
    MISSING_TRIGGER = "Conditionset '{node_id}' has no trigger question."

    # Editing
    REFUSED_EDIT = "Edit refused: {reason}"
    EMPTY_CLIPBOARD = "Nothing to paste, the clipboard is empty."

    def format(self, **values) -> str:
        return self.value.format(**values)
