'''Custom exceptions for structural edits of a questionnaire tree.'''


class EditingError(ValueError):
    """Base class for refused edits. Carries the node the edit was aimed at."""

    def __init__(self, message: str, node_id=None):
        self.node_id = node_id
        super().__init__(message)


class NodeNotFoundError(EditingError):
    """Raised when an edit names a node id that is not in the tree"""


class ContainmentError(EditingError):
    """Raised when a parent type does not accept the child type"""

    def __init__(self, message: str, node_id=None, parent_type=None, child_type=None):
        super().__init__(message, node_id)
        self.parent_type = parent_type
        self.child_type = child_type


class RootNodeError(EditingError):
    """Raised when an edit would detach or duplicate the questionnaire root"""


class InvalidMoveError(EditingError):
    """Raised when a node would be moved into its own subtree"""


class FieldUpdateError(EditingError):
    """Raised when updated field values fail model validation"""

    def __init__(self, message: str, node_id=None, validation_error=None):
        super().__init__(message, node_id)
        self.validation_error = validation_error  # the underlying pydantic ValidationError


class EmptyClipboardError(EditingError):
    """Raised when pasting with nothing copied"""
