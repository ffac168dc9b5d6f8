'''Custom exceptions for parsing questionnaire xml files.'''


class XMLParsingError(Exception):
    """Raised when a questionnaire document cannot be read at all"""


class MissingRootElementError(XMLParsingError):
    """Raised when the document has no <questionnaire> root element"""

    def __init__(self, message: str, root_tag=None):
        self.root_tag = root_tag  # tag of the root element that was found instead
        super().__init__(message)
