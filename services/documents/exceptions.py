"""
Document System Exceptions

Custom exceptions for template configuration, document processing
and the signing protocol. Routes map these onto HTTP responses.
"""


class DocumentError(Exception):
    """Base exception for all document system errors."""
    status_code = 500


class ConfigurationError(DocumentError):
    """
    Raised when the merge-field configuration is invalid.

    This includes YAML syntax errors, schema validation failures,
    and duplicate keys in the vocabulary file.
    """
    pass


class ValidationError(DocumentError):
    """
    Raised when a single configuration entry fails validation.

    Contains details about what specifically failed.
    """
    status_code = 400

    def __init__(self, message: str, field_key: str = None):
        self.field_key = field_key
        super().__init__(message)


class NotFoundError(DocumentError):
    """Template or contract id unknown, or the entity has no backing file."""
    status_code = 404


class UnauthorizedError(DocumentError):
    """
    Raised when a signing action is not allowed.

    Covers a missing or mismatched token as well as a violated status
    precondition (signing a draft, vendor signing before the client).
    """
    status_code = 403


class AlreadySignedError(UnauthorizedError):
    """Raised when the same party tries to sign a contract a second time."""
    status_code = 409


class UnprocessableInputError(DocumentError):
    """
    Raised for input that cannot be used: an empty signature, a payload
    that is not a readable PDF or PNG, a malformed request field.
    """
    status_code = 400

    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(message)
