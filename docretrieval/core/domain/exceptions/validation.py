"""Input validation exceptions."""

from .base import DocRetrievalError


class ValidationError(DocRetrievalError):
    """Caller supplied invalid input."""

    error_code = "DR_VAL_001"


class EmptyQueryError(ValidationError):
    """Query text is empty or whitespace only."""

    error_code = "DR_VAL_002"


class QueryTooLongError(ValidationError):
    """Query text exceeds the configured maximum length."""

    error_code = "DR_VAL_003"


class InvalidScopeError(ValidationError):
    """Scope value is malformed or of an unknown kind."""

    error_code = "DR_VAL_004"


class InvalidSearchOptionsError(ValidationError):
    """Search options are out of range."""

    error_code = "DR_VAL_005"
