"""Turn exceptions into JSON payloads, log lines and CLI exit codes."""

import json
import logging
import traceback
from typing import Any

from ..core.domain.exceptions import (
    ConfigurationError,
    DocRetrievalError,
    StoreUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_VALIDATION = 2
EXIT_CONFIGURATION = 3
EXIT_STORE_UNAVAILABLE = 4

FOREIGN_ERROR_CODE = "PYTHON_ERR"

# Checked in order; first match wins
_EXIT_CODES: tuple[tuple[type[Exception], int], ...] = (
    (ValidationError, EXIT_VALIDATION),
    (ConfigurationError, EXIT_CONFIGURATION),
    (StoreUnavailableError, EXIT_STORE_UNAVAILABLE),
    (ValueError, EXIT_VALIDATION),
)


def _foreign_payload(exc: BaseException, include_trace: bool) -> dict[str, Any]:
    frames = traceback.extract_tb(exc.__traceback__)
    where = frames[-1] if frames else None
    payload: dict[str, Any] = {
        "error": {"type": type(exc).__name__, "code": FOREIGN_ERROR_CODE, "message": str(exc)},
        "location": {
            "class": "<unknown>",
            "method": where.name if where else "<unknown>",
            "file": where.filename.replace("\\", "/").rsplit("/", 1)[-1] if where else "<unknown>",
            "line": where.lineno if where else 0,
        },
    }
    if include_trace:
        lines = traceback.format_exception(type(exc), exc, exc.__traceback__)
        payload["stack_trace"] = [line.strip() for line in lines if line.strip()]
    return payload


def format_exception_json(
    exc: Exception,
    include_trace: bool = False,
    extra_context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Describe an exception as a JSON-ready dict.

    Package errors use their own ``to_dict``; anything else is reported
    under the ``PYTHON_ERR`` code with the innermost traceback frame as
    its location. ``extra_context`` is merged into ``context``.
    """
    if isinstance(exc, DocRetrievalError):
        payload = exc.to_dict(include_trace=include_trace)
    else:
        payload = _foreign_payload(exc, include_trace)

    if extra_context:
        payload["context"] = {**payload.get("context", {}), **extra_context}
    return payload


def log_exception(
    exc: Exception,
    log: logging.Logger | None = None,
    level: int = logging.ERROR,
    extra_context: dict[str, Any] | None = None,
) -> None:
    payload = format_exception_json(exc, include_trace=True, extra_context=extra_context)
    (log or logger).log(level, json.dumps(payload, indent=2, default=str))


def get_error_code(exc: Exception) -> str:
    return exc.error_code if isinstance(exc, DocRetrievalError) else FOREIGN_ERROR_CODE


def get_exit_code(exc: Exception) -> int:
    """Process exit status for an error that ends a CLI command."""
    for exc_type, code in _EXIT_CODES:
        if isinstance(exc, exc_type):
            return code
    return EXIT_FAILURE
