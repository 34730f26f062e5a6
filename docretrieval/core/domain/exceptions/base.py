"""Root of the retrieval core's exception hierarchy.

Each error records where it was raised and carries a short code
(``DR_<AREA>_<NNN>``) so a log line can be traced without a traceback.
``to_dict`` gives the JSON shape used by the CLI and structured logs.
"""

import inspect
import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import FrameType
from typing import Any


@dataclass
class ExceptionContext:
    """Source location of a raise statement."""

    class_name: str
    method_name: str
    file_name: str
    line_number: int
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    @classmethod
    def from_frame(cls, frame: FrameType | None) -> "ExceptionContext":
        if frame is None:
            return cls("<unknown>", "<unknown>", "<unknown>", 0)
        owner = frame.f_locals.get("self")
        return cls(
            class_name=type(owner).__name__ if owner is not None else "<module>",
            method_name=frame.f_code.co_name,
            file_name=frame.f_code.co_filename.replace("\\", "/").rsplit("/", 1)[-1],
            line_number=frame.f_lineno,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "class": self.class_name,
            "method": self.method_name,
            "file": self.file_name,
            "line": self.line_number,
            "timestamp": self.timestamp,
        }


class DocRetrievalError(Exception):
    """Base class for every error raised by the retrieval core.

    Wrap third-party failures at the adapter boundary and keep the
    original as ``cause``:

        try:
            client.query_points(...)
        except Exception as e:
            raise StoreUnavailableError("Qdrant query failed", cause=e) from e
    """

    error_code: str = "DR_ERR_001"

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.extra_context = context or {}
        self.location = ExceptionContext.from_frame(self._raise_frame())
        self.stack_trace = (
            "".join(traceback.format_exception(type(cause), cause, cause.__traceback__))
            if cause is not None
            else None
        )

    def _raise_frame(self) -> FrameType | None:
        """First stack frame outside this exception's own constructors."""
        frame = inspect.currentframe()
        while frame is not None and frame.f_locals.get("self") is self:
            frame = frame.f_back
        return frame

    def to_dict(self, include_trace: bool = False) -> dict[str, Any]:
        """JSON-ready description of the error.

        Args:
            include_trace: Add the cause's formatted traceback, if any.
        """
        payload: dict[str, Any] = {
            "error": {
                "type": type(self).__name__,
                "code": self.error_code,
                "message": self.message,
            },
            "location": self.location.to_dict(),
        }
        if self.extra_context:
            payload["context"] = dict(self.extra_context)
        if self.cause is not None:
            payload["cause"] = {"type": type(self.cause).__name__, "message": str(self.cause)}
        if include_trace and self.stack_trace:
            payload["stack_trace"] = [
                line for line in self.stack_trace.splitlines() if line.strip()
            ]
        return payload
