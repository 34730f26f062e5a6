"""Cross-cutting helpers: error formatting and rate limiting."""

from .exception_handler import format_exception_json, get_error_code, get_exit_code, log_exception
from .rate_limiter import RateLimiter

__all__ = [
    "RateLimiter",
    "format_exception_json",
    "get_error_code",
    "get_exit_code",
    "log_exception",
]
