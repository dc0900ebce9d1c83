# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

import posixpath
from typing import Any
from urllib.parse import unquote, urlsplit
from uuid import UUID


# =============================================================================
# Identifier Utilities
# =============================================================================

def normalize_id(value: str | UUID) -> str:
    """
    Normalize a row identifier to string format.

    Supabase auth ids arrive as UUID objects from the client library and as
    strings from JSON, so queries always use the string form.

    Example:
        user_id = normalize_id(uuid_obj)  # "550e8400-..."
        user_id = normalize_id("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


def error_message(exc: BaseException) -> str:
    """
    Best human-readable message for an upstream error.

    PostgREST and Supabase Auth errors carry a `.message` attribute; fall back
    to str() for everything else.
    """
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or exc.__class__.__name__


# =============================================================================
# Redirect Utilities
# =============================================================================

def safe_redirect_path(
    candidate: str | None,
    allowed_prefixes: list[str],
    default: str,
) -> str:
    """
    Return `candidate` if it is a relative, allow-listed path, else `default`.

    Rejects absolute URLs, protocol-relative paths ("//evil.com"), backslash
    tricks ("/\\evil.com") and any path outside `allowed_prefixes`. Dot
    segments, including percent-encoded ones, are resolved before the prefix
    check, and the resolved path is what gets returned.

    Example:
        safe_redirect_path("/coach/abc/dashboard", ["/coach"], "/dashboard")
        # "/coach/abc/dashboard"
        safe_redirect_path("https://evil.com", ["/coach"], "/dashboard")
        # "/dashboard"
    """
    if not candidate or not candidate.startswith("/"):
        return default
    if candidate.startswith("//") or "\\" in candidate:
        return default
    if any(ord(ch) < 32 for ch in candidate):
        return default

    parts = urlsplit(candidate)
    if parts.scheme or parts.netloc:
        return default

    path = _resolve_dot_segments(parts.path)
    # Browsers also treat %2e as a dot, so check the decoded form too
    decoded = _resolve_dot_segments(unquote(parts.path))
    if path.startswith("//") or decoded.startswith("//"):
        return default

    target = path
    if parts.query:
        target += f"?{parts.query}"
    if parts.fragment:
        target += f"#{parts.fragment}"

    for prefix in allowed_prefixes:
        prefix = prefix.rstrip("/") or "/"
        if prefix == "/":
            return target
        if all(p == prefix or p.startswith(prefix + "/") for p in (path, decoded)):
            return target

    return default


def _resolve_dot_segments(path: str) -> str:
    """Collapse `.` and `..` segments, keeping a trailing slash."""
    resolved = posixpath.normpath(path)
    if path.endswith("/") and not resolved.endswith("/"):
        resolved += "/"
    return resolved


# =============================================================================
# Base Error Class
# =============================================================================

class ApplicationError(Exception):
    """
    Base error class for library-level errors.

    Attributes:
        code: Error code for categorization
        message: Human-readable error message
        suggestion: Actionable suggestion for fixing the error
        details: Additional context for debugging

    Example:
        class MyServiceError(ApplicationError):
            def __init__(self, message: str, **kwargs):
                super().__init__(message, code="MY_SERVICE_ERROR", **kwargs)
    """

    def __init__(
        self,
        message: str,
        code: str = "APPLICATION_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result
