# =============================================================================
# lib/sanitizer.py - Form Input Sanitization
# =============================================================================
# Pure functions that clean untrusted form values before they are persisted.
# No I/O and no state: every function returns a new value.
#
# These strip characters that are unsafe in downstream HTML/SQL contexts.
# They do NOT validate; run lib.validators on the result before writing.
#
# Usage:
#   from lib.sanitizer import sanitize_form_data
#   clean = sanitize_form_data({"email": " Ada@Example.com ", "first_name": "<b>Ada</b>"})
# =============================================================================

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Callable

MAX_NAME_LENGTH = 100
MAX_ARRAY_ITEMS = 10
MAX_MESSAGE_LENGTH = 500
MAX_SEARCH_LENGTH = 100

_EMAIL_UNSAFE = re.compile(r"[<>'\"]")
_WHITESPACE = re.compile(r"\s")
_HTML_TAG = re.compile(r"<[^>]*>")
# ASCII letters and digits only, but any Unicode whitespace survives so it can
# be collapsed to a single space below
_NAME_DISALLOWED = re.compile(r"[^A-Za-z0-9_\s'-]")
_WHITESPACE_RUN = re.compile(r"\s+")
_FILTER_SYNTAX = re.compile(r'[,()%*\\":]')


def sanitize_email(email: Any) -> str:
    """
    Lower-case, trim, and strip `< > ' "` and all whitespace.

    Does not check that the result is a well-formed address.
    """
    if not email or not isinstance(email, str):
        return ""

    value = email.lower().strip()
    value = _EMAIL_UNSAFE.sub("", value)
    return _WHITESPACE.sub("", value)


def sanitize_name(name: Any) -> str:
    """
    Clean a person-name style value.

    Removes tag-like substrings, keeps only letters, digits, underscore,
    whitespace, hyphen and apostrophe, collapses whitespace runs to a single
    space and caps the length at MAX_NAME_LENGTH.

    The result is trimmed after truncation so sanitize_name is idempotent.
    """
    if not name or not isinstance(name, str):
        return ""

    value = name.strip()
    value = _HTML_TAG.sub("", value)
    value = _NAME_DISALLOWED.sub("", value)
    value = _WHITESPACE_RUN.sub(" ", value)
    return value[:MAX_NAME_LENGTH].strip()


def sanitize_string_array(values: Any) -> list[str]:
    """Sanitize each item as a name, drop empties, keep at most MAX_ARRAY_ITEMS."""
    if not isinstance(values, (list, tuple)):
        return []

    cleaned = (sanitize_name(item) for item in values)
    return [item for item in cleaned if item][:MAX_ARRAY_ITEMS]


def sanitize_message(message: Any, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """
    Clean a free-text note, such as the personal message on an invitation.

    Tags are removed and the length is capped; punctuation and line breaks
    are kept. Escape the result before placing it in HTML.
    """
    if not message or not isinstance(message, str):
        return ""

    value = _HTML_TAG.sub("", message.strip())
    return value[:max_length].strip()


def sanitize_search_term(term: Any) -> str:
    """
    Reduce a list-filter search term to plain text.

    Strips the characters that carry meaning inside a PostgREST filter
    expression (`,` `(` `)` `%` `*` `\\` `"` `:`), so the term can be
    embedded in an `or=(...ilike...)` clause.
    """
    if not term or not isinstance(term, str):
        return ""

    value = _FILTER_SYNTAX.sub("", term)
    value = _WHITESPACE_RUN.sub(" ", value)
    return value[:MAX_SEARCH_LENGTH].strip()


def _trim_enum_value(value: Any) -> Any:
    # enum-like fields are validated later; only strip surrounding whitespace
    return value.strip() if isinstance(value, str) else value


def _passthrough(value: Any) -> Any:
    return value


def _sanitize_array_field(value: Any) -> list[str]:
    return sanitize_string_array(value) if isinstance(value, (list, tuple)) else []


def _sanitize_other(value: Any) -> Any:
    return sanitize_name(value) if isinstance(value, str) else value


# =============================================================================
# Form dispatch
# =============================================================================

class FormField(str, Enum):
    """
    Field names with a dedicated sanitizer.

    Values are the lower-cased keys as they arrive from snake_case API
    payloads or camelCase browser forms.
    """
    EMAIL = "email"
    FIRST_NAME = "first_name"
    FIRSTNAME = "firstname"
    LAST_NAME = "last_name"
    LASTNAME = "lastname"
    QUALIFICATIONS = "qualifications"
    SPECIALIZATIONS = "specializations"
    ROLE = "role"
    EXPERIENCE_LEVEL = "experience_level"
    EXPERIENCELEVEL = "experiencelevel"
    DATE_OF_BIRTH = "date_of_birth"
    DATEOFBIRTH = "dateofbirth"


FIELD_SANITIZERS: dict[FormField, Callable[[Any], Any]] = {
    FormField.EMAIL: sanitize_email,
    FormField.FIRST_NAME: sanitize_name,
    FormField.FIRSTNAME: sanitize_name,
    FormField.LAST_NAME: sanitize_name,
    FormField.LASTNAME: sanitize_name,
    FormField.QUALIFICATIONS: _sanitize_array_field,
    FormField.SPECIALIZATIONS: _sanitize_array_field,
    FormField.ROLE: _trim_enum_value,
    FormField.EXPERIENCE_LEVEL: _trim_enum_value,
    FormField.EXPERIENCELEVEL: _trim_enum_value,
    FormField.DATE_OF_BIRTH: _passthrough,
    FormField.DATEOFBIRTH: _passthrough,
}

# Fail at import time if a FormField member has no sanitizer
_missing_sanitizers = set(FormField) - set(FIELD_SANITIZERS)
if _missing_sanitizers:
    raise RuntimeError(
        f"No sanitizer registered for: {sorted(f.value for f in _missing_sanitizers)}"
    )


def sanitizer_for(key: str) -> Callable[[Any], Any]:
    """Return the sanitizer registered for a field name (case-insensitive)."""
    try:
        field = FormField(key.lower())
    except ValueError:
        return _sanitize_other
    return FIELD_SANITIZERS[field]


def sanitize_form_data(data: dict[str, Any]) -> dict[str, Any]:
    """
    Sanitize every value of a submitted form.

    The returned dict has exactly the keys of `data`. None values are kept
    as-is; other values go through the sanitizer registered for their field
    name, falling back to name sanitization for unknown string fields.

    Example:
        >>> sanitize_form_data({"Email": " A@B.COM ", "age": 30, "bio": None})
        {'Email': 'a@b.com', 'age': 30, 'bio': None}
    """
    sanitized: dict[str, Any] = {}

    for key, value in data.items():
        if value is None:
            sanitized[key] = value
            continue
        sanitized[key] = sanitizer_for(key)(value)

    return sanitized
