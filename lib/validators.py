# =============================================================================
# lib/validators.py - Database Input Validation
# =============================================================================
# Checks run on sanitized values right before they are written to Supabase.
# Every validator returns a ValidationResult instead of raising, so callers
# can decide how to surface the error (HTTP 400, form message, ...).
#
# Usage:
#   from lib.validators import validate_email_for_db
#   result = validate_email_for_db(clean["email"])
#   if not result.is_valid:
#       raise RegistrationValidationError("email", result.error)
# =============================================================================

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel

from core.models.user import ExperienceLevel, Role


class ValidationResult(BaseModel):
    is_valid: bool
    clean: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, clean: str) -> "ValidationResult":
        return cls(is_valid=True, clean=clean)

    @classmethod
    def fail(cls, error: str) -> "ValidationResult":
        return cls(is_valid=False, error=error)


_UUID = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_EMAIL = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

SQL_INJECTION_PATTERNS = [
    # Statement keywords
    re.compile(r"\b(SELECT|INSERT|UPDATE|DELETE|DROP|CREATE|ALTER|EXEC|EXECUTE|UNION|SCRIPT)\b", re.IGNORECASE),
    # Boolean tautologies: OR 1=1, AND '1'='1'
    re.compile(r"\b(OR|AND)\s*['\"]*\s*\d+\s*['\"]*\s*=\s*['\"]*\s*\d+\s*['\"]*\b", re.IGNORECASE),
    re.compile(r"UNION\s+(ALL\s+)?SELECT", re.IGNORECASE),
    # Comments
    re.compile(r"/\*[\s\S]*?\*/"),
    re.compile(r"--[^\r\n]*"),
    re.compile(r"#[^\r\n]*"),
    # String manipulation
    re.compile(r"\b(CONCAT|SUBSTRING|ASCII|CHAR)\s*\(", re.IGNORECASE),
    # Server introspection
    re.compile(r"\b(USER|DATABASE|VERSION)\b|@@", re.IGNORECASE),
]


def contains_sql_injection(value: Any) -> bool:
    """True if `value` matches any known SQL injection pattern."""
    if not value or not isinstance(value, str):
        return False
    return any(pattern.search(value) for pattern in SQL_INJECTION_PATTERNS)


def validate_uuid(value: Any) -> ValidationResult:
    if not value or not isinstance(value, str):
        return ValidationResult.fail("UUID is required")
    if not _UUID.match(value):
        return ValidationResult.fail("Invalid UUID format")
    return ValidationResult.ok(value.lower())


def validate_email_for_db(value: Any) -> ValidationResult:
    """
    Check address shape.

    The address pattern admits no quotes, spaces, comment markers or
    parentheses, so keyword scanning is not applied here; it would reject
    ordinary addresses such as user@example.com.
    """
    if not value or not isinstance(value, str):
        return ValidationResult.fail("Email is required")

    clean = value.lower().strip()
    if not _EMAIL.match(clean) or "--" in clean:
        return ValidationResult.fail("Invalid email format")

    return ValidationResult.ok(clean)


def validate_role(value: Any) -> ValidationResult:
    if not value or not isinstance(value, str):
        return ValidationResult.fail("Role is required")

    clean = value.lower().strip()
    if clean not in {role.value for role in Role}:
        return ValidationResult.fail("Invalid role. Must be coach or athlete")

    return ValidationResult.ok(clean)


def validate_experience_level(value: Any) -> ValidationResult:
    if not value or not isinstance(value, str):
        return ValidationResult.fail("Experience level is required")

    clean = value.lower().strip()
    if clean not in {level.value for level in ExperienceLevel}:
        return ValidationResult.fail("Invalid experience level")

    return ValidationResult.ok(clean)


def validate_string_for_db(value: Any, max_length: int = 255) -> ValidationResult:
    """General free-text check: required, bounded length, no SQL patterns."""
    if not value or not isinstance(value, str):
        return ValidationResult.fail("Input is required")
    if len(value) > max_length:
        return ValidationResult.fail(f"Input too long (max {max_length} characters)")
    if contains_sql_injection(value):
        return ValidationResult.fail("Invalid characters detected")

    return ValidationResult.ok(value.strip())
