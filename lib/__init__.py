# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Typed Supabase wrapper for table and auth operations
# - sanitizer.py: Pure functions that clean untrusted form input
# - validators.py: Checks run on sanitized values before database writes
# - utils.py: Shared utilities (errors, ids, safe redirects)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.sanitizer import (
    FormField,
    sanitize_email,
    sanitize_form_data,
    sanitize_message,
    sanitize_name,
    sanitize_search_term,
    sanitize_string_array,
)
from lib.validators import (
    ValidationResult,
    contains_sql_injection,
    validate_email_for_db,
    validate_experience_level,
    validate_role,
    validate_string_for_db,
    validate_uuid,
)
from lib.utils import ApplicationError, normalize_id, safe_redirect_path

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Sanitizer
    "FormField",
    "sanitize_email",
    "sanitize_form_data",
    "sanitize_message",
    "sanitize_name",
    "sanitize_search_term",
    "sanitize_string_array",
    # Validators
    "ValidationResult",
    "contains_sql_injection",
    "validate_email_for_db",
    "validate_experience_level",
    "validate_role",
    "validate_string_for_db",
    "validate_uuid",
    # Utils
    "ApplicationError",
    "normalize_id",
    "safe_redirect_path",
]
