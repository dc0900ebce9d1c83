# =============================================================================
# core/services/registration_service.py - Account Sign-up
# =============================================================================
# Creates the auth user and parks the registrant in pending_users until the
# verification link is followed (see verification_service / migration_service).
#
# Order matters: the auth user is created first so the pending row can be
# keyed by the auth id. If the pending row cannot be written, the auth user
# is deleted again so the email address can be reused.
# =============================================================================

import logging
from typing import Any

from supabase import AuthError

from app.config import settings
from app.exceptions import RegistrationError, RegistrationValidationError
from core.models.user import ExperienceLevel, Role, SignUpRequest
from lib.sanitizer import sanitize_form_data
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import error_message
from lib.validators import (
    validate_email_for_db,
    validate_experience_level,
    validate_role,
)

logger = logging.getLogger(__name__)


class RegistrationService:
    """Sign-up flow: sanitize, validate, create auth user, insert pending row."""

    @staticmethod
    def register(request: SignUpRequest) -> str:
        """
        Register a new coach or athlete.

        Args:
            request: Raw form payload

        Returns:
            The new auth user id

        Raises:
            RegistrationValidationError: Input rejected after sanitization
            RegistrationError: Supabase rejected the sign-up or pending insert
        """
        logger.info("Starting registration")

        form = RegistrationService.clean_form(request)
        pending_row = RegistrationService._build_pending_row(form)

        user_id = RegistrationService._create_auth_user(
            email=pending_row["email"],
            password=request.password,
            role=pending_row["role"],
            first_name=pending_row["first_name"],
            last_name=pending_row["last_name"],
        )
        pending_row["id"] = user_id

        try:
            SupabaseClient.insert_pending_user(pending_row)
        except SupabaseClientError as e:
            logger.error(f"Error creating pending user {user_id}: {e}")
            RegistrationService._discard_auth_user(user_id)
            raise RegistrationError(e.message or "Failed to create user profile")

        logger.info(f"Registration completed for {user_id}, verification email sent")
        return user_id

    @staticmethod
    def clean_form(request: SignUpRequest) -> dict[str, Any]:
        """Sanitize every form field except the password."""
        return sanitize_form_data(request.model_dump(exclude={"password"}))

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    @staticmethod
    def _build_pending_row(form: dict[str, Any]) -> dict[str, Any]:
        email = validate_email_for_db(form.get("email"))
        if not email.is_valid:
            raise RegistrationValidationError("email", email.error or "Invalid email format")

        role = validate_role(form.get("role"))
        if not role.is_valid:
            raise RegistrationValidationError("role", role.error or "Invalid role")

        if not form.get("first_name") or not form.get("last_name"):
            raise RegistrationValidationError("name", "First and last name are required")

        experience_level = None
        if role.clean == Role.ATHLETE.value:
            raw_level = form.get("experience_level") or ExperienceLevel.BEGINNER.value
            level = validate_experience_level(raw_level)
            if not level.is_valid:
                raise RegistrationValidationError(
                    "experience_level", level.error or "Invalid experience level"
                )
            experience_level = level.clean

        date_of_birth = form.get("date_of_birth")

        return {
            "email": email.clean,
            "role": role.clean,
            "first_name": form["first_name"],
            "last_name": form["last_name"],
            "qualifications": form.get("qualifications") or [],
            "specializations": form.get("specializations") or [],
            "date_of_birth": date_of_birth.isoformat() if date_of_birth else None,
            "experience_level": experience_level,
        }

    @staticmethod
    def _create_auth_user(
        email: str,
        password: str,
        role: str,
        first_name: str,
        last_name: str,
    ) -> str:
        auth_client = SupabaseClient.create_auth_client()

        try:
            response = auth_client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {
                    "data": {
                        "role": role,
                        "first_name": first_name,
                        "last_name": last_name,
                    },
                    "email_redirect_to": settings.email_redirect_url,
                },
            })
        except AuthError as e:
            logger.error(f"Auth signup failed: {e}")
            status = getattr(e, "status", None)
            raise RegistrationError(
                error_message(e),
                status_code=status if isinstance(status, int) and 400 <= status < 500 else 500,
            )

        if response is None or response.user is None:
            raise RegistrationError("Failed to create user account")

        return str(response.user.id)

    @staticmethod
    def _discard_auth_user(user_id: str) -> None:
        try:
            SupabaseClient.delete_auth_user(user_id)
        except SupabaseClientError as e:
            # The sign-up error is what the caller needs to see
            logger.error(f"Could not remove orphaned auth user {user_id}: {e}")
