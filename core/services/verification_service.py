# =============================================================================
# core/services/verification_service.py - Email Verification Callback
# =============================================================================
# Turns the query string of a verification link into a redirect URL:
#
#   token_hash + type  -> verify_otp -> complete registration -> sign-in page
#   neither            -> the caller's `next` path (allow-listed)
#
# All failures become `error=<kind>&message=<text>` on the sign-in URL.
# Nothing here raises to the route; unexpected errors are logged and
# reported with a generic message.
# =============================================================================

import logging
from dataclasses import dataclass
from urllib.parse import quote, urlencode

from supabase import AuthError

from app.config import settings
from app.exceptions import CirfproException, PendingUserNotFoundError
from core.services.migration_service import PendingUserMigrator
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import error_message, safe_redirect_path

logger = logging.getLogger(__name__)

# Supabase EmailOtpType values
VERIFICATION_TYPES = frozenset({
    "signup",
    "invite",
    "magiclink",
    "recovery",
    "email_change",
    "email",
})

VERIFIED_MESSAGE = "Email verified successfully! You can now sign in with your credentials."
NO_USER_MESSAGE = "Verification successful but user data not found"
INCOMPLETE_MESSAGE = "Email verified but failed to complete registration. Please contact support."
UNEXPECTED_MESSAGE = "An unexpected error occurred during verification"
INVALID_TYPE_MESSAGE = "Unsupported verification link type"


@dataclass(frozen=True)
class VerificationResult:
    success: bool
    message: str
    error: str | None = None
    user_id: str | None = None


class VerificationService:
    """Stateless translator from verification links to redirects."""

    @staticmethod
    def callback_redirect_url(
        token_hash: str | None,
        verification_type: str | None,
        next_path: str | None = None,
    ) -> str:
        """
        Handle a verification callback and return the URL to redirect to.

        Args:
            token_hash: Opaque token from the email link
            verification_type: Supabase OTP type (signup, email, ...)
            next_path: Where to go when the link carries no token

        Returns:
            Absolute redirect URL on the frontend
        """
        if not (token_hash and verification_type):
            destination = safe_redirect_path(
                next_path,
                settings.allowed_redirect_prefixes_list,
                settings.DEFAULT_REDIRECT_PATH,
            )
            if next_path and destination != next_path:
                logger.warning(f"Rejected redirect target: {next_path!r}")
            return f"{settings.APP_URL.rstrip('/')}{destination}"

        logger.info(
            f"Auth callback triggered with token={token_hash[:10]}... type={verification_type}"
        )

        if verification_type not in VERIFICATION_TYPES:
            logger.warning(f"Unsupported verification type: {verification_type!r}")
            return signin_url(error="invalid_verification_type", message=INVALID_TYPE_MESSAGE)

        try:
            result = VerificationService.verify_email(token_hash, verification_type)
        except Exception:
            logger.exception("Unexpected error in auth callback")
            return signin_url(error="unexpected_error", message=UNEXPECTED_MESSAGE)

        if result.success:
            return signin_url(verified="true", message=result.message)
        return signin_url(error=result.error or "verification_failed", message=result.message)

    @staticmethod
    def verify_email(token_hash: str, verification_type: str) -> VerificationResult:
        """
        Verify a token with Supabase Auth and complete the registration.

        The registration is completed for the user id the provider returns,
        never for an id taken from the request. A missing pending row is
        treated as already completed (a database trigger may have done it).

        Raises:
            Exception: Anything other than a provider auth error; the caller
                maps it to a generic message
        """
        auth_client = SupabaseClient.create_auth_client()

        try:
            response = auth_client.auth.verify_otp({
                "token_hash": token_hash,
                "type": verification_type,
            })
        except AuthError as e:
            logger.error(f"Email verification failed: {e}")
            return VerificationResult(
                success=False,
                error="verification_failed",
                message=error_message(e),
            )

        user = response.user if response else None
        if user is None:
            return VerificationResult(
                success=False,
                error="verification_failed",
                message=NO_USER_MESSAGE,
            )

        user_id = str(user.id)
        logger.info(f"Email verified for {user_id}, completing registration")

        try:
            PendingUserMigrator.migrate(user_id)
        except PendingUserNotFoundError:
            logger.info(f"No pending row for {user_id}, registration already completed")
        except (CirfproException, SupabaseClientError) as e:
            logger.error(f"Error completing registration for {user_id}: {e.message}")
            return VerificationResult(
                success=False,
                error="registration_incomplete",
                message=INCOMPLETE_MESSAGE,
                user_id=user_id,
            )
        finally:
            _sign_out(auth_client)

        return VerificationResult(success=True, message=VERIFIED_MESSAGE, user_id=user_id)


def signin_url(**params: str) -> str:
    """Sign-in page URL with query parameters percent-encoded (spaces as %20)."""
    return f"{settings.signin_url}?{urlencode(params, quote_via=quote)}"


def _sign_out(auth_client) -> None:
    # Users must sign in explicitly after verifying
    try:
        auth_client.auth.sign_out()
    except Exception as e:
        logger.warning(f"Sign-out after verification failed: {e}")
