# =============================================================================
# app/auth/routes.py - Account Lifecycle Routes
# =============================================================================
# API endpoints for the sign-up -> verify -> activate flow:
# - POST /register       create auth user + pending registration
# - GET  /callback       email verification link target (302 redirect)
# - POST /move-pending   manual/retry migration of the caller's pending row
# - GET  /me             current account
#
# Handlers are plain `def` because the Supabase client is synchronous;
# FastAPI runs them in its threadpool.
# =============================================================================

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser
from core.models.user import CoachProfile, Role, SignUpRequest, SignUpResponse, User, UserResponse
from core.services.migration_service import PendingUserMigrator
from core.services.registration_service import RegistrationService
from core.services.verification_service import VerificationService
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

router = APIRouter()

REGISTERED_MESSAGE = "Registration successful. Check your email to verify your account."


@router.post(
    "/register",
    response_model=SignUpResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(request: SignUpRequest) -> SignUpResponse:
    """
    Register a coach or athlete.

    Sends the Supabase verification email; the account becomes active when
    the link in it is followed.

    Raises:
        400: Invalid email, role or experience level
        500: Supabase rejected the sign-up
    """
    user_id = RegistrationService.register(request)
    return SignUpResponse(user_id=user_id, message=REGISTERED_MESSAGE)


@router.get("/callback", response_class=RedirectResponse, status_code=status.HTTP_302_FOUND)
def verification_callback(
    token_hash: Optional[str] = Query(default=None),
    type: Optional[str] = Query(default=None),
    next: Optional[str] = Query(default=None),
) -> RedirectResponse:
    """
    Target of the email verification link.

    Always answers with a 302: to the sign-in page with `verified=true` or
    `error=<kind>` and a message, or to `next` when no token is present.
    """
    url = VerificationService.callback_redirect_url(token_hash, type, next)
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


@router.post("/move-pending")
def move_pending(user: AuthUser = Depends(get_current_user)) -> dict[str, Any]:
    """
    Migrate the caller's pending registration into an active account.

    Only ever migrates the authenticated caller.

    Returns:
        {"success": true} when every step succeeded, or
        {"success": true, "partial": true, "steps": [...]} when the account
        was created but the pending row could not be removed

    Raises:
        401: Not authenticated
        404: No pending user found
        500: users or athlete_profiles insert rejected
    """
    result = PendingUserMigrator.migrate(user.id)

    if result.complete:
        return {"success": True}

    return {
        "success": True,
        "partial": True,
        "steps": [step.model_dump(mode="json") for step in result.steps],
    }


@router.get("/me", response_model=UserResponse)
def get_current_user_info(user: AuthUser = Depends(get_current_user)) -> UserResponse:
    """
    Get the current authenticated user's account.

    Falls back to the token's claims when the users row does not exist yet
    (verification not completed).
    """
    try:
        row = SupabaseClient.fetch_user(user.id)
    except SupabaseClientError as e:
        logger.warning(f"Could not fetch user {user.id}: {e}")
        row = None

    if row:
        account = User.model_validate(row)
        response = UserResponse(**account.model_dump())
        if account.role == Role.COACH:
            response.coach_profile = _coach_profile(user.id)
        return response

    try:
        pending = SupabaseClient.fetch_pending_user(user.id) is not None
    except SupabaseClientError as e:
        logger.warning(f"Could not check pending registration for {user.id}: {e}")
        pending = False

    return UserResponse(id=user.id, email=user.email, pending=pending)


def _coach_profile(user_id: str) -> Optional[CoachProfile]:
    try:
        row = SupabaseClient.fetch_coach_profile(user_id)
    except SupabaseClientError as e:
        logger.warning(f"Could not fetch coach profile for {user_id}: {e}")
        return None
    return CoachProfile.model_validate(row) if row else None
