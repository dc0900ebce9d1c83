# =============================================================================
# app/routers/invitations.py - Coach/Athlete Invitation Endpoints
# =============================================================================
# Coach side (caller must have a coach profile):
# - GET    /invitations                    list with filters, paging and stats
# - POST   /invitations/send               create and email an invitation
# - DELETE /invitations/{id}               cancel
# - PATCH  /invitations/{id}/resend        new token + expiry, email again
#
# Athlete side:
# - GET    /invitations/pending            open invitations for the caller
# - GET    /invitations/validate/{token}   public lookup for the invite page
# =============================================================================

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query, status
from fastapi.responses import JSONResponse

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser
from app.exceptions import InvitationNotFoundError
from core.models.invitation import InvitationCreate, InvitationList, InvitationStatus
from core.services.invitation_service import InvitationService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=InvitationList)
def list_invitations(
    user: AuthUser = Depends(get_current_user),
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    limit: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 10,
    status: Annotated[InvitationStatus | None, Query(description="Filter by status")] = None,
    email: Annotated[str | None, Query(max_length=320, description="Address contains")] = None,
    search: Annotated[str | None, Query(max_length=200, description="Address or message contains")] = None,
) -> InvitationList:
    """
    List the caller's sent invitations, newest first.

    Each item carries `is_expired` and `days_until_expiry`; `stats` counts
    every invitation the caller has sent regardless of filters.
    """
    return InvitationService.list_for_coach(
        user.id,
        page=page,
        limit=limit,
        status=status,
        email=email,
        search=search,
    )


@router.post("/send", status_code=status.HTTP_201_CREATED)
def send_invitation(
    request: InvitationCreate,
    user: AuthUser = Depends(get_current_user),
) -> dict[str, Any]:
    """
    Invite an athlete by email.

    Raises:
        400: Invalid email address
        403: Caller is not a coach
        500: Invitation saved but the email could not be sent
    """
    invitation = InvitationService.send(user.id, request)
    return {
        "success": True,
        "message": "Invitation sent successfully",
        "invitation": invitation.model_dump(mode="json", exclude={"invitation_token"}),
    }


@router.get("/pending")
def pending_invitations(user: AuthUser = Depends(get_current_user)) -> dict[str, Any]:
    """Open invitations addressed to the caller's email, with coach details."""
    invitations = InvitationService.pending_for_user(user.id)
    return {
        "success": True,
        "invitations": [i.model_dump(mode="json") for i in invitations],
        "count": len(invitations),
    }


@router.get("/validate/{token}")
def validate_invitation(
    token: Annotated[str, Path(max_length=64, description="Invitation token from the email link")],
):
    """
    Look up an invitation by token. No session required.

    Unknown tokens answer 404 with `valid: false` so the invite page can
    render a single error state.
    """
    try:
        result = InvitationService.validate_token(token)
    except InvitationNotFoundError as e:
        return JSONResponse(
            status_code=e.status_code,
            content={"error": e.message, "code": e.code, "valid": False},
        )
    return result.model_dump(mode="json")


@router.delete("/{invitation_id}")
def cancel_invitation(
    invitation_id: Annotated[str, Path(description="Invitation UUID")],
    user: AuthUser = Depends(get_current_user),
) -> dict[str, Any]:
    """
    Cancel a pending or undeliverable invitation.

    Raises:
        400: Invitation already accepted, declined, expired or cancelled
        403: Caller is not a coach
        404: No such invitation for this coach
    """
    invitation = InvitationService.cancel(user.id, invitation_id)
    return {
        "success": True,
        "message": "Invitation cancelled successfully",
        "invitation": invitation.model_dump(
            mode="json", include={"id", "email", "status", "updated_at"}
        ),
    }


@router.patch("/{invitation_id}/resend")
def resend_invitation(
    invitation_id: Annotated[str, Path(description="Invitation UUID")],
    user: AuthUser = Depends(get_current_user),
) -> dict[str, Any]:
    """
    Send an invitation again with a new link valid for another expiry period.

    Raises:
        400: Invitation accepted, declined or cancelled
        403: Caller is not a coach
        404: No such invitation for this coach
        500: Invitation updated but the email could not be sent
    """
    invitation = InvitationService.resend(user.id, invitation_id)
    return {
        "success": True,
        "message": "Invitation resent successfully",
        "invitation": invitation.model_dump(
            mode="json", include={"id", "email", "status", "expires_at", "sent_at"}
        ),
        "email_sent": True,
    }
