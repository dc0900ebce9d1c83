# =============================================================================
# app/routers/notifications.py - Notification Endpoints
# =============================================================================
# POST /notifications/coach-acceptance is called by the athlete's browser
# right after it accepts an invitation, so the coach hears about it.
# =============================================================================

from typing import Any

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser
from core.models.invitation import AcceptanceNotificationRequest
from core.services.invitation_service import InvitationService

router = APIRouter()


@router.post("/coach-acceptance")
def notify_coach_acceptance(
    request: AcceptanceNotificationRequest,
    user: AuthUser = Depends(get_current_user),
) -> dict[str, Any]:
    """
    Email the coach that the caller accepted their invitation.

    Raises:
        403: `athlete_id` is not the caller's athlete profile
        404: Profile or active coach/athlete relationship missing
        500: The email could not be sent
    """
    message_id = InvitationService.notify_coach_of_acceptance(user.id, request)
    return {
        "success": True,
        "message": "Coach notification sent successfully",
        "message_id": message_id,
    }
