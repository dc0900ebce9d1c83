# =============================================================================
# core/services/invitation_service.py - Coach/Athlete Invitations
# =============================================================================
# Coaches invite athletes by email; the email links to the frontend invite
# page, which looks the invitation up by token. Accepting an invitation (and
# creating the coach_athlete_relationships row) happens in the frontend; this
# service then emails the coach about it.
#
# An invitation email that cannot be delivered leaves the row in
# `email_failed` so the coach can resend it.
# =============================================================================

import logging
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

from app.config import settings
from app.exceptions import (
    DatabaseError,
    EmailDeliveryError,
    ForbiddenError,
    InputValidationError,
    InvitationNotFoundError,
    InvitationStatusError,
    ResourceNotFoundError,
)
from core.models.invitation import (
    CANCELLABLE_STATUSES,
    RESENDABLE_STATUSES,
    AcceptanceNotificationRequest,
    CoachSummary,
    Invitation,
    InvitationCreate,
    InvitationList,
    InvitationListItem,
    InvitationStats,
    InvitationStatus,
    InvitationValidation,
    Pagination,
    PendingInvitation,
)
from core.models.user import AthleteProfile, CoachProfile, User
from core.services.email_service import EmailService
from lib.sanitizer import sanitize_email, sanitize_message, sanitize_search_term
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.validators import validate_email_for_db, validate_uuid

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _full_name(user: User) -> str:
    return " ".join(part for part in (user.first_name, user.last_name) if part)


class InvitationService:
    """Invitation lifecycle for coaches, plus the lookups athletes need."""

    # -------------------------------------------------------------------------
    # Coach actions
    # -------------------------------------------------------------------------

    @staticmethod
    def send(coach_id: str, request: InvitationCreate) -> Invitation:
        """
        Create an invitation and email it to the athlete.

        Raises:
            ForbiddenError: Caller has no coach profile or users row
            InputValidationError: Email is malformed or is the coach's own
            EmailDeliveryError: Row saved (as email_failed) but not delivered
        """
        coach, profile = InvitationService._require_coach(coach_id)

        email = validate_email_for_db(sanitize_email(request.email))
        if not email.is_valid:
            raise InputValidationError("email", email.error or "Invalid email format")
        if coach.email and email.clean == coach.email.lower():
            raise InputValidationError("email", "You cannot invite yourself")

        now = _now()
        row = {
            "coach_id": coach_id,
            "email": email.clean,
            "invitation_token": str(uuid4()),
            "status": InvitationStatus.PENDING.value,
            "message": sanitize_message(request.message) or None,
            "expires_at": (now + timedelta(days=settings.INVITATION_EXPIRY_DAYS)).isoformat(),
            "sent_at": now.isoformat(),
        }

        try:
            invitation = Invitation.model_validate(SupabaseClient.insert_invitation(row))
        except SupabaseClientError as e:
            logger.error(f"Failed to create invitation for coach {coach_id}: {e}")
            raise DatabaseError("Failed to create invitation", e.message)

        logger.info(f"Invitation {invitation.id} created by coach {coach_id}")
        InvitationService._deliver(invitation, coach, profile, "Invitation created but failed to send email")
        return invitation

    @staticmethod
    def resend(coach_id: str, invitation_id: str) -> Invitation:
        """
        Issue a fresh token and expiry for an invitation and email it again.

        The previous link stops working because its token is replaced.

        Raises:
            ForbiddenError: Caller is not a coach
            InvitationNotFoundError: No such invitation for this coach
            InvitationStatusError: Invitation was accepted, declined or cancelled
            EmailDeliveryError: Row updated (as email_failed) but not delivered
        """
        coach, profile = InvitationService._require_coach(coach_id)
        invitation = InvitationService._owned_invitation(invitation_id, coach_id)

        if invitation.status not in RESENDABLE_STATUSES:
            raise InvitationStatusError("resend", invitation.status.value)

        now = _now()
        invitation = InvitationService._update(invitation.id, {
            "invitation_token": str(uuid4()),
            "status": InvitationStatus.PENDING.value,
            "expires_at": (now + timedelta(days=settings.INVITATION_EXPIRY_DAYS)).isoformat(),
            "sent_at": now.isoformat(),
            "updated_at": now.isoformat(),
        })

        InvitationService._deliver(invitation, coach, profile, "Invitation updated but failed to send email")
        logger.info(f"Invitation {invitation.id} resent")
        return invitation

    @staticmethod
    def cancel(coach_id: str, invitation_id: str) -> Invitation:
        """
        Cancel a pending (or undeliverable) invitation.

        Raises:
            ForbiddenError: Caller has no coach profile
            InvitationNotFoundError: No such invitation for this coach
            InvitationStatusError: Invitation is no longer open
        """
        InvitationService._require_coach_profile(coach_id)
        invitation = InvitationService._owned_invitation(invitation_id, coach_id)

        if invitation.status not in CANCELLABLE_STATUSES:
            raise InvitationStatusError("cancel", invitation.status.value)

        cancelled = InvitationService._update(invitation.id, {
            "status": InvitationStatus.CANCELLED.value,
            "updated_at": _now().isoformat(),
        })
        logger.info(f"Invitation {invitation.id} cancelled by coach {coach_id}")
        return cancelled

    @staticmethod
    def list_for_coach(
        coach_id: str,
        page: int = 1,
        limit: int = 10,
        status: InvitationStatus | None = None,
        email: str | None = None,
        search: str | None = None,
    ) -> InvitationList:
        """
        One page of the coach's invitations plus counts per status.

        `email` filters on the address; `search` matches the address or the
        message. Stats always cover every invitation the coach has sent.
        """
        try:
            rows, total = SupabaseClient.list_invitations(
                coach_id,
                offset=(page - 1) * limit,
                limit=limit,
                status=status.value if status else None,
                email=sanitize_search_term(email) or None,
                search=sanitize_search_term(search) or None,
            )
            statuses = SupabaseClient.fetch_invitation_statuses(coach_id)
        except SupabaseClientError as e:
            logger.error(f"Failed to list invitations for coach {coach_id}: {e}")
            raise DatabaseError("Failed to fetch invitations", e.message)

        now = _now()
        return InvitationList(
            invitations=[
                InvitationListItem.from_invitation(Invitation.model_validate(row), now)
                for row in rows
            ],
            pagination=Pagination.build(page, limit, total),
            stats=InvitationStats.from_statuses(statuses),
        )

    # -------------------------------------------------------------------------
    # Athlete side
    # -------------------------------------------------------------------------

    @staticmethod
    def validate_token(token: str) -> InvitationValidation:
        """
        Describe the invitation behind an invite link.

        Public: the token itself is the credential.

        Raises:
            InvitationNotFoundError: Unknown or malformed token
        """
        if not validate_uuid(token).is_valid:
            raise InvitationNotFoundError(token)

        try:
            row = SupabaseClient.fetch_invitation_by_token(token)
            if row is None:
                raise InvitationNotFoundError(token)
            invitation = Invitation.model_validate(row)

            coach = InvitationService._coach_summary(invitation.coach_id)
            existing = SupabaseClient.fetch_user_by_email(invitation.email)
        except SupabaseClientError as e:
            logger.error(f"Failed to validate invitation token: {e}")
            raise DatabaseError("Failed to validate invitation", e.message)

        is_expired = invitation.has_expired()
        is_cancelled = invitation.status == InvitationStatus.CANCELLED

        return InvitationValidation(
            valid=(
                invitation.status == InvitationStatus.PENDING
                and not is_expired
                and not invitation.is_accepted
            ),
            invitation=invitation,
            is_expired=is_expired,
            is_accepted=invitation.is_accepted,
            is_cancelled=is_cancelled,
            has_account=existing is not None,
            existing_user_role=existing.get("role") if existing else None,
            coach=coach,
        )

    @staticmethod
    def pending_for_user(user_id: str) -> list[PendingInvitation]:
        """
        Open, unexpired invitations addressed to the caller's email.

        Raises:
            ResourceNotFoundError: Caller has no users row yet
        """
        try:
            user_row = SupabaseClient.fetch_user(user_id)
            if user_row is None:
                raise ResourceNotFoundError("User not found", code="USER_NOT_FOUND")

            email = (user_row.get("email") or "").lower()
            rows = SupabaseClient.fetch_open_invitations(email, _now().isoformat()) if email else []

            coaches: dict[str, CoachSummary] = {}
            pending = []
            for row in rows:
                invitation = Invitation.model_validate(row)
                if invitation.coach_id not in coaches:
                    coaches[invitation.coach_id] = InvitationService._coach_summary(invitation.coach_id)
                pending.append(PendingInvitation(
                    **invitation.model_dump(include=set(PendingInvitation.model_fields) - {"coach"}),
                    coach=coaches[invitation.coach_id],
                ))
        except SupabaseClientError as e:
            logger.error(f"Failed to fetch pending invitations for {user_id}: {e}")
            raise DatabaseError("Failed to fetch pending invitations", e.message)

        return pending

    @staticmethod
    def notify_coach_of_acceptance(user_id: str, request: AcceptanceNotificationRequest) -> str | None:
        """
        Email a coach that the calling athlete accepted their invitation.

        Only the athlete who owns `athlete_id` may trigger this, and only
        once an active relationship with the coach exists.

        Returns:
            The provider's message id

        Raises:
            ResourceNotFoundError: Profile, relationship or user rows missing
            ForbiddenError: The athlete profile is not the caller's
            EmailDeliveryError: The provider rejected the email
        """
        try:
            athlete_row = SupabaseClient.fetch_athlete_profile_by_id(request.athlete_id)
            if athlete_row is None:
                raise ResourceNotFoundError("Athlete profile not found", code="ATHLETE_PROFILE_NOT_FOUND")
            athlete = AthleteProfile.model_validate(athlete_row)

            if athlete.user_id != user_id:
                raise ForbiddenError("Unauthorized to send this notification")

            coach_row = SupabaseClient.fetch_coach_profile_by_id(request.coach_id)
            if coach_row is None:
                raise ResourceNotFoundError("Coach profile not found", code="COACH_PROFILE_NOT_FOUND")
            coach_profile = CoachProfile.model_validate(coach_row)

            if SupabaseClient.fetch_active_relationship(request.coach_id, request.athlete_id) is None:
                raise ResourceNotFoundError(
                    "Coach-athlete relationship not found",
                    code="RELATIONSHIP_NOT_FOUND",
                )

            coach_user_row = SupabaseClient.fetch_user(coach_profile.user_id)
            athlete_user_row = SupabaseClient.fetch_user(user_id)
        except SupabaseClientError as e:
            logger.error(f"Failed to load acceptance details for athlete {request.athlete_id}: {e}")
            raise DatabaseError("Failed to load notification details", e.message)

        if coach_user_row is None or athlete_user_row is None or not coach_user_row.get("email"):
            raise ResourceNotFoundError("User details not found", code="USER_NOT_FOUND")
        coach_user = User.model_validate(coach_user_row)
        athlete_user = User.model_validate(athlete_user_row)

        result = EmailService.send_athlete_acceptance_notification(
            coach_email=coach_user.email,
            coach_name=_full_name(coach_user) or "Coach",
            athlete_name=_full_name(athlete_user) or "Your new athlete",
            athlete_email=athlete_user.email or "",
            accepted_at=request.accepted_at,
            athlete_profile_url=InvitationService._athlete_profile_url(coach_profile, athlete),
            experience_level=athlete.experience_level.value if athlete.experience_level else None,
            goal_race=athlete.goal_race_distance,
        )

        if not result.success:
            raise EmailDeliveryError("Failed to send notification email", result.error)

        logger.info(f"Acceptance notification sent to coach {coach_profile.user_id}")
        return (result.data or {}).get("id")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _require_coach_profile(coach_id: str) -> CoachProfile:
        try:
            row = SupabaseClient.fetch_coach_profile(coach_id)
        except SupabaseClientError as e:
            raise DatabaseError("Failed to load coach profile", e.message)
        if row is None:
            raise ForbiddenError("Coach profile not found", details={"user_id": coach_id})
        return CoachProfile.model_validate(row)

    @staticmethod
    def _require_coach(coach_id: str) -> tuple[User, CoachProfile]:
        """The coach's users row and profile, both needed to write the email."""
        profile = InvitationService._require_coach_profile(coach_id)
        try:
            row = SupabaseClient.fetch_user(coach_id)
        except SupabaseClientError as e:
            raise DatabaseError("Failed to load coach details", e.message)
        if row is None or not row.get("email"):
            raise ForbiddenError("Coach details not found", details={"user_id": coach_id})
        return User.model_validate(row), profile

    @staticmethod
    def _owned_invitation(invitation_id: str, coach_id: str) -> Invitation:
        # Malformed ids cannot match a row; answer 404 without a query
        if not validate_uuid(invitation_id).is_valid:
            raise InvitationNotFoundError(invitation_id)
        try:
            row = SupabaseClient.fetch_invitation(invitation_id, coach_id)
        except SupabaseClientError as e:
            raise DatabaseError("Failed to load invitation", e.message)
        if row is None:
            raise InvitationNotFoundError(invitation_id)
        return Invitation.model_validate(row)

    @staticmethod
    def _update(invitation_id: str, data: dict[str, Any]) -> Invitation:
        try:
            return Invitation.model_validate(SupabaseClient.update_invitation(invitation_id, data))
        except SupabaseClientError as e:
            logger.error(f"Failed to update invitation {invitation_id}: {e}")
            raise DatabaseError("Failed to update invitation", e.message)

    @staticmethod
    def _deliver(invitation: Invitation, coach: User, profile: CoachProfile, failure_message: str) -> None:
        """Email the invitation; on failure mark it email_failed and raise."""
        result = EmailService.send_coach_invitation(
            athlete_email=invitation.email,
            coach_name=_full_name(coach) or "Your coach",
            coach_email=coach.email or "",
            invitation_token=invitation.invitation_token or "",
            expires_at=invitation.expires_at,
            message=invitation.message,
            qualifications=profile.qualifications,
        )
        if result.success:
            return

        logger.warning(f"Invitation email for {invitation.id} failed: {result.error}")
        try:
            SupabaseClient.update_invitation(invitation.id, {
                "status": InvitationStatus.EMAIL_FAILED.value,
                "updated_at": _now().isoformat(),
            })
        except SupabaseClientError as e:
            logger.error(f"Could not mark invitation {invitation.id} as email_failed: {e}")
        raise EmailDeliveryError(failure_message, result.error)

    @staticmethod
    def _coach_summary(coach_id: str) -> CoachSummary:
        user_row = SupabaseClient.fetch_user(coach_id)
        profile_row = SupabaseClient.fetch_coach_profile(coach_id)

        user = User.model_validate(user_row) if user_row else User(id=coach_id)
        profile = CoachProfile.model_validate(profile_row) if profile_row else None

        return CoachSummary(
            name=_full_name(user) or "CIRFPRO Coach",
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            photo_url=profile.profile_photo_url if profile else None,
            qualifications=profile.qualifications if profile else [],
            specializations=profile.specializations if profile else [],
            philosophy=profile.coaching_philosophy if profile else None,
            years_experience=profile.years_experience if profile else None,
            workspace_slug=profile.workspace_slug if profile else None,
        )

    @staticmethod
    def _athlete_profile_url(coach_profile: CoachProfile, athlete: AthleteProfile) -> str:
        base = settings.APP_URL.rstrip("/")
        if coach_profile.workspace_slug:
            return f"{base}/coach/{coach_profile.workspace_slug}/athletes/{athlete.id}"
        return f"{base}/dashboard"
