# =============================================================================
# core/models/invitation.py - Coach/Athlete Invitation Schemas
# =============================================================================
# A coach invites an athlete by email. Each row of coach_athlete_invitations
# carries a single-use token that the invitation link points at:
#
#   pending --(athlete accepts)--> accepted
#      |  \--(coach cancels)-----> cancelled
#      |   \-(email send fails)--> email_failed --(resend)--> pending
#      \--(expires_at passes)----> expired      --(resend)--> pending
#
# `coach_id` on an invitation is the coach's users.id, not the id of their
# coach_profiles row.
# =============================================================================

from datetime import datetime, timezone
from enum import Enum
from math import ceil
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class InvitationStatus(str, Enum):
    """Lifecycle states of an invitation."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    DECLINED = "declined"
    CANCELLED = "cancelled"
    EMAIL_FAILED = "email_failed"


# Statuses a coach may still act on
CANCELLABLE_STATUSES = frozenset({InvitationStatus.PENDING, InvitationStatus.EMAIL_FAILED})
RESENDABLE_STATUSES = frozenset({
    InvitationStatus.PENDING,
    InvitationStatus.EXPIRED,
    InvitationStatus.EMAIL_FAILED,
})


class Invitation(BaseModel):
    """A coach_athlete_invitations row."""

    id: str
    coach_id: str = Field(..., description="users.id of the inviting coach")
    email: str
    invitation_token: str | None = None
    status: InvitationStatus
    message: str | None = None
    expires_at: datetime
    sent_at: datetime | None = None
    accepted_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"extra": "ignore"}

    @field_validator("expires_at", "sent_at", "accepted_at", "created_at", "updated_at")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        # timestamptz columns always carry an offset; bare values are UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def has_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at <= (now or datetime.now(timezone.utc))

    def days_left(self, now: datetime | None = None) -> int:
        """Whole days left, rounded up; 0 once expired."""
        remaining = self.expires_at - (now or datetime.now(timezone.utc))
        return max(0, ceil(remaining.total_seconds() / 86400))

    @property
    def is_accepted(self) -> bool:
        return self.status == InvitationStatus.ACCEPTED or self.accepted_at is not None


class InvitationCreate(BaseModel):
    """
    Body of POST /invitations/send.

    Example:
        {"email": "runner@example.com", "message": "Training for Berlin?"}
    """

    email: str = Field(..., min_length=3, max_length=320)
    message: str | None = Field(default=None, max_length=500)


class InvitationListItem(Invitation):
    """An invitation as shown in the coach's list, with derived expiry fields."""

    is_expired: bool
    days_until_expiry: int

    @classmethod
    def from_invitation(cls, invitation: Invitation, now: datetime) -> "InvitationListItem":
        return cls(
            **invitation.model_dump(),
            is_expired=invitation.has_expired(now),
            days_until_expiry=invitation.days_left(now),
        )


class InvitationStats(BaseModel):
    """Counts over every invitation the coach has sent, ignoring list filters."""
    total: int = 0
    pending: int = 0
    accepted: int = 0
    expired: int = 0
    declined: int = 0
    cancelled: int = 0
    email_failed: int = 0

    @classmethod
    def from_statuses(cls, statuses: list[str]) -> "InvitationStats":
        stats = cls(total=len(statuses))
        for status in statuses:
            if status in InvitationStatus._value2member_map_:
                setattr(stats, status, getattr(stats, status) + 1)
        return stats


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = ceil(total / limit) if limit else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class InvitationList(BaseModel):
    """Response for GET /invitations."""
    invitations: list[InvitationListItem]
    pagination: Pagination
    stats: InvitationStats


class CoachSummary(BaseModel):
    """Public facts about the inviting coach, shown on the invitation page."""

    name: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    photo_url: str | None = None
    qualifications: list[str] = Field(default_factory=list)
    specializations: list[str] = Field(default_factory=list)
    philosophy: str | None = None
    years_experience: int | None = None
    workspace_slug: str | None = None


class InvitationValidation(BaseModel):
    """
    Response for GET /invitations/validate/{token}.

    `valid` is true only for a pending invitation that has not expired.
    `has_account` lets the invite page choose between sign-in and sign-up.
    """

    valid: bool
    invitation: Invitation
    is_expired: bool
    is_accepted: bool
    is_cancelled: bool
    has_account: bool
    existing_user_role: str | None = None
    coach: CoachSummary


class PendingInvitation(BaseModel):
    """An open invitation addressed to the signed-in user."""
    id: str
    coach_id: str
    email: str
    message: str | None = None
    status: InvitationStatus
    expires_at: datetime
    sent_at: datetime | None = None
    invitation_token: str | None = None
    coach: CoachSummary


class AcceptanceNotificationRequest(BaseModel):
    """
    Body of POST /notifications/coach-acceptance.

    Both ids are profile ids (coach_profiles.id, athlete_profiles.id).
    """

    coach_id: UUID = Field(..., description="coach_profiles.id")
    athlete_id: UUID = Field(..., description="athlete_profiles.id")
    accepted_at: datetime
