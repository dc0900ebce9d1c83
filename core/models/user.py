# =============================================================================
# core/models/user.py - Account Schemas
# =============================================================================
# These models mirror the account tables owned by the Supabase project:
# - pending_users: registrants waiting for email verification
# - users: confirmed, active accounts
# - athlete_profiles: athlete extension of users (created on migration)
# - coach_profiles: coach extension of users (managed elsewhere, read-only here)
#
# A user id exists in pending_users OR users, never both once a
# migration run has finished cleanly.
# =============================================================================

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Closed set of account roles."""
    ATHLETE = "athlete"
    COACH = "coach"


class ExperienceLevel(str, Enum):
    """Athlete experience levels accepted at sign-up."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class PendingUser(BaseModel):
    """
    An unconfirmed registrant.

    Created at registration time with the id of the new auth user, and
    deleted once the row has been migrated into `users`.
    """

    id: str = Field(..., description="Matches the auth user id")
    email: str
    role: Role
    first_name: str | None = None
    last_name: str | None = None
    experience_level: ExperienceLevel | None = None
    qualifications: list[str] = Field(default_factory=list)
    specializations: list[str] = Field(default_factory=list)
    date_of_birth: date | None = None
    created_at: datetime | None = None

    def to_user_row(self) -> dict:
        """Columns copied into `users` on migration."""
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role.value,
            "first_name": self.first_name,
            "last_name": self.last_name,
        }

    def to_athlete_profile_row(self) -> dict:
        return {
            "user_id": self.id,
            "experience_level": self.experience_level.value if self.experience_level else None,
        }


class User(BaseModel):
    """A confirmed, active account."""

    id: str
    email: str | None = None
    role: Role | None = None
    first_name: str | None = None
    last_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AthleteProfile(BaseModel):
    id: str | None = None
    user_id: str
    experience_level: ExperienceLevel | None = None
    goal_race_distance: str | None = None

    model_config = {"extra": "ignore"}


class CoachProfile(BaseModel):
    """
    Coach extension of a user.

    Created by the coach onboarding flow, never by the migration.
    Only the fields this service reads are declared.
    """

    id: str | None = None
    user_id: str
    qualifications: list[str] = Field(default_factory=list)
    specializations: list[str] = Field(default_factory=list)
    coaching_philosophy: str | None = None
    years_experience: int | None = None
    profile_photo_url: str | None = None
    subscription_tier: str | None = None
    workspace_slug: str | None = None
    workspace_name: str | None = None
    is_public: bool = False

    model_config = {"extra": "ignore"}


class UserResponse(BaseModel):
    """
    Response for GET /auth/me.

    Falls back to the token claims when the users row does not exist yet,
    in which case `pending` tells the client whether verification is
    still outstanding. Coaches also get their profile so the frontend can
    route them to their workspace.
    """

    id: str
    email: str | None = None
    role: Role | None = None
    first_name: str | None = None
    last_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    pending: bool = False
    coach_profile: CoachProfile | None = None


class SignUpRequest(BaseModel):
    """
    Registration form payload.

    Values are sanitized and validated by the registration service, so the
    types here are deliberately loose (plain strings, not enums).

    Example:
        {
            "email": "runner@example.com",
            "password": "correct-horse-battery",
            "first_name": "Ada",
            "last_name": "Lovelace",
            "role": "athlete",
            "experience_level": "beginner"
        }
    """

    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=200)
    last_name: str = Field(..., min_length=1, max_length=200)
    role: str
    qualifications: list[str] = Field(default_factory=list)
    specializations: list[str] = Field(default_factory=list)
    date_of_birth: date | None = None
    experience_level: str | None = None


class SignUpResponse(BaseModel):
    success: bool = True
    user_id: str
    message: str
