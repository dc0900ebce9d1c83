# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - user.py: account tables (pending users, users, profiles) and sign-up I/O
# - migration.py: structured result of the pending -> active migration
# - invitation.py: coach/athlete invitations and their API shapes
#
# These models define the "contract" between API and clients.
# =============================================================================

from .user import (
    AthleteProfile,
    CoachProfile,
    ExperienceLevel,
    PendingUser,
    Role,
    SignUpRequest,
    SignUpResponse,
    User,
    UserResponse,
)
from .invitation import (
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
from .migration import (
    MigrationResult,
    MigrationStep,
    MigrationStepName,
    StepStatus,
)

__all__ = [
    # Accounts
    "AthleteProfile",
    "CoachProfile",
    "ExperienceLevel",
    "PendingUser",
    "Role",
    "SignUpRequest",
    "SignUpResponse",
    "User",
    "UserResponse",
    # Invitations
    "AcceptanceNotificationRequest",
    "CoachSummary",
    "Invitation",
    "InvitationCreate",
    "InvitationList",
    "InvitationListItem",
    "InvitationStats",
    "InvitationStatus",
    "InvitationValidation",
    "Pagination",
    "PendingInvitation",
    # Migration
    "MigrationResult",
    "MigrationStep",
    "MigrationStepName",
    "StepStatus",
]
