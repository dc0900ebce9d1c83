# =============================================================================
# tests/test_models.py - Pydantic Model Tests
# =============================================================================
# Unit tests for the account and migration models to ensure:
# - Valid data is accepted and parsed correctly
# - Invalid data raises ValidationError
# - Rows for the users / athlete_profiles tables are built correctly
# - Default values work as expected
#
# Run with: pytest tests/test_models.py -v
# =============================================================================

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from core.models import (
    CoachProfile,
    ExperienceLevel,
    Invitation,
    InvitationListItem,
    InvitationStats,
    MigrationResult,
    MigrationStepName,
    Pagination,
    PendingUser,
    Role,
    SignUpRequest,
    StepStatus,
    UserResponse,
)


# =============================================================================
# Pending User Tests
# =============================================================================

class TestPendingUser:
    """Tests for PendingUser model."""

    def test_valid_pending_athlete(self):
        """Test parsing a pending_users row."""
        # Arrange: A row as PostgREST returns it
        row = {
            "id": "u1",
            "email": "a@b.com",
            "role": "athlete",
            "experience_level": "beginner",
            "date_of_birth": "1995-03-02",
            "created_at": "2025-01-01T10:00:00+00:00",
        }

        # Act: Create the model
        pending = PendingUser.model_validate(row)

        # Assert: Values are parsed
        assert pending.role == Role.ATHLETE
        assert pending.experience_level == ExperienceLevel.BEGINNER
        assert pending.date_of_birth == date(1995, 3, 2)
        assert pending.qualifications == []

    def test_unknown_role_rejected(self):
        """Roles are a closed set."""
        with pytest.raises(ValidationError):
            PendingUser(id="u1", email="a@b.com", role="admin")

    def test_to_user_row(self):
        """Only the users columns are copied."""
        pending = PendingUser(
            id="c1",
            email="coach@example.com",
            role="coach",
            first_name="Grace",
            last_name="Hopper",
            qualifications=["UKA Level 3"],
        )

        assert pending.to_user_row() == {
            "id": "c1",
            "email": "coach@example.com",
            "role": "coach",
            "first_name": "Grace",
            "last_name": "Hopper",
        }

    def test_to_athlete_profile_row(self):
        pending = PendingUser(id="u1", email="a@b.com", role="athlete", experience_level="advanced")

        assert pending.to_athlete_profile_row() == {
            "user_id": "u1",
            "experience_level": "advanced",
        }

    def test_athlete_profile_row_without_level(self):
        pending = PendingUser(id="u1", email="a@b.com", role="athlete")

        assert pending.to_athlete_profile_row()["experience_level"] is None


# =============================================================================
# Sign-up Tests
# =============================================================================

class TestSignUpRequest:
    """Tests for SignUpRequest model."""

    def test_defaults(self):
        """Test that optional fields default sensibly."""
        request = SignUpRequest(
            email="a@b.com",
            password="correct-horse",
            first_name="Ada",
            last_name="Lovelace",
            role="athlete",
        )

        assert request.qualifications == []
        assert request.specializations == []
        assert request.date_of_birth is None
        assert request.experience_level is None

    def test_password_minimum_length(self):
        """Passwords shorter than 8 characters are rejected."""
        with pytest.raises(ValidationError):
            SignUpRequest(
                email="a@b.com",
                password="short",
                first_name="Ada",
                last_name="Lovelace",
                role="athlete",
            )

    def test_names_required(self):
        with pytest.raises(ValidationError):
            SignUpRequest(
                email="a@b.com",
                password="correct-horse",
                first_name="",
                last_name="Lovelace",
                role="athlete",
            )


# =============================================================================
# Response Tests
# =============================================================================

class TestUserResponse:
    """Tests for UserResponse model."""

    def test_pending_defaults(self):
        response = UserResponse(id="u1")

        assert response.pending is False
        assert response.coach_profile is None
        assert response.role is None

    def test_coach_profile_ignores_unknown_columns(self):
        """Coach rows carry columns this service does not read."""
        profile = CoachProfile.model_validate({
            "user_id": "c1",
            "workspace_slug": "grace-runs",
            "stripe_customer_id": "cus_123",
        })

        response = UserResponse(id="c1", role="coach", coach_profile=profile)
        data = response.model_dump(mode="json")

        assert data["coach_profile"]["workspace_slug"] == "grace-runs"
        assert "stripe_customer_id" not in data["coach_profile"]
        assert data["coach_profile"]["is_public"] is False


# =============================================================================
# Migration Result Tests
# =============================================================================

class TestMigrationResult:
    """Tests for MigrationResult model."""

    def test_empty_result_is_complete(self):
        assert MigrationResult(user_id="u1").complete

    def test_skipped_steps_are_complete(self):
        result = MigrationResult(user_id="u1")
        result.record(MigrationStepName.FETCH_PENDING, StepStatus.COMPLETED)
        result.record(MigrationStepName.CREATE_USER, StepStatus.SKIPPED)

        assert result.complete

    def test_failed_step_makes_result_partial(self):
        result = MigrationResult(user_id="u1")
        result.record(MigrationStepName.CREATE_USER, StepStatus.COMPLETED)
        result.record(MigrationStepName.DELETE_PENDING, StepStatus.FAILED, "delete rejected")

        assert not result.complete
        assert result.step(MigrationStepName.DELETE_PENDING).error == "delete rejected"
        assert result.step(MigrationStepName.CREATE_ATHLETE_PROFILE) is None

    def test_serializes_enum_values(self):
        result = MigrationResult(user_id="u1", role="athlete")
        result.record(MigrationStepName.FETCH_PENDING, StepStatus.COMPLETED)

        assert result.model_dump(mode="json") == {
            "user_id": "u1",
            "role": "athlete",
            "steps": [{"name": "fetch_pending", "status": "completed", "error": None}],
        }


# =============================================================================
# Invitation Tests
# =============================================================================

class TestInvitation:
    """Tests for Invitation and its derived list fields."""

    NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    def make(self, **overrides) -> Invitation:
        row = {
            "id": "i1",
            "coach_id": "c1",
            "email": "runner@example.com",
            "status": "pending",
            "expires_at": "2025-03-04T06:00:00+00:00",
        }
        row.update(overrides)
        return Invitation.model_validate(row)

    def test_days_left_rounds_up(self):
        assert self.make().days_left(self.NOW) == 3

    def test_expired_invitation(self):
        invitation = self.make(expires_at="2025-02-28T12:00:00+00:00")

        assert invitation.has_expired(self.NOW)
        assert invitation.days_left(self.NOW) == 0

    def test_naive_timestamps_are_utc(self):
        invitation = self.make(expires_at="2025-03-01T13:00:00")

        assert invitation.expires_at.tzinfo == timezone.utc
        assert not invitation.has_expired(self.NOW)

    def test_accepted_at_counts_as_accepted(self):
        assert self.make(accepted_at="2025-02-27T10:00:00+00:00").is_accepted
        assert not self.make().is_accepted

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            self.make(status="archived")

    def test_list_item(self):
        item = InvitationListItem.from_invitation(self.make(), self.NOW)

        data = item.model_dump(mode="json")
        assert data["is_expired"] is False
        assert data["days_until_expiry"] == 3
        assert data["status"] == "pending"


class TestInvitationStats:

    def test_counts_known_statuses(self):
        stats = InvitationStats.from_statuses(["pending", "pending", "accepted", "email_failed", "bogus"])

        assert stats.total == 5
        assert stats.pending == 2
        assert stats.accepted == 1
        assert stats.email_failed == 1
        assert stats.cancelled == 0


class TestPagination:

    @pytest.mark.parametrize("page, total, pages, has_next, has_prev", [
        (1, 0, 0, False, False),
        (1, 10, 1, False, False),
        (1, 11, 2, True, False),
        (2, 11, 2, False, True),
    ])
    def test_build(self, page, total, pages, has_next, has_prev):
        pagination = Pagination.build(page, 10, total)

        assert pagination.total_pages == pages
        assert pagination.has_next is has_next
        assert pagination.has_prev is has_prev
