# =============================================================================
# tests/test_registration.py - Sign-up Tests
# =============================================================================
# Tests for RegistrationService:
# - Sanitized, validated data reaches the pending store
# - Invalid input is rejected before Supabase Auth is called
# - Provider and store failures map to RegistrationError
#
# Run with: pytest tests/test_registration.py -v
# =============================================================================

from datetime import date

import pytest

from app.exceptions import RegistrationError, RegistrationValidationError
from core.models.user import SignUpRequest
from core.services.registration_service import RegistrationService


@pytest.fixture
def signed_up(account_store):
    """Make sign_up succeed with a fixed auth user id."""
    account_store.auth_client.auth.sign_up.return_value.user.id = "new-user-id"
    return account_store


def athlete_request(**overrides) -> SignUpRequest:
    data = {
        "email": "  Runner@Example.com ",
        "password": "correct-horse-battery",
        "first_name": "<b>Ada</b>",
        "last_name": "Lovelace",
        "role": "athlete",
    }
    data.update(overrides)
    return SignUpRequest(**data)


class TestRegisterSuccess:

    def test_athlete_pending_row(self, signed_up):
        user_id = RegistrationService.register(athlete_request(date_of_birth=date(1995, 3, 2)))

        assert user_id == "new-user-id"
        assert signed_up.pending_users["new-user-id"] == {
            "id": "new-user-id",
            "email": "runner@example.com",
            "role": "athlete",
            "first_name": "Ada",
            "last_name": "Lovelace",
            "qualifications": [],
            "specializations": [],
            "date_of_birth": "1995-03-02",
            "experience_level": "beginner",
        }

    def test_sign_up_call(self, signed_up):
        RegistrationService.register(athlete_request())

        signed_up.auth_client.auth.sign_up.assert_called_once_with({
            "email": "runner@example.com",
            "password": "correct-horse-battery",
            "options": {
                "data": {
                    "role": "athlete",
                    "first_name": "Ada",
                    "last_name": "Lovelace",
                },
                "email_redirect_to": "http://localhost:8000/api/v1/auth/callback",
            },
        })

    def test_coach_has_no_experience_level(self, signed_up):
        RegistrationService.register(athlete_request(
            role=" Coach ",
            experience_level="advanced",
            qualifications=["UKA <i>Level 3</i>", ""],
            specializations=["Marathon"],
        ))

        row = signed_up.pending_users["new-user-id"]
        assert row["role"] == "coach"
        assert row["experience_level"] is None
        assert row["qualifications"] == ["UKA Level 3"]
        assert row["specializations"] == ["Marathon"]

    def test_explicit_experience_level(self, signed_up):
        RegistrationService.register(athlete_request(experience_level=" Advanced "))

        assert signed_up.pending_users["new-user-id"]["experience_level"] == "advanced"

    def test_password_is_not_sanitized(self, signed_up):
        RegistrationService.register(athlete_request(password="<p@ss w0rd's>"))

        call = signed_up.auth_client.auth.sign_up.call_args.args[0]
        assert call["password"] == "<p@ss w0rd's>"


class TestRegisterValidation:

    @pytest.mark.parametrize("overrides,field", [
        ({"email": "not-an-email"}, "email"),
        ({"role": "admin"}, "role"),
        ({"first_name": "<b></b>"}, "name"),
        ({"last_name": "!!!"}, "name"),
        ({"experience_level": "elite"}, "experience_level"),
    ])
    def test_rejected_before_sign_up(self, signed_up, overrides, field):
        with pytest.raises(RegistrationValidationError) as exc_info:
            RegistrationService.register(athlete_request(**overrides))

        assert exc_info.value.status_code == 400
        assert exc_info.value.details == {"field": field}
        signed_up.auth_client.auth.sign_up.assert_not_called()
        assert signed_up.pending_users == {}


class TestRegisterFailures:

    def test_provider_client_error_keeps_status(self, account_store, auth_error):
        account_store.auth_client.auth.sign_up.side_effect = auth_error(
            "User already registered", status=422
        )

        with pytest.raises(RegistrationError) as exc_info:
            RegistrationService.register(athlete_request())

        assert exc_info.value.status_code == 422
        assert exc_info.value.message == "User already registered"

    def test_provider_server_error_is_500(self, account_store, auth_error):
        account_store.auth_client.auth.sign_up.side_effect = auth_error(
            "Error sending confirmation email", status=503
        )

        with pytest.raises(RegistrationError) as exc_info:
            RegistrationService.register(athlete_request())

        assert exc_info.value.status_code == 500

    def test_no_user_returned(self, account_store):
        account_store.auth_client.auth.sign_up.return_value.user = None

        with pytest.raises(RegistrationError) as exc_info:
            RegistrationService.register(athlete_request())

        assert exc_info.value.message == "Failed to create user account"

    def test_pending_insert_failure_discards_auth_user(self, signed_up):
        signed_up.fail("insert_pending_user", "duplicate key value")

        with pytest.raises(RegistrationError) as exc_info:
            RegistrationService.register(athlete_request())

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "duplicate key value"
        assert "delete_auth_user" in signed_up.calls

    def test_failed_discard_still_reports_insert_error(self, signed_up):
        signed_up.fail("insert_pending_user", "duplicate key value")
        signed_up.fail("delete_auth_user", "not allowed")

        with pytest.raises(RegistrationError) as exc_info:
            RegistrationService.register(athlete_request())

        assert exc_info.value.message == "duplicate key value"
