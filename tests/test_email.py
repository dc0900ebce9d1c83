# =============================================================================
# tests/test_email.py - Email Service and Test-Email Route
# =============================================================================
# Resend is never contacted: httpx.post is patched in the email service.
#
# Run with: pytest tests/test_email.py -v
# =============================================================================

from datetime import datetime, timezone
from unittest.mock import patch

import httpx
import pytest

from app.config import settings
from core.services.email_service import (
    TEST_EMAIL_HTML,
    TEST_EMAIL_SUBJECT,
    EmailService,
)

RESEND_EMAILS = "https://api.resend.com/emails"


def resend_response(status_code: int, body: dict) -> httpx.Response:
    return httpx.Response(status_code, json=body, request=httpx.Request("POST", RESEND_EMAILS))


@pytest.fixture
def mock_post():
    with patch("core.services.email_service.httpx.post") as post:
        post.return_value = resend_response(200, {"id": "msg_1"})
        yield post


class TestEmailService:

    def test_send_test_email(self, mock_post):
        result = EmailService.send_test_email("a@b.com")

        assert result.success
        assert result.data == {"id": "msg_1"}
        mock_post.assert_called_once()
        assert mock_post.call_args.args[0] == RESEND_EMAILS
        assert mock_post.call_args.kwargs["json"] == {
            "from": "Test <onboarding@resend.dev>",
            "to": ["a@b.com"],
            "subject": TEST_EMAIL_SUBJECT,
            "html": TEST_EMAIL_HTML,
        }
        assert mock_post.call_args.kwargs["headers"] == {"Authorization": "Bearer re_test_key"}

    def test_reply_to_and_recipient_list(self, mock_post):
        EmailService.send_email(
            to=["a@b.com", "c@d.com"],
            subject="Hi",
            html="<p>Hi</p>",
            sender="CIRFPRO <noreply@cirfpro.com>",
            reply_to="support@cirfpro.com",
        )

        payload = mock_post.call_args.kwargs["json"]
        assert payload["to"] == ["a@b.com", "c@d.com"]
        assert payload["reply_to"] == "support@cirfpro.com"

    def test_provider_error(self, mock_post):
        error = {"statusCode": 403, "name": "validation_error", "message": "Domain not verified"}
        mock_post.return_value = resend_response(403, error)

        result = EmailService.send_test_email("a@b.com")

        assert not result.success
        assert result.error == error

    def test_network_error(self, mock_post):
        mock_post.side_effect = httpx.ConnectError("connection refused")

        result = EmailService.send_test_email("a@b.com")

        assert not result.success
        assert result.error == "connection refused"

    def test_missing_api_key(self, mock_post):
        with patch.object(settings, "RESEND_API_KEY", ""):
            result = EmailService.send_test_email("a@b.com")

        assert not result.success
        assert result.error == "RESEND_API_KEY is not configured"
        mock_post.assert_not_called()


class TestInvitationEmails:

    def test_coach_invitation(self, mock_post):
        EmailService.send_coach_invitation(
            athlete_email="runner@example.com",
            coach_name="Grace Hopper",
            coach_email="coach@example.com",
            invitation_token="tok-123",
            expires_at=datetime(2025, 3, 15, tzinfo=timezone.utc),
            message="<script>alert(1)</script> See you Sunday",
            qualifications=["UKA Level 3", "Run Leader"],
        )

        payload = mock_post.call_args.kwargs["json"]
        assert payload["from"] == settings.INVITATION_FROM
        assert payload["to"] == ["runner@example.com"]
        assert payload["subject"] == "Coach Invitation from Grace Hopper - CIRFPRO"
        assert payload["reply_to"] == "coach@example.com"
        assert f'href="{settings.APP_URL}/invite/tok-123"' in payload["html"]
        assert "UKA Level 3, Run Leader" in payload["html"]
        assert "15 March 2025" in payload["html"]
        assert "<script>" not in payload["html"]
        assert "&lt;script&gt;" in payload["html"]

    def test_coach_invitation_without_message(self, mock_post):
        EmailService.send_coach_invitation(
            athlete_email="runner@example.com",
            coach_name="Grace Hopper",
            coach_email="coach@example.com",
            invitation_token="tok-123",
            expires_at=datetime(2025, 3, 15, tzinfo=timezone.utc),
        )

        html = mock_post.call_args.kwargs["json"]["html"]
        assert "font-style: italic" not in html
        assert "Qualifications" not in html

    def test_acceptance_notification(self, mock_post):
        result = EmailService.send_athlete_acceptance_notification(
            coach_email="coach@example.com",
            coach_name="Grace Hopper",
            athlete_name="Ada <Lovelace>",
            athlete_email="runner@example.com",
            accepted_at=datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc),
            athlete_profile_url="http://localhost:3000/coach/grace-runs/athletes/a1",
            experience_level="intermediate",
        )

        assert result.success
        payload = mock_post.call_args.kwargs["json"]
        assert payload["from"] == settings.NOTIFICATION_FROM
        assert payload["to"] == ["coach@example.com"]
        assert payload["reply_to"] == "runner@example.com"
        assert payload["subject"].startswith("Ada <Lovelace> Accepted Your Coaching Invitation!")
        assert "Ada &lt;Lovelace&gt;" in payload["html"]
        assert "01 March 2025, 09:30" in payload["html"]
        assert "Experience Level:</strong> intermediate" in payload["html"]
        assert "Goal Race" not in payload["html"]


class TestTestEmailRoute:

    def test_success(self, client, mock_post):
        response = client.post("/api/v1/test-email", json={"email": "  A@B.com "})

        assert response.status_code == 200
        assert response.json() == {"data": {"id": "msg_1"}, "success": True}
        assert mock_post.call_args.kwargs["json"]["to"] == ["a@b.com"]

    def test_provider_failure_is_reported_in_body(self, client, mock_post):
        mock_post.return_value = resend_response(422, {"message": "Invalid `to` field"})

        response = client.post("/api/v1/test-email", json={"email": "a@b.com"})

        assert response.status_code == 200
        assert response.json() == {"error": {"message": "Invalid `to` field"}, "success": False}

    def test_missing_email(self, client, mock_post):
        response = client.post("/api/v1/test-email", json={})

        assert response.status_code == 422
        mock_post.assert_not_called()
