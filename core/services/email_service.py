# =============================================================================
# core/services/email_service.py - Transactional Email
# =============================================================================
# Sends the diagnostic test email and the invitation emails through the
# Resend REST API (POST /emails).
#
# Sending never raises: every call returns an EmailResult so route handlers
# can report provider failures in the response body.
#
# Usage:
#   from core.services.email_service import EmailService
#   result = EmailService.send_test_email("someone@example.com")
# =============================================================================

import logging
from datetime import datetime
from html import escape
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from app.config import settings

logger = logging.getLogger(__name__)

TEST_EMAIL_SUBJECT = "CIRFPRO Test Email"
TEST_EMAIL_HTML = "<h1>Test email from CIRFPRO!</h1><p>If you see this, Resend is working.</p>"

REQUEST_TIMEOUT = 10.0
BRAND_COLOR = "#29b643"


class EmailResult(BaseModel):
    """
    Outcome of a send.

    `data` is Resend's response body (contains the message id) on success;
    `error` is the provider's error object or a message string on failure.
    """
    success: bool
    data: dict[str, Any] | None = None
    error: dict[str, Any] | str | None = None


class EmailService:
    """Thin client for the Resend API."""

    @staticmethod
    def send_email(
        to: str | list[str],
        subject: str,
        html: str,
        sender: str,
        reply_to: str | None = None,
    ) -> EmailResult:
        """
        Send one email.

        Args:
            to: Recipient address or list of addresses
            subject: Subject line
            html: HTML body
            sender: "Name <address>" from header
            reply_to: Optional reply-to address

        Returns:
            EmailResult with the provider response or error
        """
        if not settings.RESEND_API_KEY:
            logger.warning("RESEND_API_KEY is not set, cannot send email")
            return EmailResult(success=False, error="RESEND_API_KEY is not configured")

        payload: dict[str, Any] = {
            "from": sender,
            "to": to if isinstance(to, list) else [to],
            "subject": subject,
            "html": html,
        }
        if reply_to:
            payload["reply_to"] = reply_to

        try:
            response = httpx.post(
                f"{settings.RESEND_API_URL.rstrip('/')}/emails",
                json=payload,
                headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
                timeout=REQUEST_TIMEOUT,
            )
        except httpx.HTTPError as e:
            logger.error(f"Error sending email '{subject}': {e}")
            return EmailResult(success=False, error=str(e) or "Failed to send email")

        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text}

        if response.is_error:
            logger.error(f"Resend rejected email '{subject}': {response.status_code} {body}")
            return EmailResult(success=False, error=body if isinstance(body, dict) else str(body))

        logger.info(f"Email sent successfully: {body.get('id') if isinstance(body, dict) else body}")
        return EmailResult(success=True, data=body if isinstance(body, dict) else None)

    @staticmethod
    def send_test_email(email: str) -> EmailResult:
        """Send the fixed diagnostic email used to check the provider setup."""
        return EmailService.send_email(
            to=email,
            subject=TEST_EMAIL_SUBJECT,
            html=TEST_EMAIL_HTML,
            sender=settings.TEST_EMAIL_FROM,
        )

    # -------------------------------------------------------------------------
    # Invitation emails
    # -------------------------------------------------------------------------

    @staticmethod
    def send_coach_invitation(
        athlete_email: str,
        coach_name: str,
        coach_email: str,
        invitation_token: str,
        expires_at: datetime,
        message: str | None = None,
        qualifications: list[str] | None = None,
    ) -> EmailResult:
        """
        Invite an athlete to a coach's program.

        The button links to the frontend invite page for `invitation_token`;
        replies go to the coach.
        """
        invitation_url = f"{settings.APP_URL.rstrip('/')}/invite/{quote(invitation_token)}"

        message_block = ""
        if message:
            message_block = f"""
              <div style="background-color: #f8f9fa; padding: 15px; border-left: 4px solid {BRAND_COLOR}; margin: 20px 0;">
                <p style="margin: 0; font-style: italic;">"{escape(message)}"</p>
              </div>"""

        qualifications_line = ""
        if qualifications:
            qualifications_line = (
                f"<p><strong>Qualifications:</strong> {escape(', '.join(qualifications))}</p>"
            )

        body = f"""
              <h2 style="color: #333;">You've been invited to join a coaching program!</h2>
              <p><strong>{escape(coach_name)}</strong> has invited you to join their professional
                 running coaching program on CIRFPRO.</p>
              {message_block}
              <div style="background-color: #f8f9fa; padding: 20px; border-radius: 8px; margin: 20px 0;">
                <h3 style="margin-top: 0;">About Your Coach:</h3>
                <p><strong>Name:</strong> {escape(coach_name)}</p>
                <p><strong>Email:</strong> {escape(coach_email)}</p>
                {qualifications_line}
              </div>
              {_button(invitation_url, "Accept Invitation")}
              <p style="font-size: 14px; color: #666;">
                This invitation expires on {expires_at.strftime("%d %B %Y")}.
              </p>
              <p style="font-size: 14px; color: #666;">
                If you didn't expect this invitation, you can safely ignore this email.
              </p>"""

        return EmailService.send_email(
            to=athlete_email,
            subject=f"Coach Invitation from {coach_name} - CIRFPRO",
            html=_layout(body, f"If you have questions, reply to this email or contact {escape(coach_email)}"),
            sender=settings.INVITATION_FROM,
            reply_to=coach_email,
        )

    @staticmethod
    def send_athlete_acceptance_notification(
        coach_email: str,
        coach_name: str,
        athlete_name: str,
        athlete_email: str,
        accepted_at: datetime,
        athlete_profile_url: str,
        experience_level: str | None = None,
        goal_race: str | None = None,
    ) -> EmailResult:
        """Tell a coach that an athlete accepted their invitation; replies go to the athlete."""
        details = [
            ("Name", athlete_name),
            ("Email", athlete_email),
            ("Experience Level", experience_level),
            ("Goal Race", goal_race),
            ("Accepted", accepted_at.strftime("%d %B %Y, %H:%M")),
        ]
        detail_lines = "\n".join(
            f'<p style="margin: 8px 0;"><strong>{label}:</strong> {escape(value)}</p>'
            for label, value in details
            if value
        )
        name = escape(athlete_name)

        body = f"""
              <h2 style="color: #333;">Great News, {escape(coach_name)}!</h2>
              <p style="font-size: 16px; line-height: 1.6;">
                <strong>{name}</strong> has accepted your coaching invitation and is now part
                of your coaching program.
              </p>
              <div style="background-color: #f0fdf4; padding: 20px; border-radius: 8px; border-left: 4px solid {BRAND_COLOR}; margin: 20px 0;">
                <h3 style="margin-top: 0; color: #166534;">New Athlete Details:</h3>
                {detail_lines}
              </div>
              <div style="background-color: #f8f9fa; padding: 20px; border-radius: 8px; margin: 20px 0;">
                <h3 style="margin-top: 0; color: #333;">Recommended Next Steps:</h3>
                <ol style="margin: 0; padding-left: 20px; line-height: 1.8;">
                  <li>Review {name}'s profile and training goals</li>
                  <li>Send a welcome message to establish communication</li>
                  <li>Schedule an initial consultation call</li>
                  <li>Create their first training plan</li>
                </ol>
              </div>
              {_button(athlete_profile_url, "View Athlete Profile")}"""

        resources_url = f"{settings.APP_URL.rstrip('/')}/coach/resources"
        return EmailService.send_email(
            to=coach_email,
            subject=f"{athlete_name} Accepted Your Coaching Invitation! \U0001F389",
            html=_layout(
                body,
                f'Need help getting started? Visit our <a href="{escape(resources_url)}" '
                f'style="color: {BRAND_COLOR};">Coach Resources</a> or reply to this email.',
            ),
            sender=settings.NOTIFICATION_FROM,
            reply_to=athlete_email,
        )


def _button(url: str, label: str) -> str:
    return f"""
              <div style="text-align: center; margin: 30px 0;">
                <a href="{escape(url)}"
                   style="background-color: {BRAND_COLOR}; color: white; padding: 15px 30px;
                          text-decoration: none; border-radius: 5px; font-weight: bold; display: inline-block;">
                  {label}
                </a>
              </div>"""


def _layout(body: str, footer_note: str) -> str:
    """Wrap a message body in the branded header and footer."""
    return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <div style="background-color: {BRAND_COLOR}; padding: 20px; text-align: center;">
            <h1 style="color: white; margin: 0;">CIRFPRO</h1>
            <p style="color: white; margin: 5px 0 0 0;">Professional Running Coaching Platform</p>
          </div>
          <div style="padding: 30px 20px;">{body}
          </div>
          <div style="background-color: #f8f9fa; padding: 20px; text-align: center; font-size: 12px; color: #666;">
            <p>&copy; CIRFPRO. Professional Running Coaching Platform.</p>
            <p>{footer_note}</p>
          </div>
        </div>
    """
