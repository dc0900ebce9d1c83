# =============================================================================
# app/routers/email.py - Email Diagnostics
# =============================================================================
# POST /test-email sends a fixed message through Resend so operators can
# check the provider setup. Mounted only when ENABLE_TEST_ROUTES is set.
#
# Provider failures are reported in the body ({"success": false}) rather than
# as an HTTP error, so the caller always sees what Resend answered.
# =============================================================================

import logging
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from core.services.email_service import EmailService
from lib.sanitizer import sanitize_email

logger = logging.getLogger(__name__)

router = APIRouter()


class TestEmailRequest(BaseModel):
    """Body of POST /test-email."""
    email: str = Field(..., min_length=3, max_length=320, description="Recipient address")


@router.post("/test-email")
def send_test_email(request: TestEmailRequest) -> dict[str, Any]:
    """
    Send the diagnostic test email.

    Returns:
        {"data": {...}, "success": true} or {"error": ..., "success": false}
    """
    recipient = sanitize_email(request.email)
    logger.info(f"Sending test email to {recipient}")

    result = EmailService.send_test_email(recipient)

    if not result.success:
        return {"error": result.error, "success": False}
    return {"data": result.data, "success": True}
