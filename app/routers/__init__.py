# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - email.py: Email provider diagnostics (test email)
# - invitations.py: Coach invitations to athletes
# - notifications.py: Acceptance emails to coaches
#
# Account routes live in app/auth/routes.py.
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import email
from . import health
from . import invitations
from . import notifications

__all__ = [
    "email",
    "health",
    "invitations",
    "notifications",
]
