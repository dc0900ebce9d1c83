# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .email_service import EmailResult, EmailService
from .invitation_service import InvitationService
from .migration_service import PendingUserMigrator
from .registration_service import RegistrationService
from .verification_service import VerificationResult, VerificationService

__all__ = [
    "EmailResult",
    "EmailService",
    "InvitationService",
    "PendingUserMigrator",
    "RegistrationService",
    "VerificationResult",
    "VerificationService",
]
