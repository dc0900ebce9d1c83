# =============================================================================
# core/services/migration_service.py - Pending User Migration
# =============================================================================
# Moves a verified registrant from pending_users into users:
#
#   1. fetch the pending row            (missing  -> PendingUserNotFoundError)
#   2. insert the users row             (rejected -> UserCreationError)
#   3. insert athlete_profiles row      (rejected -> undo step 2, ProfileCreationError)
#   4. delete the pending row           (rejected -> logged, reported as partial)
#
# The writes are independent PostgREST calls, not a transaction. Each run
# records what it did in a MigrationResult. Rows left behind by an earlier
# partial run are detected and skipped, so the migration can be re-run.
#
# The user id must come from the authenticated session or from the auth
# provider's verification response, never from request input.
# =============================================================================

import logging
from uuid import UUID

from pydantic import ValidationError

from app.exceptions import (
    PendingUserNotFoundError,
    ProfileCreationError,
    UserCreationError,
)
from core.models.migration import MigrationResult, MigrationStepName, StepStatus
from core.models.user import PendingUser, Role
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import normalize_id

logger = logging.getLogger(__name__)


class PendingUserMigrator:
    """
    Service for completing a registration after email verification.

    Example:
        result = PendingUserMigrator.migrate(user.id)
        if not result.complete:
            ...  # account usable, cleanup outstanding
    """

    @staticmethod
    def migrate(user_id: str | UUID) -> MigrationResult:
        """
        Run the migration for one user.

        Args:
            user_id: Authenticated caller's id

        Returns:
            MigrationResult listing every step; `complete` is False when the
            pending row could not be removed

        Raises:
            PendingUserNotFoundError: No pending row for this id
            UserCreationError: users insert rejected (pending row kept)
            ProfileCreationError: athlete profile insert rejected
            SupabaseClientError: The pending lookup itself failed
        """
        user_id = normalize_id(user_id)
        result = MigrationResult(user_id=user_id)

        logger.info(f"Migration triggered for user: {user_id}")

        pending = PendingUserMigrator._fetch_pending(user_id)
        result.role = pending.role.value
        result.record(MigrationStepName.FETCH_PENDING, StepStatus.COMPLETED)
        logger.info(f"Found pending user: {pending.email}")

        created_user = PendingUserMigrator._create_user(pending, result)

        if pending.role == Role.ATHLETE:
            PendingUserMigrator._create_athlete_profile(pending, result, created_user)
        else:
            result.record(MigrationStepName.CREATE_ATHLETE_PROFILE, StepStatus.SKIPPED)

        PendingUserMigrator._delete_pending(pending, result)

        if result.complete:
            logger.info(f"Migration complete for user: {user_id}")
        else:
            logger.warning(
                f"Migration for user {user_id} finished with failed steps: "
                f"{[s.name.value for s in result.steps if s.status == StepStatus.FAILED]}"
            )
        return result

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    @staticmethod
    def _fetch_pending(user_id: str) -> PendingUser:
        row = SupabaseClient.fetch_pending_user(user_id)
        if not row:
            logger.info(f"No pending user found for {user_id}")
            raise PendingUserNotFoundError(user_id)

        try:
            return PendingUser.model_validate(row)
        except ValidationError as e:
            # A row we cannot read cannot be migrated; surface it like a write failure
            logger.error(f"Pending user {user_id} has invalid data: {e}")
            raise UserCreationError(user_id, f"Pending user record is invalid: {e.errors()[0]['msg']}")

    @staticmethod
    def _create_user(pending: PendingUser, result: MigrationResult) -> bool:
        """Insert the users row. Returns True if this run created it."""
        try:
            existing = SupabaseClient.fetch_user(pending.id)
        except SupabaseClientError as e:
            logger.error(f"Failed to check for existing user {pending.id}: {e}")
            result.record(MigrationStepName.CREATE_USER, StepStatus.FAILED, e.message)
            raise UserCreationError(pending.id, e.message)

        if existing:
            logger.info(f"User {pending.id} already exists, resuming earlier migration")
            result.record(MigrationStepName.CREATE_USER, StepStatus.SKIPPED)
            return False

        try:
            SupabaseClient.insert_user(pending.to_user_row())
        except SupabaseClientError as e:
            logger.error(f"Failed to create user {pending.id}: {e}")
            result.record(MigrationStepName.CREATE_USER, StepStatus.FAILED, e.message)
            raise UserCreationError(pending.id, e.message)

        result.record(MigrationStepName.CREATE_USER, StepStatus.COMPLETED)
        logger.info(f"User created: {pending.id}")
        return True

    @staticmethod
    def _create_athlete_profile(
        pending: PendingUser,
        result: MigrationResult,
        created_user: bool,
    ) -> None:
        try:
            if SupabaseClient.fetch_athlete_profile(pending.id):
                result.record(MigrationStepName.CREATE_ATHLETE_PROFILE, StepStatus.SKIPPED)
                return
            SupabaseClient.insert_athlete_profile(pending.to_athlete_profile_row())
        except SupabaseClientError as e:
            logger.error(f"Failed to create athlete profile for {pending.id}: {e}")
            result.record(MigrationStepName.CREATE_ATHLETE_PROFILE, StepStatus.FAILED, e.message)
            rolled_back = PendingUserMigrator._rollback_user(pending.id) if created_user else False
            raise ProfileCreationError(pending.id, e.message, rolled_back=rolled_back)

        result.record(MigrationStepName.CREATE_ATHLETE_PROFILE, StepStatus.COMPLETED)
        logger.info(f"Athlete profile created for {pending.id}")

    @staticmethod
    def _rollback_user(user_id: str) -> bool:
        """Compensate a users insert so the pending row stays the only record."""
        try:
            SupabaseClient.delete_user(user_id)
        except SupabaseClientError as e:
            logger.error(f"Rollback of user {user_id} failed, manual cleanup required: {e}")
            return False
        logger.info(f"Rolled back user {user_id}")
        return True

    @staticmethod
    def _delete_pending(pending: PendingUser, result: MigrationResult) -> None:
        try:
            SupabaseClient.delete_pending_user(pending.id)
        except SupabaseClientError as e:
            logger.warning(f"Failed to delete pending user {pending.id}: {e}")
            result.record(MigrationStepName.DELETE_PENDING, StepStatus.FAILED, e.message)
            return

        result.record(MigrationStepName.DELETE_PENDING, StepStatus.COMPLETED)
        logger.info(f"Pending user deleted: {pending.id}")
