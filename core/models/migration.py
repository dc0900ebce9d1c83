# =============================================================================
# core/models/migration.py - Migration Result Schemas
# =============================================================================
# Structured outcome of moving a pending user into the users table.
# Each sub-step is reported so callers can tell a fully migrated account
# from one whose cleanup is still outstanding.
# =============================================================================

from enum import Enum

from pydantic import BaseModel, Field


class MigrationStepName(str, Enum):
    FETCH_PENDING = "fetch_pending"
    CREATE_USER = "create_user"
    CREATE_ATHLETE_PROFILE = "create_athlete_profile"
    DELETE_PENDING = "delete_pending"


class StepStatus(str, Enum):
    """
    - completed: the write happened in this run
    - skipped: nothing to do (not applicable, or already done by an earlier run)
    - failed: the write was attempted and rejected
    """
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


class MigrationStep(BaseModel):
    name: MigrationStepName
    status: StepStatus
    error: str | None = None


class MigrationResult(BaseModel):
    """
    Outcome of PendingUserMigrator.migrate().

    Example:
        {
            "user_id": "550e8400-...",
            "role": "athlete",
            "steps": [
                {"name": "fetch_pending", "status": "completed"},
                {"name": "create_user", "status": "completed"},
                {"name": "create_athlete_profile", "status": "completed"},
                {"name": "delete_pending", "status": "failed", "error": "..."}
            ]
        }
    """

    user_id: str
    role: str | None = None
    steps: list[MigrationStep] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        """True when no step failed."""
        return all(step.status != StepStatus.FAILED for step in self.steps)

    def record(
        self,
        name: MigrationStepName,
        status: StepStatus,
        error: str | None = None,
    ) -> None:
        self.steps.append(MigrationStep(name=name, status=status, error=error))

    def step(self, name: MigrationStepName) -> MigrationStep | None:
        for s in self.steps:
            if s.name == name:
                return s
        return None
