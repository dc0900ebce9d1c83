# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - In-memory stand-in for the Supabase account tables
# - FastAPI TestClient with an overridable authenticated caller
# =============================================================================

import copy
import os
from datetime import datetime, timezone
from uuid import uuid4

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length")
os.environ.setdefault("RESEND_API_KEY", "re_test_key")
os.environ.setdefault("APP_URL", "http://localhost:3000")
os.environ.setdefault("API_PUBLIC_URL", "http://localhost:8000")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("ENABLE_TEST_ROUTES", "true")
os.environ.setdefault("DEBUG", "true")

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from lib.supabase_client import SupabaseClientError


# =============================================================================
# In-memory account store
# =============================================================================

class FakeAccountStore:
    """
    Stand-in for SupabaseClient backed by dicts.

    Implements the class methods the services call. `fail(method, message)`
    makes the next and all later calls to that method raise
    SupabaseClientError, like a store that keeps rejecting a write.
    """

    def __init__(self):
        self.pending_users: dict[str, dict] = {}
        self.users: dict[str, dict] = {}
        self.athlete_profiles: dict[str, dict] = {}
        self.coach_profiles: dict[str, dict] = {}
        self.invitations: dict[str, dict] = {}
        self.relationships: list[dict] = []
        self.list_filters: dict | None = None
        self._failures: dict[str, SupabaseClientError] = {}
        self.calls: list[str] = []
        # Per-request anon client used for verify_otp / sign_up
        self.auth_client = MagicMock()

    def fail(self, method: str, message: str) -> None:
        self._failures[method] = SupabaseClientError(message, code=method.upper())

    def _enter(self, method: str) -> None:
        self.calls.append(method)
        if method in self._failures:
            raise self._failures[method]

    # pending_users
    def fetch_pending_user(self, user_id):
        self._enter("fetch_pending_user")
        row = self.pending_users.get(str(user_id))
        return copy.deepcopy(row) if row else None

    def insert_pending_user(self, data):
        self._enter("insert_pending_user")
        self.pending_users[data["id"]] = dict(data)
        return dict(data)

    def delete_pending_user(self, user_id):
        self._enter("delete_pending_user")
        return 1 if self.pending_users.pop(str(user_id), None) else 0

    # users
    def fetch_user(self, user_id):
        self._enter("fetch_user")
        row = self.users.get(str(user_id))
        return copy.deepcopy(row) if row else None

    def insert_user(self, data):
        self._enter("insert_user")
        if data["id"] in self.users:
            raise SupabaseClientError(
                'duplicate key value violates unique constraint "users_pkey"',
                code="INSERT_USER_FAILED",
            )
        self.users[data["id"]] = dict(data)
        return dict(data)

    def delete_user(self, user_id):
        self._enter("delete_user")
        return 1 if self.users.pop(str(user_id), None) else 0

    # profiles
    def fetch_athlete_profile(self, user_id):
        self._enter("fetch_athlete_profile")
        row = self.athlete_profiles.get(str(user_id))
        return copy.deepcopy(row) if row else None

    def insert_athlete_profile(self, data):
        self._enter("insert_athlete_profile")
        self.athlete_profiles[data["user_id"]] = dict(data)
        return dict(data)

    def fetch_coach_profile(self, user_id):
        self._enter("fetch_coach_profile")
        row = self.coach_profiles.get(str(user_id))
        return copy.deepcopy(row) if row else None

    def fetch_coach_profile_by_id(self, profile_id):
        self._enter("fetch_coach_profile_by_id")
        return self._find(self.coach_profiles.values(), id=str(profile_id))

    def fetch_athlete_profile_by_id(self, profile_id):
        self._enter("fetch_athlete_profile_by_id")
        return self._find(self.athlete_profiles.values(), id=str(profile_id))

    def fetch_user_by_email(self, email):
        self._enter("fetch_user_by_email")
        return self._find(self.users.values(), email=email)

    # coach_athlete_invitations / coach_athlete_relationships
    def insert_invitation(self, data):
        self._enter("insert_invitation")
        row = {
            "id": str(uuid4()),
            "created_at": datetime.now(timezone.utc).isoformat(),
            "accepted_at": None,
            **data,
        }
        self.invitations[row["id"]] = row
        return copy.deepcopy(row)

    def fetch_invitation(self, invitation_id, coach_id):
        self._enter("fetch_invitation")
        return self._find(self.invitations.values(), id=str(invitation_id), coach_id=str(coach_id))

    def fetch_invitation_by_token(self, token):
        self._enter("fetch_invitation_by_token")
        return self._find(self.invitations.values(), invitation_token=token)

    def update_invitation(self, invitation_id, data):
        self._enter("update_invitation")
        row = self.invitations.get(str(invitation_id))
        if row is None:
            raise SupabaseClientError("Update matched no rows", code="UPDATE_NO_DATA")
        row.update(data)
        return copy.deepcopy(row)

    def list_invitations(self, coach_id, offset, limit, status=None, email=None, search=None):
        self._enter("list_invitations")
        self.list_filters = {"status": status, "email": email, "search": search}
        rows = [r for r in self.invitations.values() if r["coach_id"] == str(coach_id)]
        if status:
            rows = [r for r in rows if r["status"] == status]
        if email:
            rows = [r for r in rows if email.lower() in r["email"].lower()]
        if search:
            rows = [
                r for r in rows
                if search.lower() in r["email"].lower() or search.lower() in (r.get("message") or "").lower()
            ]
        rows.sort(key=lambda r: r.get("created_at") or "", reverse=True)
        return copy.deepcopy(rows[offset:offset + limit]), len(rows)

    def fetch_invitation_statuses(self, coach_id):
        self._enter("fetch_invitation_statuses")
        return [r["status"] for r in self.invitations.values() if r["coach_id"] == str(coach_id)]

    def fetch_open_invitations(self, email, now):
        self._enter("fetch_open_invitations")
        cutoff = datetime.fromisoformat(now)
        return [
            copy.deepcopy(r) for r in self.invitations.values()
            if r["email"] == email
            and r["status"] == "pending"
            and datetime.fromisoformat(r["expires_at"]) > cutoff
        ]

    def fetch_active_relationship(self, coach_profile_id, athlete_profile_id):
        self._enter("fetch_active_relationship")
        return self._find(
            self.relationships,
            coach_id=str(coach_profile_id),
            athlete_id=str(athlete_profile_id),
            status="active",
        )

    @staticmethod
    def _find(rows, **filters):
        for row in rows:
            if all(row.get(k) == v for k, v in filters.items()):
                return copy.deepcopy(row)
        return None

    # auth
    def create_auth_client(self):
        self._enter("create_auth_client")
        return self.auth_client

    def delete_auth_user(self, user_id):
        self._enter("delete_auth_user")


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def account_store():
    """FakeAccountStore patched in wherever services and routes use SupabaseClient."""
    store = FakeAccountStore()
    with patch("core.services.migration_service.SupabaseClient", store), \
            patch("core.services.registration_service.SupabaseClient", store), \
            patch("core.services.verification_service.SupabaseClient", store), \
            patch("core.services.invitation_service.SupabaseClient", store), \
            patch("app.auth.routes.SupabaseClient", store):
        yield store


@pytest.fixture
def pending_athlete():
    """Pending athlete registration (minimal columns)."""
    return {
        "id": "u1",
        "email": "a@b.com",
        "role": "athlete",
        "experience_level": "beginner",
    }


@pytest.fixture
def pending_coach():
    """Pending coach registration."""
    return {
        "id": "c1",
        "email": "coach@example.com",
        "role": "coach",
        "first_name": "Grace",
        "last_name": "Hopper",
        "qualifications": ["UKA Level 3"],
        "specializations": ["Marathon"],
    }


@pytest.fixture
def app():
    from app.main import app as fastapi_app

    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """TestClient that reports unhandled errors as 500 responses."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def login_as(app):
    """Override the session dependency: login_as("u1") makes "u1" the caller."""
    from app.auth.dependencies import get_current_user
    from app.auth.models import AuthUser

    def _login(user_id: str, email: str | None = None):
        app.dependency_overrides[get_current_user] = lambda: AuthUser(id=user_id, email=email)

    return _login


@pytest.fixture
def auth_error():
    """Factory for Supabase AuthError instances carrying a message and HTTP status."""
    from supabase import AuthError

    class FakeAuthError(AuthError):
        def __init__(self, message: str, status: int = 400):
            Exception.__init__(self, message)
            self.message = message
            self.status = status
            self.code = None
            self.name = "AuthApiError"

    return FakeAuthError
