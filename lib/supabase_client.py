# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for the Supabase operations the
# account lifecycle needs:
# - Pending user rows (created at sign-up, removed on migration)
# - Active user rows and athlete profiles
# - Coach/athlete invitations and the relationships they lead to
# - Auth calls (sign-up, OTP verification, admin user deletion)
#
# Table access goes through one service_role client shared by the process.
# Auth calls that establish a user session use a fresh anon client per call
# so that session never attaches to the shared client.
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   pending = SupabaseClient.fetch_pending_user(user_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import Client, create_client

from app.config import settings
from lib.utils import ApplicationError, error_message, normalize_id

# Set up logging for this module
logger = logging.getLogger(__name__)

PENDING_USERS_TABLE = "pending_users"
USERS_TABLE = "users"
ATHLETE_PROFILES_TABLE = "athlete_profiles"
COACH_PROFILES_TABLE = "coach_profiles"
INVITATIONS_TABLE = "coach_athlete_invitations"
RELATIONSHIPS_TABLE = "coach_athlete_relationships"

# PostgREST code for "JSON object requested, multiple (or no) rows returned"
NO_ROWS_CODE = "PGRST116"


class SupabaseClientError(ApplicationError):
    """
    Error during Supabase operations.

    `message` carries the store's own error text so API layers can pass it
    through; `code` says which operation failed.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, suggestion=suggestion, details=details)


def _is_no_rows(exc: Exception) -> bool:
    return getattr(exc, "code", None) == NO_ROWS_CODE or NO_ROWS_CODE in str(exc)


class SupabaseClient:
    """
    Typed wrapper for Supabase database and auth operations.

    Implements singleton pattern - one service client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        pending = SupabaseClient.fetch_pending_user("550e8400-...")
        if pending:
            SupabaseClient.insert_user({...})
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        This is appropriate for server-side operations.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def create_auth_client(cls) -> Client:
        """
        Create a throwaway anon client for session-bearing auth calls.

        verify_otp and sign_up store the resulting session on the client they
        run on; using the shared service client would make later table queries
        run as that user.
        """
        try:
            return create_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to create Supabase auth client: {e}",
                code="CLIENT_INIT_FAILED",
                suggestion="Check SUPABASE_URL and SUPABASE_ANON_KEY in your .env file"
            )

    # -------------------------------------------------------------------------
    # Generic helpers
    # -------------------------------------------------------------------------

    @classmethod
    def _fetch_one(
        cls,
        table: str,
        column: str,
        value: str | UUID,
        code: str,
    ) -> dict[str, Any] | None:
        return cls._fetch_match(table, {column: normalize_id(value)}, code)

    @classmethod
    def _fetch_match(cls, table: str, filters: dict[str, str], code: str) -> dict[str, Any] | None:
        """Fetch the single row equal on every column of `filters`, or None."""
        client = cls.get_client()

        try:
            response = (
                client.table(table)
                .select("*")
                .match(filters)
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if _is_no_rows(e):
                return None
            raise SupabaseClientError(
                message=error_message(e),
                code=code,
                details={"table": table, **filters}
            )

    @classmethod
    def _insert(cls, table: str, data: dict[str, Any], code: str) -> dict[str, Any]:
        client = cls.get_client()

        try:
            response = client.table(table).insert(data).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=error_message(e),
                code=code,
                details={"table": table}
            )

        if response.data:
            return response.data[0]
        raise SupabaseClientError(
            message=f"Insert into {table} returned no data",
            code="INSERT_NO_DATA",
            details={"table": table}
        )

    @classmethod
    def _delete(cls, table: str, column: str, value: str | UUID, code: str) -> int:
        """Delete matching rows; returns how many were removed."""
        client = cls.get_client()
        value_str = normalize_id(value)

        try:
            response = client.table(table).delete().eq(column, value_str).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=error_message(e),
                code=code,
                details={"table": table, column: value_str}
            )
        return len(response.data or [])

    # -------------------------------------------------------------------------
    # Pending Users
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_pending_user(cls, user_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch the pending registration for an auth user id.

        Returns:
            Row dict, or None if no pending row exists

        Raises:
            SupabaseClientError: If the query fails for any other reason
        """
        return cls._fetch_one(PENDING_USERS_TABLE, "id", user_id, "FETCH_PENDING_USER_FAILED")

    @classmethod
    def insert_pending_user(cls, data: dict[str, Any]) -> dict[str, Any]:
        return cls._insert(PENDING_USERS_TABLE, data, "INSERT_PENDING_USER_FAILED")

    @classmethod
    def delete_pending_user(cls, user_id: str | UUID) -> int:
        return cls._delete(PENDING_USERS_TABLE, "id", user_id, "DELETE_PENDING_USER_FAILED")

    # -------------------------------------------------------------------------
    # Users and Profiles
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_user(cls, user_id: str | UUID) -> dict[str, Any] | None:
        return cls._fetch_one(USERS_TABLE, "id", user_id, "FETCH_USER_FAILED")

    @classmethod
    def insert_user(cls, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert an active user row.

        Raises:
            SupabaseClientError: With the store's message, e.g. a duplicate
                key violation when the id already exists
        """
        return cls._insert(USERS_TABLE, data, "INSERT_USER_FAILED")

    @classmethod
    def delete_user(cls, user_id: str | UUID) -> int:
        return cls._delete(USERS_TABLE, "id", user_id, "DELETE_USER_FAILED")

    @classmethod
    def fetch_athlete_profile(cls, user_id: str | UUID) -> dict[str, Any] | None:
        return cls._fetch_one(ATHLETE_PROFILES_TABLE, "user_id", user_id, "FETCH_ATHLETE_PROFILE_FAILED")

    @classmethod
    def insert_athlete_profile(cls, data: dict[str, Any]) -> dict[str, Any]:
        return cls._insert(ATHLETE_PROFILES_TABLE, data, "INSERT_ATHLETE_PROFILE_FAILED")

    @classmethod
    def fetch_user_by_email(cls, email: str) -> dict[str, Any] | None:
        return cls._fetch_one(USERS_TABLE, "email", email, "FETCH_USER_FAILED")

    @classmethod
    def fetch_coach_profile(cls, user_id: str | UUID) -> dict[str, Any] | None:
        return cls._fetch_one(COACH_PROFILES_TABLE, "user_id", user_id, "FETCH_COACH_PROFILE_FAILED")

    @classmethod
    def fetch_coach_profile_by_id(cls, profile_id: str | UUID) -> dict[str, Any] | None:
        return cls._fetch_one(COACH_PROFILES_TABLE, "id", profile_id, "FETCH_COACH_PROFILE_FAILED")

    @classmethod
    def fetch_athlete_profile_by_id(cls, profile_id: str | UUID) -> dict[str, Any] | None:
        return cls._fetch_one(ATHLETE_PROFILES_TABLE, "id", profile_id, "FETCH_ATHLETE_PROFILE_FAILED")

    # -------------------------------------------------------------------------
    # Coach/Athlete Invitations
    # -------------------------------------------------------------------------

    @classmethod
    def insert_invitation(cls, data: dict[str, Any]) -> dict[str, Any]:
        return cls._insert(INVITATIONS_TABLE, data, "INSERT_INVITATION_FAILED")

    @classmethod
    def fetch_invitation(cls, invitation_id: str | UUID, coach_id: str | UUID) -> dict[str, Any] | None:
        """Fetch an invitation only if it belongs to `coach_id`."""
        return cls._fetch_match(
            INVITATIONS_TABLE,
            {"id": normalize_id(invitation_id), "coach_id": normalize_id(coach_id)},
            "FETCH_INVITATION_FAILED",
        )

    @classmethod
    def fetch_invitation_by_token(cls, token: str) -> dict[str, Any] | None:
        return cls._fetch_one(INVITATIONS_TABLE, "invitation_token", token, "FETCH_INVITATION_FAILED")

    @classmethod
    def update_invitation(cls, invitation_id: str | UUID, data: dict[str, Any]) -> dict[str, Any]:
        """
        Update one invitation and return the stored row.

        Raises:
            SupabaseClientError: If the update fails or matched no row
        """
        client = cls.get_client()
        id_str = normalize_id(invitation_id)

        try:
            response = client.table(INVITATIONS_TABLE).update(data).eq("id", id_str).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=error_message(e),
                code="UPDATE_INVITATION_FAILED",
                details={"table": INVITATIONS_TABLE, "id": id_str}
            )

        if response.data:
            return response.data[0]
        raise SupabaseClientError(
            message=f"Update of {INVITATIONS_TABLE} matched no rows",
            code="UPDATE_NO_DATA",
            details={"table": INVITATIONS_TABLE, "id": id_str}
        )

    @classmethod
    def list_invitations(
        cls,
        coach_id: str | UUID,
        offset: int,
        limit: int,
        status: str | None = None,
        email: str | None = None,
        search: str | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        """
        One page of a coach's invitations, newest first.

        `email` and `search` are substring matches; callers must strip
        PostgREST filter syntax from them first.

        Returns:
            Tuple of (rows, total matching the filters)
        """
        client = cls.get_client()

        query = client.table(INVITATIONS_TABLE).select("*", count="exact")
        query = query.eq("coach_id", normalize_id(coach_id))

        if status:
            query = query.eq("status", status)
        if email:
            query = query.ilike("email", f"%{email}%")
        if search:
            query = query.or_(f"email.ilike.%{search}%,message.ilike.%{search}%")

        query = query.order("created_at", desc=True).range(offset, offset + limit - 1)

        try:
            response = query.execute()
        except Exception as e:
            raise SupabaseClientError(
                message=error_message(e),
                code="LIST_INVITATIONS_FAILED",
                details={"table": INVITATIONS_TABLE}
            )
        return response.data or [], response.count or 0

    @classmethod
    def fetch_invitation_statuses(cls, coach_id: str | UUID) -> list[str]:
        """Status of every invitation the coach has sent."""
        client = cls.get_client()

        try:
            response = (
                client.table(INVITATIONS_TABLE)
                .select("status")
                .eq("coach_id", normalize_id(coach_id))
                .execute()
            )
        except Exception as e:
            raise SupabaseClientError(
                message=error_message(e),
                code="FETCH_INVITATION_STATS_FAILED",
                details={"table": INVITATIONS_TABLE}
            )
        return [row["status"] for row in response.data or []]

    @classmethod
    def fetch_open_invitations(cls, email: str, now: str) -> list[dict[str, Any]]:
        """Pending invitations addressed to `email` that expire after `now`."""
        client = cls.get_client()

        try:
            response = (
                client.table(INVITATIONS_TABLE)
                .select("*")
                .eq("email", email)
                .eq("status", "pending")
                .gt("expires_at", now)
                .order("sent_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise SupabaseClientError(
                message=error_message(e),
                code="FETCH_PENDING_INVITATIONS_FAILED",
                details={"table": INVITATIONS_TABLE}
            )
        return response.data or []

    @classmethod
    def fetch_active_relationship(
        cls,
        coach_profile_id: str | UUID,
        athlete_profile_id: str | UUID,
    ) -> dict[str, Any] | None:
        return cls._fetch_match(
            RELATIONSHIPS_TABLE,
            {
                "coach_id": normalize_id(coach_profile_id),
                "athlete_id": normalize_id(athlete_profile_id),
                "status": "active",
            },
            "FETCH_RELATIONSHIP_FAILED",
        )

    # -------------------------------------------------------------------------
    # Auth Admin
    # -------------------------------------------------------------------------

    @classmethod
    def delete_auth_user(cls, user_id: str | UUID) -> None:
        """
        Remove an auth user through the admin API (service key required).

        Used to undo a sign-up whose pending row could not be written.
        """
        client = cls.get_client()
        user_id_str = normalize_id(user_id)

        try:
            client.auth.admin.delete_user(user_id_str)
            logger.info(f"Deleted auth user {user_id_str}")
        except Exception as e:
            raise SupabaseClientError(
                message=error_message(e),
                code="DELETE_AUTH_USER_FAILED",
                suggestion="Remove the user manually from the Supabase dashboard",
                details={"user_id": user_id_str}
            )
