# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from typing import Optional

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """
    Authenticated user extracted from a Supabase JWT.

    This is the minimal user info available from the token itself,
    without querying the database. Routes pass `id` explicitly to services.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None


class TokenPayload(BaseModel):
    """
    Decoded JWT token payload from Supabase.

    Supabase tokens include standard JWT claims plus custom claims.
    """
    sub: str  # User ID
    email: Optional[str] = None
    aud: str  # Audience (should be "authenticated")
    exp: int  # Expiration timestamp
    iat: Optional[int] = None  # Issued at timestamp
    role: Optional[str] = None  # Postgres role, not the account role
