# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Provides dependency injection for authentication.
#
# The access token is read from (first match wins):
# - Authorization: Bearer <token>   (API clients)
# - the AUTH_COOKIE_NAME cookie     (browser sessions)
#
# Supports both:
# - ES256 (new Supabase JWT signing keys) via JWKS
# - HS256 (legacy Supabase JWT secret) as fallback
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.post("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

import logging
import time
from typing import Optional
from uuid import UUID

import httpx
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from app.auth.models import AuthUser, TokenPayload
from app.config import settings
from app.exceptions import NotAuthenticatedError

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor (absence is handled here, not by FastAPI)
security_optional = HTTPBearer(auto_error=False)

# Cache for JWKS keys
_jwks_cache: dict = {}
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 3600  # 1 hour

ASYMMETRIC_ALGORITHMS = frozenset({"ES256", "RS256"})


def _get_jwks_url() -> str:
    """Get the JWKS URL from Supabase URL."""
    supabase_url = settings.SUPABASE_URL.rstrip('/')
    return f"{supabase_url}/auth/v1/.well-known/jwks.json"


def _fetch_jwks() -> dict:
    """Fetch JWKS from Supabase with caching."""
    global _jwks_cache, _jwks_cache_time

    current_time = time.time()

    if _jwks_cache and (current_time - _jwks_cache_time) < JWKS_CACHE_TTL:
        return _jwks_cache

    try:
        jwks_url = _get_jwks_url()
        response = httpx.get(jwks_url, timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        _jwks_cache_time = current_time
        logger.debug(f"Fetched JWKS from {jwks_url}")
        return _jwks_cache
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Failed to fetch JWKS: {e}")
        # Stale keys are better than none
        if _jwks_cache:
            return _jwks_cache
        return {"keys": []}


def _get_signing_key(token: str) -> tuple[str | dict, str]:
    """
    Get the appropriate signing key for a token.

    HS256 tokens need SUPABASE_JWT_SECRET; asymmetric tokens need a JWKS key
    with a matching `kid`. There is no fallback between the two.

    Returns:
        Tuple of (key, algorithm) to use for verification

    Raises:
        NotAuthenticatedError: If no configured key can verify the token
    """
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError:
        raise NotAuthenticatedError("Invalid token")

    alg = unverified_header.get("alg")
    kid = unverified_header.get("kid")

    if alg == "HS256":
        if not settings.SUPABASE_JWT_SECRET:
            logger.warning("HS256 token rejected: SUPABASE_JWT_SECRET is not set")
            raise NotAuthenticatedError("Invalid token")
        return settings.SUPABASE_JWT_SECRET, "HS256"

    if alg in ASYMMETRIC_ALGORITHMS and kid:
        jwks = _fetch_jwks()
        for key in jwks.get("keys", []):
            if key.get("kid") == kid:
                return key, alg

    logger.warning(f"No signing key for alg={alg}, kid={kid}")
    raise NotAuthenticatedError("Invalid token")


def decode_access_token(token: str) -> AuthUser:
    """
    Verify a Supabase access token and return the user it identifies.

    Raises:
        NotAuthenticatedError: If the token is invalid, expired or malformed
    """
    try:
        signing_key, algorithm = _get_signing_key(token)
        payload = jwt.decode(
            token,
            signing_key,
            algorithms=[algorithm],
            audience="authenticated"
        )
        claims = TokenPayload.model_validate(payload)

    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise NotAuthenticatedError("Token has expired")

    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise NotAuthenticatedError("Invalid token")

    except ValidationError as e:
        logger.warning(f"JWT payload missing required claims: {e}")
        raise NotAuthenticatedError("Invalid token: missing claims")

    try:
        UUID(claims.sub)
    except ValueError:
        logger.warning(f"Invalid UUID in token: {claims.sub}")
        raise NotAuthenticatedError("Invalid token: malformed user ID")

    logger.debug(f"Authenticated user: {claims.sub}")
    return AuthUser(id=claims.sub, email=claims.email)


def _extract_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.AUTH_COOKIE_NAME) or None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional)
) -> AuthUser:
    """
    Extract and validate the caller from the session token.

    This dependency:
    1. Reads the token from the Authorization header or session cookie
    2. Verifies the JWT signature (supports ES256 and HS256)
    3. Validates the token hasn't expired
    4. Returns an AuthUser with the user's ID and email

    Raises:
        NotAuthenticatedError: 401 {"error": "Not authenticated"}
    """
    token = _extract_token(request, credentials)
    if token is None:
        raise NotAuthenticatedError("Missing access token")

    return decode_access_token(token)
