# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Session-based authentication on top of Supabase Auth, plus the account
# lifecycle routes (register, verification callback, pending migration).
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.post("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

from app.auth.dependencies import decode_access_token, get_current_user
from app.auth.models import AuthUser

__all__ = [
    "decode_access_token",
    "get_current_user",
    "AuthUser",
]
