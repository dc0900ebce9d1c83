# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the CIRFPRO account API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    CirfproException,
    cirfpro_exception_handler,
    validation_exception_handler,
)
from app.routers import email, health, invitations, notifications
from app.auth import routes as auth_routes

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup configuration and shutdown."""
    logger.info(f"Starting CIRFPRO API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    if not settings.SUPABASE_JWT_SECRET:
        logger.warning("SUPABASE_JWT_SECRET is not set; HS256 tokens will be rejected")

    yield

    logger.info("Shutting down CIRFPRO API")


# Create FastAPI application
app = FastAPI(
    title="CIRFPRO API",
    description="""
## Account API for the CIRFPRO coaching platform

Server-side half of sign-up and email verification on top of Supabase.

### Account Lifecycle

1. **Register** - `POST /api/v1/auth/register` creates the auth user and a pending registration
2. **Verify** - the email link hits `GET /api/v1/auth/callback`, which verifies the token
   and moves the pending registration into `users` (athletes also get an athlete profile)
3. **Retry** - `POST /api/v1/auth/move-pending` re-runs the migration for the signed-in caller

### Invitations

Coaches invite athletes with `POST /api/v1/invitations/send`; the emailed link is
resolved by `GET /api/v1/invitations/validate/{token}`.
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Auth",
            "description": "Registration, email verification and account activation",
        },
        {
            "name": "Invitations",
            "description": "Coach invitations to athletes and acceptance notifications",
        },
        {
            "name": "Email",
            "description": "Email provider diagnostics",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(CirfproException)
async def handle_cirfpro_exception(request: Request, exc: CirfproException):
    """Handle custom CIRFPRO exceptions."""
    return await cirfpro_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_exception(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies and query strings."""
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Account lifecycle endpoints
app.include_router(
    auth_routes.router,
    prefix="/api/v1/auth",
    tags=["Auth"]
)

# Coach/athlete invitations
app.include_router(
    invitations.router,
    prefix="/api/v1/invitations",
    tags=["Invitations"]
)

app.include_router(
    notifications.router,
    prefix="/api/v1/notifications",
    tags=["Invitations"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Email diagnostics
if settings.ENABLE_TEST_ROUTES:
    app.include_router(
        email.router,
        prefix="/api/v1",
        tags=["Email"]
    )


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "CIRFPRO API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
