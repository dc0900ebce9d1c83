# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the CIRFPRO API:
# - test_models.py: Unit tests for Pydantic model validation
# - test_sanitizer.py / test_validators.py / test_utils.py: input handling
# - test_migration.py / test_registration.py / test_verification.py: services
# - test_auth_routes.py / test_auth_dependencies.py / test_email.py: API
# - test_invitations.py: invitation service and routes
# - test_supabase_client.py / test_health.py: store wrapper and health checks
#
# Run tests with: pytest
# =============================================================================
