# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the account lifecycle logic:
# - models/: Pydantic schemas for account tables and API payloads
# - services/: registration, verification, migration and email
#
# Routes in app/ stay thin and delegate here.
# =============================================================================
