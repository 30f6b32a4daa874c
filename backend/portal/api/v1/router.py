"""API v1 router aggregator.

All v1 endpoint routers are included here under the /api/v1 prefix.
"""

from fastapi import APIRouter

from portal.api.v1 import auth, auth_oauth, dashboard, me, onboarding, profile, roles, sections

router = APIRouter()

# =============================================================================
# Authentication
# =============================================================================

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(auth_oauth.router, prefix="/auth", tags=["auth"])
router.include_router(me.router, prefix="/me", tags=["auth"])

# =============================================================================
# Profile and onboarding
# =============================================================================

router.include_router(profile.router, prefix="/profile", tags=["profile"])
router.include_router(sections.router, prefix="/sections", tags=["sections"])
router.include_router(onboarding.router, prefix="/onboarding", tags=["onboarding"])
router.include_router(roles.router, prefix="/roles", tags=["roles"])

# =============================================================================
# Dashboard (requires completed onboarding)
# =============================================================================

router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
router.include_router(dashboard.jobs_router, prefix="/jobs", tags=["dashboard"])
router.include_router(dashboard.companies_router, prefix="/companies", tags=["dashboard"])
