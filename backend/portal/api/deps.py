"""Shared dependencies for API endpoints.

Local-first mode uses DEFAULT_USER_ID; hosted mode verifies the identity
service's access token from the Authorization header or the session cookie.

Per-identity state (profile store, wizard, job board) comes from the
ExperienceRegistry on ``app.state``, so handlers get it by reference.
"""

from dataclasses import dataclass
from typing import Annotated

import jwt
import structlog
from fastapi import Depends, Request

from portal.core.auth import decode_access_token, extract_access_token
from portal.core.config import settings
from portal.core.errors import OnboardingRequiredError, UnauthorizedError
from portal.providers.config import ProviderConfig
from portal.providers.factory import (
    create_identity_provider,
    get_data_store,
    get_object_storage,
)
from portal.providers.identity.base import Identity, IdentityProvider
from portal.providers.storage.base import ObjectStorage
from portal.services.experience_registry import Experience, ExperienceRegistry
from portal.services.route_guard import GuardOutcome, evaluate

logger = structlog.get_logger()


@dataclass(frozen=True)
class AuthContext:
    """Who is calling, and the token to act on their behalf with."""

    identity: Identity
    access_token: str | None = None


def get_auth_context(request: Request) -> AuthContext:
    """Resolve the calling identity.

    Raises:
        UnauthorizedError: No usable credentials. The message never says why.
    """
    if not settings.auth_enabled:
        # Local-first mode: use DEFAULT_USER_ID from environment
        if settings.default_user_id is None:
            raise UnauthorizedError()
        return AuthContext(
            identity=Identity(
                id=str(settings.default_user_id),
                email=settings.default_user_email,
            )
        )

    token = extract_access_token(request)
    if not token:
        raise UnauthorizedError()
    try:
        identity = decode_access_token(token)
    except (jwt.InvalidTokenError, KeyError) as exc:
        logger.info("access_token_rejected", error_type=type(exc).__name__)
        raise UnauthorizedError() from exc
    return AuthContext(identity=identity, access_token=token)


def get_registry(request: Request) -> ExperienceRegistry:
    """Process-wide experience registry, created on first use."""
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        config = ProviderConfig.from_settings(settings)
        registry = ExperienceRegistry(
            get_data_store(config),
            get_object_storage(config),
            settings.completion_policy,
            idle_seconds=settings.experience_idle_seconds,
            max_entries=settings.experience_max_entries,
        )
        request.app.state.registry = registry
    return registry


def get_auth_provider() -> IdentityProvider:
    """Fresh identity provider for one sign-in/sign-out flow."""
    return create_identity_provider(ProviderConfig.from_settings(settings))


CurrentAuth = Annotated[AuthContext, Depends(get_auth_context)]
Registry = Annotated[ExperienceRegistry, Depends(get_registry)]
AuthProvider = Annotated[IdentityProvider, Depends(get_auth_provider)]


async def get_experience(auth: CurrentAuth, registry: Registry) -> Experience:
    return await registry.get(auth.identity, auth.access_token)


CurrentExperience = Annotated[Experience, Depends(get_experience)]


async def get_onboarded_experience(
    request: Request,
    experience: CurrentExperience,
) -> Experience:
    """Experience of an identity whose onboarding is complete.

    Raises:
        OnboardingRequiredError: Route guard redirects to onboarding.
    """
    if experience.store.is_loading:
        # Joins the in-flight load
        await experience.store.load()
    path = request.url.path.removeprefix("/api/v1")
    decision = evaluate(
        path,
        authenticated=True,
        onboarding_complete=experience.store.is_onboarding_complete,
    )
    if decision.outcome is GuardOutcome.REDIRECT and decision.redirect:
        raise OnboardingRequiredError(redirect_to=decision.redirect)
    return experience


OnboardedExperience = Annotated[Experience, Depends(get_onboarded_experience)]


def get_user_storage(auth: CurrentAuth, registry: Registry) -> ObjectStorage:
    return registry.storage_for(auth.access_token)


UserStorage = Annotated[ObjectStorage, Depends(get_user_storage)]
