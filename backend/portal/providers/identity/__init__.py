"""Identity provider module.

Identity provider interface and adapters.
"""

from portal.providers.identity.base import (
    AuthEvent,
    AuthSession,
    Identity,
    IdentityProvider,
    Subscription,
)
from portal.providers.identity.mock_adapter import MockIdentityProvider
from portal.providers.identity.supabase_adapter import SupabaseIdentityAdapter

__all__ = [
    # Base types
    "AuthEvent",
    "AuthSession",
    "Identity",
    "IdentityProvider",
    "Subscription",
    # Adapters
    "MockIdentityProvider",
    "SupabaseIdentityAdapter",
]
