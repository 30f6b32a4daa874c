"""Roles and permissions for a signed-in identity.

Every identity holds at least the ``user`` role. If the identity has no
role assignment yet, the default role is assigned on first load. Failures
while reading roles never lock a user out: they fall back to the default
``user`` role with ``basic_access``.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from portal.providers.errors import DuplicateRecordError, ProviderError, RecordNotFoundError
from portal.providers.store.base import Collection, DataStore

logger = logging.getLogger(__name__)

USER_ROLE = "user"
ADMIN_ROLE = "admin"

BASIC_ACCESS = "basic_access"
ADMIN_ACCESS = "admin_access"

# Placeholder id when the roles table could not be read
DEFAULT_ROLE_ID = "default"


@dataclass(frozen=True)
class RoleGrant:
    """A role held by the identity."""

    id: str
    name: str
    permissions: tuple[str, ...] = ()


def permissions_for(roles: Iterable[RoleGrant]) -> frozenset[str]:
    """Everyone gets basic_access; admins also get admin_access."""
    granted = {BASIC_ACCESS}
    for role in roles:
        granted.update(role.permissions)
        if role.name == ADMIN_ROLE:
            granted.add(ADMIN_ACCESS)
    return frozenset(granted)


@dataclass(frozen=True)
class Authorization:
    roles: tuple[RoleGrant, ...]
    permissions: frozenset[str] = field(default_factory=frozenset)

    def has_role(self, name: str) -> bool:
        return any(role.name == name for role in self.roles)

    def has_permission(self, name: str) -> bool:
        return name in self.permissions

    def to_dict(self) -> dict[str, Any]:
        return {
            "roles": [{"id": role.id, "name": role.name} for role in self.roles],
            "permissions": sorted(self.permissions),
        }


def default_authorization(role_id: str = DEFAULT_ROLE_ID) -> Authorization:
    roles = (RoleGrant(id=role_id, name=USER_ROLE),)
    return Authorization(roles=roles, permissions=permissions_for(roles))


def _grant_from_row(row: dict[str, Any]) -> RoleGrant:
    return RoleGrant(
        id=str(row["id"]),
        name=str(row["name"]),
        permissions=tuple(row.get("permissions") or ()),
    )


async def ensure_default_role(store: DataStore, user_id: str) -> Authorization:
    """Assign the ``user`` role to ``user_id`` if it is not assigned already.

    An existing assignment is not an error.
    """
    try:
        rows = await store.select_many(Collection.ROLES, {"name": USER_ROLE})
    except ProviderError as e:
        logger.error("Error fetching default role: %s", e)
        return default_authorization()
    if not rows:
        logger.error("Default role %r is missing from the roles table", USER_ROLE)
        return default_authorization()

    role_id = str(rows[0]["id"])
    try:
        await store.insert(Collection.USER_ROLES, {"user_id": user_id, "role_id": role_id})
        logger.info("Assigned default role to %s", user_id)
    except DuplicateRecordError:
        logger.info("User %s already has the default role", user_id)
    except ProviderError as e:
        logger.error("Error assigning default role to %s: %s", user_id, e)
    return default_authorization(role_id)


async def load_authorization(store: DataStore, user_id: str) -> Authorization:
    """Read the identity's roles, assigning the default role when it has none.

    Args:
        store: Data store bound to the identity.
        user_id: Identity subject.

    Returns:
        Authorization with the roles found and the permissions they grant.
    """
    try:
        assignments = await store.select_many(Collection.USER_ROLES, {"user_id": user_id})
    except ProviderError as e:
        logger.error("Error fetching roles for %s: %s", user_id, e)
        return default_authorization()

    roles: list[RoleGrant] = []
    for assignment in assignments:
        try:
            row = await store.select_one(Collection.ROLES, str(assignment["role_id"]))
        except RecordNotFoundError:
            logger.warning("Role %s assigned to %s does not exist", assignment["role_id"], user_id)
            continue
        except ProviderError as e:
            logger.error("Error fetching role %s: %s", assignment["role_id"], e)
            continue
        roles.append(_grant_from_row(row))

    if not roles:
        logger.info("No roles found for %s, ensuring default role", user_id)
        return await ensure_default_role(store, user_id)

    return Authorization(roles=tuple(roles), permissions=permissions_for(roles))
