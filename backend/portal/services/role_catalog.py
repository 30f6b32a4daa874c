"""Catalog of job roles a candidate can select during onboarding."""

from dataclasses import dataclass


@dataclass(frozen=True)
class JobRole:
    id: str
    name: str
    category: str


AVAILABLE_ROLES: tuple[JobRole, ...] = (
    JobRole("frontend", "Frontend Engineer", "engineering"),
    JobRole("backend", "Backend Engineer", "engineering"),
    JobRole("fullstack", "Full Stack Engineer", "engineering"),
    JobRole("mobile", "Mobile Developer", "engineering"),
    JobRole("devops", "DevOps / SRE", "engineering"),
    JobRole("data", "Data Scientist", "data"),
    JobRole("pm", "Product Manager", "product"),
    JobRole("design", "UX/UI Designer", "design"),
    JobRole("eng_manager", "Engineering Manager", "management"),
)

_ROLES_BY_ID = {role.id: role for role in AVAILABLE_ROLES}


def get_role(role_id: str) -> JobRole | None:
    return _ROLES_BY_ID.get(role_id)


def roles_by_category() -> dict[str, list[JobRole]]:
    """Roles grouped by category, in catalog order."""
    grouped: dict[str, list[JobRole]] = {}
    for role in AVAILABLE_ROLES:
        grouped.setdefault(role.category, []).append(role)
    return grouped


def unknown_roles(role_ids: list[str]) -> list[str]:
    """Ids not present in the catalog."""
    return [role_id for role_id in role_ids if role_id not in _ROLES_BY_ID]
