"""Profile aggregate - the merged in-memory view of one identity's data.

Three remote rows (profiles, user_preferences, user_onboarding) plus the
identity's own metadata fold into a single ProfileAggregate. The reverse
direction splits the aggregate back into the three upsert payloads.

Merge precedence per attribute, first non-empty value wins:
    profile row > preferences row > onboarding row > identity metadata > default
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from portal.providers.identity.base import Identity


class StagePreference(str, Enum):
    """Tri-state preference for a company stage."""

    NEUTRAL = "neutral"
    PREFERRED = "preferred"
    AVOID = "avoid"


class RemotePreference(str, Enum):
    """Where the candidate wants to work."""

    REMOTE = "remote"
    HYBRID = "hybrid"
    OFFICE = "office"
    FLEXIBLE = "flexible"


class EmploymentType(str, Enum):
    """Kind of employment the candidate is looking for."""

    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"
    INTERNSHIP = "internship"


COMPANY_STAGES = ("early_stage", "late_stage", "enterprise")


def default_stage_preferences() -> dict[str, StagePreference]:
    return {stage: StagePreference.NEUTRAL for stage in COMPANY_STAGES}


@dataclass(frozen=True)
class ResumeReference:
    """Uploaded résumé: where it lives and what it was called."""

    file_url: str
    file_name: str
    upload_date: str

    def to_dict(self) -> dict[str, str]:
        return dataclasses.asdict(self)


@dataclass
class ProfileAggregate:
    """Merged profile, preferences and onboarding progress for one identity.

    Owned by ProfileStore; everything else reads snapshots.

    Attributes:
        id: Identity subject.
        completed_steps: Section ids in the order they were completed (no
            duplicates).
        onboarding_completed: Persisted completion flag; the completion
            evaluator decides what gets written back.
    """

    id: str
    full_name: str = ""
    email: str = ""
    avatar_url: str = ""
    phone_number: str = ""
    location: str = ""
    title: str = ""
    bio: str = ""

    linkedin_url: str = ""
    github_url: str = ""
    website_url: str = ""
    resume_url: str = ""
    resume: ResumeReference | None = None

    company_stage_preferences: dict[str, StagePreference] = field(
        default_factory=default_stage_preferences
    )
    locations: list[str] = field(default_factory=list)
    remote_preference: RemotePreference = RemotePreference.FLEXIBLE
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    graduation_date: str | None = None
    education_level: str | None = None
    experience_level: str | None = None
    salary_min: int | None = None
    salary_max: int | None = None

    selected_roles: list[str] = field(default_factory=list)
    completed_steps: list[str] = field(default_factory=list)
    onboarding_completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation (enums as their values)."""
        data = dataclasses.asdict(self)
        data["company_stage_preferences"] = {
            stage: pref.value for stage, pref in self.company_stage_preferences.items()
        }
        data["remote_preference"] = self.remote_preference.value
        data["employment_type"] = self.employment_type.value
        return data


# Attributes ``ProfileStore.update`` accepts
UPDATABLE_ATTRIBUTES = frozenset(
    f.name for f in dataclasses.fields(ProfileAggregate) if f.name != "id"
)

_TEXT_ATTRIBUTES = frozenset(
    {
        "full_name",
        "email",
        "avatar_url",
        "phone_number",
        "location",
        "title",
        "bio",
        "linkedin_url",
        "github_url",
        "website_url",
        "resume_url",
    }
)
_OPTIONAL_TEXT_ATTRIBUTES = frozenset(
    {"graduation_date", "education_level", "experience_level"}
)
_SET_LIKE_ATTRIBUTES = frozenset({"locations", "selected_roles", "completed_steps"})
_INT_ATTRIBUTES = frozenset({"salary_min", "salary_max"})

# Onboarding row column name differs from the aggregate attribute
_ONBOARDING_COLUMNS = {"onboarding_completed": "completed"}


def _ordered_unique(values: Any) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise ValueError("expected a list of strings, got a string")
    return list(dict.fromkeys(str(v) for v in values))


def _coerce_stage_preferences(value: Any) -> dict[str, StagePreference]:
    if not isinstance(value, dict):
        raise ValueError("company_stage_preferences must be a mapping")
    prefs = default_stage_preferences()
    for stage, pref in value.items():
        if stage not in COMPANY_STAGES:
            raise ValueError(f"Unknown company stage: {stage}")
        prefs[stage] = StagePreference(pref)
    return prefs


def _coerce_resume(value: Any) -> ResumeReference | None:
    if value is None or isinstance(value, ResumeReference):
        return value
    if isinstance(value, dict):
        return ResumeReference(
            file_url=str(value["file_url"]),
            file_name=str(value["file_name"]),
            upload_date=str(value["upload_date"]),
        )
    raise ValueError("resume must be a mapping with file_url, file_name, upload_date")


def coerce_attribute(name: str, value: Any) -> Any:
    """Validate and normalize one attribute value.

    Args:
        name: Aggregate attribute name.
        value: Incoming value (plain JSON types are accepted for enums).

    Returns:
        The value in the aggregate's native type.

    Raises:
        ValueError: Unknown attribute or a value of the wrong shape.
    """
    if name not in UPDATABLE_ATTRIBUTES:
        raise ValueError(f"Unknown profile attribute: {name}")

    if name in _TEXT_ATTRIBUTES:
        return "" if value is None else str(value)
    if name in _OPTIONAL_TEXT_ATTRIBUTES:
        return None if value in (None, "") else str(value)
    if name in _SET_LIKE_ATTRIBUTES:
        return _ordered_unique(value)
    if name in _INT_ATTRIBUTES:
        if value in (None, ""):
            return None
        if isinstance(value, bool):
            raise ValueError(f"{name} must be an integer")
        return int(value)
    if name == "company_stage_preferences":
        return _coerce_stage_preferences(value)
    if name == "remote_preference":
        return RemotePreference(value)
    if name == "employment_type":
        return EmploymentType(value)
    if name == "resume":
        return _coerce_resume(value)
    if name == "onboarding_completed":
        return value is True
    return value


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _identity_fallbacks(identity: Identity) -> dict[str, Any]:
    return {
        "full_name": identity.display_name,
        "email": identity.email,
        "avatar_url": identity.avatar_url,
    }


def merge_rows(
    identity: Identity,
    profile: dict[str, Any] | None,
    preferences: dict[str, Any] | None,
    onboarding: dict[str, Any] | None,
) -> ProfileAggregate:
    """Fold the three remote rows and identity metadata into one aggregate.

    Missing rows (None) contribute nothing. Values that fail coercion are
    dropped in favour of the next source.

    Empty strings count as missing, so a ``full_name`` or ``avatar_url``
    cleared in the profiles row comes back from the identity metadata on the
    next load. Clearing the avatar therefore only lasts while the identity
    provider has no picture for the user.

    Args:
        identity: Identity the rows belong to.
        profile: profiles row or None.
        preferences: user_preferences row or None.
        onboarding: user_onboarding row or None.

    Returns:
        A new ProfileAggregate.
    """
    fallbacks = _identity_fallbacks(identity)
    sources = (profile or {}, preferences or {}, onboarding or {})
    values: dict[str, Any] = {}

    for name in UPDATABLE_ATTRIBUTES:
        if name == "resume":
            continue
        candidates = [
            sources[0].get(name),
            sources[1].get(name),
            sources[2].get(_ONBOARDING_COLUMNS.get(name, name)),
            fallbacks.get(name),
        ]
        for candidate in candidates:
            if _is_empty(candidate):
                continue
            try:
                values[name] = coerce_attribute(name, candidate)
            except (ValueError, TypeError, KeyError):
                continue
            break

    resume_url = values.get("resume_url")
    if resume_url:
        prefs = sources[1]
        uploaded_at = prefs.get("resume_uploaded_at")
        if isinstance(uploaded_at, datetime):
            uploaded_at = uploaded_at.isoformat()
        values["resume"] = ResumeReference(
            file_url=resume_url,
            file_name=str(prefs.get("resume_file_name") or resume_url.rsplit("/", 1)[-1]),
            upload_date=str(uploaded_at or ""),
        )

    return ProfileAggregate(id=identity.id, **values)


def profile_row(aggregate: ProfileAggregate) -> dict[str, Any]:
    """Upsert payload for the profiles table (keyed by id)."""
    return {
        "id": aggregate.id,
        "full_name": aggregate.full_name,
        "email": aggregate.email,
        "avatar_url": aggregate.avatar_url,
        "linkedin_url": aggregate.linkedin_url,
        "github_url": aggregate.github_url,
        "website_url": aggregate.website_url,
        "phone_number": aggregate.phone_number,
        "location": aggregate.location,
        "title": aggregate.title,
        "bio": aggregate.bio,
    }


def preferences_row(aggregate: ProfileAggregate) -> dict[str, Any]:
    """Upsert payload for the user_preferences table (keyed by user_id)."""
    resume = aggregate.resume
    return {
        "user_id": aggregate.id,
        "company_stage_preferences": {
            stage: pref.value for stage, pref in aggregate.company_stage_preferences.items()
        },
        "locations": list(aggregate.locations),
        "remote_preference": aggregate.remote_preference.value,
        "employment_type": aggregate.employment_type.value,
        "graduation_date": aggregate.graduation_date,
        "education_level": aggregate.education_level,
        "experience_level": aggregate.experience_level,
        "salary_min": aggregate.salary_min,
        "salary_max": aggregate.salary_max,
        "resume_url": aggregate.resume_url,
        "resume_file_name": resume.file_name if resume else None,
        "resume_uploaded_at": resume.upload_date if resume and resume.upload_date else None,
    }


def onboarding_row(aggregate: ProfileAggregate, completed: bool) -> dict[str, Any]:
    """Upsert payload for the user_onboarding table (keyed by user_id).

    Args:
        aggregate: Aggregate to persist.
        completed: Completion evaluator output, stored as the flag.
    """
    return {
        "user_id": aggregate.id,
        "selected_roles": list(aggregate.selected_roles),
        "completed_steps": list(aggregate.completed_steps),
        "completed": completed,
    }
