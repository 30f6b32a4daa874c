"""Dashboard job matches, company directory and skills assessment.

Matches, companies and skills are a static set; the only state is each
identity's accept/decline decisions, held in memory on a JobMatchBoard.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum

logger = logging.getLogger(__name__)


class MatchStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    DECLINED = "declined"
    ACCEPTED = "accepted"


@dataclass(frozen=True)
class Company:
    id: str
    name: str
    location: str
    description: str
    logo: str = ""


@dataclass(frozen=True)
class JobMatch:
    id: str
    company: Company
    role: str
    match_percentage: int
    status: MatchStatus = MatchStatus.PENDING


COMPANIES: tuple[Company, ...] = (
    Company(
        id="101",
        name="Uncountable",
        location="Multiple Locations",
        description=(
            "Accelerating Industrial R&D with AI and machine learning to optimize "
            "experimental workflows."
        ),
    ),
    Company(
        id="102",
        name="TechFlow",
        location="San Francisco, CA",
        description=(
            "Building next-generation developer tools to streamline software "
            "engineering workflows."
        ),
    ),
    Company(
        id="103",
        name="HealthCare (YC)",
        location="San Francisco, CA",
        description=(
            "AI-powered solutions for Health Systems improving patient outcomes "
            "and operational efficiency."
        ),
    ),
)

_COMPANIES_BY_ID = {company.id: company for company in COMPANIES}

INITIAL_MATCHES: tuple[JobMatch, ...] = (
    JobMatch("1", _COMPANIES_BY_ID["101"], "Senior Frontend Engineer", 92, MatchStatus.ACTIVE),
    JobMatch("2", _COMPANIES_BY_ID["102"], "Product Manager", 85),
    JobMatch("3", _COMPANIES_BY_ID["103"], "Engineering Manager", 78),
)


@dataclass(frozen=True)
class Skill:
    name: str
    level: int


SKILLS: tuple[Skill, ...] = (
    Skill("React", 90),
    Skill("TypeScript", 85),
    Skill("UI/UX", 75),
    Skill("Communication", 95),
    Skill("System Design", 70),
    Skill("Problem Solving", 85),
)


def top_skills(limit: int = 4) -> list[Skill]:
    """Highest-rated skills first; ties keep table order."""
    return sorted(SKILLS, key=lambda skill: skill.level, reverse=True)[:limit]


def get_company(company_id: str) -> Company | None:
    return _COMPANIES_BY_ID.get(company_id)


def get_job(job_id: str) -> JobMatch | None:
    """Job details are the same for everyone; statuses are not included."""
    for match in INITIAL_MATCHES:
        if match.id == job_id:
            return match
    return None


class JobMatchBoard:
    """One identity's matches and the decisions made on them."""

    def __init__(self) -> None:
        self._matches: dict[str, JobMatch] = {m.id: m for m in INITIAL_MATCHES}

    @property
    def matches(self) -> list[JobMatch]:
        return list(self._matches.values())

    @property
    def active_count(self) -> int:
        return sum(1 for m in self._matches.values() if m.status is MatchStatus.ACTIVE)

    def get(self, match_id: str) -> JobMatch | None:
        return self._matches.get(match_id)

    def _set_status(self, match_id: str, status: MatchStatus) -> JobMatch | None:
        match = self._matches.get(match_id)
        if match is None:
            return None
        match = replace(match, status=status)
        self._matches[match_id] = match
        logger.info("Match %s marked %s", match_id, status.value)
        return match

    def accept(self, match_id: str) -> JobMatch | None:
        """Accepting a match makes it active. Returns None for unknown ids."""
        return self._set_status(match_id, MatchStatus.ACTIVE)

    def decline(self, match_id: str) -> JobMatch | None:
        return self._set_status(match_id, MatchStatus.DECLINED)
