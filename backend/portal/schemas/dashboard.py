"""Dashboard, job and company schemas."""

from pydantic import BaseModel

from portal.services.job_matches import Company, JobMatch, Skill
from portal.services.role_catalog import JobRole


class CompanyRead(BaseModel):
    id: str
    name: str
    logo: str
    location: str
    description: str

    @classmethod
    def from_company(cls, company: Company) -> "CompanyRead":
        return cls(
            id=company.id,
            name=company.name,
            logo=company.logo,
            location=company.location,
            description=company.description,
        )


class JobMatchRead(BaseModel):
    id: str
    company: CompanyRead
    role: str
    match_percentage: int
    status: str

    @classmethod
    def from_match(cls, match: JobMatch) -> "JobMatchRead":
        return cls(
            id=match.id,
            company=CompanyRead.from_company(match.company),
            role=match.role,
            match_percentage=match.match_percentage,
            status=match.status.value,
        )


class SkillRead(BaseModel):
    name: str
    level: int

    @classmethod
    def from_skill(cls, skill: Skill) -> "SkillRead":
        return cls(name=skill.name, level=skill.level)


class SkillAssessmentRead(BaseModel):
    skills: list[SkillRead]
    top_skills: list[str]


class JobRoleRead(BaseModel):
    id: str
    name: str
    category: str

    @classmethod
    def from_role(cls, role: JobRole) -> "JobRoleRead":
        return cls(id=role.id, name=role.name, category=role.category)
