"""Static section and field table for the onboarding/profile wizard.

Sections run in a fixed order. ``welcome`` and ``complete`` are
pseudo-sections with no fields; they only exist in onboarding mode.
"""

from dataclasses import dataclass

from portal.services.tiers import FieldTier, NavigationMode, is_visible

WELCOME = "welcome"
PERSONAL = "personal"
ROLES = "roles"
PREFERENCES = "preferences"
EDUCATION = "education"
RESUME = "resume"
COMPLETE = "complete"

PSEUDO_SECTIONS = frozenset({WELCOME, COMPLETE})


@dataclass(frozen=True)
class Field:
    """One editable field group within a section.

    Attributes:
        id: Field id, unique within its section.
        label: Display label.
        tier: Visibility tier.
        required: Whether the field must be valid before leaving the section.
        attributes: Aggregate attributes the field edits.
    """

    id: str
    label: str
    tier: FieldTier
    required: bool = False
    attributes: tuple[str, ...] = ()


@dataclass(frozen=True)
class Section:
    """A step in the wizard."""

    id: str
    title: str
    fields: tuple[Field, ...] = ()
    required: bool = False

    @property
    def is_pseudo(self) -> bool:
        return self.id in PSEUDO_SECTIONS

    def visible_fields(self, mode: NavigationMode | str) -> tuple[Field, ...]:
        """Fields shown in ``mode``, in table order."""
        return tuple(f for f in self.fields if is_visible(f, mode))

    @property
    def essential_fields(self) -> tuple[Field, ...]:
        return tuple(f for f in self.fields if f.tier is FieldTier.ESSENTIAL)


SECTIONS: tuple[Section, ...] = (
    Section(id=WELCOME, title="Welcome"),
    Section(
        id=PERSONAL,
        title="Personal Information",
        required=True,
        fields=(
            Field(
                "basic_info",
                "Basic Information",
                FieldTier.ESSENTIAL,
                required=True,
                attributes=("full_name", "email", "phone_number", "location"),
            ),
            Field(
                "professional_details",
                "Professional Details",
                FieldTier.IMPORTANT,
                attributes=("title", "bio"),
            ),
            Field(
                "social_links",
                "Social Links",
                FieldTier.COMPREHENSIVE,
                attributes=("linkedin_url", "github_url", "website_url"),
            ),
        ),
    ),
    Section(
        id=ROLES,
        title="Role Selection",
        required=True,
        fields=(
            Field(
                "primary_roles",
                "Primary Roles",
                FieldTier.ESSENTIAL,
                required=True,
                attributes=("selected_roles",),
            ),
            Field(
                "experience_level",
                "Experience Level",
                FieldTier.IMPORTANT,
                attributes=("experience_level",),
            ),
            Field("skills_assessment", "Skills Assessment", FieldTier.COMPREHENSIVE),
        ),
    ),
    Section(
        id=PREFERENCES,
        title="Job Preferences",
        fields=(
            Field(
                "location_preferences",
                "Location Preferences",
                FieldTier.ESSENTIAL,
                required=True,
                attributes=("locations", "remote_preference"),
            ),
            Field(
                "compensation",
                "Compensation",
                FieldTier.IMPORTANT,
                attributes=("salary_min", "salary_max"),
            ),
            Field(
                "company_preferences",
                "Company Preferences",
                FieldTier.COMPREHENSIVE,
                attributes=("company_stage_preferences", "employment_type"),
            ),
        ),
    ),
    Section(
        id=EDUCATION,
        title="Education",
        fields=(
            Field(
                "education_level",
                "Education Level",
                FieldTier.ESSENTIAL,
                required=True,
                attributes=("education_level",),
            ),
            Field(
                "education_history",
                "Education History",
                FieldTier.IMPORTANT,
                attributes=("graduation_date",),
            ),
            Field("education_details", "Additional Details", FieldTier.COMPREHENSIVE),
        ),
    ),
    Section(
        id=RESUME,
        title="Resume",
        fields=(
            Field(
                "resume_upload",
                "Resume Upload",
                FieldTier.ESSENTIAL,
                attributes=("resume", "resume_url"),
            ),
        ),
    ),
    Section(id=COMPLETE, title="Complete"),
)

SECTIONS_BY_ID: dict[str, Section] = {section.id: section for section in SECTIONS}

ONBOARDING_ORDER: tuple[str, ...] = tuple(section.id for section in SECTIONS)
PROFILE_ORDER: tuple[str, ...] = tuple(
    section.id for section in SECTIONS if not section.is_pseudo
)


def get_section(section_id: str) -> Section | None:
    return SECTIONS_BY_ID.get(section_id)


def section_order(mode: NavigationMode | str) -> tuple[str, ...]:
    """Section ids traversed in ``mode``."""
    if NavigationMode(mode) is NavigationMode.ONBOARDING:
        return ONBOARDING_ORDER
    return PROFILE_ORDER
