"""Per-section validation of the essential fields.

Only the personal and roles sections have blocking rules. Preferences,
education and résumé always report valid, so advancing past them never
depends on their content.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field

from portal.services.profile_aggregate import ProfileAggregate
from portal.services.sections import PERSONAL, ROLES

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]{10,}$")

MIN_NAME_LENGTH = 2

NAME_ERROR = "Full name must be at least 2 characters"
EMAIL_ERROR = "Please enter a valid email address"
PHONE_ERROR = "Please enter a valid phone number"
ROLES_ERROR = "Select at least one role"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one section.

    Attributes:
        valid: True when the section's essential fields all pass.
        errors: attribute -> message, for inline display.
    """

    valid: bool
    errors: dict[str, str] = field(default_factory=dict)


def validate_personal(aggregate: ProfileAggregate) -> ValidationResult:
    """Name (trimmed, >= 2 chars), email shape, optional phone."""
    errors: dict[str, str] = {}
    if len(aggregate.full_name.strip()) < MIN_NAME_LENGTH:
        errors["full_name"] = NAME_ERROR
    if not EMAIL_PATTERN.match(aggregate.email):
        errors["email"] = EMAIL_ERROR
    phone = aggregate.phone_number
    if phone.strip() and not PHONE_PATTERN.match(phone):
        errors["phone_number"] = PHONE_ERROR
    return ValidationResult(valid=not errors, errors=errors)


def validate_roles(aggregate: ProfileAggregate) -> ValidationResult:
    if not aggregate.selected_roles:
        return ValidationResult(valid=False, errors={"selected_roles": ROLES_ERROR})
    return ValidationResult(valid=True)


_VALIDATORS: dict[str, Callable[[ProfileAggregate], ValidationResult]] = {
    PERSONAL: validate_personal,
    ROLES: validate_roles,
}

_ALWAYS_VALID = ValidationResult(valid=True)


def validate_section(section_id: str, aggregate: ProfileAggregate | None) -> ValidationResult:
    """Validate ``section_id`` against the aggregate.

    Sections without rules are always valid. With nothing loaded, sections
    that do have rules are invalid.
    """
    validator = _VALIDATORS.get(section_id)
    if validator is None:
        return _ALWAYS_VALID
    if aggregate is None:
        return ValidationResult(valid=False)
    return validator(aggregate)


ValidityListener = Callable[[str, bool], None]


class SectionValidator:
    """Tracks per-section validity and reports changes.

    ``recompute`` runs after every aggregate change; listeners hear about a
    section only when its validity flips, not on every keystroke.
    """

    def __init__(self) -> None:
        self._results: dict[str, ValidationResult] = {}
        self._listeners: list[ValidityListener] = []

    def on_change(self, listener: ValidityListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def recompute(self, aggregate: ProfileAggregate | None) -> None:
        for section_id in _VALIDATORS:
            result = validate_section(section_id, aggregate)
            previous = self._results.get(section_id)
            self._results[section_id] = result
            if previous is not None and previous.valid == result.valid:
                continue
            for listener in list(self._listeners):
                try:
                    listener(section_id, result.valid)
                except Exception:
                    logger.exception("Validation listener failed for %s", section_id)

    def result(self, section_id: str) -> ValidationResult:
        return self._results.get(section_id) or validate_section(section_id, None)

    def is_valid(self, section_id: str) -> bool:
        return self.result(section_id).valid
