"""
Validation layer.

Checks an entry against its required-field and range invariants before it
enters the store. Every check runs, so the caller gets all violations in
one round-trip. Validation never mutates its input.
"""

from enum import Enum
from typing import Any, Dict, List, Type, TypeVar, Union

import pydantic

from tech_radar.errors import ValidationError
from tech_radar.models.api_version import ApiVersion
from tech_radar.models.results import ValidationResult
from tech_radar.models.technology import TechnologyEntry

SCORE_MIN = 1
SCORE_MAX = 5
ADOPTION_MIN = 0
ADOPTION_MAX = 100

E = TypeVar("E", bound=Enum)


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _technology_errors(entry: TechnologyEntry) -> List[str]:
    errors = []
    if _is_blank(entry.name):
        errors.append("Technology name is required")
    if _is_blank(entry.description):
        errors.append("Technology description is required")
    if not SCORE_MIN <= entry.overall_score <= SCORE_MAX:
        errors.append(f"Overall score must be between {SCORE_MIN} and {SCORE_MAX}")
    if not ADOPTION_MIN <= entry.adoption_level <= ADOPTION_MAX:
        errors.append(f"Adoption level must be between {ADOPTION_MIN} and {ADOPTION_MAX}")
    return errors


def validate(entry: Union[TechnologyEntry, Dict[str, Any]]) -> ValidationResult:
    """
    Validate a technology entry.

    Accepts a model or a raw payload. Raw payloads are first checked
    against the model schema (types, enum values, sub-score ranges); schema
    problems are reported alongside the business rules.

    Args:
        entry: TechnologyEntry or dict payload

    Returns:
        ValidationResult with every violation found
    """
    if isinstance(entry, TechnologyEntry):
        return ValidationResult.from_errors(_technology_errors(entry))

    errors: List[str] = []
    for field in ("name", "description"):
        if field in entry and _is_blank(entry[field]):
            errors.append(f"Technology {field} is required")

    assessment = entry.get("assessment") or {}
    explicit_score = assessment.get("overall_score") if isinstance(assessment, dict) else None
    if explicit_score is not None and not SCORE_MIN <= explicit_score <= SCORE_MAX:
        errors.append(f"Overall score must be between {SCORE_MIN} and {SCORE_MAX}")

    adoption = entry.get("adoption_level")
    if isinstance(adoption, (int, float)) and not ADOPTION_MIN <= adoption <= ADOPTION_MAX:
        errors.append(f"Adoption level must be between {ADOPTION_MIN} and {ADOPTION_MAX}")

    try:
        model = TechnologyEntry.model_validate(entry)
    except pydantic.ValidationError as e:
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"])
            errors.append(f"{location}: {err['msg']}")
        return ValidationResult.from_errors(errors)

    for message in _technology_errors(model):
        if message not in errors:
            errors.append(message)
    return ValidationResult.from_errors(errors)


def validate_api_version(api_version: ApiVersion) -> ValidationResult:
    """Validate an API version's required fields and usage ranges."""
    errors = []
    if _is_blank(api_version.api_name):
        errors.append("API name is required")
    if _is_blank(api_version.label):
        errors.append("API version label is required")
    usage = api_version.usage
    if usage.active_clients < 0:
        errors.append("Active clients cannot be negative")
    if usage.requests_per_day < 0:
        errors.append("Requests per day cannot be negative")
    if not 0 <= usage.error_rate <= 1:
        errors.append("Error rate must be between 0 and 1")
    if usage.average_response_time_ms < 0:
        errors.append("Average response time cannot be negative")
    return ValidationResult.from_errors(errors)


def coerce_enum(enum_cls: Type[E], value: Union[E, str], field: str) -> E:
    """
    Convert a raw value to an enum member.

    Raises:
        ValidationError: value is not a member of enum_cls
    """
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError([f"Invalid {field} '{value}' (expected one of: {allowed})"])
