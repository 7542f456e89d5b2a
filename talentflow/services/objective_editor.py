"""
Objective-set validation.

Pure functions shared by the collaboration and annual objective endpoints.
An objective set is a list of entry dicts; validation returns a normalized
copy or raises ValidationFailedError naming the offending objective (1-based)
and field.

Rules:
- pathway-skill entries (is_custom false) and custom "smart" entries need
  smart_objective plus the five SMART fields;
- custom "formation" / "custom" entries need only smart_objective;
- custom entries need a skill_description;
- pathway-skill entries must reference the employee's skill vocabulary;
- skill_id values are unique within a set.
"""
import uuid
from typing import Any, Dict, List, Mapping, Optional

from talentflow.core.config import settings
from talentflow.core.exceptions import ValidationFailedError

OBJECTIVE_TYPES = ("smart", "formation", "custom")
SMART_FIELDS = ("specific", "measurable", "achievable", "relevant", "time_bound")
TEXT_FIELDS = ("skill_id", "skill_description", "theme_name", "smart_objective") + SMART_FIELDS


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip()


def _fail(index: int, field: str, message: str):
    raise ValidationFailedError(
        f"Objective {index}: {message}",
        details={"objective": index, "field": field},
    )


def validate_objective(
    entry: Mapping[str, Any],
    index: int,
    vocabulary: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Validate one entry and return its normalized form.

    ``vocabulary`` maps allowed pathway skill ids to their description and
    theme name; None skips the vocabulary check.
    """
    if not isinstance(entry, Mapping):
        _fail(index, "objective", "must be an object")

    normalized: Dict[str, Any] = {field: _clean(entry.get(field)) for field in TEXT_FIELDS}
    is_custom = bool(entry.get("is_custom", False))
    normalized["is_custom"] = is_custom

    objective_type = _clean(entry.get("objective_type")) or "smart"
    if objective_type not in OBJECTIVE_TYPES:
        _fail(index, "objective_type", f"objective_type must be one of {', '.join(OBJECTIVE_TYPES)}")
    if not is_custom:
        # Pathway skills are always written as full SMART objectives
        objective_type = "smart"
    normalized["objective_type"] = objective_type

    if is_custom:
        if _blank(normalized["skill_id"]):
            normalized["skill_id"] = f"custom_{uuid.uuid4().hex[:12]}"
        if _blank(normalized["skill_description"]):
            _fail(index, "skill_description", "skill_description is required for a custom objective")
    else:
        if _blank(normalized["skill_id"]):
            _fail(index, "skill_id", "skill_id is required")
        if vocabulary is not None:
            skill = vocabulary.get(normalized["skill_id"])
            if skill is None:
                _fail(index, "skill_id", "skill is not part of the employee's career pathway and level")
            if _blank(normalized["skill_description"]):
                normalized["skill_description"] = skill.get("skill_description")
            if _blank(normalized["theme_name"]):
                normalized["theme_name"] = skill.get("theme_name")

    if _blank(normalized["smart_objective"]):
        _fail(index, "smart_objective", "smart_objective is required")

    if objective_type == "smart":
        for field in SMART_FIELDS:
            if _blank(normalized[field]):
                _fail(index, field, f"{field} is required")

    return normalized


def validate_objective_set(
    entries: Any,
    min_count: int,
    max_count: int,
    vocabulary: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> List[Dict[str, Any]]:
    if not isinstance(entries, list):
        raise ValidationFailedError("Objectives must be a list")

    count = len(entries)
    if min_count == max_count and count != min_count:
        raise ValidationFailedError(
            f"Exactly {min_count} objectives are required, got {count}",
            details={"count": count},
        )
    if not min_count <= count <= max_count:
        raise ValidationFailedError(
            f"Between {min_count} and {max_count} objectives are required, got {count}",
            details={"count": count},
        )

    normalized = []
    seen = set()
    for index, entry in enumerate(entries, start=1):
        item = validate_objective(entry, index, vocabulary)
        if item["skill_id"] in seen:
            _fail(index, "skill_id", "duplicate skill_id in objective set")
        seen.add(item["skill_id"])
        normalized.append(item)
    return normalized


def validate_collaboration_objectives(entries: Any, vocabulary=None) -> List[Dict[str, Any]]:
    return validate_objective_set(entries, 1, settings.max_collaboration_objectives, vocabulary)


def validate_annual_objectives(entries: Any, vocabulary=None) -> List[Dict[str, Any]]:
    count = settings.annual_objective_count
    return validate_objective_set(entries, count, count, vocabulary)
