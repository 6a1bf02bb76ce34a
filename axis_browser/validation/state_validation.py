from __future__ import annotations

from typing import Any

from axis_browser.core.filter_definition import FilterKind
from axis_browser.validation.errors import ValidationError, ValidationIssue

_KINDS = {k.value for k in FilterKind}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_state_dict(obj: Any) -> None:
    """
    Validate one persisted runtime state BEFORE building a RuntimeState.
    This prevents a corrupt session blob from breaking every interaction.
    """
    issues: list[ValidationIssue] = []

    if not isinstance(obj, dict):
        raise ValidationError([ValidationIssue("STATE_TYPE", "Runtime state must be a JSON object.")])

    if not _is_int(obj.get("binding_id")) or obj["binding_id"] < 0:
        issues.append(ValidationIssue("STATE_BINDING_ID", "binding_id must be a non-negative integer."))

    if "per_page" in obj and (not _is_int(obj["per_page"]) or obj["per_page"] < 1):
        issues.append(ValidationIssue("STATE_PER_PAGE", "per_page must be a positive integer."))

    for key in ("total", "page", "selected"):
        if key in obj and (not _is_int(obj[key]) or obj[key] < 0):
            issues.append(ValidationIssue(f"STATE_{key.upper()}", f"{key} must be a non-negative integer."))

    filters = obj.get("filters", [])
    if not isinstance(filters, list):
        issues.append(ValidationIssue("STATE_FILTERS_TYPE", "filters must be a list."))
        filters = []
    for i, f in enumerate(filters):
        if not isinstance(f, dict):
            issues.append(ValidationIssue("FILTER_TYPE", f"filters[{i}] must be an object."))
            continue
        if f.get("kind") not in _KINDS:
            issues.append(ValidationIssue("FILTER_KIND", f"filters[{i}].kind is not a known filter kind."))
        if not isinstance(f.get("attribute"), str) or not f.get("attribute"):
            issues.append(ValidationIssue("FILTER_ATTRIBUTE", f"filters[{i}].attribute missing."))
        if "negated" in f and not isinstance(f["negated"], bool):
            issues.append(ValidationIssue("FILTER_NEGATED", f"filters[{i}].negated must be a boolean."))
        selected = f.get("selected")
        if f.get("kind") == FilterKind.SET.value and selected is not None:
            items = selected if isinstance(selected, list) else [selected]
            if not all(_is_int(s) for s in items):
                issues.append(ValidationIssue("FILTER_SELECTED", f"filters[{i}].selected must hold integers."))

    sorts = obj.get("sorts", [])
    if not isinstance(sorts, list):
        issues.append(ValidationIssue("STATE_SORTS_TYPE", "sorts must be a list."))
        sorts = []
    for i, s in enumerate(sorts):
        if not isinstance(s, dict):
            issues.append(ValidationIssue("SORT_TYPE", f"sorts[{i}] must be an object."))
            continue
        if not isinstance(s.get("attribute"), str) or not s.get("attribute"):
            issues.append(ValidationIssue("SORT_ATTRIBUTE", f"sorts[{i}].attribute missing."))
        if "descending" in s and not isinstance(s["descending"], bool):
            issues.append(ValidationIssue("SORT_DESCENDING", f"sorts[{i}].descending must be a boolean."))

    if issues:
        raise ValidationError(issues)
