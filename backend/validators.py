"""
Pure input-validation helpers for the projection endpoints.
No Flask or data-loader imports.
"""

import math

from models import CreditRange, ProjectionRequest, SelectionRules
from normalizer import coerce_bool, coerce_text, normalize_code_list
from rules import (
    DEFAULT_CREDIT_RANGE,
    DEFAULT_MAX_ALTERNATIVES,
    DEFAULT_PRIORITY_ORDER,
    MAX_ALTERNATIVES_LIMIT,
    MAX_CREDIT_CAP,
)

_REQUIRED_TEXT_FIELDS = ("student_id", "program_id", "catalog")


def _as_number(raw):
    """Float for numbers and numeric strings, else None."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw) if math.isfinite(raw) else None
    if isinstance(raw, str) and raw.strip():
        try:
            value = float(raw.strip())
        except ValueError:
            return None
        return value if math.isfinite(value) else None
    return None


def validate_projection_body(body, with_alternatives: bool = False):
    """Returns (error_code, message) on invalid input, (None, None) on success."""
    if not isinstance(body, dict):
        return "INVALID_INPUT", "Request body must be a JSON object."

    for field in _REQUIRED_TEXT_FIELDS:
        if not coerce_text(body.get(field)).strip():
            return "INVALID_INPUT", f"'{field}' is required."

    cap_raw = body.get("credit_cap")
    if cap_raw not in (None, ""):
        value = _as_number(cap_raw)
        if value is None or not value.is_integer():
            return "INVALID_INPUT", "credit_cap must be an integer."
        if value > MAX_CREDIT_CAP:
            return "INVALID_INPUT", f"credit_cap cannot exceed {MAX_CREDIT_CAP}."

    priority_codes = body.get("priority_codes")
    if priority_codes is not None and not isinstance(priority_codes, (list, str)):
        return "INVALID_INPUT", "priority_codes must be an array of course codes or a comma-separated string."

    credit_range = body.get("credit_range")
    if credit_range is not None:
        if not isinstance(credit_range, dict):
            return "INVALID_INPUT", "credit_range must be an object like {\"min\": 0, \"max\": 10}."
        bounds = {}
        for key in ("min", "max"):
            raw = credit_range.get(key)
            if raw is None:
                continue
            value = _as_number(raw)
            if value is None or not value.is_integer() or value < 0:
                return "INVALID_INPUT", f"credit_range.{key} must be a non-negative integer."
            bounds[key] = value
        if "min" in bounds and "max" in bounds and bounds["min"] > bounds["max"]:
            return "INVALID_INPUT", "credit_range.min cannot exceed credit_range.max."

    if with_alternatives:
        alt_raw = body.get("max_alternatives")
        if alt_raw not in (None, ""):
            value = _as_number(alt_raw)
            if value is None or not value.is_integer() or not (1 <= value <= MAX_ALTERNATIVES_LIMIT):
                return "INVALID_INPUT", (
                    f"max_alternatives must be an integer between 1 and {MAX_ALTERNATIVES_LIMIT}."
                )
    return None, None


def _parse_credit_range(raw) -> CreditRange:
    if not isinstance(raw, dict):
        return DEFAULT_CREDIT_RANGE
    low = _as_number(raw.get("min"))
    high = _as_number(raw.get("max"))
    return CreditRange(
        min=int(low) if low is not None else DEFAULT_CREDIT_RANGE.min,
        max=int(high) if high is not None else DEFAULT_CREDIT_RANGE.max,
    )


def _parse_priority_order(raw) -> tuple:
    # Absent means the default order; anything that is not a list means no tags.
    if raw is None:
        return DEFAULT_PRIORITY_ORDER
    if not isinstance(raw, list):
        return ()
    return tuple(coerce_text(tag) for tag in raw)


def parse_projection_request(body: dict) -> ProjectionRequest:
    """Build a ProjectionRequest from a body that passed validate_projection_body."""
    cap = _as_number(body.get("credit_cap"))
    alternatives = _as_number(body.get("max_alternatives"))
    rules = SelectionRules(
        credit_cap=int(cap) if cap is not None else None,
        credit_range=_parse_credit_range(body.get("credit_range")),
        maximize_credits=coerce_bool(body.get("maximize_credits")),
        prioritize_failed=coerce_bool(body.get("prioritize_failed")),
        priority_codes=tuple(normalize_code_list(body.get("priority_codes"))),
        priority_order=_parse_priority_order(body.get("priority_tag_order")),
    )
    return ProjectionRequest(
        student_id=coerce_text(body.get("student_id")).strip(),
        program_id=coerce_text(body.get("program_id")).strip(),
        catalog=coerce_text(body.get("catalog")).strip(),
        rules=rules,
        max_alternatives=int(alternatives) if alternatives is not None else DEFAULT_MAX_ALTERNATIVES,
    )
