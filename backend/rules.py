from models import CreditRange, SelectionRules
from normalizer import coerce_text, normalize_code_list

# Credit cap used when the caller sends none or a non-positive value.
DEFAULT_CREDIT_CAP = 22

# Upper bound on the cap; the maximizing selection allocates a table of cap + 1 sums.
MAX_CREDIT_CAP = 100

DEFAULT_CREDIT_RANGE = CreditRange(min=0, max=10)

DEFAULT_PRIORITY_ORDER = ("LOWEST_LEVEL",)

# Number of projections returned by the alternatives operation.
DEFAULT_MAX_ALTERNATIVES = 5
MAX_ALTERNATIVES_LIMIT = 20

# Recognised priority tags. Anything else in a tag order is ignored.
TAG_FAILED = "FAILED"
TAG_PRIORITIZED = "PRIORITIZED"
TAG_LOWEST_LEVEL = "LOWEST_LEVEL"
PRIORITY_TAGS = (TAG_FAILED, TAG_PRIORITIZED, TAG_LOWEST_LEVEL)


def resolve_credit_cap(credit_cap) -> int:
    """Missing or non-positive caps fall back to the default; larger caps are clamped to MAX_CREDIT_CAP."""
    try:
        cap = int(credit_cap)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_CREDIT_CAP
    if cap <= 0:
        return DEFAULT_CREDIT_CAP
    return min(cap, MAX_CREDIT_CAP)


def resolve_rules(rules: SelectionRules) -> SelectionRules:
    """
    Return the effective rules a projection runs under: resolved credit cap,
    cleaned priority codes, and tag order as strings. Echoed in every result.
    """
    return SelectionRules(
        credit_cap=resolve_credit_cap(rules.credit_cap),
        credit_range=rules.credit_range or DEFAULT_CREDIT_RANGE,
        maximize_credits=bool(rules.maximize_credits),
        prioritize_failed=bool(rules.prioritize_failed),
        priority_codes=tuple(normalize_code_list(rules.priority_codes)),
        priority_order=tuple(coerce_text(tag) for tag in (rules.priority_order or ())),
    )
