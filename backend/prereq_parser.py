from normalizer import coerce_text, normalize_code

# Values that mean "no prerequisites" in the curriculum source.
NONE_VALUES = {"", "none", "none listed", "n/a", "nan", "-"}


def parse_prereqs(prereq_str) -> frozenset:
    """
    Parses the raw prerequisite specification of a curriculum row.

    Supported grammar:
      none / n/a / empty      -> frozenset()
      CODE                    -> frozenset({"CODE"})
      CODE, CODE, ...         -> every listed code is required

    Tokens are trimmed and empty tokens dropped, so "A, ,B," -> {"A", "B"}.
    """
    s = coerce_text(prereq_str).strip()
    if s.lower() in NONE_VALUES:
        return frozenset()
    codes = (normalize_code(token) for token in s.split(","))
    return frozenset(code for code in codes if code)


def prereq_course_codes(prerequisite_codes) -> list[str]:
    """Sorted, trimmed, non-empty prerequisite codes."""
    codes = (normalize_code(c) for c in (prerequisite_codes or ()))
    return sorted({c for c in codes if c})


def prereqs_satisfied(prerequisite_codes, approved: set[str]) -> bool:
    """True when every prerequisite code is in the approved set. No prerequisites always passes."""
    return all(code in approved for code in prereq_course_codes(prerequisite_codes))

