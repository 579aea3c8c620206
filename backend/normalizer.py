import math
import re

# Separators accepted in free-text code lists: comma, semicolon, newline.
CODE_LIST_SPLIT = re.compile(r'[,\n;]+')

_BOOL_TRUTHY = {"true", "1", "yes", "y"}


def coerce_text(value) -> str:
    """Strings pass through, finite numbers are stringified, anything else is ''."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return ""
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and math.isfinite(value):
        # Spreadsheet readers hand integral codes back as floats (1.0).
        return str(int(value)) if value.is_integer() else str(value)
    return ""


def coerce_number(value) -> float:
    """Numbers and numeric strings pass through; anything else is 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else 0
    if isinstance(value, str) and value.strip():
        try:
            parsed = float(value.strip())
        except ValueError:
            return 0
        return parsed if math.isfinite(parsed) else 0
    return 0


def coerce_int(value, minimum: int | None = None) -> int:
    number = int(coerce_number(value))
    if minimum is not None and number < minimum:
        return minimum
    return number


def coerce_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _BOOL_TRUTHY
    return False


def normalize_code(raw) -> str | None:
    """
    Normalizes a course code for set membership: surrounding whitespace is
    trimmed, casing is preserved. Returns None for empty input.
    """
    code = coerce_text(raw).strip()
    return code or None


def normalize_code_list(raw) -> list[str]:
    """
    Accepts a list of codes or a comma/newline/semicolon-separated string.
    Returns trimmed codes in first-seen order without empties or duplicates.
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set, frozenset)):
        tokens = list(raw)
    else:
        tokens = CODE_LIST_SPLIT.split(coerce_text(raw))

    codes: list[str] = []
    seen: set[str] = set()
    for token in tokens:
        code = normalize_code(token)
        if code is None or code in seen:
            continue
        codes.append(code)
        seen.add(code)
    return codes
