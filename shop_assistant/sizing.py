import re
from typing import Any, Optional


# Half-open bands, lower bound inclusive. Anything at or above the last
# bound is 2XL; anything under 140cm gets no suggestion.
SIZE_BANDS = [
    (140, 160, "S"),
    (160, 180, "M"),
    (180, 195, "L"),
    (195, 210, "XL"),
]
TOP_SIZE = "2XL"
SIZE_LABELS = ["S", "M", "L", "XL", "2XL"]

SIZE_CHART = "S: 140–160cm, M: 160–180cm, L: 180–195cm, XL: 195–210cm, 2XL: 210cm and above"

_SIZE_ALIASES = {
    "s": "S",
    "small": "S",
    "m": "M",
    "medium": "M",
    "l": "L",
    "large": "L",
    "xl": "XL",
    "2xl": "2XL",
    "xxl": "2XL",
}


def size_for_height(height_cm: int) -> Optional[str]:
    if height_cm < SIZE_BANDS[0][0]:
        return None
    for low, high, label in SIZE_BANDS:
        if low <= height_cm < high:
            return label
    return TOP_SIZE


def parse_height(value: Any) -> Optional[int]:
    """Accepts 175, "175", "175cm", "175.5 cm". Returns whole centimeters."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    m = re.match(r"^\s*(\d{2,3})(?:[.,]\d+)?\s*(?:cm)?\s*$", str(value), re.IGNORECASE)
    if not m:
        return None
    return int(m.group(1))


def normalize_size(token: Any) -> Optional[str]:
    if not token:
        return None
    return _SIZE_ALIASES.get(str(token).strip().lower())
