import re

_STRIP = re.compile(r"[\s\-]")
_STRIP_ALL = re.compile(r"[\s\-+()]")

_INDIAN_MOBILE = (
    re.compile(r"^[6-9]\d{9}$"),
    re.compile(r"^91[6-9]\d{9}$"),
    re.compile(r"^\+91[6-9]\d{9}$"),
)


def is_valid_indian_phone(phone: str) -> bool:
    """10-digit mobile starting 6-9, optionally prefixed with 91 or +91."""
    cleaned = _STRIP.sub("", phone or "")
    return any(p.match(cleaned) for p in _INDIAN_MOBILE)


def normalize_phone(phone: str) -> str:
    """E.164, defaulting to the +91 country code for bare 10-digit numbers."""
    cleaned = _STRIP_ALL.sub("", phone or "")
    if cleaned.startswith("91") and len(cleaned) == 12:
        return f"+{cleaned}"
    if len(cleaned) == 10:
        return f"+91{cleaned}"
    return f"+{cleaned}"


def mask_phone(phone: str) -> str:
    p = phone or ""
    return f"{p[:3]}****{p[-3:]}" if len(p) > 6 else "***"
