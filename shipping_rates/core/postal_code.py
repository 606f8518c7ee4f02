"""
Postal code helpers (CEP)

Codes are accepted with or without the hyphen after the fifth digit and are
normalized to 8 raw digits. format_postal_code converts back to DDDDD-DDD.
"""
import re

POSTAL_CODE_LENGTH = 8

_NON_DIGITS = re.compile(r"\D")
_DISPLAY_FORMAT = re.compile(r"^(\d{5})(\d{3})$")


def normalize_postal_code(code: str) -> str:
    """Strip every non-digit character."""
    if code is None:
        return ""
    return _NON_DIGITS.sub("", str(code))


def is_valid_postal_code(code: str) -> bool:
    """True when the code normalizes to exactly 8 digits."""
    return len(normalize_postal_code(code)) == POSTAL_CODE_LENGTH


def format_postal_code(code: str) -> str:
    """
    Format a postal code for display.

    "01001000" -> "01001-000". Values that don't normalize to 8 digits are
    returned as their digits, unformatted.
    """
    digits = normalize_postal_code(code)
    return _DISPLAY_FORMAT.sub(r"\1-\2", digits)
