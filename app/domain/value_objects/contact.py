"""Contact field validators."""

import re

# Indian PIN code: 6 digits
_INDIAN_PIN = re.compile(r"^\d{6}$")
# US ZIP: 5 digits or 5+4
_US_ZIP = re.compile(r"^\d{5}(-\d{4})?$")
_NON_DIGITS = re.compile(r"\D")

PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 12

ALLOWED_PROBABILITIES = frozenset({10, 20, 30, 40, 50, 60, 70, 80, 90, 95})


def validate_zip_code(zip_code: str) -> bool:
    """Return True for a 6-digit Indian PIN or a 5 / 5+4 digit US ZIP."""
    if zip_code is None:
        return False
    return bool(_INDIAN_PIN.match(zip_code) or _US_ZIP.match(zip_code))


def digits_only(phone: str) -> str:
    """Strip every non-digit character."""
    return _NON_DIGITS.sub("", phone or "")


def validate_phone_number(phone: str) -> bool:
    """Return True when the phone has 10 to 12 digits once non-digits are removed."""
    return PHONE_MIN_DIGITS <= len(digits_only(phone)) <= PHONE_MAX_DIGITS


def validate_probability(probability: int) -> bool:
    """Return True for a discretised sales-confidence estimate (10..90 by 10, or 95)."""
    return probability in ALLOWED_PROBABILITIES
