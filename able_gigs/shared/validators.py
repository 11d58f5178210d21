"""Shared validation utilities"""

import re
from typing import Optional


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize an international phone number to E.164 (+<country><number>).

    Raises:
        ValueError: If the number cannot be a valid E.164 number
    """
    if not phone:
        return phone

    has_plus = phone.strip().startswith("+")
    digits = re.sub(r"\D", "", phone)
    if digits.startswith("00"):
        digits, has_plus = digits[2:], True

    if not has_plus:
        raise ValueError("Phone number must include the country code, e.g. +44 7700 900123")
    if not 8 <= len(digits) <= 15:
        raise ValueError("Phone number must have between 8 and 15 digits")

    return f"+{digits}"


def require_text(value: Optional[str], field_name: str) -> str:
    if value is None or not value.strip():
        raise ValueError(f"{field_name} is required")
    return value.strip()
