"""Data normalization utilities for consistent donor data quality."""

import re
from typing import Optional


# Countries whose postal codes get US zip handling
US_COUNTRY_CODES = {"US", "USA", "UNITED STATES", "UNITED STATES OF AMERICA"}

# Practical subset of RFC 5322 (same shape browsers use for type=email)
EMAIL_PATTERN = re.compile(
    r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)+$"
)


def is_blank(value: Optional[str]) -> bool:
    """True for None, empty, or whitespace-only strings."""
    return value is None or not str(value).strip()


def clean_text(value: Optional[str]) -> Optional[str]:
    """Strip surrounding whitespace; blank becomes None."""
    if is_blank(value):
        return None
    return str(value).strip()


def normalize_name(name: Optional[str]) -> Optional[str]:
    """
    Normalize name by stripping whitespace and collapsing multiple spaces.

    Args:
        name: Raw name input

    Returns:
        Cleaned name or None if empty
    """
    if not name:
        return None
    collapsed = " ".join(name.split())
    return collapsed or None


def strip_whitespace(value: str) -> str:
    """Remove every whitespace character ("John Doe" -> "JohnDoe")."""
    return re.sub(r"\s+", "", value)


def digits_only(value: Optional[str]) -> str:
    """Keep only the digits of a phone-like string."""
    if not value:
        return ""
    return re.sub(r"\D", "", value)


def slugify_address_part(value: Optional[str]) -> str:
    """Lowercase and remove whitespace ("123 Main St" -> "123mainst")."""
    if not value:
        return ""
    return strip_whitespace(value).lower()


def is_valid_email(email: Optional[str]) -> bool:
    if not email:
        return False
    return EMAIL_PATTERN.match(email) is not None


def is_us_country(country: Optional[str]) -> bool:
    """Blank country counts as US (the donor default)."""
    if is_blank(country):
        return True
    return str(country).strip().upper() in US_COUNTRY_CODES


def normalize_zip_code(zip_code: Optional[str], country: Optional[str]) -> Optional[str]:
    """
    Zero-pad 4-digit US zip codes (spreadsheets drop the leading zero).

    - US + "6419" -> "06419"
    - US + "12345" -> "12345"
    - CA + "1234" -> "1234"
    """
    cleaned = clean_text(zip_code)
    if cleaned is None:
        return None
    if is_us_country(country) and re.fullmatch(r"\d{4}", cleaned):
        return cleaned.zfill(5)
    return cleaned


def format_full_address(
    address_line1: Optional[str],
    address_line2: Optional[str],
    city: Optional[str],
    state: Optional[str],
    zip_code: Optional[str],
) -> Optional[str]:
    """
    Format a mailing address as "line1\\nline2\\ncity state zip".

    Returns None when every part is blank.
    """
    locality = " ".join(part for part in (clean_text(city), clean_text(state), clean_text(zip_code)) if part)
    lines = [line for line in (clean_text(address_line1), clean_text(address_line2), locality or None) if line]
    if not lines:
        return None
    return "\n".join(lines)
