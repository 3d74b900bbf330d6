"""Utility modules."""

from app.utils.normalization import (
    clean_text,
    is_valid_email,
    normalize_name,
    normalize_zip_code,
)
from app.utils.validation import parse_choice

__all__ = [
    # Normalization
    "clean_text",
    "is_valid_email",
    "normalize_name",
    "normalize_zip_code",
    # Validation
    "parse_choice",
]
