"""Tests for donor data normalization helpers."""

from app.utils.normalization import (
    clean_text,
    digits_only,
    format_full_address,
    is_blank,
    is_us_country,
    is_valid_email,
    normalize_name,
    normalize_zip_code,
    slugify_address_part,
    strip_whitespace,
)


def test_is_blank_and_clean_text():
    assert is_blank(None)
    assert is_blank("   ")
    assert not is_blank(" x ")
    assert clean_text("  hi  ") == "hi"
    assert clean_text("\t") is None


def test_normalize_name_collapses_whitespace():
    assert normalize_name("  John   Doe ") == "John Doe"
    assert normalize_name("   ") is None
    assert normalize_name(None) is None


def test_whitespace_and_digit_helpers():
    assert strip_whitespace("John  Doe") == "JohnDoe"
    assert digits_only("(555) 123-4567") == "5551234567"
    assert digits_only(None) == ""
    assert slugify_address_part("123 Main St") == "123mainst"


def test_is_valid_email():
    assert is_valid_email("jane@example.com")
    assert is_valid_email("first.last+tag@sub.example.org")
    assert not is_valid_email("not-an-email")
    assert not is_valid_email("jane@")
    assert not is_valid_email("jane@example")
    assert not is_valid_email(None)


def test_is_us_country_treats_blank_as_us():
    assert is_us_country(None)
    assert is_us_country("usa")
    assert is_us_country("United States")
    assert not is_us_country("CA")


def test_normalize_zip_code_pads_us_four_digit_codes():
    assert normalize_zip_code("6419", "US") == "06419"
    assert normalize_zip_code("6419", None) == "06419"
    assert normalize_zip_code("12345", "US") == "12345"
    assert normalize_zip_code("1234", "CA") == "1234"
    assert normalize_zip_code("  ", "US") is None


def test_format_full_address():
    assert (
        format_full_address("123 Main St", "Apt 4", "Springfield", "IL", "62701")
        == "123 Main St\nApt 4\nSpringfield IL 62701"
    )
    assert format_full_address("123 Main St", None, "Springfield", None, None) == "123 Main St\nSpringfield"
    assert format_full_address(None, " ", None, None, None) is None
