"""Donor identity resolution - pure normalization and fallback rules.

Turns partial donor attributes (manual entry, payment records) into a fully
populated identity. No database access; email uniqueness is enforced by
donor_service at write time.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.utils.normalization import (
    clean_text,
    digits_only,
    format_full_address,
    is_blank,
    is_valid_email,
    normalize_name,
    normalize_zip_code,
    slugify_address_part,
    strip_whitespace,
)


ADDRESS_FIELDS = ("address_line1", "address_line2", "city", "state", "zip_code", "country")


@dataclass(frozen=True)
class DonorIdentityHints:
    """Raw donor attributes as supplied by a caller; every field optional."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None


@dataclass(frozen=True)
class ResolvedDonorIdentity:
    """Donor attributes after fallbacks; name and email always present."""

    name: str
    email: str
    phone: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None
    email_generated: bool = field(default=False, compare=False)

    @property
    def is_anonymous(self) -> bool:
        return self.name == settings.ANONYMOUS_DONOR_NAME

    @property
    def full_address(self) -> str | None:
        return format_full_address(
            self.address_line1, self.address_line2, self.city, self.state, self.zip_code
        )

    def as_attributes(self) -> dict:
        attrs = asdict(self)
        attrs.pop("email_generated")
        return attrs


def resolve_donor_identity(hints: DonorIdentityHints) -> ResolvedDonorIdentity:
    """
    Apply name/email fallbacks, validate email, and normalize zip code.

    Raises:
        ValidationError: explicit email is malformed
    """
    name = normalize_name(hints.name) or settings.ANONYMOUS_DONOR_NAME
    phone = clean_text(hints.phone)
    country = clean_text(hints.country)

    address = {
        "address_line1": clean_text(hints.address_line1),
        "address_line2": clean_text(hints.address_line2),
        "city": clean_text(hints.city),
        "state": clean_text(hints.state),
        "zip_code": normalize_zip_code(hints.zip_code, country),
    }

    explicit_email = clean_text(hints.email)
    if explicit_email is not None:
        if not is_valid_email(explicit_email):
            raise ValidationError("is invalid", field="email")
        email = explicit_email
        generated = False
    else:
        email = placeholder_email(
            name=name,
            phone=phone,
            address_line1=address["address_line1"],
            address_line2=address["address_line2"],
            city=address["city"],
        )
        generated = True

    return ResolvedDonorIdentity(
        name=name,
        email=email,
        phone=phone,
        country=country,
        email_generated=generated,
        **address,
    )


def placeholder_email(
    *,
    name: str | None,
    phone: str | None = None,
    address_line1: str | None = None,
    address_line2: str | None = None,
    city: str | None = None,
) -> str:
    """
    Build the stand-in email for a donor who gave none.

    Priority: real name, then phone digits, then street/city, then the shared
    anonymous address.
    """
    domain = settings.PLACEHOLDER_EMAIL_DOMAIN
    anonymous = settings.ANONYMOUS_DONOR_NAME

    if not is_blank(name) and normalize_name(name) != anonymous:
        return f"{strip_whitespace(name)}@{domain}"

    phone_digits = digits_only(phone)
    if phone_digits:
        return f"anonymous-{phone_digits}@{domain}"

    if not is_blank(address_line1) or not is_blank(address_line2) or not is_blank(city):
        street = slugify_address_part(address_line1) or slugify_address_part(address_line2)
        return f"anonymous-{street}-{slugify_address_part(city)}@{domain}"

    return f"{anonymous}@{domain}"
