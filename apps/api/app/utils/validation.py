"""Closed-enum validation for values arriving from outside the schemas."""

from enum import Enum
from typing import TypeVar

from app.core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def parse_choice(enum_cls: type[E], value, field: str) -> E:
    """
    Map an exact literal to its enum member.

    Raises:
        ValidationError: value is blank (can't be blank) or not a member
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("can't be blank", field=field)
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ValidationError("is not included in the list", field=field) from exc
