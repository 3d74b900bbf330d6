"""Donor and child enums."""

from enum import Enum


class ChildGender(str, Enum):
    BOY = "boy"
    GIRL = "girl"


class MergeField(str, Enum):
    """Field groups a donor merge can pick a winner for."""

    NAME = "name"
    EMAIL = "email"
    PHONE = "phone"
    ADDRESS = "address"
