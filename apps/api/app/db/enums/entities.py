"""Entity types that support archive/restore."""

from enum import Enum


class EntityType(str, Enum):
    DONOR = "donor"
    CHILD = "child"
    PROJECT = "project"

    @property
    def label(self) -> str:
        return self.value
