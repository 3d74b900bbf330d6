"""Project enums."""

from enum import Enum


class ProjectType(str, Enum):
    GENERAL = "general"
    CAMPAIGN = "campaign"
    SPONSORSHIP = "sponsorship"
