"""Typed failures raised by the donation tracker services."""


class DonationTrackerError(Exception):
    """Base exception for service errors."""

    pass


class ValidationError(DonationTrackerError):
    """
    User-correctable failure scoped to a field.

    Base-level errors (not tied to one attribute) use field="base".
    """

    def __init__(self, message: str, field: str = "base"):
        super().__init__(message)
        self.message = message
        self.field = field

    @property
    def errors(self) -> dict[str, list[str]]:
        return {self.field: [self.message]}

    @property
    def full_message(self) -> str:
        """Human-readable message, prefixed with the field name unless base-level."""
        if self.field == "base":
            return self.message
        label = self.field.replace("_", " ").capitalize()
        return f"{label} {self.message}"

    def __str__(self) -> str:
        return self.full_message


class ConflictError(DonationTrackerError):
    """A concurrent writer inserted the same row first."""

    pass


class NotFoundError(DonationTrackerError):
    """Referenced record does not exist."""

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id
