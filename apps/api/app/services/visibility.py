"""Explicit visibility predicates for soft-deleted records.

There is no default scope: every listing or search call site picks one of
these predicates deliberately. Lookups by id ignore visibility.
"""

from sqlalchemy import ColumnElement, and_, true

from app.db.models import Child, Donor, Project


def kept(model) -> ColumnElement[bool]:
    """Rows that are not archived (Donor, Child, Project)."""
    return model.archived_at.is_(None)


def archived(model) -> ColumnElement[bool]:
    return model.archived_at.is_not(None)


def not_merged() -> ColumnElement[bool]:
    """Donors that were not merged away into another donor."""
    return Donor.merged_into_id.is_(None)


def listable_donors(include_archived: bool = False) -> ColumnElement[bool]:
    """
    Donor listing predicate.

    Merged-away donors stay hidden even when archived donors are shown.
    """
    if include_archived:
        return not_merged()
    return and_(kept(Donor), not_merged())


def listable_children(include_archived: bool = False) -> ColumnElement[bool]:
    if include_archived:
        return true()
    return kept(Child)


def listable_projects(include_archived: bool = False) -> ColumnElement[bool]:
    if include_archived:
        return true()
    return kept(Project)
