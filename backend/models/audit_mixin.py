from sqlalchemy import Column, DateTime, JSON

from utils.time_utils import now


class TimestampMixin:
    """Mixin that provides created/updated timestamps and user info.

    `created_by` / `updated_by` hold a UserRef snapshot ({"uid", "name", "is_anonymous"})
    taken at write time. They are never rewritten when the user's profile changes.
    """
    created_at = Column(DateTime(timezone=True), default=now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now, nullable=False)
    created_by = Column(JSON, nullable=True)
    updated_by = Column(JSON, nullable=True)


class SoftDeleteMixin:
    """Mixin for soft-delete columns (deleted_at, deleted_by).

    Only the deleted-items table carries these; active items are moved there
    instead of being flagged in place.
    """
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(JSON, nullable=True)
