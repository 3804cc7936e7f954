import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UUIDPrimaryKeyMixin:
    """36-character canonical UUID primary key, assigned server-side on insert."""
    id = Column(String(36), primary_key=True, default=generate_uuid)


class SoftDeleteMixin:
    """Mixin to add soft-delete support via `deleted_at` timestamp.

    Rows are live when deleted_at IS NULL. Queries must say so explicitly.
    """
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self) -> None:
        self.deleted_at = utcnow()

    def restore(self) -> None:
        self.deleted_at = None


class TimestampMixin:
    """Mixin to add created_at and updated_at timestamps."""
    # Python-side default keeps sub-second ordering on every backend
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=True)
