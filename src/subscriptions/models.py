from sqlalchemy import Column, ForeignKey, Index, String, text

from src.database import Base
from src.orm_mixins import SoftDeleteMixin, TimestampMixin, UUIDPrimaryKeyMixin


class Subscription(Base, UUIDPrimaryKeyMixin, SoftDeleteMixin, TimestampMixin):
    __tablename__ = "subscriptions"

    viewer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    creator_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    # At most one live row per (viewer, creator)
    __table_args__ = (
        Index(
            "uq_subscriptions_viewer_creator_live",
            "viewer_id",
            "creator_id",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )
