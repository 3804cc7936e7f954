from sqlalchemy import Column, ForeignKey, Index, String, text
from sqlalchemy.orm import relationship

from src.database import Base
from src.orm_mixins import SoftDeleteMixin, TimestampMixin, UUIDPrimaryKeyMixin


class Like(Base, UUIDPrimaryKeyMixin, SoftDeleteMixin, TimestampMixin):
    __tablename__ = "likes"

    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    post_id = Column(String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)

    post = relationship("Post", back_populates="likes")

    # Unlike soft-deletes; a later like restores the same row
    __table_args__ = (
        Index(
            "uq_likes_user_post_live",
            "user_id",
            "post_id",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )
