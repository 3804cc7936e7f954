import enum

from sqlalchemy import Column, Enum, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import relationship

from src.database import Base
from src.orm_mixins import SoftDeleteMixin, TimestampMixin, UUIDPrimaryKeyMixin


class PostType(str, enum.Enum):
    PHOTO = "photo"
    VIDEO = "video"


class PostStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def _enum_values(e):
    return [m.value for m in e]


class Post(Base, UUIDPrimaryKeyMixin, SoftDeleteMixin, TimestampMixin):
    __tablename__ = "posts"

    creator_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(Enum(PostType, name="post_type", values_callable=_enum_values), nullable=False)
    media_url = Column(String(1024), nullable=True)  # legacy single-file URL (videos)
    thumbnail_url = Column(String(1024), nullable=True)
    category = Column(String(100), nullable=True, index=True)
    status = Column(
        Enum(PostStatus, name="post_status", values_callable=_enum_values),
        default=PostStatus.PENDING,
        nullable=False,
        index=True,
    )
    views = Column(Integer, default=0, nullable=False)
    purchases = Column(Integer, default=0, nullable=False)

    # Relationships
    creator = relationship("User", back_populates="posts")
    images = relationship(
        "PostImage",
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="(PostImage.order, PostImage.id)",
        lazy="selectin",
    )
    likes = relationship("Like", back_populates="post", cascade="all, delete-orphan")


class PostImage(Base, UUIDPrimaryKeyMixin, SoftDeleteMixin, TimestampMixin):
    __tablename__ = "post_images"

    post_id = Column(String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(String(1024), nullable=False)
    thumbnail_url = Column(String(1024), nullable=True)
    order = Column("order", Integer, nullable=False, default=0)

    post = relationship("Post", back_populates="images")

    # Orders are distinct within a post
    __table_args__ = (
        Index(
            "uq_post_images_post_order_live",
            "post_id",
            "order",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )
