"""
Models for Users module
"""
import enum

from sqlalchemy import Boolean, Column, Enum, String
from sqlalchemy.orm import relationship

from src.database import Base
from src.orm_mixins import SoftDeleteMixin, TimestampMixin, UUIDPrimaryKeyMixin


class UserRole(str, enum.Enum):
    VIEWER = "viewer"
    CREATOR = "creator"
    MODERATOR = "moderator"


class User(Base, UUIDPrimaryKeyMixin, SoftDeleteMixin, TimestampMixin):
    __tablename__ = "users"

    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        default=UserRole.VIEWER,
        nullable=False,
    )
    avatar_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    posts = relationship("Post", back_populates="creator")
    wallet = relationship("Wallet", back_populates="user", uselist=False)
