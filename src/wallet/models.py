import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from src.database import Base
from src.orm_mixins import TimestampMixin, UUIDPrimaryKeyMixin, utcnow


class TransactionType(str, enum.Enum):
    PURCHASE = "purchase"
    EARN = "earn"
    REFUND = "refund"
    DONATION = "donation"


class Wallet(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "wallets"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    balance = Column(Integer, default=0, nullable=False)

    user = relationship("User", back_populates="wallet")

    __table_args__ = (
        CheckConstraint("balance >= 0", name="balance_non_negative"),
    )


class Transaction(Base, UUIDPrimaryKeyMixin):
    """Append-only ledger entry; `amount` is the signed balance delta."""
    __tablename__ = "transactions"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    post_id = Column(String(36), ForeignKey("posts.id", ondelete="SET NULL"), nullable=True, index=True)
    type = Column(
        Enum(TransactionType, name="transaction_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    amount = Column(Integer, nullable=False)
    balance_before = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)
