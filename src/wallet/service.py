"""
Service layer for wallets and the transaction ledger.

Every balance change writes a Transaction whose (balance_before,
balance_after) pair straddles the change and whose amount is the signed
delta. Wallet rows are locked FOR UPDATE in ascending user-id order so two
donations between the same users cannot deadlock.
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from redis import asyncio as aioredis
from redis.exceptions import RedisError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.cache import post_key
from src.wallet.exceptions import (
    DonationTargetNotFoundException,
    InsufficientBalanceException,
    InvalidAmountException,
    SelfDonationException,
    WalletOperationException,
)
from src.wallet.models import Transaction, TransactionType, Wallet

logger = logging.getLogger(__name__)


class WalletService:
    def __init__(self, redis: aioredis.Redis):
        self.redis = redis

    async def _find_wallet(self, user_id: str, db: AsyncSession) -> Optional[Wallet]:
        result = await db.execute(
            select(Wallet).where(Wallet.user_id == user_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_or_create_wallet(self, user_id: str, db: AsyncSession) -> Wallet:
        """Wallets are materialized lazily with a zero balance."""
        wallet = await self._find_wallet(user_id, db)
        if wallet is not None:
            return wallet

        wallet = Wallet(user_id=user_id, balance=0)
        db.add(wallet)
        try:
            await db.commit()
        except IntegrityError:
            # Lost the creation race, or the user does not exist
            await db.rollback()
            wallet = await self._find_wallet(user_id, db)
            if wallet is None:
                logger.error("Failed to create wallet for user %s", user_id)
                raise WalletOperationException("Failed to get wallet")
        return wallet

    async def _lock_wallets(self, user_ids: Iterable[str], db: AsyncSession) -> Dict[str, Wallet]:
        result = await db.execute(
            select(Wallet)
            .where(Wallet.user_id.in_(sorted(set(user_ids))))
            .order_by(Wallet.user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return {wallet.user_id: wallet for wallet in result.scalars().all()}

    @staticmethod
    def _apply(
        wallet: Wallet,
        delta: int,
        tx_type: TransactionType,
        db: AsyncSession,
        post_id: Optional[str] = None,
    ) -> Transaction:
        before = wallet.balance
        wallet.balance = before + delta
        transaction = Transaction(
            user_id=wallet.user_id,
            post_id=post_id,
            type=tx_type,
            amount=delta,
            balance_before=before,
            balance_after=wallet.balance,
        )
        db.add(transaction)
        return transaction

    async def top_up(self, user_id: str, amount: int, db: AsyncSession) -> Wallet:
        if amount is None or amount < 1:
            raise InvalidAmountException()

        await self.get_or_create_wallet(user_id, db)
        try:
            wallet = (await self._lock_wallets([user_id], db))[user_id]
            self._apply(wallet, amount, TransactionType.EARN, db)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Top-up of %s failed for user %s: %s", amount, user_id, e)
            raise WalletOperationException("Failed to top up wallet")

        logger.info("User %s topped up %s", user_id, amount)
        return wallet

    async def _resolve_creator(self, post_id: str) -> Optional[str]:
        try:
            return await self.redis.hget(post_key(post_id), "creator_id")
        except RedisError as e:
            logger.error("Failed to resolve creator of post %s: %s", post_id, e)
            return None

    async def donate(self, donor_id: str, post_id: str, amount: int, db: AsyncSession) -> Tuple[Wallet, Wallet]:
        """
        Move `amount` from the donor to the creator of `post_id`.

        Both legs commit together: the donor gets a `donation` entry of
        -amount, the creator an `earn` entry of +amount carrying the post id.

        Returns:
            (donor wallet, creator wallet) after the transfer

        Raises:
            InvalidAmountException: amount below 1
            DonationTargetNotFoundException: post not in the post cache
            SelfDonationException: donor created the post
            InsufficientBalanceException: donor balance below amount
            WalletOperationException: the ledger write failed (nothing is applied)
        """
        if amount is None or amount < 1:
            raise InvalidAmountException()

        creator_id = await self._resolve_creator(post_id)
        if not creator_id:
            raise DonationTargetNotFoundException()
        if creator_id == donor_id:
            raise SelfDonationException()

        donor = await self.get_or_create_wallet(donor_id, db)
        if donor.balance < amount:
            raise InsufficientBalanceException()
        await self.get_or_create_wallet(creator_id, db)

        try:
            wallets = await self._lock_wallets([donor_id, creator_id], db)
            donor, creator = wallets[donor_id], wallets[creator_id]
            # Balance may have moved since the unlocked check
            if donor.balance < amount:
                await db.rollback()
                raise InsufficientBalanceException()

            self._apply(donor, -amount, TransactionType.DONATION, db, post_id=post_id)
            self._apply(creator, amount, TransactionType.EARN, db, post_id=post_id)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Donation of %s from %s on post %s failed: %s", amount, donor_id, post_id, e)
            raise WalletOperationException("Failed to process donation")

        logger.info("User %s donated %s to %s on post %s", donor_id, amount, creator_id, post_id)
        return donor, creator

    async def get_transactions(self, user_id: str, limit: int, offset: int, db: AsyncSession) -> List[Transaction]:
        result = await db.execute(
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())
