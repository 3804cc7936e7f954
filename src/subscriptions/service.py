"""
Service layer for viewer -> creator subscriptions
"""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.notifications.publisher import NotificationPublisher
from src.subscriptions.exceptions import AlreadySubscribedException, SelfSubscriptionException
from src.subscriptions.models import Subscription
from src.users.exceptions import UserNotFoundException
from src.users.service import UsersService

logger = logging.getLogger(__name__)


class SubscriptionService:
    def __init__(self, users_service: Optional[UsersService] = None):
        self.users_service = users_service or UsersService()

    async def _find(self, viewer_id: str, creator_id: str, db: AsyncSession, include_deleted: bool = False) -> Optional[Subscription]:
        stmt = select(Subscription).where(
            Subscription.viewer_id == viewer_id,
            Subscription.creator_id == creator_id,
        )
        if not include_deleted:
            stmt = stmt.where(Subscription.deleted_at.is_(None))
        # A restorable row is preferred over nothing; live rows sort first
        stmt = stmt.order_by(Subscription.deleted_at.is_(None).desc(), Subscription.created_at.desc())
        result = await db.execute(stmt)
        return result.scalars().first()

    async def subscribe(
        self,
        viewer_id: str,
        creator_id: str,
        db: AsyncSession,
        publisher: NotificationPublisher,
    ) -> Subscription:
        """
        Create (or restore) the live subscription and notify the creator.

        Raises:
            SelfSubscriptionException: viewer and creator are the same user
            UserNotFoundException: creator does not exist
            AlreadySubscribedException: a live subscription exists
        """
        if viewer_id == creator_id:
            raise SelfSubscriptionException()
        if await self.users_service.find_user(creator_id, db) is None:
            raise UserNotFoundException("Creator not found")

        existing = await self._find(viewer_id, creator_id, db, include_deleted=True)
        if existing is not None and not existing.is_deleted:
            raise AlreadySubscribedException()

        if existing is not None:
            existing.restore()
            subscription = existing
        else:
            subscription = Subscription(viewer_id=viewer_id, creator_id=creator_id)
            db.add(subscription)

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise AlreadySubscribedException()
        await db.refresh(subscription)

        await publisher.publish_subscription(creator_id=creator_id, subscriber_id=viewer_id)
        return subscription

    async def unsubscribe(self, viewer_id: str, creator_id: str, db: AsyncSession) -> bool:
        """Soft-delete the live subscription. Returns False when there was none."""
        subscription = await self._find(viewer_id, creator_id, db)
        if subscription is None:
            return False
        subscription.soft_delete()
        await db.commit()
        return True

    async def is_subscribed(self, viewer_id: str, creator_id: str, db: AsyncSession) -> bool:
        return await self._find(viewer_id, creator_id, db) is not None

    async def get_subscriptions(self, viewer_id: str, db: AsyncSession) -> List[Subscription]:
        result = await db.execute(
            select(Subscription)
            .where(Subscription.viewer_id == viewer_id, Subscription.deleted_at.is_(None))
            .order_by(Subscription.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_subscriber_ids(self, creator_id: str, db: AsyncSession) -> List[str]:
        result = await db.execute(
            select(Subscription.viewer_id).where(
                Subscription.creator_id == creator_id,
                Subscription.deleted_at.is_(None),
            )
        )
        return list(result.scalars().all())
