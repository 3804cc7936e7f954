"""
Creator-scoped aggregates over posts, likes, the wallet ledger and
subscriptions. Every figure ignores soft-deleted rows.
"""
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.analytics.schemas import CreatorStatsResponse, PostAnalyticsResponse, RevenueResponse
from src.interactions.models import Like
from src.posts.exceptions import NotPostOwnerException, PostNotFoundException
from src.posts.models import Post
from src.subscriptions.models import Subscription
from src.wallet.models import Transaction, TransactionType


class AnalyticsService:
    def __init__(self):
        pass

    @staticmethod
    def _live_post_ids(creator_id: str):
        return select(Post.id).where(Post.creator_id == creator_id, Post.deleted_at.is_(None))

    async def _scalar(self, stmt, db: AsyncSession) -> int:
        value = (await db.execute(stmt)).scalar()
        return int(value or 0)

    async def get_revenue(self, creator_id: str, db: AsyncSession) -> int:
        """Donation income: positive `earn` entries that reference a post."""
        stmt = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.user_id == creator_id,
            Transaction.type == TransactionType.EARN,
            Transaction.amount > 0,
            Transaction.post_id.is_not(None),
        )
        return await self._scalar(stmt, db)

    async def get_creator_stats(self, creator_id: str, db: AsyncSession) -> CreatorStatsResponse:
        post_ids = self._live_post_ids(creator_id)

        post_row = (await db.execute(
            select(func.count(Post.id), func.coalesce(func.sum(Post.views), 0)).where(
                Post.creator_id == creator_id, Post.deleted_at.is_(None)
            )
        )).one()

        total_likes = await self._scalar(
            select(func.count(Like.id)).where(Like.post_id.in_(post_ids), Like.deleted_at.is_(None)), db
        )
        total_donations = await self._scalar(
            select(func.count(Transaction.id)).where(
                Transaction.type == TransactionType.DONATION, Transaction.post_id.in_(post_ids)
            ),
            db,
        )
        total_subscribers = await self._scalar(
            select(func.count(Subscription.id)).where(
                Subscription.creator_id == creator_id, Subscription.deleted_at.is_(None)
            ),
            db,
        )

        return CreatorStatsResponse(
            total_posts=int(post_row[0] or 0),
            total_views=int(post_row[1] or 0),
            total_donations=total_donations,
            total_likes=total_likes,
            total_revenue=await self.get_revenue(creator_id, db),
            total_subscribers=total_subscribers,
        )

    async def get_post_analytics(self, post_id: str, creator_id: str, db: AsyncSession) -> PostAnalyticsResponse:
        post = (await db.execute(
            select(Post).where(Post.id == post_id, Post.deleted_at.is_(None))
        )).scalar_one_or_none()
        if post is None:
            raise PostNotFoundException()
        if post.creator_id != creator_id:
            raise NotPostOwnerException()

        likes = await self._scalar(
            select(func.count(Like.id)).where(Like.post_id == post_id, Like.deleted_at.is_(None)), db
        )
        # Donor-side entries are negative; the total reports the amount given
        donation_row = (await db.execute(
            select(
                func.count(Transaction.id),
                func.coalesce(func.sum(func.abs(Transaction.amount)), 0),
            ).where(Transaction.post_id == post_id, Transaction.type == TransactionType.DONATION)
        )).one()

        return PostAnalyticsResponse(
            post_id=post.id,
            views=post.views or 0,
            likes=likes,
            donations_count=int(donation_row[0] or 0),
            donations_total=int(donation_row[1] or 0),
        )

    async def get_revenue_summary(self, creator_id: str, db: AsyncSession) -> RevenueResponse:
        return RevenueResponse(revenue=await self.get_revenue(creator_id, db))
