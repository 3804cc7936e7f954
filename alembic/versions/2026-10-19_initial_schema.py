"""initial_schema

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 09:12:03.411820

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_role = postgresql.ENUM('viewer', 'creator', 'moderator', name='user_role', create_type=False)
post_type = postgresql.ENUM('photo', 'video', name='post_type', create_type=False)
post_status = postgresql.ENUM('pending', 'approved', 'rejected', name='post_status', create_type=False)
transaction_type = postgresql.ENUM('purchase', 'earn', 'refund', 'donation', name='transaction_type', create_type=False)


def _timestamps():
    return [
        sa.Column('created_at', postgresql.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', postgresql.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    for enum_type in (user_role, post_type, post_status, transaction_type):
        enum_type.create(bind, checkfirst=True)

    op.create_table('users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('username', sa.String(50), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('avatar_url', sa.String(500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('deleted_at', postgresql.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='users_pkey'),
    )
    op.create_index('users_email_idx', 'users', ['email'], unique=True)
    op.create_index('users_username_idx', 'users', ['username'], unique=True)
    op.create_index('users_deleted_at_idx', 'users', ['deleted_at'])
    op.create_index('users_created_at_idx', 'users', ['created_at'])

    op.create_table('posts',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('creator_id', sa.String(36), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', post_type, nullable=False),
        sa.Column('media_url', sa.String(1024), nullable=True),
        sa.Column('thumbnail_url', sa.String(1024), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('status', post_status, nullable=False),
        sa.Column('views', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('purchases', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('deleted_at', postgresql.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['creator_id'], ['users.id'], name='posts_creator_id_fkey'),
        sa.PrimaryKeyConstraint('id', name='posts_pkey'),
    )
    op.create_index('posts_creator_id_idx', 'posts', ['creator_id'])
    op.create_index('posts_category_idx', 'posts', ['category'])
    op.create_index('posts_status_idx', 'posts', ['status'])
    op.create_index('posts_deleted_at_idx', 'posts', ['deleted_at'])
    op.create_index('posts_created_at_idx', 'posts', ['created_at'])

    op.create_table('post_images',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('post_id', sa.String(36), nullable=False),
        sa.Column('image_url', sa.String(1024), nullable=False),
        sa.Column('thumbnail_url', sa.String(1024), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('deleted_at', postgresql.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['post_id'], ['posts.id'], name='post_images_post_id_fkey', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='post_images_pkey'),
    )
    op.create_index('post_images_post_id_idx', 'post_images', ['post_id'])
    op.create_index('post_images_deleted_at_idx', 'post_images', ['deleted_at'])
    op.create_index('post_images_created_at_idx', 'post_images', ['created_at'])
    op.create_index(
        'uq_post_images_post_order_live', 'post_images', ['post_id', 'order'],
        unique=True, postgresql_where=sa.text('deleted_at IS NULL'),
    )

    op.create_table('likes',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('post_id', sa.String(36), nullable=False),
        sa.Column('deleted_at', postgresql.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='likes_user_id_fkey'),
        sa.ForeignKeyConstraint(['post_id'], ['posts.id'], name='likes_post_id_fkey', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='likes_pkey'),
    )
    op.create_index('likes_user_id_idx', 'likes', ['user_id'])
    op.create_index('likes_post_id_idx', 'likes', ['post_id'])
    op.create_index('likes_deleted_at_idx', 'likes', ['deleted_at'])
    op.create_index('likes_created_at_idx', 'likes', ['created_at'])
    op.create_index(
        'uq_likes_user_post_live', 'likes', ['user_id', 'post_id'],
        unique=True, postgresql_where=sa.text('deleted_at IS NULL'),
    )

    op.create_table('subscriptions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('viewer_id', sa.String(36), nullable=False),
        sa.Column('creator_id', sa.String(36), nullable=False),
        sa.Column('deleted_at', postgresql.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['viewer_id'], ['users.id'], name='subscriptions_viewer_id_fkey'),
        sa.ForeignKeyConstraint(['creator_id'], ['users.id'], name='subscriptions_creator_id_fkey'),
        sa.PrimaryKeyConstraint('id', name='subscriptions_pkey'),
    )
    op.create_index('subscriptions_viewer_id_idx', 'subscriptions', ['viewer_id'])
    op.create_index('subscriptions_creator_id_idx', 'subscriptions', ['creator_id'])
    op.create_index('subscriptions_deleted_at_idx', 'subscriptions', ['deleted_at'])
    op.create_index('subscriptions_created_at_idx', 'subscriptions', ['created_at'])
    op.create_index(
        'uq_subscriptions_viewer_creator_live', 'subscriptions', ['viewer_id', 'creator_id'],
        unique=True, postgresql_where=sa.text('deleted_at IS NULL'),
    )

    op.create_table('wallets',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('balance', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.CheckConstraint('balance >= 0', name='wallets_balance_non_negative_check'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='wallets_user_id_fkey', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='wallets_pkey'),
        sa.UniqueConstraint('user_id', name='wallets_user_id_key'),
    )
    op.create_index('wallets_created_at_idx', 'wallets', ['created_at'])

    op.create_table('transactions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('post_id', sa.String(36), nullable=True),
        sa.Column('type', transaction_type, nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('balance_before', sa.Integer(), nullable=False),
        sa.Column('balance_after', sa.Integer(), nullable=False),
        sa.Column('created_at', postgresql.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='transactions_user_id_fkey', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['post_id'], ['posts.id'], name='transactions_post_id_fkey', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name='transactions_pkey'),
    )
    op.create_index('transactions_user_id_idx', 'transactions', ['user_id'])
    op.create_index('transactions_post_id_idx', 'transactions', ['post_id'])
    op.create_index('transactions_type_idx', 'transactions', ['type'])
    op.create_index('transactions_created_at_idx', 'transactions', ['created_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('transactions')
    op.drop_table('wallets')
    op.drop_table('subscriptions')
    op.drop_table('likes')
    op.drop_table('post_images')
    op.drop_table('posts')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (transaction_type, post_status, post_type, user_role):
        enum_type.drop(bind, checkfirst=True)
