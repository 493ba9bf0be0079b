"""create accounts, posts, follows and feed_entries

Revision ID: create_feed_tables
Revises:
Create Date: 2026-10-19 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'create_feed_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create source tables, counter caches and the materialized feed store"""

    op.create_table(
        'accounts',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('followers_count', sa.Integer(), nullable=False, server_default='0', comment='Number of accounts following this one'),
        sa.Column('following_count', sa.Integer(), nullable=False, server_default='0', comment='Number of accounts this one follows'),
        sa.Column('posts_count', sa.Integer(), nullable=False, server_default='0', comment='Number of posts authored, replies included'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name='pk_accounts'),
        sa.UniqueConstraint('username', name='uq_accounts_username'),
    )

    op.create_table(
        'posts',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('author_id', sa.BigInteger(), nullable=True, comment='NULL once the authoring account is deleted; the post stays visible'),
        sa.Column('content', sa.String(length=200), nullable=False),
        sa.Column('parent_id', sa.BigInteger(), nullable=True, comment='Parent post for replies, NULL for top-level posts'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name='pk_posts'),
        sa.ForeignKeyConstraint(['author_id'], ['accounts.id'], name='fk_posts_author_id_accounts', ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['parent_id'], ['posts.id'], name='fk_posts_parent_id_posts', ondelete='SET NULL'),
    )
    op.create_index('idx_posts_author_id_created_at', 'posts', ['author_id', 'created_at'])
    op.create_index('ix_posts_parent_id', 'posts', ['parent_id'])
    op.create_index('ix_posts_created_at', 'posts', ['created_at'])

    op.create_table(
        'follows',
        sa.Column('follower_id', sa.BigInteger(), nullable=False),
        sa.Column('followed_id', sa.BigInteger(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('follower_id', 'followed_id', name='pk_follows'),
        sa.ForeignKeyConstraint(['follower_id'], ['accounts.id'], name='fk_follows_follower_id_accounts', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['followed_id'], ['accounts.id'], name='fk_follows_followed_id_accounts', ondelete='CASCADE'),
        sa.CheckConstraint('follower_id <> followed_id', name='ck_follows_not_self'),
    )
    op.create_index('idx_follows_followed_id_follower_id', 'follows', ['followed_id', 'follower_id'])

    # author_id and created_at are copies of the post's values; author_id has no FK on purpose
    op.create_table(
        'feed_entries',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('owner_id', sa.BigInteger(), nullable=False, comment='Account whose timeline shows this entry'),
        sa.Column('post_id', sa.BigInteger(), nullable=False),
        sa.Column('author_id', sa.BigInteger(), nullable=False, comment='Copy of posts.author_id'),
        sa.Column('created_at', sa.DateTime(), nullable=False, comment='Copy of posts.created_at'),
        sa.PrimaryKeyConstraint('id', name='pk_feed_entries'),
        sa.ForeignKeyConstraint(['owner_id'], ['accounts.id'], name='fk_feed_entries_owner_id_accounts', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['post_id'], ['posts.id'], name='fk_feed_entries_post_id_posts', ondelete='CASCADE'),
        sa.UniqueConstraint('owner_id', 'post_id', name='uq_feed_entries_owner_id_post_id'),
    )
    op.create_index('idx_feed_entries_owner_created_post', 'feed_entries', ['owner_id', 'created_at', 'post_id'])
    op.create_index('idx_feed_entries_owner_author', 'feed_entries', ['owner_id', 'author_id'])
    op.create_index('idx_feed_entries_post_id', 'feed_entries', ['post_id'])
    op.create_index('idx_feed_entries_created_at', 'feed_entries', ['created_at'])


def downgrade() -> None:
    """Drop feed tables in dependency order"""

    op.drop_table('feed_entries')
    op.drop_table('follows')
    op.drop_table('posts')
    op.drop_table('accounts')
