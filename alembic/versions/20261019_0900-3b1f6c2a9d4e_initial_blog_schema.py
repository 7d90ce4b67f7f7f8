"""initial_blog_schema

Revision ID: 3b1f6c2a9d4e
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3b1f6c2a9d4e'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=20), nullable=False, comment='用户名'),
        sa.Column('hashed_password', sa.String(length=255), nullable=False, comment='密码哈希'),
        sa.Column('role', sa.String(length=10), nullable=False, comment='角色: user/admin'),
        sa.Column('status', sa.String(length=10), nullable=False, comment='状态: active/banned'),
        sa.Column('ban_reason', sa.Text(), nullable=True, comment='封禁原因'),
        sa.Column('ban_expire_at', sa.DateTime(timezone=True), nullable=True, comment='封禁到期时间'),
        sa.Column('real_name', sa.String(length=50), nullable=True, comment='真实姓名'),
        sa.Column('date_of_birth', sa.Date(), nullable=True, comment='出生日期'),
        sa.Column('bio', sa.Text(), nullable=True, comment='个人简介'),
        sa.Column('avatar_url', sa.String(length=255), nullable=False, comment='头像URL'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'articles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False, comment='标题'),
        sa.Column('content', sa.Text(), nullable=False, comment='Markdown 正文'),
        sa.Column('html_content', sa.Text(), nullable=True, comment='渲染后的 HTML'),
        sa.Column('image_url', sa.String(length=255), nullable=True, comment='封面图URL'),
        sa.Column('status', sa.String(length=20), nullable=False,
                  comment='状态: draft/pending/published/rejected'),
        sa.Column('review_reason', sa.Text(), nullable=True, comment='审核意见'),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True, comment='审核时间'),
        sa.Column('author_id', sa.Integer(), nullable=True, comment='作者ID'),
        sa.Column('view_count', sa.Integer(), nullable=False, comment='浏览量'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='更新时间'),
        sa.ForeignKeyConstraint(['author_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_articles_id', 'articles', ['id'])
    op.create_index('ix_articles_status', 'articles', ['status'])
    op.create_index('ix_articles_author_id', 'articles', ['author_id'])

    op.create_table(
        'tags',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False, comment='标签名'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index('ix_tags_id', 'tags', ['id'])

    op.create_table(
        'article_tags',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('article_id', sa.Integer(), nullable=False),
        sa.Column('tag_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['article_id'], ['articles.id']),
        sa.ForeignKeyConstraint(['tag_id'], ['tags.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('article_id', 'tag_id', name='uq_article_tags_article_tag'),
    )
    op.create_index('ix_article_tags_article_id', 'article_tags', ['article_id'])
    op.create_index('ix_article_tags_tag_id', 'article_tags', ['tag_id'])

    op.create_table(
        'comments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False, comment='评论内容'),
        sa.Column('article_id', sa.Integer(), nullable=False, comment='文章ID'),
        sa.Column('user_id', sa.Integer(), nullable=True, comment='评论者ID'),
        sa.Column('parent_id', sa.Integer(), nullable=True, comment='父评论ID'),
        sa.Column('visibility', sa.String(length=10), nullable=False, comment='可见性: visible/hidden'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.ForeignKeyConstraint(['article_id'], ['articles.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['parent_id'], ['comments.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_comments_id', 'comments', ['id'])
    op.create_index('ix_comments_article_id', 'comments', ['article_id'])
    op.create_index('ix_comments_user_id', 'comments', ['user_id'])
    op.create_index('ix_comments_parent_id', 'comments', ['parent_id'])

    op.create_table(
        'article_reactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('article_id', sa.Integer(), nullable=False, comment='文章ID'),
        sa.Column('user_id', sa.Integer(), nullable=False, comment='用户ID'),
        sa.Column('type', sa.String(length=10), nullable=False, comment='类型: like/love/haha/angry'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.ForeignKeyConstraint(['article_id'], ['articles.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('article_id', 'user_id', name='uq_article_reactions_article_user'),
    )
    op.create_index('ix_article_reactions_id', 'article_reactions', ['id'])
    op.create_index('ix_article_reactions_article_id', 'article_reactions', ['article_id'])
    op.create_index('ix_article_reactions_user_id', 'article_reactions', ['user_id'])


def downgrade() -> None:
    op.drop_table('article_reactions')
    op.drop_table('comments')
    op.drop_table('article_tags')
    op.drop_table('tags')
    op.drop_table('articles')
    op.drop_table('users')
