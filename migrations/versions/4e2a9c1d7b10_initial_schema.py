"""initial schema

Revision ID: 4e2a9c1d7b10
Revises:
Create Date: 2025-03-02 10:14:22.418903

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4e2a9c1d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column('id', sa.UUID(), nullable=False)


def _user_fk(column='user_id', nullable=False):
    return sa.Column(column, sa.UUID(), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=True),
        sa.Column('name', sa.String(length=120), nullable=True),
        sa.Column('image', sa.String(length=500), nullable=True),
        sa.Column('is_superadmin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('password_hash', sa.Text(), nullable=True),
        sa.Column('email_verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('verification_token', sa.String(length=64), nullable=True),
        sa.Column('verification_token_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reset_token', sa.String(length=64), nullable=True),
        sa.Column('reset_token_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=120), nullable=True),
        sa.Column('website', sa.String(length=500), nullable=True),
        sa.Column('github', sa.String(length=120), nullable=True),
        sa.Column('twitter', sa.String(length=120), nullable=True),
        sa.Column('tech_stack', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('years_of_experience', sa.Integer(), nullable=True),
        sa.Column('role_title', sa.String(length=120), nullable=True),
        sa.Column('company', sa.String(length=120), nullable=True),
        sa.Column('looking_for_work', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('verification_token'),
        sa.UniqueConstraint('reset_token'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'follows',
        _id(),
        sa.Column('follower_id', sa.UUID(), nullable=False),
        sa.Column('following_id', sa.UUID(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['follower_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['following_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('follower_id', 'following_id', name='uq_follows_pair'),
        sa.CheckConstraint('follower_id <> following_id', name='ck_follows_not_self'),
    )
    op.create_index('idx_follows_following_id', 'follows', ['following_id'])

    op.create_table(
        'session_tokens',
        _id(),
        _user_fk(),
        sa.Column('token_id', sa.String(length=64), nullable=False),
        sa.Column('token_hash', sa.Text(), nullable=False),
        sa.Column('user_agent', sa.String(length=300), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token_id'),
    )
    op.create_index('idx_session_tokens_user_created', 'session_tokens', ['user_id', 'created_at'])
    op.create_index('idx_session_tokens_status', 'session_tokens', ['status'])

    op.create_table(
        'tags',
        _id(),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index('idx_tags_name', 'tags', ['name'])

    op.create_table(
        'blogs',
        _id(),
        _user_fk(),
        sa.Column('title', sa.String(length=300), nullable=False),
        sa.Column('slug', sa.String(length=350), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('cover_image', sa.String(length=500), nullable=True),
        sa.Column('published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )
    op.create_index('idx_blogs_user_id', 'blogs', ['user_id'])
    op.create_index('idx_blogs_published_created_at', 'blogs', ['published', 'created_at'])
    op.create_index('idx_blogs_featured', 'blogs', ['featured'])

    op.create_table(
        'blog_topics',
        sa.Column('blog_id', sa.UUID(), nullable=False),
        sa.Column('topic', sa.String(length=50), nullable=False),
        sa.ForeignKeyConstraint(['blog_id'], ['blogs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('blog_id', 'topic'),
    )
    op.create_index('idx_blog_topics_topic', 'blog_topics', ['topic'])

    op.create_table(
        'blog_tags',
        sa.Column('blog_id', sa.UUID(), nullable=False),
        sa.Column('tag_id', sa.UUID(), nullable=False),
        sa.ForeignKeyConstraint(['blog_id'], ['blogs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tag_id'], ['tags.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('blog_id', 'tag_id'),
    )

    op.create_table(
        'blog_votes',
        _id(),
        sa.Column('blog_id', sa.UUID(), nullable=False),
        _user_fk(),
        sa.Column('type', sa.String(length=10), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['blog_id'], ['blogs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('blog_id', 'user_id', name='uq_blog_votes_blog_user'),
        sa.CheckConstraint("type in ('UP','DOWN')", name='ck_blog_votes_type'),
    )

    op.create_table(
        'blog_likes',
        _id(),
        sa.Column('blog_id', sa.UUID(), nullable=False),
        _user_fk(),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['blog_id'], ['blogs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('blog_id', 'user_id', name='uq_blog_likes_blog_user'),
    )

    op.create_table(
        'blog_saves',
        _id(),
        sa.Column('blog_id', sa.UUID(), nullable=False),
        _user_fk(),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['blog_id'], ['blogs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('blog_id', 'user_id', name='uq_blog_saves_blog_user'),
    )
    op.create_index('idx_blog_saves_user_created', 'blog_saves', ['user_id', 'created_at'])

    op.create_table(
        'blog_views',
        _id(),
        sa.Column('blog_id', sa.UUID(), nullable=False),
        _user_fk(nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['blog_id'], ['blogs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_blog_views_blog_created', 'blog_views', ['blog_id', 'created_at'])
    op.create_index('idx_blog_views_user_created', 'blog_views', ['user_id', 'created_at'])

    op.create_table(
        'blog_reactions',
        _id(),
        sa.Column('blog_id', sa.UUID(), nullable=False),
        _user_fk(),
        sa.Column('emoji', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['blog_id'], ['blogs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('blog_id', 'user_id', 'emoji', name='uq_blog_reactions_blog_user_emoji'),
    )

    op.create_table(
        'comments',
        _id(),
        sa.Column('blog_id', sa.UUID(), nullable=False),
        _user_fk(),
        sa.Column('parent_id', sa.UUID(), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['blog_id'], ['blogs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_id'], ['comments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_comments_blog_created', 'comments', ['blog_id', 'created_at'])
    op.create_index('idx_comments_parent_id', 'comments', ['parent_id'])

    op.create_table(
        'comment_reactions',
        _id(),
        sa.Column('comment_id', sa.UUID(), nullable=False),
        _user_fk(),
        sa.Column('emoji', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['comment_id'], ['comments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('comment_id', 'user_id', 'emoji', name='uq_comment_reactions_comment_user_emoji'),
    )

    op.create_table(
        'resources',
        _id(),
        _user_fk(),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('url', sa.String(length=1000), nullable=False),
        sa.Column('image', sa.String(length=500), nullable=True),
        sa.Column('type', sa.String(length=30), nullable=False),
        sa.Column('category', sa.String(length=30), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_resources_user_id', 'resources', ['user_id'])
    op.create_index('idx_resources_category_type', 'resources', ['category', 'type'])
    op.create_index('idx_resources_created_at', 'resources', ['created_at'])

    op.create_table(
        'resource_tags',
        sa.Column('resource_id', sa.UUID(), nullable=False),
        sa.Column('tag_id', sa.UUID(), nullable=False),
        sa.ForeignKeyConstraint(['resource_id'], ['resources.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tag_id'], ['tags.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('resource_id', 'tag_id'),
    )

    op.create_table(
        'resource_interactions',
        _id(),
        sa.Column('resource_id', sa.UUID(), nullable=False),
        _user_fk(),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['resource_id'], ['resources.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('resource_id', 'user_id', 'type', name='uq_resource_interactions_resource_user_type'),
    )
    op.create_index('idx_resource_interactions_type_created', 'resource_interactions', ['type', 'created_at'])

    op.create_table(
        'saved_resources',
        _id(),
        sa.Column('resource_id', sa.UUID(), nullable=False),
        _user_fk(),
        sa.Column('saved_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['resource_id'], ['resources.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('resource_id', 'user_id', name='uq_saved_resources_resource_user'),
    )
    op.create_index('idx_saved_resources_user_saved', 'saved_resources', ['user_id', 'saved_at'])

    op.create_table(
        'resource_views',
        _id(),
        sa.Column('resource_id', sa.UUID(), nullable=False),
        _user_fk(nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['resource_id'], ['resources.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_resource_views_resource_created', 'resource_views', ['resource_id', 'created_at'])

    op.create_table(
        'resource_reactions',
        _id(),
        sa.Column('resource_id', sa.UUID(), nullable=False),
        _user_fk(),
        sa.Column('emoji', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['resource_id'], ['resources.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('resource_id', 'user_id', 'emoji', name='uq_resource_reactions_resource_user_emoji'),
    )

    op.create_table(
        'user_notification_preferences',
        _id(),
        _user_fk(),
        sa.Column('event_type', sa.String(length=50), nullable=False),
        sa.Column('email_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('in_app_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_user_notification_preferences_user_id', 'user_notification_preferences', ['user_id'])
    op.create_index(
        'idx_user_notification_preferences_unique',
        'user_notification_preferences',
        ['user_id', 'event_type'],
        unique=True,
    )

    op.create_table(
        'notifications',
        _id(),
        _user_fk(),
        _user_fk('actor_user_id', nullable=True),
        sa.Column('event_type', sa.String(length=50), nullable=False),
        sa.Column('blog_id', sa.UUID(), nullable=True),
        sa.Column('resource_id', sa.UUID(), nullable=True),
        sa.Column('comment_id', sa.UUID(), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('action_url', sa.String(length=500), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['actor_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['blog_id'], ['blogs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['resource_id'], ['resources.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['comment_id'], ['comments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_notifications_user_id_created_at', 'notifications', ['user_id', 'created_at'])
    op.create_index('idx_notifications_user_id_is_read', 'notifications', ['user_id', 'is_read'])
    op.create_index('idx_notifications_expires_at', 'notifications', ['expires_at'])
    op.create_index('idx_notifications_event_type', 'notifications', ['event_type'])

    op.create_table(
        'email_notification_logs',
        _id(),
        sa.Column('notification_id', sa.UUID(), nullable=True),
        _user_fk(nullable=True),
        sa.Column('email_address', sa.String(length=320), nullable=False),
        sa.Column('event_type', sa.String(length=50), nullable=False),
        sa.Column('subject', sa.String(length=200), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('provider_message_id', sa.String(length=255), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['notification_id'], ['notifications.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'idx_email_notification_logs_user_id_created_at', 'email_notification_logs', ['user_id', 'created_at']
    )
    op.create_index('idx_email_notification_logs_status', 'email_notification_logs', ['status'])
    op.create_index('idx_email_notification_logs_event_type', 'email_notification_logs', ['event_type'])
    op.create_index(
        'idx_email_notification_logs_address_created_at',
        'email_notification_logs',
        ['email_address', 'created_at'],
    )

    op.create_table(
        'search_queries',
        _id(),
        sa.Column('query', sa.String(length=200), nullable=False),
        _user_fk(nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_search_queries_created_at', 'search_queries', ['created_at'])
    op.create_index('idx_search_queries_query', 'search_queries', ['query'])


def downgrade() -> None:
    op.drop_index('idx_search_queries_query', table_name='search_queries')
    op.drop_index('idx_search_queries_created_at', table_name='search_queries')
    op.drop_table('search_queries')
    op.drop_index('idx_email_notification_logs_address_created_at', table_name='email_notification_logs')
    op.drop_index('idx_email_notification_logs_event_type', table_name='email_notification_logs')
    op.drop_index('idx_email_notification_logs_status', table_name='email_notification_logs')
    op.drop_index('idx_email_notification_logs_user_id_created_at', table_name='email_notification_logs')
    op.drop_table('email_notification_logs')
    op.drop_index('idx_notifications_event_type', table_name='notifications')
    op.drop_index('idx_notifications_expires_at', table_name='notifications')
    op.drop_index('idx_notifications_user_id_is_read', table_name='notifications')
    op.drop_index('idx_notifications_user_id_created_at', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('idx_user_notification_preferences_unique', table_name='user_notification_preferences')
    op.drop_index('idx_user_notification_preferences_user_id', table_name='user_notification_preferences')
    op.drop_table('user_notification_preferences')
    op.drop_table('resource_reactions')
    op.drop_index('idx_resource_views_resource_created', table_name='resource_views')
    op.drop_table('resource_views')
    op.drop_index('idx_saved_resources_user_saved', table_name='saved_resources')
    op.drop_table('saved_resources')
    op.drop_index('idx_resource_interactions_type_created', table_name='resource_interactions')
    op.drop_table('resource_interactions')
    op.drop_table('resource_tags')
    op.drop_index('idx_resources_created_at', table_name='resources')
    op.drop_index('idx_resources_category_type', table_name='resources')
    op.drop_index('idx_resources_user_id', table_name='resources')
    op.drop_table('resources')
    op.drop_table('comment_reactions')
    op.drop_index('idx_comments_parent_id', table_name='comments')
    op.drop_index('idx_comments_blog_created', table_name='comments')
    op.drop_table('comments')
    op.drop_table('blog_reactions')
    op.drop_index('idx_blog_views_user_created', table_name='blog_views')
    op.drop_index('idx_blog_views_blog_created', table_name='blog_views')
    op.drop_table('blog_views')
    op.drop_index('idx_blog_saves_user_created', table_name='blog_saves')
    op.drop_table('blog_saves')
    op.drop_table('blog_likes')
    op.drop_table('blog_votes')
    op.drop_table('blog_tags')
    op.drop_index('idx_blog_topics_topic', table_name='blog_topics')
    op.drop_table('blog_topics')
    op.drop_index('idx_blogs_featured', table_name='blogs')
    op.drop_index('idx_blogs_published_created_at', table_name='blogs')
    op.drop_index('idx_blogs_user_id', table_name='blogs')
    op.drop_table('blogs')
    op.drop_index('idx_tags_name', table_name='tags')
    op.drop_table('tags')
    op.drop_index('idx_session_tokens_status', table_name='session_tokens')
    op.drop_index('idx_session_tokens_user_created', table_name='session_tokens')
    op.drop_table('session_tokens')
    op.drop_index('idx_follows_following_id', table_name='follows')
    op.drop_table('follows')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
