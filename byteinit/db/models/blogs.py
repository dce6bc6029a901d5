import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Blog(Base):
    __tablename__ = 'blogs'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    title = Column(String(300), nullable=False)
    slug = Column(String(350), nullable=False, unique=True)
    content = Column(Text, nullable=False)
    summary = Column(Text, nullable=True)
    cover_image = Column(String(500), nullable=True)
    published = Column(Boolean, nullable=False, default=False)
    featured = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    author = relationship("User", lazy="joined")
    tag_links = relationship("BlogTag", back_populates="blog", cascade="all, delete-orphan", lazy="selectin")
    topic_links = relationship("BlogTopic", back_populates="blog", cascade="all, delete-orphan", lazy="selectin")

    __table_args__ = (
        Index('idx_blogs_user_id', 'user_id'),
        Index('idx_blogs_published_created_at', 'published', 'created_at'),
        Index('idx_blogs_featured', 'featured'),
    )

    @property
    def tags(self):
        return sorted(link.tag.name for link in self.tag_links)

    @property
    def topics(self):
        return [link.topic for link in self.topic_links]


class BlogTopic(Base):
    __tablename__ = 'blog_topics'
    blog_id = Column(UUID(as_uuid=True), ForeignKey('blogs.id', ondelete='CASCADE'), primary_key=True)
    topic = Column(String(50), primary_key=True)

    blog = relationship("Blog", back_populates="topic_links")

    __table_args__ = (
        Index('idx_blog_topics_topic', 'topic'),
    )


class BlogVote(Base):
    __tablename__ = 'blog_votes'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    blog_id = Column(UUID(as_uuid=True), ForeignKey('blogs.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    type = Column(String(10), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint('blog_id', 'user_id', name='uq_blog_votes_blog_user'),
        CheckConstraint("type in ('UP','DOWN')", name='ck_blog_votes_type'),
    )


class BlogLike(Base):
    __tablename__ = 'blog_likes'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    blog_id = Column(UUID(as_uuid=True), ForeignKey('blogs.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint('blog_id', 'user_id', name='uq_blog_likes_blog_user'),
    )


class BlogSave(Base):
    __tablename__ = 'blog_saves'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    blog_id = Column(UUID(as_uuid=True), ForeignKey('blogs.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint('blog_id', 'user_id', name='uq_blog_saves_blog_user'),
        Index('idx_blog_saves_user_created', 'user_id', 'created_at'),
    )


class BlogView(Base):
    __tablename__ = 'blog_views'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    blog_id = Column(UUID(as_uuid=True), ForeignKey('blogs.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_blog_views_blog_created', 'blog_id', 'created_at'),
        Index('idx_blog_views_user_created', 'user_id', 'created_at'),
    )


class BlogReaction(Base):
    __tablename__ = 'blog_reactions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    blog_id = Column(UUID(as_uuid=True), ForeignKey('blogs.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    emoji = Column(String(32), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint('blog_id', 'user_id', 'emoji', name='uq_blog_reactions_blog_user_emoji'),
    )
