import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Tag(Base):
    __tablename__ = 'tags'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(64), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    blog_links = relationship("BlogTag", back_populates="tag")
    resource_links = relationship("ResourceTag", back_populates="tag")

    __table_args__ = (
        Index('idx_tags_name', 'name'),
    )


class BlogTag(Base):
    __tablename__ = 'blog_tags'
    blog_id = Column(UUID(as_uuid=True), ForeignKey('blogs.id', ondelete='CASCADE'), primary_key=True)
    tag_id = Column(UUID(as_uuid=True), ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True)

    blog = relationship("Blog", back_populates="tag_links")
    tag = relationship("Tag", back_populates="blog_links", lazy="joined")


class ResourceTag(Base):
    __tablename__ = 'resource_tags'
    resource_id = Column(UUID(as_uuid=True), ForeignKey('resources.id', ondelete='CASCADE'), primary_key=True)
    tag_id = Column(UUID(as_uuid=True), ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True)

    resource = relationship("Resource", back_populates="tag_links")
    tag = relationship("Tag", back_populates="resource_links", lazy="joined")
