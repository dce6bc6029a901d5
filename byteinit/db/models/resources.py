import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Resource(Base):
    __tablename__ = 'resources'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    url = Column(String(1000), nullable=False)
    image = Column(String(500), nullable=True)
    # ResourceType / ResourceCategory values (byteinit.utils.choices)
    type = Column(String(30), nullable=False)
    category = Column(String(30), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    author = relationship("User", lazy="joined")
    tag_links = relationship("ResourceTag", back_populates="resource", cascade="all, delete-orphan", lazy="selectin")

    __table_args__ = (
        Index('idx_resources_user_id', 'user_id'),
        Index('idx_resources_category_type', 'category', 'type'),
        Index('idx_resources_created_at', 'created_at'),
    )

    @property
    def tags(self):
        return sorted(link.tag.name for link in self.tag_links)


class ResourceInteraction(Base):
    __tablename__ = 'resource_interactions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    resource_id = Column(UUID(as_uuid=True), ForeignKey('resources.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    type = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint('resource_id', 'user_id', 'type', name='uq_resource_interactions_resource_user_type'),
        Index('idx_resource_interactions_type_created', 'type', 'created_at'),
    )


class SavedResource(Base):
    __tablename__ = 'saved_resources'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    resource_id = Column(UUID(as_uuid=True), ForeignKey('resources.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    saved_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    resource = relationship("Resource")

    __table_args__ = (
        UniqueConstraint('resource_id', 'user_id', name='uq_saved_resources_resource_user'),
        Index('idx_saved_resources_user_saved', 'user_id', 'saved_at'),
    )


class ResourceView(Base):
    __tablename__ = 'resource_views'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    resource_id = Column(UUID(as_uuid=True), ForeignKey('resources.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_resource_views_resource_created', 'resource_id', 'created_at'),
    )


class ResourceReaction(Base):
    __tablename__ = 'resource_reactions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    resource_id = Column(UUID(as_uuid=True), ForeignKey('resources.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    emoji = Column(String(32), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint('resource_id', 'user_id', 'emoji', name='uq_resource_reactions_resource_user_emoji'),
    )
