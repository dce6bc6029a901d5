import uuid
from sqlalchemy import Column, String, Text, Integer, DateTime, Boolean, ForeignKey, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc


class User(Base):
    __tablename__ = 'users'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(320), nullable=False, unique=True, index=True)
    username = Column(String(50), nullable=True, unique=True, index=True)
    name = Column(String(120), nullable=True)
    image = Column(String(500), nullable=True)
    is_superadmin = Column(Boolean, nullable=False, default=False)

    # Credentials; OAuth-proxy users have no password hash
    password_hash = Column(Text, nullable=True)
    email_verified_at = Column(DateTime(timezone=True), nullable=True)
    verification_token = Column(String(64), nullable=True, unique=True)
    verification_token_expires_at = Column(DateTime(timezone=True), nullable=True)
    reset_token = Column(String(64), nullable=True, unique=True)
    reset_token_expires_at = Column(DateTime(timezone=True), nullable=True)

    # Public profile
    bio = Column(Text, nullable=True)
    location = Column(String(120), nullable=True)
    website = Column(String(500), nullable=True)
    github = Column(String(120), nullable=True)
    twitter = Column(String(120), nullable=True)
    tech_stack = Column(JSONB, nullable=True)
    years_of_experience = Column(Integer, nullable=True)
    # "current_role" is reserved in PostgreSQL
    current_role = Column('role_title', String(120), nullable=True)
    company = Column(String(120), nullable=True)
    looking_for_work = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    @property
    def display_label(self) -> str:
        return self.name or self.username or "Someone"


class Follow(Base):
    __tablename__ = 'follows'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    follower_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    following_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint('follower_id', 'following_id', name='uq_follows_pair'),
        CheckConstraint('follower_id <> following_id', name='ck_follows_not_self'),
        Index('idx_follows_following_id', 'following_id'),
    )
