import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from radar.core.db import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Source(Base):
    """A configured upstream feed owned by an account."""

    __tablename__ = "sources"

    id = Column(String(36), primary_key=True, default=_new_id)
    account_id = Column(String(64), nullable=False, index=True)
    type = Column(String(20), nullable=False, index=True)
    name = Column(String(255), nullable=False, default="")
    url = Column(String(2048), nullable=False)
    # Cached YouTube channel resolution
    channel_id = Column(String(64), nullable=True)
    topic_id = Column(String(36), nullable=True, index=True)
    # Per-type policy, e.g. polymarketExcludeSports / polymarketKeywords
    source_metadata = Column("metadata", JSON, default=dict, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_fetched_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (Index("idx_sources_account_type_active", "account_id", "type", "is_active"),)


class ContentItem(Base):
    """A persisted NormalizedItem."""

    __tablename__ = "content_items"

    id = Column(String(36), primary_key=True, default=_new_id)
    account_id = Column(String(64), nullable=False, index=True)
    source_id = Column(String(36), nullable=True, index=True)
    topic_id = Column(String(36), nullable=True, index=True)
    external_id = Column(String(512), nullable=False)
    type = Column(String(20), nullable=False, index=True)
    title = Column(String(1000), nullable=False)
    summary = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    url = Column(String(2048), nullable=False, default="")
    thumbnail_url = Column(String(2048), nullable=True)
    author = Column(String(500), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True, index=True)
    duration_seconds = Column(Integer, nullable=True)
    item_metadata = Column("metadata", JSON, default=dict, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("account_id", "external_id", name="uq_content_items_account_external"),
        Index("idx_content_items_account_type", "account_id", "type"),
    )


class Topic(Base):
    """User taxonomy entry used for topic suggestions."""

    __tablename__ = "topics"

    id = Column(String(36), primary_key=True, default=_new_id)
    account_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
