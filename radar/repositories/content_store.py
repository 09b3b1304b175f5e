"""Persistence boundary for the fetch cycles.

``ContentStore`` is the narrow interface the pipeline talks to; the
SQLAlchemy implementation commits every write on its own so a cancelled or
failing cycle leaves a well-defined prefix behind.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from sqlalchemy import distinct
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from radar.core.errors import PersistenceError
from radar.core.logging import get_logger
from radar.models.content import LoadedSource, NormalizedItem
from radar.models.contracts import SourceType
from radar.models.metadata import decode_source_metadata
from radar.models.schema import ContentItem, Source, Topic

logger = get_logger(__name__)


class ContentStore(Protocol):
    def find(self, account_id: str, external_id: str) -> ContentItem | None: ...

    def insert(self, account_id: str, source: LoadedSource, item: NormalizedItem) -> ContentItem: ...

    def update(self, row: ContentItem, fields: dict[str, Any]) -> ContentItem: ...

    def list_sources(
        self,
        account_id: str,
        source_type: SourceType,
        *,
        active_only: bool = True,
        source_id: str | None = None,
    ) -> list[LoadedSource]: ...

    def update_source(self, source_id: str, **fields: Any) -> None: ...

    def mark_fetched(self, source_id: str, fetched_at: datetime) -> None: ...

    def list_accounts_with_active_sources(self) -> list[str]: ...

    def list_topics(self, account_id: str) -> list[Topic]: ...


def _is_duplicate_error(error: Exception) -> bool:
    message = str(error)
    return "UNIQUE constraint failed" in message or "duplicate key value" in message


def load_source(row: Source) -> LoadedSource:
    """Decode a source row, typing its metadata once."""
    return LoadedSource(
        id=row.id,
        account_id=row.account_id,
        type=SourceType(row.type),
        name=row.name or "",
        url=row.url,
        channel_id=row.channel_id,
        topic_id=row.topic_id,
        metadata=decode_source_metadata(row.type, row.source_metadata),
        last_fetched_at=row.last_fetched_at,
    )


class SqlAlchemyContentStore:
    """ContentStore over a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def find(self, account_id: str, external_id: str) -> ContentItem | None:
        try:
            return (
                self.db.query(ContentItem)
                .filter(ContentItem.account_id == account_id, ContentItem.external_id == external_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to look up {external_id}: {e}") from e

    def insert(self, account_id: str, source: LoadedSource, item: NormalizedItem) -> ContentItem:
        row = ContentItem(
            account_id=account_id,
            source_id=source.id,
            topic_id=source.topic_id,
            external_id=item.external_id,
            type=item.type.value,
            title=item.title,
            summary=item.summary,
            content=item.content,
            url=item.url,
            thumbnail_url=item.thumbnail_url,
            author=item.author,
            published_at=item.published_at,
            duration_seconds=item.duration_seconds,
            item_metadata=item.metadata,
        )
        self.db.add(row)
        self._commit(f"insert {item.external_id}")
        try:
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to reload {item.external_id}: {e}") from e
        return row

    def update(self, row: ContentItem, fields: dict[str, Any]) -> ContentItem:
        for key, value in fields.items():
            setattr(row, key, value)
        self._commit(f"update {row.external_id}")
        return row

    def list_sources(
        self,
        account_id: str,
        source_type: SourceType,
        *,
        active_only: bool = True,
        source_id: str | None = None,
    ) -> list[LoadedSource]:
        query = self.db.query(Source).filter(
            Source.account_id == account_id, Source.type == source_type.value
        )
        if active_only:
            query = query.filter(Source.is_active.is_(True))
        if source_id:
            query = query.filter(Source.id == source_id)
        return [load_source(row) for row in query.order_by(Source.created_at, Source.id).all()]

    def update_source(self, source_id: str, **fields: Any) -> None:
        row = self.db.get(Source, source_id)
        if row is None:
            logger.warning(f"Source {source_id} vanished before update")
            return
        for key, value in fields.items():
            setattr(row, key, value)
        self._commit(f"update source {source_id}")

    def mark_fetched(self, source_id: str, fetched_at: datetime) -> None:
        self.update_source(source_id, last_fetched_at=fetched_at)

    def list_accounts_with_active_sources(self) -> list[str]:
        rows = (
            self.db.query(distinct(Source.account_id))
            .filter(Source.is_active.is_(True))
            .order_by(Source.account_id)
            .all()
        )
        return [account_id for (account_id,) in rows]

    def list_topics(self, account_id: str) -> list[Topic]:
        return (
            self.db.query(Topic)
            .filter(Topic.account_id == account_id)
            .order_by(Topic.created_at, Topic.id)
            .all()
        )

    def _commit(self, what: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise PersistenceError(
                f"Failed to {what}: {e.orig}", duplicate=_is_duplicate_error(e)
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to {what}: {e}") from e
