from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class SourceError:
    """A failure that prevented (part of) one source from being processed."""

    source_id: str
    message: str


@dataclass
class UpsertStats:
    """Outcome of reconciling one source's items against the store."""

    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    error_details: list[str] = field(default_factory=list)


@dataclass
class FetchCycleResult:
    """Unified result of one fetch cycle over one source type."""

    source_type: str
    sources_processed: int = 0
    sources_succeeded: int = 0
    sources_failed: int = 0
    items_fetched: int = 0
    items_inserted: int = 0
    items_updated: int = 0
    items_skipped: int = 0
    items_filtered_out: int = 0
    items_failed: int = 0
    per_source_errors: list[SourceError] = field(default_factory=list)
    cancelled: bool = False

    def record_failure(self, source_id: str, message: str) -> None:
        self.sources_failed += 1
        self.per_source_errors.append(SourceError(source_id=source_id, message=message))

    def absorb(self, source_id: str, stats: UpsertStats) -> None:
        """Fold one source's upsert outcome in; item failures do not fail the source."""
        self.items_inserted += stats.inserted
        self.items_updated += stats.updated
        self.items_skipped += stats.skipped
        self.items_failed += stats.errors
        self.per_source_errors.extend(
            SourceError(source_id=source_id, message=detail) for detail in stats.error_details
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
