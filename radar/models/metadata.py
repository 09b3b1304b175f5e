"""
Per-source-type metadata models.

Source rows store free-form JSON. It is decoded exactly once, when a source is
loaded for a fetch cycle, into one of the variants below; downstream code never
reads the raw dict.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from radar.core.logging import get_logger
from radar.models.contracts import SourceType

logger = get_logger(__name__)


class _SourceMetadataBase(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class RssSourceMetadata(_SourceMetadataBase):
    kind: Literal["rss"] = "rss"
    item_limit: int | None = Field(
        default=None, ge=1, le=100, validation_alias=AliasChoices("item_limit", "itemLimit")
    )


class YoutubeSourceMetadata(_SourceMetadataBase):
    kind: Literal["youtube"] = "youtube"
    handle: str | None = None


class TwitterSourceMetadata(_SourceMetadataBase):
    kind: Literal["twitter"] = "twitter"
    username: str | None = None


def _clean_terms(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    terms: list[str] = []
    for term in value:
        if not isinstance(term, str):
            continue
        cleaned = term.strip().lower()
        if cleaned:
            terms.append(cleaned)
    return terms


class PolymarketSourceMetadata(_SourceMetadataBase):
    kind: Literal["polymarket"] = "polymarket"
    exclude_sports: bool = Field(
        default=True,
        validation_alias=AliasChoices("exclude_sports", "polymarketExcludeSports"),
    )
    keywords: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("keywords", "polymarketKeywords"),
    )
    exclude_keywords: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("exclude_keywords", "polymarketExcludeKeywords"),
    )
    categories: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("categories", "polymarketCategories"),
    )

    @field_validator("exclude_sports", mode="before")
    @classmethod
    def default_when_null(cls, value: Any) -> Any:
        # Only an explicit false disables the sports filter
        return True if value is None else value

    @field_validator("keywords", "exclude_keywords", "categories", mode="before")
    @classmethod
    def normalize_terms(cls, value: Any) -> list[str]:
        return _clean_terms(value)

    def to_filter_policy(self) -> FilterPolicy:
        return FilterPolicy(
            exclude_sports=self.exclude_sports,
            keywords=tuple(self.keywords),
            exclude_keywords=tuple(self.exclude_keywords),
            categories=tuple(self.categories),
        )


SourceMetadata = Annotated[
    RssSourceMetadata | YoutubeSourceMetadata | TwitterSourceMetadata | PolymarketSourceMetadata,
    Field(discriminator="kind"),
]

_METADATA_MODELS: dict[SourceType, type[_SourceMetadataBase]] = {
    SourceType.RSS: RssSourceMetadata,
    SourceType.YOUTUBE: YoutubeSourceMetadata,
    SourceType.TWITTER: TwitterSourceMetadata,
    SourceType.POLYMARKET: PolymarketSourceMetadata,
}


def decode_source_metadata(source_type: SourceType | str, raw: dict[str, Any] | None):
    """Decode a source's JSON metadata into its typed variant.

    Invalid payloads fall back to the variant's defaults so a bad settings blob
    never blocks ingestion.
    """
    model = _METADATA_MODELS[SourceType(source_type)]
    payload = {k: v for k, v in (raw or {}).items() if k != "kind"}
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.warning(
            "Invalid %s source metadata, using defaults: %s",
            source_type,
            exc,
            extra={"component": "source_metadata", "operation": "decode"},
        )
        return model()


@dataclass(frozen=True)
class FilterPolicy:
    """Inputs of the prediction-market filter engine. Terms are lowercased."""

    exclude_sports: bool = True
    keywords: tuple[str, ...] = field(default_factory=tuple)
    exclude_keywords: tuple[str, ...] = field(default_factory=tuple)
    categories: tuple[str, ...] = field(default_factory=tuple)
