"""Polymarket prediction-market extraction and fetch cycle."""

from __future__ import annotations

import json
import math
import threading
from datetime import UTC, datetime
from typing import Any

from radar.core.errors import FeedParseError
from radar.core.logging import get_logger
from radar.core.settings import get_settings
from radar.models.content import LoadedSource, NormalizedItem
from radar.models.contracts import ContentType, SourceType
from radar.models.fetch_results import FetchCycleResult
from radar.models.metadata import FilterPolicy, PolymarketSourceMetadata
from radar.repositories.content_store import ContentStore
from radar.scraping.base import BaseFetchCycle
from radar.services.filters import filter_events

logger = get_logger(__name__)

EVENT_URL = "https://polymarket.com/event/{slug}"
EXTERNAL_ID_PREFIX = "polymarket:"


def safe_array(value: Any) -> list[Any]:
    """Accept a list or a JSON-encoded list; anything else is empty."""
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return []
        if isinstance(parsed, list):
            return parsed
    return []


def _to_float(value: Any) -> float | None:
    """Parse a number; NaN and infinities count as unparseable."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _first_market(event: dict[str, Any]) -> dict[str, Any]:
    markets = event.get("markets")
    if isinstance(markets, list) and markets and isinstance(markets[0], dict):
        return markets[0]
    return {}


def format_odds(event: dict[str, Any]) -> str:
    """``"Yes: 63% | No: 37%"`` from the first market's first two outcomes."""
    market = _first_market(event)
    outcomes = safe_array(market.get("outcomes"))
    prices = safe_array(market.get("outcomePrices"))
    if not outcomes or not prices:
        return ""

    parts = []
    for index, outcome in enumerate(outcomes[:2]):
        price = _to_float(prices[index]) if index < len(prices) else None
        percentage = math.floor((price or 0.0) * 100 + 0.5)
        parts.append(f"{outcome}: {percentage}%")
    return " | ".join(parts)


def format_volume(volume: Any) -> str:
    """``$1.2M`` / ``$350K`` / ``$12``; empty when volume is missing or unparseable."""
    if volume in (None, ""):
        return ""
    amount = _to_float(volume)
    if amount is None:
        return ""
    if amount >= 1_000_000:
        return f"${amount / 1_000_000:.1f}M"
    if amount >= 1_000:
        return f"${amount / 1_000:.0f}K"
    return f"${amount:.0f}"


def current_yes_price(event: dict[str, Any]) -> float | None:
    market = _first_market(event)
    outcomes = safe_array(market.get("outcomes"))
    prices = safe_array(market.get("outcomePrices"))
    for index, outcome in enumerate(outcomes):
        if isinstance(outcome, str) and outcome.lower() == "yes":
            return _to_float(prices[index]) if index < len(prices) else 0.0
    return None


def _parse_start(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def extract_prediction_item(event: dict[str, Any], now: datetime | None = None) -> NormalizedItem:
    """Normalize one Gamma API event."""
    event_id = event.get("id")
    if event_id in (None, ""):
        raise FeedParseError("Polymarket event without id")

    volume_display = format_volume(event.get("volume"))
    return NormalizedItem(
        external_id=f"{EXTERNAL_ID_PREFIX}{event_id}",
        type=ContentType.PREDICTION,
        title=event.get("title") or "Untitled",
        summary=format_odds(event),
        content=event.get("description"),
        url=EVENT_URL.format(slug=event.get("slug") or ""),
        thumbnail_url=event.get("image"),
        author=f"{volume_display} volume" if volume_display else "Polymarket",
        published_at=_parse_start(event.get("startDate")) or now or datetime.now(UTC),
        metadata={
            "volume": event.get("volume"),
            "volume24hr": event.get("volume24hr"),
            "liquidity": event.get("liquidity"),
            "markets": event.get("markets"),
            "tags": event.get("tags"),
            "endDate": event.get("endDate"),
            "currentYesPrice": current_yes_price(event),
        },
    )


class PolymarketFetchCycle(BaseFetchCycle):
    """Polls the Gamma API once per Polymarket source and applies its filters."""

    source_type = SourceType.POLYMARKET

    def fetch_events(self) -> list[dict[str, Any]]:
        settings = get_settings()
        payload = self.http.fetch_json(
            f"{settings.polymarket_api_base}/events",
            params={
                "active": "true",
                "closed": "false",
                "limit": settings.polymarket_event_limit,
                "order": "volume24hr",
                "ascending": "false",
            },
        )
        if not isinstance(payload, list):
            raise FeedParseError("Gamma API returned a non-list payload")
        return [event for event in payload if isinstance(event, dict)]

    def fetch_items(
        self,
        source: LoadedSource,
        store: ContentStore,
        result: FetchCycleResult,
        cancel_event: threading.Event | None = None,
    ) -> list[NormalizedItem]:
        events = self.fetch_events()
        policy = (
            source.metadata.to_filter_policy()
            if isinstance(source.metadata, PolymarketSourceMetadata)
            else FilterPolicy()
        )
        kept = filter_events(events, policy)
        # Filtered events still count as fetched
        result.items_filtered_out += len(events) - len(kept)
        result.items_fetched += len(events) - len(kept)

        logger.info(
            f"After filtering: {len(kept)} of {len(events)} events for {source.label}",
            extra={
                "component": "polymarket_cycle",
                "operation": "filter_events",
                "source_id": source.id,
                "context_data": {
                    "exclude_sports": policy.exclude_sports,
                    "keywords": len(policy.keywords),
                    "exclude_keywords": len(policy.exclude_keywords),
                    "categories": len(policy.categories),
                },
            },
        )

        items: list[NormalizedItem] = []
        for event in kept:
            try:
                items.append(extract_prediction_item(event))
            except (FeedParseError, ValueError) as e:
                logger.warning(f"Skipping malformed Polymarket event {event.get('id')}: {e}")
        return items
