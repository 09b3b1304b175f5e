"""
Prediction-market event filtering.

Pure functions over raw Gamma API event dicts. Order is preserved and nothing
here touches the network or the store.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

from radar.models.metadata import FilterPolicy

SPORTS_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        # Major leagues
        r"\bnba\b", r"\bnfl\b", r"\bnhl\b", r"\bmlb\b", r"\bmls\b",
        r"\bncaa\b", r"\bcbb\b", r"\bcfb\b", r"\bafc\b", r"\buefa\b", r"\bfifa\b",
        # Sports
        r"basketball", r"football", r"baseball", r"hockey", r"soccer",
        r"tennis", r"golf", r"boxing", r"mma\b", r"ufc\b", r"wrestling",
        r"cricket", r"rugby", r"volleyball", r"swimming",
        # Events
        r"olympics", r"world cup", r"super bowl", r"grand slam", r"championship",
        # Teams
        r"lakers", r"celtics", r"warriors", r"bulls", r"heat",
        r"yankees", r"dodgers", r"patriots", r"chiefs",
        # Motorsports
        r"motorsport", r"f1\b", r"formula 1", r"nascar",
        # Soccer leagues
        r"premier league", r"la liga", r"bundesliga", r"serie a", r"ligue 1",
        # Esports
        r"counter-strike", r"\bcs2?\b", r"dota", r"league of legends", r"\blol\b",
        r"valorant", r"overwatch", r"esports", r"\bbo3\b", r"\bbo5\b",
    )
)  # fmt: skip


def event_text(event: dict[str, Any]) -> str:
    """``title + " " + description`` as matched by every filter."""
    return f"{event.get('title') or ''} {event.get('description') or ''}"


def event_tag_slugs(event: dict[str, Any]) -> list[str]:
    slugs: list[str] = []
    for tag in event.get("tags") or []:
        if isinstance(tag, dict) and isinstance(tag.get("slug"), str):
            slugs.append(tag["slug"].lower())
    return slugs


def is_sports_event(event: dict[str, Any]) -> bool:
    text = event_text(event)
    return any(pattern.search(text) for pattern in SPORTS_PATTERNS)


def matches_exclude_keywords(event: dict[str, Any], exclude_keywords: Iterable[str]) -> bool:
    text = event_text(event).lower()
    return any(keyword.lower() in text for keyword in exclude_keywords)


def passes_inclusion(event: dict[str, Any], policy: FilterPolicy) -> bool:
    """
    Keyword/category inclusion.

    With both lists configured an event needs a keyword OR a category hit.
    Otherwise the configured list must match; an empty list always matches.
    """
    keywords = [k.lower() for k in policy.keywords]
    categories = [c.lower() for c in policy.categories]
    if not keywords and not categories:
        return True

    text = event_text(event).lower()
    tags = event_tag_slugs(event)

    keyword_ok = not keywords or any(keyword in text for keyword in keywords)
    category_ok = not categories or any(
        any(category in tag for tag in tags) or category in text for category in categories
    )

    if keywords and categories:
        return keyword_ok or category_ok
    return keyword_ok and category_ok


def filter_events(events: Iterable[dict[str, Any]], policy: FilterPolicy) -> list[dict[str, Any]]:
    """Apply sports exclusion, exclude keywords and inclusion rules in order."""
    kept: list[dict[str, Any]] = []
    for event in events:
        if policy.exclude_sports and is_sports_event(event):
            continue
        if policy.exclude_keywords and matches_exclude_keywords(event, policy.exclude_keywords):
            continue
        if not passes_inclusion(event, policy):
            continue
        kept.append(event)
    return kept
