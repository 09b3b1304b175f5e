"""YouTube channel feed extraction and fetch cycle."""

from __future__ import annotations

import re
import threading
from collections.abc import Collection, Iterable
from datetime import UTC, datetime, timedelta

from radar.core.logging import get_logger
from radar.core.settings import get_settings
from radar.models.content import LoadedSource, NormalizedItem
from radar.models.contracts import ContentType, SourceType
from radar.models.fetch_results import FetchCycleResult
from radar.repositories.content_store import ContentStore
from radar.scraping.base import BaseFetchCycle
from radar.services.channel_resolver import YOUTUBE_API_BASE, ChannelResolver
from radar.services.http import HttpService
from radar.services.summarization import Summarizer, get_default_summarizer
from radar.services.transcripts import TranscriptProvider, YtDlpTranscriptService
from radar.utils.text_scanner import scan_youtube_feed_entries, truncate

logger = get_logger(__name__)

MAX_VIDEO_AGE = timedelta(days=30)
SUMMARY_CHARS = 300
CHANNEL_FEED_URL = "https://www.youtube.com/feeds/videos.xml?channel_id={channel_id}"
THUMBNAIL_URL = "https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"
WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

_DURATION_PATTERN = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


def parse_duration(duration: str | None) -> int | None:
    """Convert an ISO-8601 ``PT#H#M#S`` duration to seconds."""
    if not duration:
        return None
    match = _DURATION_PATTERN.match(duration)
    if not match:
        return None
    hours, minutes, seconds = (int(part or 0) for part in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def parse_channel_feed(xml: str, now: datetime | None = None) -> list[dict]:
    """
    Return the channel feed entries still inside the age window.

    Entries with an unparseable ``<published>`` are kept; YouTube always
    sends one, so a missing date means a format change rather than old video.
    """
    now = now or datetime.now(UTC)
    cutoff = now - MAX_VIDEO_AGE

    kept = []
    for entry in scan_youtube_feed_entries(xml):
        published = _parse_timestamp(entry.get("published"))
        if published is not None and published < cutoff:
            continue
        kept.append({**entry, "published_at": published})
    return kept


def extract_video_items(
    entries: Iterable[dict],
    transcripts: TranscriptProvider | None = None,
    summarizer: Summarizer | None = None,
    durations: dict[str, int] | None = None,
    cancel_event: threading.Event | None = None,
    already_stored: Collection[str] = (),
) -> list[NormalizedItem]:
    """
    Build video items, preferring transcript content and AI summaries.

    Videos in ``already_stored`` skip transcript and summary work; the upsert
    step will skip them anyway.
    """
    items: list[NormalizedItem] = []
    durations = durations or {}

    for entry in entries:
        if cancel_event is not None and cancel_event.is_set():
            break

        video_id = entry["video_id"]
        title = entry.get("title") or "Untitled"
        description = entry.get("description") or ""

        summary = truncate(description, SUMMARY_CHARS) or None
        content = description or None

        transcript = None if video_id in already_stored else _safe_transcript(transcripts, video_id)
        if transcript:
            content = transcript
            ai_summary = _safe_summary(summarizer, transcript, title)
            if ai_summary:
                summary = ai_summary

        items.append(
            NormalizedItem(
                external_id=video_id,
                type=ContentType.VIDEO,
                title=title,
                summary=summary,
                content=content,
                url=WATCH_URL.format(video_id=video_id),
                thumbnail_url=THUMBNAIL_URL.format(video_id=video_id),
                author=entry.get("author"),
                published_at=entry.get("published_at"),
                duration_seconds=durations.get(video_id),
            )
        )
    return items


def _safe_transcript(transcripts: TranscriptProvider | None, video_id: str) -> str | None:
    if transcripts is None:
        return None
    try:
        return transcripts.get_transcript(video_id)
    except Exception as e:
        logger.warning(f"Failed to process transcript for {video_id}: {e}")
        return None


def _safe_summary(summarizer: Summarizer | None, transcript: str, title: str) -> str | None:
    if summarizer is None:
        return None
    try:
        return summarizer.summarize(transcript, title)
    except Exception as e:
        logger.warning(f"Failed to summarize transcript for {title!r}: {e}")
        return None


def fetch_durations(http: HttpService, api_key: str | None, video_ids: list[str]) -> dict[str, int]:
    """Look up durations with videos.list; any failure leaves durations unknown."""
    if not api_key or not video_ids:
        return {}
    try:
        data = http.fetch_json(
            f"{YOUTUBE_API_BASE}/videos",
            params={"key": api_key, "id": ",".join(video_ids), "part": "contentDetails"},
        )
    except Exception as e:
        logger.info(f"Could not fetch video durations: {e}")
        return {}

    durations: dict[str, int] = {}
    for video in (data or {}).get("items") or []:
        seconds = parse_duration((video.get("contentDetails") or {}).get("duration"))
        if video.get("id") and seconds is not None:
            durations[video["id"]] = seconds
    return durations


class YoutubeFetchCycle(BaseFetchCycle):
    """Polls YouTube channels through their public Atom feeds."""

    source_type = SourceType.YOUTUBE

    def __init__(
        self,
        store: ContentStore | None = None,
        http: HttpService | None = None,
        resolver: ChannelResolver | None = None,
        transcripts: TranscriptProvider | None = None,
        summarizer: Summarizer | None = None,
        api_key: str | None = None,
        now: datetime | None = None,
    ):
        super().__init__(store, http)
        self.api_key = api_key if api_key is not None else get_settings().youtube_api_key
        self.resolver = resolver or ChannelResolver(self.http, self.api_key)
        self.transcripts = transcripts if transcripts is not None else YtDlpTranscriptService(self.http)
        self.summarizer = summarizer if summarizer is not None else get_default_summarizer()
        self.now = now

    def _channel_id(self, source: LoadedSource, store: ContentStore) -> str:
        if source.channel_id:
            return source.channel_id

        channel_id = self.resolver.resolve_or_raise(source.url)
        store.update_source(source.id, channel_id=channel_id)
        logger.info(f"Cached channel id {channel_id} on source {source.id}")
        return channel_id

    def fetch_items(
        self,
        source: LoadedSource,
        store: ContentStore,
        result: FetchCycleResult,
        cancel_event: threading.Event | None = None,
    ) -> list[NormalizedItem]:
        channel_id = self._channel_id(source, store)
        xml, _ = self.http.fetch_text(CHANNEL_FEED_URL.format(channel_id=channel_id))

        entries = parse_channel_feed(xml, now=self.now)
        video_ids = [entry["video_id"] for entry in entries]
        stored = {vid for vid in video_ids if store.find(source.account_id, vid) is not None}
        durations = fetch_durations(
            self.http, self.api_key, [vid for vid in video_ids if vid not in stored]
        )
        return extract_video_items(
            entries,
            transcripts=self.transcripts,
            summarizer=self.summarizer,
            durations=durations,
            cancel_event=cancel_event,
            already_stored=stored,
        )
