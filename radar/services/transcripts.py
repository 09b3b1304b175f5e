"""YouTube transcripts via yt-dlp subtitle listings.

``get_transcript`` never raises: videos without captions, members-only
videos and network failures all come back as ``None`` so the extractor can
fall back to the video description.
"""

from __future__ import annotations

import json
import re
from typing import Any, Protocol

import yt_dlp

from radar.core.errors import FetchError
from radar.core.logging import get_logger
from radar.services.http import HttpService, get_http_service

logger = get_logger(__name__)

SUBTITLE_LANGUAGES = ("en", "en-US", "en-GB")
SUPPORTED_SUBTITLE_EXTS = ("vtt", "json3", "srv3")


class TranscriptProvider(Protocol):
    def get_transcript(self, video_id: str) -> str | None: ...


class _YtDlpLogger:
    def __init__(self, base_logger):
        self._logger = base_logger

    def debug(self, msg: str) -> None:
        self._logger.debug(msg)

    def warning(self, msg: str) -> None:
        self._logger.debug(msg)

    def error(self, msg: str) -> None:
        self._logger.info(msg)


def parse_vtt(vtt_content: str) -> str:
    """Flatten WebVTT cues to plain text, dropping repeated rolling-caption lines."""
    transcript_lines: list[str] = []
    for raw_line in vtt_content.splitlines():
        line = raw_line.strip()
        if not line or "-->" in line or line == "WEBVTT" or line.isdigit():
            continue
        if line.startswith(("Kind:", "Language:", "NOTE", "STYLE")):
            continue
        line = re.sub(r"<[^>]+>", "", line).strip()
        if line and (not transcript_lines or transcript_lines[-1] != line):
            transcript_lines.append(line)
    return " ".join(transcript_lines)


def parse_json_subtitle(json_content: str) -> str:
    """Flatten json3/srv3 subtitle events to plain text."""
    try:
        data = json.loads(json_content)
    except json.JSONDecodeError:
        logger.info("Failed to parse JSON subtitle")
        return ""

    if isinstance(data, dict) and "events" in data:
        parts: list[str] = []
        for event in data.get("events") or []:
            for seg in event.get("segs") or []:
                text = (seg.get("utf8") or "").strip()
                if text:
                    parts.append(text)
        return " ".join(parts)

    if isinstance(data, list):
        return " ".join(item.get("text", "") for item in data if isinstance(item, dict))

    return ""


def parse_subtitle(data: str, ext: str | None = None) -> str:
    if ext == "vtt" or data.lstrip().startswith("WEBVTT"):
        return parse_vtt(data)
    if ext in ("json3", "srv3") or data.lstrip().startswith(("{", "[")):
        return parse_json_subtitle(data)
    return data.strip()


def pick_subtitle_track(video_info: dict[str, Any]) -> dict[str, Any] | None:
    """Prefer manual English subtitles over automatic captions."""
    for pool_key in ("subtitles", "automatic_captions"):
        pool = video_info.get(pool_key) or {}
        for language in SUBTITLE_LANGUAGES:
            for track in pool.get(language) or []:
                if track.get("ext") in SUPPORTED_SUBTITLE_EXTS and track.get("url"):
                    return track
    return None


class YtDlpTranscriptService:
    """Transcript provider backed by yt-dlp metadata extraction."""

    def __init__(self, http: HttpService | None = None):
        self.http = http or get_http_service()
        self.ydl_opts: dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "writesubtitles": True,
            "writeautomaticsub": True,
            "subtitleslangs": list(SUBTITLE_LANGUAGES),
            "logger": _YtDlpLogger(logger),
        }

    def _extract_info(self, video_id: str) -> dict[str, Any] | None:
        url = f"https://www.youtube.com/watch?v={video_id}"
        with yt_dlp.YoutubeDL(self.ydl_opts) as ydl:
            return ydl.extract_info(url, download=False)

    def get_transcript(self, video_id: str) -> str | None:
        try:
            info = self._extract_info(video_id)
        except yt_dlp.utils.DownloadError as e:
            logger.info(f"yt-dlp could not read {video_id}: {e}")
            return None
        except Exception as e:
            logger.warning(f"Unexpected yt-dlp failure for {video_id}: {e}")
            return None

        track = pick_subtitle_track(info or {})
        if track is None:
            logger.debug(f"No English subtitles for video {video_id}")
            return None

        try:
            raw, _ = self.http.fetch_text(track["url"])
        except FetchError as e:
            logger.info(f"Subtitle download failed for {video_id}: {e}")
            return None

        transcript = parse_subtitle(raw, track.get("ext"))
        return transcript or None
