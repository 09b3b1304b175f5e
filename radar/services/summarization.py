"""Short AI summaries of video transcripts using pydantic-ai agents."""

from __future__ import annotations

from functools import lru_cache
from typing import Protocol

from pydantic_ai import Agent
from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.providers.anthropic import AnthropicProvider

from radar.core.logging import get_logger
from radar.core.settings import get_settings
from radar.utils.error_logger import log_error
from radar.utils.text_scanner import truncate

logger = get_logger(__name__)

SUMMARY_MAX_CHARS = 300
# Transcripts of long videos are clipped before prompting
MAX_TRANSCRIPT_CHARS = 60_000

SUMMARY_SYSTEM_PROMPT = (
    "You summarize YouTube video transcripts for a news dashboard. "
    "Write two or three plain sentences covering the main points. "
    "No preamble, no bullet points, no markdown. Stay under 300 characters."
)


class Summarizer(Protocol):
    def summarize(self, text: str, title: str) -> str | None: ...


def build_summary_prompt(text: str, title: str) -> str:
    return f"Video title: {title}\n\nTranscript:\n{text[:MAX_TRANSCRIPT_CHARS]}"


@lru_cache(maxsize=4)
def get_summary_agent(model_spec: str) -> Agent[None, str]:
    """Build and cache the summary agent for a ``provider:model`` spec."""
    settings = get_settings()
    provider_name, _, model_name = model_spec.partition(":")
    if provider_name == "anthropic" and settings.anthropic_api_key:
        model = AnthropicModel(
            model_name, provider=AnthropicProvider(api_key=settings.anthropic_api_key)
        )
        return Agent(model, output_type=str, system_prompt=SUMMARY_SYSTEM_PROMPT)
    return Agent(model_spec, output_type=str, system_prompt=SUMMARY_SYSTEM_PROMPT)


class TranscriptSummarizer:
    """Summarizer backed by a pydantic-ai agent; any failure yields ``None``."""

    def __init__(self, model_spec: str | None = None):
        self.model_spec = model_spec or get_settings().summary_model

    def summarize(self, text: str, title: str) -> str | None:
        if not text or not text.strip():
            return None

        try:
            agent = get_summary_agent(self.model_spec)
            result = agent.run_sync(build_summary_prompt(text, title))
        except Exception as e:
            log_error(
                "summarization",
                e,
                operation="summarize_transcript",
                context={"title": title, "model": self.model_spec, "chars": len(text)},
            )
            return None

        summary = (result.output or "").strip()
        return truncate(summary, SUMMARY_MAX_CHARS) or None


def get_default_summarizer() -> Summarizer | None:
    """Return the configured summarizer, or ``None`` without an Anthropic key."""
    settings = get_settings()
    if settings.summary_model.startswith("anthropic:") and not settings.anthropic_api_key:
        logger.info("ANTHROPIC_API_KEY not set; video summaries fall back to descriptions")
        return None
    return TranscriptSummarizer(settings.summary_model)
