"""Tests for transcript summaries."""

from pydantic_ai import Agent
from pydantic_ai.models.test import TestModel as StubModel

from radar.services.summarization import (
    TranscriptSummarizer,
    build_summary_prompt,
    get_default_summarizer,
)


def test_summary_is_truncated(mocker):
    agent = Agent(StubModel(custom_output_text="word " * 100), output_type=str)
    mocker.patch("radar.services.summarization.get_summary_agent", return_value=agent)

    summary = TranscriptSummarizer("test").summarize("a long transcript", "Video")

    assert len(summary) <= 300
    assert summary.endswith("...")


def test_agent_failure_returns_none(mocker):
    agent = mocker.Mock()
    agent.run_sync.side_effect = RuntimeError("rate limited")
    mocker.patch("radar.services.summarization.get_summary_agent", return_value=agent)

    assert TranscriptSummarizer("test").summarize("transcript", "Video") is None


def test_blank_transcript_skips_the_model(mocker):
    get_agent = mocker.patch("radar.services.summarization.get_summary_agent")

    assert TranscriptSummarizer("test").summarize("   ", "Video") is None
    get_agent.assert_not_called()


def test_prompt_clips_long_transcripts():
    prompt = build_summary_prompt("x" * 100_000, "Title")

    assert prompt.startswith("Video title: Title")
    assert len(prompt) < 61_000


def test_no_default_summarizer_without_key():
    assert get_default_summarizer() is None
