"""Tests for keyword topic suggestions."""

from types import SimpleNamespace

from radar.services.topic_suggestion import score_topic, suggest_topic


def _topic(topic_id, name):
    return SimpleNamespace(id=topic_id, name=name)


def test_full_name_and_word_scores():
    # Full name (10) plus two words of three or more letters (3 each)
    assert score_topic("the climate policy debate", "Climate Policy") >= 16


def test_associated_keywords_pick_the_topic():
    topics = [_topic("t-crypto", "Crypto"), _topic("t-ai", "AI Research")]

    assert suggest_topic("OpenAI ships a new model", None, topics) == "t-ai"
    assert suggest_topic("Bitcoin ETF approved", "Ethereum next?", topics) == "t-crypto"


def test_ties_go_to_the_first_topic():
    topics = [_topic("first", "Markets"), _topic("second", "Markets")]

    assert suggest_topic("Markets rally", "", topics) == "first"


def test_no_match_returns_none():
    topics = [_topic("t-garden", "Gardening")]

    assert suggest_topic("Quarterly earnings call", "", topics) is None
    assert suggest_topic("anything", "", []) is None
