"""Suggest which of an account's topics a new source or item belongs to."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol

FULL_NAME_SCORE = 10
NAME_WORD_SCORE = 3
ASSOCIATED_KEYWORD_SCORE = 2
MIN_NAME_WORD_LENGTH = 3

# Topic-name fragment -> words that signal the topic in titles and descriptions
TOPIC_KEYWORDS: Mapping[str, tuple[str, ...]] = {
    "ai": ("artificial intelligence", "machine learning", "llm", "gpt", "openai", "anthropic",
           "neural", "model", "chatbot", "deep learning"),
    "tech": ("software", "startup", "silicon valley", "app", "developer", "cloud", "chip",
             "semiconductor", "programming"),
    "crypto": ("bitcoin", "ethereum", "blockchain", "defi", "token", "nft", "stablecoin",
               "solana", "web3"),
    "finance": ("market", "stock", "investor", "fund", "earnings", "interest rate", "inflation",
                "fed", "bond", "nasdaq"),
    "econom": ("gdp", "inflation", "recession", "jobs", "unemployment", "tariff", "trade",
               "central bank"),
    "politic": ("election", "senate", "congress", "president", "vote", "campaign", "policy",
                "democrat", "republican", "parliament"),
    "science": ("research", "study", "physics", "biology", "space", "nasa", "climate",
                "experiment", "discovery"),
    "health": ("medical", "disease", "vaccine", "hospital", "fda", "drug", "wellness",
               "nutrition", "mental health"),
    "climate": ("emissions", "carbon", "renewable", "solar", "warming", "energy", "weather"),
    "business": ("company", "ceo", "revenue", "acquisition", "merger", "ipo", "startup",
                 "profit"),
    "security": ("breach", "hack", "vulnerability", "malware", "ransomware", "cyber",
                 "exploit", "privacy"),
    "sport": ("game", "season", "league", "match", "team", "player", "championship",
              "tournament"),
    "design": ("ux", "ui", "typography", "figma", "interface", "branding", "visual"),
    "product": ("launch", "feature", "roadmap", "user research", "pricing", "growth"),
}  # fmt: skip


class TopicLike(Protocol):
    id: str
    name: str


def score_topic(text: str, topic_name: str) -> int:
    """Score one topic against already-lowercased ``text``."""
    name = (topic_name or "").strip().lower()
    if not name:
        return 0

    score = 0
    if name in text:
        score += FULL_NAME_SCORE

    for word in name.split():
        if len(word) >= MIN_NAME_WORD_LENGTH and word in text:
            score += NAME_WORD_SCORE

    for key, keywords in TOPIC_KEYWORDS.items():
        if key in name:
            score += ASSOCIATED_KEYWORD_SCORE * sum(1 for keyword in keywords if keyword in text)

    return score


def suggest_topic(
    title: str | None, description: str | None, topics: Iterable[TopicLike]
) -> str | None:
    """
    Return the id of the best-matching topic, or ``None`` when nothing scores.

    Ties go to the topic seen first.
    """
    text = f"{title or ''} {description or ''}".lower()

    best_id: str | None = None
    best_score = 0
    for topic in topics:
        score = score_topic(text, topic.name)
        if score > best_score:
            best_id, best_score = topic.id, score
    return best_id
