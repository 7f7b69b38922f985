"""Lexical fuzzy search over the session registry."""

import re
from typing import Optional

from .core import SearchResult, SessionSummary
from .errors import InvalidQuery
from .registry import SessionRegistry

# Weights for combining search scores
PREVIEW_BONUS = 0.5
PHRASE_BONUS = 0.5
ORDER_BONUS = 0.25

SNIPPET_RADIUS = 80

_WRAPPING_PUNCTUATION = "\"'`()[]{}<>,;:!?"


def tokenize_query(query: str) -> list[str]:
    """Lowercase whitespace-separated terms, wrapping punctuation removed."""
    terms = []
    for word in query.lower().split():
        word = word.strip(_WRAPPING_PUNCTUATION)
        if word and word not in terms:
            terms.append(word)
    return terms


def score_text(terms: list[str], preview: str, text: str) -> float:
    """Score one session's text against already-lowercased query terms.

    Coverage is the share of terms present anywhere, with a bonus for terms
    that also occur in the preview (the initial request). Multi-term queries
    earn a further bonus when the terms appear as a phrase, or failing that,
    in query order. Zero means no term matched at all.
    """
    if not terms:
        return 0.0

    positions = [text.find(term) for term in terms]
    found = [p for p in positions if p >= 0]
    if not found:
        return 0.0

    coverage = len(found) / len(terms)
    preview_hits = sum(1 for term in terms if term in preview)
    score = coverage + PREVIEW_BONUS * preview_hits / len(terms)

    if len(terms) > 1 and len(found) == len(terms):
        if " ".join(terms) in text:
            score += PHRASE_BONUS
        elif positions == sorted(positions):
            score += ORDER_BONUS
    return round(score, 6)


def make_snippet(text: str, terms: list[str], radius: int = SNIPPET_RADIUS) -> str:
    """A short window of text around the earliest matching term."""
    # offsets must come from the string being sliced; lower() can change lengths
    matches = [re.search(re.escape(t), text, re.IGNORECASE) for t in terms]
    hits = [m.start() for m in matches if m]
    if not hits:
        return ""

    start = max(0, min(hits) - radius)
    end = min(len(text), min(hits) + radius)
    snippet = re.sub(r"\s+", " ", text[start:end]).strip()
    if start > 0:
        snippet = "..." + snippet
    if end < len(text):
        snippet += "..."
    return snippet


class SearchEngine:
    """Rank registry sessions against free-text queries."""

    def __init__(self, registry: SessionRegistry, default_limit: int = 10, max_limit: int = 50):
        self.registry = registry
        self.default_limit = default_limit
        self.max_limit = max_limit

    def clamp_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            limit = self.default_limit
        return max(0, min(limit, self.max_limit))

    def search(self, query: str, limit: Optional[int] = None) -> list[SearchResult]:
        terms = tokenize_query(query or "")
        if not terms:
            raise InvalidQuery()

        limit = self.clamp_limit(limit)
        if limit == 0:
            return []

        scored: list[tuple[float, SessionSummary, str]] = []
        for summary, text, lowered in self.registry.corpus():
            score = score_text(terms, summary.preview.lower(), lowered)
            if score > 0:
                scored.append((score, summary, text))

        scored.sort(key=lambda x: (-x[0], -x[1].last_active.timestamp(), x[1].id))

        return [
            SearchResult(
                session_id=summary.id,
                summary=summary,
                score=score,
                snippet=make_snippet(text, terms),
            )
            for score, summary, text in scored[:limit]
        ]
