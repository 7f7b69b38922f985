"""Condensed context summaries: what a session was about, at a glance."""

import re
from collections import Counter

from .core import ContextSummary, Session

MAX_KEY_TERMS = 15
MAX_FILES = 20
MIN_TERM_LENGTH = 3
INITIAL_REQUEST_CHARS = 500

STOPWORDS = frozenset("""
    the a an is are was were be been being have has had do does did will would
    could should may might must shall can need dare ought used to of in for on
    with at by from as into through during before after above below between
    under again further then once here there when where why how all each few
    more most other some such no nor not only own same so than too very just
    and but if or because until while this that these those i you he she it
    we they what which who whom its his her their my your our me us them also
    let now get got like make sure yes okay ok please thanks thank any about
    out up one use using want
""".split())

FILE_EXTENSIONS = frozenset("""
    py pyi ipynb js jsx mjs cjs ts tsx vue svelte json jsonl yaml yml toml ini
    cfg conf env lock md rst txt csv tsv xml html htm css scss sass less sql sh
    bash zsh ps1 bat rs go java kt kts scala swift m mm c h cc cpp hpp cs rb
    php pl lua r dart ex exs erl hs ml clj tf proto graphql gradle dockerfile
    log pdf png jpg jpeg svg gif
""".split())

_TERM_RE = re.compile(r"[a-z0-9]+")
_URL_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)
_WRAPPING = "\"'`()[]{}<>,;:!?*"


def summarize(
    session: Session,
    max_terms: int = MAX_KEY_TERMS,
    max_files: int = MAX_FILES,
) -> ContextSummary:
    """Build a ContextSummary. Never fails, even for an empty session."""
    initial = next((m.content for m in session.messages if m.role == "human"), None)
    if initial is not None and len(initial) > INITIAL_REQUEST_CHARS:
        initial = initial[:INITIAL_REQUEST_CHARS] + "..."

    duration = None
    if session.started_at and session.ended_at:
        duration = (session.ended_at - session.started_at).total_seconds()

    texts = [m.content for m in session.messages]
    return ContextSummary(
        session_id=session.id,
        initial_request=initial,
        message_count=len(session.messages),
        human_messages=sum(1 for m in session.messages if m.role == "human"),
        assistant_messages=sum(1 for m in session.messages if m.role == "assistant"),
        started_at=session.started_at,
        ended_at=session.ended_at,
        duration_seconds=duration,
        files_mentioned=tuple(extract_file_mentions(texts, max_files)),
        key_terms=tuple(extract_key_terms(texts, max_terms)),
    )


def extract_key_terms(texts: list[str], limit: int = MAX_KEY_TERMS) -> list[str]:
    """Most frequent non-stopword terms; ties keep first-occurrence order."""
    counts: Counter[str] = Counter()
    for text in texts:
        for term in _TERM_RE.findall(text.lower()):
            if len(term) >= MIN_TERM_LENGTH and term not in STOPWORDS and not term.isdigit():
                counts[term] += 1
    # Counter preserves insertion order and sorted() is stable
    ranked = sorted(counts, key=lambda t: -counts[t])
    return ranked[:limit]


def extract_file_mentions(texts: list[str], limit: int = MAX_FILES) -> list[str]:
    """Path-like tokens in first-occurrence order, de-duplicated."""
    seen: dict[str, None] = {}
    for text in texts:
        for word in text.split():
            if len(seen) >= limit:
                return list(seen)
            candidate = word.rstrip(".").strip(_WRAPPING).rstrip(".")
            if candidate and is_path_like(candidate):
                seen.setdefault(candidate, None)
    return list(seen)


def is_path_like(token: str) -> bool:
    if _URL_RE.match(token):
        return False
    if "/" in token or "\\" in token:
        # a lone separator or "and/or" style words are not paths
        return any(c.isalnum() for c in token) and (
            "." in token
            or token.endswith(("/", "\\"))
            or token.startswith(("/", "~"))
            or token.count("/") > 1
        )
    stem, dot, ext = token.rpartition(".")
    return bool(dot and stem and any(c.isalnum() for c in stem) and ext.lower() in FILE_EXTENSIONS)
