"""Process-lifetime registry of parsed sessions.

The first query drives one scan + parse pass over the archive. For each
session only a SessionSummary and its searchable text are kept; the message
list is dropped and re-read from disk the first time someone asks for the
full session. Nothing is invalidated: restarting the process picks up new or
changed files.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .config import DEFAULT_FIELDS, FieldNames
from .core import Session, SessionSummary
from .errors import NotFound, ParseError
from .parser import parse_session
from .scanner import scan_archive

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    summary: SessionSummary
    path: Path
    text: str
    lowered: str
    session: Optional[Session] = None


class SessionRegistry:
    """Summaries and full sessions keyed by session id."""

    def __init__(
        self,
        roots: Iterable[Path],
        fields: FieldNames = DEFAULT_FIELDS,
        preview_chars: int = 200,
        max_index_chars: int = 200_000,
    ):
        self.roots = tuple(Path(r) for r in roots)
        self.fields = fields
        self.preview_chars = preview_chars
        self.max_index_chars = max_index_chars
        self._lock = threading.Lock()
        self._entries: Optional[dict[str, _Entry]] = None
        self._ranked: list[SessionSummary] = []

    @property
    def is_built(self) -> bool:
        return self._entries is not None

    def build(self) -> None:
        """Populate the cache once; concurrent callers wait for the same pass."""
        if self._entries is not None:
            return
        with self._lock:
            if self._entries is not None:
                return
            entries = self._scan()
            self._ranked = sorted(
                (e.summary for e in entries.values() if e.summary.message_count),
                key=_recency_key,
            )
            # readers skip the lock once _entries is set, so publish it last
            self._entries = entries

    def list(self, limit: int) -> list[SessionSummary]:
        """Non-empty sessions, most recent first."""
        self.build()
        if limit <= 0:
            return []
        return self._ranked[:limit]

    def all_summaries(self) -> list[SessionSummary]:
        self.build()
        return list(self._ranked)

    def corpus(self) -> list[tuple[SessionSummary, str, str]]:
        """(summary, searchable text, lowercased text) for every non-empty session."""
        self.build()
        return [(s, self._entries[s.id].text, self._entries[s.id].lowered) for s in self._ranked]

    def summary(self, session_id: str) -> SessionSummary:
        return self._entry(session_id).summary

    def full(self, session_id: str) -> Session:
        """Return the fully parsed session, loading it on first request."""
        entry = self._entry(session_id)
        if entry.session is not None:
            return entry.session

        with self._lock:
            if entry.session is None:
                try:
                    session = parse_session(entry.path.read_bytes(), entry.path, self.fields)
                except (OSError, ParseError) as e:
                    logger.warning("Session %s no longer readable at %s: %s", session_id, entry.path, e)
                    raise NotFound(session_id) from e
                entry.session = session
        return entry.session

    get = full

    # ── Private helpers ──────────────────────────────────────────────

    def _entry(self, session_id: str) -> _Entry:
        self.build()
        entry = self._entries.get(session_id)
        if entry is None:
            raise NotFound(session_id)
        return entry

    def _scan(self) -> dict[str, _Entry]:
        started = time.perf_counter()
        entries: dict[str, _Entry] = {}
        skipped = 0

        for path in scan_archive(self.roots):
            try:
                data = path.read_bytes()
                modified = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
            except OSError as e:
                logger.debug("Unreadable file %s: %s", path, e)
                skipped += 1
                continue

            try:
                session = parse_session(data, path, self.fields)
            except ParseError as e:
                logger.debug("Skipping %s: %s", path, e.kind.value)
                skipped += 1
                continue

            if session.id in entries:
                logger.info(
                    "Duplicate session id %s at %s (keeping %s)",
                    session.id, path, entries[session.id].path,
                )
                continue

            text = self._searchable_text(session)
            entries[session.id] = _Entry(
                summary=self._summarize(session, modified),
                path=path,
                text=text,
                lowered=text.lower(),
            )

        logger.info(
            "Indexed %d sessions from %d roots in %.2fs (%d files skipped)",
            len(entries), len(self.roots), time.perf_counter() - started, skipped,
        )
        return entries

    def _summarize(self, session: Session, modified: datetime) -> SessionSummary:
        return SessionSummary(
            id=session.id,
            message_count=len(session.messages),
            preview=make_preview(session, self.preview_chars),
            started_at=session.started_at,
            ended_at=session.ended_at,
            modified=modified,
            project_path=session.project_path,
            source_path=session.source_path,
        )

    def _searchable_text(self, session: Session) -> str:
        text = "\n".join(m.content for m in session.messages)
        return text[: self.max_index_chars]


def make_preview(session: Session, max_chars: int = 200) -> str:
    """First human message, cut to max_chars with a trailing ellipsis."""
    for msg in session.messages:
        if msg.role == "human":
            if len(msg.content) > max_chars:
                return msg.content[:max_chars] + "..."
            return msg.content
    return ""


def _recency_key(summary: SessionSummary):
    return (-summary.last_active.timestamp(), summary.id)
