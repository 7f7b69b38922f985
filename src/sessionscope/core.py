"""Core data models for sessionscope."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Message:
    """A single turn within a session."""

    role: str  # "human" | "assistant" | "unknown"
    content: str
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class Session:
    """One coding-session transcript, fully parsed."""

    id: str  # file stem of the transcript
    messages: tuple[Message, ...] = ()
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    project_path: Optional[str] = None
    source_path: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.messages


@dataclass(frozen=True)
class SessionSummary:
    """Metadata-only projection of a session, used for listing and ranking."""

    id: str
    message_count: int
    preview: str
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    modified: Optional[datetime] = None  # file mtime
    project_path: Optional[str] = None
    source_path: str = ""

    @property
    def last_active(self) -> datetime:
        return self.ended_at or self.started_at or self.modified or EPOCH


@dataclass(frozen=True)
class SearchResult:
    """A ranked search hit."""

    session_id: str
    summary: SessionSummary
    score: float
    snippet: str


@dataclass(frozen=True)
class ContextSummary:
    """Condensed view of what a session was about."""

    session_id: str
    initial_request: Optional[str]
    message_count: int
    human_messages: int = 0
    assistant_messages: int = 0
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    files_mentioned: tuple[str, ...] = ()
    key_terms: tuple[str, ...] = ()
