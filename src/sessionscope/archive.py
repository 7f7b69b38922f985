"""The four query operations, bundled over one registry.

A SessionArchive is constructed once per process (or per test) and handed
to whichever transport serves it.
"""

import logging
from typing import Optional

from .config import Settings, load_settings
from .context import summarize
from .core import ContextSummary, SearchResult, Session, SessionSummary
from .registry import SessionRegistry
from .search import SearchEngine

logger = logging.getLogger(__name__)


class SessionArchive:
    """Read-only query surface over a local transcript archive."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or load_settings()
        self.registry = SessionRegistry(
            self.settings.roots,
            fields=self.settings.fields,
            preview_chars=self.settings.preview_chars,
            max_index_chars=self.settings.max_index_chars,
        )
        self.search_engine = SearchEngine(
            self.registry,
            default_limit=self.settings.search_default_limit,
            max_limit=self.settings.search_max_limit,
        )

    @property
    def roots(self):
        return self.settings.roots

    def list_sessions(self, limit: Optional[int] = None) -> list[SessionSummary]:
        """Most recent sessions first; limit defaults to 20 and is capped."""
        if limit is None:
            limit = self.settings.list_default_limit
        return self.registry.list(min(limit, self.settings.list_max_limit))

    def search_sessions(self, query: str, limit: Optional[int] = None) -> list[SearchResult]:
        """Raises InvalidQuery for a query with no terms."""
        return self.search_engine.search(query, limit)

    def get_session(self, session_id: str) -> Session:
        """Raises NotFound for unknown ids."""
        return self.registry.full(session_id)

    def get_session_context(self, session_id: str) -> ContextSummary:
        """Raises NotFound for unknown ids."""
        return summarize(self.registry.full(session_id))
