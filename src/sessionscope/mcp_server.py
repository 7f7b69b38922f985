"""MCP stdio server exposing the archive as four tools.

Each tool returns pretty-printed JSON text. Unknown session ids and empty
queries come back as tool errors rather than protocol errors.
"""

import json
import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from .archive import SessionArchive
from .errors import InvalidQuery, NotFound
from .export import context_to_dict, result_to_dict, session_to_dict, summary_to_dict

logger = logging.getLogger(__name__)

SERVER_NAME = "sessionscope"

INSTRUCTIONS = """\
Read-only access to local Claude Code CLI session transcripts.

1. list_sessions: recent sessions with id, timestamps, message count and a preview.
2. search_sessions: keyword search; every result contains at least one query term.
3. get_session_context: condensed summary (initial request, files, key terms).
   Prefer this over get_session to decide whether a session is relevant.
4. get_session: every message of one session.
"""


def _dumps(data) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


class ArchiveTools:
    """Tool implementations, kept separate from registration for testing."""

    def __init__(self, archive: SessionArchive):
        self.archive = archive

    def list_sessions(self, limit: int = 20) -> str:
        sessions = self.archive.list_sessions(limit)
        return _dumps([summary_to_dict(s) for s in sessions])

    def search_sessions(self, query: str, limit: int = 10) -> str:
        try:
            results = self.archive.search_sessions(query, limit)
        except InvalidQuery as e:
            raise ToolError(str(e)) from e
        return _dumps([result_to_dict(r) for r in results])

    def get_session(self, session_id: str) -> str:
        try:
            session = self.archive.get_session(session_id)
        except NotFound as e:
            raise ToolError(str(e)) from e
        return _dumps(session_to_dict(session))

    def get_session_context(self, session_id: str) -> str:
        try:
            context = self.archive.get_session_context(session_id)
        except NotFound as e:
            raise ToolError(str(e)) from e
        return _dumps(context_to_dict(context))


def build_server(archive: Optional[SessionArchive] = None) -> FastMCP:
    """Create a FastMCP server whose tools query the given archive."""
    tools = ArchiveTools(archive or SessionArchive())
    server = FastMCP(SERVER_NAME, instructions=INSTRUCTIONS)

    @server.tool(
        name="list_sessions",
        description="List recent Claude Code CLI sessions. Returns session IDs, timestamps, and previews.",
    )
    def list_sessions(limit: int = 20) -> str:
        """limit: maximum number of sessions to return (default 20, max 100)."""
        return tools.list_sessions(limit)

    @server.tool(
        name="search_sessions",
        description="Search Claude Code CLI sessions by keyword. Finds sessions containing the search terms in messages.",
    )
    def search_sessions(query: str, limit: int = 10) -> str:
        """query: search terms; limit: maximum results (default 10, max 50)."""
        return tools.search_sessions(query, limit)

    @server.tool(
        name="get_session",
        description="Get the full content of a specific Claude Code session by ID. Returns all messages in the session.",
    )
    def get_session(session_id: str) -> str:
        """session_id: the session ID to retrieve."""
        return tools.get_session(session_id)

    @server.tool(
        name="get_session_context",
        description=(
            "Get a condensed context summary of a Claude Code session, suitable for "
            "understanding what was worked on without full message history."
        ),
    )
    def get_session_context(session_id: str) -> str:
        """session_id: the session ID to get context for."""
        return tools.get_session_context(session_id)

    return server


def run_stdio(archive: Optional[SessionArchive] = None) -> None:
    """Serve MCP over stdin/stdout until the client disconnects."""
    server = build_server(archive)
    logger.info("Starting MCP stdio server")
    server.run()
