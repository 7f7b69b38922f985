"""Shared test fixtures for sessionscope."""

import json

import pytest

from sessionscope.archive import SessionArchive
from sessionscope.config import Settings


def write_jsonl(path, records):
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [r if isinstance(r, str) else json.dumps(r) for r in records]
    path.write_text("\n".join(lines), encoding="utf-8")
    return path


@pytest.fixture
def tmp_archive(tmp_path):
    """Create a synthetic Claude Code projects directory.

    Includes:
    - session-001.jsonl: Claude Code JSONL with nested messages, tool blocks,
      snapshots and one malformed line (4 text messages, 2025-01-20)
    - session-002.json: single JSON document with a messages array (2025-01-22)
    - session-003.jsonl: flat role/content lines with epoch timestamps (2025-01-18)
    - tools-only.jsonl: parses, but has no text messages
    - notes.json (not JSON), settings.json (unrecognized), empty.jsonl (empty)
    - sessions-index.json (never scanned)
    """
    projects = tmp_path / "projects"
    myapp = projects / "-Users-testuser-dev-myapp"
    bot = projects / "-Users-testuser-dev-bot"
    myapp.mkdir(parents=True)
    bot.mkdir(parents=True)

    (myapp / "sessions-index.json").write_text(
        json.dumps([{"sessionId": "session-001", "firstPrompt": "Help me refactor the auth module"}]),
        encoding="utf-8",
    )

    write_jsonl(myapp / "session-001.jsonl", [
        # 1. User prompt
        {
            "type": "user",
            "cwd": "/Users/testuser/dev/myapp",
            "message": {"role": "user", "content": [{"type": "text", "text": "Help me refactor the auth module"}]},
            "timestamp": "2025-01-20T10:00:00Z",
            "uuid": "uuid-001",
        },
        # 2. Assistant text + tool_use in same entry
        {
            "type": "assistant",
            "cwd": "/Users/testuser/dev/myapp",
            "message": {"role": "assistant", "content": [
                {"type": "text", "text": "I'll help you refactor the auth module. Let me start by reading src/auth.ts first."},
                {"type": "tool_use", "id": "toolu_001", "name": "Read", "input": {"file_path": "/src/auth.ts"}},
            ]},
            "timestamp": "2025-01-20T10:00:30Z",
            "uuid": "uuid-002",
        },
        # 3. Tool result (no text blocks, dropped)
        {
            "type": "user",
            "message": {"role": "user", "content": [
                {"type": "tool_result", "tool_use_id": "toolu_001", "content": "export function authenticate() {}"},
            ]},
            "timestamp": "2025-01-20T10:00:31Z",
        },
        # 4. Thinking + text + tool_use
        {
            "type": "assistant",
            "message": {"role": "assistant", "content": [
                {"type": "thinking", "thinking": "I need to split validation from token refresh."},
                {"type": "text", "text": "I can see the auth module. Let me refactor it into separate concerns."},
                {"type": "tool_use", "id": "toolu_002", "name": "Edit", "input": {"file_path": "/src/auth.ts"}},
            ]},
            "timestamp": "2025-01-20T10:01:00Z",
        },
        # 5. Malformed line (skipped)
        '{"type": "user", "message": {"role": "user", "content": "trunc',
        # 6. file-history-snapshot (not a message)
        {"type": "file-history-snapshot", "files": [{"path": "/src/auth.ts"}]},
        # 7. User follow-up, legacy "human" type
        {
            "type": "human",
            "message": {"role": "user", "content": [{"type": "text", "text": "Looks good, now split it into separate files"}]},
            "timestamp": "2025-01-20T10:05:00Z",
        },
        # 8. Summary entry (not a message)
        {"type": "summary", "summary": "Refactored auth module into separate files"},
    ])

    (myapp / "session-002.json").write_text(json.dumps({
        "cwd": "/Users/testuser/dev/myapp",
        "messages": [
            {"role": "user", "content": "Write tests for the API endpoints", "timestamp": "2025-01-22T09:00:00Z"},
            {"role": "assistant", "content": [
                {"type": "text", "text": "I'll add pytest tests in tests/test_api.py"},
                {"type": "tool_use", "name": "Write"},
            ], "timestamp": "2025-01-22T09:00:20Z"},
            {"role": "user", "content": "Also cover the error handling", "timestamp": "2025-01-22T09:10:00Z"},
        ],
    }, indent=2), encoding="utf-8")

    write_jsonl(bot / "session-003.jsonl", [
        {"role": "user", "content": "Build me a trading bot", "ts": 1737187200},
        {"role": "assistant", "content": "Sure, creating trading_bot.py", "ts": 1737187260000},
        {"role": "user", "content": "Also update config.json", "ts": 1737187320},
    ])

    write_jsonl(myapp / "tools-only.jsonl", [
        {"type": "assistant", "message": {"role": "assistant", "content": [
            {"type": "tool_use", "id": "toolu_009", "name": "Bash", "input": {"command": "ls"}},
        ]}},
    ])

    (myapp / "notes.json").write_text("this is not json at all", encoding="utf-8")
    (myapp / "settings.json").write_text(json.dumps({"theme": "dark", "verbose": True}), encoding="utf-8")
    (myapp / "empty.jsonl").write_text("  \n\n", encoding="utf-8")
    (myapp / "README.md").write_text("# not a transcript", encoding="utf-8")

    return projects


@pytest.fixture
def archive(tmp_archive):
    """A SessionArchive over the synthetic archive."""
    return SessionArchive(Settings(roots=(tmp_archive,)))
