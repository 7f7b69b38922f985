"""Tests for the format-tolerant parser."""

import json
from datetime import datetime, timezone
from pathlib import PurePath

import pytest

from sessionscope.config import FieldNames
from sessionscope.errors import ParseError, ParseErrorKind
from sessionscope.parser import (
    canonical_text,
    decode,
    parse_session,
    parse_timestamp,
    project_from_path,
    resolve_role,
)

PATH = PurePath("/home/alice/.claude/projects/-home-alice-app/abc123.jsonl")


def _jsonl(*records) -> bytes:
    return "\n".join(json.dumps(r) for r in records).encode("utf-8")


class TestEncodings:
    def test_document_with_messages_array(self):
        data = json.dumps({
            "messages": [
                {"role": "user", "content": "first"},
                {"role": "assistant", "content": "second"},
                {"role": "user", "content": "third"},
            ],
        }).encode()
        session = parse_session(data, PATH)
        assert [m.content for m in session.messages] == ["first", "second", "third"]
        assert [m.role for m in session.messages] == ["human", "assistant", "human"]

    def test_document_conversation_field(self):
        data = json.dumps({"conversation": [{"role": "human", "content": "hi"}]}).encode()
        session = parse_session(data, PATH)
        assert len(session.messages) == 1

    def test_line_delimited(self):
        data = _jsonl(
            {"role": "user", "content": "one"},
            {"role": "assistant", "content": "two"},
        )
        session = parse_session(data, PATH)
        assert [m.content for m in session.messages] == ["one", "two"]

    def test_line_delimited_skips_malformed_lines(self):
        data = b'{"role": "user", "content": "kept"}\n{broken\n\n{"role": "assistant", "content": "also kept"}\n'
        session = parse_session(data, PATH)
        assert [m.content for m in session.messages] == ["kept", "also kept"]

    def test_nested_claude_code_lines(self):
        data = _jsonl(
            {"type": "user", "message": {"role": "user", "content": "nested"}, "timestamp": "2025-01-20T10:00:00Z"},
            {"type": "file-history-snapshot", "files": []},
            {"type": "assistant", "message": {"role": "assistant", "content": [{"type": "text", "text": "reply"}]}},
        )
        session = parse_session(data, PATH)
        assert [(m.role, m.content) for m in session.messages] == [("human", "nested"), ("assistant", "reply")]

    def test_top_level_array(self):
        data = json.dumps([{"role": "user", "content": "a"}, {"role": "assistant", "content": "b"}]).encode()
        session = parse_session(data, PATH)
        assert len(session.messages) == 2
        assert decode(data.decode(), json.loads(data)).shape == "array"

    def test_single_pretty_printed_message(self):
        data = json.dumps({"role": "user", "content": "only one"}, indent=2).encode()
        session = parse_session(data, PATH)
        assert [m.content for m in session.messages] == ["only one"]

    def test_fixture_session_counts(self, tmp_archive):
        path = tmp_archive / "-Users-testuser-dev-myapp" / "session-001.jsonl"
        session = parse_session(path.read_bytes(), path)
        assert len(session.messages) == 4
        assert session.messages[0].content == "Help me refactor the auth module"
        assert session.messages[-1].content == "Looks good, now split it into separate files"

    def test_bom_is_tolerated(self):
        data = "\ufeff".encode("utf-8") + _jsonl({"role": "user", "content": "bom"})
        assert parse_session(data, PATH).messages[0].content == "bom"


class TestContent:
    def test_string_content(self):
        assert canonical_text("Hello world") == "Hello world"

    def test_block_array_joined_with_newline(self):
        blocks = [{"type": "text", "text": "Hello"}, {"type": "text", "text": "World"}]
        assert canonical_text(blocks) == "Hello\nWorld"

    def test_blocks_without_text_ignored(self):
        blocks = [
            {"type": "text", "text": "Hello"},
            {"type": "tool_use", "name": "Read", "input": {}},
            {"type": "image", "source": {}},
            "plain",
        ]
        assert canonical_text(blocks) == "Hello\nplain"

    def test_parts_object(self):
        assert canonical_text({"content_type": "text", "parts": ["a", "b"]}) == "a\nb"

    def test_tool_only_messages_are_dropped(self):
        data = _jsonl(
            {"role": "user", "content": "run it"},
            {"role": "assistant", "content": [{"type": "tool_use", "name": "Bash"}]},
        )
        assert len(parse_session(data, PATH).messages) == 1

    def test_parsing_is_idempotent(self, tmp_archive):
        for name in ("session-001.jsonl", "session-002.json"):
            path = tmp_archive / "-Users-testuser-dev-myapp" / name
            data = path.read_bytes()
            assert parse_session(data, path) == parse_session(data, path)


class TestRoles:
    def test_role_field_wins_over_type(self):
        assert resolve_role({"role": "assistant", "type": "user"}) == "assistant"

    def test_nested_role(self):
        assert resolve_role({"type": "whatever", "message": {"role": "user"}}) == "human"

    def test_unknown_role(self):
        assert resolve_role({"role": "system"}) == "unknown"
        assert resolve_role({"content": "no role"}) == "unknown"

    def test_author_object(self):
        assert resolve_role({"author": {"role": "assistant"}}) == "assistant"


class TestErrors:
    def test_empty(self):
        with pytest.raises(ParseError) as exc:
            parse_session(b"   \n\n", PATH)
        assert exc.value.kind is ParseErrorKind.EMPTY

    def test_not_json(self):
        with pytest.raises(ParseError) as exc:
            parse_session(b"hello there\nnot json either", PATH)
        assert exc.value.kind is ParseErrorKind.NOT_JSON

    def test_unrecognized_shape(self):
        with pytest.raises(ParseError) as exc:
            parse_session(json.dumps({"theme": "dark"}).encode(), PATH)
        assert exc.value.kind is ParseErrorKind.UNRECOGNIZED_SHAPE

    def test_unrecognized_lines(self):
        with pytest.raises(ParseError) as exc:
            parse_session(_jsonl({"type": "summary", "summary": "x"}, [1, 2, 3]), PATH)
        assert exc.value.kind is ParseErrorKind.UNRECOGNIZED_SHAPE

    def test_empty_messages_array_is_valid(self):
        session = parse_session(b'{"messages": []}', PATH)
        assert session.messages == ()
        assert session.is_empty


class TestMetadata:
    def test_id_is_file_stem(self):
        assert parse_session(_jsonl({"role": "user", "content": "x"}), PATH).id == "abc123"

    def test_timestamps_span_messages(self):
        data = _jsonl(
            {"role": "user", "content": "a", "timestamp": "2025-01-20T10:05:00Z"},
            {"role": "assistant", "content": "b", "timestamp": "2025-01-20T10:00:00Z"},
            {"role": "user", "content": "c"},
        )
        session = parse_session(data, PATH)
        assert session.started_at == datetime(2025, 1, 20, 10, 0, tzinfo=timezone.utc)
        assert session.ended_at == datetime(2025, 1, 20, 10, 5, tzinfo=timezone.utc)
        assert session.messages[2].timestamp is None

    def test_document_level_timestamps_fallback(self):
        data = json.dumps({
            "created_at": "2025-02-01T08:00:00Z",
            "updated_at": "2025-02-01T09:00:00Z",
            "messages": [{"role": "user", "content": "no per-message times"}],
        }).encode()
        session = parse_session(data, PATH)
        assert session.started_at == datetime(2025, 2, 1, 8, 0, tzinfo=timezone.utc)
        assert session.ended_at == datetime(2025, 2, 1, 9, 0, tzinfo=timezone.utc)

    def test_no_timestamps_at_all(self):
        session = parse_session(_jsonl({"role": "user", "content": "x"}), PATH)
        assert session.started_at is None
        assert session.ended_at is None

    def test_project_from_cwd(self):
        data = _jsonl({"role": "user", "content": "x", "cwd": "/work/repo"})
        assert parse_session(data, PATH).project_path == "/work/repo"

    def test_project_from_directory_name(self):
        assert parse_session(_jsonl({"role": "user", "content": "x"}), PATH).project_path == "/home/alice/app"

    def test_project_from_path_outside_projects(self):
        assert project_from_path(PurePath("/tmp/sessions/x.json")) is None
        assert project_from_path(PurePath("/data/projects/plain-name/x.json")) == "plain-name"


class TestTimestamps:
    def test_iso_with_z(self):
        assert parse_timestamp("2025-01-20T10:00:00Z") == datetime(2025, 1, 20, 10, 0, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_timestamp("2025-01-20T10:00:00").tzinfo is not None

    def test_offset_is_normalized(self):
        assert parse_timestamp("2025-01-20T12:00:00+02:00") == datetime(2025, 1, 20, 10, 0, tzinfo=timezone.utc)

    def test_epoch_seconds_and_millis(self):
        expected = datetime(2025, 1, 18, 8, 0, tzinfo=timezone.utc)
        assert parse_timestamp(1737187200) == expected
        assert parse_timestamp(1737187200000) == expected

    def test_garbage(self):
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp(True) is None
        assert parse_timestamp({"t": 1}) is None


def test_custom_field_names():
    """Field priorities are data: an unfamiliar encoding parses once configured."""
    fields = FieldNames(
        messages=("log",),
        role=("who",),
        content=("said",),
        timestamp=("at",),
        role_aliases={"me": "human", "bot": "assistant"},
    )
    data = json.dumps({"log": [
        {"who": "me", "said": "hello", "at": "2025-03-01T00:00:00Z"},
        {"who": "bot", "said": "hi"},
    ]}).encode()

    session = parse_session(data, PATH, fields)
    assert [(m.role, m.content) for m in session.messages] == [("human", "hello"), ("assistant", "hi")]

    with pytest.raises(ParseError):
        parse_session(data, PATH)
