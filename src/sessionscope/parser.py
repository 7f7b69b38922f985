"""Format-tolerant transcript parser.

Claude Code has written session transcripts in more than one encoding:

- A single JSON document with a messages array (``messages``,
  ``conversation``, ...) plus optional session-level metadata.
- A bare JSON array of message objects.
- JSONL: one JSON object per line. Lines carry the message either at the top
  level (``role``/``content``) or nested (``message.role``/``message.content``),
  interleaved with non-message records (snapshots, summaries, progress).

Content is either a plain string or an array of blocks; only blocks with a
``text`` field contribute. Decoding tries each strategy in STRATEGIES in
order, so supporting a new encoding means appending one function.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Any, Callable, Optional

from .config import DEFAULT_FIELDS, FieldNames
from .core import Message, Session
from .errors import ParseError, ParseErrorKind

logger = logging.getLogger(__name__)

_MISSING = object()

# Epoch values above this are milliseconds.
_MS_THRESHOLD = 100_000_000_000


@dataclass(frozen=True)
class Decoded:
    """Raw message objects recovered from one file, tagged with their shape."""

    shape: str  # "document" | "array" | "lines" | "single"
    entries: list[dict]
    document: Optional[dict] = None


def parse_session(data: bytes, path: str | PurePath, fields: FieldNames = DEFAULT_FIELDS) -> Session:
    """Parse raw transcript bytes into a Session.

    Raises ParseError when the bytes are blank, not JSON at all, or JSON that
    matches none of the known shapes.
    """
    text = data.decode("utf-8-sig", errors="replace")
    if not text.strip():
        raise ParseError(ParseErrorKind.EMPTY, str(path))

    try:
        document = json.loads(text)
    except ValueError:
        document = _MISSING

    decoded = decode(text, document, fields)
    if decoded is None:
        if document is _MISSING and not _has_json_line(text):
            raise ParseError(ParseErrorKind.NOT_JSON, str(path))
        raise ParseError(ParseErrorKind.UNRECOGNIZED_SHAPE, str(path))

    messages = []
    for entry in decoded.entries:
        msg = entry_to_message(entry, fields)
        if msg is not None:
            messages.append(msg)

    timestamps = [m.timestamp for m in messages if m.timestamp is not None]
    started = min(timestamps) if timestamps else None
    ended = max(timestamps) if timestamps else None

    metadata_sources = [decoded.document] if decoded.document is not None else decoded.entries
    if started is None:
        started = _first_timestamp(metadata_sources, fields.created)
    if ended is None:
        ended = _first_timestamp(metadata_sources, fields.updated) or started

    pure_path = PurePath(path)
    return Session(
        id=pure_path.stem,
        messages=tuple(messages),
        started_at=started,
        ended_at=ended,
        project_path=_first_string(metadata_sources, fields.project) or project_from_path(pure_path),
        source_path=str(path),
    )


def decode(text: str, document: Any, fields: FieldNames = DEFAULT_FIELDS) -> Optional[Decoded]:
    """Run the decode strategies in order and return the first match."""
    for strategy in STRATEGIES:
        decoded = strategy(text, document, fields)
        if decoded is not None:
            return decoded
    return None


# ── Decode strategies ────────────────────────────────────────────


def _decode_document(text: str, document: Any, fields: FieldNames) -> Optional[Decoded]:
    """One JSON object holding a messages array."""
    if not isinstance(document, dict):
        return None
    for name in fields.messages:
        value = lookup(document, name)
        if not isinstance(value, list):
            continue
        entries = [e for e in value if looks_like_message(e, fields)]
        if entries or not value:
            return Decoded("document", entries, document)
    return None


def _decode_array(text: str, document: Any, fields: FieldNames) -> Optional[Decoded]:
    """A top-level JSON array of message objects."""
    if not isinstance(document, list):
        return None
    entries = [e for e in document if looks_like_message(e, fields)]
    if not entries:
        return None
    return Decoded("array", entries)


def _decode_lines(text: str, document: Any, fields: FieldNames) -> Optional[Decoded]:
    """JSONL: each non-blank line is one record; bad lines are skipped."""
    entries = []
    for line_num, line in enumerate(text.splitlines(), 1):
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except ValueError:
            logger.debug("Skipping malformed JSON on line %d", line_num)
            continue
        if looks_like_message(record, fields):
            entries.append(record)
    if not entries:
        return None
    return Decoded("lines", entries)


def _decode_single(text: str, document: Any, fields: FieldNames) -> Optional[Decoded]:
    """A pretty-printed document that is itself one message."""
    if not looks_like_message(document, fields):
        return None
    return Decoded("single", [document])


STRATEGIES: tuple[Callable[[str, Any, FieldNames], Optional[Decoded]], ...] = (
    _decode_document,
    _decode_array,
    _decode_lines,
    _decode_single,
)


# ── Field resolution ─────────────────────────────────────────────


def lookup(obj: Any, dotted: str) -> Any:
    """Follow a dotted field path; return _MISSING when absent or null."""
    for key in dotted.split("."):
        if not isinstance(obj, dict) or key not in obj:
            return _MISSING
        obj = obj[key]
    return _MISSING if obj is None else obj


def looks_like_message(obj: Any, fields: FieldNames = DEFAULT_FIELDS) -> bool:
    """True for objects carrying content, or a role we know how to map."""
    if not isinstance(obj, dict):
        return False
    if any(lookup(obj, path) is not _MISSING for path in fields.content):
        return True
    return resolve_role(obj, fields) != "unknown"


def resolve_role(entry: dict, fields: FieldNames = DEFAULT_FIELDS) -> str:
    for path in fields.role:
        value = lookup(entry, path)
        if isinstance(value, str) and value:
            return fields.role_aliases.get(value.lower(), "unknown")
    return "unknown"


def resolve_content(entry: dict, fields: FieldNames = DEFAULT_FIELDS) -> str:
    for path in fields.content:
        value = lookup(entry, path)
        if value is not _MISSING:
            return canonical_text(value)
    return ""


def canonical_text(value: Any) -> str:
    """Normalize string / block-array / block content to one string."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        if isinstance(value.get("text"), str):
            return value["text"]
        return canonical_text(value.get("parts", []))
    if not isinstance(value, list):
        return ""

    parts = []
    for block in value:
        if isinstance(block, str):
            if block:
                parts.append(block)
        elif isinstance(block, dict):
            text = block.get("text")
            if isinstance(text, str) and text:
                parts.append(text)
    return "\n".join(parts)


def resolve_timestamp(entry: dict, fields: FieldNames = DEFAULT_FIELDS) -> Optional[datetime]:
    for path in fields.timestamp:
        value = lookup(entry, path)
        if value is not _MISSING:
            return parse_timestamp(value)
    return None


def entry_to_message(entry: dict, fields: FieldNames = DEFAULT_FIELDS) -> Optional[Message]:
    """Build a Message, or None for entries with no text (tool-only turns)."""
    content = resolve_content(entry, fields)
    if not content.strip():
        return None
    return Message(
        role=resolve_role(entry, fields),
        content=content,
        timestamp=resolve_timestamp(entry, fields),
    )


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse ISO 8601 text or epoch seconds/milliseconds into aware UTC."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) >= _MS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value.strip():
        return None

    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def project_from_path(path: PurePath) -> Optional[str]:
    """Derive a project path from ``.../projects/<encoded>/<file>``.

    Claude Code encodes ``/Users/alice/app`` as ``-Users-alice-app``.
    """
    parts = path.parts
    for i, part in enumerate(parts[:-2]):
        if part == "projects":
            name = parts[i + 1]
            if name.startswith("-"):
                return name.replace("-", "/")
            return name
    return None


# ── Private helpers ──────────────────────────────────────────────


def _has_json_line(text: str) -> bool:
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            json.loads(line)
        except ValueError:
            continue
        return True
    return False


def _first_string(sources: list[dict], paths: tuple[str, ...]) -> Optional[str]:
    for source in sources:
        for path in paths:
            value = lookup(source, path)
            if isinstance(value, str) and value:
                return value
    return None


def _first_timestamp(sources: list[dict], paths: tuple[str, ...]) -> Optional[datetime]:
    for source in sources:
        for path in paths:
            value = lookup(source, path)
            if value is not _MISSING:
                parsed = parse_timestamp(value)
                if parsed is not None:
                    return parsed
    return None
