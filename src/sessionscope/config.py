"""Platform-aware archive locations and runtime settings."""

import json
import logging
import os
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path

logger = logging.getLogger(__name__)

PATHS_ENV = "SESSIONSCOPE_PATHS"
FIELDS_ENV = "SESSIONSCOPE_FIELDS_FILE"


@dataclass(frozen=True)
class FieldNames:
    """Where the parser looks for each piece of a raw message.

    Every entry is a priority-ordered tuple of field paths; dotted paths reach
    into nested objects (``message.role`` is ``entry["message"]["role"]``).
    The first path present in an object wins.
    """

    messages: tuple[str, ...] = ("messages", "conversation", "chat_messages", "turns", "history")
    role: tuple[str, ...] = (
        "role", "message.role", "type", "sender", "author.role", "author", "from", "speaker",
    )
    content: tuple[str, ...] = ("content", "message.content", "text", "message.text", "body")
    timestamp: tuple[str, ...] = (
        "timestamp", "message.timestamp", "created_at", "createdAt", "create_time", "time", "ts",
    )
    project: tuple[str, ...] = ("cwd", "project_path", "projectPath", "project")
    created: tuple[str, ...] = ("created_at", "createdAt", "created")
    updated: tuple[str, ...] = ("updated_at", "updatedAt", "updated", "modified")
    role_aliases: dict[str, str] = field(default_factory=lambda: {
        "human": "human",
        "user": "human",
        "assistant": "assistant",
        "ai": "assistant",
        "model": "assistant",
        "bot": "assistant",
        "claude": "assistant",
    })


DEFAULT_FIELDS = FieldNames()


@dataclass(frozen=True)
class Settings:
    """Everything a SessionArchive needs to know at construction time."""

    roots: tuple[Path, ...]
    fields: FieldNames = DEFAULT_FIELDS
    list_default_limit: int = 20
    list_max_limit: int = 100
    search_default_limit: int = 10
    search_max_limit: int = 50
    preview_chars: int = 200
    max_index_chars: int = 200_000


def get_default_roots() -> list[Path]:
    """Return the directories Claude Code writes session transcripts to."""
    env = os.environ.get("CLAUDE_CONFIG_DIR")
    if env:
        return [Path(env) / "projects"]

    roots = [Path.home() / ".claude" / "projects"]
    if sys.platform == "win32":
        roots.append(Path(os.environ.get("APPDATA", "")) / "Claude" / "projects")
    else:  # macOS and Linux
        roots.append(Path.home() / ".config" / "claude" / "projects")
    return roots


def get_archive_roots() -> list[Path]:
    """Return the configured archive roots, honouring SESSIONSCOPE_PATHS."""
    env = os.environ.get(PATHS_ENV)
    if env:
        return [Path(p).expanduser() for p in env.split(os.pathsep) if p.strip()]
    return get_default_roots()


def load_field_names(path: Path) -> FieldNames:
    """Read a JSON field-priority override file.

    Keys match the FieldNames attributes; lists replace the defaults,
    ``role_aliases`` is merged into them.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")

    overrides = {}
    for name in ("messages", "role", "content", "timestamp", "project", "created", "updated"):
        value = data.get(name)
        if value is None:
            continue
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValueError(f"{path}: '{name}' must be a list of strings")
        overrides[name] = tuple(value)

    aliases = data.get("role_aliases")
    if aliases is not None:
        if not isinstance(aliases, dict):
            raise ValueError(f"{path}: 'role_aliases' must be an object")
        merged = dict(DEFAULT_FIELDS.role_aliases)
        merged.update({str(k).lower(): str(v) for k, v in aliases.items()})
        overrides["role_aliases"] = merged

    return replace(DEFAULT_FIELDS, **overrides)


def load_settings(roots: list[Path] | None = None) -> Settings:
    """Build Settings from the environment, with optional explicit roots."""
    fields = DEFAULT_FIELDS
    fields_file = os.environ.get(FIELDS_ENV)
    if fields_file:
        try:
            fields = load_field_names(Path(fields_file).expanduser())
        except (OSError, ValueError) as e:
            logger.warning("Ignoring field configuration %s: %s", fields_file, e)

    if not roots:
        roots = get_archive_roots()
    return Settings(roots=tuple(roots), fields=fields)
