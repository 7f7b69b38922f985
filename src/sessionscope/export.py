"""Serialize sessions and query results to dicts, JSON and Markdown."""

import json
from datetime import datetime
from typing import Optional

from .core import ContextSummary, Message, SearchResult, Session, SessionSummary


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def message_to_dict(msg: Message) -> dict:
    return {
        "role": msg.role,
        "content": msg.content,
        "timestamp": _iso(msg.timestamp),
    }


def summary_to_dict(summary: SessionSummary) -> dict:
    return {
        "id": summary.id,
        "project_path": summary.project_path,
        "started_at": _iso(summary.started_at),
        "ended_at": _iso(summary.ended_at),
        "modified": _iso(summary.modified),
        "message_count": summary.message_count,
        "preview": summary.preview,
    }


def result_to_dict(result: SearchResult) -> dict:
    data = summary_to_dict(result.summary)
    data["score"] = result.score
    data["snippet"] = result.snippet
    return data


def session_to_dict(session: Session) -> dict:
    return {
        "id": session.id,
        "project_path": session.project_path,
        "started_at": _iso(session.started_at),
        "ended_at": _iso(session.ended_at),
        "message_count": len(session.messages),
        "messages": [message_to_dict(m) for m in session.messages],
    }


def context_to_dict(context: ContextSummary) -> dict:
    return {
        "id": context.session_id,
        "initial_request": context.initial_request,
        "message_count": context.message_count,
        "human_messages": context.human_messages,
        "assistant_messages": context.assistant_messages,
        "started_at": _iso(context.started_at),
        "ended_at": _iso(context.ended_at),
        "duration_seconds": context.duration_seconds,
        "files_mentioned": list(context.files_mentioned),
        "key_terms": list(context.key_terms),
    }


def session_to_markdown(session: Session) -> str:
    """Export a session and its messages as clean Markdown."""
    title = next((m.content for m in session.messages if m.role == "human"), session.id)
    title = title.splitlines()[0][:80] if title.strip() else session.id
    lines = [f"# {title}", ""]

    lines.append(f"**Session:** {session.id}")
    if session.project_path:
        lines.append(f"**Project:** {session.project_path}")
    if session.started_at:
        lines.append(f"**Started:** {session.started_at.isoformat()}")
    if session.ended_at:
        lines.append(f"**Ended:** {session.ended_at.isoformat()}")
    lines.append(f"**Messages:** {len(session.messages)}")
    lines.extend(["", "---", ""])

    for msg in session.messages:
        role_label = msg.role.capitalize()
        ts = ""
        if msg.timestamp:
            ts = f" ({msg.timestamp.strftime('%Y-%m-%d %H:%M')})"
        lines.append(f"## {role_label}{ts}")
        lines.append("")
        lines.append(msg.content)
        lines.extend(["", "---", ""])

    return "\n".join(lines)


def session_to_json(session: Session) -> str:
    """Export a session and its messages as structured JSON."""
    return json.dumps(session_to_dict(session), indent=2, ensure_ascii=False)
