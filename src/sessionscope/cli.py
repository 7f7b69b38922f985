"""CLI entry point for sessionscope."""

import json
import logging
import sys
from pathlib import Path

import click

from .archive import SessionArchive
from .config import load_settings
from .errors import InvalidQuery, NotFound
from .export import (
    context_to_dict,
    result_to_dict,
    session_to_dict,
    session_to_json,
    session_to_markdown,
    summary_to_dict,
)


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@click.group()
@click.option(
    "--path", "paths", multiple=True, type=click.Path(path_type=Path),
    help="Archive root to scan (repeatable). Defaults to Claude Code's projects directory.",
)
@click.option(
    "--log-level", default="WARNING", show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
)
@click.pass_context
def main(ctx: click.Context, paths: tuple[Path, ...], log_level: str):
    """Search and browse Claude Code CLI session history."""
    # stdout carries MCP frames and command output, so logs go to stderr
    logging.basicConfig(
        level=log_level.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = SessionArchive(load_settings(list(paths)))


@main.command()
@click.option("--port", default=8080, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
@click.pass_obj
def serve(archive: SessionArchive, port: int, host: str):
    """Start the HTTP API."""
    import uvicorn

    from .server import create_app

    click.echo(f"Starting sessionscope on http://{host}:{port}", err=True)
    uvicorn.run(create_app(archive), host=host, port=port, reload=False)


@main.command()
@click.pass_obj
def mcp(archive: SessionArchive):
    """Serve the archive as MCP tools over stdio."""
    from .mcp_server import run_stdio

    run_stdio(archive)


@main.command("list")
@click.option("--limit", "-n", default=20, show_default=True, help="Number of sessions.")
@click.pass_obj
def list_command(archive: SessionArchive, limit: int):
    """List recent sessions, most recent first."""
    _echo_json([summary_to_dict(s) for s in archive.list_sessions(limit)])


@main.command()
@click.argument("query")
@click.option("--limit", "-n", default=10, show_default=True, help="Number of results.")
@click.pass_obj
def search(archive: SessionArchive, query: str, limit: int):
    """Search sessions for QUERY."""
    try:
        results = archive.search_sessions(query, limit)
    except InvalidQuery as e:
        raise click.UsageError(str(e))
    _echo_json([result_to_dict(r) for r in results])


@main.command()
@click.argument("session_id")
@click.pass_obj
def show(archive: SessionArchive, session_id: str):
    """Print every message of SESSION_ID."""
    try:
        session = archive.get_session(session_id)
    except NotFound as e:
        raise click.ClickException(str(e))
    _echo_json(session_to_dict(session))


@main.command()
@click.argument("session_id")
@click.pass_obj
def context(archive: SessionArchive, session_id: str):
    """Print a condensed context summary of SESSION_ID."""
    try:
        summary = archive.get_session_context(session_id)
    except NotFound as e:
        raise click.ClickException(str(e))
    _echo_json(context_to_dict(summary))


@main.command()
@click.argument("session_id")
@click.option("--format", "fmt", default="md", type=click.Choice(["md", "json"]), show_default=True)
@click.pass_obj
def export(archive: SessionArchive, session_id: str, fmt: str):
    """Export SESSION_ID as Markdown or JSON."""
    try:
        session = archive.get_session(session_id)
    except NotFound as e:
        raise click.ClickException(str(e))
    click.echo(session_to_json(session) if fmt == "json" else session_to_markdown(session))
