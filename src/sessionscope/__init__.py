"""Query a local archive of Claude Code CLI session transcripts."""

__version__ = "0.1.0"
