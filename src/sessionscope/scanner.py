"""Archive scanner: find candidate transcript files without opening them."""

import os
from collections.abc import Iterable, Iterator
from pathlib import Path

SESSION_EXTENSIONS = (".json", ".jsonl")

# Files Claude Code keeps next to transcripts that are never transcripts.
IGNORED_FILENAMES = frozenset({"sessions-index.json"})


def scan_archive(
    roots: Iterable[Path],
    extensions: tuple[str, ...] = SESSION_EXTENSIONS,
    max_depth: int = 5,
) -> Iterator[Path]:
    """Yield plausible session files under each root.

    Order is stable for a given tree: roots in the order given, then a sorted
    depth-first walk. Missing roots and unreadable directories are skipped.
    Calling again starts a fresh scan.
    """
    seen_roots = set()
    for root in roots:
        root = Path(root).expanduser()
        try:
            key = root.resolve()
            if key in seen_roots or not root.is_dir():
                continue
        except OSError:
            continue
        seen_roots.add(key)

        base_depth = len(root.parts)
        # os.walk reports unreadable directories through onerror; default is to ignore them
        for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
            current = Path(dirpath)
            # a file directly under root sits at depth 1
            if len(current.parts) - base_depth + 1 >= max_depth:
                dirnames[:] = []
            else:
                dirnames.sort()

            for name in sorted(filenames):
                if name in IGNORED_FILENAMES:
                    continue
                if not name.lower().endswith(extensions):
                    continue
                yield current / name
