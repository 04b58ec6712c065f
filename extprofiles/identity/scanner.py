"""Recursive file discovery under the editor's storage roots.

The walk uses an explicit queue rather than recursion so deeply nested
trees cannot exhaust the interpreter stack.  Directories that cannot be
listed (permissions, concurrent deletion by the editor) are skipped.

Uses ``anyio.to_thread.run_sync`` for the non-blocking variant.
"""

from __future__ import annotations

import os
from collections import deque
from functools import partial
from pathlib import Path, PurePath

from anyio import to_thread
from loguru import logger


class ScanError(OSError):
    """Scan root does not exist or is not a directory."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        super().__init__(f"Scan root '{root}' does not exist or is not a directory")
        self.root = root


def scan(root: str | os.PathLike[str] | PurePath, pattern: str) -> list[Path]:
    """Return every regular file under *root* whose name ends with *pattern*.

    Result order is not guaranteed; callers that need determinism sort it.
    Raises ``ScanError`` only if *root* itself is missing or not a directory.
    """
    base = Path(root)
    if not base.is_dir():
        raise ScanError(base)

    found: list[Path] = []
    pending: deque[Path] = deque([base])
    while pending:
        directory = pending.popleft()
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as exc:
            logger.debug("Skipping unreadable directory {}: {}", directory, exc)
            continue

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    pending.append(Path(entry.path))
                elif entry.is_file() and entry.name.endswith(pattern):
                    found.append(Path(entry.path))
            except OSError:
                # Entry vanished between listing and stat.
                continue

    return found


async def scan_async(root: str | os.PathLike[str] | PurePath, pattern: str) -> list[Path]:
    """Run :func:`scan` in a worker thread."""
    return await to_thread.run_sync(partial(scan, root, pattern))
