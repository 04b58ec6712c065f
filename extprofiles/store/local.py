"""Local filesystem profile store.

Stores the profile catalogue and extension inventory as JSON files under
a data root::

    {data_root}/profiles.json
    {data_root}/extensions.json

Uses ``anyio.to_thread.run_sync`` for non-blocking file I/O.

Writes are atomic: data is written to a temporary file in the same directory,
then renamed to the target path.  An editor window reading the catalogue
never sees a half-written file.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from functools import partial
from pathlib import Path

from anyio import to_thread
from pydantic import TypeAdapter

from extprofiles.models.profile import ExtensionInfo, Profile

PROFILES_FILE = "profiles.json"
EXTENSIONS_FILE = "extensions.json"

_profiles_adapter = TypeAdapter(dict[str, Profile])
_extensions_adapter = TypeAdapter(dict[str, ExtensionInfo])


class LocalProfileStore:
    """Local filesystem implementation of the ProfileStore protocol."""

    def __init__(self, data_root: str | Path) -> None:
        self._base = Path(data_root)

    @property
    def base(self) -> Path:
        return self._base

    # -- Profiles --------------------------------------------------------------

    async def read_profiles(self) -> dict[str, Profile]:
        raw = await to_thread.run_sync(partial(_read_file, self._base / PROFILES_FILE))
        return _profiles_adapter.validate_json(raw) if raw else {}

    async def write_profiles(self, profiles: dict[str, Profile]) -> None:
        data = _profiles_adapter.dump_json(profiles, indent=2).decode("utf-8")
        await to_thread.run_sync(partial(_atomic_write, self._base / PROFILES_FILE, data))

    # -- Extensions ------------------------------------------------------------

    async def read_extensions(self) -> dict[str, ExtensionInfo]:
        raw = await to_thread.run_sync(partial(_read_file, self._base / EXTENSIONS_FILE))
        return _extensions_adapter.validate_json(raw) if raw else {}

    async def write_extensions(self, extensions: dict[str, ExtensionInfo]) -> None:
        data = _extensions_adapter.dump_json(extensions, indent=2).decode("utf-8")
        await to_thread.run_sync(partial(_atomic_write, self._base / EXTENSIONS_FILE, data))


# -- Sync helpers (run in thread pool) -----------------------------------------


def _atomic_write(path: Path, data: str) -> None:
    """Write data atomically: temp file + rename.

    The temp file is created in the same directory so ``os.replace`` stays
    on one filesystem.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise


def _read_file(path: Path) -> str | None:
    """Read file contents, or ``None`` if the file does not exist yet."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
