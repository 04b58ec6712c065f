"""Shared test fixtures: a fake editor tree under ``tmp_path``.

Layout mirrors a real installation::

    {tmp}/Code/User/workspaceStorage/<bucket>/workspace.json
    {tmp}/Code/Workspaces/<id>/workspace.json
    {tmp}/extensions/<publisher.name-version>/package.json
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from extprofiles.identity.environment import Environment
from extprofiles.settings import get_settings
from extprofiles.store.local import LocalProfileStore


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def environment(tmp_path: Path) -> Environment:
    """Host-platform environment rooted in a temporary directory."""
    return Environment.from_os(
        env={"HOME": str(tmp_path / "home"), "USERPROFILE": str(tmp_path / "home")},
        user_data_dir=str(tmp_path / "Code"),
        extensions_dir=str(tmp_path / "extensions"),
    )


@pytest.fixture
def store(tmp_path: Path) -> LocalProfileStore:
    return LocalProfileStore(tmp_path / "profiles")


@pytest.fixture
def projects(tmp_path: Path) -> Path:
    """Directory holding the folders a user opens (``a``, ``b``, ``c``)."""
    root = tmp_path / "proj"
    for name in ("a", "b", "c"):
        (root / name).mkdir(parents=True)
    return root


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def _write_json(path: Path, payload: object) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(payload, str):
        path.write_text(payload, encoding="utf-8")
    else:
        path.write_text(json.dumps(payload), encoding="utf-8")
    return path


@pytest.fixture
def write_json() -> Callable[[Path, object], Path]:
    """Write *payload* (JSON-encoded unless already a string) to a path."""
    return _write_json


@pytest.fixture
def make_bucket(environment: Environment) -> Callable[[str, object], Path]:
    """Create ``workspaceStorage/<bucket_id>/workspace.json``."""

    def _make(bucket_id: str, payload: object) -> Path:
        return _write_json(Path(environment.workspace_storage_root) / bucket_id / "workspace.json", payload)

    return _make


@pytest.fixture
def make_untitled(environment: Environment) -> Callable[[str, object], Path]:
    """Create ``Workspaces/<workspace_id>/workspace.json``."""

    def _make(workspace_id: str, payload: object) -> Path:
        return _write_json(Path(environment.workspaces_root) / workspace_id / "workspace.json", payload)

    return _make


@pytest.fixture
def make_extension(environment: Environment) -> Callable[..., Path]:
    """Install a fake extension manifest under the extensions root."""

    def _make(publisher: str, name: str, **manifest: object) -> Path:
        body = {"publisher": publisher, "name": name, "version": "1.0.0", **manifest}
        root = Path(environment.extensions_root)
        return _write_json(root / f"{publisher}.{name}-1.0.0" / "package.json", body)

    return _make
