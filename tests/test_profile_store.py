"""Unit tests for LocalProfileStore.

No editor installation required -- uses a temporary directory.
"""

from __future__ import annotations

import json
from pathlib import Path

from extprofiles.models.profile import ExtensionInfo, Profile
from extprofiles.store.base import ProfileStore
from extprofiles.store.local import LocalProfileStore


def test_implements_protocol(store: LocalProfileStore) -> None:
    assert isinstance(store, ProfileStore)


async def test_empty_store_reads_empty(store: LocalProfileStore) -> None:
    assert await store.read_profiles() == {}
    assert await store.read_extensions() == {}


async def test_write_and_read_profiles(store: LocalProfileStore) -> None:
    ext = ExtensionInfo(id="ms-python.python", uuid="f1f59ae4", label="Python")
    await store.write_profiles({"py": Profile(name="py", extensions={ext.id: ext})})

    result = await store.read_profiles()
    assert list(result) == ["py"]
    assert result["py"].extensions["ms-python.python"].label == "Python"


async def test_write_and_read_extensions(store: LocalProfileStore) -> None:
    inventory = {"a.b": ExtensionInfo(id="a.b"), "c.d": ExtensionInfo(id="c.d", description="Dee")}
    await store.write_extensions(inventory)

    assert await store.read_extensions() == inventory


async def test_files_are_plain_json(store: LocalProfileStore) -> None:
    await store.write_profiles({"empty": Profile(name="empty")})

    data = json.loads((store.base / "profiles.json").read_text(encoding="utf-8"))
    assert data == {"empty": {"name": "empty", "extensions": {}}}


async def test_write_leaves_no_temp_files(store: LocalProfileStore) -> None:
    await store.write_profiles({"one": Profile(name="one")})
    await store.write_profiles({"two": Profile(name="two")})

    assert sorted(p.name for p in store.base.iterdir()) == ["profiles.json"]
    assert list(await store.read_profiles()) == ["two"]


async def test_creates_data_root(tmp_path: Path) -> None:
    store = LocalProfileStore(tmp_path / "deep" / "root")
    await store.write_extensions({})

    assert (tmp_path / "deep" / "root" / "extensions.json").is_file()
