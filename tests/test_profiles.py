"""Tests for the profile manager."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from extprofiles.identity.environment import Environment
from extprofiles.managers.profiles import (
    DuplicateProfileError,
    ExtensionNotInstalledError,
    ProfileImportError,
    ProfileNotFoundError,
    ReservedProfileError,
    clone_profile,
    create_profile,
    delete_profile,
    ensure_global_profile,
    export_profiles,
    get_inventory,
    get_profile,
    import_profiles,
    list_profiles,
    refresh_extensions,
    update_profile,
)
from extprofiles.models.profile import GLOBAL_PROFILE, ExtensionInfo
from extprofiles.store.local import LocalProfileStore
from extprofiles.store.state_db import DISABLED_KEY, STATE_DB_FILE, EditorStateDB

INVENTORY = {
    "ms-python.python": ExtensionInfo(id="ms-python.python", uuid="py-uuid", label="Python"),
    "esbenp.prettier-vscode": ExtensionInfo(id="esbenp.prettier-vscode", label="Prettier"),
    "golang.go": ExtensionInfo(id="golang.go"),
}


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


async def test_create_and_get(store: LocalProfileStore) -> None:
    profile = await create_profile(store, "python", ["ms-python.python"], inventory=INVENTORY)

    assert profile.name == "python"
    assert list(profile.extensions) == ["ms-python.python"]
    assert (await get_profile(store, "python")).extensions["ms-python.python"].uuid == "py-uuid"


async def test_create_strips_name_and_matches_ids_case_insensitively(store: LocalProfileStore) -> None:
    profile = await create_profile(store, "  web ", ["ESBENP.Prettier-VSCode"], inventory=INVENTORY)

    assert profile.name == "web"
    assert list(profile.extensions) == ["esbenp.prettier-vscode"]


async def test_create_duplicate_raises(store: LocalProfileStore) -> None:
    await create_profile(store, "p", [], inventory=INVENTORY)

    with pytest.raises(DuplicateProfileError):
        await create_profile(store, "p", [], inventory=INVENTORY)


@pytest.mark.parametrize("name", [GLOBAL_PROFILE, f"  {GLOBAL_PROFILE}  "])
async def test_create_reserved_name_raises(store: LocalProfileStore, name: str) -> None:
    with pytest.raises(ReservedProfileError):
        await create_profile(store, name, [], inventory=INVENTORY)


async def test_create_empty_name_raises(store: LocalProfileStore) -> None:
    with pytest.raises(ValueError, match="empty"):
        await create_profile(store, "   ", [], inventory=INVENTORY)


async def test_create_unknown_extension_raises(store: LocalProfileStore) -> None:
    with pytest.raises(ExtensionNotInstalledError) as exc_info:
        await create_profile(store, "p", ["ms-python.python", "no.such"], inventory=INVENTORY)

    assert exc_info.value.ext_ids == ["no.such"]
    assert await list_profiles(store) == []


async def test_list_is_sorted(store: LocalProfileStore) -> None:
    for name in ("zeta", "alpha", "mid"):
        await create_profile(store, name, [], inventory=INVENTORY)

    assert [p.name for p in await list_profiles(store)] == ["alpha", "mid", "zeta"]


async def test_get_missing_raises(store: LocalProfileStore) -> None:
    with pytest.raises(ProfileNotFoundError):
        await get_profile(store, "ghost")


async def test_update_replaces_selection(store: LocalProfileStore) -> None:
    await create_profile(store, "p", ["ms-python.python"], inventory=INVENTORY)

    updated = await update_profile(store, "p", ["golang.go", "esbenp.prettier-vscode"], inventory=INVENTORY)

    assert sorted(updated.extensions) == ["esbenp.prettier-vscode", "golang.go"]
    assert sorted((await get_profile(store, "p")).extensions) == ["esbenp.prettier-vscode", "golang.go"]


async def test_update_missing_and_reserved(store: LocalProfileStore) -> None:
    with pytest.raises(ProfileNotFoundError):
        await update_profile(store, "ghost", [], inventory=INVENTORY)
    with pytest.raises(ReservedProfileError):
        await update_profile(store, GLOBAL_PROFILE, [], inventory=INVENTORY)


async def test_clone(store: LocalProfileStore) -> None:
    await create_profile(store, "src", ["golang.go"], inventory=INVENTORY)

    clone = await clone_profile(store, "src", "copy")

    assert clone.name == "copy"
    assert list(clone.extensions) == ["golang.go"]
    assert [p.name for p in await list_profiles(store)] == ["copy", "src"]

    with pytest.raises(DuplicateProfileError):
        await clone_profile(store, "src", "copy")
    with pytest.raises(ProfileNotFoundError):
        await clone_profile(store, "ghost", "other")


async def test_delete(store: LocalProfileStore) -> None:
    await create_profile(store, "p", [], inventory=INVENTORY)

    await delete_profile(store, "p")

    assert await list_profiles(store) == []
    with pytest.raises(ProfileNotFoundError):
        await delete_profile(store, "p")
    with pytest.raises(ReservedProfileError):
        await delete_profile(store, GLOBAL_PROFILE)


# ---------------------------------------------------------------------------
# Export / import
# ---------------------------------------------------------------------------


async def test_export_and_import(store: LocalProfileStore, tmp_path: Path) -> None:
    await create_profile(store, "a", ["golang.go"], inventory=INVENTORY)
    await create_profile(store, "b", ["ms-python.python"], inventory=INVENTORY)
    target = tmp_path / "export.json"

    document = await export_profiles(store, target)

    assert [p.name for p in document.profiles] == ["a", "b"]
    assert json.loads(target.read_text(encoding="utf-8"))["version"] == 1

    other = LocalProfileStore(tmp_path / "other")
    assert await import_profiles(other, target) == ["a", "b"]
    assert list((await get_profile(other, "b")).extensions) == ["ms-python.python"]


async def test_export_selected_and_missing(store: LocalProfileStore, tmp_path: Path) -> None:
    await create_profile(store, "a", [], inventory=INVENTORY)
    await create_profile(store, "b", [], inventory=INVENTORY)

    document = await export_profiles(store, tmp_path / "one.json", ["b"])
    assert [p.name for p in document.profiles] == ["b"]

    with pytest.raises(ProfileNotFoundError):
        await export_profiles(store, tmp_path / "x.json", ["ghost"])


async def test_import_skips_existing_unless_overwrite(store: LocalProfileStore, tmp_path: Path) -> None:
    await create_profile(store, "a", ["golang.go"], inventory=INVENTORY)
    source = LocalProfileStore(tmp_path / "source")
    await create_profile(source, "a", ["ms-python.python"], inventory=INVENTORY)
    await export_profiles(source, tmp_path / "doc.json")

    assert await import_profiles(store, tmp_path / "doc.json") == []
    assert list((await get_profile(store, "a")).extensions) == ["golang.go"]

    assert await import_profiles(store, tmp_path / "doc.json", overwrite=True) == ["a"]
    assert list((await get_profile(store, "a")).extensions) == ["ms-python.python"]


async def test_import_never_overwrites_global_profile(store: LocalProfileStore, tmp_path: Path) -> None:
    doc = tmp_path / "doc.json"
    doc.write_text(
        json.dumps({"version": 1, "profiles": [{"name": GLOBAL_PROFILE, "extensions": {}}]}),
        encoding="utf-8",
    )

    assert await import_profiles(store, doc, overwrite=True) == []


@pytest.mark.parametrize("content", ["not json", '{"profiles": "nope"}'])
async def test_import_invalid_document(store: LocalProfileStore, tmp_path: Path, content: str) -> None:
    doc = tmp_path / "doc.json"
    doc.write_text(content, encoding="utf-8")

    with pytest.raises(ProfileImportError):
        await import_profiles(store, doc)


async def test_import_missing_file(store: LocalProfileStore, tmp_path: Path) -> None:
    with pytest.raises(ProfileImportError):
        await import_profiles(store, tmp_path / "missing.json")


# ---------------------------------------------------------------------------
# Inventory and global profile
# ---------------------------------------------------------------------------


async def test_refresh_and_get_inventory(store: LocalProfileStore, environment: Environment, make_extension) -> None:
    make_extension("golang", "go", displayName="Go")

    inventory = await get_inventory(store, environment)

    assert list(inventory) == ["golang.go"]
    assert list(await store.read_extensions()) == ["golang.go"]

    make_extension("ms-python", "python")
    # Cached inventory is returned until an explicit refresh.
    assert list(await get_inventory(store, environment)) == ["golang.go"]
    assert sorted(await refresh_extensions(store, environment)) == ["golang.go", "ms-python.python"]


async def test_ensure_global_profile_excludes_globally_disabled(
    store: LocalProfileStore, environment: Environment, make_extension
) -> None:
    make_extension("golang", "go")
    make_extension("ms-python", "python")
    Path(environment.global_storage_root).mkdir(parents=True)
    async with EditorStateDB(Path(environment.global_storage_root) / STATE_DB_FILE) as db:
        await db.set_identifiers(DISABLED_KEY, [{"id": "Golang.Go"}])

    profile = await ensure_global_profile(store, environment)

    assert profile.name == GLOBAL_PROFILE
    assert list(profile.extensions) == ["ms-python.python"]
    assert (await get_profile(store, GLOBAL_PROFILE)).is_global


async def test_ensure_global_profile_without_global_db(
    store: LocalProfileStore, environment: Environment, make_extension
) -> None:
    make_extension("golang", "go")

    profile = await ensure_global_profile(store, environment)

    assert list(profile.extensions) == ["golang.go"]
    assert not (Path(environment.global_storage_root) / STATE_DB_FILE).exists()
