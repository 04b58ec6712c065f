"""Profile CRUD operations.

Encapsulates all profile data access: create, list, get, update, clone,
delete, export and import, plus the reserved ``Global Profile``.
"""

from __future__ import annotations

from functools import partial
from pathlib import Path

from anyio import to_thread
from loguru import logger
from pydantic import ValidationError

from extprofiles.extensions import discover_extensions, merge_inventory
from extprofiles.identity.environment import Environment
from extprofiles.models.profile import GLOBAL_PROFILE, ExtensionInfo, Profile, ProfileExport
from extprofiles.store.base import ProfileStore
from extprofiles.store.state_db import DISABLED_KEY, STATE_DB_FILE, EditorStateDB


class DuplicateProfileError(ValueError):
    """Raised when a profile with the given name already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Profile '{name}' already exists")


class ProfileNotFoundError(LookupError):
    """Raised when a profile is not found."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Profile '{name}' not found")


class ReservedProfileError(ValueError):
    """Raised when a user operation targets the reserved global profile."""

    def __init__(self) -> None:
        super().__init__(f"'{GLOBAL_PROFILE}' is managed automatically and cannot be changed")


class ExtensionNotInstalledError(LookupError):
    """Raised when a profile references extensions missing from the inventory."""

    def __init__(self, ext_ids: list[str]) -> None:
        super().__init__(f"Extensions not installed: {', '.join(ext_ids)}")
        self.ext_ids = ext_ids


class ProfileImportError(ValueError):
    """Raised when an export document cannot be read."""


# ---------------------------------------------------------------------------
# Extension inventory
# ---------------------------------------------------------------------------


async def refresh_extensions(store: ProfileStore, environment: Environment) -> dict[str, ExtensionInfo]:
    """Rescan installed extensions and update the cached inventory."""
    fresh = await to_thread.run_sync(partial(discover_extensions, environment.extensions_root))
    merged = merge_inventory(fresh, await store.read_extensions())
    await store.write_extensions(merged)
    logger.info("Extension inventory refreshed: {} extensions", len(merged))
    return merged


async def get_inventory(store: ProfileStore, environment: Environment) -> dict[str, ExtensionInfo]:
    """Cached inventory, refreshed first if it was never populated."""
    inventory = await store.read_extensions()
    if not inventory:
        inventory = await refresh_extensions(store, environment)
    return inventory


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


async def list_profiles(store: ProfileStore) -> list[Profile]:
    """List all profiles ordered by name."""
    profiles = await store.read_profiles()
    return [profiles[name] for name in sorted(profiles)]


async def get_profile(store: ProfileStore, name: str) -> Profile:
    """Get a profile by name.  Raises ``ProfileNotFoundError`` if missing."""
    profiles = await store.read_profiles()
    profile = profiles.get(name)
    if profile is None:
        raise ProfileNotFoundError(name)
    return profile


async def create_profile(
    store: ProfileStore,
    name: str,
    ext_ids: list[str],
    *,
    inventory: dict[str, ExtensionInfo],
) -> Profile:
    """Create a profile enabling *ext_ids*.

    Raises ``DuplicateProfileError``, ``ReservedProfileError`` or
    ``ExtensionNotInstalledError``.
    """
    name = _validate_name(name)
    profiles = await store.read_profiles()
    if name in profiles:
        raise DuplicateProfileError(name)

    profile = Profile(name=name, extensions=_select(ext_ids, inventory))
    profiles[name] = profile
    await store.write_profiles(profiles)
    logger.info("Created profile {!r} with {} extensions", name, len(profile.extensions))
    return profile


async def update_profile(
    store: ProfileStore,
    name: str,
    ext_ids: list[str],
    *,
    inventory: dict[str, ExtensionInfo],
) -> Profile:
    """Replace the extension selection of a profile."""
    if name == GLOBAL_PROFILE:
        raise ReservedProfileError
    profiles = await store.read_profiles()
    if name not in profiles:
        raise ProfileNotFoundError(name)

    profile = profiles[name].model_copy(update={"extensions": _select(ext_ids, inventory)})
    profiles[name] = profile
    await store.write_profiles(profiles)
    return profile


async def clone_profile(store: ProfileStore, source: str, new_name: str) -> Profile:
    """Copy *source* under *new_name*.  The global profile may be cloned."""
    new_name = _validate_name(new_name)
    profiles = await store.read_profiles()
    if source not in profiles:
        raise ProfileNotFoundError(source)
    if new_name in profiles:
        raise DuplicateProfileError(new_name)

    clone = profiles[source].model_copy(update={"name": new_name}, deep=True)
    profiles[new_name] = clone
    await store.write_profiles(profiles)
    return clone


async def delete_profile(store: ProfileStore, name: str) -> None:
    """Delete a profile.  Raises ``ProfileNotFoundError`` if missing."""
    if name == GLOBAL_PROFILE:
        raise ReservedProfileError
    profiles = await store.read_profiles()
    if profiles.pop(name, None) is None:
        raise ProfileNotFoundError(name)
    await store.write_profiles(profiles)


# ---------------------------------------------------------------------------
# Export / import
# ---------------------------------------------------------------------------


async def export_profiles(store: ProfileStore, path: str | Path, names: list[str] | None = None) -> ProfileExport:
    """Write the named profiles (default: all user profiles) to *path*."""
    profiles = await store.read_profiles()
    if names:
        missing = [n for n in names if n not in profiles]
        if missing:
            raise ProfileNotFoundError(", ".join(missing))
        selected = [profiles[n] for n in names]
    else:
        selected = [profiles[n] for n in sorted(profiles) if n != GLOBAL_PROFILE]

    document = ProfileExport(profiles=selected)
    data = document.model_dump_json(indent=2)
    await to_thread.run_sync(partial(Path(path).write_text, data, encoding="utf-8"))
    return document


async def import_profiles(store: ProfileStore, path: str | Path, *, overwrite: bool = False) -> list[str]:
    """Merge profiles from an export document.  Returns the names imported.

    Existing names are skipped unless *overwrite*; the global profile is
    never imported.
    """
    try:
        raw = await to_thread.run_sync(partial(Path(path).read_text, encoding="utf-8"))
        document = ProfileExport.model_validate_json(raw)
    except (OSError, ValidationError) as exc:
        raise ProfileImportError(f"Cannot import profiles from {path}: {exc}") from exc

    profiles = await store.read_profiles()
    imported = []
    for profile in document.profiles:
        if profile.name == GLOBAL_PROFILE:
            continue
        if profile.name in profiles and not overwrite:
            logger.info("Skipping existing profile {!r}", profile.name)
            continue
        profiles[profile.name] = profile
        imported.append(profile.name)

    if imported:
        await store.write_profiles(profiles)
    return imported


# ---------------------------------------------------------------------------
# Global profile
# ---------------------------------------------------------------------------


async def ensure_global_profile(store: ProfileStore, environment: Environment) -> Profile:
    """Rebuild the global profile: installed extensions not disabled globally."""
    inventory = await get_inventory(store, environment)

    db_path = Path(environment.global_storage_root) / STATE_DB_FILE
    async with EditorStateDB(db_path, create=False) as db:
        disabled = {item["id"].lower() for item in await db.get_identifiers(DISABLED_KEY)}

    profile = Profile(
        name=GLOBAL_PROFILE,
        extensions={ext_id: info for ext_id, info in inventory.items() if ext_id.lower() not in disabled},
    )
    profiles = await store.read_profiles()
    profiles[GLOBAL_PROFILE] = profile
    await store.write_profiles(profiles)
    return profile


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _validate_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValueError("Profile name must not be empty")
    if name == GLOBAL_PROFILE:
        raise ReservedProfileError
    return name


def _select(ext_ids: list[str], inventory: dict[str, ExtensionInfo]) -> dict[str, ExtensionInfo]:
    """Look up *ext_ids* in *inventory*; extension ids are case-insensitive."""
    by_lower = {key.lower(): info for key, info in inventory.items()}
    missing = [ext_id for ext_id in ext_ids if ext_id.lower() not in by_lower]
    if missing:
        raise ExtensionNotInstalledError(missing)
    selected = [by_lower[ext_id.lower()] for ext_id in ext_ids]
    return {info.id: info for info in selected}
