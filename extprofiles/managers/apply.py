"""Apply a profile to the storage bucket of the open workspace.

The bucket is located by the workspace resolver; nothing is written unless
resolution succeeds.  The editor picks the new lists up on its next window
reload.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, Field

from extprofiles.identity.environment import Environment
from extprofiles.identity.resolver import resolve_workspace
from extprofiles.managers.profiles import get_inventory, get_profile
from extprofiles.models.profile import ExtensionInfo
from extprofiles.store.base import ProfileStore
from extprofiles.store.state_db import DISABLED_KEY, ENABLED_KEY, PROFILE_KEY, STATE_DB_FILE, EditorStateDB


class AppliedProfile(BaseModel):
    """Outcome of ``apply_profile``."""

    profile: str
    bucket_id: str
    enabled: list[str] = Field(default_factory=list)
    disabled: list[str] = Field(default_factory=list)


async def apply_profile(
    environment: Environment,
    store: ProfileStore,
    name: str,
    folders: Iterable[str | os.PathLike[str]],
) -> AppliedProfile:
    """Enable the profile's extensions in this workspace and disable the rest.

    Applying the global profile clears both lists so the workspace follows the
    global enablement again.

    Raises ``ProfileNotFoundError`` or ``ResolutionError``.
    """
    profile = await get_profile(store, name)
    bucket_id = await resolve_workspace(environment, folders)

    if profile.is_global:
        enabled: list[ExtensionInfo] = []
        disabled: list[ExtensionInfo] = []
    else:
        inventory = await get_inventory(store, environment)
        selected = {ext_id.lower() for ext_id in profile.extensions}
        enabled = list(profile.extensions.values())
        disabled = [info for ext_id, info in sorted(inventory.items()) if ext_id.lower() not in selected]

    async with EditorStateDB(_state_db_path(environment, bucket_id)) as db:
        await db.set_identifiers(ENABLED_KEY, [_identifier(info) for info in enabled])
        await db.set_identifiers(DISABLED_KEY, [_identifier(info) for info in disabled])
        await db.set(PROFILE_KEY, profile.name)

    logger.info(
        "Applied profile {!r} to bucket {} ({} enabled, {} disabled)",
        profile.name,
        bucket_id,
        len(enabled),
        len(disabled),
    )
    return AppliedProfile(
        profile=profile.name,
        bucket_id=bucket_id,
        enabled=[info.id for info in enabled],
        disabled=[info.id for info in disabled],
    )


async def current_profile(environment: Environment, folders: Iterable[str | os.PathLike[str]]) -> str | None:
    """Name of the profile last applied to this workspace, if any."""
    bucket_id = await resolve_workspace(environment, folders)
    async with EditorStateDB(_state_db_path(environment, bucket_id), create=False) as db:
        return await db.get(PROFILE_KEY)


def _state_db_path(environment: Environment, bucket_id: str) -> Path:
    return Path(environment.bucket_dir(bucket_id)) / STATE_DB_FILE


def _identifier(info: ExtensionInfo) -> dict:
    identifier = {"id": info.id}
    if info.uuid:
        identifier["uuid"] = info.uuid
    return identifier
