"""Profile store interface.

The store holds two small JSON documents: the profile catalogue and the
cached inventory of installed extensions.  The interface is async so the
CLI can share one event loop with the workspace resolver.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from extprofiles.models.profile import ExtensionInfo, Profile


@runtime_checkable
class ProfileStore(Protocol):
    """Async protocol for reading and writing profile data.

    Storage layout::

        {root}/profiles.json
        {root}/extensions.json
    """

    async def read_profiles(self) -> dict[str, Profile]:
        """Read all profiles keyed by name.  Empty if nothing was stored yet."""
        ...

    async def write_profiles(self, profiles: dict[str, Profile]) -> None:
        """Replace the stored profile catalogue."""
        ...

    async def read_extensions(self) -> dict[str, ExtensionInfo]:
        """Read the cached extension inventory.  Empty if never refreshed."""
        ...

    async def write_extensions(self, extensions: dict[str, ExtensionInfo]) -> None:
        ...
