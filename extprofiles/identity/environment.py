"""Editor directory layout per operating system.

Builds an immutable :class:`Environment` once at startup; the resolver and
every manager receive it explicitly instead of reading process-wide state.

Layout (``Code`` is the default editor directory name)::

    win32   %APPDATA%\\Code\\
    darwin  $HOME/Library/Application Support/Code/
    linux   $HOME/.config/Code/

Below the application root:

- ``User/``                   -> per-user state (``state.vscdb``)
- ``User/workspaceStorage/``  -> one bucket per opened workspace
- ``User/globalStorage/``     -> global state database
- ``Workspaces/``             -> untitled multi-root definition files

Nothing here touches the filesystem: paths are best guesses and may not
exist.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import PurePath, PurePosixPath, PureWindowsPath
from typing import TYPE_CHECKING

from extprofiles.models.enums import Platform

if TYPE_CHECKING:
    from extprofiles.settings import ProfilesSettings

DEFAULT_EDITOR = "Code"

WORKSPACE_STORAGE_DIR = "workspaceStorage"
GLOBAL_STORAGE_DIR = "globalStorage"
WORKSPACES_DIR = "Workspaces"


def pure_path_type(platform: Platform) -> type[PurePath]:
    """Pure path flavour matching *platform* (usable on any host)."""
    return PureWindowsPath if platform.is_windows else PurePosixPath


@dataclass(frozen=True)
class Environment:
    """Resolved editor directories for one operating system."""

    platform: Platform
    home: PurePath
    app_root: PurePath
    extensions_root: PurePath

    @property
    def user_root(self) -> PurePath:
        """Per-user root: ``<app_root>/User``."""
        return self.app_root / "User"

    @property
    def workspace_storage_root(self) -> PurePath:
        return self.user_root / WORKSPACE_STORAGE_DIR

    @property
    def global_storage_root(self) -> PurePath:
        return self.user_root / GLOBAL_STORAGE_DIR

    @property
    def workspaces_root(self) -> PurePath:
        """Untitled multi-root definitions: ``<app_root>/Workspaces``."""
        return self.app_root / WORKSPACES_DIR

    def bucket_dir(self, bucket_id: str) -> PurePath:
        """Storage bucket directory: ``workspaceStorage/<bucket_id>``."""
        return self.workspace_storage_root / bucket_id

    # -- Construction ----------------------------------------------------------

    @classmethod
    def from_os(
        cls,
        platform: Platform | None = None,
        env: Mapping[str, str] | None = None,
        *,
        editor: str = DEFAULT_EDITOR,
        user_data_dir: str | None = None,
        extensions_dir: str | None = None,
    ) -> Environment:
        """Compute the layout for *platform* from ``HOME``/``APPDATA``/``USERPROFILE``.

        Defaults to the running host and ``os.environ``.  Passing another
        platform is how tests simulate Windows on a POSIX runner.
        """
        platform = platform or Platform.current()
        env = os.environ if env is None else env
        path_type = pure_path_type(platform)

        home = path_type(_home_dir(platform, env))

        if user_data_dir:
            app_root = path_type(user_data_dir)
        elif platform is Platform.WINDOWS:
            appdata = env.get("APPDATA")
            base = path_type(appdata) if appdata else home / "AppData" / "Roaming"
            app_root = base / editor
        elif platform is Platform.DARWIN:
            app_root = home / "Library" / "Application Support" / editor
        else:
            app_root = home / ".config" / editor

        extensions_root = path_type(extensions_dir) if extensions_dir else home / ".vscode" / "extensions"

        return cls(
            platform=platform,
            home=home,
            app_root=app_root,
            extensions_root=extensions_root,
        )

    @classmethod
    def from_settings(cls, settings: ProfilesSettings, platform: Platform | None = None) -> Environment:
        return cls.from_os(
            platform,
            editor=settings.editor,
            user_data_dir=settings.user_data_dir,
            extensions_dir=settings.extensions_dir,
        )


def _home_dir(platform: Platform, env: Mapping[str, str]) -> str:
    if platform is Platform.WINDOWS:
        # USERPROFILE is authoritative on Windows; HOME is only set by shells like Git Bash.
        return env.get("USERPROFILE") or env.get("HOME") or "C:\\Users\\Default"
    return env.get("HOME") or "/"
