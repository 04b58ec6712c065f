"""Shared enumerations."""

from __future__ import annotations

import sys
from enum import StrEnum

# -- Platform ------------------------------------------------------------------


class Platform(StrEnum):
    """Host operating system, using ``sys.platform`` spellings."""

    WINDOWS = "win32"
    DARWIN = "darwin"
    LINUX = "linux"

    @classmethod
    def current(cls) -> Platform:
        if sys.platform.startswith("win"):
            return cls.WINDOWS
        if sys.platform == "darwin":
            return cls.DARWIN
        # Any other Unix-like host uses the XDG style layout.
        return cls.LINUX

    @property
    def is_windows(self) -> bool:
        return self is Platform.WINDOWS


# -- Resolution ----------------------------------------------------------------


class StorageLayout(StrEnum):
    """Which editor root a definition file was found under."""

    WORKSPACE_STORAGE = "workspaceStorage"
    WORKSPACES = "Workspaces"


class ResolutionFailure(StrEnum):
    NOT_FOUND = "not_found"
