"""Profile data model.

A profile is a named selection of installed extensions.  Applying it to a
workspace enables the selection and disables every other known extension
in that workspace's storage bucket.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

GLOBAL_PROFILE = "Global Profile"
"""Reserved profile mirroring the extensions enabled outside any workspace."""


class ExtensionInfo(BaseModel):
    """One installed extension, keyed by ``publisher.name``."""

    id: str
    uuid: str | None = None
    label: str | None = None
    description: str | None = None

    @property
    def display_name(self) -> str:
        return self.label or self.id


class Profile(BaseModel):
    name: str
    extensions: dict[str, ExtensionInfo] = Field(default_factory=dict, description="Selected extensions by id")

    @property
    def is_global(self) -> bool:
        return self.name == GLOBAL_PROFILE


class ProfileExport(BaseModel):
    """Document written by ``export`` and accepted by ``import``."""

    version: int = 1
    profiles: list[Profile] = Field(default_factory=list)
