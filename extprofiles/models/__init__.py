"""Data models for extension profiles."""

from extprofiles.models.definition import (
    DefinitionFile,
    DefinitionParseError,
    FolderEntry,
    MultiRootDefinition,
    SingleFolderDefinition,
    parse_definition,
)
from extprofiles.models.enums import Platform, ResolutionFailure, StorageLayout
from extprofiles.models.profile import GLOBAL_PROFILE, ExtensionInfo, Profile, ProfileExport

__all__ = [
    "GLOBAL_PROFILE",
    # Definition files
    "DefinitionFile",
    "DefinitionParseError",
    # Profiles
    "ExtensionInfo",
    "FolderEntry",
    "MultiRootDefinition",
    # Enums
    "Platform",
    "Profile",
    "ProfileExport",
    "ResolutionFailure",
    "SingleFolderDefinition",
    "StorageLayout",
    "parse_definition",
]
