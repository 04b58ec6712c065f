"""Workspace identity: which storage bucket belongs to the open folders."""

from extprofiles.identity.environment import Environment
from extprofiles.identity.resolver import ResolutionError, resolve_workspace
from extprofiles.identity.scanner import ScanError, scan
from extprofiles.identity.uri import from_canonical_uri, to_canonical_uri

__all__ = [
    "Environment",
    "ResolutionError",
    "ScanError",
    "from_canonical_uri",
    "resolve_workspace",
    "scan",
    "to_canonical_uri",
]
