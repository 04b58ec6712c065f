"""Filesystem path <-> ``file://`` URI conversion, as the editor writes it.

Matching against ``workspace.json`` is done by string equality, so the
conversion reproduces the editor's own URI stringification exactly:

- separators become ``/`` and the path gains a leading ``/``
- a Windows drive letter is lower-cased (``C:\\a`` -> ``/c:/a``)
- everything except unreserved characters and ``/`` is percent-encoded,
  so ``:`` -> ``%3A``, ``?`` -> ``%3F``, ``#`` -> ``%23``, space -> ``%20``
- UNC paths (``\\\\server\\share``) carry the server as URI authority

Examples::

    /home/u/my proj      -> file:///home/u/my%20proj
    C:\\Users\\a         -> file:///c%3A/Users/a
    \\\\srv\\share\\x     -> file://srv/share/x

On Windows, comparisons are case-insensitive and accept either ``%3A`` or
``:`` after the drive letter (older editor builds wrote the latter).
"""

from __future__ import annotations

import ntpath
import os
import posixpath
import re
from pathlib import PurePath
from urllib.parse import quote, unquote

from extprofiles.models.enums import Platform

FILE_SCHEME = "file://"

_DRIVE_PATH = re.compile(r"^/[A-Za-z]:")
_DRIVE_URI = re.compile(r"^file:///([A-Za-z])(?:%3[Aa]|:)")


def path_module(platform: Platform):
    """``ntpath`` or ``posixpath`` for *platform*."""
    return ntpath if platform.is_windows else posixpath


def _fspath(path: object) -> str:
    if isinstance(path, bytes):
        raise TypeError("Expected a str or os.PathLike path, got bytes")
    try:
        value = os.fspath(path)  # type: ignore[arg-type]
    except TypeError:
        msg = f"Expected a str or os.PathLike path, got {type(path).__name__}"
        raise TypeError(msg) from None
    if not isinstance(value, str):
        raise TypeError(f"Expected a str path, got {type(value).__name__}")
    return value


def normalize_path(path: str | os.PathLike[str] | PurePath, platform: Platform | None = None) -> str:
    """Absolute, normalized form of *path* using *platform*'s rules.

    Relative paths are anchored at the current working directory.  Symlinks
    are not resolved: the editor records the path as the user opened it.
    """
    platform = platform or Platform.current()
    mod = path_module(platform)
    raw = _fspath(path)
    if not mod.isabs(raw):
        raw = mod.join(os.getcwd(), raw)
    return mod.normpath(raw)


def path_key(path: str | os.PathLike[str] | PurePath, platform: Platform | None = None) -> str:
    """Comparison key for a filesystem path (case-folded on Windows only)."""
    platform = platform or Platform.current()
    normalized = normalize_path(path, platform)
    return normalized.lower() if platform.is_windows else normalized


def to_canonical_uri(path: str | os.PathLike[str] | PurePath, platform: Platform | None = None) -> str:
    """Convert a filesystem path to the editor's ``file://`` URI string.

    Raises ``TypeError`` if *path* is not a ``str`` or path-like object.
    """
    platform = platform or Platform.current()
    value = normalize_path(path, platform)
    if platform.is_windows:
        value = value.replace("\\", "/")

    authority = ""
    if value.startswith("//"):
        idx = value.find("/", 2)
        if idx == -1:
            authority, value = value[2:], "/"
        else:
            authority, value = value[2:idx], value[idx:] or "/"
    elif not value.startswith("/"):
        value = "/" + value

    if _DRIVE_PATH.match(value):
        value = "/" + value[1].lower() + value[2:]

    return FILE_SCHEME + quote(authority.lower(), safe="") + quote(value, safe="/")


def from_canonical_uri(uri: str, platform: Platform | None = None) -> str:
    """Decode a ``file://`` URI back to a filesystem path string.

    Raises ``ValueError`` for any other scheme.
    """
    platform = platform or Platform.current()
    if uri[: len(FILE_SCHEME)].lower() != FILE_SCHEME:
        raise ValueError(f"Expected a file URI, got: {uri}")

    rest = uri[len(FILE_SCHEME) :]
    idx = rest.find("/")
    authority, encoded = (rest, "") if idx == -1 else (rest[:idx], rest[idx:])
    value = unquote(encoded)

    if authority and len(value) > 1:
        value = "//" + unquote(authority) + value
    elif platform.is_windows and _DRIVE_PATH.match(value):
        value = value[1].lower() + value[2:]

    if platform.is_windows:
        value = value.replace("/", "\\")
    return value


def comparison_key(uri: str, platform: Platform | None = None) -> str:
    """String used to compare two canonical URIs for equality.

    POSIX: the URI unchanged.  Windows: ``%3A`` after the drive letter is
    read as ``:`` and the whole string is case-folded.
    """
    platform = platform or Platform.current()
    if not platform.is_windows:
        return uri
    uri = _DRIVE_URI.sub(lambda m: f"file:///{m.group(1)}:", uri)
    return uri.lower()


def uris_equal(left: str, right: str, platform: Platform | None = None) -> bool:
    return comparison_key(left, platform) == comparison_key(right, platform)
