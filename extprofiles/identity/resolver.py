"""Workspace resolver -- maps open folders to the editor's storage bucket.

Resolution order:

1. One distinct folder: scan ``workspaceStorage`` for ``workspace.json``
   files whose ``folder`` (or ``workspace``) URI equals the folder's
   canonical URI.
2. Several folders: scan ``workspaceStorage`` and ``Workspaces`` for
   definitions whose folder set is exactly the requested set.  A
   ``workspace`` reference is followed to the ``.code-workspace`` file it
   names; relative folder paths are anchored at that file's directory.
3. The bucket id is the directory between ``workspaceStorage`` and
   ``workspace.json``.  A definition matched under ``Workspaces`` is only
   an answer through the ``workspaceStorage`` bucket that references it.

Candidates are read concurrently (one task per file, reads in worker
threads) and joined before matching.  Matching walks candidates in sorted
path order, ``workspaceStorage`` before ``Workspaces``, so the first match
is deterministic regardless of directory listing order.

A candidate that cannot be read or decoded is dropped and logged; only
"nothing matched" reaches the caller, as ``ResolutionError``.
"""

from __future__ import annotations

import os
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from functools import partial
from pathlib import Path, PurePath

import anyio
from anyio import to_thread
from loguru import logger

from extprofiles.identity.environment import Environment
from extprofiles.identity.scanner import ScanError, scan_async
from extprofiles.identity.uri import (
    FILE_SCHEME,
    comparison_key,
    from_canonical_uri,
    normalize_path,
    path_key,
    path_module,
    to_canonical_uri,
)
from extprofiles.models.definition import (
    MultiRootDefinition,
    SingleFolderDefinition,
    parse_definition,
)
from extprofiles.models.enums import Platform, ResolutionFailure, StorageLayout

DEFINITION_FILENAME = "workspace.json"

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ResolutionError(LookupError):
    """No storage bucket matches the requested folder set."""

    def __init__(self, folders: Sequence[str], reason: ResolutionFailure = ResolutionFailure.NOT_FOUND) -> None:
        super().__init__(f"Could not determine workspace identity for {', '.join(folders)} ({reason})")
        self.folders = list(folders)
        self.reason = reason


# ---------------------------------------------------------------------------
# Candidates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Candidate:
    """A decoded ``workspace.json`` found under one of the scanned roots."""

    path: Path
    root: Path
    layout: StorageLayout
    definition: SingleFolderDefinition | MultiRootDefinition

    @property
    def bucket_id(self) -> str:
        """Directory between the scanned root and the file name."""
        return self.path.parent.relative_to(self.root).as_posix()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def resolve_workspace(environment: Environment, folders: Iterable[str | os.PathLike[str]]) -> str:
    """Return the storage bucket id for exactly this set of open folders.

    Raises
    ------
    ValueError:
        *folders* is empty.
    ResolutionError:
        No definition file declares exactly these folders.
    """
    platform = environment.platform
    requested = [normalize_path(f, platform) for f in folders]
    if not requested:
        raise ValueError("At least one workspace folder is required")

    # The same folder opened twice is still one folder.
    unique: dict[str, str] = {}
    for folder in requested:
        unique.setdefault(path_key(folder, platform), folder)
    distinct = list(unique.values())

    if len(distinct) == 1:
        bucket_id = await _resolve_single_folder(environment, distinct[0])
    else:
        bucket_id = await _resolve_multi_root(environment, distinct)

    logger.info("Resolved workspace {} -> bucket {}", distinct, bucket_id)
    return bucket_id


async def load_candidates(root: PurePath, layout: StorageLayout) -> list[Candidate]:
    """Decode every ``workspace.json`` under *root*, sorted by path.

    A missing root yields no candidates.  Unreadable or malformed files are
    dropped.
    """
    base = Path(root)
    try:
        files = await scan_async(base, DEFINITION_FILENAME)
    except ScanError as exc:
        logger.debug("No {} candidates: {}", layout, exc)
        return []

    loaded = await _gather(partial(_load_candidate, base, layout), sorted(files))
    return [c for c in loaded if c is not None]


# ---------------------------------------------------------------------------
# Single folder
# ---------------------------------------------------------------------------


async def _resolve_single_folder(environment: Environment, folder: str) -> str:
    platform = environment.platform
    target = comparison_key(to_canonical_uri(folder, platform), platform)

    candidates = await load_candidates(environment.workspace_storage_root, StorageLayout.WORKSPACE_STORAGE)
    for candidate in candidates:
        definition = candidate.definition
        if not isinstance(definition, SingleFolderDefinition):
            continue
        # ``folder`` is checked before ``workspace`` within one candidate.
        for uri in (definition.folder, definition.workspace):
            if uri is not None and comparison_key(uri, platform) == target:
                return candidate.bucket_id

    raise ResolutionError([folder])


# ---------------------------------------------------------------------------
# Multi-root
# ---------------------------------------------------------------------------


async def _resolve_multi_root(environment: Environment, folders: list[str]) -> str:
    platform = environment.platform
    requested = {path_key(f, platform) for f in folders}

    storage = await load_candidates(environment.workspace_storage_root, StorageLayout.WORKSPACE_STORAGE)
    candidates = storage + await load_candidates(environment.workspaces_root, StorageLayout.WORKSPACES)

    declared = await _gather(partial(_declared_folders, platform), candidates)
    for candidate, keys in zip(candidates, declared, strict=True):
        if keys is None:
            continue
        # Same cardinality and same members: no subset, superset or duplicate matches.
        if len(keys) != len(requested) or set(keys) != requested:
            continue
        if candidate.layout is StorageLayout.WORKSPACE_STORAGE:
            return candidate.bucket_id
        bucket = _bucket_referencing(storage, candidate.path, platform)
        if bucket is not None:
            return bucket.bucket_id
        logger.debug("Skipping {}: no storage bucket references it", candidate.path)

    raise ResolutionError(folders)


def _bucket_referencing(storage: list[Candidate], definition_path: Path, platform: Platform) -> Candidate | None:
    """First ``workspaceStorage`` bucket whose ``workspace`` field names *definition_path*."""
    target = path_key(definition_path, platform)
    for candidate in storage:
        definition = candidate.definition
        if not isinstance(definition, SingleFolderDefinition) or definition.workspace is None:
            continue
        reference = _reference_path(definition.workspace, platform)
        if reference is not None and path_key(reference, platform) == target:
            return candidate
    return None


async def _declared_folders(platform: Platform, candidate: Candidate) -> list[str] | None:
    """Folder keys declared by *candidate*, following ``workspace`` references.

    Returns ``None`` when the candidate does not describe a multi-root set.
    """
    definition = candidate.definition
    if isinstance(definition, MultiRootDefinition):
        return _folder_keys(definition, candidate.path.parent, platform)

    if definition.workspace is None:
        return None

    target = _reference_path(definition.workspace, platform)
    if target is None:
        logger.debug("Skipping {}: unsupported workspace reference {}", candidate.path, definition.workspace)
        return None

    try:
        referenced = await to_thread.run_sync(partial(_read_definition, target))
    except FileNotFoundError:
        logger.debug("Skipping {}: referenced workspace {} no longer exists", candidate.path, target)
        return None
    except (OSError, ValueError) as exc:
        # ValueError covers DefinitionParseError and paths the OS rejects (embedded NUL).
        logger.debug("Skipping {}: cannot read referenced workspace {}: {}", candidate.path, target, exc)
        return None

    if not isinstance(referenced, MultiRootDefinition):
        return None
    return _folder_keys(referenced, target.parent, platform)


def _reference_path(reference: str, platform: Platform) -> Path | None:
    """Local path named by a ``workspace`` field (URI or plain path)."""
    if "://" not in reference:
        return Path(normalize_path(reference, platform))
    if reference[: len(FILE_SCHEME)].lower() != FILE_SCHEME:
        return None
    return Path(normalize_path(from_canonical_uri(reference, platform), platform))


def _folder_keys(definition: MultiRootDefinition, base_dir: PurePath, platform: Platform) -> list[str]:
    keys = []
    for entry in definition.folders:
        if entry.path is not None:
            keys.append(_entry_key(entry.path, base_dir, platform))
        elif entry.uri is not None and entry.uri[: len(FILE_SCHEME)].lower() == FILE_SCHEME:
            keys.append(path_key(from_canonical_uri(entry.uri, platform), platform))
        else:
            # Remote folders still count towards cardinality but never match a local folder.
            keys.append(str(entry.uri))
    return keys


def _entry_key(path: str, base_dir: PurePath, platform: Platform) -> str:
    mod = path_module(platform)
    if not mod.isabs(path):
        path = mod.join(os.fspath(base_dir), path)
    return path_key(path, platform)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _load_candidate(root: Path, layout: StorageLayout, path: Path) -> Candidate | None:
    try:
        definition = await to_thread.run_sync(partial(_read_definition, path))
    except FileNotFoundError:
        logger.debug("Skipping {}: removed during scan", path)
        return None
    except (OSError, ValueError) as exc:
        logger.debug("Skipping {}: {}", path, exc)
        return None
    return Candidate(path=path, root=root, layout=layout, definition=definition)


def _read_definition(path: Path) -> SingleFolderDefinition | MultiRootDefinition:
    """Read and decode a definition file.  Raises ``FileNotFoundError`` if missing."""
    return parse_definition(path.read_bytes())


async def _gather[T, R](func: Callable[[T], Awaitable[R]], items: Sequence[T]) -> list[R]:
    """Run *func* over *items* concurrently; results keep the input order."""
    results: list[R] = [None] * len(items)  # type: ignore[list-item]

    async def _run(index: int, item: T) -> None:
        results[index] = await func(item)

    async with anyio.create_task_group() as tg:
        for index, item in enumerate(items):
            tg.start_soon(_run, index, item)
    return results
