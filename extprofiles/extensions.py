"""Installed extension discovery.

Each extension lives in its own directory under the extensions root::

    ~/.vscode/extensions/ms-python.python-2024.2.1/package.json

The manifest gives ``publisher`` and ``name`` (the id is
``publisher.name``), ``displayName`` and ``description``.  The gallery
UUID is recorded by the editor under ``__metadata.id``.
"""

from __future__ import annotations

import json
import os
from pathlib import Path, PurePath

from loguru import logger

from extprofiles.models.profile import ExtensionInfo

MANIFEST_FILE = "package.json"


def discover_extensions(extensions_root: str | os.PathLike[str] | PurePath) -> dict[str, ExtensionInfo]:
    """Read every extension manifest one level below *extensions_root*.

    Unreadable manifests are skipped.  When several versions of the same
    extension are installed, the last directory in sorted order wins.
    """
    root = Path(extensions_root)
    if not root.is_dir():
        logger.warning("Extensions directory {} does not exist", root)
        return {}

    found: dict[str, ExtensionInfo] = {}
    for child in sorted(root.iterdir()):
        if not child.is_dir() or child.name.startswith("."):
            continue
        info = _read_manifest(child / MANIFEST_FILE)
        if info is not None:
            found[info.id] = info
    return found


def merge_inventory(fresh: dict[str, ExtensionInfo], cached: dict[str, ExtensionInfo]) -> dict[str, ExtensionInfo]:
    """Fill labels and descriptions missing from *fresh* out of *cached*.

    Only extensions still installed survive.
    """
    merged = {}
    for ext_id, info in fresh.items():
        old = cached.get(ext_id)
        if old is not None and (info.label is None or info.description is None):
            info = info.model_copy(
                update={
                    "label": info.label or old.label,
                    "description": info.description or old.description,
                }
            )
        merged[ext_id] = info
    return merged


def _read_manifest(path: Path) -> ExtensionInfo | None:
    try:
        manifest = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("Skipping extension manifest {}: {}", path, exc)
        return None

    if not isinstance(manifest, dict):
        return None

    publisher = manifest.get("publisher")
    name = manifest.get("name")
    if not publisher or not name:
        return None

    metadata = manifest.get("__metadata")
    return ExtensionInfo(
        id=f"{publisher}.{name}",
        uuid=metadata.get("id") if isinstance(metadata, dict) else None,
        label=_localized(manifest.get("displayName")),
        description=_localized(manifest.get("description")),
    )


def _localized(value: object) -> str | None:
    # ``%key%`` placeholders are resolved from package.nls.json by the editor.
    if not isinstance(value, str) or not value or (value.startswith("%") and value.endswith("%")):
        return None
    return value
