"""Workspace definition files written by the editor.

Two shapes are found on disk, told apart by which fields are present:

- ``workspaceStorage/<id>/workspace.json``::

      {"folder": "file:///home/u/proj"}
      {"workspace": "file:///home/u/proj/app.code-workspace"}

- ``Workspaces/<id>/workspace.json`` and ``*.code-workspace``::

      {"folders": [{"path": "../a"}, {"path": "/abs/b"}, {"uri": "file:///c"}]}

Each file is decoded once into :data:`DefinitionFile`; nothing downstream
touches the raw JSON.  Like the editor, the decoder tolerates comments and
trailing commas.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
    model_validator,
)


class DefinitionParseError(ValueError):
    """Definition file is not valid JSON or has an unexpected shape."""


class SingleFolderDefinition(BaseModel):
    """Bucket bound to one folder, or to a multi-root definition file."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    folder: str | None = None
    workspace: str | None = None


class FolderEntry(BaseModel):
    """One entry of a multi-root ``folders`` array."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    path: str | None = None
    """Absolute, or relative to the directory of the definition file."""

    uri: str | None = None
    name: str | None = None

    @model_validator(mode="after")
    def _has_location(self) -> FolderEntry:
        if self.path is None and self.uri is None:
            raise ValueError("folder entry needs 'path' or 'uri'")
        return self


class MultiRootDefinition(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    folders: list[FolderEntry] = Field(default_factory=list)


def _definition_kind(value: Any) -> str | None:
    if isinstance(value, dict):
        if "folders" in value:
            return "multi_root"
        if "folder" in value or "workspace" in value:
            return "single_folder"
        return None
    if isinstance(value, MultiRootDefinition):
        return "multi_root"
    if isinstance(value, SingleFolderDefinition):
        return "single_folder"
    return None


DefinitionFile = Annotated[
    Annotated[SingleFolderDefinition, Tag("single_folder")] | Annotated[MultiRootDefinition, Tag("multi_root")],
    Discriminator(_definition_kind),
]

_adapter: TypeAdapter[SingleFolderDefinition | MultiRootDefinition] = TypeAdapter(DefinitionFile)


def strip_jsonc(text: str) -> str:
    """Drop ``//`` and ``/* */`` comments and trailing commas outside strings.

    ``.code-workspace`` files are edited by hand and the editor reads them as
    JSON with comments; the result of this is plain JSON.
    """
    out: list[str] = []
    pending_comma = -1
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            end = i + 1
            while end < n and text[end] != '"':
                end += 2 if text[end] == "\\" else 1
            out.append(text[i : end + 1])
            pending_comma = -1
            i = end + 1
            continue
        if text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue

        if ch in "}]" and pending_comma >= 0:
            out[pending_comma] = ""
        if ch == ",":
            pending_comma = len(out)
        elif not ch.isspace():
            pending_comma = -1
        out.append(ch)
        i += 1
    return "".join(out)


def parse_definition(raw: str | bytes) -> SingleFolderDefinition | MultiRootDefinition:
    """Decode a definition file body.  Raises ``DefinitionParseError``.

    Comments and trailing commas are accepted, as the editor accepts them.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise DefinitionParseError(f"Invalid workspace definition: not UTF-8 ({exc.reason})") from exc
    try:
        return _adapter.validate_json(strip_jsonc(raw))
    except ValidationError as exc:
        msg = f"Invalid workspace definition: {exc.error_count()} error(s), first: {exc.errors()[0]['msg']}"
        raise DefinitionParseError(msg) from exc
