"""Access to the editor's ``state.vscdb`` key/value databases.

Each storage bucket (and the global storage directory) holds a SQLite file
with a single table::

    CREATE TABLE ItemTable (key TEXT UNIQUE ON CONFLICT REPLACE, value BLOB)

Extension enablement lives under ``extensionsIdentifiers/enabled`` and
``extensionsIdentifiers/disabled`` as JSON arrays of ``{"id", "uuid"}``.

Uses SQLAlchemy's asyncio extension over ``aiosqlite``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from loguru import logger
from sqlalchemy import Text, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

STATE_DB_FILE = "state.vscdb"

ENABLED_KEY = "extensionsIdentifiers/enabled"
DISABLED_KEY = "extensionsIdentifiers/disabled"
PROFILE_KEY = "extensionProfiles/profile"


class Base(DeclarativeBase):
    pass


class Item(Base):
    __tablename__ = "ItemTable"

    # The editor declares ``key`` UNIQUE rather than PRIMARY KEY; either
    # satisfies the ON CONFLICT target used for upserts.
    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str | None] = mapped_column(Text)


def create_engine(db_path: str | Path, **kwargs: object) -> AsyncEngine:
    """Create an async engine for one ``state.vscdb`` file."""
    defaults: dict[str, Any] = {"echo": False}
    defaults.update(kwargs)
    return create_async_engine(f"sqlite+aiosqlite:///{Path(db_path)}", **defaults)


class EditorStateDB:
    """One ``state.vscdb`` file, used as an async context manager.

    ``create=False`` opens read-only semantics: a missing file reads as empty
    and is never created.  With ``create=True`` the file may be created, but
    its directory must already exist: a bucket the editor never made is never
    made here either.
    """

    def __init__(self, db_path: str | Path, *, create: bool = True) -> None:
        self.path = Path(db_path)
        self._create = create
        self._engine: AsyncEngine | None = None

    async def __aenter__(self) -> EditorStateDB:
        if not self._create and not self.path.exists():
            return self
        if not self.path.parent.is_dir():
            raise FileNotFoundError(f"Storage directory {self.path.parent} does not exist")
        self._engine = create_engine(self.path)
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

    # -- Raw values ------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        if self._engine is None:
            return None
        async with self._engine.connect() as conn:
            value = await conn.scalar(select(Item.value).where(Item.key == key))
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        if self._engine is None:
            raise RuntimeError(f"State database {self.path} is not open for writing")
        stmt = insert(Item).values(key=key, value=value)
        stmt = stmt.on_conflict_do_update(index_elements=[Item.key], set_={"value": stmt.excluded.value})
        async with self._engine.begin() as conn:
            await conn.execute(stmt)
        logger.debug("state.vscdb {}: wrote {}", self.path, key)

    # -- Extension identifiers -------------------------------------------------

    async def get_identifiers(self, key: str) -> list[dict]:
        """Decode a JSON list of ``{"id", "uuid"}``; empty if unset or malformed."""
        raw = await self.get(key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed {} in {}", key, self.path)
            return []
        return [item for item in data if isinstance(item, dict) and "id" in item] if isinstance(data, list) else []

    async def set_identifiers(self, key: str, identifiers: list[dict]) -> None:
        await self.set(key, json.dumps(identifiers))
