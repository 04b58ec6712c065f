"""Persistence for profiles and editor state databases."""

from extprofiles.store.base import ProfileStore
from extprofiles.store.local import LocalProfileStore
from extprofiles.store.state_db import EditorStateDB

__all__ = ["EditorStateDB", "LocalProfileStore", "ProfileStore"]
