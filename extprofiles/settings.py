"""Tool configuration loaded from EXTPROFILES_* environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class ProfilesSettings(BaseSettings):
    """Extension profile settings.

    All fields are read from environment variables with the ``EXTPROFILES_``
    prefix.  For example, ``EXTPROFILES_EDITOR="Code - Insiders"`` maps to
    ``editor``.

    The editor's own location is derived from ``HOME`` / ``APPDATA`` /
    ``USERPROFILE`` by :class:`~extprofiles.identity.environment.Environment`;
    the fields here only override that guess.
    """

    model_config = SettingsConfigDict(
        env_prefix="EXTPROFILES_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- Editor layout ---------------------------------------------------------
    editor: str = "Code"
    """Editor directory name under the per-OS application data root."""

    user_data_dir: str | None = None
    """Application root override (``--user-data-dir`` / portable installs).

    When set, ``User/`` and ``Workspaces/`` are looked up directly below it.
    """

    extensions_dir: str | None = None
    """Installed extensions directory override (``--extensions-dir``)."""

    # -- Profile storage -------------------------------------------------------
    data_root: str | None = None
    """Directory holding ``profiles.json`` and ``extensions.json``.

    Defaults to ``<globalStorage>/extension-profiles`` of the editor.
    """


@lru_cache(maxsize=1)
def get_settings() -> ProfilesSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``get_settings.cache_clear()`` in tests to force a
    re-read after overriding env vars.
    """
    return ProfilesSettings()
