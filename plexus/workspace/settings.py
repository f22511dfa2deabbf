"""Process configuration loaded from PLEXUS_* environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class PlexusSettings(BaseSettings):
    """Plexus settings.

    All fields are read from environment variables with the ``PLEXUS_``
    prefix.  For example, ``PLEXUS_LOG_LEVEL=DEBUG`` maps to ``log_level``.

    Workspace options (ignored projects and paths) are **not** managed here;
    they belong to the workspace itself, see ``WorkspaceConfig``.
    """

    model_config = SettingsConfigDict(
        env_prefix="PLEXUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "WARNING"

    # -- Layout ----------------------------------------------------------------
    manifest_name: str = "pyproject.toml"
    """File name marking a directory as a project (and the workspace root)."""

    config_file: str = ".workspace.toml"
    """Optional workspace config file, relative to the workspace root."""

    # -- Change detection ------------------------------------------------------
    base_ref: str | None = None
    """Git ref changes are computed against.  Unset means ``HEAD`` plus untracked files."""

    head_ref: str | None = None
    """When set, compare ``base_ref...head_ref`` (``base_ref`` defaulting to ``HEAD``) instead of the work tree."""


@lru_cache(maxsize=1)
def get_settings() -> PlexusSettings:
    """Return a cached settings instance.

    Call ``get_settings.cache_clear()`` in tests to force a re-read after
    overriding env vars.
    """
    return PlexusSettings()
