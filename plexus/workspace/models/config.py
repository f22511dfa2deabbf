"""Workspace configuration model.

Options are read from the ``[tool.plexus]`` table of the workspace root
manifest and optionally overlaid by a ``.workspace.toml`` file.  Unknown keys
are kept so that other tools can carry their own options in the same table.
"""

from __future__ import annotations

from packaging.utils import canonicalize_name
from pydantic import BaseModel, ConfigDict, Field, field_validator


class WorkspaceConfig(BaseModel):
    """Workspace-level options."""

    model_config = ConfigDict(extra="allow")

    ignore_projects: list[str] = Field(
        default_factory=list,
        description="Project names that are never considered workspace members",
    )
    ignore_paths: list[str] = Field(
        default_factory=list,
        description="Paths relative to the workspace root excluded from project detection",
    )

    @field_validator("ignore_projects")
    @classmethod
    def _canonical_names(cls, names: list[str]) -> list[str]:
        # Project names are PEP 503 normalised, so "Foo_Bar" matches "foo-bar".
        return [canonicalize_name(name) for name in names]
