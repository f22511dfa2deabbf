"""Changed files -> modified projects.

A file belongs to the project whose directory is the longest path prefix of
the file's location.  Files outside every project (top-level configuration,
docs, CI files, ...) belong to no project and are dropped.

The list of changed files comes from a ``ChangeSource``.  Sources are asked
again on every status or filter computation, so a change of the underlying
state is visible on the next call.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from loguru import logger

if TYPE_CHECKING:
    from plexus.workspace.context import Workspace
    from plexus.workspace.models.project import Project


class ChangeSourceError(RuntimeError):
    """The list of changed files could not be produced."""


@runtime_checkable
class ChangeSource(Protocol):
    """Provides the changed files of a workspace.

    Paths may be absolute or relative to the workspace root.
    """

    def changed_files(self) -> list[str]:
        """Return the changed file paths.  Raises ``ChangeSourceError`` on failure."""
        ...


class StaticChanges:
    """A fixed list of changed files."""

    def __init__(self, files: Iterable[str | Path]) -> None:
        self._files = [str(f) for f in files]

    def changed_files(self) -> list[str]:
        return list(self._files)

    def __repr__(self) -> str:
        return f"StaticChanges({self._files!r})"


# ---------------------------------------------------------------------------
# Mapping
# ---------------------------------------------------------------------------


def parent_project(workspace: Workspace, path: str | Path) -> Project | None:
    """Return the project owning ``path``, or ``None`` if no project does.

    Relative paths are resolved against the workspace root.  Paths are only
    normalised, never looked up on disk.
    """
    target = Path(os.path.normpath(workspace.path / path))

    owner: Project | None = None
    for project in workspace.projects.values():
        if target.is_relative_to(project.path) and (
            owner is None or len(project.path.parts) > len(owner.path.parts)
        ):
            owner = project
    return owner


def map_to_projects(changed_files: Iterable[str | Path], workspace: Workspace) -> set[str]:
    """Return the names of the projects owning at least one changed file."""
    modified: set[str] = set()
    for file in changed_files:
        project = parent_project(workspace, file)
        if project is None:
            logger.debug("Changes: {} belongs to no project", file)
            continue
        modified.add(project.name)
    return modified
