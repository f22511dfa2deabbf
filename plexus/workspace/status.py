"""Project statuses and workspace filtering.

Both operations return a new ``Workspace``; the input is left untouched and
no project is ever removed.  Change information is pulled from the given
``ChangeSource`` on every call.

Filtering precedence (first matching rule wins):

1. project in ``ignore``                          -> skipped
2. ``select`` non-empty and project not in it     -> skipped
3. ``only_roots`` and project is not a root       -> skipped
4. ``affected`` and project not affected          -> skipped
5. ``modified`` and project not modified          -> skipped
6. otherwise                                      -> not skipped

Project names in ``ignore`` and ``select`` are compared in their PEP 503
normalised form, like the names read from manifests.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import TYPE_CHECKING

from loguru import logger
from packaging.utils import canonicalize_name
from pydantic import BaseModel, Field, field_validator

from plexus.workspace.changes import ChangeSource, map_to_projects
from plexus.workspace.models.enums import ProjectStatus

if TYPE_CHECKING:
    from plexus.workspace.context import Workspace
    from plexus.workspace.models.project import Project


class FilterOptions(BaseModel):
    """Which projects a task should run on."""

    ignore: list[str] = Field(default_factory=list, description="Always skipped, highest priority")
    select: list[str] = Field(default_factory=list, description="If non-empty, only these are considered")
    affected: bool = False
    modified: bool = False
    only_roots: bool = False

    @field_validator("ignore", "select")
    @classmethod
    def _canonical_names(cls, names: list[str]) -> list[str]:
        return [canonicalize_name(name) for name in names]


# ---------------------------------------------------------------------------
# Change sets
# ---------------------------------------------------------------------------


def modified_projects(workspace: Workspace, changes: ChangeSource) -> set[str]:
    """Projects owning at least one changed file."""
    return map_to_projects(changes.changed_files(), workspace)


def affected_projects(workspace: Workspace, changes: ChangeSource) -> set[str]:
    """Modified projects plus everything that transitively depends on them."""
    return workspace.graph.affected(modified_projects(workspace, changes))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def update_statuses(workspace: Workspace, changes: ChangeSource) -> Workspace:
    """Return a workspace with every project's ``status`` recomputed.

    Affected projects are marked first and modified ones afterwards, so a
    project that is both ends up ``modified``.
    """
    modified = modified_projects(workspace, changes)
    affected = workspace.graph.affected(modified)

    statuses = dict.fromkeys(workspace.projects, ProjectStatus.UNAFFECTED)
    for name in affected:
        if name in statuses:
            statuses[name] = ProjectStatus.AFFECTED
    for name in modified:
        statuses[name] = ProjectStatus.MODIFIED

    logger.debug("Status: {} modified, {} affected", len(modified), len(affected))
    return workspace.with_updates({name: {"status": status} for name, status in statuses.items()})


def filter_workspace(
    workspace: Workspace,
    options: FilterOptions | None = None,
    changes: ChangeSource | None = None,
) -> Workspace:
    """Return a workspace with every project's ``skip`` flag recomputed.

    Raises ``ValueError`` if ``affected`` or ``modified`` filtering is
    requested without a change source.
    """
    options = options or FilterOptions()

    affected: set[str] | None = None
    modified: set[str] | None = None
    if options.affected or options.modified:
        if changes is None:
            msg = "affected/modified filtering requires a change source"
            raise ValueError(msg)
        modified = modified_projects(workspace, changes)
        if options.affected:
            affected = workspace.graph.affected(modified)
        if not options.modified:
            modified = None

    updates = {
        name: {"skip": skippable(project, options, affected=affected, modified=modified)}
        for name, project in workspace.projects.items()
    }
    skipped = sum(1 for u in updates.values() if u["skip"])
    logger.debug("Filter: {} of {} projects skipped", skipped, len(updates))
    return workspace.with_updates(updates)


def skippable(
    project: Project,
    options: FilterOptions,
    *,
    affected: Collection[str] | None = None,
    modified: Collection[str] | None = None,
) -> bool:
    """Decide whether ``project`` is skipped (see module docstring).

    ``affected`` / ``modified`` are only consulted when the corresponding
    option is set.
    """
    name = canonicalize_name(project.name)
    if name in options.ignore:
        return True
    if options.select and name not in options.select:
        return True
    if options.only_roots and not project.root:
        return True
    if options.affected and project.name not in (affected or ()):
        return True
    return bool(options.modified and project.name not in (modified or ()))
