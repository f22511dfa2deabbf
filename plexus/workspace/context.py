"""Workspace state.

A ``Workspace`` bundles the member projects of a repository with the
dependency graph built from them.  It is an immutable value: operations that
change anything (project set, statuses, skip flags) return a new
``Workspace``, so a caller iterating one value never observes a change.

The graph is rebuilt whenever the project set changes (``with_projects``).
``status`` and ``skip`` are transient view state recomputed by the status
and filter functions; updating them keeps the existing graph
(``with_updates``).
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from packaging.utils import canonicalize_name

from plexus.workspace.graph import DependencyGraph, build_graph
from plexus.workspace.models.config import WorkspaceConfig
from plexus.workspace.models.enums import OrderMode
from plexus.workspace.models.project import Project


class UnknownProjectError(LookupError):
    """Raised when a project name is not a workspace member."""

    def __init__(self, name: str) -> None:
        super().__init__(f"'{name}' is not a member of the workspace")
        self.name = name


@dataclass(frozen=True)
class Workspace:
    """A set of path-linked projects under one root plus their graph.

    Build one with ``plexus.workspace.assembler.assemble`` (or
    ``plexus.workspace.scanner.load_workspace`` to scan a directory).
    """

    # -- Identity --------------------------------------------------------------
    path: Path
    manifest_path: Path
    config: WorkspaceConfig = field(default_factory=WorkspaceConfig)

    # -- Members ---------------------------------------------------------------
    projects: dict[str, Project] = field(default_factory=dict)
    graph: DependencyGraph = field(default_factory=DependencyGraph, compare=False)

    @classmethod
    def create(
        cls,
        path: Path,
        manifest_path: Path,
        projects: Iterable[Project],
        config: WorkspaceConfig | None = None,
    ) -> Workspace:
        """Create a workspace, building its graph and root flags."""
        workspace = cls(path=path, manifest_path=manifest_path, config=config or WorkspaceConfig())
        return workspace.with_projects(projects)

    # -- Lookup ----------------------------------------------------------------

    def get_project(self, name: str) -> Project | None:
        """Look a project up by name; "Foo_Bar" also finds "foo-bar"."""
        if name in self.projects:
            return self.projects[name]
        wanted = canonicalize_name(name)
        return next((p for p in self.projects.values() if canonicalize_name(p.name) == wanted), None)

    def project(self, name: str) -> Project:
        """Return a member project.  Raises ``UnknownProjectError`` if missing."""
        project = self.get_project(name)
        if project is None:
            raise UnknownProjectError(name)
        return project

    def project_list(self) -> list[Project]:
        """All member projects sorted by name."""
        return [self.projects[name] for name in sorted(self.projects)]

    def root_projects(self) -> list[Project]:
        return [project for project in self.project_list() if project.root]

    def ordered(self, mode: OrderMode = OrderMode.POSTORDER) -> list[Project]:
        """Member projects in graph order (see ``DependencyGraph.order``)."""
        return [self.projects[name] for name in self.graph.order(mode) if name in self.projects]

    def relative_path(self, path: Path) -> Path:
        """``path`` relative to the workspace root, or unchanged if outside it."""
        if path.is_relative_to(self.path):
            return path.relative_to(self.path)
        return path

    def external_graph(self) -> DependencyGraph:
        """A graph that also contains external dependencies."""
        return build_graph(self.projects.values(), include_external=True)

    # -- Transformations -------------------------------------------------------

    def with_projects(self, projects: Iterable[Project] | Mapping[str, Project]) -> Workspace:
        """Replace the project set, rebuilding the graph and ``root`` flags."""
        if isinstance(projects, Mapping):
            projects = projects.values()
        projects = list(projects)

        graph = build_graph(projects)
        roots = graph.sources()
        members = {
            project.name: project.model_copy(update={"root": project.name in roots}) for project in projects
        }
        return dataclasses.replace(self, projects=members, graph=graph)

    def with_updates(self, updates: Mapping[str, Mapping[str, Any]]) -> Workspace:
        """Copy the named projects with updated fields, keeping the graph.

        Meant for transient fields (``status``, ``skip``).  Raises
        ``UnknownProjectError`` for names that are not members.
        """
        projects = dict(self.projects)
        for name, changes in updates.items():
            project = self.project(name)
            projects[project.name] = project.model_copy(update=dict(changes))
        return dataclasses.replace(self, projects=projects)
