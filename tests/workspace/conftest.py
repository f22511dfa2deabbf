"""In-memory workspaces shared by the engine tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from plexus.workspace.assembler import assemble
from plexus.workspace.context import Workspace
from plexus.workspace.models import Dependency, DependencyKind, ProjectDescriptor, WorkspaceConfig

REPO = Path("/repo")
ROOT = ProjectDescriptor(name="repo", path=REPO, is_workspace_root=True)


def descriptor(
    name: str,
    *path_deps: str,
    external: tuple[str, ...] = (),
    location: str | None = None,
    workspace_root: bool = False,
) -> ProjectDescriptor:
    """Descriptor for ``{REPO}/{location or name}``."""
    dependencies = [Dependency(name=d, kind=DependencyKind.PATH, version_or_path=f"../{d}") for d in path_deps]
    dependencies += [Dependency(name=e, kind=DependencyKind.EXTERNAL) for e in external]
    return ProjectDescriptor(
        name=name,
        path=REPO / (location or name),
        dependencies=dependencies,
        is_workspace_root=workspace_root,
    )


@pytest.fixture
def make_descriptor() -> Callable[..., ProjectDescriptor]:
    return descriptor


@pytest.fixture
def root_descriptor() -> ProjectDescriptor:
    return ROOT


@pytest.fixture
def make_workspace() -> Callable[..., Workspace]:
    """Assemble a workspace from ``{name: [path deps]}``."""

    def _make(graph: dict[str, list[str]], config: WorkspaceConfig | None = None) -> Workspace:
        return assemble(REPO, ROOT, [descriptor(name, *deps) for name, deps in graph.items()], config)

    return _make


@pytest.fixture
def sample_workspace(make_workspace: Callable[..., Workspace]) -> Workspace:
    """Eleven packages in four components::

        package_a -> package_b -> package_g
        package_a -> package_c -> package_e
                     package_c -> package_f -> package_g
        package_a -> package_d <- package_h
        package_i -> package_j
        package_k
    """
    return make_workspace({
        "package_a": ["package_b", "package_c", "package_d"],
        "package_b": ["package_g"],
        "package_c": ["package_e", "package_f"],
        "package_d": [],
        "package_e": [],
        "package_f": ["package_g"],
        "package_g": [],
        "package_h": ["package_d"],
        "package_i": ["package_j"],
        "package_j": [],
        "package_k": [],
    })


@pytest.fixture
def diamond_workspace(make_workspace: Callable[..., Workspace]) -> Workspace:
    """``zoo`` depends on ``foo`` and ``bar``, both depend on ``baz``."""
    return make_workspace({
        "zoo": ["foo", "bar"],
        "foo": ["baz"],
        "bar": ["baz"],
        "baz": [],
    })
