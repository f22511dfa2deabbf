"""Unit tests for workspace assembly and its invariants."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from loguru import logger

from plexus.workspace.assembler import (
    ConstructionError,
    DuplicateProjectNameError,
    MissingManifestError,
    NestedWorkspaceError,
    NotAWorkspaceError,
    assemble,
)
from plexus.workspace.models import ProjectDescriptor, ProjectStatus, WorkspaceConfig

REPO = Path("/repo")


def test_assemble_basic(
    make_descriptor: Callable[..., ProjectDescriptor],
    root_descriptor: ProjectDescriptor,
) -> None:
    descriptors = [
        make_descriptor("app", "lib", location="apps/app"),
        make_descriptor("lib", location="libs/lib"),
        make_descriptor("solo", location="libs/solo"),
    ]

    workspace = assemble(REPO, root_descriptor, descriptors)

    assert sorted(workspace.projects) == ["app", "lib", "solo"]
    assert workspace.path == REPO
    assert workspace.manifest_path == REPO / "pyproject.toml"
    assert workspace.config == WorkspaceConfig()

    app = workspace.project("app")
    assert app.path == REPO / "apps" / "app"
    assert app.manifest_path == REPO / "apps" / "app" / "pyproject.toml"
    assert app.path_dependencies == ["lib"]
    assert app.status == ProjectStatus.UNAFFECTED
    assert app.skip is False


def test_root_flags_follow_graph_sources(diamond_workspace) -> None:
    roots = {name for name, project in diamond_workspace.projects.items() if project.root}

    assert roots == {"zoo"}
    assert roots == diamond_workspace.graph.sources()


def test_descriptors_are_not_modified(
    make_descriptor: Callable[..., ProjectDescriptor],
    root_descriptor: ProjectDescriptor,
) -> None:
    descriptors = [make_descriptor("a", "b"), make_descriptor("b")]
    snapshot = [d.model_copy(deep=True) for d in descriptors]

    assemble(REPO, root_descriptor, descriptors, WorkspaceConfig(ignore_projects=["b"]))

    assert descriptors == snapshot


# ---------------------------------------------------------------------------
# Ignore filters
# ---------------------------------------------------------------------------


def test_ignore_projects(
    make_descriptor: Callable[..., ProjectDescriptor],
    root_descriptor: ProjectDescriptor,
) -> None:
    descriptors = [make_descriptor("a", "b"), make_descriptor("b"), make_descriptor("c")]

    workspace = assemble(REPO, root_descriptor, descriptors, WorkspaceConfig(ignore_projects=["b", "c"]))

    assert list(workspace.projects) == ["a"]
    # The dependency on an ignored project no longer produces an edge.
    assert workspace.graph.edges() == []
    assert workspace.project("a").root is True


def test_ignore_paths_match_whole_components(
    make_descriptor: Callable[..., ProjectDescriptor],
    root_descriptor: ProjectDescriptor,
) -> None:
    descriptors = [
        make_descriptor("foo", location="packages/foo"),
        make_descriptor("foo-nested", location="packages/foo/plugins/nested"),
        make_descriptor("foobar", location="packages/foobar"),
        make_descriptor("other", location="other/x"),
    ]

    workspace = assemble(REPO, root_descriptor, descriptors, WorkspaceConfig(ignore_paths=["packages/foo", "other"]))

    assert sorted(workspace.projects) == ["foobar"]


# ---------------------------------------------------------------------------
# Construction errors
# ---------------------------------------------------------------------------


def test_duplicate_names_list_every_manifest(
    make_descriptor: Callable[..., ProjectDescriptor],
    root_descriptor: ProjectDescriptor,
) -> None:
    descriptors = [
        make_descriptor("foo", location="packages/foo"),
        make_descriptor("foo", location="tools/foo"),
        make_descriptor("bar", location="packages/bar"),
        make_descriptor("bar", location="legacy/bar"),
        make_descriptor("baz"),
    ]

    with pytest.raises(DuplicateProjectNameError) as exc_info:
        assemble(REPO, root_descriptor, descriptors)

    message = str(exc_info.value)
    assert "packages/foo/pyproject.toml, tools/foo/pyproject.toml" in message
    assert "legacy/bar/pyproject.toml, packages/bar/pyproject.toml" in message
    assert exc_info.value.duplicates == {
        "foo": ["packages/foo/pyproject.toml", "tools/foo/pyproject.toml"],
        "bar": ["legacy/bar/pyproject.toml", "packages/bar/pyproject.toml"],
    }


def test_duplicate_names_resolved_by_ignore(
    make_descriptor: Callable[..., ProjectDescriptor],
    root_descriptor: ProjectDescriptor,
) -> None:
    descriptors = [
        make_descriptor("foo", location="packages/foo"),
        make_descriptor("foo", location="tools/foo"),
    ]

    workspace = assemble(REPO, root_descriptor, descriptors, WorkspaceConfig(ignore_paths=["tools"]))

    assert workspace.project("foo").path == REPO / "packages" / "foo"


def test_nested_workspace(
    make_descriptor: Callable[..., ProjectDescriptor],
    root_descriptor: ProjectDescriptor,
) -> None:
    descriptors = [make_descriptor("a"), make_descriptor("inner", location="vendor/inner", workspace_root=True)]

    with pytest.raises(NestedWorkspaceError, match="vendor/inner/pyproject.toml"):
        assemble(REPO, root_descriptor, descriptors)


def test_nested_workspace_ignored_by_path(
    make_descriptor: Callable[..., ProjectDescriptor],
    root_descriptor: ProjectDescriptor,
) -> None:
    descriptors = [make_descriptor("a"), make_descriptor("inner", location="vendor/inner", workspace_root=True)]

    workspace = assemble(REPO, root_descriptor, descriptors, WorkspaceConfig(ignore_paths=["vendor"]))

    assert list(workspace.projects) == ["a"]


def test_missing_root_manifest(make_descriptor: Callable[..., ProjectDescriptor]) -> None:
    with pytest.raises(MissingManifestError, match="/repo"):
        assemble(REPO, None, [make_descriptor("a")])


def test_root_is_not_a_workspace(make_descriptor: Callable[..., ProjectDescriptor]) -> None:
    root = ProjectDescriptor(name="repo", path=REPO)

    with pytest.raises(NotAWorkspaceError) as exc_info:
        assemble(REPO, root, [make_descriptor("a")])

    message = str(exc_info.value)
    assert "/repo/pyproject.toml" in message
    assert "workspace = true" in message


@pytest.mark.parametrize(
    "error",
    [DuplicateProjectNameError, NestedWorkspaceError, NotAWorkspaceError, MissingManifestError],
)
def test_construction_errors_share_a_base(error: type[Exception]) -> None:
    assert issubclass(error, ConstructionError)
    assert issubclass(error, ValueError)


def test_cycle_is_logged_not_rejected(
    make_descriptor: Callable[..., ProjectDescriptor],
    root_descriptor: ProjectDescriptor,
) -> None:
    messages: list[str] = []
    logger.add(messages.append, level="WARNING", format="{message}")

    workspace = assemble(REPO, root_descriptor, [make_descriptor("a", "b"), make_descriptor("b", "a")])

    assert sorted(workspace.projects) == ["a", "b"]
    assert any("dependency cycle detected: a -> b -> a" in m for m in messages)
