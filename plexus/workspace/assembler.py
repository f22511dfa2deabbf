"""Workspace assembly -- turns discovered project descriptors into a validated
``Workspace``.

Steps:

1. Ensure the root manifest exists and declares itself a workspace.
2. Drop descriptors matched by ``ignore_projects`` (by name) or
   ``ignore_paths`` (by path prefix, relative to the workspace root).
3. Reject nested workspaces and duplicate project names.
4. Build the dependency graph and derive each project's ``root`` flag.

Any failure raises a ``ConstructionError``; no partial workspace is returned.
Input descriptors are never modified.
"""

from __future__ import annotations

import os
from collections import defaultdict
from collections.abc import Iterable
from pathlib import Path

from loguru import logger
from packaging.utils import canonicalize_name

from plexus.workspace.context import Workspace
from plexus.workspace.models.config import WorkspaceConfig
from plexus.workspace.models.project import Project, ProjectDescriptor

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConstructionError(ValueError):
    """A workspace could not be assembled."""


class MissingManifestError(ConstructionError):
    """No manifest found at the workspace root."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"No workspace manifest found at {path}")
        self.path = path


class NotAWorkspaceError(ConstructionError):
    """The root manifest does not declare itself a workspace."""

    def __init__(self, manifest_path: Path) -> None:
        super().__init__(
            f"Expected {manifest_path} to be a workspace project, but it does not set the workspace flag.\n\n"
            "In order to define a project as workspace, add the following to its manifest:\n\n"
            "    [tool.plexus]\n"
            "    workspace = true"
        )
        self.manifest_path = manifest_path


class NestedWorkspaceError(ConstructionError):
    """A workspace member is itself marked as a workspace root."""

    def __init__(self, manifests: list[str]) -> None:
        super().__init__(f"Nested workspaces are not supported, found: {', '.join(manifests)}")
        self.manifests = manifests


class DuplicateProjectNameError(ConstructionError):
    """Two or more members share a name."""

    def __init__(self, duplicates: dict[str, list[str]]) -> None:
        details = "\n".join(f"  {name}: {', '.join(paths)}" for name, paths in sorted(duplicates.items()))
        super().__init__(f"Duplicate project names detected, every project name must be unique:\n{details}")
        self.duplicates = duplicates


class InvalidConfigError(ConstructionError):
    """The workspace config is missing, unreadable or invalid."""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def assemble(
    workspace_path: Path,
    root: ProjectDescriptor | None,
    descriptors: Iterable[ProjectDescriptor],
    config: WorkspaceConfig | None = None,
) -> Workspace:
    """Assemble a workspace from its root descriptor and member descriptors.

    Parameters
    ----------
    workspace_path:
        Absolute path of the workspace root directory.
    root:
        Descriptor of the root manifest, ``None`` if there is none.
    descriptors:
        Candidate member projects, as delivered by a manifest scanner.
    config:
        Workspace options; defaults to an empty ``WorkspaceConfig``.

    Raises
    ------
    MissingManifestError:
        ``root`` is ``None``.
    NotAWorkspaceError:
        The root manifest does not declare ``workspace = true``.
    NestedWorkspaceError:
        A member descriptor is itself a workspace root.
    DuplicateProjectNameError:
        Two or more members share a name.
    """
    config = config or WorkspaceConfig()
    workspace_path = Path(os.path.normpath(workspace_path))

    if root is None:
        raise MissingManifestError(workspace_path)
    if not root.is_workspace_root:
        raise NotAWorkspaceError(root.manifest)

    members = _apply_ignores(workspace_path, list(descriptors), config)
    _ensure_not_nested(workspace_path, members)
    _ensure_unique_names(workspace_path, members)

    workspace = Workspace.create(
        path=workspace_path,
        manifest_path=root.manifest,
        projects=[Project.from_descriptor(d) for d in members],
        config=config,
    )

    cycle = workspace.graph.find_cycle()
    if cycle is not None:
        logger.warning("Workspace: dependency cycle detected: {}", " -> ".join(cycle))

    logger.info(
        "Workspace: assembled {} projects at {} ({} roots)",
        len(workspace.projects),
        workspace_path,
        len(workspace.graph.sources()),
    )
    return workspace


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _apply_ignores(
    workspace_path: Path,
    descriptors: list[ProjectDescriptor],
    config: WorkspaceConfig,
) -> list[ProjectDescriptor]:
    ignored_names = set(config.ignore_projects)
    ignored_paths = [Path(os.path.normpath(workspace_path / p)) for p in config.ignore_paths]

    members = []
    for descriptor in descriptors:
        if canonicalize_name(descriptor.name) in ignored_names:
            logger.debug("Workspace: ignoring project {} (ignore_projects)", descriptor.name)
            continue
        if any(descriptor.path.is_relative_to(p) for p in ignored_paths):
            logger.debug("Workspace: ignoring project {} at {} (ignore_paths)", descriptor.name, descriptor.path)
            continue
        members.append(descriptor)
    return members


def _ensure_not_nested(workspace_path: Path, descriptors: list[ProjectDescriptor]) -> None:
    nested = [_display(workspace_path, d.manifest) for d in descriptors if d.is_workspace_root]
    if nested:
        raise NestedWorkspaceError(nested)


def _ensure_unique_names(workspace_path: Path, descriptors: list[ProjectDescriptor]) -> None:
    by_name: dict[str, list[str]] = defaultdict(list)
    for descriptor in descriptors:
        by_name[descriptor.name].append(_display(workspace_path, descriptor.manifest))

    duplicates = {name: sorted(paths) for name, paths in by_name.items() if len(paths) > 1}
    if duplicates:
        raise DuplicateProjectNameError(duplicates)


def _display(workspace_path: Path, path: Path) -> str:
    """Render ``path`` relative to the workspace root when it lies inside it."""
    if path.is_relative_to(workspace_path):
        return path.relative_to(workspace_path).as_posix()
    return str(path)
