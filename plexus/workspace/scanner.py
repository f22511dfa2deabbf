"""Manifest scanner -- discovers projects on disk and reads their manifests.

This is the filesystem side of workspace construction; the assembler itself
only works on the plain ``ProjectDescriptor`` values produced here.

A project is a directory containing a ``pyproject.toml``.  Its declared
dependencies are read from two places::

    [project]
    name = "api"
    dependencies = ["httpx>=0.27", "core"]

    [tool.uv.sources]
    core = { path = "../core" }        # or { workspace = true }

Entries of ``[tool.uv.sources]`` with a ``path`` (or ``workspace = true``)
are path dependencies; every other requirement is external.

The workspace root manifest declares itself with::

    [tool.plexus]
    workspace = true
    ignore_paths = ["examples"]

All other keys of that table are workspace options (see
``WorkspaceConfig``), optionally overlaid by a ``.workspace.toml`` file.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from loguru import logger
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name
from pydantic import ValidationError

from plexus.workspace.assembler import (
    ConstructionError,
    InvalidConfigError,
    MissingManifestError,
    NotAWorkspaceError,
    assemble,
)
from plexus.workspace.context import Workspace
from plexus.workspace.models.config import WorkspaceConfig
from plexus.workspace.models.enums import DependencyKind
from plexus.workspace.models.project import Dependency, ProjectDescriptor
from plexus.workspace.settings import PlexusSettings, get_settings

TOOL_TABLE = "plexus"

_SKIP_DIRS = frozenset({"__pycache__", "node_modules"})


# ---------------------------------------------------------------------------
# Manifests
# ---------------------------------------------------------------------------


def read_descriptor(manifest_path: Path, data: dict[str, Any] | None = None) -> ProjectDescriptor:
    """Build a descriptor from a ``pyproject.toml``.

    Project and dependency names are normalised (PEP 503), so ``Foo_Bar`` and
    ``foo-bar`` denote the same project.
    """
    if data is None:
        data = _read_toml(manifest_path)

    project = data.get("project", {})
    tool = data.get("tool", {})
    name = canonicalize_name(project.get("name") or manifest_path.parent.name)

    dependencies: dict[str, Dependency] = {}
    for spec in project.get("dependencies", []):
        try:
            req = Requirement(spec)
        except InvalidRequirement as exc:
            msg = f"Invalid dependency {spec!r} in {manifest_path}: {exc}"
            raise ConstructionError(msg) from None
        dep_name = canonicalize_name(req.name)
        dependencies[dep_name] = Dependency(
            name=dep_name,
            kind=DependencyKind.EXTERNAL,
            version_or_path=str(req.specifier) or None,
        )

    for source_name, source in tool.get("uv", {}).get("sources", {}).items():
        if not isinstance(source, dict) or not ("path" in source or source.get("workspace")):
            continue
        dep_name = canonicalize_name(source_name)
        dependencies[dep_name] = Dependency(name=dep_name, kind=DependencyKind.PATH, version_or_path=source.get("path"))

    return ProjectDescriptor(
        name=name,
        path=manifest_path.parent,
        manifest_path=manifest_path,
        dependencies=list(dependencies.values()),
        is_workspace_root=bool(tool.get(TOOL_TABLE, {}).get("workspace", False)),
    )


def discover_descriptors(
    workspace_path: Path,
    config: WorkspaceConfig | None = None,
    *,
    manifest_name: str = "pyproject.toml",
) -> list[ProjectDescriptor]:
    """Find every project below ``workspace_path``.

    Hidden directories and ``ignore_paths`` are not descended into.  A
    directory holding a manifest is a project; its sub-directories are not
    searched for further projects.
    """
    config = config or WorkspaceConfig()
    ignored = [Path(os.path.normpath(workspace_path / p)) for p in config.ignore_paths]
    descriptors = [read_descriptor(m) for m in _find_manifests(workspace_path, manifest_name, ignored)]
    logger.debug("Scanner: found {} projects under {}", len(descriptors), workspace_path)
    return descriptors


def _find_manifests(directory: Path, manifest_name: str, ignored: list[Path]) -> Iterator[Path]:
    for child in sorted(directory.iterdir()):
        if not child.is_dir() or child.name.startswith(".") or child.name in _SKIP_DIRS:
            continue
        if any(child.is_relative_to(p) for p in ignored):
            continue
        manifest = child / manifest_name
        if manifest.is_file():
            yield manifest
        else:
            yield from _find_manifests(child, manifest_name, ignored)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


def load_config(
    workspace_path: Path,
    config_path: str | Path | None = None,
    *,
    root_data: dict[str, Any] | None = None,
    settings: PlexusSettings | None = None,
) -> WorkspaceConfig:
    """Load workspace options.

    Options come from the root manifest's ``[tool.plexus]`` table, overlaid
    by the config file.  ``config_path`` is relative to the workspace root;
    when omitted the default config file is used if it exists.

    Raises ``InvalidConfigError`` if an explicit config file is missing or if
    the options fail validation.
    """
    settings = settings or get_settings()

    options: dict[str, Any] = {}
    if root_data is not None:
        options.update(root_data.get("tool", {}).get(TOOL_TABLE, {}))
        options.pop("workspace", None)

    if config_path is not None:
        path = workspace_path / config_path
        if not path.is_file():
            msg = f"Config file {path} does not exist"
            raise InvalidConfigError(msg)
        options.update(_read_toml(path, error=InvalidConfigError))
    elif (workspace_path / settings.config_file).is_file():
        options.update(_read_toml(workspace_path / settings.config_file, error=InvalidConfigError))

    try:
        return WorkspaceConfig.model_validate(options)
    except ValidationError as exc:
        msg = f"Invalid workspace config: {exc}"
        raise InvalidConfigError(msg) from None


# ---------------------------------------------------------------------------
# Workspace
# ---------------------------------------------------------------------------


def load_workspace(
    workspace_path: str | Path = ".",
    config_path: str | Path | None = None,
    *,
    settings: PlexusSettings | None = None,
) -> Workspace:
    """Scan ``workspace_path`` and assemble its workspace.

    Raises ``MissingManifestError`` if the root manifest does not exist; see
    ``assemble`` for the other construction errors.
    """
    settings = settings or get_settings()
    workspace_path = Path(workspace_path).resolve()
    manifest_path = workspace_path / settings.manifest_name

    if not manifest_path.is_file():
        raise MissingManifestError(manifest_path)

    root_data = _read_toml(manifest_path)
    root = read_descriptor(manifest_path, root_data)
    if not root.is_workspace_root:
        raise NotAWorkspaceError(manifest_path)

    config = load_config(workspace_path, config_path, root_data=root_data, settings=settings)
    descriptors = discover_descriptors(workspace_path, config, manifest_name=settings.manifest_name)

    return assemble(workspace_path, root, descriptors, config)


def _read_toml(path: Path, error: type[ConstructionError] = ConstructionError) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Failed to parse {path}: {exc}"
        raise error(msg) from None
