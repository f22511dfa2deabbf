"""Project data models.

``ProjectDescriptor`` is the plain value handed to the assembler by a
manifest scanner.  ``Project`` is the workspace member built from it,
decorated with graph metadata (``root``) and transient view state
(``status``, ``skip``).  Projects are frozen; the workspace replaces them
with updated copies.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from plexus.workspace.models.enums import DependencyKind, ProjectStatus

DEFAULT_MANIFEST_NAME = "pyproject.toml"


class Dependency(BaseModel):
    """A dependency declared in a project manifest."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: DependencyKind = DependencyKind.EXTERNAL
    version_or_path: str | None = Field(
        default=None, description="Version specifier for external deps, relative path for path deps"
    )


class ProjectDescriptor(BaseModel):
    """A discovered project, before it becomes a workspace member."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: Path = Field(description="Absolute project directory")
    manifest_path: Path | None = None
    dependencies: list[Dependency] = Field(default_factory=list)
    is_workspace_root: bool = False

    @property
    def manifest(self) -> Path:
        """Manifest location, defaulting to ``{path}/pyproject.toml``."""
        return self.manifest_path or self.path / DEFAULT_MANIFEST_NAME


class Project(BaseModel):
    """A workspace member."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: Path
    manifest_path: Path
    dependencies: list[Dependency] = Field(default_factory=list)

    # -- Graph metadata --------------------------------------------------------
    root: bool = False
    """True if no other workspace project depends on this one."""

    # -- Transient view state --------------------------------------------------
    status: ProjectStatus = ProjectStatus.UNAFFECTED
    skip: bool = False

    @classmethod
    def from_descriptor(cls, descriptor: ProjectDescriptor) -> Project:
        return cls(
            name=descriptor.name,
            path=descriptor.path,
            manifest_path=descriptor.manifest,
            dependencies=list(descriptor.dependencies),
        )

    @property
    def path_dependencies(self) -> list[str]:
        """Names of dependencies declared as path dependencies."""
        return [dep.name for dep in self.dependencies if dep.kind == DependencyKind.PATH]
