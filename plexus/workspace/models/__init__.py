"""Data models for the workspace engine."""

from plexus.workspace.models.config import WorkspaceConfig
from plexus.workspace.models.enums import (
    DependencyKind,
    GraphFormat,
    OrderMode,
    ProjectStatus,
    VertexKind,
)
from plexus.workspace.models.project import (
    DEFAULT_MANIFEST_NAME,
    Dependency,
    Project,
    ProjectDescriptor,
)

__all__ = [
    "DEFAULT_MANIFEST_NAME",
    # Project
    "Dependency",
    # Enums
    "DependencyKind",
    "GraphFormat",
    "OrderMode",
    "Project",
    "ProjectDescriptor",
    "ProjectStatus",
    "VertexKind",
    # Config
    "WorkspaceConfig",
]
