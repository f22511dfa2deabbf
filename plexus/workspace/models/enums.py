"""Shared enumerations used across the workspace engine."""

from __future__ import annotations

from enum import StrEnum

# -- Dependencies ------------------------------------------------------------


class DependencyKind(StrEnum):
    """How a declared dependency is resolved."""

    PATH = "path"
    EXTERNAL = "external"


class VertexKind(StrEnum):
    WORKSPACE = "workspace"
    EXTERNAL = "external"


# -- Project -----------------------------------------------------------------


class ProjectStatus(StrEnum):
    """Change status of a project relative to a change set."""

    UNAFFECTED = "unaffected"
    MODIFIED = "modified"
    AFFECTED = "affected"


# -- Graph -------------------------------------------------------------------


class OrderMode(StrEnum):
    ALPHABETICAL = "alphabetical"
    POSTORDER = "postorder"


class GraphFormat(StrEnum):
    PRETTY = "pretty"
    MERMAID = "mermaid"
