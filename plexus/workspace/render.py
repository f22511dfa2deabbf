"""Text renderings of the workspace graph.

``print_tree`` draws one tree per source vertex::

    package_a
    ├── package_b
    │   └── package_g
    └── package_c

``mermaid`` emits a ``flowchart TD`` definition, optionally colouring
modified and affected projects.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from plexus.workspace.graph import Vertex
from plexus.workspace.models.enums import ProjectStatus, VertexKind

if TYPE_CHECKING:
    from plexus.workspace.context import Workspace
    from plexus.workspace.graph import DependencyGraph
    from plexus.workspace.models.project import Project

STATUS_MARKERS = {
    ProjectStatus.MODIFIED: "✚",
    ProjectStatus.AFFECTED: "●",
    ProjectStatus.UNAFFECTED: "✔",
}

STATUS_CLASS_DEFS = {
    ProjectStatus.AFFECTED: "fill:#FA6,color:#FFF",
    ProjectStatus.MODIFIED: "fill:#F33,color:#FFF",
}


def status_label(project: Project) -> str:
    """Project name followed by its status marker."""
    return f"{project.name} {STATUS_MARKERS[project.status]}"


def print_tree(graph: DependencyGraph) -> str:
    """Render the graph as a forest rooted at its source vertices.

    A vertex already on the current branch is printed but not expanded again,
    so cyclic graphs terminate.  Vertices unreachable from any source (a cycle
    nothing else depends on) are not drawn.
    """
    lines: list[str] = []

    sources = graph.sources()
    for vertex in graph.vertices():
        if vertex.name not in sources:
            continue
        lines.append(_label(vertex))
        stack = _children(graph, vertex, "", frozenset({vertex}))
        while stack:
            child, prefix, last, branch = stack.pop()
            lines.append(f"{prefix}{'└── ' if last else '├── '}{_label(child)}")
            if child not in branch:
                stack.extend(_children(graph, child, prefix + ("    " if last else "│   "), branch | {child}))

    return "\n".join(lines)


def _children(
    graph: DependencyGraph, vertex: Vertex, prefix: str, branch: frozenset[Vertex]
) -> list[tuple[Vertex, str, bool, frozenset[Vertex]]]:
    """Pending tree entries for the dependencies of ``vertex``, last one first."""
    children = sorted(graph.out_neighbours(vertex.name, vertex.kind))
    last = len(children) - 1
    return [(child, prefix, index == last, branch) for index, child in reversed(list(enumerate(children)))]


def mermaid(workspace: Workspace, *, show_status: bool = False, graph: DependencyGraph | None = None) -> str:
    """Render the workspace graph as a mermaid flowchart.

    ``graph`` defaults to the workspace graph; pass
    ``workspace.external_graph()`` to include external dependencies.
    """
    graph = graph or workspace.graph

    lines = ["flowchart TD"]
    lines.extend(f"  {vertex.name}" for vertex in graph.vertices())
    lines.append("")
    lines.extend(f"  {src.name} --> {dst.name}" for src, dst in graph.edges())

    if show_status:
        classes = [
            f"  class {project.name} {project.status};"
            for project in workspace.project_list()
            if project.status in STATUS_CLASS_DEFS
        ]
        if classes:
            lines.append("")
            lines.extend(classes)
        lines.append("")
        lines.extend(f"  classDef {status} {style};" for status, style in STATUS_CLASS_DEFS.items())

    return "\n".join(lines)


def _label(vertex: Vertex) -> str:
    if vertex.kind == VertexKind.EXTERNAL:
        return f"{vertex.name} (external)"
    return vertex.name
