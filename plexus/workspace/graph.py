"""Workspace dependency graph and its queries.

The graph is a small adjacency structure owned by a ``Workspace``:

- vertices are ``Vertex(name, kind)`` pairs, ``kind`` being ``workspace``
  for member projects and ``external`` for outside dependencies (present
  only when the graph is built with ``include_external=True``);
- edges point from a dependant to each of its dependencies.

Every member project is a vertex, even when it has no edges at all.

Queries never mutate the graph.  Only ``build_graph`` adds vertices and
edges.

Cycles are tolerated rather than rejected: every traversal keeps a visited
set, so ``affected`` and ``order`` terminate on a cyclic graph, although the
dependency-before-dependant guarantee of ``postorder`` only holds for the
acyclic part.  ``find_cycle`` reports one cycle if any exists.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Collection, Iterable, Iterator
from typing import TYPE_CHECKING, NamedTuple

from loguru import logger

from plexus.workspace.models.enums import DependencyKind, OrderMode, VertexKind

if TYPE_CHECKING:
    from plexus.workspace.models.project import Project


class Vertex(NamedTuple):
    name: str
    kind: VertexKind = VertexKind.WORKSPACE


class DependencyGraph:
    """Directed graph of project dependencies.

    Adjacency is stored in both directions so that forward (dependencies) and
    reverse (dependants) traversals are equally cheap.
    """

    def __init__(self) -> None:
        self._out: dict[Vertex, set[Vertex]] = {}
        self._in: dict[Vertex, set[Vertex]] = {}

    # -- Mutation (build time only) --------------------------------------------

    def add_vertex(self, vertex: Vertex) -> None:
        self._out.setdefault(vertex, set())
        self._in.setdefault(vertex, set())

    def add_edge(self, dependant: Vertex, dependency: Vertex) -> None:
        self.add_vertex(dependant)
        self.add_vertex(dependency)
        self._out[dependant].add(dependency)
        self._in[dependency].add(dependant)

    # -- Structure -------------------------------------------------------------

    def vertices(self, kind: VertexKind | None = None) -> list[Vertex]:
        """All vertices (optionally of a single kind), sorted."""
        return sorted(v for v in self._out if kind is None or v.kind == kind)

    def edges(self) -> list[tuple[Vertex, Vertex]]:
        """All ``(dependant, dependency)`` pairs, sorted."""
        return sorted((src, dst) for src, targets in self._out.items() for dst in targets)

    def out_neighbours(self, name: str, kind: VertexKind = VertexKind.WORKSPACE) -> list[Vertex]:
        """Direct dependencies of a vertex.  Empty if the vertex is unknown."""
        return sorted(self._out.get(Vertex(name, kind), ()))

    def in_neighbours(self, name: str, kind: VertexKind = VertexKind.WORKSPACE) -> list[Vertex]:
        """Direct dependants of a vertex.  Empty if the vertex is unknown."""
        return sorted(self._in.get(Vertex(name, kind), ()))

    def __contains__(self, item: object) -> bool:
        if isinstance(item, str):
            return Vertex(item) in self._out
        return item in self._out

    def __len__(self) -> int:
        return len(self._out)

    def __iter__(self) -> Iterator[Vertex]:
        return iter(self.vertices())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DependencyGraph):
            return NotImplemented
        return set(self._out) == set(other._out) and set(self.edges()) == set(other.edges())

    def __repr__(self) -> str:
        return f"DependencyGraph(vertices={len(self._out)}, edges={len(self.edges())})"

    # -- Queries ---------------------------------------------------------------

    def sources(self) -> set[str]:
        """Vertices nothing depends on (no incoming edge)."""
        return {v.name for v, dependants in self._in.items() if not dependants}

    def sinks(self) -> set[str]:
        """Vertices with no dependencies of their own (no outgoing edge)."""
        return {v.name for v, deps in self._out.items() if not deps}

    def affected(self, changed: Iterable[str]) -> set[str]:
        """Return ``changed`` plus every project that transitively depends on it.

        The walk follows edges backwards, from a dependency to its dependants,
        so a change never propagates towards dependencies.  Only workspace
        vertices are starting points; external vertices never count as
        changed.
        """
        changed = set(changed)
        queue = deque(Vertex(name) for name in changed if Vertex(name) in self._in)
        seen: set[Vertex] = set(queue)

        while queue:
            vertex = queue.popleft()
            for dependant in self._in[vertex]:
                if dependant not in seen:
                    seen.add(dependant)
                    queue.append(dependant)

        return changed | {v.name for v in seen}

    def order(self, mode: OrderMode = OrderMode.POSTORDER) -> list[str]:
        """Enumerate vertex names.

        ``alphabetical`` is a total order by name.  ``postorder`` lists every
        dependency before its dependants; independent sub-graphs may appear in
        any relative order.
        """
        if mode == OrderMode.ALPHABETICAL:
            return sorted(v.name for v in self._out)

        result: list[str] = []
        visited: set[Vertex] = set()

        # Iterative DFS; each stack entry holds a vertex and its remaining dependencies.
        for start in self.vertices():
            if start in visited:
                continue
            visited.add(start)
            stack = [(start, iter(sorted(self._out[start])))]
            while stack:
                vertex, deps = stack[-1]
                for dep in deps:
                    if dep not in visited:
                        visited.add(dep)
                        stack.append((dep, iter(sorted(self._out[dep]))))
                        break
                else:
                    stack.pop()
                    result.append(vertex.name)
        return result

    def find_cycle(self) -> list[str] | None:
        """Return one dependency cycle as ``[a, b, ..., a]``, or ``None``."""
        done: set[Vertex] = set()

        for start in self.vertices():
            if start in done:
                continue
            path = [start]
            on_path = {start}
            pending = [iter(sorted(self._out[start]))]
            while pending:
                for dep in pending[-1]:
                    if dep in on_path:
                        return [v.name for v in path[path.index(dep) :]] + [dep.name]
                    if dep not in done:
                        path.append(dep)
                        on_path.add(dep)
                        pending.append(iter(sorted(self._out[dep])))
                        break
                else:
                    pending.pop()
                    vertex = path.pop()
                    on_path.discard(vertex)
                    done.add(vertex)
        return None


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def build_graph(
    projects: Iterable[Project],
    *,
    include_external: bool = False,
    ignore: Collection[str] = (),
) -> DependencyGraph:
    """Build the dependency graph of the given projects.

    A ``path`` dependency naming another member project becomes an edge
    between workspace vertices.  Anything else is external and is only added
    (as an ``external`` vertex plus edge) when ``include_external`` is set.
    Edges towards ignored projects are dropped.
    """
    projects = list(projects)
    members = {project.name for project in projects}
    ignore = set(ignore)
    graph = DependencyGraph()

    for project in projects:
        if project.name not in ignore:
            graph.add_vertex(Vertex(project.name))

    for project in projects:
        if project.name in ignore:
            continue
        source = Vertex(project.name)
        for dep in project.dependencies:
            if dep.kind == DependencyKind.PATH and dep.name in members:
                if dep.name not in ignore:
                    graph.add_edge(source, Vertex(dep.name))
            elif include_external:
                graph.add_edge(source, Vertex(dep.name, VertexKind.EXTERNAL))

    logger.debug("Graph: built {!r} (include_external={})", graph, include_external)
    return graph
