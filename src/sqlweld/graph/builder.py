"""🕸️ Dependency Graph - Import edges, cycle check and import closures.

The graph is built once per run, before anything renders:
1. Scan every cataloged file for include/import directives
2. Resolve each reference to exactly one partial or macro module
3. Fail with every resolution problem at once, if there are any
4. Check the part of the graph reachable from queries for cycles
5. Compute each query's import closure, memoised bottom-up

After build_graph() returns the graph is read-only and safe to share
between render threads.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..catalog import Catalog, SourceFile
from ..config import WeldConfig
from ..errors import (
    AmbiguousImportError,
    ImportCycleError,
    ResolutionError,
    ResolutionFailedError,
    UnresolvedImportError,
)
from .directives import scan_directives
from .models import ImportEdge
from .resolver import ImportResolver

logger = logging.getLogger(__name__)


class DependencyGraph:
    """Import graph over a catalog.

    Example:
        graph = build_graph(catalog, config)
        graph.closure("queries/get.sql.tmpl")
        # frozenset({'partials/perm_check.partial.tmpl'})
    """

    def __init__(
        self,
        catalog: Catalog,
        edges: Iterable[ImportEdge],
        resolutions: dict[tuple[str, str], str] | None = None,
    ):
        self.catalog = catalog
        self.edges = frozenset(edges)
        self.resolutions = dict(resolutions or {})

        for edge in self.edges:
            for endpoint in (edge.source, edge.target):
                if endpoint not in catalog:
                    raise UnresolvedImportError(edge.source, endpoint)

        imports: dict[str, set[str]] = {}
        for edge in self.edges:
            imports.setdefault(edge.source, set()).add(edge.target)
        self._imports = {path: tuple(sorted(targets)) for path, targets in imports.items()}
        self._closures: dict[str, frozenset[str]] = {}

    def __contains__(self, path: object) -> bool:
        return path in self.catalog

    @property
    def queries(self) -> list[SourceFile]:
        return self.catalog.queries()

    def imports_of(self, path: str) -> tuple[str, ...]:
        """Direct import targets of ``path``, sorted."""
        return self._imports.get(path, ())

    def resolve(self, importer: str, name: str) -> str | None:
        """Look up a reference in the static resolution table."""
        return self.resolutions.get((importer, name))

    def find_cycle(self) -> list[str] | None:
        """Depth-first search from every query for a back-edge.

        Returns:
            The cycle with its first node repeated at the end, or None
        """
        done: set[str] = set()
        active: list[str] = []
        on_path: set[str] = set()

        def visit(node: str) -> list[str] | None:
            active.append(node)
            on_path.add(node)
            for target in self.imports_of(node):
                if target in on_path:
                    start = active.index(target)
                    return active[start:] + [target]
                if target not in done:
                    cycle = visit(target)
                    if cycle:
                        return cycle
            active.pop()
            on_path.discard(node)
            done.add(node)
            return None

        for query in self.queries:
            if query.path not in done:
                cycle = visit(query.path)
                if cycle:
                    return cycle
        return None

    def check_cycles(self) -> None:
        """Raise ImportCycleError if any query reaches a cycle."""
        cycle = self.find_cycle()
        if cycle:
            raise ImportCycleError(cycle)

    def closure(self, path: str) -> frozenset[str]:
        """Every partial and macro module ``path`` needs, transitively.

        Each node's closure is computed once and reused by all importers.
        Only valid for nodes whose reachable subgraph is acyclic, which
        check_cycles() guarantees for queries and their imports.
        """
        cached = self._closures.get(path)
        if cached is not None:
            return cached

        result: set[str] = set()
        for target in self.imports_of(path):
            result.add(target)
            result.update(self.closure(target))

        closure = frozenset(result)
        self._closures[path] = closure
        return closure

    def dependencies(self, path: str) -> list[str]:
        """The rerun-if-changed list for one query: itself, then its closure."""
        return [path] + sorted(self.closure(path))


def collect_edges(
    catalog: Catalog,
    resolver: ImportResolver,
) -> tuple[set[ImportEdge], dict[tuple[str, str], str], list[ResolutionError]]:
    """Scan and resolve every directive in the catalog.

    Resolution failures are collected, not raised, so the caller can
    report every offending file at once.
    """
    edges: set[ImportEdge] = set()
    resolutions: dict[tuple[str, str], str] = {}
    failures: list[ResolutionError] = []

    for source in catalog:
        for directive in scan_directives(source.content, source.path):
            try:
                target = resolver.resolve(source, directive.name)
            except UnresolvedImportError as e:
                if directive.optional:
                    logger.debug("%s: optional include '%s' not found", source.path, directive.name)
                    continue
                failures.append(e)
                continue
            except AmbiguousImportError as e:
                failures.append(e)
                continue

            edges.add(ImportEdge(source.path, target, directive.kind))
            resolutions[(source.path, directive.name)] = target

    return edges, resolutions, failures


def build_graph(catalog: Catalog, config: WeldConfig | None = None) -> DependencyGraph:
    """Build and validate the import graph for a catalog.

    Raises:
        ResolutionFailedError: One or more references did not resolve to
            exactly one file (every failure is listed)
        ImportCycleError: A query reaches an import cycle
    """
    config = config or WeldConfig()
    resolver = ImportResolver(catalog, partials_dir=config.partials_dir)

    edges, resolutions, failures = collect_edges(catalog, resolver)
    if failures:
        raise ResolutionFailedError(failures)

    graph = DependencyGraph(catalog, edges, resolutions)
    graph.check_cycles()

    # Freeze every query closure now so render threads only read
    for query in graph.queries:
        graph.closure(query.path)

    logger.info(
        "Built import graph: %d edges, %d queries",
        len(graph.edges),
        len(graph.queries),
    )
    return graph
