"""👀 Change Report - Which source files each output depends on.

Works from the dependency graph alone, so a build tool can ask for watch
paths without rendering or writing anything:

    catalog = build_catalog(root, config)
    graph = build_graph(catalog, config)
    for path in watch_paths(graph, config):
        print(f"cargo:rerun-if-changed={path}")
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from .config import WeldConfig
from .errors import UnknownOutputError
from .graph import DependencyGraph
from .output.writer import output_path_for

CARGO_PREFIX = "cargo:rerun-if-changed="


def watch_set(graph: DependencyGraph, query: str) -> list[str]:
    """A query plus its import closure, deduplicated and sorted."""
    return sorted({query, *graph.closure(query)})


def watch_sets(graph: DependencyGraph) -> dict[str, list[str]]:
    """Watch set for every query, keyed by query path."""
    return {query.path: watch_set(graph, query.path) for query in graph.queries}


def output_index(graph: DependencyGraph, config: WeldConfig | None = None) -> dict[Path, str]:
    """Map each absolute output path to the query that produces it."""
    config = config or WeldConfig()
    root = graph.catalog.root
    return {output_path_for(q, root, config): q.path for q in graph.queries}


def query_for_output(
    graph: DependencyGraph,
    output: Path | str,
    config: WeldConfig | None = None,
) -> str:
    """Find the query producing ``output`` (absolute, or relative to the root).

    Raises:
        UnknownOutputError: No query writes that path
    """
    output = Path(output)
    if not output.is_absolute():
        output = graph.catalog.root / output

    index = output_index(graph, config)
    query = index.get(output.resolve()) or index.get(output)
    if query is None:
        raise UnknownOutputError(str(output))
    return query


def watch_paths(
    graph: DependencyGraph,
    config: WeldConfig | None = None,
    output: Path | str | None = None,
    absolute: bool = False,
) -> list[str]:
    """Sorted source paths a build tool must watch.

    Args:
        graph: Validated dependency graph
        config: Used to map ``output`` back to its query
        output: Limit to the sources of one output file
        absolute: Return absolute paths instead of root-relative ones
    """
    if output is not None:
        paths = set(watch_set(graph, query_for_output(graph, output, config)))
    else:
        paths = {p for sources in watch_sets(graph).values() for p in sources}

    if absolute:
        root = graph.catalog.root
        return sorted(str(root / p) for p in paths)
    return sorted(paths)


def rerun_directives(paths: Iterable[str], prefix: str = CARGO_PREFIX) -> list[str]:
    """Format watch paths as build-tool directive lines."""
    return [f"{prefix}{path}" for path in paths]
