"""Dependency graph: directive scanning, import resolution, cycle checks."""

from .builder import DependencyGraph, build_graph, collect_edges
from .directives import scan_directives
from .models import Directive, EdgeKind, ImportEdge
from .resolver import ImportResolver, search_locations

__all__ = [
    "DependencyGraph",
    "Directive",
    "EdgeKind",
    "ImportEdge",
    "ImportResolver",
    "build_graph",
    "collect_edges",
    "scan_directives",
    "search_locations",
]
