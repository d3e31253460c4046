"""🔩 sqlweld - Create SQL files from templates and partials.

Quick Start:
    from sqlweld import build

    report = build("db/queries")
    for result in report.results:
        print(result.output_path, result.dependencies)

Layout convention (defaults):
    get.sql.tmpl              -> get.sql
    perm_check.partial.tmpl   -> imported, never rendered on its own
    helpers.macros.tmpl       -> macro module, never rendered on its own

Templates are Jinja2:
    {% from "perm_check" import perm_check -%}
    SELECT * FROM objects WHERE {{ perm_check('objects') }}
"""

from sqlweld.build import BuildReport, build, load_graph
from sqlweld.catalog import Catalog, FileKind, SourceFile, build_catalog
from sqlweld.config import WeldConfig, load_config
from sqlweld.graph import DependencyGraph, ImportEdge, build_graph
from sqlweld.report import watch_paths, watch_set, watch_sets

__version__ = "0.2.0"

__all__ = [
    # Pipeline
    "build",
    "load_graph",
    "BuildReport",
    # Catalog
    "build_catalog",
    "Catalog",
    "FileKind",
    "SourceFile",
    # Graph
    "build_graph",
    "DependencyGraph",
    "ImportEdge",
    # Config
    "WeldConfig",
    "load_config",
    # Change report
    "watch_paths",
    "watch_set",
    "watch_sets",
    "__version__",
]
