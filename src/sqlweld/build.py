"""🔧 Build - Run the whole template pipeline for one tree.

Phases run strictly in order:
1. Catalog the tree
2. Build the import graph (resolution + cycle check)
3. Render every query in parallel
4. Write outputs
5. Assemble the report

Phases 1 and 2 raise on failure, before anything renders or is written.
Render and write failures are per-file and end up in the BuildReport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .catalog import build_catalog
from .config import WeldConfig, load_config
from .errors import RenderError, SqlweldError, WriteError
from .graph import DependencyGraph, build_graph
from .output import OutputWriter, WriteSummary
from .render import RenderResult, RenderScheduler
from .report import watch_sets

logger = logging.getLogger(__name__)


@dataclass
class BuildReport:
    """Result of one build run."""

    root: Path
    results: list[RenderResult] = field(default_factory=list)
    render_errors: list[RenderError] = field(default_factory=list)
    writes: WriteSummary = field(default_factory=WriteSummary)
    watch: dict[str, list[str]] = field(default_factory=dict)

    @property
    def write_errors(self) -> list[WriteError]:
        return self.writes.errors

    @property
    def errors(self) -> list[SqlweldError]:
        """All per-file failures, render errors first."""
        return [*self.render_errors, *self.write_errors]

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def succeeded(self) -> list[Path]:
        """Outputs that rendered and are on disk with current content."""
        failed = {Path(e.path) for e in self.write_errors}
        return [r.output_path for r in self.results if r.output_path not in failed]

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "root": str(self.root),
            "ok": self.ok,
            "outputs": [
                {
                    "source": r.source,
                    "output": str(r.output_path),
                    "dependencies": list(r.dependencies),
                }
                for r in self.results
            ],
            "created": [str(p) for p in self.writes.files_created],
            "updated": [str(p) for p in self.writes.files_updated],
            "unchanged": [str(p) for p in self.writes.files_unchanged],
            "errors": [
                {"path": e.path, "kind": type(e).__name__, "message": str(e)}
                for e in self.errors
            ],
        }


def load_graph(root: Path | str, config: WeldConfig | None = None) -> DependencyGraph:
    """Catalog a tree and build its validated import graph (phases 1-2)."""
    config = config or load_config(root)
    catalog = build_catalog(root, config)
    return build_graph(catalog, config)


def build(root: Path | str, config: WeldConfig | None = None) -> BuildReport:
    """Render every query template under ``root`` to SQL.

    Args:
        root: Template root directory
        config: Settings (default: sqlweld.yaml at root, or defaults)

    Returns:
        BuildReport with outputs, watch sets and per-file failures

    Raises:
        CatalogError: The tree could not be read
        ResolutionFailedError: Imports did not resolve
        ImportCycleError: A query reaches an import cycle
        OutputConflictError: Two queries would write the same file
    """
    config = config or load_config(root)
    graph = load_graph(root, config)

    report = BuildReport(root=graph.catalog.root, watch=watch_sets(graph))
    if not graph.queries:
        logger.info("No templates found under %s", report.root)
        return report

    outcome = RenderScheduler(graph, config).run()
    report.results = outcome.results
    report.render_errors = outcome.errors

    report.writes = OutputWriter(config).write_all(outcome.results)

    logger.info(
        "Built %d/%d queries (%d written, %d unchanged, %d errors)",
        len(report.succeeded),
        len(graph.queries),
        len(report.writes.written),
        len(report.writes.files_unchanged),
        len(report.errors),
    )
    return report
