"""⚡ Render Scheduler - Fan query renders out over a worker pool.

Every query becomes one RenderTask. Tasks only read the finished graph and
the immutable catalog, so they run concurrently with no locking and never
wait on each other. Failures are collected rather than raised: every task
runs, and the outcome lists all results and all errors sorted by query path.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from jinja2 import TemplateSyntaxError

from ..catalog import SourceFile
from ..config import WeldConfig
from ..errors import OutputConflictError, RenderError
from ..graph import DependencyGraph
from ..output.writer import output_path_for
from .engine import TemplateEngine

logger = logging.getLogger(__name__)


class TaskStatus(str, Enum):
    """Lifecycle of a render task."""

    PENDING = "pending"
    RENDERING = "rendering"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RenderTask:
    """One query to render, with its import closure frozen at creation."""

    source: SourceFile
    output_path: Path
    closure: frozenset[str]
    status: TaskStatus = TaskStatus.PENDING

    @property
    def path(self) -> str:
        return self.source.path

    @property
    def dependencies(self) -> list[str]:
        """Self first, then every import in path order."""
        return [self.source.path] + sorted(self.closure)


@dataclass(frozen=True)
class RenderResult:
    """Rendered text for one query and the files it was built from."""

    source: str
    output_path: Path
    text: str
    dependencies: tuple[str, ...]


@dataclass
class ScheduleOutcome:
    """Everything one scheduler run produced, ordered by query path."""

    tasks: list[RenderTask] = field(default_factory=list)
    results: list[RenderResult] = field(default_factory=list)
    errors: list[RenderError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0


def describe_error(error: Exception) -> str:
    """One-line engine diagnostic for a failed render."""
    if isinstance(error, TemplateSyntaxError):
        where = f"{error.name}:{error.lineno}" if error.name else f"line {error.lineno}"
        return f"{type(error).__name__}: {error.message} ({where})"
    return f"{type(error).__name__}: {error}"


class RenderScheduler:
    """Render every query in a graph on a bounded thread pool.

    Example:
        scheduler = RenderScheduler(graph, config)
        outcome = scheduler.run()
        for error in outcome.errors:
            print(error.path, error.diagnostic)
    """

    def __init__(
        self,
        graph: DependencyGraph,
        config: WeldConfig | None = None,
        engine: TemplateEngine | None = None,
    ):
        self.graph = graph
        self.config = config or WeldConfig()
        self.engine = engine or TemplateEngine(graph, context=self.config.context)

    def create_tasks(self) -> list[RenderTask]:
        """One task per query, in path order.

        Raises:
            OutputConflictError: Two queries map to the same output path
        """
        root = self.graph.catalog.root
        tasks = [
            RenderTask(
                source=query,
                output_path=output_path_for(query, root, self.config),
                closure=self.graph.closure(query.path),
            )
            for query in self.graph.queries
        ]

        by_output: dict[Path, list[str]] = {}
        for task in tasks:
            by_output.setdefault(task.output_path, []).append(task.path)
        for output, sources in by_output.items():
            if len(sources) > 1:
                raise OutputConflictError(output, sources)

        return tasks

    def render_task(self, task: RenderTask) -> RenderResult:
        """Render a single task.

        Raises:
            RenderError: The template failed to parse or render
        """
        task.status = TaskStatus.RENDERING
        logger.debug("Rendering %s", task.path)

        try:
            text = self.engine.render(task.path, task.closure)
        except Exception as e:
            task.status = TaskStatus.FAILED
            raise RenderError(task.path, describe_error(e)) from e

        task.status = TaskStatus.DONE
        return RenderResult(
            source=task.path,
            output_path=task.output_path,
            text=text,
            dependencies=tuple(task.dependencies),
        )

    def run(self, tasks: list[RenderTask] | None = None) -> ScheduleOutcome:
        """Render all tasks, collecting every failure.

        Args:
            tasks: Tasks to run (default: create_tasks())

        Returns:
            ScheduleOutcome with results and errors sorted by query path
        """
        if tasks is None:
            tasks = self.create_tasks()

        outcome = ScheduleOutcome(tasks=tasks)
        if not tasks:
            return outcome

        workers = min(self.config.worker_count, len(tasks))
        logger.info("Rendering %d queries on %d workers", len(tasks), workers)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sqlweld-render") as pool:
            futures = {pool.submit(self.render_task, task): task for task in tasks}
            for future in as_completed(futures):
                try:
                    outcome.results.append(future.result())
                except RenderError as e:
                    logger.debug("Render failed: %s", e)
                    outcome.errors.append(e)

        outcome.results.sort(key=lambda r: r.source)
        outcome.errors.sort(key=lambda e: e.path)
        return outcome
