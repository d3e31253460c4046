#!/usr/bin/env python3
"""
🔩 sqlweld CLI - Weld SQL templates and partials into plain SQL files.

Usage:
    sqlweld build              Render every *.sql.tmpl under the current directory
    sqlweld build -i queries   Render templates under ./queries
    sqlweld watch              Print the source files outputs depend on
    sqlweld graph              Show each query's imports
    sqlweld --help             Show help
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from sqlweld import __version__
from sqlweld.build import BuildReport, build, load_graph
from sqlweld.config import WeldConfig, get_settings, load_config
from sqlweld.errors import SqlweldError
from sqlweld.graph import DependencyGraph
from sqlweld.report import rerun_directives, watch_paths

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Send sqlweld log records to stderr through Rich."""
    level = logging.DEBUG if verbose else get_settings().log_level.upper()
    logger = logging.getLogger("sqlweld")
    logger.setLevel(level)
    logger.handlers = [
        RichHandler(console=err_console, show_time=False, show_path=False, markup=False)
    ]


def parse_vars(pairs: list[str] | None) -> dict | None:
    """Parse KEY=VALUE pairs; values are read as YAML scalars."""
    if not pairs:
        return None
    context = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise SqlweldError(f"--var expects KEY=VALUE, got '{pair}'")
        context[key.strip()] = yaml.safe_load(value) if value else ""
    return context


def resolve_config(args: argparse.Namespace, root: Path) -> WeldConfig:
    """Load the config file and apply CLI overrides."""
    settings = get_settings()
    config = load_config(root, getattr(args, "config", None) or settings.config)

    output_dir = getattr(args, "output_dir", None)
    return config.with_overrides(
        output_dir=output_dir.resolve() if output_dir else None,
        extension=getattr(args, "ext", None),
        header=getattr(args, "header", None),
        workers=getattr(args, "workers", None) or settings.workers,
        include_ignored=True if getattr(args, "check_ignored_dirs", False) else None,
        context=parse_vars(getattr(args, "var", None)),
        verbose=True if getattr(args, "verbose", False) else None,
    )


def fail(error: Exception) -> NoReturn:
    err_console.print(
        f"[red]Error:[/red] {escape(str(error))}", highlight=False, soft_wrap=True
    )
    sys.exit(1)


def print_report(report: BuildReport, verbose: bool = False) -> None:
    """Print outputs and failures for a build run."""
    if verbose and report.results:
        table = Table(title="Outputs", show_lines=False)
        table.add_column("Template", style="cyan")
        table.add_column("Output")
        table.add_column("Status")
        status_of = {
            **{p: "[green]created[/green]" for p in report.writes.files_created},
            **{p: "[yellow]updated[/yellow]" for p in report.writes.files_updated},
            **{p: "[dim]unchanged[/dim]" for p in report.writes.files_unchanged},
        }
        for result in report.results:
            table.add_row(
                result.source,
                str(result.output_path),
                status_of.get(result.output_path, "[red]failed[/red]"),
            )
        console.print(table)

    for error in report.errors:
        err_console.print(f"[red]❌ {escape(error.path)}[/red]", highlight=False, soft_wrap=True)
        err_console.print(
            f"   {type(error).__name__}: {error}", markup=False, highlight=False, soft_wrap=True
        )

    total = len(report.watch)
    written = len(report.writes.written)
    unchanged = len(report.writes.files_unchanged)
    summary = (
        f"[bold]📊 Summary:[/bold] {len(report.succeeded)}/{total} queries | "
        f"{written} written | {unchanged} unchanged | {len(report.errors)} errors"
    )
    if total == 0:
        summary = "[dim]No templates found[/dim]"
    (err_console if report.errors else console).print(summary, highlight=False)


def run_build(args: argparse.Namespace) -> None:
    """Render every query template and write the outputs."""
    root = Path(args.input or Path.cwd())

    try:
        config = resolve_config(args, root)
        report = build(root, config)
    except SqlweldError as e:
        fail(e)

    if args.print_rerun_if_changed:
        paths = sorted({p for sources in report.watch.values() for p in sources})
        for line in rerun_directives(str(report.root / p) for p in paths):
            console.print(line, markup=False, highlight=False, soft_wrap=True)

    if args.json:
        console.print_json(json.dumps(report.to_dict()))
    else:
        print_report(report, verbose=config.verbose)

    if not report.ok:
        sys.exit(1)


def run_watch(args: argparse.Namespace) -> None:
    """Print the watch set without rendering."""
    root = Path(args.input or Path.cwd())

    try:
        config = resolve_config(args, root)
        graph = load_graph(root, config)
        paths = watch_paths(graph, config, output=args.output, absolute=args.absolute)
    except SqlweldError as e:
        fail(e)

    if args.format == "json":
        console.print_json(json.dumps(paths))
        return

    lines = rerun_directives(paths) if args.format == "cargo" else paths
    for line in lines:
        console.print(line, markup=False, highlight=False, soft_wrap=True)


def _add_imports(node: Tree, graph: DependencyGraph, path: str) -> None:
    for target in graph.imports_of(path):
        _add_imports(node.add(f"[green]{target}[/green]"), graph, target)


def run_graph(args: argparse.Namespace) -> None:
    """Show each query and the partials it imports."""
    root = Path(args.input or Path.cwd())

    try:
        config = resolve_config(args, root)
        graph = load_graph(root, config)
    except SqlweldError as e:
        fail(e)

    tree = Tree(f"🔩 [bold]{graph.catalog.root}[/bold]")
    for query in graph.queries:
        _add_imports(tree.add(f"[cyan]{query.path}[/cyan]"), graph, query.path)
    console.print(tree)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--input", "-i", type=Path, help="Template root (default: current directory)"
    )
    parser.add_argument(
        "--config", "-c", type=Path, help="Config file (default: <input>/sqlweld.yaml)"
    )
    parser.add_argument(
        "--check-ignored-dirs",
        action="store_true",
        help="Also walk hidden and .gitignore'd directories",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log every processed file"
    )


def main(argv: list[str] | None = None) -> None:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        prog="sqlweld",
        description="🔩 sqlweld - Create SQL files from templates and partials",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sqlweld build                          Render templates under the current directory
  sqlweld build -i db/queries -o gen     Write outputs under ./gen
  sqlweld build --header ""              Omit the generated-file header
  sqlweld build --var schema=app         Pass extra template variables
  sqlweld build --print-rerun-if-changed Emit cargo rerun directives
  sqlweld watch --format cargo           Watch list without rendering
  sqlweld watch --output get.sql         Sources of a single output
  sqlweld graph                          Show the import tree
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # build command
    build_parser = subparsers.add_parser("build", help="Render templates to SQL")
    _add_common_arguments(build_parser)
    build_parser.add_argument(
        "--output", "-o", dest="output_dir", type=Path,
        help="Output directory (default: beside each template)",
    )
    build_parser.add_argument("--ext", help="Output extension (default: sql)")
    build_parser.add_argument(
        "--header", help="Header comment for generated files (empty to omit)"
    )
    build_parser.add_argument(
        "--workers", "-j", type=int, help="Render threads (default: CPU count)"
    )
    build_parser.add_argument(
        "--var", action="append", metavar="KEY=VALUE",
        help="Extra template variable (can specify multiple)",
    )
    build_parser.add_argument(
        "--print-rerun-if-changed", action="store_true",
        help="Print cargo:rerun-if-changed lines for every watched file",
    )
    build_parser.add_argument(
        "--json", action="store_true", help="Print the build report as JSON"
    )

    # watch command
    watch_parser = subparsers.add_parser(
        "watch", help="Print source files that outputs depend on"
    )
    _add_common_arguments(watch_parser)
    watch_parser.add_argument(
        "--output", "-o", help="Only the sources of this output file"
    )
    watch_parser.add_argument(
        "--absolute", action="store_true", help="Print absolute paths"
    )
    watch_parser.add_argument(
        "--format", "-f", choices=["lines", "cargo", "json"], default="lines",
        help="Output format (default: lines)",
    )

    # graph command
    graph_parser = subparsers.add_parser("graph", help="Show the import tree")
    _add_common_arguments(graph_parser)

    # version
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return

    setup_logging(args.verbose)

    if args.command == "build":
        run_build(args)
    elif args.command == "watch":
        run_watch(args)
    elif args.command == "graph":
        run_graph(args)


if __name__ == "__main__":
    main()
