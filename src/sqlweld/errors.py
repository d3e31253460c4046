"""🚨 Errors - Exception hierarchy for a sqlweld run.

Fatal errors (catalog, resolution, cycles, output conflicts) abort the run
before anything is rendered. Per-file errors (render, write) are collected
into the build report so one bad template never hides another.
"""

from __future__ import annotations

from pathlib import Path


class SqlweldError(Exception):
    """Base exception for sqlweld operations."""

    pass


class ConfigError(SqlweldError):
    """Configuration file could not be loaded or validated."""

    pass


# Catalog


class CatalogError(SqlweldError):
    """The template tree itself could not be read."""

    pass


class CatalogIoError(CatalogError):
    """Root directory or a matched file is unreadable."""

    def __init__(self, path: Path | str, cause: Exception | str):
        self.path = str(path)
        self.cause = cause
        super().__init__(f"Failed to read {self.path}: {cause}")


class InvalidEncodingError(CatalogError):
    """A matched template is not valid UTF-8 text."""

    def __init__(self, path: Path | str, cause: Exception | str):
        self.path = str(path)
        self.cause = cause
        super().__init__(f"{self.path} is not valid UTF-8: {cause}")


# Resolution


class ResolutionError(SqlweldError):
    """An import reference could not be mapped to a single file."""

    importer: str
    name: str


class UnresolvedImportError(ResolutionError):
    """No cataloged partial or macro module matches the reference."""

    def __init__(self, importer: str, name: str):
        self.importer = importer
        self.name = name
        super().__init__(f"{importer}: unresolved import '{name}'")


class AmbiguousImportError(ResolutionError):
    """Several files match the reference at the same specificity."""

    def __init__(self, importer: str, name: str, candidates: list[str]):
        self.importer = importer
        self.name = name
        self.candidates = sorted(candidates)
        super().__init__(
            f"{importer}: ambiguous import '{name}' matches "
            + ", ".join(self.candidates)
        )


class ResolutionFailedError(ResolutionError):
    """Every resolution failure found while building the graph."""

    def __init__(self, failures: list[ResolutionError]):
        self.failures = failures
        lines = "\n".join(f"  - {failure}" for failure in failures)
        super().__init__(
            f"{len(failures)} import(s) could not be resolved:\n{lines}"
        )

    @property
    def files(self) -> list[str]:
        """Importing files with at least one failure, sorted."""
        return sorted({failure.importer for failure in self.failures})


# Cycles


class CycleError(SqlweldError):
    """The import graph reachable from queries is not acyclic."""

    pass


class ImportCycleError(CycleError):
    """An import cycle, listed with the first node repeated at the end."""

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__("Import cycle detected: " + " -> ".join(cycle))


# Per-file


class RenderError(SqlweldError):
    """A query template failed to render."""

    def __init__(self, path: str, diagnostic: str):
        self.path = path
        self.diagnostic = diagnostic
        super().__init__(f"{path}: {diagnostic}")


class WriteError(SqlweldError):
    """A rendered output could not be written."""

    def __init__(self, path: Path | str, cause: Exception | str):
        self.path = str(path)
        self.cause = cause
        super().__init__(f"Failed to write {self.path}: {cause}")


class UnknownOutputError(SqlweldError):
    """No query template produces the requested output."""

    def __init__(self, output: str):
        self.output = output
        super().__init__(f"No template produces output '{output}'")


class OutputConflictError(SqlweldError):
    """Several query templates would write the same output file."""

    def __init__(self, output: Path | str, sources: list[str]):
        self.path = str(output)
        self.sources = sorted(sources)
        super().__init__(
            f"Output {self.path} is produced by more than one template: "
            + ", ".join(self.sources)
        )
