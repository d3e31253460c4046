"""Output writing: destination paths, headers and atomic writes."""

from .writer import (
    OutputWriter,
    WriteSummary,
    apply_header,
    atomic_write,
    format_header,
    output_path_for,
    output_relpath,
)

__all__ = [
    "OutputWriter",
    "WriteSummary",
    "apply_header",
    "atomic_write",
    "format_header",
    "output_path_for",
    "output_relpath",
]
