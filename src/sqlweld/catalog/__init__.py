"""File catalog: walk a template tree and classify what it finds."""

from .models import Catalog, FileKind, SourceFile
from .scanner import build_catalog, classify
from .walker import walk_files

__all__ = [
    "Catalog",
    "FileKind",
    "SourceFile",
    "build_catalog",
    "classify",
    "walk_files",
]
