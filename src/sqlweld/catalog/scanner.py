"""📂 Catalog Scanner - Discover and classify template files.

Classification is by filename suffix, checked in priority order:
1. Macro module suffixes  -> FileKind.MACRO_MODULE
2. Partial suffixes       -> FileKind.PARTIAL
3. Query suffixes         -> FileKind.QUERY

Anything else is ignored.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import WeldConfig
from ..errors import CatalogIoError, InvalidEncodingError
from .models import Catalog, FileKind, SourceFile
from .walker import walk_files

logger = logging.getLogger(__name__)


def classify(filename: str, config: WeldConfig) -> tuple[FileKind, str] | None:
    """Classify a file name.

    Returns:
        (kind, matched suffix), or None if the file is not a template
    """
    for kind, suffixes in (
        (FileKind.MACRO_MODULE, config.macro_suffixes),
        (FileKind.PARTIAL, config.partial_suffixes),
        (FileKind.QUERY, config.query_suffixes),
    ):
        for suffix in suffixes:
            # A bare suffix ('.sql.tmpl') is not a template name
            if filename.endswith(suffix) and len(filename) > len(suffix):
                return kind, suffix
    return None


def read_source(rel_path: str, abs_path: Path, kind: FileKind, suffix: str) -> SourceFile:
    """Read one matched file into a SourceFile."""
    try:
        data = abs_path.read_bytes()
    except OSError as e:
        raise CatalogIoError(abs_path, e) from e

    try:
        return SourceFile.from_bytes(rel_path, abs_path, kind, suffix, data)
    except UnicodeDecodeError as e:
        raise InvalidEncodingError(abs_path, e) from e


def build_catalog(root: Path | str, config: WeldConfig | None = None) -> Catalog:
    """Walk a template tree and catalog every template file.

    Args:
        root: Template root directory
        config: Suffix and ignore settings (default: WeldConfig())

    Returns:
        Catalog ordered by relative path

    Raises:
        CatalogIoError: Root or a matched file is unreadable
        InvalidEncodingError: A matched file is not UTF-8
    """
    config = config or WeldConfig()
    root = Path(root).resolve()

    files = []
    for rel_path, abs_path in walk_files(root, include_ignored=config.include_ignored):
        classified = classify(abs_path.name, config)
        if classified is None:
            continue
        kind, suffix = classified
        logger.debug("Found %s %s", kind.value, rel_path)
        files.append(read_source(rel_path, abs_path, kind, suffix))

    catalog = Catalog(root, files)
    logger.info(
        "Cataloged %d templates (%d queries, %d partials) under %s",
        len(catalog),
        len(catalog.queries()),
        len(catalog.partials()),
        root,
    )
    return catalog
