"""🧭 Import Resolver - Map reference names to cataloged files.

A reference is looked up at each search location, most specific first:

1. the importing file's own directory
2. each ancestor directory, up to the template root
3. the shared partials directory

At a location, ``location/name`` matches a partial or macro module whose
relative path equals it exactly, or whose path minus its kind suffix does.
So ``{% import "perm_check" %}`` and ``{% import "perm_check.partial.tmpl" %}``
both find ``perm_check.partial.tmpl`` next to the importer.

The first location with any match wins. Several matches at that location
are ambiguous.
"""

from __future__ import annotations

import logging
import posixpath
from collections import defaultdict

from ..catalog import Catalog, SourceFile
from ..errors import AmbiguousImportError, UnresolvedImportError

logger = logging.getLogger(__name__)


def _join(location: str, name: str) -> str | None:
    """Normalised root-relative key, or None if it escapes the root."""
    if location:
        name = posixpath.join(location, name)
    joined = posixpath.normpath(name)
    if joined in (".", "..") or joined.startswith("../"):
        return None
    return joined


def search_locations(directory: str, partials_dir: str | None = None) -> list[str]:
    """Directories searched for a reference from ``directory``, in order."""
    locations = []
    current = directory
    while True:
        locations.append(current)
        if not current:
            break
        current, _, _ = current.rpartition("/")

    if partials_dir and partials_dir not in locations:
        locations.append(partials_dir)
    return locations


class ImportResolver:
    """Resolve template references against a catalog.

    Example:
        resolver = ImportResolver(catalog, partials_dir="partials")
        target = resolver.resolve(catalog["queries/get.sql.tmpl"], "perm_check")
    """

    def __init__(self, catalog: Catalog, partials_dir: str | None = None):
        self.partials_dir = partials_dir
        self._by_key: dict[str, set[str]] = defaultdict(set)
        self._table: dict[tuple[str, str], str] = {}

        for source in catalog.partials():
            self._by_key[source.path].add(source.path)
            self._by_key[source.logical_name].add(source.path)

    def resolve(self, importer: SourceFile, name: str) -> str:
        """Resolve ``name`` as referenced from ``importer``.

        Returns:
            Relative path of the referenced partial or macro module

        Raises:
            UnresolvedImportError: Nothing matches at any location
            AmbiguousImportError: Several files match at the winning location
        """
        cache_key = (importer.directory, name)
        cached = self._table.get(cache_key)
        if cached is not None:
            return cached

        reference = name.replace("\\", "/")
        if reference.startswith("/"):
            locations = [""]
            reference = reference.lstrip("/")
        else:
            locations = search_locations(importer.directory, self.partials_dir)

        for location in locations:
            key = _join(location, reference)
            if key is None:
                continue

            matches = self._by_key.get(key)
            if not matches:
                continue
            if len(matches) > 1:
                raise AmbiguousImportError(importer.path, name, sorted(matches))

            (target,) = matches
            logger.debug("%s: '%s' -> %s", importer.path, name, target)
            self._table[cache_key] = target
            return target

        raise UnresolvedImportError(importer.path, name)
