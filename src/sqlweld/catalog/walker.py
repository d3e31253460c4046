"""Filesystem walker honouring .gitignore / .ignore files.

Ignore files are compiled with pathspec (gitwildmatch) and apply to the
directory that holds them and everything below it. Hidden entries are
skipped unless ``include_ignored`` is set. The .git directory is never
walked.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import pathspec

from ..errors import CatalogIoError

logger = logging.getLogger(__name__)

IGNORE_FILES = (".gitignore", ".ignore")
ALWAYS_SKIPPED = frozenset({".git"})


@dataclass(frozen=True)
class IgnoreRules:
    """Compiled patterns from the ignore files of one directory."""

    base: str
    spec: pathspec.PathSpec

    def decide(self, rel_path: str, is_dir: bool = False) -> bool | None:
        """Verdict of the last pattern matching a root-relative path.

        Returns:
            True if ignored, False if re-included by a ``!pattern``, None if
            no pattern here matches
        """
        if self.base:
            if not rel_path.startswith(self.base + "/"):
                return None
            rel_path = rel_path[len(self.base) + 1 :]
        if is_dir:
            rel_path += "/"

        verdict = None
        for pattern in self.spec.patterns:
            if pattern.include is not None and pattern.match_file(rel_path) is not None:
                verdict = pattern.include
        return verdict


def load_ignore_rules(directory: Path, base: str) -> IgnoreRules | None:
    """Read every ignore file in ``directory`` into one rule set."""
    lines: list[str] = []
    for name in IGNORE_FILES:
        ignore_file = directory / name
        if not ignore_file.is_file():
            continue
        try:
            lines.extend(ignore_file.read_text(encoding="utf-8").splitlines())
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping unreadable ignore file %s: %s", ignore_file, e)

    if not lines:
        return None
    return IgnoreRules(base=base, spec=pathspec.PathSpec.from_lines("gitwildmatch", lines))


def _is_ignored(rules: list[IgnoreRules], rel_path: str, is_dir: bool) -> bool:
    # Deepest ignore file first, as git does
    for rule in reversed(rules):
        verdict = rule.decide(rel_path, is_dir)
        if verdict is not None:
            return verdict
    return False


def _on_walk_error(error: OSError) -> None:
    logger.warning("Skipping unreadable directory %s: %s", error.filename, error)


def walk_files(root: Path | str, include_ignored: bool = False) -> Iterator[tuple[str, Path]]:
    """Yield ``(relative_posix_path, absolute_path)`` for every file under root.

    Args:
        root: Directory to walk
        include_ignored: Also yield hidden and ignore-matched files

    Raises:
        CatalogIoError: If root is missing, not a directory, or unreadable
    """
    root = Path(root)
    if not root.is_dir():
        raise CatalogIoError(root, "not a directory")
    try:
        os.scandir(root).close()
    except OSError as e:
        raise CatalogIoError(root, e) from e

    inherited: dict[str, list[IgnoreRules]] = {"": []}

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_walk_error):
        current = Path(dirpath)
        rel_dir = current.relative_to(root).as_posix()
        if rel_dir == ".":
            rel_dir = ""

        rules = list(inherited.pop(rel_dir, []))
        if not include_ignored:
            own = load_ignore_rules(current, rel_dir)
            if own is not None:
                rules.append(own)

        kept = []
        for name in sorted(dirnames):
            if name in ALWAYS_SKIPPED:
                continue
            rel = f"{rel_dir}/{name}" if rel_dir else name
            if not include_ignored and (
                name.startswith(".") or _is_ignored(rules, rel, is_dir=True)
            ):
                logger.debug("Ignoring directory %s", rel)
                continue
            kept.append(name)
            inherited[rel] = rules
        dirnames[:] = kept

        for name in sorted(filenames):
            rel = f"{rel_dir}/{name}" if rel_dir else name
            if not include_ignored and (
                name.startswith(".") or _is_ignored(rules, rel, is_dir=False)
            ):
                continue
            yield rel, current / name
