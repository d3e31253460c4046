"""Catalog models: source files and their classification."""

from __future__ import annotations

import hashlib
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class FileKind(str, Enum):
    """How a template file takes part in the build."""

    QUERY = "query"
    PARTIAL = "partial"
    MACRO_MODULE = "macro_module"

    @property
    def is_importable(self) -> bool:
        return self is not FileKind.QUERY


@dataclass(frozen=True)
class SourceFile:
    """A cataloged template file.

    Identity is the relative POSIX path from the template root.
    """

    path: str
    abs_path: Path
    kind: FileKind
    suffix: str
    content: str = field(repr=False)
    content_hash: str = field(repr=False)

    @property
    def logical_name(self) -> str:
        """Relative path with the kind suffix stripped (e.g. 'shared/perm_check')."""
        return self.path[: -len(self.suffix)]

    @property
    def directory(self) -> str:
        """Relative directory, '' for the root."""
        head, _, _ = self.path.rpartition("/")
        return head

    @classmethod
    def from_bytes(
        cls,
        path: str,
        abs_path: Path,
        kind: FileKind,
        suffix: str,
        data: bytes,
    ) -> SourceFile:
        """Decode raw bytes and hash them. Raises UnicodeDecodeError."""
        return cls(
            path=path,
            abs_path=abs_path,
            kind=kind,
            suffix=suffix,
            content=data.decode("utf-8"),
            content_hash=hashlib.sha256(data).hexdigest(),
        )


class Catalog:
    """Path-ordered, read-only collection of SourceFiles for one run."""

    def __init__(self, root: Path, files: list[SourceFile]):
        self.root = root
        self._files = {f.path: f for f in sorted(files, key=lambda f: f.path)}

    def __iter__(self) -> Iterator[SourceFile]:
        return iter(self._files.values())

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def __getitem__(self, path: str) -> SourceFile:
        return self._files[path]

    def get(self, path: str) -> SourceFile | None:
        return self._files.get(path)

    @property
    def paths(self) -> list[str]:
        return list(self._files)

    def queries(self) -> list[SourceFile]:
        """Query templates in path order."""
        return [f for f in self._files.values() if f.kind is FileKind.QUERY]

    def partials(self) -> list[SourceFile]:
        """Partials and macro modules in path order."""
        return [f for f in self._files.values() if f.kind.is_importable]
