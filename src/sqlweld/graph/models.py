"""Graph models: import directives and edges."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EdgeKind(str, Enum):
    """Why one template needs another loaded first."""

    IMPORT = "import"  # include / extends
    MACRO_REFERENCE = "macro-reference"  # import / from ... import


@dataclass(frozen=True)
class Directive:
    """A static template reference found by the directive scanner."""

    name: str
    kind: EdgeKind
    tag: str
    line: int
    optional: bool = False


@dataclass(frozen=True, order=True)
class ImportEdge:
    """``source`` requires ``target``'s definitions to render."""

    source: str
    target: str
    kind: EdgeKind
