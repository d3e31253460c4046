"""🔎 Directive Scanner - Find template references without rendering.

Recognised Jinja tags:
- {% include "name" %}             -> EdgeKind.IMPORT
- {% extends "name" %}             -> EdgeKind.IMPORT
- {% import "name" as alias %}     -> EdgeKind.MACRO_REFERENCE
- {% from "name" import macro %}   -> EdgeKind.MACRO_REFERENCE

Comments ({# #}) and {% raw %} blocks are blanked out before scanning.
References built from expressions (including a literal followed by ``~``,
``if``/``else`` or a filter) cannot be resolved statically; they are
reported at debug level and skipped.
"""

from __future__ import annotations

import logging
import re

from .models import Directive, EdgeKind

logger = logging.getLogger(__name__)

COMMENT_PATTERN = re.compile(r"\{#.*?#\}", re.DOTALL)
RAW_PATTERN = re.compile(
    r"\{%[-+]?\s*raw\s*[-+]?%\}.*?\{%[-+]?\s*endraw\s*[-+]?%\}", re.DOTALL
)
DIRECTIVE_PATTERN = re.compile(
    r"\{%[-+]?\s*(include|extends|import|from)\s+(.*?)\s*[-+]?%\}", re.DOTALL
)
LITERAL_PATTERN = re.compile(r"""^(['"])(.*?)\1""", re.DOTALL)

# What may follow a static target; anything else makes the target an expression
CONTEXT_TAIL = r"(?:\s+(?:with|without)\s+context)?"
TAIL_PATTERNS = {
    "include": re.compile(r"(?:\s+ignore\s+missing)?" + CONTEXT_TAIL + r"\s*$"),
    "extends": re.compile(r"\s*$"),
    "import": re.compile(r"\s+as\s+\w+" + CONTEXT_TAIL + r"\s*$"),
    "from": re.compile(r"\s+import\s+\S.*$", re.DOTALL),
}

TAG_KINDS = {
    "include": EdgeKind.IMPORT,
    "extends": EdgeKind.IMPORT,
    "import": EdgeKind.MACRO_REFERENCE,
    "from": EdgeKind.MACRO_REFERENCE,
}


def _blank(match: re.Match) -> str:
    # Keep newlines so line numbers stay valid
    return re.sub(r"[^\n]", " ", match.group(0))


def scan_directives(text: str, origin: str = "<string>") -> list[Directive]:
    """Extract static template references from Jinja source.

    Args:
        text: Template source
        origin: Name used in log messages

    Returns:
        Directives in source order
    """
    text = COMMENT_PATTERN.sub(_blank, text)
    text = RAW_PATTERN.sub(_blank, text)

    directives = []
    for match in DIRECTIVE_PATTERN.finditer(text):
        tag, argument = match.group(1), match.group(2)
        line = text.count("\n", 0, match.start()) + 1

        literal = LITERAL_PATTERN.match(argument)
        if literal is None or not TAIL_PATTERNS[tag].match(argument, literal.end()):
            logger.debug(
                "%s:%d: dynamic %s target %r is not tracked", origin, line, tag, argument
            )
            continue

        directives.append(
            Directive(
                name=literal.group(2),
                kind=TAG_KINDS[tag],
                tag=tag,
                line=line,
                optional=tag == "include" and "ignore missing" in argument,
            )
        )

    return directives
