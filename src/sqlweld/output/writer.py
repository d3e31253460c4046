"""💾 Output Writer - Place rendered SQL on disk atomically.

For a query at ``queries/get.sql.tmpl`` with query suffix ``.sql.tmpl``:
- default:            queries/get.sql (beside the template)
- output_dir=build:   build/queries/get.sql

Every write goes to a temporary file in the destination directory and is
renamed over the target, so readers never see a half-written file.
Outputs whose content is already identical are left untouched.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from ..catalog import SourceFile
from ..config import WeldConfig
from ..errors import WriteError

if TYPE_CHECKING:
    from ..render.scheduler import RenderResult

logger = logging.getLogger(__name__)

DEFAULT_MODE = 0o644


def output_relpath(source: SourceFile, config: WeldConfig) -> str:
    """Relative output path: the query suffix replaced by the extension."""
    return f"{source.logical_name}.{config.extension}"


def output_path_for(source: SourceFile, root: Path, config: WeldConfig) -> Path:
    """Absolute output path for a query template."""
    base = root
    if config.output_dir is not None:
        base = config.output_dir if config.output_dir.is_absolute() else root / config.output_dir
    return base / output_relpath(source, config)


def format_header(header: str) -> str:
    """Turn header text into SQL comment lines (blank lines dropped)."""
    lines = [line.strip() for line in header.replace("\r", "\n").split("\n")]
    return "\n".join(f"-- {line}" for line in lines if line)


def apply_header(header: str, body: str) -> str:
    """Prefix ``body`` with the formatted header and a blank line."""
    comment = format_header(header)
    if not comment:
        return body
    return f"{comment}\n\n{body}"


def atomic_write(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` via a same-directory temp file + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = path.stat().st_mode & 0o777 if path.exists() else DEFAULT_MODE

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise


@dataclass
class WriteSummary:
    """Result of writing a batch of rendered outputs."""

    files_created: list[Path] = field(default_factory=list)
    files_updated: list[Path] = field(default_factory=list)
    files_unchanged: list[Path] = field(default_factory=list)
    errors: list[WriteError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0

    @property
    def written(self) -> list[Path]:
        """Files whose content changed on disk, sorted."""
        return sorted(self.files_created + self.files_updated)


class OutputWriter:
    """Write RenderResults to their output paths.

    Example:
        writer = OutputWriter(config)
        summary = writer.write_all(outcome.results)
    """

    def __init__(self, config: WeldConfig | None = None):
        self.config = config or WeldConfig()

    def render_file(self, result: RenderResult) -> str:
        """Final file content for a render result."""
        return apply_header(self.config.header, result.text)

    def write(self, result: RenderResult) -> str:
        """Write one output.

        Returns:
            "created", "updated" or "unchanged"

        Raises:
            WriteError: On any I/O failure
        """
        path = result.output_path
        content = self.render_file(result)

        try:
            existed = path.exists()
            if existed and path.read_bytes() == content.encode("utf-8"):
                logger.debug("Unchanged %s", path)
                return "unchanged"

            atomic_write(path, content)
        except OSError as e:
            raise WriteError(path, e) from e

        logger.debug("Wrote %s -> %s", result.source, path)
        return "updated" if existed else "created"

    def write_all(self, results: list[RenderResult]) -> WriteSummary:
        """Write every result; one failure never stops the others."""
        summary = WriteSummary()
        for result in results:
            try:
                status = self.write(result)
            except WriteError as e:
                logger.warning("%s", e)
                summary.errors.append(e)
                continue

            if status == "created":
                summary.files_created.append(result.output_path)
            elif status == "updated":
                summary.files_updated.append(result.output_path)
            else:
                summary.files_unchanged.append(result.output_path)
        return summary
