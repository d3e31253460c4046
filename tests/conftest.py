"""🧪 Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

PERM_CHECK = """{% macro perm_check(table, action='read') -%}
EXISTS (
  SELECT 1 FROM permissions
  WHERE permissions.object_id = {{ table }}.id
    AND permissions.action = '{{ action }}'
    AND permissions.user_id = $1
)
{%- endmacro %}
"""

GET_OBJECTS = """{% from "perm_check" import perm_check -%}
SELECT * FROM objects
WHERE {{ perm_check('objects') }};
"""

UPDATE_OBJECTS = """{% from "perm_check" import perm_check -%}
UPDATE objects SET name = $2
WHERE id = $3
  AND {{ perm_check('objects', action='write') }};
"""

EXPECTED_GET = """SELECT * FROM objects
WHERE EXISTS (
  SELECT 1 FROM permissions
  WHERE permissions.object_id = objects.id
    AND permissions.action = 'read'
    AND permissions.user_id = $1
);
"""

EXPECTED_UPDATE = """UPDATE objects SET name = $2
WHERE id = $3
  AND EXISTS (
  SELECT 1 FROM permissions
  WHERE permissions.object_id = objects.id
    AND permissions.action = 'write'
    AND permissions.user_id = $1
);
"""

HEADER = "-- Autogenerated by sqlweld"


def write_tree(root: Path, files: dict[str, str | bytes]) -> Path:
    """Create files under root from a {relative path: content} mapping."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_tree(tmp_path):
    """Factory writing a template tree into a fresh directory."""

    def _make(files: dict[str, str | bytes], name: str = "tree") -> Path:
        return write_tree(tmp_path / name, files)

    return _make


@pytest.fixture
def perm_sources():
    """Template sources for the perm_check example."""
    return {
        "get.sql.tmpl": GET_OBJECTS,
        "update.sql.tmpl": UPDATE_OBJECTS,
        "perm_check.partial.tmpl": PERM_CHECK,
    }


@pytest.fixture
def expected_sql():
    """Rendered bodies (without header) keyed by output file name."""
    return {"get.sql": EXPECTED_GET, "update.sql": EXPECTED_UPDATE}


@pytest.fixture
def header():
    return HEADER


@pytest.fixture
def perm_tree(make_tree, perm_sources):
    """Two queries sharing the perm_check partial, plus non-template files."""
    return make_tree(
        {
            **perm_sources,
            "other_template.tmpl": "SELECT 1",
            "README.md": "# queries",
        }
    )


# Environment setup for tests
@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Keep SQLWELD_* variables from the outer environment out of tests."""
    from sqlweld.config import get_settings

    for name in ("SQLWELD_CONFIG", "SQLWELD_WORKERS", "SQLWELD_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
