"""🧪 Tests for the command line interface."""

import json

import pytest

from sqlweld.cli import main, parse_vars
from sqlweld.errors import SqlweldError
from sqlweld.report import CARGO_PREFIX


def run(argv):
    """Run the CLI, returning the exit code (0 when it returns normally)."""
    try:
        main(argv)
    except SystemExit as e:
        return e.code
    return 0


class TestParseVars:
    """Tests for --var parsing."""

    def test_values_are_yaml_scalars(self):
        assert parse_vars(["schema=app", "limit=10", "flag=true", "empty="]) == {
            "schema": "app",
            "limit": 10,
            "flag": True,
            "empty": "",
        }

    def test_none_without_vars(self):
        assert parse_vars(None) is None

    def test_missing_equals(self):
        with pytest.raises(SqlweldError, match="KEY=VALUE"):
            parse_vars(["schema"])


class TestBuildCommand:
    """Tests for 'sqlweld build'."""

    def test_build_writes_outputs(self, perm_tree, expected_sql):
        assert run(["build", "-i", str(perm_tree), "--header", ""]) == 0
        assert (perm_tree / "get.sql").read_text() == expected_sql["get.sql"]
        assert (perm_tree / "update.sql").exists()

    def test_render_failure_exits_nonzero(self, make_tree, capsys):
        root = make_tree({"ok.sql.tmpl": "SELECT 1", "bad.sql.tmpl": "SELECT {{ nope }}"})

        assert run(["build", "-i", str(root)]) == 1
        assert (root / "ok.sql").exists()
        assert "bad.sql.tmpl" in capsys.readouterr().err

    def test_cycle_exits_nonzero(self, make_tree, capsys):
        root = make_tree(
            {
                "q.sql.tmpl": '{% include "a" %}',
                "a.partial.tmpl": '{% include "a" %}',
            }
        )

        assert run(["build", "-i", str(root)]) == 1
        assert "Import cycle detected" in capsys.readouterr().err
        assert not (root / "q.sql").exists()

    def test_vars_and_extension(self, make_tree):
        root = make_tree({"q.sql.tmpl": "SELECT * FROM {{ schema }}.t;\n"})

        assert run(["build", "-i", str(root), "--header", "", "--ext", "gen.sql",
                    "--var", "schema=app"]) == 0
        assert (root / "q.gen.sql").read_text() == "SELECT * FROM app.t;\n"

    def test_print_rerun_if_changed(self, perm_tree, capsys):
        """Test cargo directives for every watched file."""
        assert run(["build", "-i", str(perm_tree), "--print-rerun-if-changed"]) == 0

        lines = [
            line for line in capsys.readouterr().out.splitlines()
            if line.startswith(CARGO_PREFIX)
        ]
        root = perm_tree.resolve()
        assert lines == [
            f"{CARGO_PREFIX}{root / 'get.sql.tmpl'}",
            f"{CARGO_PREFIX}{root / 'perm_check.partial.tmpl'}",
            f"{CARGO_PREFIX}{root / 'update.sql.tmpl'}",
        ]

    def test_output_dir(self, perm_tree, tmp_path):
        out = tmp_path / "gen"
        assert run(["build", "-i", str(perm_tree), "-o", str(out)]) == 0
        assert sorted(p.name for p in out.iterdir()) == ["get.sql", "update.sql"]


class TestWatchCommand:
    """Tests for 'sqlweld watch'."""

    def test_lines(self, perm_tree, capsys):
        assert run(["watch", "-i", str(perm_tree)]) == 0
        assert capsys.readouterr().out.splitlines() == [
            "get.sql.tmpl",
            "perm_check.partial.tmpl",
            "update.sql.tmpl",
        ]

    def test_cargo_single_output(self, perm_tree, capsys):
        assert run(["watch", "-i", str(perm_tree), "-o", "get.sql", "-f", "cargo"]) == 0
        assert capsys.readouterr().out.splitlines() == [
            f"{CARGO_PREFIX}get.sql.tmpl",
            f"{CARGO_PREFIX}perm_check.partial.tmpl",
        ]

    def test_json(self, perm_tree, capsys):
        assert run(["watch", "-i", str(perm_tree), "-f", "json"]) == 0
        assert json.loads(capsys.readouterr().out) == [
            "get.sql.tmpl",
            "perm_check.partial.tmpl",
            "update.sql.tmpl",
        ]

    def test_watch_does_not_write(self, perm_tree):
        run(["watch", "-i", str(perm_tree)])
        assert list(perm_tree.glob("*.sql")) == []

    def test_unknown_output(self, perm_tree, capsys):
        assert run(["watch", "-i", str(perm_tree), "-o", "nope.sql"]) == 1
        assert "nope.sql" in capsys.readouterr().err


class TestMisc:
    """Tests for graph, help and config errors."""

    def test_graph(self, perm_tree, capsys):
        assert run(["graph", "-i", str(perm_tree)]) == 0
        out = capsys.readouterr().out
        assert "get.sql.tmpl" in out
        assert "perm_check.partial.tmpl" in out

    def test_no_command_prints_help(self, capsys):
        assert run([]) == 0
        assert "usage: sqlweld" in capsys.readouterr().out

    def test_bad_config_file(self, perm_tree, capsys):
        (perm_tree / "sqlweld.yaml").write_text("bogus_option: 1\n")

        assert run(["build", "-i", str(perm_tree)]) == 1
        assert "bogus_option" in capsys.readouterr().err
