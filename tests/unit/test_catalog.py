"""🧪 Tests for the file catalog and walker."""

import hashlib

import pytest

from sqlweld.catalog import FileKind, build_catalog, classify, walk_files
from sqlweld.config import WeldConfig
from sqlweld.errors import CatalogError, CatalogIoError, InvalidEncodingError


class TestClassify:
    """Tests for suffix classification."""

    @pytest.fixture
    def config(self):
        return WeldConfig()

    @pytest.mark.parametrize(
        "filename,kind",
        [
            ("get.sql.tmpl", FileKind.QUERY),
            ("perm_check.partial.tmpl", FileKind.PARTIAL),
            ("perm_check.partial.sql.tmpl", FileKind.PARTIAL),
            ("helpers.macros.tmpl", FileKind.MACRO_MODULE),
            ("helpers.macros.sql.tmpl", FileKind.MACRO_MODULE),
        ],
    )
    def test_known_suffixes(self, config, filename, kind):
        """Test that each default suffix maps to its kind."""
        assert classify(filename, config)[0] is kind

    def test_priority_macro_before_partial_before_query(self):
        """Test that macro suffixes are checked before partial and query ones."""
        config = WeldConfig(
            query_suffixes=[".tmpl"],
            partial_suffixes=[".p.tmpl"],
            macro_suffixes=[".m.p.tmpl"],
        )
        assert classify("a.m.p.tmpl", config) == (FileKind.MACRO_MODULE, ".m.p.tmpl")
        assert classify("a.p.tmpl", config) == (FileKind.PARTIAL, ".p.tmpl")
        assert classify("a.tmpl", config) == (FileKind.QUERY, ".tmpl")

    def test_other_files_ignored(self, config):
        """Test that non-template files are not classified."""
        assert classify("other_template.tmpl", config) is None
        assert classify("get.sql", config) is None
        assert classify("README.md", config) is None

    def test_bare_suffix_is_not_a_template(self, config):
        """Test that a file named exactly like a suffix is ignored."""
        assert classify(".sql.tmpl", config) is None


class TestBuildCatalog:
    """Tests for build_catalog()."""

    def test_catalog_is_sorted_and_classified(self, make_tree):
        """Test sorted relative paths and per-file kinds."""
        root = make_tree(
            {
                "z.sql.tmpl": "SELECT 1",
                "a/b.partial.tmpl": "x",
                "a/c.macros.tmpl": "{% macro c() %}c{% endmacro %}",
                "notes.txt": "ignored",
            }
        )
        catalog = build_catalog(root)

        assert catalog.paths == ["a/b.partial.tmpl", "a/c.macros.tmpl", "z.sql.tmpl"]
        assert catalog["a/b.partial.tmpl"].kind is FileKind.PARTIAL
        assert catalog["a/c.macros.tmpl"].kind is FileKind.MACRO_MODULE
        assert [q.path for q in catalog.queries()] == ["z.sql.tmpl"]
        assert [p.path for p in catalog.partials()] == ["a/b.partial.tmpl", "a/c.macros.tmpl"]
        assert "notes.txt" not in catalog

    def test_source_file_attributes(self, make_tree):
        """Test content, hash, logical name and directory."""
        root = make_tree({"shared/perm_check.partial.tmpl": "body"})
        source = build_catalog(root)["shared/perm_check.partial.tmpl"]

        assert source.content == "body"
        assert source.content_hash == hashlib.sha256(b"body").hexdigest()
        assert source.logical_name == "shared/perm_check"
        assert source.directory == "shared"
        assert source.abs_path == root.resolve() / "shared" / "perm_check.partial.tmpl"

    def test_missing_root(self, tmp_path):
        """Test that a missing root is a CatalogIoError."""
        with pytest.raises(CatalogIoError):
            build_catalog(tmp_path / "missing")

    def test_invalid_encoding(self, make_tree):
        """Test that non-UTF-8 templates are rejected."""
        root = make_tree({"bad.sql.tmpl": b"SELECT '\xff\xfe'"})

        with pytest.raises(InvalidEncodingError) as exc_info:
            build_catalog(root)

        assert isinstance(exc_info.value, CatalogError)
        assert "bad.sql.tmpl" in str(exc_info.value)

    def test_invalid_encoding_in_ignored_file_is_fine(self, make_tree):
        """Test that only matched files are decoded."""
        root = make_tree({"blob.bin": b"\xff\xfe", "ok.sql.tmpl": "SELECT 1"})
        assert build_catalog(root).paths == ["ok.sql.tmpl"]


class TestWalker:
    """Tests for ignore handling in walk_files()."""

    @pytest.fixture
    def tree(self, make_tree):
        return make_tree(
            {
                ".gitignore": "ignored/\n*.skip.sql.tmpl\n",
                "keep.sql.tmpl": "SELECT 1",
                "drop.skip.sql.tmpl": "SELECT 2",
                "ignored/x.sql.tmpl": "SELECT 3",
                ".hidden/y.sql.tmpl": "SELECT 4",
                "sub/.ignore": "local.sql.tmpl\n",
                "sub/local.sql.tmpl": "SELECT 5",
                "sub/other.sql.tmpl": "SELECT 6",
                ".git/HEAD": "ref: refs/heads/main",
            }
        )

    def test_respects_ignore_files_and_hidden(self, tree):
        """Test .gitignore, nested .ignore and hidden entries are skipped."""
        paths = [rel for rel, _ in walk_files(tree)]
        assert paths == ["keep.sql.tmpl", "sub/other.sql.tmpl"]

    def test_include_ignored(self, tree):
        """Test that include_ignored walks everything except .git."""
        paths = [rel for rel, _ in walk_files(tree, include_ignored=True)]

        assert "drop.skip.sql.tmpl" in paths
        assert "ignored/x.sql.tmpl" in paths
        assert ".hidden/y.sql.tmpl" in paths
        assert "sub/local.sql.tmpl" in paths
        assert not any(p.startswith(".git/") for p in paths)

    def test_catalog_uses_config_flag(self, tree):
        """Test that WeldConfig.include_ignored reaches the walker."""
        assert len(build_catalog(tree).queries()) == 2
        assert len(build_catalog(tree, WeldConfig(include_ignored=True)).queries()) == 6

    def test_nested_negation_reincludes(self, make_tree):
        """Test a deeper !pattern overrides a parent ignore file."""
        root = make_tree(
            {
                ".gitignore": "*.skip.sql.tmpl\n",
                "top.skip.sql.tmpl": "SELECT 1",
                "sub/.gitignore": "!keep.skip.sql.tmpl\n",
                "sub/keep.skip.sql.tmpl": "SELECT 2",
                "sub/drop.skip.sql.tmpl": "SELECT 3",
            }
        )
        assert [rel for rel, _ in walk_files(root)] == ["sub/keep.skip.sql.tmpl"]

    def test_last_matching_pattern_wins(self, make_tree):
        """Test negation within a single ignore file."""
        root = make_tree(
            {
                ".gitignore": "*.sql.tmpl\n!wanted.sql.tmpl\n",
                "wanted.sql.tmpl": "SELECT 1",
                "unwanted.sql.tmpl": "SELECT 2",
            }
        )
        assert [rel for rel, _ in walk_files(root)] == ["wanted.sql.tmpl"]
