"""📝 Template Engine - Jinja2 rendering against a resolved import graph.

Template names seen by Jinja are catalog paths. When a template imports
"perm_check", Environment.join_path() looks the reference up in the graph's
static resolution table, so the loader is only ever asked for a concrete,
already-validated path.

Each render gets an overlay environment whose loader holds just the query
and its import closure.
"""

from __future__ import annotations

from typing import Any

from jinja2 import DictLoader, Environment, StrictUndefined

from ..graph import DependencyGraph

# Shared by every render; a file with no imports renders exactly as
# Environment(**ENVIRONMENT_OPTIONS).from_string(text).render() would.
ENVIRONMENT_OPTIONS: dict[str, Any] = {
    # Don't auto-escape SQL
    "autoescape": False,
    # Calling a missing macro or variable is an error, not an empty string
    "undefined": StrictUndefined,
    "keep_trailing_newline": True,
}


class ResolvingEnvironment(Environment):
    """Jinja2 environment that resolves references through the graph."""

    def __init__(self, graph: DependencyGraph, **options: Any):
        super().__init__(**options)
        self.graph = graph

    def join_path(self, template: str, parent: str) -> str:
        resolved = self.graph.resolve(parent, template)
        if resolved is None:
            # Dynamic reference; the loader decides whether it exists
            return template
        return resolved


class TemplateEngine:
    """Render query templates from a DependencyGraph.

    Example:
        engine = TemplateEngine(graph, context={"schema": "app"})
        sql = engine.render("queries/get.sql.tmpl")
    """

    def __init__(self, graph: DependencyGraph, context: dict[str, Any] | None = None):
        self.graph = graph
        self.context = dict(context or {})
        self._env = ResolvingEnvironment(graph, **ENVIRONMENT_OPTIONS)

    def sources_for(self, path: str, closure: frozenset[str] | None = None) -> dict[str, str]:
        """Template sources visible while rendering ``path``."""
        if closure is None:
            closure = self.graph.closure(path)
        catalog = self.graph.catalog
        return {name: catalog[name].content for name in (path, *sorted(closure))}

    def render(self, path: str, closure: frozenset[str] | None = None) -> str:
        """Render one query with only its import closure loadable.

        Raises:
            jinja2.TemplateError: Syntax errors, undefined names, missing
                templates
        """
        env = self._env.overlay(loader=DictLoader(self.sources_for(path, closure)))
        # Globals reach imported macro modules too; the overlay shares the
        # parent's dict, so replace it rather than update it
        source = self.graph.catalog[path]
        env.globals = {**env.globals, **self.context, "this": source.logical_name}

        return env.get_template(path).render()
