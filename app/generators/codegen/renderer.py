"""Jinja2 template rendering for generated project files.

Provides the TemplateRenderer class which loads ``.j2`` templates from the
bundled ``templates/`` directory and renders them with per-component context
data.  Helper functions are registered explicitly at construction time and
exposed both as filters (``{{ name | kebab_case }}``) and as globals
(``{{ kebab_case(name) }}``).
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Mapping

import jinja2
from jinja2 import ChainableUndefined, Environment, FileSystemLoader

from app.core.errors import TemplateNotFound, TemplateRenderError
from app.generators.codegen.helpers import TEMPLATE_HELPERS


_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


class TemplateRenderer:
    """Renders codegen templates against a context mapping.

    Missing context values render as empty strings, including dotted
    lookups through missing intermediates.  Compiled templates are cached by
    the environment for the lifetime of the renderer, so a single instance
    should be shared across requests.
    """

    def __init__(
        self,
        template_dir: str | Path | None = None,
        helpers: Mapping[str, Callable[..., Any]] | None = None,
    ) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=ChainableUndefined,
            auto_reload=False,
        )
        self.helpers: Dict[str, Callable[..., Any]] = dict(TEMPLATE_HELPERS if helpers is None else helpers)
        self.env.filters.update(self.helpers)
        self.env.globals.update(self.helpers)

    def render(self, template_path: str, context: Mapping[str, Any]) -> str:
        """Render a template file relative to the template directory.

        Raises:
            TemplateNotFound: the template asset does not exist.
            TemplateRenderError: the template failed to compile or render.
        """
        try:
            template = self.env.get_template(template_path)
        except jinja2.TemplateNotFound as e:
            raise TemplateNotFound(template_path) from e
        except jinja2.TemplateError as e:
            raise TemplateRenderError(template_path, f"Failed to compile {template_path}: {e}") from e
        return self._render(template, template_path, context)

    def render_string(self, template_source: str, context: Mapping[str, Any]) -> str:
        """Render an inline template string."""
        try:
            template = self.env.from_string(template_source)
        except jinja2.TemplateError as e:
            raise TemplateRenderError("<string>", f"Failed to compile inline template: {e}") from e
        return self._render(template, "<string>", context)

    def has_template(self, template_path: str) -> bool:
        return (self.template_dir / template_path).is_file()

    def _render(self, template: jinja2.Template, name: str, context: Mapping[str, Any]) -> str:
        try:
            return template.render(**context)
        except jinja2.TemplateError as e:
            raise TemplateRenderError(name, f"Failed to render {name}: {e}") from e
