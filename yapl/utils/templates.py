from __future__ import annotations

"""yapl.utils.templates
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Jinja2 templating for message content and JSON format schemas.

Usage
-----
>>> import anyio
>>> from yapl.utils.templates import TemplateRenderer
>>> anyio.run(TemplateRenderer().render, "Hello {{name}}", {"name": "Alice"})
'Hello Alice'
"""

import json
from typing import Any, Callable, Mapping

from jinja2 import BaseLoader, Environment, StrictUndefined, Undefined

from yapl.exceptions import TemplateRenderError

__all__ = ["TemplateRenderer", "to_json"]


def to_json(value: Any) -> str:  # noqa: D401
    """``json`` filter: pretty JSON dump of *value*."""
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


class TemplateRenderer:
    """Async Jinja2 environment shared by every chain of a :class:`~yapl.Yapl`.

    With *strict* (the default) an undefined variable is an error instead of
    rendering as an empty string.
    """

    def __init__(self, *, strict: bool = True):
        self.env = Environment(
            loader=BaseLoader(),
            autoescape=False,
            undefined=StrictUndefined if strict else Undefined,
            enable_async=True,
            keep_trailing_newline=True,
        )
        self.env.filters["json"] = to_json

    def register_filter(self, name: str, fn: Callable[..., Any]) -> None:
        self.env.filters[name] = fn

    async def render(self, template_string: str, data: Mapping[str, Any], *, path: str = "<string>") -> str:
        """Render *template_string* with *data*.

        Raises:
            TemplateRenderError: on syntax errors or undefined variables.
        """
        try:
            template = self.env.from_string(template_string)
            return await template.render_async(data)
        except Exception as exc:
            raise TemplateRenderError(
                path,
                f"Error rendering template: {exc}\n"
                f"Template: \"{template_string[:100]}{'...' if len(template_string) > 100 else ''}\"\n"
                f"Data keys: {list(data.keys())}",
            ) from exc
