"""Template, InlineTemplate and TemplateLayout return types.

Frozen dataclasses that pages, layouts and fallbacks may return instead
of a plain string. The composer renders them with the app's kida
environment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from kida.template import Markup


@dataclass(frozen=True, slots=True)
class Template:
    """Render a full kida template.

    Usage::

        return Template("products.html", products=PRODUCTS)
    """

    name: str
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, name: str, /, **context: Any) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "context", context)

    @staticmethod
    def inline(source: str, /, **context: Any) -> InlineTemplate:
        """Create a template from a string.  For prototyping only.

        Usage::

            return Template.inline("<h1>{{ title }}</h1>", title="Hello")

        """
        return InlineTemplate(source, **context)


@dataclass(frozen=True, slots=True)
class InlineTemplate:
    """A template rendered from a string source.  For prototyping."""

    source: str
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, source: str, /, **context: Any) -> None:
        object.__setattr__(self, "source", source)
        object.__setattr__(self, "context", context)


@dataclass(frozen=True, slots=True)
class TemplateLayout:
    """A layout backed by a kida template.

    The rendered child output is available to the template as
    ``content`` (already marked safe), alongside the layout's static
    configuration::

        # layout.html
        <nav>{% for link in links %}<a href="{{ link.href }}">{{ link.label }}</a>{% end %}</nav>
        <main>{{ content }}</main>

        RouteDefinition("/", layout=TemplateLayout("layout.html"),
                        layout_config={"links": [...]})
    """

    name: str

    def __call__(self, children: str, config: dict[str, Any]) -> Template:
        return Template(self.name, **config, content=Markup(children))
