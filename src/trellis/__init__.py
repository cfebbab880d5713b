"""Trellis — file-path-driven page routing and rendering.

Pages are resolved from URL paths, wrapped in nested layouts, rendered
through loading and error states, and described by metadata merged up
the layout chain.

Basic usage::

    from trellis import App

    app = App()
    app.route("/", layout=lambda children: f"<main>{children}</main>")

    @app.page("/products/[slug]")
    async def product(slug: str):
        return f"<h2>Product Details Page - {slug}</h2>"

    result = await app.render("/products/7")

Filesystem routing::

    app = App(AppConfig(pages_dir="pages"))
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "ContentError",
    "InlineTemplate",
    "MatchError",
    "Metadata",
    "MetadataResolutionError",
    "NavigationContext",
    "ParamBindingError",
    "ParamBindings",
    "RenderResult",
    "Retry",
    "RouteDefinition",
    "RouteTable",
    "SearchParams",
    "Template",
    "TemplateLayout",
    "TrellisError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import trellis`` fast while providing a clean top-level API.
    """
    if name == "App":
        from trellis.app import App

        return App

    if name == "AppConfig":
        from trellis.config import AppConfig

        return AppConfig

    if name in ("Template", "InlineTemplate", "TemplateLayout"):
        from trellis.templating import returns as _tmpl

        return getattr(_tmpl, name)

    if name == "Metadata":
        from trellis.metadata import Metadata

        return Metadata

    if name == "NavigationContext":
        from trellis.navigation import NavigationContext

        return NavigationContext

    if name == "SearchParams":
        from trellis.http.query import SearchParams

        return SearchParams

    if name == "ParamBindings":
        from trellis.routing.pattern import ParamBindings

        return ParamBindings

    if name == "RouteTable":
        from trellis.routing.table import RouteTable

        return RouteTable

    if name == "RouteDefinition":
        from trellis.pages.types import RouteDefinition

        return RouteDefinition

    if name == "RenderResult":
        from trellis.rendering.result import RenderResult

        return RenderResult

    if name == "Retry":
        from trellis.rendering.lifecycle import Retry

        return Retry

    if name in (
        "ConfigurationError",
        "ContentError",
        "MatchError",
        "MetadataResolutionError",
        "ParamBindingError",
        "TrellisError",
    ):
        from trellis import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
