"""Filesystem-based routing with automatic layout nesting.

The ``pages/`` directory structure defines URL patterns, layout nesting,
loading and error boundaries, and metadata inheritance.

Usage::

    app = App(AppConfig(pages_dir="pages"))
    result = await app.render("/products/7")

Conventions:

    pages/
      layout.py              # Root layout
      not_found.py           # Root not-found fallback
      products/
        page.py              # /products
        [slug]/
          page.py            # /products/{slug}
      error-example/
        page.py              # /error-example
        error.py             # Error fallback with retry
      (marketing)/
        layout.py            # Wraps the group's pages, no URL segment
        about/
          page.py            # /about
"""

from trellis.pages.compose import ComposedTree, LayoutFrame, compose
from trellis.pages.discovery import discover_routes
from trellis.pages.types import NotFoundRoute, RouteDefinition, RouteMatch, RouteNode

__all__ = [
    "ComposedTree",
    "LayoutFrame",
    "NotFoundRoute",
    "RouteDefinition",
    "RouteMatch",
    "RouteNode",
    "compose",
    "discover_routes",
]
