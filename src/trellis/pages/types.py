"""Data models for page routing.

A ``RouteDefinition`` is what gets declared (by ``App.route()`` or by
filesystem discovery).  ``RouteNode`` is what the route table builds
from those definitions at startup: one node per pattern segment, each
holding the handler bundle declared for it.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from trellis.routing.pattern import RoutePattern, Segment

# Page: receives resolved parameters (by signature), returns content
PageHandler: TypeAlias = Callable[..., Any]

# Layout: receives rendered child output plus its static configuration
LayoutHandler: TypeAlias = Callable[..., Any]

# Fallbacks
LoadingHandler: TypeAlias = Callable[..., Any]
ErrorHandler: TypeAlias = Callable[..., Any]
NotFoundHandler: TypeAlias = Callable[..., Any]

# Static mapping, or a (possibly async) resolver producing one
MetadataSource: TypeAlias = (
    Mapping[str, Any] | Callable[..., Mapping[str, Any] | Awaitable[Mapping[str, Any]]]
)

# Slots that a definition can fill on its node
BUNDLE_FIELDS = ("page", "layout", "loading", "error", "not_found", "metadata")


@dataclass(frozen=True, slots=True)
class RouteDefinition:
    """A declared route pattern and its handler bundle.

    Attributes:
        pattern: File-path-shaped pattern, e.g. ``/products/[slug]``.
        page: Content-producing handler for this exact path.
        layout: Wrapper around this node's page and every descendant.
        layout_config: Static configuration handed to the layout
            (navigation links, headings).
        loading: Shown in the page position while content is pending.
        error: Shown in place of the failing content, with a retry.
        not_found: Shown for unmatched paths below this node.
        metadata: Static mapping or dynamic resolver.
        source: Where the definition came from (file path), for messages.
    """

    pattern: str
    page: PageHandler | None = None
    layout: LayoutHandler | None = None
    layout_config: Mapping[str, Any] = field(default_factory=dict)
    loading: LoadingHandler | None = None
    error: ErrorHandler | None = None
    not_found: NotFoundHandler | None = None
    metadata: MetadataSource | None = None
    source: str | None = None


class RouteNode:
    """A node in the route tree. Mutable during table construction only.

    Children are keyed by the next pattern segment: static children by
    name, at most one dynamic child, at most one optional catch-all child,
    and group children (which don't consume a path segment).
    """

    __slots__ = (
        "catch_all_child",
        "depth",
        "dynamic_child",
        "error",
        "group_children",
        "layout",
        "layout_config",
        "loading",
        "metadata",
        "not_found",
        "page",
        "pattern",
        "segment",
        "sources",
        "static_children",
    )

    def __init__(self, segment: Segment | None, pattern: RoutePattern, depth: int) -> None:
        self.segment = segment
        self.pattern = pattern
        self.depth = depth
        self.page: PageHandler | None = None
        self.layout: LayoutHandler | None = None
        self.layout_config: Mapping[str, Any] = {}
        self.loading: LoadingHandler | None = None
        self.error: ErrorHandler | None = None
        self.not_found: NotFoundHandler | None = None
        self.metadata: MetadataSource | None = None
        self.sources: list[str] = []
        self.static_children: dict[str, RouteNode] = {}
        self.dynamic_child: RouteNode | None = None
        self.catch_all_child: RouteNode | None = None
        self.group_children: dict[str, RouteNode] = {}

    def __repr__(self) -> str:
        return f"<RouteNode {self.pattern}>"

    @property
    def children(self) -> list[RouteNode]:
        """All children, most specific kind first."""
        result = list(self.static_children.values())
        result.extend(self.group_children.values())
        if self.dynamic_child is not None:
            result.append(self.dynamic_child)
        if self.catch_all_child is not None:
            result.append(self.catch_all_child)
        return result

    @property
    def param_name(self) -> str:
        """Name bound by this node's parameter segment, ``""`` if it has none."""
        seg = self.segment
        if seg is None or not seg.is_param:
            return ""
        return seg.name

    @property
    def handler_kinds(self) -> tuple[str, ...]:
        """Names of the bundle slots declared on this node."""
        return tuple(name for name in BUNDLE_FIELDS if getattr(self, name) is not None)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful resolution.

    Attributes:
        chain: Nodes from the root (outermost) to the matched leaf.
        params: Parameters bound from the path.
        path: The resolved path.
    """

    chain: tuple[RouteNode, ...]
    params: Mapping[str, str | tuple[str, ...]]
    path: str

    @property
    def node(self) -> RouteNode:
        return self.chain[-1]

    @property
    def pattern(self) -> RoutePattern:
        return self.chain[-1].pattern


@dataclass(frozen=True, slots=True)
class NotFoundRoute:
    """No page matched; the nearest not-found fallback answers instead.

    Attributes:
        chain: Nodes from the root to the node owning the fallback.
        params: Parameters bound along the matched prefix.
        path: The requested path.
    """

    chain: tuple[RouteNode, ...]
    params: Mapping[str, str | tuple[str, ...]]
    path: str

    @property
    def node(self) -> RouteNode:
        return self.chain[-1]
