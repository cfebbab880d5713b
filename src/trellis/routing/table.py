"""Route table with tree-based path resolution.

Definitions are compiled into an immutable tree of ``RouteNode``s once,
at startup.  Resolution walks that tree segment by segment, trying the
most specific child kind first: static, then group, then dynamic, then
optional catch-all.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping

from trellis.errors import ConfigurationError, MatchError
from trellis.pages.types import (
    BUNDLE_FIELDS,
    NotFoundRoute,
    RouteDefinition,
    RouteMatch,
    RouteNode,
)
from trellis.routing.pattern import (
    ParamBindings,
    RoutePattern,
    Segment,
    SegmentKind,
    parse_pattern,
    split_path,
)

logger = logging.getLogger("trellis.routing")

_Params = dict[str, str | tuple[str, ...]]


class RouteTable:
    """Compiled route tree. Read-only after ``from_routes()`` returns.

    Usage::

        table = RouteTable.from_routes([
            RouteDefinition("/", layout=root_layout, not_found=missing),
            RouteDefinition("/products/[slug]", page=product),
        ])
        match = table.resolve("/products/7")
        match.params  # {"slug": "7"}
    """

    __slots__ = ("_root",)

    def __init__(self, root: RouteNode) -> None:
        self._root = root

    @classmethod
    def from_routes(cls, definitions: Iterable[RouteDefinition]) -> RouteTable:
        """Build the route tree from declared definitions.

        Raises ``ConfigurationError`` for malformed patterns, conflicting
        dynamic parameter names at the same position, segments after a
        catch-all, a bundle slot declared twice for one pattern,
        or two pages answering the same URL from different groups.
        """
        root = RouteNode(None, RoutePattern(), depth=0)
        page_urls: dict[tuple[str, ...], RoutePattern] = {}

        for definition in definitions:
            pattern = parse_pattern(definition.pattern)
            node = root
            for seg in pattern.segments:
                node = _child_for(node, seg, definition.pattern)
            _apply(node, definition)

            if definition.page is not None:
                url_key = tuple(seg.shape for seg in pattern.matchable)
                existing = page_urls.get(url_key)
                if existing is not None and existing != pattern:
                    msg = (
                        f"Routes {str(existing)!r} and {str(pattern)!r} both resolve "
                        f"to the same path."
                    )
                    raise ConfigurationError(msg)
                page_urls[url_key] = pattern

        table = cls(root)
        logger.debug("Route table built with %d routes", len(table.routes))
        return table

    @property
    def root(self) -> RouteNode:
        return self._root

    @property
    def routes(self) -> list[RouteNode]:
        """Every node that declares at least one handler, depth-first."""
        return [node for node in _walk(self._root) if node.handler_kinds]

    def resolve(self, path: str) -> RouteMatch | NotFoundRoute:
        """Resolve a concrete path to a route chain.

        Returns a ``RouteMatch`` when a page answers the path.  Otherwise
        returns a ``NotFoundRoute`` for the nearest not-found fallback
        along the deepest matched prefix.

        Raises ``MatchError`` if no page matches and no not-found
        fallback exists anywhere on that prefix.
        """
        parts = split_path(path)
        best: tuple[tuple[RouteNode, ...], _Params] | None = None
        for chain, params in _candidates(self._root, parts, 0, (self._root,), {}):
            if best is None or chain[-1].pattern.specificity < best[0][-1].pattern.specificity:
                best = (chain, params)

        if best is not None:
            chain, params = best
            return RouteMatch(chain=chain, params=ParamBindings(params), path=path)

        prefix, params = _deepest_prefix(self._root, parts)
        for i in range(len(prefix) - 1, -1, -1):
            if prefix[i].not_found is not None:
                logger.debug("No page for %r, using not-found at %s", path, prefix[i].pattern)
                return NotFoundRoute(
                    chain=prefix[: i + 1],
                    params=ParamBindings(_params_within(prefix[: i + 1], params)),
                    path=path,
                )

        raise MatchError(path)


def _child_for(node: RouteNode, seg: Segment, pattern: str) -> RouteNode:
    """Return (creating if needed) the child of *node* for *seg*."""
    child_pattern = RoutePattern((*node.pattern.segments, seg))
    depth = node.depth + 1

    if seg.kind is SegmentKind.STATIC:
        child = node.static_children.get(seg.name)
        if child is None:
            child = node.static_children[seg.name] = RouteNode(seg, child_pattern, depth)
        return child

    if seg.kind is SegmentKind.GROUP:
        child = node.group_children.get(seg.name)
        if child is None:
            child = node.group_children[seg.name] = RouteNode(seg, child_pattern, depth)
        return child

    if seg.kind is SegmentKind.DYNAMIC:
        slot = "dynamic_child"
    else:
        slot = "catch_all_child"

    existing: RouteNode | None = getattr(node, slot)
    if existing is None:
        existing = RouteNode(seg, child_pattern, depth)
        setattr(node, slot, existing)
        return existing

    if existing.param_name != seg.name:
        msg = (
            f"Route pattern {pattern!r}: parameter {seg} conflicts with "
            f"{existing.segment} at {node.pattern}. Use one parameter name per position."
        )
        raise ConfigurationError(msg)
    return existing


def _apply(node: RouteNode, definition: RouteDefinition) -> None:
    """Copy a definition's bundle onto its node, rejecting duplicates."""
    for name in BUNDLE_FIELDS:
        value = getattr(definition, name)
        if value is None:
            continue
        if getattr(node, name) is not None:
            where = f" ({definition.source})" if definition.source else ""
            msg = f"Route {node.pattern}: {name} is declared more than once{where}."
            raise ConfigurationError(msg)
        setattr(node, name, value)
    if definition.layout_config:
        node.layout_config = dict(definition.layout_config)
    if definition.source:
        node.sources.append(definition.source)


def _walk(node: RouteNode) -> Iterator[RouteNode]:
    yield node
    for child in node.children:
        yield from _walk(child)


def _candidates(
    node: RouteNode,
    parts: list[str],
    index: int,
    chain: tuple[RouteNode, ...],
    params: _Params,
) -> Iterator[tuple[tuple[RouteNode, ...], _Params]]:
    """Yield every (chain, params) whose leaf page answers *parts*.

    Yielded most-specific first; the caller still ranks by pattern
    specificity because group children can interleave kinds.
    """
    if index == len(parts) and node.page is not None:
        yield chain, params

    if index < len(parts):
        child = node.static_children.get(parts[index])
        if child is not None:
            yield from _candidates(child, parts, index + 1, (*chain, child), params)

    for group in node.group_children.values():
        yield from _candidates(group, parts, index, (*chain, group), params)

    if index < len(parts) and node.dynamic_child is not None:
        child = node.dynamic_child
        new_params = {**params, child.param_name: parts[index]}
        yield from _candidates(child, parts, index + 1, (*chain, child), new_params)

    catch_all = node.catch_all_child
    if catch_all is not None and catch_all.page is not None:
        yield (*chain, catch_all), {**params, catch_all.param_name: tuple(parts[index:])}


def _deepest_prefix(
    root: RouteNode, parts: list[str]
) -> tuple[tuple[RouteNode, ...], _Params]:
    """Follow the longest matching prefix of *parts* through the tree.

    Used only when no page answers the path, to find the nearest
    not-found fallback.
    """
    chain: tuple[RouteNode, ...] = (root,)
    params: _Params = {}
    node = root
    for part in parts:
        step = _step(node, part)
        if step is None:
            break
        nodes, bound = step
        chain = (*chain, *nodes)
        params.update(bound)
        node = nodes[-1]
    return chain, params


def _step(node: RouteNode, part: str) -> tuple[tuple[RouteNode, ...], _Params] | None:
    """Consume one path segment from *node*, descending through groups."""
    child = node.static_children.get(part)
    if child is not None:
        return (child,), {}
    for group in node.group_children.values():
        inner = _step(group, part)
        if inner is not None:
            return (group, *inner[0]), inner[1]
    if node.dynamic_child is not None:
        child = node.dynamic_child
        return (child,), {child.param_name: part}
    return None


def _params_within(chain: tuple[RouteNode, ...], params: Mapping[str, str | tuple[str, ...]]) -> _Params:
    names = {name for node in chain for name in node.pattern.param_names}
    return {k: v for k, v in params.items() if k in names}
