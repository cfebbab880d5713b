"""Layout composition.

Turns a matched route chain into a ``ComposedTree``: the layouts of the
chain ordered outermost first, plus the loading and error boundaries
available at each depth.  Rendering wraps inside-out, starting with the
page (or fallback) output and wrapping it with each layout in turn.

A boundary replaces everything *inside* the layout at its own depth:
rendering with ``boundary=node`` keeps the layouts at or above that node
and drops the ones below it::

    /             layout A, error E
    /dashboard    layout B
    /dashboard/x  page P

    Ready:    A(B(P))
    Errored:  A(E)        # B sits inside E's region
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from trellis._internal.invoke import invoke
from trellis.errors import LayoutError
from trellis.pages.resolve import resolve_kwargs
from trellis.templating.integration import render_output

if TYPE_CHECKING:
    from kida import Environment

    from trellis.metadata import Metadata
    from trellis.navigation import NavigationContext
    from trellis.pages.types import LayoutHandler, RouteNode


@dataclass(frozen=True, slots=True)
class LayoutFrame:
    """One layout in a composed tree.

    Attributes:
        layout: The layout callable (or ``TemplateLayout``).
        config: Static configuration declared with the layout.
        depth: Depth of the owning node (0 = root).
    """

    layout: LayoutHandler
    config: Mapping[str, Any]
    depth: int


@dataclass(frozen=True, slots=True)
class ComposedTree:
    """Layouts and boundaries for one route chain, outermost first."""

    chain: tuple[RouteNode, ...]
    frames: tuple[LayoutFrame, ...]

    @property
    def leaf(self) -> RouteNode:
        return self.chain[-1]

    @property
    def loading_boundary(self) -> RouteNode | None:
        """Nearest node (deepest first) declaring a loading fallback."""
        for node in reversed(self.chain):
            if node.loading is not None:
                return node
        return None

    def error_boundary(self, above: int | None = None) -> RouteNode | None:
        """Nearest node declaring an error fallback.

        With *above*, only nodes strictly shallower than that depth are
        considered (used when a layout or a fallback itself failed).
        """
        for node in reversed(self.chain):
            if node.error is None:
                continue
            if above is not None and node.depth >= above:
                continue
            return node
        return None

    async def render(
        self,
        inner: str,
        *,
        params: Mapping[str, str | tuple[str, ...]],
        boundary: RouteNode | None = None,
        navigation: NavigationContext | None = None,
        metadata: Metadata | None = None,
        env: Environment | None = None,
    ) -> str:
        """Wrap *inner* with the layouts, innermost first.

        Args:
            inner: Rendered page or fallback output.
            params: Bound path parameters, for layouts that ask for them.
            boundary: When set, only layouts at or above this node wrap
                *inner*; the rest are inside the boundary's region.
            navigation: Passed to layouts that ask for it.
            metadata: Resolved metadata, for layouts that render it.
            env: Kida environment for template-returning layouts.

        Raises:
            LayoutError: If a layout raises; carries the layout's depth.
        """
        frames = self.frames
        if boundary is not None:
            frames = tuple(f for f in frames if f.depth <= boundary.depth)

        html = inner
        for frame in reversed(frames):
            config = dict(frame.config)
            provided = {**config, "config": config, "children": html, "metadata": metadata}
            try:
                kwargs = resolve_kwargs(
                    frame.layout, params=params, navigation=navigation, provided=provided
                )
                html = render_output(await invoke(frame.layout, **kwargs), env)
            except Exception as exc:
                msg = f"Layout at depth {frame.depth} failed: {exc}"
                raise LayoutError(msg, depth=frame.depth) from exc
        return html


def compose(chain: Sequence[RouteNode]) -> ComposedTree:
    """Build the composed tree for a route chain (root first)."""
    frames = tuple(
        LayoutFrame(layout=node.layout, config=node.layout_config, depth=node.depth)
        for node in chain
        if node.layout is not None
    )
    return ComposedTree(chain=tuple(chain), frames=frames)
