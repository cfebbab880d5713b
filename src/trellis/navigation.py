"""Navigation context — the current location, as seen by interactive content.

A ``NavigationContext`` is built once per render and handed (by
reference) to any page, layout, or fallback whose signature asks for it.
It is read-only: ``navigate()`` records an intent with the surrounding
runtime instead of re-rendering or mutating the current location.

Usage::

    def page(navigation: NavigationContext) -> str:
        names = navigation.search_params.get_all("name")
        if not names:
            navigation.navigate("/")
        return f"<p>{', '.join(names)}</p>"
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeAlias
from urllib.parse import urlsplit

from trellis.http.query import SearchParams

# Receives the destination path of a navigation intent
Navigator: TypeAlias = Callable[[str], None]


def _ignore(path: str) -> None:
    return None


@dataclass(frozen=True, slots=True)
class NavigationContext:
    """Read-only snapshot of the current path and query parameters.

    Attributes:
        path: Current URL path, e.g. ``/profile``.
        search_params: Current query parameters (ordered multimap).
        navigator: Runtime callback that receives navigation intents.
    """

    path: str
    search_params: SearchParams = field(default_factory=SearchParams)
    navigator: Navigator = field(default=_ignore, repr=False, compare=False)

    @classmethod
    def from_url(cls, url: str, navigator: Navigator | None = None) -> NavigationContext:
        """Build a context from a URL or path with an optional query string."""
        parts = urlsplit(url)
        return cls(
            path=parts.path or "/",
            search_params=SearchParams(parts.query),
            navigator=navigator or _ignore,
        )

    @property
    def url(self) -> str:
        query = self.search_params.to_query_string()
        return f"{self.path}?{query}" if query else self.path

    def navigate(self, path: str) -> None:
        """Request a transition to *path*.

        This is a signal to the runtime, not a synchronous re-render:
        the destination gets its own render lifecycle.
        """
        self.navigator(path)

    def with_url(self, url: str) -> NavigationContext:
        """Return a fresh snapshot for *url*, sharing this context's navigator."""
        return NavigationContext.from_url(url, self.navigator)


class NavigationLog:
    """Collects navigation intents raised during one render.

    Used as the ``Navigator`` by ``App.render()``; the recorded paths are
    returned on ``RenderResult.navigations``.
    """

    __slots__ = ("_paths",)

    def __init__(self) -> None:
        self._paths: list[str] = []

    def __call__(self, path: str) -> None:
        self._paths.append(path)

    @property
    def paths(self) -> tuple[str, ...]:
        return tuple(self._paths)
