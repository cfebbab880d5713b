"""Metadata resolution — merged root to leaf along the route chain.

Each node may declare metadata either as a static mapping::

    metadata = {"title": "Metadata example", "description": "Static metadata"}

or as a resolver that receives the route's parameters (by signature, like
a page) and returns a mapping, optionally asynchronously::

    async def generate_metadata(slug: str) -> dict:
        return {"title": TITLES[slug]}

Resolvers may also declare ``parent`` to receive the metadata merged so
far.  Resolution is strictly sequential, outermost first, so inner
metadata always overrides outer metadata deterministically.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from trellis._internal.invoke import invoke
from trellis.errors import MetadataResolutionError
from trellis.pages.resolve import resolve_kwargs

if TYPE_CHECKING:
    from trellis.navigation import NavigationContext
    from trellis.pages.types import RouteNode

logger = logging.getLogger("trellis.metadata")


class Metadata(Mapping[str, Any]):
    """Immutable mapping of descriptive fields (title, description, ...).

    ``None`` values are treated as unset: they never override an
    inherited value and are dropped from the mapping.
    """

    __slots__ = ("_data",)

    _data: dict[str, Any]

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        clean = {k: v for k, v in (data or {}).items() if v is not None}
        object.__setattr__(self, "_data", clean)

    def __setattr__(self, name: str, value: object) -> None:
        msg = "Metadata is immutable"
        raise AttributeError(msg)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Metadata({self._data!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    @property
    def title(self) -> str | None:
        return self._data.get("title")

    @property
    def description(self) -> str | None:
        return self._data.get("description")

    def merged(self, child: Mapping[str, Any]) -> Metadata:
        """Return a new Metadata with *child*'s set fields on top."""
        return Metadata({**self._data, **{k: v for k, v in child.items() if v is not None}})


async def resolve_metadata(
    chain: Sequence[RouteNode],
    params: Mapping[str, str | tuple[str, ...]],
    *,
    navigation: NavigationContext | None = None,
    base: Mapping[str, Any] | None = None,
) -> Metadata:
    """Walk the route chain from root to leaf, merging each node's metadata.

    Args:
        chain: Route nodes ordered root (outermost) to leaf.
        params: Parameters bound for this request.
        navigation: Passed to resolvers that ask for it.
        base: Defaults merged beneath the root.

    Returns:
        The merged metadata.

    Raises:
        MetadataResolutionError: If a dynamic resolver raises or returns
            something that isn't a mapping.  ``partial`` carries what was
            merged before the failure.
    """
    current = Metadata(base)

    for node in chain:
        source = node.metadata
        if source is None:
            continue

        if isinstance(source, Mapping):
            current = current.merged(source)
            continue

        try:
            kwargs = resolve_kwargs(
                source,
                params=params,
                navigation=navigation,
                provided={"parent": current},
            )
            result = await invoke(source, **kwargs)
        except Exception as exc:
            msg = f"Metadata for {node.pattern} could not be resolved: {exc}"
            raise MetadataResolutionError(msg, partial=current) from exc

        if not isinstance(result, Mapping):
            msg = (
                f"Metadata resolver for {node.pattern} returned "
                f"{type(result).__name__}, expected a mapping"
            )
            raise MetadataResolutionError(msg, partial=current)

        logger.debug("Resolved dynamic metadata for %s", node.pattern)
        current = current.merged(result)

    return current


def static_metadata(
    chain: Sequence[RouteNode],
    *,
    base: Mapping[str, Any] | None = None,
) -> Metadata:
    """Merge only the static metadata along *chain*, skipping resolvers.

    Available before any dynamic resolver has run, e.g. for the shell
    rendered while content is still loading.
    """
    current = Metadata(base)
    for node in chain:
        if isinstance(node.metadata, Mapping):
            current = current.merged(node.metadata)
    return current
