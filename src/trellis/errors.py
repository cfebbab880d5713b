"""Trellis exception hierarchy.

Shared across the route table, metadata resolver, render controller and
app so every module raises and catches the same types.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class TrellisError(Exception):
    """Base for all trellis-specific errors."""


class ConfigurationError(TrellisError):
    """Raised when route declarations or app configuration are invalid.

    Always surfaces at startup (``RouteTable.from_routes`` or
    ``App._freeze()``), never while a request is being rendered.
    """


class MatchError(TrellisError):
    """No route matches the path and no not-found fallback exists on the chain.

    Terminal: surfaced to the caller of ``RouteTable.resolve()``.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"No route matches {path!r}")


class ContentError(TrellisError):
    """A page's content-producing step failed.

    Recovered by the nearest error fallback on the route chain.  Only
    propagates past the render controller when the chain has no error
    fallback at all.
    """


class ParamBindingError(ContentError):
    """A bound parameter could not be coerced to its annotated type.

    Matching itself never fails to bind; this only happens when a handler
    annotates a parameter (``id: int``) and the path segment doesn't convert.
    """

    def __init__(self, name: str, value: str, annotation: Any) -> None:
        self.name = name
        self.value = value
        self.annotation = annotation
        type_name = getattr(annotation, "__name__", repr(annotation))
        super().__init__(f"Parameter {name!r}={value!r} is not a valid {type_name}")


class MetadataResolutionError(ContentError):
    """A dynamic metadata resolver failed.

    Treated as a ``ContentError`` for the same route.  ``partial`` holds
    the metadata merged from the ancestors that resolved before the failure.
    """

    def __init__(self, message: str, *, partial: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.partial: Mapping[str, Any] = partial or {}


class LayoutError(ContentError):
    """A layout raised while wrapping its child output.

    ``depth`` is the failing layout's position in the chain, so the error
    is contained by a fallback *above* that layout rather than beside it.
    """

    def __init__(self, message: str, *, depth: int) -> None:
        super().__init__(message)
        self.depth = depth
