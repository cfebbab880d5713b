"""Route patterns, segments, and parameter bindings.

A route pattern is written the way its directory would be named on disk::

    "/products"                 -> [static("products")]
    "/products/[slug]"          -> [static("products"), dynamic("slug")]
    "/filter/[[...slug]]"       -> [static("filter"), optional_catch_all("slug")]
    "/(marketing)/about"        -> [group("marketing"), static("about")]

Group segments organise routes (and their layouts) without consuming a
path segment.  Patterns are parsed once at startup; malformed patterns
raise ``ConfigurationError`` here rather than at request time.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from urllib.parse import unquote

from trellis.errors import ConfigurationError

_DYNAMIC_RE = re.compile(r"^\[([A-Za-z_]\w*)\]$")
_CATCH_ALL_RE = re.compile(r"^\[\[\.\.\.([A-Za-z_]\w*)\]\]$")
_REQUIRED_CATCH_ALL_RE = re.compile(r"^\[\.\.\.(\w*)\]$")
_GROUP_RE = re.compile(r"^\(([^()/]+)\)$")


class SegmentKind(Enum):
    """How a pattern segment matches path segments."""

    STATIC = "static"
    DYNAMIC = "dynamic"
    OPTIONAL_CATCH_ALL = "optional_catch_all"
    GROUP = "group"


# Lower rank wins at the same position.
_RANK = {
    SegmentKind.STATIC: 0,
    SegmentKind.DYNAMIC: 1,
    SegmentKind.OPTIONAL_CATCH_ALL: 2,
}


@dataclass(frozen=True, slots=True)
class Segment:
    """A parsed segment of a route pattern.

    Static:            ``products``     (name="products")
    Dynamic:           ``[slug]``       (name="slug")
    Optional catch-all: ``[[...slug]]`` (name="slug")
    Group:             ``(marketing)``  (name="marketing")
    """

    kind: SegmentKind
    name: str

    @property
    def is_param(self) -> bool:
        return self.kind in (SegmentKind.DYNAMIC, SegmentKind.OPTIONAL_CATCH_ALL)

    @property
    def shape(self) -> str:
        """The segment with any parameter name erased."""
        if self.kind is SegmentKind.DYNAMIC:
            return "[]"
        if self.kind is SegmentKind.OPTIONAL_CATCH_ALL:
            return "[[...]]"
        return str(self)

    def __str__(self) -> str:
        if self.kind is SegmentKind.DYNAMIC:
            return f"[{self.name}]"
        if self.kind is SegmentKind.OPTIONAL_CATCH_ALL:
            return f"[[...{self.name}]]"
        if self.kind is SegmentKind.GROUP:
            return f"({self.name})"
        return self.name


def parse_segment(part: str, *, pattern: str = "") -> Segment:
    """Parse one directory-style segment name.

    Raises ``ConfigurationError`` for bracket syntax that isn't one of the
    supported forms.
    """
    if match := _CATCH_ALL_RE.match(part):
        return Segment(SegmentKind.OPTIONAL_CATCH_ALL, match.group(1))
    if match := _DYNAMIC_RE.match(part):
        return Segment(SegmentKind.DYNAMIC, match.group(1))
    if match := _GROUP_RE.match(part):
        return Segment(SegmentKind.GROUP, match.group(1))
    if _REQUIRED_CATCH_ALL_RE.match(part):
        msg = (
            f"Route pattern {pattern or part!r}: required catch-all segment {part!r} "
            "is not supported. Use an optional catch-all ([[...name]])."
        )
        raise ConfigurationError(msg)
    if any(ch in part for ch in "[]()"):
        msg = (
            f"Route pattern {pattern or part!r}: malformed segment {part!r}. "
            "Expected name, [param], [[...param]] or (group)."
        )
        raise ConfigurationError(msg)
    return Segment(SegmentKind.STATIC, part)


def parse_pattern(pattern: str) -> RoutePattern:
    """Parse a route pattern string into a ``RoutePattern``.

    Raises ``ConfigurationError`` if a catch-all is not the last segment or
    a parameter name appears twice.

    Examples::

        parse_pattern("/")                   -> RoutePattern(())
        parse_pattern("/products/[slug]")    -> static, dynamic
        parse_pattern("/a/[[...rest]]/b")    -> ConfigurationError
    """
    parts = [p for p in pattern.strip("/").split("/") if p]
    segments = tuple(parse_segment(part, pattern=pattern) for part in parts)

    seen: set[str] = set()
    for i, seg in enumerate(segments):
        if seg.kind is SegmentKind.OPTIONAL_CATCH_ALL and i != len(segments) - 1:
            msg = f"Route pattern {pattern!r}: catch-all segment {seg} must be the last segment."
            raise ConfigurationError(msg)
        if seg.is_param:
            if seg.name in seen:
                msg = f"Route pattern {pattern!r}: duplicate parameter name {seg.name!r}."
                raise ConfigurationError(msg)
            seen.add(seg.name)

    return RoutePattern(segments)


def split_path(path: str) -> list[str]:
    """Split a concrete URL path into non-empty, percent-decoded segments.

    The query string and fragment, if present, are ignored.  A trailing
    slash doesn't produce an empty segment.
    """
    path = path.split("?", 1)[0].split("#", 1)[0]
    return [unquote(p) for p in path.split("/") if p]


class ParamBindings(Mapping[str, str | tuple[str, ...]]):
    """Immutable parameter bindings for one matched request.

    Dynamic segments bind a ``str``; an optional catch-all binds a
    ``tuple[str, ...]`` that may be empty.
    """

    __slots__ = ("_data",)

    _data: dict[str, str | tuple[str, ...]]

    def __init__(self, data: Mapping[str, str | tuple[str, ...]] | None = None) -> None:
        object.__setattr__(self, "_data", dict(data or {}))

    def __getitem__(self, key: str) -> str | tuple[str, ...]:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __setattr__(self, name: str, value: object) -> None:
        msg = "ParamBindings is immutable"
        raise AttributeError(msg)

    def __repr__(self) -> str:
        return f"ParamBindings({self._data!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return dict(self._data) == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(sorted(self._data.items())))

    def merged(self, extra: Mapping[str, str | tuple[str, ...]]) -> ParamBindings:
        """Return new bindings with *extra* added on top."""
        return ParamBindings({**self._data, **extra})


@dataclass(frozen=True, slots=True)
class RoutePattern:
    """An ordered, immutable sequence of pattern segments."""

    segments: tuple[Segment, ...] = ()

    def __str__(self) -> str:
        if not self.segments:
            return "/"
        return "/" + "/".join(str(seg) for seg in self.segments)

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(seg.name for seg in self.segments if seg.is_param)

    @property
    def matchable(self) -> tuple[Segment, ...]:
        """Segments that take part in matching (groups removed)."""
        return tuple(seg for seg in self.segments if seg.kind is not SegmentKind.GROUP)

    @property
    def specificity(self) -> tuple[int, ...]:
        """Ordering key: sorts most-specific patterns first.

        Compared position by position: static beats dynamic beats
        catch-all.  A longer static prefix therefore sorts earlier.
        """
        return tuple(_RANK[seg.kind] for seg in self.matchable)

    def match(self, path: str | list[str]) -> ParamBindings | None:
        """Match a concrete path, returning bindings or ``None``.

        Proceeds segment by segment without backtracking; the optional
        catch-all greedily consumes whatever remains (possibly nothing).
        """
        parts = split_path(path) if isinstance(path, str) else path
        bindings: dict[str, str | tuple[str, ...]] = {}
        index = 0

        for seg in self.matchable:
            if seg.kind is SegmentKind.OPTIONAL_CATCH_ALL:
                bindings[seg.name] = tuple(parts[index:])
                return ParamBindings(bindings)
            if index >= len(parts):
                return None
            part = parts[index]
            if seg.kind is SegmentKind.STATIC:
                if part != seg.name:
                    return None
            else:
                bindings[seg.name] = part
            index += 1

        if index != len(parts):
            return None
        return ParamBindings(bindings)


def best_match(
    patterns: list[RoutePattern] | tuple[RoutePattern, ...],
    path: str,
) -> tuple[RoutePattern, ParamBindings] | None:
    """Return the most specific pattern matching *path*, with its bindings."""
    parts = split_path(path)
    for pattern in sorted(patterns, key=lambda p: p.specificity):
        bindings = pattern.match(parts)
        if bindings is not None:
            return pattern, bindings
    return None
