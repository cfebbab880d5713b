"""Handler argument resolution.

Pages, metadata resolvers, layouts and fallbacks all declare what they
need through their signature.  Resolution priority for each parameter:

1. Explicitly provided values (``children``, ``config``, ``error``, ``retry``)
2. ``params`` — the full ``ParamBindings``
3. ``navigation`` / ``NavigationContext`` annotation
4. ``search_params`` / ``SearchParams`` (or ``MultiValueMapping``) annotation
5. Individual path parameters by name, with annotation-based coercion
"""

from __future__ import annotations

import inspect
import typing
from collections.abc import Callable, Mapping
from typing import Any

from trellis._internal.multimap import MultiValueMapping
from trellis.errors import ParamBindingError
from trellis.http.query import SearchParams
from trellis.navigation import NavigationContext


def resolve_kwargs(
    func: Callable[..., Any],
    *,
    params: Mapping[str, str | tuple[str, ...]],
    navigation: NavigationContext | None = None,
    provided: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build keyword arguments for *func* from its signature.

    Parameters the function doesn't declare are never passed, so a
    ``def loading()`` and a ``def page(slug: str, navigation)`` can both
    be called through the same path.  A ``**kwargs`` parameter receives
    every path parameter by name.

    Raises ``ParamBindingError`` when a path parameter can't be coerced
    to the annotated type.
    """
    provided = provided or {}
    sig = inspect.signature(func, eval_str=True)
    kwargs: dict[str, Any] = {}
    accepts_var_kw = False

    for name, param in sig.parameters.items():
        if param.kind is inspect.Parameter.VAR_KEYWORD:
            accepts_var_kw = True
            continue
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            continue
        annotation = param.annotation

        if name in provided:
            kwargs[name] = provided[name]
        elif name == "params":
            kwargs[name] = params
        elif name == "navigation" or annotation is NavigationContext:
            if navigation is not None:
                kwargs[name] = navigation
        elif name == "search_params" or annotation in (SearchParams, MultiValueMapping):
            kwargs[name] = navigation.search_params if navigation is not None else SearchParams()
        elif name in params:
            kwargs[name] = coerce_param(name, params[name], annotation)

    if accepts_var_kw:
        for name, value in params.items():
            kwargs.setdefault(name, value)

    return kwargs


def coerce_param(name: str, value: str | tuple[str, ...], annotation: Any) -> Any:
    """Convert a bound path parameter to its annotated type.

    ``str`` and unannotated parameters pass through.  Catch-all values
    (tuples) become lists when annotated as ``list``.  Only concrete
    classes are used as converters; unions and other typing forms pass
    the raw value through.
    """
    if isinstance(value, tuple):
        origin = typing.get_origin(annotation) or annotation
        if origin is list:
            return list(value)
        return value

    if annotation is inspect.Parameter.empty or annotation is str:
        return value
    if not isinstance(annotation, type):
        return value
    try:
        return annotation(value)
    except (ValueError, TypeError) as exc:
        raise ParamBindingError(name, value, annotation) from exc
