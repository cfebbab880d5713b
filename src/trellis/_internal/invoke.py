"""Await-if-needed calls into user handlers.

Every bundle handler of a route node may be written with ``def`` or
``async def``: the page and loading fallback (called by the render
controller), the error fallback (the controller's boundary walk), layouts
(the composer's wrap loop), ``generate_metadata`` (the metadata resolver)
and the not-found fallback (``App`` when no page answers a path).  All of
them go through ``invoke`` with keyword arguments already chosen by
``resolve_kwargs``.
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *handler*; await its result when it returns an awaitable.

    ::

        html = await invoke(node.page, slug="7")
        meta = await invoke(generate_metadata, slug="7")
    """
    outcome = handler(*args, **kwargs)
    if inspect.isawaitable(outcome):
        return await outcome
    return outcome
