"""RenderResult — what ``App.render()`` hands back to the surrounding runtime."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from trellis.metadata import Metadata
from trellis.rendering.lifecycle import Errored, Ready, RenderState


@dataclass(frozen=True, slots=True)
class RenderResult:
    """The terminal outcome of rendering one URL.

    Attributes:
        status: 200 (page rendered), 404 (not-found fallback or generic
            body), or 500 (error fallback or generic body).
        html: Composed output.
        metadata: Merged metadata for the rendered route.
        state: Terminal render state, or ``None`` for not-found results.
        pattern: Pattern of the route that answered, if any.
        attempt: Attempt number that produced this result.
        navigations: Paths requested through ``NavigationContext.navigate()``
            during the render, in order.
    """

    status: int
    html: str
    metadata: Metadata = field(default_factory=Metadata)
    state: RenderState | None = None
    pattern: str | None = None
    attempt: int = 0
    navigations: tuple[str, ...] = ()
    _retry: Callable[[], Awaitable[RenderResult]] | None = field(
        default=None, repr=False, compare=False
    )

    @property
    def ok(self) -> bool:
        return isinstance(self.state, Ready)

    @property
    def error(self) -> BaseException | None:
        return self.state.error if isinstance(self.state, Errored) else None

    @property
    def can_retry(self) -> bool:
        return self._retry is not None

    async def retry(self) -> RenderResult:
        """Run a fresh attempt for the same URL (errored results only)."""
        if self._retry is None:
            msg = "Only errored renders can be retried"
            raise RuntimeError(msg)
        return await self._retry()
