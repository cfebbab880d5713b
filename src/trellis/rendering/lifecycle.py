"""Render lifecycle — Pending, then exactly one of Ready or Errored.

One ``RenderController`` drives the render of one matched route.  Each
run is an *attempt*:

1. The attempt starts ``Pending``.  If the chain has a loading fallback,
   the shell (layouts at or above the fallback, fallback in the page
   position) is yielded first.  Without one, nothing is yielded until
   the attempt settles.
2. Metadata is resolved and the page's content-producing step runs.
3. The attempt settles exactly once:

   - ``Ready(content)``: the page output, wrapped in every layout.
   - ``Errored(error)``: the nearest error fallback, wrapped only in the
     layouts at or above it.  The fallback gets the error and a
     ``Retry``; calling it starts a fresh attempt with the same inputs.

An attempt abandoned while pending (the consumer stops iterating, the
surrounding scope is cancelled, or ``abandon()`` is called) is released
without settling and without being reported as a failure.

Usage::

    controller = RenderController(compose(match.chain), match.params)
    async for frame in controller.stream():
        send(frame.html)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeAlias

import anyio

from trellis._internal.invoke import invoke
from trellis.errors import ContentError, LayoutError, MetadataResolutionError
from trellis.metadata import Metadata, resolve_metadata, static_metadata
from trellis.pages.resolve import resolve_kwargs
from trellis.templating.integration import render_output

if TYPE_CHECKING:
    from kida import Environment

    from trellis.navigation import NavigationContext
    from trellis.pages.compose import ComposedTree
    from trellis.pages.types import RouteNode

logger = logging.getLogger("trellis.render")


# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Pending:
    """The content-producing step has started but not completed."""


@dataclass(frozen=True, slots=True)
class Ready:
    """The content-producing step completed; *content* is the page output."""

    content: str


@dataclass(frozen=True, slots=True)
class Errored:
    """The content-producing step raised *error*."""

    error: BaseException


RenderState: TypeAlias = Pending | Ready | Errored

# Observability hook: receives the error and the attempt number
ErrorReporter: TypeAlias = Callable[[BaseException, int], Any]


class RenderAttempt:
    """One execution of the content-producing step.

    Settles at most once.  A second terminal transition is a bug in the
    controller and raises ``RuntimeError``.
    """

    __slots__ = ("abandoned", "number", "state")

    def __init__(self, number: int) -> None:
        self.number = number
        self.state: RenderState = Pending()
        self.abandoned = False

    def __repr__(self) -> str:
        return f"<RenderAttempt #{self.number} {type(self.state).__name__}>"

    @property
    def settled(self) -> bool:
        return not isinstance(self.state, Pending)

    def settle(self, state: Ready | Errored) -> None:
        if self.settled:
            msg = f"Render attempt #{self.number} already settled as {type(self.state).__name__}"
            raise RuntimeError(msg)
        if self.abandoned:
            msg = f"Render attempt #{self.number} was abandoned"
            raise RuntimeError(msg)
        self.state = state

    def abandon(self) -> None:
        if not self.settled:
            self.abandoned = True


@dataclass(frozen=True, slots=True)
class RenderFrame:
    """A chunk of rendered output and the state it was rendered in.

    Attributes:
        html: The composed output.
        state: ``Pending`` for the loading shell, else the terminal state.
        attempt: Attempt number (1-based).
        metadata: Metadata known when the frame was rendered.
        boundary: Pattern of the node whose fallback fills the page
            position, or ``None`` when the page itself is rendered.
    """

    html: str
    state: RenderState
    attempt: int
    metadata: Metadata = field(default_factory=Metadata)
    boundary: str | None = None

    @property
    def is_final(self) -> bool:
        return not isinstance(self.state, Pending)


class Retry:
    """Retry capability handed to an error fallback.

    Awaiting the call starts a fresh attempt with the same inputs and
    returns its terminal frame.  Retries are unlimited; any backoff or
    cap belongs to the fallback's own logic.
    """

    __slots__ = ("_controller", "failed_attempt")

    def __init__(self, controller: RenderController, failed_attempt: int) -> None:
        self._controller = controller
        self.failed_attempt = failed_attempt

    def __repr__(self) -> str:
        return f"<Retry after attempt #{self.failed_attempt}>"

    async def __call__(self) -> RenderFrame | None:
        return await self._controller.retry()


def log_error(error: BaseException, attempt: int) -> None:
    """Default ``ErrorReporter``: log the failure with its traceback."""
    logger.error(
        "Render attempt #%d failed: %s",
        attempt,
        error,
        exc_info=(type(error), error, error.__traceback__),
    )


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


class RenderController:
    """Drives render attempts for one matched route.

    Owns its attempts exclusively; never shared between requests.
    """

    __slots__ = (
        "_attempts",
        "_base_metadata",
        "_env",
        "_navigation",
        "_navigation_factory",
        "_reporter",
        "_scope",
        "params",
        "tree",
    )

    def __init__(
        self,
        tree: ComposedTree,
        params: Mapping[str, str | tuple[str, ...]],
        *,
        navigation: NavigationContext | None = None,
        navigation_factory: Callable[[], NavigationContext] | None = None,
        env: Environment | None = None,
        reporter: ErrorReporter | None = None,
        base_metadata: Mapping[str, Any] | None = None,
    ) -> None:
        self.tree = tree
        self.params = params
        self._navigation = navigation
        # Called at the start of every attempt so retries get a fresh context
        self._navigation_factory = navigation_factory
        self._env = env
        self._reporter = reporter or log_error
        self._base_metadata = base_metadata
        self._attempts: list[RenderAttempt] = []
        self._scope: anyio.CancelScope | None = None

    @property
    def attempts(self) -> tuple[RenderAttempt, ...]:
        return tuple(self._attempts)

    @property
    def attempt(self) -> RenderAttempt | None:
        """The most recent attempt, or ``None`` before the first run."""
        return self._attempts[-1] if self._attempts else None

    @property
    def state(self) -> RenderState | None:
        attempt = self.attempt
        return attempt.state if attempt is not None else None

    async def render(self) -> RenderFrame | None:
        """Run one attempt to completion and return its terminal frame.

        Returns ``None`` if the attempt was abandoned.
        """
        final: RenderFrame | None = None
        async for frame in self.stream():
            if frame.is_final:
                final = frame
        return final

    async def retry(self) -> RenderFrame | None:
        """Discard the errored attempt and run a fresh one.

        Raises ``RuntimeError`` unless the latest attempt is ``Errored``.
        """
        attempt = self.attempt
        if attempt is None or not isinstance(attempt.state, Errored):
            msg = "retry() is only available after an attempt has errored"
            raise RuntimeError(msg)
        logger.debug("Retrying render after attempt #%d", attempt.number)
        return await self.render()

    def abandon(self) -> None:
        """Release the pending attempt without settling it."""
        attempt = self.attempt
        if attempt is None or attempt.settled:
            return
        attempt.abandon()
        if self._scope is not None:
            self._scope.cancel()

    async def stream(self) -> AsyncIterator[RenderFrame]:
        """Start a new attempt and yield its frames.

        Yields the loading shell (if the chain has a loading fallback),
        then one terminal frame.  Raises ``ContentError`` when the
        attempt errors and no error fallback can contain it.
        """
        current = self.attempt
        if current is not None and not current.settled and not current.abandoned:
            msg = f"Render attempt #{current.number} is still pending"
            raise RuntimeError(msg)

        attempt = RenderAttempt(len(self._attempts) + 1)
        self._attempts.append(attempt)
        if self._navigation_factory is not None:
            self._navigation = self._navigation_factory()
        shell_metadata = static_metadata(self.tree.chain, base=self._base_metadata)

        try:
            loading = self.tree.loading_boundary
            if loading is not None:
                try:
                    shell = await self._render_loading(loading, shell_metadata)
                except Exception as exc:
                    # A failing loading fallback counts as failing content.
                    above = exc.depth if isinstance(exc, LayoutError) else loading.depth + 1
                    yield await self._fail(attempt, exc, shell_metadata, above=above)
                    return
                if attempt.abandoned:
                    return
                yield RenderFrame(
                    html=shell,
                    state=attempt.state,
                    attempt=attempt.number,
                    metadata=shell_metadata,
                    boundary=str(loading.pattern),
                )

            metadata = shell_metadata
            outcome: tuple[str, str] | BaseException
            with anyio.CancelScope() as scope:
                self._scope = scope
                try:
                    metadata = await resolve_metadata(
                        self.tree.chain,
                        self.params,
                        navigation=self._navigation,
                        base=self._base_metadata,
                    )
                    outcome = await self._render_content(metadata)
                except MetadataResolutionError as exc:
                    metadata = Metadata(exc.partial)
                    outcome = exc
                except Exception as exc:
                    outcome = exc
            self._scope = None

            if scope.cancelled_caught or attempt.abandoned:
                attempt.abandon()
                logger.debug("Render attempt #%d abandoned", attempt.number)
                return

            if isinstance(outcome, BaseException):
                above = outcome.depth if isinstance(outcome, LayoutError) else None
                yield await self._fail(attempt, outcome, metadata, above=above)
                return

            content, html = outcome
            attempt.settle(Ready(content))
            yield RenderFrame(
                html=html,
                state=attempt.state,
                attempt=attempt.number,
                metadata=metadata,
            )
        finally:
            self._scope = None
            if not attempt.settled and not attempt.abandoned:
                attempt.abandon()
                logger.debug("Render attempt #%d abandoned", attempt.number)

    # -- Internal --

    async def _render_loading(self, boundary: RouteNode, metadata: Metadata) -> str:
        kwargs = resolve_kwargs(boundary.loading, params=self.params, navigation=self._navigation)
        inner = render_output(await invoke(boundary.loading, **kwargs), self._env)
        return await self._wrap(inner, boundary=boundary, metadata=metadata)

    async def _render_content(self, metadata: Metadata) -> tuple[str, str]:
        page = self.tree.leaf.page
        if page is None:
            msg = f"Route {self.tree.leaf.pattern} has no page"
            raise ContentError(msg)
        kwargs = resolve_kwargs(page, params=self.params, navigation=self._navigation)
        content = render_output(await invoke(page, **kwargs), self._env)
        html = await self._wrap(content, boundary=None, metadata=metadata)
        return content, html

    async def _wrap(self, inner: str, *, boundary: RouteNode | None, metadata: Metadata) -> str:
        return await self.tree.render(
            inner,
            params=self.params,
            boundary=boundary,
            navigation=self._navigation,
            metadata=metadata,
            env=self._env,
        )

    async def _fail(
        self,
        attempt: RenderAttempt,
        error: BaseException,
        metadata: Metadata,
        *,
        above: int | None,
    ) -> RenderFrame:
        """Settle *attempt* as Errored and render the nearest error fallback.

        If a fallback (or a layout around it) fails too, the next fallback
        further out takes over.  Raises ``ContentError`` when none is left.
        """
        attempt.settle(Errored(error))
        self._report(error, attempt.number)

        retry = Retry(self, attempt.number)
        failure: BaseException = error
        boundary = self.tree.error_boundary(above=above)
        while boundary is not None:
            try:
                kwargs = resolve_kwargs(
                    boundary.error,
                    params=self.params,
                    navigation=self._navigation,
                    provided={"error": error, "retry": retry},
                )
                inner = render_output(await invoke(boundary.error, **kwargs), self._env)
                html = await self._wrap(inner, boundary=boundary, metadata=metadata)
            except Exception as exc:
                logger.warning("Error fallback at %s failed: %s", boundary.pattern, exc)
                failure = exc
                limit = exc.depth if isinstance(exc, LayoutError) else boundary.depth
                boundary = self.tree.error_boundary(above=min(limit, boundary.depth))
                continue
            return RenderFrame(
                html=html,
                state=attempt.state,
                attempt=attempt.number,
                metadata=metadata,
                boundary=str(boundary.pattern),
            )

        if isinstance(error, ContentError) and failure is error:
            raise error
        msg = f"Render of {self.tree.leaf.pattern} failed: {error}"
        raise ContentError(msg) from failure

    def _report(self, error: BaseException, attempt: int) -> None:
        try:
            self._reporter(error, attempt)
        except Exception:
            logger.exception("Error reporter failed for attempt #%d", attempt)
