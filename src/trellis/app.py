"""Trellis application class.

Mutable during setup (route declarations, pages mounting, reporters).
Frozen on the first render, when the route table is compiled.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import AsyncIterator, Callable, Mapping
from pathlib import Path
from typing import Any

from kida import Environment

from trellis._internal.invoke import invoke
from trellis.config import AppConfig
from trellis.errors import ContentError, MatchError
from trellis.metadata import static_metadata
from trellis.navigation import NavigationContext, NavigationLog
from trellis.pages.compose import compose
from trellis.pages.resolve import resolve_kwargs
from trellis.pages.types import (
    ErrorHandler,
    LayoutHandler,
    LoadingHandler,
    MetadataSource,
    NotFoundHandler,
    NotFoundRoute,
    PageHandler,
    RouteDefinition,
    RouteMatch,
)
from trellis.rendering.lifecycle import (
    ErrorReporter,
    Errored,
    RenderController,
    log_error,
)
from trellis.rendering.result import RenderResult
from trellis.routing.table import RouteTable
from trellis.templating.integration import create_environment, render_output

logger = logging.getLogger("trellis.render")


class App:
    """The trellis application.

    Mutable during setup (route declarations, pages mounting, reporters).
    Frozen when ``render()`` or ``stream()`` is first invoked.

    Thread safety:
        The freeze transition uses a Lock + double-check so exactly one
        caller compiles the route table, even when the first renders
        arrive concurrently.  After that the table is read-only.
    """

    __slots__ = (
        "_custom_kida_env",
        "_definitions",
        "_freeze_lock",
        "_frozen",
        "_kida_env",
        "_mounted_dirs",
        "_reporters",
        # Compiled state (populated by _freeze)
        "_table",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        kida_env: Environment | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._definitions: list[RouteDefinition] = []
        self._mounted_dirs: set[Path] = set()
        self._reporters: list[ErrorReporter] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._custom_kida_env: Environment | None = kida_env

        self._table: RouteTable | None = None
        self._kida_env: Environment | None = None

    # -- Route declaration --

    def route(
        self,
        pattern: str,
        *,
        page: PageHandler | None = None,
        layout: LayoutHandler | None = None,
        layout_config: Mapping[str, Any] | None = None,
        loading: LoadingHandler | None = None,
        error: ErrorHandler | None = None,
        not_found: NotFoundHandler | None = None,
        metadata: MetadataSource | None = None,
    ) -> None:
        """Declare a route pattern and (part of) its handler bundle.

        A pattern may be declared several times as long as each bundle
        slot is filled only once::

            app.route("/", layout=root_layout, not_found=missing)
            app.route("/products/[slug]", page=product_details)
        """
        self._check_not_frozen()
        self._definitions.append(
            RouteDefinition(
                pattern=pattern,
                page=page,
                layout=layout,
                layout_config=dict(layout_config or {}),
                loading=loading,
                error=error,
                not_found=not_found,
                metadata=metadata,
            )
        )

    def page(
        self,
        pattern: str,
        *,
        metadata: MetadataSource | None = None,
    ) -> Callable[[PageHandler], PageHandler]:
        """Decorator form of ``route(pattern, page=...)``.

        Usage::

            @app.page("/products/[slug]")
            async def product(slug: str):
                return f"<h2>Product Details Page - {slug}</h2>"
        """

        def decorator(func: PageHandler) -> PageHandler:
            self.route(pattern, page=func, metadata=metadata)
            return func

        return decorator

    def mount_pages(self, pages_dir: str | Path | None = None) -> None:
        """Mount a filesystem-based pages directory.

        Walks the directory and declares a route for every directory
        containing ``page.py``, ``layout.py``, ``loading.py``,
        ``error.py`` or ``not_found.py``.

        Args:
            pages_dir: Path to the pages directory.  Defaults to
                ``config.pages_dir``, then ``"pages"``.
        """
        from trellis.pages.discovery import discover_routes

        self._check_not_frozen()
        pages_dir = pages_dir or self.config.pages_dir or "pages"
        resolved = Path(pages_dir).resolve()
        if resolved in self._mounted_dirs:
            return
        self._definitions.extend(discover_routes(resolved))
        self._mounted_dirs.add(resolved)

    def on_error(self, func: ErrorReporter) -> ErrorReporter:
        """Register an error reporter, called whenever a render attempt errors.

        Reporters run before the error fallback renders.  A reporter that
        raises is logged and doesn't affect the render.

        Usage::

            @app.on_error
            def report(error: BaseException, attempt: int) -> None:
                tracker.capture(error)
        """
        self._check_not_frozen()
        self._reporters.append(func)
        return func

    # -- Rendering --

    @property
    def table(self) -> RouteTable:
        """The compiled route table (freezes the app)."""
        self._ensure_frozen()
        table = self._table
        if table is None:
            msg = "Route table is not compiled"
            raise RuntimeError(msg)
        return table

    async def render(self, url: str) -> RenderResult:
        """Render *url* to its terminal result.

        Returns a 404 result for unmatched paths, a 500 result when the
        page errors (with the error fallback, or the generic error body
        when the chain has none), otherwise a 200 result.
        """
        self._ensure_frozen()
        navigations = NavigationLog()
        navigation = NavigationContext.from_url(url, navigations)

        try:
            resolution = self.table.resolve(navigation.path)
        except MatchError:
            logger.info("404 %s", navigation.path)
            return RenderResult(status=404, html=self.config.not_found_body)

        if isinstance(resolution, NotFoundRoute):
            return await self._render_not_found(resolution, navigation, navigations)

        # One log per attempt: a retried result only reports its own intents
        logs: list[NavigationLog] = []

        def fresh_navigation() -> NavigationContext:
            log = NavigationLog()
            logs.append(log)
            return NavigationContext.from_url(url, log)

        controller = self._controller(resolution, navigation, navigation_factory=fresh_navigation)
        return await self._run_attempt(controller, resolution, logs)

    async def stream(self, url: str) -> AsyncIterator[str]:
        """Render *url* as a sequence of HTML chunks.

        When the route has a loading fallback, the shell is yielded
        first and the terminal output follows once the content settles.
        """
        self._ensure_frozen()
        navigation = NavigationContext.from_url(url)

        try:
            resolution = self.table.resolve(navigation.path)
        except MatchError:
            logger.info("404 %s", navigation.path)
            yield self.config.not_found_body
            return

        if isinstance(resolution, NotFoundRoute):
            result = await self._render_not_found(resolution, navigation, NavigationLog())
            yield result.html
            return

        controller = self._controller(resolution, navigation)
        try:
            async for frame in controller.stream():
                yield frame.html
        except ContentError:
            logger.error("500 %s: no error fallback on the route chain", navigation.path)
            yield self.config.error_body

    # -- Internal --

    def _controller(
        self,
        match: RouteMatch,
        navigation: NavigationContext,
        *,
        navigation_factory: Callable[[], NavigationContext] | None = None,
    ) -> RenderController:
        return RenderController(
            compose(match.chain),
            match.params,
            navigation=navigation,
            navigation_factory=navigation_factory,
            env=self._kida_env,
            reporter=self._report,
            base_metadata=self.config.default_metadata,
        )

    async def _run_attempt(
        self,
        controller: RenderController,
        match: RouteMatch,
        logs: list[NavigationLog],
    ) -> RenderResult:
        pattern = str(match.pattern)

        async def retry() -> RenderResult:
            return await self._run_attempt(controller, match, logs)

        try:
            frame = await controller.render()
        except ContentError as exc:
            logger.error("500 %s: no error fallback on the route chain", match.path)
            attempt = controller.attempt
            return RenderResult(
                status=500,
                html=self.config.error_body,
                metadata=static_metadata(match.chain, base=self.config.default_metadata),
                state=controller.state or Errored(exc),
                pattern=pattern,
                attempt=attempt.number if attempt is not None else 0,
                navigations=logs[-1].paths if logs else (),
                _retry=retry,
            )

        if frame is None:
            msg = f"Render of {match.path} was abandoned before it settled"
            raise RuntimeError(msg)
        errored = isinstance(frame.state, Errored)
        return RenderResult(
            status=500 if errored else 200,
            html=frame.html,
            metadata=frame.metadata,
            state=frame.state,
            pattern=pattern,
            attempt=frame.attempt,
            navigations=logs[-1].paths if logs else (),
            _retry=retry if errored else None,
        )

    async def _render_not_found(
        self,
        route: NotFoundRoute,
        navigation: NavigationContext,
        navigations: NavigationLog,
    ) -> RenderResult:
        logger.info("404 %s (fallback at %s)", route.path, route.node.pattern)
        handler = route.node.not_found
        metadata = static_metadata(route.chain, base=self.config.default_metadata)
        pattern = str(route.node.pattern)
        try:
            kwargs = resolve_kwargs(handler, params=route.params, navigation=navigation)
            inner = render_output(await invoke(handler, **kwargs), self._kida_env)
            html = await compose(route.chain).render(
                inner,
                params=route.params,
                boundary=route.node,
                navigation=navigation,
                metadata=metadata,
                env=self._kida_env,
            )
        except Exception as exc:
            logger.error("500 %s: not-found fallback at %s failed", route.path, pattern)
            self._report(exc, 1)
            return RenderResult(
                status=500,
                html=self.config.error_body,
                metadata=metadata,
                state=Errored(exc),
                pattern=pattern,
                attempt=1,
                navigations=navigations.paths,
            )
        return RenderResult(
            status=404,
            html=html,
            metadata=metadata,
            pattern=pattern,
            navigations=navigations.paths,
        )

    def _report(self, error: BaseException, attempt: int) -> None:
        if not self._reporters:
            log_error(error, attempt)
            return
        for reporter in self._reporters:
            try:
                reporter(error, attempt)
            except Exception:
                logger.exception("Error reporter %r failed", reporter)

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        # 1. Mount the configured pages directory, if not mounted explicitly
        if self.config.pages_dir is not None:
            self.mount_pages(self.config.pages_dir)

        # 2. Compile route table (raises ConfigurationError on bad routes)
        self._table = RouteTable.from_routes(self._definitions)

        # 3. Initialize kida environment
        if self._custom_kida_env is not None:
            self._kida_env = self._custom_kida_env
        else:
            self._kida_env = create_environment(self.config)

        self._frozen = True
        logger.debug("App frozen with %d routes", len(self._table.routes))

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started rendering. "
                "Declare routes and mount pages before the first render."
            )
            raise RuntimeError(msg)
