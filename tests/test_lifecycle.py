"""Tests for trellis.rendering.lifecycle — Pending / Ready / Errored with retry."""

import logging

import anyio
import pytest

from trellis.errors import ContentError, MetadataResolutionError
from trellis.navigation import NavigationContext
from trellis.pages.compose import compose
from trellis.pages.types import RouteDefinition
from trellis.rendering.lifecycle import (
    Errored,
    Pending,
    Ready,
    RenderAttempt,
    RenderController,
    Retry,
)
from trellis.routing.table import RouteTable


def _root_layout(children):
    return f"<html>{children}</html>"


def _section_layout(children):
    return f"<section>{children}</section>"


def _page():
    return "<p>content</p>"


def _loading():
    return "<p>Loading...</p>"


def _error(error, retry):
    return f"<p class='error'>{error}</p><button>retry #{retry.failed_attempt}</button>"


class Reports:
    """Collects (error, attempt) pairs passed to the reporter."""

    def __init__(self) -> None:
        self.calls: list[tuple[BaseException, int]] = []

    def __call__(self, error: BaseException, attempt: int) -> None:
        self.calls.append((error, attempt))


def _controller(*definitions: RouteDefinition, path: str, reporter=None) -> RenderController:
    match = RouteTable.from_routes(definitions).resolve(path)
    return RenderController(compose(match.chain), match.params, reporter=reporter or Reports())


async def _frames(controller: RenderController) -> list:
    return [frame async for frame in controller.stream()]


class TestRenderAttempt:
    def test_starts_pending(self) -> None:
        attempt = RenderAttempt(1)
        assert isinstance(attempt.state, Pending)
        assert not attempt.settled

    def test_settles_once(self) -> None:
        attempt = RenderAttempt(1)
        attempt.settle(Ready("x"))
        assert attempt.settled
        with pytest.raises(RuntimeError, match="already settled"):
            attempt.settle(Errored(ValueError()))

    def test_abandoned_cannot_settle(self) -> None:
        attempt = RenderAttempt(1)
        attempt.abandon()
        with pytest.raises(RuntimeError, match="abandoned"):
            attempt.settle(Ready("x"))

    def test_abandon_after_settle_is_noop(self) -> None:
        attempt = RenderAttempt(1)
        attempt.settle(Ready("x"))
        attempt.abandon()
        assert not attempt.abandoned


class TestReady:
    async def test_without_loading_single_terminal_frame(self) -> None:
        controller = _controller(
            RouteDefinition("/", layout=_root_layout),
            RouteDefinition("/a", page=_page),
            path="/a",
        )
        frames = await _frames(controller)
        assert len(frames) == 1
        assert frames[0].html == "<html><p>content</p></html>"
        assert frames[0].state == Ready("<p>content</p>")
        assert frames[0].attempt == 1
        assert frames[0].is_final

    async def test_loading_shell_first(self) -> None:
        controller = _controller(
            RouteDefinition("/", layout=_root_layout),
            RouteDefinition("/a", loading=_loading, page=_page),
            path="/a",
        )
        frames = await _frames(controller)
        assert [type(f.state) for f in frames] == [Pending, Ready]
        assert frames[0].html == "<html><p>Loading...</p></html>"
        assert frames[0].boundary == "/a"
        assert not frames[0].is_final
        assert frames[1].html == "<html><p>content</p></html>"

    async def test_loading_inherited_from_ancestor(self) -> None:
        controller = _controller(
            RouteDefinition("/", layout=_root_layout, loading=_loading),
            RouteDefinition("/a", layout=_section_layout),
            RouteDefinition("/a/b", page=_page),
            path="/a/b",
        )
        frames = await _frames(controller)
        # The shell replaces everything inside the root layout
        assert frames[0].html == "<html><p>Loading...</p></html>"
        assert frames[1].html == "<html><section><p>content</p></section></html>"

    async def test_async_page_with_params(self) -> None:
        async def page(slug):
            await anyio.sleep(0)
            return f"<h2>Product Details Page - {slug}</h2>"

        controller = _controller(RouteDefinition("/products/[slug]", page=page), path="/products/7")
        frame = await controller.render()
        assert frame.html == "<h2>Product Details Page - 7</h2>"

    async def test_metadata_on_terminal_frame(self) -> None:
        controller = _controller(
            RouteDefinition("/", metadata={"title": "Root", "description": "Site"}),
            RouteDefinition("/[slug]", page=_page, metadata=lambda slug: {"title": slug}),
            path="/shoes",
        )
        frames = await _frames(controller)
        assert frames[-1].metadata == {"title": "shoes", "description": "Site"}

    async def test_shell_has_static_metadata_only(self) -> None:
        controller = _controller(
            RouteDefinition("/", metadata={"title": "Root"}, loading=_loading),
            RouteDefinition("/[slug]", page=_page, metadata=lambda slug: {"title": slug}),
            path="/shoes",
        )
        frames = await _frames(controller)
        assert frames[0].metadata == {"title": "Root"}
        assert frames[1].metadata == {"title": "shoes"}


class TestErrored:
    async def test_nearest_error_fallback(self) -> None:
        def page():
            raise RuntimeError("Failed to fetch products")

        reports = Reports()
        controller = _controller(
            RouteDefinition("/", layout=_root_layout, error=_error),
            RouteDefinition("/a", layout=_section_layout),
            RouteDefinition("/a/b", page=page),
            path="/a/b",
            reporter=reports,
        )
        frame = await controller.render()
        assert isinstance(frame.state, Errored)
        assert str(frame.state.error) == "Failed to fetch products"
        # Section layout sits inside the boundary's region
        assert frame.html == (
            "<html><p class='error'>Failed to fetch products</p><button>retry #1</button></html>"
        )
        assert frame.boundary == "/"
        assert [(str(e), n) for e, n in reports.calls] == [("Failed to fetch products", 1)]

    async def test_errored_after_loading_shell(self) -> None:
        def page():
            raise RuntimeError("nope")

        controller = _controller(
            RouteDefinition("/a", loading=_loading, error=_error, page=page),
            path="/a",
        )
        frames = await _frames(controller)
        assert [type(f.state) for f in frames] == [Pending, Errored]

    async def test_retry_starts_fresh_attempt(self) -> None:
        calls = {"n": 0}

        def page():
            calls["n"] += 1
            if calls["n"] == 1:
                raise RuntimeError("flaky")
            return "<p>ok</p>"

        controller = _controller(RouteDefinition("/a", error=_error, page=page), path="/a")
        first = await controller.render()
        assert isinstance(first.state, Errored)

        second = await controller.retry()
        assert second.state == Ready("<p>ok</p>")
        assert second.attempt == 2
        assert [a.number for a in controller.attempts] == [1, 2]
        # The errored attempt stays errored
        assert isinstance(controller.attempts[0].state, Errored)

    async def test_retry_capability_passed_to_fallback(self) -> None:
        captured: list[Retry] = []

        def error(error, retry):
            captured.append(retry)
            return "failed"

        state = {"fail": True}

        def page():
            if state["fail"]:
                raise RuntimeError("x")
            return "ok"

        controller = _controller(RouteDefinition("/a", error=error, page=page), path="/a")
        await controller.render()
        assert captured[0].failed_attempt == 1

        state["fail"] = False
        frame = await captured[0]()
        assert frame.html == "ok"
        assert frame.attempt == 2

    async def test_each_attempt_gets_fresh_navigation(self) -> None:
        seen: list[NavigationContext] = []

        def page(navigation):
            seen.append(navigation)
            if len(seen) == 1:
                raise RuntimeError("flaky")
            return "ok"

        match = RouteTable.from_routes([RouteDefinition("/a", error=_error, page=page)]).resolve("/a")
        controller = RenderController(
            compose(match.chain),
            match.params,
            navigation_factory=lambda: NavigationContext.from_url("/a?tab=1"),
            reporter=Reports(),
        )
        await controller.render()
        await controller.retry()
        assert len(seen) == 2
        assert seen[0] is not seen[1]
        assert seen[1].search_params.get("tab") == "1"

    async def test_retry_can_fail_again(self) -> None:
        def page():
            raise RuntimeError("still broken")

        reports = Reports()
        controller = _controller(
            RouteDefinition("/a", error=_error, page=page), path="/a", reporter=reports
        )
        await controller.render()
        frame = await controller.retry()
        assert isinstance(frame.state, Errored)
        assert [n for _, n in reports.calls] == [1, 2]

    async def test_retry_requires_errored(self) -> None:
        controller = _controller(RouteDefinition("/a", page=_page), path="/a")
        with pytest.raises(RuntimeError, match="only available after"):
            await controller.retry()
        await controller.render()
        with pytest.raises(RuntimeError, match="only available after"):
            await controller.retry()

    async def test_no_fallback_raises_content_error(self) -> None:
        def page():
            raise RuntimeError("boom")

        controller = _controller(RouteDefinition("/a", page=page), path="/a")
        with pytest.raises(ContentError) as exc_info:
            await controller.render()
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert isinstance(controller.state, Errored)

    async def test_no_fallback_reraises_content_error(self) -> None:
        def page(id: int):
            return str(id)

        controller = _controller(RouteDefinition("/[id]", page=page), path="/abc")
        with pytest.raises(ContentError, match="not a valid int"):
            await controller.render()

    async def test_layout_failure_contained_above_layout(self) -> None:
        def broken(children):
            raise RuntimeError("layout broke")

        controller = _controller(
            RouteDefinition("/", layout=_root_layout, error=_error),
            RouteDefinition("/a", layout=broken, error=lambda: "inner fallback"),
            RouteDefinition("/a/b", page=_page),
            path="/a/b",
        )
        frame = await controller.render()
        assert isinstance(frame.state, Errored)
        # The fallback beside the broken layout is skipped
        assert frame.boundary == "/"
        assert "inner fallback" not in frame.html
        assert frame.html.startswith("<html><p class='error'>")

    async def test_failing_fallback_bubbles_outward(self) -> None:
        def page():
            raise RuntimeError("page broke")

        def broken_fallback(error):
            raise RuntimeError("fallback broke")

        controller = _controller(
            RouteDefinition("/", error=lambda error: f"outer: {error}"),
            RouteDefinition("/a", error=broken_fallback, page=page),
            path="/a",
        )
        frame = await controller.render()
        assert frame.html == "outer: page broke"
        assert frame.boundary == "/"

    async def test_failing_only_fallback_raises(self) -> None:
        def page():
            raise RuntimeError("page broke")

        def broken_fallback():
            raise RuntimeError("fallback broke")

        controller = _controller(
            RouteDefinition("/a", error=broken_fallback, page=page), path="/a"
        )
        with pytest.raises(ContentError):
            await controller.render()

    async def test_metadata_failure_is_content_error(self) -> None:
        def generate_metadata(slug):
            raise KeyError(slug)

        def error(error, metadata=None):
            return type(error).__name__

        controller = _controller(
            RouteDefinition("/", metadata={"title": "Root"}, error=error),
            RouteDefinition("/[slug]", page=_page, metadata=generate_metadata),
            path="/99",
        )
        frame = await controller.render()
        assert isinstance(frame.state.error, MetadataResolutionError)
        assert frame.html == "MetadataResolutionError"
        # Partial metadata from resolved ancestors is kept
        assert frame.metadata == {"title": "Root"}

    async def test_failing_loading_fallback_is_content_error(self) -> None:
        def loading():
            raise RuntimeError("loading broke")

        reports = Reports()
        controller = _controller(
            RouteDefinition("/", layout=_root_layout, error=_error),
            RouteDefinition("/a", loading=loading, page=_page),
            path="/a",
            reporter=reports,
        )
        frames = await _frames(controller)
        assert len(frames) == 1
        assert isinstance(frames[0].state, Errored)
        assert frames[0].boundary == "/"
        assert len(reports.calls) == 1

    async def test_reporter_failure_does_not_break_render(self) -> None:
        def page():
            raise RuntimeError("boom")

        def reporter(error, attempt):
            raise ValueError("tracker down")

        controller = _controller(
            RouteDefinition("/a", error=lambda: "fallback", page=page),
            path="/a",
            reporter=reporter,
        )
        frame = await controller.render()
        assert frame.html == "fallback"

    async def test_default_reporter_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        def page():
            raise RuntimeError("logged failure")

        match = RouteTable.from_routes(
            [RouteDefinition("/a", error=lambda: "fallback", page=page)]
        ).resolve("/a")
        controller = RenderController(compose(match.chain), match.params)
        with caplog.at_level(logging.ERROR, logger="trellis.render"):
            await controller.render()
        assert "Render attempt #1 failed: logged failure" in caplog.text


class TestAbandon:
    async def test_consumer_stops_after_shell(self) -> None:
        reports = Reports()
        controller = _controller(
            RouteDefinition("/a", loading=_loading, error=_error, page=_page),
            path="/a",
            reporter=reports,
        )
        stream = controller.stream()
        shell = await stream.__anext__()
        assert isinstance(shell.state, Pending)
        await stream.aclose()

        attempt = controller.attempt
        assert attempt.abandoned
        assert isinstance(attempt.state, Pending)
        assert reports.calls == []

    async def test_abandon_while_pending(self) -> None:
        started = anyio.Event()
        reports = Reports()

        async def page():
            started.set()
            await anyio.sleep(10)
            return "never"

        controller = _controller(
            RouteDefinition("/a", error=_error, page=page), path="/a", reporter=reports
        )
        results: list = []

        async def run() -> None:
            results.append(await controller.render())

        async with anyio.create_task_group() as tg:
            tg.start_soon(run)
            await started.wait()
            controller.abandon()

        assert results == [None]
        assert controller.attempt.abandoned
        assert not controller.attempt.settled
        assert reports.calls == []

    async def test_abandon_after_settle_is_noop(self) -> None:
        controller = _controller(RouteDefinition("/a", page=_page), path="/a")
        await controller.render()
        controller.abandon()
        assert isinstance(controller.state, Ready)

    async def test_new_attempt_after_abandon(self) -> None:
        controller = _controller(
            RouteDefinition("/a", loading=_loading, page=_page), path="/a"
        )
        stream = controller.stream()
        await stream.__anext__()
        await stream.aclose()

        frame = await controller.render()
        assert frame.attempt == 2
        assert isinstance(frame.state, Ready)
