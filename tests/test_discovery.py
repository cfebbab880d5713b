"""Tests for trellis.pages.discovery — filesystem route discovery."""

from pathlib import Path

import pytest

from trellis.errors import ConfigurationError
from trellis.pages.discovery import discover_routes


def _write(root: Path, relative: str, source: str) -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(source)


@pytest.fixture
def pages(tmp_path: Path) -> Path:
    root = tmp_path / "pages"
    _write(root, "layout.py", "def layout(children):\n    return f'<main>{children}</main>'\n")
    _write(root, "not_found.py", "def not_found():\n    return 'missing'\n")
    _write(root, "page.py", "def page():\n    return 'home'\n")
    _write(
        root,
        "dashboard/layout.py",
        "config = {'heading': 'Dashboard'}\n\n"
        "def layout(children, heading):\n    return f'<h1>{heading}</h1>{children}'\n",
    )
    _write(root, "dashboard/loading.py", "def loading():\n    return 'Loading...'\n")
    _write(root, "dashboard/error.py", "def error(error, retry):\n    return 'oops'\n")
    _write(
        root,
        "products/[slug]/page.py",
        "metadata = {'title': 'Product'}\n\ndef page(slug):\n    return slug\n",
    )
    _write(
        root,
        "blog/[slug]/page.py",
        "def generate_metadata(slug):\n    return {'title': slug}\n\n"
        "def page(slug):\n    return slug\n",
    )
    _write(root, "(marketing)/about/page.py", "def page():\n    return 'about'\n")
    _write(root, "filter/[[...slug]]/page.py", "def page(slug):\n    return '/'.join(slug)\n")
    _write(root, "_components/page.py", "def page():\n    return 'private'\n")
    _write(root, "empty/README.txt", "no handlers here\n")
    return root


def _by_pattern(pages_dir: Path) -> dict:
    return {d.pattern: d for d in discover_routes(pages_dir)}


class TestDiscovery:
    def test_patterns(self, pages: Path) -> None:
        found = _by_pattern(pages)
        assert set(found) == {
            "/",
            "/(marketing)/about",
            "/blog/[slug]",
            "/dashboard",
            "/filter/[[...slug]]",
            "/products/[slug]",
        }

    def test_walk_order_is_sorted_root_first(self, pages: Path) -> None:
        patterns = [d.pattern for d in discover_routes(pages)]
        assert patterns[0] == "/"
        assert patterns.index("/dashboard") < patterns.index("/filter/[[...slug]]")

    def test_root_bundle(self, pages: Path) -> None:
        root = _by_pattern(pages)["/"]
        assert root.page() == "home"
        assert root.layout("x") == "<main>x</main>"
        assert root.not_found() == "missing"
        assert root.source == str(pages.resolve())

    def test_layout_config(self, pages: Path) -> None:
        dashboard = _by_pattern(pages)["/dashboard"]
        assert dashboard.layout_config == {"heading": "Dashboard"}
        assert dashboard.loading() == "Loading..."
        assert dashboard.error(None, None) == "oops"
        assert dashboard.page is None

    def test_static_metadata(self, pages: Path) -> None:
        assert _by_pattern(pages)["/products/[slug]"].metadata == {"title": "Product"}

    def test_generate_metadata(self, pages: Path) -> None:
        resolver = _by_pattern(pages)["/blog/[slug]"].metadata
        assert callable(resolver)
        assert resolver("hello") == {"title": "hello"}

    def test_private_directories_skipped(self, pages: Path) -> None:
        assert not any("_components" in d.pattern for d in discover_routes(pages))

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            discover_routes(tmp_path / "nope")


class TestDiscoveryErrors:
    def test_missing_export(self, tmp_path: Path) -> None:
        _write(tmp_path, "page.py", "def render():\n    return 'x'\n")
        with pytest.raises(ConfigurationError, match="expected a callable named 'page'"):
            discover_routes(tmp_path)

    def test_malformed_directory_name(self, tmp_path: Path) -> None:
        _write(tmp_path, "[...slug]/page.py", "def page():\n    return 'x'\n")
        with pytest.raises(ConfigurationError, match="required catch-all"):
            discover_routes(tmp_path)

    def test_metadata_in_page_and_layout(self, tmp_path: Path) -> None:
        _write(tmp_path, "page.py", "metadata = {'title': 'a'}\n\ndef page():\n    return 'x'\n")
        _write(
            tmp_path,
            "layout.py",
            "metadata = {'title': 'b'}\n\ndef layout(children):\n    return children\n",
        )
        with pytest.raises(ConfigurationError, match="declared in both"):
            discover_routes(tmp_path)

    def test_static_and_generated_metadata(self, tmp_path: Path) -> None:
        _write(
            tmp_path,
            "page.py",
            "metadata = {}\n\ndef generate_metadata():\n    return {}\n\n"
            "def page():\n    return 'x'\n",
        )
        with pytest.raises(ConfigurationError, match="not both"):
            discover_routes(tmp_path)

    def test_layout_config_must_be_mapping(self, tmp_path: Path) -> None:
        _write(tmp_path, "layout.py", "config = ['x']\n\ndef layout(children):\n    return children\n")
        with pytest.raises(ConfigurationError, match="'config' must be a mapping"):
            discover_routes(tmp_path)
