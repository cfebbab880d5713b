"""``trellis render`` — render one URL from a pages directory.

Prints the status and metadata on stderr and the HTML on stdout, so the
output can be piped into a file.
"""

import argparse
import sys

import anyio

from trellis.app import App
from trellis.config import AppConfig
from trellis.errors import ConfigurationError


def run_render(args: argparse.Namespace, config: AppConfig | None = None) -> None:
    """Render ``args.url`` and print the result."""
    app = App(config)
    try:
        app.mount_pages(args.pages_dir)
        app.table  # noqa: B018 (compiles the table so configuration errors surface here)
    except (FileNotFoundError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if args.stream:
        anyio.run(_stream, app, args.url)
        return

    result = anyio.run(app.render, args.url)
    print(f"status: {result.status}", file=sys.stderr)
    if result.pattern:
        print(f"route: {result.pattern}", file=sys.stderr)
    for key, value in result.metadata.items():
        print(f"{key}: {value}", file=sys.stderr)
    for path in result.navigations:
        print(f"navigate: {path}", file=sys.stderr)
    print(result.html)
    if result.status >= 400:
        raise SystemExit(1)


async def _stream(app: App, url: str) -> None:
    async for chunk in app.stream(url):
        print(chunk, flush=True)
