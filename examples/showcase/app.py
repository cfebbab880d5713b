"""Showcase — every routing convention in one small site.

Pages live under ``pages/`` and are discovered at startup:

- ``/products/[slug]``: dynamic segment
- ``/optional-catch-all-route/[[...slug]]``: optional catch-all
- ``(marketing)``: a group layout that adds no URL segment
- ``/metadata-example``: static and dynamic metadata
- ``/loading-example``: loading fallback while the page is pending
- ``/error-example``: error fallback with retry
- ``/profile``: reads the navigation context

Run:
    trellis render examples/showcase/pages "/metadata-example/2"
"""

import logging
from pathlib import Path

import anyio

from trellis import App, AppConfig

PAGES_DIR = Path(__file__).parent / "pages"

app = App(AppConfig(pages_dir=PAGES_DIR))


@app.on_error
def report(error: BaseException, attempt: int) -> None:
    logging.getLogger("showcase").warning("attempt %d failed: %s", attempt, error)


if __name__ == "__main__":
    result = anyio.run(app.render, "/metadata-example/2")
    print(result.metadata.title)
    print(result.html)
