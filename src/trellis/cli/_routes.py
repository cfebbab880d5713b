"""``trellis routes`` — list discovered routes.

Mounts a pages directory and prints every route pattern with the
handlers declared for it.
"""

import argparse
import sys

from trellis.app import App
from trellis.config import AppConfig
from trellis.errors import ConfigurationError


def run_routes(args: argparse.Namespace, config: AppConfig | None = None) -> None:
    """Print a table of PATTERN and HANDLERS for a pages directory."""
    app = App(config)
    try:
        app.mount_pages(args.pages_dir)
        routes = app.table.routes
    except (FileNotFoundError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not routes:
        print("No routes found.")
        return

    rows = [(str(node.pattern), ", ".join(node.handler_kinds)) for node in routes]
    max_pattern = max(max(len(r[0]) for r in rows), 7)  # "PATTERN" header

    fmt = f"{{:<{max_pattern}}}  {{}}"
    print(fmt.format("PATTERN", "HANDLERS"))
    sep_len = max_pattern + 2 + max(len(r[1]) for r in rows)
    print("-" * min(sep_len, 80))
    for pattern, kinds in rows:
        print(fmt.format(pattern, kinds))
