"""Trellis CLI — inspect and render a pages directory.

Entry point registered as ``trellis`` in ``pyproject.toml``::

    [project.scripts]
    trellis = "trellis.cli:main"
"""

import argparse
import logging
import sys

from trellis.config import AppConfig


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``trellis`` command."""
    parser = argparse.ArgumentParser(
        prog="trellis",
        description="Trellis — file-path-driven page routing and rendering.",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Logging verbosity (default: AppConfig.log_level, warning)",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- trellis routes ---------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List discovered routes")
    routes_parser.add_argument("pages_dir", help="Path to the pages directory")

    # -- trellis render ---------------------------------------------------
    render_parser = subparsers.add_parser("render", help="Render a URL")
    render_parser.add_argument("pages_dir", help="Path to the pages directory")
    render_parser.add_argument("url", help="Path with optional query (e.g. /profile?name=a)")
    render_parser.add_argument(
        "--stream",
        action="store_true",
        help="Print each chunk as it is produced (loading shell first)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    config = AppConfig(log_level=args.log_level) if args.log_level else AppConfig()
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "routes":
        from trellis.cli._routes import run_routes

        run_routes(args, config)
    elif args.command == "render":
        from trellis.cli._render import run_render

        run_render(args, config)
