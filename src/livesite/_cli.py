"""Livesite CLI — serve a directory with live reload.

Entry point for the ``livesite`` command-line interface.
"""

from __future__ import annotations

import argparse
import logging

from livesite._errors import ConfigError
from livesite.config import DEFAULT_PATTERN


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the livesite CLI."""
    parser = argparse.ArgumentParser(
        prog="livesite",
        description="Serve a static site and reload the browser when files change.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    parser.add_argument("root", nargs="?", default=None, help="Directory to serve (default: .)")
    parser.add_argument(
        "-d", "--dir", dest="dir", default=None, help="Directory to serve (alias for ROOT)",
    )
    parser.add_argument(
        "--pattern",
        default=None,
        help=f"Regular expression for file names that trigger a reload (default: {DEFAULT_PATTERN})",
    )
    parser.add_argument("--host", default=None, help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: 8080)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    return parser


def _get_version() -> str:
    """Get the package version."""
    from livesite import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.root is not None and args.dir is not None and args.root != args.dir:
        parser.error("give the directory either as ROOT or with -d, not both")
    root = args.root or args.dir or "."

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from livesite.app import serve

    try:
        serve(root=root, pattern=args.pattern, host=args.host, port=args.port)
    except ConfigError as exc:
        parser.exit(2, f"{parser.prog}: error: {exc}\n")


if __name__ == "__main__":
    main()
