"""Startup banner — what is being served and watched.

Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

from livesite.reload.inject import RELOAD_PATH

if TYPE_CHECKING:
    from livesite.config import LiveSiteConfig


# ---------------------------------------------------------------------------
# ANSI helpers: respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""


def _clickable_url(url: str) -> str:
    """Wrap *url* in an OSC 8 hyperlink escape if the terminal supports it."""
    if not _COLOR:
        return url
    return f"\033]8;;{url}\033\\{_BOLD}{_CYAN}{url}{_RESET}\033]8;;\033\\"


def format_banner(config: LiveSiteConfig, *, load_ms: float = 0.0) -> str:
    """Build the banner text for *config*."""
    from livesite import __version__

    timing = f" {_DIM}in {load_ms:.0f}ms{_RESET}" if load_ms > 0 else ""
    lines: list[str] = [
        "",
        f"  {_BOLD}livesite{_RESET} {_DIM}v{__version__}{_RESET}{timing}",
        f"  {_DIM}{'─' * 43}{_RESET}",
        f"  {_DIM}├─{_RESET} root: {_DIM}{config.root}{_RESET}",
        f"  {_DIM}├─{_RESET} pattern: {_DIM}{config.pattern}{_RESET}",
        f"  {_DIM}└─{_RESET} {_GREEN}live{_RESET} — reload socket on {_DIM}{RELOAD_PATH}{_RESET}",
        "",
        f"  {_clickable_url(f'http://{config.host}:{config.port}')}",
        "",
        f"  {_DIM}Watching for changes...{_RESET}",
        "",
    ]
    return "\n".join(lines)


def print_banner(config: LiveSiteConfig, *, load_ms: float = 0.0) -> None:
    """Print the startup banner to stderr."""
    print(format_banner(config, load_ms=load_ms), file=sys.stderr)
