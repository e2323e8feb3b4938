"""Livesite configuration.

LiveSiteConfig is the central configuration object, frozen after creation.
WatchSpec is the compiled form the change detector consumes.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from livesite._errors import ConfigError

# Names ending in a markdown, HTML, or CSS extension.
DEFAULT_PATTERN = r"\.(md|markdown|html?|css)$"


@dataclass(frozen=True, slots=True)
class WatchSpec:
    """The immutable (root, name pattern) pair a change detector watches.

    Build with :meth:`compile` so that a bad pattern or an unreadable
    root fails once at startup instead of on every filesystem event.

    Attributes:
        root: Absolute path of the directory to watch (non-recursive).
        pattern: Compiled expression searched against changed file names.

    """

    root: Path
    pattern: re.Pattern[str]

    @classmethod
    def compile(cls, root: str | Path, pattern: str) -> WatchSpec:
        """Validate *root* and compile *pattern*.

        Raises:
            ConfigError: If the pattern is not a valid regular expression,
                or the root is missing, not a directory, or unreadable.

        """
        try:
            compiled = re.compile(pattern)
        except re.error as exc:
            msg = f"invalid name pattern {pattern!r}: {exc}"
            raise ConfigError(msg) from exc

        resolved = Path(root).resolve()
        if not resolved.is_dir():
            msg = f"content root {str(resolved)!r} is not a directory"
            raise ConfigError(msg)
        try:
            with os.scandir(resolved):
                pass
        except OSError as exc:
            msg = f"content root {str(resolved)!r} is not readable: {exc.strerror}"
            raise ConfigError(msg) from exc

        return cls(root=resolved, pattern=compiled)

    def matches(self, name: str) -> bool:
        """Whether a file name is of interest to the watch."""
        return self.pattern.search(name) is not None


@dataclass(frozen=True, slots=True)
class LiveSiteConfig:
    """Configuration for a livesite server.

    Attributes:
        root: Directory served over HTTP and watched for changes.
              Always resolved to an absolute path on construction.
        pattern: Regular expression selecting which file names trigger
                 a reload.
        host: Bind address.
        port: Bind port.
        heartbeat_interval: Seconds between heartbeat ticks; pending
                            changes are flushed to the browser on a tick.
        stats: Expose the ``/__livesite/stats`` diagnostics endpoint.

    """

    root: Path = field(default_factory=Path.cwd)
    pattern: str = DEFAULT_PATTERN
    host: str = "127.0.0.1"
    port: int = 8080
    heartbeat_interval: float = 1.0
    stats: bool = True

    def __post_init__(self) -> None:
        # watchfiles reports absolute paths; keep root comparable to them.
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())
        if self.heartbeat_interval <= 0:
            msg = f"heartbeat_interval must be positive, got {self.heartbeat_interval}"
            raise ConfigError(msg)

    def watch_spec(self) -> WatchSpec:
        """Compile the watch configuration. Raises ConfigError when invalid."""
        return WatchSpec.compile(self.root, self.pattern)
