"""Change detector — turns raw filesystem events into reload triggers.

Watches exactly one directory (non-recursive) with watchfiles and yields a
``ChangeEvent`` for every entry whose file name matches the configured
pattern.  Attribute-only changes (``chmod``, ``chown``, xattrs) are
discarded: the detector keeps a ``(mtime_ns, size)`` signature per path and
a ``modified`` report that leaves the signature untouched carries no content
change.

Watch errors are logged and the watch is re-established; only ``stop()``
ends the sequence.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from watchfiles import Change, awatch

from livesite._errors import WatchError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from livesite._types import ChangeKind
    from livesite.config import WatchSpec

logger = logging.getLogger("livesite.watch")


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A matching file change seen by the detector.

    Attributes:
        path: Absolute path to the changed file.
        kind: Type of filesystem change.

    """

    path: Path
    kind: ChangeKind

    @property
    def description(self) -> str:
        """Human-readable summary, e.g. ``modified index.md``."""
        return f"{self.kind} {self.path.name}"


# Mapping from watchfiles Change enum to our kind literals.
_CHANGE_KIND_MAP: dict[Change, ChangeKind] = {
    Change.added: "created",
    Change.modified: "modified",
    Change.deleted: "deleted",
}

type _Signature = tuple[int, int]


def _signature(path: str) -> _Signature | None:
    """Content signature of a file, or None if it can't be stat'ed."""
    try:
        st = os.stat(path)
    except OSError:
        return None
    return (st.st_mtime_ns, st.st_size)


class ChangeDetector:
    """Watches one directory and yields matching ``ChangeEvent`` objects.

    Usage::

        detector = ChangeDetector(spec)
        async for event in detector.changes():
            ...
        # elsewhere
        detector.stop()

    Args:
        spec: Root directory and compiled name pattern.
        debounce_ms: watchfiles debounce window.
        step_ms: watchfiles polling step while waiting for the debounce.
        retry_delay: Seconds to wait before re-establishing a failed watch.

    """

    __slots__ = ("_debounce_ms", "_retry_delay", "_signatures", "_spec", "_step_ms", "_stop_event")

    def __init__(
        self,
        spec: WatchSpec,
        *,
        debounce_ms: int = 50,
        step_ms: int = 50,
        retry_delay: float = 1.0,
    ) -> None:
        self._spec = spec
        self._debounce_ms = debounce_ms
        self._step_ms = step_ms
        self._retry_delay = retry_delay
        self._stop_event = asyncio.Event()
        self._signatures: dict[str, _Signature] = {}

    @property
    def stopped(self) -> bool:
        """Whether ``stop()`` has been requested."""
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Ask the watch loop to release its handle and end the sequence."""
        self._stop_event.set()

    async def changes(self) -> AsyncIterator[ChangeEvent]:
        """Yield matching change events until ``stop()`` is called."""
        root = self._spec.root
        await asyncio.to_thread(self._snapshot)

        while not self._stop_event.is_set():
            try:
                async with contextlib.aclosing(
                    awatch(
                        root,
                        watch_filter=None,
                        recursive=False,
                        stop_event=self._stop_event,
                        debounce=self._debounce_ms,
                        step=self._step_ms,
                    )
                ) as watcher:
                    async for raw_changes in watcher:
                        for change, path in raw_changes:
                            event = self.classify(change, path)
                            if event is not None:
                                logger.debug("change detected: %s", event.description)
                                yield event
            except (OSError, RuntimeError) as exc:
                error = WatchError(f"watch on {root} failed: {exc}")
                logger.warning("%s; retrying in %.1fs", error, self._retry_delay)
                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self._retry_delay)

        logger.debug("watch on %s released", root)

    def classify(self, change: Change, path: str) -> ChangeEvent | None:
        """Translate one raw watchfiles change, or None if it's filtered out.

        Stats the changed file inline on the event loop. The watch covers a
        single flat directory, so this is one ``stat`` per reported entry.
        """
        name = os.path.basename(path)
        if not self._spec.matches(name):
            return None

        kind = _CHANGE_KIND_MAP.get(change, "modified")
        if kind == "deleted":
            self._signatures.pop(path, None)
            return ChangeEvent(path=Path(path), kind=kind)

        signature = _signature(path)
        previous = self._signatures.get(path)
        if signature is not None:
            self._signatures[path] = signature
        if kind == "modified" and signature is not None and signature == previous:
            logger.debug("ignoring attribute-only change to %s", name)
            return None
        return ChangeEvent(path=Path(path), kind=kind)

    def _snapshot(self) -> None:
        """Record signatures for matching entries already in the root.

        Blocking; ``changes()`` runs it in a worker thread.
        """
        try:
            entries = list(os.scandir(self._spec.root))
        except OSError as exc:
            logger.warning("cannot scan %s: %s", self._spec.root, exc)
            return
        for entry in entries:
            if entry.is_file() and self._spec.matches(entry.name):
                signature = _signature(entry.path)
                if signature is not None:
                    self._signatures[entry.path] = signature
