"""Shared test fixtures for livesite."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from livesite.config import DEFAULT_PATTERN, WatchSpec
from livesite.watch.detector import ChangeEvent

INDEX_HTML = (
    "<!DOCTYPE html>\n<html>\n<head>\n<title>Home</title>\n</head>\n"
    "<body><h1>Home</h1></body>\n</html>\n"
)


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """A flat content root with watched and unwatched files."""
    root = tmp_path / "site"
    root.mkdir()
    (root / "index.md").write_text("# Home\n")
    (root / "index.html").write_text(INDEX_HTML)
    (root / "style.css").write_text("body { margin: 0; }\n")
    (root / "notes.txt").write_text("not watched\n")
    return root.resolve()


@pytest.fixture
def spec(site_root: Path) -> WatchSpec:
    return WatchSpec.compile(site_root, DEFAULT_PATTERN)


class FakeDetector:
    """In-memory stand-in for ``ChangeDetector``.

    Tests push events with :meth:`emit`; ``changes()`` ends once
    :meth:`stop` is called.
    """

    def __init__(self, spec: WatchSpec) -> None:
        self.spec = spec
        self.released = False
        self._queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        self._stop_event = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        self._stop_event.set()

    def emit(self, name: str, kind: str = "modified") -> None:
        self._queue.put_nowait(ChangeEvent(path=self.spec.root / name, kind=kind))  # type: ignore[arg-type]

    async def changes(self):
        try:
            while not self._stop_event.is_set():
                get = asyncio.ensure_future(self._queue.get())
                stop = asyncio.ensure_future(self._stop_event.wait())
                done, pending = await asyncio.wait(
                    {get, stop}, return_when=asyncio.FIRST_COMPLETED
                )
                for task in pending:
                    task.cancel()
                if get in done:
                    yield get.result()
        finally:
            self.released = True


class DetectorFactory:
    """Builds ``FakeDetector`` instances and remembers them."""

    def __init__(self) -> None:
        self.created: list[FakeDetector] = []

    def __call__(self, spec: WatchSpec) -> FakeDetector:
        detector = FakeDetector(spec)
        self.created.append(detector)
        return detector

    async def wait_for(self, count: int = 1, timeout: float = 2.0) -> FakeDetector:
        """Wait until *count* detectors exist and return the last one."""
        async with asyncio.timeout(timeout):
            while len(self.created) < count:
                await asyncio.sleep(0.005)
        return self.created[count - 1]


@pytest.fixture
def detectors() -> DetectorFactory:
    return DetectorFactory()
