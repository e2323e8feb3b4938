"""Livesite application — static files plus live reload over one ASGI app.

``LiveSiteApp`` sends WebSocket connections on the reload path to a
``ReloadSession`` and everything else to a chirp ``App`` that serves the
content root through the ``ContentFilter``.  ``serve()`` is the public
entry point.
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import TYPE_CHECKING

from livesite.config import LiveSiteConfig
from livesite.config_loader import load_config
from livesite.observability import EventLog, SessionCollector
from livesite.reload.endpoint import handle_reload_socket, reject_socket
from livesite.reload.inject import RELOAD_PATH, ContentFilter
from livesite.reload.session import SessionCounter
from livesite.watch.detector import ChangeDetector

if TYPE_CHECKING:
    from collections.abc import Callable

    from chirp import App
    from chirp._internal.asgi import Receive, Scope, Send
    from chirp.http.request import Request
    from chirp.http.response import Response

    from livesite.config import WatchSpec

STATS_PATH = "/__livesite/stats"


def _create_chirp_app(config: LiveSiteConfig, collector: SessionCollector) -> App:
    """Create the chirp App that serves the content root.

    Chirp's own auto-injected page snippets are disabled so the content
    filter is the only thing rewriting HTML bodies.
    """
    from chirp import App, AppConfig
    from chirp.middleware import StaticFiles

    app = App(
        config=AppConfig(
            host=config.host,
            port=config.port,
            debug=False,
            static_dir=None,
            safe_target=False,
            sse_lifecycle=False,
            delegation=False,
            view_transitions=False,
        )
    )

    static = StaticFiles(directory=config.root, prefix="/", cache_control="no-cache")
    app.add_middleware(ContentFilter(static, collector=collector))

    if config.stats:
        _register_stats_endpoint(app, collector)

    return app


def _register_stats_endpoint(app: App, collector: SessionCollector) -> None:
    """Register the ``/__livesite/stats`` JSON endpoint."""

    async def stats_handler(request: Request) -> Response:
        from chirp.http.response import Response

        payload = json.dumps(collector.stats(), indent=2)
        return Response(body=payload, status=200, content_type="application/json")

    stats_handler.__name__ = "livesite_stats"
    app.route(STATS_PATH, name="livesite:stats")(stats_handler)


class LiveSiteApp:
    """ASGI entry point combining the content server and reload endpoint.

    Args:
        config: Server configuration.
        spec: Compiled watch configuration (shared read-only by all sessions).
        collector: Diagnostics sink; a fresh one is created when omitted.
        detector_factory: Builds each session's change detector.

    """

    def __init__(
        self,
        config: LiveSiteConfig,
        spec: WatchSpec,
        *,
        collector: SessionCollector | None = None,
        detector_factory: Callable[[WatchSpec], ChangeDetector] = ChangeDetector,
    ) -> None:
        self.config = config
        self.spec = spec
        self.collector = collector if collector is not None else SessionCollector(EventLog())
        self._detector_factory = detector_factory
        self._session_ids = SessionCounter()
        self.http = _create_chirp_app(config, self.collector)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "websocket":
            if scope["path"] != RELOAD_PATH:
                await reject_socket(receive, send)
                return
            await handle_reload_socket(
                scope,
                receive,
                send,
                spec=self.spec,
                session_id=self._session_ids.next_id(),
                heartbeat_interval=self.config.heartbeat_interval,
                collector=self.collector,
                detector_factory=self._detector_factory,
            )
            return

        await self.http(scope, receive, send)


def create_app(config: LiveSiteConfig | None = None, **kwargs: object) -> LiveSiteApp:
    """Build a ready-to-serve ``LiveSiteApp``.

    Raises:
        ConfigError: If the root or pattern is invalid.

    """
    config = config or LiveSiteConfig()
    return LiveSiteApp(config, config.watch_spec(), **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def serve(root: str | Path = ".", **kwargs: object) -> None:
    """Serve *root* over HTTP with live reload.

    Launches a single-worker Pounce server.  Every HTML page gets the
    reload script; each open page holds a notification socket that
    receives one reload message after a matching file changes.

    Args:
        root: Directory to serve and watch.
        **kwargs: Override LiveSiteConfig fields.

    Raises:
        ConfigError: Before the server starts, if the configuration is invalid.

    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    from livesite.banner import print_banner

    t0 = time.perf_counter()
    config = load_config(Path(root), **kwargs)
    app = create_app(config)
    load_ms = (time.perf_counter() - t0) * 1000

    print_banner(config, load_ms=load_ms)

    server_config = ServerConfig(host=config.host, port=config.port, workers=1)
    server = Server(server_config, app, lifecycle_collector=app.collector)
    server.run()
