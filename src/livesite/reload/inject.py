"""Content filter — installs the reload script into served HTML pages.

Wraps any chirp middleware that serves a resource for a request path
(usually ``StaticFiles``) and returns a middleware with the same call
signature.  The wrapped handler's ``Response`` is the in-memory buffer:
headers are rewritten and the body spliced before chirp sends a single
byte.  Any inherited ``Content-Length`` is dropped; chirp computes it from
the final body when the response is sent.

The injected script:
1. Opens a WebSocket to the reload endpoint
2. Closes it and reloads the page on any message with a truthy ``r``
3. Checks the socket once per second and reopens it when it has closed
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from chirp.http.response import Response

if TYPE_CHECKING:
    from chirp.http.request import Request
    from chirp.middleware.protocol import AnyResponse, Middleware, Next

    from livesite.observability.collector import SessionCollector

# Notification endpoint the snippet connects to.
RELOAD_PATH = "/__livesite/reload"

# Diagnostic header naming what the filter did to the body.
FILTER_HEADER = "X-Livesite-Filter"

# Splice point; case-sensitive, first occurrence only.
INJECTION_MARKER = b"</head>"

RELOAD_SNIPPET = """\
<script data-livesite-reload>
(function() {
  var url = (location.protocol === 'https:' ? 'wss://' : 'ws://')
    + location.host + '/__livesite/reload';
  var sock = null;
  function connect() {
    sock = new WebSocket(url);
    sock.onmessage = function(e) {
      var msg;
      try { msg = JSON.parse(e.data); } catch (x) { return; }
      if (msg && msg.r) {
        sock.close();
        location.reload();
      }
    };
  }
  connect();
  setInterval(function() {
    if (sock.readyState !== WebSocket.OPEN && sock.readyState !== WebSocket.CONNECTING) {
      connect();
    }
  }, 1000);
})();
</script>
"""

_SNIPPET_BYTES = RELOAD_SNIPPET.encode("utf-8")

# Caching validators would let the browser keep a copy without the script.
_DROPPED_HEADERS = frozenset({"last-modified", "etag", "content-length"})


def is_html(content_type: str) -> bool:
    """Prefix match on the media type, ignoring parameters and case."""
    return content_type.strip().lower().startswith("text/html")


def splice(body: bytes, snippet: bytes = _SNIPPET_BYTES) -> bytes | None:
    """Insert *snippet* before the first ``</head>``; None if there is none."""
    index = body.find(INJECTION_MARKER)
    if index < 0:
        return None
    return b"".join((body[:index], snippet, body[index:]))


class ContentFilter:
    """Middleware that injects the reload script into HTML responses.

    Usage::

        app.add_middleware(ContentFilter(StaticFiles(root, prefix="/")))

    Responses that are not buffered ``Response`` objects (streams, SSE)
    are returned untouched.  Every buffered response gets the
    ``X-Livesite-Filter`` header (``filtered`` or ``passthrough``) and loses
    ``Last-Modified``, ``ETag`` and any stale ``Content-Length``.

    """

    __slots__ = ("_collector", "_inner")

    def __init__(self, inner: Middleware, *, collector: SessionCollector | None = None) -> None:
        self._inner = inner
        self._collector = collector

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        """Serve through the wrapped handler, then rewrite the buffer."""
        response = await self._inner(request, next)
        if not isinstance(response, Response):
            return response

        body = response.body_bytes
        headers = tuple(
            (name, value) for name, value in response.headers
            if name.lower() not in _DROPPED_HEADERS
        )

        spliced = splice(body) if is_html(response.content_type) else None
        if spliced is None:
            verdict, out = "passthrough", body
        else:
            verdict, out = "filtered", spliced

        headers += ((FILTER_HEADER, verdict),)
        if self._collector is not None:
            self._collector.response_filtered(
                request.path, filtered=spliced is not None, content_length=len(out),
            )
        return replace(response, body=out, headers=headers)
