"""Reload layer — per-connection sessions and HTML script injection.

Connects file changes to browser reloads: the content filter installs the
client script, the script opens the notification socket, and a reload
session on that socket sends a single reload message.
"""

from livesite.reload.endpoint import handle_reload_socket
from livesite.reload.inject import RELOAD_PATH, RELOAD_SNIPPET, ContentFilter
from livesite.reload.session import ReloadMessage, ReloadSession, SessionCounter

__all__ = [
    "RELOAD_PATH",
    "RELOAD_SNIPPET",
    "ContentFilter",
    "ReloadMessage",
    "ReloadSession",
    "SessionCounter",
    "handle_reload_socket",
]
