"""Livesite — a static file server that reloads the browser on change.

Serves a directory over HTTP, injects a small reload script into every HTML
page, and pushes a reload message to each open page after a watched file
changes.

Quick start::

    import livesite

    livesite.serve("my-site/")

Or from the shell::

    livesite my-site/ --pattern '\\.(md|html|css)$'

"""

# PEP 703: Declare this module as free-threading safe
_Py_mod_gil = 0

__version__ = "0.1.0"
__all__ = [
    "LiveSiteConfig",
    "WatchSpec",
    "__version__",
    "create_app",
    "serve",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import livesite`` fast; chirp and watchfiles load on first use.
    """
    if name == "LiveSiteConfig":
        from livesite.config import LiveSiteConfig

        return LiveSiteConfig

    if name == "WatchSpec":
        from livesite.config import WatchSpec

        return WatchSpec

    if name == "create_app":
        from livesite.app import create_app

        return create_app

    if name == "serve":
        from livesite.app import serve

        return serve

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
