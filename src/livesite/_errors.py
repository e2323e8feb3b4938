"""Livesite error hierarchy.

All livesite-specific errors inherit from LiveSiteError for easy catching.
"""


class LiveSiteError(Exception):
    """Base error for all livesite operations."""


class ConfigError(LiveSiteError):
    """Invalid or missing configuration. Fatal at startup."""


class WatchError(LiveSiteError):
    """The watched root cannot be observed."""


class DeliveryError(LiveSiteError):
    """A reload message could not be sent over its connection."""
