"""Shared type definitions for livesite."""

from collections.abc import Awaitable, Callable
from typing import Literal

# Per-connection reload session identifier (diagnostics only)
type SessionID = int

# Kind of filesystem change reported by the change detector
type ChangeKind = Literal["created", "modified", "deleted"]

# Why a reload session ended
type CloseReason = Literal["reloaded", "disconnected", "delivery_failed", "watch_ended", "failed"]

# Sends one text frame over a notification connection
type SendText = Callable[[str], Awaitable[None]]
