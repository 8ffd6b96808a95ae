"""
Feed module - device payload parsing, device sessions, and event delivery.
"""
from .events import parse_feed_line, parse_payload
from .session import DeviceSession, SessionRegistry
from .pump import EventPump

__all__ = [
    "parse_feed_line",
    "parse_payload",
    "DeviceSession",
    "SessionRegistry",
    "EventPump",
]
