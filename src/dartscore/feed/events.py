"""
Parsing of raw device payloads into hit events.

A serial device sends one line per dart. Lines holding a JSON object are
read as structured payloads (coordinates or a code); anything else is taken
as a raw hit code such as "T20".
"""
import json
import time
from typing import Any, Dict, Optional
import logging

from dartscore.core import (
    CodedEvent,
    CoordinateEvent,
    DecodeError,
    HitEvent,
    ManualEvent,
)

logger = logging.getLogger(__name__)

_CODE_KEYS = ("value", "code", "rawData")


def parse_payload(payload: Dict[str, Any], device_id: Optional[str] = None) -> HitEvent:
    """
    Build an event from a dictionary payload.

    Accepts the tagged form ({"type": "coded", "value": ...},
    {"type": "coordinate", "x": ..., "y": ...}, {"type": "manual", ...})
    as well as untagged payloads carrying x/y or a code.

    Raises:
        DecodeError: If the payload matches no known shape
    """
    device_id = payload.get("deviceId", payload.get("device_id", device_id))
    timestamp = payload.get("timestamp")
    if timestamp is None:
        timestamp = time.time()

    kind = payload.get("type")

    try:
        if kind == "manual":
            return ManualEvent(
                sector=int(payload["sector"]),
                multiplier=int(payload.get("multiplier", 1)),
                timestamp=timestamp,
            )

        if kind == "coordinate" or (kind is None and "x" in payload and "y" in payload):
            return CoordinateEvent(
                x=float(payload["x"]),
                y=float(payload["y"]),
                device_id=device_id,
                timestamp=timestamp,
            )

        if kind in (None, "coded"):
            for key in _CODE_KEYS:
                if key in payload:
                    return CodedEvent(str(payload[key]), device_id=device_id, timestamp=timestamp)

    except (KeyError, TypeError, ValueError) as e:
        raise DecodeError(f"malformed {kind or 'untyped'} payload: {e}") from e

    raise DecodeError(f"unrecognized payload: {payload!r}")


def parse_feed_line(device_id: Optional[str], line: str) -> HitEvent:
    """
    Turn one line received from a device into an event.

    Args:
        device_id: Identifier of the sending device
        line: Raw line, trailing newline allowed

    Returns:
        CodedEvent or CoordinateEvent

    Raises:
        DecodeError: If the line is empty or a JSON payload is malformed
    """
    data = line.strip()
    if not data:
        raise DecodeError("empty line")

    if data.startswith("{"):
        try:
            payload = json.loads(data)
        except json.JSONDecodeError:
            payload = None
        if isinstance(payload, dict):
            return parse_payload(payload, device_id)
        logger.debug(f"Line from {device_id} is not JSON, treating as raw code")

    return CodedEvent(data, device_id=device_id)
