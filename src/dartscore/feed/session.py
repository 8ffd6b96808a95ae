"""
Registry of connected devices, keyed by device identifier.

Each feed owns its own registry; there is no module-level connection map.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional
import threading
import time
import logging

logger = logging.getLogger(__name__)

DisconnectListener = Callable[[str, Optional[str]], None]
ConnectListener = Callable[[str], None]


@dataclass
class DeviceSession:
    """One connected device."""
    device_id: str
    name: str = "Dartsio"
    connected_at: float = field(default_factory=time.time)
    events_received: int = 0
    last_error: Optional[str] = None


class SessionRegistry:
    """
    Tracks device sessions between connect and disconnect calls.

    Connect listeners are called with the device id after a session opens;
    disconnect listeners with (device_id, error) after it is removed.
    """

    def __init__(self):
        self._sessions: Dict[str, DeviceSession] = {}
        self._listeners: List[DisconnectListener] = []
        self._connect_listeners: List[ConnectListener] = []
        self._lock = threading.Lock()

    def add_disconnect_listener(self, listener: DisconnectListener) -> None:
        self._listeners.append(listener)

    def add_connect_listener(self, listener: ConnectListener) -> None:
        self._connect_listeners.append(listener)

    def connect(self, device_id: str, name: str = "Dartsio") -> DeviceSession:
        """
        Open a session for a device.

        Connecting an already connected device returns the existing session.
        """
        with self._lock:
            session = self._sessions.get(device_id)
            if session is not None:
                logger.warning(f"Device already connected: {device_id}")
                return session

            session = DeviceSession(device_id=device_id, name=name)
            self._sessions[device_id] = session

        logger.info(f"Device connected: {device_id} ({name})")
        for listener in self._connect_listeners:
            listener(device_id)
        return session

    def disconnect(self, device_id: str, error: Optional[str] = None) -> bool:
        """
        Close a device session.

        Args:
            device_id: Device to disconnect
            error: Error message if the device dropped out

        Returns:
            True if a session was removed, False if unknown
        """
        with self._lock:
            session = self._sessions.pop(device_id, None)

        if session is None:
            return False

        if error:
            session.last_error = error
            logger.error(f"Device error on {device_id}: {error}")
        logger.info(
            f"Device disconnected: {device_id} "
            f"({session.events_received} events received)"
        )

        for listener in self._listeners:
            listener(device_id, error)
        return True

    def report_error(self, device_id: str, error: str) -> bool:
        """A device error ends the session."""
        return self.disconnect(device_id, error=error)

    def touch(self, device_id: str) -> bool:
        """Count an event from a device. False if the device is not connected."""
        with self._lock:
            session = self._sessions.get(device_id)
            if session is None:
                return False
            session.events_received += 1
            return True

    def get(self, device_id: str) -> Optional[DeviceSession]:
        with self._lock:
            return self._sessions.get(device_id)

    def is_connected(self, device_id: str) -> bool:
        with self._lock:
            return device_id in self._sessions

    @property
    def device_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, device_id: object) -> bool:
        with self._lock:
            return device_id in self._sessions
