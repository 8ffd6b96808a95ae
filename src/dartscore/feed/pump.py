"""
Threaded delivery of device events into the scoring engine.

Producers (serial reader, UI callbacks) push events from any thread; a
single worker thread hands them to the engine in FIFO order.
"""
from dataclasses import dataclass
from typing import Callable, Optional, Union
import queue
import threading
import time
import logging

from dartscore.core import Config, DecodeError, HitEvent, RotationInvariantError
from dartscore.game import HitResult, ScoringEngine
from .events import parse_feed_line
from .session import SessionRegistry

logger = logging.getLogger(__name__)

ResultCallback = Callable[[HitResult], None]


@dataclass(frozen=True)
class _FeedStop:
    """Queued marker: stop consuming device events once reached."""
    reason: Optional[str] = None


@dataclass(frozen=True)
class _FeedResume:
    """Queued marker: a device reconnected, accept device events again."""
    device_id: str


class EventPump:
    """
    Producer/consumer bridge between a device feed and a ScoringEngine.

    Features:
    - Events are applied strictly in arrival order
    - Unbounded queue by default; a bounded queue blocks producers
      instead of dropping events
    - Events from devices without a session are refused
    - When the last device disconnects, the engine stops consuming
      device events after everything queued before the disconnect
    - A reconnect resumes the feed, again in queue order

    Example:
        registry = SessionRegistry()
        pump = EventPump(engine, registry)
        registry.connect("COM4")
        with pump:
            pump.push_line("COM4", "T20")
    """

    def __init__(
            self,
            engine: ScoringEngine,
            registry: Optional[SessionRegistry] = None,
            queue_size: int = 0,
            poll_interval: float = 0.1,
            on_result: Optional[ResultCallback] = None
    ):
        """
        Initialize event pump.

        Args:
            engine: Engine receiving the events
            registry: Device sessions (None = accept any device id)
            queue_size: Max queued events, 0 = unbounded
            poll_interval: Worker wake-up interval in seconds
            on_result: Called with every HitResult on the worker thread
        """
        self.engine = engine
        self.registry = registry
        self.poll_interval = poll_interval
        self.on_result = on_result

        self._queue: queue.Queue = queue.Queue(maxsize=queue_size)

        # Threading control
        self._worker: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._is_running = False

        # Statistics
        self._processed = 0
        self._refused = 0

        if registry is not None:
            registry.add_disconnect_listener(self._on_disconnect)
            registry.add_connect_listener(self._on_connect)

    @classmethod
    def from_config(
            cls,
            engine: ScoringEngine,
            config: Optional[Config] = None,
            registry: Optional[SessionRegistry] = None,
            on_result: Optional[ResultCallback] = None
    ) -> "EventPump":
        config = config or Config()
        return cls(
            engine,
            registry=registry,
            queue_size=int(config.get("feed", "queue_size", 0)),
            poll_interval=float(config.get("feed", "poll_interval_sec", 0.1)),
            on_result=on_result,
        )

    def start(self) -> bool:
        """
        Start the worker thread.

        Returns:
            True once running
        """
        if self._is_running:
            logger.warning("Event pump already running")
            return True

        self._stop_event.clear()
        self._worker = threading.Thread(
            target=self._run,
            daemon=True,
            name="EventPump"
        )
        self._worker.start()

        self._is_running = True
        logger.info("Event pump started")
        return True

    def stop(self, drain: bool = True, timeout: float = 2.0) -> None:
        """
        Stop the worker thread.

        Args:
            drain: Apply already queued events before stopping
            timeout: Max seconds to wait for draining and for the thread
        """
        if not self._is_running:
            return

        if drain:
            self.wait_idle(timeout)

        self._stop_event.set()
        if self._worker:
            self._worker.join(timeout=timeout)

        # Anything left over is discarded
        discarded = 0
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break
            self._queue.task_done()
            discarded += 1

        self._is_running = False
        logger.info(
            f"Event pump stopped. Stats: {self._processed} events processed, "
            f"{self._refused} refused, {discarded} discarded"
        )

    def push(self, event: HitEvent) -> bool:
        """
        Queue an event for the engine.

        Returns:
            True if queued, False if the sending device has no session
        """
        device_id = event.device_id
        if self.registry is not None and device_id is not None:
            if not self.registry.touch(device_id):
                self._refused += 1
                logger.warning(f"Event from unconnected device {device_id} refused")
                return False

        self._queue.put(event)
        return True

    def push_line(self, device_id: Optional[str], line: str) -> bool:
        """
        Parse a raw device line and queue the resulting event.

        Returns:
            True if queued, False if the line could not be parsed or was refused
        """
        try:
            event = parse_feed_line(device_id, line)
        except DecodeError as e:
            self._refused += 1
            logger.warning(f"Dropped line from {device_id}: {e}")
            return False
        return self.push(event)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every queued event has been applied.

        Returns:
            True if the queue drained, False on timeout
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                if deadline is None:
                    self._queue.all_tasks_done.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    def _on_disconnect(self, device_id: str, error: Optional[str]) -> None:
        if self.registry is not None and len(self.registry) == 0:
            reason = error or f"{device_id} disconnected"
            self._queue.put(_FeedStop(reason))

    def _on_connect(self, device_id: str) -> None:
        self._queue.put(_FeedResume(device_id))

    def _run(self) -> None:
        """Main worker loop (runs in separate thread)."""
        logger.debug("Event loop started")

        while not self._stop_event.is_set():
            try:
                item: Union[HitEvent, _FeedStop, _FeedResume] = self._queue.get(
                    timeout=self.poll_interval
                )
            except queue.Empty:
                continue

            try:
                if isinstance(item, _FeedStop):
                    self.engine.stop_feed(item.reason)
                    continue
                if isinstance(item, _FeedResume):
                    self.engine.resume_feed()
                    continue

                result = self.engine.submit(item)
                self._processed += 1

                self._notify(result)

            except RotationInvariantError as e:
                logger.error(f"Engine halted: {e}")
            except Exception:
                logger.exception(f"Failed to apply {item!r}")
            finally:
                self._queue.task_done()

        logger.debug("Event loop ended")

    def _notify(self, result: HitResult) -> None:
        if self.on_result is None:
            return
        try:
            self.on_result(result)
        except Exception as e:
            logger.warning(f"Result callback failed: {e}")

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def processed(self) -> int:
        return self._processed

    @property
    def refused(self) -> int:
        return self._refused

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def __enter__(self):
        """Context manager support."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager cleanup."""
        self.stop()
