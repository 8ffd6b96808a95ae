"""
Tests for device payload parsing, sessions and the event pump.
"""
import pytest

from dartscore.core import CodedEvent, CoordinateEvent, DecodeError, ManualEvent
from dartscore.feed import EventPump, SessionRegistry, parse_feed_line, parse_payload
from dartscore.game import CountdownMode, HitStatus, ScoringEngine


@pytest.fixture
def engine():
    engine = ScoringEngine(CountdownMode(301))
    engine.start_game(["Alice", "Bob"])
    return engine


# --- Parsing --------------------------------------------------------------

def test_parse_raw_code_line():
    """Plain text lines become coded events."""
    event = parse_feed_line("COM4", "T20\r\n")

    assert isinstance(event, CodedEvent)
    assert event.value == "T20"
    assert event.device_id == "COM4"
    assert event.type == "coded"


def test_parse_json_coordinate_line():
    """JSON with x/y becomes a coordinate event."""
    event = parse_feed_line("dev-1", '{"x": 1.5, "y": -2, "timestamp": 1700000000}')

    assert isinstance(event, CoordinateEvent)
    assert event.x == 1.5
    assert event.y == -2.0
    assert event.timestamp == 1700000000
    assert event.type == "coordinate"


def test_parse_json_code_line():
    """JSON carrying a code becomes a coded event."""
    event = parse_feed_line("dev-1", '{"rawData": "D16"}')

    assert isinstance(event, CodedEvent)
    assert event.value == "D16"


def test_parse_invalid_lines():
    """Empty lines and unknown JSON shapes fail."""
    with pytest.raises(DecodeError):
        parse_feed_line("dev-1", "   ")

    with pytest.raises(DecodeError):
        parse_feed_line("dev-1", '{"foo": 1}')


def test_parse_broken_json_falls_back_to_code():
    """Unparsable JSON is passed on as a raw code (and fails decoding later)."""
    event = parse_feed_line("dev-1", "{bad json")

    assert isinstance(event, CodedEvent)
    assert event.value == "{bad json"


def test_parse_tagged_payloads():
    """Tagged dictionaries map to their event types."""
    coded = parse_payload({"type": "coded", "value": "B50", "deviceId": "COM3"})
    assert isinstance(coded, CodedEvent)
    assert coded.device_id == "COM3"

    coordinate = parse_payload({"type": "coordinate", "x": 0, "y": 100})
    assert isinstance(coordinate, CoordinateEvent)

    manual = parse_payload({"type": "manual", "sector": 20, "multiplier": 3})
    assert manual == ManualEvent(20, 3, timestamp=manual.timestamp)
    assert manual.device_id is None

    with pytest.raises(DecodeError):
        parse_payload({"type": "coordinate", "x": "abc", "y": 1})

    with pytest.raises(DecodeError):
        parse_payload({"type": "manual"})


# --- Sessions -------------------------------------------------------------

def test_session_registry_lifecycle():
    """Sessions exist between connect and disconnect."""
    registry = SessionRegistry()
    calls = []
    registry.add_disconnect_listener(lambda device_id, error: calls.append((device_id, error)))

    session = registry.connect("COM4")
    assert registry.connect("COM4") is session
    assert "COM4" in registry
    assert registry.device_ids == ["COM4"]

    assert registry.touch("COM4")
    assert not registry.touch("COM9")
    assert registry.get("COM4").events_received == 1

    assert registry.disconnect("COM4")
    assert not registry.disconnect("COM4")
    assert len(registry) == 0
    assert calls == [("COM4", None)]


def test_session_registry_error():
    """A device error closes the session and reaches listeners."""
    registry = SessionRegistry()
    calls = []
    registry.add_disconnect_listener(lambda device_id, error: calls.append(error))
    registry.connect("COM4")

    assert registry.report_error("COM4", "port closed")
    assert not registry.is_connected("COM4")
    assert calls == ["port closed"]


def test_registries_are_independent():
    """No state is shared between registries."""
    first = SessionRegistry()
    second = SessionRegistry()
    first.connect("COM4")

    assert "COM4" not in second


# --- Pump -----------------------------------------------------------------

def test_pump_applies_events_in_order(engine):
    """Queued events reach the engine in arrival order."""
    registry = SessionRegistry()
    registry.connect("COM4")
    results = []

    with EventPump(engine, registry, on_result=results.append) as pump:
        assert pump.push_line("COM4", "S20")
        assert pump.push_line("COM4", "D20")
        assert pump.push_line("COM4", '{"x": 110, "y": 0}')
        assert pump.wait_idle(timeout=2.0)

    assert engine.snapshot().players[0].current_turn == (20, 40, 60)
    assert [r.status for r in results] == [HitStatus.ACCEPTED] * 3
    assert pump.processed == 3
    assert not pump.is_running


def test_pump_refuses_unknown_device(engine):
    """Events from devices without a session are refused."""
    registry = SessionRegistry()
    pump = EventPump(engine, registry)

    assert not pump.push(CodedEvent("T20", device_id="COM9"))
    assert not pump.push_line("COM9", "T20")
    assert pump.refused == 2
    assert pump.pending == 0


def test_pump_drops_unparsable_line(engine):
    """Empty lines never reach the queue."""
    pump = EventPump(engine)

    assert not pump.push_line("COM4", "")
    assert pump.pending == 0


def test_pump_decode_error_reported(engine):
    """Malformed codes come back as DECODE_ERROR results."""
    results = []
    with EventPump(engine, on_result=results.append) as pump:
        pump.push_line("COM4", "X99")
        pump.wait_idle(timeout=2.0)

    assert results[0].status is HitStatus.DECODE_ERROR
    assert engine.snapshot().players[0].current_turn == ()


def test_pump_disconnect_stops_feed_after_queued_events(engine):
    """Events queued before the disconnect are still applied."""
    registry = SessionRegistry()
    registry.connect("COM4")
    pump = EventPump(engine, registry)

    # Queue before the worker runs, then disconnect
    pump.push_line("COM4", "T20")
    registry.disconnect("COM4", error="port vanished")

    with pump:
        pump.wait_idle(timeout=2.0)
        assert engine.feed_stopped
        assert engine.snapshot().players[0].current_turn == (60,)

        # Manual input still goes through the same queue
        assert pump.push(ManualEvent(1))
        pump.wait_idle(timeout=2.0)

    assert engine.snapshot().players[0].current_turn == (60, 1)


def test_pump_survives_failing_callback(engine):
    """A raising result callback does not stop the worker."""
    def explode(result):
        raise RuntimeError("boom")

    with EventPump(engine, on_result=explode) as pump:
        pump.push(ManualEvent(20))
        pump.push(ManualEvent(20))
        assert pump.wait_idle(timeout=2.0)

    assert pump.processed == 2


def test_pump_wait_idle_timeout(engine):
    """wait_idle reports False while events sit in a stopped pump."""
    pump = EventPump(engine)
    pump.push(ManualEvent(20))

    assert not pump.wait_idle(timeout=0.05)
    assert pump.pending == 1


def test_pump_reconnect_resumes_feed(engine):
    """A device that reconnects after the feed stopped is scored again."""
    registry = SessionRegistry()
    results = []

    with EventPump(engine, registry, on_result=results.append) as pump:
        registry.connect("COM4")
        pump.push_line("COM4", "S20")
        registry.disconnect("COM4")
        assert pump.wait_idle(timeout=2.0)
        assert engine.feed_stopped

        registry.connect("COM4")
        pump.push_line("COM4", "S20")
        assert pump.wait_idle(timeout=2.0)

    assert [r.status for r in results] == [HitStatus.ACCEPTED, HitStatus.ACCEPTED]
    assert not engine.feed_stopped
    assert engine.snapshot().players[0].current_turn == (20, 20)


def test_session_connect_listener():
    """Connect listeners fire once per new session."""
    registry = SessionRegistry()
    calls = []
    registry.add_connect_listener(calls.append)

    registry.connect("COM4")
    registry.connect("COM4")
    registry.connect("COM5")

    assert calls == ["COM4", "COM5"]


def test_pump_survives_failing_event(engine):
    """An event that blows up in the engine does not stop the worker."""
    results = []
    with EventPump(engine, on_result=results.append) as pump:
        pump.push(CoordinateEvent("abc", 0.0))
        pump.push(ManualEvent(20))
        assert pump.wait_idle(timeout=2.0)
        assert pump.is_running

    assert [r.status for r in results] == [HitStatus.ACCEPTED]
    assert engine.snapshot().players[0].current_turn == (20,)
