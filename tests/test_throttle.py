from __future__ import annotations

from wakatime_agent.heartbeat import (
    HEARTBEAT_INTERVAL_MS,
    EditorDocument,
    HeartbeatThrottler,
    ThrottleState,
)

T = 1_700_000_000_000


def _doc(path: str | None = "/src/a.py", **kwargs) -> EditorDocument:
    return EditorDocument(path=path, **kwargs)


def test_first_event_is_dispatched() -> None:
    throttler = HeartbeatThrottler()

    assert throttler.accept(_doc("/a.txt"), is_write=False, now_ms=5)
    assert throttler.state == ThrottleState(last_file="/a.txt", last_sent_at_ms=5)


def test_same_file_within_interval_is_throttled() -> None:
    throttler = HeartbeatThrottler(ThrottleState(last_file="/src/a.py", last_sent_at_ms=T))

    assert not throttler.accept(_doc(), is_write=False, now_ms=T + HEARTBEAT_INTERVAL_MS - 1)
    assert throttler.state.last_sent_at_ms == T


def test_interval_boundary_dispatches() -> None:
    throttler = HeartbeatThrottler(ThrottleState(last_file="/src/a.py", last_sent_at_ms=T))

    assert throttler.accept(_doc(), is_write=False, now_ms=T + 120_000)
    assert throttler.state.last_sent_at_ms == T + 120_000


def test_save_always_dispatches() -> None:
    throttler = HeartbeatThrottler(ThrottleState(last_file="/src/a.py", last_sent_at_ms=T))

    assert throttler.accept(_doc(), is_write=True, now_ms=T)
    assert throttler.accept(_doc(), is_write=True, now_ms=T + 1)


def test_different_file_dispatches() -> None:
    throttler = HeartbeatThrottler(ThrottleState(last_file="/src/a.py", last_sent_at_ms=T))

    assert throttler.accept(_doc("/src/b.py"), is_write=False, now_ms=T + 1)
    assert throttler.state.last_file == "/src/b.py"


def test_burst_for_same_file_passes_once() -> None:
    throttler = HeartbeatThrottler()

    results = [throttler.accept(_doc(), is_write=False, now_ms=T + i) for i in range(5)]

    assert results == [True, False, False, False, False]


def test_unusable_events_are_discarded_without_state_change() -> None:
    state = ThrottleState(last_file="/src/a.py", last_sent_at_ms=T)
    throttler = HeartbeatThrottler(state)

    assert not throttler.accept(None, is_write=True, now_ms=T + 10**9)
    assert not throttler.accept(_doc(is_empty=True), is_write=True, now_ms=T + 10**9)
    assert not throttler.accept(_doc(None), is_write=True, now_ms=T + 10**9)
    assert not throttler.accept(_doc(""), is_write=True, now_ms=T + 10**9)
    assert not throttler.accept(_doc("   "), is_write=True, now_ms=T + 10**9)
    assert not throttler.accept(_doc("relative/a.py"), is_write=True, now_ms=T + 10**9)
    assert throttler.state == ThrottleState(last_file="/src/a.py", last_sent_at_ms=T)
