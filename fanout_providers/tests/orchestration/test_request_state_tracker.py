"""RequestStateTracker lifecycle rules and observer isolation."""
from __future__ import annotations

from fanout_providers.base.models import CompletionResponse, RequestStatus
from fanout_providers.orchestration import RequestStateTracker


def _tracker(*ids: str) -> RequestStateTracker:
    tracker = RequestStateTracker()
    tracker.reset((pid, "m") for pid in ids)
    return tracker


def test_reset_creates_idle_slots():
    tracker = _tracker("a", "b")
    states = tracker.snapshot()
    assert list(states) == ["a", "b"]
    assert all(s.status is RequestStatus.IDLE and s.progress == 0 for s in states.values())


def test_allowed_and_rejected_transitions():
    tracker = _tracker("a")
    assert tracker.transition("a", RequestStatus.STREAMING) is False
    assert tracker.transition("a", RequestStatus.LOADING)
    assert tracker.transition("a", RequestStatus.STREAMING)
    assert tracker.transition("a", RequestStatus.LOADING) is False
    assert tracker.transition("missing", RequestStatus.LOADING) is False


def test_terminal_states_reject_everything():
    tracker = _tracker("a")
    tracker.transition("a", RequestStatus.LOADING)
    assert tracker.fail("a", "cancelled")
    assert tracker.succeed("a", CompletionResponse(text="late", model_id="m", execution_time_ms=1)) is False
    assert tracker.fail("a", "again") is False
    assert tracker.update_progress("a", 50) is False

    state = tracker.get("a")
    assert state.status is RequestStatus.ERROR and state.error == "cancelled"
    assert state.response is None


def test_progress_is_clamped_and_monotonic():
    tracker = _tracker("a")
    seen = []
    tracker.subscribe_progress(lambda pid, value: seen.append(value))

    assert tracker.update_progress("a", 40)
    assert tracker.update_progress("a", 30) is False
    assert tracker.update_progress("a", 40) is False
    assert tracker.update_progress("a", 250)
    assert tracker.update_progress("a", -5) is False
    assert seen == [40, 100]


def test_succeed_forces_full_progress_and_fail_keeps_it():
    tracker = _tracker("ok", "bad")
    for pid in ("ok", "bad"):
        tracker.transition(pid, RequestStatus.LOADING)
        tracker.update_progress(pid, 30)

    response = CompletionResponse(text="hi", model_id="m", execution_time_ms=3)
    assert tracker.succeed("ok", response)
    assert tracker.fail("bad", "server_error: boom")

    ok, bad = tracker.get("ok"), tracker.get("bad")
    assert ok.progress == 100 and ok.response == response and ok.error is None
    assert bad.progress == 30 and bad.error == "server_error: boom"


def test_snapshot_is_a_copy():
    tracker = _tracker("a")
    snap = tracker.snapshot()
    snap["a"].status = RequestStatus.SUCCESS
    assert tracker.get("a").status is RequestStatus.IDLE


def test_non_terminal_lists_only_live_slots():
    tracker = _tracker("a", "b", "c")
    tracker.fail("b", "cancelled")
    tracker.transition("c", RequestStatus.LOADING)
    assert tracker.non_terminal() == ["a", "c"]


def test_raising_listener_is_logged_and_others_still_run(captured_logs):
    tracker = RequestStateTracker()
    seen = []

    def broken(pid, state):
        raise RuntimeError("observer bug")

    tracker.subscribe_status(broken)
    tracker.subscribe_status(lambda pid, state: seen.append(state.status))
    tracker.reset([("a", "m")])
    tracker.transition("a", RequestStatus.LOADING)

    assert seen == [RequestStatus.IDLE, RequestStatus.LOADING]
    events = captured_logs.events("state.listener_error")
    assert len(events) == 2 and events[0]["kind"] == "status"


def test_unsubscribe_stops_notifications():
    tracker = _tracker("a")
    seen = []
    unsubscribe = tracker.subscribe_status(lambda pid, state: seen.append(state.status))
    tracker.transition("a", RequestStatus.LOADING)
    unsubscribe()
    unsubscribe()
    tracker.transition("a", RequestStatus.STREAMING)
    assert seen == [RequestStatus.LOADING]
