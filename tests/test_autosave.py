import threading

import pytest

from dashboard.autosave import DebouncedSaver, SaveState


class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.callback()


@pytest.fixture
def timers():
    return []


@pytest.fixture
def make_saver(timers):
    def factory(delay, callback):
        timer = FakeTimer(delay, callback)
        timers.append(timer)
        return timer

    def _make(save_fn, delay=0.6):
        return DebouncedSaver(save_fn, delay=delay, timer_factory=factory)

    return _make


def test_schedule_arms_a_timer_and_marks_dirty(make_saver, timers):
    saver = make_saver(lambda payload: payload)
    assert saver.state == SaveState.IDLE
    saver.schedule("draft")
    assert saver.state == SaveState.DIRTY
    assert saver.has_pending
    assert len(timers) == 1
    assert timers[0].started and timers[0].daemon
    assert timers[0].delay == 0.6


def test_new_edit_rearms_and_only_latest_is_saved(make_saver, timers):
    saved = []
    saver = make_saver(saved.append)
    saver.schedule("one")
    saver.schedule("two")
    assert timers[0].cancelled
    timers[0].fire()
    assert saved == []
    timers[1].fire()
    assert saved == ["two"]
    assert saver.state == SaveState.IDLE
    assert not saver.has_pending
    assert saver.last_saved_at is not None


def test_flush_saves_immediately(make_saver, timers):
    saved = []
    saver = make_saver(saved.append)
    saver.schedule("now")
    assert saver.flush() is True
    assert saved == ["now"]
    assert timers[0].cancelled
    assert saver.flush() is True
    assert saved == ["now"]


def test_failed_save_keeps_the_payload_for_retry(make_saver):
    calls = []

    def flaky(payload):
        calls.append(payload)
        if len(calls) == 1:
            raise RuntimeError("server down")
        return "ok"

    saver = make_saver(flaky)
    saver.schedule("draft")
    assert saver.flush() is False
    assert saver.state == SaveState.ERROR
    assert saver.last_error == "server down"
    assert saver.has_pending

    assert saver.flush() is True
    assert calls == ["draft", "draft"]
    assert saver.state == SaveState.IDLE
    assert saver.last_error is None
    assert saver.last_result == "ok"


def test_cancel_drops_the_pending_write(make_saver, timers):
    saved = []
    saver = make_saver(saved.append)
    saver.schedule("discard me")
    saver.cancel()
    assert timers[0].cancelled
    assert saver.state == SaveState.IDLE
    assert saver.flush() is True
    assert saved == []


def test_edit_during_a_save_stays_pending_for_its_own_write(make_saver, timers):
    saved = []

    def save(payload):
        saved.append(payload)
        if payload == "first":
            saver.schedule("newer")

    saver = make_saver(save)
    saver.schedule("first")
    assert saver.flush() is True
    assert saved == ["first"]
    assert saver.state == SaveState.DIRTY
    assert saver.has_pending
    timers[-1].fire()
    assert saved == ["first", "newer"]
    assert saver.state == SaveState.IDLE
    assert not saver.has_pending


def test_timer_firing_during_a_save_is_re_armed(make_saver, timers):
    saved = []

    def save(payload):
        saved.append(payload)
        if payload == "first":
            saver.schedule("newer")
            timers[-1].fire()

    saver = make_saver(save)
    saver.schedule("first")
    saver.flush()
    assert saved == ["first"]
    assert saver.state == SaveState.DIRTY
    assert timers[-1].started and not timers[-1].cancelled
    timers[-1].fire()
    assert saved == ["first", "newer"]


def test_failed_save_keeps_a_newer_edit_dirty(make_saver, timers):
    def save(payload):
        if payload == "first":
            saver.schedule("newer")
            raise RuntimeError("timeout")

    saver = make_saver(save)
    saver.schedule("first")
    assert saver.flush() is False
    assert saver.last_error == "timeout"
    assert saver.state == SaveState.DIRTY
    timers[-1].fire()
    assert saver.state == SaveState.IDLE
    assert saver.last_error is None


def test_schedule_does_not_wait_for_a_slow_save(make_saver):
    started = threading.Event()
    release = threading.Event()

    def slow_save(payload):
        started.set()
        release.wait(timeout=5)

    saver = make_saver(slow_save)
    saver.schedule("first")
    writer = threading.Thread(target=saver.flush, daemon=True)
    writer.start()
    assert started.wait(timeout=5)

    editor = threading.Thread(target=saver.schedule, args=("second",), daemon=True)
    editor.start()
    editor.join(timeout=2)
    try:
        assert not editor.is_alive()
        assert saver.state == SaveState.DIRTY
    finally:
        release.set()
        writer.join(timeout=5)
    assert saver.has_pending
