r"""Debounced autosave for the note editors.

State machine::

    IDLE --edit--> DIRTY --timer/flush--> SAVING --ok--> IDLE
                     ^  \--edit (re-arm)                \--error--> ERROR
                     \------------------------------ edit ------------/

A write always sends the whole document, so the last writer wins. The lock
is never held while a write is in flight; an edit made meanwhile stays DIRTY
and goes out on its own timer.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

NOTE_DELAY_SECONDS = 0.6
DAILY_NOTE_DELAY_SECONDS = 1.5


class SaveState(str, Enum):
    IDLE = "idle"
    DIRTY = "dirty"
    SAVING = "saving"
    ERROR = "error"


class DebouncedSaver:
    def __init__(
        self,
        save_fn: Callable[[Any], Any],
        delay: float = NOTE_DELAY_SECONDS,
        timer_factory: Callable[..., Any] = threading.Timer,
    ):
        self._save_fn = save_fn
        self._delay = delay
        self._timer_factory = timer_factory
        self._lock = threading.RLock()
        self._timer = None
        self._pending = None
        self._in_flight = False
        self.state = SaveState.IDLE
        self.last_error: Optional[str] = None
        self.last_saved_at: Optional[datetime] = None
        self.last_result: Any = None

    @property
    def has_pending(self) -> bool:
        return self.state in (SaveState.DIRTY, SaveState.ERROR) and self._pending is not None

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _arm_timer(self):
        timer = self._timer_factory(self._delay, self.flush)
        timer.daemon = True
        self._timer = timer
        timer.start()

    def schedule(self, payload: Any) -> None:
        with self._lock:
            self._cancel_timer()
            self._pending = payload
            self.state = SaveState.DIRTY
            self._arm_timer()

    def flush(self) -> bool:
        """Write the pending payload now. Returns False when the write failed.

        A call made while another write is in flight returns at once; the
        newer payload stays pending and is re-armed once that write settles.
        """
        with self._lock:
            self._cancel_timer()
            if self._pending is None or self._in_flight:
                return self.state != SaveState.ERROR
            payload = self._pending
            self._in_flight = True
            self.state = SaveState.SAVING
        try:
            result = self._save_fn(payload)
        except Exception as exc:
            logger.exception("Autosave failed: %s", exc)
            with self._lock:
                self._in_flight = False
                self.last_error = str(exc)
                if self._pending is payload:
                    self.state = SaveState.ERROR
                elif self._pending is not None and self._timer is None:
                    self._arm_timer()
            return False
        with self._lock:
            self._in_flight = False
            self.last_result = result
            self.last_error = None
            self.last_saved_at = datetime.now()
            if self._pending is payload:
                self._pending = None
            if self._pending is None:
                self.state = SaveState.IDLE
            elif self._timer is None:
                self._arm_timer()
        return True

    def cancel(self) -> None:
        with self._lock:
            self._cancel_timer()
            self._pending = None
            self.state = SaveState.IDLE
