"""Deterministic stand-ins for the request runner and the debounce timer.

FakeRunner queues submitted calls instead of running them, so a test
decides when (and in which order) each request settles.
"""

from datetime import datetime, timezone
from typing import Any, Callable

from mfgboard.models.card import Card
from mfgboard.workers.request_worker import RequestHandle, RequestRunner


class PendingRequest:
    """One queued call."""

    def __init__(self, fn, on_success, on_error, handle: RequestHandle):
        self.fn = fn
        self.on_success = on_success
        self.on_error = on_error
        self.handle = handle

    @property
    def label(self) -> str:
        return self.handle.label

    def run(self) -> None:
        """Execute the call and deliver its outcome."""
        try:
            result = self.fn()
        except Exception as e:
            if self.handle._finish():
                self.on_error(e)
            return
        if self.handle._finish():
            self.on_success(result)

    def succeed(self, result: Any = None) -> None:
        """Deliver a success without running the call."""
        if self.handle._finish():
            self.on_success(result)

    def fail(self, error: BaseException) -> None:
        """Deliver a failure without running the call."""
        if self.handle._finish():
            self.on_error(error)


class FakeRunner(RequestRunner):
    """Queues requests until the test settles them."""

    def __init__(self):
        self.pending: list[PendingRequest] = []
        self.submitted: list[str] = []

    def submit(self, fn, on_success, on_error, label=""):
        handle = RequestHandle(label)
        self.pending.append(PendingRequest(fn, on_success, on_error, handle))
        self.submitted.append(label)
        return handle

    def take(self, prefix: str = "") -> PendingRequest:
        """Remove and return the oldest queued request whose label starts with prefix."""
        for i, req in enumerate(self.pending):
            if req.label.startswith(prefix):
                return self.pending.pop(i)
        raise AssertionError(f"No pending request matching {prefix!r}: {self.labels()}")

    def labels(self) -> list[str]:
        return [r.label for r in self.pending]

    def count(self, prefix: str = "") -> int:
        return sum(1 for r in self.pending if r.label.startswith(prefix))

    def run_all(self) -> None:
        """Run queued requests (including ones queued meanwhile) in FIFO order."""
        while self.pending:
            self.pending.pop(0).run()

    def run_matching(self, prefix: str) -> None:
        while self.count(prefix):
            self.take(prefix).run()


class FakeTimer:
    """Debounce timer driven by the test via fire()."""

    def __init__(self, callback: Callable[[], None], delay_ms: int):
        self.callback = callback
        self.delay_ms = delay_ms
        self.is_pending = False
        self.schedule_count = 0

    def schedule(self) -> None:
        self.is_pending = True
        self.schedule_count += 1

    def cancel(self) -> None:
        self.is_pending = False

    def fire(self) -> None:
        """Simulate the quiet period elapsing."""
        if self.is_pending:
            self.is_pending = False
            self.callback()


class FakeTimerFactory:
    """Timer factory that remembers the timers it created."""

    def __init__(self):
        self.timers: list[FakeTimer] = []

    def __call__(self, callback, delay_ms):
        timer = FakeTimer(callback, delay_ms)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]


def make_card(card_id: str, column_id: str = "backlog", **fields) -> Card:
    """Card with a fresh updated_at unless one is given."""
    fields.setdefault("title", f"Part {card_id}")
    fields.setdefault("updated_at", datetime.now(timezone.utc).isoformat())
    return Card(id=card_id, column_id=column_id, **fields)
