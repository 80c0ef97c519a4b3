"""Request worker — background thread for blocking API calls.

Runs one KanbanApiClient call off the UI thread. Outcomes come back as
Qt signals, which are delivered on the thread that connected them (the
UI thread), so coordinators only ever touch board state from one
thread.

RequestRunner is the seam the coordinators depend on:
  QtRequestRunner        one RequestWorker (QThread) per call
  ImmediateRequestRunner runs the call inline, before submit() returns
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol, runtime_checkable

from PyQt6.QtCore import QObject, QThread, pyqtSignal

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[BaseException], None]


class RequestHandle:
    """Caller-side handle for one submitted request.

    Cancelling does not recall a request already sent; it only
    guarantees that neither callback runs afterwards.
    """

    def __init__(self, label: str = "") -> None:
        self.label = label
        self._cancelled = False
        self._done = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    @property
    def active(self) -> bool:
        return not (self._done or self._cancelled)

    def cancel(self) -> None:
        self._cancelled = True

    def _finish(self) -> bool:
        """Mark settled. Returns False if the outcome must be dropped."""
        if self._cancelled or self._done:
            return False
        self._done = True
        return True


class RequestWorker(QThread):
    """Background thread executing one blocking call.

    Signals:
        result_ready(object): Return value of the call.
        error_occurred(object): Exception raised by the call.

    Usage:
        worker = RequestWorker(lambda: api.move_card("c1", "done"))
        worker.result_ready.connect(on_result)
        worker.error_occurred.connect(on_error)
        worker.start()
    """

    result_ready = pyqtSignal(object)
    error_occurred = pyqtSignal(object)

    def __init__(self, fn: Callable[[], Any], parent=None):
        super().__init__(parent)
        self._fn = fn
        self._cancelled = False

    def cancel(self) -> None:
        """Drop the outcome of the running call."""
        self._cancelled = True

    def run(self) -> None:
        """Execute the call in the background thread."""
        try:
            result = self._fn()
        except Exception as e:
            if not self._cancelled:
                self.error_occurred.emit(e)
            return
        if not self._cancelled:
            self.result_ready.emit(result)


@runtime_checkable
class RequestRunner(Protocol):
    """Submits blocking calls and reports their outcome on the UI thread."""

    def submit(
        self,
        fn: Callable[[], Any],
        on_success: SuccessCallback,
        on_error: ErrorCallback,
        label: str = "",
    ) -> RequestHandle: ...


class QtRequestRunner(QObject):
    """Runs each call in its own RequestWorker thread."""

    def __init__(self, parent: QObject | None = None):
        super().__init__(parent)
        self._workers: set[RequestWorker] = set()

    @property
    def in_flight(self) -> int:
        return len(self._workers)

    def submit(
        self,
        fn: Callable[[], Any],
        on_success: SuccessCallback,
        on_error: ErrorCallback,
        label: str = "",
    ) -> RequestHandle:
        handle = RequestHandle(label)
        worker = RequestWorker(fn, self)

        def _ok(result: Any) -> None:
            if handle._finish():
                on_success(result)

        def _err(error: BaseException) -> None:
            if handle._finish():
                on_error(error)

        def _finished() -> None:
            self._workers.discard(worker)
            worker.deleteLater()

        worker.result_ready.connect(_ok)
        worker.error_occurred.connect(_err)
        worker.finished.connect(_finished)
        self._workers.add(worker)
        logger.debug("Request started: %s", label or fn)
        worker.start()
        return handle

    def wait_all(self, msecs: int = 5000) -> None:
        """Block until every running worker has finished (shutdown)."""
        for worker in list(self._workers):
            worker.cancel()
            worker.wait(msecs)


class ImmediateRequestRunner(RequestRunner):
    """Runs each call inline and invokes the callback before returning."""

    def submit(
        self,
        fn: Callable[[], Any],
        on_success: SuccessCallback,
        on_error: ErrorCallback,
        label: str = "",
    ) -> RequestHandle:
        handle = RequestHandle(label)
        try:
            result = fn()
        except Exception as e:
            if handle._finish():
                on_error(e)
            return handle
        if handle._finish():
            on_success(result)
        return handle
