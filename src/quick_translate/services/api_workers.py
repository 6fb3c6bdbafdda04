"""Background task runners for blocking work (network calls, corpus file reads)."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Set

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal, Slot

ResultCallback = Callable[[Any], None]
ErrorCallback = Callable[[Exception], None]


class TaskRunner(ABC):
    """Runs a blocking callable off the GUI thread and reports back on it."""

    @abstractmethod
    def submit(self, fn: Callable[[], Any], on_result: ResultCallback, on_error: ErrorCallback) -> None:
        """
        Schedule ``fn``.

        Args:
            fn: Blocking callable; runs on a worker thread.
            on_result: Called with the return value, on the GUI thread.
            on_error: Called with the raised exception, on the GUI thread.
        """


class WorkerSignals(QObject):
    """
    Signals for communicating results from worker threads.

    QRunnable doesn't inherit from QObject, so we need a separate
    QObject to hold the signals.
    """
    finished = Signal()
    error = Signal(object)  # Exception
    result = Signal(object)


class BackgroundTask(QRunnable):
    """
    Worker that runs one blocking callable in a background thread.

    Uses Qt's thread pool for efficient thread management.
    Emits signals when the callable returns or raises.
    """

    def __init__(self, fn: Callable[[], Any]):
        super().__init__()
        self.fn = fn
        self.signals = WorkerSignals()
        self.setAutoDelete(True)

    @Slot()
    def run(self):
        """Execute the callable in background thread."""
        try:
            value = self.fn()
            self.signals.result.emit(value)
        except Exception as e:
            self.signals.error.emit(e)
        finally:
            self.signals.finished.emit()


class _TaskRequest(QObject):
    """Helper living on the GUI thread that holds the callbacks for one task."""

    def __init__(self, runner: "QtTaskRunner", on_result: ResultCallback, on_error: ErrorCallback):
        super().__init__()
        self.runner = runner
        self.on_result_cb = on_result
        self.on_error_cb = on_error

    @Slot(object)
    def on_result(self, value):
        self.on_result_cb(value)

    @Slot(object)
    def on_error(self, error):
        self.on_error_cb(error)

    @Slot()
    def on_finished(self):
        self.runner._release(self)


class QtTaskRunner(TaskRunner):
    """Task runner backed by ``QThreadPool``; callbacks arrive through queued signals."""

    def __init__(self, thread_pool: Optional[QThreadPool] = None):
        self.thread_pool = thread_pool or QThreadPool.globalInstance()
        # Helpers must outlive the worker, or queued results have no receiver
        self._pending: Set[_TaskRequest] = set()

    def submit(self, fn: Callable[[], Any], on_result: ResultCallback, on_error: ErrorCallback) -> None:
        worker = BackgroundTask(fn)
        request_helper = _TaskRequest(self, on_result, on_error)
        self._pending.add(request_helper)

        worker.signals.result.connect(request_helper.on_result)
        worker.signals.error.connect(request_helper.on_error)
        worker.signals.finished.connect(request_helper.on_finished)

        self.thread_pool.start(worker)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _release(self, request_helper: _TaskRequest) -> None:
        self._pending.discard(request_helper)


class InlineTaskRunner(TaskRunner):
    """
    Runs tasks synchronously on the calling thread.

    Useful for testing and for headless, single-shot use where blocking the
    caller is acceptable.
    """

    def submit(self, fn: Callable[[], Any], on_result: ResultCallback, on_error: ErrorCallback) -> None:
        try:
            value = fn()
        except Exception as e:
            on_error(e)
            return
        on_result(value)
