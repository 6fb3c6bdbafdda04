"""Cancellation token threaded through background resolution work."""

import threading

from quick_translate.core import ResolutionCancelled


class CancellationToken:
    """
    One-way cancellation flag shared between the GUI thread and a worker.

    The GUI thread calls ``cancel()`` when a newer trigger supersedes the
    request; background code polls ``raise_if_cancelled()`` between steps and
    uses ``wait()`` instead of ``time.sleep`` so backoff delays end early.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ResolutionCancelled()

    def wait(self, seconds: float) -> None:
        """Sleep up to ``seconds``; raises ResolutionCancelled if cancelled meanwhile."""
        if seconds > 0 and self._event.wait(seconds):
            raise ResolutionCancelled()
        self.raise_if_cancelled()
