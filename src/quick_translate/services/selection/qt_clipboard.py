"""Qt implementations of the clipboard backend and the direct selection probe."""

import time
from typing import Optional

from PySide6.QtCore import QByteArray, QCoreApplication, QEventLoop, QMimeData, QThread
from PySide6.QtGui import QClipboard, QGuiApplication

from quick_translate.services.selection.selection_acquirer import (
    ClipboardBackend,
    ClipboardSnapshot,
    SelectionProbe,
)


def qt_wait(seconds: float) -> None:
    """Block the caller for ``seconds`` while still delivering Qt events."""
    deadline = time.monotonic() + max(0.0, seconds)
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return
        QCoreApplication.processEvents(QEventLoop.ProcessEventsFlag.AllEvents, int(remaining * 1000) + 1)
        QThread.msleep(min(10, max(1, int(remaining * 1000))))


class QtClipboardBackend(ClipboardBackend):
    """
    Clipboard backend over ``QGuiApplication.clipboard()``.

    Qt exposes no change counter, so one is kept here and bumped from the
    ``dataChanged`` signal. Waiting pumps the event loop so that signal can
    arrive while the caller polls.
    """

    def __init__(self, clipboard: Optional[QClipboard] = None):
        self._clipboard = clipboard or QGuiApplication.clipboard()
        self._changes = 0
        self._clipboard.dataChanged.connect(self._on_data_changed)

    def _on_data_changed(self) -> None:
        self._changes += 1

    def change_count(self) -> int:
        return self._changes

    def snapshot(self) -> ClipboardSnapshot:
        mime = self._clipboard.mimeData()
        if mime is None:
            return ClipboardSnapshot()
        return ClipboardSnapshot(formats=[(fmt, bytes(mime.data(fmt).data())) for fmt in mime.formats()])

    def restore(self, snapshot: ClipboardSnapshot) -> None:
        if snapshot.is_empty:
            self._clipboard.clear()
            return
        mime = QMimeData()
        for fmt, data in snapshot.formats:
            mime.setData(fmt, QByteArray(data))
        self._clipboard.setMimeData(mime)

    def text(self) -> str:
        return self._clipboard.text() or ""

    def wait(self, seconds: float) -> None:
        qt_wait(seconds)


class QtPrimarySelectionProbe(SelectionProbe):
    """
    Reads the X11 primary selection, which holds whatever text is highlighted.

    Platforms without a selection clipboard always report None.
    """

    def __init__(self, clipboard: Optional[QClipboard] = None):
        self._clipboard = clipboard or QGuiApplication.clipboard()

    def selected_text(self) -> Optional[str]:
        if not self._clipboard.supportsSelection():
            return None
        text = self._clipboard.text(QClipboard.Mode.Selection)
        return text or None
