"""Selection capture: direct query first, clipboard-preserving copy second."""

from quick_translate.services.selection.key_sender import SystemKeySender
from quick_translate.services.selection.qt_clipboard import (
    QtClipboardBackend,
    QtPrimarySelectionProbe,
    qt_wait,
)
from quick_translate.services.selection.selection_acquirer import (
    ClipboardBackend,
    ClipboardSnapshot,
    KeySender,
    SelectionAcquirer,
    SelectionMode,
    SelectionProbe,
)

__all__ = [
    "SelectionAcquirer",
    "SelectionMode",
    "SelectionProbe",
    "ClipboardBackend",
    "ClipboardSnapshot",
    "KeySender",
    "QtClipboardBackend",
    "QtPrimarySelectionProbe",
    "SystemKeySender",
    "qt_wait",
]
