"""Selection Acquirer - Best-effort capture of the foreground application's selection."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from quick_translate.services.text_processing import normalize_freeform, normalize_text


class SelectionMode(Enum):
    """How captured text is normalized."""
    LOOKUP = "lookup"
    FREEFORM = "freeform"


@dataclass
class ClipboardSnapshot:
    """Every format held by the clipboard, as raw bytes, in clipboard order."""
    formats: List[Tuple[str, bytes]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.formats


class SelectionProbe(ABC):
    """Asks the focused UI element for its selected text directly."""

    @abstractmethod
    def selected_text(self) -> Optional[str]:
        """Return the selection, or None if it cannot be queried."""

    def has_selection(self) -> bool:
        text = self.selected_text()
        return bool(text and text.strip())


class ClipboardBackend(ABC):
    """Clipboard access used by the synthetic copy strategy."""

    @abstractmethod
    def snapshot(self) -> ClipboardSnapshot:
        pass

    @abstractmethod
    def restore(self, snapshot: ClipboardSnapshot) -> None:
        pass

    @abstractmethod
    def change_count(self) -> int:
        """Monotonic counter bumped on every clipboard change."""

    @abstractmethod
    def text(self) -> str:
        pass

    def wait(self, seconds: float) -> None:
        time.sleep(seconds)


class KeySender(ABC):
    """Sends the platform's copy shortcut to the foreground application."""

    @abstractmethod
    def send_copy(self) -> bool:
        """Returns False if the shortcut could not be sent at all."""


class SelectionAcquirer:
    """
    Produces the current selection as plain text, or None.

    Strategy 1 queries the focused element through the probe. If that yields
    nothing, strategy 2 snapshots the clipboard, sends a copy shortcut and
    polls the clipboard change counter; the snapshot is always written back,
    whatever the outcome. The copy strategy runs twice, with a longer wait on
    the second attempt.
    """

    COPY_WAIT_SECONDS: Sequence[float] = (2.8, 2.8 + 1.6)
    MIN_WAIT_SECONDS = 0.4
    POLL_INTERVAL = 0.02
    SETTLE_SECONDS = 0.35

    def __init__(
        self,
        probe: Optional[SelectionProbe],
        clipboard: Optional[ClipboardBackend],
        key_sender: Optional[KeySender],
        copy_waits: Optional[Sequence[float]] = None,
    ):
        self.probe = probe
        self.clipboard = clipboard
        self.key_sender = key_sender
        self.copy_waits = tuple(copy_waits) if copy_waits is not None else tuple(self.COPY_WAIT_SECONDS)

    def acquire(self, mode: SelectionMode = SelectionMode.LOOKUP) -> Optional[str]:
        """
        Capture and normalize the selection.

        Args:
            mode: LOOKUP collapses all whitespace; FREEFORM keeps paragraphs.

        Returns:
            Normalized text, or None if every strategy failed or produced only whitespace.
        """
        direct = self.query_direct(mode)
        if direct:
            return direct

        for max_wait in self.copy_waits:
            copied = self.copy_preserving_clipboard(max_wait)
            normalized = self._normalize(copied, mode)
            if normalized:
                return normalized
        return None

    def query_direct(self, mode: SelectionMode = SelectionMode.LOOKUP) -> Optional[str]:
        """Strategy 1 alone; used by the polling trigger, which must not touch the clipboard."""
        if self.probe is None:
            return None
        return self._normalize(self.probe.selected_text(), mode)

    def has_selection(self) -> bool:
        """True if the focused element reports a selection, even one we could not read."""
        return self.probe is not None and self.probe.has_selection()

    def copy_preserving_clipboard(self, max_wait: float) -> Optional[str]:
        if self.clipboard is None or self.key_sender is None:
            return None

        clipboard = self.clipboard
        snapshot = clipboard.snapshot()
        before = clipboard.change_count()
        try:
            if not self.key_sender.send_copy():
                return None

            waited = 0.0
            deadline = max(self.MIN_WAIT_SECONDS, max_wait)
            while clipboard.change_count() == before and waited < deadline:
                clipboard.wait(self.POLL_INTERVAL)
                waited += self.POLL_INTERVAL

            if clipboard.change_count() == before:
                return None

            text = clipboard.text()
            settled = 0.0
            while not text and settled < self.SETTLE_SECONDS:
                clipboard.wait(self.POLL_INTERVAL)
                settled += self.POLL_INTERVAL
                text = clipboard.text()
            return text or None
        finally:
            clipboard.restore(snapshot)

    @staticmethod
    def _normalize(text: Optional[str], mode: SelectionMode) -> Optional[str]:
        if not text:
            return None
        if mode is SelectionMode.FREEFORM:
            normalized = normalize_freeform(text)
        else:
            normalized = normalize_text(text)
        return normalized or None
