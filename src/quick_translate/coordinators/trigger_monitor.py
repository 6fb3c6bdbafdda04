"""Selection Trigger Monitor - Turns hotkeys, pointer releases and polling into trigger events."""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from quick_translate.services import AppConfig, SelectionAcquirer


class TriggerAction(Enum):
    TRANSLATE = "translate"
    ASK = "ask"


class TriggerOrigin(Enum):
    HOTKEY = "hotkey"
    POINTER = "pointer"
    POLL = "poll"
    MANUAL = "manual"


@dataclass(frozen=True)
class TriggerEvent:
    """
    One request to resolve the current selection.

    ``text`` is set when the source already read the selection (polling);
    ``question`` only applies to ASK events.
    """
    action: TriggerAction
    origin: TriggerOrigin
    text: Optional[str] = None
    question: str = ""


class SelectionTriggerMonitor(QObject):
    """
    Debouncing trigger source.

    Hotkey presses fire immediately unless they repeat within the refractory
    window. Pointer releases wait for a short quiet period so a drag in
    progress never fires. In ``auto`` mode a poll timer samples the direct
    selection query and fires only once two consecutive samples agree.

    Signals:
    - triggered: emitted with a TriggerEvent
    """

    triggered = Signal(object)

    DEBOUNCE_MS = 220
    POLL_INTERVAL_MS = 350
    HOTKEY_REFRACTORY_SECONDS = 0.25

    def __init__(
        self,
        config: AppConfig,
        acquirer: SelectionAcquirer,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__()
        self.config = config
        self.acquirer = acquirer
        self._clock = clock

        self._last_hotkey_at: Optional[float] = None
        self._pending_poll_text = ""

        self._debounce_timer = QTimer(self)
        self._debounce_timer.setSingleShot(True)
        self._debounce_timer.setInterval(self.DEBOUNCE_MS)
        self._debounce_timer.timeout.connect(self._on_debounce_elapsed)

        self._poll_timer = QTimer(self)
        self._poll_timer.setInterval(self.POLL_INTERVAL_MS)
        self._poll_timer.timeout.connect(self.poll_tick)

    @property
    def auto_mode(self) -> bool:
        return self.config.trigger_mode.lower() == "auto"

    def start(self) -> None:
        if self.auto_mode:
            self._poll_timer.start()

    def stop(self) -> None:
        self._debounce_timer.stop()
        self._poll_timer.stop()
        self._pending_poll_text = ""

    @property
    def is_polling(self) -> bool:
        return self._poll_timer.isActive()

    def watch_selection_changes(self, clipboard) -> bool:
        """
        Treat every primary-selection change as a pointer release.

        On X11 the selection clipboard changes while the user drags across
        text, so the debounce timer fires once the drag settles.

        Returns:
            False if the platform has no selection clipboard.
        """
        if not clipboard.supportsSelection():
            return False
        clipboard.selectionChanged.connect(self.pointer_released)
        return True

    @Slot()
    def hotkey_pressed(self) -> None:
        now = self._clock()
        if self._last_hotkey_at is not None and now - self._last_hotkey_at < self.HOTKEY_REFRACTORY_SECONDS:
            return
        self._last_hotkey_at = now
        self.triggered.emit(TriggerEvent(TriggerAction.TRANSLATE, TriggerOrigin.HOTKEY))

    @Slot()
    def pointer_released(self) -> None:
        """Restart the quiet-period timer; only the last release of a burst fires."""
        if not self.auto_mode:
            return
        self._debounce_timer.start()

    @Slot()
    def _on_debounce_elapsed(self) -> None:
        self.triggered.emit(TriggerEvent(TriggerAction.TRANSLATE, TriggerOrigin.POINTER))

    @Slot()
    def poll_tick(self) -> None:
        if not self.config.quick_translate_enabled or not self.auto_mode:
            return

        text = self.acquirer.query_direct() or ""
        if not text or len(text) > self.config.max_selection_chars:
            self._pending_poll_text = ""
            return

        if text == self._pending_poll_text:
            self.triggered.emit(TriggerEvent(TriggerAction.TRANSLATE, TriggerOrigin.POLL, text=text))
        else:
            self._pending_poll_text = text

    @Slot(str)
    def ask_requested(self, question: str = "") -> None:
        self.triggered.emit(TriggerEvent(TriggerAction.ASK, TriggerOrigin.MANUAL, question=question))
