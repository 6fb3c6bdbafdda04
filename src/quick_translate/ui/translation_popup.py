"""Translation Popup - Frameless card showing the latest resolution near the cursor."""

from typing import List, Optional

from PySide6.QtCore import QPoint, Qt, Signal
from PySide6.QtGui import QCursor
from PySide6.QtWidgets import QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from quick_translate.core import WordSense
from quick_translate.ui.display_sink import DisplaySink, format_senses, provenance_label


class TranslationPopup(QWidget):
    """
    Small always-on-top card.

    Signals:
    - more_requested: user asked for more meanings of the shown word
    - speak_requested: user asked to hear the shown text
    """

    more_requested = Signal()
    speak_requested = Signal()

    MAX_WIDTH = 420

    def __init__(self):
        super().__init__(None, Qt.WindowType.Tool | Qt.WindowType.FramelessWindowHint | Qt.WindowType.WindowStaysOnTopHint)
        self.setAttribute(Qt.WidgetAttribute.WA_ShowWithoutActivating)
        self._setup_ui()

    def _setup_ui(self):
        """Setup the UI layout."""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 10, 12, 10)

        self.original_label = QLabel()
        self.original_label.setWordWrap(True)
        self.original_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        self.original_label.setStyleSheet("font-weight: bold;")
        layout.addWidget(self.original_label)

        self.translated_label = QLabel()
        self.translated_label.setWordWrap(True)
        self.translated_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        layout.addWidget(self.translated_label)

        self.senses_label = QLabel()
        self.senses_label.setWordWrap(True)
        self.senses_label.setStyleSheet("color: gray;")
        layout.addWidget(self.senses_label)

        footer = QHBoxLayout()
        self.source_label = QLabel()
        self.source_label.setStyleSheet("color: gray; font-size: 10px;")
        footer.addWidget(self.source_label)
        footer.addStretch()

        self.more_button = QPushButton("More")
        self.more_button.clicked.connect(self.more_requested.emit)
        footer.addWidget(self.more_button)

        read_button = QPushButton("Read")
        read_button.clicked.connect(self.speak_requested.emit)
        footer.addWidget(read_button)
        layout.addLayout(footer)

        self.setMaximumWidth(self.MAX_WIDTH)

    def show_result(
        self,
        original: str,
        phonetic: Optional[str],
        translated: str,
        is_word: bool,
        senses: Optional[List[WordSense]],
        remote_used: Optional[bool],
    ):
        self.original_label.setText(original if not phonetic else f"{original}  {phonetic}")
        self.translated_label.setText(translated)
        details = format_senses(senses)
        self.senses_label.setText(details)
        self.senses_label.setVisible(bool(details))
        self.more_button.setVisible(is_word)
        self.source_label.setText(provenance_label(remote_used))

        self.adjustSize()
        self.move(QCursor.pos() + QPoint(12, 16))
        self.show()
        self.raise_()


class PopupDisplaySink(DisplaySink):
    """Adapts TranslationPopup to the DisplaySink interface."""

    def __init__(self, popup: TranslationPopup):
        self.popup = popup

    def render(self, original, phonetic, translated, is_word, senses, remote_used) -> None:
        self.popup.show_result(original, phonetic, translated, is_word, senses, remote_used)

    def hide(self) -> None:
        self.popup.hide()
