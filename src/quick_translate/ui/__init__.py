"""UI layer - display and speech collaborators."""

from .display_sink import ConsoleDisplaySink, ConsoleSpeechSink, DisplaySink, SpeechSink
from .translation_popup import PopupDisplaySink, TranslationPopup

__all__ = [
    "DisplaySink",
    "SpeechSink",
    "ConsoleDisplaySink",
    "ConsoleSpeechSink",
    "PopupDisplaySink",
    "TranslationPopup",
]
