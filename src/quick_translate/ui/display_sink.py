"""Display and speech collaborators consumed by the resolution pipeline."""

from abc import ABC, abstractmethod
from typing import List, Optional

from quick_translate.core import WordSense


class DisplaySink(ABC):
    """
    Receives everything the pipeline wants the user to see.

    ``remote_used`` is tri-state: True for a remote answer, False for a cached
    or offline one and None while a request is still pending.
    """

    @abstractmethod
    def render(
        self,
        original: str,
        phonetic: Optional[str],
        translated: str,
        is_word: bool,
        senses: Optional[List[WordSense]],
        remote_used: Optional[bool],
    ) -> None:
        pass

    @abstractmethod
    def hide(self) -> None:
        pass


class SpeechSink(ABC):
    """Reads plain text aloud; synthesis is entirely up to the implementation."""

    @abstractmethod
    def speak(self, text: str) -> None:
        pass

    def stop(self) -> None:
        pass


def provenance_label(remote_used: Optional[bool]) -> str:
    if remote_used is None:
        return "pending"
    return "LLM" if remote_used else "local"


def format_senses(senses: Optional[List[WordSense]]) -> str:
    if not senses:
        return ""
    return "\n".join(f"{s.pos} {s.meaning}".strip() for s in senses)


class ConsoleDisplaySink(DisplaySink):
    """Prints render calls to stdout; used headless and in the terminal front end."""

    def render(self, original, phonetic, translated, is_word, senses, remote_used) -> None:
        header = original if not phonetic else f"{original}  {phonetic}"
        print(f"[{provenance_label(remote_used)}] {header}")
        print(f"    {translated}")
        details = format_senses(senses)
        if details:
            for line in details.splitlines():
                print(f"    - {line}")

    def hide(self) -> None:
        pass


class ConsoleSpeechSink(SpeechSink):
    def speak(self, text: str) -> None:
        print(f"[speech] {text}")
