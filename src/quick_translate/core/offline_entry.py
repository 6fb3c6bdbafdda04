"""Offline corpus records as stored in the static per-category JSON files."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .vocabulary_entities import VocabExample, WordSense


@dataclass
class OfflineTranslation:
    translation: str
    pos: Optional[str] = None


@dataclass
class OfflineSentence:
    sentence: str
    translation: str


@dataclass
class OfflineEntry:
    word: str
    us: Optional[str] = None
    uk: Optional[str] = None
    translations: List[OfflineTranslation] = field(default_factory=list)
    sentences: List[OfflineSentence] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OfflineEntry":
        """Build an entry from one corpus JSON object.

        Raises:
            ValueError: If the object has no string ``word`` field.
        """
        word = data.get("word")
        if not isinstance(word, str):
            raise ValueError("corpus entry without 'word'")

        translations = [
            OfflineTranslation(translation=str(t.get("translation") or ""), pos=t.get("type"))
            for t in data.get("translations") or []
            if isinstance(t, dict)
        ]
        sentences = [
            OfflineSentence(sentence=str(s.get("sentence") or ""), translation=str(s.get("translation") or ""))
            for s in data.get("sentences") or []
            if isinstance(s, dict)
        ]
        return cls(
            word=word,
            us=data.get("us"),
            uk=data.get("uk"),
            translations=translations,
            sentences=sentences,
        )


@dataclass
class OfflineLookupResult:
    word: str
    phonetic: Optional[str]
    meaning: str
    senses: List[WordSense]
    example: Optional[VocabExample] = None
