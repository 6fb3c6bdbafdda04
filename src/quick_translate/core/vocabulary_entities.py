"""Wordbook entities shared by the cache, the offline corpus and the remote resolver."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ItemKind(str, Enum):
    WORD = "word"
    SENTENCE = "sentence"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ItemKind":
        """Map a loosely formatted kind string onto ItemKind, defaulting to WORD."""
        if raw and raw.strip().lower() == cls.SENTENCE.value:
            return cls.SENTENCE
        return cls.WORD


def dedupe_key(kind: ItemKind, front: str) -> str:
    """Build the kind-scoped, case and whitespace insensitive identity of an entry.

    Example:
        dedupe_key(ItemKind.WORD, " Run ") == "word::run"
    """
    normalized = front.strip().lower()
    return f"{ItemKind(kind).value}::{normalized}"


@dataclass
class WordSense:
    pos: str
    meaning: str
    freq: int

    def to_dict(self) -> Dict[str, Any]:
        return {"pos": self.pos, "meaning": self.meaning, "freq": self.freq}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WordSense":
        return cls(
            pos=str(data.get("pos") or ""),
            meaning=str(data.get("meaning") or ""),
            freq=_coerce_freq(data.get("freq")),
        )


def _coerce_freq(raw: Any) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return 1
    return max(1, min(5, value))


def sort_senses(senses: List[WordSense]) -> List[WordSense]:
    """Order senses most common first; equal ranks put the shorter meaning first.

    Python's sort is stable, so senses with equal rank and equal meaning length
    keep their incoming order.
    """
    return sorted(senses, key=lambda s: (-s.freq, len(s.meaning)))


@dataclass
class VocabExample:
    en: str
    zh: str
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {"en": self.en, "zh": self.zh, "createdAt": self.created_at.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VocabExample":
        return cls(
            en=str(data.get("en") or ""),
            zh=str(data.get("zh") or ""),
            created_at=_parse_datetime(data.get("createdAt")) or datetime.now(),
        )


@dataclass
class VocabItem:
    """A single wordbook entry, created on the first successful resolution."""

    kind: ItemKind
    front: str
    back: str
    phonetic: Optional[str] = None
    category: Optional[str] = None
    source: Optional[str] = None
    senses: Optional[List[WordSense]] = None
    examples: List[VocabExample] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)
    last_shown_at: Optional[datetime] = None
    times_shown: int = 0

    @property
    def dedupe_key(self) -> str:
        return dedupe_key(self.kind, self.front)

    @property
    def is_word(self) -> bool:
        return self.kind == ItemKind.WORD

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind.value,
            "front": self.front,
            "back": self.back,
            "phonetic": self.phonetic,
            "category": self.category,
            "source": self.source,
            "senses": [s.to_dict() for s in self.senses] if self.senses is not None else None,
            "examples": [e.to_dict() for e in self.examples],
            "createdAt": self.created_at.isoformat(),
            "lastShownAt": self.last_shown_at.isoformat() if self.last_shown_at else None,
            "timesShown": self.times_shown,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VocabItem":
        raw_senses = data.get("senses")
        senses = None
        if isinstance(raw_senses, list):
            senses = [WordSense.from_dict(s) for s in raw_senses if isinstance(s, dict)]
        return cls(
            id=str(data.get("id") or uuid.uuid4()),
            kind=ItemKind.parse(data.get("type")),
            front=str(data["front"]),
            back=str(data.get("back") or ""),
            phonetic=data.get("phonetic"),
            category=data.get("category"),
            source=data.get("source"),
            senses=senses,
            examples=[VocabExample.from_dict(e) for e in data.get("examples") or [] if isinstance(e, dict)],
            created_at=_parse_datetime(data.get("createdAt")) or datetime.now(),
            last_shown_at=_parse_datetime(data.get("lastShownAt")),
            times_shown=int(data.get("timesShown") or 0),
        )


@dataclass
class CacheStoreData:
    version: int = 1
    items: List[VocabItem] = field(default_factory=list)
    new_words_since_last_review: int = 0


def _parse_datetime(raw: Any) -> Optional[datetime]:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(str(raw))
    except ValueError:
        return None
