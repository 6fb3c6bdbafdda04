"""File-backed wordbook cache keyed by (kind, normalized front text)."""

import json
import os
import random
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Set

from quick_translate.core import CacheStoreData, ItemKind, VocabItem, WordSense, dedupe_key


class ResultCache:
    """
    Persistent store of every resolved word and sentence.

    The whole store lives in a single JSON file that is read once at startup
    and rewritten atomically after every mutation.

    Format:
    {
        "version": 1,
        "items": [
            {
                "id": "...",
                "type": "word",
                "front": "algorithm",
                "back": "算法",
                "phonetic": "/ˈælɡərɪðəm/",
                "category": "lookup",
                "source": "lookup",
                "senses": [{"pos": "n.", "meaning": "算法", "freq": 5}],
                "examples": [],
                "createdAt": "2026-01-19T12:34:56",
                "lastShownAt": null,
                "timesShown": 0
            }
        ],
        "newWordsSinceLastReview": 0
    }
    """

    CACHE_VERSION = 1
    CACHE_FILENAME = "store.json"
    REVIEW_POOL_SIZE = 20

    def __init__(self, cache_file: Path):
        self._cache_file = Path(cache_file)
        self._data = self._load()
        self._index: Dict[str, int] = {}
        self._rebuild_index()

    @property
    def cache_file(self) -> Path:
        return self._cache_file

    @property
    def new_words_since_last_review(self) -> int:
        return self._data.new_words_since_last_review

    def items(self) -> List[VocabItem]:
        return list(self._data.items)

    def existing_dedupe_keys(self) -> Set[str]:
        return set(self._index.keys())

    def find(self, kind: ItemKind, front: str) -> Optional[VocabItem]:
        """Return the stored item with the same dedupe key, if any. No I/O."""
        idx = self._index.get(dedupe_key(kind, front))
        if idx is None:
            return None
        return self._data.items[idx]

    def upsert(
        self,
        kind: ItemKind,
        front: str,
        back: str,
        phonetic: Optional[str] = None,
        category: Optional[str] = None,
        source: Optional[str] = None,
        senses: Optional[List[WordSense]] = None,
    ) -> VocabItem:
        """
        Insert a new item or merge into the one with the same dedupe key.

        Merge rules: back, phonetic and senses are only overwritten by non-empty
        incoming values; category and source are only filled when unset.

        Returns:
            The stored item after the merge.
        """
        key = dedupe_key(kind, front)
        idx = self._index.get(key)

        if idx is not None:
            item = self._data.items[idx]
            if back and back.strip():
                item.back = back
            if phonetic and phonetic.strip():
                item.phonetic = phonetic
            if senses:
                item.senses = list(senses)
            if item.category is None:
                item.category = category
            if item.source is None:
                item.source = source
            self._save()
            return item

        item = VocabItem(
            kind=kind,
            front=front,
            back=back,
            phonetic=phonetic,
            category=category,
            source=source,
            senses=list(senses) if senses else None,
        )
        self._append(item)
        self._save()
        return item

    def add_item_if_new(self, item: VocabItem) -> bool:
        """Store an externally built item unless its dedupe key already exists."""
        if item.dedupe_key in self._index:
            return False
        self._append(item)
        self._save()
        return True

    def update_item(self, updated: VocabItem) -> None:
        """Replace the stored item carrying the same id."""
        for idx, existing in enumerate(self._data.items):
            if existing.id == updated.id:
                self._data.items[idx] = updated
                self._rebuild_index()
                self._save()
                return

    def record_shown(self, item: VocabItem, counted_as_new_word: bool) -> VocabItem:
        """Bump the display counter and timestamp, optionally counting a new word."""
        stored = self._find_by_id(item.id) or item
        stored.times_shown += 1
        stored.last_shown_at = datetime.now()
        if counted_as_new_word:
            self._data.new_words_since_last_review += 1
        self._save()
        return stored

    def reset_new_word_counter(self) -> None:
        self._data.new_words_since_last_review = 0
        self._save()

    def pick_old_word_for_review(self) -> Optional[VocabItem]:
        """Pick one of the least recently shown words that were already seen."""
        old_words = [i for i in self._data.items if i.kind == ItemKind.WORD and i.times_shown > 0]
        if not old_words:
            return None
        old_words.sort(key=lambda i: i.last_shown_at or datetime.min)
        return random.choice(old_words[: self.REVIEW_POOL_SIZE])

    def random_item(self) -> Optional[VocabItem]:
        if not self._data.items:
            return None
        return random.choice(self._data.items)

    def stats_summary(self) -> str:
        words = [i for i in self._data.items if i.kind == ItemKind.WORD]
        sentences = [i for i in self._data.items if i.kind == ItemKind.SENTENCE]
        learned = sum(1 for w in words if w.times_shown > 0)
        examples = sum(len(w.examples) for w in words)
        return (
            f"Words: {len(words)} (learned: {learned})\n"
            f"Sentences: {len(sentences)}\n"
            f"Examples: {examples}"
        )

    def _find_by_id(self, item_id: str) -> Optional[VocabItem]:
        return next((i for i in self._data.items if i.id == item_id), None)

    def _append(self, item: VocabItem) -> None:
        self._data.items.append(item)
        self._index[item.dedupe_key] = len(self._data.items) - 1

    def _rebuild_index(self) -> None:
        # First occurrence wins if a hand-edited file carries duplicates.
        self._index = {}
        for idx, item in enumerate(self._data.items):
            self._index.setdefault(item.dedupe_key, idx)

    def _load(self) -> CacheStoreData:
        """Read the store; a missing or corrupt file yields an empty store."""
        if not self._cache_file.exists():
            return CacheStoreData(version=self.CACHE_VERSION)

        try:
            data = json.loads(self._cache_file.read_text(encoding="utf-8"))
            items = [VocabItem.from_dict(raw) for raw in data.get("items", [])]
            return CacheStoreData(
                version=int(data.get("version", self.CACHE_VERSION)),
                items=items,
                new_words_since_last_review=int(data.get("newWordsSinceLastReview", 0)),
            )
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError, OSError) as e:
            print(f"[cache] Error reading cache file {self._cache_file}: {e}")
            return CacheStoreData(version=self.CACHE_VERSION)

    def _save(self) -> None:
        payload = {
            "version": self._data.version,
            "items": [item.to_dict() for item in self._data.items],
            "newWordsSinceLastReview": self._data.new_words_since_last_review,
        }
        text = json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)

        tmp_name = None
        try:
            self._cache_file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".store-", suffix=".tmp", dir=str(self._cache_file.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            os.replace(tmp_name, self._cache_file)
            tmp_name = None
        except OSError as e:
            print(f"[cache] Error writing cache file {self._cache_file}: {e}")
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
