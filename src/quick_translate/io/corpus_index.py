"""Offline corpus index - lazy lookup over static per-category word/sentence files."""

import json
import random
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

from quick_translate.core import (
    ItemKind,
    OfflineEntry,
    OfflineLookupResult,
    OfflineSentence,
    VocabExample,
    VocabItem,
    WordSense,
    sort_senses,
)

# Filename prefix -> category id. Checked in order, first match wins.
CATEGORY_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ("WaiYanSheChuZhong", "junior"),
    ("PEPChuZhong", "junior"),
    ("ChuZhong", "junior"),
    ("BeiShiGaoZhong", "high"),
    ("PEPGaoZhong", "high"),
    ("GaoZhong", "high"),
    ("CET4", "cet4"),
    ("CET6", "cet6"),
    ("KaoYan", "kaoyan"),
    ("TOEFL", "toefl"),
    ("SAT", "sat"),
)

CORPUS_SUBDIR = Path("json_original") / "json-sentence"
OFFLINE_SOURCE = "offline"

_PUNCTUATION_RE = re.compile(r"[^\w\s]", re.UNICODE)
_WHITESPACE_RE = re.compile(r"\s+")


def category_for_file(base_name: str) -> Optional[str]:
    """Return the category id for a corpus file base name, or None if unknown."""
    for prefix, category in CATEGORY_PREFIXES:
        if base_name.startswith(prefix):
            return category
    return None


def read_corpus_file(path: Path) -> List[OfflineEntry]:
    """
    Parse one corpus file. Safe to call from a background thread.

    A file holds either a JSON array of entries or a single entry object.

    Raises:
        ValueError: If the file is not valid corpus JSON.
        OSError: If the file cannot be read.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, list):
        return [OfflineEntry.from_dict(raw) for raw in data if isinstance(raw, dict) and "word" in raw]
    if isinstance(data, dict):
        return [OfflineEntry.from_dict(data)]
    raise ValueError(f"Failed to decode {Path(path).name}")


def normalize_word_key(text: str) -> str:
    return text.strip().lower()


def sentence_keys(text: str) -> List[str]:
    """Return the raw normalized key and a punctuation-stripped variant."""
    raw = _WHITESPACE_RE.sub(" ", text.strip().lower())
    stripped = _WHITESPACE_RE.sub(" ", _PUNCTUATION_RE.sub(" ", raw)).strip()
    keys = [raw] if raw else []
    if stripped and stripped != raw:
        keys.append(stripped)
    return keys


@dataclass(frozen=True)
class CorpusLocation:
    category: str
    file: Path
    position: int
    sentence_position: int = -1


class OfflineCorpusIndex:
    """
    Lazily built index over the offline corpus.

    Files are grouped by category from their name prefix and only parsed on
    first access. Every parsed file feeds a cumulative word/sentence index;
    a lookup miss may trigger a single background full scan, guarded by
    ``fully_scanned``.

    All mutating methods must run on the GUI thread. Background callers use
    ``read_corpus_file`` and hand the result to ``ingest``.
    """

    NATIVE_LANGUAGE = "zh"
    MAX_PICK_ATTEMPTS = 80

    def __init__(self, root: Optional[Path], rng: Optional[random.Random] = None):
        self._root = Path(root) if root else None
        self._rng = rng or random.Random()
        self._catalogued = False
        self._files_by_category: Dict[str, List[Path]] = {}
        self._category_by_file: Dict[Path, str] = {}
        self._entries_cache: Dict[Path, List[OfflineEntry]] = {}
        self._failed_files: Set[Path] = set()
        self._word_index: Dict[str, CorpusLocation] = {}
        self._sentence_index: Dict[str, CorpusLocation] = {}
        self.fully_scanned = False
        self.scan_in_progress = False

    def is_available(self) -> bool:
        self._ensure_catalog()
        return bool(self._files_by_category)

    def pending_files(self) -> List[Path]:
        """Files that have not been parsed yet, in deterministic scan order."""
        self._ensure_catalog()
        return [
            f
            for f in sorted(self._category_by_file, key=lambda p: p.name)
            if f not in self._entries_cache and f not in self._failed_files
        ]

    def ingest(self, file: Path, entries: List[OfflineEntry]) -> None:
        """Cache parsed entries for a file and add them to the lookup index."""
        if file in self._entries_cache:
            return
        self._entries_cache[file] = entries
        self._index_entries(entries, file)

    def mark_failed(self, file: Path, error: Exception) -> None:
        print(f"[offline] Skipping unreadable corpus file {file}: {error}")
        self._failed_files.add(file)

    def mark_fully_scanned(self) -> None:
        self.fully_scanned = True
        self.scan_in_progress = False

    def find_word(self, word: str) -> Optional[OfflineLookupResult]:
        """Look up an already indexed word. Never touches the disk."""
        loc = self._word_index.get(normalize_word_key(word))
        if loc is None:
            return None
        entries = self._entries_cache.get(loc.file) or []
        if not 0 <= loc.position < len(entries):
            return None
        item = self._make_word_item(entries[loc.position], loc.category)
        return OfflineLookupResult(
            word=item.front,
            phonetic=item.phonetic,
            meaning=item.back,
            senses=item.senses or [],
            example=item.examples[-1] if item.examples else None,
        )

    def find_sentence(self, sentence: str) -> Optional[VocabItem]:
        """Look up an already indexed sentence. Never touches the disk."""
        for key in sentence_keys(sentence):
            loc = self._sentence_index.get(key)
            if loc is None:
                continue
            entries = self._entries_cache.get(loc.file) or []
            if not 0 <= loc.position < len(entries):
                continue
            sentences = entries[loc.position].sentences
            if not 0 <= loc.sentence_position < len(sentences):
                continue
            return self._make_sentence_item(sentences[loc.sentence_position], loc.category)
        return None

    def pick_item(
        self,
        enabled_categories: Iterable[str],
        existing_dedupe_keys: Set[str],
        word_weight: int,
        sentence_weight: int,
    ) -> Optional[VocabItem]:
        """
        Draw a random unseen item by rejection sampling.

        Samples category, then file, then entry uniformly, discarding blank and
        already known items, and gives up after MAX_PICK_ATTEMPTS draws.

        Returns:
            A new VocabItem, or None after MAX_PICK_ATTEMPTS rejected draws.
        """
        self._ensure_catalog()

        categories = [c for c in enabled_categories if c in self._files_by_category]
        if not categories:
            categories = sorted(self._files_by_category)
        if not categories:
            return None

        total = max(1, word_weight + sentence_weight)
        want_word = self._rng.randint(1, total) <= max(0, word_weight)

        for _ in range(self.MAX_PICK_ATTEMPTS):
            category = self._rng.choice(categories)
            file = self._rng.choice(self._files_by_category[category])
            entries = self._entries_for(file)
            if not entries:
                continue
            entry = self._rng.choice(entries)

            if want_word:
                item = self._make_word_item(entry, category)
            else:
                if not entry.sentences:
                    continue
                item = self._make_sentence_item(self._rng.choice(entry.sentences), category)

            if not item.front.strip() or not item.back.strip():
                continue
            if item.dedupe_key in existing_dedupe_keys:
                continue
            return item

        return None

    def _entries_for(self, file: Path) -> List[OfflineEntry]:
        cached = self._entries_cache.get(file)
        if cached is not None:
            return cached
        if file in self._failed_files:
            return []
        try:
            entries = read_corpus_file(file)
        except (OSError, ValueError) as e:
            self.mark_failed(file, e)
            return []
        self.ingest(file, entries)
        return entries

    def _ensure_catalog(self) -> None:
        if self._catalogued:
            return
        self._catalogued = True

        if self._root is None:
            return
        corpus_dir = self._root / CORPUS_SUBDIR
        if not corpus_dir.is_dir():
            print(f"[offline] Corpus directory not found: {corpus_dir}")
            return

        by_category: Dict[str, List[Path]] = {}
        for path in corpus_dir.iterdir():
            if path.name.startswith(".") or not path.is_file():
                continue
            if path.suffix.lower() != ".json":
                continue
            category = category_for_file(path.stem)
            if category is None:
                continue
            by_category.setdefault(category, []).append(path)
            self._category_by_file[path] = category

        self._files_by_category = {
            category: sorted(files, key=lambda p: p.name) for category, files in by_category.items()
        }

    def _index_entries(self, entries: List[OfflineEntry], file: Path) -> None:
        category = self._category_by_file.get(file)
        if category is None:
            return
        for position, entry in enumerate(entries):
            word_key = normalize_word_key(entry.word)
            if word_key:
                self._word_index.setdefault(word_key, CorpusLocation(category, file, position))
            for sentence_position, sentence in enumerate(entry.sentences):
                for key in sentence_keys(sentence.sentence):
                    self._sentence_index.setdefault(
                        key, CorpusLocation(category, file, position, sentence_position)
                    )

    def _make_word_item(self, entry: OfflineEntry, category: str) -> VocabItem:
        meaning, senses = _meaning_and_senses(entry)
        examples = []
        if entry.sentences:
            first = entry.sentences[0]
            en = first.sentence.strip()
            if en:
                examples.append(VocabExample(en=en, zh=first.translation.strip()))
        return VocabItem(
            kind=ItemKind.WORD,
            front=entry.word.strip(),
            back=meaning,
            phonetic=_normalize_phonetic(entry.us, entry.uk),
            category=category,
            source=OFFLINE_SOURCE,
            senses=senses or None,
            examples=examples,
        )

    def _make_sentence_item(self, sentence: OfflineSentence, category: str) -> VocabItem:
        return VocabItem(
            kind=ItemKind.SENTENCE,
            front=sentence.sentence.strip(),
            back=sentence.translation.strip(),
            category=category,
            source=OFFLINE_SOURCE,
        )


def _normalize_phonetic(us: Optional[str], uk: Optional[str]) -> Optional[str]:
    for raw in (us, uk):
        value = (raw or "").strip()
        if not value:
            continue
        if value.startswith("/") and value.endswith("/") and len(value) > 1:
            return value
        return f"/{value}/"
    return None


def _normalize_pos(raw: Optional[str]) -> str:
    pos = (raw or "").strip()
    if not pos or pos.endswith("."):
        return pos
    return f"{pos}."


def _meaning_and_senses(entry: OfflineEntry) -> Tuple[str, List[WordSense]]:
    lines: List[str] = []
    senses: List[WordSense] = []
    for idx, translation in enumerate(entry.translations):
        meaning = translation.translation.strip()
        if not meaning:
            continue
        pos = _normalize_pos(translation.pos)
        lines.append(f"{pos} {meaning}" if pos else meaning)
        # Corpus files list the most common translation first.
        senses.append(WordSense(pos=pos or "·", meaning=meaning, freq=max(1, 5 - idx)))
    return "\n".join(lines).strip(), sort_senses(senses)
