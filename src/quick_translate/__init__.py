"""
Quick Translate - selection lookup and translation companion for English learners.

This package provides the resolution core of a desktop helper that:
- Captures the text selected in the foreground application
- Resolves it through a result cache, an offline word corpus and a remote model
- Keeps a persistent wordbook of everything that was looked up
- Feeds previously seen words back for review
"""

__version__ = "0.1.0"

from quick_translate.core import ItemKind, VocabItem, WordSense, VocabExample, dedupe_key
from quick_translate.io import OfflineCorpusIndex, ResultCache

__all__ = [
    "ItemKind",
    "VocabItem",
    "WordSense",
    "VocabExample",
    "dedupe_key",
    "OfflineCorpusIndex",
    "ResultCache",
]
