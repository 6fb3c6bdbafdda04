"""Domain layer - Pure entities representing wordbook content."""

from .errors import (
    CaptureUnavailable,
    ConfigurationMissing,
    DuplicateGenerated,
    HttpError,
    InvalidEndpoint,
    InvalidResponse,
    NetworkError,
    QuickTranslateError,
    ResolutionCancelled,
    SelectionTooLong,
)
from .offline_entry import OfflineEntry, OfflineLookupResult, OfflineSentence, OfflineTranslation
from .vocabulary_entities import (
    CacheStoreData,
    ItemKind,
    VocabExample,
    VocabItem,
    WordSense,
    dedupe_key,
    sort_senses,
)

__all__ = [
    "ItemKind",
    "VocabItem",
    "VocabExample",
    "WordSense",
    "CacheStoreData",
    "dedupe_key",
    "sort_senses",
    "OfflineEntry",
    "OfflineTranslation",
    "OfflineSentence",
    "OfflineLookupResult",
    "QuickTranslateError",
    "ConfigurationMissing",
    "InvalidEndpoint",
    "NetworkError",
    "HttpError",
    "InvalidResponse",
    "DuplicateGenerated",
    "CaptureUnavailable",
    "SelectionTooLong",
    "ResolutionCancelled",
]
