"""Text processing services - normalization, classification and script detection."""

from quick_translate.services.text_processing.classification import (
    classify_kind,
    contains_cjk,
    is_english_word,
    looks_like_code,
    normalize_selection_for_lookup,
    resolve_target_language,
    speech_text_for,
)
from quick_translate.services.text_processing.text_normalization import (
    normalize_freeform,
    normalize_text,
    strip_code_fence,
    strip_edge_punctuation,
)

__all__ = [
    "normalize_text",
    "normalize_freeform",
    "strip_code_fence",
    "strip_edge_punctuation",
    "classify_kind",
    "contains_cjk",
    "is_english_word",
    "looks_like_code",
    "normalize_selection_for_lookup",
    "resolve_target_language",
    "speech_text_for",
]
