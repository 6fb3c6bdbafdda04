"""Selection classification - word vs sentence, script detection, target language."""

import re
from typing import Optional

from quick_translate.core import ItemKind
from quick_translate.services.text_processing.text_normalization import (
    normalize_text,
    strip_edge_punctuation,
)

_ENGLISH_WORD_RE = re.compile(r"^[A-Za-z][A-Za-z\-']*$")


def contains_cjk(text: str) -> bool:
    """True if text has a CJK Unified Ideograph (base block or extension A)."""
    for ch in text:
        code = ord(ch)
        if 0x4E00 <= code <= 0x9FFF or 0x3400 <= code <= 0x4DBF:
            return True
    return False


def is_english_word(text: str) -> bool:
    return _ENGLISH_WORD_RE.match(text) is not None


def classify_kind(text: str) -> ItemKind:
    """A single alphabetic token (hyphens and apostrophes allowed) is a word."""
    t = text.strip()
    if is_english_word(t):
        return ItemKind.WORD
    return ItemKind.SENTENCE


def normalize_selection_for_lookup(text: str) -> str:
    """Collapse whitespace; a word wrapped in punctuation is reduced to the bare word."""
    normalized = normalize_text(text)
    if not normalized:
        return ""
    maybe_word = strip_edge_punctuation(normalized)
    if is_english_word(maybe_word):
        return maybe_word
    return normalized


def resolve_target_language(text: str, configured: str) -> str:
    """
    Resolve the translation target.

    ``auto`` translates CJK text to English and everything else to Chinese.
    """
    target = (configured or "").strip().lower()
    if target == "auto":
        return "en" if contains_cjk(text) else "zh"
    if target == "zh":
        return "zh"
    return "en"


def speech_text_for(original: str, translated: Optional[str]) -> str:
    """Pick what to read aloud: the English side of the pair, else whatever is present."""
    original = (original or "").strip()
    translated = (translated or "").strip()
    if contains_cjk(original) and translated and not contains_cjk(translated):
        return translated
    return original or translated


_CODE_LINE_RE = re.compile(r"[{};]\s*$|^\s*(def|class|function|import|from|return|if|for|while|const|let|var|public|private)\b|=>|::")


def looks_like_code(text: str) -> bool:
    """Heuristic: at least three lines and a third of them look like source code."""
    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 3:
        return False
    code_lines = sum(1 for line in lines if _CODE_LINE_RE.search(line))
    return code_lines * 3 >= len(lines)
