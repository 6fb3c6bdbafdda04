"""Text normalization utilities for selections and cache keying."""

import re
import unicodedata

_WHITESPACE_RE = re.compile(r"\s+")
_INLINE_SPACE_RE = re.compile(r"[ \t\f\v]+")
_EXCESS_BLANK_LINES_RE = re.compile(r"\n(?:[ \t]*\n){3,}")


def normalize_text(text: str) -> str:
    """
    Normalize a selection for lookup.

    Rules:
    - Trim leading and trailing whitespace
    - Collapse runs of whitespace (spaces, tabs, newlines) to single spaces

    Args:
        text: Original selected text.

    Returns:
        Normalized text string.
    """
    text = text.strip()
    text = _WHITESPACE_RE.sub(" ", text)
    return text


def normalize_freeform(text: str) -> str:
    """
    Normalize a selection for free-form questions and narration.

    Paragraph breaks survive; spaces inside a line are collapsed and runs of
    three or more blank lines become two.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [_INLINE_SPACE_RE.sub(" ", line).rstrip() for line in text.split("\n")]
    text = "\n".join(lines).strip()
    return _EXCESS_BLANK_LINES_RE.sub("\n\n\n", text)


def _is_edge_noise(ch: str) -> bool:
    category = unicodedata.category(ch)
    return ch.isspace() or category.startswith("P") or category.startswith("S")


def strip_edge_punctuation(text: str) -> str:
    """Remove whitespace, punctuation and symbols from both ends."""
    start, end = 0, len(text)
    while start < end and _is_edge_noise(text[start]):
        start += 1
    while end > start and _is_edge_noise(text[end - 1]):
        end -= 1
    return text[start:end]


def strip_code_fence(text: str) -> str:
    """Unwrap a ```lang ... ``` block; text without a complete fence is returned trimmed."""
    s = text.strip()
    if not s.startswith("```"):
        return s
    first_newline = s.find("\n")
    last_fence = s.rfind("```")
    if first_newline == -1 or last_fence <= first_newline:
        return s
    return s[first_newline + 1 : last_fence].strip()
