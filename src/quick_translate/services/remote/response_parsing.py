"""Tolerant decoding of model output into typed payloads.

Every ``parse_*`` function returns None when the text does not hold the
expected shape; callers treat None as a retryable attempt, not a crash.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from quick_translate.core import WordSense, sort_senses
from quick_translate.services.text_processing import strip_code_fence

TRANSLATION_LABELS = ("翻译：", "译文：", "中文：", "英文：", "translation:", "Translation:")
QUOTE_PAIRS = (('"', '"'), ("“", "”"))
ANSWER_FIELDS = ("answer", "response", "content", "text")


@dataclass
class GeneratedItemPayload:
    type: str
    front: str
    back: str
    phonetic: Optional[str] = None
    category: Optional[str] = None
    example_en: Optional[str] = None
    example_zh: Optional[str] = None


@dataclass
class WordLookupPayload:
    meaning: str
    phonetic: Optional[str] = None


@dataclass
class WordDetailsPayload:
    senses: List[WordSense]
    phonetic: Optional[str] = None


@dataclass
class ExamplePayload:
    example_en: str
    example_zh: str = ""


def extract_json_object(content: str) -> Optional[Dict[str, Any]]:
    """
    Decode a JSON object from model output.

    The trimmed text is decoded first; failing that, the substring between the
    first ``{`` and the last ``}`` is decoded instead.
    """
    trimmed = (content or "").strip()
    candidates = [trimmed]
    start, end = trimmed.find("{"), trimmed.rfind("}")
    if start != -1 and end > start:
        candidates.append(trimmed[start : end + 1])

    for candidate in candidates:
        try:
            obj = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(obj, dict):
            return obj
    return None


def _optional_str(obj: Dict[str, Any], key: str) -> Optional[str]:
    value = obj.get(key)
    if value is None:
        return None
    return str(value).strip()


def parse_generated_item(content: str) -> Optional[GeneratedItemPayload]:
    obj = extract_json_object(content)
    if obj is None:
        return None
    front, back = obj.get("front"), obj.get("back")
    if not isinstance(front, str) or not isinstance(back, str):
        return None
    if not front.strip():
        return None
    return GeneratedItemPayload(
        type=str(obj.get("type") or "word"),
        front=front.strip(),
        back=back.strip(),
        phonetic=_optional_str(obj, "phonetic"),
        category=_optional_str(obj, "category"),
        example_en=_optional_str(obj, "exampleEn"),
        example_zh=_optional_str(obj, "exampleZh"),
    )


def parse_word_lookup(content: str) -> Optional[WordLookupPayload]:
    obj = extract_json_object(content)
    if obj is None:
        return None
    meaning = obj.get("meaning")
    if not isinstance(meaning, str) or not meaning.strip():
        return None
    return WordLookupPayload(meaning=meaning.strip(), phonetic=_optional_str(obj, "phonetic"))


def parse_word_details(content: str) -> Optional[WordDetailsPayload]:
    obj = extract_json_object(content)
    if obj is None or not isinstance(obj.get("senses"), list):
        return None

    senses: List[WordSense] = []
    for raw in obj["senses"]:
        if not isinstance(raw, dict):
            continue
        sense = WordSense.from_dict(raw)
        sense.pos = sense.pos.strip()
        sense.meaning = sense.meaning.strip()
        if sense.pos and sense.meaning:
            senses.append(sense)

    if not senses:
        return None
    return WordDetailsPayload(senses=sort_senses(senses), phonetic=_optional_str(obj, "phonetic"))


def parse_example(content: str) -> Optional[ExamplePayload]:
    obj = extract_json_object(content)
    if obj is None:
        return None
    en = obj.get("exampleEn")
    if not isinstance(en, str) or not en.strip():
        return None
    return ExamplePayload(example_en=en.strip(), example_zh=str(obj.get("exampleZh") or "").strip())


def parse_translation(content: str) -> Optional[str]:
    obj = extract_json_object(strip_code_fence(content))
    if obj is None or not isinstance(obj.get("translation"), str):
        return None
    cleaned = clean_translation_text(obj["translation"])
    return cleaned or None


def clean_translation_text(raw: str) -> str:
    """Strip code fences, a leading label and one pair of surrounding quotes."""
    s = strip_code_fence(raw or "")
    if not s:
        return ""

    for label in TRANSLATION_LABELS:
        if s.startswith(label):
            s = s[len(label) :].strip()
            break

    for opening, closing in QUOTE_PAIRS:
        if len(s) >= 2 and s.startswith(opening) and s.endswith(closing):
            s = s[1:-1].strip()
            break
    return s


def clean_assistant_text(raw: str) -> str:
    """Unwrap fenced output; if the model still answered in JSON, use its answer field."""
    s = strip_code_fence(raw or "")
    if not s:
        return ""

    try:
        obj = json.loads(s)
    except (json.JSONDecodeError, ValueError):
        return s

    if isinstance(obj, dict):
        for key in ANSWER_FIELDS:
            value = obj.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return s
