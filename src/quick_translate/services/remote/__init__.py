"""Remote text generation: endpoint handling, prompts, retries and response parsing."""

from quick_translate.services.remote.endpoints import (
    alternate_endpoint,
    is_chat_endpoint,
    normalize_endpoint,
)
from quick_translate.services.remote.remote_resolver import (
    RemoteResolver,
    backoff_delay,
)
from quick_translate.services.remote.response_parsing import (
    ExamplePayload,
    GeneratedItemPayload,
    WordDetailsPayload,
    WordLookupPayload,
    clean_assistant_text,
    clean_translation_text,
    extract_json_object,
)

__all__ = [
    "RemoteResolver",
    "backoff_delay",
    "normalize_endpoint",
    "alternate_endpoint",
    "is_chat_endpoint",
    "extract_json_object",
    "clean_translation_text",
    "clean_assistant_text",
    "GeneratedItemPayload",
    "WordLookupPayload",
    "WordDetailsPayload",
    "ExamplePayload",
]
