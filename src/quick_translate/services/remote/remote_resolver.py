"""Remote Resolver - Talks to an OpenAI-compatible text generation endpoint."""

import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, TypeVar

import requests

from quick_translate.core import (
    ConfigurationMissing,
    DuplicateGenerated,
    HttpError,
    InvalidResponse,
    ItemKind,
    NetworkError,
    VocabExample,
    VocabItem,
    dedupe_key,
)
from quick_translate.services.cancellation import CancellationToken
from quick_translate.services.remote import prompts
from quick_translate.services.remote.endpoints import (
    alternate_endpoint,
    is_chat_endpoint,
    normalize_endpoint,
)
from quick_translate.services.remote.response_parsing import (
    ExamplePayload,
    WordDetailsPayload,
    WordLookupPayload,
    clean_assistant_text,
    parse_example,
    parse_generated_item,
    parse_translation,
    parse_word_details,
    parse_word_lookup,
)
from quick_translate.services.settings_manager import AppConfig

T = TypeVar("T")


def backoff_delay(attempt: int) -> float:
    """Delay before retrying after an HTTP 503 on the given (1-based) attempt."""
    return min(3.0, 0.3 * attempt * attempt)


@dataclass
class GenerationParams:
    temperature: float = 0.7
    max_tokens: int = 300
    system_prompt: str = prompts.JSON_SYSTEM_PROMPT


class RemoteResolver:
    """
    Builds prompts for each task, sends them and coerces the output.

    Every public task method runs a bounded retry loop. Transport failures and
    unparseable output both count as a failed attempt; once the ceiling is
    reached the last error is raised. The resolver keeps no mutable state
    between calls, so one instance can serve concurrent background tasks.
    """

    REQUEST_TIMEOUT = 30
    SNIPPET_LENGTH = 400
    MIN_MAX_TOKENS = 80

    GENERATE_ATTEMPTS = 6
    EXAMPLE_ATTEMPTS = 4
    TRANSLATE_ATTEMPTS = 4
    LOOKUP_ATTEMPTS = 4
    DETAILS_ATTEMPTS = 4
    ASK_ATTEMPTS = 3
    SMART_READ_ATTEMPTS = 3

    def __init__(
        self,
        config: AppConfig,
        http_post: Optional[Callable[..., Any]] = None,
        timeout: float = REQUEST_TIMEOUT,
        backoff: Callable[[int], float] = backoff_delay,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the resolver.

        Args:
            config: Application configuration (endpoint, model, key, weights).
            http_post: Callable with the signature of ``requests.post``.
            timeout: Per-request timeout in seconds.
            backoff: Maps an attempt number to the 503 backoff delay.
            rng: Random source for choosing between word and sentence generation.
        """
        self._config = config
        self._http_post = http_post or requests.post
        self._timeout = timeout
        self._backoff = backoff
        self._rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def generate_item(
        self, existing_dedupe_keys: Iterable[str], token: Optional[CancellationToken] = None
    ) -> VocabItem:
        """
        Generate a new word or sentence that is not in ``existing_dedupe_keys``.

        Raises:
            DuplicateGenerated: If the last attempt still collided with an existing item.
        """
        self._require_config()
        excluded = set(existing_dedupe_keys)
        categories = ", ".join(self._config.enabled_categories)

        word_weight = max(0, self._config.word_weight)
        total = max(1, word_weight + max(0, self._config.sentence_weight))
        template = (
            prompts.GENERATE_WORD_PROMPT
            if self._rng.randint(1, total) <= word_weight
            else prompts.GENERATE_SENTENCE_PROMPT
        )
        prompt = template.format(categories=categories)

        def parse(content: str) -> Optional[VocabItem]:
            payload = parse_generated_item(content)
            if payload is None:
                return None
            kind = ItemKind.SENTENCE if payload.type.lower() == "sentence" else ItemKind.WORD
            if dedupe_key(kind, payload.front) in excluded:
                print(f"[remote] Generated duplicate: {payload.front!r}")
                raise DuplicateGenerated()

            examples = []
            if kind is ItemKind.WORD and payload.example_en:
                examples.append(VocabExample(en=payload.example_en, zh=payload.example_zh or ""))
            return VocabItem(
                kind=kind,
                front=payload.front,
                back=payload.back,
                phonetic=payload.phonetic or None,
                category=payload.category or None,
                source="llm",
                examples=examples,
            )

        return self._run(
            "generate",
            prompt,
            parse,
            self.GENERATE_ATTEMPTS,
            GenerationParams(),
            token,
            failure_reason="cannot parse json",
        )

    def generate_example(self, word: str, token: Optional[CancellationToken] = None) -> VocabExample:
        self._require_config()
        payload: ExamplePayload = self._run(
            "example",
            prompts.EXAMPLE_PROMPT.format(word=word),
            parse_example,
            self.EXAMPLE_ATTEMPTS,
            GenerationParams(),
            token,
            failure_reason="cannot parse example",
        )
        return VocabExample(en=payload.example_en, zh=payload.example_zh)

    def translate(self, text: str, target: str, token: Optional[CancellationToken] = None) -> str:
        """
        Translate ``text`` into ``target`` ("zh" or "en").

        Returns:
            The cleaned translation (labels, quotes and code fences removed).
        """
        self._require_config()
        params = GenerationParams(
            temperature=0.1,
            max_tokens=max(220, min(1200, len(text) * 2)),
            system_prompt=prompts.TRANSLATE_SYSTEM_PROMPT,
        )
        prompt = prompts.TRANSLATE_PROMPT.format(language=prompts.language_name(target), text=text)
        return self._run(
            "translate",
            prompt,
            parse_translation,
            self.TRANSLATE_ATTEMPTS,
            params,
            token,
            failure_reason="cannot parse translation",
        )

    def lookup_word(
        self, word: str, target: str, token: Optional[CancellationToken] = None
    ) -> WordLookupPayload:
        self._require_config()
        prompt = prompts.LOOKUP_WORD_PROMPT.format(word=word, language=prompts.language_name(target))
        return self._run(
            "lookup",
            prompt,
            parse_word_lookup,
            self.LOOKUP_ATTEMPTS,
            GenerationParams(),
            token,
            failure_reason="cannot parse word lookup",
        )

    def lookup_word_details(
        self, word: str, target: str, token: Optional[CancellationToken] = None
    ) -> WordDetailsPayload:
        self._require_config()
        prompt = prompts.LOOKUP_DETAILS_PROMPT.format(word=word, language=prompts.language_name(target))
        return self._run(
            "details",
            prompt,
            parse_word_details,
            self.DETAILS_ATTEMPTS,
            GenerationParams(),
            token,
            failure_reason="cannot parse word details",
        )

    def ask(self, selection: str, question: str, token: Optional[CancellationToken] = None) -> str:
        """Answer a free-form question about the selected text."""
        self._require_config()
        params = GenerationParams(temperature=0.3, max_tokens=700, system_prompt=prompts.ASK_SYSTEM_PROMPT)
        prompt = prompts.ASK_PROMPT.format(question=question, selection=selection)
        return self._run(
            "ask",
            prompt,
            _non_empty_text,
            self.ASK_ATTEMPTS,
            params,
            token,
            failure_reason="empty response",
        )

    def smart_read(
        self,
        selection: str,
        mode: str = "clean_summary",
        truncated: bool = False,
        token: Optional[CancellationToken] = None,
    ) -> str:
        """Rewrite the selection as listenable narration (summary or code walkthrough)."""
        self._require_config()
        mode_hint = prompts.NARRATION_MODE_HINTS.get(mode, prompts.NARRATION_MODE_HINTS["clean_summary"])
        prompt = prompts.NARRATION_PROMPT.format(
            mode_hint=mode_hint,
            truncate_hint=prompts.NARRATION_TRUNCATED_HINT if truncated else "",
            selection=selection,
        )
        params = GenerationParams(temperature=0.2, max_tokens=900, system_prompt=prompts.NARRATION_SYSTEM_PROMPT)
        return self._run(
            "smart_read",
            prompt,
            _non_empty_text,
            self.SMART_READ_ATTEMPTS,
            params,
            token,
            failure_reason="empty response",
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _require_config(self) -> None:
        if not self._config.llm_enabled:
            raise ConfigurationMissing("llm disabled")
        if not self._config.effective_endpoint:
            raise ConfigurationMissing("endpoint")
        if not self._config.effective_model:
            raise ConfigurationMissing("model")

    def _run(
        self,
        task: str,
        prompt: str,
        parse: Callable[[str], Optional[T]],
        max_attempts: int,
        params: GenerationParams,
        token: Optional[CancellationToken],
        failure_reason: str,
    ) -> T:
        token = token or CancellationToken()
        last_error: Exception = InvalidResponse(failure_reason)

        for attempt in range(1, max_attempts + 1):
            token.raise_if_cancelled()
            try:
                content = self._request(prompt, params)
                result = parse(content)
            except HttpError as e:
                last_error = e
                print(f"[remote] {task} attempt {attempt}/{max_attempts} failed: {e}")
                if e.status == 503 and attempt < max_attempts:
                    token.wait(self._backoff(attempt))
                continue
            except (NetworkError, InvalidResponse) as e:
                last_error = e
                print(f"[remote] {task} attempt {attempt}/{max_attempts} failed: {e}")
                continue

            if result is not None:
                return result
            last_error = InvalidResponse(failure_reason)
            print(f"[remote] {task} attempt {attempt}/{max_attempts}: unparseable output")

        raise last_error

    def _request(self, prompt: str, params: GenerationParams) -> str:
        primary = normalize_endpoint(self._config.effective_endpoint)
        try:
            return self._post(primary, prompt, params)
        except HttpError as e:
            if e.status not in (404, 405):
                raise
            alternate = alternate_endpoint(primary)
            if alternate is None:
                raise HttpError(e.status, "endpoint not found") from e
            print(f"[remote] {primary} answered {e.status}, retrying at {alternate}")
            return self._post(alternate, prompt, params)

    def _post(self, url: str, prompt: str, params: GenerationParams) -> str:
        headers = {"Content-Type": "application/json"}
        api_key = self._config.effective_api_key
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        chat = is_chat_endpoint(url)
        body: Dict[str, Any] = {
            "model": self._config.effective_model,
            "temperature": params.temperature,
            "max_tokens": max(self.MIN_MAX_TOKENS, params.max_tokens),
        }
        if chat:
            body["messages"] = [
                {"role": "system", "content": params.system_prompt},
                {"role": "user", "content": prompt},
            ]
        else:
            body["prompt"] = prompt

        try:
            response = self._http_post(url, json=body, headers=headers, timeout=self._timeout)
        except requests.RequestException as e:
            raise NetworkError(str(e)) from e

        if not 200 <= response.status_code < 300:
            raise HttpError(response.status_code, (response.text or "")[: self.SNIPPET_LENGTH])

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponse("not json object") from e
        return _choice_content(data, chat)


def _choice_content(data: Any, chat: bool) -> str:
    if not isinstance(data, dict):
        raise InvalidResponse("not json object")
    choices = data.get("choices")
    first = choices[0] if isinstance(choices, list) and choices else None
    if not isinstance(first, dict):
        raise InvalidResponse("missing choices")

    if chat:
        message = first.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise InvalidResponse("missing choices.message.content")
        return content

    text = first.get("text")
    if not isinstance(text, str):
        raise InvalidResponse("missing choices.text")
    return text


def _non_empty_text(content: str) -> Optional[str]:
    cleaned = clean_assistant_text(content)
    return cleaned or None
