"""Resolution Pipeline - Capture, classify and resolve selections through cache, offline corpus and remote model."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

from PySide6.QtCore import QObject, Signal, Slot

from quick_translate.core import (
    CaptureUnavailable,
    ItemKind,
    OfflineLookupResult,
    ResolutionCancelled,
    SelectionTooLong,
    VocabItem,
    WordSense,
)
from quick_translate.io import OfflineCorpusIndex, ResultCache, read_corpus_file
from quick_translate.io.corpus_index import OFFLINE_SOURCE
from quick_translate.services import (
    AppConfig,
    CancellationToken,
    InlineTaskRunner,
    RemoteResolver,
    SelectionAcquirer,
    SelectionMode,
    TaskRunner,
    classify_kind,
    is_english_word,
    normalize_selection_for_lookup,
    normalize_text,
    resolve_target_language,
    speech_text_for,
)
from quick_translate.services.text_processing import looks_like_code
from quick_translate.ui import DisplaySink, SpeechSink
from quick_translate.coordinators.trigger_monitor import TriggerAction, TriggerEvent, TriggerOrigin

LOOKUP_SOURCE = "lookup"
LOOKUP_CATEGORY = "lookup"

LOOKING_UP_MESSAGE = "Looking up…"
TRANSLATING_MESSAGE = "Translating…"
THINKING_MESSAGE = "Thinking…"
LOADING_MESSAGE = "Loading…"
NOT_CONFIGURED_MESSAGE = "Offline dictionary has no match and LLM is not configured."
LLM_NOT_CONFIGURED_MESSAGE = "LLM is not configured. Set an endpoint and model first."
NO_SELECTION_MESSAGE = "Select a word/sentence first, then trigger again."
SELECTION_UNAVAILABLE_MESSAGE = (
    "Selected text could not be captured (often when content is too large). "
    "Try a shorter snippet, then trigger again."
)

PREVIEW_LENGTH = 80


class PipelineState(Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    CLASSIFYING = "classifying"
    RESOLVING = "resolving"
    DISPLAYING = "displaying"


@dataclass
class _Request:
    """Context of one trigger; continuations compare ``generation`` before acting."""
    generation: int
    token: CancellationToken
    text: str
    kind: ItemKind
    target: str
    remote_used: bool = False


class ResolutionPipeline(QObject):
    """
    Top-level coordinator for translate-now and ask-now triggers.

    Every method runs on the GUI thread. Blocking work (remote calls, corpus
    file reads) goes through the task runner and comes back here before any
    shared state is touched. A new trigger cancels the previous request; a
    continuation for a cancelled or superseded request is dropped before it
    can render, write to the cache or count an item as shown.

    Signals:
    - state_changed: emitted with the new PipelineState
    - resolution_finished: emitted with the original text when a request ends
    """

    state_changed = Signal(object)
    resolution_finished = Signal(str)

    def __init__(
        self,
        config: AppConfig,
        acquirer: SelectionAcquirer,
        cache: ResultCache,
        offline: Optional[OfflineCorpusIndex],
        resolver: RemoteResolver,
        display: DisplaySink,
        speech: Optional[SpeechSink] = None,
        runner: Optional[TaskRunner] = None,
        foreground_is_self: Optional[Callable[[], bool]] = None,
    ):
        super().__init__()
        self.config = config
        self.acquirer = acquirer
        self.cache = cache
        self.offline = offline
        self.resolver = resolver
        self.display = display
        self.speech = speech
        self.runner = runner or InlineTaskRunner()
        self._foreground_is_self = foreground_is_self or (lambda: False)

        self.state = PipelineState.IDLE
        self._generation = 0
        self._active: Optional[_Request] = None
        self._last_text: Optional[str] = None
        self._capturing = False
        self._fetching_details = False
        self._scan_waiters: List[Callable[[], None]] = []

        # What is on screen, for "more meanings" and speech
        self.current_lookup_word: Optional[str] = None
        self.current_original = ""
        self.current_translated = ""

    # ------------------------------------------------------------------
    # Trigger entry points
    # ------------------------------------------------------------------

    @Slot(object)
    def handle_trigger(self, event: TriggerEvent) -> None:
        if event.action is TriggerAction.ASK:
            self.ask_now(event.question)
        elif event.origin in (TriggerOrigin.HOTKEY, TriggerOrigin.MANUAL):
            self.translate_selection_now()
        else:
            self.handle_auto_trigger(event.text)

    def translate_selection_now(self) -> None:
        """Explicit trigger: capture failures and over-long selections are reported to the user."""
        if not self._accepting_triggers():
            return

        raw = self._capture(SelectionMode.LOOKUP)
        if raw is None:
            self._show_capture_failure(CaptureUnavailable(self.acquirer.has_selection()))
            return

        self._set_state(PipelineState.CLASSIFYING)
        text = normalize_selection_for_lookup(raw)
        if not text:
            self._show_capture_failure(CaptureUnavailable(False))
            return

        limit = self.config.max_selection_chars
        if len(text) > limit:
            self._show_too_long(SelectionTooLong(len(text), limit))
            return

        self.resolve_text(text, allow_duplicate=True)

    def handle_auto_trigger(self, text: Optional[str] = None) -> None:
        """Automatic trigger: anything unusable is ignored silently."""
        if not self._accepting_triggers():
            return

        if text is None:
            text = self._capture(SelectionMode.LOOKUP)
            if text is None:
                self._set_state(PipelineState.IDLE)
                return

        text = normalize_selection_for_lookup(text)
        if not text or len(text) > self.config.max_selection_chars:
            self._set_state(PipelineState.IDLE)
            return
        self.resolve_text(text, allow_duplicate=False)

    def resolve_text(self, text: str, allow_duplicate: bool = True) -> None:
        """
        Resolve already captured text: cache, then offline corpus, then remote model.

        Args:
            text: Normalized selection.
            allow_duplicate: If False, text identical to the last handled one is ignored.
        """
        if not allow_duplicate and text == self._last_text:
            return
        self._last_text = text

        self._set_state(PipelineState.CLASSIFYING)
        kind = classify_kind(text)
        target = resolve_target_language(text, self.config.target_language)
        request = self._begin(text, kind, target)

        self._set_state(PipelineState.RESOLVING)
        if kind is ItemKind.WORD and is_english_word(text):
            self._resolve_word(request)
        else:
            self._resolve_sentence(request)

    def ask_now(self, question: str = "") -> None:
        """
        Free-form trigger: answer ``question`` about the selection, or narrate it.

        The selection keeps its paragraphs and is truncated to the selection
        limit. Answers are shown but never cached.
        """
        if not self._accepting_triggers():
            return

        raw = self._capture(SelectionMode.FREEFORM)
        if raw is None:
            self._show_capture_failure(CaptureUnavailable(self.acquirer.has_selection()))
            return

        limit = self.config.max_selection_chars
        truncated = len(raw) > limit
        selection = raw[:limit] if truncated else raw
        preview = _preview(selection)

        if not self.config.llm_ready:
            self._show(preview, None, LLM_NOT_CONFIGURED_MESSAGE, False, None, False)
            self._set_state(PipelineState.IDLE)
            return

        request = self._begin(selection, ItemKind.SENTENCE, resolve_target_language(selection, self.config.target_language))
        request.remote_used = True
        self._set_state(PipelineState.RESOLVING)
        self._show(preview, None, THINKING_MESSAGE, False, None, None)

        q = (question or "").strip()
        mode = "code_explain" if looks_like_code(selection) else "clean_summary"

        def work(token: CancellationToken) -> str:
            if q:
                return self.resolver.ask(selection, q, token=token)
            return self.resolver.smart_read(selection, mode, truncated=truncated, token=token)

        def on_answer(answer: str) -> None:
            self._show(preview, None, answer, False, None, True)
            self._finish(request)

        self._run_remote(request, work, on_answer)

    # ------------------------------------------------------------------
    # Follow-up actions on the current display
    # ------------------------------------------------------------------

    def request_more_meanings(self) -> None:
        """Show every sense of the displayed word, fetching them remotely if none are stored."""
        word = self.current_lookup_word
        if not word or self._fetching_details:
            return

        cached = self.cache.find(ItemKind.WORD, word)
        if cached is not None and cached.senses:
            self._show(word, cached.phonetic, cached.back, True, cached.senses, False)
            return

        if not self.config.llm_ready:
            self._show(word, cached.phonetic if cached else None, LLM_NOT_CONFIGURED_MESSAGE, True, None, False)
            return

        generation = self._generation
        token = self._active.token if self._active is not None else CancellationToken()
        target = resolve_target_language(word, self.config.target_language)
        self._fetching_details = True
        self._show(word, cached.phonetic if cached else None, cached.back if cached else LOADING_MESSAGE, True, None, None)

        def on_result(payload) -> None:
            self._fetching_details = False
            if token.is_cancelled or generation != self._generation:
                print(f"[pipeline] Dropping stale meanings for {word!r}")
                return

            existing = self.cache.find(ItemKind.WORD, word)
            best_back = existing.back if existing is not None and existing.back else payload.senses[0].meaning
            best_phonetic = payload.phonetic or (existing.phonetic if existing is not None else None)
            if self.config.save_to_cache:
                self.cache.upsert(
                    ItemKind.WORD,
                    word,
                    best_back,
                    phonetic=best_phonetic,
                    category=LOOKUP_CATEGORY,
                    source=LOOKUP_SOURCE,
                    senses=payload.senses,
                )
            self._show(word, best_phonetic, best_back, True, payload.senses, True)

        def on_error(error: Exception) -> None:
            self._fetching_details = False
            if isinstance(error, ResolutionCancelled) or generation != self._generation:
                return
            self._show(word, None, f"Failed to load meanings: {error}", True, None, True)

        self.runner.submit(
            lambda: self.resolver.lookup_word_details(word, target, token=token), on_result, on_error
        )

    def speak_current(self) -> None:
        if self.speech is None:
            return
        text = speech_text_for(self.current_original, self.current_translated)
        if text:
            self.speech.speak(text)

    def cancel_current(self) -> None:
        """Cancel the in-flight request; nothing it produces will be shown or stored."""
        if self._active is not None:
            self._active.token.cancel()
        self._active = None
        self._generation += 1
        self._set_state(PipelineState.IDLE)

    def hide(self) -> None:
        self.cancel_current()
        if self.speech is not None:
            self.speech.stop()
        self.current_lookup_word = None
        self.display.hide()

    # ------------------------------------------------------------------
    # Word and sentence resolution
    # ------------------------------------------------------------------

    def _resolve_word(self, request: _Request) -> None:
        text = request.text
        cached = self.cache.find(ItemKind.WORD, text)

        if cached is not None:
            self._show(text, cached.phonetic, cached.back, True, cached.senses, False)
            self._save_lookup(ItemKind.WORD, text, cached.back, cached.phonetic, count_as_shown=True)
            if (cached.phonetic or "").strip():
                self._finish(request)
                return
        else:
            self._show(text, None, LOOKING_UP_MESSAGE, True, None, None)

        def on_offline_hit(hit: OfflineLookupResult) -> None:
            self._show(text, hit.phonetic, hit.meaning, True, hit.senses, False)
            self._save_lookup(
                ItemKind.WORD,
                text,
                hit.meaning,
                hit.phonetic,
                senses=hit.senses,
                source=OFFLINE_SOURCE,
                count_as_shown=cached is None,
            )
            self._finish(request)

        self._offline_then(
            request,
            lambda: self.offline.find_word(text),
            on_offline_hit,
            lambda: self._resolve_word_remotely(request, cached),
        )

    def _resolve_word_remotely(self, request: _Request, cached: Optional[VocabItem]) -> None:
        text = request.text
        if not self.config.llm_ready:
            self._show(
                text,
                cached.phonetic if cached is not None else None,
                NOT_CONFIGURED_MESSAGE,
                True,
                cached.senses if cached is not None else None,
                False,
            )
            self._finish(request)
            return

        request.remote_used = True
        cached_senses = cached.senses if cached is not None else None

        def on_payload(payload) -> None:
            self._show(text, payload.phonetic, payload.meaning, True, cached_senses, True)
            self._save_lookup(
                ItemKind.WORD, text, payload.meaning, payload.phonetic, count_as_shown=cached is None
            )
            self._finish(request)

        self._run_remote(
            request,
            lambda token: self.resolver.lookup_word(text, request.target, token=token),
            on_payload,
        )

    def _resolve_sentence(self, request: _Request) -> None:
        text, kind = request.text, request.kind
        cached = self.cache.find(kind, text)
        if cached is not None:
            self._show(text, None, cached.back, False, None, False)
            self._save_lookup(kind, text, cached.back, None, count_as_shown=True)
            self._finish(request)
            return

        def on_offline_hit(item: VocabItem) -> None:
            self._show(text, None, item.back, False, None, False)
            self._save_lookup(kind, text, item.back, None, source=OFFLINE_SOURCE, count_as_shown=True)
            self._finish(request)

        self._offline_then(
            request,
            lambda: self.offline.find_sentence(text),
            on_offline_hit,
            lambda: self._translate_remotely(request),
        )

    def _translate_remotely(self, request: _Request) -> None:
        text, kind = request.text, request.kind
        if not self.config.llm_ready:
            self._show(text, None, NOT_CONFIGURED_MESSAGE, False, None, False)
            self._finish(request)
            return

        self._show(text, None, TRANSLATING_MESSAGE, False, None, None)
        request.remote_used = True

        def on_translation(translated: str) -> None:
            self._show(text, None, translated, False, None, True)
            self._save_lookup(kind, text, translated, None, count_as_shown=True)
            self._finish(request)

        self._run_remote(
            request,
            lambda token: self.resolver.translate(text, request.target, token=token),
            on_translation,
        )

    # ------------------------------------------------------------------
    # Offline corpus
    # ------------------------------------------------------------------

    def _offline_applicable(self, target: str) -> bool:
        return (
            self.config.offline_enabled
            and self.offline is not None
            and target == OfflineCorpusIndex.NATIVE_LANGUAGE
            and self.offline.is_available()
        )

    def _offline_then(
        self,
        request: _Request,
        find: Callable[[], Any],
        on_hit: Callable[[Any], None],
        on_miss: Callable[[], None],
    ) -> None:
        """
        Try the in-memory index; on a miss, scan the rest of the corpus once in the background.

        The retry after the scan runs only if the request is still current.
        """
        if not self._offline_applicable(request.target):
            on_miss()
            return

        hit = find()
        if hit is not None:
            on_hit(hit)
            return
        if self.offline.fully_scanned:
            on_miss()
            return

        def retry() -> None:
            if self._is_stale(request):
                print(f"[pipeline] Dropping stale offline retry for {request.text!r}")
                return
            retry_hit = find()
            if retry_hit is not None:
                on_hit(retry_hit)
            else:
                on_miss()

        self._scan_waiters.append(retry)
        if not self.offline.scan_in_progress:
            self._start_offline_scan()

    def _start_offline_scan(self) -> None:
        self.offline.scan_in_progress = True
        files = self.offline.pending_files()
        print(f"[offline] Scanning {len(files)} corpus files")
        self.runner.submit(lambda: _read_corpus_files(files), self._on_scan_finished, self._on_scan_failed)

    def _on_scan_finished(self, results: List[Tuple[Path, Optional[list], Optional[Exception]]]) -> None:
        for file, entries, error in results:
            if error is not None:
                self.offline.mark_failed(file, error)
            else:
                self.offline.ingest(file, entries)
        self.offline.mark_fully_scanned()
        self._flush_scan_waiters()

    def _on_scan_failed(self, error: Exception) -> None:
        print(f"[offline] Corpus scan failed: {error}")
        self.offline.mark_fully_scanned()
        self._flush_scan_waiters()

    def _flush_scan_waiters(self) -> None:
        waiters, self._scan_waiters = self._scan_waiters, []
        for waiter in waiters:
            waiter()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _accepting_triggers(self) -> bool:
        if not self.config.quick_translate_enabled:
            return False
        if self._capturing:
            print("[pipeline] Ignoring trigger while a capture is in progress")
            return False
        if self._foreground_is_self():
            return False
        return True

    def _capture(self, mode: SelectionMode) -> Optional[str]:
        self._set_state(PipelineState.CAPTURING)
        self._capturing = True
        try:
            return self.acquirer.acquire(mode)
        finally:
            self._capturing = False

    def _begin(self, text: str, kind: ItemKind, target: str) -> _Request:
        if self._active is not None:
            self._active.token.cancel()
        self._generation += 1
        request = _Request(self._generation, CancellationToken(), text, kind, target)
        self._active = request
        return request

    def _is_stale(self, request: _Request) -> bool:
        return request.token.is_cancelled or request.generation != self._generation

    def _finish(self, request: _Request) -> None:
        if self._active is request:
            self._active = None
            self._set_state(PipelineState.IDLE)
        self.resolution_finished.emit(request.text)

    def _run_remote(
        self,
        request: _Request,
        work: Callable[[CancellationToken], Any],
        on_result: Callable[[Any], None],
    ) -> None:
        token = request.token

        def done(value: Any) -> None:
            if self._is_stale(request):
                print(f"[pipeline] Dropping stale result (generation {request.generation}, current {self._generation})")
                return
            on_result(value)

        def failed(error: Exception) -> None:
            if isinstance(error, ResolutionCancelled) or self._is_stale(request):
                return
            print(f"[pipeline] Resolution failed for {request.text!r}: {error}")
            self._show(request.text, None, f"Failed: {error}", False, None, request.remote_used)
            self._finish(request)

        self.runner.submit(lambda: work(token), done, failed)

    def _save_lookup(
        self,
        kind: ItemKind,
        front: str,
        back: str,
        phonetic: Optional[str],
        senses: Optional[List[WordSense]] = None,
        source: str = LOOKUP_SOURCE,
        count_as_shown: bool = True,
    ) -> Optional[VocabItem]:
        if not self.config.save_to_cache:
            return None
        item = self.cache.upsert(
            kind, front, back, phonetic=phonetic, category=LOOKUP_CATEGORY, source=source, senses=senses
        )
        if not count_as_shown:
            return item
        counted_as_new_word = item.is_word and item.times_shown == 0
        return self.cache.record_shown(item, counted_as_new_word=counted_as_new_word)

    def _show(
        self,
        original: str,
        phonetic: Optional[str],
        translated: str,
        is_word: bool,
        senses: Optional[List[WordSense]],
        remote_used: Optional[bool],
    ) -> None:
        self.current_lookup_word = original if is_word and is_english_word(original) else None
        self.current_original = original
        self.current_translated = translated
        if remote_used is not None:
            self._set_state(PipelineState.DISPLAYING)
        self.display.render(original, phonetic, translated, is_word, senses, remote_used)

    def _show_capture_failure(self, error: CaptureUnavailable) -> None:
        if error.selection_exists:
            self._show("Selection unavailable", None, SELECTION_UNAVAILABLE_MESSAGE, False, None, False)
        else:
            self._show("No selection", None, NO_SELECTION_MESSAGE, False, None, False)
        self._set_state(PipelineState.IDLE)

    def _show_too_long(self, error: SelectionTooLong) -> None:
        self._show(
            "Selection too long",
            None,
            f"Selected text is {error.length} chars (limit {error.limit}). Select a shorter snippet.",
            False,
            None,
            False,
        )
        self._set_state(PipelineState.IDLE)

    def _set_state(self, state: PipelineState) -> None:
        if state is not self.state:
            self.state = state
            self.state_changed.emit(state)


def _read_corpus_files(files: List[Path]) -> List[Tuple[Path, Optional[list], Optional[Exception]]]:
    """Runs on a worker thread; per-file failures are returned, not raised."""
    results = []
    for file in files:
        try:
            results.append((file, read_corpus_file(file), None))
        except (OSError, ValueError) as e:
            results.append((file, None, e))
    return results


def _preview(text: str) -> str:
    flat = normalize_text(text)
    if len(flat) <= PREVIEW_LENGTH:
        return flat
    return flat[:PREVIEW_LENGTH] + "…"
