"""Review Coordinator - Feeds the next word or sentence to study and tracks review cadence."""

from enum import Enum
from typing import Optional

from PySide6.QtCore import QObject, Signal

from quick_translate.core import ItemKind, VocabItem
from quick_translate.io import OfflineCorpusIndex, ResultCache
from quick_translate.services import AppConfig, InlineTaskRunner, RemoteResolver, TaskRunner

NOT_READY_FRONT = "LLM not ready"
NOT_READY_BACK = "Configure an endpoint and model in settings and make sure the service is reachable."


class ReviewMode(Enum):
    AUTO = "auto"
    REVIEW = "review"
    MANUAL = "manual"


class ReviewCoordinator(QObject):
    """
    Chooses what to show next.

    Order of preference:
    1. REVIEW mode: an old word picked from the least recently shown ones.
    2. AUTO mode, once enough new words were shown: an old word, and the
       new-word counter is reset.
    3. A random unseen corpus item (offline corpus enabled), else a freshly
       generated item from the remote model.
    4. Any stored item, finally a "not ready" placeholder.

    Every item handed out is recorded as shown.

    Signals:
    - item_shown: emitted with (VocabItem, ReviewMode)
    - item_updated: emitted with the VocabItem after an example was added
    """

    item_shown = Signal(object, object)
    item_updated = Signal(object)

    def __init__(
        self,
        config: AppConfig,
        cache: ResultCache,
        offline: Optional[OfflineCorpusIndex],
        resolver: RemoteResolver,
        runner: Optional[TaskRunner] = None,
    ):
        super().__init__()
        self.config = config
        self.cache = cache
        self.offline = offline
        self.resolver = resolver
        self.runner = runner or InlineTaskRunner()

        self.review_mode_active = False
        self.current_item: Optional[VocabItem] = None
        self._request_counter = 0

    def toggle_review_mode(self) -> bool:
        self.review_mode_active = not self.review_mode_active
        if self.review_mode_active:
            self.next_item(ReviewMode.REVIEW)
        return self.review_mode_active

    def should_review_old_word_now(self) -> bool:
        threshold = max(1, self.config.new_words_before_review)
        return self.cache.new_words_since_last_review >= threshold

    def next_item(self, mode: ReviewMode = ReviewMode.MANUAL) -> None:
        """Pick (or generate) the next item; the result arrives through ``item_shown``."""
        if mode is ReviewMode.MANUAL:
            mode = ReviewMode.REVIEW if self.review_mode_active else ReviewMode.AUTO

        self._request_counter += 1
        request_id = self._request_counter

        if mode is ReviewMode.REVIEW:
            old = self.cache.pick_old_word_for_review()
            if old is not None:
                self._present(old, mode, counted_as_new=False)
                return

        if mode is ReviewMode.AUTO and self.should_review_old_word_now():
            old = self.cache.pick_old_word_for_review()
            if old is not None:
                self.cache.reset_new_word_counter()
                self._present(old, mode, counted_as_new=False)
                return

        if self.config.offline_enabled and self.offline is not None and self.offline.is_available():
            picked = self.offline.pick_item(
                self.config.enabled_categories,
                self.cache.existing_dedupe_keys(),
                self.config.word_weight,
                self.config.sentence_weight,
            )
            if picked is not None:
                stored = self._store(picked)
                self._present(stored, mode, counted_as_new=stored.is_word)
                return

        if not self.config.llm_ready:
            self._present_fallback(mode)
            return

        def on_generated(item: VocabItem) -> None:
            if request_id != self._request_counter:
                print(f"[review] Dropping stale generated item {item.front!r}")
                return
            stored = self._store(item)
            self._present(stored, mode, counted_as_new=stored.is_word)

        def on_error(error: Exception) -> None:
            if request_id != self._request_counter:
                return
            print(f"[review] Item generation failed: {error}")
            self._present_fallback(mode)

        existing = self.cache.existing_dedupe_keys()
        self.runner.submit(lambda: self.resolver.generate_item(existing), on_generated, on_error)

    def add_example(self) -> None:
        """Generate one more example sentence for the current word and store it."""
        item = self.current_item
        if item is None or item.kind is not ItemKind.WORD or not self.config.llm_ready:
            return

        def on_example(example) -> None:
            if self.current_item is None or self.current_item.id != item.id:
                return
            item.examples.append(example)
            self.cache.update_item(item)
            self.item_updated.emit(item)

        def on_error(error: Exception) -> None:
            print(f"[review] Example generation failed: {error}")

        self.runner.submit(lambda: self.resolver.generate_example(item.front), on_example, on_error)

    def _present_fallback(self, mode: ReviewMode) -> None:
        if mode is ReviewMode.REVIEW:
            old = self.cache.pick_old_word_for_review()
            if old is not None:
                self._present(old, mode, counted_as_new=False)
                return

        items = self.cache.items()
        if items:
            self._present(self.cache.random_item(), mode, counted_as_new=False)
            return

        placeholder = VocabItem(kind=ItemKind.WORD, front=NOT_READY_FRONT, back=NOT_READY_BACK)
        self.current_item = placeholder
        self.item_shown.emit(placeholder, mode)

    def _store(self, item: VocabItem) -> VocabItem:
        if self.cache.add_item_if_new(item):
            return item
        return self.cache.find(item.kind, item.front) or item

    def _present(self, item: VocabItem, mode: ReviewMode, counted_as_new: bool) -> None:
        updated = self.cache.record_shown(item, counted_as_new_word=counted_as_new and item.times_shown == 0)
        self.current_item = updated
        self.item_shown.emit(updated, mode)
