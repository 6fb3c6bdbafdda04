"""Unit tests for ResolutionPipeline."""

import json
from unittest.mock import MagicMock, call

import pytest

from quick_translate.coordinators import PipelineState, ResolutionPipeline, TriggerAction, TriggerEvent, TriggerOrigin
from quick_translate.coordinators.resolution_pipeline import (
    LLM_NOT_CONFIGURED_MESSAGE,
    LOOKING_UP_MESSAGE,
    NO_SELECTION_MESSAGE,
    NOT_CONFIGURED_MESSAGE,
    SELECTION_UNAVAILABLE_MESSAGE,
    THINKING_MESSAGE,
    TRANSLATING_MESSAGE,
)
from quick_translate.core import ItemKind, VocabItem, WordSense
from quick_translate.io import OfflineCorpusIndex, ResultCache
from quick_translate.services import AppConfig, RemoteResolver, SelectionMode
from quick_translate.services.remote import WordDetailsPayload, WordLookupPayload


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def mock_display():
    """Mock DisplaySink recording every render call."""
    return MagicMock()


@pytest.fixture
def mock_speech():
    return MagicMock()


@pytest.fixture
def mock_acquirer():
    """Mock SelectionAcquirer; tests set ``acquire.return_value``."""
    acquirer = MagicMock()
    acquirer.acquire.return_value = None
    acquirer.has_selection.return_value = False
    return acquirer


@pytest.fixture
def mock_resolver():
    resolver = MagicMock()
    resolver.lookup_word.return_value = WordLookupPayload(meaning="算法", phonetic="/ˈælɡərɪðəm/")
    resolver.translate.side_effect = lambda text, target, token=None: f"译:{text}"
    return resolver


@pytest.fixture
def cache(tmp_path):
    return ResultCache(tmp_path / "store.json")


@pytest.fixture
def make_pipeline(remote_config, mock_acquirer, cache, mock_resolver, mock_display, mock_speech):
    """Factory building a pipeline; keyword arguments override the defaults."""

    def factory(**overrides):
        kwargs = dict(
            config=remote_config,
            acquirer=mock_acquirer,
            cache=cache,
            offline=None,
            resolver=mock_resolver,
            display=mock_display,
            speech=mock_speech,
        )
        kwargs.update(overrides)
        return ResolutionPipeline(**kwargs)

    return factory


@pytest.fixture
def pipeline(make_pipeline):
    return make_pipeline()


def rendered_texts(display):
    return [c.args[2] for c in display.render.call_args_list]


def write_corpus(root, name, entries):
    corpus_dir = root / "json_original" / "json-sentence"
    corpus_dir.mkdir(parents=True, exist_ok=True)
    (corpus_dir / name).write_text(json.dumps(entries, ensure_ascii=False), encoding="utf-8")


@pytest.fixture
def offline_index(tmp_path):
    root = tmp_path / "corpus"
    write_corpus(root, "CET4_1.json", [{"word": "algorithm", "translations": [{"translation": "算法", "type": "n"}]}])
    write_corpus(root, "CET6_1.json", [{"word": "zenith", "us": "ˈziːnɪθ", "translations": [{"translation": "顶点", "type": "n"}]}])
    return OfflineCorpusIndex(root)


# ============================================================================
# Word lookups
# ============================================================================


class TestWordLookup:
    """Tests for single English word resolution."""

    def test_remote_lookup_end_to_end(self, make_pipeline, mock_acquirer, mock_display, cache,
                                      remote_config, fake_http, chat):
        """A fresh word makes one remote call and is stored under its dedupe key."""
        fake_http.queue(chat(json.dumps({"meaning": "算法", "phonetic": "/ˈælɡərɪðəm/"}, ensure_ascii=False)))
        pipeline = make_pipeline(resolver=RemoteResolver(remote_config, http_post=fake_http))
        mock_acquirer.acquire.return_value = "algorithm"

        pipeline.translate_selection_now()

        assert len(fake_http.calls) == 1
        assert mock_display.render.call_args_list == [
            call("algorithm", None, LOOKING_UP_MESSAGE, True, None, None),
            call("algorithm", "/ˈælɡərɪðəm/", "算法", True, None, True),
        ]
        stored = cache.find(ItemKind.WORD, "algorithm")
        assert stored.dedupe_key == "word::algorithm"
        assert stored.category == "lookup"
        assert stored.source == "lookup"
        assert stored.times_shown == 1
        assert cache.new_words_since_last_review == 1
        assert pipeline.state is PipelineState.IDLE
        assert pipeline.current_lookup_word == "algorithm"

    def test_punctuation_around_word_is_stripped(self, pipeline, mock_acquirer, mock_resolver):
        mock_acquirer.acquire.return_value = "“algorithm,”"
        pipeline.translate_selection_now()
        assert mock_resolver.lookup_word.call_args.args[:2] == ("algorithm", "zh")

    def test_cached_word_with_phonetic_skips_remote(self, pipeline, mock_acquirer, mock_resolver, mock_display, cache):
        cache.upsert(ItemKind.WORD, "run", "跑", phonetic="/rʌn/")
        mock_acquirer.acquire.return_value = "Run"

        pipeline.translate_selection_now()

        mock_resolver.lookup_word.assert_not_called()
        mock_display.render.assert_called_once_with("Run", "/rʌn/", "跑", True, None, False)
        assert cache.find(ItemKind.WORD, "run").times_shown == 1

    def test_cached_word_without_phonetic_is_backfilled(self, pipeline, mock_acquirer, mock_resolver, mock_display, cache):
        """The cached meaning shows first; the remote answer adds the phonetic without a second count."""
        cache.upsert(ItemKind.WORD, "run", "跑")
        mock_resolver.lookup_word.return_value = WordLookupPayload(meaning="跑；运行", phonetic="/rʌn/")
        mock_acquirer.acquire.return_value = "run"

        pipeline.translate_selection_now()

        assert rendered_texts(mock_display) == ["跑", "跑；运行"]
        stored = cache.find(ItemKind.WORD, "run")
        assert stored.phonetic == "/rʌn/"
        assert stored.back == "跑；运行"
        assert stored.times_shown == 1

    def test_cached_word_reports_not_configured_when_remote_unavailable(
        self, make_pipeline, mock_acquirer, mock_display, cache
    ):
        """A cached hit missing its phonetic still ends on the not-configured message."""
        senses = [WordSense("v.", "跑", 5)]
        cache.upsert(ItemKind.WORD, "run", "跑", senses=senses)
        pipeline = make_pipeline(config=AppConfig(env={}))
        mock_acquirer.acquire.return_value = "run"

        pipeline.translate_selection_now()

        assert rendered_texts(mock_display) == ["跑", NOT_CONFIGURED_MESSAGE]
        mock_display.render.assert_called_with("run", None, NOT_CONFIGURED_MESSAGE, True, senses, False)
        assert cache.find(ItemKind.WORD, "run").times_shown == 1
        assert pipeline.state is PipelineState.IDLE

    def test_not_configured_miss(self, make_pipeline, mock_acquirer, mock_display, mock_resolver):
        pipeline = make_pipeline(config=AppConfig(env={}))
        mock_acquirer.acquire.return_value = "algorithm"

        pipeline.translate_selection_now()

        mock_resolver.lookup_word.assert_not_called()
        assert rendered_texts(mock_display)[-1] == NOT_CONFIGURED_MESSAGE

    def test_remote_failure_is_shown(self, pipeline, mock_acquirer, mock_resolver, mock_display, cache):
        mock_resolver.lookup_word.side_effect = RuntimeError("boom")
        mock_acquirer.acquire.return_value = "algorithm"

        pipeline.translate_selection_now()

        assert rendered_texts(mock_display)[-1] == "Failed: boom"
        assert cache.items() == []
        assert pipeline.state is PipelineState.IDLE

    def test_save_to_cache_disabled(self, make_pipeline, remote_config, mock_acquirer, cache):
        remote_config.save_to_cache = False
        pipeline = make_pipeline()
        mock_acquirer.acquire.return_value = "algorithm"

        pipeline.translate_selection_now()

        assert cache.items() == []


# ============================================================================
# Sentences
# ============================================================================


class TestSentenceTranslation:
    """Tests for sentence and non-English selections."""

    def test_sentence_is_translated_and_cached(self, pipeline, mock_acquirer, mock_display, cache):
        mock_acquirer.acquire.return_value = "Hello   world"

        pipeline.translate_selection_now()

        assert rendered_texts(mock_display) == [TRANSLATING_MESSAGE, "译:Hello world"]
        assert cache.find(ItemKind.SENTENCE, "hello world").back == "译:Hello world"

    def test_chinese_selection_targets_english(self, pipeline, mock_acquirer, mock_resolver):
        mock_acquirer.acquire.return_value = "你好"
        pipeline.translate_selection_now()
        assert mock_resolver.translate.call_args.args[:2] == ("你好", "en")

    def test_cached_sentence_skips_remote(self, pipeline, mock_acquirer, mock_resolver, cache):
        cache.upsert(ItemKind.SENTENCE, "Hello world", "你好，世界")
        mock_acquirer.acquire.return_value = "hello world"

        pipeline.translate_selection_now()

        mock_resolver.translate.assert_not_called()

    def test_sentence_not_configured(self, make_pipeline, mock_acquirer, mock_display):
        pipeline = make_pipeline(config=AppConfig(env={}))
        mock_acquirer.acquire.return_value = "Hello world"
        pipeline.translate_selection_now()
        assert rendered_texts(mock_display) == [NOT_CONFIGURED_MESSAGE]


# ============================================================================
# Capture failures and trigger filtering
# ============================================================================


class TestCaptureFailures:
    def test_no_selection(self, pipeline, mock_display):
        pipeline.translate_selection_now()
        assert rendered_texts(mock_display) == [NO_SELECTION_MESSAGE]
        assert pipeline.state is PipelineState.IDLE

    def test_selection_unavailable(self, pipeline, mock_acquirer, mock_display):
        mock_acquirer.has_selection.return_value = True
        pipeline.translate_selection_now()
        assert rendered_texts(mock_display) == [SELECTION_UNAVAILABLE_MESSAGE]

    def test_too_long(self, make_pipeline, remote_config, mock_acquirer, mock_resolver, mock_display):
        remote_config.max_selection_chars = 10
        pipeline = make_pipeline()
        mock_acquirer.acquire.return_value = "this selection is too long"

        pipeline.translate_selection_now()

        mock_resolver.translate.assert_not_called()
        assert mock_display.render.call_args.args[0] == "Selection too long"
        assert "26 chars (limit 10)" in mock_display.render.call_args.args[2]


class TestTriggerFiltering:
    """Tests for automatic triggers and trigger gating."""

    def test_auto_trigger_ignores_repeated_text(self, pipeline, mock_resolver):
        pipeline.handle_auto_trigger("Hello world")
        pipeline.handle_auto_trigger("Hello world")
        assert mock_resolver.translate.call_count == 1

    def test_explicit_trigger_repeats(self, pipeline, mock_acquirer, cache):
        mock_acquirer.acquire.return_value = "Hello world"
        pipeline.translate_selection_now()
        pipeline.translate_selection_now()
        assert cache.find(ItemKind.SENTENCE, "hello world").times_shown == 2

    def test_auto_trigger_failures_are_silent(self, make_pipeline, remote_config, mock_display):
        remote_config.max_selection_chars = 5
        pipeline = make_pipeline()
        pipeline.handle_auto_trigger()
        pipeline.handle_auto_trigger("far too long")
        mock_display.render.assert_not_called()

    def test_own_window_in_foreground_is_ignored(self, make_pipeline, mock_acquirer):
        pipeline = make_pipeline(foreground_is_self=lambda: True)
        pipeline.translate_selection_now()
        mock_acquirer.acquire.assert_not_called()

    def test_disabled_quick_translate(self, make_pipeline, remote_config, mock_acquirer):
        remote_config.quick_translate_enabled = False
        make_pipeline().translate_selection_now()
        mock_acquirer.acquire.assert_not_called()

    def test_poll_event_carries_text(self, pipeline, mock_acquirer, mock_resolver):
        pipeline.handle_trigger(TriggerEvent(TriggerAction.TRANSLATE, TriggerOrigin.POLL, text="Hello world"))
        mock_acquirer.acquire.assert_not_called()
        assert mock_resolver.translate.call_count == 1

    def test_hotkey_event_captures(self, pipeline, mock_acquirer):
        mock_acquirer.acquire.return_value = "Hello world"
        pipeline.handle_trigger(TriggerEvent(TriggerAction.TRANSLATE, TriggerOrigin.HOTKEY))
        mock_acquirer.acquire.assert_called_once_with(SelectionMode.LOOKUP)


# ============================================================================
# Cancellation
# ============================================================================


class TestCancellation:
    """Tests for superseded and cancelled requests."""

    def test_superseded_result_is_dropped(self, make_pipeline, deferred_runner, mock_display, cache):
        pipeline = make_pipeline(runner=deferred_runner)
        pipeline.resolve_text("first sentence")
        pipeline.resolve_text("second sentence")

        deferred_runner.run_all()

        assert "译:first sentence" not in rendered_texts(mock_display)
        assert rendered_texts(mock_display)[-1] == "译:second sentence"
        assert cache.find(ItemKind.SENTENCE, "first sentence") is None
        assert cache.find(ItemKind.SENTENCE, "second sentence") is not None

    def test_late_result_after_newer_one_is_dropped(self, make_pipeline, deferred_runner, mock_display):
        pipeline = make_pipeline(runner=deferred_runner)
        pipeline.resolve_text("first sentence")
        pipeline.resolve_text("second sentence")

        second = deferred_runner.pending.pop(1)
        deferred_runner.pending.insert(0, second)
        deferred_runner.run_all()

        assert rendered_texts(mock_display)[-1] == "译:second sentence"

    def test_cancel_current(self, make_pipeline, deferred_runner, mock_display, cache):
        pipeline = make_pipeline(runner=deferred_runner)
        pipeline.resolve_text("Hello world")
        pipeline.cancel_current()
        deferred_runner.run_all()

        assert rendered_texts(mock_display) == [TRANSLATING_MESSAGE]
        assert cache.items() == []
        assert pipeline.state is PipelineState.IDLE

    def test_hide_stops_speech_and_display(self, pipeline, mock_display, mock_speech):
        pipeline.hide()
        mock_speech.stop.assert_called_once()
        mock_display.hide.assert_called_once()


# ============================================================================
# Offline corpus
# ============================================================================


class TestOfflineCorpus:
    """Tests for the offline corpus stage."""

    def test_offline_hit_after_background_scan(self, make_pipeline, remote_config, offline_index,
                                               mock_resolver, mock_display, cache):
        remote_config.offline_enabled = True
        pipeline = make_pipeline(offline=offline_index)

        pipeline.resolve_text("zenith")

        mock_resolver.lookup_word.assert_not_called()
        last = mock_display.render.call_args
        assert last.args[:4] == ("zenith", "/ˈziːnɪθ/", "n. 顶点", True)
        assert last.args[5] is False
        assert cache.find(ItemKind.WORD, "zenith").source == "offline"
        assert offline_index.fully_scanned

    def test_offline_miss_falls_through_to_remote(self, make_pipeline, remote_config, offline_index, mock_resolver):
        remote_config.offline_enabled = True
        pipeline = make_pipeline(offline=offline_index)
        pipeline.resolve_text("serendipity")
        mock_resolver.lookup_word.assert_called_once()

    def test_offline_skipped_for_english_target(self, make_pipeline, remote_config, offline_index, mock_resolver):
        remote_config.offline_enabled = True
        remote_config.target_language = "en"
        pipeline = make_pipeline(offline=offline_index)
        pipeline.resolve_text("zenith")
        mock_resolver.lookup_word.assert_called_once()

    def test_stale_request_waiting_on_scan_is_dropped(self, make_pipeline, remote_config, offline_index,
                                                      deferred_runner, mock_display, cache):
        remote_config.offline_enabled = True
        pipeline = make_pipeline(offline=offline_index, runner=deferred_runner)

        pipeline.resolve_text("zenith")
        pipeline.resolve_text("algorithm")
        assert len(deferred_runner.pending) == 1

        deferred_runner.run_all()

        assert "n. 顶点" not in rendered_texts(mock_display)
        assert rendered_texts(mock_display)[-1] == "n. 算法"
        assert cache.find(ItemKind.WORD, "zenith") is None


# ============================================================================
# Ask mode
# ============================================================================


class TestAsk:
    """Tests for free-form questions and narration."""

    def test_question_is_answered_and_not_cached(self, pipeline, mock_acquirer, mock_resolver, mock_display, cache):
        mock_acquirer.acquire.return_value = "The quick brown fox."
        mock_resolver.ask.return_value = "It is a pangram."

        pipeline.ask_now("What is this?")

        mock_acquirer.acquire.assert_called_once_with(SelectionMode.FREEFORM)
        assert mock_resolver.ask.call_args.args[:2] == ("The quick brown fox.", "What is this?")
        assert mock_display.render.call_args_list[0] == call(
            "The quick brown fox.", None, THINKING_MESSAGE, False, None, None
        )
        assert mock_display.render.call_args == call(
            "The quick brown fox.", None, "It is a pangram.", False, None, True
        )
        assert cache.items() == []

    def test_code_without_question_is_explained(self, pipeline, mock_acquirer, mock_resolver):
        mock_acquirer.acquire.return_value = "def f(x):\n    y = x * 2\n    return y"
        mock_resolver.smart_read.return_value = "A function doubling its input."

        pipeline.ask_now()

        args, kwargs = mock_resolver.smart_read.call_args
        assert args[1] == "code_explain"
        assert kwargs["truncated"] is False

    def test_long_selection_is_truncated(self, make_pipeline, remote_config, mock_acquirer, mock_resolver):
        remote_config.max_selection_chars = 20
        pipeline = make_pipeline()
        mock_acquirer.acquire.return_value = "A" * 30
        mock_resolver.smart_read.return_value = "Narration."

        pipeline.ask_now()

        args, kwargs = mock_resolver.smart_read.call_args
        assert args == ("A" * 20, "clean_summary")
        assert kwargs["truncated"] is True

    def test_not_configured(self, make_pipeline, mock_acquirer, mock_resolver, mock_display):
        pipeline = make_pipeline(config=AppConfig(env={}))
        mock_acquirer.acquire.return_value = "Some text"

        pipeline.ask_now("Why?")

        mock_resolver.ask.assert_not_called()
        assert rendered_texts(mock_display) == [LLM_NOT_CONFIGURED_MESSAGE]

    def test_ask_trigger_event(self, pipeline, mock_acquirer, mock_resolver):
        mock_acquirer.acquire.return_value = "Some text"
        mock_resolver.ask.return_value = "Answer"
        pipeline.handle_trigger(TriggerEvent(TriggerAction.ASK, TriggerOrigin.MANUAL, question="Why?"))
        mock_resolver.ask.assert_called_once()


# ============================================================================
# Follow-up actions
# ============================================================================


class TestFollowUps:
    """Tests for more meanings and speech."""

    def test_more_meanings_fetches_and_stores_senses(self, pipeline, mock_resolver, mock_display, cache):
        senses = [WordSense("n.", "算法", 5), WordSense("n.", "运算法则", 3)]
        mock_resolver.lookup_word_details.return_value = WordDetailsPayload(senses=senses, phonetic=None)
        pipeline.resolve_text("algorithm")

        pipeline.request_more_meanings()

        assert mock_display.render.call_args == call(
            "algorithm", "/ˈælɡərɪðəm/", "算法", True, senses, True
        )
        assert cache.find(ItemKind.WORD, "algorithm").senses == senses

    def test_stored_senses_are_shown_without_remote(self, pipeline, mock_resolver, mock_display, cache):
        cache.upsert(ItemKind.WORD, "run", "跑", phonetic="/rʌn/", senses=[WordSense("v.", "跑", 5)])
        pipeline.resolve_text("run")

        pipeline.request_more_meanings()

        mock_resolver.lookup_word_details.assert_not_called()
        assert mock_display.render.call_args.args[4] == [WordSense("v.", "跑", 5)]

    def test_more_meanings_needs_a_word(self, pipeline, mock_resolver):
        pipeline.resolve_text("Hello world")
        pipeline.request_more_meanings()
        mock_resolver.lookup_word_details.assert_not_called()

    def test_speaks_english_side(self, pipeline, mock_resolver, mock_speech):
        mock_resolver.translate.side_effect = None
        mock_resolver.translate.return_value = "Hello"
        pipeline.resolve_text("你好")

        pipeline.speak_current()

        mock_speech.speak.assert_called_once_with("Hello")

    def test_nothing_to_speak(self, pipeline, mock_speech):
        pipeline.speak_current()
        mock_speech.speak.assert_not_called()


class TestReviewCounting:
    def test_recorded_study_items_count_once(self, pipeline, cache):
        item = VocabItem(kind=ItemKind.WORD, front="apple", back="苹果", phonetic="/ˈæp(ə)l/")
        cache.add_item_if_new(item)
        pipeline.resolve_text("apple")
        pipeline.resolve_text("apple")
        assert cache.find(ItemKind.WORD, "apple").times_shown == 2
        assert cache.new_words_since_last_review == 1
