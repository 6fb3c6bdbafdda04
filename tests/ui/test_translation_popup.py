"""Unit tests for the popup and console display sinks."""

from unittest.mock import MagicMock

import pytest

from quick_translate.core import WordSense
from quick_translate.ui import ConsoleDisplaySink, PopupDisplaySink, TranslationPopup
from quick_translate.ui.display_sink import format_senses, provenance_label


@pytest.fixture
def popup():
    widget = TranslationPopup()
    yield widget
    widget.close()


class TestProvenance:
    def test_labels(self):
        assert provenance_label(None) == "pending"
        assert provenance_label(True) == "LLM"
        assert provenance_label(False) == "local"

    def test_format_senses(self):
        senses = [WordSense("n.", "算法", 5), WordSense("v.", "计算", 2)]
        assert format_senses(senses) == "n. 算法\nv. 计算"
        assert format_senses(None) == ""


class TestTranslationPopup:
    """Tests for the popup widget."""

    def test_word_result(self, popup):
        popup.show_result("algorithm", "/ˈælɡərɪðəm/", "算法", True, [WordSense("n.", "算法", 5)], True)

        assert popup.original_label.text() == "algorithm  /ˈælɡərɪðəm/"
        assert popup.translated_label.text() == "算法"
        assert popup.senses_label.text() == "n. 算法"
        assert popup.source_label.text() == "LLM"
        assert not popup.more_button.isHidden()
        assert popup.isVisible()

    def test_sentence_result_hides_word_controls(self, popup):
        popup.show_result("Hello world", None, "你好，世界", False, None, False)

        assert popup.original_label.text() == "Hello world"
        assert popup.more_button.isHidden()
        assert popup.senses_label.isHidden()
        assert popup.source_label.text() == "local"

    def test_more_button_emits(self, popup):
        listener = MagicMock()
        popup.more_requested.connect(listener)
        popup.more_button.click()
        listener.assert_called_once()


class TestSinks:
    def test_popup_sink_forwards(self):
        popup = MagicMock()
        sink = PopupDisplaySink(popup)
        sink.render("a", None, "b", False, None, None)
        popup.show_result.assert_called_once_with("a", None, "b", False, None, None)
        sink.hide()
        popup.hide.assert_called_once()

    def test_console_sink_prints(self, capsys):
        ConsoleDisplaySink().render("run", "/rʌn/", "跑", True, [WordSense("v.", "跑", 5)], False)
        out = capsys.readouterr().out
        assert "[local] run  /rʌn/" in out
        assert "- v. 跑" in out
