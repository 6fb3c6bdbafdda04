"""Unit tests for decoding model output."""

from quick_translate.core import WordSense
from quick_translate.services.remote import response_parsing as parsing


class TestExtractJsonObject:
    """Tests for tolerant JSON extraction."""

    def test_plain_object(self):
        assert parsing.extract_json_object('{"a": 1}') == {"a": 1}

    def test_object_inside_prose(self):
        assert parsing.extract_json_object('Sure! {"a": 1} Hope it helps.') == {"a": 1}

    def test_non_object_is_rejected(self):
        assert parsing.extract_json_object("[1, 2]") is None
        assert parsing.extract_json_object("no json here") is None


class TestParseTranslation:
    def test_fenced_json(self):
        content = '```json\n{"translation": "你好"}\n```'
        assert parsing.parse_translation(content) == "你好"

    def test_prose_before_fenced_json(self):
        content = "Sure! ```json\n{\"translation\":\"你好\"}\n```"
        assert parsing.parse_translation(content) == "你好"

    def test_label_and_quotes_are_removed(self):
        assert parsing.parse_translation('{"translation": "翻译：“你好”"}') == "你好"

    def test_missing_field(self):
        assert parsing.parse_translation('{"text": "你好"}') is None
        assert parsing.parse_translation('{"translation": "  "}') is None


class TestParseWordPayloads:
    """Tests for lookup, details, example and generated item payloads."""

    def test_word_lookup(self):
        payload = parsing.parse_word_lookup('{"meaning": " 算法 ", "phonetic": "/ˈælɡərɪðəm/"}')
        assert payload.meaning == "算法"
        assert payload.phonetic == "/ˈælɡərɪðəm/"

    def test_word_lookup_requires_meaning(self):
        assert parsing.parse_word_lookup('{"phonetic": "/x/"}') is None

    def test_word_details_sorted_and_filtered(self):
        content = (
            '{"phonetic": "/rʌn/", "senses": ['
            '{"pos": "n.", "meaning": "跑步", "freq": 2},'
            '{"pos": "v.", "meaning": "跑", "freq": 5},'
            '{"pos": "", "meaning": "dropped", "freq": 5}]}'
        )
        payload = parsing.parse_word_details(content)
        assert payload.senses == [WordSense("v.", "跑", 5), WordSense("n.", "跑步", 2)]
        assert payload.phonetic == "/rʌn/"

    def test_word_details_without_valid_senses(self):
        assert parsing.parse_word_details('{"senses": []}') is None
        assert parsing.parse_word_details('{"senses": "many"}') is None

    def test_example(self):
        payload = parsing.parse_example('{"exampleEn": "I run daily.", "exampleZh": "我每天跑步。"}')
        assert payload.example_en == "I run daily."
        assert payload.example_zh == "我每天跑步。"
        assert parsing.parse_example('{"exampleZh": "只有中文"}') is None

    def test_generated_item(self):
        content = '{"type": "word", "front": "apple ", "back": "苹果", "exampleEn": "An apple."}'
        payload = parsing.parse_generated_item(content)
        assert payload.front == "apple"
        assert payload.example_en == "An apple."
        assert payload.example_zh is None

    def test_generated_item_requires_front(self):
        assert parsing.parse_generated_item('{"front": " ", "back": "x"}') is None


class TestCleanAssistantText:
    def test_plain_text_passes_through(self):
        assert parsing.clean_assistant_text("  An answer.  ") == "An answer."

    def test_json_answer_field_is_used(self):
        assert parsing.clean_assistant_text('```json\n{"answer": "Yes."}\n```') == "Yes."

    def test_json_without_answer_field_is_kept(self):
        assert parsing.clean_assistant_text('{"other": 1}') == '{"other": 1}'
