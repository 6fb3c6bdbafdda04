"""Unit tests for endpoint normalization."""

import pytest

from quick_translate.core import ConfigurationMissing, InvalidEndpoint
from quick_translate.services.remote import alternate_endpoint, is_chat_endpoint, normalize_endpoint


class TestNormalizeEndpoint:
    """Tests for turning a base URL into a completion endpoint."""

    @pytest.mark.parametrize(
        "base, expected",
        [
            ("http://h:1", "http://h:1/v1/chat/completions"),
            ("http://h:1/", "http://h:1/v1/chat/completions"),
            ("http://h:1/v1/", "http://h:1/v1/chat/completions"),
            ("https://api.example.com/v2", "https://api.example.com/v2/chat/completions"),
            ("http://h:1/proxy", "http://h:1/proxy/v1/chat/completions"),
            ("http://h:1/v1/chat/completions", "http://h:1/v1/chat/completions"),
            ("http://h:1/v1/completions", "http://h:1/v1/completions"),
            ("  http://h:1  ", "http://h:1/v1/chat/completions"),
        ],
    )
    def test_normalization(self, base, expected):
        assert normalize_endpoint(base) == expected

    def test_empty_is_missing_config(self):
        with pytest.raises(ConfigurationMissing):
            normalize_endpoint("   ")

    @pytest.mark.parametrize("base", ["localhost:8000", "ftp://h/v1", "http://"])
    def test_invalid_urls(self, base):
        with pytest.raises(InvalidEndpoint):
            normalize_endpoint(base)


class TestAlternateEndpoint:
    def test_chat_to_legacy_and_back(self):
        assert alternate_endpoint("http://h/v1/chat/completions") == "http://h/v1/completions"
        assert alternate_endpoint("http://h/v1/completions") == "http://h/v1/chat/completions"

    def test_other_paths_have_no_alternate(self):
        assert alternate_endpoint("http://h/generate") is None

    def test_chat_detection(self):
        assert is_chat_endpoint("http://h/v1/chat/completions")
        assert not is_chat_endpoint("http://h/v1/completions")
