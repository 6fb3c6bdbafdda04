"""Shared fixtures: a headless QApplication, fake HTTP transport and a deferred task runner."""

import json
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtWidgets import QApplication

from quick_translate.services import AppConfig, TaskRunner


@pytest.fixture(scope="session", autouse=True)
def qt_app():
    """Create the QApplication once for every test that builds QObjects."""
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


def chat_response(content: str, status_code: int = 200) -> FakeResponse:
    return FakeResponse(status_code, {"choices": [{"message": {"role": "assistant", "content": content}}]})


def legacy_response(text: str) -> FakeResponse:
    return FakeResponse(200, {"choices": [{"text": text}]})


class FakeHttp:
    """Stands in for ``requests.post``; replays queued responses and records calls."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def __call__(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if not self.responses:
            raise AssertionError(f"unexpected request to {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class DeferredTaskRunner(TaskRunner):
    """Queues submitted work; tests decide when (and in which order) it completes."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, on_result, on_error):
        self.pending.append((fn, on_result, on_error))

    def run_next(self):
        fn, on_result, on_error = self.pending.pop(0)
        try:
            value = fn()
        except Exception as e:
            on_error(e)
            return
        on_result(value)

    def run_all(self):
        while self.pending:
            self.run_next()


@pytest.fixture
def fake_http():
    return FakeHttp()


@pytest.fixture
def deferred_runner():
    return DeferredTaskRunner()


@pytest.fixture
def chat():
    """Build an OpenAI-style chat completion response around ``content``."""
    return chat_response


@pytest.fixture
def legacy():
    return legacy_response


@pytest.fixture
def http_response():
    return FakeResponse


@pytest.fixture
def remote_config():
    """Configuration with a reachable remote model and no environment fallbacks."""
    return AppConfig(
        llm_endpoint="http://llm.local:8000",
        llm_model="test-model",
        llm_api_key="sk-test",
        env={},
    )
