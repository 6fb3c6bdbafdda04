"""Endpoint helpers for OpenAI-compatible text generation servers."""

import re
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from quick_translate.core import ConfigurationMissing, InvalidEndpoint

CHAT_COMPLETIONS_PATH = "/chat/completions"
COMPLETIONS_PATH = "/completions"

_VERSIONED_ROOT_RE = re.compile(r"/v\d+$")


def normalize_endpoint(base_url: str) -> str:
    """
    Turn a configured base URL into a full completion endpoint.

    - ``http://h:1``              -> ``http://h:1/v1/chat/completions``
    - ``http://h:1/v1/``          -> ``http://h:1/v1/chat/completions``
    - ``.../chat/completions`` and ``.../completions`` are kept as they are.

    Raises:
        ConfigurationMissing: If the URL is empty.
        InvalidEndpoint: If the URL has no http(s) scheme or host.
    """
    url = (base_url or "").strip()
    if not url:
        raise ConfigurationMissing("endpoint")

    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidEndpoint(url)

    if names_completions(parts.path):
        return url

    path = parts.path.rstrip("/")
    if _VERSIONED_ROOT_RE.search(path):
        path = f"{path}{CHAT_COMPLETIONS_PATH}"
    else:
        path = f"{path}/v1{CHAT_COMPLETIONS_PATH}"
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))


def names_completions(path: str) -> bool:
    return path.rstrip("/").endswith(COMPLETIONS_PATH)


def is_chat_endpoint(url: str) -> bool:
    """Chat endpoints take a message array; anything else gets a flat prompt."""
    return CHAT_COMPLETIONS_PATH in urlsplit(url).path


def alternate_endpoint(url: str) -> Optional[str]:
    """Swap ``/chat/completions`` and ``/completions``; None for other paths."""
    parts = urlsplit(url)
    path = parts.path.rstrip("/")
    if path.endswith(CHAT_COMPLETIONS_PATH):
        new_path = path[: -len(CHAT_COMPLETIONS_PATH)] + COMPLETIONS_PATH
    elif path.endswith(COMPLETIONS_PATH):
        new_path = path[: -len(COMPLETIONS_PATH)] + CHAT_COMPLETIONS_PATH
    else:
        return None
    return urlunsplit((parts.scheme, parts.netloc, new_path, parts.query, parts.fragment))
