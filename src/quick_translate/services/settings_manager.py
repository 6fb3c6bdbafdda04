"""Settings Manager - Loads the application configuration and environment fallbacks."""

import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv

TRIGGER_MODES = ("hotkey", "auto")
TARGET_LANGUAGES = ("en", "zh", "auto")

# Stored value first, then these environment variables in order.
ENV_FALLBACKS: Dict[str, tuple] = {
    "llm_endpoint": ("LLM_ENDPOINT", "OPENAI_BASE_URL"),
    "llm_model": ("LLM_MODEL", "OPENAI_MODEL"),
    "llm_api_key": ("LLM_API_KEY", "OPENAI_API_KEY"),
    "offline_root": ("OFFLINE_VOCAB_PATH",),
}


@dataclass
class AppConfig:
    """Explicit configuration object handed to every component at startup."""

    llm_enabled: bool = True
    llm_endpoint: str = ""
    llm_model: str = ""
    llm_api_key: str = ""
    enabled_categories: List[str] = field(default_factory=lambda: ["cs", "gaokao3500", "cet4", "cet6"])
    word_weight: int = 7
    sentence_weight: int = 3
    quick_translate_enabled: bool = True
    trigger_mode: str = "hotkey"
    target_language: str = "auto"
    max_selection_chars: int = 2000
    offline_enabled: bool = False
    offline_root: str = ""
    save_to_cache: bool = True
    new_words_before_review: int = 3
    cache_path: str = ""
    env: Mapping[str, str] = field(default_factory=dict, repr=False, compare=False)

    @property
    def effective_endpoint(self) -> str:
        return self._effective("llm_endpoint")

    @property
    def effective_model(self) -> str:
        return self._effective("llm_model")

    @property
    def effective_api_key(self) -> str:
        return self._effective("llm_api_key")

    @property
    def effective_offline_root(self) -> str:
        return self._effective("offline_root")

    @property
    def llm_ready(self) -> bool:
        """True if a remote request can be attempted at all."""
        return self.llm_enabled and bool(self.effective_endpoint) and bool(self.effective_model)

    def _effective(self, name: str) -> str:
        stored = (getattr(self, name) or "").strip()
        if stored:
            return stored
        for env_name in ENV_FALLBACKS.get(name, ()):
            value = (self.env.get(env_name) or "").strip()
            if value:
                return value
        return ""


class SettingsManager:
    """
    Manages configuration loading and saving.

    Stored settings live in a JSON file. A ``.env`` file next to it (or in the
    project root) is loaded into the environment so that endpoint, model, API
    key and offline corpus path can fall back to environment variables.
    """

    SETTINGS_FILENAME = "settings.json"
    CACHE_FILENAME = "store.json"

    def __init__(self, config_dir: Optional[Path] = None, project_root: Optional[Path] = None):
        """
        Initialize settings manager.

        Args:
            config_dir: Directory holding settings.json and the wordbook cache.
                        Defaults to ~/.quick_translate.
            project_root: Path where .env is located. If None, searches upward
                          from current file.
        """
        if project_root is None:
            current = Path(__file__).resolve()
            project_root = current.parent.parent.parent.parent

        self._config_dir = Path(config_dir) if config_dir else Path.home() / ".quick_translate"
        self._project_root = project_root
        load_dotenv(dotenv_path=project_root / ".env")

    @property
    def settings_file(self) -> Path:
        return self._config_dir / self.SETTINGS_FILENAME

    def load(self) -> AppConfig:
        """Build an AppConfig from the settings file; unknown or bad values fall back to defaults."""
        stored: Dict[str, object] = {}
        if self.settings_file.exists():
            try:
                raw = json.loads(self.settings_file.read_text(encoding="utf-8"))
                if isinstance(raw, dict):
                    stored = raw
            except (json.JSONDecodeError, OSError) as e:
                print(f"[settings] Error reading settings file {self.settings_file}: {e}")

        defaults = AppConfig()
        values: Dict[str, object] = {}
        for f in fields(AppConfig):
            if f.name == "env" or f.name not in stored:
                continue
            value = stored[f.name]
            default = getattr(defaults, f.name)
            if isinstance(default, bool):
                if isinstance(value, bool):
                    values[f.name] = value
            elif isinstance(default, int):
                if isinstance(value, int) and not isinstance(value, bool) and value > 0:
                    values[f.name] = value
            elif isinstance(default, list):
                if isinstance(value, list) and value:
                    values[f.name] = [str(v) for v in value]
            elif isinstance(value, str):
                values[f.name] = value

        config = AppConfig(env=dict(os.environ), **values)
        if config.trigger_mode.lower() not in TRIGGER_MODES:
            config.trigger_mode = defaults.trigger_mode
        if config.target_language.lower() not in TARGET_LANGUAGES:
            config.target_language = defaults.target_language
        if not config.cache_path:
            config.cache_path = str(self._config_dir / self.CACHE_FILENAME)
        return config

    def save(self, config: AppConfig) -> None:
        """Persist stored values only; environment fallbacks are never written."""
        data = asdict(config)
        data.pop("env", None)
        if data.get("cache_path") == str(self._config_dir / self.CACHE_FILENAME):
            data.pop("cache_path")
        self._config_dir.mkdir(parents=True, exist_ok=True)
        self.settings_file.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    def reload_env(self) -> None:
        """
        Reload environment variables from .env file.

        Existing AppConfig objects keep the environment they were built with;
        call ``load()`` again to pick up the reloaded values.
        """
        load_dotenv(dotenv_path=self._project_root / ".env", override=True)
