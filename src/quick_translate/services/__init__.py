"""Services layer - configuration, text processing and external integrations."""

from quick_translate.services.settings_manager import AppConfig, SettingsManager

# Text processing services
from quick_translate.services.text_processing import (
	classify_kind,
	contains_cjk,
	is_english_word,
	normalize_freeform,
	normalize_selection_for_lookup,
	normalize_text,
	resolve_target_language,
	speech_text_for,
)

# Background work
from quick_translate.services.cancellation import CancellationToken
from quick_translate.services.api_workers import InlineTaskRunner, QtTaskRunner, TaskRunner, WorkerSignals

# Remote resolution
from quick_translate.services.remote import RemoteResolver, normalize_endpoint

# Selection capture
from quick_translate.services.selection import (
	ClipboardBackend,
	ClipboardSnapshot,
	KeySender,
	QtClipboardBackend,
	QtPrimarySelectionProbe,
	SelectionAcquirer,
	SelectionMode,
	SelectionProbe,
	SystemKeySender,
)

__all__ = [
	"AppConfig",
	"SettingsManager",
	"classify_kind",
	"contains_cjk",
	"is_english_word",
	"normalize_freeform",
	"normalize_selection_for_lookup",
	"normalize_text",
	"resolve_target_language",
	"speech_text_for",
	"CancellationToken",
	"TaskRunner",
	"QtTaskRunner",
	"InlineTaskRunner",
	"WorkerSignals",
	"RemoteResolver",
	"normalize_endpoint",
	"SelectionAcquirer",
	"SelectionMode",
	"SelectionProbe",
	"ClipboardBackend",
	"ClipboardSnapshot",
	"KeySender",
	"QtClipboardBackend",
	"QtPrimarySelectionProbe",
	"SystemKeySender",
]
