"""Main entry point for the quick translate application."""

import argparse
import sys
from pathlib import Path

from PySide6.QtCore import QObject, QSocketNotifier, Qt, Slot
from PySide6.QtGui import QGuiApplication
from PySide6.QtWidgets import QApplication

from quick_translate.coordinators import (
    ResolutionPipeline,
    ReviewCoordinator,
    ReviewMode,
    SelectionTriggerMonitor,
)
from quick_translate.io import OfflineCorpusIndex, ResultCache
from quick_translate.services import (
    QtClipboardBackend,
    QtPrimarySelectionProbe,
    QtTaskRunner,
    RemoteResolver,
    SelectionAcquirer,
    SettingsManager,
    SystemKeySender,
)
from quick_translate.ui import (
    ConsoleDisplaySink,
    ConsoleSpeechSink,
    PopupDisplaySink,
    TranslationPopup,
)

HELP_TEXT = """Commands:
  <enter>          translate the current selection
  ? <question>     ask about the current selection (no question: narrate it)
  more             more meanings of the shown word
  read             read the shown text aloud
  next / review    show the next study item / toggle review mode
  example          add an example to the current study item
  stats            wordbook statistics
  quit"""


class TerminalCommands(QObject):
    """Reads commands from stdin without blocking the event loop."""

    def __init__(
        self,
        monitor: SelectionTriggerMonitor,
        pipeline: ResolutionPipeline,
        review: ReviewCoordinator,
        cache: ResultCache,
        app: QApplication,
    ):
        super().__init__()
        self.monitor = monitor
        self.pipeline = pipeline
        self.review = review
        self.cache = cache
        self.app = app
        self.notifier = QSocketNotifier(sys.stdin.fileno(), QSocketNotifier.Type.Read, self)
        self.notifier.activated.connect(self.on_ready_read)

    @Slot()
    def on_ready_read(self):
        line = sys.stdin.readline()
        if not line:
            self.app.quit()
            return
        self.dispatch(line.strip())

    def dispatch(self, command: str) -> None:
        if not command:
            self.monitor.hotkey_pressed()
        elif command.startswith("?"):
            self.monitor.ask_requested(command[1:].strip())
        elif command == "more":
            self.pipeline.request_more_meanings()
        elif command == "read":
            self.pipeline.speak_current()
        elif command == "next":
            self.review.next_item(ReviewMode.MANUAL)
        elif command == "review":
            active = self.review.toggle_review_mode()
            print(f"Review mode {'on' if active else 'off'}")
        elif command == "example":
            self.review.add_example()
        elif command == "stats":
            print(self.cache.stats_summary())
        elif command in ("quit", "exit"):
            self.app.quit()
        else:
            print(HELP_TEXT)


def print_study_item(item, mode) -> None:
    phonetic = f"  {item.phonetic}" if item.phonetic else ""
    print(f"[{mode.value}] {item.front}{phonetic}\n    {item.back}")
    for example in item.examples:
        print(f"    e.g. {example.en} {example.zh}".rstrip())


def main():
    """
    Bootstrap the application following the Composition Root pattern.
    This is the only place that knows how to instantiate and wire all components.
    """
    parser = argparse.ArgumentParser(description="Translate or look up the current text selection.")
    parser.add_argument("--config-dir", type=Path, default=None, help="Directory holding settings.json")
    parser.add_argument("--console", action="store_true", help="Print results instead of showing a popup")
    args = parser.parse_args()

    # 1. Initialize Application
    app = QApplication(sys.argv[:1])
    app.setApplicationName("Quick Translate")
    app.setOrganizationName("QuickTranslate")
    app.setQuitOnLastWindowClosed(False)

    # 2. Configuration
    settings = SettingsManager(config_dir=args.config_dir)
    config = settings.load()
    print(f"[settings] Loaded {settings.settings_file} (trigger: {config.trigger_mode}, LLM ready: {config.llm_ready})")

    # 3. Initialize Infrastructure
    cache = ResultCache(Path(config.cache_path))
    offline_root = config.effective_offline_root
    offline = OfflineCorpusIndex(Path(offline_root)) if offline_root else None
    resolver = RemoteResolver(config)
    runner = QtTaskRunner()
    acquirer = SelectionAcquirer(
        probe=QtPrimarySelectionProbe(),
        clipboard=QtClipboardBackend(),
        key_sender=SystemKeySender(),
    )

    # 4. Construct UI
    popup = None
    if args.console:
        display = ConsoleDisplaySink()
    else:
        popup = TranslationPopup()
        display = PopupDisplaySink(popup)

    # 5. Instantiate Coordinators (Dependency Injection)
    pipeline = ResolutionPipeline(
        config=config,
        acquirer=acquirer,
        cache=cache,
        offline=offline,
        resolver=resolver,
        display=display,
        speech=ConsoleSpeechSink(),
        runner=runner,
        foreground_is_self=lambda: QGuiApplication.applicationState() == Qt.ApplicationState.ApplicationActive,
    )
    monitor = SelectionTriggerMonitor(config, acquirer)
    if not monitor.watch_selection_changes(QGuiApplication.clipboard()):
        print("[trigger] No selection clipboard; auto mode falls back to polling only")
    review = ReviewCoordinator(config, cache, offline, resolver, runner)

    # 6. Signal Wiring
    monitor.triggered.connect(pipeline.handle_trigger)
    review.item_shown.connect(print_study_item)
    review.item_updated.connect(lambda item: print_study_item(item, ReviewMode.MANUAL))
    if popup is not None:
        popup.more_requested.connect(pipeline.request_more_meanings)
        popup.speak_requested.connect(pipeline.speak_current)

    commands = TerminalCommands(monitor, pipeline, review, cache, app)

    # 7. Start triggers and event loop
    if config.quick_translate_enabled:
        monitor.start()
    print(HELP_TEXT)

    exit_code = app.exec()
    monitor.stop()
    commands.notifier.setEnabled(False)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
