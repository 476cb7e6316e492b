"""
NoAnnoyance attention filter.

Replaces the display's default attention handler, which only notifies, with one
that raises the window straight away. Windows owned by applications on the
ignore-list are left alone while the ignore-list is enabled.

Usage:

    from noannoyance.host import Display
    from noannoyance.settings import SettingsStore
    from noannoyance.extension import NoAnnoyance

    display = Display()
    ext = NoAnnoyance(SettingsStore(), display)
    ext.enable()
    # ... display.emit("window-demands-attention", window) ...
    ext.disable()

From a desktop integration, run the filter as a line-oriented bridge:

    noannoyance [--settings PATH] [-v]

Each stdin line is a JSON attention event, for example
``{"signal": "window-demands-attention", "pid": 4242, "title": "Build done"}``
(optional ``focused``, ``skip_taskbar`` and ``app_id``). Every window the
filter raises is reported on stdout as ``{"activate": <pid>, "title": ...}``.
"""

from __future__ import annotations

import argparse
import json
import logging
import queue
import sys
import threading
from functools import partial
from typing import Any, Callable, FrozenSet, Optional, Sequence, TextIO, Tuple

from .apps import DesktopAppRegistry
from .host import ATTENTION_SIGNALS, WINDOW_DEMANDS_ATTENTION, WINDOW_MARKED_URGENT, AppRegistry, Display, Window
from .settings import ENABLE_IGNORELIST, IGNORED_APPS, SettingsMonitor, SettingsStore
from .windows import ProcessWindow

logger = logging.getLogger(__name__)


class NoAnnoyance:
    def __init__(self, settings: SettingsStore, display: Display) -> None:
        self._settings = settings
        self._display = display
        self._ignore_list_enabled = False
        self._ignore_list: FrozenSet[str] = frozenset()
        self._enabled = False
        self._old_handler: Optional[Any] = None

        self._changed_id: Optional[int] = self._settings.connect("changed", self.update_list)
        self.update_list()

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def ignore_list_enabled(self) -> bool:
        return self._ignore_list_enabled

    @property
    def ignore_list(self) -> FrozenSet[str]:
        return self._ignore_list

    def update_list(self, *_args: Any) -> None:
        self._ignore_list_enabled = self._settings.get_boolean(ENABLE_IGNORELIST)
        self._ignore_list = frozenset(self._settings.get_strv(IGNORED_APPS))

    def should_activate(self, window: Optional[Window]) -> bool:
        if window is None or window.has_focus() or window.is_skip_taskbar():
            return False
        if self._ignore_list_enabled:
            app_id = window.owner_application_id()
            if app_id in self._ignore_list:
                logger.debug("Suppressed attention request from %s", app_id)
                return False
        return True

    def on_window_demands_attention(self, display: Display, window: Optional[Window]) -> None:
        if self.should_activate(window):
            display.activate_window(window)  # type: ignore[arg-type]

    def enable(self) -> None:
        if self._enabled:
            logger.debug("Attention filter already enabled")
            return
        self._old_handler = self._display.attention_handler
        if self._old_handler is not None:
            self._display.disconnect_object(self._old_handler)
        self._display.connect_object(self, {
            WINDOW_DEMANDS_ATTENTION: self.on_window_demands_attention,
            WINDOW_MARKED_URGENT: self.on_window_demands_attention,
        })
        self._enabled = True
        logger.info("Attention filter enabled")

    def disable(self) -> None:
        if not self._enabled:
            logger.debug("Attention filter already disabled")
            return
        old = self._old_handler
        self._display.disconnect_object(self)
        if old is not None:
            self._display.connect_object(old, {
                WINDOW_DEMANDS_ATTENTION: old.on_window_demands_attention,
                WINDOW_MARKED_URGENT: old.on_window_demands_attention,
            })
        self._old_handler = None
        self._enabled = False
        logger.info("Attention filter disabled")

    def destroy(self) -> None:
        self.disable()
        if self._changed_id is not None:
            self._settings.disconnect(self._changed_id)
            self._changed_id = None


class FilterRunner:
    """Runs the filter and the settings watcher on one loop.

    Attention events read from the input stream and settings reloads from the
    watcher thread are both queued as tasks; ``run`` executes them in order on
    the calling thread, so the store and the filter are only touched there.
    """

    def __init__(
        self,
        settings: SettingsStore,
        registry: AppRegistry,
        display: Optional[Display] = None,
        output: Optional[TextIO] = None,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.display = display or Display()
        self.output = output or sys.stdout
        self.tasks: "queue.Queue[Optional[Callable[[], Any]]]" = queue.Queue()
        self.extension = NoAnnoyance(settings, self.display)
        self.monitor = SettingsMonitor(settings, self.tasks.put)

    def parse_event(self, line: str) -> Optional[Tuple[str, ProcessWindow]]:
        try:
            data = json.loads(line)
            signal = data.get("signal", WINDOW_DEMANDS_ATTENTION)
            if signal not in ATTENTION_SIGNALS:
                raise ValueError(f"unknown signal {signal!r}")
            window = ProcessWindow(
                title=str(data.get("title", "")),
                pid=int(data["pid"]),
                registry=self.registry,
                focused=bool(data.get("focused", False)),
                skip_taskbar=bool(data.get("skip_taskbar", False)),
                on_activate=self._report_activation,
                app_id=data.get("app_id"),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Ignoring bad attention event %r: %s", line.strip(), e)
            return None
        return signal, window

    def handle_line(self, line: str) -> None:
        if not line.strip():
            return
        event = self.parse_event(line)
        if event is not None:
            signal, window = event
            self.display.emit(signal, window)

    def _report_activation(self, window: ProcessWindow) -> None:
        self.output.write(json.dumps({"activate": window.pid, "title": window.title}) + "\n")
        self.output.flush()

    def _read_input(self, stream: TextIO) -> None:
        try:
            for line in stream:
                self.tasks.put(partial(self.handle_line, line))
        finally:
            self.tasks.put(None)

    def run(self, stream: TextIO) -> int:
        self.extension.enable()
        self.monitor.start()
        reader = threading.Thread(target=self._read_input, args=(stream,), name="NoAnnoyance-Input", daemon=True)
        reader.start()
        try:
            while True:
                task = self.tasks.get()
                if task is None:
                    break
                try:
                    task()
                except Exception:
                    logger.exception("Task failed")
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self.monitor.stop()
            self.extension.destroy()
        return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="noannoyance", description="Raise windows that ask for attention")
    parser.add_argument("--settings", metavar="PATH", help="settings file (default: $NOANNOYANCE_SETTINGS or ~/.config/noannoyance/settings.json)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug messages")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    store = SettingsStore(args.settings)
    logger.info("Using settings file %s", store.path)
    runner = FilterRunner(store, DesktopAppRegistry())
    return runner.run(sys.stdin)


__all__ = ["NoAnnoyance", "FilterRunner", "main"]
