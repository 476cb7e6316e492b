"""
Settings store for NoAnnoyance

Provides:
- JSON persistence of the two NoAnnoyance keys with atomic writes
- Per-key change notification with blockable handlers
- Reload from disk so a second process (the preferences editor or the filter)
  sees external edits, with a watchdog-based file monitor to trigger it

Usage:
    from noannoyance.settings import SettingsStore, IGNORED_APPS
    store = SettingsStore()
    hid = store.connect(f"changed::{IGNORED_APPS}", lambda s, key: print(key))
    store.set_strv(IGNORED_APPS, ["org.gnome.Nautilus.desktop"])

Data Model (JSON):
{
  "enable-ignorelist": false,
  "ignored-apps": ["org.gnome.Nautilus.desktop", "firefox.desktop"]
}
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

logger = logging.getLogger(__name__)

ENABLE_IGNORELIST = "enable-ignorelist"
IGNORED_APPS = "ignored-apps"

DEFAULTS: Dict[str, Any] = {
    ENABLE_IGNORELIST: False,
    IGNORED_APPS: [],
}

SETTINGS_ENV = "NOANNOYANCE_SETTINGS"

SettingsCallback = Callable[["SettingsStore", str], None]


def default_settings_path() -> str:
    env = os.environ.get(SETTINGS_ENV, "").strip()
    if env:
        return os.path.expanduser(env)
    base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return os.path.join(base, "noannoyance", "settings.json")


@dataclass
class _Handler:
    id: int
    key: Optional[str]  # None subscribes to every key
    callback: SettingsCallback
    blocked: int = 0


class SettingsStore:
    """Key-value store for the two NoAnnoyance settings.

    Signals are named like GSettings ones: ``"changed"`` fires for every key,
    ``"changed::<key>"`` only for that key. Callbacks receive ``(store, key)``.
    """

    def __init__(self, path: Optional[str] = None, autosave: bool = True) -> None:
        self.path = path or default_settings_path()
        self.autosave = autosave
        self._values: Dict[str, Any] = _copy_defaults()
        self._handlers: Dict[int, _Handler] = {}
        self._next_id = 1
        self._mtime: Optional[float] = None
        if os.path.exists(self.path):
            self._values = self._read()

    # ---------------- Typed accessors ----------------
    def get_boolean(self, key: str) -> bool:
        self._check_key(key, bool)
        return bool(self._values[key])

    def set_boolean(self, key: str, value: bool) -> None:
        self._check_key(key, bool)
        if not isinstance(value, bool):
            raise TypeError(f"{key} expects a bool, got {type(value).__name__}")
        self._set(key, value)

    def get_strv(self, key: str) -> List[str]:
        self._check_key(key, list)
        return list(self._values[key])

    def set_strv(self, key: str, value: List[str]) -> None:
        self._check_key(key, list)
        if isinstance(value, str) or not all(isinstance(v, str) for v in value):
            raise TypeError(f"{key} expects a list of strings")
        self._set(key, list(value))

    def reset(self, key: str) -> None:
        if key not in DEFAULTS:
            raise KeyError(key)
        self._set(key, _copy_defaults()[key])

    def _check_key(self, key: str, kind: type) -> None:
        if key not in DEFAULTS:
            raise KeyError(key)
        if not isinstance(DEFAULTS[key], kind):
            raise TypeError(f"{key} is not a {kind.__name__} setting")

    def _set(self, key: str, value: Any) -> None:
        if self._values.get(key) == value:
            return
        self._values[key] = value
        if self.autosave:
            self.save()
        self._emit(key)

    # ---------------- Signals ----------------
    def connect(self, signal: str, callback: SettingsCallback) -> int:
        name, _, detail = signal.partition("::")
        if name != "changed":
            raise ValueError(f"Unknown signal: {signal}")
        if detail and detail not in DEFAULTS:
            raise KeyError(detail)
        hid = self._next_id
        self._next_id += 1
        self._handlers[hid] = _Handler(id=hid, key=detail or None, callback=callback)
        return hid

    def disconnect(self, handler_id: int) -> None:
        self._handlers.pop(handler_id, None)

    def block_signal_handler(self, handler_id: int) -> None:
        self._handlers[handler_id].blocked += 1

    def unblock_signal_handler(self, handler_id: int) -> None:
        h = self._handlers[handler_id]
        if h.blocked > 0:
            h.blocked -= 1

    def _emit(self, key: str) -> None:
        for h in list(self._handlers.values()):
            if h.blocked or (h.key is not None and h.key != key):
                continue
            h.callback(self, key)

    # ---------------- Persistence ----------------
    def _read(self) -> Dict[str, Any]:
        values = _copy_defaults()
        try:
            # Recorded first so a corrupt file is not re-read on every file event
            self._mtime = os.path.getmtime(self.path)
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read settings from %s: %s", self.path, e)
            return values
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed settings file %s", self.path)
            return values
        enabled = raw.get(ENABLE_IGNORELIST)
        if isinstance(enabled, bool):
            values[ENABLE_IGNORELIST] = enabled
        apps = raw.get(IGNORED_APPS)
        if isinstance(apps, list):
            values[IGNORED_APPS] = [str(a) for a in apps if isinstance(a, str)]
        return values

    def save(self) -> None:
        # Atomic write: write to temp and replace
        tmp = self.path + ".tmp"
        os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self._values, f, indent=2, ensure_ascii=False)
        os.replace(tmp, self.path)
        self._mtime = os.path.getmtime(self.path)

    def reload(self) -> List[str]:
        """Re-read the file and emit ``changed`` for every key that differs.

        Returns the keys that changed.
        """
        fresh = self._read() if os.path.exists(self.path) else _copy_defaults()
        changed = [k for k in DEFAULTS if fresh[k] != self._values[k]]
        self._values = fresh
        for key in changed:
            self._emit(key)
        return changed

    def changed_on_disk(self) -> bool:
        try:
            mtime: Optional[float] = os.path.getmtime(self.path)
        except OSError:
            mtime = None
        return mtime != self._mtime

    def reload_if_changed(self) -> List[str]:
        if not self.changed_on_disk():
            return []
        logger.debug("Settings file %s changed on disk", self.path)
        changed = self.reload()
        if not os.path.exists(self.path):
            self._mtime = None
        return changed


def _copy_defaults() -> Dict[str, Any]:
    return {k: (list(v) if isinstance(v, list) else v) for k, v in DEFAULTS.items()}


class SettingsFileHandler(FileSystemEventHandler):
    """Calls ``on_change`` for events that touch one settings file.

    Atomic saves arrive as a move of ``<path>.tmp`` onto the file, so moves are
    matched on their destination as well.
    """

    def __init__(self, path: str, on_change: Callable[[], Any]) -> None:
        super().__init__()
        self.path = os.path.abspath(path)
        self.on_change = on_change

    def _touches_settings(self, event: FileSystemEvent) -> bool:
        if event.is_directory:
            return False
        paths = (event.src_path, getattr(event, "dest_path", ""))
        return any(p and os.path.abspath(os.fsdecode(p)) == self.path for p in paths)

    def _forward(self, event: FileSystemEvent) -> None:
        if self._touches_settings(event):
            logger.debug("Settings file event: %s", event.event_type)
            self.on_change()

    def on_modified(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_created(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._forward(event)


class SettingsMonitor:
    """Watches the settings file and reloads the store when another process writes it.

    Events arrive on the watchdog observer thread. The reload is never run
    there: ``dispatch`` receives ``store.reload_if_changed`` and must run it on
    the thread that owns the store (``queue.Queue.put`` drained by a main loop,
    for instance). The mtime check in ``reload_if_changed`` drops events caused
    by the store's own saves.
    """

    def __init__(
        self,
        store: SettingsStore,
        dispatch: Callable[[Callable[[], Any]], Any],
    ) -> None:
        self.store = store
        self.dispatch = dispatch
        self.handler = SettingsFileHandler(store.path, self._on_file_event)
        self.observer: Optional[BaseObserver] = None

    @property
    def running(self) -> bool:
        return self.observer is not None

    def _on_file_event(self) -> None:
        self.dispatch(self.store.reload_if_changed)

    def start(self) -> None:
        if self.observer is not None:
            logger.debug("Settings monitor already running")
            return
        folder = os.path.dirname(self.handler.path)
        os.makedirs(folder, exist_ok=True)
        self.observer = Observer()
        self.observer.schedule(self.handler, folder, recursive=False)
        self.observer.start()
        logger.debug("Watching %s for changes", self.handler.path)

    def stop(self) -> None:
        if self.observer is None:
            return
        self.observer.stop()
        self.observer.join(timeout=2.0)
        self.observer = None
        logger.debug("Stopped watching %s", self.handler.path)


__all__ = [
    "ENABLE_IGNORELIST",
    "IGNORED_APPS",
    "DEFAULTS",
    "SettingsStore",
    "SettingsMonitor",
    "SettingsFileHandler",
    "default_settings_path",
]
