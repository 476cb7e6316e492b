"""
Host-side collaborators for NoAnnoyance.

The attention filter only needs a few capabilities from the desktop it runs in:

- windows that report focus, skip-taskbar state and their owning application
- a display that delivers ``window-demands-attention`` and
  ``window-marked-urgent`` signals and can activate a window
- the default attention handler the display starts out with

``Display`` is a small in-process signal hub; a desktop integration feeds it by
calling ``emit`` for each attention event it observes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple

from . import notifier as base_notifier

logger = logging.getLogger(__name__)

WINDOW_DEMANDS_ATTENTION = "window-demands-attention"
WINDOW_MARKED_URGENT = "window-marked-urgent"
ATTENTION_SIGNALS: Tuple[str, str] = (WINDOW_DEMANDS_ATTENTION, WINDOW_MARKED_URGENT)

AttentionCallback = Callable[["Display", Optional["Window"]], None]


class Window(Protocol):
    def has_focus(self) -> bool: ...

    def is_skip_taskbar(self) -> bool: ...

    def owner_application_id(self) -> Optional[str]: ...

    def get_title(self) -> str: ...

    def activate(self) -> None: ...


@dataclass(frozen=True)
class AppInfo:
    """An installed application as described by its desktop entry."""
    id: str
    name: str
    icon: str = ""
    executable: str = ""
    path: str = ""

    @property
    def display_name(self) -> str:
        return self.name or self.id


class AppRegistry(Protocol):
    def lookup(self, app_id: str) -> Optional[AppInfo]: ...

    def all_apps(self) -> List[AppInfo]: ...


class Display:
    """Delivers attention signals to subscribers, keyed by owner object."""

    def __init__(self, attention_handler_factory: Optional[Callable[["Display"], Any]] = None) -> None:
        self._handlers: Dict[str, List[Tuple[Any, AttentionCallback]]] = {s: [] for s in ATTENTION_SIGNALS}
        factory = attention_handler_factory or WindowAttentionHandler
        self.attention_handler = factory(self)

    def connect_object(self, owner: Any, callbacks: Mapping[str, AttentionCallback]) -> None:
        for signal, callback in callbacks.items():
            if signal not in self._handlers:
                raise ValueError(f"Unknown signal: {signal}")
            self._handlers[signal].append((owner, callback))

    def disconnect_object(self, owner: Any) -> None:
        for signal, handlers in self._handlers.items():
            self._handlers[signal] = [(o, cb) for (o, cb) in handlers if o is not owner]

    def handler_count(self, signal: str) -> int:
        return len(self._handlers[signal])

    def subscribers(self, signal: str) -> List[Any]:
        return [o for (o, _) in self._handlers[signal]]

    def emit(self, signal: str, window: Optional[Window]) -> None:
        for _, callback in list(self._handlers[signal]):
            callback(self, window)

    def activate_window(self, window: Window) -> None:
        logger.debug("Activating window %r", window.get_title())
        window.activate()


class WindowAttentionHandler:
    """Default handler: tell the user the window is ready instead of raising it."""

    def __init__(self, display: Display, notify: Optional[Callable[[str], None]] = None) -> None:
        self._display = display
        self._notify = notify or base_notifier.window_ready
        display.connect_object(self, {
            WINDOW_DEMANDS_ATTENTION: self.on_window_demands_attention,
            WINDOW_MARKED_URGENT: self.on_window_demands_attention,
        })

    def on_window_demands_attention(self, display: Display, window: Optional[Window]) -> None:
        if window is None or window.has_focus() or window.is_skip_taskbar():
            return
        title = window.get_title() or window.owner_application_id() or "Window"
        self._notify(title)


__all__ = [
    "WINDOW_DEMANDS_ATTENTION",
    "WINDOW_MARKED_URGENT",
    "ATTENTION_SIGNALS",
    "Window",
    "AppInfo",
    "AppRegistry",
    "Display",
    "WindowAttentionHandler",
]
