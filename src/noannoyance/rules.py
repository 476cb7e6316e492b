"""
Observable model of the ignore-list.

``RulesList`` mirrors the ``ignored-apps`` setting as a list of ``Rule`` items.
Listeners receive ``items_changed(position, removed, added)`` in the same shape
as a GListModel, so a view can patch its rows in place. A sync triggered by an
external change is reported as a full replacement: every old item is stale.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence, Union

from .host import AppInfo, AppRegistry
from .settings import IGNORED_APPS, SettingsStore

logger = logging.getLogger(__name__)

ItemsChangedCallback = Callable[[int, int, int], None]


@dataclass(frozen=True)
class Rule:
    app_info: AppInfo

    @property
    def id(self) -> str:
        return self.app_info.id


class RulesList:
    def __init__(self, settings: SettingsStore, registry: AppRegistry) -> None:
        self._settings = settings
        self._registry = registry
        self._rules: List[Rule] = []
        # Stored ids, including ones the registry cannot resolve
        self._stored_ids: List[str] = []
        self._listeners: List[ItemsChangedCallback] = []
        self._changed_id: Optional[int] = self._settings.connect(
            f"changed::{IGNORED_APPS}", lambda *_: self.resync()
        )
        self.resync()

    # --------------- List model ---------------
    def __len__(self) -> int:
        return len(self._rules)

    def __getitem__(self, pos: int) -> Rule:
        return self._rules[pos]

    def __iter__(self) -> Iterator[Rule]:
        return iter(list(self._rules))

    def get_item(self, pos: int) -> Optional[Rule]:
        if 0 <= pos < len(self._rules):
            return self._rules[pos]
        return None

    def ids(self) -> List[str]:
        return [r.id for r in self._rules]

    def connect_items_changed(self, fn: ItemsChangedCallback) -> None:
        self._listeners.append(fn)

    def disconnect_items_changed(self, fn: ItemsChangedCallback) -> None:
        if fn in self._listeners:
            self._listeners.remove(fn)

    def _items_changed(self, position: int, removed: int, added: int) -> None:
        for fn in list(self._listeners):
            fn(position, removed, added)

    # --------------- Edits ---------------
    def append(self, app: Union[AppInfo, str]) -> None:
        if isinstance(app, str):
            info = self._registry.lookup(app)
            if info is None:
                logger.warning("Cannot add unknown application %s", app)
                return
            app = info
        pos = len(self._rules)
        self._rules.append(Rule(app))
        self._stored_ids.append(app.id)
        self._save_rules()
        self._items_changed(pos, 0, 1)

    def remove(self, app_id: str) -> None:
        pos = next((i for i, r in enumerate(self._rules) if r.id == app_id), -1)
        if pos < 0:
            return
        del self._rules[pos]
        if app_id in self._stored_ids:
            self._stored_ids.remove(app_id)
        self._save_rules()
        self._items_changed(pos, 1, 0)

    def _save_rules(self) -> None:
        # Our own write must not come back to us as an external change
        if self._changed_id is not None:
            self._settings.block_signal_handler(self._changed_id)
        try:
            self._settings.set_strv(IGNORED_APPS, self._stored_ids)
        finally:
            if self._changed_id is not None:
                self._settings.unblock_signal_handler(self._changed_id)

    def resync(self) -> None:
        removed = len(self._rules)
        rules: List[Rule] = []
        self._stored_ids = self._settings.get_strv(IGNORED_APPS)
        for app_id in self._stored_ids:
            info = self._registry.lookup(app_id)
            if info is not None:
                rules.append(Rule(info))
            else:
                logger.warning("Invalid ID %s", app_id)
        self._rules = rules
        self._items_changed(0, removed, len(self._rules))

    def close(self) -> None:
        if self._changed_id is not None:
            self._settings.disconnect(self._changed_id)
            self._changed_id = None
        self._listeners.clear()


def can_add_rule(ignored_ids: Sequence[str], app_info: Optional[AppInfo]) -> bool:
    """An application can be added when selected and no existing rule starts with its id."""
    if app_info is None:
        return False
    return not any(i.startswith(app_info.id) for i in ignored_ids)


__all__ = ["Rule", "RulesList", "can_add_rule"]
