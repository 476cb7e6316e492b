"""
Preferences window for NoAnnoyance

Provides:
- A switch bound to ``enable-ignorelist``
- The ignore-list as rows (icon, name, desktop id) kept in sync with the
  ``RulesList`` model, with add and remove actions
- An application chooser dialog for new rules

Usage:
    noannoyance-prefs [--settings PATH] [-v]
"""

from __future__ import annotations

import argparse
import logging
import queue
from typing import Any, Callable, List, Optional, Sequence

import tkinter as tk
from tkinter import ttk

from .apps import DesktopAppRegistry
from .host import AppInfo, AppRegistry
from .icons import IconCache
from .rules import RulesList, can_add_rule
from .settings import ENABLE_IGNORELIST, IGNORED_APPS, SettingsMonitor, SettingsStore

logger = logging.getLogger(__name__)


class NewRuleDialog(tk.Toplevel):
    """Application chooser; ``result`` holds the chosen ``AppInfo`` after Add."""

    def __init__(
        self,
        master: tk.Misc,
        settings: SettingsStore,
        registry: AppRegistry,
        icons: Optional[IconCache] = None,
    ) -> None:
        super().__init__(master)
        self.title("Add Rule")
        self.geometry("460x420")
        self.transient(master)  # type: ignore[arg-type]

        self.result: Optional[AppInfo] = None
        self._settings = settings
        self._icons = icons
        self._apps: List[AppInfo] = registry.all_apps()
        self._shown: List[AppInfo] = []

        self.var_filter = tk.StringVar()

        frm = ttk.Frame(self, padding=10)
        frm.pack(fill=tk.BOTH, expand=True)

        search = ttk.Entry(frm, textvariable=self.var_filter)
        search.pack(fill=tk.X, pady=(0, 6))

        self.tree = ttk.Treeview(frm, columns=("id",), show="tree headings", selectmode="browse")
        self.tree.heading("#0", text="Application")
        self.tree.heading("id", text="ID")
        self.tree.column("#0", width=220, anchor="w")
        self.tree.column("id", width=200, anchor="w")
        self.tree.pack(fill=tk.BOTH, expand=True)

        btn_frm = ttk.Frame(frm)
        btn_frm.pack(fill=tk.X, pady=(10, 0))
        self.btn_ok = ttk.Button(btn_frm, text="Add", command=self._on_ok)
        self.btn_ok.pack(side=tk.RIGHT)
        ttk.Button(btn_frm, text="Cancel", command=self._on_cancel).pack(side=tk.RIGHT, padx=(0, 6))

        self.var_filter.trace_add("write", lambda *_: self._populate())
        self.tree.bind("<<TreeviewSelect>>", lambda e: self._update_sensitivity())
        self.tree.bind("<Double-1>", lambda e: self._on_ok())
        self.bind("<Return>", lambda e: self._on_ok())
        self.bind("<Escape>", lambda e: self._on_cancel())

        self._populate()
        search.focus_set()
        try:
            self.grab_set()
        except tk.TclError as e:
            # Parent not mapped yet
            logger.debug("Could not grab input for the dialog: %s", e)

    def selected_app(self) -> Optional[AppInfo]:
        sel = self.tree.selection()
        if not sel:
            return None
        return self._shown[int(sel[0])]

    def _populate(self) -> None:
        needle = self.var_filter.get().strip().lower()
        self.tree.delete(*self.tree.get_children())
        self._shown = [a for a in self._apps if not needle or needle in a.display_name.lower() or needle in a.id.lower()]
        for i, app in enumerate(self._shown):
            kwargs: dict[str, Any] = {}
            image = self._icons.get(app.icon) if self._icons else None
            if image is not None:
                kwargs["image"] = image
            self.tree.insert("", tk.END, iid=str(i), text=app.display_name, values=(app.id,), **kwargs)
        self._update_sensitivity()

    def _update_sensitivity(self) -> None:
        ok = can_add_rule(self._settings.get_strv(IGNORED_APPS), self.selected_app())
        self.btn_ok.state(["!disabled"] if ok else ["disabled"])

    def _on_ok(self) -> None:
        app = self.selected_app()
        if not can_add_rule(self._settings.get_strv(IGNORED_APPS), app):
            return
        self.result = app
        self.destroy()

    def _on_cancel(self) -> None:
        self.result = None
        self.destroy()


class IgnoreListEditor(ttk.LabelFrame):
    """Embedded ignore-list editor; picks up edits made by other processes."""

    def __init__(
        self,
        master: tk.Misc,
        settings: SettingsStore,
        registry: AppRegistry,
        icons: Optional[IconCache] = None,
        watch: bool = True,
        drain_ms: int = 200,
    ) -> None:
        super().__init__(master, text="Ignore List", padding=10)
        self.settings = settings
        self.registry = registry
        self.icons = icons or IconCache(size=24)
        self.rules = RulesList(settings, registry)
        self._drain_ms = drain_ms
        self._drain_job: Optional[str] = None
        self._pending: "queue.Queue[Callable[[], Any]]" = queue.Queue()
        self.monitor = SettingsMonitor(settings, self._pending.put) if watch else None

        self.var_enabled = tk.BooleanVar(value=settings.get_boolean(ENABLE_IGNORELIST))
        ttk.Checkbutton(
            self, text="Enable Ignorelist", variable=self.var_enabled, command=self._on_toggle
        ).pack(anchor="w")
        ttk.Label(
            self, text="Windows of these applications keep quiet instead of taking focus.", foreground="#666666"
        ).pack(anchor="w", pady=(0, 8))

        bar = ttk.Frame(self)
        bar.pack(fill=tk.X, pady=(0, 6))
        ttk.Button(bar, text="Add Rule…", command=self._add_rule).pack(side=tk.LEFT)
        ttk.Button(bar, text="Remove", command=self._remove_selected).pack(side=tk.LEFT, padx=(6, 0))

        self.tree = ttk.Treeview(self, columns=("id",), show="tree headings", selectmode="browse")
        self.tree.heading("#0", text="Application")
        self.tree.heading("id", text="ID")
        self.tree.column("#0", width=220, anchor="w")
        self.tree.column("id", width=220, anchor="w")
        self.tree.pack(fill=tk.BOTH, expand=True)
        self.tree.bind("<Double-1>", lambda e: self._remove_selected())
        self.tree.bind("<Delete>", lambda e: self._remove_selected())

        self._enabled_id = settings.connect(f"changed::{ENABLE_IGNORELIST}", self._on_enabled_changed)
        self.rules.connect_items_changed(self._on_items_changed)
        self._on_items_changed(0, 0, len(self.rules))

        self.bind("<Destroy>", self._on_destroy)
        if self.monitor is not None:
            self.monitor.start()
        self._schedule_drain()

    # ------------- Model -> view -------------
    def _on_items_changed(self, position: int, removed: int, added: int) -> None:
        rows = self.tree.get_children()
        for iid in rows[position:position + removed]:
            self.tree.delete(iid)
        for offset in range(added):
            rule = self.rules[position + offset]
            kwargs: dict[str, Any] = {}
            image = self.icons.get(rule.app_info.icon)
            if image is not None:
                kwargs["image"] = image
            self.tree.insert("", position + offset, text=rule.app_info.display_name, values=(rule.id,), **kwargs)

    def _on_enabled_changed(self, settings: SettingsStore, key: str) -> None:
        value = settings.get_boolean(key)
        if self.var_enabled.get() != value:
            self.var_enabled.set(value)

    # ------------- Actions -------------
    def _on_toggle(self) -> None:
        self.settings.set_boolean(ENABLE_IGNORELIST, bool(self.var_enabled.get()))

    def _add_rule(self) -> None:
        dlg = NewRuleDialog(self.winfo_toplevel(), self.settings, self.registry, self.icons)
        self.wait_window(dlg)
        if dlg.result is not None:
            self.rules.append(dlg.result)

    def _remove_selected(self) -> None:
        sel = self.tree.selection()
        if not sel:
            return
        rule = self.rules.get_item(self.tree.index(sel[0]))
        if rule is not None:
            self.rules.remove(rule.id)

    # ------------- Settings file watching -------------
    def _schedule_drain(self) -> None:
        if self.monitor is not None:
            self._drain_job = self.after(self._drain_ms, self._drain)

    def _drain(self) -> None:
        # Reloads queued by the watcher thread run here, on the Tk thread
        while True:
            try:
                task = self._pending.get_nowait()
            except queue.Empty:
                break
            try:
                task()
            except Exception:
                logger.exception("Could not reload settings")
        self._schedule_drain()

    def _on_destroy(self, event: Any) -> None:
        if event.widget is not self:
            return
        if self._drain_job is not None:
            self.after_cancel(self._drain_job)
            self._drain_job = None
        if self.monitor is not None:
            self.monitor.stop()
        self.settings.disconnect(self._enabled_id)
        self.rules.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="noannoyance-prefs", description="Edit the NoAnnoyance ignore-list")
    parser.add_argument("--settings", metavar="PATH", help="settings file (default: $NOANNOYANCE_SETTINGS or ~/.config/noannoyance/settings.json)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug messages")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = SettingsStore(args.settings)
    logger.info("Using settings file %s", store.path)
    registry = DesktopAppRegistry()

    root = tk.Tk()
    root.title("NoAnnoyance Preferences")
    root.geometry("520x440")
    IgnoreListEditor(root, store, registry).pack(fill=tk.BOTH, expand=True, padx=10, pady=10)
    root.mainloop()
    return 0


__all__ = ["can_add_rule", "NewRuleDialog", "IgnoreListEditor", "main"]
