"""
Tests for the preferences window and the add-rule dialog.

The widget tests need a display; they are skipped when Tk cannot start.
"""

import os
import threading
import time

import pytest

from noannoyance.host import AppInfo
from noannoyance.rules import can_add_rule
from noannoyance.settings import ENABLE_IGNORELIST, IGNORED_APPS

A = AppInfo(id="org.app.A", name="A")
B = AppInfo(id="org.app.B", name="B")


def test_nothing_selected_cannot_be_added():
    assert can_add_rule([], None) is False


def test_existing_rule_blocks_same_app():
    assert can_add_rule(["org.app.A"], A) is False


def test_other_app_can_be_added():
    assert can_add_rule(["org.app.A"], B) is True


def test_prefix_match_blocks_app():
    # An existing "org.app.A.Extra" rule already covers "org.app.A"
    assert can_add_rule(["org.app.A.Extra"], A) is False
    assert can_add_rule(["org.app"], A) is True


@pytest.fixture
def tk_root():
    tk = pytest.importorskip("tkinter")
    try:
        root = tk.Tk()
    except tk.TclError as e:
        pytest.skip(f"Tk not available: {e}")
    yield root
    root.destroy()


@pytest.fixture
def app_registry():
    from conftest import FakeRegistry
    return FakeRegistry(["org.app.A", "org.app.B"])


def _ok_enabled(dlg):
    return not dlg.btn_ok.instate(["disabled"])


def test_dialog_sensitivity_follows_selection(tk_root, store, app_registry):
    from noannoyance.prefs import NewRuleDialog

    store.set_strv(IGNORED_APPS, ["org.app.A"])
    dlg = NewRuleDialog(tk_root, store, app_registry)
    try:
        assert not _ok_enabled(dlg)

        dlg.tree.selection_set("0")  # org.app.A
        dlg.update()
        assert not _ok_enabled(dlg)

        dlg.tree.selection_set("1")  # org.app.B
        dlg.update()
        assert _ok_enabled(dlg)

        dlg._on_ok()
        assert dlg.result == app_registry.lookup("org.app.B")
    finally:
        if dlg.winfo_exists():
            dlg.destroy()


def test_dialog_cancel_leaves_no_result(tk_root, store, app_registry):
    from noannoyance.prefs import NewRuleDialog

    dlg = NewRuleDialog(tk_root, store, app_registry)
    dlg.tree.selection_set("0")
    dlg._on_cancel()
    assert dlg.result is None
    assert store.get_strv(IGNORED_APPS) == []


def test_dialog_filter(tk_root, store, app_registry):
    from noannoyance.prefs import NewRuleDialog

    dlg = NewRuleDialog(tk_root, store, app_registry)
    try:
        dlg.var_filter.set("app.b")
        assert [a.id for a in dlg._shown] == ["org.app.B"]
        assert len(dlg.tree.get_children()) == 1
    finally:
        dlg.destroy()


def test_editor_rows_follow_model(tk_root, store, app_registry):
    from noannoyance.prefs import IgnoreListEditor

    store.set_strv(IGNORED_APPS, ["org.app.A"])
    editor = IgnoreListEditor(tk_root, store, app_registry, watch=False)
    try:
        assert [editor.tree.item(i, "values")[0] for i in editor.tree.get_children()] == ["org.app.A"]

        editor.rules.append("org.app.B")
        rows = editor.tree.get_children()
        assert [editor.tree.item(i, "values")[0] for i in rows] == ["org.app.A", "org.app.B"]

        editor.tree.selection_set(rows[0])
        editor._remove_selected()
        assert store.get_strv(IGNORED_APPS) == ["org.app.B"]
        assert [editor.tree.item(i, "values")[0] for i in editor.tree.get_children()] == ["org.app.B"]
    finally:
        editor.destroy()


def test_editor_switch_is_bound_both_ways(tk_root, store, app_registry):
    from noannoyance.prefs import IgnoreListEditor

    editor = IgnoreListEditor(tk_root, store, app_registry, watch=False)
    try:
        editor.var_enabled.set(True)
        editor._on_toggle()
        assert store.get_boolean(ENABLE_IGNORELIST) is True

        store.set_boolean(ENABLE_IGNORELIST, False)
        assert editor.var_enabled.get() is False
    finally:
        editor.destroy()


def test_editor_applies_external_edits_on_tk_thread(tk_root, store, app_registry):
    from watchdog.events import FileMovedEvent

    from noannoyance.prefs import IgnoreListEditor
    from noannoyance.settings import SettingsStore

    editor = IgnoreListEditor(tk_root, store, app_registry)
    try:
        assert editor.monitor is not None and editor.monitor.running
        SettingsStore(store.path).set_strv(IGNORED_APPS, ["org.app.B"])
        later = time.time() + 5
        os.utime(store.path, (later, later))

        event = FileMovedEvent(store.path + ".tmp", store.path)
        watcher = threading.Thread(target=editor.monitor.handler.on_moved, args=(event,))
        watcher.start()
        watcher.join()

        editor._drain()
        assert [editor.tree.item(i, "values")[0] for i in editor.tree.get_children()] == ["org.app.B"]
    finally:
        monitor = editor.monitor
        editor.destroy()
    assert not monitor.running
