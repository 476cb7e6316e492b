"""Tests for the Display signal hub and the default attention handler"""

from unittest.mock import Mock, patch

import pytest

from noannoyance.host import (
    ATTENTION_SIGNALS,
    WINDOW_DEMANDS_ATTENTION,
    WINDOW_MARKED_URGENT,
    AppInfo,
    Display,
    WindowAttentionHandler,
)


@pytest.fixture
def notify():
    return Mock()


@pytest.fixture
def display(notify):
    return Display(attention_handler_factory=lambda d: WindowAttentionHandler(d, notify=notify))


def test_default_handler_subscribed_to_both_signals(display):
    for signal in ATTENTION_SIGNALS:
        assert display.subscribers(signal) == [display.attention_handler]


def test_default_handler_notifies_for_background_window(display, notify, make_window):
    display.emit(WINDOW_DEMANDS_ATTENTION, make_window(title="Chat"))
    notify.assert_called_once_with("Chat")


def test_default_handler_uses_app_id_without_title(display, notify, make_window):
    display.emit(WINDOW_MARKED_URGENT, make_window(title="", app_id="org.app.A.desktop"))
    notify.assert_called_once_with("org.app.A.desktop")


@pytest.mark.parametrize("kwargs", [{"focused": True}, {"skip_taskbar": True}])
def test_default_handler_skips(display, notify, make_window, kwargs):
    display.emit(WINDOW_DEMANDS_ATTENTION, make_window(**kwargs))
    display.emit(WINDOW_DEMANDS_ATTENTION, None)
    notify.assert_not_called()


def test_default_handler_posts_desktop_notification(make_window):
    with patch('noannoyance.host.base_notifier.window_ready') as window_ready:
        d = Display()
        d.emit(WINDOW_DEMANDS_ATTENTION, make_window(title="Build finished"))
    window_ready.assert_called_once_with("Build finished")


def test_connect_and_disconnect_by_owner(display):
    owner = object()
    cb = Mock()
    display.connect_object(owner, {WINDOW_DEMANDS_ATTENTION: cb})
    assert display.handler_count(WINDOW_DEMANDS_ATTENTION) == 2
    assert display.handler_count(WINDOW_MARKED_URGENT) == 1

    display.emit(WINDOW_DEMANDS_ATTENTION, None)
    cb.assert_called_once_with(display, None)

    display.disconnect_object(owner)
    assert display.subscribers(WINDOW_DEMANDS_ATTENTION) == [display.attention_handler]


def test_unknown_signal_rejected(display):
    with pytest.raises(ValueError):
        display.connect_object(object(), {"window-created": Mock()})


def test_activate_window(display, make_window):
    w = make_window()
    display.activate_window(w)
    assert w.activations == 1


def test_app_info_display_name():
    assert AppInfo(id="a.desktop", name="").display_name == "a.desktop"
    assert AppInfo(id="a.desktop", name="A").display_name == "A"
