"""Tests for the process-backed window adapter"""

import unittest
from unittest.mock import MagicMock, Mock, patch

import psutil

from noannoyance.host import AppInfo
from noannoyance.windows import ProcessWindow, process_executable


class TestProcessExecutable(unittest.TestCase):
    @patch('noannoyance.windows.psutil.Process')
    def test_uses_exe_basename(self, mock_process):
        mock_process.return_value.exe.return_value = "/usr/lib/firefox/firefox"
        self.assertEqual(process_executable(42), "firefox")
        mock_process.assert_called_once_with(42)

    @patch('noannoyance.windows.psutil.Process')
    def test_falls_back_to_name(self, mock_process):
        mock_process.return_value.exe.return_value = ""
        mock_process.return_value.name.return_value = "konsole"
        self.assertEqual(process_executable(7), "konsole")

    @patch('noannoyance.windows.psutil.Process')
    def test_missing_process(self, mock_process):
        mock_process.side_effect = psutil.NoSuchProcess(99)
        self.assertEqual(process_executable(99), "")

    @patch('noannoyance.windows.psutil.Process')
    def test_access_denied(self, mock_process):
        mock_process.return_value.exe.side_effect = psutil.AccessDenied(1)
        self.assertEqual(process_executable(1), "")


class TestProcessWindow(unittest.TestCase):
    def setUp(self):
        self.registry = MagicMock()
        self.registry.find_by_executable.return_value = AppInfo(id="firefox.desktop", name="Firefox")

    @patch('noannoyance.windows.process_executable', return_value="firefox")
    def test_owner_application_id_resolved_and_cached(self, mock_exe):
        w = ProcessWindow(title="Mozilla Firefox", pid=10, registry=self.registry)
        self.assertEqual(w.owner_application_id(), "firefox.desktop")
        self.assertEqual(w.owner_application_id(), "firefox.desktop")
        mock_exe.assert_called_once_with(10)
        self.registry.find_by_executable.assert_called_once_with("firefox")

    @patch('noannoyance.windows.process_executable', return_value="")
    def test_owner_unknown_when_process_gone(self, mock_exe):
        w = ProcessWindow(title="x", pid=10, registry=self.registry)
        self.assertIsNone(w.owner_application_id())
        self.registry.find_by_executable.assert_not_called()

    def test_explicit_app_id_skips_lookup(self):
        w = ProcessWindow(title="x", pid=10, registry=self.registry, app_id="org.app.A.desktop")
        self.assertEqual(w.owner_application_id(), "org.app.A.desktop")
        self.registry.find_by_executable.assert_not_called()

    def test_capabilities(self):
        w = ProcessWindow(title="Chat", pid=1, registry=self.registry, focused=False, skip_taskbar=True)
        self.assertFalse(w.has_focus())
        self.assertTrue(w.is_skip_taskbar())
        self.assertEqual(w.get_title(), "Chat")

    def test_activate_calls_back_and_marks_focused(self):
        on_activate = Mock()
        w = ProcessWindow(title="Chat", pid=1, registry=self.registry, on_activate=on_activate)
        w.activate()
        on_activate.assert_called_once_with(w)
        self.assertTrue(w.has_focus())


if __name__ == '__main__':
    unittest.main()
