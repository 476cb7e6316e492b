import os
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from noannoyance.host import AppInfo  # noqa: E402
from noannoyance.settings import SettingsStore  # noqa: E402


@dataclass
class FakeWindow:
    app_id: Optional[str] = "org.app.A.desktop"
    focused: bool = False
    skip_taskbar: bool = False
    title: str = "Window"
    activations: int = 0

    def has_focus(self) -> bool:
        return self.focused

    def is_skip_taskbar(self) -> bool:
        return self.skip_taskbar

    def owner_application_id(self) -> Optional[str]:
        return self.app_id

    def get_title(self) -> str:
        return self.title

    def activate(self) -> None:
        self.activations += 1


class FakeRegistry:
    def __init__(self, ids: List[str]) -> None:
        self.apps: Dict[str, AppInfo] = {i: AppInfo(id=i, name=i.split(".")[-2] if i.count(".") else i) for i in ids}

    def lookup(self, app_id: str) -> Optional[AppInfo]:
        return self.apps.get(app_id)

    def all_apps(self) -> List[AppInfo]:
        return sorted(self.apps.values(), key=lambda a: a.id)


@pytest.fixture
def store(tmp_path):
    return SettingsStore(str(tmp_path / "settings.json"))


@pytest.fixture
def registry():
    return FakeRegistry(["org.app.A.desktop", "org.app.B.desktop", "org.app.C.desktop"])


@pytest.fixture
def make_window():
    return FakeWindow
