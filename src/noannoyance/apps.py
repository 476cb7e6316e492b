"""
Application registry backed by XDG desktop entries.

Desktop-entry ids follow the freedesktop rules: the path below an
``applications`` directory with ``/`` replaced by ``-``, so
``applications/kde/konsole.desktop`` becomes ``kde-konsole.desktop``. When the
same id exists in several data directories the first one wins.
"""

from __future__ import annotations

import configparser
import logging
import os
import shlex
from typing import Dict, List, Optional, Sequence

from .host import AppInfo

logger = logging.getLogger(__name__)

DESKTOP_SECTION = "Desktop Entry"


def default_data_dirs() -> List[str]:
    home = os.environ.get("XDG_DATA_HOME") or os.path.join(os.path.expanduser("~"), ".local", "share")
    system = os.environ.get("XDG_DATA_DIRS") or "/usr/local/share:/usr/share"
    dirs = [home] + [d for d in system.split(":") if d]
    return [os.path.join(d, "applications") for d in dirs]


def parse_desktop_file(path: str, app_id: str) -> Optional[AppInfo]:
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    parser.optionxform = str  # type: ignore[assignment]  # keys are case-sensitive
    try:
        with open(path, "r", encoding="utf-8") as f:
            parser.read_file(f)
    except (OSError, UnicodeDecodeError, configparser.Error) as e:
        logger.debug("Skipping unreadable desktop file %s: %s", path, e)
        return None
    if not parser.has_section(DESKTOP_SECTION):
        return None
    entry = parser[DESKTOP_SECTION]
    if entry.get("Type", "Application") != "Application":
        return None
    if entry.get("Hidden", "false").lower() == "true":
        return None
    return AppInfo(
        id=app_id,
        name=entry.get("Name", "").strip(),
        icon=entry.get("Icon", "").strip(),
        executable=_executable_from_exec(entry.get("Exec", "")),
        path=path,
    )


def _executable_from_exec(exec_line: str) -> str:
    try:
        parts = shlex.split(exec_line)
    except ValueError:
        parts = exec_line.split()
    # Skip env wrappers such as "env FOO=1 app %U"
    while parts and (parts[0] == "env" or "=" in parts[0]):
        parts = parts[1:]
    return os.path.basename(parts[0]) if parts else ""


class DesktopAppRegistry:
    """Resolves desktop-entry ids to ``AppInfo``; scans lazily and caches."""

    def __init__(self, dirs: Optional[Sequence[str]] = None) -> None:
        self.dirs = list(dirs) if dirs is not None else default_data_dirs()
        self._apps: Optional[Dict[str, AppInfo]] = None

    def refresh(self) -> None:
        apps: Dict[str, AppInfo] = {}
        for base in self.dirs:
            if not os.path.isdir(base):
                continue
            for root, _dirs, files in os.walk(base):
                for fname in sorted(files):
                    if not fname.endswith(".desktop"):
                        continue
                    path = os.path.join(root, fname)
                    app_id = os.path.relpath(path, base).replace(os.sep, "-")
                    if app_id in apps:
                        continue
                    info = parse_desktop_file(path, app_id)
                    if info is not None:
                        apps[app_id] = info
        self._apps = apps
        logger.debug("Found %d applications in %s", len(apps), self.dirs)

    def _entries(self) -> Dict[str, AppInfo]:
        if self._apps is None:
            self.refresh()
        return self._apps  # type: ignore[return-value]

    def lookup(self, app_id: str) -> Optional[AppInfo]:
        return self._entries().get(app_id)

    def all_apps(self) -> List[AppInfo]:
        return sorted(self._entries().values(), key=lambda a: (a.display_name.lower(), a.id))

    def find_by_executable(self, executable: str) -> Optional[AppInfo]:
        name = os.path.basename(executable or "")
        if not name:
            return None
        for app in self.all_apps():
            if app.executable == name:
                return app
        # Fall back to the common "<exe>.desktop" naming
        return self.lookup(f"{name}.desktop")


__all__ = ["DesktopAppRegistry", "parse_desktop_file", "default_data_dirs"]
