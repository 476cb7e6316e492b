from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Optional

import psutil  # type: ignore[import-not-found]

from .host import AppRegistry

logger = logging.getLogger(__name__)


def process_executable(pid: int) -> str:
    """Return the executable name for ``pid``, or "" if the process is gone or hidden."""
    try:
        p = psutil.Process(int(pid))
        exe = p.exe() or ""
        return os.path.basename(exe) if exe else p.name()
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess, ValueError):
        return ""


@dataclass
class ProcessWindow:
    """A top-level window owned by a process.

    Desktop integrations build one per attention event; the owning application
    id is resolved from the process executable via the registry.
    """
    title: str
    pid: int
    registry: AppRegistry
    focused: bool = False
    skip_taskbar: bool = False
    on_activate: Optional[Callable[["ProcessWindow"], None]] = None
    app_id: Optional[str] = field(default=None)

    def has_focus(self) -> bool:
        return self.focused

    def is_skip_taskbar(self) -> bool:
        return self.skip_taskbar

    def get_title(self) -> str:
        return self.title

    def owner_application_id(self) -> Optional[str]:
        if self.app_id is None:
            exe = process_executable(self.pid)
            finder = getattr(self.registry, "find_by_executable", None)
            info = finder(exe) if (exe and callable(finder)) else None
            self.app_id = info.id if info is not None else None
            if info is None:
                logger.debug("No application found for pid %s (%s)", self.pid, exe or "?")
        return self.app_id

    def activate(self) -> None:
        if self.on_activate is not None:
            self.on_activate(self)
        self.focused = True


__all__ = ["ProcessWindow", "process_executable"]
