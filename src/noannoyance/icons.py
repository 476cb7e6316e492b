"""Resolve desktop-entry icons to image files and load them for tkinter."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional, Sequence, Tuple

from PIL import Image, ImageTk

logger = logging.getLogger(__name__)

ICON_EXTENSIONS: Tuple[str, ...] = (".png", ".xpm")
ICON_SIZES: Tuple[str, ...] = ("32x32", "48x48", "64x64", "128x128", "256x256", "24x24", "22x22", "16x16")


def default_icon_dirs() -> List[str]:
    home = os.path.expanduser("~")
    data_home = os.environ.get("XDG_DATA_HOME") or os.path.join(home, ".local", "share")
    system = os.environ.get("XDG_DATA_DIRS") or "/usr/local/share:/usr/share"
    dirs = [os.path.join(home, ".icons"), os.path.join(data_home, "icons")]
    dirs += [os.path.join(d, "icons") for d in system.split(":") if d]
    dirs.append("/usr/share/pixmaps")
    return dirs


def find_icon_path(icon: str, dirs: Optional[Sequence[str]] = None) -> Optional[str]:
    """Return a file for an icon name or path, searching the hicolor theme then pixmaps."""
    if not icon:
        return None
    if os.path.isabs(icon):
        return icon if os.path.isfile(icon) else None
    for base in (dirs if dirs is not None else default_icon_dirs()):
        candidates = [os.path.join(base, "hicolor", size, "apps") for size in ICON_SIZES]
        candidates.append(base)
        for folder in candidates:
            for ext in ICON_EXTENSIONS:
                path = os.path.join(folder, icon + ext)
                if os.path.isfile(path):
                    return path
    return None


class IconCache:
    """Loads icons as ``ImageTk.PhotoImage`` once per (name, size)."""

    def __init__(self, size: int = 32, dirs: Optional[Sequence[str]] = None) -> None:
        self.size = size
        self.dirs = dirs
        self._cache: Dict[str, Optional[Any]] = {}

    def get(self, icon: str) -> Optional[Any]:
        if icon in self._cache:
            return self._cache[icon]
        image = self._load(icon)
        self._cache[icon] = image
        return image

    def _load(self, icon: str) -> Optional[Any]:
        path = find_icon_path(icon, self.dirs)
        if path is None:
            return None
        try:
            with Image.open(path) as im:
                im = im.convert("RGBA").resize((self.size, self.size))
                return ImageTk.PhotoImage(im)
        except Exception as e:
            logger.debug("Could not load icon %s: %s", path, e)
            return None

    def clear(self) -> None:
        self._cache.clear()


__all__ = ["IconCache", "find_icon_path", "default_icon_dirs"]
