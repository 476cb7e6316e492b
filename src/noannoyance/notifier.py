"""Desktop notifications posted by the default attention handler."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from plyer import notification as plyer_notification  # type: ignore[import-not-found]

logger = logging.getLogger(__name__)

APP_NAME = "NoAnnoyance"


def _send(title: str, message: str, timeout: int, app_icon: Optional[str]) -> None:
    kwargs = {"title": title, "message": message, "timeout": timeout, "app_name": APP_NAME}
    if app_icon:
        kwargs["app_icon"] = app_icon
    try:
        plyer_notification.notify(**kwargs)  # type: ignore[no-untyped-call]
    except Exception as e:
        # plyer has no backend on some desktops
        logger.warning("Could not post notification %r: %s", title, e)


def notify(title: str, message: str, timeout: int = 5, app_icon: Optional[str] = None) -> None:
    """Post a notification without blocking the caller's event loop."""
    threading.Thread(
        target=_send, args=(title, message, timeout, app_icon), name="NoAnnoyance-Notify", daemon=True
    ).start()


def window_ready(title: str) -> None:
    notify(f"“{title}” is ready", "Switch to it when you are done.")
