"""One-shot deadline used while a synchronizer waits for a usable identity."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TimeoutGuard:
    """Fire ``on_expire`` once if the guard stays armed for ``timeout_seconds``.

    Once expired, the guard ignores further ``arm`` calls until ``reset`` is
    called, so a second elapsed duration can never re-fire the callback.
    """

    def __init__(self, timeout_seconds: float, on_expire: Callable[[], None]) -> None:
        if timeout_seconds <= 0:
            raise ValueError("Timeout must be positive.")
        self._timeout_seconds = timeout_seconds
        self._on_expire = on_expire
        self._handle: Optional[asyncio.TimerHandle] = None
        self._expired = False

    @property
    def timeout_seconds(self) -> float:
        return self._timeout_seconds

    @property
    def armed(self) -> bool:
        return self._handle is not None

    @property
    def expired(self) -> bool:
        return self._expired

    def arm(self) -> bool:
        """Start the deadline. Returns False when already armed or expired."""
        if self._handle is not None or self._expired:
            return False
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._timeout_seconds, self._fire)
        logger.debug("Identity deadline armed for %.2fs", self._timeout_seconds)
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def reset(self) -> None:
        """Cancel any pending deadline and allow the guard to fire again."""
        self.cancel()
        self._expired = False

    def _fire(self) -> None:
        self._handle = None
        if self._expired:
            return
        self._expired = True
        self._on_expire()


__all__ = ["TimeoutGuard"]
