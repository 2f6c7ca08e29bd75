"""Timer-driven animation ticks.

An animation here is a scheduled callback plus a small counter owned by the
callback's object. Ticks are scheduled on the running asyncio loop with
``call_later``; nothing ever sleeps.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)

SELECTION_FLASH_INTERVAL = 0.15

TickCallback = Callable[[], bool]  # returns True to keep ticking


class TickScheduler:
    """Deliver ``callback`` every ``interval`` seconds while it asks for more.

    Without a running event loop ``start`` is a no-op and the owner is
    expected to call :meth:`tick` itself.
    """

    def __init__(self, interval: float, callback: TickCallback) -> None:
        self.interval = interval
        self._callback = callback
        self._timer_handle: asyncio.TimerHandle | None = None

    @property
    def running(self) -> bool:
        return self._timer_handle is not None

    def start(self) -> None:
        """Schedule the next tick, replacing any pending one."""
        self.stop()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; ticks must be delivered manually")
            return
        self._timer_handle = loop.call_later(self.interval, self._on_timer)

    def stop(self) -> None:
        if self._timer_handle is not None:
            self._timer_handle.cancel()
            self._timer_handle = None

    def tick(self) -> bool:
        """Run the callback once. Returns whether it wants another tick."""
        return bool(self._callback())

    def _on_timer(self) -> None:
        self._timer_handle = None
        if self.tick():
            self.start()
