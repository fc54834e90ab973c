"""
Keyed debounce timers as a scoped resource.

Arming a key cancels the timer previously armed for it; when a timer
expires its callback runs once. ``close()`` (or leaving the ``async with``
block) cancels every armed timer so nothing fires into a torn-down session.
Callbacks that already started are left to finish.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Hashable, List, Optional, Set

logger = logging.getLogger(__name__)


class DebounceScheduler:
    """Coalesces bursts of events per key into one delayed callback"""

    def __init__(self, delay_seconds: float):
        self.delay_seconds = delay_seconds
        self.closed = False
        self._timers: Dict[Hashable, asyncio.Task] = {}
        self._running: Set[asyncio.Task] = set()

    def arm(self, key: Hashable, callback: Callable[[], Awaitable[None]]) -> Optional[asyncio.Task]:
        """(Re)arm the timer for ``key``; returns None once the scheduler is closed"""
        if self.closed:
            logger.debug("Ignoring arm on closed scheduler", extra={"key": repr(key)})
            return None
        self.cancel(key)
        task = asyncio.get_running_loop().create_task(self._fire_later(key, callback))
        self._timers[key] = task
        return task

    def cancel(self, key: Hashable) -> bool:
        task = self._timers.pop(key, None)
        if task is None:
            return False
        task.cancel()
        return True

    def is_armed(self, key: Hashable) -> bool:
        return key in self._timers

    def armed_keys(self) -> List[Hashable]:
        return list(self._timers)

    async def _fire_later(self, key: Hashable, callback: Callable[[], Awaitable[None]]) -> None:
        await asyncio.sleep(self.delay_seconds)
        # Past this point the timer has fired and can no longer be cancelled by re-arming.
        current = asyncio.current_task()
        if self._timers.get(key) is current:
            del self._timers[key]
        self._running.add(current)
        try:
            await callback()
        except Exception:
            logger.error("Debounced callback failed", exc_info=True, extra={"key": repr(key)})
        finally:
            self._running.discard(current)

    async def wait_idle(self) -> None:
        """Wait for every armed timer and running callback to finish"""
        while self._timers or self._running:
            await asyncio.gather(
                *list(self._timers.values()), *list(self._running), return_exceptions=True
            )

    async def close(self) -> None:
        """Cancel every armed timer; callbacks already running are not interrupted"""
        self.closed = True
        pending = list(self._timers.values())
        self._timers.clear()
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def __aenter__(self) -> "DebounceScheduler":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
