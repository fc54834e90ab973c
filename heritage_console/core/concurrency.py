"""
Concurrency limiter for outbound translator calls.

Every cascade in every open edit session shares one limiter, so rapid
multi-field editing cannot exceed ``max_concurrent`` simultaneous provider
calls. Calls beyond the limit wait for a slot; each call is bounded by a
timeout.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class ConcurrencyLimiter:
    """
    Semaphore-based limiter with timeout handling and call metrics.

    Provides:
    - A global cap on concurrent calls
    - Per-call timeout
    - Active / peak / completed / failed counters
    """

    def __init__(self, max_concurrent: int, timeout_seconds: Optional[float] = None):
        self.max_concurrent = max_concurrent
        self.timeout_seconds = timeout_seconds
        self.semaphore = asyncio.Semaphore(max_concurrent)
        self.active_calls = 0
        self.peak_active_calls = 0
        self.completed_calls = 0
        self.failed_calls = 0
        self.total_time_ms = 0.0

    async def run(
        self,
        call_name: str,
        func: Callable[..., Awaitable[Any]],
        *args,
        **kwargs
    ) -> Any:
        """
        Run ``func`` once a slot is free.

        Raises:
            asyncio.TimeoutError: If the call exceeds the configured timeout
        """
        async with self.semaphore:
            self.active_calls += 1
            self.peak_active_calls = max(self.peak_active_calls, self.active_calls)
            start_time = time.time()
            try:
                if self.timeout_seconds:
                    result = await asyncio.wait_for(func(*args, **kwargs), timeout=self.timeout_seconds)
                else:
                    result = await func(*args, **kwargs)
                self.completed_calls += 1
                return result
            except asyncio.TimeoutError:
                self.failed_calls += 1
                logger.warning(
                    f"Call timed out: {call_name}",
                    extra={'call_name': call_name, 'timeout_seconds': self.timeout_seconds}
                )
                raise
            except Exception:
                self.failed_calls += 1
                raise
            finally:
                self.active_calls -= 1
                self.total_time_ms += (time.time() - start_time) * 1000

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Get summary of call metrics."""
        finished = self.completed_calls + self.failed_calls
        return {
            "max_concurrent": self.max_concurrent,
            "active_calls": self.active_calls,
            "peak_active_calls": self.peak_active_calls,
            "completed_calls": self.completed_calls,
            "failed_calls": self.failed_calls,
            "average_call_time_ms": self.total_time_ms / finished if finished else 0.0,
        }
