"""
Core building blocks: database wiring, exceptions, logging, debounce timers
and the translator concurrency limiter.
"""

from .concurrency import ConcurrencyLimiter
from .debounce import DebounceScheduler
from .exceptions import ConsoleError, ErrorCode

__all__ = [
    "ConcurrencyLimiter",
    "DebounceScheduler",
    "ConsoleError",
    "ErrorCode",
]
