"""
Scan policy: validated concurrency/timeout knobs plus the admission gate
that bounds how many probes are in flight at once.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from core.config import settings


class ScanPolicyError(ValueError):
    pass


@dataclass(frozen=True)
class ScanPolicy:
    concurrency: int
    timeout_ms: int
    banner_timeout_ms: int
    banner_read_size: int

    def __post_init__(self):
        for name in ("concurrency", "timeout_ms", "banner_timeout_ms", "banner_read_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ScanPolicyError(f"{name} must be a positive integer, got {value!r}")

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000

    @property
    def banner_timeout_s(self) -> float:
        return self.banner_timeout_ms / 1000

    @classmethod
    def from_settings(cls, concurrency: Optional[int] = None, timeout_ms: Optional[int] = None) -> "ScanPolicy":
        return cls(
            concurrency=settings.concurrency if concurrency is None else concurrency,
            timeout_ms=settings.timeout_ms if timeout_ms is None else timeout_ms,
            banner_timeout_ms=settings.banner_timeout_ms,
            banner_read_size=settings.banner_read_size,
        )


class AdmissionGate:
    """
    Counting gate around asyncio.Semaphore. Waiters are not admitted in any
    guaranteed order; the only promise is in_flight <= limit.
    """

    def __init__(self, limit: int):
        self.limit = limit
        self.in_flight = 0
        self.peak_in_flight = 0
        self._sem = asyncio.Semaphore(limit)

    async def acquire(self):
        await self._sem.acquire()
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)

    def release(self):
        self.in_flight -= 1
        self._sem.release()
