"""
In-memory login rate limiting keyed by client IP.

State is process-local and resets on restart.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from fastapi import Request


@dataclass
class RateLimitStatus:
    allowed: bool
    remaining: int
    retry_after: Optional[int] = None


@dataclass
class _AttemptRecord:
    count: int = 0
    locked_until: Optional[float] = None


@dataclass
class LoginRateLimiter:
    max_attempts: int = 5
    lockout_seconds: float = 300
    clock: Callable[[], float] = time.monotonic
    _records: dict = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def check(self, ip: str) -> RateLimitStatus:
        with self._lock:
            record = self._records.get(ip)
            if record is None:
                return RateLimitStatus(allowed=True, remaining=self.max_attempts)

            now = self.clock()
            if record.locked_until is not None and now > record.locked_until:
                del self._records[ip]
                return RateLimitStatus(allowed=True, remaining=self.max_attempts)

            if record.locked_until is not None:
                retry_after = math.ceil(record.locked_until - now)
                return RateLimitStatus(allowed=False, remaining=0, retry_after=retry_after)

            return RateLimitStatus(allowed=True, remaining=self.max_attempts - record.count)

    def record_failure(self, ip: str) -> int:
        """Counts a failed attempt and returns the attempts left before lockout."""
        with self._lock:
            record = self._records.setdefault(ip, _AttemptRecord())
            record.count += 1
            if record.count >= self.max_attempts:
                record.locked_until = self.clock() + self.lockout_seconds
            return max(0, self.max_attempts - record.count)

    def clear(self, ip: str) -> None:
        with self._lock:
            self._records.pop(ip, None)


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
