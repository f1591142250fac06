"""Admission control for the HTTP service.

Kept apart from retrieval: the scorer and reranker never see it. Deployments
that need limits shared across processes can supply any object implementing
`RateLimiter`, for example one backed by an external store.
"""
from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Protocol, runtime_checkable


@runtime_checkable
class RateLimiter(Protocol):
    def check_and_record(self, key: str) -> bool:
        """Record one request for `key` and return whether it is allowed."""
        ...


class InMemoryRateLimiter:
    """Per-key sliding window held in process memory.

    Best effort only: counts reset when the process restarts and are not shared
    between workers. Keys with no hit inside the window are dropped by a sweep
    that runs at most once per window.
    """

    def __init__(
        self,
        max_requests: int = 20,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1 or window_seconds <= 0:
            raise ValueError("max_requests and window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    @property
    def tracked_keys(self) -> int:
        """Number of keys currently holding request history."""
        with self._lock:
            return len(self._hits)

    def _sweep(self, cutoff: float) -> None:
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in stale:
            del self._hits[key]

    def check_and_record(self, key: str) -> bool:
        now = self._clock()
        cutoff = now - self.window_seconds
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            return True


class AllowAllRateLimiter:
    """Limiter that admits every request."""

    def check_and_record(self, key: str) -> bool:
        return True
