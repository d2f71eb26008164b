"""In-memory rate limiters protecting the LLM proxy and public endpoints.

``RateLimiter`` enforces a global per-second-slot budget and per-fingerprint
windows that escalate to challenges. ``ClientRateLimiter`` is a plain
fixed-window limiter keyed by client IP for cheaper endpoints.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass
class RateDecision:
    """Outcome of a rate-limit check."""

    allowed: bool
    retry_after: int = 0
    needs_challenge: bool = False


@dataclass
class FingerprintWindow:
    count: int
    window_start: float
    challenges_issued: int = 0


def _ceil_seconds(seconds: float) -> int:
    return max(int(math.ceil(seconds)), 1)


class RateLimiter:
    """Global and per-fingerprint request budgets."""

    def __init__(
        self,
        global_limit: int = 1000,
        global_window: float = 60,
        fingerprint_limit: int = 5,
        fingerprint_window: float = 60,
        max_challenges_per_window: int = 3,
        clock: Callable[[], float] = time.time,
    ):
        self.global_limit = global_limit
        self.global_window = global_window
        self.fingerprint_limit = fingerprint_limit
        self.fingerprint_window = fingerprint_window
        self.max_challenges_per_window = max_challenges_per_window
        self._clock = clock
        self._slots: dict[int, int] = {}
        self._windows: dict[str, FingerprintWindow] = {}
        self._lock = threading.Lock()

    @property
    def tracked_fingerprints(self) -> int:
        return len(self._windows)

    def check_global(self) -> RateDecision:
        """Accept and count one request unless the trailing window is full."""
        now = self._clock()
        window_start = now - self.global_window
        with self._lock:
            in_window = sum(
                count for slot, count in self._slots.items() if slot >= window_start
            )
            if in_window >= self.global_limit:
                live = [s for s in self._slots if s >= window_start]
                # Oldest live slot leaves the window first; none when the limit is 0
                oldest = min(live) if live else now
                return RateDecision(
                    allowed=False,
                    retry_after=_ceil_seconds(oldest + self.global_window - now),
                )
            slot = int(now)
            self._slots[slot] = self._slots.get(slot, 0) + 1
        return RateDecision(allowed=True)

    def check_fingerprint(self, fingerprint: str, limit: int | None = None) -> RateDecision:
        """Accept and count one request for ``fingerprint``.

        ``limit`` overrides the default per-fingerprint limit, which is how
        callers tighten the budget for suspicious traffic.
        """
        limit = self.fingerprint_limit if limit is None else limit
        now = self._clock()
        with self._lock:
            window = self._windows.get(fingerprint)
            if window is None:
                window = FingerprintWindow(count=0, window_start=now)
                self._windows[fingerprint] = window
            elif now - window.window_start > self.fingerprint_window:
                window.count = 0
                window.window_start = now
                window.challenges_issued = 0

            if window.count >= limit:
                return RateDecision(
                    allowed=False,
                    retry_after=_ceil_seconds(
                        self.fingerprint_window - (now - window.window_start)
                    ),
                    needs_challenge=window.challenges_issued < self.max_challenges_per_window,
                )

            window.count += 1
        return RateDecision(allowed=True)

    def record_challenge(self, fingerprint: str) -> bool:
        """Count a challenge issued to ``fingerprint`` in its current window.

        Returns False if the per-window challenge cap is already reached.
        """
        with self._lock:
            window = self._windows.get(fingerprint)
            if window is None:
                return True
            if window.challenges_issued >= self.max_challenges_per_window:
                return False
            window.challenges_issued += 1
            return True

    def sweep(self) -> int:
        """Drop expired global slots and fingerprints idle for two windows."""
        now = self._clock()
        with self._lock:
            old_slots = [s for s in self._slots if s < now - self.global_window]
            for slot in old_slots:
                del self._slots[slot]
            idle = [
                fp for fp, w in self._windows.items()
                if now - w.window_start > self.fingerprint_window * 2
            ]
            for fp in idle:
                del self._windows[fp]
        if idle:
            logger.info("Swept %d idle fingerprint windows", len(idle))
        return len(old_slots) + len(idle)


class ClientRateLimiter:
    """Fixed-window limiter keyed by client IP."""

    def __init__(
        self,
        max_requests: int = 30,
        window_seconds: float = 60,
        clock: Callable[[], float] = time.time,
    ):
        self.max_requests = max_requests
        self.window = window_seconds
        self._clock = clock
        self._hits: dict[str, FingerprintWindow] = {}
        self._lock = threading.Lock()

    def check(self, client: str) -> RateDecision:
        now = self._clock()
        with self._lock:
            entry = self._hits.get(client)
            if entry is None or now - entry.window_start > self.window:
                entry = FingerprintWindow(count=0, window_start=now)
                self._hits[client] = entry
            if entry.count >= self.max_requests:
                return RateDecision(
                    allowed=False,
                    retry_after=_ceil_seconds(self.window - (now - entry.window_start)),
                )
            entry.count += 1
        return RateDecision(allowed=True)

    def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            stale = [c for c, e in self._hits.items() if now - e.window_start > self.window]
            for client in stale:
                del self._hits[client]
        return len(stale)
