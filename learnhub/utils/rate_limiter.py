"""
Sliding-window rate limiter keyed by client identifier.
"""

import threading
import time
from typing import Callable, Dict, List, Optional

from learnhub.utils.logger import logging

UNKNOWN_CLIENT = "unknown"


class RateLimiter:
    """Counts recent requests per client inside a trailing window."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._windows: Dict[str, List[float]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def allow(self, identifier: str, limit: int = 10, window_seconds: int = 60) -> bool:
        """
        Check whether a request from ``identifier`` fits in the window.

        Allowed requests are recorded; rejected ones are not.

        Args:
            identifier: Client identifier (IP, user ID, etc.)
            limit: Max requests allowed
            window_seconds: Time window in seconds

        Returns:
            True if within limit
        """
        now = self._clock()
        with self._lock:
            timestamps = [ts for ts in self._windows.get(identifier, []) if now - ts < window_seconds]

            if len(timestamps) >= limit:
                self._windows[identifier] = timestamps
                return False

            timestamps.append(now)
            self._windows[identifier] = timestamps
            return True

    def sweep(self, max_window_seconds: int = 120) -> int:
        """Forget identifiers with no requests inside ``max_window_seconds``."""
        now = self._clock()
        removed = 0
        with self._lock:
            for identifier in list(self._windows):
                recent = [ts for ts in self._windows[identifier] if now - ts < max_window_seconds]
                if recent:
                    self._windows[identifier] = recent
                else:
                    del self._windows[identifier]
                    removed += 1
        if removed:
            logging.debug(f"Rate limiter sweep removed {removed} idle clients")
        return removed

    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._windows)


def get_client_ip(headers, peer_host: Optional[str] = None) -> str:
    """
    Resolve the client identifier for rate limiting.

    Every client that cannot be identified shares the ``unknown`` bucket.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return peer_host or UNKNOWN_CLIENT
