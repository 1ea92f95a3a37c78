# inlandv/rate_limit.py
# Fixed-window, per-client-IP request limiter for /api/ routes (single process)

import threading
import time
from typing import Callable, Dict, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse

from inlandv import config

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


class FixedWindowRateLimiter:
    def __init__(self, max_requests: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (window start, count)
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_prune = clock()

    def __len__(self) -> int:
        return len(self._windows)

    def _prune(self, now: float) -> None:
        # At most once per window; callers hold the lock
        if now - self._last_prune < self.window_seconds:
            return
        self._windows = {
            key: (start, count)
            for key, (start, count) in self._windows.items()
            if now - start < self.window_seconds
        }
        self._last_prune = now

    def hit(self, key: str) -> bool:
        """Count a request; False once the key is over its limit in the current window."""
        if self.max_requests <= 0:
            return True
        now = self._clock()
        with self._lock:
            self._prune(now)
            start, count = self._windows.get(key, (now, 0))
            if now - start >= self.window_seconds:
                start, count = now, 0
            count += 1
            self._windows[key] = (start, count)
            return count <= self.max_requests

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
            self._last_prune = self._clock()


limiter = FixedWindowRateLimiter(config.RATE_LIMIT_MAX_REQUESTS, config.RATE_LIMIT_WINDOW_SECONDS)


def client_ip(request: Request) -> str:
    """
    Socket peer address. With TRUST_PROXY on, the last X-Forwarded-For entry
    instead: the one our proxy appended, which the client cannot choose.
    """
    if config.TRUST_PROXY:
        forwarded = [part.strip() for part in request.headers.get("x-forwarded-for", "").split(",") if part.strip()]
        if forwarded:
            return forwarded[-1]
    return request.client.host if request.client else "unknown"


async def rate_limit_middleware(request: Request, call_next):
    if request.url.path.startswith("/api/") and not limiter.hit(client_ip(request)):
        if config.IS_DEV:
            print(f"[RATE_LIMIT] Blocked {client_ip(request)} {request.method} {request.url.path}")
        return JSONResponse(status_code=429, content={"success": False, "message": RATE_LIMIT_MESSAGE})
    return await call_next(request)
