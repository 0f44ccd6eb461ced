"""Request pacing and retry policy shared by every call on a client."""

import logging
import random
import threading
import time
from dataclasses import dataclass

import httpx

from .context import Context

logger = logging.getLogger(__name__)

# Budget when the server sends no rate limit headers
DEFAULT_BURST = 10
# 250ms refill = 4 req/sec sustained after the initial burst
REFILL_INTERVAL = 0.25
# Cloudflare 429s carry no Retry-After; every caller pauses this long
CLOUDFLARE_BACKOFF = 10.0

BACKOFF_BASE = 1.0
MAX_BACKOFF = 30.0
JITTER = 0.1


@dataclass
class RateLimitInfo:
    remaining: int
    limit: int
    reset: float | None = None


class RateLimiter:
    """Token bucket that resyncs from X-Ratelimit-* response headers."""

    def __init__(self, ctx: Context | None = None, burst: int = DEFAULT_BURST):
        self._ctx = ctx or Context.background()
        self._lock = threading.Lock()
        self.limit = RateLimitInfo(remaining=burst, limit=burst)
        self._last_refill: float | None = None
        self._pause_until: float | None = None

    @property
    def context(self) -> Context:
        return self._ctx

    def wrap(self, ctx: Context | None) -> Context:
        """Bind a caller's context to the limiter's lifetime."""
        if ctx is None:
            return self._ctx
        return ctx.merge(self._ctx)

    def close(self) -> None:
        """End the limiter's lifetime, cancelling every wrapped context."""
        self._ctx.cancel()

    def _refill(self, now: float) -> None:
        if self._last_refill is None:
            self._last_refill = now
            return
        tokens = int((now - self._last_refill) / REFILL_INTERVAL)
        if tokens > 0:
            self.limit.remaining = min(self.limit.limit, self.limit.remaining + tokens)
            # Advance by whole intervals to keep the fractional remainder
            self._last_refill += tokens * REFILL_INTERVAL

    def before_request(self, ctx: Context) -> None:
        """Block until a token is available, then consume it."""
        while True:
            with self._lock:
                now = time.monotonic()
                wait = None
                if self._pause_until is not None:
                    if now < self._pause_until:
                        wait = self._pause_until - now
                        logger.debug("Cloudflare backoff active, waiting %.2fs", wait)
                    else:
                        self._pause_until = None
                        self.limit.remaining = self.limit.limit
                        self._last_refill = now
                        logger.debug(
                            "Cloudflare backoff expired, refilled to %d/%d",
                            self.limit.remaining,
                            self.limit.limit,
                        )
                if wait is None:
                    self._refill(now)
                    if self.limit.remaining > 0:
                        self.limit.remaining -= 1
                        return
                    wait = REFILL_INTERVAL
                    logger.debug(
                        "Rate limit budget exhausted (0/%d), waiting %.2fs",
                        self.limit.limit,
                        wait,
                    )
            ctx.sleep(wait)

    def after_response(self, response: httpx.Response) -> None:
        """Update the budget from a response's headers."""
        server = response.headers.get("server", "").lower()
        if response.status_code == 429 and "cloudflare" in server:
            with self._lock:
                self._pause_until = time.monotonic() + CLOUDFLARE_BACKOFF
                self.limit.remaining = 0
            logger.info("Cloudflare 429 detected, global backoff for %.0fs", CLOUDFLARE_BACKOFF)
            return

        remaining = _int_header(response, "x-ratelimit-remaining")
        limit = _int_header(response, "x-ratelimit-limit")
        reset = _int_header(response, "x-ratelimit-reset")

        with self._lock:
            if remaining is None or limit is None:
                logger.debug(
                    "Rate limit headers missing; current state %d/%d",
                    self.limit.remaining,
                    self.limit.limit,
                )
                return
            self.limit = RateLimitInfo(
                remaining=remaining,
                limit=limit,
                reset=float(reset) if reset is not None else self.limit.reset,
            )
            # Server value is authoritative; don't add phantom refill tokens on top
            self._last_refill = time.monotonic()
        logger.debug("Rate limit updated from headers: %d/%d", remaining, limit)


class DefaultRetryPolicy:
    """Retry timeouts, connection errors, 429 and 5xx (except 501/505)."""

    def should_retry(self, response: httpx.Response | None, error: BaseException | None) -> bool:
        if error is not None:
            return isinstance(error, (httpx.TimeoutException, httpx.NetworkError))
        if response is None:
            return False
        if response.status_code == 429:
            return True
        return response.status_code >= 500 and response.status_code not in (501, 505)

    def wait(self, retries: int) -> float:
        """Exponential backoff from 1s, capped at 30s, with +/-10% jitter."""
        delay = min(BACKOFF_BASE * 2 ** (retries - 1), MAX_BACKOFF)
        jitter = delay * (random.random() - 0.5) * 2 * JITTER
        return max(0.0, delay + jitter)


def _int_header(response: httpx.Response, name: str) -> int | None:
    val = response.headers.get(name)
    if val is None:
        return None
    try:
        return int(val)
    except ValueError:
        return None


def parse_retry_after(response: httpx.Response) -> float | None:
    val = response.headers.get("retry-after")
    if val is None:
        return None
    try:
        return float(val)
    except ValueError:
        return None
