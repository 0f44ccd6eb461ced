"""HTTP transport for the Hack The Box API using httpx + Cachetta."""

import hashlib
import json
import logging
from datetime import timedelta
from pathlib import Path
from typing import Any

import httpx
from cachetta import Cachetta

from .context import Context, ensure
from .errors import Cancelled, DeadlineExceeded
from .ratelimit import DefaultRetryPolicy, RateLimiter, parse_retry_after
from .settings import DEFAULT_SERVER, DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
DEFAULT_MAX_RETRIES = 4
DEFAULT_DURATION = timedelta(days=1)

# Cached bodies are stored decoded, so these would no longer describe them
_DECODED_HEADERS = ("content-encoding", "content-length", "transfer-encoding")


def _cache_key(path, params=None, scope=""):
    params = params or {}
    raw = f"{scope}|{path}|{json.dumps(params, sort_keys=True)}"
    return hashlib.sha256(raw.encode()).hexdigest()[:16]


class _Uncached(Exception):
    """Carries a non-2xx response out of the cached fetch so it isn't stored."""

    def __init__(self, response: httpx.Response):
        self.response = response


class Transport:
    """Sends authenticated requests, pacing and retrying them.

    Returns the final httpx.Response whatever its status; classification is
    left to the caller. Raises httpx.TransportError when no response could be
    obtained after all retries. Other httpx.HTTPError subclasses (a body that
    fails to decompress, a redirect loop) are not retried and propagate as is.
    """

    def __init__(
        self,
        token: str,
        *,
        server: str = DEFAULT_SERVER,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        http_client: httpx.Client | None = None,
        limiter: RateLimiter | None = None,
        retry_policy: DefaultRetryPolicy | None = None,
        cache_dir: Path | None = None,
        skip_cache: bool = False,
    ):
        self.server = server.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries if max_retries > 0 else 3
        self.limiter = limiter or RateLimiter()
        self.retry_policy = retry_policy or DefaultRetryPolicy()
        self._headers = {
            "Authorization": f"Bearer {token}",
            "User-Agent": user_agent,
            "Accept": "application/json",
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)
        self._skip_cache = skip_cache
        # Clients sharing a cache_dir never see each other's responses
        self._cache_scope = f"{self.server}|{hashlib.sha256(token.encode()).hexdigest()[:16]}"

        # Pure fetch function -- no retry, no pacing.
        # Cachetta stores what it returns; exceptions propagate (not cached).
        def _do_fetch(path, params=None, timeout=None):
            response = self._client.request(
                "GET",
                self._url(path),
                params=params,
                headers=self._headers,
                timeout=timeout,
            )
            if not 200 <= response.status_code < 300:
                raise _Uncached(response)
            return {
                "status": response.status_code,
                "headers": [
                    [name, value]
                    for name, value in response.headers.multi_items()
                    if name.lower() not in _DECODED_HEADERS
                ],
                "body": response.text,
            }

        self._cached_fetch = None
        self._skip_read_fetch = None
        if cache_dir is not None:
            cache_dir = Path(cache_dir)

            def _cache_path(path, params=None, timeout=None):
                return cache_dir / f"{_cache_key(path, params, self._cache_scope)}.json"

            cache = Cachetta(path=_cache_path, duration=DEFAULT_DURATION)
            self._cached_fetch = cache(_do_fetch)
            self._skip_read_fetch = cache.copy(read=False)(_do_fetch)

    def _url(self, path: str) -> str:
        ep = path if path.startswith("/") else f"/{path}"
        return f"{self.server}{ep}"

    def _timeout_for(self, ctx: Context) -> float:
        remaining = ctx.remaining()
        if remaining is None:
            return self.timeout
        return min(self.timeout, remaining)

    def _send(self, ctx, method, path, params, data) -> httpx.Response:
        timeout = self._timeout_for(ctx)
        if method == "GET" and self._cached_fetch is not None:
            fetch = self._skip_read_fetch if self._skip_cache else self._cached_fetch
            try:
                cached = fetch(path, params, timeout)
            except _Uncached as e:
                return e.response
            return httpx.Response(
                cached["status"],
                headers=[tuple(pair) for pair in cached.get("headers", [])],
                content=cached.get("body", "").encode(),
                request=httpx.Request(method, self._url(path), params=params),
            )

        return self._client.request(
            method,
            self._url(path),
            params=params,
            data=data,
            headers=self._headers,
            timeout=timeout,
        )

    def request(
        self,
        ctx: Context | None,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Make an API call.

        Args:
            ctx: Cancellation/deadline context (None for no limit)
            method: HTTP method
            path: API path, e.g. "/v4/challenges"
            params: Query parameters dict
            data: Form body for POST requests

        Returns:
            The last httpx.Response received.
        """
        ctx = ensure(ctx)
        response: httpx.Response | None = None
        error: httpx.TransportError | None = None

        for retries in range(self.max_retries + 1):
            ctx.raise_if_done()
            self.limiter.before_request(ctx)

            try:
                response = self._send(ctx, method, path, params, data)
                error = None
            except httpx.TransportError as e:
                response = None
                error = e

            if response is not None:
                self.limiter.after_response(response)

            if retries >= self.max_retries or not self.retry_policy.should_retry(response, error):
                break

            wait = self.retry_policy.wait(retries + 1)
            if response is not None and response.status_code == 429:
                retry_after = parse_retry_after(response)
                if retry_after is not None:
                    wait = retry_after
                # Free the connection before retrying
                response.close()

            logger.debug(
                "Retrying %s %s (attempt %d/%d) in %.2fs, status=%s error=%s",
                method,
                path,
                retries + 1,
                self.max_retries,
                wait,
                response.status_code if response is not None else 0,
                error,
            )
            try:
                ctx.sleep(wait)
            except (Cancelled, DeadlineExceeded) as e:
                logger.warning("Request context ended during retry wait: %s", e)
                raise

        if error is not None:
            raise error
        return response

    def close(self):
        if self._owns_client:
            self._client.close()
