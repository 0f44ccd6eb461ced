"""Entry point: a configured client exposing every resource service."""

import base64
import binascii
import json
import logging
from pathlib import Path

import httpx

from .errors import ConfigurationError
from .ratelimit import RateLimiter
from .services.challenges import Challenges
from .services.machines import Machines
from .services.reviews import Reviews
from .services.sherlocks import Sherlocks
from .services.users import Users
from .settings import get_settings
from .transport import Transport

logger = logging.getLogger(__name__)

_clients: dict[tuple, "Client"] = {}


def _b64url_decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def is_likely_jwt(token: str) -> bool:
    """Three base64url segments, the first two decoding to JSON objects."""
    parts = token.split(".")
    if len(parts) != 3 or not all(parts):
        return False
    try:
        header = json.loads(_b64url_decode(parts[0]))
        claims = json.loads(_b64url_decode(parts[1]))
        _b64url_decode(parts[2])
    except (binascii.Error, ValueError):
        return False
    return isinstance(header, dict) and isinstance(claims, dict)


class Client:
    """Hack The Box API client.

    Arguments left as None are read from settings (HTB_TOKEN, HTB_SERVER...).

        with Client() as htb:
            page = htb.challenges.list().by_state("active").results()
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        server: str | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        http_client: httpx.Client | None = None,
        cache_dir: Path | None = None,
        skip_cache: bool = False,
    ):
        settings = get_settings()
        token = token or settings.htb_token
        if not token:
            raise ConfigurationError("HTB_TOKEN is not set")
        if not is_likely_jwt(token):
            raise ConfigurationError("token does not look like a JWT app token")

        self.limiter = RateLimiter()
        self.transport = Transport(
            token,
            server=server or settings.htb_server,
            user_agent=user_agent or settings.htb_user_agent,
            timeout=timeout if timeout is not None else settings.htb_timeout,
            max_retries=max_retries if max_retries is not None else settings.htb_max_retries,
            http_client=http_client,
            limiter=self.limiter,
            cache_dir=cache_dir if cache_dir is not None else settings.htb_cache_dir,
            skip_cache=skip_cache,
        )
        logger.debug("Client configured for %s", self.transport.server)

        self.challenges = Challenges(self.transport)
        self.machines = Machines(self.transport)
        self.sherlocks = Sherlocks(self.transport)
        self.reviews = Reviews(self.transport)
        self.users = Users(self.transport)

    def close(self) -> None:
        """Cancel pending waits and release the HTTP connection pool."""
        self.limiter.close()
        self.transport.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def get_client(cache_dir=None, skip_cache=False) -> Client:
    """Get or create a settings-configured Client for the given cache options."""
    key = (str(cache_dir) if cache_dir else None, skip_cache)
    if key not in _clients:
        _clients[key] = Client(cache_dir=cache_dir, skip_cache=skip_cache)
    return _clients[key]
