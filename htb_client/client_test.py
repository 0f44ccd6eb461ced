"""Unit tests for client construction."""

import base64
import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from .client import Client, is_likely_jwt
from .errors import ConfigurationError
from .settings import DEFAULT_SERVER, DEFAULT_USER_AGENT


def _segment(obj):
    return base64.urlsafe_b64encode(json.dumps(obj).encode()).rstrip(b"=").decode()


TOKEN = ".".join([_segment({"alg": "RS256", "typ": "JWT"}), _segment({"sub": "1"}), "c2ln"])


@pytest.fixture
def settings():
    with patch("htb_client.client.get_settings") as mock_settings:
        mock_settings.return_value = MagicMock(
            htb_token=None,
            htb_server=DEFAULT_SERVER,
            htb_user_agent=DEFAULT_USER_AGENT,
            htb_timeout=60.0,
            htb_max_retries=4,
            htb_cache_dir=None,
        )
        yield mock_settings.return_value


def describe_is_likely_jwt():
    def it_accepts_a_jwt():
        assert is_likely_jwt(TOKEN)

    def it_rejects_wrong_segment_counts():
        assert not is_likely_jwt("abc.def")
        assert not is_likely_jwt("a.b.c.d")

    def it_rejects_segments_that_are_not_json():
        assert not is_likely_jwt("bm90LWpzb24.bm90LWpzb24.c2ln")

    def it_rejects_empty_segments():
        assert not is_likely_jwt(f"{_segment({'a': 1})}..c2ln")


def describe_Client():
    def it_requires_a_token(settings):
        with pytest.raises(ConfigurationError, match="HTB_TOKEN"):
            Client()

    def it_rejects_tokens_that_are_not_jwts(settings):
        with pytest.raises(ConfigurationError, match="JWT"):
            Client("not-a-token")

    def it_reads_the_token_from_settings(settings):
        settings.htb_token = TOKEN
        client = Client()
        assert client.transport._headers["Authorization"] == f"Bearer {TOKEN}"
        client.close()

    def it_prefers_explicit_arguments(settings):
        client = Client(TOKEN, server="https://example.test/api/", max_retries=1, timeout=5)

        assert client.transport.server == "https://example.test/api"
        assert client.transport.max_retries == 1
        assert client.transport.timeout == 5
        client.close()

    def it_exposes_every_service(settings):
        with Client(TOKEN) as client:
            for name in ("challenges", "machines", "sherlocks", "reviews", "users"):
                assert getattr(client, name).transport is client.transport

    def it_cancels_pending_work_on_close(settings):
        http_client = MagicMock(spec=httpx.Client)
        client = Client(TOKEN, http_client=http_client)

        client.close()

        assert client.limiter.context.done
        # A caller-provided HTTP client is left open
        http_client.close.assert_not_called()
