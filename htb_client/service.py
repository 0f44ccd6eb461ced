"""Plumbing shared by every resource service: send, then classify."""

from typing import Any

import httpx

from .context import Context, ensure
from .envelope import SUCCESS_SLOT, Decoder, Envelope, decode_json, parse
from .models import Response, ResponseMeta
from .transport import Transport


def call(
    transport: Transport,
    ctx: Context | None,
    method: str,
    path: str,
    decode: Decoder = decode_json,
    params: dict[str, Any] | None = None,
    data: dict[str, Any] | None = None,
) -> tuple[Any, ResponseMeta]:
    """Send one request under the limiter's context and classify the result."""
    wrapped = transport.limiter.wrap(ensure(ctx))
    try:
        response = transport.request(wrapped, method, path, params=params, data=data)
    except httpx.HTTPError as e:
        # A call aborted by its own context reports the context, not the network
        err = wrapped.err()
        if err is not None:
            raise err from e
        return parse(None, decode, error=e)
    return parse(response, decode)


def decode_field(key: str, decode: Decoder = decode_json) -> Decoder:
    """Success only when the 200 payload holds `key`; yields that value."""

    def decoder(response: httpx.Response) -> Envelope[Any] | None:
        envelope = decode(response)
        if envelope is None or envelope.slot != SUCCESS_SLOT:
            return envelope
        payload = envelope.payload
        if not isinstance(payload, dict) or payload.get(key) is None:
            return Envelope(slot=None)
        return Envelope(slot=SUCCESS_SLOT, payload=payload[key])

    return decoder


class Service:
    """Base for resource services bound to one transport."""

    def __init__(self, transport: Transport):
        self.transport = transport

    def _get(self, ctx, path, params=None, decode: Decoder = decode_json) -> Response:
        data, meta = call(self.transport, ctx, "GET", path, decode, params=params)
        return Response(data=data, meta=meta)

    def _post(self, ctx, path, data=None, decode: Decoder = decode_json) -> Response:
        payload, meta = call(self.transport, ctx, "POST", path, decode, data=data)
        return Response(data=payload, meta=meta)
