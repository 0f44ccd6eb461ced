"""Classification of raw API responses into a payload or a typed error.

Every service call funnels through `parse`. A decoder turns the response
into an `Envelope` naming the status shape the payload was filed under; only
a payload filed under 200 is a success. Anything else raises an `APIError`
that still carries the call's `ResponseMeta`.
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

import httpx
from pydantic import BaseModel

from .errors import APIError, RequestFailedError, classify_failure, status_error
from .models import NO_STATUS, ResponseMeta, extract_raw, safe_status

__all__ = [
    "Envelope",
    "SlotError",
    "decode_json",
    "decode_model",
    "extract_raw",
    "parse",
    "safe_status",
]

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

SUCCESS_SLOT = 200
NO_POPULATED_RESULT = "no populated result"


@dataclass(frozen=True)
class Envelope(Generic[T]):
    """A decoded payload tagged with the status shape it matched.

    `slot` is None when the body matched no documented shape.
    """

    slot: int | None
    payload: T | None = None


Decoder = Callable[[httpx.Response], "Envelope[Any] | None"]


class SlotError(Exception):
    """Content of a non-success slot, kept as the cause of the failure."""

    def __init__(self, slot: int, content: Any):
        super().__init__(f"{slot}: {content!r}")
        self.slot = slot
        self.content = content


def _is_json(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "")
    return "json" in content_type.lower()


def decode_json(response: httpx.Response) -> Envelope[Any]:
    """File the JSON body under the response's own status."""
    if not response.content or not _is_json(response):
        return Envelope(slot=None)
    return Envelope(slot=response.status_code, payload=response.json())


def decode_model(model: type[M]) -> Callable[[httpx.Response], Envelope[Any]]:
    """Like `decode_json`, validating the 200 shape into `model`."""

    def decode(response: httpx.Response) -> Envelope[Any]:
        envelope = decode_json(response)
        if envelope.slot != SUCCESS_SLOT:
            return envelope
        return Envelope(slot=SUCCESS_SLOT, payload=model.model_validate(envelope.payload))

    return decode


def _slot_message(content: Any) -> str | None:
    if isinstance(content, dict):
        message = content.get("message")
        if isinstance(message, str) and message:
            return message
    return None


def _slot_failure(slot: int, content: Any, meta: ResponseMeta) -> APIError:
    cls, default_message = status_error(slot)
    return cls(
        meta.status_code,
        _slot_message(content) or default_message,
        raw=meta.raw,
        cause=SlotError(slot, content),
        meta=meta,
    )


def parse(
    response: httpx.Response | None,
    decode: Decoder,
    *,
    error: BaseException | None = None,
) -> tuple[Any, ResponseMeta]:
    """Classify one call.

    Args:
        response: The raw response, or None when the transport produced none.
        decode: Turns the response into an Envelope.
        error: The transport exception that left `response` empty, if any.

    Returns:
        The 200 payload and the call's metadata.

    Raises:
        APIError: with `meta` attached, for every non-success outcome.
    """
    meta = ResponseMeta.from_response(response)

    if response is None:
        # The body arrived but could not be decoded (e.g. corrupt gzip)
        if isinstance(error, httpx.DecodingError):
            raise classify_failure(error, b"", NO_STATUS, meta)
        cause = error or RuntimeError("nil HTTP response")
        raise RequestFailedError(NO_STATUS, "Request failed", cause=cause, meta=meta)

    try:
        envelope = decode(response)
    except Exception as e:
        raise classify_failure(e, meta.raw, meta.status_code, meta) from e

    if envelope is None:
        raise RequestFailedError(
            meta.status_code,
            "Request failed",
            raw=meta.raw,
            cause=RuntimeError("parsed response is nil"),
            meta=meta,
        )

    if envelope.slot is None:
        cls, _ = status_error(meta.status_code)
        raise cls(
            meta.status_code,
            NO_POPULATED_RESULT,
            raw=meta.raw,
            cause=RuntimeError(NO_POPULATED_RESULT),
            meta=meta,
        )

    if envelope.slot != SUCCESS_SLOT:
        raise _slot_failure(envelope.slot, envelope.payload, meta)

    return envelope.payload, meta
