"""Typed error hierarchy for classified API failures."""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ResponseMeta

# Synthetic status for a response body that could not be decoded
STATUS_UNMARSHAL_ERROR = 1001

_DECODE_MARKERS = (
    "json",
    "decode",
    "decoding",
    "decompress",
    "unmarshal",
    "expecting value",
    "validation error",
)


class ErrorKind(str, Enum):
    REQUEST_FAILURE = "RequestFailure"
    DECODE_FAILURE = "DecodeFailure"
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "Forbidden"
    RATE_LIMITED = "RateLimited"
    SERVER_ERROR = "ServerError"
    UNKNOWN = "Unknown"


class HTBError(Exception):
    """Base exception for all htb_client errors."""


class ConfigurationError(HTBError):
    """A client or query was built with missing or invalid settings."""


class NoResultsError(HTBError):
    """The call succeeded but the page held no items."""


class Cancelled(HTBError):
    """The request context was cancelled."""


class DeadlineExceeded(HTBError):
    """The request context's deadline passed."""


class APIError(HTBError):
    """A failed API call, classified by status and payload shape."""

    kind = ErrorKind.UNKNOWN

    def __init__(
        self,
        status_code: int,
        message: str,
        *,
        raw: bytes = b"",
        cause: BaseException | None = None,
        meta: "ResponseMeta | None" = None,
    ):
        super().__init__(status_code, message)
        self.status_code = status_code
        self.message = message
        self.raw = raw or b""
        self.cause = cause
        self.meta = meta
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.message:
            return f"status {self.status_code}: {self.message}"
        return f"status {self.status_code}: {self.cause}"


class RequestFailedError(APIError):
    """No usable response: transport failure or a decoder that gave up."""

    kind = ErrorKind.REQUEST_FAILURE


class DecodeError(APIError):
    """Body was present but could not be parsed."""

    kind = ErrorKind.DECODE_FAILURE


class UnauthorizedError(APIError):
    """401 - missing or rejected token."""

    kind = ErrorKind.UNAUTHORIZED


class ForbiddenError(APIError):
    """403 - token lacks access to the resource."""

    kind = ErrorKind.FORBIDDEN


class RateLimitedError(APIError):
    """429 - too many requests."""

    kind = ErrorKind.RATE_LIMITED


class ServerError(APIError):
    """500, 502, 503 or 504."""

    kind = ErrorKind.SERVER_ERROR


class UnknownAPIError(APIError):
    """Any other non-success status or failure shape."""

    kind = ErrorKind.UNKNOWN


STATUS_MAP: dict[int, tuple[type[APIError], str]] = {
    401: (UnauthorizedError, "Unauthorized"),
    403: (ForbiddenError, "Forbidden"),
    429: (RateLimitedError, "Rate limit exceeded"),
    500: (ServerError, "Server error"),
    502: (ServerError, "Server error"),
    503: (ServerError, "Server error"),
    504: (ServerError, "Server error"),
}

UNKNOWN_MESSAGE = "Unknown error"


def status_error(status: int) -> tuple[type[APIError], str]:
    """Return the error class and default message for a status code."""
    return STATUS_MAP.get(status, (UnknownAPIError, UNKNOWN_MESSAGE))


def is_decode_error(err: BaseException | None) -> bool:
    """Whether an exception's text looks like a payload parsing failure."""
    if err is None:
        return False
    text = f"{type(err).__name__}: {err}".lower()
    return any(marker in text for marker in _DECODE_MARKERS)


def classify_failure(
    cause: BaseException | None,
    raw: bytes,
    status: int,
    meta: "ResponseMeta | None" = None,
    *,
    message: str | None = None,
) -> APIError:
    """Build the classified error for a failed call.

    With a cause the failure is a decode failure (when the cause reads like
    one) or a request failure. Without one it is classified by status.
    """
    if cause is not None:
        if is_decode_error(cause):
            return DecodeError(
                STATUS_UNMARSHAL_ERROR,
                "Failed to parse response JSON",
                raw=raw,
                cause=cause,
                meta=meta,
            )
        return RequestFailedError(
            status, message or "Request failed", raw=raw, cause=cause, meta=meta
        )

    cls, default_message = status_error(status)
    return cls(
        status,
        message or default_message,
        raw=raw,
        cause=RuntimeError(f"{default_message.lower()}: {status}"),
        meta=meta,
    )


def as_api_error(err: BaseException | None) -> APIError | None:
    """Return the first APIError in an exception's cause chain."""
    seen = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, APIError):
            return err
        seen.add(id(err))
        err = err.__cause__ or err.__context__
    return None
