"""Result records shared by every resource service."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Generic, Iterator, Mapping, TypeVar

import httpx

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 100
TRACE_HEADER = "cf-ray"

# Status reported when the transport never produced a response
NO_STATUS = -1


def extract_raw(response: httpx.Response | None) -> bytes:
    """Body bytes of a response, empty when there is none or it was not read."""
    if response is None:
        return b""
    try:
        return response.content or b""
    except httpx.ResponseNotRead:
        return b""


def safe_status(response: httpx.Response | None) -> int:
    if response is None:
        return NO_STATUS
    return response.status_code


def _freeze_headers(headers: httpx.Headers | None) -> Mapping[str, tuple[str, ...]]:
    grouped: dict[str, list[str]] = {}
    if headers is not None:
        for name, value in headers.multi_items():
            grouped.setdefault(name.lower(), []).append(value)
    return MappingProxyType({name: tuple(values) for name, values in grouped.items()})


@dataclass(frozen=True)
class ResponseMeta:
    """Raw details of one API call, attached to every result and error."""

    raw: bytes = b""
    status_code: int = NO_STATUS
    headers: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))
    cf_ray: str = ""

    @classmethod
    def from_response(cls, response: httpx.Response | None) -> "ResponseMeta":
        if response is None:
            return cls()
        headers = _freeze_headers(response.headers)
        return cls(
            raw=extract_raw(response),
            status_code=safe_status(response),
            headers=headers,
            cf_ray=headers.get(TRACE_HEADER, ("",))[0],
        )

    def header(self, name: str) -> str | None:
        values = self.headers.get(name.lower())
        return values[0] if values else None


@dataclass(frozen=True)
class Response(Generic[T]):
    """Decoded payload of a single-object endpoint."""

    data: T
    meta: ResponseMeta


@dataclass(frozen=True)
class PageInfo:
    """Pagination as reported by the server, when it reports any."""

    current_page: int | None = None
    last_page: int | None = None
    per_page: int | None = None
    total: int | None = None


@dataclass(frozen=True)
class Page:
    """Items of one listing call (or of a whole traversal) and its metadata."""

    items: list[Any]
    meta: ResponseMeta
    info: PageInfo | None = None

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)
