"""Typed client for the Hack The Box REST API.

Every call either returns its payload with the response metadata or raises a
classified APIError. Listing endpoints are exposed as immutable query
builders that can fetch one page, the first item, or every page.
"""

from .client import Client, get_client
from .context import Context
from .errors import (
    APIError,
    Cancelled,
    ConfigurationError,
    DeadlineExceeded,
    DecodeError,
    ErrorKind,
    ForbiddenError,
    HTBError,
    NoResultsError,
    RateLimitedError,
    RequestFailedError,
    ServerError,
    UnauthorizedError,
    UnknownAPIError,
    as_api_error,
)
from .models import Page, PageInfo, Response, ResponseMeta

__all__ = [
    "Client",
    "get_client",
    "Context",
    "APIError",
    "Cancelled",
    "ConfigurationError",
    "DeadlineExceeded",
    "DecodeError",
    "ErrorKind",
    "ForbiddenError",
    "HTBError",
    "NoResultsError",
    "RateLimitedError",
    "RequestFailedError",
    "ServerError",
    "UnauthorizedError",
    "UnknownAPIError",
    "as_api_error",
    "Page",
    "PageInfo",
    "Response",
    "ResponseMeta",
]
