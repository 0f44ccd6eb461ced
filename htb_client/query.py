"""Copy-on-write query builders for paginated listing endpoints.

A query is a frozen value. Every builder method returns a new query with one
field changed, so a query can be kept as a base and specialised any number of
times without the variants interfering:

    base = client.challenges.list().by_state("active")
    hard = base.by_difficulty("hard").results(ctx)
    easy = base.by_difficulty("easy").sorted_by("Rating").descending().results(ctx)
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Iterable

from .context import Context, ensure
from .envelope import decode_model
from .errors import NoResultsError
from .models import DEFAULT_PAGE_SIZE, Page
from .service import call
from .transport import Transport
from .wire import ListPayload

logger = logging.getLogger(__name__)

ASCENDING = "asc"
DESCENDING = "desc"


@dataclass(frozen=True)
class Query:
    """Pagination state shared by every listing query."""

    transport: Transport = field(repr=False, compare=False)
    current_page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    path: ClassVar[str] = ""

    def page(self, n: int):
        """Jump to page `n`."""
        return replace(self, current_page=n)

    def per_page(self, n: int):
        return replace(self, page_size=n)

    def next(self):
        """Advance one page. There is no upper bound; past the end is an empty page."""
        return replace(self, current_page=self.current_page + 1)

    def previous(self):
        """Go back one page, staying on page 1 once there."""
        if self.current_page > 1:
            return replace(self, current_page=self.current_page - 1)
        return replace(self)

    def _set(self, name: str, value: Any):
        return replace(self, **{name: value})

    def _extend(self, name: str, values: Iterable[Any], lower: bool = True):
        added = tuple(v.lower() if lower and isinstance(v, str) else v for v in values)
        return replace(self, **{name: getattr(self, name) + added})

    def _path(self) -> str:
        return self.path

    def _params(self) -> dict[str, Any]:
        return {"page": self.current_page, "per_page": self.page_size}

    def _fetch(self, ctx: Context | None) -> Page:
        payload, meta = call(
            self.transport,
            ctx,
            "GET",
            self._path(),
            decode_model(ListPayload),
            params=self._params(),
        )
        info = payload.meta.to_page_info() if payload.meta is not None else None
        return Page(items=list(payload.data), meta=meta, info=info)

    def results(self, ctx: Context | None = None) -> Page:
        """Fetch the current page."""
        return self._fetch(ctx)

    def first(self, ctx: Context | None = None) -> Page:
        """Fetch the current page and keep only its first item.

        Raises:
            NoResultsError: the call succeeded but the page was empty.
        """
        page = self._fetch(ctx)
        if not page.items:
            raise NoResultsError("no results found")
        return Page(items=page.items[:1], meta=page.meta, info=page.info)

    def all_results(self, ctx: Context | None = None) -> Page:
        """Fetch every page, starting from page 1, and concatenate the items.

        Pages are fetched one at a time. The walk ends on a page shorter than
        `page_size`, on an empty page, or on the server-reported last page.
        Any failure aborts the walk; items already fetched are discarded.
        """
        ctx = ensure(ctx)
        items: list[Any] = []
        number = 1

        while True:
            ctx.raise_if_done()
            page = self.page(number)._fetch(ctx)
            items.extend(page.items)
            logger.debug(
                "%s page %d: %d items (%d so far)",
                type(self).__name__,
                number,
                len(page.items),
                len(items),
            )

            if not page.items or len(page.items) < self.page_size:
                break
            if page.info is not None and page.info.last_page and number >= page.info.last_page:
                break
            number += 1

        return Page(items=items, meta=page.meta, info=page.info)


@dataclass(frozen=True)
class SortableQuery(Query):
    sort_by: str | None = None
    sort_type: str | None = None

    def sorted_by(self, field_name: str):
        return replace(self, sort_by=field_name)

    def ascending(self):
        """Sort ascending. Without a sort field this returns the query unchanged."""
        if self.sort_by is None:
            return self
        return replace(self, sort_type=ASCENDING)

    def descending(self):
        """Sort descending. Without a sort field this returns the query unchanged."""
        if self.sort_by is None:
            return self
        return replace(self, sort_type=DESCENDING)

    def _params(self) -> dict[str, Any]:
        params = super()._params()
        if self.sort_by is not None:
            params["sort_by"] = self.sort_by
        if self.sort_type is not None:
            params["sort_type"] = self.sort_type
        return params


def list_param(params: dict[str, Any], name: str, values: tuple) -> None:
    """Add an array filter as `name[]` when it holds any values."""
    if values:
        params[f"{name}[]"] = list(values)
