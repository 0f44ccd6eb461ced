"""Unit tests for the copy-on-write query builder and pagination."""

from dataclasses import dataclass
from unittest.mock import MagicMock

import httpx
import pytest

from .context import Context
from .errors import Cancelled, NoResultsError, ServerError
from .query import Query, SortableQuery, list_param
from .ratelimit import RateLimiter


@dataclass(frozen=True)
class ItemsQuery(SortableQuery):
    path = "/v4/items"


def _page(items, status_code=200, meta=None):
    body = {"data": items}
    if meta is not None:
        body["meta"] = meta
    return httpx.Response(
        status_code,
        json=body,
        request=httpx.Request("GET", "https://labs.hackthebox.com/api/v4/items"),
    )


def _transport(*responses):
    """Mock transport answering each request with the next response."""
    transport = MagicMock()
    transport.limiter = RateLimiter()
    transport.request.side_effect = list(responses)
    return transport


def _requested_pages(transport):
    return [c.kwargs["params"]["page"] for c in transport.request.call_args_list]


def describe_Query():
    def describe_builders():
        def it_leaves_the_base_query_unchanged():
            base = ItemsQuery(MagicMock())

            derived = base.page(3).per_page(20).sorted_by("Rating").descending()

            assert base.current_page == 1
            assert base.page_size == 100
            assert base.sort_by is None
            assert derived.current_page == 3
            assert derived.page_size == 20
            assert derived.sort_type == "desc"

        def it_advances_and_goes_back():
            q = ItemsQuery(MagicMock()).next().next()
            assert q.current_page == 3
            assert q.previous().current_page == 2

        def it_stays_on_page_one():
            q = ItemsQuery(MagicMock())
            back = q.previous()
            assert back.current_page == 1
            assert back is not q

        def it_ignores_sort_direction_without_a_field():
            q = ItemsQuery(MagicMock())
            assert q.ascending() is q
            assert q.descending() is q

        def it_shares_the_transport():
            transport = MagicMock()
            assert ItemsQuery(transport).page(2).transport is transport

    def describe_params():
        def it_sends_pagination_and_sort():
            q = ItemsQuery(MagicMock()).page(2).per_page(10).sorted_by("Solves").ascending()
            assert q._params() == {
                "page": 2,
                "per_page": 10,
                "sort_by": "Solves",
                "sort_type": "asc",
            }

        def it_omits_unset_sort():
            assert ItemsQuery(MagicMock())._params() == {"page": 1, "per_page": 100}

    def describe_results():
        def it_fetches_the_current_page():
            transport = _transport(_page([{"id": 1}, {"id": 2}], meta={"last_page": 4}))

            page = ItemsQuery(transport).page(2).results()

            assert page.items == [{"id": 1}, {"id": 2}]
            assert page.info.last_page == 4
            assert page.meta.status_code == 200
            transport.request.assert_called_once()
            args = transport.request.call_args
            assert args.args[1:] == ("GET", "/v4/items")
            assert args.kwargs["params"] == {"page": 2, "per_page": 100}

        def it_raises_classified_errors():
            transport = _transport(_page([], status_code=503))
            with pytest.raises(ServerError):
                ItemsQuery(transport).results()

    def describe_first():
        def it_keeps_only_the_first_item():
            transport = _transport(_page([{"id": 1}, {"id": 2}]))

            page = ItemsQuery(transport).first()

            assert page.items == [{"id": 1}]

        def it_raises_on_an_empty_page():
            transport = _transport(_page([]))
            with pytest.raises(NoResultsError, match="no results found"):
                ItemsQuery(transport).first()

    def describe_all_results():
        def it_stops_on_a_short_page():
            transport = _transport(
                _page([{"id": 1}, {"id": 2}]),
                _page([{"id": 3}, {"id": 4}]),
                _page([{"id": 5}]),
            )

            page = ItemsQuery(transport).per_page(2).all_results()

            assert [item["id"] for item in page] == [1, 2, 3, 4, 5]
            assert _requested_pages(transport) == [1, 2, 3]

        def it_needs_an_empty_page_after_an_exact_multiple():
            transport = _transport(
                _page([{"id": 1}, {"id": 2}]),
                _page([{"id": 3}, {"id": 4}]),
                _page([]),
            )

            page = ItemsQuery(transport).per_page(2).all_results()

            assert len(page) == 4
            assert transport.request.call_count == 3

        def it_stops_at_the_reported_last_page():
            transport = _transport(
                _page([{"id": 1}, {"id": 2}], meta={"current_page": 1, "last_page": 2}),
                _page([{"id": 3}, {"id": 4}], meta={"current_page": 2, "last_page": 2}),
            )

            page = ItemsQuery(transport).per_page(2).all_results()

            assert len(page) == 4
            assert transport.request.call_count == 2

        def it_starts_from_page_one():
            transport = _transport(_page([{"id": 1}]))

            ItemsQuery(transport).page(5).all_results()

            assert _requested_pages(transport) == [1]

        def it_aborts_on_the_first_error():
            transport = _transport(
                _page([{"id": 1}, {"id": 2}]),
                _page([], status_code=500),
                _page([{"id": 5}]),
            )

            with pytest.raises(ServerError):
                ItemsQuery(transport).per_page(2).all_results()

            assert transport.request.call_count == 2

        def it_stops_when_cancelled():
            transport = _transport(_page([{"id": 1}]))
            ctx = Context.background()
            ctx.cancel()

            with pytest.raises(Cancelled):
                ItemsQuery(transport).all_results(ctx)

            transport.request.assert_not_called()

    def it_has_no_sort_on_the_plain_query():
        assert not hasattr(Query(MagicMock()), "sorted_by")


def describe_list_param():
    def it_adds_array_params():
        params = {}
        list_param(params, "state", ("active", "retired"))
        assert params == {"state[]": ["active", "retired"]}

    def it_skips_empty_filters():
        params = {}
        list_param(params, "state", ())
        assert params == {}
