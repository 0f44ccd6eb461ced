"""Sherlocks (DFIR investigations)."""

from dataclasses import dataclass
from typing import Any

from ..context import Context
from ..models import Response
from ..query import SortableQuery, list_param
from ..service import Service, decode_field

SORT_BY_SHERLOCK = "Sherlock"
SORT_BY_CATEGORY = "Category"
SORT_BY_RATING = "Rating"
SORT_BY_SOLVES = "Solves"
SORT_BY_RELEASE_DATE = "ReleaseDate"

STATE_ACTIVE = "active"
STATE_RETIRED = "retired"
STATE_UNRELEASED = "unreleased"


@dataclass(frozen=True)
class SherlockQuery(SortableQuery):
    state: tuple[str, ...] = ()
    difficulty: tuple[str, ...] = ()
    category: tuple[int, ...] = ()

    path = "/v4/sherlocks"

    def by_state(self, *states: str) -> "SherlockQuery":
        return self._extend("state", states)

    def by_difficulty(self, *levels: str) -> "SherlockQuery":
        return self._extend("difficulty", levels)

    def by_category(self, *category_ids: int) -> "SherlockQuery":
        return self._extend("category", category_ids, lower=False)

    def _params(self) -> dict[str, Any]:
        params = super()._params()
        list_param(params, "state", self.state)
        list_param(params, "difficulty", self.difficulty)
        list_param(params, "category", self.category)
        return params


class SherlockHandle(Service):
    def __init__(self, transport, sherlock_id: int):
        super().__init__(transport)
        self.id = sherlock_id

    def info(self, ctx: Context | None = None) -> Response:
        return self._get(ctx, f"/v4/sherlocks/{self.id}/info", decode=decode_field("data"))

    def progress(self, ctx: Context | None = None) -> Response:
        return self._get(ctx, f"/v4/sherlocks/{self.id}/progress", decode=decode_field("data"))


class Sherlocks(Service):
    def list(self) -> SherlockQuery:
        return SherlockQuery(self.transport)

    def sherlock(self, sherlock_id: int) -> SherlockHandle:
        return SherlockHandle(self.transport, sherlock_id)
