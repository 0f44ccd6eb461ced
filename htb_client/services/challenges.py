"""Challenges: listing plus per-challenge actions."""

from dataclasses import dataclass
from typing import Any

from ..context import Context
from ..models import Response
from ..query import SortableQuery, list_param
from ..service import Service, decode_field

SORT_BY_CHALLENGE = "Challenge"
SORT_BY_CATEGORY = "Category"
SORT_BY_RATING = "Rating"
SORT_BY_SOLVES = "Solves"
SORT_BY_RELEASE_DATE = "ReleaseDate"

STATE_ACTIVE = "active"
STATE_RETIRED = "retired"
STATE_UNRELEASED = "unreleased"

PRODUCT = "challenge"


@dataclass(frozen=True)
class ChallengeQuery(SortableQuery):
    state: tuple[str, ...] = ()
    difficulty: tuple[str, ...] = ()
    category: tuple[int, ...] = ()
    todo: bool | None = None

    path = "/v4/challenges"

    def by_state(self, *states: str) -> "ChallengeQuery":
        """Filter by state: "active", "retired" or "unreleased"."""
        return self._extend("state", states)

    def by_difficulty(self, *levels: str) -> "ChallengeQuery":
        """Filter by difficulty: "VeryEasy", "Easy", "Medium", "Hard" or "Insane"."""
        return self._extend("difficulty", levels)

    def by_category(self, *category_ids: int) -> "ChallengeQuery":
        return self._extend("category", category_ids, lower=False)

    def by_todo(self, todo: bool = True) -> "ChallengeQuery":
        """Only challenges on (or off) the user's to-do list."""
        return self._set("todo", todo)

    def _params(self) -> dict[str, Any]:
        params = super()._params()
        list_param(params, "state", self.state)
        list_param(params, "difficulty", self.difficulty)
        list_param(params, "category", self.category)
        if self.todo is not None:
            params["todo"] = int(self.todo)
        return params


class ChallengeHandle(Service):
    """Actions on a single challenge."""

    def __init__(self, transport, challenge_id: int):
        super().__init__(transport)
        self.id = challenge_id

    def info(self, ctx: Context | None = None) -> Response:
        return self._get(ctx, f"/v4/challenge/info/{self.id}", decode=decode_field("challenge"))

    def activity(self, ctx: Context | None = None) -> Response:
        return self._get(ctx, f"/v4/challenge/activity/{self.id}", decode=decode_field("info"))

    def start(self, ctx: Context | None = None) -> Response:
        """Spawn an instance of the challenge."""
        return self._post(ctx, "/v4/challenge/start", data={"challenge_id": self.id})

    def stop(self, ctx: Context | None = None) -> Response:
        return self._post(ctx, "/v4/challenge/stop", data={"challenge_id": self.id})

    def own(self, flag: str, ctx: Context | None = None) -> Response:
        """Submit a flag."""
        return self._post(ctx, "/v4/challenge/own", data={"challenge_id": self.id, "flag": flag})

    def todo(self, ctx: Context | None = None) -> Response:
        """Toggle the challenge on the user's to-do list."""
        return self._post(ctx, f"/v4/{PRODUCT}/todo/update/{self.id}", decode=decode_field("info"))


class Challenges(Service):
    def list(self) -> ChallengeQuery:
        """Start a challenge listing query (page 1, 100 per page)."""
        return ChallengeQuery(self.transport)

    def challenge(self, challenge_id: int) -> ChallengeHandle:
        return ChallengeHandle(self.transport, challenge_id)
