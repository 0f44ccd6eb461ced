"""Machines: listing, the active machine and per-machine actions."""

from dataclasses import dataclass
from typing import Any

from ..context import Context
from ..models import Response
from ..query import Query, SortableQuery, list_param
from ..service import Service, decode_field

SORT_BY_RELEASE_DATE = "release-date"
SORT_BY_NAME = "name"
SORT_BY_USER_OWNS = "user-owns"
SORT_BY_SYSTEM_OWNS = "system-owns"
SORT_BY_RATING = "rating"
SORT_BY_USER_DIFFICULTY = "user-difficulty"

COMPLETED = "completed"
INCOMPLETE = "incomplete"

PRODUCT = "machine"


@dataclass(frozen=True)
class _MachineFilters(SortableQuery):
    """Difficulty, OS, keyword and completion filters shared by machine listings."""

    difficulty: tuple[str, ...] = ()
    os: tuple[str, ...] = ()
    keyword: str | None = None
    show_completed: str | None = None

    def by_difficulty(self, *levels: str):
        """Filter by difficulty: "Easy", "Medium", "Hard" or "Insane"."""
        return self._extend("difficulty", levels)

    def by_os(self, *systems: str):
        """Filter by operating system, e.g. "Linux" or "Windows"."""
        return self._extend("os", systems)

    def by_keyword(self, keyword: str):
        """Match machine names containing `keyword`."""
        return self._set("keyword", keyword)

    def by_completed(self, value: str):
        """"Completed" or "InComplete". Unset lists both."""
        return self._set("show_completed", value.lower())

    def sorted_by(self, field_name: str):
        return super().sorted_by(field_name.lower())

    def _params(self) -> dict[str, Any]:
        params = super()._params()
        list_param(params, "difficulty", self.difficulty)
        list_param(params, "os", self.os)
        if self.keyword:
            params["keyword"] = self.keyword
        if self.show_completed:
            params["show_completed"] = self.show_completed
        return params


@dataclass(frozen=True)
class MachineQuery(_MachineFilters):
    state: tuple[str, ...] = ()
    free: bool | None = None
    todo: bool | None = None

    path = "/v5/machines"

    def by_state(self, *states: str) -> "MachineQuery":
        return self._extend("state", states)

    def by_free(self, free: bool = True) -> "MachineQuery":
        """Free (True) or VIP-only (False) machines, retired or not."""
        return self._set("free", free)

    def by_todo(self, todo: bool = True) -> "MachineQuery":
        return self._set("todo", todo)

    def _params(self) -> dict[str, Any]:
        params = super()._params()
        list_param(params, "state", self.state)
        if self.free is not None:
            params["free"] = int(self.free)
        if self.todo is not None:
            params["todo"] = int(self.todo)
        return params


@dataclass(frozen=True)
class ActiveQuery(_MachineFilters):
    """Machines in the current active rotation."""

    path = "/v4/machine/paginated"


@dataclass(frozen=True)
class RetiredQuery(_MachineFilters):
    """Retired machines, which also filter by tag."""

    tags: tuple[int, ...] = ()

    path = "/v4/machine/list/retired/paginated"

    def by_tag(self, *tag_ids: int) -> "RetiredQuery":
        return self._extend("tags", tag_ids, lower=False)

    def _params(self) -> dict[str, Any]:
        params = super()._params()
        list_param(params, "tags", self.tags)
        return params


@dataclass(frozen=True)
class UnreleasedQuery(Query):
    """Upcoming machines. The endpoint takes no sort or completion filter."""

    difficulty: tuple[str, ...] = ()
    os: tuple[str, ...] = ()
    keyword: str | None = None

    path = "/v4/machine/unreleased"

    def by_difficulty(self, *levels: str) -> "UnreleasedQuery":
        return self._extend("difficulty", levels)

    def by_os(self, *systems: str) -> "UnreleasedQuery":
        return self._extend("os", systems)

    def by_keyword(self, keyword: str) -> "UnreleasedQuery":
        return self._set("keyword", keyword)

    def _params(self) -> dict[str, Any]:
        params = super()._params()
        list_param(params, "difficulty", self.difficulty)
        list_param(params, "os", self.os)
        if self.keyword:
            params["keyword"] = self.keyword
        return params


class MachineHandle(Service):
    def __init__(self, transport, machine_id: int):
        super().__init__(transport)
        self.id = machine_id

    def info(self, ctx: Context | None = None) -> Response:
        return self._get(ctx, f"/v4/machine/profile/{self.id}", decode=decode_field("info"))

    def activity(self, ctx: Context | None = None) -> Response:
        return self._get(ctx, f"/v4/machine/activity/{self.id}", decode=decode_field("info"))

    def own(self, flag: str, ctx: Context | None = None) -> Response:
        """Submit a user or root flag."""
        return self._post(ctx, "/v4/machine/own", data={"id": self.id, "flag": flag})

    def todo(self, ctx: Context | None = None) -> Response:
        return self._post(ctx, f"/v4/{PRODUCT}/todo/update/{self.id}", decode=decode_field("info"))


class Machines(Service):
    def list(self) -> MachineQuery:
        return MachineQuery(self.transport)

    def list_active(self) -> ActiveQuery:
        return ActiveQuery(self.transport)

    def list_retired(self) -> RetiredQuery:
        return RetiredQuery(self.transport)

    def list_unreleased(self) -> UnreleasedQuery:
        return UnreleasedQuery(self.transport)

    def active(self, ctx: Context | None = None) -> Response:
        """The machine currently spawned for the user."""
        return self._get(ctx, "/v4/machine/active", decode=decode_field("info"))

    def machine(self, machine_id: int) -> MachineHandle:
        return MachineHandle(self.transport, machine_id)
