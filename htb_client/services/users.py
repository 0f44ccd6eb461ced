"""User profiles."""

from dataclasses import dataclass

from ..context import Context
from ..errors import ConfigurationError
from ..models import Page
from ..query import Query
from ..service import Service


@dataclass(frozen=True)
class ActivityQuery(Query):
    """A user's profile activity feed (owns, bloods, reviews...)."""

    user_id: int = 0

    def _path(self) -> str:
        return f"/v5/user/profile/activity/{self.user_id}"

    def _fetch(self, ctx: Context | None) -> Page:
        if not self.user_id:
            raise ConfigurationError("user ID is required")
        return super()._fetch(ctx)


class UserHandle(Service):
    def __init__(self, transport, user_id: int):
        super().__init__(transport)
        self.id = user_id

    def profile_activity(self) -> ActivityQuery:
        return ActivityQuery(self.transport, user_id=self.id)


class Users(Service):
    def user(self, user_id: int) -> UserHandle:
        return UserHandle(self.transport, user_id)
