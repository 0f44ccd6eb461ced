"""Wire-format shapes of listing payloads."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .models import PageInfo


class PaginationMeta(BaseModel):
    model_config = ConfigDict(extra="ignore")

    current_page: int | None = None
    last_page: int | None = Field(
        default=None,
        validation_alias=AliasChoices("last_page", "total_pages", "pages"),
    )
    per_page: int | None = None
    total: int | None = None

    def to_page_info(self) -> PageInfo:
        return PageInfo(
            current_page=self.current_page,
            last_page=self.last_page,
            per_page=self.per_page,
            total=self.total,
        )


class ListPayload(BaseModel):
    """`{"data": [...], "meta": {...}}` as returned by every listing endpoint."""

    model_config = ConfigDict(extra="ignore")

    data: list[Any]
    meta: PaginationMeta | None = None
