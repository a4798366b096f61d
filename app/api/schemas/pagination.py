"""Offset pagination schemas with descriptive per-item cursors."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class PageRequest(BaseModel):
    """
    Requested page.

    ``first`` is an alias for ``limit`` used when ``limit`` is absent.
    ``after``, ``before`` and ``last`` are accepted for client compatibility
    but do not position the page: offsets come from ``page`` alone.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int | None = None
    limit: int | None = None
    first: int | None = None
    after: str | None = None
    last: int | None = None
    before: str | None = None

    @property
    def requested_limit(self) -> int | None:
        return self.limit or self.first


class Edge[T](BaseModel):
    node: T
    cursor: str


class PageInfo(BaseModel):
    has_next_page: bool
    has_previous_page: bool
    start_cursor: str | None = None
    end_cursor: str | None = None
    total_pages: int
    current_page: int


class PageResult[T](BaseModel):
    """Uniform envelope for a page of results."""

    edges: list[Edge[T]]
    page_info: PageInfo
    total_count: int
