"""Offset pagination for listing endpoints.

Pages are fetched with ``skip``/``limit`` and no count query. ``has_more`` is
therefore a guess: a page that came back full is assumed to have a successor.
When the total is an exact multiple of ``limit`` the last full page still
reports ``has_more=True`` and the following request returns an empty page.
"""

from typing import Generic, Sequence, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: list[T]
    limit: int
    offset: int
    has_more: bool = False

    @classmethod
    def from_items(cls, items: Sequence[T], limit: int, offset: int) -> "Page[T]":
        items = list(items)
        return cls(items=items, limit=limit, offset=offset, has_more=len(items) >= limit)


def paginate(limit: int, offset: int, max_limit: int) -> tuple[int, int]:
    """Clamp ``limit`` into [1, max_limit] and ``offset`` to >= 0."""
    return max(1, min(limit, max_limit)), max(0, offset)
