"""Helpers shared by the service layer: identity, pagination and search."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import Session

from ..config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..errors import InvalidInputError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Identity:
    """Authenticated caller as handed over by the identity provider."""

    subject_id: str | None


@dataclass(slots=True)
class PageRequest:
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    search: str | None = None

    def __post_init__(self) -> None:
        if self.page < 1:
            raise InvalidInputError("page must be at least 1")
        if not 1 <= self.limit <= MAX_PAGE_SIZE:
            raise InvalidInputError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def term(self) -> str | None:
        if self.search is None:
            return None
        stripped = self.search.strip()
        return stripped or None


@dataclass(slots=True)
class Page(Generic[T]):
    data: Sequence[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE


def search_clause(term: str, *columns: Any):
    """Case-insensitive substring match OR-ed across ``columns``."""

    return or_(*(column.icontains(term, autoescape=True) for column in columns))


def fetch_page(session: Session, stmt: Select, request: PageRequest) -> Page:
    """Run the count and the page query in the caller's transaction."""

    total = session.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    rows = session.scalars(stmt.offset(request.offset).limit(request.limit)).unique().all()
    return Page(data=rows, total=total, page=request.page, limit=request.limit)


__all__ = ["Identity", "Page", "PageRequest", "fetch_page", "search_clause"]
