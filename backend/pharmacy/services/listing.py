# Overview: Shared paginated / sorted / searched listing used by every catalog endpoint.

"""
Catalog listing.

Every list endpoint answers the same question: one page of rows, the total row
count, and the count matching the search box. Sorting is only ever applied
through a per-entity mapping of public column names to SQLAlchemy column
expressions, so request text never reaches the SQL string; unknown names fall
back to the entity's default column.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Sequence

from flask import current_app
from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Query

DEFAULT_PAGE_SIZE = 10


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, raw: Any, default: "SortDirection") -> "SortDirection":
        # Only an explicit non-default value flips the direction
        value = str(raw or "").strip().upper()
        if default is cls.ASC:
            return cls.DESC if value == "DESC" else cls.ASC
        return cls.ASC if value == "ASC" else cls.DESC


@dataclass(frozen=True)
class CatalogListing:
    """
    How one entity is listed.

    base_query builds the row query (joins included); count_query builds the
    query counted for totals. Both must share the joins the search columns need.
    """
    base_query: Callable[[], Query]
    count_query: Callable[[], Query]
    sortable: Mapping[str, Any]
    searchable: Sequence[Any]
    default_sort: str = "id"
    default_direction: SortDirection = SortDirection.DESC
    # Column index -> sortable name, for the DataTables order[0][column] convention
    column_order: Sequence[str] = field(default_factory=tuple)

    def sort_column(self, name: str | None):
        if name in self.sortable:
            return self.sortable[name]
        return self.sortable[self.default_sort]


@dataclass(frozen=True)
class ListingRequest:
    offset: int
    size: int
    search: str
    sort_by: str | None
    direction: SortDirection
    draw: int = 0


@dataclass
class ListingPage:
    total_records: int
    filtered_records: int
    rows: list

    def envelope(self, draw: int, serialize: Callable[[Any], dict]) -> dict:
        return {
            "draw": draw,
            "recordsTotal": self.total_records,
            "recordsFiltered": self.filtered_records,
            "data": [serialize(row) for row in self.rows],
        }


def _positive_int(raw: Any, default: int) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def _non_negative_int(raw: Any, default: int = 0) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value >= 0 else default


def _cap_size(size: int) -> int:
    limit = current_app.config.get("LISTING_MAX_PAGE_SIZE")
    if limit:
        return min(size, int(limit))
    return size


def parse_page_args(args: Mapping[str, Any], listing: CatalogListing) -> ListingRequest:
    """Read ?draw&page&size&search&sortBy&order."""
    page = _positive_int(args.get("page"), 1)
    size = _cap_size(_positive_int(args.get("size"), DEFAULT_PAGE_SIZE))
    return ListingRequest(
        offset=(page - 1) * size,
        size=size,
        search=str(args.get("search") or "").strip(),
        sort_by=args.get("sortBy"),
        direction=SortDirection.parse(args.get("order"), listing.default_direction),
        draw=_non_negative_int(args.get("draw")),
    )


def parse_datatables_args(args: Mapping[str, Any], listing: CatalogListing) -> ListingRequest:
    """Read the DataTables server-side protocol: start/length/search[value]/order[0][...]."""
    column_idx = _non_negative_int(args.get("order[0][column]"))
    sort_by = listing.column_order[column_idx] if column_idx < len(listing.column_order) else None
    return ListingRequest(
        offset=_non_negative_int(args.get("start")),
        size=_cap_size(_positive_int(args.get("length"), DEFAULT_PAGE_SIZE)),
        search=str(args.get("search[value]") or "").strip(),
        sort_by=sort_by,
        direction=SortDirection.parse(args.get("order[0][dir]"), listing.default_direction),
        draw=_non_negative_int(args.get("draw")),
    )


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_filter(columns: Sequence[Any], term: str):
    """Case-insensitive substring match OR-combined across columns."""
    pattern = f"%{_escape_like(term)}%"
    clauses = []
    for column in columns:
        if isinstance(column.type, String):
            clauses.append(column.ilike(pattern, escape="\\"))
        else:
            clauses.append(cast(column, String).ilike(pattern, escape="\\"))
    return or_(*clauses)


def run_listing(listing: CatalogListing, req: ListingRequest) -> ListingPage:
    total = listing.count_query().count()

    rows_query = listing.base_query()
    filtered = total
    if req.search:
        condition = search_filter(listing.searchable, req.search)
        rows_query = rows_query.filter(condition)
        filtered = listing.count_query().filter(condition).count()

    column = listing.sort_column(req.sort_by)
    ordering = column.asc() if req.direction is SortDirection.ASC else column.desc()

    rows = rows_query.order_by(ordering).offset(req.offset).limit(req.size).all()
    return ListingPage(total_records=total, filtered_records=filtered, rows=rows)
