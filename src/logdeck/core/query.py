"""
logdeck Core - Query Pipeline.

Pure in-memory transformation applied to the full record set on every list
query, always in the same order: filter -> sort -> paginate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from operator import itemgetter
from typing import Any, Literal

SortOrder = Literal["asc", "desc"]

DEFAULT_SORT_FIELD = "timestamp"
DEFAULT_PAGE_SIZE = 50


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse an ISO-8601 instant into an aware datetime.

    Accepts datetimes and strings (including the trailing ``Z`` form written by
    JavaScript clients). Naive values are treated as UTC. Returns None for
    anything that is not a readable instant.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class LogQuery:
    """Filter, sort and page parameters for a list query. Every filter is optional."""

    level: str | None = None
    service: str | None = None
    resource_id: str | None = None
    start_date: datetime | str | None = None
    end_date: datetime | str | None = None
    search: str | None = None
    sort_by: str = DEFAULT_SORT_FIELD
    sort_order: SortOrder = "desc"
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class QueryResult:
    """One page of the filtered and sorted record set."""

    records: list[dict[str, Any]] = field(default_factory=list)
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    total: int = 0
    total_pages: int = 0

    @property
    def pagination(self) -> dict[str, int]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }


# =============================================================================
# Filter
# =============================================================================


def _contains(value: Any, term: str) -> bool:
    """Case-insensitive substring match. Non-string values never match."""
    return isinstance(value, str) and term.lower() in value.lower()


def _matches(
    record: dict[str, Any],
    query: LogQuery,
    start: datetime | None,
    end: datetime | None,
) -> bool:
    if query.level and record.get("level") != query.level:
        return False
    if query.service and not _contains(record.get("service"), query.service):
        return False
    if query.resource_id and not _contains(record.get("resourceId"), query.resource_id):
        return False

    if start is not None or end is not None:
        instant = parse_timestamp(record.get("timestamp"))
        if instant is None:
            return False
        if start is not None and instant < start:
            return False
        if end is not None and instant > end:
            return False

    if query.search and not _contains(record.get("message"), query.search):
        return False
    return True


def filter_records(records: list[dict[str, Any]], query: LogQuery) -> list[dict[str, Any]]:
    """Keep the records that satisfy every clause present in ``query``."""
    start = parse_timestamp(query.start_date) if query.start_date else None
    end = parse_timestamp(query.end_date) if query.end_date else None
    return [r for r in records if _matches(r, query, start, end)]


# =============================================================================
# Sort
# =============================================================================


def _sort_value(record: dict[str, Any], sort_by: str) -> Any:
    value = record.get(sort_by)
    if sort_by == "timestamp":
        return parse_timestamp(value)
    return value


def sort_records(
    records: list[dict[str, Any]],
    sort_by: str = DEFAULT_SORT_FIELD,
    sort_order: SortOrder = "desc",
) -> list[dict[str, Any]]:
    """
    Stable sort by one field.

    ``timestamp`` is compared as an instant, every other field by its native
    ordering. Records missing the field go last in both directions; values of
    mixed, non-comparable types are compared by their string form.
    """
    keyed = [(_sort_value(r, sort_by), r) for r in records]
    present = [pair for pair in keyed if pair[0] is not None]
    missing = [r for value, r in keyed if value is None]
    reverse = sort_order == "desc"

    try:
        ordered = sorted(present, key=itemgetter(0), reverse=reverse)
    except TypeError:
        ordered = sorted(present, key=lambda pair: str(pair[0]), reverse=reverse)

    return [r for _, r in ordered] + missing


# =============================================================================
# Paginate
# =============================================================================


def total_pages(total: int, limit: int) -> int:
    """ceil(total / limit)."""
    return -(-total // limit)


def paginate(records: list[dict[str, Any]], page: int, limit: int) -> list[dict[str, Any]]:
    """Return page ``page`` (1-based) of size ``limit``; out-of-range pages are empty."""
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if limit < 1:
        raise ValueError(f"limit must be > 0, got {limit}")
    start = (page - 1) * limit
    return records[start : start + limit]


def run_query(records: list[dict[str, Any]], query: LogQuery) -> QueryResult:
    """Run the full filter -> sort -> paginate pipeline over ``records``."""
    matched = filter_records(records, query)
    ordered = sort_records(matched, query.sort_by, query.sort_order)
    return QueryResult(
        records=paginate(ordered, query.page, query.limit),
        page=query.page,
        limit=query.limit,
        total=len(ordered),
        total_pages=total_pages(len(ordered), query.limit),
    )
