"""Pagination envelope shared by every list query."""

from dataclasses import dataclass, field

DEFAULT_LIMIT = 50
MAX_LIMIT = 1000
MAX_HISTORY_LIMIT = 500

# Upper bound for internal scans that must see every matching row.
SCAN_LIMIT = 1_000_000


@dataclass(frozen=True)
class Page:
    """One page of query results plus the window that produced it."""

    items: list = field(default_factory=list)
    total: int = 0
    offset: int = 0
    limit: int = DEFAULT_LIMIT


def clamp_window(offset: int | None, limit: int | None, cap: int = MAX_LIMIT) -> tuple[int, int]:
    """Normalize caller-supplied offset/limit to a safe window."""
    offset = max(offset or 0, 0)
    if not limit or limit < 1:
        limit = DEFAULT_LIMIT
    return offset, min(limit, cap)


def paginate(queryset, offset: int | None = None, limit: int | None = None, cap: int = MAX_LIMIT) -> Page:
    """Apply a clamped window to a Protean queryset and wrap the result."""
    offset, limit = clamp_window(offset, limit, cap)
    results = queryset.offset(offset).limit(limit).all()
    return Page(items=list(results.items), total=results.total, offset=offset, limit=limit)
