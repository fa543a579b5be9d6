"""Client-side pagination for list endpoints that return everything at once."""

from collections.abc import Mapping, Sequence
from typing import Any

DEFAULT_LIMIT = 50
DEFAULT_OFFSET = 0


def _lenient_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_params(args: Mapping[str, Any], default_limit: int = DEFAULT_LIMIT) -> tuple[int, int]:
    """Read ``limit``/``offset`` from tool arguments.

    Unparseable or out-of-range values fall back to the defaults instead of
    failing, since a listing is still useful with the default page.
    """
    limit = _lenient_int(args.get("limit"))
    offset = _lenient_int(args.get("offset"))
    if limit is None or limit <= 0:
        limit = default_limit
    if offset is None or offset < 0:
        offset = DEFAULT_OFFSET
    return limit, offset


def slice_page(items: Sequence[Any], offset: int, limit: int) -> list[Any]:
    """Return ``items[offset:offset + limit]`` with both bounds clamped."""
    offset = min(max(offset, 0), len(items))
    limit = max(limit, 0)
    return list(items[offset : min(offset + limit, len(items))])


def wrap(page: Sequence[Any], total: int, offset: int, limit: int) -> dict[str, Any]:
    """Build the pagination envelope for ``page``.

    ``nextOffset`` advances by ``limit`` rather than by the page length and is
    only present while more items remain.
    """
    offset = max(offset, 0)
    limit = max(limit, 0)
    has_more = offset + len(page) < total
    pagination: dict[str, Any] = {
        "total": total,
        "offset": offset,
        "limit": limit,
        "hasMore": has_more,
    }
    if has_more:
        pagination["nextOffset"] = offset + limit
    return {"data": list(page), "pagination": pagination}


def paginate(items: Sequence[Any], offset: int, limit: int) -> dict[str, Any]:
    """Slice ``items`` and wrap the page in one step."""
    clamped = min(max(offset, 0), len(items))
    return wrap(slice_page(items, clamped, limit), len(items), clamped, limit)
