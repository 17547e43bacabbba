from __future__ import annotations

from typing import Dict, List, Tuple

from flask import request, abort
from werkzeug.routing import IntegerConverter

from models.base_model import MAX_DB_INT

MAX_LIMIT = 100
DEFAULT_LIMIT = 20
# keeps (page - 1) * limit inside the database integer range
MAX_PAGE = MAX_DB_INT // MAX_LIMIT


class IdConverter(IntegerConverter):
    """`<id:name>` route segment: a positive integer that fits an id column; 404 otherwise."""

    def __init__(self, map):
        super().__init__(map, min=1, max=MAX_DB_INT)


def _to_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        abort(400, description=f"{name} must be an integer")
    if not -MAX_DB_INT - 1 <= value <= MAX_DB_INT:
        abort(400, description=f"{name} is out of range")
    return value


def parse_pagination() -> Tuple[int, int]:
    page = _to_int("page", request.args.get("page", "1"))
    limit = _to_int("limit", request.args.get("limit", str(DEFAULT_LIMIT)))
    if page > MAX_PAGE:
        abort(400, description="page is out of range")
    page = max(page, 1)
    limit = max(1, min(limit, MAX_LIMIT))
    return page, limit


def parse_sort(columns: Dict[str, object], default: str) -> List:
    """
    Comma-separated fields, '-' prefix for descending, e.g. "-price,name".
    Only keys of `columns` are accepted.
    """
    sort_param = request.args.get("sort", default)
    fields = [s.strip() for s in sort_param.split(",") if s.strip()]
    order_by = []
    for f in fields:
        desc = f.startswith("-")
        key = f[1:] if desc else f
        col = columns.get(key)
        if col is None:
            abort(400, description=f"Unsupported sort field: {key}. Allowed: {', '.join(sorted(columns))}")
        order_by.append(col.desc() if desc else col.asc())
    return order_by


def parse_int_param(name: str) -> int | None:
    val = request.args.get(name)
    if val is None or val == "":
        return None
    return _to_int(name, val)


def paginate(query, order_by, page: int, limit: int):
    total = query.count()
    rows = query.order_by(*order_by).offset((page - 1) * limit).limit(limit).all()
    return rows, {"page": page, "limit": limit, "total": total}
