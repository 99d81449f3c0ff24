# complihr_api/common/paging.py
from flask import request
from sqlalchemy import asc, desc

DEFAULT_PAGE = 1
DEFAULT_SIZE = 20
MAX_SIZE = 100

def page_limit():
    try:
        page = max(int(request.args.get("page", DEFAULT_PAGE)), 1)
    except (TypeError, ValueError):
        page = DEFAULT_PAGE
    try:
        size = int(request.args.get("size", DEFAULT_SIZE))
        size = max(1, min(size, MAX_SIZE))
    except (TypeError, ValueError):
        size = DEFAULT_SIZE
    return page, size

def sort_params(allowed: dict[str, object]):
    """
    allowed: {"name": Model.name, "created_at": Model.created_at, ...}
    ?sort=name,-created_at  => returns list of (column, asc:bool)
    Unknown keys ignored.
    """
    raw = request.args.get("sort", "")
    items = []
    for part in [p.strip() for p in raw.split(",") if p.strip()]:
        asc_order = not part.startswith("-")
        col = allowed.get(part.lstrip("-"))
        if col is not None:
            items.append((col, asc_order))
    return items

def text_q():
    q = request.args.get("q", "")
    return q.strip() or None

def paginate(qry, allowed_sorts: dict[str, object], default_order):
    """Apply ?sort, ?page, ?size to a query. Returns (items, page, size, total)."""
    sorts = sort_params(allowed_sorts)
    for col, asc_order in sorts:
        qry = qry.order_by(asc(col) if asc_order else desc(col))
    if not sorts:
        qry = qry.order_by(default_order)
    page, size = page_limit()
    total = qry.count()
    items = qry.offset((page - 1) * size).limit(size).all()
    return items, page, size, total
