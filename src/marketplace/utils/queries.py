"""Repository query helpers shared by the cascade and listing code."""

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

DEFAULT_BATCH_SIZE = 100


def find_all(aggregate_cls, batch_size=DEFAULT_BATCH_SIZE, **filters):
    """Return every stored record of `aggregate_cls` matching `filters`.

    Protean querysets are limited by default, so results are fetched page by
    page until the store reports no further page. The full list is built
    before returning, which lets callers mutate or delete records while
    iterating without shifting the offsets.
    """
    dao = current_domain.repository_for(aggregate_cls)._dao

    records = []
    offset = 0
    while True:
        query = dao.query.filter(**filters) if filters else dao.query
        page = query.offset(offset).limit(batch_size).all()
        records.extend(page.items)
        if not page.has_next:
            break
        offset += batch_size

    return records


def find_one(aggregate_cls, **filters):
    """Return the first record matching `filters`, or None."""
    dao = current_domain.repository_for(aggregate_cls)._dao
    page = dao.query.filter(**filters).limit(1).all()
    return page.items[0] if page.items else None


def paginate(records, page=1, limit=10):
    """Slice an already-ordered list into one page; returns (page_items, total)."""
    if page < 1:
        raise ValidationError({"page": ["Invalid page number"]})
    if limit < 1:
        raise ValidationError({"limit": ["Invalid limit number"]})

    start = (page - 1) * limit
    return records[start : start + limit], len(records)
