from typing import List, Tuple

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

from isoseg.schemas.isolation_segment import IsolationSegmentsListMessage


def paginate(query: Query, message: IsolationSegmentsListMessage) -> Tuple[List, int]:
    """Execute a list query one page at a time.

    Returns the records on the requested page and the total number of
    matching records. Rows are ordered by ``message.order_by`` with the
    primary key as a tie-breaker so pages never overlap.
    """
    model = query.column_descriptions[0]["entity"]
    field = message.order_by.lstrip("-")
    direction = desc if message.order_by.startswith("-") else asc

    total = query.order_by(None).count()
    records = (
        query.order_by(direction(getattr(model, field)), direction(model.id))
        .offset((message.page - 1) * message.per_page)
        .limit(message.per_page)
        .all()
    )
    return records, total
