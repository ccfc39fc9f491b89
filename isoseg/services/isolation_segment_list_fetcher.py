import logging
from datetime import datetime, timedelta, timezone
from typing import Union

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Query, Session
from sqlalchemy.sql import Select

from isoseg.models.isolation_segment import IsolationSegment, organizations_isolation_segments
from isoseg.models.label import IsolationSegmentLabel
from isoseg.schemas.isolation_segment import IsolationSegmentsListMessage, TimestampRange
from isoseg.services.label_selector import add_selector_queries

logger = logging.getLogger(__name__)

ONE_SECOND = timedelta(seconds=1)


class IsolationSegmentListFetcher:
    """Builds lazy isolation segment queries from a list message.

    Neither fetch method touches the database; callers decide when to
    execute the returned query and how to paginate it.
    """

    def __init__(self, db: Session):
        self.db = db

    def fetch_all(self, message: IsolationSegmentsListMessage) -> Query:
        query = self.db.query(IsolationSegment)
        return self._filter(message, query)

    def fetch_for_organizations(
        self,
        message: IsolationSegmentsListMessage,
        org_guids_query: Union[Query, Select],
    ) -> Query:
        """Restrict to segments entitled to any organization guid the given query yields."""
        if isinstance(org_guids_query, Query):
            org_guids_query = org_guids_query.statement

        entitled_segment_guids = select(organizations_isolation_segments.c.isolation_segment_guid).where(
            organizations_isolation_segments.c.organization_guid.in_(org_guids_query)
        )
        query = self.db.query(IsolationSegment).filter(IsolationSegment.guid.in_(entitled_segment_guids))
        return self._filter(message, query)

    def _filter(self, message: IsolationSegmentsListMessage, query: Query) -> Query:
        if message.names:
            query = query.filter(
                func.lower(IsolationSegment.name).in_([name.lower() for name in message.names])
            )

        if message.guids:
            query = query.filter(IsolationSegment.guid.in_(message.guids))

        if message.organization_guids:
            segment_guids = select(organizations_isolation_segments.c.isolation_segment_guid).where(
                organizations_isolation_segments.c.organization_guid.in_(message.organization_guids)
            )
            query = query.filter(IsolationSegment.guid.in_(segment_guids))

        if message.requested("label_selector") and message.label_selector is not None:
            query = add_selector_queries(
                IsolationSegmentLabel, IsolationSegment, query, message.requirements
            )

        if message.requested("created_ats") and message.created_ats is not None:
            query = _filter_timestamps(query, IsolationSegment.created_at, message.created_ats)

        if message.requested("updated_ats") and message.updated_ats is not None:
            query = _filter_timestamps(query, IsolationSegment.updated_at, message.updated_ats)

        if logger.isEnabledFor(logging.DEBUG):
            filters = message.model_dump(exclude_unset=True, exclude={'page', 'per_page', 'order_by'})
            logger.debug(f"Listing isolation segments with filters {filters}")
        return query


def _as_utc(timestamp: datetime) -> datetime:
    """Offsets are compared as instants; naive values are taken to be UTC."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc).replace(microsecond=0)


def _filter_timestamps(query: Query, column, timestamp_filter) -> Query:
    """Timestamps compare at one-second resolution."""
    if isinstance(timestamp_filter, TimestampRange):
        if timestamp_filter.lt is not None:
            query = query.filter(column < _as_utc(timestamp_filter.lt))
        if timestamp_filter.lte is not None:
            query = query.filter(column < _as_utc(timestamp_filter.lte) + ONE_SECOND)
        if timestamp_filter.gt is not None:
            query = query.filter(column >= _as_utc(timestamp_filter.gt) + ONE_SECOND)
        if timestamp_filter.gte is not None:
            query = query.filter(column >= _as_utc(timestamp_filter.gte))
        return query

    windows = []
    for timestamp in timestamp_filter:
        timestamp = _as_utc(timestamp)
        windows.append(and_(column >= timestamp, column < timestamp + ONE_SECOND))
    if not windows:
        return query
    return query.filter(or_(*windows))
