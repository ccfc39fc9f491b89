from isoseg.schemas.isolation_segment import IsolationSegmentsListMessage, TimestampRange, ORDERABLE_FIELDS

__all__ = ["IsolationSegmentsListMessage", "TimestampRange", "ORDERABLE_FIELDS"]
