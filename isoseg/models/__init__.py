from isoseg.models.base import Base
from isoseg.models.organization import Organization
from isoseg.models.isolation_segment import (
    IsolationSegment,
    organizations_isolation_segments,
    SHARED_ISOLATION_SEGMENT_GUID,
    SHARED_ISOLATION_SEGMENT_NAME,
)
from isoseg.models.label import IsolationSegmentLabel

__all__ = [
    "Base",
    "Organization",
    "IsolationSegment", "organizations_isolation_segments",
    "SHARED_ISOLATION_SEGMENT_GUID", "SHARED_ISOLATION_SEGMENT_NAME",
    "IsolationSegmentLabel",
]
