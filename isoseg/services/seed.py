import logging

from sqlalchemy.orm import Session

from isoseg.models.isolation_segment import (
    IsolationSegment,
    SHARED_ISOLATION_SEGMENT_GUID,
    SHARED_ISOLATION_SEGMENT_NAME,
)

logger = logging.getLogger(__name__)


def ensure_shared_isolation_segment(db: Session) -> IsolationSegment:
    """Return the shared isolation segment, creating it on first use."""
    shared = db.query(IsolationSegment).filter(
        IsolationSegment.guid == SHARED_ISOLATION_SEGMENT_GUID
    ).first()
    if shared is not None:
        return shared

    shared = IsolationSegment(guid=SHARED_ISOLATION_SEGMENT_GUID, name=SHARED_ISOLATION_SEGMENT_NAME)
    db.add(shared)
    db.commit()
    db.refresh(shared)
    logger.info(f"Created shared isolation segment ({SHARED_ISOLATION_SEGMENT_GUID})")
    return shared
