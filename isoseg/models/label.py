"""Key/value labels attached to isolation segments, queried by label selectors."""
from typing import Optional

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from isoseg.models.base import Base, GuidMixin, IdMixin, TimestampMixin


class IsolationSegmentLabel(Base, IdMixin, GuidMixin, TimestampMixin):
    __tablename__ = "isolation_segment_labels"

    resource_guid: Mapped[str] = mapped_column(
        ForeignKey("isolation_segments.guid", ondelete="CASCADE")
    )
    key_prefix: Mapped[Optional[str]] = mapped_column(String(253), nullable=True)  # e.g. 'example.com'
    key_name: Mapped[str] = mapped_column(String(63))
    value: Mapped[Optional[str]] = mapped_column(String(63), nullable=True)

    isolation_segment = relationship("IsolationSegment", back_populates="labels")

    __table_args__ = (
        Index('ix_isolation_segment_labels_resource', 'resource_guid'),
        Index('ix_isolation_segment_labels_key', 'key_prefix', 'key_name', 'value'),
    )
