from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from isoseg.models.base import Base, GuidMixin, IdMixin, TimestampMixin


class Organization(Base, IdMixin, GuidMixin, TimestampMixin):
    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(255), unique=True)
    # Segment used for new spaces unless they pick one explicitly
    default_isolation_segment_guid: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    isolation_segments = relationship(
        "IsolationSegment",
        secondary="organizations_isolation_segments",
        back_populates="organizations",
    )
