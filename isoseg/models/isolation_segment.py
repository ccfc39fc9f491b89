from sqlalchemy import Column, ForeignKey, String, Table, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from isoseg.models.base import Base, GuidMixin, IdMixin, TimestampMixin

SHARED_ISOLATION_SEGMENT_GUID = "933b4c58-120b-499a-b85d-4b6fc9e2903b"
SHARED_ISOLATION_SEGMENT_NAME = "shared"


organizations_isolation_segments = Table(
    "organizations_isolation_segments",
    Base.metadata,
    Column(
        "organization_guid",
        String(255),
        ForeignKey("organizations.guid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "isolation_segment_guid",
        String(255),
        ForeignKey("isolation_segments.guid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    UniqueConstraint(
        "organization_guid", "isolation_segment_guid", name="uq_organization_isolation_segment"
    ),
)


class IsolationSegment(Base, IdMixin, GuidMixin, TimestampMixin):
    __tablename__ = "isolation_segments"

    name: Mapped[str] = mapped_column(String(255), unique=True)

    organizations = relationship(
        "Organization",
        secondary=organizations_isolation_segments,
        back_populates="isolation_segments",
    )
    labels = relationship(
        "IsolationSegmentLabel",
        back_populates="isolation_segment",
        cascade="all, delete-orphan",
    )

    @property
    def is_shared(self) -> bool:
        return self.guid == SHARED_ISOLATION_SEGMENT_GUID
