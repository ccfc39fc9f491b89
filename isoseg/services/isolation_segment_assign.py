import logging
from typing import Iterable

from sqlalchemy.orm import Session

from isoseg.models.isolation_segment import IsolationSegment
from isoseg.models.organization import Organization

logger = logging.getLogger(__name__)


class IsolationSegmentUnassignError(Exception):
    """Raised when an entitlement cannot be removed from an organization."""


class IsolationSegmentAssign:
    def __init__(self, db: Session):
        self.db = db

    def assign(self, isolation_segment: IsolationSegment, organizations: Iterable[Organization]) -> None:
        """Entitle each organization to the segment. Existing entitlements are left alone."""
        for organization in organizations:
            if organization in isolation_segment.organizations:
                continue
            isolation_segment.organizations.append(organization)
            logger.info(f"Assigned isolation segment {isolation_segment.name} to organization {organization.name}")
        self.db.commit()

    def unassign(self, isolation_segment: IsolationSegment, organization: Organization) -> None:
        if organization.default_isolation_segment_guid == isolation_segment.guid:
            raise IsolationSegmentUnassignError(
                f"Cannot remove isolation segment '{isolation_segment.name}' from organization "
                f"'{organization.name}' because it is the organization's default"
            )

        if organization in isolation_segment.organizations:
            isolation_segment.organizations.remove(organization)
            logger.info(f"Unassigned isolation segment {isolation_segment.name} from organization {organization.name}")
        self.db.commit()
