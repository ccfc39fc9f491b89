import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from isoseg.database import create_db_engine
from isoseg.models import Base, IsolationSegment, IsolationSegmentLabel, Organization
from isoseg.services.seed import ensure_shared_isolation_segment


@pytest.fixture
def db_engine():
    engine = create_db_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Session on a fresh schema that already holds the shared isolation segment."""
    session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)()
    ensure_shared_isolation_segment(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_organization(db_session):
    counter = {"n": 0}

    def factory(**kwargs):
        counter["n"] += 1
        kwargs.setdefault("name", f"org-{counter['n']}")
        organization = Organization(**kwargs)
        db_session.add(organization)
        db_session.commit()
        db_session.refresh(organization)
        return organization

    return factory


@pytest.fixture
def make_isolation_segment(db_session):
    counter = {"n": 0}

    def factory(**kwargs):
        counter["n"] += 1
        kwargs.setdefault("name", f"segment-{counter['n']}")
        segment = IsolationSegment(**kwargs)
        db_session.add(segment)
        db_session.commit()
        db_session.refresh(segment)
        return segment

    return factory


@pytest.fixture
def make_label(db_session):
    def factory(segment, key_name, value, key_prefix=None):
        label = IsolationSegmentLabel(
            resource_guid=segment.guid,
            key_prefix=key_prefix,
            key_name=key_name,
            value=value,
        )
        db_session.add(label)
        db_session.commit()
        return label

    return factory
