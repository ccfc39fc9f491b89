import logging

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Query

from isoseg.models import IsolationSegment, Organization, SHARED_ISOLATION_SEGMENT_GUID
from isoseg.schemas import IsolationSegmentsListMessage
from isoseg.services.isolation_segment_assign import IsolationSegmentAssign
from isoseg.services.isolation_segment_list_fetcher import IsolationSegmentListFetcher


@pytest.fixture
def segments(db_session, make_isolation_segment, make_organization):
    segment_1 = make_isolation_segment()
    segment_2 = make_isolation_segment(name="frank")
    segment_3 = make_isolation_segment()

    org_1 = make_organization()
    org_2 = make_organization()
    org_3 = make_organization()

    assigner = IsolationSegmentAssign(db_session)
    assigner.assign(segment_1, [org_1])
    assigner.assign(segment_2, [org_2])
    assigner.assign(segment_3, [org_3])

    return {
        "segment_1": segment_1, "segment_2": segment_2, "segment_3": segment_3,
        "org_1": org_1, "org_2": org_2, "org_3": org_3,
    }


@pytest.fixture
def fetcher(db_session):
    return IsolationSegmentListFetcher(db_session)


def _guids(records):
    return sorted(r.guid for r in records)


def _org_guids_query(db_session, *orgs):
    return db_session.query(Organization.guid).filter(Organization.id.in_([o.id for o in orgs]))


def _empty_org_guids_query(db_session):
    return db_session.query(Organization.guid).filter(Organization.id == -1)


# ============================================================================
# fetch_all
# ============================================================================

def test_fetch_all_returns_a_query(fetcher, segments):
    result = fetcher.fetch_all(IsolationSegmentsListMessage.from_params({}))
    assert isinstance(result, Query)


def test_fetch_all_returns_every_segment_including_shared(db_session, fetcher, segments):
    records = fetcher.fetch_all(IsolationSegmentsListMessage.from_params({})).all()

    shared = db_session.query(IsolationSegment).filter(
        IsolationSegment.guid == SHARED_ISOLATION_SEGMENT_GUID
    ).one()
    expected = [shared, segments["segment_1"], segments["segment_2"], segments["segment_3"]]
    assert _guids(records) == _guids(expected)


def test_fetch_all_filters_by_guids(fetcher, segments):
    message = IsolationSegmentsListMessage.from_params({"guids": [segments["segment_1"].guid]})

    records = fetcher.fetch_all(message).all()

    assert _guids(records) == [segments["segment_1"].guid]


def test_fetch_all_filters_by_names_ignoring_case(fetcher, segments):
    message = IsolationSegmentsListMessage.from_params(
        {"names": [segments["segment_2"].name.capitalize(), segments["segment_3"].name]}
    )

    records = fetcher.fetch_all(message).all()

    assert _guids(records) == _guids([segments["segment_2"], segments["segment_3"]])


def test_fetch_all_filters_by_organization_guids(fetcher, segments):
    message = IsolationSegmentsListMessage.from_params(
        {"organization_guids": [segments["org_1"].guid, segments["org_2"].guid]}
    )

    records = fetcher.fetch_all(message).all()

    assert _guids(records) == _guids([segments["segment_1"], segments["segment_2"]])


def test_fetch_all_filters_by_label_selector(fetcher, segments, make_label):
    make_label(segments["segment_3"], "key", "value")
    message = IsolationSegmentsListMessage.from_params({"label_selector": "key=value"})

    records = fetcher.fetch_all(message).all()

    assert _guids(records) == [segments["segment_3"].guid]


def test_fetch_all_combines_filters_conjunctively(fetcher, segments, make_label):
    make_label(segments["segment_2"], "env", "prod")
    make_label(segments["segment_3"], "env", "prod")
    message = IsolationSegmentsListMessage.from_params(
        {"label_selector": "env=prod", "names": ["FRANK", segments["segment_1"].name]}
    )

    records = fetcher.fetch_all(message).all()

    assert _guids(records) == [segments["segment_2"].guid]


def test_fetch_all_with_empty_guid_list_does_not_restrict(fetcher, segments):
    message = IsolationSegmentsListMessage.from_params({"guids": []})

    records = fetcher.fetch_all(message).all()

    assert len(records) == 4


def test_fetch_all_is_repeatable(fetcher, segments):
    message = IsolationSegmentsListMessage.from_params({"names": ["frank"]})

    first = fetcher.fetch_all(message).all()
    second = fetcher.fetch_all(message).all()

    assert _guids(first) == _guids(second) == [segments["segment_2"].guid]


def test_fetch_all_query_is_composable(fetcher, segments):
    query = fetcher.fetch_all(IsolationSegmentsListMessage.from_params({}))

    narrowed = query.filter(IsolationSegment.name == "frank")

    assert _guids(narrowed.all()) == [segments["segment_2"].guid]


# ============================================================================
# fetch_for_organizations
# ============================================================================

def test_fetch_for_organizations_returns_a_query(db_session, fetcher, segments):
    result = fetcher.fetch_for_organizations(
        IsolationSegmentsListMessage.from_params({}),
        org_guids_query=_empty_org_guids_query(db_session),
    )
    assert isinstance(result, Query)


def test_fetch_for_organizations_only_returns_entitled_segments(db_session, fetcher, segments):
    records = fetcher.fetch_for_organizations(
        IsolationSegmentsListMessage.from_params({}),
        org_guids_query=_org_guids_query(db_session, segments["org_1"], segments["org_2"]),
    ).all()

    assert _guids(records) == _guids([segments["segment_1"], segments["segment_2"]])


def test_fetch_for_organizations_with_no_orgs_returns_nothing(db_session, fetcher, segments, make_label):
    make_label(segments["segment_1"], "key", "value")
    message = IsolationSegmentsListMessage.from_params({"label_selector": "key=value"})

    records = fetcher.fetch_for_organizations(
        message, org_guids_query=_empty_org_guids_query(db_session)
    ).all()

    assert records == []


def test_fetch_for_organizations_filters_by_names_ignoring_case(db_session, fetcher, segments):
    message = IsolationSegmentsListMessage.from_params(
        {"names": [segments["segment_2"].name.capitalize(), segments["segment_3"].name]}
    )

    records = fetcher.fetch_for_organizations(
        message, org_guids_query=_org_guids_query(db_session, segments["org_1"], segments["org_2"])
    ).all()

    assert _guids(records) == [segments["segment_2"].guid]


def test_fetch_for_organizations_filters_by_guids(db_session, fetcher, segments):
    message = IsolationSegmentsListMessage.from_params({"guids": [segments["segment_1"].guid]})

    records = fetcher.fetch_for_organizations(
        message, org_guids_query=_org_guids_query(db_session, segments["org_1"], segments["org_2"])
    ).all()

    assert _guids(records) == [segments["segment_1"].guid]


def test_fetch_for_organizations_filters_by_organization_guids(db_session, fetcher, segments):
    message = IsolationSegmentsListMessage.from_params({"organization_guids": [segments["org_1"].guid]})

    records = fetcher.fetch_for_organizations(
        message, org_guids_query=_org_guids_query(db_session, segments["org_1"], segments["org_2"])
    ).all()

    assert _guids(records) == [segments["segment_1"].guid]


def test_fetch_for_organizations_accepts_a_select(db_session, fetcher, segments):
    org_guids = select(Organization.guid).where(Organization.id == segments["org_3"].id)

    records = fetcher.fetch_for_organizations(
        IsolationSegmentsListMessage.from_params({}), org_guids_query=org_guids
    ).all()

    assert _guids(records) == [segments["segment_3"].guid]


def test_fetch_for_organizations_only_narrows(db_session, fetcher, segments):
    message = IsolationSegmentsListMessage.from_params({"names": ["frank", segments["segment_3"].name]})

    scoped = fetcher.fetch_for_organizations(
        message, org_guids_query=_org_guids_query(db_session, segments["org_2"], segments["org_3"])
    ).all()
    unscoped = fetcher.fetch_all(message).all()

    assert set(_guids(scoped)) <= set(_guids(unscoped))


# ============================================================================
# logging
# ============================================================================

def test_filters_are_logged_at_debug(caplog, fetcher, segments):
    caplog.set_level(logging.DEBUG, logger="isoseg.services.isolation_segment_list_fetcher")

    fetcher.fetch_all(IsolationSegmentsListMessage.from_params({"names": ["frank"]}))

    assert "'names': ('frank',)" in caplog.text


def test_filters_are_not_serialized_without_debug(caplog, monkeypatch, fetcher, segments):
    caplog.set_level(logging.INFO, logger="isoseg.services.isolation_segment_list_fetcher")

    def fail_dump(self, **kwargs):
        raise AssertionError("model_dump called with debug logging disabled")

    monkeypatch.setattr(IsolationSegmentsListMessage, "model_dump", fail_dump)

    fetcher.fetch_all(IsolationSegmentsListMessage.from_params({"names": ["frank"]}))
