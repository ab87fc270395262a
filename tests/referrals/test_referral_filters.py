"""
Tests for referral list filtering and pagination.
"""
from datetime import datetime, timedelta

import pytest

from src.core.pagination import PageParams
from src.referrals.filters import build_referral_query, list_referrals, parse_status
from src.referrals.models import ReferralStatus
from src.referrals.schemas import ReferralFilter


def _ids(db, **filters):
    return [referral.id for referral in build_referral_query(db, ReferralFilter(**filters)).all()]


@pytest.fixture
def referrals(factory):
    practice = factory.practice()
    other = factory.practice(name="Other Practice")
    return {
        "garcia": factory.referral(
            first="Maria", last="Garcia", status=ReferralStatus.NEW,
            referring_practice_id=practice.id, referral_date=datetime(2024, 3, 1, 9, 0),
        ),
        "chen": factory.referral(
            first="Wei", last="Chen", status=ReferralStatus.SCHEDULED,
            referring_practice_id=practice.id, referral_date=datetime(2024, 3, 10, 23, 59),
            referring_doctor_name="Dr. Marino",
        ),
        "okafor": factory.referral(
            first="Ada", last="Okafor", status=ReferralStatus.NEW,
            referring_practice_id=other.id, referral_date=datetime(2024, 3, 20, 12, 0),
        ),
        "practice": practice,
        "other": other,
    }


def test_unfiltered_newest_first(db, referrals):
    assert _ids(db) == [referrals["okafor"].id, referrals["chen"].id, referrals["garcia"].id]


def test_search_matches_names_and_free_text_doctor(db, referrals):
    # "mar" hits Maria (first name) and Dr. Marino (free-text doctor)
    assert _ids(db, search="MAR") == [referrals["chen"].id, referrals["garcia"].id]
    assert _ids(db, search="okaf") == [referrals["okafor"].id]
    assert _ids(db, search="nobody") == []


def test_filters_are_conjunctive(db, referrals):
    assert _ids(db, status="NEW") == [referrals["okafor"].id, referrals["garcia"].id]
    assert _ids(db, status="NEW", practice_id=referrals["practice"].id) == [referrals["garcia"].id]
    assert _ids(db, status="NEW", practice_id=referrals["practice"].id, search="chen") == []


def test_unknown_status_is_ignored(db, referrals):
    assert len(_ids(db, status="ON_HOLD")) == 3
    assert parse_status("scheduled") == ReferralStatus.SCHEDULED
    assert parse_status("bogus") is None


def test_date_range_is_inclusive_by_day(db, referrals):
    # date_to covers the whole day, so 23:59 on the 10th is included
    assert _ids(db, date_from="2024-03-01", date_to="2024-03-10") == [
        referrals["chen"].id, referrals["garcia"].id
    ]
    assert _ids(db, date_from="2024-03-10") == [referrals["okafor"].id, referrals["chen"].id]
    assert _ids(db, date_to="2024-02-29") == []


def test_unreadable_dates_are_ignored(db, referrals):
    assert len(_ids(db, date_from="last tuesday", date_to="31/12/2024")) == 3


def test_pagination_of_twenty_five_records(db, factory):
    start = datetime(2024, 1, 1)
    for index in range(25):
        factory.referral(first=f"P{index}", referral_date=start + timedelta(days=index))

    first = list_referrals(db, ReferralFilter(), PageParams(page=1))
    second = list_referrals(db, ReferralFilter(), PageParams(page=2))

    assert first.total == 25
    assert first.pages == 2
    assert first.size == 20
    assert len(first.items) == 20
    assert first.has_next and not first.has_prev
    assert len(second.items) == 5
    assert second.has_prev and not second.has_next
    assert first.items[0].patient_first_name == "P24"
    assert second.items[-1].patient_first_name == "P0"


def test_page_is_clamped_to_one(db, factory):
    factory.referral()
    page = list_referrals(db, ReferralFilter(), PageParams(page=0))
    assert page.page == 1
    assert len(page.items) == 1


def test_list_route(client, factory, staff_headers):
    practice = factory.practice(name="Lakeside")
    factory.referral(first="Ana", referring_practice_id=practice.id)
    factory.referral(first="Ben", status=ReferralStatus.COMPLETED)

    response = client.get(
        "/api/v1/referrals",
        params={"status": "COMPLETED", "page": -3},
        headers=staff_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["page"] == 1
    assert data["total"] == 1
    assert data["items"][0]["patient_first_name"] == "Ben"
    assert data["items"][0]["status_label"] == "Completed"

    response = client.get("/api/v1/referrals", params={"practice_id": practice.id}, headers=staff_headers)
    assert response.json()["items"][0]["referring_practice_name"] == "Lakeside"


def test_search_wildcards_match_literally(db, referrals, factory):
    assert _ids(db, search="%") == []
    assert _ids(db, search="_") == []
    assert _ids(db, search="G_rcia") == []

    underscored = factory.referral(first="Jo_Ann", last="100% Smith")
    assert _ids(db, search="_") == [underscored.id]
    assert _ids(db, search="100%") == [underscored.id]
