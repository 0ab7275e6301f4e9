from datetime import datetime, timezone

from place_curator.etl import transform
from place_curator.models import BusinessStatus, Candidate, Classification, CuratedRecord, DescriptionSource, LatLng


def test_extract_primary_type():
    assert transform._extract_primary_type(["point_of_interest", "restaurant"]) == "restaurant"
    assert transform._extract_primary_type([]) is None


def test_to_candidate_normalizes_result():
    result = {
        "place_id": "pid",
        "name": " Acme Cafe ",
        "formatted_address": "Main St",
        "rating": "4.5",
        "user_ratings_total": 10,
        "types": ["establishment", "cafe"],
        "geometry": {"location": {"lng": 121.5, "lat": 25.0}},
        "business_status": "CLOSED_TEMPORARILY",
    }

    candidate = transform.to_candidate(result)

    assert candidate.external_id == "pid"
    assert candidate.name == "Acme Cafe"
    assert candidate.rating == 4.5
    assert candidate.review_count == 10
    assert candidate.primary_type == "cafe"
    assert candidate.location == LatLng(lat=25.0, lng=121.5)
    assert candidate.business_status is BusinessStatus.CLOSED_TEMPORARILY
    assert candidate.raw_snapshot is result


def test_to_candidate_requires_identity():
    assert transform.to_candidate({"name": "Acme"}) is None
    assert transform.to_candidate({"place_id": "pid", "name": "  "}) is None


def test_to_place_cache_row():
    record = CuratedRecord(
        candidate=Candidate(
            external_id="pid",
            name="Acme Cafe",
            address="Main St",
            rating=4.5,
            types=("cafe", "food"),
            primary_type="cafe",
            location=LatLng(25.0, 121.5),
            business_status=BusinessStatus.OPERATING,
            raw_snapshot={"place_id": "pid"},
        ),
        classification=Classification("美食", "咖啡廳", "描述", DescriptionSource.FALLBACK),
        district="大安區",
        city="台北市",
        country="台灣",
        search_query="美食",
        verified_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )

    row = transform.to_place_cache_row(record)

    assert row["place_id"] == "pid"
    assert row["sub_category"] == "咖啡廳"
    assert row["description_source"] == "fallback"
    assert row["description_i18n"] is None
    assert row["google_rating"] == "4.5"
    assert row["google_types"] == "cafe,food"
    assert row["location_lat"] == "25.0"
    assert row["business_status"] == "operating"
    assert row["ai_reviewed"] is False
    assert row["raw"] == {"place_id": "pid"}


def test_to_place_cache_row_carries_translations():
    record = CuratedRecord(
        candidate=Candidate(external_id="pid", name="Acme Cafe"),
        classification=Classification(
            "美食", "咖啡廳", "景觀咖啡", DescriptionSource.AI, description_i18n={"en": "Cafe", "ja": "カフェ"}
        ),
        district="大安區",
        city="台北市",
        country="台灣",
        search_query="美食",
    )

    assert transform.to_place_cache_row(record)["description_i18n"] == {"en": "Cafe", "ja": "カフェ"}
