"""Utilities for transforming search provider responses into candidates and database rows."""

import logging
from typing import Any, Dict, Iterable, Optional

from place_curator.models import BusinessStatus, Candidate, CuratedRecord, LatLng

logger = logging.getLogger(__name__)

_IGNORE_TYPES = {"point_of_interest", "establishment", "political", "premise", "locality", "sublocality"}


def _extract_primary_type(types: Iterable[str]) -> Optional[str]:
    for type_name in types or []:
        if type_name not in _IGNORE_TYPES:
            return type_name
    return None


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_location(geometry: Dict[str, Any]) -> Optional[LatLng]:
    location = (geometry or {}).get("location") or {}
    lat = _safe_float(location.get("lat"))
    lng = _safe_float(location.get("lng"))
    if lat is None or lng is None:
        return None
    return LatLng(lat=lat, lng=lng)


def to_candidate(result: Dict[str, Any]) -> Optional[Candidate]:
    """Normalize a Places Text Search result. Returns None when it has no identity."""
    place_id = result.get("place_id")
    name = (result.get("name") or "").strip()
    if not place_id or not name:
        return None

    types = tuple(result.get("types") or ())
    reviews = result.get("user_ratings_total")
    return Candidate(
        external_id=place_id,
        name=name,
        address=result.get("formatted_address") or "",
        rating=_safe_float(result.get("rating")),
        review_count=int(reviews) if isinstance(reviews, (int, float)) else None,
        types=types,
        primary_type=_extract_primary_type(types),
        location=_parse_location(result.get("geometry", {})),
        business_status=BusinessStatus.from_provider(result.get("business_status")),
        raw_snapshot=result,
    )


def to_place_cache_row(record: CuratedRecord) -> Dict[str, Any]:
    candidate = record.candidate
    classification = record.classification
    location = candidate.location

    return {
        "place_id": candidate.external_id,
        "place_name": candidate.name,
        "verified_name": candidate.name,
        "verified_address": candidate.address,
        "category": classification.category,
        "sub_category": classification.subcategory,
        "description": classification.description,
        "description_source": classification.description_source.value,
        "description_i18n": classification.description_i18n,
        "district": record.district,
        "city": record.city,
        "country": record.country,
        "search_query": record.search_query,
        "google_rating": str(candidate.rating) if candidate.rating is not None else None,
        "google_types": ",".join(candidate.types) or None,
        "primary_type": candidate.primary_type,
        "location_lat": str(location.lat) if location else None,
        "location_lng": str(location.lng) if location else None,
        "is_location_verified": True,
        "business_status": candidate.business_status.value,
        "last_verified_at": record.verified_at,
        "ai_reviewed": record.reviewed,
        "raw": candidate.raw_snapshot,
    }
