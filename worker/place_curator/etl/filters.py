"""Deterministic admission gate applied before any classification work."""

import logging
from typing import Iterable, List, Optional, Tuple

from place_curator.models import BusinessStatus, Candidate

logger = logging.getLogger(__name__)

EXCLUDED_BUSINESS_STATUS = frozenset({BusinessStatus.CLOSED_TEMPORARILY, BusinessStatus.CLOSED_PERMANENTLY})

# Non-touristic Places types.
EXCLUDED_PLACE_TYPES = frozenset(
    {
        # government, courts, emergency services
        "local_government_office", "city_hall", "courthouse", "embassy", "post_office",
        "police", "fire_station",
        # medical
        "hospital", "doctor", "dentist", "pharmacy", "drugstore", "physiotherapist", "veterinary_care",
        # financial, legal, insurance
        "bank", "atm", "accounting", "lawyer", "insurance_agency", "real_estate_agency",
        # transit infrastructure
        "transit_station", "bus_station", "train_station", "subway_station", "light_rail_station",
        "taxi_stand", "airport",
        # funeral services
        "funeral_home", "cemetery",
        # schools
        "school", "primary_school", "secondary_school", "university",
        # religious venues
        "church", "mosque", "synagogue", "hindu_temple", "place_of_worship",
        # parking, fuel, auto repair
        "parking", "gas_station", "car_repair", "car_wash", "car_dealer", "car_rental",
        # everyday services and generic agencies
        "travel_agency", "library", "supermarket", "convenience_store", "laundry", "locksmith",
        "moving_company", "plumber", "electrician", "roofing_contractor", "painter", "storage",
    }
)

# Case-sensitive substrings marking generic or placeholder listings.
GENERIC_NAME_PATTERNS = (
    # travel agency / tour wording
    "探索", "旅行社", "旅行", "Travel", "Explore", "Tour",
    # government offices
    "農會", "公所", "區公所", "鄉公所", "鎮公所", "市公所", "縣政府", "市政府", "衛生所", "戶政事務所",
    "警察局", "派出所", "消防隊", "消防局", "郵局", "稅務局", "地政事務所", "Government Office",
    # medical, financial, fuel, parking, funeral
    "診所", "牙醫", "醫院", "藥局", "獸醫", "銀行", "加油站", "停車場", "汽車", "機車行",
    "葬儀", "殯儀館", "靈骨塔", "納骨塔",
    # visitor / service centres and chain stores
    "服務中心", "遊客中心", "Visitor Center", "Service Center",
    "超市", "便利商店", "7-11", "全家", "萊爾富", "小北",
)


def rejection_reason(candidate: Candidate) -> Optional[str]:
    """Return why a candidate is not admissible, or None if it passes every check."""
    if candidate.business_status in EXCLUDED_BUSINESS_STATUS:
        return f"business_status={candidate.business_status.value}"
    blocked = EXCLUDED_PLACE_TYPES.intersection(candidate.types)
    if blocked:
        return f"blocked types {sorted(blocked)}"
    for pattern in GENERIC_NAME_PATTERNS:
        if pattern in candidate.name:
            return f"generic name pattern {pattern!r}"
    return None


def partition_candidates(candidates: Iterable[Candidate]) -> Tuple[List[Candidate], List[Candidate]]:
    """Split candidates into (admitted, rejected), preserving order."""
    admitted: List[Candidate] = []
    rejected: List[Candidate] = []
    for candidate in candidates:
        reason = rejection_reason(candidate)
        if reason is None:
            admitted.append(candidate)
        else:
            logger.debug("Filtered %s (%s): %s", candidate.name, candidate.external_id, reason)
            rejected.append(candidate)
    return admitted, rejected
