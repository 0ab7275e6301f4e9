"""SerpAPI Google Maps helpers, an alternate search provider to Places Text Search."""

from __future__ import annotations

import logging
import random
import re
import time
from typing import Any, Dict, Iterable, List, Optional

from serpapi import GoogleSearch

from place_curator.core.errors import SerpApiError
from place_curator.models import BusinessStatus, Candidate, LatLng, LocationRef, SearchPage
from place_curator.vendors.google_places import build_query

logger = logging.getLogger(__name__)

RETRY_LIMIT = 2
RETRY_DELAY_SECONDS = 1.2
PAGE_SIZE = 20


def build_serpapi_params(query: str, api_key: str, start: int = 0, language: Optional[str] = None) -> Dict[str, Any]:
    """Construct SerpAPI request parameters for the Google Maps engine."""
    if not query or not query.strip():
        raise ValueError("Query must be provided for SerpAPI lookups.")

    params: Dict[str, Any] = {
        "engine": "google_maps",
        "q": query.strip(),
        "api_key": api_key,
        "type": "search",
    }
    if language:
        params["hl"] = language
    if start:
        params["start"] = start
    return params


def fetch_from_serpapi(params: Dict[str, Any], timeout: float = 10) -> Dict[str, Any]:
    """Call SerpAPI Google Maps and return the raw JSON response with retry logic.

    SerpAPI charges per request; attempts are logged so usage can be audited.
    ``timeout`` bounds each HTTP attempt (the library default is 60000 seconds).
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            logger.info("Calling SerpAPI (attempt %s) for q=%s start=%s", attempt, params.get("q"), params.get("start", 0))
            search = GoogleSearch(params)
            search.timeout = timeout
            data = search.get_dict()
            if not data:
                raise SerpApiError("SerpAPI returned an empty payload.")
            if "error" in data:
                raise SerpApiError(f"SerpAPI returned an error response: {data.get('error')}")
            return data
        except Exception as exc:  # noqa: BLE001
            logger.warning("SerpAPI request failed (attempt %s/%s): %s", attempt, RETRY_LIMIT + 1, exc)
            if attempt > RETRY_LIMIT:
                logger.error("SerpAPI request exhausted retries for q=%s", params.get("q"))
                if isinstance(exc, SerpApiError):
                    raise
                raise SerpApiError(str(exc)) from exc
            time.sleep(RETRY_DELAY_SECONDS + random.uniform(0, 0.8))


def parse_serpapi_maps(data: Optional[Dict[str, Any]]) -> List[Candidate]:
    """Extract SerpAPI local results into normalized Candidate objects."""
    if not data:
        return []

    candidates: List[Candidate] = []
    for raw in _extract_items(data):
        if not isinstance(raw, dict):
            continue

        name = (raw.get("title") or raw.get("name") or "").strip()
        place_id = raw.get("place_id") or raw.get("data_id")
        if not name or not place_id:
            continue

        gps = raw.get("gps_coordinates") or {}
        latitude = _safe_float(gps.get("latitude"))
        longitude = _safe_float(gps.get("longitude"))
        types = _normalize_types(raw.get("types") or ([raw["type"]] if raw.get("type") else []))

        candidates.append(
            Candidate(
                external_id=str(place_id),
                name=name,
                address=(raw.get("address") or "").strip(),
                rating=_safe_float(raw.get("rating")),
                review_count=_safe_int(raw.get("reviews")),
                types=types,
                primary_type=types[0] if types else None,
                location=LatLng(latitude, longitude) if latitude is not None and longitude is not None else None,
                business_status=_business_status(raw),
                raw_snapshot=raw,
            )
        )
    return candidates


class SerpApiSearchClient:
    """Search collaborator backed by SerpAPI; page tokens are ``start`` offsets."""

    def __init__(self, api_key: str, language: Optional[str] = None, timeout: float = 10) -> None:
        self.api_key = api_key
        self.language = language
        self.timeout = timeout

    def search(self, keyword: str, location: LocationRef, page_token: Optional[str] = None) -> SearchPage:
        start = int(page_token) if page_token else 0
        params = build_serpapi_params(build_query(keyword, location), self.api_key, start=start, language=self.language)
        data = fetch_from_serpapi(params, timeout=self.timeout)
        results = parse_serpapi_maps(data)
        pagination = data.get("serpapi_pagination") or {}
        next_token = str(start + PAGE_SIZE) if pagination.get("next") else None
        return SearchPage(results, next_token)


def _extract_items(data: Dict[str, Any]) -> Iterable[Any]:
    """SerpAPI sometimes returns local_results as a list or nested dict."""
    local_results = data.get("local_results")
    if isinstance(local_results, list):
        return local_results
    if isinstance(local_results, dict):
        for maybe in (local_results.get("places"), local_results.get("results")):
            if isinstance(maybe, list):
                return maybe
    place_results = data.get("place_results")
    if isinstance(place_results, dict):
        return [place_results]
    return []


def _normalize_types(labels: Iterable[Any]) -> tuple:
    """'Coffee shop' -> 'coffee_shop' so labels line up with the Places taxonomy."""
    normalized = []
    for label in labels:
        slug = re.sub(r"[^a-z0-9]+", "_", str(label).strip().lower()).strip("_")
        if slug and slug not in normalized:
            normalized.append(slug)
    return tuple(normalized)


def _business_status(raw: Dict[str, Any]) -> BusinessStatus:
    hours = str(raw.get("open_state") or raw.get("hours") or "").lower()
    if "permanently closed" in hours:
        return BusinessStatus.CLOSED_PERMANENTLY
    if "temporarily closed" in hours:
        return BusinessStatus.CLOSED_TEMPORARILY
    return BusinessStatus.UNKNOWN


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _safe_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        digits = "".join(ch for ch in value if ch.isdigit())
        if digits:
            return int(digits)
    return None
