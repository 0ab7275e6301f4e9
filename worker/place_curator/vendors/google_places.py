"""Client utilities for the Google Places API."""

import logging
from typing import Any, Dict, Optional

import requests

from place_curator.core.errors import GooglePlacesError
from place_curator.etl.transform import to_candidate
from place_curator.models import LocationRef, SearchPage

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://maps.googleapis.com/maps/api/place"


def text_search(
    query: str,
    api_key: str,
    pagetoken: Optional[str] = None,
    language: Optional[str] = None,
    timeout: float = 10,
) -> Dict[str, Any]:
    params = {"query": query, "key": api_key}
    if language:
        params["language"] = language
    if pagetoken:
        params["pagetoken"] = pagetoken
    try:
        response = _SESSION.get(f"{_BASE_URL}/textsearch/json", params=params, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        raise GooglePlacesError(f"text_search request failed: {exc}") from exc
    status = payload.get("status")
    if status not in {"OK", "ZERO_RESULTS"}:
        logger.error("text_search failed: status=%s, error_message=%s", status, payload.get("error_message"))
        raise GooglePlacesError(payload.get("error_message") or status)
    return payload


def build_query(keyword: str, location: LocationRef) -> str:
    """Bias the text query towards the target area, e.g. ``咖啡廳 大安區 台北市``."""
    parts = [keyword, location.district, location.city]
    return " ".join(part.strip() for part in parts if part and part.strip())


class GooglePlacesSearchClient:
    """Search collaborator backed by Places Text Search."""

    def __init__(self, api_key: str, language: Optional[str] = None, timeout: float = 10) -> None:
        self.api_key = api_key
        self.language = language
        self.timeout = timeout

    def search(self, keyword: str, location: LocationRef, page_token: Optional[str] = None) -> SearchPage:
        payload = text_search(
            build_query(keyword, location),
            self.api_key,
            pagetoken=page_token,
            language=self.language,
            timeout=self.timeout,
        )
        results = []
        for raw in payload.get("results", []):
            candidate = to_candidate(raw)
            if candidate is None:
                logger.debug("Skipping result without place_id/name: %s", raw)
                continue
            results.append(candidate)
        return SearchPage(results, payload.get("next_page_token") or None)
