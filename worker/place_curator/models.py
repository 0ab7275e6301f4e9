"""Core data models shared by the place curation pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class BusinessStatus(str, Enum):
    OPERATING = "operating"
    CLOSED_TEMPORARILY = "closed_temporarily"
    CLOSED_PERMANENTLY = "closed_permanently"
    UNKNOWN = "unknown"

    @classmethod
    def from_provider(cls, value: Optional[str]) -> "BusinessStatus":
        """Map the provider's business_status string (e.g. ``CLOSED_PERMANENTLY``)."""
        mapping = {
            "OPERATIONAL": cls.OPERATING,
            "OPERATING": cls.OPERATING,
            "CLOSED_TEMPORARILY": cls.CLOSED_TEMPORARILY,
            "CLOSED_PERMANENTLY": cls.CLOSED_PERMANENTLY,
        }
        return mapping.get((value or "").strip().upper(), cls.UNKNOWN)


class DescriptionSource(str, Enum):
    AI = "ai"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class LocationRef:
    """Target area of a run. Names are what the search query and dedup scopes use."""

    city: str
    country: str
    district: Optional[str] = None
    region_id: Optional[int] = None
    district_id: Optional[int] = None

    @property
    def area(self) -> str:
        return self.district or self.city


@dataclass(frozen=True)
class SeedRequest:
    seed_keyword: str
    location: LocationRef
    category: str
    max_keywords: int = 8
    max_pages_per_keyword: int = 3
    enable_ai_expansion: bool = True
    streaming: bool = False
    save_to_drafts: bool = True


@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float


@dataclass(slots=True)
class Candidate:
    """Normalized snapshot of a place returned by the search provider."""

    external_id: str
    name: str
    address: str = ""
    rating: Optional[float] = None
    review_count: Optional[int] = None
    types: Tuple[str, ...] = ()
    primary_type: Optional[str] = None
    location: Optional[LatLng] = None
    business_status: BusinessStatus = BusinessStatus.UNKNOWN
    raw_snapshot: Optional[Dict[str, Any]] = field(default=None, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "placeId": self.external_id,
            "name": self.name,
            "address": self.address,
            "rating": self.rating,
            "reviewCount": self.review_count,
            "types": list(self.types),
            "primaryType": self.primary_type,
            "location": asdict(self.location) if self.location else None,
            "businessStatus": self.business_status.value,
        }


@dataclass
class SearchPage:
    results: List[Candidate]
    next_page_token: Optional[str] = None


@dataclass(frozen=True)
class Classification:
    category: str
    subcategory: str
    description: str
    description_source: DescriptionSource
    description_i18n: Optional[Dict[str, str]] = None


@dataclass
class CuratedRecord:
    candidate: Candidate
    classification: Classification
    district: str
    city: str
    country: str
    search_query: str
    reviewed: bool = False
    verified_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def external_id(self) -> str:
        return self.candidate.external_id


@dataclass(frozen=True)
class ProgressEvent:
    stage: str
    current: int
    total: int
    message: str = ""
    saved: Optional[int] = None
    skipped: Optional[int] = None
    errors: Optional[int] = None
    error: Optional[str] = None


@dataclass
class RunSummary:
    keywords: List[str] = field(default_factory=list)
    pages_per_keyword: List[int] = field(default_factory=list)
    total_fetched: int = 0
    filtered_out: int = 0
    admitted: int = 0
    novel: int = 0
    saved: int = 0
    skipped: int = 0
    errors: int = 0
    chunks_processed: int = 0
    ai_classified: int = 0
    fallback_classified: int = 0
    cancelled: bool = False
    timed_out: bool = False
    saved_places: List[Dict[str, Any]] = field(default_factory=list)
    preview_places: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "success": True,
            "saved": self.saved,
            "skipped": self.skipped,
            "errors": self.errors,
            "total": self.admitted,
            "stats": {
                "keywords": list(self.keywords),
                "pagesPerKeyword": list(self.pages_per_keyword),
                "totalFetched": self.total_fetched,
                "filteredOut": self.filtered_out,
                "afterFilter": self.admitted,
                "novel": self.novel,
                "chunksProcessed": self.chunks_processed,
                "aiClassified": self.ai_classified,
                "fallbackClassified": self.fallback_classified,
            },
            "cancelled": self.cancelled,
            "timedOut": self.timed_out,
            "savedPlaces": self.saved_places[:20],
        }
        if self.preview_places:
            payload["places"] = list(self.preview_places)
        return payload
