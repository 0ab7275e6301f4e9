"""Run every keyword through the search collaborator, page by page."""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

import requests

from place_curator.core.errors import ExternalApiError
from place_curator.models import Candidate, LocationRef

logger = logging.getLogger(__name__)


@dataclass
class SearchOutcome:
    candidates: List[Candidate] = field(default_factory=list)
    total_fetched: int = 0
    pages_per_keyword: List[int] = field(default_factory=list)
    failed_keywords: List[str] = field(default_factory=list)


def collect_candidates(
    search_client,
    keywords: Sequence[str],
    location: LocationRef,
    *,
    max_pages: int,
    page_delay: float = 2.0,
    on_keyword_done: Optional[Callable[[int, int, str, int], None]] = None,
) -> SearchOutcome:
    """Accumulate raw candidates across keywords.

    A next-page token only becomes valid a moment after it is issued, so every
    follow-up page waits ``page_delay`` seconds first. A failing page ends that
    keyword; the remaining keywords still run.
    """
    outcome = SearchOutcome()
    for index, keyword in enumerate(keywords):
        page_token: Optional[str] = None
        pages = 0
        fetched_for_keyword = 0
        while pages < max_pages:
            if page_token:
                time.sleep(page_delay)
            try:
                page = search_client.search(keyword, location, page_token=page_token)
            except (ExternalApiError, requests.RequestException) as exc:
                logger.warning("Search failed for keyword=%s page=%d: %s", keyword, pages + 1, exc)
                outcome.failed_keywords.append(keyword)
                break

            pages += 1
            fetched_for_keyword += len(page.results)
            outcome.total_fetched += len(page.results)
            outcome.candidates.extend(page.results)
            logger.info("Fetched %d results for keyword=%s on page %d", len(page.results), keyword, pages)

            page_token = page.next_page_token
            if not page_token:
                break

        outcome.pages_per_keyword.append(pages)
        if on_keyword_done is not None:
            on_keyword_done(index + 1, len(keywords), keyword, fetched_for_keyword)

    logger.info(
        "Search complete: keywords=%d total_fetched=%d failed_keywords=%d",
        len(keywords),
        outcome.total_fetched,
        len(outcome.failed_keywords),
    )
    return outcome
