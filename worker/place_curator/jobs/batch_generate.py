"""Batch place generation: expand keywords, search, filter, dedup, classify and persist.

Runnable as a CLI job or called from the HTTP server.
"""

import argparse
import json
import logging
import random
import threading
import time
from dataclasses import replace
from typing import Any, List, Optional

from place_curator.core.config import Settings, get_settings, require_credentials
from place_curator.core.db import PostgresPlaceStore, init_pool
from place_curator.core.errors import ConfigurationError
from place_curator.core.progress import LoggingSink, ProgressReporter, Stage
from place_curator.etl.categories import EIGHT_CATEGORIES
from place_curator.etl.classify import AIClassifier, RuleBasedClassifier
from place_curator.etl.dedup import Deduplicator
from place_curator.etl.filters import partition_candidates
from place_curator.etl.keywords import build_base_keyword, expand_keywords
from place_curator.etl.search import collect_candidates
from place_curator.etl.writer import write_chunk
from place_curator.models import CuratedRecord, DescriptionSource, LocationRef, RunSummary, SeedRequest
from place_curator.vendors.ai_text import AITextClient
from place_curator.vendors.google_places import GooglePlacesSearchClient
from place_curator.vendors.serpapi_maps import SerpApiSearchClient

logger = logging.getLogger(__name__)

MAX_KEYWORDS_LIMIT = 10
MAX_PAGES_LIMIT = 3
PREVIEW_LIMIT = 50


def _clamp(value: Any, low: int, high: int, default: int) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError(f"expected an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"expected an integer, got {value!r}") from exc
    return max(low, min(number, high))


def build_seed_request(
    *,
    keyword: Optional[str],
    city: str,
    country: str,
    district: Optional[str] = None,
    category: Optional[str] = None,
    max_keywords: Any = None,
    max_pages_per_keyword: Any = None,
    enable_ai_expansion: bool = True,
    streaming: bool = False,
    save_to_drafts: bool = True,
    region_id: Optional[int] = None,
    district_id: Optional[int] = None,
    keyword_limit: int = MAX_KEYWORDS_LIMIT,
    page_limit: int = MAX_PAGES_LIMIT,
) -> SeedRequest:
    """Validate and clamp caller input. Raises ValueError on bad input."""
    city = (city or "").strip()
    country = (country or "").strip()
    if not city or not country:
        raise ValueError("city and country are required")
    if category and category not in EIGHT_CATEGORIES:
        raise ValueError(f"unknown category {category!r}")

    return SeedRequest(
        seed_keyword=(keyword or "").strip(),
        location=LocationRef(
            city=city,
            country=country,
            district=(district or "").strip() or None,
            region_id=region_id,
            district_id=district_id,
        ),
        category=category or random.choice(EIGHT_CATEGORIES),
        max_keywords=_clamp(max_keywords, 1, keyword_limit, min(8, keyword_limit)),
        max_pages_per_keyword=_clamp(max_pages_per_keyword, 1, page_limit, page_limit),
        enable_ai_expansion=bool(enable_ai_expansion),
        streaming=bool(streaming),
        save_to_drafts=bool(save_to_drafts),
    )


def _build_search_client(settings: Settings):
    if settings.search_provider == "serpapi":
        return SerpApiSearchClient(
            settings.serpapi_api_key,
            language=settings.search_language,
            timeout=settings.search_timeout_seconds,
        )
    return GooglePlacesSearchClient(
        settings.google_api_key,
        language=settings.search_language,
        timeout=settings.search_timeout_seconds,
    )


def _build_ai_client(settings: Settings) -> Optional[AITextClient]:
    if not settings.ai_api_key:
        return None
    return AITextClient(
        settings.ai_api_key,
        settings.ai_model,
        base_url=settings.ai_base_url,
        timeout=settings.ai_timeout_seconds,
    )


def _build_store():
    init_pool()
    return PostgresPlaceStore()


def _chunks(items: List[Any], size: int) -> List[List[Any]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def run_batch_generate(
    seed: SeedRequest,
    *,
    sink=None,
    settings: Optional[Settings] = None,
    search_client=None,
    ai_client=None,
    classifier=None,
    store=None,
    cancel_event: Optional[threading.Event] = None,
) -> RunSummary:
    """Run the whole pipeline for one seed request and return its summary.

    ConfigurationError (and any failure outside the per-item paths) emits an
    ``error`` event and is re-raised; every other failure is absorbed.
    """
    settings = settings or get_settings()
    reporter = ProgressReporter(sink)
    summary = RunSummary()
    location = seed.location

    try:
        require_credentials(settings, persist=seed.save_to_drafts and store is None)
        if search_client is None:
            search_client = _build_search_client(settings)
        if ai_client is None:
            ai_client = _build_ai_client(settings)
        if classifier is None:
            if ai_client is not None:
                classifier = AIClassifier(ai_client, with_i18n=settings.description_i18n)
            else:
                classifier = RuleBasedClassifier()

        search_query = build_base_keyword(seed.seed_keyword, seed.category)
        deadline = time.monotonic() + settings.run_timeout_seconds
        logger.info(
            "Starting batch generate: keyword=%r area=%s city=%s max_keywords=%d max_pages=%d ai=%s",
            search_query,
            location.area,
            location.city,
            seed.max_keywords,
            seed.max_pages_per_keyword,
            seed.enable_ai_expansion,
        )

        reporter.advance(Stage.EXPANDING_KEYWORDS, 0, 1, f"Expanding keywords (category: {seed.category})")
        keywords = expand_keywords(
            seed_keyword=seed.seed_keyword,
            category=seed.category,
            location=location,
            max_keywords=seed.max_keywords,
            ai_client=ai_client,
            enabled=seed.enable_ai_expansion,
        )
        summary.keywords = keywords
        reporter.advance(Stage.EXPANDING_KEYWORDS, 1, 1, f"{len(keywords)} keywords ready")

        reporter.advance(Stage.SEARCHING_GOOGLE, 0, len(keywords), "Searching places")
        outcome = collect_candidates(
            search_client,
            keywords,
            location,
            max_pages=seed.max_pages_per_keyword,
            page_delay=settings.page_token_delay_seconds,
            on_keyword_done=lambda done, total, keyword, fetched: reporter.advance(
                Stage.SEARCHING_GOOGLE, done, total, f"{keyword}: {fetched} results"
            ),
        )
        summary.total_fetched = outcome.total_fetched
        summary.pages_per_keyword = outcome.pages_per_keyword

        reporter.advance(Stage.FILTERING_RESULTS, 0, 1, "Filtering and de-duplicating")
        admitted, rejected = partition_candidates(outcome.candidates)
        summary.admitted = len(admitted)
        summary.filtered_out = len(rejected)

        if not seed.save_to_drafts:
            summary.preview_places = [candidate.to_dict() for candidate in admitted[:PREVIEW_LIMIT]]
            reporter.advance(Stage.FILTERING_RESULTS, 1, 1, f"{len(admitted)} places admitted (not saved)")
            reporter.complete(saved=0, skipped=0, total=len(admitted), message="Preview complete")
            return summary

        if store is None:
            store = _build_store()
        dedup = Deduplicator.from_store(store, location)
        novel = dedup.select_novel(admitted)
        summary.novel = len(novel)
        summary.skipped = len(admitted) - len(novel)
        reporter.advance(
            Stage.FILTERING_RESULTS,
            1,
            1,
            f"{len(novel)} to process, {summary.skipped} duplicates skipped, {len(rejected)} filtered out",
        )

        chunks = _chunks(novel, settings.chunk_size)
        for index, chunk in enumerate(chunks):
            if cancel_event is not None and cancel_event.is_set():
                logger.warning("Run cancelled before chunk %d/%d", index + 1, len(chunks))
                summary.cancelled = True
                break
            if time.monotonic() > deadline:
                logger.warning("Run timeout reached before chunk %d/%d", index + 1, len(chunks))
                summary.timed_out = True
                break
            if index > 0:
                time.sleep(settings.chunk_delay_seconds)

            reporter.advance(
                Stage.GENERATING_DESCRIPTIONS,
                index + 1,
                len(chunks),
                f"Classifying and describing batch {index + 1}/{len(chunks)}",
            )
            classifications = classifier.classify(chunk, location.area)

            records = [
                CuratedRecord(
                    candidate=candidate,
                    classification=classification,
                    district=location.area,
                    city=location.city,
                    country=location.country,
                    search_query=search_query,
                )
                for candidate, classification in zip(chunk, classifications)
            ]
            for classification in classifications:
                if classification.description_source is DescriptionSource.AI:
                    summary.ai_classified += 1
                else:
                    summary.fallback_classified += 1

            reporter.advance(
                Stage.SAVING_PLACES,
                index + 1,
                len(chunks),
                f"Saving batch {index + 1}/{len(chunks)} ({summary.saved}/{len(novel)} saved so far)",
            )
            written = write_chunk(records, store)
            summary.saved += written.saved
            summary.errors += written.errors
            summary.chunks_processed += 1
            for record, stored_id in written.stored:
                summary.saved_places.append(
                    {"id": stored_id, "placeName": record.candidate.name, "placeId": record.external_id}
                )

        logger.info(
            "Batch generate finished: saved=%d skipped=%d errors=%d chunks=%d/%d",
            summary.saved,
            summary.skipped,
            summary.errors,
            summary.chunks_processed,
            len(chunks),
        )
        reporter.complete(
            saved=summary.saved,
            skipped=summary.skipped,
            total=summary.admitted,
            errors=summary.errors,
            message=f"Done: saved {summary.saved}",
        )
        return summary
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        reporter.fail(str(exc))
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("Batch generate failed: %s", exc)
        reporter.fail(str(exc))
        raise


def preview_batch(seed: SeedRequest, **kwargs) -> RunSummary:
    """Search and filter only; nothing is classified or saved."""
    return run_batch_generate(replace(seed, save_to_drafts=False, streaming=False), **kwargs)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate curated places for an area")
    parser.add_argument("--city", dest="city", required=True, help="City / region name, e.g. 台北市")
    parser.add_argument("--country", dest="country", required=True, help="Country name, e.g. 台灣")
    parser.add_argument("--district", dest="district", help="Optional district name")
    parser.add_argument("--keyword", dest="keyword", default="", help="Seed keyword (may be empty)")
    parser.add_argument("--category", dest="category", choices=EIGHT_CATEGORIES, help="Category label")
    parser.add_argument("--max-keywords", dest="max_keywords", type=int, default=8, help="1-10 search keywords")
    parser.add_argument(
        "--max-pages",
        dest="max_pages",
        type=int,
        default=get_settings().max_pages,
        help="Result pages per keyword (1-3)",
    )
    parser.add_argument("--no-ai-expansion", dest="enable_ai_expansion", action="store_false")
    parser.add_argument("--dry-run", dest="save_to_drafts", action="store_false", help="Search and filter only")
    return parser


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args()

    seed = build_seed_request(
        keyword=args.keyword,
        city=args.city,
        country=args.country,
        district=args.district,
        category=args.category,
        max_keywords=args.max_keywords,
        max_pages_per_keyword=args.max_pages,
        enable_ai_expansion=args.enable_ai_expansion,
        save_to_drafts=args.save_to_drafts,
    )
    try:
        summary = run_batch_generate(seed, sink=LoggingSink())
    except ConfigurationError as exc:
        raise SystemExit(2) from exc
    logger.info("Summary: %s", json.dumps(summary.to_dict(), ensure_ascii=False, default=str))


if __name__ == "__main__":
    main()
