"""Database helpers for the worker.

``place_cache`` is the short-term store a later review step promotes into
``places``; upserts rely on a unique index on ``place_cache.place_id``.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional, Set

import psycopg2
from psycopg2 import extras, pool

from place_curator.core.config import get_settings
from place_curator.core.errors import PersistenceError
from place_curator.etl.transform import to_place_cache_row
from place_curator.models import CuratedRecord

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.SimpleConnectionPool] = None


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
            options=f"-c statement_timeout={settings.db_statement_timeout_ms}",
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection. Broken connections are discarded, not reused."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn, close=bool(conn.closed))


def _prepare_params(row: Dict[str, Any]) -> Dict[str, Any]:
    params = dict(row)
    params["raw"] = extras.Json(row.get("raw") or {})
    i18n = row.get("description_i18n")
    params["description_i18n"] = extras.Json(i18n) if i18n else None
    return params


_UPSERT_PLACE_CACHE = """
INSERT INTO place_cache (
    place_id,
    place_name,
    verified_name,
    verified_address,
    category,
    sub_category,
    description,
    description_source,
    description_i18n,
    district,
    city,
    country,
    search_query,
    google_rating,
    google_types,
    primary_type,
    location_lat,
    location_lng,
    is_location_verified,
    business_status,
    last_verified_at,
    ai_reviewed,
    raw,
    updated_at
) VALUES (
    %(place_id)s,
    %(place_name)s,
    %(verified_name)s,
    %(verified_address)s,
    %(category)s,
    %(sub_category)s,
    %(description)s,
    %(description_source)s,
    %(description_i18n)s,
    %(district)s,
    %(city)s,
    %(country)s,
    %(search_query)s,
    %(google_rating)s,
    %(google_types)s,
    %(primary_type)s,
    %(location_lat)s,
    %(location_lng)s,
    %(is_location_verified)s,
    %(business_status)s,
    %(last_verified_at)s,
    %(ai_reviewed)s,
    %(raw)s,
    NOW()
)
ON CONFLICT (place_id) DO UPDATE SET
    place_name = EXCLUDED.place_name,
    verified_name = EXCLUDED.verified_name,
    verified_address = EXCLUDED.verified_address,
    category = EXCLUDED.category,
    sub_category = EXCLUDED.sub_category,
    description = EXCLUDED.description,
    description_source = EXCLUDED.description_source,
    description_i18n = EXCLUDED.description_i18n,
    google_rating = EXCLUDED.google_rating,
    google_types = EXCLUDED.google_types,
    primary_type = EXCLUDED.primary_type,
    location_lat = EXCLUDED.location_lat,
    location_lng = EXCLUDED.location_lng,
    business_status = EXCLUDED.business_status,
    last_verified_at = EXCLUDED.last_verified_at,
    raw = EXCLUDED.raw,
    updated_at = NOW()
RETURNING id;
"""

_SELECT_CACHED_IDS = """
SELECT place_id FROM place_cache
WHERE district = %s AND city = %s AND country = %s AND place_id IS NOT NULL
"""

_SELECT_CORPUS_IDS = """
SELECT google_place_id FROM places
WHERE city = %s AND is_active AND google_place_id IS NOT NULL
"""


def upsert_cached_place(row: Dict[str, Any]) -> Any:
    """Persist a place_cache row, performing an idempotent upsert keyed by place_id."""
    params = _prepare_params(row)
    if not params.get("place_id") or not params.get("place_name"):
        raise ValueError("place_id and place_name are required for upsert")

    try:
        with get_connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(_UPSERT_PLACE_CACHE, params)
                    stored = cur.fetchone()
                conn.commit()
            except psycopg2.Error:
                if not conn.closed:
                    conn.rollback()
                raise
    except psycopg2.Error as exc:
        raise PersistenceError(f"upsert failed for {params['place_id']}: {exc}") from exc
    logger.debug("Upserted place %s", params["place_name"])
    return stored[0] if stored else None


def _fetch_ids(sql: str, args: tuple) -> Set[str]:
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, args)
            rows = cur.fetchall()
        conn.commit()
    return {row[0] for row in rows if row[0]}


def list_cached_place_ids(district: str, city: str, country: str) -> Set[str]:
    return _fetch_ids(_SELECT_CACHED_IDS, (district, city, country))


def list_corpus_place_ids(city: str) -> Set[str]:
    return _fetch_ids(_SELECT_CORPUS_IDS, (city,))


class PostgresPlaceStore:
    """Persistence collaborator backed by the module-level pool."""

    def list_cached_place_ids(self, district: str, city: str, country: str) -> Set[str]:
        return list_cached_place_ids(district, city, country)

    def list_corpus_place_ids(self, city: str) -> Set[str]:
        return list_corpus_place_ids(city)

    def upsert_cached_place(self, record: CuratedRecord) -> Any:
        return upsert_cached_place(to_place_cache_row(record))
