"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from place_curator.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

SEARCH_PROVIDERS = ("google_places", "serpapi")


@dataclass(frozen=True)
class Settings:
    google_api_key: str
    database_url: str
    worker_port: int = 9000
    max_pages: int = 3
    search_provider: str = "google_places"
    serpapi_api_key: str = ""
    search_language: str = "zh-TW"
    search_timeout_seconds: float = 10.0
    page_token_delay_seconds: float = 2.0
    ai_api_key: str = ""
    ai_base_url: Optional[str] = None
    ai_model: str = "gpt-4o-mini"
    ai_timeout_seconds: float = 30.0
    description_i18n: bool = True
    db_statement_timeout_ms: int = 10000
    chunk_size: int = 15
    chunk_delay_seconds: float = 2.0
    run_timeout_seconds: float = 900.0


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer; using %d", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("%s=%r is not a number; using %s", name, raw, default)
        return default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    google_api_key = os.getenv("GOOGLE_API_KEY", "")
    database_url = os.getenv("DATABASE_URL", "")
    search_provider = os.getenv("SEARCH_PROVIDER", "google_places").strip().lower()
    if search_provider not in SEARCH_PROVIDERS:
        logger.warning("Unknown SEARCH_PROVIDER=%s; falling back to google_places", search_provider)
        search_provider = "google_places"
    serpapi_api_key = os.getenv("SERPAPI_API_KEY", "")
    ai_api_key = os.getenv("AI_API_KEY") or os.getenv("OPENAI_API_KEY", "")
    ai_base_url = os.getenv("AI_BASE_URL") or None

    chunk_size = _env_int("PIPELINE_CHUNK_SIZE", 15)
    if chunk_size < 1:
        logger.warning("PIPELINE_CHUNK_SIZE must be positive; using 15")
        chunk_size = 15

    if not database_url:
        logger.warning("DATABASE_URL is not set; database operations will fail.")
    if search_provider == "google_places" and not google_api_key:
        logger.warning("GOOGLE_API_KEY is not configured; Google Places requests will fail.")
    if search_provider == "serpapi" and not serpapi_api_key:
        logger.warning("SERPAPI_API_KEY is not configured; SerpAPI requests will fail.")
    if not ai_api_key:
        logger.warning("AI_API_KEY is not configured; keyword expansion and descriptions will use fallbacks.")

    return Settings(
        google_api_key=google_api_key,
        database_url=database_url,
        worker_port=_env_int("WORKER_PORT", 9000),
        max_pages=_env_int("WORKER_MAX_PAGES", 3),
        search_provider=search_provider,
        serpapi_api_key=serpapi_api_key,
        search_language=os.getenv("SEARCH_LANGUAGE", "zh-TW"),
        search_timeout_seconds=_env_float("SEARCH_TIMEOUT_SECONDS", 10.0),
        page_token_delay_seconds=_env_float("PAGE_TOKEN_DELAY_SECONDS", 2.0),
        ai_api_key=ai_api_key,
        ai_base_url=ai_base_url,
        ai_model=os.getenv("AI_MODEL", "gpt-4o-mini"),
        ai_timeout_seconds=_env_float("AI_TIMEOUT_SECONDS", 30.0),
        description_i18n=os.getenv("AI_DESCRIPTION_I18N", "true").strip().lower() not in ("0", "false", "no"),
        db_statement_timeout_ms=_env_int("DB_STATEMENT_TIMEOUT_MS", 10000),
        chunk_size=chunk_size,
        chunk_delay_seconds=_env_float("PIPELINE_CHUNK_DELAY_SECONDS", 2.0),
        run_timeout_seconds=_env_float("PIPELINE_RUN_TIMEOUT_SECONDS", 900.0),
    )


def require_credentials(settings: Settings, *, persist: bool = True) -> None:
    """Raise ConfigurationError when a credential the run cannot do without is absent."""
    if settings.search_provider == "serpapi":
        if not settings.serpapi_api_key:
            raise ConfigurationError("SERPAPI_API_KEY is required when SEARCH_PROVIDER=serpapi")
    elif not settings.google_api_key:
        raise ConfigurationError("GOOGLE_API_KEY is required")
    if persist and not settings.database_url:
        raise ConfigurationError("DATABASE_URL is required to persist places")
