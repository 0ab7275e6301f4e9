"""Seed keyword expansion via the AI text service, with a non-AI fallback."""

import logging
from typing import List, Optional

from place_curator.models import LocationRef
from place_curator.vendors.ai_text import extract_json_array

logger = logging.getLogger(__name__)

MAX_KEYWORD_LENGTH = 40

_EXPAND_PROMPT = """請根據以下條件，生成 {count} 組精準的 Google 地圖搜尋關鍵字。

地區：{city}{district}
基礎關鍵字：{base}

要求：
1. 每個關鍵字都要具體、可搜尋到實際店家或景點
2. 涵蓋不同面向（例如：類型、特色、時段）
3. 不要加上地區名稱

只回傳 JSON 字串陣列，例如 ["小吃", "甜點", "咖啡廳"]。"""


def build_base_keyword(seed_keyword: str, category: str) -> str:
    seed = (seed_keyword or "").strip()
    if seed:
        return f"{category}-{seed}"
    return category


def _normalize(keyword: str) -> str:
    return " ".join(keyword.split()).casefold()


def dedupe_keywords(keywords, limit: int) -> List[str]:
    seen = set()
    result: List[str] = []
    for keyword in keywords:
        if not isinstance(keyword, str):
            continue
        cleaned = " ".join(keyword.split())
        if not cleaned or len(cleaned) > MAX_KEYWORD_LENGTH:
            continue
        key = _normalize(cleaned)
        if key in seen:
            continue
        seen.add(key)
        result.append(cleaned)
        if len(result) >= limit:
            break
    return result


def expand_keywords(
    *,
    seed_keyword: str,
    category: str,
    location: LocationRef,
    max_keywords: int,
    ai_client=None,
    enabled: bool = True,
) -> List[str]:
    """Return up to ``max_keywords`` search terms. Falls back to ``[category]``; never raises."""
    fallback = [category]
    if not enabled:
        return fallback
    if ai_client is None:
        logger.info("AI client not configured; skipping keyword expansion")
        return fallback

    base = build_base_keyword(seed_keyword, category)
    prompt = _EXPAND_PROMPT.format(
        count=max_keywords,
        city=location.city,
        district=location.district or "",
        base=base,
    )
    try:
        reply = ai_client.expand(prompt)
        keywords = dedupe_keywords(extract_json_array(reply), max_keywords)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Keyword expansion failed for %r, using category label: %s", base, exc)
        return fallback

    if not keywords:
        logger.warning("Keyword expansion returned nothing usable for %r", base)
        return fallback
    logger.info("Expanded %r into %d keywords: %s", base, len(keywords), keywords)
    return keywords
