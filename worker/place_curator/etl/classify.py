"""Classifier strategies: rule-based (always answers) and AI-backed with rule-based fallback.

Both expose ``classify(candidates, area) -> List[Classification]`` returning one
classification per input candidate, in input order.
"""

import json
import logging
from typing import Dict, List, Optional, Sequence

from place_curator.core.errors import ClassificationMismatch
from place_curator.etl.categories import (
    EIGHT_CATEGORIES,
    determine_category,
    determine_subcategory,
    fallback_description,
)
from place_curator.models import Candidate, Classification, DescriptionSource
from place_curator.vendors.ai_text import extract_json_array

logger = logging.getLogger(__name__)

_CLASSIFY_PROMPT = """你是旅遊分類專家。請為以下 {count} 個位於{area}的地點：
1. 寫一段 30-50 字的吸引人描述
2. 判斷屬於哪個種類（只能從八大種類選擇）
3. 判斷適合的子分類名稱（中文，2-6 字）
{i18n_rule}
【八大種類】
{categories}

【地點列表】
{places}

【回傳格式】
[
  {example}
]

每一筆都必須原樣帶回輸入的 id。只回傳 JSON Array，不要其他文字。"""

_I18N_RULE = "4. 另外寫英文（en）、日文（ja）、韓文（ko）版本的描述，風格符合當地文化習慣\n"

_EXAMPLE_ITEM = {"id": "1", "name": "地點名稱", "category": "美食", "subcategory": "咖啡廳", "description": "描述文字"}
_EXAMPLE_I18N = {"en": "English description", "ja": "日本語説明", "ko": "한국어 설명"}

I18N_LANGUAGES = ("en", "ja", "ko")


class RuleBasedClassifier:
    """Static taxonomy mapping plus a templated description."""

    def classify_one(self, candidate: Candidate, area: str) -> Classification:
        category = determine_category(candidate.primary_type, candidate.types)
        subcategory = determine_subcategory(candidate.primary_type, candidate.types)
        return Classification(
            category=category,
            subcategory=subcategory,
            description=fallback_description(candidate.name, category, subcategory, area),
            description_source=DescriptionSource.FALLBACK,
        )

    def classify(self, candidates: Sequence[Candidate], area: str) -> List[Classification]:
        return [self.classify_one(candidate, area) for candidate in candidates]


class AIClassifier:
    """One batched AI call per chunk; anything the reply does not cover goes to the fallback."""

    def __init__(
        self,
        ai_client,
        fallback: Optional[RuleBasedClassifier] = None,
        with_i18n: bool = True,
    ) -> None:
        self.ai_client = ai_client
        self.fallback = fallback or RuleBasedClassifier()
        self.with_i18n = with_i18n

    def build_prompt(self, candidates: Sequence[Candidate], area: str) -> str:
        places = [
            {
                "id": str(index),
                "name": candidate.name,
                "address": candidate.address,
                "types": ", ".join(candidate.types),
            }
            for index, candidate in enumerate(candidates, start=1)
        ]
        example = dict(_EXAMPLE_ITEM, **_EXAMPLE_I18N) if self.with_i18n else _EXAMPLE_ITEM
        return _CLASSIFY_PROMPT.format(
            count=len(candidates),
            area=area,
            i18n_rule=_I18N_RULE if self.with_i18n else "",
            categories="、".join(EIGHT_CATEGORIES),
            places=json.dumps(places, ensure_ascii=False, indent=2),
            example=json.dumps(example, ensure_ascii=False),
        )

    def classify(self, candidates: Sequence[Candidate], area: str) -> List[Classification]:
        if not candidates:
            return []

        try:
            reply = self.ai_client.classify(self.build_prompt(candidates, area))
            ai_results = self._correlate(reply, candidates)
        except Exception as exc:  # noqa: BLE001
            logger.warning("AI classification failed for %d places, using fallback: %s", len(candidates), exc)
            ai_results = {}

        classifications: List[Classification] = []
        for index, candidate in enumerate(candidates, start=1):
            item = ai_results.get(str(index))
            classification = self._from_ai_item(item, candidate) if item else None
            if classification is None:
                classification = self.fallback.classify_one(candidate, area)
            classifications.append(classification)

        ai_count = sum(1 for c in classifications if c.description_source is DescriptionSource.AI)
        logger.info("Classified %d places: ai=%d fallback=%d", len(candidates), ai_count, len(candidates) - ai_count)
        return classifications

    def _correlate(self, reply: str, candidates: Sequence[Candidate]) -> Dict[str, dict]:
        try:
            items = extract_json_array(reply)
        except ValueError as exc:
            raise ClassificationMismatch(str(exc)) from exc

        correlated: Dict[str, dict] = {}
        for item in items:
            if not isinstance(item, dict):
                continue
            correlation_id = str(item.get("id", "")).strip()
            if not correlation_id.isdigit() or not 1 <= int(correlation_id) <= len(candidates):
                logger.debug("Dropping AI item with unknown id: %s", item)
                continue
            correlated.setdefault(correlation_id, item)

        missing = len(candidates) - len(correlated)
        if missing:
            logger.info("AI reply did not cover %d of %d places", missing, len(candidates))
        return correlated

    def _from_ai_item(self, item: dict, candidate: Candidate) -> Optional[Classification]:
        description = str(item.get("description") or "").strip()
        if not description:
            return None

        category = str(item.get("category") or "").strip()
        subcategory = str(item.get("subcategory") or "").strip()
        if category not in EIGHT_CATEGORIES:
            category = determine_category(candidate.primary_type, candidate.types)
            subcategory = determine_subcategory(candidate.primary_type, candidate.types)
        elif not subcategory:
            subcategory = determine_subcategory(candidate.primary_type, candidate.types)

        return Classification(
            category=category,
            subcategory=subcategory,
            description=description,
            description_source=DescriptionSource.AI,
            description_i18n=self._i18n_from_item(item) if self.with_i18n else None,
        )

    @staticmethod
    def _i18n_from_item(item: dict) -> Optional[Dict[str, str]]:
        translations = {}
        for language in I18N_LANGUAGES:
            text = str(item.get(language) or "").strip()
            if text:
                translations[language] = text
        return translations or None
