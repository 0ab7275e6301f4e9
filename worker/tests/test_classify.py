import json

from place_curator.core.errors import AITextError
from place_curator.etl import categories
from place_curator.etl.classify import AIClassifier, RuleBasedClassifier
from place_curator.models import Candidate, DescriptionSource


class FakeAI:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def classify(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


def _candidate(pid, name, *types):
    return Candidate(external_id=pid, name=name, types=tuple(types), primary_type=types[0] if types else None)


CANDIDATES = [
    _candidate("p1", "山頂咖啡", "cafe"),
    _candidate("p2", "城市博物館", "museum"),
    _candidate("p3", "河濱公園", "park"),
]


def test_determine_category_and_subcategory():
    assert categories.determine_category("cafe", ["cafe"]) == categories.FOOD
    assert categories.determine_subcategory("cafe", ["cafe"]) == "咖啡廳"
    assert categories.determine_category(None, ["point_of_interest", "museum"]) == categories.ECO_CULTURE_EDUCATION
    assert categories.determine_category("unknown_type", []) == categories.ATTRACTION
    assert categories.determine_subcategory("unknown_type", []) == "觀光景點"


def test_rule_based_classifier_always_answers():
    results = RuleBasedClassifier().classify(CANDIDATES, "大安區")

    assert [r.category for r in results] == [categories.FOOD, categories.ECO_CULTURE_EDUCATION, categories.ATTRACTION]
    assert all(r.description_source is DescriptionSource.FALLBACK for r in results)
    assert "山頂咖啡" in results[0].description
    assert "大安區" in results[0].description


def test_build_prompt_uses_short_ids():
    prompt = AIClassifier(FakeAI()).build_prompt(CANDIDATES, "大安區")
    assert '"id": "1"' in prompt
    assert '"id": "3"' in prompt
    assert "p1" not in prompt


def test_ai_classifier_uses_ai_items_by_id():
    reply = json.dumps(
        [
            {"id": "2", "name": "城市博物館", "category": "生態文化教育", "subcategory": "博物館", "description": "館藏豐富"},
            {"id": 1, "name": "山頂咖啡", "category": "美食", "subcategory": "咖啡廳", "description": "景觀咖啡"},
            {"id": "3", "name": "河濱公園", "category": "景點", "subcategory": "公園", "description": "散步好去處"},
        ],
        ensure_ascii=False,
    )

    results = AIClassifier(FakeAI(reply=reply)).classify(CANDIDATES, "大安區")

    assert [r.description for r in results] == ["景觀咖啡", "館藏豐富", "散步好去處"]
    assert all(r.description_source is DescriptionSource.AI for r in results)


def test_ai_classifier_partial_coverage_falls_back_per_item():
    reply = json.dumps(
        [
            {"id": "1", "category": "美食", "subcategory": "咖啡廳", "description": "景觀咖啡"},
            {"id": "9", "category": "美食", "description": "unknown id"},
            {"id": "3", "category": "景點", "description": ""},
        ],
        ensure_ascii=False,
    )

    results = AIClassifier(FakeAI(reply=reply)).classify(CANDIDATES, "大安區")

    assert [r.description_source for r in results] == [
        DescriptionSource.AI,
        DescriptionSource.FALLBACK,
        DescriptionSource.FALLBACK,
    ]
    assert len(results) == len(CANDIDATES)


def test_ai_classifier_replaces_invalid_category():
    reply = json.dumps([{"id": "1", "category": "咖啡", "subcategory": "店", "description": "好喝"}], ensure_ascii=False)

    result = AIClassifier(FakeAI(reply=reply)).classify(CANDIDATES[:1], "大安區")[0]

    assert result.category == categories.FOOD
    assert result.subcategory == "咖啡廳"
    assert result.description == "好喝"
    assert result.description_source is DescriptionSource.AI


def test_ai_classifier_outage_uses_fallback():
    results = AIClassifier(FakeAI(error=AITextError("timeout"))).classify(CANDIDATES, "大安區")
    assert all(r.description_source is DescriptionSource.FALLBACK for r in results)

    results = AIClassifier(FakeAI(reply="I cannot help with that")).classify(CANDIDATES, "大安區")
    assert all(r.description_source is DescriptionSource.FALLBACK for r in results)


def test_ai_classifier_empty_chunk_makes_no_call():
    ai = FakeAI(reply="[]")
    assert AIClassifier(ai).classify([], "大安區") == []
    assert ai.prompts == []


def test_ai_classifier_survives_unexpected_ai_failure():
    results = AIClassifier(FakeAI(error=TimeoutError("read timed out"))).classify(CANDIDATES, "大安區")

    assert len(results) == len(CANDIDATES)
    assert all(r.description_source is DescriptionSource.FALLBACK for r in results)


def test_prompt_requests_translations_only_when_enabled():
    with_i18n = AIClassifier(FakeAI()).build_prompt(CANDIDATES, "大安區")
    without = AIClassifier(FakeAI(), with_i18n=False).build_prompt(CANDIDATES, "大安區")

    assert '"ko": "한국어 설명"' in with_i18n
    assert "英文（en）" in with_i18n
    assert '"ko"' not in without
    assert "英文（en）" not in without


def test_ai_classifier_keeps_translations():
    reply = json.dumps(
        [
            {
                "id": "1",
                "category": "美食",
                "subcategory": "咖啡廳",
                "description": "景觀咖啡",
                "en": "A hilltop cafe with a view",
                "ja": "眺めの良いカフェ",
                "ko": " ",
            },
            {"id": "2", "category": "生態文化教育", "subcategory": "博物館", "description": "館藏豐富"},
        ],
        ensure_ascii=False,
    )

    results = AIClassifier(FakeAI(reply=reply)).classify(CANDIDATES, "大安區")

    assert results[0].description_i18n == {"en": "A hilltop cafe with a view", "ja": "眺めの良いカフェ"}
    assert results[1].description_i18n is None
    assert results[2].description_i18n is None

    plain = AIClassifier(FakeAI(reply=reply), with_i18n=False).classify(CANDIDATES, "大安區")
    assert plain[0].description_i18n is None
