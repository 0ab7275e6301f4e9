"""Cross-reference candidates against the place cache and the permanent corpus."""

import logging
from typing import Iterable, List, Set

from place_curator.models import Candidate, LocationRef

logger = logging.getLogger(__name__)


class Deduplicator:
    """Tracks known place ids for one run.

    Accepted ids are added immediately, so a place surfaced by several keywords
    in the same run is only admitted once.
    """

    def __init__(self, cached_ids: Iterable[str], corpus_ids: Iterable[str]) -> None:
        self.cached_ids: Set[str] = {pid for pid in cached_ids if pid}
        self.corpus_ids: Set[str] = {pid for pid in corpus_ids if pid}

    @classmethod
    def from_store(cls, store, location: LocationRef) -> "Deduplicator":
        cached = store.list_cached_place_ids(location.area, location.city, location.country)
        corpus = store.list_corpus_place_ids(location.city)
        logger.info(
            "Loaded %d cached and %d corpus place ids for %s/%s/%s",
            len(cached),
            len(corpus),
            location.area,
            location.city,
            location.country,
        )
        return cls(cached, corpus)

    def is_novel(self, external_id: str) -> bool:
        return external_id not in self.cached_ids and external_id not in self.corpus_ids

    def accept(self, external_id: str) -> None:
        self.cached_ids.add(external_id)

    def select_novel(self, candidates: Iterable[Candidate]) -> List[Candidate]:
        novel: List[Candidate] = []
        for candidate in candidates:
            if not self.is_novel(candidate.external_id):
                logger.debug("Skipping known place %s (%s)", candidate.name, candidate.external_id)
                continue
            self.accept(candidate.external_id)
            novel.append(candidate)
        return novel
