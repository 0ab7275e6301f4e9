"""Chunk-level persistence into the place cache."""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Sequence, Tuple

from place_curator.models import CuratedRecord

logger = logging.getLogger(__name__)


@dataclass
class ChunkWriteResult:
    saved: int = 0
    errors: int = 0
    stored: List[Tuple[CuratedRecord, Any]] = field(default_factory=list)


def write_chunk(records: Sequence[CuratedRecord], store) -> ChunkWriteResult:
    """Upsert every record; a failing item is logged and counted, never raised."""
    result = ChunkWriteResult()
    for record in records:
        try:
            stored_id = store.upsert_cached_place(record)
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to save %s (%s): %s", record.candidate.name, record.external_id, exc)
            result.errors += 1
            continue
        result.saved += 1
        result.stored.append((record, stored_id))
    return result
