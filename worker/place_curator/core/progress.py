"""Stage-sequenced progress reporting for a pipeline run.

The pipeline talks to an event sink (anything with ``emit(event)``); the
``ProgressReporter`` in front of it enforces the stage state machine:

    expanding_keywords -> searching_google -> filtering_results
        -> (generating_descriptions -> saving_places)* -> complete

with ``error`` reachable from any non-terminal stage. Nothing is emitted after
``complete`` or ``error``.
"""

import json
import logging
import queue
import threading
from enum import Enum
from typing import Dict, Iterator, List, Optional

from place_curator.core.errors import StreamDisconnect
from place_curator.models import ProgressEvent

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    EXPANDING_KEYWORDS = "expanding_keywords"
    SEARCHING_GOOGLE = "searching_google"
    FILTERING_RESULTS = "filtering_results"
    GENERATING_DESCRIPTIONS = "generating_descriptions"
    SAVING_PLACES = "saving_places"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_STAGES = frozenset({Stage.COMPLETE, Stage.ERROR})

_TRANSITIONS: Dict[Optional[Stage], frozenset] = {
    None: frozenset({Stage.EXPANDING_KEYWORDS}),
    Stage.EXPANDING_KEYWORDS: frozenset({Stage.EXPANDING_KEYWORDS, Stage.SEARCHING_GOOGLE}),
    Stage.SEARCHING_GOOGLE: frozenset({Stage.SEARCHING_GOOGLE, Stage.FILTERING_RESULTS}),
    # complete straight from filtering when nothing is left to classify
    Stage.FILTERING_RESULTS: frozenset({Stage.FILTERING_RESULTS, Stage.GENERATING_DESCRIPTIONS, Stage.COMPLETE}),
    Stage.GENERATING_DESCRIPTIONS: frozenset({Stage.SAVING_PLACES}),
    Stage.SAVING_PLACES: frozenset({Stage.GENERATING_DESCRIPTIONS, Stage.COMPLETE}),
}


class NullSink:
    def emit(self, event: ProgressEvent) -> None:
        pass


class ListSink:
    """Collects events in memory."""

    def __init__(self) -> None:
        self.events: List[ProgressEvent] = []

    def emit(self, event: ProgressEvent) -> None:
        self.events.append(event)

    @property
    def stages(self) -> List[str]:
        return [event.stage for event in self.events]


class LoggingSink:
    def emit(self, event: ProgressEvent) -> None:
        if event.stage == Stage.ERROR.value:
            logger.error("[%s] %s", event.stage, event.error)
        else:
            logger.info("[%s %d/%d] %s", event.stage, event.current, event.total, event.message)


class QueueSink:
    """Hands events from the pipeline thread to a streaming response.

    ``close()`` marks the consumer as gone; later emits raise StreamDisconnect.
    """

    def __init__(self, poll_timeout: float = 15.0) -> None:
        self._queue: "queue.Queue[ProgressEvent]" = queue.Queue()
        self._closed = threading.Event()
        self.poll_timeout = poll_timeout

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def emit(self, event: ProgressEvent) -> None:
        if self._closed.is_set():
            raise StreamDisconnect("progress stream consumer has disconnected")
        self._queue.put(event)

    def close(self) -> None:
        self._closed.set()

    def iter_events(self) -> Iterator[Optional[ProgressEvent]]:
        """Yield events until a terminal one; yields None on idle polls so callers can keep alive."""
        while not self._closed.is_set():
            try:
                event = self._queue.get(timeout=self.poll_timeout)
            except queue.Empty:
                yield None
                continue
            yield event
            if event.stage in (Stage.COMPLETE.value, Stage.ERROR.value):
                return


class ProgressReporter:
    def __init__(self, sink=None) -> None:
        self.sink = sink or NullSink()
        self.stage: Optional[Stage] = None
        self.detached = False
        self._last_current: Dict[Stage, int] = {}
        self._totals: Dict[Stage, int] = {}

    @property
    def finished(self) -> bool:
        return self.stage in TERMINAL_STAGES

    def advance(self, stage: Stage, current: int, total: int, message: str = "") -> None:
        if self.finished:
            logger.debug("Dropping %s event after terminal stage %s", stage.value, self.stage.value)
            return
        if stage not in _TRANSITIONS[self.stage] or stage in TERMINAL_STAGES:
            raise ValueError(f"invalid progress transition {self._name(self.stage)} -> {stage.value}")

        previous_total = self._totals.get(stage)
        if previous_total is not None and previous_total != total:
            raise ValueError(f"total for {stage.value} changed from {previous_total} to {total}")
        previous_current = self._last_current.get(stage)
        if previous_current is not None and current < previous_current:
            raise ValueError(f"current for {stage.value} went backwards ({previous_current} -> {current})")

        self._totals[stage] = total
        self._last_current[stage] = current
        self.stage = stage
        self._send(ProgressEvent(stage=stage.value, current=current, total=total, message=message))

    def complete(self, *, saved: int, skipped: int, total: int, errors: int = 0, message: str = "") -> None:
        if self.finished:
            return
        if Stage.COMPLETE not in _TRANSITIONS[self.stage]:
            raise ValueError(f"invalid progress transition {self._name(self.stage)} -> complete")
        self.stage = Stage.COMPLETE
        self._send(
            ProgressEvent(
                stage=Stage.COMPLETE.value,
                current=saved,
                total=total,
                message=message,
                saved=saved,
                skipped=skipped,
                errors=errors,
            )
        )

    def fail(self, error: str) -> None:
        if self.finished:
            return
        self.stage = Stage.ERROR
        self._send(ProgressEvent(stage=Stage.ERROR.value, current=0, total=0, message=error, error=error))

    def _send(self, event: ProgressEvent) -> None:
        if self.detached:
            return
        try:
            self.sink.emit(event)
        except StreamDisconnect:
            logger.warning("Progress consumer disconnected at stage %s; continuing without events", event.stage)
            self.detached = True

    @staticmethod
    def _name(stage: Optional[Stage]) -> str:
        return stage.value if stage else "start"


def to_wire_records(event: ProgressEvent) -> List[dict]:
    """Map one event onto the JSON records sent to the client."""
    if event.stage == Stage.ERROR.value:
        return [{"stage": "error", "error": event.error or event.message}]
    record = {"stage": event.stage, "current": event.current, "total": event.total, "message": event.message}
    if event.stage != Stage.COMPLETE.value:
        return [record]
    done = {
        "stage": "done",
        "success": True,
        "saved": event.saved,
        "skipped": event.skipped,
        "total": event.total,
        "errors": event.errors,
    }
    return [record, done]


def format_sse(record: dict) -> str:
    return f"data: {json.dumps(record, ensure_ascii=False)}\n\n"
