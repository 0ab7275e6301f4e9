"""HTTP entrypoint for batch place generation (Cloud Run friendly)."""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict

from flask import Flask, Response, jsonify, request, stream_with_context

from place_curator.core.config import get_settings
from place_curator.core.errors import ConfigurationError
from place_curator.core.progress import QueueSink, format_sse, to_wire_records
from place_curator.jobs.batch_generate import build_seed_request, preview_batch, run_batch_generate
from place_curator.models import SeedRequest

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & executor ----------
app = Flask(__name__)
_executor = ThreadPoolExecutor(max_workers=4)

PREVIEW_KEYWORD_LIMIT = 5
PREVIEW_PAGE_LIMIT = 2
KEEPALIVE_COMMENT = ": keep-alive\n\n"

# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings only, never touches the database."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "worker_port_config": getattr(settings, "worker_port", None),
                "search_provider": getattr(settings, "search_provider", None),
                "revision": os.getenv("K_REVISION", "unknown"),
                "region": os.getenv("X_GOOGLE_RUNTIMEREGION", "unknown"),
            }
        ),
        200,
    )


@app.post("/places/batch-generate")
def batch_generate() -> Any:
    """
    Generate curated places for an area.
    Required JSON fields: city, country
    Optional: keyword, district, category, maxKeywords (1-10), maxPages (1-3),
    enableAIExpansion (bool), saveToDrafts (bool), useSSE (bool)
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    try:
        seed = _seed_from_payload(payload)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    if seed.streaming:
        return _stream_run(seed)
    return _run_sync(run_batch_generate, seed)


@app.post("/places/batch-preview")
def batch_preview() -> Any:
    """Search and filter without classifying or saving; returns the first admitted places."""
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    try:
        seed = _seed_from_payload(
            payload,
            keyword_limit=PREVIEW_KEYWORD_LIMIT,
            page_limit=PREVIEW_PAGE_LIMIT,
        )
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    return _run_sync(preview_batch, seed)


# ---------- Internals ----------


def _pick(payload: Dict[str, Any], *names: str, default: Any = None) -> Any:
    for name in names:
        if name in payload and payload[name] is not None:
            return payload[name]
    return default


def _as_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "1", "yes"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "0", "no"):
        return False
    raise ValueError(f"{field_name} must be a boolean")


def _as_optional_int(value: Any, field_name: str) -> Any:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{field_name} must be numeric") from exc


def _as_optional_text(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise ValueError("district must be a string")
    return str(value)


def _seed_from_payload(payload: Dict[str, Any], **limits: int) -> SeedRequest:
    """Accept camelCase keys with snake_case aliases. Raises ValueError on bad input."""
    missing = [name for name in ("city", "country") if not str(payload.get(name) or "").strip()]
    if missing:
        raise ValueError(f"missing fields: {', '.join(missing)}")

    return build_seed_request(
        keyword=str(_pick(payload, "keyword", default="")),
        city=str(payload["city"]),
        country=str(payload["country"]),
        district=_as_optional_text(_pick(payload, "district")),
        category=_pick(payload, "category"),
        max_keywords=_pick(payload, "maxKeywords", "max_keywords"),
        max_pages_per_keyword=_pick(payload, "maxPages", "max_pages", "maxPagesPerKeyword"),
        enable_ai_expansion=_as_bool(
            _pick(payload, "enableAIExpansion", "enable_ai_expansion", default=True), "enableAIExpansion"
        ),
        save_to_drafts=_as_bool(_pick(payload, "saveToDrafts", "save_to_drafts", default=True), "saveToDrafts"),
        streaming=_as_bool(_pick(payload, "useSSE", "use_sse", default=False), "useSSE"),
        region_id=_as_optional_int(_pick(payload, "regionId", "region_id"), "regionId"),
        district_id=_as_optional_int(_pick(payload, "districtId", "district_id"), "districtId"),
        **limits,
    )


def _run_sync(job, seed: SeedRequest) -> Any:
    logger.info("Running %s for %s/%s", job.__name__, seed.location.city, seed.location.area)
    try:
        summary = job(seed)
    except ConfigurationError as exc:
        return jsonify({"error": str(exc)}), 503
    except Exception as exc:  # noqa: BLE001
        logger.exception("Batch job failed: %s", exc)
        return jsonify({"error": "batch generation failed"}), 500
    return jsonify({"data": summary.to_dict()}), 200


def _stream_run(seed: SeedRequest) -> Response:
    sink = QueueSink()
    cancel_event = threading.Event()
    _executor.submit(_run_job_safe, seed, sink, cancel_event)

    def generate():
        try:
            for event in sink.iter_events():
                if event is None:
                    yield KEEPALIVE_COMMENT
                    continue
                for record in to_wire_records(event):
                    yield format_sse(record)
        finally:
            # a no-op for a finished run; otherwise the run stops before its next chunk
            cancel_event.set()
            sink.close()

    return Response(
        stream_with_context(generate()),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


def _run_job_safe(seed: SeedRequest, sink: QueueSink, cancel_event: threading.Event) -> None:
    try:
        run_batch_generate(seed, sink=sink, cancel_event=cancel_event)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Streaming batch job failed: %s", exc)


def main() -> None:
    """Cloud Run injects PORT; fall back to WORKER_PORT for local runs."""
    env_port = os.getenv("PORT")
    logger.info("[BOOT] ENV PORT=%s", env_port)

    port = int(env_port or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port, threaded=True)


if __name__ == "__main__":
    main()
