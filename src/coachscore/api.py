"""FastAPI application exposing the ingestion handler.

Run with ``coachscore serve`` or ``uvicorn coachscore.api:create_app --factory``.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response

from coachscore import __version__
from coachscore.config import Config, config as default_config
from coachscore.ingest import CORS_HEADERS, handle_ingest
from coachscore.store import JsonlMetricStore, MetricStore, load_ingest_keys

logger = logging.getLogger(__name__)

# Every method reaches the handler so that non-POST requests get its 405 body
ROUTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def default_store(cfg: Config) -> JsonlMetricStore:
    """JSONL store at ``cfg.STORE_PATH`` with the configured ingest keys."""
    keys = load_ingest_keys(cfg.INGEST_KEYS_FILE) if cfg.INGEST_KEYS_FILE else {}
    return JsonlMetricStore(cfg.STORE_PATH, ingest_keys=keys)


def create_app(store: MetricStore | None = None, config: Config | None = None) -> FastAPI:
    """Build the app around *store* (default: the configured JSONL file)."""
    cfg = config or default_config
    metric_store = store if store is not None else default_store(cfg)

    app = FastAPI(
        title="coachscore",
        version=__version__,
        description="Daily biometrics ingestion with adaptive-baseline recovery scoring",
    )

    @app.api_route("/sync-health", methods=ROUTED_METHODS)
    async def sync_health(request: Request) -> Response:
        body = await request.body()
        # Store reads and writes block; keep them off the event loop
        result = await run_in_threadpool(
            handle_ingest,
            request.method,
            dict(request.headers),
            body,
            metric_store,
            api_key=cfg.INGEST_API_KEY or None,
            window_days=cfg.BASELINE_WINDOW_DAYS,
        )
        if request.method == "OPTIONS":
            return Response(content="ok", status_code=result.status, headers=CORS_HEADERS)
        return JSONResponse(result.body, status_code=result.status, headers=CORS_HEADERS)

    logger.info("coachscore app ready (store: %s)", type(metric_store).__name__)
    return app
