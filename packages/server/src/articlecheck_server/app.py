"""FastAPI application receiving GitHub webhook deliveries.

One endpoint, ``POST /``. Each delivery is validated (config, rate limit,
signature), parsed, and handed to a freshly built pipeline; nothing but the
rate-limit store is shared between deliveries.
"""

from __future__ import annotations

import asyncio
import importlib.metadata
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from articlecheck_core.config import load_config
from articlecheck_core.events import parse_event
from articlecheck_core.pipeline import PipelineOutcome, Stage, build_pipeline
from articlecheck_core.ratelimit import RateLimiter
from articlecheck_core.utils.background import pending_tasks
from articlecheck_core.validator import Reject, validate_request
from articlecheck_store.base import BaseKVStore

logger = logging.getLogger(__name__)

EVENT_HEADER = "x-github-event"


def build_store(config: dict) -> BaseKVStore:
    """Instantiate the configured key-value store.

    Store selection:
      store: sqlite → SQLiteKVStore (store_path, default .articlecheck.db)
      store: memory → MemoryKVStore (per process)
      store: none   → NoOpKVStore   (rate limiting effectively disabled)
    """
    store_type = config.get("store", "sqlite")

    if store_type == "memory":
        from articlecheck_store.memory import MemoryKVStore

        return MemoryKVStore()

    if store_type == "none":
        from articlecheck_store.noop import NoOpKVStore

        return NoOpKVStore()

    if store_type != "sqlite":
        logger.warning("Unknown store %r; falling back to sqlite", store_type)

    from articlecheck_store.sqlite import SQLiteKVStore

    return SQLiteKVStore(db_path=config.get("store_path", ".articlecheck.db"))


def _version() -> str:
    try:
        return importlib.metadata.version("articlecheck")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def _to_response(outcome: PipelineOutcome) -> Response:
    if isinstance(outcome.body, dict):
        return JSONResponse(outcome.body, status_code=outcome.status_code)
    return PlainTextResponse(outcome.body, status_code=outcome.status_code)


def create_app(config: dict | None = None, store: BaseKVStore | None = None) -> FastAPI:
    config = config if config is not None else load_config()
    store = store if store is not None else build_store(config)
    limiter = RateLimiter(
        store,
        max_requests=config.get("rate_limit_max_requests", 100),
        window_size=config.get("rate_limit_window", 3600),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Let in-flight acknowledgement comments finish before shutting down.
        leftovers = pending_tasks()
        if leftovers:
            logger.info("Waiting for %d background task(s)", len(leftovers))
            await asyncio.gather(*leftovers, return_exceptions=True)
        store.close()

    app = FastAPI(title="articlecheck", version=_version(), lifespan=lifespan)
    app.state.config = config
    app.state.limiter = limiter

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": _version()}

    @app.post("/")
    async def receive_webhook(request: Request):
        raw_body = await request.body()
        logger.debug("Pipeline stage %s", Stage.RECEIVED.value)

        # The rate limiter reads and writes the store, which may block.
        outcome = await asyncio.to_thread(validate_request, request.headers, raw_body, config, limiter)
        if isinstance(outcome, Reject):
            return PlainTextResponse(outcome.reason, status_code=outcome.status_code, headers=outcome.headers)
        logger.debug("Pipeline stage %s", Stage.VALIDATED.value)

        event_type = request.headers.get(EVENT_HEADER)
        try:
            event = parse_event(raw_body, event_type)
            logger.info("Received %s delivery from %s", event_type or "unknown", outcome.client_id)
            pipeline = build_pipeline(config)
            result = await pipeline.handle(event)
        except Exception:
            logger.exception("Error processing webhook")
            return JSONResponse({"error": "Internal server error"}, status_code=500)
        return _to_response(result)

    return app
