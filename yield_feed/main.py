from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, Query, Request

from yield_feed.background import BackgroundRefresher
from yield_feed.config import Settings, get_settings
from yield_feed.http import HttpClient
from yield_feed.models import PoolRecord, ProtocolYield, RefreshResult, ServiceStatus
from yield_feed.services.store import SnapshotStore
from yield_feed.services.yields import YieldService
from yield_feed.utils.logging import setup_logging
from yield_feed.utils.loki import loki_log

app = FastAPI(title="DeFi Yield Feed", version="1.0.0")

logger = logging.getLogger(__name__)


def _http_client(settings: Settings) -> HttpClient:
    return HttpClient(timeout=settings.HTTP_TIMEOUT_SECONDS, attempts=settings.HTTP_RETRY_ATTEMPTS)


def _service() -> YieldService:
    return app.state.yields


@app.middleware("http")
async def _loki_logger(request: Request, call_next):
    response = await call_next(request)
    settings = getattr(app.state, "settings", None)
    if settings is not None and settings.ENABLE_LOKI:
        await loki_log(
            app.state.http,
            settings,
            "INFO",
            "request",
            extra={
                "path": str(request.url.path),
                "method": request.method,
                "status": response.status_code,
                "client_ip": request.client.host if request.client else None,
            },
        )
    return response


@app.on_event("startup")
async def startup_event() -> None:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    app.state.settings = settings
    app.state.http = _http_client(settings)
    app.state.store = SnapshotStore()
    app.state.yields = YieldService(app.state.store, settings)
    app.state.refresher = BackgroundRefresher(app.state.store, app.state.http, settings)
    # Blocks until the first refresh attempt finishes (or times out)
    await app.state.refresher.start()


@app.on_event("shutdown")
async def shutdown_event() -> None:
    if getattr(app.state, "refresher", None):
        await app.state.refresher.stop()
    if getattr(app.state, "http", None):
        await app.state.http.aclose()


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/protocols", response_model=List[ProtocolYield])
async def get_protocols(
    search: Optional[str] = None,
    count: Optional[int] = Query(None, description="Top-N size when no search term is given"),
):
    return _service().protocols(search=search, count=count)


@app.get("/api/apy", response_model=Dict[str, float])
async def get_named_apy(name: Optional[List[str]] = Query(None, description="Restrict to these display labels")):
    return _service().get_named_apy(name)


@app.get("/api/pools", response_model=List[PoolRecord], response_model_by_alias=True)
async def get_pools():
    return _service().pools()


@app.get("/api/status", response_model=ServiceStatus)
async def get_status():
    refresher: BackgroundRefresher = app.state.refresher
    snapshot = app.state.store.current()
    return ServiceStatus(
        last_refresh_at=refresher.last_refresh_at,
        last_attempt_at=refresher.last_attempt_at,
        pools_tracked=len(snapshot.records),
        chains_tracked=sorted({p.chain for p in snapshot.records if p.chain}),
        consecutive_failures=refresher.consecutive_failures,
        last_error=refresher.last_error,
        named_protocols=app.state.settings.NAMED_PROTOCOLS,
    )


@app.post("/api/refresh", response_model=RefreshResult)
async def post_refresh():
    refresher: BackgroundRefresher = app.state.refresher
    refreshed = await refresher.run_once()
    return RefreshResult(
        refreshed=refreshed,
        pools=len(app.state.store.current().records),
        last_refresh_at=refresher.last_refresh_at,
    )
