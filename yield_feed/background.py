from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional, Set

from yield_feed.clients.defillama import MalformedPayloadError, fetch_llama_pools
from yield_feed.config import Settings, get_settings
from yield_feed.http import HttpClient
from yield_feed.models import Snapshot
from yield_feed.services.store import SnapshotStore

logger = logging.getLogger(__name__)


class BackgroundRefresher:
    """Polls the yields feed on a fixed rate and publishes snapshots into the store.

    A run either publishes a complete new snapshot or leaves the store alone.
    Failures are logged and counted, never raised to the caller.
    """

    def __init__(self, store: SnapshotStore, http: Optional[HttpClient] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.store = store
        self._owns_http = http is None
        self.http = http or HttpClient(
            timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            attempts=self.settings.HTTP_RETRY_ATTEMPTS,
        )
        self.last_refresh_at: int | None = None
        self.last_attempt_at: int | None = None
        self.last_error: str | None = None
        self.consecutive_failures = 0
        self._task: asyncio.Task | None = None
        self._inflight: Set[asyncio.Task] = set()
        self._stopping = asyncio.Event()

    async def run_once(self) -> bool:
        """Fetch, parse and publish once. Returns False if the previous snapshot was kept."""
        self.last_attempt_at = int(time.time())
        timeout = self.settings.REFRESH_TIMEOUT_SECONDS
        try:
            pools = await asyncio.wait_for(fetch_llama_pools(self.http, self.settings.YIELDS_URL), timeout=timeout)
        except MalformedPayloadError as e:
            logger.warning(f"Rejected malformed yields payload, keeping previous snapshot: {e}")
            self._failed(e)
            return False
        except asyncio.TimeoutError as e:
            logger.error(f"Refresh timed out after {timeout}s, keeping previous snapshot")
            self._failed(e)
            return False
        except Exception as e:
            logger.exception(f"Refresh failed, keeping previous snapshot: {e}")
            self._failed(e)
            return False

        now = int(time.time())
        self.store.replace(Snapshot(records=pools, refreshed_at=now))
        self.last_refresh_at = now
        self.last_error = None
        self.consecutive_failures = 0
        logger.info(f"✅ Refreshed {len(pools)} pools from {self.settings.YIELDS_URL}")
        return True

    def _failed(self, exc: BaseException) -> None:
        self.consecutive_failures += 1
        self.last_error = f"{type(exc).__name__}: {exc}"

    async def start(self) -> None:
        # Populate the store before the service reports ready, then start ticking
        await self.run_once()
        logger.info(f"Yield feed ready – pools: {len(self.store.current())}")
        if self._task is None:
            self._stopping.clear()
            self._task = asyncio.create_task(self._run_loop())

    async def stop(self) -> None:
        self._stopping.set()
        if self._task:
            await self._task
            self._task = None
        # In-flight runs are abandoned, not awaited
        pending = list(self._inflight)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        if self._owns_http:
            await self.http.aclose()

    def _spawn_run(self) -> None:
        task = asyncio.create_task(self.run_once())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _run_loop(self) -> None:
        interval = self.settings.REFRESH_INTERVAL_SECONDS
        loop = asyncio.get_running_loop()
        logger.info(f"Background refresher started (interval={interval}s, timeout={self.settings.REFRESH_TIMEOUT_SECONDS}s)")
        next_tick = loop.time() + interval
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=max(0.0, next_tick - loop.time()))
                break
            except asyncio.TimeoutError:
                pass
            # Fixed rate: a slow run never pushes back the next tick; missed ticks are skipped
            while next_tick <= loop.time():
                next_tick += interval
            self._spawn_run()
        logger.info("Background refresher stopped")
