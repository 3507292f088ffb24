from typing import Any, Callable, Dict, List

import httpx
import pytest

from yield_feed.config import Settings
from yield_feed.http import HttpClient
from yield_feed.models import PoolRecord, Snapshot

YIELDS_URL = "https://yields.test/pools"

SAMPLE_POOLS: List[Dict[str, Any]] = [
    {"pool": "p1", "chain": "Ethereum", "project": "aave-v3", "symbol": "USDC", "tvlUsd": 1_000_000, "apyBase": 3.0, "apyReward": 1.0},
    {"pool": "p2", "chain": "Arbitrum", "project": "aave-v3", "symbol": "USDT", "tvlUsd": 500_000, "apyBase": 2.5, "apyReward": None},
    {"pool": "p3", "chain": "BSC", "project": "binance-staked-eth", "symbol": "WBETH", "tvlUsd": 9_000_000, "apyBase": 2.6},
    {"pool": "p4", "chain": "Ethereum", "project": "curve-dex", "symbol": "3CRV", "tvlUsd": 2_000_000, "apyReward": 7.5},
    {"pool": "p5", "chain": "Ethereum", "project": None, "symbol": "???", "tvlUsd": 10, "apyBase": 99.0},
    {"pool": "p6", "chain": "Base", "project": "Aerodrome-V1", "symbol": "WETH-USDC", "tvlUsd": 3_000_000, "apyBase": 0.5, "apyReward": 20.0, "apyPct1D": 0.1},
]


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "YIELDS_URL": YIELDS_URL,
        "REFRESH_INTERVAL_SECONDS": 30.0,
        "REFRESH_TIMEOUT_SECONDS": 5.0,
        "HTTP_TIMEOUT_SECONDS": 2.0,
        "HTTP_RETRY_ATTEMPTS": 1,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_http(handler: Callable[[httpx.Request], Any], attempts: int = 1) -> HttpClient:
    return HttpClient(timeout=2.0, attempts=attempts, transport=httpx.MockTransport(handler))


def make_snapshot(*rows: Dict[str, Any]) -> Snapshot:
    return Snapshot(records=tuple(PoolRecord.model_validate(r) for r in rows))


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def sample_snapshot() -> Snapshot:
    return make_snapshot(*SAMPLE_POOLS)
