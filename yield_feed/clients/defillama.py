from __future__ import annotations

import logging
from typing import Any, List, Tuple

from pydantic import ValidationError

from yield_feed.http import HttpClient
from yield_feed.models import PoolRecord

logger = logging.getLogger(__name__)

DEFAULT_YIELDS_URL = "https://yields.llama.fi/pools"


class MalformedPayloadError(ValueError):
    """The yields payload could not be decoded into pool records."""


async def fetch_pools_payload(http: HttpClient, url: str = DEFAULT_YIELDS_URL) -> Any:
    """GET the yields endpoint and decode its JSON body.

    Docs: https://yields.llama.fi/pools
    """
    resp = await http.get(url)
    try:
        return resp.json()
    except ValueError as e:
        raise MalformedPayloadError(f"Response from {url} is not JSON: {e}") from e


def _pool_items(payload: Any) -> List[Any]:
    # Either a bare array of pools, or {"data": [...]}
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return payload["data"]
    if isinstance(payload, dict):
        raise MalformedPayloadError(f"Expected a 'data' array, got keys {sorted(payload)[:10]}")
    raise MalformedPayloadError(f"Expected a JSON array or object, got {type(payload).__name__}")


def parse_pools(payload: Any) -> Tuple[PoolRecord, ...]:
    """Turn a decoded payload into records; all-or-nothing."""
    items = _pool_items(payload)
    records: List[PoolRecord] = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise MalformedPayloadError(f"Pool #{idx} is {type(item).__name__}, not an object")
        try:
            records.append(PoolRecord.model_validate(item))
        except ValidationError as e:
            raise MalformedPayloadError(f"Pool #{idx} is invalid: {e.error_count()} error(s), first: {e.errors()[0]['msg']}") from e
    return tuple(records)


async def fetch_llama_pools(http: HttpClient, url: str = DEFAULT_YIELDS_URL) -> Tuple[PoolRecord, ...]:
    payload = await fetch_pools_payload(http, url)
    pools = parse_pools(payload)
    logger.debug(f"Parsed {len(pools)} pools from {url}")
    return pools
