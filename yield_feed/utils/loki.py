from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional

from yield_feed.config import Settings
from yield_feed.http import HttpClient, UpstreamError

logger = logging.getLogger(__name__)


def build_push_payload(level: str, message: str, labels: Dict[str, str], extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    ts_ns = str(int(time.time() * 1_000_000_000))
    return {
        "streams": [
            {
                "stream": {**labels, "level": level.lower()},
                "values": [[ts_ns, json.dumps({"message": message, **(extra or {})})]],
            }
        ]
    }


async def loki_log(
    http: HttpClient,
    settings: Settings,
    level: str,
    message: str,
    extra: Optional[Dict[str, Any]] = None,
) -> bool:
    """Push one log line to Loki. Best-effort: returns False instead of raising."""
    labels = {"service": "yield-feed", "env": settings.ENV}
    payload = build_push_payload(level, message, labels, extra)
    try:
        await http.post(settings.loki_push_url(), json=payload, headers={"Content-Type": "application/json"})
    except UpstreamError as e:
        logger.debug(f"Loki push failed: {e}")
        return False
    return True
