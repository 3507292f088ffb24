from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from yield_feed.config import Settings, get_settings
from yield_feed.models import PoolRecord, ProtocolYield
from yield_feed.services.query import named_yields, search_by_project, top_by_yield
from yield_feed.services.store import SnapshotStore

logger = logging.getLogger(__name__)


class YieldService:
    """Read side of the cache: every call works on the snapshot current at call time."""

    def __init__(self, store: SnapshotStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    def get_top(self, count: Optional[int] = None) -> List[ProtocolYield]:
        if count is None:
            count = self.settings.DEFAULT_TOP_COUNT
        if self.settings.MAX_TOP_COUNT is not None:
            count = min(count, self.settings.MAX_TOP_COUNT)
        return top_by_yield(self.store.current(), count)

    def search(self, term: str) -> List[ProtocolYield]:
        return search_by_project(self.store.current(), term)

    def protocols(self, search: Optional[str] = None, count: Optional[int] = None) -> List[ProtocolYield]:
        """A non-blank search term wins over the top-N view."""
        if search is not None and search.strip():
            return self.search(search)
        return self.get_top(count)

    def get_named_apy(self, labels: Optional[Iterable[str]] = None) -> Dict[str, float]:
        names: Mapping[str, str] = self.settings.NAMED_PROTOCOLS
        if labels is not None:
            wanted = set(labels)
            unknown = wanted - set(names)
            if unknown:
                logger.debug(f"Ignoring unknown protocol labels: {sorted(unknown)}")
            names = {label: project for label, project in names.items() if label in wanted}
        return named_yields(self.store.current(), names)

    def pools(self) -> List[PoolRecord]:
        return list(self.store.current().records)
