from __future__ import annotations

from typing import Dict, Iterable, List, Mapping

from yield_feed.models import PoolRecord, ProtocolYield, Snapshot

NOT_FOUND_YIELD = 0.0


def _ranked(records: Iterable[PoolRecord]) -> List[ProtocolYield]:
    rows = [ProtocolYield(name=r.project, apy=r.effective_yield_pct) for r in records]
    # list.sort is stable: equal yields keep feed order
    rows.sort(key=lambda row: row.apy, reverse=True)
    return rows


def top_by_yield(snapshot: Snapshot, n: int) -> List[ProtocolYield]:
    """Highest effective yields first, one row per record (no de-duplication)."""
    if n <= 0:
        return []
    return _ranked(r for r in snapshot.records if r.project)[:n]


def search_by_project(snapshot: Snapshot, term: str) -> List[ProtocolYield]:
    """All records whose project contains ``term`` (case-insensitive), best yield first."""
    needle = term.lower()
    return _ranked(r for r in snapshot.records if r.project and needle in r.project.lower())


def lookup_by_exact_project(snapshot: Snapshot, project: str, default: float = NOT_FOUND_YIELD) -> float:
    """Effective yield of the first record whose project equals ``project`` ignoring case."""
    wanted = project.lower()
    for r in snapshot.records:
        if r.project and r.project.lower() == wanted:
            return r.effective_yield_pct
    return default


def named_yields(snapshot: Snapshot, names: Mapping[str, str]) -> Dict[str, float]:
    """Map each display label to the yield of its project (0.0 when missing)."""
    return {label: lookup_by_exact_project(snapshot, project) for label, project in names.items()}
