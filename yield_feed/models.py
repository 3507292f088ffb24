from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PoolRecord(BaseModel):
    """One pool/protocol entry from the yields feed, normalized."""

    # NaN/Infinity would break yield ordering; numeric ids and symbols are kept as text
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        allow_inf_nan=False,
        coerce_numbers_to_str=True,
    )

    pool_id: str = Field(default="", alias="pool", description="Opaque upstream pool identifier")
    chain: str = ""
    project: str = ""
    symbol: str = ""
    tvl_usd: float = Field(default=0.0, alias="tvlUsd")
    base_yield_pct: Optional[float] = Field(default=None, alias="apyBase")
    reward_yield_pct: Optional[float] = Field(default=None, alias="apyReward")

    @field_validator("pool_id", "chain", "project", "symbol", mode="before")
    @classmethod
    def _null_text(cls, v):
        return "" if v is None else v

    @field_validator("tvl_usd", mode="before")
    @classmethod
    def _null_tvl(cls, v):
        return 0.0 if v is None else v

    @property
    def effective_yield_pct(self) -> float:
        # Absent components count as zero
        return (self.base_yield_pct or 0.0) + (self.reward_yield_pct or 0.0)


class Snapshot(BaseModel):
    """Immutable point-in-time list of records, the unit of publication."""

    model_config = ConfigDict(frozen=True)

    records: Tuple[PoolRecord, ...] = ()
    refreshed_at: Optional[int] = Field(default=None, description="Epoch seconds of the refresh that produced it")

    def __len__(self) -> int:
        return len(self.records)


EMPTY_SNAPSHOT = Snapshot()


class ProtocolYield(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    apy: float = Field(..., description="Effective yield in %")


class RefreshResult(BaseModel):
    refreshed: bool
    pools: int
    last_refresh_at: Optional[int]


class ServiceStatus(BaseModel):
    last_refresh_at: Optional[int]
    last_attempt_at: Optional[int]
    pools_tracked: int
    chains_tracked: List[str]
    consecutive_failures: int
    last_error: Optional[str] = None
    named_protocols: Dict[str, str] = Field(default_factory=dict)
