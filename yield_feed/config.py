from __future__ import annotations

from functools import lru_cache
from typing import Dict, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Runtime
    ENV: str = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8080)

    # Observability
    ENABLE_LOKI: bool = Field(default=False)
    LOKI_URL: str = Field(default="http://localhost:3100")

    # Upstream yields feed
    YIELDS_URL: str = Field(default="https://yields.llama.fi/pools")
    HTTP_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)
    HTTP_RETRY_ATTEMPTS: int = Field(default=1, ge=1)

    # Refresh cadence; one run must finish (or be abandoned) before the next tick
    REFRESH_INTERVAL_SECONDS: float = Field(default=30.0, gt=0)
    REFRESH_TIMEOUT_SECONDS: float = Field(default=20.0, gt=0)

    # Queries
    DEFAULT_TOP_COUNT: int = Field(default=5)
    MAX_TOP_COUNT: Optional[int] = Field(default=None, ge=1, description="Optional cap on top-N size; unset means no cap")
    NAMED_PROTOCOLS: Dict[str, str] = Field(
        default_factory=lambda: {
            "Aave-V3": "aave-v3",
            "Binance Staked ETH": "binance-staked-eth",
        },
        description="Display label -> upstream project name",
    )

    @model_validator(mode="after")
    def _check_refresh_timeout(self) -> "Settings":
        if self.REFRESH_TIMEOUT_SECONDS >= self.REFRESH_INTERVAL_SECONDS:
            raise ValueError(
                "REFRESH_TIMEOUT_SECONDS must be shorter than REFRESH_INTERVAL_SECONDS "
                f"({self.REFRESH_TIMEOUT_SECONDS} >= {self.REFRESH_INTERVAL_SECONDS})"
            )
        return self

    def loki_push_url(self) -> str:
        return f"{self.LOKI_URL.rstrip('/')}/loki/api/v1/push"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
