import pytest
from pydantic import ValidationError

from conftest import make_settings


def test_defaults():
    s = make_settings()
    assert s.DEFAULT_TOP_COUNT == 5
    assert s.NAMED_PROTOCOLS == {"Aave-V3": "aave-v3", "Binance Staked ETH": "binance-staked-eth"}
    assert s.HTTP_RETRY_ATTEMPTS == 1


def test_refresh_timeout_must_be_shorter_than_interval():
    with pytest.raises(ValidationError):
        make_settings(REFRESH_INTERVAL_SECONDS=10, REFRESH_TIMEOUT_SECONDS=10)


def test_interval_must_be_positive():
    with pytest.raises(ValidationError):
        make_settings(REFRESH_INTERVAL_SECONDS=0, REFRESH_TIMEOUT_SECONDS=0.5)


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("REFRESH_INTERVAL_SECONDS", "60")
    monkeypatch.setenv("NAMED_PROTOCOLS", '{"Lido": "lido"}')
    from yield_feed.config import Settings

    s = Settings(_env_file=None)
    assert s.REFRESH_INTERVAL_SECONDS == 60
    assert s.NAMED_PROTOCOLS == {"Lido": "lido"}


def test_loki_push_url_strips_trailing_slash():
    assert make_settings(LOKI_URL="http://loki:3100/").loki_push_url() == "http://loki:3100/loki/api/v1/push"
