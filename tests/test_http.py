import httpx
import pytest

from yield_feed.http import UpstreamError

from conftest import make_http


@pytest.mark.asyncio
async def test_single_attempt_by_default():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500)

    http = make_http(handler)
    try:
        with pytest.raises(UpstreamError, match="HTTP 500"):
            await http.get("https://upstream.test/x")
    finally:
        await http.aclose()
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_retries_then_succeeds():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("boom", request=request)
        return httpx.Response(200, json={"ok": True})

    http = make_http(handler, attempts=2)
    try:
        resp = await http.get("https://upstream.test/x")
    finally:
        await http.aclose()
    assert resp.json() == {"ok": True}
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_transport_error_becomes_upstream_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    http = make_http(handler)
    try:
        with pytest.raises(UpstreamError):
            await http.post("https://upstream.test/x", json={"a": 1})
    finally:
        await http.aclose()
