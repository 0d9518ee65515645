# tests/test_http_client.py
import asyncio
import json
import pytest
from aioresponses import aioresponses, CallbackResult

from infra.http_client import HttpClient, HttpError

BASE = "https://lds.test/v1/swap"


@pytest.mark.asyncio
async def test_get_json(http_client: HttpClient):
    with aioresponses() as m:
        m.get(f"{BASE}/v2/swap/abc", payload={"status": "swap.created"})
        resp = await http_client.get_json(f"{BASE}/v2/swap/abc")
        assert resp == {"status": "swap.created"}


@pytest.mark.asyncio
async def test_repeated_query_params(http_client: HttpClient):
    with aioresponses() as m:
        m.get(f"{BASE}/v2/swap/status?ids=a&ids=b", payload={"a": {"status": "x"}})
        resp = await http_client.get_json(f"{BASE}/v2/swap/status", params=[("ids", "a"), ("ids", "b")])
        assert resp["a"]["status"] == "x"


@pytest.mark.asyncio
async def test_post_json_sends_compact_body(http_client: HttpClient):
    seen = {}

    def _capture(url, **kwargs):
        seen["data"] = kwargs["data"]
        seen["headers"] = kwargs["headers"]
        return CallbackResult(status=200, payload={"data": {}})

    with aioresponses() as m:
        m.post("https://lds.test/v1/claim", callback=_capture)
        await http_client.post_json("https://lds.test/v1/claim", {"query": "q", "variables": {"a": 1}})

    assert seen["data"] == json.dumps({"query": "q", "variables": {"a": 1}}, separators=(",", ":"))
    assert seen["headers"]["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_get_text(http_client: HttpClient):
    with aioresponses() as m:
        m.get("https://esplora.test/api/blocks/tip/height", body="850123")
        assert await http_client.get_text("https://esplora.test/api/blocks/tip/height") == "850123"


@pytest.mark.asyncio
async def test_retry_on_429_and_5xx(http_client: HttpClient, monkeypatch):
    """
    429, then 500, then success. Backoff sleep replaced with a no-op.
    """
    monkeypatch.setattr(http_client, "_sleep_backoff", lambda attempt: asyncio.sleep(0))

    calls = {"n": 0}
    def _flaky(url, **kwargs):
        calls["n"] += 1
        if calls["n"] == 1:
            return CallbackResult(status=429, body="rate limit")
        if calls["n"] == 2:
            return CallbackResult(status=500, body="server error")
        return CallbackResult(status=200, payload={"ok": True})

    with aioresponses() as m:
        m.get(f"{BASE}/v2/swap/abc", callback=_flaky, repeat=True)
        resp = await http_client.get_json(f"{BASE}/v2/swap/abc")
        assert resp["ok"] is True
        assert calls["n"] == 3


@pytest.mark.asyncio
async def test_client_error_is_not_retried(http_client: HttpClient):
    with aioresponses() as m:
        m.get(f"{BASE}/v2/swap/missing", status=404, body="not found")
        with pytest.raises(HttpError) as ei:
            await http_client.get_json(f"{BASE}/v2/swap/missing")
        assert ei.value.status == 404


@pytest.mark.asyncio
async def test_http_error_after_retries_exhausted(http_client: HttpClient, monkeypatch):
    monkeypatch.setattr(http_client, "_sleep_backoff", lambda attempt: asyncio.sleep(0))
    with aioresponses() as m:
        m.get(f"{BASE}/v2/swap/abc", status=503, body="svc unavailable", repeat=True)
        with pytest.raises(HttpError) as ei:
            await http_client.get_json(f"{BASE}/v2/swap/abc")
        assert ei.value.status >= 500


@pytest.mark.asyncio
async def test_invalid_json_raises(http_client: HttpClient):
    with aioresponses() as m:
        m.get(f"{BASE}/v2/swap/abc", body="<html>oops</html>")
        with pytest.raises(HttpError) as ei:
            await http_client.get_json(f"{BASE}/v2/swap/abc")
        assert "invalid json" in str(ei.value)
