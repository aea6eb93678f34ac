import httpx
import pytest

from cineflix.services.tmdb import TMDBClient, TMDBError


def _client(handler, **kwargs) -> TMDBClient:
    kwargs.setdefault("backoff_sec", 0)
    return TMDBClient(api_key="k", transport=httpx.MockTransport(handler), **kwargs)


async def test_retries_on_5xx_then_succeeds():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(502)
        return httpx.Response(200, json={"page": 1, "results": []})

    tmdb = _client(handler, max_retries=3)
    try:
        assert await tmdb.trending() == {"page": 1, "results": []}
    finally:
        await tmdb.close()
    assert len(calls) == 3
    assert calls[0].url.path == "/3/trending/movie/week"


async def test_retries_on_429():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(429)
        return httpx.Response(200, json={"id": 1})

    tmdb = _client(handler)
    try:
        assert await tmdb.details(1) == {"id": 1}
    finally:
        await tmdb.close()
    assert len(calls) == 2


async def test_client_errors_are_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(401, json={"status_message": "Invalid API key"})

    tmdb = _client(handler, max_retries=5)
    try:
        with pytest.raises(TMDBError) as exc:
            await tmdb.popular()
    finally:
        await tmdb.close()
    assert exc.value.status_code == 401
    assert len(calls) == 1


async def test_transport_errors_exhaust_retries():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    tmdb = _client(handler, max_retries=2)
    try:
        with pytest.raises(TMDBError) as exc:
            await tmdb.search("heat")
    finally:
        await tmdb.close()
    assert exc.value.status_code is None
    assert len(calls) == 2


async def test_backoff_doubles(monkeypatch):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr("cineflix.services.tmdb.asyncio.sleep", fake_sleep)

    tmdb = _client(lambda request: httpx.Response(500), max_retries=4, backoff_sec=0.5)
    try:
        with pytest.raises(TMDBError):
            await tmdb.trending()
    finally:
        await tmdb.close()
    assert delays == [0.5, 1.0, 2.0]


async def test_missing_api_key_fails_fast():
    calls = []
    tmdb = TMDBClient(api_key="", transport=httpx.MockTransport(lambda r: calls.append(r)))
    try:
        with pytest.raises(TMDBError):
            await tmdb.trending()
    finally:
        await tmdb.close()
    assert calls == []


async def test_non_json_body_is_an_upstream_error():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, text="<html>cloudflare</html>")

    tmdb = _client(handler)
    try:
        with pytest.raises(TMDBError):
            await tmdb.trending()
    finally:
        await tmdb.close()
    assert len(calls) == 1
