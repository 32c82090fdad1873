"""Feed adapter: cache-then-fetch, and every failure turned into a FeedResult."""

from typing import Any

import httpx
import pytest

from trendboard.feeds import CacheStatus, FeedAdapter, FeedSource, FeedStatus, MemoryCache
from trendboard.feeds.fallback import GeneratedFallback, StaticFallback
from trendboard.feeds.http import HttpClient
from trendboard.models import FeedItem

URL = "https://api.test/items"
PATH = "/items"


def _normalize(raw: Any, params: dict[str, Any]) -> list[FeedItem]:
    return [FeedItem(id=str(r["id"]), title=r["title"], url=f"https://x.test/{r['id']}") for r in raw]


def make_adapter(upstream, clock, ttl_ms: int = 60_000, keyed: bool = False, **source_kw) -> FeedAdapter:
    http = HttpClient(transport=upstream.transport)

    async def fetch_raw(params: dict[str, Any]) -> Any:
        return await http.get_json(URL, params=params, keyed=keyed)

    source = FeedSource(
        name="items",
        fetch_raw=fetch_raw,
        normalize=source_kw.pop("normalize", _normalize),
        ttl_ms=ttl_ms,
        item_model=FeedItem,
        **source_kw,
    )
    return FeedAdapter(source, MemoryCache(), clock=clock)


ROWS = [{"id": 1, "title": "one"}, {"id": 2, "title": "two"}]


@pytest.mark.asyncio()
async def test_second_fetch_within_ttl_hits_cache(upstream, clock):
    upstream.json(PATH, ROWS)
    adapter = make_adapter(upstream, clock, ttl_ms=60_000)

    first = await adapter.fetch({"q": "x"})
    assert first.status is FeedStatus.OK
    assert first.cache is CacheStatus.MISS
    assert [i.title for i in first.items] == ["one", "two"]

    clock.advance(59_999)
    second = await adapter.fetch({"q": "x"})
    assert second.cache is CacheStatus.HIT
    assert [i.id for i in second.items] == ["1", "2"]
    assert upstream.calls(PATH) == 1

    clock.advance(1)
    third = await adapter.fetch({"q": "x"})
    assert third.cache is CacheStatus.MISS
    assert upstream.calls(PATH) == 2


@pytest.mark.asyncio()
async def test_ttl_override_per_call(upstream, clock):
    upstream.json(PATH, ROWS)
    adapter = make_adapter(upstream, clock, ttl_ms=60_000)
    await adapter.fetch()
    clock.advance(10)
    result = await adapter.fetch(ttl_ms=5)
    assert result.cache is CacheStatus.MISS
    assert upstream.calls(PATH) == 2


@pytest.mark.asyncio()
async def test_zero_ttl_always_fetches_and_never_writes(upstream, clock):
    upstream.json(PATH, ROWS)
    adapter = make_adapter(upstream, clock, ttl_ms=0)
    a = await adapter.fetch()
    b = await adapter.fetch()
    assert a.cache is CacheStatus.BYPASS and b.cache is CacheStatus.BYPASS
    assert upstream.calls(PATH) == 2
    assert len(adapter.cache) == 0


@pytest.mark.asyncio()
async def test_different_params_use_different_entries(upstream, clock):
    upstream.json(PATH, ROWS)
    adapter = make_adapter(upstream, clock)
    await adapter.fetch({"q": "a"})
    await adapter.fetch({"q": "b"})
    await adapter.fetch({"q": "a"})
    assert upstream.calls(PATH) == 2


@pytest.mark.asyncio()
async def test_upstream_error_without_fallback_is_empty(upstream, clock):
    upstream.json(PATH, {"message": "boom"}, status=500)
    adapter = make_adapter(upstream, clock)
    result = await adapter.fetch()
    assert result.status is FeedStatus.EMPTY
    assert result.items == []
    assert "500" in (result.message or "")
    assert len(adapter.cache) == 0


@pytest.mark.asyncio()
async def test_upstream_error_serves_fallback(upstream, clock):
    upstream.json(PATH, {}, status=503)
    sample = [FeedItem(id="s", title="sample", url="https://x.test/s")]
    adapter = make_adapter(upstream, clock, fallback=StaticFallback(sample))
    result = await adapter.fetch()
    assert result.status is FeedStatus.FALLBACK
    assert [i.id for i in result.items] == ["s"]


@pytest.mark.asyncio()
async def test_stale_entry_not_served_by_default(upstream, clock):
    upstream.json(PATH, ROWS)
    adapter = make_adapter(upstream, clock, ttl_ms=1_000)
    await adapter.fetch()
    clock.advance(5_000)
    upstream.json(PATH, {}, status=502)
    result = await adapter.fetch()
    assert result.status is FeedStatus.EMPTY
    assert result.items == []


@pytest.mark.asyncio()
async def test_stale_entry_served_when_opted_in(upstream, clock):
    upstream.json(PATH, ROWS)
    adapter = make_adapter(upstream, clock, ttl_ms=1_000, serve_stale_on_error=True)
    first = await adapter.fetch()
    clock.advance(5_000)
    upstream.json(PATH, {}, status=502)
    result = await adapter.fetch()
    assert result.status is FeedStatus.STALE
    assert result.fetched_at_millis == first.fetched_at_millis
    assert len(result.items) == 2


@pytest.mark.asyncio()
async def test_missing_credentials_without_fallback_needs_configuration(upstream, clock):
    upstream.json(PATH, ROWS)
    adapter = make_adapter(upstream, clock, has_credentials=lambda: False)
    result = await adapter.fetch()
    assert result.status is FeedStatus.NEEDS_CONFIGURATION
    assert result.needs_configuration
    assert upstream.calls() == 0


@pytest.mark.asyncio()
async def test_missing_credentials_with_fallback_serves_sample(upstream, clock):
    adapter = make_adapter(
        upstream,
        clock,
        has_credentials=lambda: False,
        fallback=GeneratedFallback(
            lambda p: [FeedItem(id=p.get("book", "?"), title="mock", url="https://x.test/m")]
        ),
    )
    result = await adapter.fetch({"book": "fanduel"})
    assert result.status is FeedStatus.FALLBACK
    assert result.items[0].id == "fanduel"
    assert upstream.calls() == 0


@pytest.mark.asyncio()
async def test_rejected_key_needs_configuration(upstream, clock):
    upstream.json(PATH, {"message": "invalid key"}, status=401)
    adapter = make_adapter(upstream, clock, keyed=True)
    result = await adapter.fetch()
    assert result.status is FeedStatus.NEEDS_CONFIGURATION


@pytest.mark.asyncio()
async def test_unkeyed_401_is_plain_failure(upstream, clock):
    upstream.json(PATH, {}, status=401)
    adapter = make_adapter(upstream, clock, keyed=False)
    result = await adapter.fetch()
    assert result.status is FeedStatus.EMPTY


@pytest.mark.asyncio()
async def test_rate_limit_is_distinct(upstream, clock):
    upstream.json(PATH, {}, status=429)
    sample = [FeedItem(id="s", title="sample", url="https://x.test/s")]
    adapter = make_adapter(upstream, clock, fallback=StaticFallback(sample))
    result = await adapter.fetch()
    assert result.status is FeedStatus.RATE_LIMITED
    assert result.rate_limited
    assert result.items == []


@pytest.mark.asyncio()
async def test_timeout_degrades(upstream, clock):
    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    upstream.handler(PATH, slow)
    adapter = make_adapter(upstream, clock)
    result = await adapter.fetch()
    assert result.status is FeedStatus.EMPTY
    assert "timeout" in (result.message or "")


@pytest.mark.asyncio()
async def test_unparseable_json_degrades(upstream, clock):
    upstream.text(PATH, "<html>not json</html>")
    adapter = make_adapter(upstream, clock)
    result = await adapter.fetch()
    assert result.status is FeedStatus.EMPTY


@pytest.mark.asyncio()
async def test_normalizer_exception_never_escapes(upstream, clock):
    upstream.json(PATH, ROWS)

    def broken(raw: Any, params: dict[str, Any]) -> list[Any]:
        raise KeyError("shape changed")

    adapter = make_adapter(upstream, clock, normalize=broken)
    result = await adapter.fetch()
    assert result.status is FeedStatus.EMPTY
    assert len(adapter.cache) == 0


@pytest.mark.asyncio()
async def test_limit_applies_before_caching(upstream, clock):
    upstream.json(PATH, [{"id": i, "title": str(i)} for i in range(20)])
    adapter = make_adapter(upstream, clock, limit=12)
    result = await adapter.fetch()
    assert len(result.items) == 12
    cached = await adapter.fetch()
    assert cached.cache is CacheStatus.HIT
    assert len(cached.items) == 12


@pytest.mark.asyncio()
async def test_clear_forces_refetch(upstream, clock):
    upstream.json(PATH, ROWS)
    adapter = make_adapter(upstream, clock)
    await adapter.fetch()
    assert adapter.clear() == 1
    result = await adapter.fetch()
    assert result.cache is CacheStatus.MISS
    assert upstream.calls(PATH) == 2


def test_as_dict_dumps_models():
    from trendboard.feeds.result import FeedResult

    result = FeedResult(items=[FeedItem(id="1", title="t", url="https://x.test")], fetched_at_millis=5)
    d = result.as_dict()
    assert d["status"] == "ok"
    assert d["cache"] == "MISS"
    assert d["items"][0]["title"] == "t"
