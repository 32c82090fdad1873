"""HTTP client failure mapping."""

import httpx
import pytest

from trendboard.feeds.errors import FeedTimeout, MalformedPayload, NeedsConfiguration, RateLimited, UpstreamError
from trendboard.feeds.http import HttpClient

URL = "https://api.test/thing"


def client_for(upstream) -> HttpClient:
    return HttpClient(timeout=2.0, transport=upstream.transport)


@pytest.mark.asyncio()
async def test_params_cleaned_and_user_agent_sent(upstream):
    upstream.json("/thing", {"ok": True})
    http = client_for(upstream)
    assert await http.get_json(URL, params={"active": True, "closed": False, "tag": None, "limit": 5}) == {"ok": True}
    request = upstream.requests[0]
    assert dict(request.url.params) == {"active": "true", "closed": "false", "limit": "5"}
    assert "trendboard" in request.headers["user-agent"]
    await http.aclose()


@pytest.mark.asyncio()
@pytest.mark.parametrize(
    "status,keyed,exc",
    [
        (429, False, RateLimited),
        (401, True, NeedsConfiguration),
        (403, True, NeedsConfiguration),
        (401, False, UpstreamError),
        (404, False, UpstreamError),
        (500, True, UpstreamError),
    ],
)
async def test_status_mapping(upstream, status, keyed, exc):
    upstream.json("/thing", {"message": "nope"}, status=status)
    async with client_for(upstream) as http:
        with pytest.raises(exc) as info:
            await http.get(URL, keyed=keyed)
    assert info.value.status == status


@pytest.mark.asyncio()
async def test_timeout_mapping(upstream):
    def slow(request):
        raise httpx.ConnectTimeout("slow", request=request)

    upstream.handler("/thing", slow)
    async with client_for(upstream) as http:
        with pytest.raises(FeedTimeout):
            await http.get(URL)


@pytest.mark.asyncio()
async def test_network_error_mapping(upstream):
    def down(request):
        raise httpx.ConnectError("refused", request=request)

    upstream.handler("/thing", down)
    async with client_for(upstream) as http:
        with pytest.raises(UpstreamError) as info:
            await http.get(URL)
    assert info.value.status is None


@pytest.mark.asyncio()
async def test_bad_json_is_malformed(upstream):
    upstream.text("/thing", "{not json")
    async with client_for(upstream) as http:
        with pytest.raises(MalformedPayload):
            await http.get_json(URL)
        assert await http.get_text(URL) == "{not json"
