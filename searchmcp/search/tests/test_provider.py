"""
Tests for the DuckDuckGo search provider and result formatting.

Outbound requests go through an httpx mock transport, so no network access
is needed.
"""

import asyncio

import httpx
import pytest

from searchmcp.errors import (
    SEARCH_ERROR,
    InvalidParamsError,
    SearchTimeoutError,
    UpstreamFailureError,
)
from searchmcp.search import (
    DuckDuckGoSearchProvider,
    SearchProviderConfig,
    SearchRecord,
    coerce_max_results,
    format_results,
)


RESULTS_PAGE = """
<html><body>
<div class="result results_links web-result ">
  <div class="links_main result__body">
    <h2 class="result__title"><a rel="nofollow" class="result__a" href="//duckduckgo.com/l/?uddg=https%3A%2F%2Fwww.python.org%2F&amp;rut=1">Welcome to <b>Python</b>.org</a></h2>
    <a class="result__snippet" href="#">The official home of the Python Programming Language.</a>
  </div>
</div>
<div class="result results_links web-result ">
  <div class="links_main result__body">
    <h2 class="result__title"><a rel="nofollow" class="result__a" href="https://docs.python.org/3/">Python 3 Documentation</a></h2>
    <a class="result__snippet" href="#">Tutorial &amp; library reference.</a>
  </div>
</div>
<div class="result results_links web-result ">
  <div class="links_main result__body">
    <h2 class="result__title"><a rel="nofollow" class="result__a" href="https://pypi.org/">PyPI</a></h2>
  </div>
</div>
</body></html>
"""


def make_provider(handler, timeout=5.0):
    """Create a provider whose HTTP client is backed by ``handler``."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return DuckDuckGoSearchProvider(SearchProviderConfig(timeout=timeout), client=client)


# ============================================================================
# Search Tests
# ============================================================================

class TestSearch:
    """Tests for DuckDuckGoSearchProvider.search."""

    @pytest.mark.asyncio
    async def test_successful_search(self):
        """Test the outbound request and the formatted result."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, text=RESULTS_PAGE)

        provider = make_provider(handler)
        result = await provider.search("python", 2)

        assert len(seen) == 1
        assert seen[0].method == "GET"
        assert seen[0].url.params["q"] == "python"
        assert "Chrome" in seen[0].headers["User-Agent"]

        assert result.meta == {
            "query": "python",
            "resultsCount": 2,
            "maxResults": 2,
            "source": "DuckDuckGo",
        }
        assert '# Search Results for "python"' in result.text
        assert "## 1. Welcome to Python.org" in result.text
        assert "**URL:** https://www.python.org/" in result.text
        assert "Tutorial & library reference." in result.text
        assert "PyPI" not in result.text

    @pytest.mark.asyncio
    async def test_query_is_trimmed(self):
        seen = []

        def handler(request):
            seen.append(request.url.params["q"])
            return httpx.Response(200, text=RESULTS_PAGE)

        provider = make_provider(handler)
        result = await provider.search("  rust lang  ")

        assert seen == ["rust lang"]
        assert result.meta["query"] == "rust lang"
        assert result.meta["maxResults"] == 5
        assert result.meta["resultsCount"] == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", None])
    async def test_empty_query_rejected(self, query):
        """Test that an empty query fails before any request is made."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, text=RESULTS_PAGE)

        provider = make_provider(handler)

        with pytest.raises(InvalidParamsError) as exc_info:
            await provider.search(query)

        assert exc_info.value.code == -32602
        assert calls == []

    @pytest.mark.asyncio
    async def test_concurrent_identical_queries_each_fetch(self):
        """Test that identical in-flight queries are not coalesced or cached."""
        queries = []

        async def handler(request):
            queries.append(request.url.params["q"])
            await asyncio.sleep(0.01)
            return httpx.Response(200, text=RESULTS_PAGE)

        provider = make_provider(handler)

        first, second = await asyncio.gather(
            provider.search("python", 2),
            provider.search("python", 2),
        )

        assert queries == ["python", "python"]
        assert first == second

    @pytest.mark.asyncio
    async def test_no_results(self):
        """Test that a page without results is a successful "no results" answer."""
        provider = make_provider(lambda request: httpx.Response(200, text="<html><body></body></html>"))

        result = await provider.search("qwzxv")

        assert result.text == 'No results found for "qwzxv". Try a different search query.'
        assert result.meta is None

    @pytest.mark.asyncio
    async def test_search_web_arguments(self):
        """Test the raw tool-argument entry point."""
        provider = make_provider(lambda request: httpx.Response(200, text=RESULTS_PAGE))

        result = await provider.search_web({"query": "python", "max_results": "1"})

        assert result.meta["resultsCount"] == 1

    @pytest.mark.asyncio
    async def test_search_web_rejects_non_object(self):
        provider = make_provider(lambda request: httpx.Response(200, text=RESULTS_PAGE))

        with pytest.raises(InvalidParamsError):
            await provider.search_web(["python"])


# ============================================================================
# Failure Tests
# ============================================================================

class TestSearchFailures:
    """Tests for upstream failures and timeouts."""

    @pytest.mark.asyncio
    async def test_error_status(self):
        """Test that a non-success status is an upstream failure."""
        provider = make_provider(lambda request: httpx.Response(503, text="unavailable"))

        with pytest.raises(UpstreamFailureError) as exc_info:
            await provider.search("python")

        assert exc_info.value.message == "Search failed: DuckDuckGo returned status 503"
        assert exc_info.value.code == SEARCH_ERROR

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = make_provider(handler)

        with pytest.raises(UpstreamFailureError) as exc_info:
            await provider.search("python")

        assert exc_info.value.reason == "connection refused"

    @pytest.mark.asyncio
    async def test_transport_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        provider = make_provider(handler)

        with pytest.raises(SearchTimeoutError) as exc_info:
            await provider.search("python")

        assert exc_info.value.code == SEARCH_ERROR
        assert exc_info.value.message == "Search timeout: DuckDuckGo took too long to respond"

    @pytest.mark.asyncio
    async def test_deadline_exceeded(self):
        """Test that a slow upstream is cut off at the configured deadline."""
        async def handler(request):
            await asyncio.sleep(1)
            return httpx.Response(200, text=RESULTS_PAGE)

        provider = make_provider(handler, timeout=0.05)

        with pytest.raises(SearchTimeoutError):
            await provider.search("python")

    @pytest.mark.asyncio
    async def test_aclose_keeps_injected_client(self):
        """Test that the provider only closes clients it created."""
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        provider = DuckDuckGoSearchProvider(client=client)

        await provider.aclose()

        assert not client.is_closed
        await client.aclose()


# ============================================================================
# Argument Coercion Tests
# ============================================================================

class TestCoerceMaxResults:
    """Tests for max_results normalization."""

    @pytest.mark.parametrize("value,expected", [
        (None, 5),
        (3, 3),
        (1, 1),
        (10, 10),
        (11, 10),
        (50, 10),
        (0, 5),
        (-4, 1),
        (2.9, 2),
        ("7", 7),
        ("abc", 5),
        (True, 5),
        ([], 5),
        (float("inf"), 5),
    ])
    def test_coercion(self, value, expected):
        assert coerce_max_results(value) == expected


# ============================================================================
# Formatter Tests
# ============================================================================

class TestFormatResults:
    """Tests for markdown rendering."""

    def test_exact_layout(self):
        """Test the full rendered text, with and without a snippet."""
        records = [
            SearchRecord("First", "https://a.example/", "About a."),
            SearchRecord("Second", "https://b.example/"),
        ]

        result = format_results(records, "demo", 5)

        assert result.text == (
            '# Search Results for "demo"\n\n'
            "Found 2 result(s):\n\n"
            "## 1. First\n\n"
            "**URL:** https://a.example/\n\n"
            "About a.\n\n"
            "---\n\n"
            "## 2. Second\n\n"
            "**URL:** https://b.example/\n\n"
            "---\n\n"
        )
        assert result.meta["resultsCount"] == 2
        assert result.meta["maxResults"] == 5

    def test_wire_shape(self):
        """Test the CallToolResult payload."""
        payload = format_results([SearchRecord("T", "https://t.example/")], "q", 1).to_dict()

        assert payload["content"] == [{"type": "text", "text": payload["content"][0]["text"]}]
        assert payload["_meta"]["source"] == "DuckDuckGo"

    def test_no_results_has_no_meta(self):
        payload = format_results([], "nothing", 5).to_dict()

        assert payload == {
            "content": [{
                "type": "text",
                "text": 'No results found for "nothing". Try a different search query.',
            }],
        }
