"""
DuckDuckGo search provider.

Issues the outbound query against DuckDuckGo's HTML endpoint, enforces the
request deadline and hands the page to the extractor and formatter.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from ..errors import InvalidParamsError, SearchTimeoutError, UpstreamFailureError
from .extractor import ResultExtractor
from .formatter import SOURCE_NAME, format_results
from .models import ToolResult


logger = logging.getLogger(__name__)


DEFAULT_MAX_RESULTS = 5
MIN_RESULTS = 1
MAX_RESULTS_LIMIT = 10

DEFAULT_ENDPOINT = "https://html.duckduckgo.com/html/"
DEFAULT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


@dataclass
class SearchProviderConfig:
    """Configuration for the outbound search request."""

    endpoint: str = DEFAULT_ENDPOINT

    # Hard deadline for the whole request, in seconds
    timeout: float = DEFAULT_TIMEOUT

    headers: Dict[str, str] = field(default_factory=lambda: {
        "User-Agent": DEFAULT_USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    })


def coerce_max_results(value: Any) -> int:
    """
    Normalize the ``max_results`` tool argument.

    Missing, non-numeric and zero values fall back to the default; anything
    else is truncated to an integer and clamped to the allowed range.
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_MAX_RESULTS
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_MAX_RESULTS
    if number == 0:
        return DEFAULT_MAX_RESULTS
    return max(MIN_RESULTS, min(number, MAX_RESULTS_LIMIT))


class DuckDuckGoSearchProvider:
    """Web search backed by DuckDuckGo's HTML results page."""

    def __init__(
        self,
        config: Optional[SearchProviderConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        extractor: Optional[ResultExtractor] = None,
    ):
        """
        Initialize the provider.

        Args:
            config: Optional request configuration (uses defaults if not provided)
            client: Optional HTTP client; one is created lazily otherwise
            extractor: Optional result extractor
        """
        self.config = config or SearchProviderConfig()
        self.extractor = extractor or ResultExtractor()
        self._client = client
        self._owns_client = client is None

    @property
    def source(self) -> str:
        return SOURCE_NAME

    async def search_web(self, arguments: Dict[str, Any]) -> ToolResult:
        """Run the ``search_web`` tool with raw tool-call arguments."""
        if not isinstance(arguments, dict):
            raise InvalidParamsError("Invalid params: arguments must be an object")
        return await self.search(arguments.get("query"), arguments.get("max_results"))

    async def search(self, query: Any, max_results: Any = DEFAULT_MAX_RESULTS) -> ToolResult:
        """
        Search DuckDuckGo and format the results.

        Args:
            query: Search query; surrounding whitespace is ignored
            max_results: Requested number of results, clamped to 1..10

        Returns:
            Tool result with markdown text; a "no results" text if nothing matched

        Raises:
            InvalidParamsError: If the query is empty
            SearchTimeoutError: If DuckDuckGo does not answer in time
            UpstreamFailureError: If DuckDuckGo answers with an error or the request fails
        """
        query = str(query or "").strip()
        limit = coerce_max_results(max_results)

        logger.info(f'Searching DuckDuckGo for: "{query}" (max: {limit})')

        if not query:
            raise InvalidParamsError("Invalid params: query is required")

        html = await self._fetch(query)
        records = self.extractor.extract(html, limit)

        logger.info(f"Found {len(records)} results")
        return format_results(records, query, limit)

    async def _fetch(self, query: str) -> str:
        try:
            response = await asyncio.wait_for(
                self._get_client().get(
                    self.config.endpoint,
                    params={"q": query},
                    headers=self.config.headers,
                ),
                timeout=self.config.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.error(f"Search timed out after {self.config.timeout}s")
            raise SearchTimeoutError()
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            logger.error(f"Search failed: {e}")
            raise UpstreamFailureError(str(e) or type(e).__name__)

        if not response.is_success:
            logger.error(f"DuckDuckGo returned status {response.status_code}")
            raise UpstreamFailureError(f"DuckDuckGo returned status {response.status_code}")

        return response.text

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                follow_redirects=True,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
