"""
DuckDuckGo search pipeline.

Usage:
    from searchmcp.search import DuckDuckGoSearchProvider

    provider = DuckDuckGoSearchProvider()
    result = await provider.search("python asyncio", max_results=3)
    print(result.text)
"""

from .extractor import ResultExtractor, extract_results
from .formatter import SOURCE_NAME, format_results
from .models import SearchRecord, ToolResult
from .provider import (
    DEFAULT_MAX_RESULTS,
    MAX_RESULTS_LIMIT,
    DuckDuckGoSearchProvider,
    SearchProviderConfig,
    coerce_max_results,
)
from .sanitizer import clean_text, clean_url


__all__ = [
    "DEFAULT_MAX_RESULTS",
    "MAX_RESULTS_LIMIT",
    "SOURCE_NAME",
    "DuckDuckGoSearchProvider",
    "ResultExtractor",
    "SearchProviderConfig",
    "SearchRecord",
    "ToolResult",
    "clean_text",
    "clean_url",
    "coerce_max_results",
    "extract_results",
    "format_results",
]
