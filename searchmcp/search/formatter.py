"""Markdown rendering of search records into a tool result."""

from typing import Sequence

from .models import SearchRecord, ToolResult


SOURCE_NAME = "DuckDuckGo"


def format_results(records: Sequence[SearchRecord], query: str, max_results: int) -> ToolResult:
    """
    Render search records as a single markdown text block.

    Args:
        records: Extracted records, in relevance order
        query: The query as searched
        max_results: Effective result limit for the search

    Returns:
        Tool result with the markdown text and search metadata
    """
    if not records:
        return ToolResult.from_text(
            f'No results found for "{query}". Try a different search query.'
        )

    parts = [
        f'# Search Results for "{query}"\n\n',
        f"Found {len(records)} result(s):\n\n",
    ]
    for index, record in enumerate(records, 1):
        parts.append(f"## {index}. {record.title}\n\n")
        parts.append(f"**URL:** {record.url}\n\n")
        if record.snippet:
            parts.append(f"{record.snippet}\n\n")
        parts.append("---\n\n")

    return ToolResult.from_text(
        "".join(parts),
        meta={
            "query": query,
            "resultsCount": len(records),
            "maxResults": max_results,
            "source": SOURCE_NAME,
        },
    )
