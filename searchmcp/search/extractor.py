"""
Search result extraction from DuckDuckGo HTML.

The extractor scans the results page with a handful of regular expressions
instead of a full HTML parser. It runs in two passes:

1. Primary pass: every result container, taking the first title link and the
   first snippet inside it.
2. Fallback pass: only when the primary pass found nothing, every bare result
   URL link, with an empty snippet.

Candidates that do not yield both a URL and a title are skipped. The markers
are class attributes so another provider's markup can be handled by a
subclass.
"""

import logging
import re
from typing import Iterator, List, Optional, Pattern, Tuple

from .models import SearchRecord
from .sanitizer import clean_text, clean_url


logger = logging.getLogger(__name__)


_HREF = re.compile(r'\bhref="([^"]*)"', re.IGNORECASE)


class ResultExtractor:
    """Two-pass, regex-based extractor for DuckDuckGo result pages."""

    # Result container; the first closing div pair ends the result body
    RESULT_BLOCK: Pattern[str] = re.compile(
        r'<div\s+class="result[^"]*"[^>]*>(.*?)</div>\s*</div>',
        re.IGNORECASE | re.DOTALL,
    )
    TITLE_LINK: Pattern[str] = re.compile(
        r'<a\s([^>]*\bclass="result__a"[^>]*)>(.*?)</a>',
        re.IGNORECASE | re.DOTALL,
    )
    SNIPPET: Pattern[str] = re.compile(
        r'<(a|div|td|span)\s[^>]*\bclass="result__snippet[^"]*"[^>]*>(.*?)</\1>',
        re.IGNORECASE | re.DOTALL,
    )
    URL_LINK: Pattern[str] = re.compile(
        r'<a\s([^>]*\bclass="result__url"[^>]*)>([^<]*)</a>',
        re.IGNORECASE,
    )

    def extract(self, document: str, limit: int) -> List[SearchRecord]:
        """
        Extract up to ``limit`` records from a results page, in page order.

        Args:
            document: Raw HTML of the results page
            limit: Maximum number of records to return

        Returns:
            List of search records; empty if nothing usable was found
        """
        if not document or limit < 1:
            return []

        try:
            records = self._take(self._primary_pass(document), limit)
            if not records:
                logger.debug("Primary extraction found no results, trying fallback")
                records = self._take(self._fallback_pass(document), limit)
        except Exception as e:
            logger.error(f"Error parsing results: {e}", exc_info=True)
            return []

        return records

    @staticmethod
    def _take(candidates: Iterator[SearchRecord], limit: int) -> List[SearchRecord]:
        records: List[SearchRecord] = []
        for record in candidates:
            records.append(record)
            if len(records) >= limit:
                break
        return records

    def _primary_pass(self, document: str) -> Iterator[SearchRecord]:
        for block in self.RESULT_BLOCK.finditer(document):
            body = block.group(1)

            title_match = self.TITLE_LINK.search(body)
            if not title_match:
                continue

            snippet_match = self.SNIPPET.search(body)
            snippet = clean_text(snippet_match.group(2)) if snippet_match else ""

            record = self._make_record(title_match.group(1), title_match.group(2), snippet)
            if record is not None:
                yield record

    def _fallback_pass(self, document: str) -> Iterator[SearchRecord]:
        for link in self.URL_LINK.finditer(document):
            record = self._make_record(link.group(1), link.group(2), "", title_from_url=True)
            if record is not None:
                yield record

    def _make_record(
        self,
        attributes: str,
        title_markup: str,
        snippet: str,
        title_from_url: bool = False,
    ) -> Optional[SearchRecord]:
        url, title = self._link_parts(attributes, title_markup)
        if title_from_url and not title:
            title = url
        if not url or not title:
            return None
        return SearchRecord(title=title, url=url, snippet=snippet)

    @staticmethod
    def _link_parts(attributes: str, title_markup: str) -> Tuple[str, str]:
        href = _HREF.search(attributes)
        if not href:
            return "", ""
        url = clean_url(href.group(1)) or ""
        return url.strip(), clean_text(title_markup)


def extract_results(document: str, limit: int) -> List[SearchRecord]:
    """Extract records with the default DuckDuckGo extractor."""
    return ResultExtractor().extract(document, limit)
