"""
Tests for the two-pass DuckDuckGo result extractor, run against fixed HTML
fixtures shaped like the html.duckduckgo.com results page.
"""

import pytest

from searchmcp.search import ResultExtractor, SearchRecord, extract_results


def result_block(title, target, snippet=None):
    """Build one DuckDuckGo result container."""
    href = f"//duckduckgo.com/l/?uddg={target}&amp;rut=0123abcd"
    snippet_html = (
        f'<a class="result__snippet" href="{href}">{snippet}</a>' if snippet is not None else ""
    )
    return f"""
<div class="result results_links results_links_deep web-result ">
  <div class="links_main links_deep result__body">
    <h2 class="result__title">
      <a rel="nofollow" class="result__a" href="{href}">{title}</a>
    </h2>
    {snippet_html}
  </div>
</div>
"""


def results_page(*blocks):
    return (
        "<html><body><div id=\"links\" class=\"results\">"
        + "".join(blocks)
        + "</div></body></html>"
    )


@pytest.fixture
def three_results():
    """A page with three well-formed results."""
    return results_page(
        result_block("Rust <b>Programming</b> Language", "https%3A%2F%2Fwww.rust-lang.org%2F",
                     "A language empowering everyone to build reliable &amp; efficient software."),
        result_block("The Rust Book", "https%3A%2F%2Fdoc.rust-lang.org%2Fbook%2F",
                     "An introductory book about Rust."),
        result_block("Rust (video game)", "https%3A%2F%2Fen.wikipedia.org%2Fwiki%2FRust_(video_game)",
                     "Rust is a multiplayer survival game."),
    )


# ============================================================================
# Primary Pass Tests
# ============================================================================

class TestPrimaryPass:
    """Tests for container-based extraction."""

    def test_extracts_records_in_order(self, three_results):
        """Test that records come back cleaned and in page order."""
        records = ResultExtractor().extract(three_results, 10)

        assert records == [
            SearchRecord(
                title="Rust Programming Language",
                url="https://www.rust-lang.org/",
                snippet="A language empowering everyone to build reliable & efficient software.",
            ),
            SearchRecord(
                title="The Rust Book",
                url="https://doc.rust-lang.org/book/",
                snippet="An introductory book about Rust.",
            ),
            SearchRecord(
                title="Rust (video game)",
                url="https://en.wikipedia.org/wiki/Rust_(video_game)",
                snippet="Rust is a multiplayer survival game.",
            ),
        ]

    def test_respects_limit(self, three_results):
        """Test that extraction stops at the limit."""
        records = ResultExtractor().extract(three_results, 2)

        assert len(records) == 2
        assert records[1].title == "The Rust Book"

    @pytest.mark.parametrize("limit", [0, -3])
    def test_non_positive_limit(self, three_results, limit):
        assert ResultExtractor().extract(three_results, limit) == []

    def test_missing_snippet_is_empty(self):
        """Test that a result without a snippet is still emitted."""
        page = results_page(result_block("No snippet here", "https%3A%2F%2Fexample.com%2F"))

        records = extract_results(page, 5)

        assert records == [SearchRecord("No snippet here", "https://example.com/", "")]

    def test_invalid_candidates_are_skipped(self):
        """Test that results without a URL or a title do not count."""
        page = results_page(
            result_block("Empty target", ""),
            result_block("<b></b>", "https%3A%2F%2Fexample.com%2Funtitled"),
            result_block("Good", "https%3A%2F%2Fexample.com%2Fgood", "kept"),
        )

        records = extract_results(page, 5)

        assert [r.url for r in records] == ["https://example.com/good"]

    def test_skipped_candidates_do_not_use_up_limit(self):
        """Test that the limit counts valid records only."""
        page = results_page(
            result_block("", "https%3A%2F%2Fexample.com%2F0"),
            result_block("One", "https%3A%2F%2Fexample.com%2F1"),
            result_block("Two", "https%3A%2F%2Fexample.com%2F2"),
        )

        records = extract_results(page, 2)

        assert [r.title for r in records] == ["One", "Two"]

    def test_attribute_order_does_not_matter(self):
        """Test that href may come before class."""
        page = """
<div class="result web-result"><div class="result__body">
  <a href="https://example.net/direct" class="result__a">Direct link</a>
  <span class="result__snippet extra">Snippet in a span</span>
</div></div>
"""
        records = extract_results(page, 5)

        assert records == [SearchRecord("Direct link", "https://example.net/direct", "Snippet in a span")]


# ============================================================================
# Fallback Pass Tests
# ============================================================================

class TestFallbackPass:
    """Tests for link-only extraction."""

    def test_fallback_when_no_containers(self):
        """Test that bare result links are used when there are no containers."""
        page = """
<table>
  <tr><td><a class="result__url" href="//duckduckgo.com/l/?uddg=https%3A%2F%2Fexample.org%2Fa">example.org/a</a></td></tr>
  <tr><td><a class="result__url" href="https://example.org/b"></a></td></tr>
  <tr><td><a class="result__url" href="">nothing</a></td></tr>
</table>
"""
        records = extract_results(page, 5)

        assert records == [
            SearchRecord("example.org/a", "https://example.org/a", ""),
            SearchRecord("https://example.org/b", "https://example.org/b", ""),
        ]

    def test_fallback_respects_limit(self):
        links = "".join(
            f'<a class="result__url" href="https://example.org/{i}">link {i}</a>' for i in range(5)
        )

        records = extract_results(links, 3)

        assert [r.title for r in records] == ["link 0", "link 1", "link 2"]

    def test_fallback_not_used_when_primary_succeeds(self, three_results):
        """Test that the fallback pass only runs on an empty primary pass."""
        page = three_results + '<a class="result__url" href="https://example.org/extra">extra</a>'

        records = extract_results(page, 10)

        assert "https://example.org/extra" not in [r.url for r in records]


# ============================================================================
# Failure Handling Tests
# ============================================================================

class TestFailureHandling:
    """Tests for tolerant behaviour on bad input."""

    def test_no_markers(self):
        assert extract_results("<html><body>Nothing to see</body></html>", 5) == []

    def test_empty_document(self):
        assert extract_results("", 5) == []

    def test_unexpected_error_degrades_to_empty(self, three_results):
        """Test that an exception inside extraction yields no records."""

        class BrokenExtractor(ResultExtractor):
            def _primary_pass(self, document):
                raise RuntimeError("boom")

        assert BrokenExtractor().extract(three_results, 5) == []

    def test_truncated_markup(self, three_results):
        """Test that a page cut off mid-result still yields the complete ones."""
        truncated = three_results[: three_results.index("The Rust Book") + 5]

        records = extract_results(truncated, 5)

        assert [r.title for r in records] == ["Rust Programming Language"]

    def test_every_record_is_valid(self, three_results):
        for limit in range(1, 5):
            records = extract_results(three_results, limit)
            assert len(records) <= limit
            assert all(r.title and r.url for r in records)
