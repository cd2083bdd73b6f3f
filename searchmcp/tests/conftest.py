"""
Shared fixtures for the server tests.

The search provider talks to an httpx mock transport instead of DuckDuckGo,
so the whole HTTP stack can be exercised in-process.
"""

import httpx
import pytest

from searchmcp import Config, DuckDuckGoSearchTransport, create_app
from searchmcp.search import DuckDuckGoSearchProvider


def results_page(count):
    """Build a DuckDuckGo results page with ``count`` results."""
    blocks = []
    for i in range(1, count + 1):
        blocks.append(f"""
<div class="result results_links web-result ">
  <div class="links_main result__body">
    <h2 class="result__title">
      <a rel="nofollow" class="result__a" href="//duckduckgo.com/l/?uddg=https%3A%2F%2Fexample.com%2F{i}&amp;rut=x">Result <b>{i}</b></a>
    </h2>
    <a class="result__snippet" href="#">Snippet number {i}</a>
  </div>
</div>
""")
    return "<html><body>" + "".join(blocks) + "</body></html>"


class FakeDuckDuckGo:
    """Stands in for html.duckduckgo.com and records the queries it receives."""

    def __init__(self, status_code=200, result_count=3):
        self.status_code = status_code
        self.result_count = result_count
        self.queries = []

    def __call__(self, request):
        self.queries.append(request.url.params.get("q"))
        if self.status_code != 200:
            return httpx.Response(self.status_code, text="error")
        return httpx.Response(200, text=results_page(self.result_count))


@pytest.fixture
def duckduckgo():
    """The fake search engine backing the app."""
    return FakeDuckDuckGo()


@pytest.fixture
def make_app():
    """Factory for an app whose provider is backed by a fake search engine."""
    def factory(engine=None, **engine_options):
        engine = engine or FakeDuckDuckGo(**engine_options)
        client = httpx.AsyncClient(transport=httpx.MockTransport(engine))
        transport = DuckDuckGoSearchTransport(DuckDuckGoSearchProvider(client=client))
        return create_app(Config(environ={}), transport=transport)
    return factory


@pytest.fixture
def app(make_app, duckduckgo):
    return make_app(duckduckgo)
