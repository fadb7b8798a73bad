# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

import httpx
import pytest

from factlens_core.errors import PipelineError, PipelineErrorKind
from factlens_core.runtime_config import EngineFetchConfig
from factlens_core.tools.page_fetcher import PageFetcher, extract_main_text

from conftest import mock_http_client

ARTICLE_HTML = """
<html>
  <head><title>Story</title><style>.x{color:red}</style></head>
  <body>
    <nav>Home | World | Sports</nav>
    <div class="sidebar">Most read today</div>
    <article>
      <h1>Council approves new bridge</h1>
      <p>The city council voted 7-2 on Tuesday to fund the bridge.</p>
      <script>trackPageView();</script>
      <p>Construction is expected to begin next spring.</p>
    </article>
    <div class="comments">First!</div>
    <footer>Copyright 2024</footer>
  </body>
</html>
"""


def test_extracts_article_text_without_boilerplate():
    text = extract_main_text(ARTICLE_HTML)
    assert text.startswith("Council approves new bridge")
    assert "voted 7-2" in text
    assert "begin next spring" in text
    for noise in ("Home | World", "Most read", "trackPageView", "First!", "Copyright", "color:red"):
        assert noise not in text


def test_longest_content_container_wins():
    html = """
    <body>
      <main><p>Short teaser.</p></main>
      <div class="article-body"><p>The full story, which is considerably longer than the teaser above.</p></div>
    </body>
    """
    assert extract_main_text(html) == "The full story, which is considerably longer than the teaser above."


def test_falls_back_to_body_text():
    html = "<html><body><div><p>Just   a\n paragraph.</p></div><footer>foot</footer></body></html>"
    assert extract_main_text(html) == "Just a paragraph."


def test_empty_page_extracts_nothing():
    assert extract_main_text("<html><body><script>x()</script></body></html>") == ""


@pytest.mark.asyncio
async def test_fetch_sends_browser_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["ua"] = request.headers.get("user-agent")
        seen["accept"] = request.headers.get("accept")
        return httpx.Response(200, text=ARTICLE_HTML)

    fetcher = PageFetcher(EngineFetchConfig(user_agent="TestBrowser/1.0"), client=mock_http_client(handler))
    text = await fetcher.fetch_text("https://news.example.com/bridge")
    assert "voted 7-2" in text
    assert seen["ua"] == "TestBrowser/1.0"
    assert "text/html" in seen["accept"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,kind",
    [
        (403, PipelineErrorKind.FETCH_FORBIDDEN),
        (404, PipelineErrorKind.FETCH_NOT_FOUND),
        (429, PipelineErrorKind.FETCH_RATE_LIMITED),
        (500, PipelineErrorKind.FETCH_FAILED),
        (410, PipelineErrorKind.FETCH_FAILED),
    ],
)
async def test_http_status_is_classified(status, kind):
    fetcher = PageFetcher(EngineFetchConfig(), client=mock_http_client(lambda r: httpx.Response(status)))
    with pytest.raises(PipelineError) as exc_info:
        await fetcher.fetch_html("https://news.example.com/x")
    assert exc_info.value.kind == kind
    assert exc_info.value.upstream_status == status


@pytest.mark.asyncio
async def test_timeout_is_classified():
    def handler(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    fetcher = PageFetcher(EngineFetchConfig(), client=mock_http_client(handler))
    with pytest.raises(PipelineError) as exc_info:
        await fetcher.fetch_html("https://slow.example.com/")
    assert exc_info.value.kind == PipelineErrorKind.FETCH_TIMEOUT
    assert exc_info.value.status_code == 504


@pytest.mark.asyncio
async def test_connection_error_is_fetch_failed():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    fetcher = PageFetcher(EngineFetchConfig(), client=mock_http_client(handler))
    with pytest.raises(PipelineError) as exc_info:
        await fetcher.fetch_html("https://down.example.com/")
    assert exc_info.value.kind == PipelineErrorKind.FETCH_FAILED
