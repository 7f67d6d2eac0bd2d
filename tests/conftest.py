import pytest
from typing import Dict, List, Optional, Union
from unittest.mock import Mock

from article_pipeline.core.crawler.fetcher import HtmlFetcher
from article_pipeline.shared.config import Settings
from article_pipeline.shared.exceptions import ExtractionNetworkError

LISTING_ROOT = "https://blog.example.com/blogs/"

LONG_PARAGRAPH = (
    "Customer support teams are adopting conversational assistants to answer routine "
    "questions around the clock, which frees human agents to focus on complex cases."
)


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with fast retries and no real credentials."""
    return Settings(
        ENVIRONMENT="testing",
        LOG_LEVEL="DEBUG",
        ARTICLE_STORE_BASE_URL="http://store.test",
        LISTING_ROOT_URL=LISTING_ROOT,
        ARTICLE_PATH_SEGMENT="/blogs/",
        BATCH_SIZE=5,
        SEARCH_PROVIDER="fallback",
        SERP_API_KEY=None,
        SOURCE_DOMAIN=None,
        CLOUDSCRAPER_ENABLED=False,
        GENERATION_BACKEND="gemini",
        GOOGLE_AI_API_KEY="test-google-key",
        OPENAI_API_KEY=None,
        RETRY_LIMIT=3,
        RETRY_BASE_DELAY=0.01,
    )


@pytest.fixture
def fake_fetcher():
    """Build a mocked HtmlFetcher serving pages from a URL -> HTML mapping.

    Unknown URLs raise ExtractionNetworkError(404); exception values are raised.
    """
    def build(pages: Dict[str, Union[str, Exception]]) -> Mock:
        fetcher = Mock(spec=HtmlFetcher)

        def fetch(url: str, timeout: Optional[int] = None) -> str:
            page = pages.get(url)
            if page is None:
                raise ExtractionNetworkError(url, status_code=404)
            if isinstance(page, Exception):
                raise page
            return page

        fetcher.fetch.side_effect = fetch
        return fetcher

    return build


def article_html(
    title: str = "How AI Chatbots Improve Customer Support",
    paragraphs: int = 4,
    site_name: str = "Example Blog",
    published: Optional[str] = "2024-03-05T10:00:00+00:00",
) -> str:
    body = "".join(f"<p>{LONG_PARAGRAPH} Paragraph {i}.</p>" for i in range(1, paragraphs + 1))
    time_tag = f'<time datetime="{published}">March 5, 2024</time>' if published else ""
    return f"""
    <html>
      <head><title>{title} - {site_name}</title></head>
      <body>
        <nav><a href="/">Home</a><a href="/blogs/">Blog</a></nav>
        <article>
          <h1 class="entry-title">{title}</h1>
          {time_tag}
          <div class="entry-content">
            {body}
            <script>trackPageView();</script>
            <div class="ads">Buy now</div>
          </div>
        </article>
        <footer>Copyright Example</footer>
      </body>
    </html>
    """


def listing_html(slugs: List[str], pagination: Optional[List[int]] = None) -> str:
    cards = "".join(
        f'<article class="entry-card"><h2 class="entry-title">'
        f'<a href="https://blog.example.com/blogs/{slug}/">{slug}</a></h2></article>'
        for slug in slugs
    )
    nav = ""
    if pagination:
        links = "".join(
            f'<a class="page-numbers" href="https://blog.example.com/blogs/page/{n}/">{n}</a>'
            for n in pagination
        )
        nav = f'<nav class="ct-pagination">{links}</nav>'
    return f"""
    <html><body>
      <div class="entries">{cards}</div>
      {nav}
      <a href="https://blog.example.com/blogs/category/ai/">AI</a>
      <a href="https://blog.example.com/blogs/tag/support/">Support</a>
    </body></html>
    """


@pytest.fixture
def make_article_html():
    return article_html


@pytest.fixture
def make_listing_html():
    return listing_html
