"""Ordered selector cascades for listing pages and article pages.

Every cascade is a tuple of pure functions that take a parsed document and
return a value or None. `first_match` walks a cascade in order, so the most
specific markup is always tried before the generic fallbacks.
"""

import copy
import re
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence, TypeVar

from bs4 import BeautifulSoup, Tag
from dateutil import parser as date_parser

T = TypeVar("T")
Selector = Callable[[BeautifulSoup], Optional[T]]

PAGE_NUMBER_RE = re.compile(r"(?:[?&]page[=/]|/page/)(\d+)", re.IGNORECASE)
LAST_PAGE_LINK_RE = re.compile(
    r"page[/=](\d+)[^\"'>]*[\"'][^>]*>\s*(?:last|end)", re.IGNORECASE
)
TITLE_SUFFIX_RE = re.compile(r"\s+[-|–—]\s+[^-|–—]*$")

BLOCK_TAGS = (
    "p", "div", "section", "article", "li", "ul", "ol", "blockquote", "pre",
    "h1", "h2", "h3", "h4", "h5", "h6", "table", "tr", "figure", "figcaption",
)
PARAGRAPH_TAGS = ("p", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "pre")

# Private-use characters marking structure until whitespace is collapsed
LINE_MARK = "\ue000"
PARAGRAPH_MARK = "\ue001"

NOISE_SELECTORS = (
    "script", "style", "nav", "footer", "aside", "noscript", "iframe", "form",
    ".advertisement", ".ads", ".ad",
)
BODY_FALLBACK_NOISE = ("nav", "footer", "header", "aside", "script", "style", "noscript")

EXCLUDED_LINK_MARKERS = ("?page=", "&page=", "/page/", "/category/", "/tag/", "/author/", "#")


def first_match(
    selectors: Iterable[Callable[[BeautifulSoup], Optional[T]]],
    soup: BeautifulSoup,
    accept: Callable[[T], bool] = bool,
) -> Optional[T]:
    """Return the first selector result that passes `accept`."""
    for selector in selectors:
        value = selector(soup)
        if value is not None and accept(value):
            return value
    return None


# Text rendering

def normalize_text(text: str) -> str:
    """Collapse whitespace while keeping paragraph breaks."""
    text = re.sub(r"[^\S\n]+", " ", text)
    text = "\n".join(line.strip() for line in text.split("\n"))
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def inline_text(element: Tag) -> str:
    """Single-line text for headings and titles."""
    return " ".join(element.get_text(" ").split())


def render_text(element: Tag, noise: Sequence[str] = NOISE_SELECTORS) -> str:
    """Render an element to paragraph-preserving plain text.

    Source whitespace is collapsed like a browser would, then block elements
    are turned into line or paragraph breaks. Works on a copy so the parsed
    document stays usable for later selectors.
    """
    element = copy.copy(element)

    for selector in noise:
        for node in element.select(selector):
            node.decompose()

    for br in element.find_all("br"):
        br.replace_with(LINE_MARK)

    for block in element.find_all(BLOCK_TAGS):
        mark = PARAGRAPH_MARK if block.name in PARAGRAPH_TAGS else LINE_MARK
        block.insert_before(mark)
        block.insert_after(mark)

    text = re.sub(r"\s+", " ", element.get_text())
    text = re.sub(f"[\\s{LINE_MARK}]*{PARAGRAPH_MARK}[\\s{LINE_MARK}{PARAGRAPH_MARK}]*", "\n\n", text)
    text = re.sub(f"\\s*{LINE_MARK}[\\s{LINE_MARK}]*", "\n", text)
    return normalize_text(text)


# Article title

def _css_title(css: str) -> Selector:
    def select(soup: BeautifulSoup) -> Optional[str]:
        node = soup.select_one(css)
        if node is None:
            return None
        text = inline_text(node)
        return text or None
    select.__name__ = f"title[{css}]"
    return select


def page_title(soup: BeautifulSoup) -> Optional[str]:
    """Document <title> without a trailing " - Site Name" suffix."""
    if soup.title is None:
        return None
    text = inline_text(soup.title)
    stripped = TITLE_SUFFIX_RE.sub("", text).strip()
    return stripped or text or None


TITLE_SELECTORS = (
    _css_title("h1.entry-title"),
    _css_title("h1.post-title"),
    _css_title("article h1"),
    _css_title("h1"),
    _css_title(".entry-title"),
    _css_title(".post-title"),
    page_title,
)


# Article body

def _css_body(css: str) -> Selector:
    def select(soup: BeautifulSoup) -> Optional[str]:
        node = soup.select_one(css)
        if node is None:
            return None
        return render_text(node) or None
    select.__name__ = f"body[{css}]"
    return select


def whole_body(soup: BeautifulSoup) -> Optional[str]:
    """Last resort: the full <body> minus page chrome."""
    body = soup.body or soup
    return render_text(body, noise=BODY_FALLBACK_NOISE) or None


BODY_SELECTORS = (
    _css_body("article .entry-content"),
    _css_body("article .post-content"),
    _css_body("article .article-content"),
    _css_body(".entry-content"),
    _css_body(".post-content"),
    _css_body(".article-content"),
    _css_body("article"),
    _css_body("main article"),
    _css_body("main .content"),
    _css_body(".content"),
    _css_body("main"),
)


# Publish date

def parse_date(value: Optional[str]) -> Optional[datetime]:
    if not value or not value.strip():
        return None
    try:
        return date_parser.parse(value.strip())
    except (ValueError, OverflowError):
        return None


def time_datetime(soup: BeautifulSoup) -> Optional[datetime]:
    node = soup.select_one("time[datetime]")
    return parse_date(node.get("datetime")) if node else None


def meta_published_time(soup: BeautifulSoup) -> Optional[datetime]:
    node = soup.select_one('meta[property="article:published_time"]')
    return parse_date(node.get("content")) if node else None


def _css_date_text(css: str) -> Selector:
    def select(soup: BeautifulSoup) -> Optional[datetime]:
        node = soup.select_one(css)
        return parse_date(node.get_text(" ")) if node else None
    select.__name__ = f"date[{css}]"
    return select


DATE_SELECTORS = (
    time_datetime,
    meta_published_time,
    _css_date_text(".published-date"),
    _css_date_text(".post-date"),
)


# Listing pagination

def page_number_from_href(href: Optional[str]) -> Optional[int]:
    if not href:
        return None
    match = PAGE_NUMBER_RE.search(href)
    return int(match.group(1)) if match else None


def _css_max_page(css: str) -> Selector:
    def select(soup: BeautifulSoup) -> Optional[int]:
        numbers = []
        for node in soup.select(css):
            number = page_number_from_href(node.get("href"))
            if number is not None:
                numbers.append(number)
            text = node.get_text(strip=True)
            if text.isdigit():
                numbers.append(int(text))
        return max(numbers) if numbers else None
    select.__name__ = f"pages[{css}]"
    return select


PAGINATION_SELECTORS = (
    _css_max_page(".ct-pagination a"),
    _css_max_page(".ct-pagination .page-numbers"),
    _css_max_page('a[href*="page"]'),
    _css_max_page(".pagination a"),
    _css_max_page(".page-numbers a"),
    _css_max_page(".elementor-pagination a"),
    _css_max_page(".elementor-posts-navigation a"),
    _css_max_page('nav a[href*="page"]'),
)


def max_page_from_markup(html: str) -> Optional[int]:
    """Regex scan of raw markup for page numbers, used when no selector matched."""
    numbers = [int(n) for n in PAGE_NUMBER_RE.findall(html)]
    numbers.extend(int(n) for n in LAST_PAGE_LINK_RE.findall(html))
    return max(numbers) if numbers else None


# Listing article links

def is_listing_chrome(href: str) -> bool:
    """True for pagination, taxonomy, author and anchor links."""
    return any(marker in href for marker in EXCLUDED_LINK_MARKERS)


def _css_links(css: str) -> Selector:
    def select(soup: BeautifulSoup) -> Optional[List[str]]:
        hrefs = []
        for node in soup.select(css):
            href = (node.get("href") or "").strip()
            if href and not is_listing_chrome(href):
                hrefs.append(href)
        return hrefs or None
    select.__name__ = f"links[{css}]"
    return select


def link_selectors(path_segment: str) -> tuple:
    """Link cascade for listings whose articles live under `path_segment`."""
    under = f'a[href*="{path_segment}"]'
    return (
        _css_links(".entries article.entry-card .entry-title a"),
        _css_links(".entries .entry-card .entry-title a"),
        _css_links(f".entries article {under}"),
        _css_links(f".entries .entry-card {under}"),
        _css_links(f"article.entry-card {under}"),
        _css_links(f".entry-title {under}"),
        _css_links(f"article {under}"),
        _css_links(f".post {under}"),
        _css_links(under),
    )


def links_from_markup(html: str, path_segment: str) -> List[str]:
    """Regex scan of raw href attributes, used when no link selector matched."""
    pattern = re.compile(
        r"href=[\"']([^\"']*" + re.escape(path_segment) + r"[^\"']*)[\"']",
        re.IGNORECASE,
    )
    return [href for href in pattern.findall(html) if not is_listing_chrome(href)]
