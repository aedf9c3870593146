"""
News Context Fetcher

Scrapes a web search results page for recent headlines about a topic and
flattens them into a text block for prompt injection:

    - [source] title: snippet

One attempt, no retries. Never raises: a failed request degrades to
FETCH_FAILED and an empty result page to NO_NEWS_FOUND, so the analysis can
proceed on the chart alone.
"""

import http.client
import logging
from urllib.error import URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from bs4 import BeautifulSoup

from app.config import settings
from app.errors import ScrapeError

logger = logging.getLogger(__name__)

NO_NEWS_FOUND = "No specific news found for this topic in the selected sources."
FETCH_FAILED = "Could not fetch live news at this time. Proceed with technical analysis only."

# Search backends reject the default urllib user agent
BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120 Safari/537.36",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


def build_search_query(topic: str, allowed_sources=()) -> str:
    """Search query for ``topic``, restricted to ``allowed_sources`` if any."""
    query = f"{topic} latest news"
    sources = [s.strip() for s in allowed_sources if s and s.strip()]
    if not sources:
        return query
    sites = " OR ".join(f"site:{s}" for s in sources)
    return f"{query} ({sites})"


def _fetch_html(url: str) -> str:
    try:
        req = Request(url, headers=BROWSER_HEADERS)
        with urlopen(req, timeout=settings.news_timeout_s) as resp:
            return resp.read().decode("utf-8", errors="replace")
    except (URLError, OSError, ValueError, http.client.HTTPException) as e:
        raise ScrapeError(str(e)) from e


def parse_search_results(html: str, limit: int) -> list[str]:
    """Pull ``- [source] title: snippet`` lines out of a results page, in page order."""
    try:
        soup = BeautifulSoup(html, "html.parser")
    except Exception as e:
        raise ScrapeError(f"Unparseable results page: {e}") from e

    items = []
    for block in soup.select(".result"):
        title_el = block.select_one(".result__title") or block.select_one("a.result__a")
        if title_el is None:
            continue
        title = title_el.get_text(" ", strip=True)
        if not title:
            continue

        snippet_el = block.select_one(".result__snippet")
        snippet = snippet_el.get_text(" ", strip=True) if snippet_el else ""
        source_el = block.select_one(".result__url")
        source = source_el.get_text(" ", strip=True) if source_el else "web"

        items.append(f"- [{source}] {title}: {snippet}")
        if len(items) >= limit:
            break
    return items


def fetch_news(topic: str, allowed_sources=()) -> str:
    """Return a newline-joined block of headlines for ``topic`` or a sentinel."""
    query = build_search_query(topic, allowed_sources)
    url = f"{settings.news_search_url}?{urlencode({'q': query})}"

    try:
        html = _fetch_html(url)
        items = parse_search_results(html, settings.news_max_results)
    except ScrapeError as e:
        logger.warning("News fetch failed for %r: %s", topic, e)
        return FETCH_FAILED

    logger.info("news_fetch", extra={"topic": topic, "results": len(items)})

    if not items:
        return NO_NEWS_FOUND
    return "\n".join(items)
