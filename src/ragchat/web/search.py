"""
Web search over the DuckDuckGo HTML endpoint.
"""

import re
from typing import Optional
from urllib.parse import parse_qs, quote, quote_plus, urlparse

import httpx
from bs4 import BeautifulSoup
from pydantic import BaseModel

from ragchat.exceptions import SearchError
from ragchat.utils.logging import get_logger

logger = get_logger(__name__)

SEARCH_KEYWORDS = [
    "search for",
    "search the web",
    "look up",
    "find information about",
    "google",
    "search online",
    "web search",
]

URL_PATTERN = re.compile(r"https?://[^\s]+")


class WebSearchResult(BaseModel):
    """A single web search hit."""
    title: str
    url: str
    snippet: str = ""


def _resolve_href(href: str) -> str:
    """Unwrap DuckDuckGo redirect links (``/l/?uddg=...``)."""
    if "uddg=" in href:
        target = parse_qs(urlparse(href).query).get("uddg")
        if target:
            return target[0]
    return href


def parse_search_results(html: str, max_results: int) -> list[WebSearchResult]:
    """Parse the result list out of a DuckDuckGo HTML page."""
    soup = BeautifulSoup(html, "html.parser")
    results: list[WebSearchResult] = []

    for element in soup.select(".result")[:max_results]:
        title_link = element.select_one(".result__a")
        title = title_link.get_text(strip=True) if title_link else ""
        url = _resolve_href(title_link.get("href", "")) if title_link else ""
        snippet_element = element.select_one(".result__snippet")
        snippet = snippet_element.get_text(strip=True) if snippet_element else ""

        if title and url.startswith("http"):
            results.append(WebSearchResult(title=title, url=url, snippet=snippet))

    # Fallback: bare result links
    if not results:
        for link in soup.select("a.result__url")[:max_results]:
            url = _resolve_href(link.get("href", ""))
            if url.startswith("http"):
                results.append(WebSearchResult(title=link.get_text(strip=True) or url, url=url))

    return results


def detect_search_intent(message: str) -> bool:
    """Whether a chat message asks for a web search."""
    lower_message = message.lower()
    return any(keyword in lower_message for keyword in SEARCH_KEYWORDS)


def extract_urls(message: str) -> list[str]:
    """All http(s) URLs in a message."""
    return URL_PATTERN.findall(message)


class WebSearcher:
    """Run a query against DuckDuckGo and return ``{title, url, snippet}`` hits."""

    SEARCH_URL = "https://html.duckduckgo.com/html/"

    def __init__(
        self,
        proxy: Optional[str] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.proxy = proxy
        self.timeout = timeout
        self._transport = transport

    def _search_url(self, query: str) -> str:
        search_url = f"{self.SEARCH_URL}?q={quote_plus(query)}"
        if self.proxy:
            return self.proxy + quote(search_url, safe="")
        return search_url

    async def search(self, query: str, max_results: int = 3) -> list[WebSearchResult]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport, follow_redirects=True) as client:
                response = await client.get(self._search_url(query))
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"DuckDuckGo search error: {e}")
            raise SearchError() from e

        return parse_search_results(response.text, max_results)
