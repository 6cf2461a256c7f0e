"""
Fetching web pages through CORS-style proxies and reducing them to text.
"""

import re
from typing import Callable, Optional
from urllib.parse import quote, urlparse

import httpx
from bs4 import BeautifulSoup

from ragchat.exceptions import FetchError
from ragchat.utils.logging import get_logger

logger = get_logger(__name__)

NON_CONTENT_TAGS = ["script", "style", "nav", "header", "footer", "iframe", "noscript"]

REQUEST_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


def extract_text_from_html(html: str) -> str:
    """Strip markup and non-content elements, collapse whitespace."""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup(NON_CONTENT_TAGS):
        element.decompose()
    root = soup.body or soup
    text = root.get_text(separator=" ")
    return re.sub(r"\s+", " ", text).strip()


def get_domain_from_url(url: str) -> str:
    """Extract domain from URL for display."""
    hostname = urlparse(url).hostname
    if not hostname:
        return url
    return hostname.removeprefix("www.")


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class WebScraper:
    """
    Fetch page text, rotating through the configured proxies on failure.

    The rotation index survives between calls: a proxy that failed is not
    tried first on the next fetch. With no proxies configured, pages are
    fetched directly.
    """

    def __init__(
        self,
        proxies: Optional[list[str]] = None,
        timeout: float = 15.0,
        min_chars: int = 50,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.proxies = list(proxies or [])
        self.timeout = timeout
        self.min_chars = min_chars
        self._transport = transport
        self._proxy_index = 0

    @property
    def current_proxy_index(self) -> int:
        return self._proxy_index

    def _target_url(self, url: str, prefix: str) -> str:
        return prefix + quote(url, safe="") if prefix else url

    async def fetch_url_content(
        self,
        url: str,
        on_progress: Optional[Callable[[str], None]] = None
    ) -> str:
        """Fetch a page and return its extracted text."""
        if not is_valid_url(url):
            raise FetchError("Invalid URL format", url=url)

        if on_progress:
            on_progress("Fetching URL content...")

        prefixes = self.proxies or [""]
        for attempt in range(len(prefixes)):
            prefix = prefixes[self._proxy_index % len(prefixes)]
            if on_progress:
                on_progress(f"Trying proxy {attempt + 1}/{len(prefixes)}...")

            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout,
                    transport=self._transport,
                    follow_redirects=True
                ) as client:
                    response = await client.get(self._target_url(url, prefix), headers=REQUEST_HEADERS)
                response.raise_for_status()

                if on_progress:
                    on_progress("Extracting text from HTML...")
                text = extract_text_from_html(response.text)
                if len(text) < self.min_chars:
                    raise FetchError("Extracted text too short, may be blocked", url=url)

                if on_progress:
                    on_progress("Content fetched successfully!")
                return text

            except (httpx.HTTPError, FetchError) as e:
                logger.warning(f"Proxy {self._proxy_index} failed for {url}: {e}")
                self._proxy_index = (self._proxy_index + 1) % len(prefixes)

        raise FetchError(
            f"Failed to fetch URL content after trying {len(prefixes)} proxies. "
            "The website may be blocking requests or the URL is invalid.",
            url=url,
        )
