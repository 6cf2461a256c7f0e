"""Live web-search context for a chat turn."""

import asyncio
from typing import Callable, Optional

from pydantic import BaseModel

from ragchat.utils.logging import get_logger
from ragchat.web.scraper import WebScraper, get_domain_from_url
from ragchat.web.search import WebSearcher, WebSearchResult

logger = get_logger(__name__)

StatusCallback = Callable[[str], None]


class PageOutcome(BaseModel):
    """Fetch result for one search hit."""
    result: WebSearchResult
    content: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.content is not None


class WebContextBuilder:
    """Search the web and turn the top pages into a context block.

    Pages are fetched concurrently and each fetch may fail on its own
    without cancelling the others; the block is built once all fetches
    have settled.
    """

    def __init__(
        self,
        searcher: WebSearcher,
        scraper: WebScraper,
        max_results: int = 5,
        char_budget: int = 2000,
    ):
        self.searcher = searcher
        self.scraper = scraper
        self.max_results = max_results
        self.char_budget = char_budget

    async def _fetch(self, result: WebSearchResult) -> str:
        content = await self.scraper.fetch_url_content(result.url)
        return content[:self.char_budget]

    async def fetch_pages(
        self,
        results: list[WebSearchResult],
        on_status: Optional[StatusCallback] = None
    ) -> list[PageOutcome]:
        if on_status:
            on_status(f"Fetching content from {len(results)} URLs...")
        settled = await asyncio.gather(*(self._fetch(r) for r in results), return_exceptions=True)

        outcomes = []
        for result, value in zip(results, settled):
            if isinstance(value, Exception):
                logger.warning(f"Failed to fetch URL {result.url} ({get_domain_from_url(result.url)}): {value}")
                outcomes.append(PageOutcome(result=result, error=str(value)))
            elif isinstance(value, BaseException):
                raise value
            else:
                outcomes.append(PageOutcome(result=result, content=value))
        return outcomes

    @staticmethod
    def format_context(outcomes: list[PageOutcome]) -> str:
        successful = [o for o in outcomes if o.ok]
        return "\n\n---\n\n".join(
            f"{i}. **{o.result.title}** - {o.result.url}\n{o.result.snippet}\n\nContent:\n{o.content}"
            for i, o in enumerate(successful, start=1)
        )

    async def build(self, query: str, on_status: Optional[StatusCallback] = None) -> str:
        """Context block for ``query``; empty when nothing could be fetched."""
        if on_status:
            on_status("Searching the web...")
        results = await self.searcher.search(query, self.max_results)
        if not results:
            return ""
        outcomes = await self.fetch_pages(results, on_status)
        return self.format_context(outcomes)
