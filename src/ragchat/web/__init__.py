"""
Web collaborators: PDF text extraction, page fetching and web search.
"""

from ragchat.web.pdf import extract_text_from_pdf
from ragchat.web.scraper import WebScraper, extract_text_from_html, get_domain_from_url
from ragchat.web.search import (
    WebSearcher,
    WebSearchResult,
    detect_search_intent,
    extract_urls,
    parse_search_results,
)

__all__ = [
    "extract_text_from_pdf",
    "WebScraper",
    "extract_text_from_html",
    "get_domain_from_url",
    "WebSearcher",
    "WebSearchResult",
    "detect_search_intent",
    "extract_urls",
    "parse_search_results",
]
