"""
Chat orchestration: web context, prompt assembly and streamed turns.
"""

from ragchat.chat.prompts import (
    KNOWLEDGE_BASE_PROMPT,
    NO_SOURCE_MESSAGE,
    WEB_SEARCH_PROMPT,
    assemble_messages,
    knowledge_base_instructions,
    web_search_instructions,
)
from ragchat.chat.session import ChatSession, TurnState
from ragchat.chat.web_context import PageOutcome, WebContextBuilder

__all__ = [
    "KNOWLEDGE_BASE_PROMPT",
    "NO_SOURCE_MESSAGE",
    "WEB_SEARCH_PROMPT",
    "assemble_messages",
    "knowledge_base_instructions",
    "web_search_instructions",
    "ChatSession",
    "TurnState",
    "PageOutcome",
    "WebContextBuilder",
]
