"""Chat orchestration: one grounded, streamed turn at a time."""

from enum import Enum
from typing import Callable, Optional

from ragchat.core.message import Message
from ragchat.exceptions import RagChatError
from ragchat.providers import get_provider
from ragchat.providers.base import LLMConfig, LLMProvider
from ragchat.rag.knowledge_base import KnowledgeBase
from ragchat.utils.logging import get_logger

from .prompts import NO_SOURCE_MESSAGE, assemble_messages
from .web_context import StatusCallback, WebContextBuilder

logger = get_logger(__name__)

UpdateCallback = Callable[[Message], None]


class TurnState(str, Enum):
    """Phase of the turn in flight."""
    IDLE = "idle"
    SOURCE_CHECK = "source_check"
    WEB_SEARCH = "web_search"
    KB_RETRIEVE = "kb_retrieve"
    PROMPT_ASSEMBLY = "prompt_assembly"
    STREAMING = "streaming"


class ChatSession:
    """A conversation that grounds each turn in web results and the knowledge base.

    ``submit`` runs source check, optional web search, optional knowledge
    base retrieval, prompt assembly and streaming, in that order. Nothing
    here prevents two overlapping ``submit`` calls; callers run one turn at
    a time.
    """

    def __init__(
        self,
        knowledge_base: Optional[KnowledgeBase] = None,
        web_context: Optional[WebContextBuilder] = None,
        provider_resolver: Callable[[str], LLMProvider] = get_provider,
        top_k: int = 3,
    ):
        self.knowledge_base = knowledge_base
        self.web_context = web_context
        self.provider_resolver = provider_resolver
        self.top_k = top_k
        self.messages: list[Message] = []
        self.state = TurnState.IDLE

    def clear(self) -> None:
        self.messages = []

    async def _web_search(self, query: str, on_status: Optional[StatusCallback]) -> str:
        if self.web_context is None:
            return ""
        self.state = TurnState.WEB_SEARCH
        try:
            return await self.web_context.build(query, on_status)
        except RagChatError as e:
            logger.error(f"Web search failed: {e}")
            return ""
        finally:
            if on_status:
                on_status("")

    async def _retrieve(self, query: str, top_k: int) -> list[str]:
        if self.knowledge_base is None:
            return []
        self.state = TurnState.KB_RETRIEVE
        return await self.knowledge_base.search_documents(query, top_k)

    async def submit(
        self,
        text: str,
        config: LLMConfig,
        use_knowledge_base: bool = True,
        use_web_search: bool = False,
        top_k: Optional[int] = None,
        on_update: Optional[UpdateCallback] = None,
        on_status: Optional[StatusCallback] = None,
    ) -> Optional[Message]:
        """Run one turn and return the assistant message it produced."""
        if not text.strip():
            return None

        self.messages.append(Message.user(text))
        history = [m for m in self.messages if not m.is_error]
        reply: Optional[Message] = None

        try:
            self.state = TurnState.SOURCE_CHECK
            if not use_knowledge_base and not use_web_search:
                reply = Message.assistant(NO_SOURCE_MESSAGE)
                self.messages.append(reply)
                return reply

            provider = self.provider_resolver(config.provider)
            provider.validate_config(config)

            web_context = await self._web_search(text, on_status) if use_web_search else ""
            citations = await self._retrieve(text, top_k or self.top_k) if use_knowledge_base else []

            self.state = TurnState.PROMPT_ASSEMBLY
            outgoing = assemble_messages(history, text, web_context, citations)

            self.state = TurnState.STREAMING
            reply = Message.assistant()
            self.messages.append(reply)
            async for fragment in provider.chat([m.to_api_format() for m in outgoing], config):
                reply.append(fragment)
                if on_update:
                    on_update(reply)
            return reply

        except Exception as e:
            logger.error(f"Chat error: {e}", exc_info=True)
            failure = Message.error(str(e))
            if reply is not None and not reply.content and self.messages[-1] is reply:
                self.messages[-1] = failure
            else:
                self.messages.append(failure)
            reply = failure
            if on_update:
                on_update(reply)
            return reply

        finally:
            self.state = TurnState.IDLE
