"""System prompts and message assembly for grounded chat."""

from typing import Optional

from ragchat.core.message import Message

SECTION_SEPARATOR = "\n\n---\n\n"

NO_SOURCE_MESSAGE = (
    "Please enable **Use Knowledge Base** or **Search Web** to proceed.\n\n"
    "You also need to ensure you have added content (PDFs or Web links) for me to answer your queries."
)

KNOWLEDGE_BASE_PROMPT = """You are a helpful assistant with access to a knowledge base. Use the following sources to help answer the user's question.

IMPORTANT CITATION INSTRUCTIONS:
1. When using information from these sources, cite them by mentioning the source name
2. Quote the exact relevant text in double quotes when referencing specific information
3. Format citations like: According to [Source Name], "exact quoted text"
4. If information comes from a web page or PDF, mention it explicitly
5. If you use multiple sources, cite each one separately

AVAILABLE SOURCES:
{context}

If the sources don't contain relevant information, you may use your general knowledge but clearly indicate when you're doing so."""

WEB_SEARCH_PROMPT = """You are answering based on current web search results. Use this information to provide an accurate, up-to-date answer.

Search Query: "{query}"

WEB SEARCH RESULTS:
{context}

Please answer the user's question using the above search results. Cite sources by mentioning the title and URL."""


def knowledge_base_instructions(citations: list[str]) -> str:
    return KNOWLEDGE_BASE_PROMPT.format(context=SECTION_SEPARATOR.join(citations))


def web_search_instructions(query: str, web_context: str) -> str:
    return WEB_SEARCH_PROMPT.format(query=query, context=web_context)


def assemble_messages(
    history: list[Message],
    query: str,
    web_context: Optional[str] = None,
    citations: Optional[list[str]] = None,
) -> list[Message]:
    """Prefix the conversation with one system message built from the available context.

    Web results come first, knowledge base citations after them. With no
    context the history is returned unchanged.
    """
    sections = []
    if web_context:
        sections.append(web_search_instructions(query, web_context))
    if citations:
        sections.append(knowledge_base_instructions(citations))

    if not sections:
        return list(history)
    return [Message.system(SECTION_SEPARATOR.join(sections)), *history]
