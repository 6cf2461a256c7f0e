"""
Basic example: add a web page to the knowledge base and ask about it.
"""

import asyncio

from ragchat import RagChatApp, load_config
from ragchat.exceptions import IngestionError


async def main():
    # Reads ragchat.yaml from the working directory, or uses defaults
    config = load_config()
    config.llm.api_key = "your-api-key-here"  # Replace with your API key

    app = RagChatApp.create(config)
    await app.start()

    try:
        doc = await app.ingestor.ingest_url(
            "https://en.wikipedia.org/wiki/Retrieval-augmented_generation",
            on_progress=lambda done, total: print(f"Embedding {done}/{total}"),
        )
        print(f"Added {doc.name} ({len(doc.chunks)} chunks)")
    except IngestionError as e:
        print(f"Could not add page: {e.message}")

    stats = await app.knowledge_base.get_vector_stats()
    print(f"Vectors: {stats.count}, documents with embeddings: {stats.documents_with_embeddings}")

    reply = await app.ask(
        "What problem does retrieval-augmented generation solve?",
        on_update=lambda message: print(".", end="", flush=True),
    )
    print()
    print(reply.content)


if __name__ == "__main__":
    asyncio.run(main())
