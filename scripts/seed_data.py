"""Seed the chunk store and vector index with sample passages for development."""

from __future__ import annotations

import asyncio
from pathlib import Path

import numpy as np

from guarded_rag.config.settings import load_settings
from guarded_rag.embeddings.openai_embedder import OpenAIEmbedder
from guarded_rag.models.domain import RetrievedChunk
from guarded_rag.storage.sqlite_chunk_store import SQLiteChunkStore
from guarded_rag.vectorstore.faiss_store import FAISSVectorStore

SAMPLE_DOCS = [
    {
        "source_id": "help-center/returns.md",
        "content": """Returns and refunds

You can return items within 30 days of delivery for a full refund. Items must be unused and in their original packaging.

Refunds are issued to the original payment method within 5 business days after the returned item is received.

Final sale items, gift cards and personalised products cannot be returned.""",
    },
    {
        "source_id": "help-center/shipping.md",
        "content": """Shipping

Standard shipping takes 3 to 5 business days. Express shipping takes 1 to 2 business days and is available for orders placed before 2pm.

Orders over $50 ship for free within the continental United States.

International orders may be subject to customs fees, which are paid by the recipient.""",
    },
]


def split_paragraphs(source_id: str, content: str) -> list[RetrievedChunk]:
    """One chunk per paragraph, with 1-based character offsets into the source."""
    chunks = []
    cursor = 0
    for i, paragraph in enumerate(p for p in content.split("\n\n") if p.strip()):
        start = content.index(paragraph, cursor)
        cursor = start + len(paragraph)
        chunks.append(
            RetrievedChunk(
                id=f"{source_id}#{i}",
                text=paragraph,
                source_id=source_id,
                start_char=start + 1,
                end_char=cursor + 1,
                metadata={"paragraph": i},
            )
        )
    return chunks


async def main():
    settings = load_settings()
    Path(settings.chunk_db_path).parent.mkdir(parents=True, exist_ok=True)

    chunk_store = SQLiteChunkStore(settings.chunk_db_path)
    await chunk_store.initialize()

    embedder = OpenAIEmbedder(
        api_key=settings.openai_api_key,
        model=settings.embedding_model,
        batch_size=settings.embedding_batch_size,
        dimensions=settings.embedding_dimensions,
    )
    vector_store = FAISSVectorStore(
        dimensions=settings.embedding_dimensions,
        index_path=settings.faiss_index_path,
    )

    for doc in SAMPLE_DOCS:
        chunks = split_paragraphs(doc["source_id"], doc["content"])
        embeddings = await embedder.embed_texts([c.text for c in chunks])
        await chunk_store.add_chunks(chunks)
        await vector_store.add_safe([c.id for c in chunks], np.array(embeddings, dtype=np.float32))
        print(f"Seeded {doc['source_id']}: {len(chunks)} chunks")

    vector_store.save()
    print(f"\nTotal chunks: {await chunk_store.count_chunks()}")
    print(f"Vector index size: {vector_store.size}")


if __name__ == "__main__":
    asyncio.run(main())
