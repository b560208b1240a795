"""Prompt templates for grounded answer generation."""

from collections.abc import Sequence

from guarded_rag.models.domain import RetrievedChunk

ANSWER_GENERATION_SYSTEM = """You are a helpful support assistant. Answer the user's question based on the provided context.
Rules:
- If the context doesn't contain enough information to answer the question, say so.
- Never make up information not present in the context.
- Be concise and accurate."""

ANSWER_GENERATION_PROMPT = """Context:
{context}

Question: {question}

Answer:"""

NO_DOCUMENTS_ANSWER = "I couldn't find relevant information to answer your question."


def format_context(chunks: Sequence[RetrievedChunk]) -> str:
    """Number chunks in retrieval order: ``[1] text``, separated by blank lines."""
    return "\n\n".join(f"[{i}] {chunk.text}" for i, chunk in enumerate(chunks, 1))


def render_prompt(question: str, context: str) -> str:
    return ANSWER_GENERATION_PROMPT.format(context=context, question=question)
