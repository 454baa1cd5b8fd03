"""
Context construction for the RAG system.

This module renders ranked knowledge-base documents into the bounded context
block injected into the language-model prompt, and builds the assistant system
prompt around it.
"""

import logging
import math
from typing import Any, List, Optional, Sequence

from rag.config import RAG_CONFIG

TRUNCATION_MARKER = "..."
DOCUMENT_SEPARATOR = "\n\n---\n\n"

CONTEXT_PREAMBLE = (
    "You have access to the following relevant documentation. "
    "Please use this information to provide accurate and helpful responses:"
)

CONTEXT_POSTAMBLE = (
    "IMPORTANT: When answering, prioritize the documents above, reference the specific "
    "documents you rely on, and base your answer on the documentation provided. "
    "If the documents do not contain the information needed, say so clearly instead of "
    "making up an answer."
)

SYSTEM_INSTRUCTIONS = """You are a helpful AI assistant with access to a knowledge base of documents.

IMPORTANT INSTRUCTIONS:
1. Always prioritize information from the provided documents when answering questions
2. If the documents contain relevant information, use it and cite which document you're referencing
3. If the documents don't contain relevant information, clearly state this and provide general assistance
4. Be specific about which document sections you're referencing
5. Don't make up information that isn't in the provided documents"""


class ContextBuilder:
    """
    Context construction engine for the RAG system.

    Formats retrieved documents as numbered blocks with title, content and
    tags, truncating each document body to a fixed character budget.
    """

    def __init__(self, max_document_chars: Optional[int] = None):
        """
        Initialize the context builder.

        Args:
            max_document_chars: Per-document content budget (defaults to config)
        """
        self.max_document_chars = max_document_chars or RAG_CONFIG['max_document_chars']
        self.logger = logging.getLogger(__name__)

    def assemble_context(self, documents: Sequence[Any]) -> str:
        """
        Build the prompt context block for a list of documents.

        Args:
            documents: Ranked documents to include

        Returns:
            Context block, or an empty string when there are no documents
        """
        if not documents:
            self.logger.info("No documents to include in context")
            return ""

        blocks = [
            self._format_document(index, document)
            for index, document in enumerate(documents, 1)
        ]
        context = (
            f"{CONTEXT_PREAMBLE}\n\n"
            f"{DOCUMENT_SEPARATOR.join(blocks)}\n\n"
            f"{CONTEXT_POSTAMBLE}"
        )

        self.logger.info(f"Generated context from {len(documents)} documents, length={len(context)}")
        return context

    def build_system_prompt(self, context_block: str) -> str:
        """System prompt for the chat model with the context block appended."""
        if not context_block:
            return SYSTEM_INSTRUCTIONS
        return f"{SYSTEM_INSTRUCTIONS}\n\n{context_block}"

    def estimate_token_count(self, text: str) -> int:
        """Rough token estimate: one token per four characters."""
        return math.ceil(len(text) / 4)

    def _truncate(self, content: str) -> str:
        if len(content) <= self.max_document_chars:
            return content
        return content[:self.max_document_chars] + TRUNCATION_MARKER

    def _format_document(self, index: int, document: Any) -> str:
        lines = [
            f"Document {index}:",
            f"Title: {document.title}",
            f"Content: {self._truncate(document.content or '')}",
        ]
        tags: List[str] = [tag for tag in (document.tags or []) if tag]
        if tags:
            lines.append(f"Tags: {', '.join(tags)}")
        return "\n".join(lines)
