"""Document question answering combining retrieval and generation."""

from __future__ import annotations

import time

from docagent.metrics.observability import get_logger
from docagent.models import ChatResponse, ResponseMetadata, ToolType
from docagent.retrieval.service import Retriever
from docagent.services.generation import GenerationBackend


class DocumentQueryService:
    """Answers a question from the vector index, citing what it used."""

    def __init__(self, retriever: Retriever, generator: GenerationBackend) -> None:
        self._retriever = retriever
        self._generator = generator
        self._logger = get_logger("query")

    def answer(self, message: str) -> ChatResponse:
        start = time.perf_counter()
        # A bad key should not cost a retrieval round trip.
        self._generator.validate_credentials()
        sources = list(self._retriever.search(message))
        completion = self._generator.complete(message, sources)
        latency_ms = (time.perf_counter() - start) * 1000
        self._logger.info("query.complete", source_count=len(sources), latency_ms=latency_ms)
        return ChatResponse(
            message=completion.text,
            tool_used=ToolType.DOCUMENT_RETRIEVAL if sources else None,
            sources=sources or None,
            metadata=ResponseMetadata(
                processing_time_ms=latency_ms,
                tokens_used=completion.tokens_used,
                model=self._generator.model,
            ),
        )
