"""Document retrieval against a Vectorize-style pipeline endpoint."""

from __future__ import annotations

import time
from typing import Protocol, Sequence

import httpx

from docagent.config import Settings, get_settings
from docagent.credentials import CredentialStore
from docagent.errors import AgentError, ConfigurationError, HTTPError, NoDocumentsError, RetrievalError
from docagent.metrics.observability import PipelineMetrics, get_logger
from docagent.models import DocumentSource
from docagent.retrieval.normalizer import normalize_hits
from docagent.transport import bearer_headers, build_http_client, json_body, send


class Retriever(Protocol):
    """Retrieve citations relevant to a query string."""

    def search(self, query: str, limit: int | None = None) -> Sequence[DocumentSource]:
        """Return up to ``limit`` normalized sources."""


class VectorizeRetriever:
    """Retriever that posts questions to the configured pipeline URL."""

    def __init__(
        self,
        credentials: CredentialStore,
        *,
        settings: Settings | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._credentials = credentials
        self._settings = settings or get_settings()
        self._client = client or build_http_client(self._settings)
        self._logger = get_logger("retrieval")

    def search(self, query: str, limit: int | None = None) -> list[DocumentSource]:
        creds = self._credentials.current()
        if not creds.has_vector:
            raise ConfigurationError("Vectorize API credentials not configured", code="MISSING_VECTORIZE_CONFIG")
        if limit is None:
            limit = self._settings.retrieval_limit
        request = self._client.build_request(
            "POST",
            creds.vector_endpoint,
            headers=bearer_headers(creds.vector_api_key),
            json={"question": query, "numResults": limit, "rerank": True},
        )
        start = time.perf_counter()
        try:
            response = send(self._client, request, backend="Vectorize")
            sources = self._parse(response)
        except AgentError as exc:
            PipelineMetrics.observe_error("retrieval", exc.code)
            self._logger.warning("retrieval.failed", code=exc.code, detail=exc.message)
            raise
        duration = time.perf_counter() - start
        PipelineMetrics.observe_retrieval(duration, len(sources), (source.score for source in sources))
        self._logger.info("retrieval.complete", source_count=len(sources), limit=limit, duration_seconds=duration)
        return sources

    @staticmethod
    def _parse(response: httpx.Response) -> list[DocumentSource]:
        payload = json_body(response)
        if response.status_code != 200:
            message = payload.get("error") if isinstance(payload, dict) else None
            if not isinstance(message, str):
                message = f"Vectorize search failed (HTTP {response.status_code})"
            raise HTTPError(response.status_code, message, code="VECTORIZE_ERROR")
        if not isinstance(payload, dict):
            raise RetrievalError("Invalid JSON response from Vectorize", code="INVALID_RESPONSE")
        documents = payload.get("documents")
        if not isinstance(documents, list):
            error = payload.get("error")
            if isinstance(error, str):
                raise RetrievalError(f"Vectorize error: {error}")
            raise RetrievalError("No documents found in Vectorize response", code="INVALID_RESPONSE")
        if not documents:
            raise NoDocumentsError("No documents found in your Vectorize pipeline. Please upload documents first.")
        if not all(isinstance(hit, dict) for hit in documents):
            raise RetrievalError("Vectorize returned a document that is not a JSON object", code="INVALID_RESPONSE")
        return normalize_hits(documents)
