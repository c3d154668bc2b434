"""Document upload (upsert) into the Vectorize pipeline index."""

from __future__ import annotations

import mimetypes
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

import httpx

from docagent.config import Settings, get_settings
from docagent.credentials import CredentialStore
from docagent.errors import AgentError, ConfigurationError, HTTPError
from docagent.metrics.observability import PipelineMetrics, TimedSection, get_logger
from docagent.models import UploadResult
from docagent.transport import bearer_headers, build_http_client, json_body, send

SUCCESS_STATUSES = frozenset({200, 201})
UPLOAD_MESSAGE = "Document uploaded and indexed successfully"


def derive_upsert_url(endpoint: str, retrieval_segment: str = "/retrieval", upsert_segment: str = "/upsert") -> str:
    """Turn a pipeline's retrieval URL into its upsert URL.

    Vectorize exposes both operations as sibling routes of one pipeline; this
    is a property of that provider, not of vector stores in general.
    """

    return endpoint.replace(retrieval_segment, upsert_segment)


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class DocumentUploader:
    """Pushes raw text documents into the vector-search index."""

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
        self._logger = get_logger("ingestion")

    def upload(self, name: str, content: str, mime_type: str) -> UploadResult:
        creds = self._credentials.current()
        if not creds.has_vector:
            raise ConfigurationError("Vectorize API credentials not configured", code="MISSING_VECTORIZE_CONFIG")
        url = derive_upsert_url(
            creds.vector_endpoint,
            self._settings.retrieval_path_segment,
            self._settings.upsert_path_segment,
        )
        document_id = str(uuid4()).upper()
        body = {
            "documents": [
                {
                    "id": document_id,
                    "text": content,
                    "metadata": {"title": name, "contentType": mime_type, "uploadedAt": _timestamp()},
                }
            ]
        }
        request = self._client.build_request("POST", url, headers=bearer_headers(creds.vector_api_key), json=body)
        try:
            with TimedSection(PipelineMetrics.upload_latency.observe):
                response = send(self._client, request, backend="Vectorize")
            if response.status_code not in SUCCESS_STATUSES:
                payload = json_body(response)
                message = payload.get("error") if isinstance(payload, dict) else None
                if not isinstance(message, str):
                    message = f"Document upload failed (HTTP {response.status_code})"
                raise HTTPError(response.status_code, message, code="UPLOAD_ERROR")
        except AgentError as exc:
            PipelineMetrics.observe_error("upload", exc.code)
            self._logger.warning("upload.failed", title=name, code=exc.code, detail=exc.message)
            raise
        self._logger.info("upload.complete", document_id=document_id, title=name, content_type=mime_type)
        return UploadResult(document_id=document_id, message=UPLOAD_MESSAGE)

    def upload_file(self, path: Path, *, encoding: str = "utf-8") -> UploadResult:
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return self.upload(path.name, path.read_text(encoding=encoding), mime_type or "text/plain")
