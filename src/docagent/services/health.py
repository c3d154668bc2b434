"""Liveness probe for the language-model provider."""

from __future__ import annotations

import httpx

from docagent.config import Settings, get_settings
from docagent.credentials import CredentialStore
from docagent.errors import InvalidCredentialError
from docagent.metrics.observability import get_logger
from docagent.services.generation import API_KEYS_URL, require_llm_key
from docagent.transport import build_http_client, json_body


class HealthChecker:
    """Pings the provider's model listing with a bounded timeout.

    Transport failures and unexpected statuses yield ``False``. A 401 whose
    body explains the problem raises :class:`InvalidCredentialError` so the
    caller can show a specific remediation hint.
    """

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
        self._logger = get_logger("health")

    def check(self) -> bool:
        creds = self._credentials.current()
        if not creds.has_llm:
            return False
        key = require_llm_key(creds, self._settings)
        request = self._client.build_request(
            "GET",
            self._settings.models_url,
            headers={"Authorization": f"Bearer {key}"},
            timeout=self._settings.health_timeout_seconds,
        )
        try:
            response = self._client.send(request)
        except httpx.HTTPError as exc:
            self._logger.warning("health.unreachable", detail=str(exc))
            return False
        if response.status_code == 401:
            self._raise_for_unauthorized(response)
        healthy = response.status_code == 200
        self._logger.info("health.checked", status_code=response.status_code, healthy=healthy)
        return healthy

    @staticmethod
    def _raise_for_unauthorized(response: httpx.Response) -> None:
        payload = json_body(response)
        error = payload.get("error") if isinstance(payload, dict) else None
        message = error.get("message") if isinstance(error, dict) else None
        if not isinstance(message, str):
            return
        if "organization" in message:
            raise InvalidCredentialError(
                f"OpenAI organization issue. Please generate a new API key at {API_KEYS_URL}",
                code="ORGANIZATION_ERROR",
                details={"original_error": message},
            )
        raise InvalidCredentialError(
            f"Invalid OpenAI API key. Please check your key at {API_KEYS_URL}",
            code="INVALID_API_KEY",
            details={"original_error": message},
        )
