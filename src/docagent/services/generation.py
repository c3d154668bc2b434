"""Chat-completion backend for docagent."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

import httpx

from docagent.config import Settings, get_settings
from docagent.credentials import CredentialStore, Credentials
from docagent.errors import AgentError, ConfigurationError, HTTPError, InvalidCredentialError, MalformedResponseError
from docagent.metrics.observability import PipelineMetrics, get_logger
from docagent.models import Completion, DocumentSource
from docagent.transport import bearer_headers, build_http_client, json_body, send

API_KEYS_URL = "https://platform.openai.com/api-keys"

SYSTEM_INSTRUCTION = (
    "You are a helpful assistant. Use the following context to answer questions. "
    "If the context doesn't contain relevant information, say so clearly."
)


@dataclass(frozen=True)
class ErrorRule:
    """Maps upstream error text onto a canonical category."""

    category: str
    needles: tuple[str, ...]
    message: str

    def matches(self, text: str) -> bool:
        return any(needle in text for needle in self.needles)


# Evaluated in order; the first matching rule wins.
ERROR_RULES: tuple[ErrorRule, ...] = (
    ErrorRule(
        category="organization",
        needles=("organization", "Invalid organization ID"),
        message=(
            "OpenAI API Error: Your API key is associated with an invalid organization. Please:\n\n"
            f"1. Generate a new API key at {API_KEYS_URL}\n"
            "2. Make sure your OpenAI account is active\n"
            "3. Check that your organization hasn't been suspended"
        ),
    ),
    ErrorRule(
        category="quota",
        needles=("quota", "billing"),
        message="OpenAI API Error: Usage quota exceeded or billing issue. Please check your OpenAI account billing status.",
    ),
    ErrorRule(
        category="invalid_key",
        needles=("Invalid API key",),
        message=f"OpenAI API Error: Invalid API key. Please generate a new key at {API_KEYS_URL}",
    ),
    ErrorRule(
        category="rate_limit",
        needles=("Rate limit",),
        message="OpenAI API Error: Rate limit exceeded. Please wait a moment and try again.",
    ),
)


def classify_error(text: str, rules: Sequence[ErrorRule] = ERROR_RULES) -> tuple[str, str]:
    """Return ``(category, user_message)`` for an upstream error text."""

    for rule in rules:
        if rule.matches(text):
            return rule.category, rule.message
    return "generic", text


def extract_error(payload: Any, status_code: int) -> tuple[str, str | None]:
    """Pull ``error.message`` and ``error.code`` out of an OpenAI error body."""

    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return f"HTTP Error {status_code}", None
    message = error.get("message")
    code = error.get("code")
    return (
        message if isinstance(message, str) else f"HTTP Error {status_code}",
        str(code) if code is not None else None,
    )


def require_llm_key(credentials: Credentials, settings: Settings) -> str:
    """Return the LLM key or fail fast without touching the network."""

    key = credentials.llm_api_key
    if not key:
        raise ConfigurationError("OpenAI API key not configured", code="MISSING_API_KEY")
    if not key.startswith(settings.llm_key_prefix) or len(key) < settings.llm_key_min_length:
        raise InvalidCredentialError(
            f"Invalid OpenAI API key format. API keys should start with '{settings.llm_key_prefix}' and be longer "
            f"than {settings.llm_key_min_length - 1} characters. Please check your key at {API_KEYS_URL}"
        )
    return key


class PromptBuilder:
    """Builds the chat message list sent to the completion endpoint."""

    def __init__(self, instruction: str = SYSTEM_INSTRUCTION) -> None:
        self._instruction = instruction

    def build_context(self, sources: Sequence[DocumentSource]) -> str:
        return "\n\n".join(f"Title: {source.title}\nContent: {source.content}" for source in sources)

    def build_messages(self, message: str, sources: Sequence[DocumentSource]) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        context = self.build_context(sources)
        if context:
            messages.append({"role": "system", "content": f"{self._instruction}\n\nContext:\n{context}"})
        messages.append({"role": "user", "content": message})
        return messages


class GenerationBackend(Protocol):
    """Protocol describing generation behaviour."""

    model: str

    def validate_credentials(self) -> None:
        """Fail fast when the configured key cannot be used."""

    def complete(self, message: str, sources: Sequence[DocumentSource] = ()) -> Completion:
        """Return the model's answer for ``message`` grounded on ``sources``."""


class ChatCompletionClient:
    """Calls an OpenAI-compatible ``/chat/completions`` endpoint over HTTPX."""

    def __init__(
        self,
        credentials: CredentialStore,
        *,
        settings: Settings | None = None,
        client: httpx.Client | None = None,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        self._credentials = credentials
        self._settings = settings or get_settings()
        self._client = client or build_http_client(self._settings)
        self._prompt_builder = prompt_builder or PromptBuilder()
        self._logger = get_logger("generation")

    @property
    def model(self) -> str:
        return self._settings.completion_model

    def validate_credentials(self) -> None:
        require_llm_key(self._credentials.current(), self._settings)

    def complete(self, message: str, sources: Sequence[DocumentSource] = ()) -> Completion:
        key = require_llm_key(self._credentials.current(), self._settings)
        body = {
            "model": self._settings.completion_model,
            "messages": self._prompt_builder.build_messages(message, sources),
            "max_tokens": self._settings.completion_max_tokens,
            "temperature": self._settings.completion_temperature,
        }
        request = self._client.build_request(
            "POST",
            self._settings.completion_url,
            headers=bearer_headers(key),
            json=body,
        )
        start = time.perf_counter()
        try:
            response = send(self._client, request, backend="OpenAI")
            completion = self._parse(response)
        except AgentError as exc:
            PipelineMetrics.observe_error("completion", exc.code)
            self._logger.warning("completion.failed", code=exc.code, detail=exc.message)
            raise
        duration = time.perf_counter() - start
        PipelineMetrics.observe_completion(duration, completion.tokens_used)
        self._logger.info(
            "completion.complete",
            model=self._settings.completion_model,
            context_sources=len(sources),
            tokens_used=completion.tokens_used,
            duration_seconds=duration,
        )
        return completion

    @staticmethod
    def _parse(response: httpx.Response) -> Completion:
        payload = json_body(response)
        if response.status_code != 200:
            original, error_code = extract_error(payload, response.status_code)
            category, message = classify_error(original)
            raise HTTPError(
                response.status_code,
                message,
                code="OPENAI_ERROR",
                category=category,
                details={"original_error": original, "error_code": error_code or "unknown"},
            )
        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise MalformedResponseError("Invalid OpenAI response format") from exc
        if not isinstance(content, str):
            raise MalformedResponseError("Invalid OpenAI response format")
        usage = payload.get("usage")
        tokens = usage.get("total_tokens") if isinstance(usage, dict) else None
        if not isinstance(tokens, int) or isinstance(tokens, bool):
            tokens = None
        return Completion(text=content, tokens_used=tokens)
