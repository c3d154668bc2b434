"""Typed failures raised by the docagent clients.

Every backend failure surfaces as a subclass of :class:`AgentError` carrying a
human-readable ``message``, a stable ``code`` and optional ``details``. None of
them are retried by the clients; callers decide whether to offer a retry.
"""

from __future__ import annotations

from typing import Mapping


class AgentError(RuntimeError):
    """Base class for failures raised by the agent and its clients."""

    default_code = "AGENT_ERROR"

    def __init__(self, message: str, *, code: str | None = None, details: Mapping[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details: dict[str, str] = dict(details or {})

    def to_dict(self) -> dict[str, object]:
        return {"message": self.message, "code": self.code, "details": self.details}


class ConfigurationError(AgentError):
    """Raised when a required credential is missing; not retryable until supplied."""

    default_code = "MISSING_CONFIGURATION"


class InvalidCredentialError(AgentError):
    """Raised when a credential is rejected locally or by the provider."""

    default_code = "INVALID_API_KEY"


class HTTPError(AgentError):
    """Raised when a backend answers with an unexpected HTTP status."""

    default_code = "HTTP_ERROR"

    def __init__(
        self,
        status_code: int,
        message: str,
        *,
        code: str | None = None,
        category: str | None = None,
        details: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=code, details=details)
        self.status_code = status_code
        self.category = category

    def to_dict(self) -> dict[str, object]:
        payload = super().to_dict()
        payload["status_code"] = self.status_code
        if self.category:
            payload["category"] = self.category
        return payload


class RetrievalError(AgentError):
    """Raised when the vector-search backend reports an error or returns junk."""

    default_code = "VECTORIZE_ERROR"


class NoDocumentsError(RetrievalError):
    """Raised when the index is reachable but holds no matching documents."""

    default_code = "NO_DOCUMENTS"


class MalformedResponseError(AgentError):
    """Raised when a successful response does not have the expected shape."""

    default_code = "INVALID_RESPONSE"


class NetworkError(AgentError):
    """Raised when the transport fails before any HTTP response is received."""

    default_code = "NETWORK_ERROR"


__all__ = [
    "AgentError",
    "ConfigurationError",
    "HTTPError",
    "InvalidCredentialError",
    "MalformedResponseError",
    "NetworkError",
    "NoDocumentsError",
    "RetrievalError",
]
