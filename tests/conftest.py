from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from docagent.config import Settings
from docagent.credentials import CredentialStore, Credentials

LLM_KEY = "sk-test-0123456789abcdefghij"
VECTOR_KEY = "vec-key"
VECTOR_ENDPOINT = "https://api.vectorize.io/v1/org/o1/pipelines/p1/retrieval"
WEATHER_KEY = "weather-key"


class RecordingBackend:
    """MockTransport handler that records requests and replays a canned reply."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._reply: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(200, json={})

    def respond(self, status_code: int = 200, json: Any = None, *, text: str | None = None) -> None:
        if text is not None:
            self._reply = lambda request: httpx.Response(status_code, text=text)
        else:
            self._reply = lambda request: httpx.Response(status_code, json=json)

    def fail(self, exc: Exception) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise exc

        self._reply = _raise

    def route(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self._reply = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._reply(request)

    @property
    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture
def settings() -> Settings:
    return Settings(environment="test")


@pytest.fixture
def credentials() -> CredentialStore:
    return CredentialStore(
        Credentials.create(
            llm_api_key=LLM_KEY,
            vector_api_key=VECTOR_KEY,
            vector_endpoint=VECTOR_ENDPOINT,
            weather_api_key=WEATHER_KEY,
        )
    )


@pytest.fixture
def empty_credentials() -> CredentialStore:
    return CredentialStore()


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()
