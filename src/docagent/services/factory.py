"""Wiring of the clients around a shared credential store."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from docagent.config import Settings, get_settings
from docagent.credentials import CredentialStore
from docagent.ingestion.service import DocumentUploader
from docagent.retrieval.service import VectorizeRetriever
from docagent.services.agent import IntentRouter
from docagent.services.chat import ChatSession
from docagent.services.generation import ChatCompletionClient
from docagent.services.health import HealthChecker
from docagent.services.query import DocumentQueryService
from docagent.services.weather import WeatherClient
from docagent.transport import build_http_client


@dataclass(frozen=True)
class AgentComponents:
    credentials: CredentialStore
    router: IntentRouter
    uploader: DocumentUploader
    health: HealthChecker
    session: ChatSession


def build_components(
    settings: Settings | None = None,
    *,
    credentials: CredentialStore | None = None,
    client: httpx.Client | None = None,
) -> AgentComponents:
    """Build every client on one HTTP connection pool and one credential store."""

    settings = settings or get_settings()
    credentials = credentials or CredentialStore.from_settings(settings)
    client = client or build_http_client(settings)

    retriever = VectorizeRetriever(credentials, settings=settings, client=client)
    generator = ChatCompletionClient(credentials, settings=settings, client=client)
    weather = WeatherClient(credentials, settings=settings, client=client)
    router = IntentRouter(weather, DocumentQueryService(retriever, generator), settings=settings)
    uploader = DocumentUploader(credentials, settings=settings, client=client)
    health = HealthChecker(credentials, settings=settings, client=client)
    session = ChatSession(router, credentials, uploader=uploader, health=health)
    return AgentComponents(credentials=credentials, router=router, uploader=uploader, health=health, session=session)
