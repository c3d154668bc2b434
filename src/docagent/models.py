"""Shared domain models used across the docagent pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Sequence
from uuid import uuid4


def _new_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ToolType(str, Enum):
    """Tools the agent can answer with."""

    DOCUMENT_RETRIEVAL = "document_retrieval"
    WEATHER_INFO = "weather_info"

    @property
    def display_name(self) -> str:
        if self is ToolType.DOCUMENT_RETRIEVAL:
            return "Document Search"
        return "Weather Info"

    @property
    def description(self) -> str:
        if self is ToolType.DOCUMENT_RETRIEVAL:
            return "Search through uploaded documents using RAG"
        return "Get current weather information"


@dataclass(frozen=True)
class DocumentSource:
    """One citation produced from a vector-search hit."""

    title: str
    content: str
    url: str | None = None
    score: float = 0.0
    id: str = field(default_factory=_new_id)


@dataclass(frozen=True)
class ChatMessage:
    """A single turn in the conversation transcript."""

    content: str
    is_user: bool
    sources: Sequence[DocumentSource] | None = None
    timestamp: datetime = field(default_factory=_utcnow)
    id: str = field(default_factory=_new_id)

    @property
    def has_sources(self) -> bool:
        return bool(self.sources)


@dataclass(frozen=True)
class ResponseMetadata:
    processing_time_ms: float
    tokens_used: int | None = None
    model: str | None = None


@dataclass(frozen=True)
class ChatResponse:
    """Unified answer produced by the agent for one user message."""

    message: str
    metadata: ResponseMetadata
    tool_used: ToolType | None = None
    sources: Sequence[DocumentSource] | None = None


@dataclass(frozen=True)
class Completion:
    """Answer text and token usage returned by the language model."""

    text: str
    tokens_used: int | None = None


@dataclass(frozen=True)
class WeatherReport:
    location: str
    temperature_f: float
    description: str
    humidity_pct: int
    wind_speed_mph: float = 0.0

    def summary(self) -> str:
        return (
            f"The weather in {self.location} is currently {int(self.temperature_f)}°F and {self.description}. "
            f"Humidity is {self.humidity_pct}% with wind speeds of {self.wind_speed_mph} mph."
        )


@dataclass(frozen=True)
class UploadResult:
    document_id: str
    message: str
    success: bool = True
