from __future__ import annotations

from typing import Sequence

import pytest

from docagent.errors import ConfigurationError, InvalidCredentialError
from docagent.models import Completion, DocumentSource, ToolType, WeatherReport
from docagent.services.agent import IntentRouter, extract_location, is_weather_query
from docagent.services.factory import build_components
from docagent.services.query import DocumentQueryService


class StubWeather:
    def __init__(self) -> None:
        self.locations: list[str] = []

    def fetch(self, location: str) -> WeatherReport:
        self.locations.append(location)
        return WeatherReport(location=location, temperature_f=71.9, description="sunny", humidity_pct=40, wind_speed_mph=3.0)


class StubRetriever:
    def __init__(self, sources: Sequence[DocumentSource]) -> None:
        self.sources = list(sources)
        self.queries: list[str] = []

    def search(self, query: str, limit: int | None = None) -> Sequence[DocumentSource]:
        self.queries.append(query)
        return self.sources


class StubGenerator:
    model = "stub-model"

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, Sequence[DocumentSource]]] = []

    def validate_credentials(self) -> None:
        if self.error:
            raise self.error

    def complete(self, message: str, sources: Sequence[DocumentSource] = ()) -> Completion:
        self.calls.append((message, sources))
        return Completion(text="grounded answer", tokens_used=17)


def _router(settings, weather=None, retriever=None, generator=None) -> IntentRouter:
    documents = DocumentQueryService(retriever or StubRetriever([]), generator or StubGenerator())
    return IntentRouter(weather or StubWeather(), documents, settings=settings)


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("What's the WEATHER like?", True),
        ("temperature please", True),
        ("Any forecast for tomorrow", True),
        ("Summarize my contract", False),
    ],
)
def test_weather_keywords(message, expected):
    assert is_weather_query(message) is expected


def test_location_is_extracted_after_weather():
    assert extract_location("weather in Berlin", "San Francisco") == "Berlin"
    assert extract_location("What's the weather in New York?", "San Francisco") == "New York"
    assert extract_location("Weather for Tokyo", "San Francisco") == "Tokyo"


def test_location_defaults_without_the_word_weather():
    assert extract_location("temperature please", "San Francisco") == "San Francisco"
    assert extract_location("forecast for Paris", "San Francisco") == "San Francisco"
    assert extract_location("weather", "San Francisco") == "San Francisco"


def test_weather_path_answers_with_report(settings):
    weather = StubWeather()
    retriever = StubRetriever([DocumentSource(title="t", content="c")])

    response = _router(settings, weather=weather, retriever=retriever).route("weather in Berlin")

    assert weather.locations == ["Berlin"]
    assert retriever.queries == []
    assert response.tool_used is ToolType.WEATHER_INFO
    assert response.sources is None
    assert response.metadata.model == "weather-api"
    assert response.metadata.tokens_used is None
    assert response.message.startswith("The weather in Berlin is currently 71°F and sunny.")


def test_temperature_query_uses_default_location(settings):
    weather = StubWeather()
    _router(settings, weather=weather).route("temperature please")
    assert weather.locations == ["San Francisco"]


def test_document_path_cites_sources(settings):
    sources = [DocumentSource(title="Handbook", content="Leave policy", score=0.8)]
    generator = StubGenerator()

    response = _router(settings, retriever=StubRetriever(sources), generator=generator).route("How much leave do I get?")

    assert response.tool_used is ToolType.DOCUMENT_RETRIEVAL
    assert list(response.sources) == sources
    assert response.message == "grounded answer"
    assert response.metadata.tokens_used == 17
    assert response.metadata.model == "stub-model"
    assert generator.calls == [("How much leave do I get?", sources)]


def test_document_path_without_sources_leaves_tool_unset(settings):
    response = _router(settings, retriever=StubRetriever([])).route("anything")
    assert response.tool_used is None
    assert response.sources is None


def test_bad_key_skips_retrieval(settings):
    retriever = StubRetriever([DocumentSource(title="t", content="c")])
    generator = StubGenerator(error=InvalidCredentialError("bad key"))
    with pytest.raises(InvalidCredentialError):
        _router(settings, retriever=retriever, generator=generator).route("question")
    assert retriever.queries == []


@pytest.mark.parametrize("message", ["weather in Berlin", "what does the contract say?"])
def test_unconfigured_agent_makes_no_calls(settings, empty_credentials, backend, message):
    components = build_components(settings, credentials=empty_credentials, client=backend.client)
    with pytest.raises(ConfigurationError):
        components.router.route(message)
    assert backend.requests == []
