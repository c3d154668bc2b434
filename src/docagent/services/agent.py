"""Intent routing between the weather tool and document question answering.

Intent detection is a keyword heuristic and location extraction a single
regular expression. The pattern only fires on the literal word "weather", so
"temperature" or "forecast" queries always use the default location.
"""

from __future__ import annotations

import re
import time

from docagent.config import Settings, get_settings
from docagent.metrics.observability import PipelineMetrics, get_logger
from docagent.models import ChatResponse, ResponseMetadata, ToolType
from docagent.services.query import DocumentQueryService
from docagent.services.weather import WeatherClient

WEATHER_KEYWORDS: tuple[str, ...] = ("weather", "temperature", "forecast")
LOCATION_PATTERN = re.compile(r"weather\s+(?:in|for|at)?\s*([a-zA-Z\s]+)", re.IGNORECASE)
WEATHER_MODEL = "weather-api"


def is_weather_query(message: str) -> bool:
    lowered = message.lower()
    return any(keyword in lowered for keyword in WEATHER_KEYWORDS)


def extract_location(message: str, default: str) -> str:
    match = LOCATION_PATTERN.search(message)
    if match:
        location = match.group(1).strip()
        if location:
            return location
    return default


class IntentRouter:
    """Chooses a tool for each message and returns one unified answer."""

    def __init__(
        self,
        weather: WeatherClient,
        documents: DocumentQueryService,
        *,
        settings: Settings | None = None,
    ) -> None:
        self._weather = weather
        self._documents = documents
        self._settings = settings or get_settings()
        self._logger = get_logger("agent")

    def route(self, message: str) -> ChatResponse:
        start = time.perf_counter()
        if is_weather_query(message):
            location = extract_location(message, self._settings.default_weather_location)
            self._logger.info("agent.route", tool=ToolType.WEATHER_INFO.value, location=location)
            report = self._weather.fetch(location)
            response = ChatResponse(
                message=report.summary(),
                tool_used=ToolType.WEATHER_INFO,
                sources=None,
                metadata=ResponseMetadata(
                    processing_time_ms=(time.perf_counter() - start) * 1000,
                    model=WEATHER_MODEL,
                ),
            )
        else:
            self._logger.info("agent.route", tool=ToolType.DOCUMENT_RETRIEVAL.value)
            response = self._documents.answer(message)
        PipelineMetrics.observe_tool(response.tool_used.value if response.tool_used else None)
        return response
