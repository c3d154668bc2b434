"""Current-conditions lookup against an OpenWeatherMap-style endpoint."""

from __future__ import annotations

from typing import Any

import httpx

from docagent.config import Settings, get_settings
from docagent.credentials import CredentialStore
from docagent.errors import AgentError, ConfigurationError, HTTPError, MalformedResponseError
from docagent.metrics.observability import PipelineMetrics, TimedSection, get_logger
from docagent.models import WeatherReport
from docagent.transport import build_http_client, json_body, send


def _number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class WeatherClient:
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
        self._logger = get_logger("weather")

    def fetch(self, location: str) -> WeatherReport:
        api_key = self._credentials.current().weather_api_key.strip()
        if not api_key:
            raise ConfigurationError("Weather API key not configured", code="MISSING_WEATHER_KEY")
        location = location.strip()
        # The key travels in the query string; no auth header is sent.
        request = self._client.build_request(
            "GET",
            self._settings.weather_url,
            params={"q": location, "appid": api_key, "units": self._settings.weather_units},
        )
        try:
            with TimedSection(PipelineMetrics.weather_latency.observe):
                response = send(self._client, request, backend="the weather service")
            report = self._parse(response, location)
        except AgentError as exc:
            PipelineMetrics.observe_error("weather", exc.code)
            self._logger.warning("weather.failed", location=location, code=exc.code, detail=exc.message)
            raise
        self._logger.info("weather.complete", location=location, temperature_f=report.temperature_f)
        return report

    @staticmethod
    def _parse(response: httpx.Response, location: str) -> WeatherReport:
        payload = json_body(response)
        if response.status_code != 200:
            message = payload.get("message") if isinstance(payload, dict) else None
            if not isinstance(message, str):
                message = f"HTTP {response.status_code}"
            raise HTTPError(response.status_code, f"Weather API error: {message}", code="WEATHER_ERROR")
        if not isinstance(payload, dict):
            raise MalformedResponseError("Invalid weather response format")
        main = payload.get("main")
        conditions = payload.get("weather")
        if not isinstance(main, dict) or not isinstance(conditions, list) or not conditions:
            raise MalformedResponseError("Invalid weather response format")
        first = conditions[0]
        description = first.get("description") if isinstance(first, dict) else None
        temperature = main.get("temp")
        humidity = main.get("humidity")
        if not _number(temperature) or not isinstance(description, str) or not _number(humidity):
            raise MalformedResponseError("Missing required weather data")
        wind = payload.get("wind")
        speed = wind.get("speed") if isinstance(wind, dict) else None
        return WeatherReport(
            location=location,
            temperature_f=float(temperature),
            description=description,
            humidity_pct=int(humidity),
            wind_speed_mph=float(speed) if _number(speed) else 0.0,
        )
