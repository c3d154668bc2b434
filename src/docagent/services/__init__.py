"""Service layer orchestrations for docagent."""

from .agent import IntentRouter, extract_location, is_weather_query
from .chat import ChatSession
from .factory import AgentComponents, build_components
from .generation import ChatCompletionClient, ErrorRule, GenerationBackend, PromptBuilder, classify_error
from .health import HealthChecker
from .query import DocumentQueryService
from .weather import WeatherClient

__all__ = [
    "AgentComponents",
    "ChatCompletionClient",
    "ChatSession",
    "DocumentQueryService",
    "ErrorRule",
    "GenerationBackend",
    "HealthChecker",
    "IntentRouter",
    "PromptBuilder",
    "WeatherClient",
    "build_components",
    "classify_error",
    "extract_location",
    "is_weather_query",
]
