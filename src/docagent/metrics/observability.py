"""Observability helpers for docagent."""

from __future__ import annotations

import logging
import time
from typing import Iterable

import structlog
from prometheus_client import Counter, Histogram

_logger_configured = False


def configure_logging(level: int = logging.INFO) -> None:
    global _logger_configured  # noqa: PLW0603 - module-level guard
    if _logger_configured:
        return
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _logger_configured = True


def bind_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_correlation_id() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str = "docagent") -> structlog.BoundLogger:
    configure_logging()
    return structlog.get_logger(name)


def _clamp_score(score: float) -> float:
    if score < 0.0:
        return 0.0
    if score > 1.0:
        return 1.0
    return score


class PipelineMetrics:
    """Prometheus metrics for the agent's backend calls."""

    retrieval_latency = Histogram(
        "docagent_retrieval_duration_seconds",
        "Time spent searching the vector index.",
        buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
    )
    retrieved_source_count = Histogram(
        "docagent_retrieved_source_count",
        "Number of sources returned by retrieval.",
        buckets=(0, 1, 2, 3, 5, 8, 13),
    )
    relevance_score = Histogram(
        "docagent_relevance_score",
        "Relevance score reported for retrieved sources.",
        buckets=(0.0, 0.25, 0.5, 0.75, 1.0),
    )
    completion_latency = Histogram(
        "docagent_completion_duration_seconds",
        "Time spent waiting for chat completions.",
        buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
    )
    completion_tokens = Histogram(
        "docagent_completion_tokens",
        "Total tokens reported per completion.",
        buckets=(50, 100, 250, 500, 1000, 2000, 4000),
    )
    weather_latency = Histogram(
        "docagent_weather_duration_seconds",
        "Time spent fetching weather reports.",
        buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
    )
    upload_latency = Histogram(
        "docagent_upload_duration_seconds",
        "Time spent upserting documents.",
        buckets=(0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
    )
    tool_invocations = Counter(
        "docagent_tool_invocations_total",
        "Agent answers grouped by the tool that produced them.",
        ["tool"],
    )
    backend_errors = Counter(
        "docagent_backend_errors_total",
        "Typed failures raised by backend clients.",
        ["backend", "code"],
    )

    @classmethod
    def observe_retrieval(cls, duration_seconds: float, source_count: int, scores: Iterable[float]) -> None:
        cls.retrieval_latency.observe(duration_seconds)
        cls.retrieved_source_count.observe(source_count)
        for score in scores:
            cls.relevance_score.observe(_clamp_score(score))

    @classmethod
    def observe_completion(cls, duration_seconds: float, tokens_used: int | None) -> None:
        cls.completion_latency.observe(duration_seconds)
        if tokens_used is not None:
            cls.completion_tokens.observe(tokens_used)

    @classmethod
    def observe_tool(cls, tool: str | None) -> None:
        cls.tool_invocations.labels(tool=tool or "none").inc()

    @classmethod
    def observe_error(cls, backend: str, code: str) -> None:
        cls.backend_errors.labels(backend=backend, code=code).inc()


class TimedSection:
    """Context manager capturing elapsed time for metrics."""

    def __init__(self, callback) -> None:
        self._callback = callback
        self._start = 0.0

    def __enter__(self) -> "TimedSection":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        duration = time.perf_counter() - self._start
        self._callback(duration)


__all__ = [
    "PipelineMetrics",
    "TimedSection",
    "bind_correlation_id",
    "clear_correlation_id",
    "configure_logging",
    "get_logger",
]
