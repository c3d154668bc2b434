"""Credential record shared by every backend client."""

from __future__ import annotations

import json
import os
import threading
from dataclasses import asdict, dataclass
from pathlib import Path

from docagent.config import Settings
from docagent.metrics.observability import get_logger

_FIELDS = ("llm_api_key", "vector_api_key", "vector_endpoint", "weather_api_key")


@dataclass(frozen=True)
class Credentials:
    """Immutable snapshot of the four configured settings."""

    llm_api_key: str = ""
    vector_api_key: str = ""
    vector_endpoint: str = ""
    weather_api_key: str = ""

    @classmethod
    def create(
        cls,
        llm_api_key: str = "",
        vector_api_key: str = "",
        vector_endpoint: str = "",
        weather_api_key: str = "",
    ) -> "Credentials":
        return cls(
            llm_api_key=(llm_api_key or "").strip(),
            vector_api_key=(vector_api_key or "").strip(),
            vector_endpoint=(vector_endpoint or "").strip(),
            weather_api_key=(weather_api_key or "").strip(),
        )

    @property
    def has_llm(self) -> bool:
        return bool(self.llm_api_key)

    @property
    def has_vector(self) -> bool:
        return bool(self.vector_api_key) and bool(self.vector_endpoint)

    @property
    def has_weather(self) -> bool:
        return bool(self.weather_api_key)

    @property
    def is_configured(self) -> bool:
        """The weather key is optional; the chat path needs the other three."""
        return self.has_llm and self.has_vector


class CredentialStore:
    """Holds the current :class:`Credentials` and swaps them atomically.

    Clients call :meth:`current` once per operation and work from that
    snapshot, so a concurrent :meth:`replace` never produces a mix of old and
    new values inside one request.
    """

    def __init__(self, credentials: Credentials | None = None, *, path: Path | None = None) -> None:
        self._lock = threading.Lock()
        self._credentials = credentials or Credentials()
        self._path = path
        self._logger = get_logger("credentials")

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialStore":
        path = settings.credentials_file
        if path is not None and path.exists():
            return cls(load_credentials(path), path=path)
        credentials = Credentials.create(
            llm_api_key=settings.llm_api_key,
            vector_api_key=settings.vector_api_key,
            vector_endpoint=settings.vector_endpoint,
            weather_api_key=settings.weather_api_key,
        )
        return cls(credentials, path=path)

    def current(self) -> Credentials:
        with self._lock:
            return self._credentials

    def replace(self, credentials: Credentials) -> None:
        with self._lock:
            self._credentials = credentials
            if self._path is not None:
                save_credentials(self._path, credentials)
        self._logger.info("credentials.replaced", configured=credentials.is_configured, persisted=self._path is not None)

    @property
    def is_configured(self) -> bool:
        return self.current().is_configured


def load_credentials(path: Path) -> Credentials:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Credentials file {path} must contain a JSON object")
    return Credentials.create(**{name: str(data.get(name) or "") for name in _FIELDS})


def save_credentials(path: Path, credentials: Credentials) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(asdict(credentials), indent=2), encoding="utf-8")
    os.chmod(tmp, 0o600)
    tmp.replace(path)


__all__ = ["CredentialStore", "Credentials", "load_credentials", "save_credentials"]
