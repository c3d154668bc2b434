"""Small helpers shared by the HTTPX-based backend clients."""

from __future__ import annotations

from typing import Any

import httpx

from docagent.config import Settings
from docagent.errors import NetworkError


def build_http_client(settings: Settings) -> httpx.Client:
    return httpx.Client(timeout=httpx.Timeout(settings.request_timeout_seconds))


def bearer_headers(token: str) -> dict[str, str]:
    return {"Content-Type": "application/json", "Authorization": f"Bearer {token}"}


def send(client: httpx.Client, request: httpx.Request, *, backend: str) -> httpx.Response:
    """Send ``request``, turning any request-level failure into :class:`NetworkError`.

    Covers transport errors as well as undecodable bodies and redirect loops.
    """

    try:
        return client.send(request)
    except httpx.RequestError as exc:
        raise NetworkError(f"{backend} request failed: {exc}") from exc


def json_body(response: httpx.Response) -> Any:
    """Return the decoded JSON body, or ``None`` when it is not valid JSON."""

    try:
        return response.json()
    except ValueError:
        return None
