"""Tests for the FastAPI application."""

from __future__ import annotations

import json

import httpx
from fastapi.testclient import TestClient

from docagent.api.app import create_app
from docagent.config import Settings
from docagent.services.factory import build_components

COMPLETION = {"choices": [{"message": {"content": "From the handbook: 25 days."}}], "usage": {"total_tokens": 99}}
WEATHER = {"main": {"temp": 60.2, "humidity": 70}, "weather": [{"description": "light rain"}], "wind": {"speed": 9.1}}


def fake_backends(request: httpx.Request) -> httpx.Response:
    if request.url.host == "api.openweathermap.org":
        return httpx.Response(200, json=WEATHER)
    if request.url.path.endswith("/chat/completions"):
        return httpx.Response(200, json=COMPLETION)
    if request.url.path.endswith("/models"):
        return httpx.Response(200, json={"data": []})
    if request.url.path.endswith("/upsert"):
        return httpx.Response(201, json={})
    if request.url.path.endswith("/retrieval"):
        question = json.loads(request.content)["question"]
        if "empty" in question:
            return httpx.Response(200, json={"documents": []})
        return httpx.Response(200, json={"documents": [{"text": "25 days of leave", "score": 0.9, "metadata": {"title": "Handbook"}}]})
    return httpx.Response(404)


def create_test_client(credentials, backend, **overrides) -> TestClient:
    backend.route(fake_backends)
    settings = Settings(environment="test", **overrides)
    components = build_components(settings, credentials=credentials, client=backend.client)
    return TestClient(create_app(settings=settings, dependencies=components))


def test_agent_query_document_path(credentials, backend):
    client = create_test_client(credentials, backend)

    response = client.post("/agent/query", json={"message": "How much leave do I get?"})

    assert response.status_code == 200, response.text
    payload = response.json()
    assert payload["message"] == "From the handbook: 25 days."
    assert payload["tool_used"] == "document_retrieval"
    assert payload["sources"][0]["title"] == "Handbook"
    assert payload["metadata"]["tokens_used"] == 99
    assert payload["metadata"]["model"] == "gpt-4o-mini"


def test_agent_query_weather_path(credentials, backend):
    client = create_test_client(credentials, backend)

    payload = client.post("/agent/query", json={"message": "weather in Lisbon"}).json()

    assert payload["tool_used"] == "weather_info"
    assert payload["sources"] is None
    assert payload["message"].startswith("The weather in Lisbon is currently 60°F and light rain.")


def test_typed_errors_map_to_statuses(credentials, empty_credentials, backend):
    client = create_test_client(credentials, backend)
    response = client.post("/agent/query", json={"message": "empty index please"})
    assert response.status_code == 404
    assert response.json()["code"] == "NO_DOCUMENTS"
    assert "X-Correlation-ID" in response.headers

    unconfigured = create_test_client(empty_credentials, backend)
    response = unconfigured.post("/agent/query", json={"message": "anything"})
    assert response.status_code == 412
    assert response.json()["code"] == "MISSING_API_KEY"


def test_chat_transcript_flow(credentials, backend):
    client = create_test_client(credentials, backend)

    turn = client.post("/chat", json={"message": "How much leave do I get?"}).json()
    assert turn["reply"]["content"] == "From the handbook: 25 days."
    assert turn["selected_tool"] == "document_retrieval"

    transcript = client.get("/chat/messages").json()
    assert [m["is_user"] for m in transcript["messages"]] == [False, True, False]
    assert transcript["suggested_questions"]

    failed = client.post("/chat", json={"message": "empty index please"}).json()
    assert failed["reply"]["content"].startswith("❌ Sorry, I encountered an error")
    assert failed["error_message"]

    assert client.post("/chat/retry").status_code == 200
    assert client.delete("/chat/messages").status_code == 204
    assert len(client.get("/chat/messages").json()["messages"]) == 1


def test_upload_document(credentials, backend):
    client = create_test_client(credentials, backend)
    response = client.post("/documents", json={"name": "notes.txt", "content": "hello"})
    assert response.status_code == 201, response.text
    assert response.json()["success"] is True


def test_configuration_roundtrip(empty_credentials, backend):
    client = create_test_client(empty_credentials, backend)
    assert client.get("/config").json() == {"configured": False, "connected": None}

    response = client.put(
        "/config",
        json={
            "llm_api_key": "sk-test-0123456789abcdefghij",
            "vector_api_key": "vec-key",
            "vector_endpoint": "https://api.vectorize.io/v1/org/o1/pipelines/p1/retrieval",
        },
    )

    assert response.json() == {"configured": True, "connected": True}
    assert empty_credentials.current().weather_api_key == ""


def test_api_key_guard(credentials, backend):
    client = create_test_client(credentials, backend, api_key="secret")
    assert client.get("/config").status_code == 401
    assert client.get("/config", headers={"X-API-Key": "secret"}).status_code == 200


def test_health_endpoints(credentials, backend):
    client = create_test_client(credentials, backend)
    health = client.get("/healthz").json()
    assert health["status"] == "ok"
    assert health["version"]
    assert client.head("/healthz").status_code == 200
    assert client.get("/livez").json() == {"status": "alive"}
    assert client.get("/healthz/ready").json() == {"status": "ready"}
    assert client.get("/metrics").status_code == 200


def test_undecodable_backend_reply_is_a_typed_error(credentials, backend):
    client = create_test_client(credentials, backend)
    backend.route(lambda request: httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip"))

    response = client.post("/agent/query", json={"message": "How much leave do I get?"})
    assert response.status_code == 504
    assert response.json()["code"] == "NETWORK_ERROR"
    assert set(response.json()) == {"detail", "code", "details", "correlation_id"}

    turn = client.post("/chat", json={"message": "How much leave do I get?"})
    assert turn.status_code == 200
    assert turn.json()["reply"]["content"].startswith("❌ Sorry, I encountered an error")


def test_error_body_is_documented_in_openapi(credentials, backend):
    client = create_test_client(credentials, backend)
    responses = client.get("/openapi.json").json()["paths"]["/agent/query"]["post"]["responses"]
    assert responses["504"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
