from __future__ import annotations

import httpx

from docagent.credentials import CredentialStore, Credentials
from docagent.errors import HTTPError, InvalidCredentialError, NoDocumentsError
from docagent.models import ChatResponse, DocumentSource, ResponseMetadata, ToolType, UploadResult
from docagent.services.chat import NOT_CONFIGURED, ChatSession
from docagent.services.factory import build_components


class StubRouter:
    def __init__(self, response: ChatResponse | None = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.messages: list[str] = []

    def route(self, message: str) -> ChatResponse:
        self.messages.append(message)
        if self.error:
            raise self.error
        return self.response


class StubUploader:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error

    def upload(self, name: str, content: str, mime_type: str) -> UploadResult:
        if self.error:
            raise self.error
        return UploadResult(document_id="DOC-1", message="Document uploaded and indexed successfully")


class StubHealth:
    def __init__(self, result: bool = True, error: Exception | None = None) -> None:
        self.result = result
        self.error = error

    def check(self) -> bool:
        if self.error:
            raise self.error
        return self.result


SOURCE = DocumentSource(title="Handbook", content="Leave policy", score=0.7)
DOC_RESPONSE = ChatResponse(
    message="You get 25 days.",
    tool_used=ToolType.DOCUMENT_RETRIEVAL,
    sources=[SOURCE],
    metadata=ResponseMetadata(processing_time_ms=3.0),
)


def _session(credentials, router=None, uploader=None, health=None) -> ChatSession:
    return ChatSession(router or StubRouter(DOC_RESPONSE), credentials, uploader=uploader, health=health)


def test_welcome_message_depends_on_configuration(credentials, empty_credentials):
    assert "connected to your real APIs" in _session(credentials).messages[0].content
    assert "Setup Required" in _session(empty_credentials).messages[0].content


def test_send_appends_user_and_assistant_turns(credentials):
    session = _session(credentials)

    reply = session.send("How much leave?")

    user, assistant = session.messages[-2:]
    assert user.is_user and user.content == "How much leave?"
    assert assistant is reply
    assert not assistant.is_user
    assert assistant.has_sources
    assert list(assistant.sources) == [SOURCE]
    assert session.selected_tool is ToolType.DOCUMENT_RETRIEVAL
    assert session.error_message is None
    assert not session.is_loading


def test_blank_input_is_ignored(credentials):
    router = StubRouter(DOC_RESPONSE)
    session = _session(credentials, router=router)
    assert session.send("   \n") is None
    assert router.messages == []
    assert len(session.messages) == 1


def test_unconfigured_session_refuses_to_send(empty_credentials):
    router = StubRouter(DOC_RESPONSE)
    session = _session(empty_credentials, router=router)
    assert session.send("hello") is None
    assert session.error_message == NOT_CONFIGURED
    assert router.messages == []


def test_agent_errors_become_assistant_messages(credentials):
    session = _session(credentials, router=StubRouter(error=NoDocumentsError("No documents found")))

    reply = session.send("anything")

    assert reply.content.startswith("❌ Sorry, I encountered an error: No documents found")
    assert session.error_message == "No documents found"
    assert session.selected_tool is None


def test_retry_reprocesses_last_user_message(credentials):
    router = StubRouter(error=HTTPError(500, "boom"))
    session = _session(credentials, router=router)
    session.send("first question")
    router.error = None

    reply = session.retry_last()

    assert router.messages == ["first question", "first question"]
    assert reply.content == "You get 25 days."
    assert session.error_message is None


def test_retry_without_user_message(credentials):
    assert _session(credentials).retry_last() is None


def test_clear_resets_transcript(credentials):
    session = _session(credentials)
    session.send("question")
    session.clear()
    assert len(session.messages) == 1
    assert session.selected_tool is None


def test_weather_tool_prompts_for_location(credentials):
    session = _session(credentials)
    message = session.trigger_tool(ToolType.WEATHER_INFO)
    assert "Weather Tool Activated" in message.content
    assert session.draft == "What's the weather in "
    assert session.selected_tool is ToolType.WEATHER_INFO


def test_document_tool_sends_search_request(credentials):
    router = StubRouter(DOC_RESPONSE)
    _session(credentials, router=router).trigger_tool(ToolType.DOCUMENT_RETRIEVAL)
    assert router.messages == ["Search through my documents"]


def test_upload_success_and_failure(credentials):
    ok = _session(credentials, uploader=StubUploader()).upload_document("a.txt", "text", "text/plain")
    assert ok.content.startswith("✅ Document uploaded and indexed successfully")

    failing = _session(credentials, uploader=StubUploader(error=HTTPError(400, "too big")))
    failed = failing.upload_document("a.txt", "text", "text/plain")
    assert failed.content == "❌ Failed to upload document: too big"
    assert failing.error_message == "too big"


def test_check_connection_swallows_credential_errors(credentials):
    assert _session(credentials, health=StubHealth(True)).check_connection() is True
    session = _session(credentials, health=StubHealth(error=InvalidCredentialError("bad")))
    assert session.check_connection() is False
    assert session.is_connected is False


def test_update_configuration_replaces_credentials_and_clears(empty_credentials):
    session = _session(empty_credentials, health=StubHealth(True))

    connected = session.update_configuration(Credentials.create(llm_api_key="sk-k", vector_api_key="v", vector_endpoint="e"))

    assert connected is True
    assert empty_credentials.is_configured
    assert len(session.messages) == 1
    assert "connected to your real APIs" in session.messages[0].content


def test_suggested_questions():
    assert "What's the weather like?" in ChatSession.suggested_questions()


def test_shared_store_reflects_updates():
    store = CredentialStore()
    session = _session(store)
    store.replace(Credentials.create(llm_api_key="k", vector_api_key="v", vector_endpoint="e"))
    assert session.is_configured


def test_undecodable_backend_reply_becomes_error_turn(settings, credentials, backend):
    backend.route(lambda request: httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip"))
    session = build_components(settings, credentials=credentials, client=backend.client).session

    reply = session.send("what is in my docs?")

    assert reply.content.startswith("❌ Sorry, I encountered an error")
    assert session.error_message.startswith("Vectorize request failed")
    assert [m.is_user for m in session.messages][-2:] == [True, False]
