"""Conversation transcript driving the agent turn by turn."""

from __future__ import annotations

import threading
from typing import Sequence

from docagent.credentials import CredentialStore, Credentials
from docagent.errors import AgentError
from docagent.ingestion.service import DocumentUploader
from docagent.metrics.observability import get_logger
from docagent.models import ChatMessage, ToolType
from docagent.services.agent import IntentRouter
from docagent.services.health import HealthChecker

NOT_CONFIGURED = "Please configure your API credentials first"

WELCOME_CONFIGURED = (
    "👋 Welcome to your RAG Agent! I'm connected to your real APIs.\n\n"
    "🔍 **Document Search**: Ask questions about your uploaded documents\n"
    "🌤️ **Weather Info**: Get current weather information\n\n"
    "How can I assist you today?"
)
WELCOME_SETUP = (
    "👋 Welcome to your RAG Agent!\n\n"
    "🔧 **Setup Required**: Configure your API credentials to get started:\n"
    "🔍 **Document Search**: Connect to Vectorize.io\n"
    "🌤️ **Weather Info**: Get real-time weather data\n"
    "🤖 **OpenAI**: Answers grounded in your documents"
)
WEATHER_PROMPT = (
    "🌤️ **Weather Tool Activated**\n\n"
    "To get weather information, please tell me which location you'd like to check.\n\n"
    "For example:\n"
    '• "What\'s the weather in New York?"\n'
    '• "Current weather in Tokyo"\n'
    '• "Weather forecast for London"'
)
SUGGESTED_QUESTIONS = (
    "Search my documents",
    "What's the weather like?",
    "Tell me about the uploaded files",
    "Current weather forecast",
)


class ChatSession:
    """Owns the transcript and the UI-facing state of one conversation.

    Agent failures never escape :meth:`send`; they are recorded in
    ``error_message`` and appended to the transcript as an assistant turn so
    the caller can offer :meth:`retry_last`.
    """

    def __init__(
        self,
        router: IntentRouter,
        credentials: CredentialStore,
        *,
        uploader: DocumentUploader | None = None,
        health: HealthChecker | None = None,
    ) -> None:
        self._router = router
        self._credentials = credentials
        self._uploader = uploader
        self._health = health
        self._lock = threading.Lock()
        self._messages: list[ChatMessage] = []
        self._logger = get_logger("chat")
        self.draft = ""
        self.is_loading = False
        self.is_connected = False
        self.error_message: str | None = None
        self.selected_tool: ToolType | None = None
        self._add_welcome_message()

    @property
    def messages(self) -> Sequence[ChatMessage]:
        with self._lock:
            return tuple(self._messages)

    @property
    def is_configured(self) -> bool:
        return self._credentials.is_configured

    def _append(self, message: ChatMessage) -> ChatMessage:
        with self._lock:
            self._messages.append(message)
        return message

    def _add_welcome_message(self) -> None:
        self._append(ChatMessage(content=WELCOME_CONFIGURED if self.is_configured else WELCOME_SETUP, is_user=False))

    def send(self, text: str) -> ChatMessage | None:
        """Append ``text`` as a user turn and answer it.

        Returns the assistant message, or ``None`` when nothing was sent.
        """

        if not text.strip():
            return None
        if not self.is_configured:
            self.error_message = NOT_CONFIGURED
            return None
        self._append(ChatMessage(content=text, is_user=True))
        self.draft = ""
        return self._process(text)

    def _process(self, text: str) -> ChatMessage:
        self.is_loading = True
        self.error_message = None
        try:
            response = self._router.route(text)
        except AgentError as exc:
            self.error_message = exc.message
            self._logger.warning("chat.turn_failed", code=exc.code)
            return self._append(
                ChatMessage(
                    content=(
                        f"❌ Sorry, I encountered an error: {exc.message}\n\n"
                        "Please check your API configuration or try again."
                    ),
                    is_user=False,
                )
            )
        finally:
            self.is_loading = False
        if response.tool_used is not None:
            self.selected_tool = response.tool_used
        return self._append(ChatMessage(content=response.message, is_user=False, sources=response.sources))

    def retry_last(self) -> ChatMessage | None:
        with self._lock:
            last = next((m for m in reversed(self._messages) if m.is_user), None)
        if last is None:
            return None
        return self._process(last.content)

    def upload_document(self, name: str, content: str, mime_type: str) -> ChatMessage | None:
        if not self.is_configured or self._uploader is None:
            self.error_message = NOT_CONFIGURED
            return None
        self.is_loading = True
        self.error_message = None
        try:
            result = self._uploader.upload(name, content, mime_type)
        except AgentError as exc:
            self.error_message = exc.message
            return self._append(ChatMessage(content=f"❌ Failed to upload document: {exc.message}", is_user=False))
        finally:
            self.is_loading = False
        return self._append(
            ChatMessage(
                content=f"✅ {result.message}\n\nYour document has been processed and indexed for search.",
                is_user=False,
            )
        )

    def check_connection(self) -> bool:
        if not self.is_configured or self._health is None:
            self.is_connected = False
            return False
        try:
            self.is_connected = self._health.check()
        except AgentError as exc:
            self._logger.info("chat.connection_rejected", code=exc.code)
            self.is_connected = False
        return self.is_connected

    def update_configuration(self, credentials: Credentials) -> bool:
        self._credentials.replace(credentials)
        self.clear()
        return self.check_connection()

    def clear(self) -> None:
        with self._lock:
            self._messages.clear()
        self._add_welcome_message()
        self.selected_tool = None
        self.error_message = None

    def trigger_tool(self, tool: ToolType) -> ChatMessage | None:
        if not self.is_configured:
            self.error_message = NOT_CONFIGURED
            return None
        if tool is ToolType.DOCUMENT_RETRIEVAL:
            return self.send("Search through my documents")
        self.selected_tool = ToolType.WEATHER_INFO
        self.draft = "What's the weather in "
        return self._append(ChatMessage(content=WEATHER_PROMPT, is_user=False))

    @staticmethod
    def suggested_questions() -> list[str]:
        return list(SUGGESTED_QUESTIONS)
