"""Pydantic models for the docagent API."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from docagent.models import ChatMessage, ChatResponse, DocumentSource, ToolType


class MessageRequest(BaseModel):
    message: str = Field(..., min_length=1, description="Free-text user message")


class SourceModel(BaseModel):
    id: str
    title: str
    content: str
    url: Optional[str] = None
    score: float

    @classmethod
    def from_source(cls, source: DocumentSource) -> "SourceModel":
        return cls(id=source.id, title=source.title, content=source.content, url=source.url, score=source.score)


def _sources(sources: Sequence[DocumentSource] | None) -> Optional[List[SourceModel]]:
    if sources is None:
        return None
    return [SourceModel.from_source(source) for source in sources]


class MetadataModel(BaseModel):
    processing_time_ms: float
    tokens_used: Optional[int] = None
    model: Optional[str] = None


class AgentResponse(BaseModel):
    message: str
    tool_used: Optional[ToolType] = None
    sources: Optional[List[SourceModel]] = None
    metadata: MetadataModel

    @classmethod
    def from_response(cls, response: ChatResponse) -> "AgentResponse":
        return cls(
            message=response.message,
            tool_used=response.tool_used,
            sources=_sources(response.sources),
            metadata=MetadataModel(
                processing_time_ms=response.metadata.processing_time_ms,
                tokens_used=response.metadata.tokens_used,
                model=response.metadata.model,
            ),
        )


class MessageModel(BaseModel):
    id: str
    content: str
    is_user: bool
    timestamp: datetime
    sources: Optional[List[SourceModel]] = None

    @classmethod
    def from_message(cls, message: ChatMessage) -> "MessageModel":
        return cls(
            id=message.id,
            content=message.content,
            is_user=message.is_user,
            timestamp=message.timestamp,
            sources=_sources(message.sources),
        )


class ChatTurnResponse(BaseModel):
    reply: Optional[MessageModel] = Field(default=None, description="Assistant message appended for this turn")
    error_message: Optional[str] = None
    selected_tool: Optional[ToolType] = None


class TranscriptResponse(BaseModel):
    messages: List[MessageModel]
    suggested_questions: List[str]


class UploadRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Document title, usually the file name")
    content: str = Field(..., min_length=1, description="Raw document text")
    mime_type: str = Field(default="text/plain", description="Content type recorded in the index metadata")


class UploadResponse(BaseModel):
    success: bool
    document_id: str
    message: str


class CredentialsRequest(BaseModel):
    llm_api_key: str = ""
    vector_api_key: str = ""
    vector_endpoint: str = ""
    weather_api_key: str = ""


class ConfigurationStatus(BaseModel):
    configured: bool
    connected: Optional[bool] = None


class ErrorResponse(BaseModel):
    detail: str
    code: str
    details: Dict[str, str] = Field(default_factory=dict)
    correlation_id: str
