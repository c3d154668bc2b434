"""FastAPI application exposing the docagent services."""

from __future__ import annotations

from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from docagent import __version__
from docagent.api.schemas import (
    AgentResponse,
    ChatTurnResponse,
    ConfigurationStatus,
    CredentialsRequest,
    ErrorResponse,
    MessageModel,
    MessageRequest,
    TranscriptResponse,
    UploadRequest,
    UploadResponse,
)
from docagent.config import Settings, get_settings
from docagent.credentials import Credentials
from docagent.errors import (
    AgentError,
    ConfigurationError,
    HTTPError,
    InvalidCredentialError,
    MalformedResponseError,
    NetworkError,
    NoDocumentsError,
    RetrievalError,
)
from docagent.metrics.observability import bind_correlation_id, clear_correlation_id, configure_logging, get_logger
from docagent.services.factory import AgentComponents, build_components

# Most specific first; NoDocumentsError must be checked before RetrievalError.
ERROR_STATUS: tuple[tuple[type[AgentError], int], ...] = (
    (ConfigurationError, status.HTTP_412_PRECONDITION_FAILED),
    (InvalidCredentialError, status.HTTP_401_UNAUTHORIZED),
    (NoDocumentsError, status.HTTP_404_NOT_FOUND),
    (RetrievalError, status.HTTP_502_BAD_GATEWAY),
    (HTTPError, status.HTTP_502_BAD_GATEWAY),
    (MalformedResponseError, status.HTTP_502_BAD_GATEWAY),
    (NetworkError, status.HTTP_504_GATEWAY_TIMEOUT),
)

ERROR_RESPONSES = {code: {"model": ErrorResponse} for code in sorted({code for _, code in ERROR_STATUS})}


def status_for(exc: AgentError) -> int:
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_app(*, settings: Settings | None = None, dependencies: AgentComponents | None = None) -> FastAPI:
    settings = settings or get_settings()
    deps = dependencies or build_components(settings)

    configure_logging()
    logger = get_logger("api")
    app = FastAPI(title="docagent API", version="0.1.0")
    app.state.dependencies = deps

    # Optional CORS
    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_allow_origins),
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=list(settings.cors_allow_methods),
            allow_headers=list(settings.cors_allow_headers),
        )

    @app.middleware("http")
    async def add_correlation_id(request: Request, call_next):  # type: ignore[override]
        correlation_id = request.headers.get("X-Request-ID", uuid4().hex)
        request.state.correlation_id = correlation_id
        bind_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    def require_api_key(request: Request) -> None:
        expected = settings.api_key
        if not expected:
            return
        provided = request.headers.get("X-API-Key")
        if provided != expected:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")

    @app.exception_handler(AgentError)
    async def handle_agent_error(request: Request, exc: AgentError) -> JSONResponse:
        correlation_id = getattr(request.state, "correlation_id", uuid4().hex)
        logger.warning("agent.error", correlation_id=correlation_id, code=exc.code, detail=exc.message)
        return JSONResponse(
            status_code=status_for(exc),
            content=ErrorResponse(
                detail=exc.message, code=exc.code, details=exc.details, correlation_id=correlation_id
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        correlation_id = getattr(request.state, "correlation_id", uuid4().hex)
        logger.error("unhandled.error", correlation_id=correlation_id, detail=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal Server Error", "correlation_id": correlation_id},
        )

    def get_dependencies(request: Request) -> AgentComponents:
        return request.app.state.dependencies

    @app.post("/agent/query", response_model=AgentResponse, responses=ERROR_RESPONSES)
    def agent_query(
        payload: MessageRequest,
        dep: AgentComponents = Depends(get_dependencies),
        _auth: None = Depends(require_api_key),
    ) -> AgentResponse:
        return AgentResponse.from_response(dep.router.route(payload.message))

    @app.post("/chat", response_model=ChatTurnResponse)
    def chat(
        payload: MessageRequest,
        dep: AgentComponents = Depends(get_dependencies),
        _auth: None = Depends(require_api_key),
    ) -> ChatTurnResponse:
        session = dep.session
        reply = session.send(payload.message)
        return ChatTurnResponse(
            reply=MessageModel.from_message(reply) if reply else None,
            error_message=session.error_message,
            selected_tool=session.selected_tool,
        )

    @app.post("/chat/retry", response_model=ChatTurnResponse)
    def retry_chat(
        dep: AgentComponents = Depends(get_dependencies),
        _auth: None = Depends(require_api_key),
    ) -> ChatTurnResponse:
        session = dep.session
        reply = session.retry_last()
        if reply is None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No user message to retry")
        return ChatTurnResponse(
            reply=MessageModel.from_message(reply),
            error_message=session.error_message,
            selected_tool=session.selected_tool,
        )

    @app.get("/chat/messages", response_model=TranscriptResponse)
    async def transcript(
        dep: AgentComponents = Depends(get_dependencies),
        _auth: None = Depends(require_api_key),
    ) -> TranscriptResponse:
        return TranscriptResponse(
            messages=[MessageModel.from_message(message) for message in dep.session.messages],
            suggested_questions=dep.session.suggested_questions(),
        )

    @app.delete("/chat/messages", status_code=status.HTTP_204_NO_CONTENT)
    async def clear_transcript(
        dep: AgentComponents = Depends(get_dependencies),
        _auth: None = Depends(require_api_key),
    ) -> Response:
        dep.session.clear()
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post(
        "/documents",
        response_model=UploadResponse,
        status_code=status.HTTP_201_CREATED,
        responses=ERROR_RESPONSES,
    )
    def upload_document(
        payload: UploadRequest,
        dep: AgentComponents = Depends(get_dependencies),
        _auth: None = Depends(require_api_key),
    ) -> UploadResponse:
        result = dep.uploader.upload(payload.name, payload.content, payload.mime_type)
        return UploadResponse(success=result.success, document_id=result.document_id, message=result.message)

    @app.get("/config", response_model=ConfigurationStatus)
    async def configuration(
        dep: AgentComponents = Depends(get_dependencies),
        _auth: None = Depends(require_api_key),
    ) -> ConfigurationStatus:
        return ConfigurationStatus(configured=dep.credentials.is_configured)

    @app.put("/config", response_model=ConfigurationStatus)
    def update_configuration(
        payload: CredentialsRequest,
        dep: AgentComponents = Depends(get_dependencies),
        _auth: None = Depends(require_api_key),
    ) -> ConfigurationStatus:
        connected = dep.session.update_configuration(Credentials.create(**payload.model_dump()))
        return ConfigurationStatus(configured=dep.credentials.is_configured, connected=connected)

    @app.get("/metrics")
    async def metrics() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok", "version": __version__, "environment": settings.environment}

    @app.head("/healthz")
    async def healthcheck_head() -> Response:
        return Response(status_code=status.HTTP_200_OK)

    @app.get("/livez")
    async def liveness() -> dict[str, str]:
        return {"status": "alive"}

    @app.get("/healthz/ready")
    def readiness(dep: AgentComponents = Depends(get_dependencies)) -> dict[str, str]:
        try:
            ready = dep.health.check()
        except InvalidCredentialError as exc:
            return {"status": "error", "detail": exc.message}
        return {"status": "ready" if ready else "unavailable"}

    return app


app = create_app()
