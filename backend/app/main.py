from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import Body, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration

from .chat_service import ChatService
from .knowledge_base import ChatContext
from .logging_config import configure_structlog, get_logger
from .metrics import PrometheusMiddleware, chat_requests_total, get_metrics
from .openai_async import close_async_client
from .policies import ChatMode
from .schemas import CHAT_BACKEND_ERROR, ChatError, ChatReply, ChatRequest, HealthStatus
from .settings import settings
from .utils import add_cors, add_request_id_tracing

# Configure structured logging (must be done before any logging calls)
configure_structlog(json_logs=not settings.DEBUG)

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        release=settings.SENTRY_RELEASE or "restaurant-assistant@dev",
        integrations=[FastApiIntegration()],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_async_client()


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def create_app(context: ChatContext | None = None) -> FastAPI:
    """Build the API around an already-compiled knowledge base.

    Without an explicit context the fact sheet is loaded from settings; a missing or
    malformed file raises before the app exists.
    """
    if context is None:
        path = settings.knowledge_base_path
        context = ChatContext.from_path(path)
        logger.info(
            "knowledge_base_loaded",
            path=str(path),
            restaurant=context.knowledge_base.name,
            locations=len(context.knowledge_base.locations),
        )

    app = FastAPI(
        title="Restaurant Assistant API",
        version="0.1.0",
        description="Chat proxy that answers from a restaurant fact sheet",
        lifespan=lifespan,
    )
    app.state.chat_context = context
    app.state.chat_service = ChatService(context)

    add_cors(app)
    add_request_id_tracing(app)
    app.add_middleware(PrometheusMiddleware)

    @app.get("/health", response_model=HealthStatus)
    def health():
        return HealthStatus()

    @app.get("/metrics", include_in_schema=False)
    def metrics():
        return get_metrics()

    @app.post(
        "/api/chat",
        response_model=ChatReply,
        responses={500: {"model": ChatError}},
    )
    async def chat(
        payload: ChatRequest | None = Body(default=None),
        service: ChatService = Depends(get_chat_service),
    ):
        payload = payload or ChatRequest()
        mode = ChatMode.from_request(payload.mode)
        try:
            text = await service.reply(payload)
        except Exception:
            logger.exception(
                "chat_backend_error",
                mode=mode.value,
                message_count=len(payload.messages),
            )
            chat_requests_total.labels(mode=mode.value, result="error").inc()
            return JSONResponse(
                status_code=500, content=ChatError(error=CHAT_BACKEND_ERROR).model_dump()
            )
        chat_requests_total.labels(mode=mode.value, result="ok").inc()
        return ChatReply(reply=text)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info("api_starting", port=settings.PORT)
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
