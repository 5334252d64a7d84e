"""FastAPI application entrypoint.

Application startup order:
1. Load settings (from environment)
2. Configure structured logging
3. Build the document store, model gateway, sandbox and toolbox
4. Build the technique dispatcher on top of them
5. Register middleware (CORS, request IDs) and routers

Everything lives on ``app.state`` for the lifetime of the process; nothing
is persisted across restarts except the uploaded originals on disk.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from promptlab.api.router import api_v1_router, public_router
from promptlab.config import Settings, get_settings
from promptlab.documents.store import DocumentStore
from promptlab.llm.gateway import ModelGateway
from promptlab.sandbox.evaluator import SandboxedEvaluator
from promptlab.techniques.dispatcher import TechniqueDispatcher
from promptlab.telemetry.logging import RequestIdMiddleware, configure_logging
from promptlab.tools.toolbox import build_toolbox

log = structlog.get_logger(__name__)


def build_components(app: FastAPI, settings: Settings) -> None:
    """Wire the store, gateway, evaluator, toolbox and dispatcher into ``app.state``."""
    store = DocumentStore(settings.uploads_dir)
    gateway = ModelGateway(settings)
    evaluator = SandboxedEvaluator(
        timeout_ms=settings.sandbox_timeout_ms,
        memory_limit_mb=settings.sandbox_memory_limit_mb,
    )
    app.state.settings = settings
    app.state.document_store = store
    app.state.gateway = gateway
    app.state.dispatcher = TechniqueDispatcher(
        gateway,
        store=store,
        evaluator=evaluator,
        toolbox=build_toolbox(settings, store),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown."""
    settings: Settings = app.state.settings

    # Configure structured logging first (before any log calls)
    configure_logging(
        json_logs=settings.is_prod,
        log_level="DEBUG" if settings.debug else "INFO",
    )

    log.info(
        "app.starting",
        environment=settings.environment,
        provider=settings.llm_provider,
        model=settings.llm_model,
        react_tools=settings.react_tool_backend,
    )
    log.info("app.ready")
    yield
    log.info("app.shutdown", documents=len(app.state.document_store))


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Prompt Technique Lab",
        description="Runs prompting techniques against a text-generation model.",
        version="0.1.0",
        docs_url="/docs" if settings.is_dev else None,
        redoc_url="/redoc" if settings.is_dev else None,
        openapi_url="/openapi.json" if settings.is_dev else None,
        lifespan=lifespan,
    )
    build_components(app, settings)

    # ------------------------------------------------------------------ #
    # Middleware (added in reverse order - last added = first executed)
    # ------------------------------------------------------------------ #
    cors_origins = ["*"] if settings.is_dev else settings.cors_allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.is_prod,
        allow_methods=["*"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )
    app.add_middleware(RequestIdMiddleware)

    app.include_router(public_router)
    app.include_router(api_v1_router)

    # ------------------------------------------------------------------ #
    # Global exception handlers
    # ------------------------------------------------------------------ #

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        log.error(
            "app.unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app


# Module-level app instance for uvicorn
app = create_app()
