"""
Support Desk Ticket Service

FastAPI entry point: wires middleware, the /api/v1 router, error handlers and
the health endpoints. Run with ``python run.py`` or ``uvicorn helpdesk.main:app``.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.middleware import CorrelationIdMiddleware, register_error_handlers
from .api.routes import api_router
from .config.settings import settings
from .repositories.mongo_client import close_connection, create_indexes, health_check
from .utils.logger import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)

SERVICE_NAME = "Support Desk Ticket Service"
VERSION = "1.0.0"
API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Ensure indexes on startup, release the Mongo client on shutdown"""
    logger.info(f"Starting {SERVICE_NAME} ({settings.environment})", extra={"action": "startup"})

    try:
        create_indexes()
    except Exception as e:
        # The API still serves; /health reports the database as unhealthy
        logger.error(f"Index creation failed: {e}", extra={"action": "startup"})

    if not settings.openai_configured:
        logger.warning("AI routing disabled: no OpenAI credentials, suggestions fall back to the default department")

    yield

    close_connection()
    logger.info(f"{SERVICE_NAME} stopped", extra={"action": "shutdown"})


async def health():
    """Liveness plus database reachability; never requires a token"""
    mongo = health_check()
    return {
        "status": "healthy" if mongo.get("status") == "healthy" else "degraded",
        "service": SERVICE_NAME,
        "version": VERSION,
        "environment": settings.environment,
        "ai_routing": settings.openai_configured,
        "mongo": mongo,
    }


async def service_info():
    return {
        "name": SERVICE_NAME,
        "version": VERSION,
        "api": API_PREFIX,
        "docs": "/api/docs" if settings.debug else None,
    }


def create_app() -> FastAPI:
    docs_enabled = settings.debug
    application = FastAPI(
        title=SERVICE_NAME,
        description="Internal support desk ticketing with AI-assisted department routing",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/api/docs" if docs_enabled else None,
        redoc_url="/api/redoc" if docs_enabled else None,
        openapi_url="/api/openapi.json" if docs_enabled else None,
    )

    # Credentials cannot be combined with a wildcard origin
    wildcard = settings.cors_origins.strip() == "*"
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if wildcard else settings.cors_origins_list,
        allow_credentials=not wildcard,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-Id"],
    )
    application.add_middleware(CorrelationIdMiddleware)

    register_error_handlers(application)

    application.include_router(api_router, prefix=API_PREFIX)
    for path in ("/health", f"{API_PREFIX}/health"):
        application.add_api_route(path, health, methods=["GET"], tags=["Health"])
    application.add_api_route("/", service_info, methods=["GET"], tags=["Health"])

    return application


app = create_app()
