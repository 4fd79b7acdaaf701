"""FastAPI application factory for the Wiggly server."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from ..config.settings import get_settings
from ..db import init_database
from ..services.ai_chat_service import shutdown_ai_chat_service
from .exceptions import (
    APIException,
    api_exception_handler,
    general_exception_handler,
    validation_exception_handler,
)
from .routers import create_ai_chat_router, create_system_router
from .schemas import AppInfoData, SuccessResponse


def create_app(init_db: bool = True) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "{} starting up on {}:{}...",
            settings.APP_NAME,
            settings.API_HOST,
            settings.API_PORT,
        )

        if init_db:
            try:
                logger.info("Initializing database tables...")
                if init_database(force=False):
                    logger.info("✓ Database initialized")
                else:
                    logger.info("✗ Database initialization reported failure")
            except Exception as e:
                logger.warning("✗ Database initialization error: {}", e)

        yield

        logger.info("{} shutting down...", settings.APP_NAME)
        await shutdown_ai_chat_service()

    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="AI assistant that answers questions about a trading journal",
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )

    _add_exception_handlers(app)
    _add_middleware(app, settings)
    _add_routes(app, settings)

    return app


def _add_middleware(app: FastAPI, settings) -> None:
    """Add middleware to the application."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _add_exception_handlers(app: FastAPI) -> None:
    """Add exception handlers to the application."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)


def _add_routes(app: FastAPI, settings) -> None:
    """Add routes to the application."""
    api_prefix = settings.API_PREFIX

    @app.get("/", response_model=SuccessResponse[AppInfoData])
    async def home_page():
        return SuccessResponse.create(
            data=AppInfoData(name=settings.APP_NAME, version=settings.APP_VERSION),
            msg=f"Welcome to {settings.APP_NAME} API",
        )

    app.include_router(create_system_router(), prefix=api_prefix)
    app.include_router(create_ai_chat_router(), prefix=api_prefix)
