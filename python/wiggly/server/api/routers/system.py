"""System API Router: health and application info."""

from fastapi import APIRouter
from loguru import logger
from sqlalchemy import text

from wiggly.server.api.schemas.base import AppInfoData, SuccessResponse
from wiggly.server.config.settings import get_settings
from wiggly.server.db import get_database_manager


def create_system_router() -> APIRouter:
    router = APIRouter(prefix="/system", tags=["system"])

    @router.get(
        "/health",
        response_model=SuccessResponse,
        summary="Health check",
        description="Report application version and whether the trade database answers.",
    )
    async def health() -> SuccessResponse:
        settings = get_settings()
        database_ok = True
        try:
            session = get_database_manager().get_session()
            try:
                session.execute(text("SELECT 1"))
            finally:
                session.close()
        except Exception as e:  # noqa: BLE001
            logger.warning("Health check database probe failed: {}", e)
            database_ok = False
        return SuccessResponse.create(
            data={
                "app": AppInfoData(
                    name=settings.APP_NAME, version=settings.APP_VERSION
                ).model_dump(),
                "database": "ok" if database_ok else "unavailable",
            },
            msg="ok" if database_ok else "degraded",
        )

    return router
