"""
Health check роутер.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ....core.dependencies import ServiceContainer, get_container
from ....models.rest import HealthResponse

logger = logging.getLogger("context-relay.api.health")

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
@router.get("/api/health", response_model=HealthResponse)
async def health_check(container: ServiceContainer = Depends(get_container)) -> HealthResponse:
    """
    Проверка состояния сервиса.

    Пример ответа:
        {
            "success": true,
            "status": "healthy",
            "service": "context-relay",
            "version": "0.1.0",
            "timestamp": "2026-10-18T12:00:00Z"
        }
    """
    logger.debug("Health check called")
    return HealthResponse(
        status="healthy",
        service="context-relay",
        version=container.config.version,
        timestamp=datetime.now(timezone.utc),
    )
