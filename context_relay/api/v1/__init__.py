from fastapi import APIRouter

from .routers import contexts_router, health_router, messages_router, webhook_router

router = APIRouter()
router.include_router(health_router)
router.include_router(webhook_router)
router.include_router(messages_router)
router.include_router(contexts_router)

__all__ = ["router"]
