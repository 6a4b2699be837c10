"""
Context Relay Service - Main application entry point.

FastAPI application relaying WhatsApp messages to a Groq completion
model, enriched with location-anchored context about Recife.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

from context_relay.api.errors import register_error_handlers
from context_relay.api.v1 import router as v1_router
from context_relay.core.config import AppConfig, config, logger
from context_relay.core.dependencies import ServiceContainer, build_container
from context_relay.middleware.internal_auth import InternalAuthMiddleware

ENDPOINTS_INDEX = {
    "webhookEndpoint": "/webhook",
    "apiEndpoints": {
        "POST /api/send-message": "Envia uma mensagem para um número de WhatsApp",
        "POST /api/send-template": "Envia uma mensagem de template",
        "POST /api/start-conversation": "Inicia uma conversa usando template",
        "POST /api/clear-history": "Limpa o histórico de conversa de um usuário",
        "POST /api/send-welcome": "Envia mensagem de boas-vindas para um usuário",
        "GET /api/health": "Verifica o status do serviço",
        "POST /api/context": "Adiciona um novo contexto local",
        "GET /api/context/{id}": "Obtém um contexto específico",
        "GET /api/contexts": "Lista todos os contextos disponíveis",
        "POST /api/contexts/nearby": "Encontra contextos próximos a uma localização",
        "POST /api/apply-context": "Aplica um contexto a uma conversa atual",
        "DELETE /api/context/{id}": "Remove um contexto",
    },
}


def create_app(
    cfg: Optional[AppConfig] = None,
    container: Optional[ServiceContainer] = None,
) -> FastAPI:
    cfg = cfg or config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting Context Relay v{cfg.version}...")
        missing = cfg.missing_required()
        if missing:
            logger.warning(f"Incomplete configuration, missing: {', '.join(missing)}")
        await app.state.container.sweeper.start()

        yield

        logger.info("Shutting down Context Relay...")
        await app.state.container.sweeper.stop()

    app = FastAPI(
        title="Context Relay Service",
        version=cfg.version,
        description="WhatsApp to Groq relay with location-anchored context",
        lifespan=lifespan,
    )
    app.state.container = container or build_container(cfg)

    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "XInternalAuth": {"type": "apiKey", "in": "header", "name": "x-internal-auth"}
        }
        openapi_schema["security"] = [{"XInternalAuth": []}]
        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[assignment]

    app.add_middleware(InternalAuthMiddleware, api_key=cfg.internal_api_key)
    register_error_handlers(app)
    app.include_router(v1_router)

    @app.get("/")
    async def root():
        return {
            "success": True,
            "message": "API de integração WhatsApp-Groq em funcionamento.",
            "docs": "/docs-index",
        }

    @app.get("/docs-index")
    async def docs_index():
        return ENDPOINTS_INDEX

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "context_relay.main:app",
        host="0.0.0.0",
        port=3000,
        log_level=config.log_level.lower(),
    )
