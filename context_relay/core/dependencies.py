"""
Сборка сервисов и FastAPI зависимости.

Все хранилища и сервисы создаются явно в build_container и живут
столько же, сколько приложение (app.state.container).
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from context_relay.core.config import AppConfig, config as default_config, logger
from context_relay.infrastructure.cleanup import ExpirySweeper
from context_relay.infrastructure.concurrency import KeyedLockManager
from context_relay.infrastructure.llm import (
    BaseCompletionClient,
    FakeCompletionClient,
    GroqCompletionClient,
)
from context_relay.infrastructure.whatsapp import WhatsAppClient
from context_relay.models.schemas import TemplateSpec
from context_relay.services.context_injector import ContextInjector
from context_relay.services.context_store import PlaceContextStore
from context_relay.services.delivery import DeliveryService
from context_relay.services.geo import BoundingRegion
from context_relay.services.history_store import ConversationHistoryStore
from context_relay.services.orchestrator import ConversationOrchestrator


@dataclass
class ServiceContainer:
    config: AppConfig
    history: ConversationHistoryStore
    contexts: PlaceContextStore
    injector: ContextInjector
    channel: WhatsAppClient
    completion: BaseCompletionClient
    delivery: DeliveryService
    orchestrator: ConversationOrchestrator
    sweeper: ExpirySweeper


def build_completion_client(cfg: AppConfig) -> BaseCompletionClient:
    """
    Возвращает клиент completion в зависимости от режима работы.
    - mock: FakeCompletionClient для локального запуска и тестов
    - groq: GroqCompletionClient
    """
    if (cfg.llm_mode or "groq").lower() == "mock":
        return FakeCompletionClient()
    return GroqCompletionClient(
        api_key=cfg.groq_api_key,
        model=cfg.groq_model,
        base_url=cfg.groq_base_url,
        max_tokens=cfg.groq_max_tokens,
        temperature=cfg.groq_temperature,
        timeout=cfg.completion_timeout,
    )


def build_container(
    cfg: Optional[AppConfig] = None,
    channel: Optional[WhatsAppClient] = None,
    completion: Optional[BaseCompletionClient] = None,
) -> ServiceContainer:
    cfg = cfg or default_config

    history = ConversationHistoryStore(
        max_turns=cfg.history_max_turns,
        ttl_seconds=cfg.history_ttl_seconds,
        preserve_system_turn=cfg.history_preserve_system_turn,
    )
    contexts = PlaceContextStore(
        region=BoundingRegion(
            min_lat=cfg.region_min_lat,
            max_lat=cfg.region_max_lat,
            min_lon=cfg.region_min_lon,
            max_lon=cfg.region_max_lon,
        ),
        ttl_seconds=cfg.context_ttl_seconds,
    )
    if cfg.seed_default_contexts:
        contexts.seed_defaults()

    injector = ContextInjector(history)
    channel = channel or WhatsAppClient(
        api_url=cfg.whatsapp_api_url,
        phone_number_id=cfg.whatsapp_phone_number_id,
        token=cfg.whatsapp_token,
        timeout=cfg.delivery_timeout,
    )
    completion = completion or build_completion_client(cfg)
    delivery = DeliveryService(
        channel=channel,
        template=TemplateSpec(
            name=cfg.fallback_template_name,
            language=cfg.fallback_template_language,
        ),
        timeout=cfg.delivery_timeout,
        window_expired_codes=cfg.window_expired_error_codes,
    )
    orchestrator = ConversationOrchestrator(
        history=history,
        contexts=contexts,
        injector=injector,
        delivery=delivery,
        completion=completion,
        locks=KeyedLockManager(),
        completion_timeout=cfg.completion_timeout,
    )
    sweeper = ExpirySweeper(
        [history.entries, contexts.entries],
        interval_seconds=cfg.sweep_interval_seconds,
    )

    logger.info(
        f"Service container built (llm_mode={cfg.llm_mode}, history_max_turns={cfg.history_max_turns}, "
        f"history_ttl={cfg.history_ttl_seconds}s, context_ttl={cfg.context_ttl_seconds}s)"
    )
    return ServiceContainer(
        config=cfg,
        history=history,
        contexts=contexts,
        injector=injector,
        channel=channel,
        completion=completion,
        delivery=delivery,
        orchestrator=orchestrator,
        sweeper=sweeper,
    )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_orchestrator(request: Request) -> ConversationOrchestrator:
    return get_container(request).orchestrator


def get_context_store(request: Request) -> PlaceContextStore:
    return get_container(request).contexts


def get_delivery(request: Request) -> DeliveryService:
    return get_container(request).delivery
