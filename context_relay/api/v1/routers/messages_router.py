"""
Messages роутер.

Административные операции с диалогами: отправка сообщений и шаблонов,
приветствие, старт разговора, очистка истории.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ....core.dependencies import get_delivery, get_orchestrator
from ....core.errors import ValidationError
from ....models.rest import (
    OperationResponse,
    SendMessageRequest,
    SendTemplateRequest,
    StartConversationRequest,
    UserRequest,
)
from ....models.schemas import DeliveryOutcome, TemplateSpec
from ....services.delivery import DeliveryService
from ....services.identity import resolve_target
from ....services.orchestrator import ConversationOrchestrator

logger = logging.getLogger("context-relay.api.messages")

router = APIRouter(prefix="/api", tags=["messages"])


def require(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValidationError(field)
    return value


def outcome_response(outcome: DeliveryOutcome) -> JSONResponse:
    return JSONResponse(
        status_code=200 if outcome.success else 502,
        content=outcome.model_dump(mode="json"),
    )


@router.post("/send-message")
async def send_message(
    request: SendMessageRequest,
    delivery: DeliveryService = Depends(get_delivery),
) -> JSONResponse:
    """
    Отправить сообщение напрямую.

    При useFallback=true (по умолчанию) истекшее окно 24ч приводит
    к отправке шаблона.
    """
    target = resolve_target(request.to, "to")
    require(request.message, "message")
    if request.use_fallback:
        outcome = await delivery.send_with_fallback(target, request.message)
    else:
        outcome = await delivery.send_direct(target, request.message)
    logger.info(f"send-message to {target}: success={outcome.success}, channel={outcome.channel}")
    return outcome_response(outcome)


@router.post("/send-template")
async def send_template(
    request: SendTemplateRequest,
    delivery: DeliveryService = Depends(get_delivery),
) -> JSONResponse:
    target = resolve_target(request.to, "to")
    require(request.template_name, "templateName")
    outcome = await delivery.send_template(
        target, request.template_name, request.language, request.components
    )
    return outcome_response(outcome)


@router.post("/start-conversation")
async def start_conversation(
    request: StartConversationRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Начать разговор шаблоном и продолжить его через ИИ."""
    outcome = await orchestrator.start_conversation(
        request.user_id,
        TemplateSpec(
            name=request.template_name,
            language=request.language,
            components=request.components,
        ),
    )
    if not outcome.success:
        return outcome_response(outcome)
    return JSONResponse(
        status_code=200,
        content=OperationResponse(
            success=True,
            message="Conversa iniciada com sucesso",
            data=outcome.model_dump(mode="json"),
        ).model_dump(mode="json"),
    )


@router.post("/send-welcome")
async def send_welcome(
    request: UserRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    outcome = await orchestrator.send_welcome(request.user_id)
    return outcome_response(outcome)


@router.post("/clear-history", response_model=OperationResponse)
async def clear_history(
    request: UserRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> OperationResponse:
    existed = await orchestrator.clear_history(request.user_id)
    return OperationResponse(
        success=True,
        message="Histórico de conversa limpo com sucesso",
        data={"existed": existed},
    )
