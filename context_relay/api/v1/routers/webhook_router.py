"""
Webhook роутер WhatsApp.

GET: handshake верификации, POST: входящие сообщения.
"""

import json
import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from fastapi.responses import PlainTextResponse

from ....core.dependencies import ServiceContainer, get_container
from ....core.errors import ValidationError
from ....models.schemas import InboundMessage
from ....services.orchestrator import ConversationOrchestrator
from ....services.webhook import extract_text_messages, verify_signature, verify_subscription

logger = logging.getLogger("context-relay.api.webhook")

router = APIRouter(prefix="/webhook", tags=["webhook"])


@router.get("", response_class=PlainTextResponse)
async def verify_webhook(
    mode: Optional[str] = Query(default=None, alias="hub.mode"),
    token: Optional[str] = Query(default=None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(default=None, alias="hub.challenge"),
    container: ServiceContainer = Depends(get_container),
):
    if verify_subscription(mode, token, container.config.verify_token):
        logger.info("Webhook verified")
        return PlainTextResponse(challenge or "", status_code=200)
    logger.error("Webhook verification failed")
    return PlainTextResponse("Forbidden", status_code=403)


async def process_messages(orchestrator: ConversationOrchestrator, messages: List[InboundMessage]):
    for message in messages:
        result = await orchestrator.process_inbound_turn(message.sender, message.text)
        if not result.success:
            logger.warning(
                f"Inbound message {message.id} from {message.sender} not processed: "
                f"{result.error_kind} {result.detail}"
            )


@router.post("", response_class=PlainTextResponse)
async def receive_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    container: ServiceContainer = Depends(get_container),
):
    """
    Принять событие webhook.

    Отвечает "OK" сразу, чтобы WhatsApp не повторял доставку по таймауту;
    сообщения обрабатываются в фоне.
    """
    raw_body = await request.body()

    app_secret = container.config.whatsapp_app_secret
    if app_secret and not verify_signature(raw_body, request.headers.get("x-hub-signature-256"), app_secret):
        logger.warning("Webhook signature mismatch")
        return PlainTextResponse("Forbidden", status_code=403)

    try:
        messages = extract_text_messages(json.loads(raw_body or b"{}"))
    except (ValueError, ValidationError) as e:
        logger.warning(f"Webhook received but not processed: {e}")
        return PlainTextResponse("OK", status_code=200)

    logger.info(f"Webhook received {len(messages)} text message(s)")
    if messages:
        background_tasks.add_task(process_messages, container.orchestrator, messages)
    return PlainTextResponse("OK", status_code=200)
