"""
Оркестратор диалога.

Связывает историю, хранилище контекстов, completion и доставку
в обработку одного входящего сообщения.
"""

import asyncio
import logging
from typing import Optional

from context_relay.core.errors import (
    NotFoundError,
    RelayError,
    UpstreamCompletionError,
    UpstreamDeliveryError,
    ValidationError,
)
from context_relay.infrastructure.concurrency import KeyedLockManager
from context_relay.infrastructure.llm import BaseCompletionClient
from context_relay.models.schemas import ConversationTurn, DeliveryOutcome, ProcessResult, TemplateSpec

from .context_injector import ContextInjector
from .context_store import PlaceContextStore
from .delivery import DeliveryService
from .history_store import ConversationHistoryStore
from .identity import resolve_target

logger = logging.getLogger("context-relay.orchestrator")

WELCOME_MESSAGE = "Olá! Sou uma IA assistente. Como posso ajudar você hoje?"
APOLOGY_MESSAGE = (
    "Desculpe, ocorreu um erro ao processar sua mensagem. "
    "Por favor, tente novamente mais tarde."
)


class ConversationOrchestrator:
    """
    Точка входа для обработки входящих сообщений и применения контекстов.

    Все операции над одним собеседником выполняются под его блокировкой,
    разные собеседники обрабатываются параллельно. Ошибки возвращаются
    в виде ProcessResult, а не выбрасываются.
    """

    def __init__(
        self,
        history: ConversationHistoryStore,
        contexts: PlaceContextStore,
        injector: ContextInjector,
        delivery: DeliveryService,
        completion: BaseCompletionClient,
        locks: Optional[KeyedLockManager] = None,
        completion_timeout: float = 60.0,
        welcome_message: str = WELCOME_MESSAGE,
        apology_message: str = APOLOGY_MESSAGE,
    ):
        self._history = history
        self._contexts = contexts
        self._injector = injector
        self._delivery = delivery
        self._completion = completion
        self._locks = locks or KeyedLockManager()
        self._completion_timeout = completion_timeout
        self.welcome_message = welcome_message
        self.apology_message = apology_message

    @staticmethod
    def _require(value: Optional[str], field: str) -> str:
        if not value or not str(value).strip():
            raise ValidationError(field)
        return value

    def _is_first_contact(self, identity: str) -> bool:
        return not any(turn.role != "system" for turn in self._history.get(identity))

    async def process_inbound_turn(self, identity: str, text: str) -> ProcessResult:
        """
        Обработать входящее сообщение собеседника.

        1. Первое обращение (нет ходов user/assistant) -> приветствие.
        2. Добавить сообщение пользователя в историю.
        3. Запросить completion по текущей истории.
        4. Добавить ответ в историю и доставить его.
        """
        try:
            target = resolve_target(identity, "identity")
            self._require(text, "text")
        except ValidationError as e:
            logger.warning(f"[Orchestrator] Rejected inbound turn: {e.message}")
            return ProcessResult.failed(e)

        async with self._locks.lock(target):
            return await self._process_locked(target, text)

    async def _process_locked(self, target: str, text: str) -> ProcessResult:
        if self._is_first_contact(target):
            logger.info(f"[Orchestrator] First contact from {target}, sending welcome")
            await self._send_welcome_locked(target)

        turns = self._history.append(target, ConversationTurn(role="user", content=text))

        error: Optional[UpstreamCompletionError] = None
        try:
            reply = await asyncio.wait_for(
                self._completion.complete(turns), timeout=self._completion_timeout
            )
        except asyncio.TimeoutError:
            error = UpstreamCompletionError(reason=f"timed out after {self._completion_timeout}s")
        except UpstreamCompletionError as e:
            error = e
        except Exception as e:
            logger.error(f"[Orchestrator] Unexpected completion error for {target}: {e}", exc_info=True)
            error = UpstreamCompletionError(reason=str(e) or e.__class__.__name__)

        if error is not None:
            logger.error(f"[Orchestrator] Completion for {target} failed: {error.message}")
            await self._notify_failure(target, error)
            return ProcessResult.failed(error)

        self._history.append(target, ConversationTurn(role="assistant", content=reply))

        outcome = await self._delivery.send_with_fallback(target, reply)
        if not outcome.success:
            # No apology here: it would go through the same failing channel
            error = UpstreamDeliveryError(
                reason=str(outcome.error),
                error_code=outcome.attempts[-1].error_code if outcome.attempts else None,
            )
            logger.error(f"[Orchestrator] Reply to {target} not delivered: {error.message}")
            return ProcessResult.failed(error, ai_response=reply)

        logger.info(f"[Orchestrator] Reply delivered to {target} via {outcome.channel}")
        return ProcessResult.ok(
            ai_response=reply,
            detail="Mensagem processada e resposta enviada com sucesso",
        )

    async def _notify_failure(self, target: str, error: RelayError) -> None:
        """
        Best-effort apology to the user.

        Never raises: a failure here is logged with the error kind of the
        earlier failure and dropped.
        """
        try:
            outcome = await self._delivery.send_with_fallback(target, self.apology_message)
            if not outcome.success:
                logger.error(
                    f"[Orchestrator] Apology to {target} not delivered "
                    f"(after {error.kind}): {outcome.error}"
                )
        except Exception as e:
            logger.error(
                f"[Orchestrator] Error sending apology to {target} (after {error.kind}): {e}",
                exc_info=True,
            )

    async def _send_welcome_locked(self, target: str) -> DeliveryOutcome:
        outcome = await self._delivery.send_with_fallback(target, self.welcome_message)
        if outcome.success:
            self._history.append(target, ConversationTurn(role="assistant", content=self.welcome_message))
        else:
            logger.warning(f"[Orchestrator] Welcome to {target} not delivered: {outcome.error}")
        return outcome

    async def send_welcome(self, identity: str) -> DeliveryOutcome:
        """Отправить приветствие и записать его в историю при успехе."""
        target = resolve_target(identity, "userId")
        async with self._locks.lock(target):
            return await self._send_welcome_locked(target)

    async def start_conversation(self, identity: str, template: TemplateSpec) -> DeliveryOutcome:
        """
        Начать разговор шаблоном (вне окна 24ч) и отметить это в истории.
        """
        target = resolve_target(identity, "userId")
        self._require(template.name, "templateName")
        async with self._locks.lock(target):
            outcome = await self._delivery.send_template(
                target, template.name, template.language, template.components
            )
            if outcome.success:
                self._history.append(
                    target,
                    ConversationTurn(
                        role="assistant",
                        content=f"Mensagem de template enviada: {template.name}",
                    ),
                )
        return outcome

    async def apply_saved_context(self, identity: str, context_id: str) -> ProcessResult:
        """
        Применить сохраненный контекст к диалогу собеседника.

        Returns:
            ProcessResult с NOT_FOUND, если контекста нет
        """
        try:
            target = resolve_target(identity, "userId")
            self._require(context_id, "contextId")
        except ValidationError as e:
            return ProcessResult.failed(e)

        place = self._contexts.get(context_id)
        if place is None:
            error = NotFoundError("context", context_id)
            logger.warning(f"[Orchestrator] {error.message}")
            return ProcessResult.failed(error)

        async with self._locks.lock(target):
            self._injector.inject_system_context(target, place)
        return ProcessResult.ok(detail=f"Contexto '{place.name}' aplicado à conversa")

    async def clear_history(self, identity: str) -> bool:
        target = resolve_target(identity, "userId")
        async with self._locks.lock(target):
            return self._history.clear(target)
