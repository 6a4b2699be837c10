"""
Доставка сообщений с fallback на шаблон.

WhatsApp разрешает свободный текст только в течение 24 часов после
последнего сообщения собеседника. Вне окна канал возвращает ошибку
131047, и разговор можно возобновить только заранее одобренным шаблоном.

Машина состояний одной отправки:
    ATTEMPT_DIRECT -> DONE
    ATTEMPT_DIRECT -(окно истекло)-> ATTEMPT_TEMPLATE -> DONE | FAILED
    ATTEMPT_DIRECT -(любая другая ошибка)-> FAILED

Разрешен ровно один переход на шаблон, без повторов и backoff.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

from context_relay.core.errors import WindowExpiredSignal
from context_relay.infrastructure.whatsapp import WhatsAppClient
from context_relay.models.schemas import DeliveryAttempt, DeliveryOutcome, SendResult, TemplateSpec

logger = logging.getLogger("context-relay.delivery")

WINDOW_EXPIRED_ERROR_CODES = (131047,)


class DeliveryService:
    """
    Отправка текста собеседнику с однократным fallback на шаблон.

    Атрибуты:
        _channel: Клиент WhatsApp
        _template: Шаблон для возобновления разговора
        _timeout: Таймаут одной отправки (секунды)
        _window_codes: Коды ошибок "окно истекло"

    Пример:
        >>> delivery = DeliveryService(client, TemplateSpec(name="hello_world"))
        >>> outcome = await delivery.send_with_fallback("5581999998888", "Olá!")
        >>> outcome.success, outcome.channel
        (True, 'direct')
    """

    def __init__(
        self,
        channel: WhatsAppClient,
        template: TemplateSpec,
        timeout: float = 30.0,
        window_expired_codes: Iterable[int] = WINDOW_EXPIRED_ERROR_CODES,
    ):
        self._channel = channel
        self._template = template
        self._timeout = timeout
        self._window_codes = frozenset(window_expired_codes)

    def is_window_expired(self, result: SendResult) -> bool:
        return not result.success and result.error_code in self._window_codes

    async def _call(self, coro, operation: str, target: str) -> SendResult:
        try:
            return await asyncio.wait_for(coro, timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error(f"[Delivery] {operation} to {target} timed out after {self._timeout}s")
            return SendResult(success=False, error=f"{operation} timed out after {self._timeout}s")
        except Exception as e:
            logger.error(f"[Delivery] {operation} to {target} raised: {e}", exc_info=True)
            return SendResult(success=False, error=f"{operation} failed: {e.__class__.__name__}: {e}")

    async def _attempt_direct(self, target: str, text: str, attempts: List[DeliveryAttempt]) -> SendResult:
        result = await self._call(self._channel.send_text(target, text), "send_text", target)
        attempts.append(DeliveryAttempt(
            target=target,
            kind="direct",
            payload={"text": text},
            outcome="success" if result.success else "failed",
            error_code=result.error_code,
        ))
        if self.is_window_expired(result):
            raise WindowExpiredSignal(target, result.error_code)
        return result

    async def _attempt_template(
        self,
        target: str,
        template: TemplateSpec,
        attempts: List[DeliveryAttempt]
    ) -> SendResult:
        result = await self._call(
            self._channel.send_template(target, template.name, template.language, template.components),
            "send_template",
            target,
        )
        attempts.append(DeliveryAttempt(
            target=target,
            kind="template",
            payload=template.model_dump(),
            outcome="success" if result.success else "failed",
            error_code=result.error_code,
        ))
        return result

    async def send_with_fallback(self, target: str, text: str) -> DeliveryOutcome:
        """
        Отправить текст; при истекшем окне один раз отправить шаблон.

        Returns:
            DeliveryOutcome с финальным результатом и списком попыток
        """
        attempts: List[DeliveryAttempt] = []
        try:
            result = await self._attempt_direct(target, text, attempts)
            channel = "direct"
        except WindowExpiredSignal as signal:
            logger.warning(
                f"[Delivery] Window expired for {target} (code={signal.channel_error_code}), "
                f"falling back to template '{self._template.name}'"
            )
            result = await self._attempt_template(target, self._template, attempts)
            channel = "template"

        if not result.success:
            logger.error(f"[Delivery] Delivery to {target} failed via {channel}: {result.error}")
        return DeliveryOutcome(
            success=result.success,
            target=target,
            channel=channel if result.success else None,
            message_id=result.message_id,
            error=result.error,
            attempts=attempts,
        )

    async def send_direct(self, target: str, text: str) -> DeliveryOutcome:
        """Отправить текст без fallback."""
        attempts: List[DeliveryAttempt] = []
        try:
            result = await self._attempt_direct(target, text, attempts)
        except WindowExpiredSignal as signal:
            logger.warning(f"[Delivery] Window expired for {target}, fallback disabled")
            return DeliveryOutcome(
                success=False,
                target=target,
                error={"code": signal.channel_error_code, "message": signal.message},
                attempts=attempts,
            )
        return DeliveryOutcome(
            success=result.success,
            target=target,
            channel="direct" if result.success else None,
            message_id=result.message_id,
            error=result.error,
            attempts=attempts,
        )

    async def send_template(
        self,
        target: str,
        template_name: str,
        language: str = "pt_BR",
        components: Optional[List[Dict[str, Any]]] = None,
    ) -> DeliveryOutcome:
        """Отправить произвольный шаблон напрямую (используется для старта разговора)."""
        attempts: List[DeliveryAttempt] = []
        template = TemplateSpec(name=template_name, language=language, components=components or [])
        result = await self._attempt_template(target, template, attempts)
        return DeliveryOutcome(
            success=result.success,
            target=target,
            channel="template" if result.success else None,
            message_id=result.message_id,
            error=result.error,
            attempts=attempts,
        )
