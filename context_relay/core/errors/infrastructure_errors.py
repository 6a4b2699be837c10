"""
Инфраструктурные исключения.

Ошибки взаимодействия с внешними сервисами.
"""

from typing import Any, Dict, Optional

from .base import ErrorKind, InfrastructureError


class UpstreamError(InfrastructureError):
    """
    Базовое исключение для ошибок внешних вызовов.

    Пример:
        >>> raise UpstreamError(operation="chat_completion", reason="timeout")
    """

    def __init__(
        self,
        operation: str,
        reason: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "UPSTREAM_ERROR"
    ):
        message = f"Upstream call '{operation}' failed: {reason}"
        if status_code:
            message += f" (HTTP {status_code})"

        super().__init__(
            message=message,
            details={
                "operation": operation,
                "reason": reason,
                "status_code": status_code,
                **(details or {})
            },
            error_code=error_code
        )


class UpstreamCompletionError(UpstreamError):
    """Ошибка или таймаут сервиса completion."""

    kind = ErrorKind.UPSTREAM_COMPLETION

    def __init__(
        self,
        reason: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            operation="chat_completion",
            reason=reason,
            status_code=status_code,
            details=details,
            error_code="UPSTREAM_COMPLETION_ERROR"
        )


class UpstreamDeliveryError(UpstreamError):
    """Не удалось доставить сообщение (ни напрямую, ни шаблоном)."""

    kind = ErrorKind.UPSTREAM_DELIVERY

    def __init__(
        self,
        reason: str,
        error_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            operation="send_message",
            reason=reason,
            details={"channel_error_code": error_code, **(details or {})},
            error_code="UPSTREAM_DELIVERY_ERROR"
        )


class WindowExpiredSignal(InfrastructureError):
    """
    Внутренний сигнал: канал отклонил свободный текст, окно 24ч истекло.

    Используется только внутри DeliveryService для перехода к отправке
    шаблона и никогда не выходит за его пределы.
    """

    def __init__(self, target: str, error_code: int):
        super().__init__(
            message=f"Messaging window expired for '{target}'",
            details={"target": target, "channel_error_code": error_code},
            error_code="WINDOW_EXPIRED"
        )
        self.channel_error_code = error_code
