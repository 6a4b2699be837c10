"""
Базовые исключения Context Relay.

Определяет иерархию исключений для различных слоев приложения.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Тег ошибки в результатах оркестратора (ProcessResult.error_kind)."""

    VALIDATION = "validation"
    OUT_OF_REGION = "out_of_region"
    NOT_FOUND = "not_found"
    UPSTREAM_COMPLETION = "upstream_completion"
    UPSTREAM_DELIVERY = "upstream_delivery"


class RelayError(Exception):
    """
    Базовое исключение для всех ошибок Context Relay.

    Атрибуты:
        message: Сообщение об ошибке
        details: Дополнительные детали ошибки
        error_code: Код ошибки для идентификации
        kind: Тег ошибки для ProcessResult (если применимо)

    Пример:
        >>> try:
        ...     raise RelayError("Something went wrong")
        ... except RelayError as e:
        ...     print(e.to_dict())
    """

    kind: Optional[ErrorKind] = None

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Преобразовать исключение в словарь.

        Используется в API ответах и логах.
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class DomainError(RelayError):
    """Ошибки бизнес-правил: валидация, регион, отсутствующие сущности."""
    pass


class InfrastructureError(RelayError):
    """Ошибки внешних систем: WhatsApp Cloud API, сервис completion."""
    pass
