"""
Доменные исключения.
"""

from typing import Any, Dict, Optional

from .base import DomainError, ErrorKind


class ValidationError(DomainError):
    """
    Исключение: в публичном вызове отсутствует обязательное поле.

    Пример:
        >>> raise ValidationError("identity")
    """

    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"Field '{field}' is required",
            details={"field": field, **(details or {})},
            error_code="VALIDATION_ERROR"
        )


class OutOfRegionError(DomainError):
    """
    Исключение: координаты контекста вне допустимого региона.

    Такие контексты отклоняются при создании и никогда не сохраняются.
    """

    kind = ErrorKind.OUT_OF_REGION

    def __init__(
        self,
        context_id: str,
        latitude: float,
        longitude: float,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=f"Location of context '{context_id}' is outside the configured region",
            details={
                "context_id": context_id,
                "latitude": latitude,
                "longitude": longitude,
                **(details or {})
            },
            error_code="OUT_OF_REGION"
        )


class NotFoundError(DomainError):
    """
    Исключение: неизвестный идентификатор (контекст или собеседник).

    Пример:
        >>> raise NotFoundError("context", "marco_zero")
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"{entity.capitalize()} '{entity_id}' not found",
            details={"entity": entity, "id": entity_id, **(details or {})},
            error_code="NOT_FOUND"
        )
