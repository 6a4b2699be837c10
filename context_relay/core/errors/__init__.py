"""
Кастомные исключения Context Relay.
"""

from .base import (
    ErrorKind,
    RelayError,
    DomainError,
    InfrastructureError
)

from .domain_errors import (
    ValidationError,
    OutOfRegionError,
    NotFoundError
)

from .infrastructure_errors import (
    UpstreamError,
    UpstreamCompletionError,
    UpstreamDeliveryError,
    WindowExpiredSignal
)

__all__ = [
    # Базовые исключения
    "ErrorKind",
    "RelayError",
    "DomainError",
    "InfrastructureError",

    # Доменные исключения
    "ValidationError",
    "OutOfRegionError",
    "NotFoundError",

    # Инфраструктурные исключения
    "UpstreamError",
    "UpstreamCompletionError",
    "UpstreamDeliveryError",
    "WindowExpiredSignal",
]
