import abc
from typing import List

from context_relay.models.schemas import ConversationTurn


class BaseCompletionClient(abc.ABC):
    """
    Базовый класс клиентов completion.

    Один синхронный round trip: последовательность ходов на вход,
    сгенерированный текст на выход.
    """

    @abc.abstractmethod
    async def complete(self, turns: List[ConversationTurn]) -> str:
        """
        Выполняет chat completion запрос.

        Args:
            turns: Упорядоченная история диалога (включая системный ход)

        Returns:
            Текст ответа ассистента

        Raises:
            UpstreamCompletionError: при любой ошибке сервиса completion
        """
        pass
