import logging
from typing import List

from context_relay.models.schemas import ConversationTurn

from .base import BaseCompletionClient

logger = logging.getLogger("context-relay.infrastructure.llm.fake")


class FakeCompletionClient(BaseCompletionClient):
    """Детерминированный ответ без обращения к сети (LLM_MODE=mock)."""

    def __init__(self, reply: str = "Mock LLM response (static)"):
        self.reply = reply
        self.calls: List[List[ConversationTurn]] = []

    async def complete(self, turns: List[ConversationTurn]) -> str:
        self.calls.append(list(turns))
        logger.debug(f"[FakeCompletionClient] complete called with {len(turns)} turns")
        return self.reply
