"""
Groq completion client.

Calls Groq's OpenAI-compatible `/chat/completions` endpoint with the
conversation turns and static generation parameters.
"""
import logging
import pprint
from typing import Any, Dict, List

import httpx

from context_relay.core.errors import UpstreamCompletionError
from context_relay.models.schemas import ConversationTurn

from .base import BaseCompletionClient

logger = logging.getLogger("context-relay.infrastructure.llm.groq")

DEFAULT_REPLY = "Desculpe, não consegui gerar uma resposta."


class GroqCompletionClient(BaseCompletionClient):
    """
    Client for the Groq chat completion API.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://api.groq.com/openai/v1",
        max_tokens: int = 4096,
        temperature: float = 0.7,
        timeout: float = 60.0
    ):
        """
        Initialize Groq client.

        Args:
            api_key: Groq API key
            model: Model identifier
            base_url: OpenAI-compatible API base URL
            max_tokens: Generation limit per reply
            temperature: Sampling temperature
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout

    def build_payload(self, turns: List[ConversationTurn]) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": turn.role, "content": turn.content} for turn in turns],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    async def complete(self, turns: List[ConversationTurn]) -> str:
        """
        Send a chat completion request.

        Returns:
            Reply text; an empty choice maps to DEFAULT_REPLY.

        Raises:
            UpstreamCompletionError: On HTTP, transport or payload errors
        """
        payload = self.build_payload(turns)
        logger.info(f"Sending chat completion request: model={self.model}, messages={len(turns)}")
        logger.debug("Request payload:\n" + pprint.pformat(payload, indent=2, width=120))

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                )
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                logger.error(
                    f"Groq error: status={e.response.status_code}, body={e.response.text}"
                )
                raise UpstreamCompletionError(
                    reason=e.response.text or "HTTP error",
                    status_code=e.response.status_code
                ) from e
            except httpx.HTTPError as e:
                logger.error(f"Groq transport error: {e}", exc_info=True)
                raise UpstreamCompletionError(reason=str(e) or e.__class__.__name__) from e
            except ValueError as e:
                logger.error(f"Groq returned invalid JSON: {e}")
                raise UpstreamCompletionError(reason="invalid JSON in response") from e

        choices = data.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content")
        logger.info(f"Received completion: choices={len(data.get('choices') or [])}, usage={data.get('usage')}")
        return content or DEFAULT_REPLY
