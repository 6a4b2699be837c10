"""
WhatsApp Cloud API client.

Sends free-form text and pre-approved template messages through the
Graph API `/{phone_number_id}/messages` endpoint. Failures are returned as
structured SendResult objects carrying the Graph API error code, never raised.
"""
import logging
import pprint
from typing import Any, Dict, List, Optional

import httpx

from context_relay.models.schemas import SendResult

logger = logging.getLogger("context-relay.infrastructure.whatsapp")


def extract_error_code(payload: Any) -> Optional[int]:
    """Pull `error.code` out of a Graph API error body, if present."""
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if not isinstance(error, dict):
        return None
    code = error.get("code")
    try:
        return int(code) if code is not None else None
    except (TypeError, ValueError):
        return None


class WhatsAppClient:
    """
    Client for the WhatsApp Cloud API.

    Encapsulates the two channel capabilities used by the relay:
    direct text send and template send.
    """

    def __init__(
        self,
        api_url: str,
        phone_number_id: str,
        token: str,
        timeout: float = 30.0
    ):
        """
        Initialize WhatsApp client.

        Args:
            api_url: Graph API base URL (e.g. https://graph.facebook.com/v18.0)
            phone_number_id: Business phone number id used as sender
            token: Bearer access token
            timeout: Request timeout in seconds
        """
        self._api_url = api_url.rstrip("/")
        self._phone_number_id = phone_number_id
        self._token = token
        self._timeout = timeout

    @property
    def messages_url(self) -> str:
        return f"{self._api_url}/{self._phone_number_id}/messages"

    async def send_text(self, to: str, text: str) -> SendResult:
        """
        Send a free-form text message.

        Args:
            to: Target number in international format (e.g. 5581999998888)
            text: Message body
        """
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to,
            "type": "text",
            "text": {
                "preview_url": False,
                "body": text
            }
        }
        return await self._post(payload, operation="send_text")

    async def send_template(
        self,
        to: str,
        template_name: str,
        language: str = "pt_BR",
        components: Optional[List[Dict[str, Any]]] = None
    ) -> SendResult:
        """
        Send a pre-approved template message (reopens an expired 24h window).

        Args:
            to: Target number in international format
            template_name: Approved template name
            language: Template locale code
            components: Template components (header/body parameters)
        """
        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "template",
            "template": {
                "name": template_name,
                "language": {"code": language},
                "components": components or []
            }
        }
        return await self._post(payload, operation="send_template")

    async def _post(self, payload: Dict[str, Any], operation: str) -> SendResult:
        logger.debug(
            f"[WhatsApp] {operation} payload:\n" + pprint.pformat(payload, indent=2, width=120)
        )
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                response = await client.post(
                    self.messages_url,
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self._token}",
                        "Content-Type": "application/json",
                    },
                )
                response.raise_for_status()
                data = response.json()
                if not isinstance(data, dict):
                    raise ValueError(f"unexpected response body: {data!r}")
                messages = data.get("messages")
                first = messages[0] if isinstance(messages, list) and messages else {}
                message_id = first.get("id") if isinstance(first, dict) else None
                logger.info(f"[WhatsApp] {operation} to {payload['to']} ok, message_id={message_id}")
                return SendResult(success=True, data=data, message_id=message_id)

            except httpx.HTTPStatusError as e:
                try:
                    body = e.response.json()
                except ValueError:
                    body = e.response.text
                error_code = extract_error_code(body)
                logger.error(
                    f"[WhatsApp] {operation} to {payload['to']} failed: "
                    f"status={e.response.status_code}, code={error_code}, body={body}"
                )
                return SendResult(success=False, error=body, error_code=error_code)

            except httpx.HTTPError as e:
                logger.error(f"[WhatsApp] {operation} to {payload['to']} transport error: {e}", exc_info=True)
                return SendResult(success=False, error=str(e))

            except ValueError as e:
                logger.error(f"[WhatsApp] {operation} to {payload['to']} returned an invalid body: {e}")
                return SendResult(success=False, error=f"invalid response body: {e}")
