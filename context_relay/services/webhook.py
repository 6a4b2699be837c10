"""
Webhook helpers: verification handshake, payload signature and extraction
of inbound text messages from the WhatsApp Business Account envelope.
"""

import hashlib
import hmac
import logging
from typing import Any, Dict, List, Optional

from context_relay.core.errors import ValidationError
from context_relay.models.schemas import InboundMessage

logger = logging.getLogger("context-relay.webhook")

WHATSAPP_OBJECT = "whatsapp_business_account"


def _dict_items(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def verify_subscription(mode: Optional[str], token: Optional[str], expected_token: str) -> bool:
    return mode == "subscribe" and token == expected_token


def verify_signature(body: bytes, signature_header: Optional[str], app_secret: str) -> bool:
    """Check `X-Hub-Signature-256: sha256=<hex>` against the raw request body."""
    if not signature_header or not signature_header.startswith("sha256="):
        return False
    expected = hmac.new(app_secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature_header[len("sha256="):])


def extract_text_messages(body: Dict[str, Any]) -> List[InboundMessage]:
    """
    Pull text messages out of a webhook payload.

    Non-text messages, status updates and malformed items are skipped.

    Raises:
        ValidationError: If the payload is not a WhatsApp Business Account event
    """
    if not isinstance(body, dict) or body.get("object") != WHATSAPP_OBJECT:
        raise ValidationError("object", details={"expected": WHATSAPP_OBJECT})

    messages: List[InboundMessage] = []
    for entry in _dict_items(body.get("entry")):
        for change in _dict_items(entry.get("changes")):
            if change.get("field") != "messages":
                continue
            value = change.get("value")
            if not isinstance(value, dict):
                continue
            for message in _dict_items(value.get("messages")):
                if message.get("type") != "text":
                    logger.debug(f"[Webhook] Skipping {message.get('type')} message {message.get('id')}")
                    continue
                text = message.get("text")
                if not isinstance(text, dict) or not isinstance(text.get("body"), str):
                    logger.debug(f"[Webhook] Skipping text message {message.get('id')} without a body")
                    continue
                messages.append(InboundMessage(
                    sender=str(message.get("from") or ""),
                    id=message.get("id"),
                    timestamp=message.get("timestamp"),
                    text=text["body"],
                ))
    return messages
