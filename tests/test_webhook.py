"""
Тесты разбора webhook WhatsApp.
"""

import hashlib
import hmac

import pytest

from context_relay.core.errors import ValidationError
from context_relay.services.webhook import extract_text_messages, verify_signature, verify_subscription


def make_payload(*messages):
    return {
        "object": "whatsapp_business_account",
        "entry": [{
            "id": "WABA_ID",
            "changes": [{
                "field": "messages",
                "value": {"messaging_product": "whatsapp", "messages": list(messages)},
            }],
        }],
    }


def test_extract_text_messages():
    body = make_payload(
        {"from": "5581999998888", "id": "wamid.1", "timestamp": "1700000000", "type": "text", "text": {"body": "oi"}},
        {"from": "5581999998888", "id": "wamid.2", "type": "image", "image": {"id": "media"}},
    )

    messages = extract_text_messages(body)

    assert len(messages) == 1
    assert messages[0].sender == "5581999998888"
    assert messages[0].text == "oi"
    assert messages[0].id == "wamid.1"


def test_status_updates_are_ignored():
    body = make_payload()
    body["entry"][0]["changes"][0]["value"] = {"statuses": [{"id": "wamid.1", "status": "read"}]}

    assert extract_text_messages(body) == []


def test_wrong_object_is_rejected():
    with pytest.raises(ValidationError):
        extract_text_messages({"object": "page"})


def test_verify_subscription():
    assert verify_subscription("subscribe", "t", "t") is True
    assert verify_subscription("subscribe", "x", "t") is False
    assert verify_subscription(None, "t", "t") is False


def test_verify_signature():
    body = b'{"object": "whatsapp_business_account"}'
    digest = hmac.new(b"app-secret", body, hashlib.sha256).hexdigest()

    assert verify_signature(body, f"sha256={digest}", "app-secret") is True
    assert verify_signature(body, f"sha256={digest}", "other") is False
    assert verify_signature(body, digest, "app-secret") is False
    assert verify_signature(body, None, "app-secret") is False


def test_malformed_items_are_skipped():
    body = {
        "object": "whatsapp_business_account",
        "entry": [
            "not-a-dict",
            {"changes": "not-a-list"},
            {"changes": [
                None,
                {"field": "messages", "value": "not-a-dict"},
                {"field": "messages", "value": {"messages": [
                    42,
                    {"from": "5581999998888", "id": "wamid.1", "type": "text", "text": "oi"},
                    {"from": "5581999998888", "id": "wamid.2", "type": "text", "text": {"body": "olá"}},
                ]}},
            ]},
        ],
    }

    messages = extract_text_messages(body)

    assert [m.id for m in messages] == ["wamid.2"]
    assert messages[0].text == "olá"


def test_non_list_entry_yields_nothing():
    assert extract_text_messages({"object": "whatsapp_business_account", "entry": 7}) == []
