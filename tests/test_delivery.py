"""
Тесты DeliveryService: fallback на шаблон при истекшем окне.
"""

import asyncio

import pytest

from context_relay.models.schemas import SendResult, TemplateSpec
from context_relay.services.delivery import DeliveryService


def window_expired() -> SendResult:
    return SendResult(
        success=False,
        error={"error": {"code": 131047, "message": "Re-engagement message"}},
        error_code=131047,
    )


@pytest.mark.asyncio
async def test_direct_send_success(delivery, channel):
    outcome = await delivery.send_with_fallback("5581999998888", "Olá!")

    assert outcome.success is True
    assert outcome.channel == "direct"
    assert outcome.message_id == "wamid.text"
    assert outcome.used_fallback is False
    channel.send_text.assert_awaited_once_with("5581999998888", "Olá!")
    channel.send_template.assert_not_awaited()


@pytest.mark.asyncio
async def test_window_expired_falls_back_to_template_once(delivery, channel):
    channel.send_text.return_value = window_expired()

    outcome = await delivery.send_with_fallback("5581999998888", "Olá!")

    assert outcome.success is True
    assert outcome.channel == "template"
    assert outcome.used_fallback is True
    assert [a.kind for a in outcome.attempts] == ["direct", "template"]
    assert outcome.attempts[0].error_code == 131047
    channel.send_template.assert_awaited_once_with("5581999998888", "hello_world", "pt_BR", [])


@pytest.mark.asyncio
async def test_template_failure_is_not_retried(delivery, channel):
    channel.send_text.return_value = window_expired()
    channel.send_template.return_value = SendResult(success=False, error="template rejected", error_code=132001)

    outcome = await delivery.send_with_fallback("5581999998888", "Olá!")

    assert outcome.success is False
    assert outcome.channel is None
    assert outcome.error == "template rejected"
    assert channel.send_text.await_count == 1
    assert channel.send_template.await_count == 1


@pytest.mark.asyncio
async def test_other_errors_do_not_fall_back(delivery, channel):
    channel.send_text.return_value = SendResult(success=False, error="invalid parameter", error_code=100)

    outcome = await delivery.send_with_fallback("5581999998888", "Olá!")

    assert outcome.success is False
    assert len(outcome.attempts) == 1
    channel.send_template.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_timeout_is_a_failure(channel):
    async def slow_send(to, text):
        await asyncio.sleep(1)
        return SendResult(success=True)

    channel.send_text.side_effect = slow_send
    delivery = DeliveryService(channel, TemplateSpec(name="hello_world"), timeout=0.01)

    outcome = await delivery.send_with_fallback("5581999998888", "Olá!")

    assert outcome.success is False
    assert "timed out" in outcome.error
    channel.send_template.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_direct_does_not_fall_back(delivery, channel):
    channel.send_text.return_value = window_expired()

    outcome = await delivery.send_direct("5581999998888", "Olá!")

    assert outcome.success is False
    assert outcome.error["code"] == 131047
    channel.send_template.assert_not_awaited()


@pytest.mark.asyncio
async def test_custom_window_codes(channel):
    channel.send_text.return_value = SendResult(success=False, error="custom", error_code=470)
    delivery = DeliveryService(channel, TemplateSpec(name="reopen", language="en_US"), window_expired_codes=[470])

    outcome = await delivery.send_with_fallback("5581999998888", "Hi")

    assert outcome.channel == "template"
    channel.send_template.assert_awaited_once_with("5581999998888", "reopen", "en_US", [])


@pytest.mark.asyncio
async def test_send_template_directly(delivery, channel):
    outcome = await delivery.send_template("5581999998888", "boas_vindas", "pt_BR", [{"type": "body"}])

    assert outcome.success is True
    assert outcome.channel == "template"
    channel.send_text.assert_not_awaited()
    channel.send_template.assert_awaited_once_with(
        "5581999998888", "boas_vindas", "pt_BR", [{"type": "body"}]
    )


@pytest.mark.asyncio
async def test_channel_exception_is_a_failure(delivery, channel):
    channel.send_text.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")

    outcome = await delivery.send_with_fallback("5581999998888", "Olá!")

    assert outcome.success is False
    assert "ValueError" in outcome.error
    assert [a.outcome for a in outcome.attempts] == ["failed"]
    channel.send_template.assert_not_awaited()


@pytest.mark.asyncio
async def test_template_exception_is_a_failure(delivery, channel):
    channel.send_text.return_value = window_expired()
    channel.send_template.side_effect = RuntimeError("boom")

    outcome = await delivery.send_with_fallback("5581999998888", "Olá!")

    assert outcome.success is False
    assert [a.kind for a in outcome.attempts] == ["direct", "template"]
