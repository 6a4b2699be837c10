"""
Тесты ConversationOrchestrator.
"""

import asyncio

import pytest

from context_relay.core.errors import ErrorKind, UpstreamCompletionError
from context_relay.models.schemas import ConversationTurn, SendResult, TemplateSpec
from context_relay.services.orchestrator import APOLOGY_MESSAGE, WELCOME_MESSAGE


def sent_texts(channel):
    return [c.args[1] for c in channel.send_text.await_args_list]


@pytest.mark.asyncio
async def test_first_contact_end_to_end(orchestrator, channel, history, completion):
    result = await orchestrator.process_inbound_turn("A", "oi")

    assert result.success is True
    assert result.ai_response == "Olá!"
    assert sent_texts(channel) == [WELCOME_MESSAGE, "Olá!"]

    turns = history.get("A")
    assert turns[-2] == ConversationTurn(role="user", content="oi")
    assert turns[-1] == ConversationTurn(role="assistant", content="Olá!")
    assert completion.calls[0][-1] == ConversationTurn(role="user", content="oi")


@pytest.mark.asyncio
async def test_identity_is_normalized(orchestrator, channel, history):
    await orchestrator.process_inbound_turn("+55 (81) 8765-4321", "oi")

    assert channel.send_text.await_args_list[0].args[0] == "5581987654321"
    assert len(history.get("5581987654321")) == 3


@pytest.mark.asyncio
async def test_welcome_only_on_first_contact(orchestrator, channel):
    await orchestrator.process_inbound_turn("5581999998888", "oi")
    await orchestrator.process_inbound_turn("5581999998888", "tudo bem?")

    assert sent_texts(channel).count(WELCOME_MESSAGE) == 1


@pytest.mark.asyncio
async def test_applied_context_reaches_completion(orchestrator, completion):
    applied = await orchestrator.apply_saved_context("5581999998888", "marco_zero")
    result = await orchestrator.process_inbound_turn("5581999998888", "o que tem aqui?")

    assert applied.success is True
    assert result.success is True
    first_turn = completion.calls[0][0]
    assert first_turn.role == "system"
    assert "Marco Zero" in first_turn.content


@pytest.mark.asyncio
async def test_missing_fields_are_validation_errors(orchestrator, channel, completion):
    result = await orchestrator.process_inbound_turn("", "oi")
    assert result.success is False
    assert result.error_kind == ErrorKind.VALIDATION

    result = await orchestrator.process_inbound_turn("5581999998888", "   ")
    assert result.error_kind == ErrorKind.VALIDATION

    channel.send_text.assert_not_awaited()
    assert completion.calls == []


@pytest.mark.asyncio
async def test_completion_failure_sends_apology(orchestrator, channel, history, completion):
    async def failing(turns):
        raise UpstreamCompletionError(reason="boom", status_code=500)

    completion.complete = failing

    result = await orchestrator.process_inbound_turn("5581999998888", "oi")

    assert result.success is False
    assert result.error_kind == ErrorKind.UPSTREAM_COMPLETION
    assert sent_texts(channel)[-1] == APOLOGY_MESSAGE
    assert history.get("5581999998888")[-1] == ConversationTurn(role="user", content="oi")


@pytest.mark.asyncio
async def test_completion_timeout(orchestrator, channel, completion):
    async def slow(turns):
        await asyncio.sleep(1)
        return "tarde demais"

    completion.complete = slow
    orchestrator._completion_timeout = 0.01

    result = await orchestrator.process_inbound_turn("5581999998888", "oi")

    assert result.error_kind == ErrorKind.UPSTREAM_COMPLETION
    assert "timed out" in result.detail
    assert sent_texts(channel)[-1] == APOLOGY_MESSAGE


@pytest.mark.asyncio
async def test_apology_failure_is_swallowed(orchestrator, channel, history, completion):
    history.append("5581999998888", ConversationTurn(role="user", content="antes"))

    async def failing(turns):
        raise UpstreamCompletionError(reason="boom")

    completion.complete = failing
    channel.send_text.side_effect = RuntimeError("channel down")

    result = await orchestrator.process_inbound_turn("5581999998888", "oi")

    assert result.error_kind == ErrorKind.UPSTREAM_COMPLETION


@pytest.mark.asyncio
async def test_delivery_failure_without_apology(orchestrator, channel, history):
    history.append("5581999998888", ConversationTurn(role="user", content="antes"))
    channel.send_text.return_value = SendResult(success=False, error="invalid", error_code=100)

    result = await orchestrator.process_inbound_turn("5581999998888", "oi")

    assert result.success is False
    assert result.error_kind == ErrorKind.UPSTREAM_DELIVERY
    assert result.ai_response == "Olá!"
    assert sent_texts(channel) == ["Olá!"]
    assert history.get("5581999998888")[-1].content == "Olá!"


@pytest.mark.asyncio
async def test_welcome_failure_does_not_abort(orchestrator, channel, history):
    channel.send_text.side_effect = [
        SendResult(success=False, error="invalid", error_code=100),
        SendResult(success=True, message_id="wamid.reply"),
    ]

    result = await orchestrator.process_inbound_turn("5581999998888", "oi")

    assert result.success is True
    assert [t.content for t in history.get("5581999998888")] == ["oi", "Olá!"]


@pytest.mark.asyncio
async def test_apply_unknown_context(orchestrator, history):
    result = await orchestrator.apply_saved_context("5581999998888", "nao_existe")

    assert result.success is False
    assert result.error_kind == ErrorKind.NOT_FOUND
    assert history.get("5581999998888") == []


@pytest.mark.asyncio
async def test_apply_context_replaces_previous(orchestrator, history):
    await orchestrator.apply_saved_context("5581999998888", "marco_zero")
    result = await orchestrator.apply_saved_context("5581999998888", "paco_do_frevo")

    assert result.detail == "Contexto 'Paço do Frevo' aplicado à conversa"
    turns = history.get("5581999998888")
    assert len(turns) == 1
    assert "Paço do Frevo" in turns[0].content


@pytest.mark.asyncio
async def test_start_conversation_records_template(orchestrator, channel, history):
    outcome = await orchestrator.start_conversation("5581999998888", TemplateSpec(name="boas_vindas"))

    assert outcome.success is True
    channel.send_template.assert_awaited_once_with("5581999998888", "boas_vindas", "pt_BR", [])
    assert history.get("5581999998888")[-1].content == "Mensagem de template enviada: boas_vindas"


@pytest.mark.asyncio
async def test_send_welcome_and_clear_history(orchestrator, history):
    outcome = await orchestrator.send_welcome("5581999998888")

    assert outcome.success is True
    assert history.get("5581999998888")[-1].content == WELCOME_MESSAGE
    assert await orchestrator.clear_history("5581999998888") is True
    assert await orchestrator.clear_history("5581999998888") is False


@pytest.mark.asyncio
async def test_concurrent_turns_for_same_identity_are_serialized(orchestrator, history):
    await asyncio.gather(*[
        orchestrator.process_inbound_turn("5581999998888", f"msg {i}") for i in range(5)
    ])

    turns = history.get("5581999998888")
    user_turns = [t for t in turns if t.role == "user"]
    assistant_turns = [t for t in turns if t.role == "assistant"]
    assert len(user_turns) == 5
    # welcome + 5 replies
    assert len(assistant_turns) == 6
    for i, turn in enumerate(turns[1:]):
        expected = "user" if i % 2 == 0 else "assistant"
        assert turn.role == expected


@pytest.mark.asyncio
async def test_channel_exception_on_reply_is_delivery_error(orchestrator, channel, history):
    history.append("5581999998888", ConversationTurn(role="user", content="antes"))
    channel.send_text.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")

    result = await orchestrator.process_inbound_turn("5581999998888", "oi")

    assert result.success is False
    assert result.error_kind == ErrorKind.UPSTREAM_DELIVERY
    assert result.ai_response == "Olá!"


@pytest.mark.asyncio
async def test_channel_exception_on_welcome_does_not_abort(orchestrator, channel, history):
    channel.send_text.side_effect = [
        RuntimeError("channel down"),
        SendResult(success=True, message_id="wamid.reply"),
    ]

    result = await orchestrator.process_inbound_turn("5581999998888", "oi")

    assert result.success is True
    assert [t.content for t in history.get("5581999998888")] == ["oi", "Olá!"]
