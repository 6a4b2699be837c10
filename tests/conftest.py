"""
Pytest configuration and fixtures.
"""
import pytest
from unittest.mock import AsyncMock

from context_relay.core.config import AppConfig
from context_relay.core.dependencies import build_container
from context_relay.infrastructure.llm import FakeCompletionClient
from context_relay.infrastructure.whatsapp import WhatsAppClient
from context_relay.models.schemas import SendResult, TemplateSpec
from context_relay.services.context_injector import ContextInjector
from context_relay.services.context_store import PlaceContextStore
from context_relay.services.delivery import DeliveryService
from context_relay.services.history_store import ConversationHistoryStore
from context_relay.services.orchestrator import ConversationOrchestrator


class FakeClock:
    """Управляемый источник времени для проверки TTL."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def channel():
    """WhatsApp клиент, который успешно отправляет всё."""
    mock = AsyncMock(spec=WhatsAppClient)
    mock.send_text.return_value = SendResult(success=True, message_id="wamid.text")
    mock.send_template.return_value = SendResult(success=True, message_id="wamid.template")
    return mock


@pytest.fixture
def completion():
    return FakeCompletionClient(reply="Olá!")


@pytest.fixture
def history(clock):
    return ConversationHistoryStore(max_turns=20, ttl_seconds=1800, clock=clock)


@pytest.fixture
def contexts(clock):
    store = PlaceContextStore(ttl_seconds=86400, clock=clock)
    store.seed_defaults()
    return store


@pytest.fixture
def delivery(channel):
    return DeliveryService(channel, TemplateSpec(name="hello_world"), timeout=5.0)


@pytest.fixture
def orchestrator(history, contexts, delivery, completion):
    return ConversationOrchestrator(
        history=history,
        contexts=contexts,
        injector=ContextInjector(history),
        delivery=delivery,
        completion=completion,
        completion_timeout=5.0,
    )


@pytest.fixture
def test_config():
    return AppConfig(
        _env_file=None,
        internal_api_key="test-key",
        verify_token="verify-me",
        llm_mode="mock",
        whatsapp_token="token",
        whatsapp_phone_number_id="123456",
    )


@pytest.fixture
def container(test_config, channel, completion):
    return build_container(test_config, channel=channel, completion=completion)
