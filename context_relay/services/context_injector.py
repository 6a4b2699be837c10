import logging
from typing import List

from context_relay.models.schemas import ConversationTurn, PlaceContext

from .history_store import ConversationHistoryStore

logger = logging.getLogger("context-relay.context_injector")

# Detail fields rendered first, in this order; any other keys follow in insertion order
DETAIL_FIELD_ORDER = ("info", "history", "events", "operating_hours")

DETAIL_LABELS = {
    "info": "Informações",
    "history": "História",
    "events": "Eventos",
    "operating_hours": "Horário de funcionamento",
}

CONTEXT_INSTRUCTION = (
    "Responda apenas com base nas informações acima sobre este local do Recife. "
    "Não invente fatos, horários, preços ou serviços que não estejam listados, "
    "e não responda sobre assuntos fora de turismo e serviços do Recife. "
    "Se não souber a resposta, diga isso ao usuário."
)


def render_place_context(place: PlaceContext) -> str:
    """Deterministic text rendering of a place, used as the system turn content."""
    lines = [
        f"Você está ajudando um usuário que está em: {place.name}.",
        f"Descrição: {place.description}",
    ]

    ordered_keys = [key for key in DETAIL_FIELD_ORDER if place.details.get(key)]
    ordered_keys += [key for key in place.details if key not in DETAIL_FIELD_ORDER and place.details[key]]
    for key in ordered_keys:
        label = DETAIL_LABELS.get(key, key.replace("_", " ").capitalize())
        lines.append(f"{label}: {place.details[key]}")

    if place.services:
        lines.append(f"Serviços disponíveis: {', '.join(place.services)}")

    lines.append("")
    lines.append(CONTEXT_INSTRUCTION)
    return "\n".join(lines)


class ContextInjector:
    """
    Merges a place descriptor into a conversation as its single system turn.

    Any previous system turn is replaced. Whether the system turn counts
    toward the history window is decided by the history store
    (`history_preserve_system_turn`).
    """

    def __init__(self, history: ConversationHistoryStore):
        self._history = history

    def inject_system_context(self, identity: str, place: PlaceContext) -> List[ConversationTurn]:
        turn = ConversationTurn(role="system", content=render_place_context(place))
        turns = self._history.set_system_turn(identity, turn)
        logger.info(f"[ContextInjector] Applied context {place.id} to {identity}")
        return turns
