import logging
import pprint
import time
from typing import Callable, List

from context_relay.infrastructure.expiring_map import ExpiringMap
from context_relay.models.schemas import ConversationTurn

logger = logging.getLogger("context-relay.history_store")


class ConversationHistoryStore:
    """
    Bounded per-identity conversation log with TTL.

    Invariants after every mutation:
        - at most one system turn, always at index 0;
        - at most `max_turns` non-system turns (oldest dropped first).

    With `preserve_system_turn=False` the whole sequence, system turn
    included, is cut to the last `max_turns` entries instead.
    """

    def __init__(
        self,
        max_turns: int = 20,
        ttl_seconds: float = 1800,
        preserve_system_turn: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_turns = max_turns
        self.preserve_system_turn = preserve_system_turn
        self._entries: ExpiringMap[List[ConversationTurn]] = ExpiringMap(
            default_ttl=ttl_seconds, clock=clock, name="history"
        )

    @property
    def entries(self) -> ExpiringMap:
        return self._entries

    def _truncate(self, turns: List[ConversationTurn]) -> List[ConversationTurn]:
        if not self.preserve_system_turn:
            return turns[-self.max_turns:]
        system = [t for t in turns if t.role == "system"][-1:]
        others = [t for t in turns if t.role != "system"]
        return system + others[-self.max_turns:]

    def get(self, identity: str) -> List[ConversationTurn]:
        turns = self._entries.get(identity)
        return list(turns) if turns else []

    def append(self, identity: str, turn: ConversationTurn) -> List[ConversationTurn]:
        with self._entries.lock:
            turns = self._truncate(self.get(identity) + [turn])
            self._entries.set(identity, turns)
        logger.debug(
            f"[HistoryStore] Appended {turn.role} turn to {identity}, size={len(turns)}"
        )
        return list(turns)

    def set_system_turn(self, identity: str, turn: ConversationTurn) -> List[ConversationTurn]:
        """Replace any existing system turn and place `turn` first."""
        if turn.role != "system":
            raise ValueError(f"Expected a system turn, got role={turn.role!r}")
        with self._entries.lock:
            others = [t for t in self.get(identity) if t.role != "system"]
            turns = self._truncate([turn] + others)
            self._entries.set(identity, turns)
        logger.debug(
            f"[HistoryStore] System turn set for {identity}:\n"
            + pprint.pformat([t.model_dump() for t in turns], indent=2, width=120)
        )
        return list(turns)

    def clear(self, identity: str) -> bool:
        existed = self._entries.delete(identity)
        if existed:
            logger.info(f"[HistoryStore] Cleared history for {identity}")
        else:
            logger.debug(f"[HistoryStore] Nothing to clear for {identity}")
        return existed
