"""
Game events

Every state-changing transition of the engine produces exactly one
GameEvent. Events are appended to the game's history and handed to
subscribed listeners (animation, audio, UI) in order.
"""

from enum import IntEnum
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from .cards import Card


class EventType(IntEnum):
    ROUND_STARTED = 0
    HIKI = 1                # Dealer took all four field cards of a month
    TEYAKU_PAID = 2
    CARD_TO_FIELD = 3       # Played or drawn card joined the field
    SELECTION_REQUIRED = 4  # Waiting for a field target
    CAPTURE = 5
    CARD_DRAWN = 6
    DECISION_REQUESTED = 7
    DECISION_MADE = 8
    TURN_CHANGED = 9
    PHASE_CHANGED = 10
    BONUS_AWARDED = 11
    ROUND_ENDED = 12
    MATCH_ENDED = 13


@dataclass(frozen=True)
class GameEvent:
    """
    A single notification.

    Attributes:
        event_type: What happened
        phase: Phase after the transition
        player_idx: Acting player, if any
        cards: Cards moved or revealed
        yaku: New or improved combinations (captures), or teyaku
        payload: Round/match result or decision choice
        message: Human-readable summary
    """
    event_type: EventType
    phase: int
    player_idx: Optional[int] = None
    cards: Tuple[Card, ...] = ()
    yaku: Tuple[Any, ...] = ()
    payload: Any = None
    message: str = ""

    def __repr__(self) -> str:
        who = f", P{self.player_idx}" if self.player_idx is not None else ""
        return f"GameEvent({self.event_type.name}{who}, {[c.id for c in self.cards]})"


Listener = Callable[[GameEvent], None]


class EventBus:
    """Ordered event history plus synchronous listeners"""

    def __init__(self):
        self.history: List[GameEvent] = []
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def emit(self, event: GameEvent) -> None:
        self.history.append(event)
        for listener in list(self._listeners):
            listener(event)

    def since(self, index: int) -> List[GameEvent]:
        """Events emitted after the history had `index` entries"""
        return self.history[index:]

    def clear(self) -> None:
        self.history = []

    def __len__(self) -> int:
        return len(self.history)
