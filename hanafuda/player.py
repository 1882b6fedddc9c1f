"""
Hanafuda Player Module

Per-player zones (hand, captured pile) and match-level counters.
Zones are always indexed by seat; there is no special-casing of
"player" vs "opponent" inside the engine.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence
import numpy as np

from .cards import Card, CardType, to_mask
from .yaku import Yaku


@dataclass
class HanafudaPlayer:
    """
    Represents a seat at the table.

    Attributes:
        index: Seat index (0..N-1)
        is_human: Whether input comes from a person
        difficulty: AI difficulty name (None for humans)
        hand: Cards in hand
        captured: Captured cards, in capture order
        active_yaku: Last detector output for the captured pile
        teyaku: Starting-hand combinations (Hachi-Hachi)
        match_score: Cumulative score across rounds
        round_wins: Rounds won (win-counting variants)
    """
    index: int
    is_human: bool = False
    difficulty: Optional[str] = None
    hand: List[Card] = field(default_factory=list)
    captured: List[Card] = field(default_factory=list)
    active_yaku: List[Yaku] = field(default_factory=list)
    teyaku: List[Yaku] = field(default_factory=list)
    match_score: int = 0
    round_wins: int = 0

    def add_to_hand(self, cards: Sequence[Card]) -> None:
        self.hand.extend(cards)

    def find_in_hand(self, card_id: int) -> Optional[Card]:
        """Look up a hand card by id"""
        for card in self.hand:
            if card.id == card_id:
                return card
        return None

    def has_card(self, card_id: int) -> bool:
        return self.find_in_hand(card_id) is not None

    def remove_from_hand(self, card: Card) -> bool:
        """
        Remove a card from hand.

        Returns:
            True if the card was in hand
        """
        for i, held in enumerate(self.hand):
            if held.id == card.id:
                del self.hand[i]
                return True
        return False

    def capture(self, cards: Sequence[Card]) -> None:
        self.captured.extend(cards)

    def count_captured(self, card_type: CardType) -> int:
        return sum(1 for c in self.captured if c.card_type == card_type)

    @property
    def num_cards_in_hand(self) -> int:
        return len(self.hand)

    @property
    def yaku_score(self) -> int:
        return sum(y.points for y in self.active_yaku)

    def hand_mask(self) -> np.ndarray:
        """48-element binary mask of the hand"""
        return to_mask(self.hand)

    def captured_mask(self) -> np.ndarray:
        return to_mask(self.captured)

    def reset_round(self) -> None:
        """Clear zones for a new round, keeping match counters"""
        self.hand = []
        self.captured = []
        self.active_yaku = []
        self.teyaku = []

    def reset(self) -> None:
        """Reset for a new match"""
        self.reset_round()
        self.match_score = 0
        self.round_wins = 0

    def copy(self) -> 'HanafudaPlayer':
        return HanafudaPlayer(
            index=self.index,
            is_human=self.is_human,
            difficulty=self.difficulty,
            hand=list(self.hand),
            captured=list(self.captured),
            active_yaku=list(self.active_yaku),
            teyaku=list(self.teyaku),
            match_score=self.match_score,
            round_wins=self.round_wins,
        )

    def __repr__(self) -> str:
        return (f"HanafudaPlayer({self.index}, hand={len(self.hand)}, "
                f"captured={len(self.captured)}, {self.match_score}pts)")

    def __str__(self) -> str:
        who = "Human" if self.is_human else f"AI({self.difficulty or 'default'})"
        return f"P{self.index} {who}: {len(self.hand)} in hand, {len(self.captured)} captured ({self.match_score}pts)"
