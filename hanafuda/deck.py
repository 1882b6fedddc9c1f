"""
Hanafuda Deck Module

Handles the draw pile: shuffling, drawing and dealing.
The shuffle takes an injected random.Random so deals are reproducible.
"""

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .cards import Card, build_standard_deck
from .errors import EmptyDeck


# player count -> (hand size each, field size)
DEAL_TABLE: Dict[int, Tuple[int, int]] = {
    2: (8, 8),
    3: (7, 6),
    4: (5, 8),
}

SAKURA_TWO_PLAYER_HAND = 10

# Cards handed out per player (and to the field) in each pass of the deal
DEAL_BATCH = 2


def shuffle(cards: Sequence[Card], rng: random.Random) -> List[Card]:
    """
    Return a Fisher-Yates permutation of cards.

    Args:
        cards: Cards to permute (left untouched)
        rng: Random source; the only source of randomness in a deal
    """
    result = list(cards)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


@dataclass
class Deck:
    """
    The face-down draw pile.

    The top of the pile is the end of the list, so draws pop from the end.

    Attributes:
        cards: Remaining cards, bottom first
        drawn_count: Number of cards drawn so far
    """
    cards: List[Card] = field(default_factory=build_standard_deck)
    drawn_count: int = 0

    def shuffle(self, rng: random.Random) -> None:
        """Shuffle the remaining cards in place"""
        self.cards = shuffle(self.cards, rng)

    def draw(self, n: int = 1) -> List[Card]:
        """
        Draw n cards from the top.

        Raises:
            EmptyDeck: If fewer than n cards remain
        """
        if n > len(self.cards):
            raise EmptyDeck(n, len(self.cards))
        drawn = [self.cards.pop() for _ in range(n)]
        self.drawn_count += n
        return drawn

    def draw_one(self) -> Card:
        return self.draw(1)[0]

    def remove(self, cards: Sequence[Card]) -> None:
        """Take specific cards out of the pile (used by Shop setup)"""
        ids = {c.id for c in cards}
        self.cards = [c for c in self.cards if c.id not in ids]

    def put_back(self, card: Card) -> None:
        self.cards.append(card)

    def peek(self) -> Optional[Card]:
        return self.cards[-1] if self.cards else None

    @property
    def remaining(self) -> int:
        """Number of cards left to draw"""
        return len(self.cards)

    @property
    def is_empty(self) -> bool:
        return not self.cards

    def copy(self) -> 'Deck':
        return Deck(cards=list(self.cards), drawn_count=self.drawn_count)

    def __len__(self) -> int:
        return len(self.cards)

    def __repr__(self) -> str:
        return f"Deck({self.remaining} cards remaining)"


def deal_sizes(player_count: int, sakura: bool = False,
               hand_size: Optional[int] = None,
               field_size: Optional[int] = None) -> Tuple[int, int]:
    """
    Look up (hand size, field size) for a table.

    Args:
        player_count: Number of players (2-4)
        sakura: Sakura deals 10 cards each with two players
        hand_size: Optional override
        field_size: Optional override
    """
    if player_count not in DEAL_TABLE:
        raise ValueError(f"No dealing rule for {player_count} players")
    default_hand, default_field = DEAL_TABLE[player_count]
    if sakura and player_count == 2:
        default_hand = SAKURA_TWO_PLAYER_HAND
    return (
        hand_size if hand_size is not None else default_hand,
        field_size if field_size is not None else default_field,
    )


def deal(deck: Deck, player_count: int, hand_sizes: Sequence[int], field_size: int,
         dealer: int = 0) -> Tuple[List[List[Card]], List[Card]]:
    """
    Deal hands and the field from the top of the deck.

    Each pass gives every player (starting with the dealer) up to two cards,
    then the field up to two cards, until every size is met.

    Returns:
        (hands indexed by player, field cards)
    """
    hands: List[List[Card]] = [[] for _ in range(player_count)]
    field_cards: List[Card] = []
    order = [(dealer + i) % player_count for i in range(player_count)]

    while (any(len(hands[i]) < hand_sizes[i] for i in range(player_count))
           or len(field_cards) < field_size):
        for player_idx in order:
            count = min(DEAL_BATCH, hand_sizes[player_idx] - len(hands[player_idx]))
            if count > 0:
                hands[player_idx].extend(deck.draw(count))
        count = min(DEAL_BATCH, field_size - len(field_cards))
        if count > 0:
            field_cards.extend(deck.draw(count))

    return hands, field_cards
