"""
Hanafuda Match Resolver

Determines which field cards a played or drawn card can capture:
- No field card of the month: the card joins the field
- One: capture it (or confirm the target, if configured)
- Two: the player chooses one
- Three: all three are captured together with the card (mandatory)

In Sakura the November lightning chaff (Gaji) may instead act as a wild card.
"""

from enum import IntEnum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .cards import Card, LIGHTNING, CARDS_PER_MONTH, cards_of_month, count_by_month


class CaptureKind(IntEnum):
    NONE = 0     # No match, card goes to the field
    SINGLE = 1   # Exactly one target, captured automatically
    CHOICE = 2   # Player must pick one of the targets
    FOUR = 3     # Three on the field plus the played card
    WILD = 4     # Gaji: player picks any legal target


@dataclass
class MatchOption:
    """
    How a card resolves against the field.

    Attributes:
        card: The played or drawn card
        kind: Capture kind
        targets: For SINGLE/FOUR the field cards captured, for CHOICE/WILD the candidates
    """
    card: Card
    kind: CaptureKind
    targets: List[Card] = field(default_factory=list)

    @property
    def needs_choice(self) -> bool:
        return self.kind in (CaptureKind.CHOICE, CaptureKind.WILD)

    def is_target(self, card: Card) -> bool:
        return any(t.id == card.id for t in self.targets)

    def __repr__(self) -> str:
        return f"MatchOption({self.card.id}, {self.kind.name}, {[t.id for t in self.targets]})"


def find_matches(card: Card, field_cards: Sequence[Card]) -> List[Card]:
    """Field cards sharing the card's month"""
    return cards_of_month(field_cards, card.month)


def resolve_match(card: Card, field_cards: Sequence[Card],
                  confirm_single: bool = False,
                  wild_targets: Optional[Sequence[Card]] = None) -> MatchOption:
    """
    Resolve a card against the field.

    Args:
        card: Card played from hand or drawn
        field_cards: Current face-up field
        confirm_single: A single match still needs an explicit selection
        wild_targets: Legal Gaji targets when the card acts as a wild card

    Returns:
        MatchOption describing the capture
    """
    if wild_targets is not None:
        if wild_targets:
            return MatchOption(card, CaptureKind.WILD, list(wild_targets))
        return MatchOption(card, CaptureKind.NONE)

    matches = find_matches(card, field_cards)
    # Four-of-a-kind is checked before offering any selection
    if len(matches) == CARDS_PER_MONTH - 1:
        return MatchOption(card, CaptureKind.FOUR, matches)
    if len(matches) == 1:
        kind = CaptureKind.CHOICE if confirm_single else CaptureKind.SINGLE
        return MatchOption(card, kind, matches)
    if matches:
        return MatchOption(card, CaptureKind.CHOICE, matches)
    return MatchOption(card, CaptureKind.NONE)


def is_gaji(card: Card) -> bool:
    return card.id == LIGHTNING.id


def completed_months(captured: Sequence[Sequence[Card]]) -> List[int]:
    """Months whose four cards are all held by a single player"""
    months = set()
    for pile in captured:
        for month, count in count_by_month(pile).items():
            if count == CARDS_PER_MONTH:
                months.add(month)
    return sorted(months)


def gaji_targets(field_cards: Sequence[Card], captured: Sequence[Sequence[Card]],
                 player_idx: int) -> List[Card]:
    """
    Field cards the Gaji may capture for a player.

    A target's month must not be completed by any player, and capturing it
    must not give the player all four cards of that month.
    """
    blocked = set(completed_months(captured))
    own = count_by_month(captured[player_idx])
    return [
        c for c in field_cards
        if c.month not in blocked and own.get(c.month, 0) < CARDS_PER_MONTH - 1
    ]


def field_fours(field_cards: Sequence[Card]) -> List[int]:
    """Months with all four cards on the field"""
    counts: Dict[int, int] = count_by_month(field_cards)
    return sorted(m for m, n in counts.items() if n == CARDS_PER_MONTH)
