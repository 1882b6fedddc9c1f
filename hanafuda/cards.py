"""
Hanafuda Card System

Defines the 48-card Hanafuda deck:
- 12 months (flowers) x 4 cards = 48
- Each card belongs to one category: Bright, Animal, Ribbon or Chaff
- 5 Brights, 9 Animals, 10 Ribbons, 24 Chaff

Card ids are stable (1-48) and ordered by month, so (id - 1) // 4 + 1 is the month.
"""

from enum import IntEnum
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple
import numpy as np


class CardType(IntEnum):
    """Card categories, from most to least valuable"""
    BRIGHT = 0   # 光 (hikari)
    ANIMAL = 1   # 種 (tane)
    RIBBON = 2   # 短 (tan)
    CHAFF = 3    # カス (kasu)


class RibbonKind(IntEnum):
    """Ribbon sub-kinds used by the ribbon combinations"""
    NONE = 0
    POETRY = 1   # Red ribbon with poem (Jan, Feb, Mar)
    BLUE = 2     # Blue ribbon (Jun, Sep, Oct)
    PLAIN = 3    # Plain red ribbon (Apr, May, Jul, Nov)


MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

NUM_CARDS = 48
NUM_MONTHS = 12
CARDS_PER_MONTH = 4


@dataclass(frozen=True)
class Card:
    """
    A single Hanafuda card.

    Attributes:
        id: Stable identity (1-48)
        month: Month / flower (1-12), the matching key
        card_type: Category (Bright, Animal, Ribbon, Chaff)
        name: Human-readable name
        ribbon: Ribbon sub-kind (NONE for non-ribbons)
    """
    id: int
    month: int
    card_type: CardType
    name: str
    ribbon: RibbonKind = RibbonKind.NONE

    def __post_init__(self):
        if not 1 <= self.id <= NUM_CARDS:
            raise ValueError(f"Card id must be 1-{NUM_CARDS}, got {self.id}")
        if not 1 <= self.month <= NUM_MONTHS:
            raise ValueError(f"Month must be 1-{NUM_MONTHS}, got {self.month}")
        if (self.card_type == CardType.RIBBON) != (self.ribbon != RibbonKind.NONE):
            raise ValueError(f"Ribbon kind does not match category for card {self.id}")

    @property
    def is_bright(self) -> bool:
        return self.card_type == CardType.BRIGHT

    @property
    def is_animal(self) -> bool:
        return self.card_type == CardType.ANIMAL

    @property
    def is_ribbon(self) -> bool:
        return self.card_type == CardType.RIBBON

    @property
    def is_chaff(self) -> bool:
        return self.card_type == CardType.CHAFF

    @property
    def month_name(self) -> str:
        return MONTH_NAMES[self.month - 1]

    @property
    def index(self) -> int:
        """Zero-based index (0-47) for array encodings"""
        return self.id - 1

    def __lt__(self, other) -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return self.id < other.id

    def __repr__(self) -> str:
        return f"Card({self.id}, {self.month_name}, {self.card_type.name})"

    def __str__(self) -> str:
        return self.name


def _card(card_id: int, month: int, card_type: CardType, name: str,
          ribbon: RibbonKind = RibbonKind.NONE) -> Card:
    return Card(card_id, month, card_type, f"{MONTH_NAMES[month - 1]} - {name}", ribbon)


B, A, R, C = CardType.BRIGHT, CardType.ANIMAL, CardType.RIBBON, CardType.CHAFF

CARDS: Tuple[Card, ...] = (
    # January - Pine
    _card(1, 1, B, "bright - crane"),
    _card(2, 1, R, "ribbon - poetry", RibbonKind.POETRY),
    _card(3, 1, C, "chaff"),
    _card(4, 1, C, "chaff"),
    # February - Plum
    _card(5, 2, A, "animal - bush warbler"),
    _card(6, 2, R, "ribbon - poetry", RibbonKind.POETRY),
    _card(7, 2, C, "chaff"),
    _card(8, 2, C, "chaff"),
    # March - Cherry
    _card(9, 3, B, "bright - curtain"),
    _card(10, 3, R, "ribbon - poetry", RibbonKind.POETRY),
    _card(11, 3, C, "chaff"),
    _card(12, 3, C, "chaff"),
    # April - Wisteria
    _card(13, 4, A, "animal - cuckoo"),
    _card(14, 4, R, "ribbon", RibbonKind.PLAIN),
    _card(15, 4, C, "chaff"),
    _card(16, 4, C, "chaff"),
    # May - Iris
    _card(17, 5, A, "animal - bridge"),
    _card(18, 5, R, "ribbon", RibbonKind.PLAIN),
    _card(19, 5, C, "chaff"),
    _card(20, 5, C, "chaff"),
    # June - Peony
    _card(21, 6, A, "animal - butterflies"),
    _card(22, 6, R, "ribbon - blue", RibbonKind.BLUE),
    _card(23, 6, C, "chaff"),
    _card(24, 6, C, "chaff"),
    # July - Bush Clover
    _card(25, 7, A, "animal - boar"),
    _card(26, 7, R, "ribbon", RibbonKind.PLAIN),
    _card(27, 7, C, "chaff"),
    _card(28, 7, C, "chaff"),
    # August - Susuki Grass
    _card(29, 8, B, "bright - moon"),
    _card(30, 8, A, "animal - geese"),
    _card(31, 8, C, "chaff"),
    _card(32, 8, C, "chaff"),
    # September - Chrysanthemum
    _card(33, 9, A, "animal - sake cup"),
    _card(34, 9, R, "ribbon - blue", RibbonKind.BLUE),
    _card(35, 9, C, "chaff"),
    _card(36, 9, C, "chaff"),
    # October - Maple
    _card(37, 10, A, "animal - deer"),
    _card(38, 10, R, "ribbon - blue", RibbonKind.BLUE),
    _card(39, 10, C, "chaff"),
    _card(40, 10, C, "chaff"),
    # November - Willow
    _card(41, 11, B, "bright - rain man"),
    _card(42, 11, A, "animal - swallow"),
    _card(43, 11, R, "ribbon", RibbonKind.PLAIN),
    _card(44, 11, C, "chaff - lightning"),
    # December - Paulownia
    _card(45, 12, B, "bright - phoenix"),
    _card(46, 12, C, "chaff"),
    _card(47, 12, C, "chaff"),
    _card(48, 12, C, "chaff"),
)

_CARDS_BY_ID: Dict[int, Card] = {card.id: card for card in CARDS}

# Named cards used by combinations
CRANE = _CARDS_BY_ID[1]
CURTAIN = _CARDS_BY_ID[9]
BUTTERFLIES = _CARDS_BY_ID[21]
BOAR = _CARDS_BY_ID[25]
MOON = _CARDS_BY_ID[29]
SAKE_CUP = _CARDS_BY_ID[33]
DEER = _CARDS_BY_ID[37]
RAIN_MAN = _CARDS_BY_ID[41]
LIGHTNING = _CARDS_BY_ID[44]  # Gaji in Sakura
PHOENIX = _CARDS_BY_ID[45]

BOAR_DEER_BUTTERFLY = (BOAR, DEER, BUTTERFLIES)


# Card valuation tables (category -> points)
KOIKOI_VALUES: Dict[CardType, int] = {B: 20, A: 10, R: 5, C: 1}
SAKURA_VALUES: Dict[CardType, int] = {B: 20, A: 5, R: 10, C: 0}
HACHIHACHI_VALUES: Dict[CardType, int] = {B: 20, A: 10, R: 5, C: 1}


def build_standard_deck() -> List[Card]:
    """Return the 48-card catalog in id order (deterministic)."""
    return list(CARDS)


def card_by_id(card_id: int) -> Card:
    """Look up a card by its stable id."""
    try:
        return _CARDS_BY_ID[card_id]
    except KeyError:
        raise ValueError(f"No card with id {card_id}") from None


def cards_of_month(cards: Iterable[Card], month: int) -> List[Card]:
    """Return the cards of a given month, preserving order."""
    return [c for c in cards if c.month == month]


def count_by_month(cards: Iterable[Card]) -> Dict[int, int]:
    """Count cards per month."""
    counts: Dict[int, int] = {}
    for card in cards:
        counts[card.month] = counts.get(card.month, 0) + 1
    return counts


def card_points(cards: Iterable[Card], values: Optional[Dict[CardType, int]] = None) -> int:
    """Sum the category values of a group of cards."""
    values = values or KOIKOI_VALUES
    return sum(values[card.card_type] for card in cards)


def to_mask(cards: Iterable[Card]) -> np.ndarray:
    """Encode cards as a 48-element binary array indexed by card index."""
    mask = np.zeros(NUM_CARDS, dtype=np.int8)
    for card in cards:
        mask[card.index] = 1
    return mask


def format_cards(cards: Iterable[Card]) -> str:
    return ", ".join(f"[{c.id}] {c.name}" for c in cards)
