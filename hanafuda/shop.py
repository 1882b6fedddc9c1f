"""
Shop mode bonus conditions

Before a Shop round, player 0 picks up to four starting cards and one
bonus condition. The condition is checked at every turn handoff and pays
its difficulty's bonus once.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

from .cards import Card, CardType, CARDS_PER_MONTH, count_by_month
from .yaku import Yaku, YakuDetector, SAKE_YAKU, VIEWING_SAKE, MOON_VIEWING_SAKE

MAX_SHOP_CARDS = 4

SPECIAL_YAKU = ("Poetry Ribbons", "Blue Ribbons", "Boar-Deer-Butterfly")

EASY, MEDIUM, HARD = 1, 2, 3


@dataclass(frozen=True)
class BonusContext:
    """What a bonus condition may look at"""
    captured: Sequence[Card]
    yaku: Sequence[Yaku]
    opponent_yaku: Sequence[Yaku]
    deck_remaining: int
    round_over: bool


@dataclass(frozen=True)
class BonusCondition:
    """
    A Shop bonus condition.

    Attributes:
        id: Stable identifier
        name: Display name
        description: Rule text
        difficulty: 1 (easy) to 3 (hard)
        check: Predicate over a BonusContext
        at_round_end: Only evaluated once the round is over
    """
    id: str
    name: str
    description: str
    difficulty: int
    check: Callable[[BonusContext], bool]
    at_round_end: bool = False

    @property
    def stars(self) -> str:
        return "★" * self.difficulty + "☆" * (3 - self.difficulty)

    def is_met(self, ctx: BonusContext) -> bool:
        if self.at_round_end and not ctx.round_over:
            return False
        return self.check(ctx)

    def bonus_points(self, points_by_difficulty: Sequence[int]) -> int:
        return points_by_difficulty[self.difficulty - 1]

    def __repr__(self) -> str:
        return f"BonusCondition({self.id}, {self.stars})"


def _count(card_type: CardType, needed: int) -> Callable[[BonusContext], bool]:
    return lambda ctx: sum(1 for c in ctx.captured if c.card_type == card_type) >= needed


def _has_yaku(*names: str, needed: int = 1) -> Callable[[BonusContext], bool]:
    return lambda ctx: sum(1 for y in ctx.yaku if y.name in names) >= needed


def _complete_months(needed: int) -> Callable[[BonusContext], bool]:
    def check(ctx: BonusContext) -> bool:
        counts = count_by_month(ctx.captured)
        return sum(1 for n in counts.values() if n == CARDS_PER_MONTH) >= needed
    return check


def _opponent_blocked(ctx: BonusContext) -> bool:
    return not any(y.name not in SAKE_YAKU for y in ctx.opponent_yaku)


def _speed_run(ctx: BonusContext) -> bool:
    return ctx.deck_remaining < 10 and bool(ctx.yaku)


BONUS_CONDITIONS: List[BonusCondition] = [
    # Easy
    BonusCondition("easy_animal_or_ribbon", "Any Animal or Ribbon Yaku",
                   "Complete any animal or ribbon yaku", EASY,
                   _has_yaku("Animals", "Ribbons", "Poetry Ribbons", "Blue Ribbons")),
    BonusCondition("easy_five_animals", "Animal Collector",
                   "Collect 5 or more animal cards", EASY, _count(CardType.ANIMAL, 5)),
    BonusCondition("easy_five_ribbons", "Ribbon Collector",
                   "Collect 5 or more ribbon cards", EASY, _count(CardType.RIBBON, 5)),
    BonusCondition("easy_any_special", "Special Yaku",
                   "Complete Poetry Ribbons, Blue Ribbons or Boar-Deer-Butterfly", EASY,
                   _has_yaku(*SPECIAL_YAKU)),
    BonusCondition("easy_ten_chaff", "Chaff Master",
                   "Collect 10 or more chaff cards", EASY, _count(CardType.CHAFF, 10)),
    BonusCondition("easy_any_sake", "Sake Enthusiast",
                   "Complete either sake yaku", EASY, _has_yaku(*SAKE_YAKU)),
    # Medium
    BonusCondition("medium_three_months", "Three Complete Months",
                   "Collect all 4 cards of any 3 months", MEDIUM, _complete_months(3)),
    BonusCondition("medium_poetry_ribbons", "Poetry Master",
                   "Complete Poetry Ribbons", MEDIUM, _has_yaku("Poetry Ribbons")),
    BonusCondition("medium_blue_ribbons", "Blue Collector",
                   "Complete Blue Ribbons", MEDIUM, _has_yaku("Blue Ribbons")),
    BonusCondition("medium_boar_deer_butterfly", "Ino-Shika-Cho",
                   "Complete Boar-Deer-Butterfly", MEDIUM, _has_yaku("Boar-Deer-Butterfly")),
    BonusCondition("medium_both_sake", "Double Sake",
                   "Complete both sake yaku", MEDIUM,
                   _has_yaku(VIEWING_SAKE, MOON_VIEWING_SAKE, needed=2)),
    BonusCondition("medium_seven_animals", "Animal Hoarder",
                   "Collect 7 or more animal cards", MEDIUM, _count(CardType.ANIMAL, 7)),
    BonusCondition("medium_seven_ribbons", "Ribbon Hoarder",
                   "Collect 7 or more ribbon cards", MEDIUM, _count(CardType.RIBBON, 7)),
    BonusCondition("medium_two_brights", "Double Bright",
                   "Collect any 2 bright cards", MEDIUM, _count(CardType.BRIGHT, 2)),
    # Hard
    BonusCondition("hard_block_opponent", "Perfect Defense",
                   "The opponent completes no yaku other than sake yaku", HARD,
                   _opponent_blocked, at_round_end=True),
    BonusCondition("hard_three_brights", "Three Brights",
                   "Complete Three Brights", HARD, _has_yaku("Three Brights")),
    BonusCondition("hard_four_months", "Four Complete Months",
                   "Collect all 4 cards of any 4 months", HARD, _complete_months(4)),
    BonusCondition("hard_all_ribbons", "Ribbon Monopoly",
                   "Collect all 10 ribbon cards", HARD, _count(CardType.RIBBON, 10)),
    BonusCondition("hard_nine_animals", "Animal Kingdom",
                   "Collect all 9 animal cards", HARD, _count(CardType.ANIMAL, 9)),
    BonusCondition("hard_two_special_yaku", "Double Special",
                   "Complete any 2 of Poetry Ribbons, Blue Ribbons, Boar-Deer-Butterfly", HARD,
                   _has_yaku(*SPECIAL_YAKU, needed=2)),
    BonusCondition("hard_fifteen_chaff", "Chaff Monopoly",
                   "Collect 15 or more chaff cards", HARD, _count(CardType.CHAFF, 15)),
    BonusCondition("hard_speed_run", "Speed Demon",
                   "Hold any yaku with fewer than 10 cards left in the deck", HARD, _speed_run),
]

BONUS_BY_ID: Dict[str, BonusCondition] = {c.id: c for c in BONUS_CONDITIONS}


def get_bonus_condition(condition_id: str) -> BonusCondition:
    try:
        return BONUS_BY_ID[condition_id]
    except KeyError:
        raise ValueError(f"Unknown bonus condition: {condition_id}") from None


def build_bonus_context(detector: YakuDetector, captured: Sequence[Card],
                        opponent_captured: Sequence[Card], deck_remaining: int,
                        round_over: bool = False) -> BonusContext:
    return BonusContext(
        captured=list(captured),
        yaku=detector.detect(captured),
        opponent_yaku=detector.detect(opponent_captured),
        deck_remaining=deck_remaining,
        round_over=round_over,
    )
