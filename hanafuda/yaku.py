"""
Hanafuda Yaku (Combination) Detection

One detector per rule set. Each detector is a list of independent
(YakuSpec, check) pairs; a check maps a captured-card snapshot to the
cards involved (or None), and the spec turns that into points.
Mutually exclusive combinations share a family; the highest-scoring
member of a family wins.

Detection is pure: the same snapshot always yields the same list, so the
engine can call it speculatively and diff successive results.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from .cards import (
    Card, CardType, RibbonKind, count_by_month,
    CURTAIN, MOON, SAKE_CUP, RAIN_MAN, BOAR_DEER_BUTTERFLY,
)
from .rules import VariantConfig, Variant, SakeMode, KOIKOI_RULES

logger = logging.getLogger(__name__)

CheckFunc = Callable[[List[Card]], Optional[List[Card]]]

VIEWING_SAKE = "Viewing Sake"
MOON_VIEWING_SAKE = "Moon Viewing Sake"
SAKE_YAKU = (VIEWING_SAKE, MOON_VIEWING_SAKE)


@dataclass(frozen=True)
class YakuSpec:
    """
    Declarative description of one combination.

    Counting combinations (Ribbons, Animals, Chaff) score
    points + extra_per_card for each involved card beyond min_cards.
    """
    name: str
    japanese_name: str
    points: int
    family: str = ""
    min_cards: int = 0
    extra_per_card: int = 0

    def score(self, cards: Sequence[Card]) -> int:
        extra = max(0, len(cards) - self.min_cards) if self.min_cards else 0
        return self.points + extra * self.extra_per_card


@dataclass(frozen=True)
class Yaku:
    """A detected combination"""
    name: str
    points: int
    cards: Tuple[Card, ...] = ()
    family: str = ""

    def __repr__(self) -> str:
        return f"Yaku({self.name}, {self.points})"


@dataclass
class YakuDiff:
    """Combinations that appeared or gained points between two detections"""
    new: List[Yaku] = field(default_factory=list)
    improved: List[Yaku] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.new or self.improved)


@dataclass
class YakuProgress:
    """How close a player is to an incomplete combination"""
    name: str
    current: int
    needed: int
    possible: bool


def total_points(yaku: Iterable[Yaku]) -> int:
    return sum(y.points for y in yaku)


def diff_yaku(previous: Sequence[Yaku], current: Sequence[Yaku]) -> YakuDiff:
    """
    Compare two detection results by name.

    A combination is new if its name is absent from previous, improved if
    present in both with more points now.
    """
    before = {y.name: y.points for y in previous}
    diff = YakuDiff()
    for yaku in current:
        if yaku.name not in before:
            diff.new.append(yaku)
        elif yaku.points > before[yaku.name]:
            diff.improved.append(yaku)
    return diff


def _of_type(cards: Iterable[Card], card_type: CardType) -> List[Card]:
    return [c for c in cards if c.card_type == card_type]


def _of_ribbon(cards: Iterable[Card], kind: RibbonKind) -> List[Card]:
    return [c for c in cards if c.ribbon == kind]


def _all_of(cards: Sequence[Card], wanted: Sequence[Card]) -> Optional[List[Card]]:
    ids = {c.id for c in cards}
    if all(w.id in ids for w in wanted):
        return list(wanted)
    return None


class YakuDetector:
    """
    Base combination detector.

    Subclasses provide _create_yaku_checks(); detection, family precedence
    and totals are shared.
    """

    variant = Variant.KOIKOI

    def __init__(self, rules: Optional[VariantConfig] = None):
        self.rules = rules or KOIKOI_RULES
        self.yaku_checks = self._create_yaku_checks()

    def _create_yaku_checks(self) -> List[Tuple[YakuSpec, CheckFunc]]:
        raise NotImplementedError

    def detect(self, captured: Iterable[Card]) -> List[Yaku]:
        """
        Detect all combinations in a captured-card snapshot.

        Args:
            captured: Captured cards (order and duplicates ignored)

        Returns:
            Combinations in catalog order
        """
        cards = sorted(set(captured))
        found: List[Yaku] = []
        for spec, check in self.yaku_checks:
            involved = check(cards)
            if involved:
                found.append(Yaku(spec.name, spec.score(involved), tuple(involved), spec.family))
        return self._post_filter(self._apply_families(found))

    def total(self, captured: Iterable[Card]) -> int:
        return total_points(self.detect(captured))

    def _apply_families(self, found: List[Yaku]) -> List[Yaku]:
        best: Dict[str, Yaku] = {}
        for yaku in found:
            if yaku.family and (yaku.family not in best or yaku.points > best[yaku.family].points):
                best[yaku.family] = yaku
        return [y for y in found if not y.family or best[y.family] is y]

    def _post_filter(self, found: List[Yaku]) -> List[Yaku]:
        return found

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.rules.name})"


class KoiKoiDetector(YakuDetector):
    """Koi-Koi combinations (also used by Shop)"""

    variant = Variant.KOIKOI

    def _create_yaku_checks(self) -> List[Tuple[YakuSpec, CheckFunc]]:
        return [
            # Brights (one family)
            (YakuSpec("Five Brights", "五光", 15, "brights"), self._check_five_brights),
            (YakuSpec("Four Brights", "四光", 10, "brights"), self._check_four_brights),
            (YakuSpec("Rainy Four Brights", "雨四光", 8, "brights"), self._check_rainy_four_brights),
            (YakuSpec("Three Brights", "三光", 6, "brights"), self._check_three_brights),
            # Ribbons
            (YakuSpec("Poetry Ribbons", "赤短", 6),
             lambda cards: self._check_ribbon_set(cards, RibbonKind.POETRY)),
            (YakuSpec("Blue Ribbons", "青短", 6),
             lambda cards: self._check_ribbon_set(cards, RibbonKind.BLUE)),
            (YakuSpec("Ribbons", "短冊", 5, min_cards=5, extra_per_card=1),
             lambda cards: self._check_count(cards, CardType.RIBBON, 5)),
            # Animals
            (YakuSpec("Boar-Deer-Butterfly", "猪鹿蝶", 6),
             lambda cards: _all_of(cards, BOAR_DEER_BUTTERFLY)),
            (YakuSpec("Animals", "タネ", 5, min_cards=5, extra_per_card=1),
             lambda cards: self._check_count(cards, CardType.ANIMAL, 5)),
            # Chaff
            (YakuSpec("Chaff", "カス", 1, min_cards=10, extra_per_card=1),
             lambda cards: self._check_count(cards, CardType.CHAFF, 10)),
            # Sake
            (YakuSpec(VIEWING_SAKE, "花見酒", 3), lambda cards: _all_of(cards, (CURTAIN, SAKE_CUP))),
            (YakuSpec(MOON_VIEWING_SAKE, "月見酒", 3), lambda cards: _all_of(cards, (MOON, SAKE_CUP))),
        ]

    def _check_five_brights(self, cards: List[Card]) -> Optional[List[Card]]:
        brights = _of_type(cards, CardType.BRIGHT)
        return brights if len(brights) == 5 else None

    def _check_four_brights(self, cards: List[Card]) -> Optional[List[Card]]:
        dry = [c for c in _of_type(cards, CardType.BRIGHT) if c != RAIN_MAN]
        return dry if len(dry) == 4 else None

    def _check_rainy_four_brights(self, cards: List[Card]) -> Optional[List[Card]]:
        brights = _of_type(cards, CardType.BRIGHT)
        if len(brights) == 4 and RAIN_MAN in brights:
            return brights
        return None

    def _check_three_brights(self, cards: List[Card]) -> Optional[List[Card]]:
        dry = [c for c in _of_type(cards, CardType.BRIGHT) if c != RAIN_MAN]
        return dry[:3] if len(dry) >= 3 else None

    def _check_ribbon_set(self, cards: List[Card], kind: RibbonKind) -> Optional[List[Card]]:
        ribbons = _of_ribbon(cards, kind)
        return ribbons if len(ribbons) >= 3 else None

    def _check_count(self, cards: List[Card], card_type: CardType, needed: int) -> Optional[List[Card]]:
        matching = _of_type(cards, card_type)
        return matching if len(matching) >= needed else None

    def _post_filter(self, found: List[Yaku]) -> List[Yaku]:
        modes = {
            VIEWING_SAKE: self.rules.viewing_sake_mode,
            MOON_VIEWING_SAKE: self.rules.moon_viewing_sake_mode,
        }
        has_other = any(y.name not in SAKE_YAKU for y in found)
        kept = []
        for yaku in found:
            mode = modes.get(yaku.name)
            if mode == SakeMode.NEVER:
                continue
            if mode == SakeMode.REQUIRE_OTHER and not has_other:
                continue
            kept.append(yaku)
        return kept


class SakuraDetector(YakuDetector):
    """
    Sakura combinations.

    Every combination is independent and worth the rule set's yaku penalty;
    cards may count toward several at once.
    """

    variant = Variant.SAKURA

    def _create_yaku_checks(self) -> List[Tuple[YakuSpec, CheckFunc]]:
        penalty = self.rules.yaku_penalty
        return [
            (YakuSpec("Sanko", "三光", penalty), self._check_sanko),
            (YakuSpec("Shiko", "四光", penalty), self._check_shiko),
            (YakuSpec("Ame-Shiko", "雨四光", penalty), self._check_ame_shiko),
            (YakuSpec("Goko", "五光", penalty), self._check_goko),
            (YakuSpec("Akatan", "赤短", penalty),
             lambda cards: self._check_ribbons(cards, RibbonKind.POETRY)),
            (YakuSpec("Aotan", "青短", penalty),
             lambda cards: self._check_ribbons(cards, RibbonKind.BLUE)),
            (YakuSpec("Tanzaku", "短冊", penalty),
             lambda cards: self._check_ribbons(cards, RibbonKind.PLAIN)),
            (YakuSpec("Ino-Shika-Cho", "猪鹿蝶", penalty),
             lambda cards: _all_of(cards, BOAR_DEER_BUTTERFLY)),
        ]

    @staticmethod
    def _dry_brights(cards: List[Card]) -> List[Card]:
        return [c for c in _of_type(cards, CardType.BRIGHT) if c != RAIN_MAN]

    def _check_sanko(self, cards: List[Card]) -> Optional[List[Card]]:
        dry = self._dry_brights(cards)
        return dry if len(dry) >= 3 else None

    def _check_shiko(self, cards: List[Card]) -> Optional[List[Card]]:
        dry = self._dry_brights(cards)
        return dry if len(dry) == 4 else None

    def _check_ame_shiko(self, cards: List[Card]) -> Optional[List[Card]]:
        dry = self._dry_brights(cards)
        if len(dry) >= 3 and RAIN_MAN in cards:
            return dry + [RAIN_MAN]
        return None

    def _check_goko(self, cards: List[Card]) -> Optional[List[Card]]:
        brights = _of_type(cards, CardType.BRIGHT)
        return brights if len(brights) == 5 else None

    def _check_ribbons(self, cards: List[Card], kind: RibbonKind) -> Optional[List[Card]]:
        ribbons = _of_ribbon(cards, kind)
        return ribbons if len(ribbons) >= 3 else None


class HachiHachiDetector(YakuDetector):
    """Hachi-Hachi dekiyaku (captured-pile combinations, values in kan)"""

    variant = Variant.HACHIHACHI

    def _create_yaku_checks(self) -> List[Tuple[YakuSpec, CheckFunc]]:
        return [
            (YakuSpec("Five Brights", "五光", 12, "brights"), self._check_five_brights),
            (YakuSpec("Four Brights", "四光", 10, "brights"), self._check_four_brights),
            (YakuSpec("Seven Ribbons", "七短", 10), self._check_seven_ribbons),
            (YakuSpec("Poetry Ribbons", "赤短", 7),
             lambda cards: self._check_ribbon_set(cards, RibbonKind.POETRY)),
            (YakuSpec("Blue Ribbons", "青短", 7),
             lambda cards: self._check_ribbon_set(cards, RibbonKind.BLUE)),
            (YakuSpec("Boar-Deer-Butterfly", "猪鹿蝶", 7),
             lambda cards: _all_of(cards, BOAR_DEER_BUTTERFLY)),
        ]

    def _check_five_brights(self, cards: List[Card]) -> Optional[List[Card]]:
        brights = _of_type(cards, CardType.BRIGHT)
        return brights if len(brights) == 5 else None

    def _check_four_brights(self, cards: List[Card]) -> Optional[List[Card]]:
        brights = _of_type(cards, CardType.BRIGHT)
        return brights if len(brights) == 4 else None

    def _check_seven_ribbons(self, cards: List[Card]) -> Optional[List[Card]]:
        ribbons = [c for c in _of_type(cards, CardType.RIBBON) if c.month != 11]
        return ribbons[:7] if len(ribbons) >= 7 else None

    def _check_ribbon_set(self, cards: List[Card], kind: RibbonKind) -> Optional[List[Card]]:
        ribbons = _of_ribbon(cards, kind)
        return ribbons if len(ribbons) == 3 else None


_DETECTORS = {
    Variant.KOIKOI: KoiKoiDetector,
    Variant.SHOP: KoiKoiDetector,
    Variant.SAKURA: SakuraDetector,
    Variant.HACHIHACHI: HachiHachiDetector,
}


def get_detector(rules: Optional[VariantConfig] = None) -> YakuDetector:
    """Select the detector for a rule set"""
    rules = rules or KOIKOI_RULES
    return _DETECTORS[rules.variant](rules)


# ============================================================
# Teyaku (Hachi-Hachi starting-hand combinations)
# ============================================================

STANDING_MONTHS = (4, 5, 7, 12)

TEYAKU_GROUP_A = "teyaku_a"
TEYAKU_GROUP_B = "teyaku_b"


def _months_with(counts: Dict[int, int], predicate: Callable[[int], bool]) -> List[int]:
    return sorted(m for m, n in counts.items() if predicate(n))


def _cards_for(hand: Sequence[Card], months: Sequence[int], per_month: int) -> List[Card]:
    cards: List[Card] = []
    for month in months:
        cards.extend([c for c in hand if c.month == month][:per_month])
    return cards


def _group_a_candidates(hand: Sequence[Card]) -> List[Tuple[str, int, List[Card]]]:
    """All set teyaku present in the hand, in listing order"""
    counts = count_by_month(hand)
    fours = _months_with(counts, lambda n: n == 4)
    exact_threes = _months_with(counts, lambda n: n == 3)
    exact_twos = _months_with(counts, lambda n: n == 2)
    ones = _months_with(counts, lambda n: n == 1)
    triples = _months_with(counts, lambda n: n >= 3)
    pairs = _months_with(counts, lambda n: n >= 2)
    standing = [m for m in triples if m in STANDING_MONTHS]
    regular = [m for m in triples if m not in STANDING_MONTHS]

    found = []
    if fours and exact_threes:
        found.append(("Four-Three", 20, _cards_for(hand, fours[:1], 4) + _cards_for(hand, exact_threes[:1], 3)))
    if fours and exact_twos and ones:
        found.append(("One-Two-Four", 8, list(hand)))
    if len(standing) >= 2:
        found.append(("Two Standing Triplets", 8, _cards_for(hand, standing[:2], 3)))
    if exact_threes and len(exact_twos) >= 2:
        found.append(("Triplet and Two Pairs", 7,
                      _cards_for(hand, exact_threes[:1], 3) + _cards_for(hand, exact_twos[:2], 2)))
    if len(triples) >= 2:
        found.append(("Two Triplets", 6, _cards_for(hand, triples[:2], 3)))
    if fours:
        found.append(("Four of a Kind", 6, _cards_for(hand, fours[:1], 4)))
    if len(pairs) >= 3:
        found.append(("Three Pairs", 4, _cards_for(hand, pairs[:3], 2)))
    if regular and standing:
        found.append(("Triplet and Standing Triplet", 7,
                      _cards_for(hand, regular[:1], 3) + _cards_for(hand, standing[:1], 3)))
    if standing:
        found.append(("Standing Triplet", 3, _cards_for(hand, standing[:1], 3)))
    if triples:
        found.append(("Triplet", 2, _cards_for(hand, triples[:1], 3)))
    return found


def _group_b_candidates(hand: Sequence[Card]) -> List[Tuple[str, int, List[Card]]]:
    """All chaff teyaku present in the hand; November cards count as chaff"""
    plain = [c for c in hand if c.is_chaff or c.month == 11]
    brights = _of_type(hand, CardType.BRIGHT)
    animals = _of_type(hand, CardType.ANIMAL)
    ribbons = _of_type(hand, CardType.RIBBON)

    found = []
    if len(plain) == 7:
        found.append(("Empty Hand", 4, list(hand)))
    if len(brights) == 1 and len(plain) == 6:
        found.append(("One Bright", 4, plain))
    if len(animals) == 1 and len(plain) == 6:
        found.append(("One Animal", 3, plain))
    if len(ribbons) == 1 and len(plain) == 6:
        found.append(("One Ribbon", 3, plain))
    if len(ribbons) >= 2 and plain:
        found.append(("Red", 2, plain))
    return found


def _best(candidates: List[Tuple[str, int, List[Card]]], family: str) -> Optional[Yaku]:
    if not candidates:
        return None
    # Highest value first; listing order breaks ties (sort is stable)
    name, value, cards = sorted(candidates, key=lambda c: -c[1])[0]
    return Yaku(name, value, tuple(cards), family)


def detect_teyaku(hand: Sequence[Card]) -> List[Yaku]:
    """
    Detect the claimed teyaku of a starting hand.

    Returns:
        The best group A (set) teyaku and the best group B (chaff) teyaku,
        each only if present
    """
    claimed = []
    for yaku in (_best(_group_a_candidates(hand), TEYAKU_GROUP_A),
                 _best(_group_b_candidates(hand), TEYAKU_GROUP_B)):
        if yaku is not None:
            claimed.append(yaku)
    return claimed


# ============================================================
# Progress toward incomplete combinations
# ============================================================

_PROGRESS_GROUPS: Tuple[Tuple[str, Callable[[Card], bool], int, int], ...] = (
    # name, membership, needed, total in the deck
    ("Brights", lambda c: c.is_bright, 3, 5),
    ("Poetry Ribbons", lambda c: c.ribbon == RibbonKind.POETRY, 3, 3),
    ("Blue Ribbons", lambda c: c.ribbon == RibbonKind.BLUE, 3, 3),
    ("Ribbons", lambda c: c.is_ribbon, 5, 10),
    ("Animals", lambda c: c.is_animal, 5, 9),
    ("Chaff", lambda c: c.is_chaff, 10, 24),
    ("Boar-Deer-Butterfly", lambda c: c in BOAR_DEER_BUTTERFLY, 3, 3),
)


def yaku_progress(cards: Sequence[Card], opponent_cards: Sequence[Card] = ()) -> List[YakuProgress]:
    """
    Report partially collected Koi-Koi combinations.

    A combination is still possible if enough of its cards remain outside
    the opponents' captures.
    """
    progress = []
    for name, member, needed, total in _PROGRESS_GROUPS:
        current = sum(1 for c in cards if member(c))
        if 0 < current < needed:
            taken = sum(1 for c in opponent_cards if member(c))
            progress.append(YakuProgress(name, current, needed, total - taken >= needed))
    return progress
