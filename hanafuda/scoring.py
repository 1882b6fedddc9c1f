"""
Hanafuda Settlement

Turns end-of-round captures and decisions into per-player score deltas,
and round results into a match winner.

Round settlement applies, in order:
1. Base combination points
2. Forfeiture of players who called Continue and never improved
3. The opponent-triggered multiplier
4. Variant rules (winner-take-all, both score, Sakura card points,
   Hachi-Hachi par settlement)
"""

from enum import IntEnum
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import logging

from .cards import Card, SAKURA_VALUES, HACHIHACHI_VALUES, card_points
from .koikoi import KoikoiState
from .rules import VariantConfig, Variant
from .yaku import Yaku, total_points

logger = logging.getLogger(__name__)


class EndReason(IntEnum):
    """What ended the round"""
    STOP = 0        # A player chose Stop / Shoubu
    AUTO_STOP = 1   # Combination formed with koi-koi disabled
    EXHAUSTED = 2   # Hands (and deck) ran out
    MISDEAL = 3     # Four cards of a month dealt to the field


@dataclass
class RoundContext:
    """Everything settlement needs from a finished round"""
    captured: List[List[Card]]
    yaku: List[List[Yaku]]
    koikoi: KoikoiState
    dealer: int
    end_reason: EndReason
    stopper: Optional[int] = None
    field_multiplier: int = 1
    bonus: List[int] = field(default_factory=list)

    @property
    def num_players(self) -> int:
        return len(self.captured)


@dataclass
class RoundResult:
    """Result of a round"""
    round_number: int = 0
    end_reason: EndReason = EndReason.EXHAUSTED
    winner: Optional[int] = None
    scores: List[int] = field(default_factory=list)
    base_scores: List[int] = field(default_factory=list)
    multipliers: List[int] = field(default_factory=list)
    forfeited: List[bool] = field(default_factory=list)
    yaku: List[List[Yaku]] = field(default_factory=list)
    wins_awarded: List[int] = field(default_factory=list)
    teyaku_scores: List[int] = field(default_factory=list)
    stopper: Optional[int] = None

    @property
    def is_draw(self) -> bool:
        return self.winner is None

    @property
    def total_scores(self) -> List[int]:
        """Round scores including teyaku paid at round start"""
        if not self.teyaku_scores:
            return list(self.scores)
        return [s + t for s, t in zip(self.scores, self.teyaku_scores)]

    def __repr__(self) -> str:
        return f"RoundResult(round={self.round_number}, {self.end_reason.name}, winner={self.winner}, scores={self.scores})"


@dataclass
class MatchResult:
    """Final result of a match"""
    winner: Optional[int] = None
    totals: List[int] = field(default_factory=list)
    round_wins: List[int] = field(default_factory=list)
    rounds: List[RoundResult] = field(default_factory=list)

    @property
    def is_tie(self) -> bool:
        return self.winner is None

    def __repr__(self) -> str:
        return f"MatchResult(winner={self.winner}, totals={self.totals}, wins={self.round_wins})"


def _empty_result(ctx: RoundContext) -> RoundResult:
    n = ctx.num_players
    return RoundResult(
        end_reason=ctx.end_reason,
        scores=[0] * n,
        base_scores=[0] * n,
        multipliers=[1] * n,
        forfeited=[ctx.koikoi.is_forfeited(i) for i in range(n)],
        yaku=[list(y) for y in ctx.yaku],
        wins_awarded=[0] * n,
        stopper=ctx.stopper,
    )


def _top_scorer(scores: Sequence[int], dealer: Optional[int] = None,
                require_positive: bool = True) -> Optional[int]:
    """Unique highest scorer; the dealer wins ties when given"""
    best = max(scores)
    if require_positive and best <= 0:
        return None
    leaders = [i for i, s in enumerate(scores) if s == best]
    if len(leaders) == 1:
        return leaders[0]
    if dealer is not None:
        if dealer in leaders:
            return dealer
        # Nearest seat after the dealer
        n = len(scores)
        return min(leaders, key=lambda i: (i - dealer) % n)
    return None


def wins_for_margin(margin: int, rules: VariantConfig) -> int:
    """Round wins for a winning margin, using the highest satisfied tier"""
    wins = 1
    for threshold, tier_wins in sorted(rules.win_margin_tiers):
        if margin >= threshold:
            wins = tier_wins
    return wins


def _award_wins(result: RoundResult, rules: VariantConfig) -> None:
    if not rules.win_counting_mode or result.winner is None:
        return
    others = [s for i, s in enumerate(result.scores) if i != result.winner]
    margin = result.scores[result.winner] - max(others) if others else result.scores[result.winner]
    result.wins_awarded[result.winner] = wins_for_margin(margin, rules)


def _koikoi_points(ctx: RoundContext, rules: VariantConfig, player_idx: int,
                   result: RoundResult, with_multiplier: bool) -> int:
    base = total_points(ctx.yaku[player_idx])
    result.base_scores[player_idx] = base
    score = base
    if rules.double_seven_plus and score >= 7:
        score *= 2
    if with_multiplier:
        multiplier = ctx.koikoi.multiplier_for(player_idx, rules)
        result.multipliers[player_idx] = multiplier
        score *= multiplier
    return score


def _settle_koikoi(ctx: RoundContext, rules: VariantConfig) -> RoundResult:
    result = _empty_result(ctx)
    if ctx.end_reason == EndReason.MISDEAL:
        return result

    n = ctx.num_players
    eligible = [
        i for i in range(n)
        if ctx.yaku[i] and not ctx.koikoi.is_forfeited(i)
    ]

    if ctx.stopper is not None:
        if rules.both_players_score:
            for i in eligible:
                result.scores[i] = _koikoi_points(ctx, rules, i, result, i == ctx.stopper)
        else:
            result.scores[ctx.stopper] = _koikoi_points(ctx, rules, ctx.stopper, result, True)
        result.winner = ctx.stopper
    elif rules.both_players_score:
        for i in eligible:
            result.scores[i] = _koikoi_points(ctx, rules, i, result, True)
    elif len(eligible) == 1:
        winner = eligible[0]
        result.scores[winner] = _koikoi_points(ctx, rules, winner, result, True)
        result.winner = winner
    # Several eligible holders under winner-take-all: drawn round

    for i, bonus in enumerate(ctx.bonus):
        result.scores[i] += bonus
    if rules.both_players_score and ctx.stopper is None:
        result.winner = _top_scorer(result.scores)

    _award_wins(result, rules)
    return result


def _settle_sakura(ctx: RoundContext, rules: VariantConfig) -> RoundResult:
    result = _empty_result(ctx)
    if ctx.end_reason == EndReason.MISDEAL:
        return result
    n = ctx.num_players
    penalties = [rules.yaku_penalty * len(ctx.yaku[i]) for i in range(n)]

    for i in range(n):
        points = card_points(ctx.captured[i], SAKURA_VALUES)
        result.base_scores[i] = points
        if rules.both_players_score:
            result.scores[i] = points + penalties[i]
        else:
            result.scores[i] = points - sum(p for j, p in enumerate(penalties) if j != i)

    result.winner = _top_scorer(result.scores, dealer=ctx.dealer, require_positive=False)
    _award_wins(result, rules)
    return result


def teyaku_transfers(teyaku: Sequence[Sequence[Yaku]], multiplier: int) -> List[int]:
    """
    Zero-sum teyaku payments: each holder collects value x multiplier
    from every other player.
    """
    n = len(teyaku)
    transfers = [0] * n
    for i, claimed in enumerate(teyaku):
        value = total_points(claimed) * multiplier
        if not value:
            continue
        for j in range(n):
            if j != i:
                transfers[j] -= value
                transfers[i] += value
    return transfers


def hachihachi_field_multiplier(field_cards: Sequence[Card]) -> int:
    """4 with any November or December card on the field, else 2 with January, March or August, else 1"""
    months = {c.month for c in field_cards}
    if months & {11, 12}:
        return 4
    if months & {1, 3, 8}:
        return 2
    return 1


def _settle_hachihachi(ctx: RoundContext, rules: VariantConfig) -> RoundResult:
    result = _empty_result(ctx)
    n = ctx.num_players
    m = ctx.field_multiplier
    result.multipliers = [m] * n

    if ctx.end_reason == EndReason.MISDEAL:
        return result

    if ctx.end_reason == EndReason.EXHAUSTED:
        for i in range(n):
            points = card_points(ctx.captured[i], HACHIHACHI_VALUES)
            result.base_scores[i] = points
            result.scores[i] = (points - rules.par_value) * m
        collectors = [i for i in range(n) if not ctx.koikoi.is_forfeited(i)]
    else:
        # Shoubu: only the stopper's dekiyaku are paid
        collectors = [ctx.stopper] if ctx.stopper is not None else []

    dekiyaku = [ctx.yaku[i] if i in collectors else [] for i in range(n)]
    for i, delta in enumerate(teyaku_transfers(dekiyaku, m)):
        result.scores[i] += delta

    result.winner = _top_scorer(result.scores)
    return result


def settle_round(ctx: RoundContext, rules: VariantConfig) -> RoundResult:
    """
    Settle a finished round.

    Args:
        ctx: Captures, detections and decision state at round end
        rules: Rule set of the match

    Returns:
        Per-player score deltas and the round winner
    """
    if rules.variant == Variant.SAKURA:
        result = _settle_sakura(ctx, rules)
    elif rules.variant == Variant.HACHIHACHI:
        result = _settle_hachihachi(ctx, rules)
    else:
        result = _settle_koikoi(ctx, rules)
    logger.info(f"Round settled ({ctx.end_reason.name}): winner={result.winner}, scores={result.scores}")
    return result


def settle_match(results: Sequence[RoundResult], num_players: int,
                 rules: VariantConfig) -> MatchResult:
    """
    Decide the match winner.

    Point variants sum round scores (teyaku included); win-counting
    variants count awarded round wins. Ties give no winner.
    """
    totals = [0] * num_players
    wins = [0] * num_players
    for result in results:
        for i, score in enumerate(result.total_scores):
            totals[i] += score
        for i, w in enumerate(result.wins_awarded):
            wins[i] += w

    ranking = wins if rules.win_counting_mode else totals
    winner = _top_scorer(ranking, require_positive=False)
    match = MatchResult(winner=winner, totals=totals, round_wins=wins, rounds=list(results))
    logger.info(f"Match over: {match}")
    return match


def next_dealer(result: RoundResult, dealer: int, num_players: int,
                rules: VariantConfig) -> int:
    """
    Dealer for the following round.

    Koi-Koi/Shop: the round winner deals, a drawn round keeps the dealer.
    Sakura: with two players the loser deals, otherwise the next seat.
    Hachi-Hachi: the next seat.
    """
    if rules.variant == Variant.SAKURA:
        if num_players == 2 and result.winner is not None:
            return 1 - result.winner
        return (dealer + 1) % num_players
    if rules.variant == Variant.HACHIHACHI:
        return (dealer + 1) % num_players
    if result.winner is None:
        return dealer
    return result.winner


def score_summary(result: RoundResult) -> List[Tuple[int, int, List[str]]]:
    """(seat, score, yaku names) rows for display"""
    return [
        (i, score, [y.name for y in result.yaku[i]])
        for i, score in enumerate(result.scores)
    ]
