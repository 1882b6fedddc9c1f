"""
Tests for round and match settlement
"""

import dataclasses
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from hanafuda.cards import card_by_id
from hanafuda.koikoi import KoikoiState
from hanafuda.rules import (
    KOIKOI_RULES, SAKURA_RULES, SAKURA_VICTORY_RULES, HACHIHACHI_RULES, SHOP_RULES,
)
from hanafuda.scoring import (
    EndReason, RoundContext, RoundResult, settle_round, settle_match, next_dealer,
    teyaku_transfers, hachihachi_field_multiplier, wins_for_margin,
)
from hanafuda.yaku import Yaku, SakuraDetector, HachiHachiDetector


def cards(*ids):
    return [card_by_id(i) for i in ids]


def context(yaku, end_reason=EndReason.EXHAUSTED, stopper=None, called=None,
            improved=None, captured=None, dealer=0, field_multiplier=1, bonus=None):
    n = len(yaku)
    koikoi = KoikoiState(num_players=n)
    if called:
        koikoi.called_count = list(called)
    if improved:
        koikoi.improved_since_call = list(improved)
    return RoundContext(
        captured=captured if captured is not None else [[] for _ in range(n)],
        yaku=yaku,
        koikoi=koikoi,
        dealer=dealer,
        end_reason=end_reason,
        stopper=stopper,
        field_multiplier=field_multiplier,
        bonus=bonus or [],
    )


class TestKoiKoiSettlement:
    """Test winner-take-all Koi-Koi scoring"""

    def test_stop_scores_base(self):
        """The stopper scores their combinations"""
        ctx = context([[Yaku("Three Brights", 6)], []], EndReason.STOP, stopper=0)
        result = settle_round(ctx, KOIKOI_RULES)
        assert result.scores == [6, 0]
        assert result.winner == 0

    def test_seven_plus_doubles(self):
        """Seven or more points are doubled"""
        ctx = context([[Yaku("Four Brights", 10)], []], EndReason.STOP, stopper=0)
        assert settle_round(ctx, KOIKOI_RULES).scores == [20, 0]

    def test_opponent_call_multiplies(self):
        """The stopper is doubled when the opponent called Continue"""
        ctx = context([[Yaku("Five Brights", 15)], []], EndReason.STOP, stopper=0, called=[0, 1])
        result = settle_round(ctx, KOIKOI_RULES)
        assert result.scores == [60, 0]
        assert result.multipliers[0] == 2
        assert result.forfeited == [False, True]

    def test_own_call_does_not_multiply(self):
        """Stopping after one's own Continue is not doubled"""
        ctx = context([[Yaku("Three Brights", 6), Yaku("Animals", 5)], []], EndReason.STOP,
                      stopper=0, called=[1, 0], improved=[True, False])
        result = settle_round(ctx, KOIKOI_RULES)
        assert result.scores == [22, 0]
        assert result.multipliers[0] == 1

    def test_single_holder_at_exhaustion(self):
        """The only eligible holder takes the round"""
        ctx = context([[], [Yaku("Blue Ribbons", 6)]])
        result = settle_round(ctx, KOIKOI_RULES)
        assert result.winner == 1
        assert result.scores == [0, 6]

    def test_several_holders_draw(self):
        """Two eligible holders at exhaustion draw the round"""
        ctx = context([[Yaku("Poetry Ribbons", 6)], [Yaku("Blue Ribbons", 6)]])
        result = settle_round(ctx, KOIKOI_RULES)
        assert result.is_draw
        assert result.scores == [0, 0]

    def test_forfeited_holder_excluded(self):
        """A forfeited player cannot win at exhaustion"""
        ctx = context([[Yaku("Three Brights", 6)], [Yaku("Blue Ribbons", 6)]], called=[1, 0])
        result = settle_round(ctx, KOIKOI_RULES)
        assert result.winner == 1
        assert result.scores == [0, 12]

    def test_nobody_scores(self):
        """No combinations, drawn round"""
        result = settle_round(context([[], []]), KOIKOI_RULES)
        assert result.is_draw

    def test_misdeal(self):
        """A misdeal scores nothing"""
        ctx = context([[Yaku("Three Brights", 6)], []], EndReason.MISDEAL)
        result = settle_round(ctx, KOIKOI_RULES)
        assert result.scores == [0, 0]
        assert result.winner is None


class TestBothPlayersScore:
    """Test both-players-score settlement"""

    def test_stop(self):
        """Both score, only the stopper gets the multiplier"""
        rules = dataclasses.replace(KOIKOI_RULES, both_players_score=True, double_seven_plus=False)
        ctx = context([[Yaku("Three Brights", 6)], [Yaku("Animals", 5)]], EndReason.STOP,
                      stopper=0, called=[0, 1], improved=[False, True])
        result = settle_round(ctx, rules)
        assert result.scores == [12, 5]
        assert result.winner == 0

    def test_bonus_counts_toward_winner(self):
        """Shop bonus is added before the winner is picked"""
        ctx = context([[Yaku("Animals", 5)], [Yaku("Blue Ribbons", 6)]], bonus=[3, 0])
        result = settle_round(ctx, SHOP_RULES)
        assert result.scores == [8, 6]
        assert result.winner == 0


class TestSakuraSettlement:
    """Test card points minus penalties"""

    def test_penalties(self):
        """Each combination costs every other player the penalty"""
        captured = [cards(1, 9, 29), cards(2, 3)]
        detector = SakuraDetector(SAKURA_RULES)
        ctx = context([detector.detect(c) for c in captured], captured=captured)
        result = settle_round(ctx, SAKURA_RULES)
        assert result.base_scores == [60, 10]
        assert result.scores == [60, -40]
        assert result.winner == 0

    def test_dealer_wins_ties(self):
        """Equal scores go to the dealer"""
        captured = [cards(1), cards(9)]
        ctx = context([[], []], captured=captured, dealer=1)
        assert settle_round(ctx, SAKURA_RULES).winner == 1

    def test_victory_margin(self):
        """A large margin earns two wins"""
        captured = [cards(1, 9, 29), cards(2, 3)]
        detector = SakuraDetector(SAKURA_VICTORY_RULES)
        ctx = context([detector.detect(c) for c in captured], captured=captured)
        result = settle_round(ctx, SAKURA_VICTORY_RULES)
        assert result.wins_awarded == [2, 0]

    def test_wins_for_margin(self):
        """Tiers pick the largest satisfied margin"""
        assert wins_for_margin(49, SAKURA_VICTORY_RULES) == 1
        assert wins_for_margin(50, SAKURA_VICTORY_RULES) == 2
        assert wins_for_margin(150, SAKURA_VICTORY_RULES) == 2


class TestHachiHachiSettlement:
    """Test par-88 settlement"""

    def test_exhaustion_is_zero_sum(self):
        """All 48 cards captured: par differences and dekiyaku cancel"""
        captured = [cards(*range(1, 17)), cards(*range(17, 33)), cards(*range(33, 49))]
        detector = HachiHachiDetector(HACHIHACHI_RULES)
        ctx = context([detector.detect(c) for c in captured], captured=captured,
                      field_multiplier=2)
        result = settle_round(ctx, HACHIHACHI_RULES)
        assert result.base_scores == [88, 83, 93]
        assert result.scores == [28, -24, -4]
        assert sum(result.scores) == 0
        assert result.winner == 0

    def test_shoubu_pays_stopper_only(self):
        """On Shoubu only the stopper's dekiyaku are paid"""
        ctx = context([[Yaku("Blue Ribbons", 7)], [Yaku("Poetry Ribbons", 7)], []],
                      EndReason.STOP, stopper=0)
        result = settle_round(ctx, HACHIHACHI_RULES)
        assert result.scores == [14, -7, -7]

    def test_teyaku_transfers(self):
        """Each holder collects from every other player"""
        assert teyaku_transfers([[Yaku("Triplet", 7)], [], []], 2) == [28, -14, -14]
        assert sum(teyaku_transfers([[Yaku("A", 2)], [Yaku("B", 4)], []], 1)) == 0

    def test_field_multiplier(self):
        """Field months set the round multiplier"""
        assert hachihachi_field_multiplier(cards(7, 20)) == 1
        assert hachihachi_field_multiplier(cards(7, 31)) == 2
        assert hachihachi_field_multiplier(cards(3, 46)) == 4


class TestMatch:
    """Test match totals and dealer rotation"""

    def test_totals_and_winner(self):
        """Highest total wins, teyaku included"""
        rounds = [
            RoundResult(scores=[6, 0], wins_awarded=[0, 0]),
            RoundResult(scores=[0, 4], wins_awarded=[0, 0], teyaku_scores=[-2, 4]),
        ]
        match = settle_match(rounds, 2, KOIKOI_RULES)
        assert match.totals == [4, 8]
        assert match.winner == 1

    def test_tie(self):
        """Equal totals give no winner"""
        rounds = [RoundResult(scores=[6, 6], wins_awarded=[0, 0])]
        assert settle_match(rounds, 2, KOIKOI_RULES).is_tie

    def test_win_counting(self):
        """Win-counting variants rank by wins"""
        rounds = [
            RoundResult(scores=[200, -40], wins_awarded=[1, 0]),
            RoundResult(scores=[-10, 20], wins_awarded=[0, 2]),
        ]
        match = settle_match(rounds, 2, SAKURA_VICTORY_RULES)
        assert match.round_wins == [1, 2]
        assert match.winner == 1

    def test_next_dealer(self):
        """Winner deals in Koi-Koi, loser in two-player Sakura, next seat in Hachi-Hachi"""
        won = RoundResult(winner=1)
        drawn = RoundResult(winner=None)
        assert next_dealer(won, 0, 2, KOIKOI_RULES) == 1
        assert next_dealer(drawn, 0, 2, KOIKOI_RULES) == 0
        assert next_dealer(won, 0, 2, SAKURA_RULES) == 0
        assert next_dealer(won, 2, 3, HACHIHACHI_RULES) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
