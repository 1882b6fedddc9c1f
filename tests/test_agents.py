"""
Tests for the heuristic and random agents
"""

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from hanafuda.game import HanafudaGame, ActionType
from hanafuda.koikoi import KoikoiChoice
from agents.heuristic_agent import HeuristicAgent, PROFILES
from agents.random_agent import RandomAgent


class FixedRng:
    """Deterministic stand-in for a numpy generator"""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value

    def integers(self, high):
        return 0


def layout(**kwargs):
    game = HanafudaGame(seed=11)
    game.start_round_with(**kwargs)
    return game


class TestDifficultyProfiles:
    """Test Continue probabilities"""

    @pytest.mark.parametrize("score,expected", [(12, 0.1), (8, 0.25), (5, 0.5), (2, 0.8)])
    def test_normal_table(self, score, expected):
        """Normal tier brackets"""
        assert PROFILES["normal"].continue_probability(score, 20) == pytest.approx(expected)

    def test_easy_always_likely(self):
        """Easy continues eight times in ten"""
        assert PROFILES["easy"].continue_probability(15, 3) == pytest.approx(0.8)

    def test_hard_never_stops_behind(self):
        """Stopping would leave hard behind on match score"""
        assert PROFILES["hard"].continue_probability(6, 20, own_total=0, best_opponent_total=20) == 1.0

    def test_hard_takes_comfortable_lead(self):
        """A margin of five with four points is taken"""
        assert PROFILES["hard"].continue_probability(5, 20, own_total=10) == pytest.approx(0.15)

    def test_hard_late_deck(self):
        """Late in the round hard is more cautious"""
        p = PROFILES["hard"].continue_probability(8, 5, own_total=0, best_opponent_total=5)
        assert p == pytest.approx(0.25 * 0.375)

    def test_unknown_difficulty(self):
        """Unknown tiers are rejected"""
        with pytest.raises(ValueError):
            HeuristicAgent("impossible")


class TestHeuristicAgent:
    """Test card and decision choices"""

    def test_prefers_valuable_capture(self):
        """Normal tier takes the higher card value"""
        game = layout(hands=[[38, 30], [46, 48]], field_cards=[39, 31], captured=[[22, 34], []])
        agent = HeuristicAgent("normal", rng=FixedRng(0.99))
        action = agent.get_action(game, 0, game.get_valid_actions(0))
        assert action.card.id == 30

    def test_hard_completes_combination(self):
        """Hard tier completes Blue Ribbons over a richer capture"""
        game = layout(hands=[[38, 30], [46, 48]], field_cards=[39, 31], captured=[[22, 34], []])
        agent = HeuristicAgent("hard", rng=FixedRng(0.99))
        action = agent.get_action(game, 0, game.get_valid_actions(0))
        assert action.card.id == 38

    def test_hard_blocks_opponent(self):
        """Hard tier takes the card the opponent needs"""
        game = layout(hands=[[40, 30], [46, 48]], field_cards=[38, 29], captured=[[], [22, 34]])
        normal = HeuristicAgent("normal", rng=FixedRng(0.99))
        hard = HeuristicAgent("hard", rng=FixedRng(0.99))
        valid = game.get_valid_actions(0)
        assert normal.get_action(game, 0, valid).card.id == 30
        assert hard.get_action(game, 0, valid).card.id == 40

    def test_decision(self):
        """The decision follows the random draw against the table"""
        game = layout(hands=[[29, 14], [38, 46]], field_cards=[31, 39, 7, 11],
                      captured=[[1, 9], [22, 34]], deck_top=[47])
        game.play_hand_card(0, 29)
        valid = game.get_valid_actions(0)
        assert valid[0].action_type == ActionType.KOIKOI_DECISION
        stop = HeuristicAgent("normal", rng=FixedRng(0.99)).get_action(game, 0, valid)
        go = HeuristicAgent("normal", rng=FixedRng(0.0)).get_action(game, 0, valid)
        assert stop.choice == KoikoiChoice.STOP
        assert go.choice == KoikoiChoice.CONTINUE

    def test_field_target(self):
        """With two targets the more valuable one is taken"""
        game = layout(hands=[[3, 13], [46, 48]], field_cards=[1, 4, 17])
        game.play_hand_card(0, 3)
        valid = game.get_valid_actions(0)
        action = HeuristicAgent("normal", rng=FixedRng(0.99)).get_action(game, 0, valid)
        assert action.card.id == 1

    def test_no_valid_actions(self):
        """An empty action list is a caller error"""
        game = layout(hands=[[13], [46]], field_cards=[3, 7])
        with pytest.raises(ValueError):
            HeuristicAgent("easy", seed=0).get_action(game, 1, [])


class TestRandomAgent:
    """Test the random baseline"""

    def test_picks_valid_action(self):
        """Chosen action is one of the valid ones"""
        game = layout(hands=[[13, 1, 5], [46]], field_cards=[3, 7])
        valid = game.get_valid_actions(0)
        assert RandomAgent(seed=0).get_action(game, 0, valid) in valid

    def test_reproducible(self):
        """Same seed, same choices"""
        game = layout(hands=[[13, 1, 5, 9, 21], [46]], field_cards=[3, 7])
        valid = game.get_valid_actions(0)
        a = [RandomAgent(seed=4).get_action(game, 0, valid).card.id for _ in range(5)]
        b = [RandomAgent(seed=4).get_action(game, 0, valid).card.id for _ in range(5)]
        assert a == b


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
