"""
Tests for the Hanafuda Game Engine
"""

import dataclasses
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from hanafuda.cards import card_by_id
from hanafuda.errors import ConfigurationError, IllegalTarget, InvalidAction, InvariantViolation
from hanafuda.events import EventType
from hanafuda.game import HanafudaGame, Phase, Action, ActionType
from hanafuda.koikoi import KoikoiChoice
from hanafuda.rules import (
    KOIKOI_RULES, SAKURA_RULES, HACHIHACHI_RULES, SHOP_RULES, MultiplierMode,
)
from hanafuda.scoring import EndReason
from agents.random_agent import RandomAgent


def ids(cards):
    return sorted(c.id for c in cards)


def event_types(events):
    return [e.event_type for e in events]


def layout(rules=KOIKOI_RULES, seed=7, **kwargs):
    game = HanafudaGame(rules=rules, seed=seed)
    game.start_round_with(**kwargs)
    game.check_invariants()
    return game


def play_out(game, seed=0):
    """Finish the match with random agents"""
    agents = [RandomAgent(seed=seed + i) for i in range(game.num_players)]
    while not game.is_match_over:
        if game.phase == Phase.ROUND_ENDING:
            game.next_round()
            continue
        seat = game.acting_player()
        assert game.step(agents[seat].get_action(game, seat, game.get_valid_actions(seat))).accepted


def steps(game, *calls):
    """Run (method name, args...) calls, asserting each is accepted"""
    for name, *args in calls:
        result = getattr(game, name)(*args)
        assert result.accepted, f"{name}{tuple(args)} rejected: {result.error}"
        game.check_invariants()
    return result


class TestGameSetup:
    """Test game creation and dealing"""

    def test_game_creation(self):
        """A new game waits for the first deal"""
        game = HanafudaGame(seed=42)
        assert game.phase == Phase.NOT_STARTED
        assert game.num_players == 2

    def test_start_match(self):
        """Deal sizes and card conservation"""
        game = HanafudaGame(seed=42)
        game.start_match()
        game.check_invariants()
        assert game.round_number == 1
        if game.phase == Phase.SELECT_HAND:
            assert [len(p.hand) for p in game.players] == [8, 8]
            assert len(game.field) == 8
            assert game.deck.remaining == 24

    def test_same_seed_same_deal(self):
        """Deals are reproducible"""
        a = HanafudaGame(seed=3)
        b = HanafudaGame(seed=3)
        a.start_match()
        b.start_match()
        assert ids(a.players[0].hand) == ids(b.players[0].hand)
        assert ids(a.field) == ids(b.field)

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_restart_replays_first_deal(self, seed):
        """A second match on the same game deals like a fresh game"""
        game = HanafudaGame(seed=seed)
        game.start_match()
        play_out(game, seed)
        game.start_match()
        fresh = HanafudaGame(seed=seed)
        fresh.start_match()
        assert game.dealer == fresh.dealer == 0
        assert game.get_state().hands == fresh.get_state().hands
        assert game.get_state().field == fresh.get_state().field

    def test_dealer_override_is_per_match(self):
        """start_match(dealer=...) does not change later matches"""
        game = HanafudaGame(seed=5)
        game.start_match(dealer=1)
        assert game.dealer == 1
        moved = HanafudaGame(seed=5, dealer=1)
        moved.start_match()
        assert game.get_state().hands == moved.get_state().hands

        game.start_match()
        fresh = HanafudaGame(seed=5)
        fresh.start_match()
        assert game.dealer == 0
        assert game.get_state().hands == fresh.get_state().hands

    def test_difficulty_labels(self):
        """Bot seats carry the difficulty, human seats do not"""
        game = HanafudaGame(seed=1, human_players=(0,), ai_difficulty="hard")
        assert game.players[0].difficulty is None
        assert game.players[1].difficulty == "hard"
        assert "Human" in str(game.players[0])
        assert "AI(hard)" in str(game.players[1])

    def test_step_before_start(self):
        """Stepping before the deal is a programming error"""
        game = HanafudaGame(seed=1)
        with pytest.raises(RuntimeError):
            game.step(Action(ActionType.DRAW, 0))

    def test_invalid_rules(self):
        """Rules are validated at construction"""
        with pytest.raises(ConfigurationError):
            HanafudaGame(rules=dataclasses.replace(KOIKOI_RULES, player_count=5))

    def test_layout_rejects_duplicates(self):
        """A card cannot be placed twice"""
        game = HanafudaGame(seed=1)
        with pytest.raises(ValueError):
            game.start_round_with(hands=[[1], [1]], field_cards=[])
        with pytest.raises(ValueError):
            game.start_round_with(hands=[[1]], field_cards=[])

    def test_deck_top_order(self):
        """deck_top lists the next draws in order"""
        game = layout(hands=[[13], [46]], field_cards=[3, 7], deck_top=[11, 19])
        assert game.deck.peek().id == 11
        assert game.deck.remaining == 44


class TestTurnFlow:
    """Test plays, selections and draws"""

    def test_play_without_match(self):
        """Unmatched card joins the field, then the draw"""
        game = layout(hands=[[13, 1], [46, 48]], field_cards=[3, 7], deck_top=[11])
        result = steps(game, ("play_hand_card", 0, 13))
        assert event_types(result.events) == [EventType.CARD_TO_FIELD, EventType.PHASE_CHANGED]
        assert game.phase == Phase.DRAWING
        assert 13 in ids(game.field)
        assert game.players[0].captured == []

    def test_single_match_captures(self):
        """One match is captured without a selection"""
        game = layout(hands=[[1, 13], [46, 48]], field_cards=[3, 7], deck_top=[11])
        steps(game, ("play_hand_card", 0, 1))
        assert ids(game.players[0].captured) == [1, 3]
        assert ids(game.field) == [7]
        assert game.phase == Phase.DRAWING

    def test_choice_selection(self):
        """Two matches wait for a target; illegal targets are rejected"""
        game = layout(hands=[[1, 13], [45, 46]], field_cards=[3, 4, 17, 22], deck_top=[30])
        result = steps(game, ("play_hand_card", 0, 1))
        assert game.phase == Phase.SELECT_FIELD
        assert event_types(result.events) == [EventType.SELECTION_REQUIRED]
        assert 1 in ids(game.players[0].hand)
        assert ids(a.card for a in game.get_valid_actions(0)) == [3, 4]

        rejected = game.select_field_target(0, 17)
        assert not rejected.accepted
        assert isinstance(rejected.error, IllegalTarget)
        assert game.phase == Phase.SELECT_FIELD

        steps(game, ("select_field_target", 0, 3))
        assert ids(game.players[0].captured) == [1, 3]
        assert ids(game.field) == [4, 17, 22]
        assert game.phase == Phase.DRAWING

        steps(game, ("draw_card", 0))
        assert game.phase == Phase.SHOW_DRAWN
        assert game.drawn_card.id == 30
        steps(game, ("reveal_drawn_card", 0))
        assert 30 in ids(game.field)
        assert game.phase == Phase.SELECT_HAND
        assert game.current_player == 1

    def test_confirm_single_match(self):
        """With confirmation a single match also waits for a target"""
        rules = dataclasses.replace(KOIKOI_RULES, confirm_single_match=True)
        game = layout(rules, hands=[[1], [46]], field_cards=[3, 17])
        steps(game, ("play_hand_card", 0, 1))
        assert game.phase == Phase.SELECT_FIELD
        assert ids(game.pending.targets) == [3]

    def test_four_of_a_kind(self):
        """Three field matches are all captured at once"""
        game = layout(hands=[[1, 13], [46, 48]], field_cards=[2, 3, 4, 17], deck_top=[11])
        steps(game, ("play_hand_card", 0, 1))
        assert ids(game.players[0].captured) == [1, 2, 3, 4]
        assert ids(game.field) == [17]
        assert game.phase == Phase.DRAWING

    def test_drawn_card_choice(self):
        """A drawn card with two matches waits in SELECT_DRAWN_MATCH"""
        game = layout(hands=[[13, 46], [47, 48]], field_cards=[3, 4, 17], deck_top=[1])
        steps(game, ("play_hand_card", 0, 13), ("draw_card", 0), ("reveal_drawn_card", 0))
        assert game.phase == Phase.SELECT_DRAWN_MATCH
        steps(game, ("select_field_target", 0, 4))
        assert ids(game.players[0].captured) == [1, 4]
        assert game.drawn_card is None
        assert game.current_player == 1

    def test_play_out_deck_draw_only_turns(self):
        """With play_out_deck an empty hand still takes draw-only turns"""
        rules = dataclasses.replace(KOIKOI_RULES, play_out_deck=True)
        game = layout(rules, hands=[[13], []], field_cards=[3, 7], deck_top=[11, 19])
        steps(game, ("play_hand_card", 0, 13), ("draw_card", 0), ("reveal_drawn_card", 0))
        assert game.phase == Phase.DRAWING
        assert game.acting_player() == 1
        assert [a.action_type for a in game.get_valid_actions(1)] == [ActionType.DRAW]

        steps(game, ("draw_card", 1), ("reveal_drawn_card", 1))
        assert game.phase == Phase.DRAWING
        assert game.acting_player() == 0
        assert game.deck.remaining == 43

    def test_wrong_player(self):
        """Out-of-turn actions are rejected with state unchanged"""
        game = layout(hands=[[13], [46]], field_cards=[3, 7])
        before = game.get_state()
        result = game.play_hand_card(1, 46)
        assert not result.accepted
        assert isinstance(result.error, InvalidAction)
        assert game.get_state() == before

    def test_card_not_in_hand(self):
        """Playing a card you do not hold is rejected"""
        game = layout(hands=[[13], [46]], field_cards=[3, 7])
        assert not game.play_hand_card(0, 46).accepted
        assert not game.play_hand_card(0, 99).accepted

    def test_wrong_phase(self):
        """Drawing before playing is rejected"""
        game = layout(hands=[[13], [46]], field_cards=[3, 7])
        assert not game.draw_card(0).accepted
        assert not game.reveal_drawn_card(0).accepted


class TestKoikoiDecisions:
    """Test decision suspension, multiplier and forfeiture"""

    def setup_method(self):
        # P0 completes Three Brights with the moon, P1 completes Blue Ribbons
        self.game = layout(
            hands=[[29, 14], [38, 46]],
            field_cards=[31, 39, 7, 11],
            captured=[[1, 9], [22, 34]],
            deck_top=[47],
        )

    def test_decision_requested(self):
        """A new combination suspends the round"""
        result = steps(self.game, ("play_hand_card", 0, 29))
        assert result.decision_requested
        assert self.game.phase == Phase.AWAITING_KOIKOI_DECISION
        assert self.game.acting_player() == 0
        assert [y.name for y in self.game.players[0].active_yaku] == ["Three Brights"]
        assert self.game.koikoi.score_at_last_decision[0] == 6
        assert {a.choice for a in self.game.get_valid_actions(0)} == {KoikoiChoice.STOP, KoikoiChoice.CONTINUE}
        assert self.game.get_valid_actions(1) == []

    def test_everything_else_blocked(self):
        """While waiting, only the decision is accepted"""
        steps(self.game, ("play_hand_card", 0, 29))
        before = self.game.get_state()
        assert not self.game.draw_card(0).accepted
        assert not self.game.play_hand_card(1, 38).accepted
        assert not self.game._set_phase(Phase.DRAWING)
        wrong = self.game.resolve_koikoi_decision(1, KoikoiChoice.STOP)
        assert isinstance(wrong.error, IllegalTarget)
        assert self.game.get_state() == before

    def test_decision_without_pending(self):
        """A decision with nothing pending is rejected"""
        result = self.game.resolve_koikoi_decision(0, KoikoiChoice.STOP)
        assert not result.accepted

    def test_stop(self):
        """Stop settles the round for the stopper"""
        steps(self.game, ("play_hand_card", 0, 29))
        result = steps(self.game, ("resolve_koikoi_decision", 0, KoikoiChoice.STOP))
        assert result.round_over
        assert result.result.end_reason == EndReason.STOP
        assert result.result.winner == 0
        assert self.game.scores == [6, 0]
        assert self.game.phase == Phase.ROUND_ENDING
        assert not self.game.play_hand_card(1, 38).accepted

    def test_continue_then_opponent_stops(self):
        """The opponent's Continue doubles the stopper's score"""
        steps(
            self.game,
            ("play_hand_card", 0, 29),
            ("resolve_koikoi_decision", 0, KoikoiChoice.CONTINUE),
        )
        assert self.game.phase == Phase.DRAWING
        assert self.game.koikoi.called_count == [1, 0]

        steps(self.game, ("draw_card", 0), ("reveal_drawn_card", 0))
        assert self.game.current_player == 1
        result = steps(self.game, ("play_hand_card", 1, 38))
        assert result.decision_requested
        result = steps(self.game, ("resolve_koikoi_decision", 1, KoikoiChoice.STOP))

        round_result = result.result
        assert round_result.winner == 1
        assert round_result.multipliers[1] == 2
        assert round_result.scores == [0, 12]
        assert round_result.forfeited == [True, False]

    def test_copy_is_independent(self):
        """Resolving on a copy leaves the original suspended"""
        steps(self.game, ("play_hand_card", 0, 29))
        clone = self.game.copy()
        steps(clone, ("resolve_koikoi_decision", 0, KoikoiChoice.STOP))
        assert clone.phase == Phase.ROUND_ENDING
        assert self.game.phase == Phase.AWAITING_KOIKOI_DECISION
        assert self.game.scores == [0, 0]

    def test_auto_stop_without_decisions(self):
        """With decisions disabled the first combination ends the round"""
        rules = dataclasses.replace(KOIKOI_RULES, koikoi_enabled=False,
                                    multiplier_mode=MultiplierMode.NONE)
        game = layout(rules, hands=[[29, 13], [46, 48]], field_cards=[31, 3],
                      captured=[[1, 9], []])
        result = steps(game, ("play_hand_card", 0, 29))
        assert result.result.end_reason == EndReason.AUTO_STOP
        assert game.scores == [6, 0]


class TestExhaustion:
    """Test rounds that run out of cards"""

    def test_single_holder_wins(self):
        """The only player holding a combination takes the round"""
        game = layout(hands=[[13], [46]], field_cards=[3, 7],
                      captured=[[], [22, 34, 38]], deck_top=[11, 19])
        steps(game, ("play_hand_card", 0, 13), ("draw_card", 0), ("reveal_drawn_card", 0),
              ("play_hand_card", 1, 46), ("draw_card", 1))
        result = steps(game, ("reveal_drawn_card", 1))
        assert result.result.end_reason == EndReason.EXHAUSTED
        assert result.result.winner == 1
        assert game.scores == [0, 6]

    def test_both_holders_draw(self):
        """Two holders under winner-take-all: no winner, dealer keeps the deal"""
        game = layout(hands=[[13], [46]], field_cards=[3, 7],
                      captured=[[2, 6, 10], [22, 34, 38]], deck_top=[11, 19])
        result = steps(game, ("play_hand_card", 0, 13), ("draw_card", 0), ("reveal_drawn_card", 0),
                       ("play_hand_card", 1, 46), ("draw_card", 1), ("reveal_drawn_card", 1))
        assert result.result.is_draw
        assert game.scores == [0, 0]
        game.next_round()
        assert game.dealer == 0
        assert game.round_number == 2

    def test_final_action_gets_no_decision(self):
        """A combination formed on the last card is scored without a decision"""
        game = layout(hands=[[13], [46]], field_cards=[39, 3],
                      captured=[[], [22, 34]], deck_top=[11, 38])
        steps(game, ("play_hand_card", 0, 13), ("draw_card", 0), ("reveal_drawn_card", 0),
              ("play_hand_card", 1, 46), ("draw_card", 1))
        result = steps(game, ("reveal_drawn_card", 1))
        assert not result.decision_requested
        assert result.result.winner == 1
        assert game.scores == [0, 6]

    def test_forfeit_after_continue(self):
        """Calling Continue without improving forfeits the round score"""
        game = layout(hands=[[29, 13], [46, 48]], field_cards=[31, 3, 7, 11],
                      captured=[[1, 9], [22, 34, 38]], deck_top=[19, 20, 35, 24])
        steps(
            game,
            ("play_hand_card", 0, 29),
            ("resolve_koikoi_decision", 0, KoikoiChoice.CONTINUE),
            ("draw_card", 0), ("reveal_drawn_card", 0),
            ("play_hand_card", 1, 46), ("draw_card", 1), ("reveal_drawn_card", 1),
            ("play_hand_card", 0, 13), ("draw_card", 0), ("reveal_drawn_card", 0),
            ("play_hand_card", 1, 48), ("draw_card", 1),
        )
        result = steps(game, ("reveal_drawn_card", 1))
        assert result.result.forfeited[0]
        assert result.result.winner == 1
        assert game.scores == [0, 12]


class TestDealRules:
    """Test field fours, Gaji and teyaku"""

    def test_misdeal(self):
        """Four of a month on the field voids the round"""
        game = layout(hands=[[13], [46]], field_cards=[1, 2, 3, 4, 5])
        assert game.phase == Phase.ROUND_ENDING
        assert game.last_result.end_reason == EndReason.MISDEAL
        assert game.scores == [0, 0]
        game.next_round()
        assert game.dealer == 0
        assert game.round_number == 2

    def test_hiki(self):
        """Sakura: the dealer takes a dealt field four"""
        game = layout(SAKURA_RULES, hands=[[13], [46]], field_cards=[1, 2, 3, 4, 5])
        assert ids(game.players[0].captured) == [1, 2, 3, 4]
        assert ids(game.field) == [5]
        assert EventType.HIKI in event_types(game.events.history)
        assert game.phase == Phase.SELECT_HAND

    def test_gaji_wild(self):
        """The lightning may capture any legal field card"""
        game = layout(SAKURA_RULES, hands=[[44, 13], [46, 48]], field_cards=[5, 14])
        steps(game, ("play_hand_card", 0, 44))
        assert game.phase == Phase.SELECT_FIELD
        assert ids(a.card for a in game.get_valid_actions(0)) == [5, 14]
        steps(game, ("select_field_target", 0, 14))
        assert ids(game.players[0].captured) == [14, 44]
        assert game.gaji_pairs == {0: 4}

    def test_gaji_sweeps_paired_month(self):
        """At round end the Gaji owner takes what is left of the paired month"""
        rules = dataclasses.replace(SAKURA_RULES, play_out_deck=False)
        game = layout(rules, hands=[[44], [46]], field_cards=[14, 15], deck_top=[19, 23])
        steps(game, ("play_hand_card", 0, 44), ("select_field_target", 0, 14),
              ("draw_card", 0), ("reveal_drawn_card", 0))
        assert ids(game.field) == [15, 19]
        result = steps(game, ("play_hand_card", 1, 46), ("draw_card", 1), ("reveal_drawn_card", 1))
        assert result.result.end_reason == EndReason.EXHAUSTED
        assert ids(game.players[0].captured) == [14, 15, 44]
        assert game.find_zone(15) == "captured[0]"
        assert ids(game.field) == [19, 23, 46]

    def test_chitsiobiki_trade(self):
        """The lowest card of a dealt triplet goes back for the top deck card"""
        rules = dataclasses.replace(SAKURA_RULES, chitsiobiki=True)
        game = layout(rules, hands=[[1, 2, 3, 13, 17], [21, 46]], field_cards=[25, 30], deck_top=[48])
        remaining = game.deck.remaining
        game._apply_chitsiobiki()
        game.check_invariants()
        assert ids(game.players[0].hand) == [1, 2, 13, 17, 48]
        assert game.find_zone(3) == "deck"
        assert game.deck.remaining == remaining
        assert ids(game.players[1].hand) == [21, 46]

    def test_chitsiobiki_single_pass(self):
        """A triplet completed by the traded-in card is kept"""
        rules = dataclasses.replace(SAKURA_RULES, chitsiobiki=True)
        game = layout(rules, hands=[[1, 2, 3, 5, 6, 13], [21, 46]], field_cards=[25, 30], deck_top=[7])
        game._apply_chitsiobiki()
        game.check_invariants()
        assert ids(game.players[0].hand) == [1, 2, 5, 6, 7, 13]
        assert game.find_zone(3) == "deck"

    def test_teyaku_paid_at_start(self):
        """Hachi-Hachi hand combinations are paid when the round opens"""
        hands = [[13, 15, 16, 17, 19, 21, 23], [1, 5, 9, 25, 29, 33, 37], [2, 6, 10, 26, 30, 34, 45]]
        game = layout(HACHIHACHI_RULES, hands=hands, field_cards=[7, 8, 20, 24, 27, 28])
        assert game.field_multiplier == 1
        assert game.teyaku_scores == [14, -7, -7]
        assert game.scores == [14, -7, -7]
        assert EventType.TEYAKU_PAID in event_types(game.events.history)

    def test_teyaku_field_multiplier(self):
        """An August card on the field doubles teyaku"""
        hands = [[13, 15, 16, 17, 19, 21, 23], [1, 5, 9, 25, 29, 33, 37], [2, 6, 10, 26, 30, 34, 45]]
        game = layout(HACHIHACHI_RULES, hands=hands, field_cards=[7, 8, 20, 24, 27, 31])
        assert game.field_multiplier == 2
        assert game.teyaku_scores == [28, -14, -14]


class TestShopGame:
    """Test Shop mode setup and bonus"""

    def test_shop_cards_in_hand(self):
        """Chosen cards start in player 0's hand"""
        game = HanafudaGame(rules=SHOP_RULES, seed=5, shop_cards=[1, 9, 29])
        game.start_match()
        game.check_invariants()
        assert {1, 9, 29} <= set(ids(game.players[0].hand))
        assert len(game.players[0].hand) == 8

    def test_shop_configuration(self):
        """Shop options are checked up front"""
        with pytest.raises(ConfigurationError):
            HanafudaGame(rules=SHOP_RULES, shop_cards=[1, 2, 3, 4, 5])
        with pytest.raises(ConfigurationError):
            HanafudaGame(rules=SHOP_RULES, shop_cards=[1, 1])
        with pytest.raises(ConfigurationError):
            HanafudaGame(rules=SHOP_RULES, shop_bonus="nope")
        with pytest.raises(ConfigurationError):
            HanafudaGame(rules=KOIKOI_RULES, shop_cards=[1])

    def test_bonus_awarded_once(self):
        """The bonus is paid at the first handoff where it holds"""
        game = HanafudaGame(rules=SHOP_RULES, seed=5, shop_bonus="medium_two_brights")
        game.start_round_with(hands=[[9, 13], [46, 48]], field_cards=[11, 3],
                              captured=[[1], []], deck_top=[19, 20, 23, 24])
        result = steps(game, ("play_hand_card", 0, 9), ("draw_card", 0), ("reveal_drawn_card", 0))
        assert EventType.BONUS_AWARDED in event_types(result.events)
        assert game.bonus_points == [6, 0]

        result = steps(
            game,
            ("play_hand_card", 1, 46), ("draw_card", 1), ("reveal_drawn_card", 1),
            ("play_hand_card", 0, 13), ("draw_card", 0), ("reveal_drawn_card", 0),
            ("play_hand_card", 1, 48), ("draw_card", 1), ("reveal_drawn_card", 1),
        )
        assert event_types(game.events.history).count(EventType.BONUS_AWARDED) == 1
        assert result.result.scores == [6, 0]
        assert game.is_match_over
        assert game.match_result.winner == 0


class TestQueries:
    """Test snapshots, observations and invariants"""

    def test_state_is_frozen(self):
        """Snapshots cannot be modified"""
        game = layout(hands=[[13], [46]], field_cards=[3, 7])
        state = game.get_state()
        with pytest.raises(dataclasses.FrozenInstanceError):
            state.phase = Phase.DRAWING

    def test_observation(self):
        """Masks match the zones"""
        game = layout(hands=[[13, 1], [46]], field_cards=[3, 7])
        obs = game.get_observation(0)
        assert obs["hand"].sum() == 2
        assert obs["field"][2] == 1 and obs["field"][6] == 1
        assert obs["deck_remaining"] == game.deck.remaining
        assert len(obs["valid_actions"]) == 2

    def test_find_zone(self):
        """Every card has exactly one zone"""
        game = layout(hands=[[13], [46]], field_cards=[3, 7], captured=[[1], []])
        assert game.find_zone(13) == "hand[0]"
        assert game.find_zone(3) == "field"
        assert game.find_zone(1) == "captured[0]"

    def test_invariant_violation(self):
        """Duplicated cards are detected"""
        game = layout(hands=[[13], [46]], field_cards=[3, 7])
        game.field.append(card_by_id(13))
        with pytest.raises(InvariantViolation):
            game.check_invariants()

    def test_listener_receives_events(self):
        """Subscribed listeners see every event in order"""
        game = layout(hands=[[13], [46]], field_cards=[3, 7], deck_top=[11, 19])
        seen = []
        game.subscribe(seen.append)
        steps(game, ("play_hand_card", 0, 13), ("draw_card", 0), ("reveal_drawn_card", 0))
        assert event_types(seen) == [
            EventType.CARD_TO_FIELD, EventType.PHASE_CHANGED,
            EventType.CARD_DRAWN, EventType.CARD_TO_FIELD, EventType.TURN_CHANGED,
        ]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
