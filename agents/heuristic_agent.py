"""
Heuristic Agent for Hanafuda

A rule-based opponent with three difficulty tiers. Each tier is a
DifficultyProfile: a score bracket -> Continue probability table,
weights for completing our own combinations and blocking the strongest
opponent's, and a random-play rate.

Play is best-effort, not optimal: a candidate capture is judged by its
card values plus one speculative detector call per player, no search.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import logging

import numpy as np

from hanafuda.cards import Card, KOIKOI_VALUES, card_points
from hanafuda.game import HanafudaGame, Action, ActionType
from hanafuda.koikoi import KoikoiChoice
from hanafuda.matching import find_matches
from hanafuda.yaku import yaku_progress

logger = logging.getLogger(__name__)

# One combination point is worth this much card value when ranking captures
YAKU_POINT_VALUE = 5.0


@dataclass(frozen=True)
class DifficultyProfile:
    """
    Policy data for one difficulty tier.

    Attributes:
        name: Tier name
        random_play_rate: Chance to play a random card or target
        continue_table: (min_score, probability) brackets, checked highest first
        completion_weight: Weight of our own combination gain
        block_weight: Weight of the combination gain denied to the strongest opponent
        never_stop_behind: Always continue when stopping leaves us behind on match score
        lead_margin: Match lead at which a comfortable win is taken
        lead_probability: Continue probability with a comfortable lead
        late_deck: Deck size below which late_deck_factor applies
        late_deck_factor: Scale on the Continue probability late in the round
    """
    name: str
    random_play_rate: float
    continue_table: Tuple[Tuple[int, float], ...]
    completion_weight: float = 0.0
    block_weight: float = 0.0
    never_stop_behind: bool = False
    lead_margin: Optional[int] = None
    lead_probability: float = 0.15
    late_deck: int = 0
    late_deck_factor: float = 1.0

    def continue_probability(self, score: int, deck_remaining: int,
                             own_total: int = 0, best_opponent_total: int = 0) -> float:
        """Probability of calling Continue with `score` round points"""
        projected = own_total + score
        if self.never_stop_behind and projected <= best_opponent_total:
            return 1.0
        margin = projected - best_opponent_total
        if self.lead_margin is not None and margin >= self.lead_margin and score >= 4:
            return self.lead_probability

        probability = 0.0
        for min_score, p in sorted(self.continue_table, reverse=True):
            if score >= min_score:
                probability = p
                break
        if deck_remaining < self.late_deck:
            probability *= self.late_deck_factor
        return probability


EASY = DifficultyProfile(
    name="easy",
    random_play_rate=0.7,
    continue_table=((0, 0.8),),
)

NORMAL = DifficultyProfile(
    name="normal",
    random_play_rate=0.1,
    continue_table=((10, 0.1), (7, 0.25), (4, 0.5), (0, 0.8)),
)

HARD = DifficultyProfile(
    name="hard",
    random_play_rate=0.0,
    continue_table=((10, 0.1), (7, 0.25), (4, 0.4), (0, 0.8)),
    completion_weight=1.0,
    block_weight=1.5,
    never_stop_behind=True,
    lead_margin=5,
    late_deck=10,
    late_deck_factor=0.375,
)

PROFILES: Dict[str, DifficultyProfile] = {p.name: p for p in (EASY, NORMAL, HARD)}


class HeuristicAgent:
    """
    Difficulty-tiered Hanafuda opponent.

    Works on the engine's action list, so one agent serves every rule set;
    card values always use the Koi-Koi table for ranking.
    """

    def __init__(self, difficulty: str = "normal", seed: Optional[int] = None, rng=None):
        """
        Initialize heuristic agent.

        Args:
            difficulty: "easy", "normal" or "hard"
            seed: Seed for a numpy generator
            rng: Injected random source (anything with random() and integers())
        """
        if difficulty not in PROFILES:
            raise ValueError(f"Unknown difficulty {difficulty!r}; expected one of {sorted(PROFILES)}")
        self.difficulty = difficulty
        self.profile = PROFILES[difficulty]
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def get_action(self, game: HanafudaGame, player_idx: int,
                   valid_actions: List[Action]) -> Action:
        """
        Select an action from the engine's valid actions.

        Raises:
            ValueError: valid_actions is empty
        """
        if not valid_actions:
            raise ValueError(f"Player {player_idx} has no valid actions")

        kind = valid_actions[0].action_type
        if kind == ActionType.KOIKOI_DECISION:
            choice = self.choose_koikoi_decision(game, player_idx)
            return next(a for a in valid_actions if a.choice == choice)

        if kind == ActionType.PLAY_HAND:
            card = self.choose_card_to_play(game, player_idx)
            return next(a for a in valid_actions if a.card.id == card.id)

        if kind == ActionType.SELECT_FIELD:
            targets = [a.card for a in valid_actions]
            target = self.choose_field_target(game, player_idx, game.pending.card, targets)
            return next(a for a in valid_actions if a.card.id == target.id)

        # Draw / reveal: nothing to decide
        return valid_actions[0]

    def choose_card_to_play(self, game: HanafudaGame, player_idx: int) -> Card:
        """Pick the hand card to play"""
        hand = game.players[player_idx].hand
        if self._play_randomly():
            return hand[int(self.rng.integers(len(hand)))]

        best_card, best_score = hand[0], float("-inf")
        for card in hand:
            score = self._score_play(game, player_idx, card)
            if score > best_score:
                best_card, best_score = card, score
        logger.debug(f"{self.difficulty} agent P{player_idx} plays {best_card.id} ({best_score:.1f})")
        return best_card

    def choose_field_target(self, game: HanafudaGame, player_idx: int,
                            card: Card, targets: Sequence[Card]) -> Card:
        """Pick which matching field card to capture"""
        if self._play_randomly():
            return targets[int(self.rng.integers(len(targets)))]
        return max(targets, key=lambda t: self._score_capture(game, player_idx, [card, t]))

    def choose_koikoi_decision(self, game: HanafudaGame, player_idx: int) -> KoikoiChoice:
        """Stop or Continue, drawn from the profile's table"""
        player = game.players[player_idx]
        score = game.koikoi.score_at_last_decision[player_idx]
        best_opponent = max(
            (p.match_score for p in game.players if p.index != player_idx), default=0
        )
        probability = self.profile.continue_probability(
            score, game.deck.remaining, player.match_score, best_opponent
        )
        choice = KoikoiChoice.CONTINUE if self.rng.random() < probability else KoikoiChoice.STOP
        logger.debug(f"{self.difficulty} agent P{player_idx}: {choice.name} (p={probability:.2f})")
        return choice

    def _play_randomly(self) -> bool:
        return self.profile.random_play_rate > 0 and self.rng.random() < self.profile.random_play_rate

    def _score_play(self, game: HanafudaGame, player_idx: int, card: Card) -> float:
        matches = find_matches(card, game.field)
        if not matches:
            # Dump the least valuable card
            return -float(KOIKOI_VALUES[card.card_type])
        if len(matches) == 3:
            return self._score_capture(game, player_idx, [card, *matches])
        return max(self._score_capture(game, player_idx, [card, m]) for m in matches)

    def _score_capture(self, game: HanafudaGame, player_idx: int, cards: List[Card]) -> float:
        score = float(card_points(cards, KOIKOI_VALUES))
        detector = game.detector

        if self.profile.completion_weight:
            own = game.players[player_idx].captured
            gain = detector.total(own + cards) - detector.total(own)
            score += self.profile.completion_weight * gain * YAKU_POINT_VALUE
            others = [c for p in game.players if p.index != player_idx for c in p.captured]
            for progress in yaku_progress(own + cards, others):
                if progress.possible:
                    score += self.profile.completion_weight * progress.current / progress.needed

        if self.profile.block_weight:
            denied = 0
            for opponent in game.players:
                if opponent.index == player_idx:
                    continue
                theirs = opponent.captured
                denied = max(denied, detector.total(theirs + cards) - detector.total(theirs))
            score += self.profile.block_weight * denied * YAKU_POINT_VALUE

        return score

    def __repr__(self) -> str:
        return f"HeuristicAgent({self.difficulty})"
