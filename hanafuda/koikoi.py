"""
Koi-Koi Decision Resolver

Tracks the continue-or-stop state of a round:
- Idle -> WaitingForDecision(player) -> Resolved
- Continue increments the player's call count and clears their
  "improved since last call" flag; a player who never improves again
  forfeits their round score
- The multiplier is opponent-triggered: it applies to a player only when
  some other player called Continue this round

Hachi-Hachi uses the same state for Sage (continue) and Shoubu (stop).
"""

from enum import IntEnum
from dataclasses import dataclass, field
from typing import List, Optional
import logging

from .errors import InvalidAction, IllegalTarget
from .rules import VariantConfig

logger = logging.getLogger(__name__)


class KoikoiChoice(IntEnum):
    STOP = 0       # Agari / Shoubu
    CONTINUE = 1   # Koi-koi / Sage


@dataclass
class KoikoiState:
    """
    Per-round decision bookkeeping.

    Attributes:
        num_players: Seats at the table
        waiting_for_decision: Phase progress is blocked while True
        decision_player: Seat that must decide (None when idle)
        called_count: Continue calls per player
        score_at_last_decision: Combination score each player was last asked to bank
        improved_since_call: Whether each player improved after their last Continue
        round_active: False once the round has ended
        resume_phase: Phase to return to after Continue
    """
    num_players: int = 2
    waiting_for_decision: bool = False
    decision_player: Optional[int] = None
    called_count: List[int] = field(default_factory=list)
    score_at_last_decision: List[int] = field(default_factory=list)
    improved_since_call: List[bool] = field(default_factory=list)
    round_active: bool = True
    resume_phase: Optional[int] = None

    def __post_init__(self):
        if not self.called_count:
            self.reset()

    def reset(self) -> None:
        """Clear state for a new round"""
        self.waiting_for_decision = False
        self.decision_player = None
        self.called_count = [0] * self.num_players
        self.score_at_last_decision = [0] * self.num_players
        self.improved_since_call = [False] * self.num_players
        self.round_active = True
        self.resume_phase = None

    def request_decision(self, player_idx: int, current_score: int, resume_phase: int) -> None:
        """Suspend the round until player_idx decides"""
        if self.waiting_for_decision:
            raise InvalidAction(f"Already waiting for player {self.decision_player}")
        self.waiting_for_decision = True
        self.decision_player = player_idx
        self.score_at_last_decision[player_idx] = current_score
        self.resume_phase = resume_phase
        logger.info(f"Koi-koi decision requested from player {player_idx} (score {current_score})")

    def resolve(self, player_idx: int, choice: KoikoiChoice) -> Optional[int]:
        """
        Apply a decision.

        Returns:
            The phase to resume on Continue, None on Stop

        Raises:
            InvalidAction: No decision is pending
            IllegalTarget: player_idx is not the waiting player
        """
        if not self.waiting_for_decision:
            raise InvalidAction("No koi-koi decision is pending")
        if player_idx != self.decision_player:
            raise IllegalTarget(
                f"Player {player_idx} cannot decide; waiting for player {self.decision_player}"
            )

        resume = self.resume_phase
        self.waiting_for_decision = False
        self.decision_player = None
        self.resume_phase = None

        if choice == KoikoiChoice.CONTINUE:
            self.called_count[player_idx] += 1
            self.improved_since_call[player_idx] = False
            logger.info(f"Player {player_idx} calls koi-koi ({self.called_count[player_idx]})")
            return resume

        logger.info(f"Player {player_idx} stops")
        self.round_active = False
        return None

    def record_improvement(self, player_idx: int) -> None:
        self.improved_since_call[player_idx] = True

    def has_called(self, player_idx: int) -> bool:
        return self.called_count[player_idx] > 0

    def is_forfeited(self, player_idx: int) -> bool:
        """Called Continue and has not improved since"""
        return self.has_called(player_idx) and not self.improved_since_call[player_idx]

    def opponent_calls(self, player_idx: int) -> int:
        return sum(n for i, n in enumerate(self.called_count) if i != player_idx)

    def multiplier_for(self, player_idx: int, rules: VariantConfig) -> int:
        """Opponent-triggered multiplier for a scoring player"""
        if not rules.multiplier_enabled:
            return 1
        calls = self.opponent_calls(player_idx)
        if calls == 0:
            return 1
        if rules.cumulative_multiplier:
            return 1 + calls
        return rules.koikoi_multiplier

    def copy(self) -> 'KoikoiState':
        return KoikoiState(
            num_players=self.num_players,
            waiting_for_decision=self.waiting_for_decision,
            decision_player=self.decision_player,
            called_count=list(self.called_count),
            score_at_last_decision=list(self.score_at_last_decision),
            improved_since_call=list(self.improved_since_call),
            round_active=self.round_active,
            resume_phase=self.resume_phase,
        )
