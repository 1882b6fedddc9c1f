"""
Hanafuda Game Engine

Round state machine and match driver shared by every variant.
The rule set selects the combination detector and the settlement
algorithm; the turn flow itself is defined once:

    SELECT_HAND -> SELECT_FIELD -> DRAWING -> SHOW_DRAWN
        -> SELECT_DRAWN_MATCH -> TURN_HANDOFF -> (next player)

A capture that forms a new or improved combination may suspend the round
in AWAITING_KOIKOI_DECISION. While suspended, every phase change is
refused at a single chokepoint (_set_phase) and every player action
other than the decision is rejected by _guard.
"""

from enum import IntEnum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging
import random

from .cards import Card, NUM_CARDS, SAKURA_VALUES, build_standard_deck, card_by_id, count_by_month, to_mask
from .deck import Deck, deal
from .errors import InvalidAction, IllegalTarget, InvariantViolation, ConfigurationError
from .events import EventBus, EventType, GameEvent
from .koikoi import KoikoiChoice, KoikoiState
from .matching import CaptureKind, MatchOption, resolve_match, is_gaji, gaji_targets, field_fours
from .player import HanafudaPlayer
from .rules import VariantConfig, Variant, FieldFourPolicy, KOIKOI_RULES
from .scoring import (
    EndReason, RoundContext, RoundResult, MatchResult,
    settle_round, settle_match, next_dealer, teyaku_transfers, hachihachi_field_multiplier,
)
from .shop import BonusCondition, MAX_SHOP_CARDS, get_bonus_condition, build_bonus_context
from .yaku import Yaku, YakuDiff, get_detector, diff_yaku, detect_teyaku, total_points

logger = logging.getLogger(__name__)


class Phase(IntEnum):
    """Phases of a Hanafuda round"""
    NOT_STARTED = 0
    SELECT_HAND = 1               # Current player picks a hand card
    SELECT_FIELD = 2              # Pick the field card to capture with the hand card
    DRAWING = 3                   # Current player draws from the deck
    SHOW_DRAWN = 4                # Drawn card revealed, not yet resolved
    SELECT_DRAWN_MATCH = 5        # Pick the field card to capture with the drawn card
    TURN_HANDOFF = 6
    AWAITING_KOIKOI_DECISION = 7  # Suspended until the decision resolves
    ROUND_ENDING = 8              # Round settled, waiting for next_round()
    MATCH_OVER = 9


class ActionType(IntEnum):
    """Player inputs"""
    PLAY_HAND = 0        # Play a hand card
    SELECT_FIELD = 1     # Choose a capture target (hand or drawn card)
    DRAW = 2             # Draw the top deck card
    REVEAL_DRAWN = 3     # Resolve the drawn card
    KOIKOI_DECISION = 4  # Stop or Continue


@dataclass
class Action:
    """
    Represents a player action.
    """
    action_type: ActionType
    player_idx: int
    card: Optional[Card] = None
    choice: Optional[KoikoiChoice] = None

    def __repr__(self) -> str:
        if self.choice is not None:
            detail = self.choice.name
        else:
            detail = self.card.id if self.card is not None else None
        return f"Action({self.action_type.name}, P{self.player_idx}, {detail})"


@dataclass
class StepResult:
    """Outcome of one player action"""
    accepted: bool
    phase: Phase
    error: Optional[InvalidAction] = None
    events: List[GameEvent] = field(default_factory=list)
    result: Optional[RoundResult] = None

    @property
    def round_over(self) -> bool:
        return self.result is not None

    @property
    def decision_requested(self) -> bool:
        return any(e.event_type == EventType.DECISION_REQUESTED for e in self.events)


@dataclass(frozen=True)
class GameState:
    """Read-only snapshot of the table"""
    phase: Phase
    round_number: int
    dealer: int
    current_player: int
    field: Tuple[Card, ...]
    hands: Tuple[Tuple[Card, ...], ...]
    captured: Tuple[Tuple[Card, ...], ...]
    drawn_card: Optional[Card]
    deck_remaining: int
    scores: Tuple[int, ...]
    round_wins: Tuple[int, ...]
    yaku: Tuple[Tuple[Yaku, ...], ...]
    waiting_for_decision: bool
    decision_player: Optional[int]
    called_count: Tuple[int, ...]
    pending_card: Optional[Card]
    pending_targets: Tuple[Card, ...]


class HanafudaGame:
    """
    Hanafuda Game Engine.

    Manages zones, turn flow, decisions and settlement for 2-4 players
    under any VariantConfig.
    """

    def __init__(
        self,
        rules: Optional[VariantConfig] = None,
        seed: Optional[int] = None,
        dealer: int = 0,
        human_players: Sequence[int] = (),
        ai_difficulty: Optional[str] = None,
        shop_cards: Sequence[int] = (),
        shop_bonus: Optional[str] = None,
    ):
        """
        Initialize a new game.

        Args:
            rules: Rule set to use (default: Koi-Koi); validated here
            seed: Seed for the deck shuffle source
            dealer: Dealer of the first round
            human_players: Seats controlled by people
            ai_difficulty: Difficulty label shown for the other seats
            shop_cards: Shop mode starting cards for player 0 (card ids)
            shop_bonus: Shop mode bonus condition id
        """
        self.rules = (rules or KOIKOI_RULES).validate()
        self.seed = seed
        self.rng = random.Random(seed)
        self.num_players = self.rules.player_count
        self.detector = get_detector(self.rules)

        self.shop_cards: List[Card] = []
        self.shop_bonus: Optional[BonusCondition] = None
        if shop_cards or shop_bonus:
            self._configure_shop(shop_cards, shop_bonus)

        self.players: List[HanafudaPlayer] = [
            HanafudaPlayer(i, is_human=i in human_players,
                           difficulty=None if i in human_players else ai_difficulty)
            for i in range(self.num_players)
        ]

        self.deck = Deck(cards=[])
        self.field: List[Card] = []
        self.drawn_card: Optional[Card] = None
        self.pending: Optional[MatchOption] = None

        self.phase = Phase.NOT_STARTED
        self.initial_dealer = dealer
        self.dealer = dealer
        self.current_player = dealer
        self.round_number = 0
        self.turn_count = 0

        self.koikoi = KoikoiState(num_players=self.num_players)
        self.field_multiplier = 1
        self.teyaku_scores: List[int] = [0] * self.num_players
        self.gaji_pairs: Dict[int, int] = {}
        self.bonus_points: List[int] = [0] * self.num_players
        self.bonus_awarded = False

        self.round_results: List[RoundResult] = []
        self.last_result: Optional[RoundResult] = None
        self.match_result: Optional[MatchResult] = None

        self.events = EventBus()
        self.action_history: List[Action] = []

    def _configure_shop(self, shop_cards: Sequence[int], shop_bonus: Optional[str]) -> None:
        if self.rules.variant != Variant.SHOP:
            raise ConfigurationError("Shop cards and bonus require the Shop rule set")
        if len(shop_cards) > MAX_SHOP_CARDS:
            raise ConfigurationError(f"At most {MAX_SHOP_CARDS} shop cards, got {len(shop_cards)}")
        if len(set(shop_cards)) != len(shop_cards):
            raise ConfigurationError("Shop cards must be distinct")
        try:
            self.shop_cards = [card_by_id(card_id) for card_id in shop_cards]
            self.shop_bonus = get_bonus_condition(shop_bonus) if shop_bonus else None
        except ValueError as e:
            raise ConfigurationError(str(e)) from None

    # ------------------------------------------------------------------
    # Match driver
    # ------------------------------------------------------------------

    def reset(self, seed: Optional[int] = None) -> None:
        """Reset for a new match (does not deal)"""
        if seed is not None:
            self.seed = seed
        self.rng = random.Random(self.seed)
        for player in self.players:
            player.reset()
        self.deck = Deck(cards=[])
        self.field = []
        self.drawn_card = None
        self.pending = None
        self.phase = Phase.NOT_STARTED
        self.dealer = self.initial_dealer
        self.current_player = self.dealer
        self.round_number = 0
        self.koikoi.reset()
        self.round_results = []
        self.last_result = None
        self.match_result = None
        self.events.clear()
        self.action_history = []

    def start_match(self, dealer: Optional[int] = None) -> None:
        """Reset match totals and deal the first round"""
        self.reset()
        if dealer is not None:
            self.dealer = self.current_player = dealer
        self.start_round()

    def start_round(self) -> None:
        """Start a new round by shuffling and dealing"""
        self._begin_round()

        self.deck = Deck()
        self.deck.shuffle(self.rng)

        hand_size, field_size = self.rules.sizes
        hand_sizes = [hand_size] * self.num_players
        if self.shop_cards:
            self.deck.remove(self.shop_cards)
            self.players[0].add_to_hand(self.shop_cards)
            hand_sizes[0] = max(0, hand_size - len(self.shop_cards))

        hands, field_cards = deal(self.deck, self.num_players, hand_sizes, field_size, dealer=self.dealer)
        for player, hand in zip(self.players, hands):
            player.add_to_hand(hand)
        self.field = field_cards

        if self.rules.chitsiobiki:
            self._apply_chitsiobiki()

        self._open_round()

    def start_round_with(
        self,
        hands: Sequence[Sequence[int]],
        field_cards: Sequence[int],
        captured: Optional[Sequence[Sequence[int]]] = None,
        deck_top: Sequence[int] = (),
        current_player: Optional[int] = None,
    ) -> None:
        """
        Start a round from a fixed layout (tests, tutorials, replays).

        Cards not placed go to the deck; deck_top lists the next draws in
        order, the rest of the deck is shuffled beneath them.

        Args:
            hands: Card ids per seat
            field_cards: Card ids face up on the field
            captured: Card ids already captured per seat
            deck_top: Card ids drawn first, in draw order
            current_player: First player (default: dealer)
        """
        if len(hands) != self.num_players:
            raise ValueError(f"Expected {self.num_players} hands, got {len(hands)}")
        captured = captured or [[] for _ in range(self.num_players)]
        placed = [cid for group in (*hands, field_cards, *captured, deck_top) for cid in group]
        if len(set(placed)) != len(placed):
            raise ValueError("A card is placed in more than one zone")

        self._begin_round()
        for player, hand_ids, captured_ids in zip(self.players, hands, captured):
            player.add_to_hand([card_by_id(cid) for cid in hand_ids])
            player.capture([card_by_id(cid) for cid in captured_ids])
        self.field = [card_by_id(cid) for cid in field_cards]

        used = set(placed)
        rest = [c for c in build_standard_deck() if c.id not in used]
        top = [card_by_id(cid) for cid in deck_top]
        self.deck = Deck(cards=rest)
        self.deck.shuffle(self.rng)
        self.deck.cards.extend(reversed(top))

        self._open_round(current_player)

    def next_round(self) -> None:
        """Rotate the dealer and deal the next round"""
        if self.phase == Phase.MATCH_OVER:
            raise RuntimeError("Match is over")
        if self.phase != Phase.ROUND_ENDING:
            raise RuntimeError("Round still in progress")
        self.dealer = next_dealer(self.last_result, self.dealer, self.num_players, self.rules)
        self.start_round()

    @property
    def is_match_over(self) -> bool:
        return self.phase == Phase.MATCH_OVER

    @property
    def scores(self) -> List[int]:
        return [p.match_score for p in self.players]

    def _begin_round(self) -> None:
        if self.phase == Phase.MATCH_OVER:
            raise RuntimeError("Match is over")
        if self.phase not in (Phase.NOT_STARTED, Phase.ROUND_ENDING):
            raise RuntimeError("Round already started")

        self.round_number += 1
        for player in self.players:
            player.reset_round()
        self.field = []
        self.drawn_card = None
        self.pending = None
        self.koikoi.reset()
        self.field_multiplier = 1
        self.teyaku_scores = [0] * self.num_players
        self.gaji_pairs = {}
        self.bonus_points = [0] * self.num_players
        self.bonus_awarded = False
        self.last_result = None
        self.turn_count = 0

    def _open_round(self, current_player: Optional[int] = None) -> None:
        """Deal-time rules, then hand the first turn out"""
        if current_player is None:
            current_player = 0 if self.rules.variant == Variant.SHOP else self.dealer
        self.current_player = current_player
        self.phase = Phase.SELECT_HAND

        logger.info(
            f"Round {self.round_number} ({self.rules.name}): dealer={self.dealer}, "
            f"field={[c.id for c in self.field]}"
        )
        self._emit(EventType.ROUND_STARTED, self.dealer, cards=tuple(self.field),
                   message=f"Round {self.round_number}")

        if self.rules.variant == Variant.HACHIHACHI:
            self.field_multiplier = hachihachi_field_multiplier(self.field)

        for month in field_fours(self.field):
            policy = self.rules.initial_field_four
            if policy == FieldFourPolicy.MISDEAL:
                logger.info(f"Misdeal: all four month {month} cards on the field")
                self._end_round(EndReason.MISDEAL)
                return
            if policy == FieldFourPolicy.DEALER_CAPTURES:
                taken = [c for c in self.field if c.month == month]
                self.field = [c for c in self.field if c.month != month]
                self.players[self.dealer].capture(taken)
                self._emit(EventType.HIKI, self.dealer, cards=tuple(taken))

        if self.rules.variant == Variant.HACHIHACHI:
            self._pay_teyaku()

        for player in self.players:
            player.active_yaku = self.detector.detect(player.captured)

        if not self.players[self.current_player].hand:
            self._set_phase(Phase.DRAWING)

    def _apply_chitsiobiki(self) -> None:
        """
        Trade the lowest card of each dealt triplet for the top deck card.

        One pass over the dealt hands: a triplet completed by a traded-in
        card stays in hand.
        """
        for offset in range(self.num_players):
            player = self.players[(self.dealer + offset) % self.num_players]
            for month, count in count_by_month(player.hand).items():
                if count != 3 or self.deck.is_empty:
                    continue
                lowest = min(
                    (c for c in player.hand if c.month == month),
                    key=lambda c: (SAKURA_VALUES[c.card_type], c.id),
                )
                player.remove_from_hand(lowest)
                player.add_to_hand(self.deck.draw(1))
                self.deck.put_back(lowest)
                self.deck.shuffle(self.rng)
                logger.debug(f"Chitsiobiki: player {player.index} traded card {lowest.id}")

    def _pay_teyaku(self) -> None:
        for player in self.players:
            player.teyaku = detect_teyaku(player.hand)
        self.teyaku_scores = teyaku_transfers([p.teyaku for p in self.players], self.field_multiplier)
        if not any(self.teyaku_scores):
            return
        for player, delta in zip(self.players, self.teyaku_scores):
            player.match_score += delta
        claimed = tuple(y for p in self.players for y in p.teyaku)
        logger.info(f"Teyaku paid (x{self.field_multiplier}): {self.teyaku_scores}")
        self._emit(EventType.TEYAKU_PAID, yaku=claimed, payload=list(self.teyaku_scores))

    # ------------------------------------------------------------------
    # Player input
    # ------------------------------------------------------------------

    def step(self, action: Action) -> StepResult:
        """
        Execute an action and advance game state.

        Player-input errors never raise: they are returned as a rejected
        StepResult with the state unchanged.

        Raises:
            RuntimeError: The round has not started or the match is over
        """
        if self.phase == Phase.NOT_STARTED:
            raise RuntimeError("Round not started")
        if self.phase == Phase.MATCH_OVER:
            raise RuntimeError("Match is over")

        mark = len(self.events)
        handlers = {
            ActionType.PLAY_HAND: self._handle_play_hand,
            ActionType.SELECT_FIELD: self._handle_select_field,
            ActionType.DRAW: self._handle_draw,
            ActionType.REVEAL_DRAWN: self._handle_reveal_drawn,
            ActionType.KOIKOI_DECISION: self._handle_koikoi_decision,
        }

        try:
            self._guard(action)
            handler = handlers.get(action.action_type)
            if handler is None:
                raise InvalidAction(f"Unknown action type {action.action_type}")
            handler(action)
        except InvalidAction as e:
            return self._reject(action, e)

        self.action_history.append(action)
        logger.debug(f"Accepted {action} -> {self.phase.name}")
        events = self.events.since(mark)
        ended = any(e.event_type == EventType.ROUND_ENDED for e in events)
        return StepResult(True, self.phase, events=events, result=self.last_result if ended else None)

    def _reject(self, action: Action, error: InvalidAction) -> StepResult:
        logger.warning(f"Rejected {action}: {error}")
        return StepResult(False, self.phase, error=error)

    def _guard(self, action: Action) -> None:
        """Central check every player action passes before any handler runs"""
        if not 0 <= action.player_idx < self.num_players:
            raise InvalidAction(f"No player {action.player_idx}")
        if self.phase == Phase.ROUND_ENDING:
            raise InvalidAction("Round is over")
        if self.koikoi.waiting_for_decision:
            if action.action_type != ActionType.KOIKOI_DECISION:
                raise InvalidAction(
                    f"Waiting for koi-koi decision from player {self.koikoi.decision_player}"
                )
            return
        if action.action_type == ActionType.KOIKOI_DECISION:
            raise InvalidAction("No koi-koi decision is pending")
        if action.player_idx != self.current_player:
            raise InvalidAction(f"Not player {action.player_idx}'s turn")

    def play_hand_card(self, player_idx: int, card_id: int) -> StepResult:
        return self._step_with_card(ActionType.PLAY_HAND, player_idx, card_id)

    def select_field_target(self, player_idx: int, card_id: int) -> StepResult:
        return self._step_with_card(ActionType.SELECT_FIELD, player_idx, card_id)

    def draw_card(self, player_idx: int) -> StepResult:
        return self.step(Action(ActionType.DRAW, player_idx))

    def reveal_drawn_card(self, player_idx: int) -> StepResult:
        return self.step(Action(ActionType.REVEAL_DRAWN, player_idx))

    def resolve_koikoi_decision(self, player_idx: int, choice: KoikoiChoice) -> StepResult:
        action = Action(ActionType.KOIKOI_DECISION, player_idx)
        try:
            action.choice = KoikoiChoice(choice)
        except ValueError as e:
            return self._reject(action, InvalidAction(str(e)))
        return self.step(action)

    def _step_with_card(self, action_type: ActionType, player_idx: int, card_id: int) -> StepResult:
        try:
            card = card_by_id(card_id)
        except ValueError as e:
            return self._reject(Action(action_type, player_idx), InvalidAction(str(e)))
        return self.step(Action(action_type, player_idx, card=card))

    # ------------------------------------------------------------------
    # Handlers (validate first, then mutate)
    # ------------------------------------------------------------------

    def _handle_play_hand(self, action: Action) -> None:
        """Handle playing a card from hand"""
        if self.phase != Phase.SELECT_HAND:
            raise InvalidAction(f"Cannot play a hand card in phase {self.phase.name}")
        player = self.players[action.player_idx]
        card = player.find_in_hand(action.card.id) if action.card is not None else None
        if card is None:
            raise InvalidAction(f"Player {action.player_idx} does not hold {action.card}")

        option = self._resolve(card, action.player_idx)
        if option.needs_choice:
            # The card stays in hand until a target is chosen
            self.pending = option
            self._set_phase(Phase.SELECT_FIELD)
            self._emit(EventType.SELECTION_REQUIRED, action.player_idx,
                       cards=(card, *option.targets))
            return

        player.remove_from_hand(card)
        if option.kind == CaptureKind.NONE:
            self.field.append(card)
            self._emit(EventType.CARD_TO_FIELD, action.player_idx, cards=(card,))
            self._continue_after_hand()
            return

        diff = self._capture(action.player_idx, card, option.targets)
        if not self._after_capture(action.player_idx, diff, Phase.DRAWING):
            self._continue_after_hand()

    def _handle_select_field(self, action: Action) -> None:
        """Handle choosing a capture target for the pending hand or drawn card"""
        if self.phase not in (Phase.SELECT_FIELD, Phase.SELECT_DRAWN_MATCH):
            raise InvalidAction(f"Cannot select a field card in phase {self.phase.name}")
        option = self.pending
        if action.card is None or not option.is_target(action.card):
            raise IllegalTarget(f"{action.card} is not a legal target for {option.card}")

        target = next(c for c in self.field if c.id == action.card.id)
        from_hand = self.phase == Phase.SELECT_FIELD
        self.pending = None
        if from_hand:
            self.players[action.player_idx].remove_from_hand(option.card)
        else:
            self.drawn_card = None
        if option.kind == CaptureKind.WILD:
            self.gaji_pairs[action.player_idx] = target.month

        diff = self._capture(action.player_idx, option.card, [target])
        resume = Phase.DRAWING if from_hand else Phase.TURN_HANDOFF
        if not self._after_capture(action.player_idx, diff, resume):
            self._resume(resume)

    def _handle_draw(self, action: Action) -> None:
        """Handle drawing the top deck card"""
        if self.phase != Phase.DRAWING:
            raise InvalidAction(f"Cannot draw in phase {self.phase.name}")
        if self.deck.is_empty:
            raise InvalidAction("Deck is empty")
        card = self.deck.draw_one()
        self.drawn_card = card
        self._set_phase(Phase.SHOW_DRAWN)
        self._emit(EventType.CARD_DRAWN, action.player_idx, cards=(card,))

    def _handle_reveal_drawn(self, action: Action) -> None:
        """Handle resolving the drawn card against the field"""
        if self.phase != Phase.SHOW_DRAWN:
            raise InvalidAction(f"Cannot reveal in phase {self.phase.name}")
        card = self.drawn_card
        option = self._resolve(card, action.player_idx)
        if option.needs_choice:
            self.pending = option
            self._set_phase(Phase.SELECT_DRAWN_MATCH)
            self._emit(EventType.SELECTION_REQUIRED, action.player_idx,
                       cards=(card, *option.targets))
            return

        self.drawn_card = None
        if option.kind == CaptureKind.NONE:
            self.field.append(card)
            self._emit(EventType.CARD_TO_FIELD, action.player_idx, cards=(card,))
            self._turn_handoff()
            return

        diff = self._capture(action.player_idx, card, option.targets)
        if not self._after_capture(action.player_idx, diff, Phase.TURN_HANDOFF):
            self._turn_handoff()

    def _handle_koikoi_decision(self, action: Action) -> None:
        """Handle Stop / Continue"""
        if action.choice is None:
            raise InvalidAction("A koi-koi decision needs a choice")
        resume = self.koikoi.resolve(action.player_idx, action.choice)
        self._emit(EventType.DECISION_MADE, action.player_idx, payload=action.choice,
                   message=action.choice.name)
        if action.choice == KoikoiChoice.STOP:
            self._end_round(EndReason.STOP, stopper=action.player_idx)
            return
        self._resume(Phase(resume))

    # ------------------------------------------------------------------
    # Automatic transitions
    # ------------------------------------------------------------------

    def _set_phase(self, phase: Phase) -> bool:
        """
        The only place phases change after a round opens.

        Returns:
            False (no-op) while a koi-koi decision is pending
        """
        if self.koikoi.waiting_for_decision and phase != Phase.AWAITING_KOIKOI_DECISION:
            logger.debug(f"Phase change to {phase.name} blocked: decision pending")
            return False
        if phase != self.phase:
            logger.debug(f"Phase {self.phase.name} -> {phase.name}")
        self.phase = phase
        return True

    def _resolve(self, card: Card, player_idx: int) -> MatchOption:
        wild = None
        if self.rules.gaji_wild and is_gaji(card):
            wild = gaji_targets(self.field, [p.captured for p in self.players], player_idx)
        return resolve_match(card, self.field, confirm_single=self.rules.confirm_single_match,
                             wild_targets=wild)

    def _capture(self, player_idx: int, card: Card, targets: Sequence[Card]) -> YakuDiff:
        """Move card and targets to the captured pile, then run the detector"""
        player = self.players[player_idx]
        target_ids = {t.id for t in targets}
        self.field = [c for c in self.field if c.id not in target_ids]
        captured = [card, *targets]
        player.capture(captured)

        detected = self.detector.detect(player.captured)
        diff = diff_yaku(player.active_yaku, detected)
        player.active_yaku = detected
        if diff.changed:
            self.koikoi.record_improvement(player_idx)
            logger.debug(f"Player {player_idx} yaku: new={diff.new} improved={diff.improved}")

        logger.debug(f"Player {player_idx} captures {[c.id for c in captured]}")
        self._emit(EventType.CAPTURE, player_idx, cards=tuple(captured),
                   yaku=tuple(diff.new + diff.improved))
        return diff

    def _after_capture(self, player_idx: int, diff: YakuDiff, resume: Phase) -> bool:
        """
        React to a new or improved combination.

        Returns:
            True if the round is suspended or over
        """
        if not diff.changed:
            return False
        if self._is_final_action(resume):
            logger.debug(f"Player {player_idx} improved on the final action; no decision")
            return False
        if self.rules.variant == Variant.SAKURA:
            return False

        if self.rules.koikoi_enabled:
            player = self.players[player_idx]
            score = total_points(player.active_yaku)
            self.koikoi.request_decision(player_idx, score, int(resume))
            self._set_phase(Phase.AWAITING_KOIKOI_DECISION)
            self._emit(EventType.DECISION_REQUESTED, player_idx,
                       yaku=tuple(player.active_yaku), payload=score)
            return True

        if self.rules.both_players_score or self.rules.variant == Variant.SHOP:
            return False

        self._end_round(EndReason.AUTO_STOP, stopper=player_idx)
        return True

    def _is_final_action(self, resume: Phase) -> bool:
        if resume == Phase.DRAWING and not self.deck.is_empty:
            return False
        return self._round_over_after_turn()

    def _round_over_after_turn(self) -> bool:
        hands_empty = all(not p.hand for p in self.players)
        return hands_empty and (self.deck.is_empty or not self.rules.play_out_deck)

    def _can_act(self, player_idx: int) -> bool:
        if self.players[player_idx].hand:
            return True
        return self.rules.play_out_deck and not self.deck.is_empty

    def _resume(self, phase: Phase) -> None:
        if phase == Phase.DRAWING:
            self._continue_after_hand()
        else:
            self._turn_handoff()

    def _continue_after_hand(self) -> None:
        """Go to the draw, or straight to the handoff when the deck is empty"""
        if self.deck.is_empty:
            self._turn_handoff()
            return
        if self._set_phase(Phase.DRAWING):
            self._emit(EventType.PHASE_CHANGED, self.current_player)

    def _turn_handoff(self) -> None:
        if not self._set_phase(Phase.TURN_HANDOFF):
            return
        self.turn_count += 1
        self._check_shop_bonus(round_over=False)

        if self._round_over_after_turn():
            self._end_round(EndReason.EXHAUSTED)
            return

        next_player = self.current_player
        for _ in range(self.num_players):
            next_player = (next_player + 1) % self.num_players
            if self._can_act(next_player):
                break
        else:
            self._end_round(EndReason.EXHAUSTED)
            return

        self.current_player = next_player
        has_hand = bool(self.players[next_player].hand)
        self._set_phase(Phase.SELECT_HAND if has_hand else Phase.DRAWING)
        self._emit(EventType.TURN_CHANGED, next_player)

    def _check_shop_bonus(self, round_over: bool) -> None:
        if self.shop_bonus is None or self.bonus_awarded:
            return
        ctx = build_bonus_context(
            self.detector,
            self.players[0].captured,
            self.players[1].captured,
            self.deck.remaining,
            round_over=round_over,
        )
        if not self.shop_bonus.is_met(ctx):
            return
        points = self.shop_bonus.bonus_points(self.rules.shop_bonus_points)
        self.bonus_awarded = True
        self.bonus_points[0] += points
        logger.info(f"Shop bonus '{self.shop_bonus.name}' achieved: +{points}")
        self._emit(EventType.BONUS_AWARDED, 0, payload=points, message=self.shop_bonus.name)

    def _end_round(self, reason: EndReason, stopper: Optional[int] = None) -> None:
        if reason != EndReason.MISDEAL:
            self._collect_leftovers(reason)
            if self.rules.variant == Variant.SHOP:
                self._check_shop_bonus(round_over=True)

        ctx = RoundContext(
            captured=[list(p.captured) for p in self.players],
            yaku=[self.detector.detect(p.captured) for p in self.players],
            koikoi=self.koikoi,
            dealer=self.dealer,
            end_reason=reason,
            stopper=stopper,
            field_multiplier=self.field_multiplier,
            bonus=list(self.bonus_points),
        )
        result = settle_round(ctx, self.rules)
        result.round_number = self.round_number
        result.teyaku_scores = list(self.teyaku_scores)

        for player, score, wins in zip(self.players, result.scores, result.wins_awarded):
            player.match_score += score
            player.round_wins += wins
        self.round_results.append(result)
        self.last_result = result
        self.koikoi.round_active = False
        self.pending = None

        self._set_phase(Phase.ROUND_ENDING)
        self._emit(EventType.ROUND_ENDED, result.winner, payload=result)

        if self.round_number >= self.rules.num_rounds:
            self.match_result = settle_match(self.round_results, self.num_players, self.rules)
            self._set_phase(Phase.MATCH_OVER)
            self._emit(EventType.MATCH_ENDED, self.match_result.winner, payload=self.match_result)

    def _collect_leftovers(self, reason: EndReason) -> None:
        """End-of-round field sweeps: Gaji pairings and the Hachi-Hachi dealer sweep"""
        for player_idx, month in self.gaji_pairs.items():
            bonus = [c for c in self.field if c.month == month]
            if bonus:
                self.field = [c for c in self.field if c.month != month]
                self.players[player_idx].capture(bonus)
                logger.debug(f"Gaji bonus: player {player_idx} takes {[c.id for c in bonus]}")

        if self.rules.variant == Variant.HACHIHACHI and reason == EndReason.EXHAUSTED and self.field:
            self.players[self.dealer].capture(self.field)
            self.field = []

    def _emit(self, event_type: EventType, player_idx: Optional[int] = None,
              cards: Tuple[Card, ...] = (), yaku: Tuple[Any, ...] = (),
              payload: Any = None, message: str = "") -> None:
        event = GameEvent(event_type, int(self.phase), player_idx, cards, yaku, payload, message)
        logger.debug(f"Event {event}")
        self.events.emit(event)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_valid_actions(self, player_idx: int) -> List[Action]:
        """Get all valid actions for a player"""
        if self.phase in (Phase.NOT_STARTED, Phase.ROUND_ENDING, Phase.MATCH_OVER):
            return []

        if self.koikoi.waiting_for_decision:
            if player_idx != self.koikoi.decision_player:
                return []
            return [
                Action(ActionType.KOIKOI_DECISION, player_idx, choice=KoikoiChoice.STOP),
                Action(ActionType.KOIKOI_DECISION, player_idx, choice=KoikoiChoice.CONTINUE),
            ]

        if player_idx != self.current_player:
            return []

        if self.phase == Phase.SELECT_HAND:
            return [Action(ActionType.PLAY_HAND, player_idx, card=c) for c in self.players[player_idx].hand]
        if self.phase in (Phase.SELECT_FIELD, Phase.SELECT_DRAWN_MATCH):
            return [Action(ActionType.SELECT_FIELD, player_idx, card=t) for t in self.pending.targets]
        if self.phase == Phase.DRAWING:
            return [Action(ActionType.DRAW, player_idx)]
        if self.phase == Phase.SHOW_DRAWN:
            return [Action(ActionType.REVEAL_DRAWN, player_idx)]
        return []

    def acting_player(self) -> Optional[int]:
        """Seat expected to act next (the decision player while suspended)"""
        if self.phase in (Phase.NOT_STARTED, Phase.ROUND_ENDING, Phase.MATCH_OVER):
            return None
        if self.koikoi.waiting_for_decision:
            return self.koikoi.decision_player
        return self.current_player

    def get_state(self) -> GameState:
        """Read-only projection for rendering"""
        return GameState(
            phase=self.phase,
            round_number=self.round_number,
            dealer=self.dealer,
            current_player=self.current_player,
            field=tuple(self.field),
            hands=tuple(tuple(p.hand) for p in self.players),
            captured=tuple(tuple(p.captured) for p in self.players),
            drawn_card=self.drawn_card,
            deck_remaining=self.deck.remaining,
            scores=tuple(p.match_score for p in self.players),
            round_wins=tuple(p.round_wins for p in self.players),
            yaku=tuple(tuple(p.active_yaku) for p in self.players),
            waiting_for_decision=self.koikoi.waiting_for_decision,
            decision_player=self.koikoi.decision_player,
            called_count=tuple(self.koikoi.called_count),
            pending_card=self.pending.card if self.pending else None,
            pending_targets=tuple(self.pending.targets) if self.pending else (),
        )

    def get_observation(self, player_idx: int) -> Dict[str, Any]:
        """Get observation for a player (other hands hidden)"""
        player = self.players[player_idx]
        return {
            "hand": player.hand_mask(),
            "hand_cards": list(player.hand),
            "field": to_mask(self.field),
            "captured": [p.captured_mask() for p in self.players],
            "drawn_card": to_mask([self.drawn_card] if self.drawn_card else []),
            "hand_sizes": [len(p.hand) for p in self.players],
            "yaku": [list(p.active_yaku) for p in self.players],
            "scores": self.scores,
            "called_count": list(self.koikoi.called_count),
            "deck_remaining": self.deck.remaining,
            "current_player": self.current_player,
            "dealer": self.dealer,
            "phase": self.phase,
            "valid_actions": self.get_valid_actions(player_idx),
        }

    def subscribe(self, listener) -> None:
        """Register a callable receiving every GameEvent in order"""
        self.events.subscribe(listener)

    def find_zone(self, card_id: int) -> Optional[str]:
        """Name of the zone holding a card"""
        for zone, cards in self._zones().items():
            if any(c.id == card_id for c in cards):
                return zone
        return None

    def _zones(self) -> Dict[str, List[Card]]:
        zones = {"deck": self.deck.cards, "field": self.field}
        for p in self.players:
            zones[f"hand[{p.index}]"] = p.hand
            zones[f"captured[{p.index}]"] = p.captured
        zones["drawn"] = [self.drawn_card] if self.drawn_card else []
        return zones

    def check_invariants(self) -> None:
        """
        Assert card conservation and single-zone membership.

        Raises:
            InvariantViolation: A card is missing, duplicated or in two zones,
                or the round advanced past a pending decision
        """
        if self.phase == Phase.NOT_STARTED:
            return
        seen: Dict[int, str] = {}
        for zone, cards in self._zones().items():
            for card in cards:
                if card.id in seen:
                    raise InvariantViolation(f"Card {card.id} is in both {seen[card.id]} and {zone}")
                seen[card.id] = zone
        if len(seen) != NUM_CARDS:
            missing = sorted(set(range(1, NUM_CARDS + 1)) - set(seen))
            raise InvariantViolation(f"{NUM_CARDS - len(seen)} card(s) missing: {missing}")
        if self.koikoi.waiting_for_decision and self.phase != Phase.AWAITING_KOIKOI_DECISION:
            raise InvariantViolation(f"Decision pending in phase {self.phase.name}")

    def copy(self) -> 'HanafudaGame':
        """Create a deep copy of the game (listeners are not copied)"""
        new_game = HanafudaGame.__new__(HanafudaGame)
        new_game.rules = self.rules
        new_game.seed = self.seed
        new_game.rng = random.Random()
        new_game.rng.setstate(self.rng.getstate())
        new_game.num_players = self.num_players
        new_game.detector = self.detector
        new_game.shop_cards = list(self.shop_cards)
        new_game.shop_bonus = self.shop_bonus
        new_game.players = [p.copy() for p in self.players]
        new_game.deck = self.deck.copy()
        new_game.field = list(self.field)
        new_game.drawn_card = self.drawn_card
        new_game.pending = (
            MatchOption(self.pending.card, self.pending.kind, list(self.pending.targets))
            if self.pending else None
        )
        new_game.phase = self.phase
        new_game.initial_dealer = self.initial_dealer
        new_game.dealer = self.dealer
        new_game.current_player = self.current_player
        new_game.round_number = self.round_number
        new_game.turn_count = self.turn_count
        new_game.koikoi = self.koikoi.copy()
        new_game.field_multiplier = self.field_multiplier
        new_game.teyaku_scores = list(self.teyaku_scores)
        new_game.gaji_pairs = dict(self.gaji_pairs)
        new_game.bonus_points = list(self.bonus_points)
        new_game.bonus_awarded = self.bonus_awarded
        new_game.round_results = list(self.round_results)
        new_game.last_result = self.last_result
        new_game.match_result = self.match_result
        new_game.events = EventBus()
        new_game.events.history = list(self.events.history)
        new_game.action_history = list(self.action_history)
        return new_game

    def __repr__(self) -> str:
        return f"HanafudaGame(phase={self.phase.name}, player={self.current_player}, deck={self.deck.remaining})"
