"""
Hanafuda Game Engine
Koi-Koi and related variants (Sakura, Hachi-Hachi, Shop)
"""

from .cards import Card, CardType, RibbonKind, build_standard_deck, card_by_id
from .deck import Deck
from .errors import (
    HanafudaError, InvalidAction, IllegalTarget, EmptyDeck,
    InvariantViolation, ConfigurationError,
)
from .events import EventType, GameEvent
from .game import HanafudaGame, Phase, Action, ActionType, StepResult, GameState
from .koikoi import KoikoiChoice, KoikoiState
from .player import HanafudaPlayer
from .rules import (
    VariantConfig, Variant, MultiplierMode, SakeMode, FieldFourPolicy,
    KOIKOI_RULES, SAKURA_RULES, SAKURA_VICTORY_RULES, HACHIHACHI_RULES, SHOP_RULES,
)
from .scoring import EndReason, RoundResult, MatchResult
from .yaku import Yaku, get_detector

__version__ = "0.1.0"
__all__ = [
    "Card",
    "CardType",
    "RibbonKind",
    "build_standard_deck",
    "card_by_id",
    "Deck",
    "HanafudaError",
    "InvalidAction",
    "IllegalTarget",
    "EmptyDeck",
    "InvariantViolation",
    "ConfigurationError",
    "EventType",
    "GameEvent",
    "HanafudaGame",
    "Phase",
    "Action",
    "ActionType",
    "StepResult",
    "GameState",
    "KoikoiChoice",
    "KoikoiState",
    "HanafudaPlayer",
    "VariantConfig",
    "Variant",
    "MultiplierMode",
    "SakeMode",
    "FieldFourPolicy",
    "KOIKOI_RULES",
    "SAKURA_RULES",
    "SAKURA_VICTORY_RULES",
    "HACHIHACHI_RULES",
    "SHOP_RULES",
    "EndReason",
    "RoundResult",
    "MatchResult",
    "Yaku",
    "get_detector",
]
