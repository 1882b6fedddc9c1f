"""
Hanafuda Engine Errors

Player-input errors (InvalidAction, IllegalTarget) are recoverable: the
engine rejects the action and leaves state untouched. InvariantViolation
signals a logic bug and is never caught by the engine.
"""


class HanafudaError(Exception):
    """Base class for all engine errors"""


class InvalidAction(HanafudaError, ValueError):
    """Action by the wrong player, in the wrong phase, or on a card not in the expected zone"""


class IllegalTarget(InvalidAction):
    """Field selection that does not match, or a decision from a player who is not waiting"""


class EmptyDeck(HanafudaError):
    """Draw requested with fewer cards remaining than asked for"""

    def __init__(self, requested: int, remaining: int):
        super().__init__(f"Cannot draw {requested} card(s), {remaining} remaining")
        self.requested = requested
        self.remaining = remaining


class InvariantViolation(HanafudaError, AssertionError):
    """Card conservation or single-zone membership broken"""


class ConfigurationError(HanafudaError, ValueError):
    """Rule set with impossible or undocumented option combinations"""
