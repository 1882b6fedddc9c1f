"""
Hanafuda Rule Sets

Defines rule configurations for the supported game variants:
- Koi-Koi (2 players, continue-or-stop decisions)
- Sakura (2-4 players, card points minus yaku penalties)
- Hachi-Hachi (3 players, par 88 gambling settlement)
- Shop (single Koi-Koi round with a chosen starting hand and bonus)

A rule set is fixed at match start. Custom configurations are built with
dataclasses.replace() on one of the presets and checked with validate().
"""

from enum import IntEnum
from dataclasses import dataclass
from typing import Optional, Tuple

from .deck import deal_sizes
from .cards import NUM_CARDS
from .errors import ConfigurationError


class Variant(IntEnum):
    """Combination catalog and settlement algorithm"""
    KOIKOI = 0
    SAKURA = 1
    HACHIHACHI = 2
    SHOP = 3


class MultiplierMode(IntEnum):
    NONE = 0
    OPPONENT_TRIGGERED = 1  # Applies only when an opponent called Continue


class SakeMode(IntEnum):
    """When the sake cup yaku count"""
    ALWAYS = 0
    NEVER = 1
    REQUIRE_OTHER = 2  # Only alongside another non-sake yaku


class FieldFourPolicy(IntEnum):
    """What happens when all four cards of a month are dealt to the field"""
    IGNORE = 0
    DEALER_CAPTURES = 1
    MISDEAL = 2


@dataclass(frozen=True)
class VariantConfig:
    """
    Rule configuration for a Hanafuda match.

    Frozen so a running match cannot have its rules changed under it.
    """

    name: str = "Default"
    variant: Variant = Variant.KOIKOI

    player_count: int = 2

    # Koi-koi decisions
    koikoi_enabled: bool = True
    multiplier_mode: MultiplierMode = MultiplierMode.OPPONENT_TRIGGERED
    koikoi_multiplier: int = 2
    cumulative_multiplier: bool = False  # 1 + opponent Continue calls
    double_seven_plus: bool = False      # Scores of 7+ are doubled

    # Settlement
    both_players_score: bool = False
    win_counting_mode: bool = False
    # ((margin, wins), ...) checked from the largest margin down
    win_margin_tiers: Tuple[Tuple[int, int], ...] = ()

    # Sake cup yaku
    viewing_sake_mode: SakeMode = SakeMode.ALWAYS
    moon_viewing_sake_mode: SakeMode = SakeMode.ALWAYS

    # Turn flow
    confirm_single_match: bool = False  # Single match still needs a target selection
    play_out_deck: bool = False         # Keep drawing until the deck is empty

    num_rounds: int = 12

    # Dealing (None = dealing table)
    hand_size: Optional[int] = None
    field_size: Optional[int] = None
    initial_field_four: FieldFourPolicy = FieldFourPolicy.MISDEAL

    # Sakura options
    gaji_wild: bool = False
    chitsiobiki: bool = False
    yaku_penalty: int = 50

    # Hachi-Hachi
    par_value: int = 88

    # Shop bonus per difficulty (easy, medium, hard)
    shop_bonus_points: Tuple[int, int, int] = (3, 6, 10)

    @property
    def multiplier_enabled(self) -> bool:
        return self.multiplier_mode == MultiplierMode.OPPONENT_TRIGGERED

    @property
    def sizes(self) -> Tuple[int, int]:
        """(hand size, field size) for this table"""
        return deal_sizes(
            self.player_count,
            sakura=self.variant == Variant.SAKURA,
            hand_size=self.hand_size,
            field_size=self.field_size,
        )

    def validate(self) -> 'VariantConfig':
        """
        Reject impossible or undocumented option combinations.

        Returns:
            self, so presets can be validated inline

        Raises:
            ConfigurationError: On the first offending option
        """
        if not 2 <= self.player_count <= 4:
            raise ConfigurationError(f"player_count must be 2-4, got {self.player_count}")
        if self.num_rounds < 1:
            raise ConfigurationError(f"num_rounds must be positive, got {self.num_rounds}")

        hand, field_size = self.sizes
        if hand < 1 or field_size < 0:
            raise ConfigurationError(f"Invalid deal sizes: hand={hand}, field={field_size}")
        if hand * self.player_count + field_size > NUM_CARDS:
            raise ConfigurationError(
                f"Dealing {hand} x {self.player_count} + {field_size} exceeds {NUM_CARDS} cards"
            )

        if self.multiplier_enabled and not self.koikoi_enabled:
            raise ConfigurationError("Opponent-triggered multiplier requires koikoi_enabled")
        if self.cumulative_multiplier and not self.multiplier_enabled:
            raise ConfigurationError("cumulative_multiplier requires the opponent-triggered multiplier")
        if self.koikoi_multiplier < 1:
            raise ConfigurationError("koikoi_multiplier must be at least 1")
        if self.win_counting_mode and self.multiplier_enabled:
            raise ConfigurationError("win_counting_mode cannot be combined with a koi-koi multiplier")
        if self.win_margin_tiers and not self.win_counting_mode:
            raise ConfigurationError("win_margin_tiers requires win_counting_mode")

        if self.variant == Variant.SAKURA:
            if self.koikoi_enabled or self.multiplier_enabled or self.double_seven_plus:
                raise ConfigurationError("Sakura has no koi-koi decisions or multipliers")
        elif self.gaji_wild or self.chitsiobiki:
            raise ConfigurationError("gaji_wild and chitsiobiki are Sakura options")

        if self.variant == Variant.HACHIHACHI:
            if self.player_count != 3:
                raise ConfigurationError("Hachi-Hachi is played by exactly 3 players")
            if self.both_players_score or self.win_counting_mode:
                raise ConfigurationError("Hachi-Hachi uses par settlement only")
            if self.multiplier_enabled or self.double_seven_plus:
                raise ConfigurationError("Hachi-Hachi uses the field multiplier only")

        if self.variant == Variant.SHOP:
            if self.player_count != 2:
                raise ConfigurationError("Shop is a 2-player mode")
            if self.koikoi_enabled:
                raise ConfigurationError("Shop has no koi-koi decisions")
            if self.num_rounds != 1:
                raise ConfigurationError("Shop is a single round")

        return self

    def __repr__(self) -> str:
        return f"VariantConfig({self.name})"


# Standard 2-player Koi-Koi
KOIKOI_RULES = VariantConfig(
    name="Koi-Koi",
    variant=Variant.KOIKOI,
    player_count=2,
    koikoi_enabled=True,
    multiplier_mode=MultiplierMode.OPPONENT_TRIGGERED,
    koikoi_multiplier=2,
    cumulative_multiplier=False,
    double_seven_plus=True,
    both_players_score=False,
    win_counting_mode=False,
    viewing_sake_mode=SakeMode.ALWAYS,
    moon_viewing_sake_mode=SakeMode.ALWAYS,
    confirm_single_match=False,
    play_out_deck=False,
    num_rounds=6,
    initial_field_four=FieldFourPolicy.MISDEAL,
)


# Sakura (Higo-bana style): card points minus yaku penalties
SAKURA_RULES = VariantConfig(
    name="Sakura",
    variant=Variant.SAKURA,
    player_count=2,
    koikoi_enabled=False,
    multiplier_mode=MultiplierMode.NONE,
    both_players_score=False,
    win_counting_mode=False,
    play_out_deck=True,
    num_rounds=6,
    initial_field_four=FieldFourPolicy.DEALER_CAPTURES,
    gaji_wild=True,
    chitsiobiki=False,
    yaku_penalty=50,
)


# Sakura played for round wins, with bonus wins for large margins
SAKURA_VICTORY_RULES = VariantConfig(
    name="Sakura (Victory)",
    variant=Variant.SAKURA,
    player_count=2,
    koikoi_enabled=False,
    multiplier_mode=MultiplierMode.NONE,
    both_players_score=False,
    win_counting_mode=True,
    win_margin_tiers=((50, 2), (100, 2)),  # Chu, Basa
    play_out_deck=True,
    num_rounds=3,
    initial_field_four=FieldFourPolicy.DEALER_CAPTURES,
    gaji_wild=True,
    chitsiobiki=False,
    yaku_penalty=50,
)


# Hachi-Hachi: 3 players, par 88
HACHIHACHI_RULES = VariantConfig(
    name="Hachi-Hachi",
    variant=Variant.HACHIHACHI,
    player_count=3,
    koikoi_enabled=True,
    multiplier_mode=MultiplierMode.NONE,
    both_players_score=False,
    win_counting_mode=False,
    play_out_deck=True,
    num_rounds=12,
    initial_field_four=FieldFourPolicy.DEALER_CAPTURES,
    par_value=88,
)


# Shop: one round with a chosen starting hand and a bonus condition
SHOP_RULES = VariantConfig(
    name="Shop",
    variant=Variant.SHOP,
    player_count=2,
    koikoi_enabled=False,
    multiplier_mode=MultiplierMode.NONE,
    both_players_score=True,
    win_counting_mode=False,
    play_out_deck=False,
    num_rounds=1,
    initial_field_four=FieldFourPolicy.MISDEAL,
    shop_bonus_points=(3, 6, 10),
)
