"""
Ka Wu Xing Rule Sets

Defines the tunable parts of the engine. The tile set and the win shape
are fixed; what varies between tables is how claims are scanned, how the
non-human seats behave and how the discard heuristic is weighted.
"""

from enum import IntEnum
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .player import Seat


class ClaimOrder(IntEnum):
    """How seats are scanned when more than one could claim a discard"""
    TURN_ORDER = 0  # Start at the seat after the discarder
    SEAT_INDEX = 1  # Always scan OPPONENT_1, OPPONENT_2, PLAYER


@dataclass(frozen=True)
class DiscardWeights:
    """
    Weights for the non-human discard heuristic.
    Higher score means the tile is more worth keeping.
    """
    per_copy: int = 10          # Each copy of the kind in hand (pairs/triplets)
    neighbor_1: int = 5         # Same-suit tile one rank away
    neighbor_2: int = 2         # Same-suit tile two ranks away
    gap_five: int = 15          # 4 or 6 held together with its partner
    dragon: int = 3             # Flat value for dragon tiles


@dataclass(frozen=True)
class RuleSet:
    """
    Rule configuration for a Ka Wu Xing table.
    """

    name: str = "Default"

    hand_size: int = 13

    seat_names: Tuple[str, str, str] = ("上家 · 老王", "下家 · 老李", "玩家")

    # The seat whose turns wait for an external choice. None = all bots.
    human_seat: Optional[Seat] = Seat.PLAYER

    claim_order: ClaimOrder = ClaimOrder.TURN_ORDER

    # Bots declare concealed / added kongs during their own turn
    bots_declare_kongs: bool = True

    # Bots take offered pong / kong claims (win claims are always taken)
    bots_claim_melds: bool = True

    # Check the replacement draw after any kong (declared or claimed) for a win
    recheck_win_after_kong: bool = False

    discard_weights: DiscardWeights = field(default_factory=DiscardWeights)

    def is_human(self, seat: Seat) -> bool:
        return self.human_seat is not None and seat == self.human_seat

    def seat_name(self, seat: Seat) -> str:
        return self.seat_names[int(seat)]

    def __repr__(self) -> str:
        return f"RuleSet({self.name})"


DEFAULT_RULES = RuleSet()

# Fixed seat-index scan, bots never declare kongs on their own turn
REFERENCE_RULES = RuleSet(
    name="Reference",
    claim_order=ClaimOrder.SEAT_INDEX,
    bots_declare_kongs=False,
)

# Three bots, used by simulations and benchmarks
SIMULATION_RULES = RuleSet(
    name="Simulation",
    human_seat=None,
)


def get_rules(name: str) -> RuleSet:
    """Get rule set by name"""
    presets = {
        "default": DEFAULT_RULES,
        "reference": REFERENCE_RULES,
        "simulation": SIMULATION_RULES,
    }
    if name.lower() not in presets:
        raise ValueError(f"Unknown rules: {name}. Choose from {list(presets.keys())}")
    return presets[name.lower()]
