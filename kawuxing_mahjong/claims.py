"""
Ka Wu Xing Claim Resolution

After every discard, decides whether another seat may take the tile and
with what action. Priority is strict: a win beats a kong, a kong beats a
pong. Exactly one seat is offered the tile.
"""

import logging
from enum import IntEnum
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .tiles import Tile
from .player import PlayerState, Seat
from .hand import can_win_with
from .rules import ClaimOrder

logger = logging.getLogger(__name__)


class ActionType(IntEnum):
    """Types of actions a seat can take"""
    DRAW = 0            # Draw a tile
    DISCARD = 1         # Discard a tile
    PONG = 2            # Claim a discard for a pong (碰)
    KONG = 3            # Claim a discard for a kong (明杠)
    CONCEALED_KONG = 4  # Declare a concealed kong (暗杠)
    ADD_KONG = 5        # Add to an existing pong (加杠)
    HU = 6              # Declare a win (胡)
    PASS = 7            # Pass on a claim


# Highest priority first
CLAIM_PRIORITY = (ActionType.HU, ActionType.KONG, ActionType.PONG)


@dataclass(frozen=True)
class PendingAction:
    """
    A contestable discard waiting for one seat's answer.

    Attributes:
        seat: Seat holding the right to respond
        options: Legal responses, best first, always ending with PASS
        tile: The discarded tile
        discarder: Seat that discarded it
    """
    seat: Seat
    options: Tuple[ActionType, ...]
    tile: Tile
    discarder: Seat

    def allows(self, action_type: ActionType) -> bool:
        return action_type in self.options

    @property
    def best(self) -> ActionType:
        return self.options[0]

    def __repr__(self) -> str:
        names = ", ".join(o.name for o in self.options)
        return f"PendingAction({self.seat.name}: {names} on {self.tile} from {self.discarder.name})"


def claim_scan_order(discarder: Seat, order: ClaimOrder = ClaimOrder.TURN_ORDER) -> List[Seat]:
    """Seats other than the discarder, in the order they are checked"""
    if order == ClaimOrder.SEAT_INDEX:
        return [s for s in Seat if s != discarder]
    seats = []
    seat = discarder.next()
    while seat != discarder:
        seats.append(seat)
        seat = seat.next()
    return seats


def qualifies(player: PlayerState, tile: Tile, action_type: ActionType) -> bool:
    """Check whether a seat may claim `tile` with `action_type`"""
    if action_type == ActionType.HU:
        return can_win_with(player.hand, player.melds, tile)
    if action_type == ActionType.KONG:
        return player.can_kong(tile)
    if action_type == ActionType.PONG:
        return player.can_pong(tile)
    raise ValueError(f"{action_type.name} is not a claim")


def find_claim(
    players: Sequence[PlayerState],
    discarder: Seat,
    tile: Tile,
    order: ClaimOrder = ClaimOrder.TURN_ORDER,
    allow_kong: bool = True,
) -> Optional[PendingAction]:
    """
    Find the one seat that may respond to a discard.

    Every priority level is checked across all other seats before moving
    to the next, so a win anywhere beats a kong or pong elsewhere. Within
    a level the first seat in scan order wins.

    Args:
        players: The three PlayerStates, indexed by Seat
        discarder: Seat that just discarded
        tile: The discarded tile
        order: How seats are scanned within a priority level
        allow_kong: False when no replacement tile is left; a seat holding
            three copies is then offered a pong instead

    Returns:
        PendingAction, or None if nobody can claim
    """
    candidates = claim_scan_order(discarder, order)
    for action_type in CLAIM_PRIORITY:
        if action_type == ActionType.KONG and not allow_kong:
            continue
        for seat in candidates:
            if qualifies(players[seat], tile, action_type):
                logger.debug(f"{seat.name} may {action_type.name} {tile} from {discarder.name}")
                return PendingAction(
                    seat=seat,
                    options=(action_type, ActionType.PASS),
                    tile=tile,
                    discarder=discarder,
                )
    return None
