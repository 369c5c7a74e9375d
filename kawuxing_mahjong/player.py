"""
Ka Wu Xing Player Module

Seat identities, declared melds and the per-seat state carried by a game.
All values here are immutable; updates go through dataclasses.replace.
"""

from enum import IntEnum
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple
import numpy as np

from .tiles import Tile, TileSet, sort_tiles


class Seat(IntEnum):
    """
    The three fixed roles, in turn order.
    Play starts with OPPONENT_1 and the round counter ticks when the
    rotation wraps back to it.
    """
    OPPONENT_1 = 0  # 上家
    OPPONENT_2 = 1  # 下家
    PLAYER = 2      # the human seat by default

    def next(self) -> 'Seat':
        return Seat((self + 1) % len(Seat))


class MeldType(IntEnum):
    """Types of melds a seat can declare"""
    PONG = 0            # 碰 - 3 identical tiles, claimed from a discard
    KONG = 1            # 明杠 - 4 identical tiles, claimed from a discard
    CONCEALED_KONG = 2  # 暗杠 - 4 identical tiles drawn by the owner
    ADDED_KONG = 3      # 加杠 - a pong upgraded with a self-drawn fourth tile


KONG_TYPES = (MeldType.KONG, MeldType.CONCEALED_KONG, MeldType.ADDED_KONG)


@dataclass(frozen=True)
class Meld:
    """
    Represents a declared meld.

    Attributes:
        meld_type: Type of meld
        tiles: Tiles in the meld
        source_player: Seat the claimed tile came from (None for concealed kongs)
        source_tile: The tile that was claimed to form this meld
    """
    meld_type: MeldType
    tiles: Tuple[Tile, ...]
    source_player: Optional[Seat] = None
    source_tile: Optional[Tile] = None

    def __post_init__(self):
        """Validate meld"""
        expected = 3 if self.meld_type == MeldType.PONG else 4
        if len(self.tiles) != expected:
            raise ValueError(f"{self.meld_type.name} must have exactly {expected} tiles")
        if not all(t == self.tiles[0] for t in self.tiles):
            raise ValueError(f"{self.meld_type.name} tiles must be identical")
        if self.meld_type == MeldType.CONCEALED_KONG and self.source_player is not None:
            raise ValueError("Concealed kong cannot have a source player")

    @property
    def base_tile(self) -> Tile:
        return self.tiles[0]

    @property
    def is_kong(self) -> bool:
        return self.meld_type in KONG_TYPES

    @property
    def is_concealed(self) -> bool:
        return self.meld_type == MeldType.CONCEALED_KONG

    def __str__(self) -> str:
        tiles_str = " ".join(str(t) for t in sort_tiles(self.tiles))
        concealed = "暗" if self.is_concealed else "明"
        return f"[{concealed}{self.meld_type.name}: {tiles_str}]"


@dataclass(frozen=True)
class PlayerState:
    """
    One seat's view of a hand.

    Attributes:
        seat: Which of the three roles this is
        name: Display name
        hand: Concealed tiles. Order is for display only.
        discards: Discarded tiles, oldest first. Claimed tiles are removed.
        melds: Declared melds
        last_drawn: The most recently drawn tile, for highlighting
    """
    seat: Seat
    name: str
    hand: Tuple[Tile, ...] = ()
    discards: Tuple[Tile, ...] = ()
    melds: Tuple[Meld, ...] = ()
    last_drawn: Optional[Tile] = None

    @property
    def tiles(self) -> TileSet:
        return TileSet(self.hand)

    @property
    def owes_discard(self) -> bool:
        """True when the concealed hand is at draw/claim parity (2 mod 3)"""
        return (len(self.hand) + 3 * len(self.melds)) % 3 == 2

    def can_pong(self, tile: Tile) -> bool:
        return self.tiles.count(tile) >= 2

    def can_kong(self, tile: Tile) -> bool:
        """Kong from a discard needs three matching tiles in hand"""
        return self.tiles.count(tile) >= 3

    def can_concealed_kong(self) -> List[Tile]:
        """Kinds held four times in the concealed hand"""
        counts = self.tiles.to_count_array()
        return [Tile.from_index(idx) for idx, count in enumerate(counts) if count == 4]

    def can_add_to_kong(self) -> List[Tile]:
        """Kinds that can upgrade an existing pong"""
        return [
            meld.base_tile for meld in self.melds
            if meld.meld_type == MeldType.PONG and meld.base_tile in self.hand
        ]

    def get_hand_count_array(self) -> np.ndarray:
        return self.tiles.to_count_array()

    def get_discards_count_array(self) -> np.ndarray:
        return TileSet(self.discards).to_count_array()

    def sorted_hand(self) -> Tuple[Tile, ...]:
        return tuple(sort_tiles(self.hand))

    def with_hand(self, hand, **changes) -> 'PlayerState':
        """Copy with a new hand, kept in canonical display order"""
        return replace(self, hand=tuple(sort_tiles(hand)), **changes)

    def __str__(self) -> str:
        melds_str = " | ".join(str(m) for m in self.melds) if self.melds else "None"
        return f"{self.name}: Hand[{TileSet(self.hand)}] Melds[{melds_str}]"
