"""
Ka Wu Xing Wall Module

Handles the wall (tile pile): building, shuffling, dealing and drawing.

The wall is an immutable value. Every draw returns the drawn tile together
with a new Wall, so a game state holding a Wall never changes under the
caller's feet.
"""

import random
from typing import List, Optional, Sequence, Tuple
from dataclasses import dataclass, replace

from .tiles import Tile, TileSet

NUM_SEATS = 3
HAND_SIZE = 13


def build_deck() -> List[Tile]:
    """The canonical 84-tile deck, in build order"""
    return list(TileSet.create_full_set().tiles)


def shuffle_deck(deck: Sequence[Tile], rng: Optional[random.Random] = None) -> List[Tile]:
    """
    Uniform random permutation of the deck (Fisher-Yates via random.shuffle).
    The input is left untouched.
    """
    shuffled = list(deck)
    (rng or random).shuffle(shuffled)
    return shuffled


def deal_hands(
    deck: Sequence[Tile],
    num_players: int = NUM_SEATS,
    hand_size: int = HAND_SIZE,
) -> Tuple[List[List[Tile]], List[Tile]]:
    """
    Deal consecutive blocks of `hand_size` tiles to each player.

    Returns:
        Tuple of (hands, remaining deck)
    """
    hands = []
    for player_idx in range(num_players):
        start = player_idx * hand_size
        hands.append(list(deck[start:start + hand_size]))
    return hands, list(deck[num_players * hand_size:])


@dataclass(frozen=True)
class Wall:
    """
    Represents the live wall.

    Normal draws take from the front; quad replacement draws take from the
    back. Both come out of the same tuple, so the two ends never overlap.

    Attributes:
        tiles: Remaining tiles, front first
        dealt_count: Number of tiles drawn from the front
        replacement_count: Number of tiles drawn from the back
    """
    tiles: Tuple[Tile, ...] = ()
    dealt_count: int = 0
    replacement_count: int = 0

    @classmethod
    def from_tiles(cls, tiles: Sequence[Tile]) -> 'Wall':
        return cls(tiles=tuple(tiles))

    def draw(self) -> Tuple[Optional[Tile], 'Wall']:
        """
        Draw one tile from the front.
        Returns (None, self) if the wall is empty.
        """
        if not self.tiles:
            return None, self
        return self.tiles[0], replace(
            self, tiles=self.tiles[1:], dealt_count=self.dealt_count + 1
        )

    def draw_replacement(self) -> Tuple[Optional[Tile], 'Wall']:
        """
        Draw one tile from the back, used after a quad.
        Returns (None, self) if the wall is empty.
        """
        if not self.tiles:
            return None, self
        return self.tiles[-1], replace(
            self, tiles=self.tiles[:-1], replacement_count=self.replacement_count + 1
        )

    @property
    def remaining(self) -> int:
        """Number of tiles remaining in the wall"""
        return len(self.tiles)

    @property
    def is_empty(self) -> bool:
        return len(self.tiles) == 0

    def __len__(self) -> int:
        return len(self.tiles)

    def __repr__(self) -> str:
        return f"Wall({self.remaining} tiles remaining)"
