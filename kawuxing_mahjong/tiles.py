"""
Ka Wu Xing Tiles System

Defines the 84 tiles used in three-player Ka Wu Xing (卡五星) Mahjong:
- 9 Dots (筒) x4 = 36
- 9 Bamboos (条) x4 = 36
- 3 Dragons (中发白) x4 = 12
Total: 84 tiles

There are no Characters and no Winds in this variant.
"""

from enum import IntEnum
from dataclasses import dataclass
from typing import Iterable, List, Optional
import numpy as np


class TileSuit(IntEnum):
    """Tile categories, in canonical display order"""
    DOTS = 0     # 筒 (Tong) - Numbers 1-9
    BAMBOOS = 1  # 条 (Tiao) - Numbers 1-9
    DRAGONS = 2  # 箭 (Jian) - Red, Green, White


class DragonType(IntEnum):
    """Dragon tile types"""
    RED = 1    # 中 (Zhong)
    GREEN = 2  # 发 (Fa)
    WHITE = 3  # 白 (Bai)


NUMBERED_SUITS = (TileSuit.DOTS, TileSuit.BAMBOOS)

_SUIT_CHARS = {TileSuit.DOTS: "筒", TileSuit.BAMBOOS: "条"}
_SHORT_SUIT_CHARS = {"p": TileSuit.DOTS, "s": TileSuit.BAMBOOS}
_DRAGON_LABELS = {
    DragonType.RED: "红中",
    DragonType.GREEN: "发财",
    DragonType.WHITE: "白板",
}
_DRAGON_ALIASES = {
    "红中": DragonType.RED, "中": DragonType.RED, "C": DragonType.RED,
    "发财": DragonType.GREEN, "发": DragonType.GREEN, "F": DragonType.GREEN,
    "白板": DragonType.WHITE, "白": DragonType.WHITE, "P": DragonType.WHITE,
}


@dataclass(frozen=True)
class Tile:
    """
    Represents a single Ka Wu Xing tile.

    Attributes:
        suit: The category of the tile (Dots, Bamboos, Dragons)
        value: Rank within the category (1-9 for numbered suits, 1-3 for dragons)
        id: Identity of this physical copy (0-83). Only used to track a
            specific tile across reorderings; equality ignores it.
    """
    suit: TileSuit
    value: int
    id: int = 0

    def __post_init__(self):
        """Validate tile values"""
        if self.suit in NUMBERED_SUITS:
            if not 1 <= self.value <= 9:
                raise ValueError(f"Numbered suits must have value 1-9, got {self.value}")
        elif self.suit == TileSuit.DRAGONS:
            if not 1 <= self.value <= 3:
                raise ValueError(f"Dragon tiles must have value 1-3, got {self.value}")
        else:
            raise ValueError(f"Unknown suit: {self.suit}")

    @property
    def is_honor(self) -> bool:
        """Check if tile is an honor (dragon) tile"""
        return self.suit == TileSuit.DRAGONS

    @property
    def is_numbered(self) -> bool:
        return self.suit in NUMBERED_SUITS

    @property
    def kind(self) -> tuple:
        """(suit, value) pair; the only part of a tile rules look at"""
        return (self.suit, self.value)

    @property
    def tile_index(self) -> int:
        """
        Get unique index for this tile kind (0-20).
        Dots 0-8, Bamboos 9-17, Dragons 18-20.
        """
        if self.suit == TileSuit.DOTS:
            return self.value - 1
        elif self.suit == TileSuit.BAMBOOS:
            return 9 + self.value - 1
        return 18 + self.value - 1

    def same_copy(self, other: 'Tile') -> bool:
        """True if both refer to the same physical tile"""
        return self == other and self.id == other.id

    def __eq__(self, other) -> bool:
        """Two tiles are equal if they have same suit and value (ignoring instance id)"""
        if not isinstance(other, Tile):
            return False
        return self.suit == other.suit and self.value == other.value

    def __hash__(self) -> int:
        return hash((self.suit, self.value))

    def __lt__(self, other) -> bool:
        """Canonical order: dots, bamboos, then dragons; ascending rank"""
        if not isinstance(other, Tile):
            return NotImplemented
        if self.suit != other.suit:
            return self.suit < other.suit
        return self.value < other.value

    def __repr__(self) -> str:
        return f"Tile({self.suit.name}, {self.value}, #{self.id})"

    def __str__(self) -> str:
        if self.suit in NUMBERED_SUITS:
            return f"{self.value}{_SUIT_CHARS[self.suit]}"
        return _DRAGON_LABELS[DragonType(self.value)]

    @classmethod
    def from_index(cls, tile_index: int, instance_id: int = 0) -> 'Tile':
        """
        Create a tile from its kind index (0-20).

        Args:
            tile_index: Tile kind index (0-20)
            instance_id: Identity of the physical copy
        """
        if not 0 <= tile_index < TileSet.NUM_TILE_TYPES:
            raise ValueError(f"Tile index must be 0-20, got {tile_index}")
        if tile_index < 9:
            return cls(TileSuit.DOTS, tile_index + 1, instance_id)
        elif tile_index < 18:
            return cls(TileSuit.BAMBOOS, tile_index - 9 + 1, instance_id)
        return cls(TileSuit.DRAGONS, tile_index - 18 + 1, instance_id)

    @classmethod
    def from_string(cls, s: str, instance_id: int = 0) -> 'Tile':
        """
        Create tile from string representation.

        Args:
            s: String like "5筒", "9条", "红中", or the short forms "5p", "5s", "C"
            instance_id: Identity of the physical copy
        """
        s = s.strip()

        if len(s) == 2 and s[0].isdigit():
            value = int(s[0])
            if s[1] == "筒":
                return cls(TileSuit.DOTS, value, instance_id)
            if s[1] == "条":
                return cls(TileSuit.BAMBOOS, value, instance_id)
            if s[1] in _SHORT_SUIT_CHARS:
                return cls(_SHORT_SUIT_CHARS[s[1]], value, instance_id)

        if s in _DRAGON_ALIASES:
            return cls(TileSuit.DRAGONS, int(_DRAGON_ALIASES[s]), instance_id)

        raise ValueError(f"Cannot parse tile string: {s}")


def sort_tiles(tiles: Iterable[Tile]) -> List[Tile]:
    """
    Canonical display order. Stable, so copies keep their relative order.
    Never used for rule evaluation.
    """
    return sorted(tiles, key=lambda t: (t.suit, t.value, t.id))


class TileSet:
    """
    A read-only view over a collection of tiles with counting helpers.
    Used to analyse hands, melds and discard piles.
    """

    # Total number of unique tile kinds
    NUM_TILE_TYPES = 21
    # Total tiles in a complete set
    NUM_TILES = 84
    # Copies of each tile kind
    COPIES_PER_TYPE = 4

    def __init__(self, tiles: Optional[Iterable[Tile]] = None):
        self.tiles: tuple = tuple(tiles) if tiles else ()

    def contains(self, tile: Tile) -> bool:
        """Check if a tile of this kind is in the set"""
        return tile in self.tiles

    def contains_copy(self, tile: Tile) -> bool:
        """Check if this exact physical tile is in the set"""
        return any(t.same_copy(tile) for t in self.tiles)

    def count(self, tile: Tile) -> int:
        """Count occurrences of a tile kind"""
        return sum(1 for t in self.tiles if t == tile)

    def to_count_array(self) -> np.ndarray:
        """
        Convert to a 21-element array counting each tile kind.
        Useful for hand analysis and encoding.
        """
        counts = np.zeros(self.NUM_TILE_TYPES, dtype=np.int8)
        for tile in self.tiles:
            counts[tile.tile_index] += 1
        return counts

    def get_unique_tiles(self) -> List[Tile]:
        """One representative per kind, in canonical order"""
        seen = set()
        unique = []
        for tile in sort_tiles(self.tiles):
            if tile.kind not in seen:
                seen.add(tile.kind)
                unique.append(tile)
        return unique

    def without(self, tile: Tile, count: int = 1) -> Optional[tuple]:
        """
        Tiles with `count` copies of this kind removed, or None if there
        are not enough of them.
        """
        remaining = list(self.tiles)
        for _ in range(count):
            for i, t in enumerate(remaining):
                if t == tile:
                    remaining.pop(i)
                    break
            else:
                return None
        return tuple(remaining)

    def take(self, tile: Tile, count: int) -> List[Tile]:
        """The first `count` physical tiles of this kind"""
        return [t for t in self.tiles if t == tile][:count]

    @classmethod
    def create_full_set(cls) -> 'TileSet':
        """Create a complete set of 84 tiles"""
        tiles = []
        instance_id = 0

        for suit in NUMBERED_SUITS:
            for value in range(1, 10):
                for _ in range(cls.COPIES_PER_TYPE):
                    tiles.append(Tile(suit, value, instance_id))
                    instance_id += 1

        for dragon_type in DragonType:
            for _ in range(cls.COPIES_PER_TYPE):
                tiles.append(Tile(TileSuit.DRAGONS, int(dragon_type), instance_id))
                instance_id += 1

        return cls(tiles)

    def __len__(self) -> int:
        return len(self.tiles)

    def __iter__(self):
        return iter(self.tiles)

    def __getitem__(self, index):
        return self.tiles[index]

    def __repr__(self) -> str:
        return f"TileSet({len(self.tiles)} tiles)"

    def __str__(self) -> str:
        return " ".join(str(t) for t in sort_tiles(self.tiles))


# Convenience functions for creating specific tiles
def dot(value: int, instance_id: int = 0) -> Tile:
    """Create a Dots tile (1-9筒)"""
    return Tile(TileSuit.DOTS, value, instance_id)

def bam(value: int, instance_id: int = 0) -> Tile:
    """Create a Bamboos tile (1-9条)"""
    return Tile(TileSuit.BAMBOOS, value, instance_id)

def dragon(dragon_type: DragonType, instance_id: int = 0) -> Tile:
    """Create a Dragon tile (中发白)"""
    return Tile(TileSuit.DRAGONS, int(dragon_type), instance_id)


# Named dragon tiles
RED_DRAGON = Tile(TileSuit.DRAGONS, DragonType.RED)
GREEN_DRAGON = Tile(TileSuit.DRAGONS, DragonType.GREEN)
WHITE_DRAGON = Tile(TileSuit.DRAGONS, DragonType.WHITE)
