"""
Shared fixtures for the Ka Wu Xing tests.

Decks are stacked so that seat 0 gets the first 13 tiles, seat 1 the next
13, seat 2 the next 13, and the wall starts with `wall_front`.
"""

import sys
from pathlib import Path
from typing import List, Sequence

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from kawuxing_mahjong.tiles import Tile, DragonType, dot, bam, dragon
from kawuxing_mahjong.wall import build_deck

C = dragon(DragonType.RED)
F = dragon(DragonType.GREEN)
P = dragon(DragonType.WHITE)

# Thirteen unpaired, unconnected tiles per seat: nobody can claim or win
QUIET_HANDS = (
    [dot(1), dot(3), dot(5), dot(7), dot(9), bam(1), bam(3), bam(5), bam(7), bam(9), C, F, P],
    [dot(2), dot(4), dot(6), dot(8), bam(2), bam(4), bam(6), bam(8), C, F, P, dot(1), bam(9)],
    [dot(1), dot(3), dot(5), dot(7), dot(9), bam(2), bam(4), bam(6), bam(8), C, F, P, bam(5)],
)

# Waits on 5p only: 4p 6p | 123s | 789s | 222p | 88p
WAITING_ON_5P = [dot(4), dot(6), bam(1), bam(2), bam(3), bam(7), bam(8), bam(9),
                 dot(2), dot(2), dot(2), dot(8), dot(8)]


def stack_deck(hands: Sequence[Sequence[Tile]], wall_front: Sequence[Tile] = ()) -> List[Tile]:
    """Arrange the 84 real tiles so the deal produces `hands`"""
    pool = build_deck()

    def take(tile: Tile) -> Tile:
        for i, t in enumerate(pool):
            if t == tile:
                return pool.pop(i)
        raise AssertionError(f"No copy of {tile} left to stack")

    dealt = [take(t) for hand in hands for t in hand]
    front = [take(t) for t in wall_front]
    return dealt + front + pool


@pytest.fixture
def quiet_deck():
    return stack_deck(QUIET_HANDS)
