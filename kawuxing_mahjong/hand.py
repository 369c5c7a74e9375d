"""
Ka Wu Xing Hand Analysis

Winning-hand detection: a complete hand is one pair plus four groups,
where a group is a pong (three identical tiles) or a chow (three
consecutive ranks of one numbered suit). Declared melds count as groups.
Dragons never form chows.
"""

from typing import List, Sequence

import numpy as np

from .tiles import Tile, TileSet
from .player import Meld

WINNING_TILE_COUNT = 14
NUM_GROUPS = 4

# Kind indices 0-17 are numbered suits (9 per suit), 18-20 are dragons
_NUMBERED_KINDS = 18
_SUIT_SIZE = 9


def is_winning_hand(hand: Sequence[Tile], melds: Sequence[Meld] = ()) -> bool:
    """
    Check if a concealed hand plus declared melds forms a complete hand.

    The concealed hand size plus three per meld must equal 14; anything
    else is simply not a win.

    Args:
        hand: Concealed tiles
        melds: Declared melds belonging to the same seat

    Returns:
        True if the hand decomposes into one pair and four groups
    """
    if len(hand) + 3 * len(melds) != WINNING_TILE_COUNT:
        return False

    counts = TileSet(hand).to_count_array()
    return is_winning_counts(counts)


def is_winning_counts(counts: np.ndarray) -> bool:
    """
    Check a 21-element count array for pair + groups with nothing left over.
    The number of groups follows from the tile count.
    """
    if int(np.sum(counts)) % 3 != 2:
        return False

    working = [int(c) for c in counts]
    for idx in range(len(working)):
        if working[idx] < 2:
            continue
        # Try this kind as the pair
        working[idx] -= 2
        if _can_decompose(working):
            return True
        working[idx] += 2

    return False


def _can_decompose(counts: List[int]) -> bool:
    """
    Recursively check if the remaining tiles split into pongs and chows.
    Works on the first remaining kind; `counts` is restored on return.
    """
    first_idx = -1
    for i, count in enumerate(counts):
        if count > 0:
            first_idx = i
            break

    if first_idx == -1:
        return True

    # Try Pong
    if counts[first_idx] >= 3:
        counts[first_idx] -= 3
        found = _can_decompose(counts)
        counts[first_idx] += 3
        if found:
            return True

    # Try Chow - only for numbered suits, starting at rank 1-7
    if first_idx < _NUMBERED_KINDS and first_idx % _SUIT_SIZE <= 6:
        idx1, idx2, idx3 = first_idx, first_idx + 1, first_idx + 2
        if counts[idx2] >= 1 and counts[idx3] >= 1:
            counts[idx1] -= 1
            counts[idx2] -= 1
            counts[idx3] -= 1
            found = _can_decompose(counts)
            counts[idx1] += 1
            counts[idx2] += 1
            counts[idx3] += 1
            if found:
                return True

    return False


def can_win_with(hand: Sequence[Tile], melds: Sequence[Meld], tile: Tile) -> bool:
    """Check if adding `tile` to the hand completes it"""
    return is_winning_hand(tuple(hand) + (tile,), melds)


def waiting_tiles(hand: Sequence[Tile], melds: Sequence[Meld] = ()) -> List[Tile]:
    """
    Kinds that would complete a hand one tile short of winning.
    Kinds already held four times (hand + melds) are excluded.
    """
    if len(hand) + 3 * len(melds) != WINNING_TILE_COUNT - 1:
        return []

    counts = TileSet(hand).to_count_array()
    for meld in melds:
        counts[meld.base_tile.tile_index] += len(meld.tiles)

    waits = []
    for idx in range(TileSet.NUM_TILE_TYPES):
        if counts[idx] >= TileSet.COPIES_PER_TYPE:
            continue
        tile = Tile.from_index(idx)
        if can_win_with(hand, melds, tile):
            waits.append(tile)
    return waits


def is_tenpai(hand: Sequence[Tile], melds: Sequence[Meld] = ()) -> bool:
    """True if some tile would complete the hand"""
    return len(waiting_tiles(hand, melds)) > 0
