"""
Ka Wu Xing Discard Heuristic

Greedy single-ply tile scoring used by the non-human seats. Each tile in
hand gets a desirability score; the lowest-scoring tile is discarded.
It does not look ahead and does not model opponents.

Also home to the gap-five (卡五星) helpers: holding the 4 and the 6 of a
numbered suit so the 5 can later complete the run.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from .tiles import Tile, TileSet, NUMBERED_SUITS, sort_tiles
from .player import PlayerState
from .rules import DiscardWeights

GAP_FIVE_RANKS = (4, 6)


def has_gap_five_potential(hand: Sequence[Tile]) -> bool:
    """True if the hand holds both the 4 and the 6 of some numbered suit"""
    for suit in NUMBERED_SUITS:
        values = {t.value for t in hand if t.suit == suit}
        if 4 in values and 6 in values:
            return True
    return False


def breaks_gap_five_candidate(tile: Tile) -> bool:
    """True if the tile is a numbered 4 or 6"""
    return tile.is_numbered and tile.value in GAP_FIVE_RANKS


def _completes_gap_five(tile: Tile, hand: Sequence[Tile]) -> bool:
    """A 4 or 6 whose partner (6 or 4 of the same suit) is also in hand"""
    if not breaks_gap_five_candidate(tile):
        return False
    partner = 10 - tile.value
    return any(t.suit == tile.suit and t.value == partner for t in hand)


def score_tile(tile: Tile, hand: Sequence[Tile], weights: Optional[DiscardWeights] = None) -> int:
    """
    Desirability of keeping `tile` in `hand`. Higher means more useful.

    - every copy of the kind in hand (pairs and pongs score high)
    - a same-suit neighbor one rank away, and another two ranks away
    - a 4 or 6 held together with its partner (gap-five)
    - a flat baseline for dragons, which only ever form pongs
    """
    weights = weights or DiscardWeights()
    score = TileSet(hand).count(tile) * weights.per_copy

    if tile.is_honor:
        return score + weights.dragon

    same_suit = [t.value for t in hand if t.suit == tile.suit]
    if any(abs(v - tile.value) == 1 for v in same_suit):
        score += weights.neighbor_1
    if any(abs(v - tile.value) == 2 for v in same_suit):
        score += weights.neighbor_2
    if _completes_gap_five(tile, hand):
        score += weights.gap_five

    return score


def score_hand(hand: Sequence[Tile], weights: Optional[DiscardWeights] = None) -> Dict[int, int]:
    """Scores keyed by tile_index, one entry per kind in hand"""
    return {t.tile_index: score_tile(t, hand, weights) for t in TileSet(hand).get_unique_tiles()}


def choose_discard(hand: Sequence[Tile], weights: Optional[DiscardWeights] = None) -> Tile:
    """
    Pick the least valuable tile. Ties go to the first tile in canonical
    order, so the choice is deterministic for a given hand.
    """
    if not hand:
        raise ValueError("Cannot choose a discard from an empty hand")
    ordered = sort_tiles(hand)
    return min(ordered, key=lambda t: score_tile(t, hand, weights))


def discard_for_bot(
    hand: Sequence[Tile],
    weights: Optional[DiscardWeights] = None,
) -> Tuple[Tile, Tuple[Tile, ...]]:
    """
    Pick a discard and return it with the remaining hand.

    Returns:
        Tuple of (discarded tile, hand without that physical tile)
    """
    discarded = choose_discard(hand, weights)
    remaining = tuple(t for t in hand if not t.same_copy(discarded))
    return discarded, remaining


def choose_kong(player: PlayerState) -> Optional[Tile]:
    """
    Kong a bot would declare on its own turn, if any.
    Concealed kongs first, then pong upgrades, canonical order within each.
    """
    concealed = player.can_concealed_kong()
    if concealed:
        return concealed[0]
    added = sort_tiles(player.can_add_to_kong())
    if added:
        return added[0]
    return None


def rank_discards(hand: Sequence[Tile], weights: Optional[DiscardWeights] = None) -> List[Tuple[Tile, int]]:
    """Kinds in hand with their scores, cheapest first"""
    unique = TileSet(hand).get_unique_tiles()
    scored = [(t, score_tile(t, hand, weights)) for t in unique]
    return sorted(scored, key=lambda item: item[1])
