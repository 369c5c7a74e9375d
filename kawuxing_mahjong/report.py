"""
Discard Reports

Turns a discard into a flat record for an external commentary service
(the "coach" that comments on the human seat's play). The engine never
depends on the service: a slow or failing provider only costs the
commentary text.
"""

import json
import logging
from dataclasses import dataclass, asdict
from typing import Callable, Dict, List, Optional, Sequence

from .tiles import Tile, TileSet, sort_tiles
from .player import Seat
from .heuristics import has_gap_five_potential, breaks_gap_five_candidate
from .claims import ActionType
from .game import GameState

logger = logging.getLogger(__name__)

FALLBACK_COMMENTARY = "[评分: ?] 教练暂时不在线。"

CommentaryProvider = Callable[[Dict], str]


def _labels(tiles: Sequence[Tile]) -> List[str]:
    return [str(t) for t in sort_tiles(tiles)]


@dataclass(frozen=True)
class DiscardReport:
    """
    Everything the commentary service sees about one discard.

    Attributes:
        round_num: Rotation in which the discard happened
        hand_before: Hand before the discard
        discarded: The discarded tile
        hand_after: Hand after the discard
        own_discards: The seat's discard pile including this tile
        opponent_discards: Tiles visible in the other seats' piles
        elapsed_ms: How long the seat took to choose
        gap_five_before: Gap-five potential before the discard
        gap_five_after: Gap-five potential after the discard
        broke_gap_five_candidate: The discard was a numbered 4 or 6
        same_kind_in_hand: Copies of the discarded kind held before discarding
        wall_remaining: Tiles left in the wall
    """
    round_num: int
    hand_before: List[str]
    discarded: str
    hand_after: List[str]
    own_discards: List[str]
    opponent_discards: List[str]
    elapsed_ms: int
    gap_five_before: bool
    gap_five_after: bool
    broke_gap_five_candidate: bool
    same_kind_in_hand: int
    wall_remaining: int

    def to_payload(self) -> Dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), ensure_ascii=False, indent=2)


def build_discard_report(
    before: GameState,
    after: GameState,
    seat: Seat,
    elapsed_ms: int = 0,
) -> Optional[DiscardReport]:
    """
    Build the report for the discard that turned `before` into `after`.

    Returns None if the newest record in `after` is not a discard by
    `seat` (for example the discard was rejected).
    """
    if len(after.history) <= len(before.history):
        return None
    record = after.history[-1]
    if record.action_type != ActionType.DISCARD or record.seat != seat:
        return None

    tile = record.tile
    hand_before = before.players[seat].hand
    hand_after = after.players[seat].hand
    opponents = [p for p in after.players if p.seat != seat]

    return DiscardReport(
        round_num=record.round_num,
        hand_before=_labels(hand_before),
        discarded=str(tile),
        hand_after=_labels(hand_after),
        own_discards=[str(t) for t in after.players[seat].discards],
        opponent_discards=[str(t) for p in opponents for t in p.discards],
        elapsed_ms=int(elapsed_ms),
        gap_five_before=has_gap_five_potential(hand_before),
        gap_five_after=has_gap_five_potential(hand_after),
        broke_gap_five_candidate=breaks_gap_five_candidate(tile),
        same_kind_in_hand=TileSet(hand_before).count(tile),
        wall_remaining=after.wall.remaining,
    )


def request_commentary(report: DiscardReport, provider: Optional[CommentaryProvider]) -> str:
    """
    Ask the provider for commentary on a discard.
    Any failure is logged and replaced by a fallback line.
    """
    if provider is None:
        return FALLBACK_COMMENTARY
    try:
        text = provider(report.to_payload())
    except Exception as e:
        logger.error(f"Commentary provider failed: {e}")
        return FALLBACK_COMMENTARY
    if not text:
        return FALLBACK_COMMENTARY
    return text
