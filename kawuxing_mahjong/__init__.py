"""
Ka Wu Xing Mahjong Game Engine
Three-player Hubei Ka Wu Xing (卡五星) Mahjong rules engine
"""

from .tiles import Tile, TileSuit, TileSet, DragonType
from .player import Seat, PlayerState, Meld, MeldType
from .wall import Wall
from .rules import RuleSet, ClaimOrder, DiscardWeights, DEFAULT_RULES
from .hand import is_winning_hand, waiting_tiles
from .heuristics import has_gap_five_potential, choose_discard
from .claims import ActionType, PendingAction, find_claim
from .game import (
    GameState,
    GamePhase,
    WinType,
    Action,
    TurnRecord,
    new_game,
    draw_tile,
    discard_tile,
    declare_kong,
    resolve_claim,
    step,
    valid_actions,
    play_bot_turn,
    run_bots,
)

__version__ = "0.1.0"
__all__ = [
    "Tile",
    "TileSuit",
    "TileSet",
    "DragonType",
    "Seat",
    "PlayerState",
    "Meld",
    "MeldType",
    "Wall",
    "RuleSet",
    "ClaimOrder",
    "DiscardWeights",
    "DEFAULT_RULES",
    "is_winning_hand",
    "waiting_tiles",
    "has_gap_five_potential",
    "choose_discard",
    "ActionType",
    "PendingAction",
    "find_claim",
    "GameState",
    "GamePhase",
    "WinType",
    "Action",
    "TurnRecord",
    "new_game",
    "draw_tile",
    "discard_tile",
    "declare_kong",
    "resolve_claim",
    "step",
    "valid_actions",
    "play_bot_turn",
    "run_bots",
]
