"""
Ka Wu Xing Game Engine

Turn sequencing for three-player Ka Wu Xing Mahjong.

A hand is an immutable GameState. Every transition is a plain function
taking the current state and returning the next one; nothing is mutated
in place. Requests that are not legal in the current state (wrong seat,
wrong phase, tiles not held, claims not offered) return the input state
unchanged.

Turn flow per seat:
    DRAWING -> (self-drawn win?) -> DISCARDING -> (claim?) -> CLAIMING
            -> next seat DRAWING
"""

import logging
import random
from enum import IntEnum
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .tiles import Tile, TileSet
from .player import Meld, MeldType, PlayerState, Seat
from .wall import Wall, build_deck, shuffle_deck, deal_hands
from .hand import is_winning_hand
from .heuristics import choose_kong, discard_for_bot
from .claims import ActionType, PendingAction, find_claim
from .rules import RuleSet, DEFAULT_RULES

logger = logging.getLogger(__name__)

FIRST_SEAT = Seat.OPPONENT_1


class GamePhase(IntEnum):
    """Phases of the game"""
    DRAWING = 0      # Current seat draws a tile
    DISCARDING = 1   # Current seat must discard (or declare a kong)
    CLAIMING = 2     # One other seat may claim the discard
    GAME_OVER = 3


class WinType(IntEnum):
    SELF_DRAWN = 0   # 自摸
    ON_DISCARD = 1   # 点炮


@dataclass(frozen=True)
class Action:
    """
    Represents a seat's action.

    Attributes:
        action_type: Type of action
        seat: Seat taking the action
        tile: Tile involved (the discarded copy, the kong kind, the claimed tile)
    """
    action_type: ActionType
    seat: Seat
    tile: Optional[Tile] = None

    def __repr__(self) -> str:
        return f"Action({self.action_type.name}, {self.seat.name}, {self.tile})"


@dataclass(frozen=True)
class TurnRecord:
    """One entry of the hand's chronological history"""
    round_num: int
    seat: Seat
    action_type: ActionType
    tile: Optional[Tile] = None
    drawn_tile: Optional[Tile] = None


@dataclass(frozen=True)
class GameState:
    """
    Full state of one hand.

    Attributes:
        players: The three seats, indexed by Seat
        wall: Remaining tiles; front is the next draw
        current_turn: Seat holding the turn (the discarder while CLAIMING)
        phase: Current phase
        round_num: Rotation counter, +1 each time play wraps to the first seat
        history: Chronological turn records
        winner: Winning seat once finished (None for a drawn hand)
        winning_hand: Concealed tiles of the winning hand
        win_type: Self-drawn or on discard
        pending: The open claim while CLAIMING
        rules: Table configuration
    """
    players: Tuple[PlayerState, PlayerState, PlayerState]
    wall: Wall
    current_turn: Seat = FIRST_SEAT
    phase: GamePhase = GamePhase.DRAWING
    round_num: int = 1
    history: Tuple[TurnRecord, ...] = ()
    winner: Optional[Seat] = None
    winning_hand: Optional[Tuple[Tile, ...]] = None
    win_type: Optional[WinType] = None
    pending: Optional[PendingAction] = None
    rules: RuleSet = field(default=DEFAULT_RULES, repr=False)

    def player(self, seat: Seat) -> PlayerState:
        return self.players[seat]

    @property
    def is_finished(self) -> bool:
        return self.phase == GamePhase.GAME_OVER

    @property
    def is_drawn_game(self) -> bool:
        """Finished with no winner (流局)"""
        return self.is_finished and self.winner is None

    @property
    def deck(self) -> Tuple[Tile, ...]:
        return self.wall.tiles

    @property
    def acting_seat(self) -> Optional[Seat]:
        """The one seat expected to act next, None once finished"""
        if self.is_finished:
            return None
        if self.phase == GamePhase.CLAIMING and self.pending is not None:
            return self.pending.seat
        return self.current_turn

    @property
    def last_discard(self) -> Optional[TurnRecord]:
        """The most recent discard record"""
        for record in reversed(self.history):
            if record.action_type == ActionType.DISCARD:
                return record
        return None

    def __repr__(self) -> str:
        return (f"GameState(phase={self.phase.name}, turn={self.current_turn.name}, "
                f"round={self.round_num}, wall={self.wall.remaining})")


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def new_game(
    rules: RuleSet = DEFAULT_RULES,
    seed: Optional[int] = None,
    deck: Optional[Sequence[Tile]] = None,
) -> GameState:
    """
    Shuffle and deal a fresh hand.

    Args:
        rules: Table configuration
        seed: Random seed for the shuffle
        deck: Pre-arranged deck to deal from instead of shuffling

    Returns:
        GameState with FIRST_SEAT to draw
    """
    if deck is None:
        deck = shuffle_deck(build_deck(), random.Random(seed))

    hands, remaining = deal_hands(deck, len(Seat), rules.hand_size)
    players = tuple(
        PlayerState(seat=seat, name=rules.seat_name(seat)).with_hand(hands[seat])
        for seat in Seat
    )
    logger.debug(f"Dealt {len(Seat)} hands, {len(remaining)} tiles in the wall")
    return GameState(
        players=players,
        wall=Wall.from_tiles(remaining),
        current_turn=FIRST_SEAT,
        phase=GamePhase.DRAWING,
        round_num=1,
        rules=rules,
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _with_player(state: GameState, player: PlayerState, **changes) -> GameState:
    players = list(state.players)
    players[player.seat] = player
    return replace(state, players=tuple(players), **changes)


def _record(state: GameState, seat: Seat, action_type: ActionType,
            tile: Optional[Tile] = None, drawn_tile: Optional[Tile] = None) -> Tuple[TurnRecord, ...]:
    return state.history + (TurnRecord(state.round_num, seat, action_type, tile, drawn_tile),)


def _reject(state: GameState, reason: str) -> GameState:
    logger.debug(f"Rejected: {reason}")
    return state


def _finish_drawn(state: GameState) -> GameState:
    logger.info(f"Wall exhausted in round {state.round_num}: drawn hand")
    return replace(state, phase=GamePhase.GAME_OVER, pending=None, winner=None)


def _finish_win(state: GameState, seat: Seat, win_type: WinType) -> GameState:
    player = state.players[seat]
    logger.info(f"{player.name} wins ({win_type.name}) in round {state.round_num}: {TileSet(player.hand)}")
    return replace(
        state,
        phase=GamePhase.GAME_OVER,
        pending=None,
        current_turn=seat,
        winner=seat,
        winning_hand=player.sorted_hand(),
        win_type=win_type,
        history=_record(state, seat, ActionType.HU, player.last_drawn),
    )


def _advance_turn(state: GameState, from_seat: Seat) -> GameState:
    """Pass the turn to the next seat in rotation"""
    next_seat = from_seat.next()
    round_num = state.round_num + 1 if next_seat == FIRST_SEAT else state.round_num
    return replace(
        state,
        current_turn=next_seat,
        phase=GamePhase.DRAWING,
        pending=None,
        round_num=round_num,
    )


def _remove_copy(tiles: Sequence[Tile], tile: Tile) -> Optional[Tuple[Tile, ...]]:
    """Remove this exact physical tile, or None if it is not there"""
    for i in range(len(tiles) - 1, -1, -1):
        if tiles[i].same_copy(tile):
            return tuple(tiles[:i]) + tuple(tiles[i + 1:])
    return None


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def draw_tile(state: GameState, seat: Seat) -> GameState:
    """
    Draw from the front of the wall for the seat holding the turn.

    An empty wall ends the hand as a draw. A completed hand after the draw
    ends it as a self-drawn win. Otherwise the seat moves on to discarding.
    """
    if state.phase != GamePhase.DRAWING or seat != state.current_turn:
        return _reject(state, f"{seat.name} cannot draw in {state.phase.name}")

    if state.wall.is_empty:
        return _finish_drawn(state)

    tile, wall = state.wall.draw()
    player = state.players[seat]
    player = player.with_hand(player.hand + (tile,), last_drawn=tile)
    state = _with_player(
        state, player,
        wall=wall,
        phase=GamePhase.DISCARDING,
        history=_record(state, seat, ActionType.DRAW, tile),
    )
    logger.debug(f"{seat.name} draws {tile}, {wall.remaining} left")

    if is_winning_hand(player.hand, player.melds):
        return _finish_win(state, seat, WinType.SELF_DRAWN)
    return state


def discard_tile(state: GameState, seat: Seat, tile: Tile) -> GameState:
    """
    Discard a specific physical tile and check whether anyone may claim it.

    If a claim is possible the hand moves to CLAIMING with a PendingAction,
    otherwise the turn passes to the next seat.
    """
    if state.phase != GamePhase.DISCARDING or seat != state.current_turn:
        return _reject(state, f"{seat.name} cannot discard in {state.phase.name}")

    player = state.players[seat]
    if not player.owes_discard:
        return _reject(state, f"{seat.name} has no discard to make")

    hand = _remove_copy(player.hand, tile)
    if hand is None:
        return _reject(state, f"{seat.name} does not hold {tile!r}")

    drawn = player.last_drawn
    held = next(t for t in player.hand if t.same_copy(tile))
    player = player.with_hand(hand, discards=player.discards + (held,), last_drawn=None)
    state = _with_player(state, player, history=_record(state, seat, ActionType.DISCARD, held, drawn))
    logger.debug(f"{seat.name} discards {held}")

    pending = find_claim(
        state.players, seat, held, state.rules.claim_order,
        allow_kong=not state.wall.is_empty,
    )
    if pending is not None:
        return replace(state, phase=GamePhase.CLAIMING, pending=pending)
    return _advance_turn(state, seat)


def declare_kong(state: GameState, seat: Seat, tile: Tile) -> GameState:
    """
    Declare a concealed kong (four of a kind in hand) or upgrade an existing
    pong with the fourth tile, instead of discarding.

    A replacement tile is drawn from the back of the wall and the seat stays
    in DISCARDING. The replacement draw is only checked for a win when the
    rules ask for it.
    """
    if state.phase != GamePhase.DISCARDING or seat != state.current_turn:
        return _reject(state, f"{seat.name} cannot declare a kong in {state.phase.name}")
    if state.wall.is_empty:
        return _reject(state, "no replacement tile left for a kong")

    player = state.players[seat]
    if not player.owes_discard:
        return _reject(state, f"{seat.name} has no spare tile for a kong")

    tiles = player.tiles
    melds = list(player.melds)
    if tiles.count(tile) == 4:
        kong_tiles = tiles.take(tile, 4)
        hand = tiles.without(tile, 4)
        melds.append(Meld(MeldType.CONCEALED_KONG, tuple(kong_tiles)))
        action_type = ActionType.CONCEALED_KONG
    else:
        pong_idx = next(
            (i for i, m in enumerate(melds) if m.meld_type == MeldType.PONG and m.base_tile == tile),
            None,
        )
        if pong_idx is None or not tiles.contains(tile):
            return _reject(state, f"{seat.name} has no kong of {tile}")
        pong = melds[pong_idx]
        hand = tiles.without(tile, 1)
        melds[pong_idx] = Meld(
            MeldType.ADDED_KONG,
            pong.tiles + tuple(tiles.take(tile, 1)),
            source_player=pong.source_player,
            source_tile=pong.source_tile,
        )
        action_type = ActionType.ADD_KONG

    replacement, wall = state.wall.draw_replacement()
    player = player.with_hand(hand + (replacement,), melds=tuple(melds), last_drawn=replacement)
    state = _with_player(
        state, player,
        wall=wall,
        history=_record(state, seat, action_type, tile, replacement),
    )
    logger.debug(f"{seat.name} declares {action_type.name} of {tile}, replacement {replacement}")

    if state.rules.recheck_win_after_kong and is_winning_hand(player.hand, player.melds):
        return _finish_win(state, seat, WinType.SELF_DRAWN)
    return state


def resolve_claim(state: GameState, seat: Seat, action_type: ActionType) -> GameState:
    """
    Answer the pending claim.

    PASS: the turn advances from the discarder as if nobody could claim.
    HU: the claimant takes the tile and wins on the discard.
    PONG: two tiles from hand plus the discard form a pong; the claimant
        discards next without drawing.
    KONG: three tiles from hand plus the discard form a kong; the claimant
        draws a replacement from the back, then discards. The replacement
        is checked for a win only when the rules ask for it.
    """
    pending = state.pending
    if state.phase != GamePhase.CLAIMING or pending is None:
        return _reject(state, f"no claim pending for {seat.name}")
    if seat != pending.seat or not pending.allows(action_type):
        return _reject(state, f"{action_type.name} by {seat.name} not offered: {pending!r}")

    if action_type == ActionType.PASS:
        logger.debug(f"{seat.name} passes on {pending.tile}")
        return _advance_turn(state, pending.discarder)

    discarder = state.players[pending.discarder]
    pile = _remove_copy(discarder.discards, pending.tile)
    if pile is None:
        return _reject(state, f"{pending.tile!r} is no longer in {discarder.name}'s discards")

    claimant = state.players[seat]
    if action_type == ActionType.HU:
        claimant = claimant.with_hand(claimant.hand + (pending.tile,), last_drawn=pending.tile)
        state = _with_player(state, replace(discarder, discards=pile))
        return _finish_win(_with_player(state, claimant), seat, WinType.ON_DISCARD)

    needed = 2 if action_type == ActionType.PONG else 3
    tiles = claimant.tiles
    hand = tiles.without(pending.tile, needed)
    if hand is None:
        return _reject(state, f"{seat.name} lacks {needed} x {pending.tile}")
    if action_type == ActionType.KONG and state.wall.is_empty:
        return _reject(state, "no replacement tile left for a kong")

    meld = Meld(
        MeldType.PONG if action_type == ActionType.PONG else MeldType.KONG,
        tuple(tiles.take(pending.tile, needed)) + (pending.tile,),
        source_player=pending.discarder,
        source_tile=pending.tile,
    )
    wall = state.wall
    last_drawn = None
    if action_type == ActionType.KONG:
        last_drawn, wall = wall.draw_replacement()
        hand = hand + (last_drawn,)

    history = _record(state, seat, action_type, pending.tile, last_drawn)
    claimant = claimant.with_hand(hand, melds=claimant.melds + (meld,), last_drawn=last_drawn)
    state = _with_player(state, replace(discarder, discards=pile))
    logger.debug(f"{seat.name} claims {action_type.name} of {pending.tile} from {discarder.name}")
    state = _with_player(
        state, claimant,
        wall=wall,
        current_turn=seat,
        phase=GamePhase.DISCARDING,
        pending=None,
        history=history,
    )

    if (action_type == ActionType.KONG and state.rules.recheck_win_after_kong
            and is_winning_hand(claimant.hand, claimant.melds)):
        return _finish_win(state, seat, WinType.SELF_DRAWN)
    return state


# ---------------------------------------------------------------------------
# Dispatch and legal moves
# ---------------------------------------------------------------------------

def step(state: GameState, action: Action) -> GameState:
    """
    Apply an Action to the state.

    Args:
        state: Current state
        action: Action to apply

    Returns:
        The next state, or `state` itself if the action is not legal
    """
    if state.is_finished:
        return _reject(state, "game is already over")

    if action.action_type == ActionType.DRAW:
        return draw_tile(state, action.seat)
    elif action.action_type == ActionType.DISCARD:
        if action.tile is None:
            return _reject(state, "discard without a tile")
        return discard_tile(state, action.seat, action.tile)
    elif action.action_type in (ActionType.CONCEALED_KONG, ActionType.ADD_KONG):
        if action.tile is None:
            return _reject(state, "kong without a tile")
        return declare_kong(state, action.seat, action.tile)
    elif action.action_type in (ActionType.HU, ActionType.PONG, ActionType.KONG, ActionType.PASS):
        return resolve_claim(state, action.seat, action.action_type)

    return _reject(state, f"unknown action {action!r}")


def valid_actions(state: GameState, seat: Seat) -> List[Action]:
    """
    Get all legal actions for a seat in the current state.

    Discards are listed once per kind, using the first physical copy in
    canonical order.
    """
    valid = []
    if state.is_finished:
        return valid

    player = state.players[seat]

    if state.phase == GamePhase.DRAWING:
        if seat == state.current_turn:
            valid.append(Action(ActionType.DRAW, seat))

    elif state.phase == GamePhase.DISCARDING:
        if seat == state.current_turn and player.owes_discard:
            for tile in player.tiles.get_unique_tiles():
                valid.append(Action(ActionType.DISCARD, seat, tile))
            if not state.wall.is_empty:
                for tile in player.can_concealed_kong():
                    valid.append(Action(ActionType.CONCEALED_KONG, seat, tile))
                for tile in player.can_add_to_kong():
                    valid.append(Action(ActionType.ADD_KONG, seat, tile))

    elif state.phase == GamePhase.CLAIMING:
        pending = state.pending
        if pending is not None and seat == pending.seat:
            for option in pending.options:
                valid.append(Action(option, seat, pending.tile))

    return valid


# ---------------------------------------------------------------------------
# Non-human seats
# ---------------------------------------------------------------------------

def _bot_claim_response(state: GameState) -> ActionType:
    best = state.pending.best
    if best == ActionType.HU:
        return best
    if state.rules.bots_claim_melds:
        return best
    return ActionType.PASS


def _bot_discard(state: GameState, seat: Seat) -> GameState:
    """Optional kongs, then the heuristic discard"""
    if state.rules.bots_declare_kongs:
        while not state.is_finished and not state.wall.is_empty:
            tile = choose_kong(state.players[seat])
            if tile is None:
                break
            declared = declare_kong(state, seat, tile)
            if declared is state:
                break
            state = declared
        if state.is_finished:
            return state

    tile, _ = discard_for_bot(state.players[seat].hand, state.rules.discard_weights)
    return discard_tile(state, seat, tile)


def play_bot_turn(state: GameState) -> GameState:
    """
    Let a non-human seat make its next decision.

    - CLAIMING: answer the claim (always win, other claims per the rules);
      a successful pong or kong continues into that seat's discard.
    - DRAWING: draw, then (unless that won) discard.
    - DISCARDING: declare kongs if the rules allow, then discard.

    Returns the state unchanged when the seat to act is the human seat or
    the hand is over.
    """
    seat = state.acting_seat
    if seat is None or state.rules.is_human(seat):
        return state

    if state.phase == GamePhase.CLAIMING:
        state = resolve_claim(state, seat, _bot_claim_response(state))
        if state.phase != GamePhase.DISCARDING or state.current_turn != seat:
            return state
    elif state.phase == GamePhase.DRAWING:
        state = draw_tile(state, seat)
        if state.phase != GamePhase.DISCARDING:
            return state

    return _bot_discard(state, seat)


def run_bots(state: GameState, max_steps: int = 500) -> GameState:
    """
    Play non-human decisions until the human seat must act or the hand ends.
    """
    for _ in range(max_steps):
        seat = state.acting_seat
        if seat is None or state.rules.is_human(seat):
            return state
        next_state = play_bot_turn(state)
        if next_state is state:
            logger.warning(f"Bot at {seat.name} made no progress in {state.phase.name}")
            return state
        state = next_state
    return state


# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------

def count_tiles(state: GameState) -> int:
    """Tiles in hands, melds, discard piles and the wall"""
    total = state.wall.remaining
    for player in state.players:
        total += len(player.hand) + len(player.discards)
        total += sum(len(meld.tiles) for meld in player.melds)
    return total


def tile_conservation_holds(state: GameState) -> bool:
    """Every one of the 84 tiles is accounted for exactly once"""
    if count_tiles(state) != TileSet.NUM_TILES:
        return False
    ids = [t.id for t in state.wall.tiles]
    for player in state.players:
        ids.extend(t.id for t in player.hand)
        ids.extend(t.id for t in player.discards)
        for meld in player.melds:
            ids.extend(t.id for t in meld.tiles)
    return len(set(ids)) == TileSet.NUM_TILES


def public_view(state: GameState, seat: Seat) -> Dict[str, Any]:
    """
    What one seat may see: its own hand, everyone's discards and melds,
    the wall size and whose move it is.
    """
    player = state.players[seat]
    return {
        "seat": seat,
        "hand": player.sorted_hand(),
        "last_drawn": player.last_drawn,
        "melds": {p.seat: p.melds for p in state.players},
        "discards": {p.seat: p.discards for p in state.players},
        "hand_sizes": {p.seat: len(p.hand) for p in state.players},
        "wall_remaining": state.wall.remaining,
        "round_num": state.round_num,
        "phase": state.phase,
        "acting_seat": state.acting_seat,
        "pending": state.pending if state.pending is not None and state.pending.seat == seat else None,
        "valid_actions": valid_actions(state, seat),
    }
