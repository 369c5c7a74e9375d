"""
Heuristic Agent for Ka Wu Xing Mahjong

A rule-based agent built on the same discard scoring the engine's
non-human seats use. Provides a reasonable baseline for training.

Features:
- Always takes a win
- Takes pong / kong claims unless doing so gives up a waiting hand
- Declares kongs on its own turn
- Discards the lowest-scoring tile, holding on to gap-five shapes
"""

import sys
from pathlib import Path
from typing import Dict, List, Optional
import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from kawuxing_mahjong.tiles import Tile, TileSet
from kawuxing_mahjong.player import Seat
from kawuxing_mahjong.claims import ActionType
from kawuxing_mahjong.rules import DiscardWeights
from kawuxing_mahjong.hand import is_tenpai
from kawuxing_mahjong.heuristics import choose_discard
from kawuxing_mahjong.game import Action, GameState


class HeuristicAgent:
    """
    Heuristic-based Ka Wu Xing agent.

    Works either on the engine directly (`get_action`) or on environment
    observations (`act` / `predict`).
    """

    ACTION_DISCARD_START = 0
    ACTION_CONCEALED_KONG_START = 21
    ACTION_ADD_KONG_START = 42
    ACTION_HU = 63
    ACTION_PONG = 64
    ACTION_KONG = 65
    ACTION_PASS = 66
    ACTION_DRAW = 67

    def __init__(self, weights: Optional[DiscardWeights] = None, keep_waiting_hand: bool = True):
        """
        Initialize heuristic agent.

        Args:
            weights: Discard scoring weights
            keep_waiting_hand: Pass on pong / kong claims while the hand is
                already one tile from winning
        """
        self.weights = weights or DiscardWeights()
        self.keep_waiting_hand = keep_waiting_hand

    def get_action(self, state: GameState, seat: Seat, valid_actions: List[Action]) -> Action:
        """
        Select best action based on heuristics.

        Args:
            state: Current game state
            seat: Seat this agent plays
            valid_actions: Legal actions for the seat

        Returns:
            Selected action
        """
        if not valid_actions:
            return Action(ActionType.PASS, seat)

        by_type: Dict[ActionType, List[Action]] = {}
        for action in valid_actions:
            by_type.setdefault(action.action_type, []).append(action)

        if ActionType.HU in by_type:
            return by_type[ActionType.HU][0]

        player = state.players[seat]
        for claim in (ActionType.KONG, ActionType.PONG):
            if claim in by_type:
                if self.keep_waiting_hand and is_tenpai(player.hand, player.melds):
                    break
                return by_type[claim][0]

        if ActionType.PASS in by_type:
            return by_type[ActionType.PASS][0]

        if ActionType.DRAW in by_type:
            return by_type[ActionType.DRAW][0]

        for kong in (ActionType.CONCEALED_KONG, ActionType.ADD_KONG):
            if kong in by_type:
                return by_type[kong][0]

        discards = by_type.get(ActionType.DISCARD, [])
        if discards:
            tile = choose_discard(player.hand, self.weights)
            for action in discards:
                if action.tile == tile:
                    return action
            return discards[0]

        return valid_actions[0]

    def act(self, observation: Dict[str, np.ndarray]) -> int:
        """
        Select an action index from an environment observation.

        The hand is rebuilt from its kind counts; physical ids do not matter
        for scoring.
        """
        valid = observation["valid_actions"]
        valid_indices = np.where(valid == 1)[0]
        if len(valid_indices) == 0:
            return self.ACTION_PASS

        if valid[self.ACTION_HU] == 1:
            return self.ACTION_HU

        hand = self._hand_from_counts(observation["hand"])
        waiting = bool(observation["game_info"][7])
        for claim in (self.ACTION_KONG, self.ACTION_PONG):
            if valid[claim] == 1 and not (self.keep_waiting_hand and waiting):
                return claim

        if valid[self.ACTION_PASS] == 1:
            return self.ACTION_PASS
        if valid[self.ACTION_DRAW] == 1:
            return self.ACTION_DRAW

        kongs = valid_indices[
            (valid_indices >= self.ACTION_CONCEALED_KONG_START) &
            (valid_indices < self.ACTION_HU)
        ]
        if len(kongs) > 0:
            return int(kongs[0])

        discards = valid_indices[valid_indices < self.ACTION_CONCEALED_KONG_START]
        if len(discards) > 0 and hand:
            idx = self.ACTION_DISCARD_START + choose_discard(hand, self.weights).tile_index
            if valid[idx] == 1:
                return idx
            return int(discards[0])

        return int(valid_indices[0])

    def predict(self, observation: Dict[str, np.ndarray], deterministic: bool = True):
        """Predict action (SB3 interface compatible)."""
        return self.act(observation), None

    def reset(self):
        pass

    @staticmethod
    def _hand_from_counts(counts: np.ndarray) -> List[Tile]:
        hand = []
        for idx in range(TileSet.NUM_TILE_TYPES):
            for copy in range(int(counts[idx])):
                hand.append(Tile.from_index(idx, idx * TileSet.COPIES_PER_TYPE + copy))
        return hand

    def __repr__(self) -> str:
        return "HeuristicAgent()"


def create_heuristic_policy(weights: Optional[DiscardWeights] = None):
    """
    Create a heuristic policy function for use in environments.

    Returns a function that takes (state, seat, valid_actions) and returns an action.
    """
    agent = HeuristicAgent(weights=weights)

    def policy(state: GameState, seat: Seat, valid_actions: List[Action]) -> Action:
        return agent.get_action(state, seat, valid_actions)

    return policy
