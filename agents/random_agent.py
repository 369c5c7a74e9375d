"""
Baseline Agents for Ka Wu Xing Mahjong

Simple agents that act only on the action mask and tile counts of the
environment observation.
"""

import numpy as np
from typing import Dict


class MaskAgent:
    """
    Base for agents that choose among the indices set in the
    observation's `valid_actions` mask.

    Subclasses implement `_choose`; an empty mask always yields PASS.
    """

    ACTION_DISCARD_START = 0
    ACTION_CONCEALED_KONG_START = 21
    ACTION_ADD_KONG_START = 42
    ACTION_HU = 63
    ACTION_PONG = 64
    ACTION_KONG = 65
    ACTION_PASS = 66
    ACTION_DRAW = 67

    def __init__(self, seed: int = None):
        """
        Args:
            seed: Random seed for reproducibility
        """
        self.rng = np.random.default_rng(seed)

    def act(self, observation: Dict[str, np.ndarray]) -> int:
        """
        Select an action given the current observation.

        Args:
            observation: Dictionary observation from the environment

        Returns:
            Action index
        """
        valid_indices = np.where(observation["valid_actions"] == 1)[0]
        if len(valid_indices) == 0:
            return self.ACTION_PASS
        return self._choose(observation, valid_indices)

    def _choose(self, observation: Dict[str, np.ndarray], valid_indices: np.ndarray) -> int:
        raise NotImplementedError

    def predict(self, observation: Dict[str, np.ndarray], deterministic: bool = True):
        """
        Predict action (compatible with SB3 interface).

        Returns:
            Tuple of (action, state)
        """
        return self.act(observation), None

    def reset(self):
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class RandomAgent(MaskAgent):
    """
    Random agent that selects uniformly from valid actions.

    This serves as a baseline for comparison with trained agents.
    """

    def _choose(self, observation: Dict[str, np.ndarray], valid_indices: np.ndarray) -> int:
        return int(self.rng.choice(valid_indices))


class GreedyAgent(MaskAgent):
    """
    Greedy agent that takes every claim and win it is offered.

    Priority: Hu > Kong (claimed or declared) > Pong > Draw > Discard > Pass.
    Discards favour tiles with no neighbours and no copies.
    """

    def _choose(self, observation: Dict[str, np.ndarray], valid_indices: np.ndarray) -> int:
        valid_actions = observation["valid_actions"]

        for claim in (self.ACTION_HU, self.ACTION_KONG, self.ACTION_PONG):
            if valid_actions[claim] == 1:
                return claim

        declared_kongs = valid_indices[
            (valid_indices >= self.ACTION_CONCEALED_KONG_START) &
            (valid_indices < self.ACTION_HU)
        ]
        if len(declared_kongs) > 0:
            return int(declared_kongs[0])

        if valid_actions[self.ACTION_DRAW] == 1:
            return self.ACTION_DRAW

        discard_actions = valid_indices[valid_indices < self.ACTION_CONCEALED_KONG_START]
        if len(discard_actions) > 0:
            return self._smart_discard(observation["hand"], discard_actions)

        return self.ACTION_PASS

    def _smart_discard(self, hand: np.ndarray, discard_actions: np.ndarray) -> int:
        """Pick randomly among the three least valuable tiles"""
        ranked = sorted(discard_actions, key=lambda a: self._tile_value(hand, int(a) - self.ACTION_DISCARD_START))
        return int(self.rng.choice(ranked[:3]))

    def _tile_value(self, hand: np.ndarray, tile_idx: int) -> float:
        """
        Value of keeping a tile, higher is better to keep.
        """
        count = hand[tile_idx]
        value = count * 2.0

        # Dragons (indices 18-20) only ever form pongs
        if tile_idx >= 18:
            return value + (3.0 if count >= 2 else -1.0)

        suit_start = (tile_idx // 9) * 9
        num = tile_idx % 9

        if num in (0, 8):
            value -= 0.5
        for offset, bonus in ((1, 1.5), (2, 0.5)):
            if num - offset >= 0 and hand[suit_start + num - offset] > 0:
                value += bonus
            if num + offset <= 8 and hand[suit_start + num + offset] > 0:
                value += bonus

        return value
