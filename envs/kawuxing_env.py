"""
Ka Wu Xing Mahjong Gymnasium Environment

A Gymnasium-compatible environment for training RL agents on the
three-player Ka Wu Xing engine. The agent plays the human seat.
"""

import gymnasium as gym
from gymnasium import spaces
import numpy as np
from typing import Dict, List, Optional, Tuple, Any

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kawuxing_mahjong.tiles import TileSet
from kawuxing_mahjong.player import Seat
from kawuxing_mahjong.claims import ActionType
from kawuxing_mahjong.rules import RuleSet, DEFAULT_RULES, get_rules
from kawuxing_mahjong.hand import is_tenpai
from kawuxing_mahjong.heuristics import has_gap_five_potential
from kawuxing_mahjong.game import (
    Action, GameState, new_game, run_bots, step, valid_actions,
)

NUM_TILE_TYPES = TileSet.NUM_TILE_TYPES
NUM_SEATS = len(Seat)


class KawuxingEnv(gym.Env):
    """
    Ka Wu Xing Mahjong Environment for Reinforcement Learning.

    The agent controls `rules.human_seat`; the other two seats are played
    by the engine's heuristic bots or by a random policy.

    Observation Space:
        A dictionary containing:
        - hand: (21,) int8 - Count of each tile kind in hand
        - melds: (3, 4, 21) int8 - Melds for each seat (max 4 melds, 21 kind counts)
        - discards: (3, 21) int8 - Discard pile counts for each seat
        - last_discard: (21,) int8 - One-hot encoding of the latest discard
        - valid_actions: (68,) int8 - Binary mask of valid actions
        - game_info: (8,) float32 - [current_turn, phase, round_num, seat,
                                     wall_remaining, is_my_turn, gap_five, tenpai]

    Action Space:
        Discrete(68):
        - 0-20: Discard tile kind 0-20
        - 21-41: Concealed Kong tile kind 0-20
        - 42-62: Add to Kong tile kind 0-20
        - 63: Declare Hu (win on discard)
        - 64: Pong the discard
        - 65: Kong the discard
        - 66: Pass
        - 67: Draw
    """

    metadata = {"render_modes": ["human", "ansi"], "render_fps": 1}

    ACTION_DISCARD_START = 0
    ACTION_CONCEALED_KONG_START = 21
    ACTION_ADD_KONG_START = 42
    ACTION_HU = 63
    ACTION_PONG = 64
    ACTION_KONG = 65
    ACTION_PASS = 66
    ACTION_DRAW = 67
    NUM_ACTIONS = 68

    def __init__(
        self,
        rules: Any = DEFAULT_RULES,
        opponent_policy: str = "heuristic",
        seed: Optional[int] = None,
        render_mode: Optional[str] = None,
        reward_shaping: bool = True,
    ):
        """
        Initialize the Ka Wu Xing environment.

        Args:
            rules: RuleSet, or a preset name ("default", "reference")
            opponent_policy: Policy for the bot seats ("heuristic" or "random")
            seed: Random seed for reproducibility
            render_mode: Rendering mode ("human" or "ansi")
            reward_shaping: Whether to use reward shaping
        """
        super().__init__()

        self.rules: RuleSet = get_rules(rules) if isinstance(rules, str) else rules
        if self.rules.human_seat is None:
            raise ValueError("KawuxingEnv needs a rule set with a human seat")
        self.seat: Seat = self.rules.human_seat
        self.opponent_policy = opponent_policy
        self.render_mode = render_mode
        self.reward_shaping = reward_shaping
        self._seed = seed

        self.observation_space = spaces.Dict({
            "hand": spaces.Box(low=0, high=4, shape=(NUM_TILE_TYPES,), dtype=np.int8),
            "melds": spaces.Box(low=0, high=4, shape=(NUM_SEATS, 4, NUM_TILE_TYPES), dtype=np.int8),
            "discards": spaces.Box(low=0, high=4, shape=(NUM_SEATS, NUM_TILE_TYPES), dtype=np.int8),
            "last_discard": spaces.Box(low=0, high=1, shape=(NUM_TILE_TYPES,), dtype=np.int8),
            "valid_actions": spaces.Box(low=0, high=1, shape=(self.NUM_ACTIONS,), dtype=np.int8),
            "game_info": spaces.Box(low=-1, high=200, shape=(8,), dtype=np.float32),
        })

        self.action_space = spaces.Discrete(self.NUM_ACTIONS)

        self.state: Optional[GameState] = None
        self._episode_reward = 0.0
        self._episode_length = 0

    def reset(
        self,
        seed: Optional[int] = None,
        options: Optional[Dict] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict]:
        """
        Reset the environment to start a new hand.

        Args:
            seed: Random seed
            options: Additional options (unused)

        Returns:
            Tuple of (observation, info)
        """
        if seed is None and self._seed is not None:
            seed, self._seed = self._seed, None
        super().reset(seed=seed)

        self._episode_reward = 0.0
        self._episode_length = 0

        # Redeal if the bots finish the hand before the agent ever acts
        for _ in range(10):
            game_seed = int(self.np_random.integers(0, 2**31 - 1))
            self.state = self._run_opponents(new_game(self.rules, seed=game_seed))
            if not self.state.is_finished:
                break

        return self._get_observation(), self._get_info()

    def step(self, action: int) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict]:
        """
        Take a step in the environment.

        Args:
            action: Action index from action space

        Returns:
            Tuple of (observation, reward, terminated, truncated, info)
        """
        if self.state.is_finished:
            return self._get_observation(), 0.0, True, False, self._get_info()

        self._episode_length += 1
        action_map = self._valid_action_map()

        if int(action) in action_map:
            game_action = action_map[int(action)]
            reward = 0.0
        else:
            # Invalid action - apply penalty and substitute a random valid one
            reward = -1.0
            if not action_map:
                return self._get_observation(), reward, False, False, self._get_info()
            keys = sorted(action_map)
            game_action = action_map[keys[int(self.np_random.integers(len(keys)))]]

        before = self.state
        self.state = step(self.state, game_action)

        if self.reward_shaping and not self.state.is_finished:
            reward += self._calculate_shaping_reward(before, game_action)

        self.state = self._run_opponents(self.state)

        terminated = self.state.is_finished
        if terminated:
            reward += self._outcome_reward()
        truncated = self._episode_length > 500

        self._episode_reward += reward
        obs = self._get_observation()
        info = self._get_info()

        if terminated or truncated:
            info["episode"] = {
                "r": self._episode_reward,
                "l": self._episode_length,
                "winner": self.state.winner,
            }

        return obs, reward, terminated, truncated, info

    def _outcome_reward(self) -> float:
        if self.state.winner is None:
            return 0.0
        return 1.0 if self.state.winner == self.seat else -1.0

    def _calculate_shaping_reward(self, before: GameState, action: Action) -> float:
        """Small bonuses for claims and for holding on to a gap-five shape"""
        reward = 0.0
        if action.action_type == ActionType.PONG:
            reward += 0.05
        elif action.action_type in (ActionType.KONG, ActionType.CONCEALED_KONG, ActionType.ADD_KONG):
            reward += 0.1
        elif action.action_type == ActionType.DISCARD:
            had = has_gap_five_potential(before.players[self.seat].hand)
            has = has_gap_five_potential(self.state.players[self.seat].hand)
            if had and has:
                reward += 0.01
        return reward

    def _run_opponents(self, state: GameState) -> GameState:
        """Play the bot seats until the agent must act or the hand ends."""
        if self.opponent_policy == "heuristic":
            return run_bots(state)

        for _ in range(500):
            seat = state.acting_seat
            if seat is None or seat == self.seat:
                return state
            state = step(state, self._random_policy(valid_actions(state, seat)))
        return state

    def _random_policy(self, actions: List[Action]) -> Action:
        """Random action selection, preferring anything over a pass"""
        meaningful = [a for a in actions if a.action_type != ActionType.PASS]
        pool = meaningful or actions
        return pool[int(self.np_random.integers(len(pool)))]

    # ------------------------------------------------------------------
    # Action encoding
    # ------------------------------------------------------------------

    def _game_action_to_idx(self, action: Action) -> Optional[int]:
        """Convert engine Action to action index."""
        if action.action_type == ActionType.DRAW:
            return self.ACTION_DRAW
        elif action.action_type == ActionType.DISCARD:
            return self.ACTION_DISCARD_START + action.tile.tile_index
        elif action.action_type == ActionType.CONCEALED_KONG:
            return self.ACTION_CONCEALED_KONG_START + action.tile.tile_index
        elif action.action_type == ActionType.ADD_KONG:
            return self.ACTION_ADD_KONG_START + action.tile.tile_index
        elif action.action_type == ActionType.HU:
            return self.ACTION_HU
        elif action.action_type == ActionType.PONG:
            return self.ACTION_PONG
        elif action.action_type == ActionType.KONG:
            return self.ACTION_KONG
        elif action.action_type == ActionType.PASS:
            return self.ACTION_PASS
        return None

    def _valid_action_map(self) -> Dict[int, Action]:
        """Action index -> engine Action for everything the agent may do now"""
        mapping = {}
        if self.state is None:
            return mapping
        for action in valid_actions(self.state, self.seat):
            idx = self._game_action_to_idx(action)
            if idx is not None:
                mapping[idx] = action
        return mapping

    def _get_valid_actions_mask(self) -> np.ndarray:
        mask = np.zeros(self.NUM_ACTIONS, dtype=np.int8)
        for idx in self._valid_action_map():
            mask[idx] = 1
        return mask

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def _get_observation(self) -> Dict[str, np.ndarray]:
        """Get current observation for the agent."""
        state = self.state
        player = state.players[self.seat]

        hand = player.get_hand_count_array()

        melds = np.zeros((NUM_SEATS, 4, NUM_TILE_TYPES), dtype=np.int8)
        for p in state.players:
            for m_idx, meld in enumerate(p.melds[:4]):
                melds[p.seat, m_idx, meld.base_tile.tile_index] = len(meld.tiles)

        discards = np.zeros((NUM_SEATS, NUM_TILE_TYPES), dtype=np.int8)
        for p in state.players:
            discards[p.seat] = p.get_discards_count_array()

        last_discard = np.zeros(NUM_TILE_TYPES, dtype=np.int8)
        record = state.last_discard
        if state.pending is not None:
            last_discard[state.pending.tile.tile_index] = 1
        elif record is not None:
            last_discard[record.tile.tile_index] = 1

        can_wait = (
            not player.owes_discard
            and not state.is_finished
            and is_tenpai(player.hand, player.melds)
        )
        game_info = np.array([
            int(state.current_turn),
            int(state.phase),
            state.round_num,
            int(self.seat),
            state.wall.remaining,
            1 if state.acting_seat == self.seat else 0,
            1 if has_gap_five_potential(player.hand) else 0,
            1 if can_wait else 0,
        ], dtype=np.float32)

        return {
            "hand": hand,
            "melds": melds,
            "discards": discards,
            "last_discard": last_discard,
            "valid_actions": self._get_valid_actions_mask(),
            "game_info": game_info,
        }

    def _get_info(self) -> Dict[str, Any]:
        """Get additional info about the environment state."""
        return {
            "round": self.state.round_num,
            "phase": self.state.phase.name,
            "current_turn": self.state.current_turn.name,
            "wall_remaining": self.state.wall.remaining,
            "winner": self.state.winner,
        }

    def render(self) -> Optional[str]:
        """Render the environment."""
        if self.render_mode == "human":
            print(self._render_ansi())
        elif self.render_mode == "ansi":
            return self._render_ansi()
        return None

    def _render_ansi(self) -> str:
        """Render as text."""
        state = self.state
        lines = []
        lines.append(f"=== Ka Wu Xing Mahjong - Round {state.round_num} ===")
        lines.append(f"Phase: {state.phase.name}")
        lines.append(f"Current Turn: {state.current_turn.name}")
        lines.append(f"Wall Remaining: {state.wall.remaining}")

        if state.pending is not None:
            lines.append(f"Pending: {state.pending!r}")

        lines.append("")
        for p in state.players:
            discards = " ".join(str(t) for t in p.discards) or "-"
            lines.append(f"{p.name} discards: {discards}")

        lines.append("")
        player = state.players[self.seat]
        lines.append(f"--- Your Hand ({player.name}) ---")
        lines.append(str(player))

        lines.append("")
        lines.append("--- Valid Actions ---")
        for a in valid_actions(state, self.seat):
            lines.append(f"  {a}")

        return "\n".join(lines)

    def close(self):
        """Clean up resources."""
        pass


def register_envs():
    """Register Ka Wu Xing environments with Gymnasium."""
    gym.register(
        id="Kawuxing-v0",
        entry_point="envs.kawuxing_env:KawuxingEnv",
        max_episode_steps=500,
    )
    gym.register(
        id="KawuxingRandom-v0",
        entry_point="envs.kawuxing_env:KawuxingEnv",
        max_episode_steps=500,
        kwargs={"opponent_policy": "random"},
    )


if __name__ == "__main__":
    env = KawuxingEnv(render_mode="human")
    obs, info = env.reset(seed=0)

    print("Observation keys:", obs.keys())
    print("Valid actions:", np.sum(obs["valid_actions"]), "available")
    env.render()

    terminated = truncated = False
    while not (terminated or truncated):
        valid_indices = np.where(obs["valid_actions"] == 1)[0]
        action = int(np.random.choice(valid_indices))
        obs, reward, terminated, truncated, info = env.step(action)
    print("Game ended:", info.get("episode"))
    env.close()
