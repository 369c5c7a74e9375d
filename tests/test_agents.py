"""
Tests for the baseline, heuristic and SB3 agents
"""

import pytest
import numpy as np
import torch

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from kawuxing_mahjong.tiles import dot
from kawuxing_mahjong.player import Seat
from kawuxing_mahjong.claims import ActionType
from kawuxing_mahjong.game import new_game, draw_tile, valid_actions
from envs.kawuxing_env import KawuxingEnv
from agents import MaskAgent, RandomAgent, GreedyAgent, HeuristicAgent, create_heuristic_policy
from agents.sb3_agent import KawuxingFeaturesExtractor, create_kawuxing_ppo
from benchmark import BENCHMARK_TESTS, BenchmarkRunner


def first_observation(seed=0):
    env = KawuxingEnv(seed=seed)
    obs, _ = env.reset()
    return env, obs


class TestMaskAgents:
    """Agents working from the observation mask"""

    def test_random_agent_picks_valid(self):
        """Test that the random agent stays inside the mask"""
        _, obs = first_observation()
        agent = RandomAgent(seed=0)
        for _ in range(10):
            assert obs["valid_actions"][agent.act(obs)] == 1

    @pytest.mark.parametrize("agent_class", [RandomAgent, GreedyAgent])
    def test_empty_mask_passes(self, agent_class):
        """Test that an empty mask yields PASS"""
        _, obs = first_observation()
        obs = dict(obs, valid_actions=np.zeros(68, dtype=np.int8))
        assert agent_class().act(obs) == MaskAgent.ACTION_PASS
        assert repr(agent_class()) == f"{agent_class.__name__}()"

    def test_greedy_agent_claim_priority(self):
        """Test that the greedy agent takes a win over a kong or pong"""
        _, obs = first_observation()
        mask = np.zeros(68, dtype=np.int8)
        mask[[MaskAgent.ACTION_PONG, MaskAgent.ACTION_KONG, MaskAgent.ACTION_PASS]] = 1
        agent = GreedyAgent(seed=0)
        assert agent.act(dict(obs, valid_actions=mask)) == MaskAgent.ACTION_KONG
        mask[MaskAgent.ACTION_HU] = 1
        assert agent.act(dict(obs, valid_actions=mask)) == MaskAgent.ACTION_HU

    def test_greedy_agent_picks_valid(self):
        """Test that the greedy agent stays inside the mask"""
        _, obs = first_observation(4)
        action, _ = GreedyAgent(seed=0).predict(obs)
        assert obs["valid_actions"][action] == 1

    def test_heuristic_agent_picks_valid(self):
        """Test the heuristic agent over a stretch of real play"""
        env, obs = first_observation(5)
        agent = HeuristicAgent()
        for _ in range(20):
            action = agent.act(obs)
            assert obs["valid_actions"][action] == 1
            obs, _, terminated, truncated, _ = env.step(action)
            if terminated or truncated:
                break

    def test_heuristic_agent_passes_benchmark(self):
        """Test the heuristic agent on every benchmark scenario"""
        runner = BenchmarkRunner(HeuristicAgent())
        for test in BENCHMARK_TESTS:
            assert runner.run_test(test)["score"] == 1.0, test.name


class TestStatePolicy:
    """The heuristic as a policy over engine Actions"""

    def test_draw_then_discard(self, quiet_deck):
        """Test the policy draws first, then drops the cheapest tile"""
        policy = create_heuristic_policy()
        state = new_game(deck=quiet_deck)
        action = policy(state, Seat.OPPONENT_1, valid_actions(state, Seat.OPPONENT_1))
        assert action.action_type == ActionType.DRAW

        state = draw_tile(state, Seat.OPPONENT_1)
        action = policy(state, Seat.OPPONENT_1, valid_actions(state, Seat.OPPONENT_1))
        assert action.action_type == ActionType.DISCARD
        # 1p is now a pair, 3p is the cheapest single
        assert action.tile == dot(3)


class TestFeaturesExtractor:
    """Test the SB3 feature extractor on a real observation"""

    def test_forward_shape(self):
        """Test extractor output shape"""
        env, obs = first_observation()
        extractor = KawuxingFeaturesExtractor(env.observation_space, features_dim=256)
        batch = {k: torch.as_tensor(v).unsqueeze(0) for k, v in obs.items()}
        features = extractor(batch)
        assert features.shape == (1, 256)

    def test_untrained_ppo_respects_mask(self):
        """Test that PPO predictions stay inside the mask"""
        env, obs = first_observation(6)
        agent = create_kawuxing_ppo(env, n_steps=64, batch_size=32, device="cpu", verbose=0)
        action, _ = agent.predict(obs)
        assert obs["valid_actions"][action] == 1
        action, _ = agent.predict(obs, deterministic=False)
        assert obs["valid_actions"][action] == 1
