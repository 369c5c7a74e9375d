"""
Stable Baselines3 Agent Wrapper for Ka Wu Xing Mahjong

Provides a custom feature extractor and a thin wrapper for SB3 algorithms.
"""

import logging
import numpy as np
import torch
import torch.nn as nn
from typing import Dict, Type, Optional, Sequence

import gymnasium as gym
from gymnasium import spaces

from stable_baselines3 import PPO, A2C
from stable_baselines3.common.torch_layers import BaseFeaturesExtractor

logger = logging.getLogger(__name__)

ALGORITHMS = {
    "PPO": PPO,
    "A2C": A2C,
}

PPO_DEFAULTS = {
    "learning_rate": 3e-4,
    "n_steps": 2048,
    "batch_size": 64,
    "n_epochs": 10,
    "gamma": 0.99,
    "gae_lambda": 0.95,
    "clip_range": 0.2,
    "ent_coef": 0.01,
    "vf_coef": 0.5,
    "max_grad_norm": 0.5,
}


def _mlp(in_dim: int, sizes: Sequence[int]) -> nn.Sequential:
    """Linear + ReLU stack"""
    layers = []
    for size in sizes:
        layers += [nn.Linear(in_dim, size), nn.ReLU()]
        in_dim = size
    return nn.Sequential(*layers)


class KawuxingFeaturesExtractor(BaseFeaturesExtractor):
    """
    Custom feature extractor for Ka Wu Xing observations.

    Each part of the dictionary observation gets its own small encoder;
    meld and discard encoders are shared between seats. Seat and tile-kind
    counts are read from the observation space.
    """

    def __init__(
        self,
        observation_space: spaces.Dict,
        features_dim: int = 256,
        hand_embedding_dim: int = 96,
        meld_embedding_dim: int = 32,
        discard_embedding_dim: int = 48,
    ):
        super().__init__(observation_space, features_dim)

        num_seats, max_melds, num_kinds = observation_space["melds"].shape
        info_dim = observation_space["game_info"].shape[0]
        self.num_seats = num_seats

        self.hand_encoder = _mlp(num_kinds, (128, hand_embedding_dim))
        self.meld_encoder = _mlp(max_melds * num_kinds, (64, meld_embedding_dim))
        self.discard_encoder = _mlp(num_kinds, (64, discard_embedding_dim))
        self.last_discard_encoder = _mlp(num_kinds, (32,))
        self.game_info_encoder = _mlp(info_dim, (32,))

        combined_dim = (
            hand_embedding_dim
            + num_seats * (meld_embedding_dim + discard_embedding_dim)
            + 32 + 32
        )
        self.combiner = _mlp(combined_dim, (256, features_dim))

    def _per_seat(self, encoder: nn.Module, values: torch.Tensor) -> torch.Tensor:
        batch_size = values.shape[0]
        return torch.cat([
            encoder(values[:, seat].reshape(batch_size, -1))
            for seat in range(self.num_seats)
        ], dim=-1)

    def forward(self, observations: Dict[str, torch.Tensor]) -> torch.Tensor:
        # Round number and wall size are on a much larger scale than the flags
        info = observations["game_info"].float()
        info = torch.cat([
            info[:, :2],
            info[:, 2:3] / 20.0,
            info[:, 3:4],
            info[:, 4:5] / 45.0,
            info[:, 5:],
        ], dim=-1)

        return self.combiner(torch.cat([
            self.hand_encoder(observations["hand"].float()),
            self._per_seat(self.meld_encoder, observations["melds"].float()),
            self._per_seat(self.discard_encoder, observations["discards"].float()),
            self.last_discard_encoder(observations["last_discard"].float()),
            self.game_info_encoder(info),
        ], dim=-1))


class SB3Agent:
    """
    Wrapper around an SB3 actor-critic model that only ever returns
    actions allowed by the observation's `valid_actions` mask.
    """

    def __init__(
        self,
        env: gym.Env,
        algorithm: str = "PPO",
        policy: str = "MultiInputPolicy",
        features_extractor_class: Type[BaseFeaturesExtractor] = KawuxingFeaturesExtractor,
        features_extractor_kwargs: Optional[Dict] = None,
        device: str = "auto",
        verbose: int = 1,
        **kwargs
    ):
        """
        Args:
            env: Gymnasium environment (or a VecEnv of them)
            algorithm: "PPO" or "A2C"
            policy: SB3 policy name
            features_extractor_class: Feature extractor for the Dict observation
            features_extractor_kwargs: Arguments for the feature extractor
            device: "auto", "cpu" or "cuda"
            verbose: SB3 verbosity
            **kwargs: Passed to the algorithm (learning_rate, n_steps, ...)
        """
        self.env = env
        self.algorithm_name = algorithm

        policy_kwargs = {
            "features_extractor_class": features_extractor_class,
            "features_extractor_kwargs": features_extractor_kwargs or {"features_dim": 256},
        }
        policy_kwargs.update(kwargs.pop("policy_kwargs", {}))

        self.model = self._get_algorithm_class(algorithm)(
            policy=policy,
            env=env,
            policy_kwargs=policy_kwargs,
            device=device,
            verbose=verbose,
            **kwargs
        )

    @staticmethod
    def _get_algorithm_class(name: str):
        if name not in ALGORITHMS:
            raise ValueError(f"Unknown algorithm: {name}. Choose from {list(ALGORITHMS.keys())}")
        return ALGORITHMS[name]

    def _action_probs(self, observation: Dict[str, np.ndarray]) -> np.ndarray:
        obs_tensor, _ = self.model.policy.obs_to_tensor(observation)
        with torch.no_grad():
            distribution = self.model.policy.get_distribution(obs_tensor)
        return distribution.distribution.probs[0].cpu().numpy()

    def predict(self, observation: Dict[str, np.ndarray], deterministic: bool = True):
        """
        Predict an action, restricted to the valid-action mask.

        Returns:
            Tuple of (action, state)
        """
        mask = np.asarray(observation["valid_actions"]).astype(bool)
        if not mask.any():
            action, state = self.model.predict(observation, deterministic=deterministic)
            return int(action), state

        probs = np.where(mask, self._action_probs(observation), 0.0)
        total = probs.sum()
        if total <= 0:
            logger.debug("Policy puts no weight on any valid action, taking the first")
            return int(np.flatnonzero(mask)[0]), None
        if deterministic:
            return int(np.argmax(probs)), None
        return int(np.random.choice(len(probs), p=probs / total)), None

    def act(self, observation: Dict[str, np.ndarray]) -> int:
        action, _ = self.predict(observation)
        return action

    def save(self, path: str):
        self.model.save(path)

    def load(self, path: str):
        self.model = self._get_algorithm_class(self.algorithm_name).load(path, env=self.env)

    @classmethod
    def from_pretrained(cls, path: str, env: Optional[gym.Env] = None, algorithm: str = "PPO"):
        """Load a saved model, for inference when `env` is None."""
        agent = cls.__new__(cls)
        agent.env = env
        agent.algorithm_name = algorithm
        agent.load(path)
        return agent


def create_kawuxing_ppo(env: gym.Env, **overrides) -> SB3Agent:
    """
    Create a PPO agent configured for Ka Wu Xing.

    Any of PPO_DEFAULTS (and any other PPO or SB3Agent argument) can be
    overridden by keyword.
    """
    params = dict(PPO_DEFAULTS)
    params.update(overrides)
    return SB3Agent(env=env, algorithm="PPO", **params)
