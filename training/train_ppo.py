#!/usr/bin/env python3
"""
PPO Training Script for Ka Wu Xing Mahjong

Train a PPO agent for the human seat against the engine's bots.
"""

import sys
import logging
import argparse
from datetime import datetime
from pathlib import Path

import numpy as np
import torch

sys.path.insert(0, str(Path(__file__).parent.parent))

from stable_baselines3.common.vec_env import DummyVecEnv, SubprocVecEnv
from stable_baselines3.common.monitor import Monitor
from stable_baselines3.common.callbacks import CheckpointCallback, EvalCallback, BaseCallback

from envs.kawuxing_env import KawuxingEnv
from agents.sb3_agent import create_kawuxing_ppo

logger = logging.getLogger(__name__)


class OutcomeCallback(BaseCallback):
    """
    Tracks wins, losses and drawn hands of the learning seat and records
    them with the SB3 logger.
    """

    def __init__(self, seat: int, verbose: int = 0, log_freq: int = 1000):
        super().__init__(verbose)
        self.seat = seat
        self.log_freq = log_freq
        self.episode_rewards = []
        self.win_count = 0
        self.loss_count = 0
        self.draw_count = 0

    def _on_step(self) -> bool:
        for info in self.locals.get("infos", []):
            episode = info.get("episode")
            if episode is None or "winner" not in episode:
                continue
            self.episode_rewards.append(episode["r"])
            winner = episode["winner"]
            if winner is None:
                self.draw_count += 1
            elif int(winner) == self.seat:
                self.win_count += 1
            else:
                self.loss_count += 1

        total = self.win_count + self.loss_count + self.draw_count
        if total and self.num_timesteps % self.log_freq == 0:
            self.logger.record("game/win_rate", self.win_count / total)
            self.logger.record("game/loss_rate", self.loss_count / total)
            self.logger.record("game/draw_rate", self.draw_count / total)
        return True

    def _on_training_end(self) -> None:
        total = self.win_count + self.loss_count + self.draw_count
        if total:
            logger.info(
                f"Episodes: {total}, wins: {self.win_count}, losses: {self.loss_count}, "
                f"draws: {self.draw_count}, mean reward: {np.mean(self.episode_rewards):.3f}"
            )


def make_env(
    rules: str = "default",
    opponent_policy: str = "heuristic",
    seed: int = None,
    reward_shaping: bool = True,
    rank: int = 0,
):
    """Create a wrapped Ka Wu Xing environment."""
    def _init():
        env_seed = seed + rank if seed is not None else None
        env = KawuxingEnv(
            rules=rules,
            opponent_policy=opponent_policy,
            seed=env_seed,
            reward_shaping=reward_shaping,
        )
        return Monitor(env)
    return _init


def train_ppo(
    total_timesteps: int = 1_000_000,
    n_envs: int = 4,
    learning_rate: float = 3e-4,
    n_steps: int = 2048,
    batch_size: int = 64,
    n_epochs: int = 10,
    gamma: float = 0.99,
    ent_coef: float = 0.01,
    rules: str = "default",
    opponent_policy: str = "heuristic",
    reward_shaping: bool = True,
    save_dir: str = "models/kawuxing_ppo",
    eval_freq: int = 10000,
    seed: int = 42,
    device: str = "auto",
    verbose: int = 1,
):
    """
    Train a PPO agent for Ka Wu Xing.

    Returns:
        Tuple of (agent, run directory)
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    save_path = Path(save_dir) / f"ppo_{rules}_{timestamp}"
    save_path.mkdir(parents=True, exist_ok=True)

    logger.info(f"Ka Wu Xing PPO training ({rules} rules)")
    logger.info(f"Total timesteps: {total_timesteps:,}, parallel envs: {n_envs}")
    logger.info(f"Opponent policy: {opponent_policy}, device: {device}")

    np.random.seed(seed)
    torch.manual_seed(seed)

    env_fns = [
        make_env(rules, opponent_policy, seed, reward_shaping, rank=i)
        for i in range(n_envs)
    ]
    env = SubprocVecEnv(env_fns) if n_envs > 1 else DummyVecEnv(env_fns)

    eval_env = DummyVecEnv([
        make_env(rules, opponent_policy, seed + 1000, reward_shaping=False)
    ])

    agent = create_kawuxing_ppo(
        env,
        learning_rate=learning_rate,
        n_steps=n_steps,
        batch_size=batch_size,
        n_epochs=n_epochs,
        gamma=gamma,
        ent_coef=ent_coef,
        device=device,
        verbose=verbose,
        seed=seed,
    )

    human_seat = int(KawuxingEnv(rules=rules).seat)
    callbacks = [
        CheckpointCallback(
            save_freq=max(50000 // n_envs, 1),
            save_path=str(save_path / "checkpoints"),
            name_prefix=f"kawuxing_ppo_{rules}",
        ),
        EvalCallback(
            eval_env,
            best_model_save_path=str(save_path / "best"),
            log_path=str(save_path / "logs"),
            eval_freq=max(eval_freq // n_envs, 1),
            n_eval_episodes=10,
            deterministic=True,
        ),
        OutcomeCallback(seat=human_seat, verbose=verbose),
    ]

    logger.info("Starting training...")
    agent.model.learn(total_timesteps=total_timesteps, callback=callbacks)

    final_path = save_path / "final_model"
    agent.save(str(final_path))
    logger.info(f"Training complete! Model saved to {final_path}")

    env.close()
    eval_env.close()

    return agent, str(save_path)


def main():
    parser = argparse.ArgumentParser(description="Train PPO for Ka Wu Xing Mahjong")

    parser.add_argument("--timesteps", type=int, default=1_000_000)
    parser.add_argument("--n-envs", type=int, default=4)
    parser.add_argument("--lr", type=float, default=3e-4)
    parser.add_argument("--n-steps", type=int, default=2048)
    parser.add_argument("--batch-size", type=int, default=64)
    parser.add_argument("--n-epochs", type=int, default=10)
    parser.add_argument("--gamma", type=float, default=0.99)
    parser.add_argument("--ent-coef", type=float, default=0.01)

    parser.add_argument("--rules", type=str, default="default", choices=["default", "reference"])
    parser.add_argument("--opponent", type=str, default="heuristic", choices=["heuristic", "random"])
    parser.add_argument("--no-reward-shaping", action="store_true")

    parser.add_argument("--save-dir", type=str, default="models/kawuxing_ppo")
    parser.add_argument("--eval-freq", type=int, default=10000)

    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--device", type=str, default="auto")
    parser.add_argument("--verbose", type=int, default=1)
    parser.add_argument("--log-level", type=str, default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    train_ppo(
        total_timesteps=args.timesteps,
        n_envs=args.n_envs,
        learning_rate=args.lr,
        n_steps=args.n_steps,
        batch_size=args.batch_size,
        n_epochs=args.n_epochs,
        gamma=args.gamma,
        ent_coef=args.ent_coef,
        rules=args.rules,
        opponent_policy=args.opponent,
        reward_shaping=not args.no_reward_shaping,
        save_dir=args.save_dir,
        eval_freq=args.eval_freq,
        seed=args.seed,
        device=args.device,
        verbose=args.verbose,
    )


if __name__ == "__main__":
    main()
