"""
Ka Wu Xing Gymnasium Environments
"""

from .kawuxing_env import KawuxingEnv, register_envs

__all__ = ["KawuxingEnv", "register_envs"]
