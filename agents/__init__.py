"""
Ka Wu Xing Agents
"""

from .random_agent import MaskAgent, RandomAgent, GreedyAgent
from .heuristic_agent import HeuristicAgent, create_heuristic_policy

__all__ = [
    "MaskAgent",
    "RandomAgent",
    "GreedyAgent",
    "HeuristicAgent",
    "create_heuristic_policy",
]
