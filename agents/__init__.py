"""
Hanafuda Agents
"""

from .heuristic_agent import HeuristicAgent, DifficultyProfile, PROFILES
from .random_agent import RandomAgent

__version__ = "0.1.0"

__all__ = [
    "HeuristicAgent",
    "DifficultyProfile",
    "PROFILES",
    "RandomAgent",
]
