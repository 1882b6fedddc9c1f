"""
Random Agent for Hanafuda

A simple baseline agent that takes random valid actions.
"""

import numpy as np
from typing import Any, Dict, List

from hanafuda.game import HanafudaGame, Action


class RandomAgent:
    """
    Random agent that selects uniformly from valid actions.

    This serves as a baseline for comparison with the heuristic tiers.
    """

    def __init__(self, seed: int = None):
        """
        Initialize the random agent.

        Args:
            seed: Random seed for reproducibility
        """
        self.rng = np.random.default_rng(seed)

    def get_action(self, game: HanafudaGame, player_idx: int,
                   valid_actions: List[Action]) -> Action:
        """Pick one of the engine's valid actions"""
        if not valid_actions:
            raise ValueError(f"Player {player_idx} has no valid actions")
        return valid_actions[int(self.rng.integers(len(valid_actions)))]

    def act(self, observation: Dict[str, Any]) -> int:
        """
        Select an environment action index given an observation.

        Args:
            observation: Dictionary observation from HanafudaEnv

        Returns:
            Action index
        """
        valid_indices = np.flatnonzero(observation["valid_actions"])
        return int(self.rng.choice(valid_indices))

    def reset(self):
        """Reset the agent state (no-op for random agent)."""
        pass

    def __repr__(self) -> str:
        return "RandomAgent()"
