"""
Hanafuda Gymnasium Environment

One agent seat in a single 2-player Koi-Koi round, played against a
HeuristicAgent. Card-level actions are exposed directly; the opponent's
turns run inside step() until the agent has to act again.
"""

import dataclasses
import gymnasium as gym
from gymnasium import spaces
import numpy as np
from typing import List, Optional, Tuple, Dict, Any

from hanafuda.cards import NUM_CARDS, card_by_id, to_mask, format_cards
from hanafuda.game import HanafudaGame, Phase, Action, ActionType
from hanafuda.koikoi import KoikoiChoice
from hanafuda.rules import KOIKOI_RULES
from agents.heuristic_agent import HeuristicAgent


class HanafudaEnv(gym.Env):
    """
    Hanafuda Koi-Koi Environment for Reinforcement Learning.

    Observation Space:
        A dictionary containing:
        - hand: (48,) int8 - Cards in the agent's hand
        - field: (48,) int8 - Cards face up on the field
        - captured: (48,) int8 - Agent's captured cards
        - opponent_captured: (48,) int8 - Opponent's captured cards
        - drawn_card: (48,) int8 - Drawn card awaiting resolution
        - phase: (1,) int8 - Phase index
        - scores: (2,) float32 - Current round scores (combination points)
        - valid_actions: (100,) int8 - Binary mask of valid actions

    Action Space:
        Discrete(100):
        - 0-47: Play hand card (card id - 1)
        - 48-95: Select field card (card id - 1)
        - 96: Draw
        - 97: Reveal drawn card
        - 98: Stop
        - 99: Continue (koi-koi)
    """

    metadata = {"render_modes": ["human", "ansi"], "render_fps": 1}

    ACTION_PLAY_START = 0
    ACTION_SELECT_START = 48
    ACTION_DRAW = 96
    ACTION_REVEAL = 97
    ACTION_STOP = 98
    ACTION_CONTINUE = 99
    NUM_ACTIONS = 100

    REWARD_SCALE = 10.0

    def __init__(
        self,
        player_idx: int = 0,
        opponent_difficulty: str = "normal",
        seed: Optional[int] = None,
        render_mode: Optional[str] = None,
    ):
        """
        Initialize the Hanafuda environment.

        Args:
            player_idx: Seat of the agent (0 or 1)
            opponent_difficulty: HeuristicAgent tier for the other seat
            seed: Random seed
            render_mode: Rendering mode
        """
        super().__init__()

        self.player_idx = player_idx
        self.opponent_idx = 1 - player_idx
        self.render_mode = render_mode

        rules = dataclasses.replace(KOIKOI_RULES, name="Koi-Koi (single round)", num_rounds=1)
        self.game = HanafudaGame(rules=rules, seed=seed, human_players=(player_idx,),
                                 ai_difficulty=opponent_difficulty)
        self.opponent = HeuristicAgent(opponent_difficulty, seed=seed)

        self.observation_space = spaces.Dict({
            "hand": spaces.Box(low=0, high=1, shape=(NUM_CARDS,), dtype=np.int8),
            "field": spaces.Box(low=0, high=1, shape=(NUM_CARDS,), dtype=np.int8),
            "captured": spaces.Box(low=0, high=1, shape=(NUM_CARDS,), dtype=np.int8),
            "opponent_captured": spaces.Box(low=0, high=1, shape=(NUM_CARDS,), dtype=np.int8),
            "drawn_card": spaces.Box(low=0, high=1, shape=(NUM_CARDS,), dtype=np.int8),
            "phase": spaces.Box(low=0, high=len(Phase) - 1, shape=(1,), dtype=np.int8),
            "scores": spaces.Box(low=0, high=200, shape=(2,), dtype=np.float32),
            "valid_actions": spaces.Box(low=0, high=1, shape=(self.NUM_ACTIONS,), dtype=np.int8),
        })
        self.action_space = spaces.Discrete(self.NUM_ACTIONS)

        self._episode_reward = 0.0
        self._episode_length = 0

    def reset(
        self,
        seed: Optional[int] = None,
        options: Optional[Dict] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict]:
        """Reset the environment."""
        super().reset(seed=seed)
        if seed is not None:
            self.opponent.rng = np.random.default_rng(seed)

        self.game.reset(seed=seed)
        self.game.start_round()

        self._episode_reward = 0.0
        self._episode_length = 0

        self._run_opponent_until_agent_turn()
        return self._get_observation(), self._get_info()

    def step(self, action: int) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict]:
        """Take a step in the environment."""
        self._episode_length += 1
        reward = 0.0

        valid_actions = self.game.get_valid_actions(self.player_idx)
        game_action = self._match_valid_action(int(action), valid_actions)
        if game_action is None:
            reward = -1.0
            if not valid_actions:
                return self._get_observation(), reward, self._is_done(), False, self._get_info()
            # Take a random valid action instead
            game_action = valid_actions[int(self.np_random.integers(len(valid_actions)))]

        self.game.step(game_action)
        self._run_opponent_until_agent_turn()

        terminated = self._is_done()
        if terminated:
            reward += self._final_reward()
        truncated = self._episode_length > 500
        self._episode_reward += reward

        info = self._get_info()
        if terminated or truncated:
            info["episode"] = {
                "r": self._episode_reward,
                "l": self._episode_length,
                "result": self.game.last_result,
            }
        return self._get_observation(), reward, terminated, truncated, info

    def _is_done(self) -> bool:
        return self.game.phase in (Phase.ROUND_ENDING, Phase.MATCH_OVER)

    def _final_reward(self) -> float:
        result = self.game.last_result
        return (result.scores[self.player_idx] - result.scores[self.opponent_idx]) / self.REWARD_SCALE

    def _run_opponent_until_agent_turn(self) -> None:
        while not self._is_done() and self.game.acting_player() == self.opponent_idx:
            valid = self.game.get_valid_actions(self.opponent_idx)
            self.game.step(self.opponent.get_action(self.game, self.opponent_idx, valid))

    def _get_observation(self) -> Dict[str, np.ndarray]:
        """Get observation for the agent."""
        game = self.game
        me = game.players[self.player_idx]
        opponent = game.players[self.opponent_idx]
        return {
            "hand": to_mask(me.hand),
            "field": to_mask(game.field),
            "captured": to_mask(me.captured),
            "opponent_captured": to_mask(opponent.captured),
            "drawn_card": to_mask([game.drawn_card] if game.drawn_card else []),
            "phase": np.array([int(game.phase)], dtype=np.int8),
            "scores": np.array([me.yaku_score, opponent.yaku_score], dtype=np.float32),
            "valid_actions": self._get_valid_actions_mask(),
        }

    def _get_valid_actions_mask(self) -> np.ndarray:
        """Get binary mask of valid actions."""
        mask = np.zeros(self.NUM_ACTIONS, dtype=np.int8)
        for action in self.game.get_valid_actions(self.player_idx):
            mask[self.action_to_index(action)] = 1
        return mask

    def action_to_index(self, action: Action) -> int:
        """Convert game action to action index."""
        if action.action_type == ActionType.PLAY_HAND:
            return self.ACTION_PLAY_START + action.card.index
        if action.action_type == ActionType.SELECT_FIELD:
            return self.ACTION_SELECT_START + action.card.index
        if action.action_type == ActionType.DRAW:
            return self.ACTION_DRAW
        if action.action_type == ActionType.REVEAL_DRAWN:
            return self.ACTION_REVEAL
        if action.choice == KoikoiChoice.STOP:
            return self.ACTION_STOP
        return self.ACTION_CONTINUE

    def index_to_action(self, action_idx: int) -> Action:
        """Convert action index to a game action for the agent's seat."""
        if not 0 <= action_idx < self.NUM_ACTIONS:
            raise ValueError(f"Action index out of range: {action_idx}")
        if action_idx < self.ACTION_SELECT_START:
            return Action(ActionType.PLAY_HAND, self.player_idx, card=card_by_id(action_idx + 1))
        if action_idx < self.ACTION_DRAW:
            card = card_by_id(action_idx - self.ACTION_SELECT_START + 1)
            return Action(ActionType.SELECT_FIELD, self.player_idx, card=card)
        if action_idx == self.ACTION_DRAW:
            return Action(ActionType.DRAW, self.player_idx)
        if action_idx == self.ACTION_REVEAL:
            return Action(ActionType.REVEAL_DRAWN, self.player_idx)
        choice = KoikoiChoice.STOP if action_idx == self.ACTION_STOP else KoikoiChoice.CONTINUE
        return Action(ActionType.KOIKOI_DECISION, self.player_idx, choice=choice)

    def _match_valid_action(self, action_idx: int, valid_actions: List[Action]) -> Optional[Action]:
        for action in valid_actions:
            if self.action_to_index(action) == action_idx:
                return action
        return None

    def _get_info(self) -> Dict[str, Any]:
        return {
            "phase": self.game.phase.name,
            "deck_remaining": self.game.deck.remaining,
            "match_scores": self.game.scores,
        }

    def render(self) -> Optional[str]:
        if self.render_mode == "ansi":
            return self._render_ansi()
        if self.render_mode == "human":
            print(self._render_ansi())
        return None

    def _render_ansi(self) -> str:
        game = self.game
        me = game.players[self.player_idx]
        lines = [
            f"=== Hanafuda ({game.phase.name}) deck={game.deck.remaining} ===",
            f"Field:    {format_cards(game.field)}",
            f"Hand:     {format_cards(me.hand)}",
            f"Captured: {format_cards(me.captured)}",
            f"Yaku:     {[y.name for y in me.active_yaku]}",
        ]
        if game.drawn_card:
            lines.append(f"Drawn:    {game.drawn_card}")
        return "\n".join(lines)

    def close(self):
        """Clean up resources."""
        pass


def register_hanafuda_envs():
    """Register Hanafuda environments with Gymnasium."""
    gym.register(
        id="HanafudaKoiKoi-v0",
        entry_point="envs.hanafuda_env:HanafudaEnv",
        max_episode_steps=500,
    )
