from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from tetris_engine.game import ColorId, Command, GameConfig, GameSession, format_session


def _compute_action_mask(session: GameSession) -> np.ndarray:
    mask = np.zeros((len(Command),), dtype=np.bool_)
    mask[Command.NONE] = True
    piece = session.current
    if not session.accepting_input or piece is None:
        return mask
    mask[Command.MOVE_LEFT] = piece.can_move_left()
    mask[Command.MOVE_RIGHT] = piece.can_move_right()
    mask[Command.ROTATE] = piece.can_rotate()
    # A drop always does something: it moves or it locks.
    mask[Command.SOFT_DROP] = True
    mask[Command.HARD_DROP] = True
    return mask


class TetrisEnv(gym.Env):
    """Drives a ``GameSession`` through its command surface.

    One environment step applies one command; every ``steps_per_drop`` steps a
    drop tick stands in for the wall-clock drop timer. The reward is the number
    of rows cleared during the step.
    """

    metadata = {"render_modes": ["ansi"], "render_fps": 2}

    def __init__(self, config: Optional[GameConfig] = None, render_mode: Optional[str] = None,
                 steps_per_drop: int = 4,
                 max_steps: int = 5000,
                 terminal_penalty: float = 0.0) -> None:
        super().__init__()
        if steps_per_drop <= 0:
            raise ValueError(f"steps_per_drop must be positive, got {steps_per_drop}")
        self.session = GameSession(config)
        self.render_mode = render_mode
        self.steps_per_drop = int(steps_per_drop)
        self.max_steps = int(max_steps)
        self.terminal_penalty = float(terminal_penalty)

        cfg = self.session.config
        top = len(ColorId)
        self.observation_space = spaces.Dict(
            {
                "grid": spaces.Box(low=-top, high=top, shape=(cfg.rows, cfg.columns), dtype=np.int8),
                "next": spaces.Box(low=0, high=top, shape=(cfg.preview_rows, cfg.preview_columns), dtype=np.int8),
            }
        )
        self.action_space = spaces.Discrete(len(Command))
        self._steps = 0

    def _get_obs(self) -> Dict[str, Any]:
        return {
            "grid": self.session.get_state().astype(np.int8),
            "next": self.session.get_preview().astype(np.int8),
        }

    def _get_info(self) -> Dict[str, Any]:
        return {
            "action_mask": _compute_action_mask(self.session),
            "score": self.session.score,
            "rows_cleared_total": self.session.stats.rows_cleared,
            "pieces_locked": self.session.stats.pieces_locked,
            "steps": self._steps,
        }

    def get_action_mask(self) -> np.ndarray:
        return _compute_action_mask(self.session)

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        if seed is None:
            seed = int(self.np_random.integers(0, 2**31 - 1))
        if not self.session.start(seed):
            # Menu screens only lead back to a game through the main menu.
            self.session.show_main_menu()
            self.session.start(seed)
        self._steps = 0
        return self._get_obs(), self._get_info()

    def step(self, action):
        command = Command(int(action))
        score_before = self.session.score

        self.session.handle(command)
        self._steps += 1
        if self._steps % self.steps_per_drop == 0:
            self.session.drop_tick()

        terminated = bool(self.session.game_over)
        truncated = not terminated and self._steps >= self.max_steps
        reward = float(self.session.score - score_before)
        if terminated:
            reward += self.terminal_penalty

        info = self._get_info()
        info["command"] = command.name
        return self._get_obs(), reward, terminated, truncated, info

    def render(self) -> Optional[str]:
        if self.render_mode == "ansi":
            return format_session(self.session)
        return None

    def close(self) -> None:
        pass
