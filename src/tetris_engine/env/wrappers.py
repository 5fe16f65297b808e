from __future__ import annotations

import numpy as np
import gymnasium as gym
from gymnasium import spaces


class ResampleInvalidActionWrapper(gym.Wrapper):
    """Swap a command the session would refuse for a random accepted one.

    Lets unmasked policies (such as the random agent) keep the piece moving.
    """

    def step(self, action):  # type: ignore[override]
        command = int(action)
        if isinstance(self.action_space, spaces.Discrete):
            allowed = self.get_action_mask()
            if 0 <= command < allowed.shape[0] and not allowed[command]:
                accepted = np.flatnonzero(allowed)
                # NONE is always allowed, so there is at least one choice.
                if accepted.size:
                    command = int(self.np_random.choice(accepted))
        return self.env.step(command)

    def get_action_mask(self) -> np.ndarray:
        tetris = self.env.unwrapped
        mask_fn = getattr(tetris, "get_action_mask", None)
        if mask_fn is None:
            raise AttributeError(f"{type(tetris).__name__} has no get_action_mask")
        return mask_fn()
