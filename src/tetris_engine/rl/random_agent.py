from __future__ import annotations

import argparse
import logging
from typing import List, Optional

import gymnasium as gym

import tetris_engine.env  # noqa: F401
from tetris_engine.env.wrappers import ResampleInvalidActionWrapper


logger = logging.getLogger(__name__)


def run_random(episodes: int = 3, seed: Optional[int] = None, max_steps: int = 2000, show: bool = False) -> List[float]:
    env = gym.make("Tetris-10x16-v0", render_mode="ansi" if show else None, max_steps=max_steps)
    env = ResampleInvalidActionWrapper(env)
    env.action_space.seed(seed)
    returns: List[float] = []
    for episode in range(episodes):
        obs, info = env.reset(seed=None if seed is None else seed + episode)
        total_reward = 0.0
        steps = 0
        while True:
            action = env.action_space.sample()
            obs, reward, terminated, truncated, info = env.step(action)
            total_reward += float(reward)
            steps += 1
            if terminated or truncated:
                break
        returns.append(total_reward)
        logger.info(
            "Episode %d: rows=%d pieces=%d steps=%d %s",
            episode, info["rows_cleared_total"], info["pieces_locked"], steps,
            "game over" if terminated else "truncated",
        )
        if show:
            print(env.render())
    env.close()
    return returns


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Play headless episodes with a random policy")
    p.add_argument("--episodes", type=int, default=3)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--max-steps", type=int, default=2000)
    p.add_argument("--show", action="store_true", help="Print the final board of each episode")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    returns = run_random(args.episodes, args.seed, args.max_steps, args.show)
    print(f"Random agent total reward: {sum(returns):.2f} over {len(returns)} episode(s)")


if __name__ == "__main__":  # pragma: no cover
    main()
