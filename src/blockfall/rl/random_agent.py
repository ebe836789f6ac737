from __future__ import annotations

import argparse
import logging
from typing import Optional

import numpy as np
import gymnasium as gym

from blockfall.env import ENV_ID

logger = logging.getLogger(__name__)


def run_random(steps: int = 500, seed: Optional[int] = None, masked: bool = True) -> dict:
    env = gym.make(ENV_ID)
    rng = np.random.default_rng(seed)
    obs, info = env.reset(seed=seed)
    total_reward = 0.0
    episodes = 0
    best_score = 0
    for _ in range(steps):
        # Prefer actions that change the piece if the mask allows any
        mask = info.get("action_mask")
        if masked and mask is not None and mask.any():
            action = int(rng.choice(np.flatnonzero(mask)))
        else:
            action = int(env.action_space.sample())
        obs, reward, terminated, truncated, info = env.step(action)
        total_reward += float(reward)
        best_score = max(best_score, int(info["score"]))
        if terminated or truncated:
            episodes += 1
            logger.info("episode %d finished: score=%d lines=%d", episodes, info["score"], info["lines_cleared"])
            obs, info = env.reset()
    env.close()
    return {"total_reward": total_reward, "episodes": episodes, "best_score": best_score}


def main() -> None:
    p = argparse.ArgumentParser()
    p.add_argument("--steps", type=int, default=500)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--unmasked", action="store_true", help="sample from the full action space")
    p.add_argument("-v", "--verbose", action="store_true")
    args = p.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    result = run_random(args.steps, args.seed, masked=not args.unmasked)
    print(f"Random agent total reward: {result['total_reward']:.2f} "
          f"over {result['episodes']} finished episodes, best score {result['best_score']}")


if __name__ == "__main__":  # pragma: no cover
    main()
