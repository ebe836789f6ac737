from __future__ import annotations

import gymnasium as gym
import numpy as np

from blockfall.env import ENV_ID
from blockfall.env.blockfall_env import ACTION_COMMANDS, BlockfallEnv
from blockfall.game import Command, GameStatus
from blockfall.rl.random_agent import run_random


def test_env_registered_and_resets():
    env = gym.make(ENV_ID)
    obs, info = env.reset(seed=0)
    assert set(obs) == {"board", "current", "next", "level", "lines"}
    assert obs["board"].shape == (20, 10)
    assert 1 <= obs["current"] <= 7
    assert obs["level"].tolist() == [1]
    assert obs["lines"].tolist() == [0]
    assert env.observation_space.contains(obs)
    assert info["status"] == "playing"
    env.close()


def test_action_table_covers_player_commands():
    assert ACTION_COMMANDS[:5] == (Command.MOVE_LEFT, Command.MOVE_RIGHT, Command.ROTATE,
                                  Command.SOFT_DROP, Command.HARD_DROP)
    assert ACTION_COMMANDS[5] is None


def test_hard_drop_locks_one_piece():
    env = BlockfallEnv()
    env.reset(seed=1)
    _, _, terminated, truncated, info = env.step(4)
    assert info["pieces_locked"] == 1
    assert not terminated and not truncated
    assert env.state.board.filled_cells() == 4


def test_noop_applies_gravity():
    env = BlockfallEnv()
    env.reset(seed=2)
    row = env.state.current_piece.row
    env.step(5)
    assert env.state.current_piece.row == row + 1


def test_same_seed_gives_same_pieces():
    a, b = BlockfallEnv(), BlockfallEnv()
    obs_a, _ = a.reset(seed=123)
    obs_b, _ = b.reset(seed=123)
    for _ in range(20):
        obs_a, *_ = a.step(4)
        obs_b, *_ = b.step(4)
    assert np.array_equal(obs_a["board"], obs_b["board"])
    assert obs_a["next"] == obs_b["next"]


def test_hard_drops_until_game_over_terminate_episode():
    env = BlockfallEnv()
    env.reset(seed=5)
    terminated = False
    for _ in range(500):
        _, reward, terminated, truncated, info = env.step(4)
        assert np.isfinite(reward)
        if terminated:
            break
    assert terminated
    assert env.state.status is GameStatus.OVER
    assert not env.get_action_mask().any()


def test_truncates_after_max_steps():
    env = BlockfallEnv(max_steps=3)
    env.reset(seed=0)
    results = [env.step(5) for _ in range(3)]
    assert [r[3] for r in results] == [False, False, True]


def test_rgb_render():
    env = BlockfallEnv(render_mode="rgb_array")
    env.reset(seed=0)
    img = env.render()
    assert img.shape == (20 * 12, 10 * 12, 3)
    assert img.dtype == np.uint8
    assert BlockfallEnv().render() is None


def test_random_agent_runs_seeded_episodes():
    result = run_random(steps=300, seed=3)
    assert result["episodes"] >= 0
    assert result["best_score"] >= 0
    assert np.isfinite(result["total_reward"])
    assert run_random(steps=300, seed=3) == result
