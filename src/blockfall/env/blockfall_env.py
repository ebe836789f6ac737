from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from blockfall.game import (
    Command,
    GameConfig,
    GameController,
    GameStatus,
    ScoringRules,
    TetrominoType,
    color_for,
)


ACTION_COMMANDS: Tuple[Optional[Command], ...] = (
    Command.MOVE_LEFT,
    Command.MOVE_RIGHT,
    Command.ROTATE,
    Command.SOFT_DROP,
    Command.HARD_DROP,
    None,  # no-op
)


class BlockfallEnv(gym.Env):
    """Drives a ``GameController`` with one discrete command per step.

    Gravity is simulated by dispatching a ``TICK`` after every action when
    ``tick_on_step`` is set, so an agent cannot stall a piece forever.
    """

    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    def __init__(self, config: Optional[GameConfig] = None, rules: Optional[ScoringRules] = None,
                 render_mode: Optional[str] = None,
                 reward_weights: Optional[Dict[str, float]] = None,
                 tick_on_step: bool = True,
                 max_steps: int = 10000,
                 terminal_penalty: float = 0.0) -> None:
        super().__init__()
        self.config = config or GameConfig()
        self.controller = GameController(self.config, rules, randomizer=self._draw_kind)
        self.render_mode = render_mode
        self.tick_on_step = bool(tick_on_step)
        self.max_steps = int(max_steps)
        self.terminal_penalty = float(terminal_penalty)
        self.reward_weights: Dict[str, float] = {
            "score": 0.01,       # reward per engine point
            "lines": 1.0,        # reward per line cleared
            # Negative components (penalize increases)
            "holes": 0.1,
            "height": 0.02,
        }
        if reward_weights:
            self.reward_weights.update({k: float(v) for k, v in reward_weights.items()})

        h, w = self.config.height, self.config.width
        n_kinds = len(TetrominoType) + 1  # 0 = no piece

        # Board cells: 0 empty, +kind locked, -kind falling piece
        self.observation_space = spaces.Dict(
            {
                "board": spaces.Box(low=-len(TetrominoType), high=len(TetrominoType), shape=(h, w), dtype=np.int8),
                "current": spaces.Discrete(n_kinds),
                "next": spaces.Discrete(n_kinds),
                "level": spaces.Box(low=1, high=np.iinfo(np.int32).max, shape=(1,), dtype=np.int32),
                "lines": spaces.Box(low=0, high=np.iinfo(np.int32).max, shape=(1,), dtype=np.int32),
            }
        )
        self.action_space = spaces.Discrete(len(ACTION_COMMANDS))
        self._steps = 0

    @property
    def state(self):
        return self.controller.state

    def _draw_kind(self) -> TetrominoType:
        return TetrominoType(int(self.np_random.integers(1, len(TetrominoType) + 1)))

    def _get_obs(self) -> Dict[str, Any]:
        state = self.controller.state
        return {
            "board": state.render_grid().astype(np.int8),
            "current": int(state.current_piece.kind) if state.current_piece else 0,
            "next": int(state.next_piece.kind) if state.next_piece else 0,
            "level": np.array([state.level], dtype=np.int32),
            "lines": np.array([state.lines_cleared], dtype=np.int32),
        }

    def get_action_mask(self) -> np.ndarray:
        state = self.controller.state
        mask = np.zeros((self.action_space.n,), dtype=np.bool_)
        piece = state.current_piece
        if state.status is not GameStatus.PLAYING or piece is None:
            return mask
        board = state.board
        mask[0] = board.fits(piece.moved(0, -1))
        mask[1] = board.fits(piece.moved(0, 1))
        rotated = piece.rotated(1)
        mask[2] = any(board.fits(rotated.moved(0, k)) for k in (0,) + self.config.wall_kicks)
        mask[3] = True  # a blocked soft drop locks
        mask[4] = True
        mask[5] = True
        return mask

    def _get_info(self) -> Dict[str, Any]:
        state = self.controller.state
        return {
            "action_mask": self.get_action_mask(),
            "score": state.score,
            "level": state.level,
            "lines_cleared": state.lines_cleared,
            "pieces_locked": state.pieces_locked,
            "status": state.status.value,
            "steps": self._steps,
        }

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        self._steps = 0
        self.controller.dispatch(Command.START, now_ms=0)
        return self._get_obs(), self._get_info()

    def step(self, action):
        action = int(action)
        if not 0 <= action < len(ACTION_COMMANDS):
            raise ValueError(f"action {action} outside {self.action_space}")

        before = self.controller.state
        command = ACTION_COMMANDS[action]
        if command is not None:
            self.controller.dispatch(command)
        if self.tick_on_step and command is not Command.HARD_DROP:
            self.controller.dispatch(Command.TICK)
        after = self.controller.state
        self._steps += 1

        reward_components: Dict[str, float] = {
            "score": self.reward_weights["score"] * float(after.score - before.score),
            "lines": self.reward_weights["lines"] * float(after.lines_cleared - before.lines_cleared),
            "holes": -self.reward_weights["holes"] * float(
                max(0, after.board.count_holes() - before.board.count_holes())),
            "height": -self.reward_weights["height"] * float(
                max(0, after.board.get_max_height() - before.board.get_max_height())),
        }
        terminated = after.status is GameStatus.OVER
        truncated = self._steps >= self.max_steps
        if terminated:
            reward_components["terminal"] = self.terminal_penalty

        reward = float(sum(reward_components.values()))
        info = self._get_info()
        info["reward_components"] = reward_components
        info["engine_score_delta"] = after.score - before.score
        return self._get_obs(), reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        grid = self.controller.state.render_grid()
        cell = 12
        h, w = grid.shape
        img = np.zeros((h * cell, w * cell, 3), dtype=np.uint8)
        for y in range(h):
            for x in range(w):
                v = int(grid[y, x])
                color = color_for(abs(v)) if v else (30, 30, 36)
                img[y * cell : (y + 1) * cell, x * cell : (x + 1) * cell, :] = color
        return img

    def close(self) -> None:
        pass
