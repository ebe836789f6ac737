from __future__ import annotations

import itertools
import random
from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Callable, Iterable, Optional, Tuple

import numpy as np

from .clock import TICK_MIN_MS, TICK_START_MS, TICK_STEP_MS
from .grid import GameGrid
from .pieces import Piece, TetrominoType, spawn_piece
from .rules import ScoringRules, level_for_lines


class Command(IntEnum):
    START = 0
    PAUSE = 1
    TICK = 2
    MOVE_LEFT = 3
    MOVE_RIGHT = 4
    SOFT_DROP = 5
    ROTATE = 6
    HARD_DROP = 7


class GameStatus(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    OVER = "over"


# Returns the kind of the next piece to hold. Any zero-argument callable works,
# which lets tests feed fixed sequences.
Randomizer = Callable[[], TetrominoType]


def uniform_randomizer(rng: Optional[random.Random] = None) -> Randomizer:
    """Independent uniform draws over the 7 kinds (no bag)."""
    rng = rng or random.Random()
    kinds = list(TetrominoType)

    def draw() -> TetrominoType:
        return rng.choice(kinds)

    return draw


def cycle_randomizer(kinds: Iterable[TetrominoType | int]) -> Randomizer:
    """Repeat ``kinds`` forever, in order."""
    pool = itertools.cycle([TetrominoType(k) for k in kinds])

    def draw() -> TetrominoType:
        return next(pool)

    return draw


@dataclass(frozen=True)
class GameConfig:
    width: int = 10
    height: int = 20
    spawn_row: int = 0
    tick_start_ms: int = TICK_START_MS
    tick_step_ms: int = TICK_STEP_MS
    tick_min_ms: int = TICK_MIN_MS
    # Horizontal offsets tried in order after an in-place rotation fails.
    wall_kicks: Tuple[int, ...] = (-1, 1)
    random_seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.width < 4 or self.height < 4:
            raise ValueError(f"board must be at least 4x4, got {self.width}x{self.height}")
        if self.tick_min_ms <= 0 or self.tick_start_ms < self.tick_min_ms or self.tick_step_ms < 0:
            raise ValueError("tick constants need 0 < tick_min_ms <= tick_start_ms and tick_step_ms >= 0")
        object.__setattr__(self, "wall_kicks", tuple(int(k) for k in self.wall_kicks))


@dataclass(frozen=True)
class GameState:
    """Authoritative game state; every transition returns a new instance."""

    board: GameGrid
    current_piece: Optional[Piece] = None
    next_piece: Optional[Piece] = None
    score: int = 0
    lines_cleared: int = 0
    status: GameStatus = GameStatus.IDLE
    pieces_locked: int = field(default=0, compare=False)

    @classmethod
    def idle(cls, config: Optional[GameConfig] = None) -> "GameState":
        config = config or GameConfig()
        return cls(board=GameGrid.empty(config.width, config.height))

    @property
    def level(self) -> int:
        return level_for_lines(self.lines_cleared)

    def ghost_piece(self) -> Optional[Piece]:
        if self.current_piece is None:
            return None
        return self.board.ghost_piece(self.current_piece)

    def render_grid(self) -> np.ndarray:
        # Overlay current piece on a copy of the grid for observation
        state = self.board.clone_state()
        if self.current_piece is not None:
            for r, c in self.current_piece.cells():
                if self.board.is_inside(r, c):
                    # Use negative to indicate falling piece overlay
                    state[r, c] = -int(self.current_piece.kind)
        return state

    def to_dict(self) -> dict:
        return {
            "board": self.board.to_list(),
            "current_piece": self.current_piece.to_dict() if self.current_piece else None,
            "next_piece": self.next_piece.to_dict() if self.next_piece else None,
            "score": self.score,
            "level": self.level,
            "lines_cleared": self.lines_cleared,
            "status": self.status.value,
        }


def start(state: GameState, config: GameConfig, randomizer: Randomizer) -> GameState:
    return GameState(
        board=GameGrid.empty(config.width, config.height),
        current_piece=spawn_piece(randomizer(), config.width, config.spawn_row),
        next_piece=spawn_piece(randomizer(), config.width, config.spawn_row),
        score=0,
        lines_cleared=0,
        status=GameStatus.PLAYING,
    )


def pause(state: GameState) -> GameState:
    if state.status is GameStatus.PLAYING:
        return replace(state, status=GameStatus.PAUSED)
    if state.status is GameStatus.PAUSED:
        return replace(state, status=GameStatus.PLAYING)
    return state


def lock_and_spawn(state: GameState, piece: Piece, config: GameConfig, rules: ScoringRules,
                   randomizer: Randomizer, bonus: int = 0) -> GameState:
    """Commit ``piece``, clear full rows, score, then spawn the held piece.

    The game ends when the held piece does not fit the cleared board.
    """
    assert state.next_piece is not None
    result = state.board.with_piece_locked(piece).clear_full_rows()
    gained = rules.score_for_lines(result.rows_cleared, state.level)
    locked = replace(
        state,
        board=result.grid,
        score=state.score + bonus + gained,
        lines_cleared=state.lines_cleared + result.rows_cleared,
        pieces_locked=state.pieces_locked + 1,
    )
    spawned = state.next_piece
    if not result.grid.fits(spawned):
        return replace(locked, current_piece=None, status=GameStatus.OVER)
    return replace(
        locked,
        current_piece=spawned,
        next_piece=spawn_piece(randomizer(), config.width, config.spawn_row),
    )


def tick(state: GameState, config: GameConfig, rules: ScoringRules, randomizer: Randomizer) -> GameState:
    if state.status is not GameStatus.PLAYING or state.current_piece is None:
        return state
    moved = state.current_piece.moved(1, 0)
    if state.board.fits(moved):
        return replace(state, current_piece=moved)
    return lock_and_spawn(state, state.current_piece, config, rules, randomizer)


def move(state: GameState, dx: int, dy: int, config: GameConfig, rules: ScoringRules,
         randomizer: Randomizer) -> GameState:
    """Shift by ``dx`` columns and ``dy`` rows; a blocked downward move locks."""
    if dx not in (-1, 0, 1) or dy not in (0, 1):
        raise ValueError(f"unsupported move ({dx}, {dy})")
    if state.status is not GameStatus.PLAYING or state.current_piece is None:
        return state
    piece = state.current_piece
    moved = piece.moved(dy, dx)
    if state.board.fits(moved):
        return replace(state, current_piece=moved, score=state.score + rules.drop_bonus(dy))
    if dy == 1 and not state.board.fits(piece.moved(1, 0)):
        return lock_and_spawn(state, piece, config, rules, randomizer)
    return state


def rotate(state: GameState, config: GameConfig) -> GameState:
    if state.status is not GameStatus.PLAYING or state.current_piece is None:
        return state
    rotated = state.current_piece.rotated(1)
    for offset in (0,) + config.wall_kicks:
        candidate = rotated.moved(0, offset)
        if state.board.fits(candidate):
            return replace(state, current_piece=candidate)
    return state


def hard_drop(state: GameState, config: GameConfig, rules: ScoringRules, randomizer: Randomizer) -> GameState:
    if state.status is not GameStatus.PLAYING or state.current_piece is None:
        return state
    distance = state.board.drop_distance(state.current_piece)
    landed = state.current_piece.moved(distance, 0)
    return lock_and_spawn(state, landed, config, rules, randomizer,
                          bonus=rules.drop_bonus(distance, hard=True))


def apply(state: GameState, command: Command | int, config: GameConfig, rules: ScoringRules,
          randomizer: Randomizer) -> GameState:
    """Pure ``(state, command) -> state`` dispatch."""
    command = Command(command)
    if command == Command.START:
        return start(state, config, randomizer)
    elif command == Command.PAUSE:
        return pause(state)
    elif command == Command.TICK:
        return tick(state, config, rules, randomizer)
    elif command == Command.MOVE_LEFT:
        return move(state, -1, 0, config, rules, randomizer)
    elif command == Command.MOVE_RIGHT:
        return move(state, 1, 0, config, rules, randomizer)
    elif command == Command.SOFT_DROP:
        return move(state, 0, 1, config, rules, randomizer)
    elif command == Command.ROTATE:
        return rotate(state, config)
    elif command == Command.HARD_DROP:
        return hard_drop(state, config, rules, randomizer)
    raise AssertionError(f"unhandled command {command!r}")
