"""Game module for Blockfall.

Exports the falling-block simulation engine:
- TetrominoType / Piece: piece catalog and rotation states
- GameGrid: immutable board, validity checks and row clearing
- ScoringRules: line-clear table, drop bonuses and level progression
- GameClock: host-driven gravity trigger
- GameState / Command: state snapshot and the pure transitions over it
- GameController: serialized command stream that owns state and clock
"""

from .pieces import Piece, TetrominoType, color_for, rotations, shape_for, spawn_piece
from .grid import ClearResult, GameGrid
from .rules import LINES_PER_LEVEL, ScoringRules, level_for_lines
from .clock import GameClock, tick_interval_ms
from .core import (
    Command,
    GameConfig,
    GameState,
    GameStatus,
    Randomizer,
    cycle_randomizer,
    uniform_randomizer,
)
from .controller import GameController

__all__ = [
    "Piece",
    "TetrominoType",
    "color_for",
    "rotations",
    "shape_for",
    "spawn_piece",
    "ClearResult",
    "GameGrid",
    "LINES_PER_LEVEL",
    "ScoringRules",
    "level_for_lines",
    "GameClock",
    "tick_interval_ms",
    "Command",
    "GameConfig",
    "GameState",
    "GameStatus",
    "Randomizer",
    "cycle_randomizer",
    "uniform_randomizer",
    "GameController",
]
