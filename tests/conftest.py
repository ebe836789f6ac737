from __future__ import annotations

from typing import Dict, Iterable, Tuple

import numpy as np
import pytest

from blockfall.game import (
    GameConfig,
    GameGrid,
    GameState,
    GameStatus,
    Piece,
    ScoringRules,
    TetrominoType,
    cycle_randomizer,
    spawn_piece,
)


def always(kind: TetrominoType):
    return cycle_randomizer([kind])


def grid_with(cells: Dict[Tuple[int, int], TetrominoType], width: int = 10, height: int = 20) -> GameGrid:
    grid = np.zeros((height, width), dtype=np.int8)
    for (r, c), kind in cells.items():
        grid[r, c] = int(kind)
    return GameGrid(grid)


def filled_row(row: int, skip: Iterable[int] = (), kind: TetrominoType = TetrominoType.O,
               width: int = 10) -> Dict[Tuple[int, int], TetrominoType]:
    skip = set(skip)
    return {(row, c): kind for c in range(width) if c not in skip}


def playing_state(board: GameGrid, current: Piece, next_kind: TetrominoType = TetrominoType.I,
                  **kwargs) -> GameState:
    return GameState(
        board=board,
        current_piece=current,
        next_piece=spawn_piece(next_kind, board.width),
        status=GameStatus.PLAYING,
        **kwargs,
    )


@pytest.fixture
def config() -> GameConfig:
    return GameConfig()


@pytest.fixture
def rules() -> ScoringRules:
    return ScoringRules()
