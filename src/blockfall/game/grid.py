from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .pieces import Piece, Shape, TetrominoType


EMPTY = 0


@dataclass(frozen=True)
class ClearResult:
    grid: "GameGrid"
    rows_cleared: int


class GameGrid:
    """Fixed-size board of locked cells.

    The grid uses 0 for empty cells and ``TetrominoType`` values for locked
    cells. Row 0 is the top. Instances are immutable: the backing array is
    read-only and every write returns a new ``GameGrid``.
    """

    def __init__(self, grid: np.ndarray) -> None:
        if grid.ndim != 2:
            raise ValueError(f"grid must be 2-dimensional, got shape {grid.shape}")
        grid = np.array(grid, dtype=np.int8, copy=True)
        grid.flags.writeable = False
        self.grid = grid
        self.height, self.width = (int(n) for n in grid.shape)

    @classmethod
    def empty(cls, width: int, height: int) -> "GameGrid":
        return cls(np.zeros((int(height), int(width)), dtype=np.int8))

    def __repr__(self) -> str:
        return f"GameGrid(width={self.width}, height={self.height}, filled={self.filled_cells()})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameGrid):
            return NotImplemented
        return np.array_equal(self.grid, other.grid)

    __hash__ = None  # type: ignore[assignment]

    def is_inside(self, row: int, col: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width

    def cell_at(self, row: int, col: int) -> Optional[TetrominoType]:
        if not self.is_inside(row, col):
            raise IndexError(f"cell ({row}, {col}) outside {self.height}x{self.width} board")
        v = int(self.grid[row, col])
        return None if v == EMPTY else TetrominoType(v)

    def is_valid(self, shape: Shape, row: int, col: int) -> bool:
        """Check whether ``shape`` fits with its top-left corner at (row, col).

        Rows above the board (negative) are allowed so pieces can spawn
        partially off the top; those cells are never compared to the board.
        """
        h, w = shape.shape
        for dy in range(h):
            for dx in range(w):
                if not shape[dy, dx]:
                    continue
                r = row + dy
                c = col + dx
                if c < 0 or c >= self.width or r >= self.height:
                    return False
                if r >= 0 and self.grid[r, c] != EMPTY:
                    return False
        return True

    def fits(self, piece: Piece) -> bool:
        return self.is_valid(piece.shape, piece.row, piece.col)

    def with_piece_locked(self, piece: Piece) -> "GameGrid":
        """Return a new grid with ``piece`` written in; cells above row 0 are dropped."""
        grid = self.grid.copy()
        value = int(piece.kind)
        for r, c in piece.cells():
            if 0 <= r < self.height and 0 <= c < self.width:
                grid[r, c] = value
        return GameGrid(grid)

    def full_rows(self) -> List[int]:
        return [int(r) for r in np.where(np.all(self.grid != EMPTY, axis=1))[0]]

    def clear_full_rows(self) -> ClearResult:
        full_rows = self.full_rows()
        if not full_rows:
            return ClearResult(grid=self, rows_cleared=0)
        num = len(full_rows)
        # Remove full rows and add empty rows at the top
        kept = np.delete(self.grid, full_rows, axis=0)
        new_rows = np.zeros((num, self.width), dtype=np.int8)
        grid = np.vstack((new_rows, kept))
        assert grid.shape == (self.height, self.width)
        return ClearResult(grid=GameGrid(grid), rows_cleared=num)

    def drop_distance(self, piece: Piece) -> int:
        """Rows ``piece`` can fall before it would collide."""
        distance = 0
        while self.is_valid(piece.shape, piece.row + distance + 1, piece.col):
            distance += 1
        return distance

    def ghost_piece(self, piece: Piece) -> Piece:
        return piece.moved(self.drop_distance(piece), 0)

    def is_empty(self) -> bool:
        return not bool(np.any(self.grid != EMPTY))

    def filled_cells(self) -> int:
        return int(np.count_nonzero(self.grid))

    def occupied_rows(self) -> int:
        return int(np.count_nonzero(np.any(self.grid != EMPTY, axis=1)))

    def column_heights(self) -> List[int]:
        heights: List[int] = []
        for x in range(self.width):
            filled = np.flatnonzero(self.grid[:, x])
            heights.append(self.height - int(filled[0]) if filled.size else 0)
        return heights

    def get_max_height(self) -> int:
        # y=0 is top; find first non-empty from top
        non_empty_rows = np.where(np.any(self.grid != EMPTY, axis=1))[0]
        if non_empty_rows.size == 0:
            return 0
        top_index = int(non_empty_rows[0])
        return self.height - top_index

    def count_holes(self) -> int:
        holes = 0
        for x in range(self.width):
            column = self.grid[:, x]
            seen_block = False
            for cell in column:
                if cell != EMPTY:
                    seen_block = True
                elif seen_block:
                    holes += 1
        return holes

    def bumpiness(self) -> int:
        heights = self.column_heights()
        return sum(abs(a - b) for a, b in zip(heights, heights[1:]))

    def clone_state(self) -> np.ndarray:
        return self.grid.copy()

    def to_list(self) -> List[List[Optional[str]]]:
        return [
            [None if v == EMPTY else TetrominoType(int(v)).name for v in row]
            for row in self.grid
        ]
