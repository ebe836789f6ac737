from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Dict, List, Tuple

import numpy as np


class TetrominoType(IntEnum):
    I = 1
    O = 2
    T = 3
    S = 4
    Z = 5
    J = 6
    L = 7


Shape = np.ndarray
Color = Tuple[int, int, int]


def _rot90(shape: Shape, k: int) -> Shape:
    k = k % 4
    if k == 0:
        return shape
    return np.rot90(shape, k, axes=(1, 0))  # rotate clockwise when k>0


BASE_SHAPES = {
    TetrominoType.I: np.array([[1, 1, 1, 1]], dtype=np.int8),
    TetrominoType.O: np.array([[1, 1], [1, 1]], dtype=np.int8),
    TetrominoType.T: np.array([[0, 1, 0], [1, 1, 1]], dtype=np.int8),
    TetrominoType.S: np.array([[0, 1, 1], [1, 1, 0]], dtype=np.int8),
    TetrominoType.Z: np.array([[1, 1, 0], [0, 1, 1]], dtype=np.int8),
    TetrominoType.J: np.array([[1, 0, 0], [1, 1, 1]], dtype=np.int8),
    TetrominoType.L: np.array([[0, 0, 1], [1, 1, 1]], dtype=np.int8),
}

COLORS: Dict[TetrominoType, Color] = {
    TetrominoType.I: (0, 240, 240),
    TetrominoType.O: (240, 240, 0),
    TetrominoType.T: (160, 0, 240),
    TetrominoType.S: (0, 240, 0),
    TetrominoType.Z: (240, 0, 0),
    TetrominoType.J: (0, 0, 240),
    TetrominoType.L: (240, 160, 0),
}


def _build_rotations() -> Dict[TetrominoType, Tuple[Shape, Shape, Shape, Shape]]:
    table = {}
    for kind, base in BASE_SHAPES.items():
        states = []
        for k in range(4):
            shape = np.ascontiguousarray(_rot90(base, k))
            shape.flags.writeable = False
            states.append(shape)
        table[kind] = tuple(states)
    return table


ROTATIONS = _build_rotations()


def rotations(kind: TetrominoType | int) -> Tuple[Shape, Shape, Shape, Shape]:
    """Return the 4 rotation states of ``kind`` in clockwise order.

    Unknown kinds raise ``ValueError``; the catalog has no fallback shape.
    """
    return ROTATIONS[TetrominoType(kind)]


def shape_for(kind: TetrominoType | int, rotation: int = 0) -> Shape:
    return rotations(kind)[rotation % 4]


def color_for(kind: TetrominoType | int) -> Color:
    return COLORS[TetrominoType(kind)]


@dataclass(frozen=True)
class Piece:
    """A tetromino placed on the board.

    ``row``/``col`` locate the top-left corner of the shape matrix; ``row`` may
    be negative while a piece overlaps the top edge.
    """

    kind: TetrominoType
    rotation: int = 0  # 0..3
    row: int = 0
    col: int = 0

    @property
    def shape(self) -> Shape:
        return shape_for(self.kind, self.rotation)

    @property
    def height(self) -> int:
        return int(self.shape.shape[0])

    @property
    def width(self) -> int:
        return int(self.shape.shape[1])

    def moved(self, drow: int, dcol: int) -> "Piece":
        return replace(self, row=self.row + drow, col=self.col + dcol)

    def rotated(self, delta: int = 1) -> "Piece":
        return replace(self, rotation=(self.rotation + delta) % 4)

    def cells(self) -> List[Tuple[int, int]]:
        """Board ``(row, col)`` coordinates of every occupied cell."""
        s = self.shape
        h, w = s.shape
        cells: List[Tuple[int, int]] = []
        for dy in range(h):
            for dx in range(w):
                if s[dy, dx]:
                    cells.append((self.row + dy, self.col + dx))
        return cells

    def to_dict(self) -> dict:
        return {
            "type": self.kind.name,
            "rotation": self.rotation,
            "row": self.row,
            "col": self.col,
            "shape": self.shape.tolist(),
        }


def spawn_piece(kind: TetrominoType | int, board_width: int, spawn_row: int = 0) -> Piece:
    """Rotation-0 piece horizontally centred for its footprint."""
    kind = TetrominoType(kind)
    w = BASE_SHAPES[kind].shape[1]
    return Piece(kind=kind, rotation=0, row=spawn_row, col=(board_width - w) // 2)
