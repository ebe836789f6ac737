from __future__ import annotations

from dataclasses import dataclass


LINES_PER_LEVEL = 10


def level_for_lines(lines_cleared: int) -> int:
    return lines_cleared // LINES_PER_LEVEL + 1


@dataclass(frozen=True)
class ScoringRules:
    """Score table and drop bonus policy.

    ``line_clear_scores`` is indexed by the number of rows cleared in one
    lock (0..4) and multiplied by the level in force before the clear.
    Drop bonuses are awarded per row descended and default to nothing.
    """

    line_clear_scores: tuple[int, int, int, int, int] = (0, 100, 300, 500, 800)
    soft_drop_per_row: int = 0
    hard_drop_per_row: int = 0

    def __post_init__(self) -> None:
        if len(self.line_clear_scores) != 5:
            raise ValueError("line_clear_scores needs one entry for each of 0..4 rows")
        if any(v < 0 for v in self.line_clear_scores):
            raise ValueError("line_clear_scores must be non-negative")
        if self.soft_drop_per_row < 0 or self.hard_drop_per_row < 0:
            raise ValueError("drop bonuses must be non-negative")

    def score_for_lines(self, lines: int, level: int) -> int:
        if not 0 <= lines < len(self.line_clear_scores):
            raise ValueError(f"cannot clear {lines} rows with a single piece")
        return self.line_clear_scores[lines] * level

    def drop_bonus(self, rows: int, hard: bool = False) -> int:
        per_row = self.hard_drop_per_row if hard else self.soft_drop_per_row
        return max(0, rows) * per_row
