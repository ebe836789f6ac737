from __future__ import annotations

from typing import Optional, Sequence, Tuple

import pygame

from blockfall.game import GameState, GameStatus, Piece, color_for


BACKGROUND = (10, 10, 14)
EMPTY_CELL = (30, 30, 36)
TEXT = (230, 230, 230)


def _dim(color: Tuple[int, int, int], factor: float = 0.35) -> Tuple[int, int, int]:
    return tuple(int(c * factor) for c in color)  # type: ignore[return-value]


class Renderer:
    """Draws a published ``GameState``. Reads the snapshot only."""

    def __init__(self, cell_size: int = 28, margin: int = 20, panel_cells: int = 6,
                 controls: Sequence[str] = ()) -> None:
        self.cell_size = cell_size
        self.margin = margin
        self.panel_cells = panel_cells
        self.controls = tuple(controls)
        self._font: Optional[pygame.font.Font] = None

    def window_size(self, width: int, height: int) -> Tuple[int, int]:
        board_w = width * self.cell_size
        board_h = height * self.cell_size
        panel_w = self.panel_cells * self.cell_size
        return self.margin * 3 + board_w + panel_w, self.margin * 2 + board_h

    @property
    def font(self) -> pygame.font.Font:
        if self._font is None:
            self._font = pygame.font.SysFont(None, 26)
        return self._font

    def _cell_rect(self, row: int, col: int, x0: int, y0: int) -> pygame.Rect:
        return pygame.Rect(
            x0 + col * self.cell_size,
            y0 + row * self.cell_size,
            self.cell_size - 1,
            self.cell_size - 1,
        )

    def _draw_piece(self, screen: pygame.Surface, piece: Piece, x0: int, y0: int,
                    outline: bool = False, clip_top: bool = True) -> None:
        color = color_for(piece.kind)
        for r, c in piece.cells():
            if clip_top and r < 0:
                continue
            rect = self._cell_rect(r, c, x0, y0)
            if outline:
                pygame.draw.rect(screen, _dim(color, 0.8), rect, 2)
            else:
                pygame.draw.rect(screen, color, rect)

    def draw(self, screen: pygame.Surface, state: GameState) -> None:
        screen.fill(BACKGROUND)
        x0 = y0 = self.margin
        board = state.board
        for y in range(board.height):
            for x in range(board.width):
                kind = board.cell_at(y, x)
                color = EMPTY_CELL if kind is None else color_for(kind)
                pygame.draw.rect(screen, color, self._cell_rect(y, x, x0, y0))

        current = state.current_piece
        if current is not None:
            ghost = state.ghost_piece()
            if ghost is not None and ghost.row != current.row:
                self._draw_piece(screen, ghost, x0, y0, outline=True)
            self._draw_piece(screen, current, x0, y0)

        self._draw_panel(screen, state)

        overlay = {
            GameStatus.IDLE: "Press Enter to start",
            GameStatus.PAUSED: "Paused - P to resume",
            GameStatus.OVER: "Game Over - Enter to restart",
        }.get(state.status)
        if overlay:
            text = self.font.render(overlay, True, (255, 255, 255))
            rect = text.get_rect(center=(x0 + board.width * self.cell_size // 2,
                                         y0 + board.height * self.cell_size // 2))
            screen.blit(text, rect)

    def _draw_panel(self, screen: pygame.Surface, state: GameState) -> None:
        px = self.margin * 2 + state.board.width * self.cell_size
        py = self.margin
        screen.blit(self.font.render("Next", True, TEXT), (px, py))
        if state.next_piece is not None:
            preview = Piece(state.next_piece.kind)
            self._draw_piece(screen, preview, px, py + 28, clip_top=False)
        lines = [
            f"Score: {state.score}",
            f"Level: {state.level}",
            f"Lines: {state.lines_cleared}",
        ]
        y = py + 28 + 3 * self.cell_size
        for txt in lines:
            screen.blit(self.font.render(txt, True, TEXT), (px, y))
            y += 24

        if self.controls:
            y += 12
            screen.blit(self.font.render("Controls", True, TEXT), (px, y))
            y += 24
            for txt in self.controls:
                screen.blit(self.font.render(txt, True, _dim(TEXT, 0.75)), (px, y))
                y += 20
