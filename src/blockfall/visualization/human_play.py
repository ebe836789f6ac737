from __future__ import annotations

import argparse
import logging
from typing import Dict, List, Optional

import pygame

from blockfall.game import Command, GameConfig, GameController, GameStatus, ScoringRules
from .renderer import Renderer


KEY_TO_COMMAND: Dict[int, Command] = {
    pygame.K_LEFT: Command.MOVE_LEFT,
    pygame.K_a: Command.MOVE_LEFT,
    pygame.K_RIGHT: Command.MOVE_RIGHT,
    pygame.K_d: Command.MOVE_RIGHT,
    pygame.K_DOWN: Command.SOFT_DROP,
    pygame.K_s: Command.SOFT_DROP,
    pygame.K_UP: Command.ROTATE,
    pygame.K_w: Command.ROTATE,
    pygame.K_SPACE: Command.HARD_DROP,
    pygame.K_p: Command.PAUSE,
}


def controls_legend() -> List[str]:
    """One line per command, listing every key bound to it."""
    keys: Dict[Command, List[str]] = {}
    for key, command in KEY_TO_COMMAND.items():
        keys.setdefault(command, []).append(pygame.key.name(key))
    return [f"{'/'.join(names)}: {command.name.lower().replace('_', ' ')}"
            for command, names in keys.items()]


def command_for_key(key: int, status: GameStatus) -> Optional[Command]:
    """Map a key press to a command; Enter and Space start a game when none is running."""
    if status in (GameStatus.IDLE, GameStatus.OVER) and key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
        return Command.START
    return KEY_TO_COMMAND.get(key)


def run(config: Optional[GameConfig] = None, rules: Optional[ScoringRules] = None) -> None:
    pygame.init()
    try:
        clock = pygame.time.Clock()
        controller = GameController(config, rules)
        renderer = Renderer(cell_size=28, controls=controls_legend())

        board = controller.state.board
        screen = pygame.display.set_mode(renderer.window_size(board.width, board.height))
        pygame.display.set_caption("Blockfall")

        running = True
        while running:
            # Gravity first so commands below are stamped with the current time
            controller.advance(pygame.time.get_ticks())

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                        continue
                    command = command_for_key(event.key, controller.state.status)
                    if command is not None:
                        controller.dispatch(command, now_ms=pygame.time.get_ticks())

            renderer.draw(screen, controller.state)
            pygame.display.flip()
            clock.tick(60)
    finally:
        pygame.quit()


def main() -> None:
    p = argparse.ArgumentParser(description="Play Blockfall with the keyboard")
    p.add_argument("--width", type=int, default=10)
    p.add_argument("--height", type=int, default=20)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--drop-bonus", action="store_true",
                   help="award 1 point per soft-drop row and 2 per hard-drop row")
    p.add_argument("-v", "--verbose", action="store_true")
    args = p.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = GameConfig(width=args.width, height=args.height, random_seed=args.seed)
    rules = ScoringRules(soft_drop_per_row=1, hard_drop_per_row=2) if args.drop_bonus else ScoringRules()
    run(config, rules)


if __name__ == "__main__":  # pragma: no cover
    main()
