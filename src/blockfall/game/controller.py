from __future__ import annotations

import logging
import random
from typing import Callable, List, Optional

from . import core
from .clock import GameClock, tick_interval_ms
from .core import Command, GameConfig, GameState, GameStatus, Randomizer
from .rules import ScoringRules

logger = logging.getLogger(__name__)

Listener = Callable[[GameState], None]


class GameController:
    """Owns the game state and the gravity clock.

    Commands and clock ticks go through ``dispatch`` one at a time, in the
    order they arrive. Observers read ``state`` (or subscribe) and get
    immutable snapshots.
    """

    def __init__(self, config: Optional[GameConfig] = None, rules: Optional[ScoringRules] = None,
                 randomizer: Optional[Randomizer] = None) -> None:
        self.config = config or GameConfig()
        self.rules = rules or ScoringRules()
        self.randomizer = randomizer or core.uniform_randomizer(random.Random(self.config.random_seed))
        self.clock = GameClock()
        self._state = GameState.idle(self.config)
        self._listeners: List[Listener] = []
        self._now_ms = 0.0

    @property
    def state(self) -> GameState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def tick_interval(self, level: Optional[int] = None) -> int:
        return tick_interval_ms(
            self._state.level if level is None else level,
            start=self.config.tick_start_ms,
            step=self.config.tick_step_ms,
            minimum=self.config.tick_min_ms,
        )

    def dispatch(self, command: Command | int, now_ms: Optional[float] = None) -> GameState:
        if now_ms is not None:
            self._now_ms = now_ms
        command = Command(command)
        previous = self._state
        state = core.apply(previous, command, self.config, self.rules, self.randomizer)
        if state is previous:
            return state
        self._state = state
        self._log_transition(command, previous, state)
        self._sync_clock(command, previous, state)
        for listener in list(self._listeners):
            listener(state)
        return state

    def advance(self, now_ms: float) -> int:
        """Fire one tick per elapsed clock period up to ``now_ms``.

        Returns the number of ticks dispatched. Stops early when a tick takes
        the game out of ``playing``.
        """
        fired = 0
        while self.clock.running:
            deadline = self.clock.deadline_ms
            if not self.clock.pop_due(now_ms):
                break
            self.dispatch(Command.TICK, now_ms=deadline)
            fired += 1
        self._now_ms = max(self._now_ms, now_ms)
        return fired

    def _sync_clock(self, command: Command, previous: GameState, state: GameState) -> None:
        if state.status is not GameStatus.PLAYING:
            self.clock.stop()
            return
        restarted = command == Command.START or previous.status is not GameStatus.PLAYING
        if restarted or state.level != previous.level or not self.clock.running:
            self.clock.restart(self.tick_interval(state.level), self._now_ms)

    def _log_transition(self, command: Command, previous: GameState, state: GameState) -> None:
        if command == Command.START:
            logger.info("game started (%dx%d)", self.config.width, self.config.height)
        if state.pieces_locked != previous.pieces_locked:
            rows = state.lines_cleared - previous.lines_cleared
            logger.debug("piece locked via %s: rows=%d score=%d", command.name, rows, state.score)
        if state.level != previous.level:
            logger.debug("level %d -> %d, tick interval %dms", previous.level, state.level,
                         self.tick_interval(state.level))
        if state.status is GameStatus.OVER and previous.status is not GameStatus.OVER:
            logger.info("game over: score=%d lines=%d level=%d", state.score, state.lines_cleared, state.level)

    # Convenience wrappers for input collaborators
    def start(self, now_ms: Optional[float] = None) -> GameState:
        return self.dispatch(Command.START, now_ms)

    def pause(self, now_ms: Optional[float] = None) -> GameState:
        return self.dispatch(Command.PAUSE, now_ms)

    def move_left(self, now_ms: Optional[float] = None) -> GameState:
        return self.dispatch(Command.MOVE_LEFT, now_ms)

    def move_right(self, now_ms: Optional[float] = None) -> GameState:
        return self.dispatch(Command.MOVE_RIGHT, now_ms)

    def soft_drop(self, now_ms: Optional[float] = None) -> GameState:
        return self.dispatch(Command.SOFT_DROP, now_ms)

    def rotate(self, now_ms: Optional[float] = None) -> GameState:
        return self.dispatch(Command.ROTATE, now_ms)

    def hard_drop(self, now_ms: Optional[float] = None) -> GameState:
        return self.dispatch(Command.HARD_DROP, now_ms)
