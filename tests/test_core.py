from __future__ import annotations

import numpy as np
import pytest

from blockfall.game import (
    Command,
    GameConfig,
    GameGrid,
    GameState,
    GameStatus,
    Piece,
    ScoringRules,
    TetrominoType,
    cycle_randomizer,
)
from blockfall.game import core

from conftest import always, filled_row, grid_with, playing_state


I, O, T, J = TetrominoType.I, TetrominoType.O, TetrominoType.T, TetrominoType.J


def run(state, *commands, config=None, rules=None, randomizer=None):
    config = config or GameConfig()
    rules = rules or ScoringRules()
    randomizer = randomizer or always(I)
    for command in commands:
        state = core.apply(state, command, config, rules, randomizer)
        assert_consistent(state, config)
    return state


def assert_consistent(state: GameState, config: GameConfig) -> None:
    assert state.board.grid.shape == (config.height, config.width)
    assert state.level == state.lines_cleared // 10 + 1
    assert state.score >= 0
    if state.status in (GameStatus.PLAYING, GameStatus.PAUSED):
        assert state.current_piece is not None
    else:
        assert state.current_piece is None


def test_idle_state_before_start():
    state = GameState.idle()
    assert state.status is GameStatus.IDLE
    assert state.current_piece is None and state.next_piece is None
    assert (state.score, state.level, state.lines_cleared) == (0, 1, 0)
    assert state.board.is_empty()


def test_start_spawns_centred_piece_at_top():
    state = run(GameState.idle(), Command.START)
    assert state.status is GameStatus.PLAYING
    assert state.current_piece == Piece(I, rotation=0, row=0, col=3)
    assert state.next_piece == Piece(I, rotation=0, row=0, col=3)


def test_start_draws_current_then_next():
    state = run(GameState.idle(), Command.START, randomizer=cycle_randomizer([T, O]))
    assert state.current_piece.kind is T
    assert state.next_piece.kind is O


def test_start_discards_a_running_game():
    state = playing_state(grid_with(filled_row(19, skip=[0])), Piece(O, row=3, col=3),
                          score=900, lines_cleared=12)
    fresh = run(state, Command.START)
    assert fresh.board.is_empty()
    assert (fresh.score, fresh.lines_cleared, fresh.level) == (0, 0, 1)


def test_commands_outside_playing_are_noops():
    idle = GameState.idle()
    for command in (Command.PAUSE, Command.TICK, Command.MOVE_LEFT, Command.MOVE_RIGHT,
                    Command.SOFT_DROP, Command.ROTATE, Command.HARD_DROP):
        assert core.apply(idle, command, GameConfig(), ScoringRules(), always(I)) is idle


def test_pause_toggles_and_freezes_the_piece():
    state = run(GameState.idle(), Command.START)
    paused = run(state, Command.PAUSE)
    assert paused.status is GameStatus.PAUSED
    for command in (Command.TICK, Command.MOVE_LEFT, Command.ROTATE, Command.HARD_DROP):
        assert core.apply(paused, command, GameConfig(), ScoringRules(), always(I)) is paused
    resumed = run(paused, Command.PAUSE)
    assert resumed.status is GameStatus.PLAYING
    assert resumed.current_piece == state.current_piece


def test_tick_moves_piece_down_one_row():
    state = run(GameState.idle(), Command.START, Command.TICK, Command.TICK)
    assert state.current_piece.row == 2


def test_move_left_stops_at_wall():
    state = run(GameState.idle(), Command.START)
    for _ in range(10):
        state = run(state, Command.MOVE_LEFT)
    assert state.current_piece.col == 0
    state = run(state, Command.MOVE_RIGHT)
    assert state.current_piece.col == 1


def test_move_right_stops_at_wall():
    state = run(GameState.idle(), Command.START)
    for _ in range(10):
        state = run(state, Command.MOVE_RIGHT)
    assert state.current_piece.col == 6


def test_move_validates_deltas():
    state = run(GameState.idle(), Command.START)
    with pytest.raises(ValueError):
        core.move(state, 2, 0, GameConfig(), ScoringRules(), always(I))
    with pytest.raises(ValueError):
        core.move(state, 0, -1, GameConfig(), ScoringRules(), always(I))


def test_soft_drop_into_obstruction_locks_immediately():
    state = playing_state(GameGrid.empty(10, 20), Piece(O, row=18, col=0))
    locked = run(state, Command.SOFT_DROP)
    assert locked.board.cell_at(19, 0) is O
    assert locked.board.cell_at(18, 1) is O
    assert locked.current_piece == Piece(I, row=0, col=3)
    assert locked.pieces_locked == 1


def test_horizontal_move_into_obstruction_does_not_lock():
    state = playing_state(grid_with({(18, 2): O}), Piece(O, row=18, col=0))
    assert run(state, Command.MOVE_RIGHT) == state


def test_hard_drop_locks_i_piece_on_floor():
    state = run(GameState.idle(), Command.START, Command.HARD_DROP)
    assert [state.board.cell_at(19, c) for c in range(3, 7)] == [I, I, I, I]
    assert state.board.filled_cells() == 4
    assert state.current_piece == Piece(I, row=0, col=3)
    assert state.status is GameStatus.PLAYING


def test_blocked_spawn_ends_the_game():
    board = grid_with({(0, c): O for c in range(3, 7)})
    state = playing_state(board, Piece(I, row=10, col=0))
    over = run(state, Command.HARD_DROP)
    assert over.status is GameStatus.OVER
    assert over.current_piece is None
    assert over.board.cell_at(19, 0) is I
    # Nothing else happens until a new game starts
    assert run(over, Command.TICK, Command.HARD_DROP, Command.PAUSE) is over
    assert run(over, Command.START).status is GameStatus.PLAYING


def test_line_clear_removes_completed_row_and_scores():
    cells = filled_row(19, skip=[9])
    cells[(18, 0)] = J
    state = playing_state(grid_with(cells), Piece(I, rotation=1, row=0, col=9))

    cleared = run(state, Command.HARD_DROP)

    assert cleared.lines_cleared == 1
    assert cleared.score == 100
    assert cleared.board.grid.shape == (20, 10)
    assert cleared.board.cell_at(19, 0) is J
    assert [cleared.board.cell_at(r, 9) for r in (16, 17, 18, 19)] == [None, I, I, I]


def test_line_clear_via_ticks_matches_hard_drop():
    cells = filled_row(19, skip=[9])
    state = playing_state(grid_with(cells), Piece(I, rotation=1, row=0, col=9))
    for _ in range(17):
        state = run(state, Command.TICK)
    assert state.lines_cleared == 1
    assert state.score == 100


def test_multi_line_clear_uses_bonus_table():
    cells = {}
    for row in (16, 17, 18, 19):
        cells.update(filled_row(row, skip=[9]))
    state = playing_state(grid_with(cells), Piece(I, rotation=1, row=0, col=9))
    cleared = run(state, Command.HARD_DROP)
    assert cleared.lines_cleared == 4
    assert cleared.score == 800
    assert cleared.board.is_empty()


def test_score_uses_level_before_the_clear():
    state = playing_state(grid_with(filled_row(19, skip=[9])), Piece(I, rotation=1, row=0, col=9),
                          score=50, lines_cleared=19)
    assert state.level == 2
    cleared = run(state, Command.HARD_DROP)
    assert cleared.lines_cleared == 20
    assert cleared.level == 3
    assert cleared.score == 50 + 100 * 2


def test_drop_bonus_policy():
    rules = ScoringRules(soft_drop_per_row=1, hard_drop_per_row=2)
    state = run(GameState.idle(), Command.START, Command.SOFT_DROP, Command.SOFT_DROP, rules=rules)
    assert state.score == 2
    state = run(state, Command.HARD_DROP, rules=rules)
    # From row 2 down to row 19
    assert state.score == 2 + 17 * 2


def test_rotate_in_place():
    state = playing_state(GameGrid.empty(10, 20), Piece(T, row=5, col=4))
    rotated = run(state, Command.ROTATE)
    assert rotated.current_piece == Piece(T, rotation=1, row=5, col=4)


def test_rotating_four_times_returns_to_original():
    for kind in TetrominoType:
        state = playing_state(GameGrid.empty(10, 20), Piece(kind, row=5, col=3))
        turned = run(state, Command.ROTATE, Command.ROTATE, Command.ROTATE, Command.ROTATE)
        assert turned.current_piece == state.current_piece


def test_o_piece_rotation_never_changes_shape():
    state = playing_state(GameGrid.empty(10, 20), Piece(O, row=5, col=4))
    for _ in range(4):
        state = run(state, Command.ROTATE)
        assert np.array_equal(state.current_piece.shape, [[1, 1], [1, 1]])
        assert (state.current_piece.row, state.current_piece.col) == (5, 4)


def test_wall_kick_shifts_off_right_wall():
    state = playing_state(GameGrid.empty(10, 20), Piece(T, rotation=1, row=5, col=8))
    kicked = run(state, Command.ROTATE)
    assert kicked.current_piece == Piece(T, rotation=2, row=5, col=7)


def test_wall_kicks_try_left_before_right():
    piece = Piece(T, rotation=0, row=5, col=4)
    left_open = playing_state(grid_with({(7, 4): O}), piece)
    assert run(left_open, Command.ROTATE).current_piece == Piece(T, rotation=1, row=5, col=3)

    left_blocked = playing_state(grid_with({(7, 4): O, (7, 3): O}), piece)
    assert run(left_blocked, Command.ROTATE).current_piece == Piece(T, rotation=1, row=5, col=5)


def test_rotation_rejected_when_no_kick_fits():
    state = playing_state(GameGrid.empty(10, 20), Piece(I, rotation=1, row=5, col=9))
    assert run(state, Command.ROTATE) is state
    wide = GameConfig(wall_kicks=(-1, 1, -2, 2))
    assert run(state, Command.ROTATE, config=wide) is state


def test_wider_kick_list_reaches_further():
    state = playing_state(GameGrid.empty(10, 20), Piece(I, rotation=1, row=5, col=8))
    assert run(state, Command.ROTATE) is state
    wide = GameConfig(wall_kicks=(-1, 1, -2, 2))
    assert run(state, Command.ROTATE, config=wide).current_piece == Piece(I, rotation=2, row=5, col=6)


def test_transitions_never_mutate_previous_snapshot():
    state = run(GameState.idle(), Command.START)
    board_before = state.board.clone_state()
    piece_before = state.current_piece
    run(state, Command.HARD_DROP, Command.TICK, Command.MOVE_LEFT)
    assert np.array_equal(state.board.grid, board_before)
    assert state.current_piece is piece_before


def test_unknown_command_is_rejected():
    with pytest.raises(ValueError):
        core.apply(GameState.idle(), 99, GameConfig(), ScoringRules(), always(I))


def test_random_play_keeps_state_consistent():
    import random

    rng = random.Random(7)
    config = GameConfig()
    randomizer = core.uniform_randomizer(random.Random(3))
    state = run(GameState.idle(), Command.START, randomizer=randomizer)
    commands = [Command.MOVE_LEFT, Command.MOVE_RIGHT, Command.ROTATE, Command.SOFT_DROP,
                Command.TICK, Command.HARD_DROP]
    last_score = 0
    last_lines = 0
    for _ in range(2000):
        state = run(state, rng.choice(commands), config=config, randomizer=randomizer)
        assert state.score >= last_score
        assert state.lines_cleared >= last_lines
        last_score, last_lines = state.score, state.lines_cleared
        if state.status is GameStatus.OVER:
            break


def test_to_dict_snapshot():
    state = run(GameState.idle(), Command.START)
    snapshot = state.to_dict()
    assert snapshot["status"] == "playing"
    assert snapshot["current_piece"]["type"] == "I"
    assert snapshot["next_piece"]["col"] == 3
    assert (snapshot["score"], snapshot["level"], snapshot["lines_cleared"]) == (0, 1, 0)
    assert len(snapshot["board"]) == 20


def test_render_grid_overlays_active_piece():
    state = run(GameState.idle(), Command.START)
    grid = state.render_grid()
    assert grid[0, 3:7].tolist() == [-int(I)] * 4
    assert state.board.is_empty()


def test_ghost_piece_projection():
    state = run(GameState.idle(), Command.START)
    assert state.ghost_piece() == Piece(I, row=19, col=3)
    assert GameState.idle().ghost_piece() is None
