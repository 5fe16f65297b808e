from __future__ import annotations

import numpy as np
import pytest

from tetris_engine.game import ColorId, Piece, PieceFactory, Playfield, SHAPES, ShapeId
from tetris_engine.game.pieces import rotate_offsets

from helpers import fill_row, lock_at, locked_positions


def spawn(factory, playfield, shape, turns=0):
    return factory.spawn(playfield, shape, ColorId.BLUE, turns=turns)


def centred(factory, playfield, shape):
    piece = spawn(factory, playfield, shape)
    for _ in range(5):
        assert piece.move_down()
    for _ in range(3):
        assert piece.move_right()
    return piece


def test_rotate_offsets_is_quarter_turn_counter_clockwise():
    offsets = np.array([[0, -1], [1, 0], [2, 3]])
    np.testing.assert_array_equal(rotate_offsets(offsets), [[-1, 0], [0, -1], [3, -2]])


@pytest.mark.parametrize("shape", list(ShapeId))
def test_spawn_uses_shape_table(factory, playfield, shape):
    piece = spawn(factory, playfield, shape)
    assert piece.positions() == list(SHAPES[shape].offsets)
    assert tuple(piece.pivot) == SHAPES[shape].pivot
    assert len(piece.cells) == 4
    assert not any(cell.locked for cell in piece.cells)


@pytest.mark.parametrize("shape", list(ShapeId))
def test_four_rotations_restore_the_piece(factory, playfield, shape):
    piece = centred(factory, playfield, shape)
    start_cells = sorted(piece.positions())
    start_pivot = tuple(piece.pivot)

    for _ in range(4):
        assert piece.rotate()

    assert sorted(piece.positions()) == start_cells
    assert tuple(piece.pivot) == start_pivot


def test_rotation_maps_offsets_around_pivot(factory, playfield):
    piece = centred(factory, playfield, ShapeId.I)
    assert piece.positions() == [(4, 5), (4, 6), (4, 7), (4, 8)]
    assert tuple(piece.pivot) == (4, 6)

    assert piece.rotate()

    assert piece.positions() == [(3, 6), (4, 6), (5, 6), (6, 6)]
    assert tuple(piece.pivot) == (4, 6)


def test_rotation_against_left_wall_is_pushed_back_in(factory, playfield):
    piece = spawn(factory, playfield, ShapeId.I)
    assert piece.move_left()
    assert piece.positions() == [(0, 0), (0, 1), (0, 2), (0, 3)]

    assert piece.rotate()

    assert piece.positions() == [(0, 1), (1, 1), (2, 1), (3, 1)]
    assert tuple(piece.pivot) == (1, 1)


def test_rotation_against_floor_is_pushed_up(factory, playfield):
    piece = spawn(factory, playfield, ShapeId.I, turns=1)
    assert piece.positions() == [(0, 1), (1, 1), (2, 1), (3, 1)]
    for _ in range(14):
        assert piece.move_down()

    assert piece.rotate()

    assert sorted(piece.positions()) == [(1, 12), (1, 13), (1, 14), (1, 15)]
    assert tuple(piece.pivot) == (1, 14)


def test_rotation_kicks_right_when_blocked(factory, playfield):
    piece = centred(factory, playfield, ShapeId.I)
    lock_at(playfield, [(3, 6)])

    assert piece.rotate()

    assert piece.positions() == [(4, 6), (5, 6), (6, 6), (7, 6)]
    assert tuple(piece.pivot) == (4, 6)


def test_kick_leaves_pivot_for_later_moves(factory, playfield):
    piece = centred(factory, playfield, ShapeId.I)
    lock_at(playfield, [(3, 6)])
    assert piece.rotate()

    assert piece.move_to_column(6)
    assert tuple(piece.pivot) == (6, 6)
    assert piece.positions() == [(6, 6), (7, 6), (8, 6), (9, 6)]


def test_rotation_uses_second_kick_stage():
    wide = Playfield(20, 16)
    piece = centred(PieceFactory(), wide, ShapeId.I)
    lock_at(wide, [(3, 6), (6, 6)])

    assert piece.rotate()

    assert piece.positions() == [(7, 6), (8, 6), (9, 6), (10, 6)]
    assert tuple(piece.pivot) == (4, 6)


def test_rotation_rejected_when_every_kick_collides(factory, playfield):
    piece = centred(factory, playfield, ShapeId.I)
    lock_at(playfield, [(column, 6) for column in (3, 5, 6, 7, 8, 9)])
    before = piece.positions()

    assert not piece.can_rotate()
    assert not piece.rotate()

    assert piece.positions() == before
    assert tuple(piece.pivot) == (4, 6)


def test_unspawned_piece_ignores_commands(playfield):
    piece = Piece(ShapeId.T, ColorId.RED, playfield)
    before = piece.positions()

    assert not piece.rotate()
    assert not piece.move_down()
    assert not piece.move_left()
    assert not piece.move_right()
    assert not piece.move_to_column(5)
    assert piece.positions() == before
    assert playfield.active_cells() == []


def test_o_piece_lands_after_fourteen_drops(factory, playfield):
    piece = spawn(factory, playfield, ShapeId.O)
    assert piece.positions() == [(1, 0), (2, 0), (1, 1), (2, 1)]

    for _ in range(14):
        assert piece.move_down()
    assert not piece.move_down()

    assert sorted(piece.positions()) == [(1, 14), (1, 15), (2, 14), (2, 15)]


def test_move_down_stops_above_locked_cell_without_partial_move(factory, playfield):
    lock_at(playfield, [(1, 5)])
    piece = spawn(factory, playfield, ShapeId.O)

    for _ in range(3):
        assert piece.move_down()
    before = piece.positions()
    pivot = tuple(piece.pivot)

    assert not piece.can_move_down()
    assert not piece.move_down()
    assert piece.positions() == before
    assert tuple(piece.pivot) == pivot


def test_sideways_moves_respect_walls_and_locked_cells(factory, playfield):
    piece = spawn(factory, playfield, ShapeId.O)
    assert piece.move_left()
    assert not piece.move_left()

    lock_at(playfield, [(3, 1)])
    assert piece.move_right()
    assert not piece.move_right()
    assert sorted(piece.positions()) == [(1, 0), (1, 1), (2, 0), (2, 1)]


def test_move_up_is_unconditional(factory, playfield):
    piece = spawn(factory, playfield, ShapeId.O)
    piece.move_up()
    assert sorted(piece.positions()) == [(1, -1), (1, 0), (2, -1), (2, 0)]
    assert tuple(piece.pivot) == (1, -1)


def test_move_to_column(factory, playfield):
    piece = spawn(factory, playfield, ShapeId.O)

    assert piece.move_to_column(6)
    assert sorted(piece.positions()) == [(6, 0), (6, 1), (7, 0), (7, 1)]

    assert not piece.move_to_column(9)
    assert piece.pivot[0] == 8

    assert piece.move_to_column(0)
    assert sorted(piece.positions()) == [(0, 0), (0, 1), (1, 0), (1, 1)]


def test_keep_within_bounds_moves_cells_and_pivot(factory, playfield):
    piece = spawn(factory, playfield, ShapeId.I)
    for cell in piece.cells:
        cell.column -= 3
    assert piece.keep_within_bounds() == (2, 0)
    assert piece.positions() == [(0, 0), (0, 1), (0, 2), (0, 3)]
    assert tuple(piece.pivot) == (3, 1)


def test_release_cells_only_flips_locked_flag(factory, playfield):
    piece = spawn(factory, playfield, ShapeId.T)
    for _ in range(4):
        piece.move_down()
    cells = list(piece.cells)
    before = [cell.position for cell in cells]

    released = piece.release_cells()

    assert released == cells
    assert [cell.position for cell in cells] == before
    assert all(cell.locked for cell in cells)
    assert locked_positions(playfield) == set(before)
    assert piece.cells == []
    assert playfield.active_cells() == []

    assert piece.release_cells() == []
    assert locked_positions(playfield) == set(before)


def test_change_grid_moves_registration(factory, playfield):
    preview = Playfield(4, 4)
    piece = spawn(factory, preview, ShapeId.S)
    assert len(preview.active_cells()) == 4

    piece.change_grid(playfield)

    assert preview.active_cells() == []
    assert len(playfield.active_cells()) == 4
    assert piece.playfield is playfield


def test_collisions_ignore_own_active_cells(factory, playfield):
    fill_row(playfield, 15, skip=[1, 2])
    piece = spawn(factory, playfield, ShapeId.O)
    assert not piece.collides(piece.cells)
    while piece.move_down():
        pass
    assert sorted(piece.positions()) == [(1, 14), (1, 15), (2, 14), (2, 15)]
