from __future__ import annotations

from typing import Iterable

from tetris_engine.game import Cell, ColorId, Playfield


def lock_at(playfield: Playfield, positions: Iterable[tuple[int, int]], color: ColorId = ColorId.GRAY) -> None:
    playfield.lock_cells([Cell(column, row, color) for column, row in positions])


def fill_row(playfield: Playfield, row: int, skip: Iterable[int] = ()) -> None:
    skipped = set(skip)
    lock_at(playfield, [(column, row) for column in range(playfield.columns) if column not in skipped])


def locked_positions(playfield: Playfield) -> set[tuple[int, int]]:
    return {cell.position for cell in playfield.locked_cells()}
