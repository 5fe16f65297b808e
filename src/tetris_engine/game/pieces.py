from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .cell import Cell, CellView, ColorId
from .grid import Playfield


logger = logging.getLogger(__name__)


class ShapeId(IntEnum):
    I = 1
    J = 2
    L = 3
    O = 4
    S = 5
    Z = 6
    T = 7


BOX_SIZE = 4

# Rightward kick search: two attempts, then four more.
FIRST_KICK_SHIFTS = 2
SECOND_KICK_SHIFTS = 4


@dataclass(frozen=True)
class ShapeTemplate:
    offsets: Tuple[Tuple[int, int], ...]
    pivot: Tuple[int, int]


# (column, row) offsets from the top-left of the 4x4 spawn box.
SHAPES: Dict[ShapeId, ShapeTemplate] = {
    ShapeId.I: ShapeTemplate(((1, 0), (1, 1), (1, 2), (1, 3)), (1, 1)),
    ShapeId.J: ShapeTemplate(((2, 0), (2, 1), (2, 2), (1, 2)), (2, 1)),
    ShapeId.L: ShapeTemplate(((1, 0), (1, 1), (1, 2), (2, 2)), (1, 1)),
    ShapeId.O: ShapeTemplate(((1, 0), (2, 0), (1, 1), (2, 1)), (1, 0)),
    ShapeId.S: ShapeTemplate(((3, 0), (2, 0), (2, 1), (1, 1)), (2, 0)),
    ShapeId.Z: ShapeTemplate(((1, 0), (2, 0), (2, 1), (3, 1)), (2, 1)),
    ShapeId.T: ShapeTemplate(((1, 0), (2, 0), (3, 0), (2, 1)), (2, 0)),
}

# Counter-clockwise quarter turn in math coordinates (y up).
_ROT90_CCW = np.array([[0, -1], [1, 0]], dtype=np.int64)


def rotate_offsets(offsets: np.ndarray) -> np.ndarray:
    """Rotate (dx, dy) playfield offsets a quarter turn counter-clockwise.

    The row axis points down, so it is flipped into math orientation, rotated
    and flipped back, giving (dx, dy) -> (dy, -dx).
    """
    flipped = offsets * np.array([1, -1], dtype=np.int64)
    rotated = flipped @ _ROT90_CCW.T
    return rotated * np.array([1, -1], dtype=np.int64)


class Piece:
    """The four-cell falling shape.

    A piece owns its cells until ``release_cells`` hands them to its playfield.
    Every mutating call either commits a full move or leaves the piece as it was.
    """

    def __init__(self, shape: ShapeId, color: ColorId, playfield: Playfield) -> None:
        self.shape = shape
        self.color = color
        self.playfield = playfield
        template = SHAPES[shape]
        self.cells: List[Cell] = [Cell(c, r, color) for c, r in template.offsets]
        self.pivot: List[int] = [template.pivot[0], template.pivot[1]]
        self.spawned = False
        self.released = False

    # ---------- Lifecycle ----------
    def finish_spawn(self) -> None:
        self.playfield.attach(self.cells)
        self.spawned = True

    @property
    def active(self) -> bool:
        return self.spawned and not self.released

    def change_grid(self, playfield: Playfield) -> None:
        """Re-parent the piece and register its cells in the new playfield."""
        if playfield is not self.playfield:
            self.playfield.detach(self.cells)
        self.playfield = playfield
        self.playfield.attach(self.cells)

    def release_cells(self) -> List[Cell]:
        """Lock the cells into the playfield and give up ownership of them."""
        if not self.active:
            return []
        cells = self.cells
        self.playfield.lock_cells(cells)
        self.cells = []
        self.released = True
        logger.debug("Locked %s piece at %s", self.shape.name, [c.position for c in cells])
        return cells

    # ---------- Views ----------
    def cell_views(self) -> Tuple[CellView, ...]:
        return tuple(cell.view() for cell in self.cells)

    def positions(self) -> List[Tuple[int, int]]:
        return [cell.position for cell in self.cells]

    # ---------- Collision ----------
    def collides(self, cells: Sequence[Cell]) -> bool:
        return any(self.playfield.is_locked_at(c.column, c.row) for c in cells)

    def can_move_down(self) -> bool:
        if not self.active:
            return False
        locked = self.playfield.locked_cells()
        for cell in self.cells:
            if cell.row >= self.playfield.last_row:
                return False
            for other in locked:
                if other.column == cell.column and cell.row + 1 >= other.row:
                    return False
        return True

    def _can_shift_sideways(self, dx: int) -> bool:
        if not self.active:
            return False
        for cell in self.cells:
            column = cell.column + dx
            if column < 0 or column > self.playfield.last_column:
                return False
            if self.playfield.is_locked_at(column, cell.row):
                return False
        return True

    def can_move_left(self) -> bool:
        return self._can_shift_sideways(-1)

    def can_move_right(self) -> bool:
        return self._can_shift_sideways(1)

    # ---------- Movement ----------
    def _shift(self, cells: Sequence[Cell], dx: int, dy: int, move_pivot: bool = True) -> None:
        for cell in cells:
            cell.column += dx
            cell.row += dy
        if move_pivot:
            self.pivot[0] += dx
            self.pivot[1] += dy

    def move_down(self) -> bool:
        if not self.can_move_down():
            return False
        self._shift(self.cells, 0, 1)
        return True

    def move_left(self) -> bool:
        if not self.can_move_left():
            return False
        self._shift(self.cells, -1, 0)
        return True

    def move_right(self) -> bool:
        if not self.can_move_right():
            return False
        self._shift(self.cells, 1, 0)
        return True

    def move_up(self) -> None:
        if self.cells:
            self._shift(self.cells, 0, -1)

    def move_to_column(self, column: int) -> bool:
        """Step sideways until the pivot reaches ``column`` or a step is refused."""
        if not self.active:
            return False
        while self.pivot[0] != column:
            moved = self.move_left() if column < self.pivot[0] else self.move_right()
            if not moved:
                return False
        return True

    def keep_within_bounds(self, cells: Optional[Sequence[Cell]] = None, preserve_pivot: bool = False) -> Tuple[int, int]:
        """Push ``cells`` back inside the side and bottom walls.

        Returns the (dx, dy) applied. Rows above the top are left alone.
        """
        if cells is None:
            cells = self.cells
        total_dx = total_dy = 0
        for cell in cells:
            while cell.column < 0:
                self._shift(cells, 1, 0, move_pivot=not preserve_pivot)
                total_dx += 1
            while cell.column > self.playfield.last_column:
                self._shift(cells, -1, 0, move_pivot=not preserve_pivot)
                total_dx -= 1
            while cell.row > self.playfield.last_row:
                self._shift(cells, 0, -1, move_pivot=not preserve_pivot)
                total_dy -= 1
        return total_dx, total_dy

    # ---------- Rotation ----------
    def _rotation_candidate(self) -> Optional[Tuple[List[Cell], int, int]]:
        """Rotated copy of the cells plus the pivot displacement, or None.

        Only the wall correction displaces the pivot; a kick shifts the cells alone.
        """
        trial = [cell.copy() for cell in self.cells]
        pivot = np.array(self.pivot, dtype=np.int64)
        offsets = np.array([[c.column, c.row] for c in trial], dtype=np.int64) - pivot
        rotated = rotate_offsets(offsets) + pivot
        for cell, (column, row) in zip(trial, rotated.tolist()):
            cell.column = int(column)
            cell.row = int(row)

        dx, dy = self.keep_within_bounds(trial, preserve_pivot=True)
        if not self.collides(trial):
            return trial, dx, dy

        kick = 0
        for attempts in (FIRST_KICK_SHIFTS, SECOND_KICK_SHIFTS):
            for _ in range(attempts):
                self._shift(trial, 1, 0, move_pivot=False)
                kick += 1
                in_bounds = all(c.column <= self.playfield.last_column for c in trial)
                if in_bounds and not self.collides(trial):
                    logger.debug("Rotation of %s kicked %d columns right", self.shape.name, kick)
                    return trial, dx, dy
        return None

    def apply_rotation(self) -> bool:
        candidate = self._rotation_candidate()
        if candidate is None:
            return False
        trial, dx, dy = candidate
        for cell, rotated in zip(self.cells, trial):
            cell.column = rotated.column
            cell.row = rotated.row
        self.pivot[0] += dx
        self.pivot[1] += dy
        return True

    def can_rotate(self) -> bool:
        return self.active and self._rotation_candidate() is not None

    def rotate(self) -> bool:
        """Quarter turn counter-clockwise around the pivot, with rightward kicks."""
        if not self.active:
            return False
        return self.apply_rotation()

    def __repr__(self) -> str:
        return f"Piece({self.shape.name}, {self.color.name}, pivot={tuple(self.pivot)}, cells={self.positions()})"
