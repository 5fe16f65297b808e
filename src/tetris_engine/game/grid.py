from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

import numpy as np

from .cell import Cell, CellView


logger = logging.getLogger(__name__)

Coordinate = Tuple[int, int]

TERMINAL_ROW = 0


class Playfield:
    """Fixed-size grid of locked cells.

    Row 0 is the terminal row and rows grow downward. Locked cells are owned by
    the playfield; cells of a falling piece are only registered here (``attach``)
    so that snapshots can show them, and are handed over with ``lock_cells``.
    """

    def __init__(self, columns: int, rows: int) -> None:
        if int(columns) <= 0 or int(rows) <= 0:
            raise ValueError(f"Playfield needs positive dimensions, got {columns}x{rows}")
        self.columns = int(columns)
        self.rows = int(rows)
        self._locked: Dict[Coordinate, Cell] = {}
        self._active: List[Cell] = []

    @property
    def last_column(self) -> int:
        return self.columns - 1

    @property
    def last_row(self) -> int:
        return self.rows - 1

    def is_inside(self, column: int, row: int) -> bool:
        return 0 <= column < self.columns and 0 <= row < self.rows

    # ---------- Locked cells ----------
    def is_locked_at(self, column: int, row: int) -> bool:
        return (column, row) in self._locked

    def locked_cells(self) -> List[Cell]:
        return list(self._locked.values())

    def lock_cells(self, cells: Iterable[Cell]) -> None:
        """Take ownership of released piece cells."""
        cells = list(cells)
        for cell in cells:
            if cell.position in self._locked:
                raise ValueError(f"Coordinate {cell.position} is already locked")
        for cell in cells:
            cell.locked = True
            self._locked[cell.position] = cell
            self._remove_active(cell)

    def _reindex(self) -> None:
        self._locked = {cell.position: cell for cell in self._locked.values()}

    def is_row_full(self, row: int) -> bool:
        count = sum(1 for cell in self._locked.values() if cell.row == row)
        return count == self.columns

    def clear_row(self, row: int) -> int:
        doomed = [pos for pos, cell in self._locked.items() if cell.row == row]
        for pos in doomed:
            del self._locked[pos]
        return len(doomed)

    def compact_above(self, row: int) -> None:
        # Expects `row` to be empty already (see clear_row).
        for cell in self._locked.values():
            if cell.row < row:
                cell.row += 1
        self._reindex()

    def resolve_lines(self) -> int:
        """Clear full rows in a single ascending pass; return rows cleared.

        Rows already passed are not inspected again, so a row that only becomes
        full after a later compaction stays in place until the next pass.
        """
        cleared = 0
        for row in range(1, self.rows):
            if self.is_row_full(row):
                self.clear_row(row)
                self.compact_above(row)
                cleared += 1
                logger.debug("Cleared row %d", row)
        return cleared

    def has_locked_cell_on_row(self, row: int) -> bool:
        return any(cell.row == row for cell in self._locked.values())

    def is_terminal(self) -> bool:
        return self.has_locked_cell_on_row(TERMINAL_ROW)

    # ---------- Active cells ----------
    def attach(self, cells: Iterable[Cell]) -> None:
        for cell in cells:
            if not any(cell is c for c in self._active):
                self._active.append(cell)

    def detach(self, cells: Iterable[Cell]) -> None:
        for cell in cells:
            self._remove_active(cell)

    def _remove_active(self, cell: Cell) -> None:
        self._active = [c for c in self._active if c is not cell]

    def active_cells(self) -> List[Cell]:
        return list(self._active)

    def remove_all_cells(self) -> None:
        self._locked.clear()
        self._active.clear()

    # ---------- Views ----------
    def locked_views(self) -> Tuple[CellView, ...]:
        return tuple(sorted(cell.view() for cell in self._locked.values()))

    def active_views(self) -> Tuple[CellView, ...]:
        return tuple(cell.view() for cell in self._active)

    def to_array(self, include_active: bool = True) -> np.ndarray:
        """Color ids per square, 0 for empty; active cells are negative."""
        state = np.zeros((self.rows, self.columns), dtype=np.int8)
        for cell in self._locked.values():
            if self.is_inside(cell.column, cell.row):
                state[cell.row, cell.column] = int(cell.color)
        if include_active:
            for cell in self._active:
                if self.is_inside(cell.column, cell.row):
                    state[cell.row, cell.column] = -int(cell.color)
        return state
