from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import NamedTuple


class ColorId(IntEnum):
    BLUE = 1
    RED = 2
    CYAN = 3
    GREEN = 4
    YELLOW = 5
    ORANGE = 6
    GRAY = 7
    PINK = 8


class CellView(NamedTuple):
    column: int
    row: int
    color: ColorId


@dataclass
class Cell:
    """A single occupied grid square.

    ``locked`` is False while the cell belongs to the falling piece and True once
    it rests on the playfield.
    """

    column: int
    row: int
    color: ColorId
    locked: bool = False

    @property
    def position(self) -> tuple[int, int]:
        return self.column, self.row

    def copy(self) -> "Cell":
        return Cell(self.column, self.row, self.color, self.locked)

    def view(self) -> CellView:
        return CellView(self.column, self.row, self.color)
