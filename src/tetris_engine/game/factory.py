from __future__ import annotations

import random
from typing import Optional

from .cell import ColorId
from .grid import Playfield
from .pieces import BOX_SIZE, Piece, ShapeId


class PieceFactory:
    """Random piece generation from an injectable (seedable) random source."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def random_shape(self) -> ShapeId:
        return self.rng.choice(list(ShapeId))

    def random_color(self) -> ColorId:
        return self.rng.choice(list(ColorId))

    def spawn(
        self,
        playfield: Playfield,
        shape: Optional[ShapeId] = None,
        color: Optional[ColorId] = None,
        turns: Optional[int] = None,
    ) -> Piece:
        """Build a piece in the top-left 4x4 box of ``playfield``.

        Unless ``turns`` is given, the orientation is randomised with 0-3 quarter
        turns before the cells are registered in the grid. Raises ``ValueError``
        when the playfield is smaller than that box.
        """
        if playfield.columns < BOX_SIZE or playfield.rows < BOX_SIZE:
            raise ValueError(
                f"playfield {playfield.columns}x{playfield.rows} cannot hold the {BOX_SIZE}x{BOX_SIZE} spawn box"
            )
        kind = shape if shape is not None else self.random_shape()
        tint = color if color is not None else self.random_color()
        piece = Piece(kind, tint, playfield)
        if turns is None:
            turns = self.rng.randrange(4)
        for _ in range(turns % 4):
            piece.apply_rotation()
        piece.finish_spawn()
        return piece
