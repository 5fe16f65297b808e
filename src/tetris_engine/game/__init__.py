"""Game module for the falling-block engine.

Exports the headless engine and supporting classes:
- Cell, ColorId: Grid squares and their colors
- Playfield: Grid of locked cells, line detection and compaction
- Piece, ShapeId: Tetromino with rotation, kicks and movement
- PieceFactory: Seedable random piece generation
- ScoringRules: Points per row and drop interval scaling
- GameSession: Menu/game state machine, drop cadence and commands
"""

from .cell import Cell, CellView, ColorId
from .grid import Playfield, TERMINAL_ROW
from .pieces import Piece, ShapeId, SHAPES
from .factory import PieceFactory
from .rules import ScoringRules
from .core import Command, GameConfig, GameSession, SessionState, Snapshot, TickResult
from .display import format_grid, format_session

__all__ = [
    "Cell",
    "CellView",
    "ColorId",
    "Playfield",
    "TERMINAL_ROW",
    "Piece",
    "ShapeId",
    "SHAPES",
    "PieceFactory",
    "ScoringRules",
    "Command",
    "GameConfig",
    "GameSession",
    "SessionState",
    "Snapshot",
    "TickResult",
    "format_grid",
    "format_session",
]
