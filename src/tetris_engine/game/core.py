from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, FrozenSet, Optional, Tuple

import numpy as np

from .cell import CellView
from .factory import PieceFactory
from .grid import TERMINAL_ROW, Playfield
from .pieces import BOX_SIZE, Piece
from .rules import ScoringRules


logger = logging.getLogger(__name__)


class SessionState(IntEnum):
    MAIN_MENU = 0
    HOW_TO_PLAY = 1
    INSTRUCTIONS = 1
    CONTROLS = 2
    RUNNING = 3
    GAME_OVER = 4


TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.MAIN_MENU: frozenset({SessionState.HOW_TO_PLAY, SessionState.CONTROLS, SessionState.RUNNING}),
    SessionState.HOW_TO_PLAY: frozenset({SessionState.CONTROLS, SessionState.MAIN_MENU}),
    SessionState.CONTROLS: frozenset({SessionState.HOW_TO_PLAY, SessionState.MAIN_MENU}),
    # RUNNING -> RUNNING is a restart from the pause menu.
    SessionState.RUNNING: frozenset({SessionState.RUNNING, SessionState.GAME_OVER}),
    SessionState.GAME_OVER: frozenset({SessionState.RUNNING, SessionState.MAIN_MENU}),
}


class Command(IntEnum):
    MOVE_LEFT = 0
    MOVE_RIGHT = 1
    ROTATE = 2
    SOFT_DROP = 3
    HARD_DROP = 4
    NONE = 5


@dataclass
class GameConfig:
    columns: int = 10
    rows: int = 16
    preview_columns: int = BOX_SIZE
    preview_rows: int = BOX_SIZE
    drop_interval_ms: int = 500
    terminal_row: int = TERMINAL_ROW
    random_seed: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("columns", "rows", "preview_columns", "preview_rows", "drop_interval_ms"):
            value = getattr(self, name)
            if int(value) <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        for name in ("columns", "rows", "preview_columns", "preview_rows"):
            value = getattr(self, name)
            if int(value) < BOX_SIZE:
                raise ValueError(f"{name} must hold the {BOX_SIZE}x{BOX_SIZE} spawn box, got {value}")
        if self.terminal_row != TERMINAL_ROW:
            raise ValueError(f"terminal_row is fixed at {TERMINAL_ROW}, got {self.terminal_row}")


@dataclass
class TickResult:
    moved: bool = False
    locked: bool = False
    rows_cleared: int = 0
    game_over: bool = False


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of everything a front end needs for one frame."""

    state: SessionState
    score: int
    paused: bool
    locked: Tuple[CellView, ...] = ()
    active: Tuple[CellView, ...] = ()
    next: Tuple[CellView, ...] = ()


@dataclass
class GameStats:
    pieces_locked: int = 0
    rows_cleared: int = 0
    drop_ticks: int = 0


class GameSession:
    """Menu/game state machine wrapped around one playfield and its pieces.

    All gameplay mutation goes through drop ticks (``drop_tick``, ``advance``)
    and the player commands (``handle`` or the ``move_*``/``rotate`` calls).
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rules: Optional[ScoringRules] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.rules = rules or ScoringRules()
        self.rng = rng or random.Random(self.config.random_seed)
        self.factory = PieceFactory(self.rng)
        self.state = SessionState.MAIN_MENU
        self.score = 0
        self.paused = False
        self.drop_held = False
        self.drop_interval_ms = self.config.drop_interval_ms
        self.playfield: Optional[Playfield] = None
        self.preview: Optional[Playfield] = None
        self.current: Optional[Piece] = None
        self.next_piece: Optional[Piece] = None
        self.stats = GameStats()
        self._elapsed_ms = 0

    # ---------- State machine ----------
    def _transition(self, new_state: SessionState) -> bool:
        if new_state not in TRANSITIONS[self.state]:
            logger.debug("Ignoring transition %s -> %s", self.state.name, new_state.name)
            return False
        logger.info("Session state %s -> %s", self.state.name, new_state.name)
        self.state = new_state
        return True

    def show_main_menu(self) -> bool:
        return self._transition(SessionState.MAIN_MENU)

    def show_how_to_play(self) -> bool:
        return self._transition(SessionState.HOW_TO_PLAY)

    def show_controls(self) -> bool:
        return self._transition(SessionState.CONTROLS)

    def start(self, seed: Optional[int] = None) -> bool:
        """Enter RUNNING with a fresh playfield, preview grid and pieces."""
        if not self._transition(SessionState.RUNNING):
            return False
        if seed is not None:
            self.rng.seed(seed)
        self.score = 0
        self.paused = False
        self.drop_held = False
        self.stats = GameStats()
        self._elapsed_ms = 0
        self.drop_interval_ms = self.config.drop_interval_ms
        self.playfield = Playfield(self.config.columns, self.config.rows)
        self.preview = Playfield(self.config.preview_columns, self.config.preview_rows)
        self.next_piece = self.factory.spawn(self.preview)
        self.current = self.factory.spawn(self.playfield)
        return True

    def restart(self, seed: Optional[int] = None) -> bool:
        return self.start(seed)

    def pause(self) -> bool:
        if self.state != SessionState.RUNNING or self.paused:
            return False
        self.paused = True
        self.drop_held = False
        logger.info("Game paused at score %d", self.score)
        return True

    def resume(self) -> bool:
        if self.state != SessionState.RUNNING or not self.paused:
            return False
        self.paused = False
        logger.info("Game resumed")
        return True

    @property
    def accepting_input(self) -> bool:
        return self.state == SessionState.RUNNING and not self.paused and self.current is not None

    @property
    def game_over(self) -> bool:
        return self.state == SessionState.GAME_OVER

    # ---------- Drop cadence ----------
    def drop_tick(self) -> TickResult:
        """One gravity step: move down, or lock and bring in the next piece."""
        if not self.accepting_input:
            return TickResult()
        self.stats.drop_ticks += 1
        if self.current.move_down():
            return TickResult(moved=True)
        return self._lock_current()

    def _lock_current(self) -> TickResult:
        if self.current is None or self.next_piece is None or self.playfield is None or self.preview is None:
            raise RuntimeError("cannot lock a piece before the game has started")
        self.drop_held = False
        self.current.release_cells()
        self.stats.pieces_locked += 1

        self.current = self.next_piece
        self._promote(self.current)
        self.preview.remove_all_cells()
        self.next_piece = self.factory.spawn(self.preview)

        rows = self.playfield.resolve_lines()
        if rows:
            self.score += self.rules.score_for_rows(rows)
            self.stats.rows_cleared += rows
            self.drop_interval_ms = self.rules.drop_interval_ms(self.config.drop_interval_ms, self.stats.rows_cleared)
            logger.debug("Cleared %d row(s), score %d", rows, self.score)

        over = self.playfield.is_terminal()
        if over:
            self._transition(SessionState.GAME_OVER)
            logger.info("Game over with score %d after %d pieces", self.score, self.stats.pieces_locked)
        return TickResult(locked=True, rows_cleared=rows, game_over=over)

    def _promote(self, piece: Piece) -> None:
        if self.playfield is None:
            raise RuntimeError("cannot promote a piece before the game has started")
        piece.change_grid(self.playfield)
        for _ in range(BOX_SIZE):
            piece.move_up()
        offset = (self.playfield.columns - BOX_SIZE) // 2
        for _ in range(offset):
            piece.move_right()

    def advance(self, elapsed_ms: int) -> int:
        """Feed wall-clock time; run one drop tick per elapsed interval."""
        if not self.accepting_input:
            return 0
        self._elapsed_ms += int(elapsed_ms)
        ticks = 0
        while self._elapsed_ms >= self.drop_interval_ms and self.accepting_input:
            self._elapsed_ms -= self.drop_interval_ms
            self.drop_tick()
            ticks += 1
        if not self.accepting_input:
            self._elapsed_ms = 0
        return ticks

    def set_drop_held(self, held: bool) -> None:
        self.drop_held = bool(held) and self.accepting_input

    def frame(self) -> Optional[TickResult]:
        """Animation tick. Only drops while the drop button is held."""
        if self.drop_held and self.accepting_input:
            return self.drop_tick()
        return None

    # ---------- Commands ----------
    def _after_move(self, moved: bool) -> bool:
        if self.current is not None:
            self.current.keep_within_bounds()
        return moved

    def move_left(self) -> bool:
        if not self.accepting_input:
            return False
        return self._after_move(self.current.move_left())

    def move_right(self) -> bool:
        if not self.accepting_input:
            return False
        return self._after_move(self.current.move_right())

    def rotate(self) -> bool:
        if not self.accepting_input:
            return False
        return self._after_move(self.current.rotate())

    def move_to_column(self, column: int) -> bool:
        if not self.accepting_input:
            return False
        if column < 0 or column >= self.config.columns:
            return False
        return self._after_move(self.current.move_to_column(column))

    def soft_drop(self) -> TickResult:
        return self.drop_tick()

    def hard_drop(self) -> TickResult:
        """Drop ticks until the current piece locks."""
        total = TickResult()
        while self.accepting_input:
            result = self.drop_tick()
            total.moved = total.moved or result.moved
            if result.locked:
                total.locked = True
                total.rows_cleared = result.rows_cleared
                total.game_over = result.game_over
                break
        return total

    def handle(self, command: Command) -> bool:
        """Apply a player command; True when it changed the game."""
        if command == Command.MOVE_LEFT:
            return self.move_left()
        if command == Command.MOVE_RIGHT:
            return self.move_right()
        if command == Command.ROTATE:
            return self.rotate()
        if command == Command.SOFT_DROP:
            result = self.soft_drop()
            return result.moved or result.locked
        if command == Command.HARD_DROP:
            result = self.hard_drop()
            return result.moved or result.locked
        return False

    def step(self, command: Command) -> Tuple[np.ndarray, int, bool, dict]:
        score_before = self.score
        self.handle(command)
        info = {
            "score": self.score,
            "rows_cleared_total": self.stats.rows_cleared,
            "pieces_locked": self.stats.pieces_locked,
        }
        return self.get_state(), self.score - score_before, self.game_over, info

    # ---------- Output ----------
    def get_state(self) -> np.ndarray:
        if self.playfield is None:
            return np.zeros((self.config.rows, self.config.columns), dtype=np.int8)
        return self.playfield.to_array(include_active=not self.game_over)

    def get_preview(self) -> np.ndarray:
        if self.preview is None:
            return np.zeros((self.config.preview_rows, self.config.preview_columns), dtype=np.int8)
        return np.abs(self.preview.to_array())

    def snapshot(self) -> Snapshot:
        return Snapshot(
            state=self.state,
            score=self.score,
            paused=self.paused,
            locked=self.playfield.locked_views() if self.playfield is not None else (),
            active=self.current.cell_views() if self.current is not None else (),
            next=self.next_piece.cell_views() if self.next_piece is not None else (),
        )
