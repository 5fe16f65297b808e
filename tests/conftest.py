from __future__ import annotations

import random

import pytest

from tetris_engine.game import Playfield, PieceFactory


@pytest.fixture
def playfield() -> Playfield:
    return Playfield(10, 16)


@pytest.fixture
def factory() -> PieceFactory:
    return PieceFactory(random.Random(1234))
