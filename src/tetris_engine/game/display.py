from __future__ import annotations

import numpy as np


def format_grid(grid: np.ndarray) -> str:
    """Text rendering: locked squares as full blocks, the falling piece as shaded ones."""
    lines = []
    for row in grid:
        lines.append("".join("█" if cell > 0 else "▒" if cell < 0 else "·" for cell in row))
    return "\n".join(lines)


def format_session(session) -> str:
    header = f"{session.state.name}  score={session.score}"
    if session.paused:
        header += "  (paused)"
    return "\n".join([header, format_grid(session.get_state()), "next:", format_grid(session.get_preview())])
