from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ScoringRules:
    points_per_row: int = 1
    # Difficulty scaling is off by default: the interval stays at the configured base.
    speedup_per_row_ms: int = 0
    min_drop_interval_ms: int = 50

    def score_for_rows(self, rows: int) -> int:
        if rows <= 0:
            return 0
        return rows * self.points_per_row

    def drop_interval_ms(self, base_ms: int, rows_cleared: int) -> int:
        if self.speedup_per_row_ms <= 0:
            return base_ms
        faster = base_ms - rows_cleared * self.speedup_per_row_ms
        return max(self.min_drop_interval_ms, faster)
