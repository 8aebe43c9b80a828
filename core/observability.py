from __future__ import annotations

from dataclasses import dataclass

from core.db import QueryStats


@dataclass
class StatusStrip:
    status: str
    message: str


def system_status(stats: QueryStats) -> StatusStrip:
    if stats.total < 5:
        return StatusStrip("OK", f"Warmup ({stats.total} samples)")
    if stats.slow > 10:
        return StatusStrip("WARN", "Slow query threshold exceeded")
    return StatusStrip("OK", "Nominal")
