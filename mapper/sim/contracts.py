"""
Thin, stable data contracts shared between hull systems, tools and the overlay.

These are intentionally small "struct-like" dataclasses so:
- the point-set manager, job and scheduler can share data without import cycles
- state is easy to serialize (the published hull is just an ordered point list)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

Point = tuple[float, float]


@dataclass(frozen=True, slots=True)
class Fingerprint:
    """
    Cheap (count, hash) summary of a quantized point set.

    The hash is an order-independent 32-bit sum, so equal point multisets always
    compare equal. Collisions are possible and accepted.
    """

    count: int = 0
    hash: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"count": int(self.count), "hash": int(self.hash)}


EMPTY_FINGERPRINT = Fingerprint(0, 0)


@dataclass(slots=True)
class HullStatusSnapshot:
    """
    A small UI/debug-facing view of the scheduler.

    Deterministic-friendly: built from scheduler state only, no wall-clock.
    """

    tick: int
    points: int
    fingerprint: Fingerprint
    job_phase: Optional[str] = None
    job_k: Optional[int] = None
    job_micro_steps: int = 0
    last_build_tick: Optional[int] = None
    hull: tuple[Point, ...] = field(default_factory=tuple)

    @property
    def hull_vertices(self) -> int:
        return len(self.hull)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tick": int(self.tick),
            "points": int(self.points),
            "fingerprint": self.fingerprint.to_dict(),
            "job_phase": self.job_phase,
            "job_k": self.job_k,
            "job_micro_steps": int(self.job_micro_steps),
            "last_build_tick": self.last_build_tick,
            "hull": [[float(x), float(y)] for x, y in self.hull],
        }
