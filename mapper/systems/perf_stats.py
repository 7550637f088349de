"""
Tiny global perf counters for diagnosing hull workload.

This intentionally stays very lightweight (ints + floats), so it can be left enabled.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass
class _HullStats:
    evaluations: int = 0
    skipped_rebuilds: int = 0
    jobs_started: int = 0
    jobs_completed: int = 0
    jobs_discarded: int = 0
    fallbacks: int = 0
    attempts: int = 0
    micro_steps: int = 0
    step_ms: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


hull = _HullStats()


def reset_hull() -> None:
    hull.evaluations = 0
    hull.skipped_rebuilds = 0
    hull.jobs_started = 0
    hull.jobs_completed = 0
    hull.jobs_discarded = 0
    hull.fallbacks = 0
    hull.attempts = 0
    hull.micro_steps = 0
    hull.step_ms = 0.0
