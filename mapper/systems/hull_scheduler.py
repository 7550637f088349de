"""
Hull scheduling: decide when the coverage hull is stale, and drive rebuild jobs.

Two cadences, both non-blocking:
1) Every `update_interval` ticks, fingerprint the discovered points and decide whether
   a rebuild is needed (`evaluate_need`).
2) Every tick, advance the in-flight job by `steps_per_tick` micro-steps (`step_job`).

Consumers only ever see a fully built hull: the published tuple is swapped in one
assignment when a job completes, and the previous hull stays queryable until then.
"""

from __future__ import annotations

import time
from typing import Iterable, Optional

import config
from mapper.sim.contracts import EMPTY_FINGERPRINT, Fingerprint, HullStatusSnapshot, Point
from mapper.systems import perf_stats
from mapper.systems.geometry import contains_point_buffered, point_in_polygon, polygon_area
from mapper.systems.hull_job import HullJob, start_concave_hull_job, step_concave_hull_job
from mapper.systems.point_set import PointSetManager, grid_key, quantized_points

# Debug logging (set DEBUG_HULL=1 in the environment to see scheduler decisions)
DEBUG_HULL = config.DEBUG_HULL

_last_log = {}
def debug_log(msg, throttle_key=None):
    if not DEBUG_HULL:
        return
    # Throttle repeated messages
    if throttle_key:
        now = time.perf_counter()
        if throttle_key in _last_log and now - _last_log[throttle_key] < 1.0:
            return
        _last_log[throttle_key] = now
    print(f"[HULL] {msg}")


class HullScheduler:
    """
    Per-agent hull state: live points, optional in-flight job, published hull.

    One instance per surveying agent; instances share nothing, so many agents can be
    driven independently.
    """

    def __init__(
        self,
        *,
        quantum: float = config.HULL_QUANTUM,
        k0: int = config.HULL_K0,
        max_k: int = config.HULL_MAX_K,
        steps_per_tick: int = config.HULL_STEPS_PER_TICK,
        stale_ticks: int = config.HULL_STALE_TICKS,
        update_interval: int = config.HULL_UPDATE_INTERVAL,
    ):
        self.quantum = float(quantum)
        self.k0 = int(k0)
        self.max_k = int(max_k)
        self.steps_per_tick = max(1, int(steps_per_tick))
        self.stale_ticks = int(stale_ticks)
        self.update_interval = max(1, int(update_interval))

        self.points = PointSetManager(self.quantum)

        self.job: Optional[HullJob] = None
        self.hull: Optional[tuple[Point, ...]] = None
        self.fingerprint: Fingerprint = EMPTY_FINGERPRINT
        self.last_build_tick: Optional[int] = None
        # Grid keys of every point already accounted for by the published hull.
        self.membership: set[tuple[int, int]] = set()
        self._last_tick = 0

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def report_point(self, x: float, y: float) -> bool:
        """Feed one discovered coordinate. Returns True if it was a new (quantized) point."""
        return self.points.add(x, y)

    def report_points(self, points: Iterable[Point]) -> int:
        return self.points.extend(points)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def evaluate_need(self, points: Iterable[Point], tick: int) -> None:
        """Decide whether `points` warrant a hull rebuild (coarse cadence)."""
        self._last_tick = int(tick)
        perf_stats.hull.evaluations += 1
        pts, fp = quantized_points(points, self.quantum)

        # Not enough points: nothing to hull yet.
        if fp.count < 3:
            if self.job is not None:
                perf_stats.hull.jobs_discarded += 1
            self.job = None
            self.hull = None
            self.membership = set()
            self.fingerprint = EMPTY_FINGERPRINT
            self.last_build_tick = int(tick)
            return

        # Let a running job finish (no preemption).
        if self.job is not None:
            return

        if fp == self.fingerprint:
            return

        # Debounce: rebuild at most once per stale_ticks.
        if self.last_build_tick is not None and (tick - self.last_build_tick) < self.stale_ticks:
            debug_log(f"tick={tick} hull change pending (debounced)", throttle_key="debounce")
            return

        new_keys = []
        for p in pts:
            key = grid_key(p, self.quantum)
            if key not in self.membership:
                new_keys.append((key, p))

        # If every new point is already inside/on the current hull, the hull is still valid.
        if self.hull is not None and len(self.hull) >= 3 and new_keys:
            hull = self.hull
            if all(point_in_polygon(hull, p) for _, p in new_keys):
                for key, _ in new_keys:
                    self.membership.add(key)
                self.fingerprint = fp
                perf_stats.hull.skipped_rebuilds += 1
                debug_log(f"tick={tick} {len(new_keys)} new point(s) inside hull; rebuild skipped")
                # last_build_tick unchanged: the hull shape did not change.
                return

        self.job = start_concave_hull_job(pts, self.k0, self.max_k, fingerprint=fp)
        perf_stats.hull.jobs_started += 1
        debug_log(f"tick={tick} hull job started: points={fp.count} k0={self.job.kk} max_k={self.max_k}")

    def step_job(self, tick: int) -> bool:
        """Advance the in-flight job. Returns True when a new hull was published this call."""
        self._last_tick = int(tick)
        job = self.job
        if job is None:
            return False

        before_steps = job.micro_steps
        before_attempts = job.attempts
        t0 = time.perf_counter()
        done, result = step_concave_hull_job(job, self.steps_per_tick)
        perf_stats.hull.step_ms += (time.perf_counter() - t0) * 1000.0
        perf_stats.hull.micro_steps += job.micro_steps - before_steps
        perf_stats.hull.attempts += job.attempts - before_attempts

        if not done:
            return False

        # Fewer than 3 vertices or zero area (collinear input): nothing to publish.
        if result is not None and len(result) >= 3 and polygon_area(result) != 0:
            self.hull = tuple(result)
        else:
            self.hull = None
        self.fingerprint = job.fingerprint if job.fingerprint is not None else EMPTY_FINGERPRINT
        self.last_build_tick = int(tick)
        # Rebuild membership from the job's frozen snapshot for future delta checks.
        self.membership = {grid_key(p, self.quantum) for p in job.pts}
        self.job = None

        perf_stats.hull.jobs_completed += 1
        if job.fell_back:
            perf_stats.hull.fallbacks += 1
        debug_log(
            f"tick={tick} hull published: vertices={len(self.hull or ())} "
            f"k={job.kk} attempts={job.attempts} steps={job.micro_steps} fallback={job.fell_back}"
        )
        return True

    def on_tick(self, tick: int) -> bool:
        return self.step_job(tick)

    def on_coarse_interval(self, tick: int) -> None:
        self.evaluate_need(self.points.snapshot(), tick)

    def update(self, tick: int) -> bool:
        """Run both cadences for one tick (coarse evaluation only on interval ticks)."""
        if tick % self.update_interval == 0:
            self.on_coarse_interval(tick)
        return self.on_tick(tick)

    def reset(self, *, clear_points: bool = False) -> None:
        """Drop the job, hull and committed fingerprint."""
        if self.job is not None:
            perf_stats.hull.jobs_discarded += 1
        self.job = None
        self.hull = None
        self.fingerprint = EMPTY_FINGERPRINT
        self.last_build_tick = None
        self.membership = set()
        if clear_points:
            self.points.clear()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_inside_hull(self, point: Point, margin: float = 0.0) -> bool:
        """Is `point` already covered? Conservative False when no hull exists yet."""
        hull = self.hull
        if hull is None or len(hull) < 3:
            return False
        if margin > 0:
            return contains_point_buffered(hull, point, margin)
        return point_in_polygon(hull, point)

    def get_published_hull(self) -> Optional[tuple[Point, ...]]:
        return self.hull

    @property
    def job_running(self) -> bool:
        return self.job is not None

    def snapshot(self) -> HullStatusSnapshot:
        job = self.job
        return HullStatusSnapshot(
            tick=self._last_tick,
            points=len(self.points),
            fingerprint=self.fingerprint,
            job_phase=None if job is None else job.phase.value,
            job_k=None if job is None else job.kk,
            job_micro_steps=0 if job is None else job.micro_steps,
            last_build_tick=self.last_build_tick,
            hull=self.hull or (),
        )
