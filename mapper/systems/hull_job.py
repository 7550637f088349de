"""
Incremental concave hull (k-nearest-neighbour trace) as a resumable job.

Building a concave hull over thousands of points is too slow to do inside one
simulation tick, so the algorithm is expressed as a small state machine that
advances by a bounded number of micro-steps per call:

    init_attempt -> build -> validate -> done
    init_attempt -> fallback_done            (k escalated past max_k: convex hull)

One micro-step is one phase transition, one candidate selection, or one
containment check. Any failed attempt (no acceptable candidate, guard trip,
failed validation) increments k and starts over; once k exceeds `max_k` the job
gives up and returns the convex hull, so every job terminates.

Points are addressed by index into the job's frozen snapshot, so "used" marking is
a plain list of bools.
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from mapper.sim.contracts import Fingerprint, Point
from mapper.sim.hull_tunables import DEFAULT_MAX_K, GUARD_LIMIT, INITIAL_DIRECTION, MIN_K
from mapper.systems.geometry import (
    angle_ccw,
    convex_hull,
    dist2,
    ensure_ccw,
    lowest_point_index,
    point_in_polygon,
    polygon_area,
    segments_intersect,
)
from mapper.systems.point_set import dedupe


class HullPhase(Enum):
    INIT_ATTEMPT = "init_attempt"
    BUILD = "build"
    VALIDATE = "validate"
    DONE = "done"
    FALLBACK_DONE = "fallback_done"


TERMINAL_PHASES = (HullPhase.DONE, HullPhase.FALLBACK_DONE)


@dataclass
class HullJob:
    # Frozen input for the whole job.
    pts: tuple[Point, ...]
    n: int

    # k parameters
    k0: int = MIN_K
    kk: int = MIN_K
    max_k: int = DEFAULT_MAX_K

    phase: HullPhase = HullPhase.INIT_ATTEMPT

    # Attempt state (reset by init_attempt). `hull` holds point indices.
    used: list[bool] = field(default_factory=list)
    hull: list[int] = field(default_factory=list)
    start_idx: int = -1
    current_idx: int = -1
    prev_dir: Point = INITIAL_DIRECTION
    guard: int = 0
    closed: bool = False

    # Validation progress (incremental).
    validate_i: int = 0
    polygon: list[Point] = field(default_factory=list)

    result: Optional[tuple[Point, ...]] = None

    # The point-set fingerprint this job is meant to satisfy (set by the scheduler).
    fingerprint: Optional[Fingerprint] = None

    # Instrumentation
    micro_steps: int = 0
    attempts: int = 0

    @property
    def done(self) -> bool:
        return self.phase in TERMINAL_PHASES

    @property
    def fell_back(self) -> bool:
        return self.phase == HullPhase.FALLBACK_DONE


def start_concave_hull_job(
    points: Iterable[Point],
    k: int = MIN_K,
    max_k: Optional[int] = None,
    *,
    fingerprint: Optional[Fingerprint] = None,
) -> HullJob:
    """
    Create a job over a de-duplicated snapshot of `points`.

    k: starting neighbour count (>= 3; higher = smoother, lower = more concave)
    max_k: escalation ceiling before falling back to the convex hull
           (default: min(25, number of points))
    """
    pts = dedupe(points)
    n = len(pts)

    job = HullJob(
        pts=pts,
        n=n,
        max_k=int(max_k) if max_k is not None else min(DEFAULT_MAX_K, n),
        fingerprint=fingerprint,
    )

    if n < 3:
        # Degenerate: a "hull" of fewer than 3 points is just the points.
        job.result = pts
        job.phase = HullPhase.DONE
        return job

    job.k0 = min(max(MIN_K, int(k if k is not None else MIN_K)), n)
    job.kk = job.k0
    return job


def step_concave_hull_job(job: HullJob, budget: int = 10) -> tuple[bool, Optional[tuple[Point, ...]]]:
    """
    Advance `job` by at most `budget` micro-steps.

    Returns (done, hull). `hull` is only set once the job has finished.
    """
    if job.done:
        return True, job.result

    steps_left = max(1, int(budget))
    while steps_left > 0:
        steps_left -= 1
        job.micro_steps += 1

        if job.phase == HullPhase.INIT_ATTEMPT:
            _init_attempt(job)
        elif job.phase == HullPhase.BUILD:
            _build_step(job)
        elif job.phase == HullPhase.VALIDATE:
            _validate_step(job)

        if job.done:
            return True, job.result

    return False, None


def concave_hull(points: Iterable[Point], k: int = MIN_K, max_k: Optional[int] = None) -> tuple[Point, ...]:
    """Synchronous convenience: run a job to completion in one call (tests/tools only)."""
    job = start_concave_hull_job(points, k, max_k)
    while True:
        done, hull = step_concave_hull_job(job, 1000)
        if done:
            return hull if hull is not None else ()


# ---------------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------------


def _escalate(job: HullJob) -> None:
    job.kk += 1
    job.attempts += 1
    job.phase = HullPhase.INIT_ATTEMPT


def _init_attempt(job: HullJob) -> None:
    if job.kk > job.max_k:
        job.result = tuple(convex_hull(job.pts))
        job.phase = HullPhase.FALLBACK_DONE
        return

    job.used = [False] * job.n
    job.start_idx = lowest_point_index(job.pts)
    job.used[job.start_idx] = True
    job.hull = [job.start_idx]
    job.prev_dir = INITIAL_DIRECTION
    job.current_idx = job.start_idx
    job.guard = 0
    job.closed = False
    job.phase = HullPhase.BUILD


def _k_nearest(job: HullJob) -> list[int]:
    """Up to kk nearest candidates to the current point; ties broken by index."""
    pts = job.pts
    cur = pts[job.current_idx]
    pool = [i for i in range(job.n) if not job.used[i]]
    # The start point is the only used point that may be revisited: it closes the loop.
    if len(job.hull) >= 3:
        pool.append(job.start_idx)
    return heapq.nsmallest(job.kk, pool, key=lambda i: (dist2(cur, pts[i]), i))


def _crosses_hull(job: HullJob, a: Point, b: Point, first_edge: int, last_edge: int) -> bool:
    """Does segment ab hit any hull edge (hull[e] -> hull[e+1]) for e in [first_edge, last_edge]?"""
    pts = job.pts
    hull = job.hull
    for e in range(first_edge, last_edge + 1):
        if segments_intersect(a, b, pts[hull[e]], pts[hull[e + 1]]):
            return True
    return False


def _build_step(job: HullJob) -> None:
    job.guard += 1
    if job.guard > GUARD_LIMIT:
        _escalate(job)
        return

    candidates = _k_nearest(job)
    if not candidates:
        _escalate(job)
        return

    pts = job.pts
    cur = pts[job.current_idx]
    prev_dir = job.prev_dir
    # Least CCW turn first ("hug" the outside); tie-break by distance.
    candidates.sort(key=lambda i: (angle_ccw(prev_dir, cur, pts[i]), dist2(cur, pts[i])))

    m = len(job.hull)
    next_idx = None
    for i in candidates:
        if i == job.start_idx:
            # Closing edge may only touch its two neighbours (first and last hull edge).
            if not _crosses_hull(job, cur, pts[i], 1, m - 3):
                next_idx = i
                break
        elif not _crosses_hull(job, cur, pts[i], 0, m - 3):
            next_idx = i
            break

    if next_idx is None:
        _escalate(job)
        return

    if next_idx == job.start_idx:
        job.closed = True
        _enter_validate(job)
        return

    nxt = pts[next_idx]
    job.used[next_idx] = True
    job.prev_dir = (nxt[0] - cur[0], nxt[1] - cur[1])
    job.current_idx = next_idx
    job.hull.append(next_idx)

    # Every point visited without closing: validate the open trace as-is.
    if len(job.hull) >= job.n:
        _enter_validate(job)


def _enter_validate(job: HullJob) -> None:
    job.validate_i = 0
    job.polygon = [job.pts[i] for i in job.hull]
    job.phase = HullPhase.VALIDATE


def _validate_step(job: HullJob) -> None:
    m = len(job.hull)
    # A zero-area trace (all points on one line) is not a polygon.
    if m < 3 or (job.validate_i == 0 and polygon_area(job.polygon) == 0):
        _escalate(job)
        return

    if not job.closed:
        # Open trace: the implicit closing edge must not cut through the polygon.
        if _crosses_hull(job, job.polygon[-1], job.polygon[0], 1, m - 3):
            _escalate(job)
            return
        job.closed = True
        return

    if job.validate_i >= job.n:
        job.result = tuple(ensure_ccw(job.polygon))
        job.phase = HullPhase.DONE
        return

    p = job.pts[job.validate_i]
    job.validate_i += 1
    if not point_in_polygon(job.polygon, p):
        _escalate(job)
