"""
Tests for the resumable concave hull job.
"""

import pytest

from hull_helpers import SQUARE, SQUARE_WITH_CENTER, is_simple, random_points
from mapper.systems import hull_job
from mapper.systems.geometry import convex_hull, point_in_polygon, polygon_area
from mapper.systems.hull_job import (
    HullPhase,
    concave_hull,
    start_concave_hull_job,
    step_concave_hull_job,
)
from mapper.systems.hull_scheduler import HullScheduler


def run_to_completion(job, budget=10, limit=1_000_000):
    calls = 0
    while calls < limit:
        calls += 1
        done, hull = step_concave_hull_job(job, budget)
        if done:
            return hull
    raise AssertionError("job did not finish")


@pytest.fixture
def phase_calls(monkeypatch):
    """Counts every phase handler call made by step_concave_hull_job."""
    counter = {"calls": 0}
    for name in ("_init_attempt", "_build_step", "_validate_step"):
        original = getattr(hull_job, name)

        def counted(job, _original=original):
            counter["calls"] += 1
            return _original(job)

        monkeypatch.setattr(hull_job, name, counted)
    return counter


def step_bound(job):
    return (job.max_k - job.k0 + 2) * (2 * job.n + 4)


def test_fewer_than_three_points_is_done_immediately():
    job = start_concave_hull_job([(1, 1), (2, 2), (1, 1)], 3)
    assert job.phase == HullPhase.DONE
    assert job.n == 2
    assert step_concave_hull_job(job, 5) == (True, ((1.0, 1.0), (2.0, 2.0)))
    assert job.micro_steps == 0


def test_empty_input():
    job = start_concave_hull_job([], 3)
    assert step_concave_hull_job(job) == (True, ())


@pytest.mark.parametrize("k", [3, 8])
def test_square_with_center_traces_the_square(k):
    job = start_concave_hull_job(SQUARE_WITH_CENTER, k)
    hull = run_to_completion(job, budget=2)
    assert hull == tuple(SQUARE)
    assert job.phase == HullPhase.DONE
    assert not job.fell_back


def test_k_is_clamped():
    job = start_concave_hull_job(SQUARE_WITH_CENTER, 1)
    assert job.k0 == 3
    job = start_concave_hull_job(SQUARE_WITH_CENTER, 50, 60)
    assert job.k0 == 5
    assert job.max_k == 60


def test_default_max_k():
    assert start_concave_hull_job(SQUARE, 3).max_k == 4
    assert start_concave_hull_job(random_points(4, 200, span=100), 3).max_k == 25


@pytest.mark.parametrize("seed", range(10))
def test_result_contains_every_point_and_is_simple(seed):
    pts = random_points(seed, 50)
    job = start_concave_hull_job(pts, 3, 12)
    hull = run_to_completion(job, budget=7)

    assert len(hull) >= 3
    assert set(hull) <= set(job.pts)
    assert polygon_area(hull) > 0
    assert is_simple(hull)
    for p in job.pts:
        assert point_in_polygon(hull, p)
    assert job.micro_steps <= step_bound(job)


def test_concave_hull_is_no_larger_than_convex():
    # An "L": the notch must not be filled in by a good concave trace.
    pts = [(float(x), float(y)) for x in range(0, 9) for y in range(0, 3)]
    pts += [(float(x), float(y)) for x in range(0, 3) for y in range(3, 9)]
    hull = concave_hull(pts, 3)
    assert polygon_area(hull) <= polygon_area(convex_hull(pts))
    for p in pts:
        assert point_in_polygon(hull, p)


def test_incremental_stepping_matches_one_shot():
    pts = random_points(11, 70)
    job = start_concave_hull_job(pts, 4, 15)
    incremental = run_to_completion(job, budget=1)
    assert incremental == concave_hull(pts, 4, 15)


def test_fallback_when_max_k_below_start_k():
    pts = random_points(2, 30)
    job = start_concave_hull_job(pts, 8, 4)
    done, hull = step_concave_hull_job(job, 5)
    assert done
    assert job.phase == HullPhase.FALLBACK_DONE
    assert job.fell_back
    assert job.micro_steps == 1
    assert hull == tuple(convex_hull(job.pts))


def test_terminal_job_step_is_a_no_op():
    job = start_concave_hull_job(SQUARE_WITH_CENTER, 3)
    hull = run_to_completion(job, budget=100)
    steps = job.micro_steps
    assert step_concave_hull_job(job, 100) == (True, hull)
    assert job.micro_steps == steps


@pytest.mark.parametrize("budget", [0, -3])
def test_non_positive_budget_still_makes_progress(budget, phase_calls):
    job = start_concave_hull_job(SQUARE_WITH_CENTER, 3)
    done, hull = step_concave_hull_job(job, budget)
    assert phase_calls["calls"] == 1
    assert not done
    assert hull is None
    assert job.micro_steps == 1
    assert job.phase == HullPhase.BUILD


def test_fingerprint_is_carried_through():
    from mapper.systems.point_set import fingerprint

    fp = fingerprint(SQUARE, 1.0)
    job = start_concave_hull_job(SQUARE, 3, fingerprint=fp)
    run_to_completion(job)
    assert job.fingerprint == fp


@pytest.mark.parametrize("budget", [1, 4, 25])
def test_each_call_does_at_most_budget_phase_steps(budget, phase_calls):
    job = start_concave_hull_job(random_points(7, 40), 3, 10)
    while True:
        before = phase_calls["calls"]
        done, _ = step_concave_hull_job(job, budget)
        used = phase_calls["calls"] - before
        if done:
            assert 1 <= used <= budget
            break
        assert used == budget
    assert phase_calls["calls"] == job.micro_steps
    assert job.micro_steps <= step_bound(job)

    step_concave_hull_job(job, budget)
    assert phase_calls["calls"] == job.micro_steps


def test_collinear_points_fall_back_to_no_polygon():
    pts = [(float(x), 0.0) for x in range(10)]
    job = start_concave_hull_job(pts, 3, 6)
    hull = run_to_completion(job, budget=3)
    assert job.fell_back
    assert job.micro_steps <= step_bound(job)
    assert hull == ((0.0, 0.0), (9.0, 0.0))


@pytest.mark.parametrize(
    "points",
    [
        [(0, 0), (1, 0), (2, 0)],
        [(0, 0), (1, 1), (2, 2), (3, 3), (5, 5)],
        [(float(x), 0.0) for x in range(10)],
    ],
)
def test_scheduler_never_publishes_a_flat_hull(points):
    sched = HullScheduler(quantum=1.0, k0=3, max_k=10, steps_per_tick=1000, stale_ticks=0)
    sched.report_points(points)
    sched.on_coarse_interval(1)
    tick = 1
    while sched.job_running:
        sched.on_tick(tick)
        tick += 1
    hull = sched.get_published_hull()
    assert hull is None or polygon_area(hull) > 0
    assert not sched.is_inside_hull((1.0, 0.0))
