"""
Tests for the two-cadence hull scheduler.
"""

import pytest

from hull_helpers import SQUARE
from mapper.sim.contracts import EMPTY_FINGERPRINT
from mapper.systems import perf_stats
from mapper.systems.hull_scheduler import HullScheduler


def make_scheduler(**overrides):
    kwargs = dict(quantum=1.0, k0=3, max_k=10, steps_per_tick=1000, stale_ticks=0, update_interval=1)
    kwargs.update(overrides)
    return HullScheduler(**kwargs)


def built_square(**overrides):
    sched = make_scheduler(**overrides)
    sched.report_points(SQUARE)
    sched.on_coarse_interval(1)
    while sched.job_running:
        sched.on_tick(1)
    return sched


def test_no_hull_with_fewer_than_three_points():
    sched = make_scheduler()
    sched.report_points([(0, 0), (4, 0)])
    sched.on_coarse_interval(1)
    assert not sched.job_running
    assert sched.get_published_hull() is None
    assert sched.last_build_tick == 1
    assert not sched.is_inside_hull((0, 0))


def test_report_point_dedupes_within_quantum():
    sched = make_scheduler()
    assert sched.report_point(0.0, 0.0)
    assert not sched.report_point(0.2, 0.1)
    assert sched.report_points([(0.1, 0.1), (4, 0)]) == 1


def test_full_cycle_publishes_hull_and_commits_fingerprint():
    sched = make_scheduler()
    sched.report_points(SQUARE)
    sched.on_coarse_interval(1)
    assert sched.job_running
    assert sched.get_published_hull() is None

    assert sched.on_tick(1)
    assert not sched.job_running
    assert sched.get_published_hull() == tuple(SQUARE)
    assert sched.fingerprint == sched.points.fingerprint()
    assert sched.last_build_tick == 1
    assert perf_stats.hull.jobs_started == 1
    assert perf_stats.hull.jobs_completed == 1
    assert perf_stats.hull.micro_steps > 0


def test_unchanged_points_do_not_restart():
    sched = built_square()
    sched.on_coarse_interval(50)
    assert not sched.job_running
    assert perf_stats.hull.jobs_started == 1


def test_near_duplicates_of_known_points_change_nothing():
    sched = built_square()
    committed = sched.fingerprint

    assert not sched.report_point(0.2, 0.1)
    assert not sched.report_point(3.9, 4.1)
    sched.on_coarse_interval(2)

    assert len(sched.points) == 4
    assert sched.points.fingerprint() == committed
    assert sched.fingerprint == committed
    assert not sched.job_running
    assert perf_stats.hull.jobs_started == 1
    assert perf_stats.hull.skipped_rebuilds == 0
    assert sched.last_build_tick == 1


def test_interior_points_skip_rebuild():
    sched = built_square()
    assert sched.report_point(2.0, 2.0)
    sched.on_coarse_interval(2)

    assert not sched.job_running
    assert sched.fingerprint == sched.points.fingerprint()
    assert sched.last_build_tick == 1
    assert sched.get_published_hull() == tuple(SQUARE)
    assert perf_stats.hull.skipped_rebuilds == 1
    assert (2, 2) in sched.membership


def test_outside_point_starts_a_job_and_old_hull_stays_visible():
    sched = built_square(steps_per_tick=1)
    sched.report_point(10.0, 10.0)
    sched.on_coarse_interval(2)
    assert sched.job_running

    assert not sched.on_tick(2)
    assert sched.get_published_hull() == tuple(SQUARE)
    assert sched.is_inside_hull((2, 2))
    assert not sched.is_inside_hull((8, 8))

    tick = 2
    while sched.job_running:
        tick += 1
        sched.on_tick(tick)
    assert sched.is_inside_hull((8, 8))
    assert (10.0, 10.0) in sched.get_published_hull()
    assert sched.last_build_tick == tick


def test_running_job_is_not_preempted():
    sched = make_scheduler(steps_per_tick=1)
    sched.report_points(SQUARE)
    sched.on_coarse_interval(1)
    job = sched.job

    sched.report_point(10.0, 10.0)
    sched.on_coarse_interval(2)
    assert sched.job is job
    assert perf_stats.hull.jobs_started == 1


def test_rebuilds_are_debounced():
    sched = built_square(stale_ticks=10)
    sched.report_point(10.0, 10.0)

    sched.on_coarse_interval(5)
    assert not sched.job_running
    sched.on_coarse_interval(10)
    assert not sched.job_running
    sched.on_coarse_interval(11)
    assert sched.job_running


def test_dropping_below_three_points_discards_job():
    sched = make_scheduler(steps_per_tick=1)
    sched.report_points(SQUARE)
    sched.on_coarse_interval(1)
    assert sched.job_running

    sched.evaluate_need([(0, 0), (1, 1)], 2)
    assert not sched.job_running
    assert sched.get_published_hull() is None
    assert sched.fingerprint == EMPTY_FINGERPRINT
    assert perf_stats.hull.jobs_discarded == 1


def test_shrunk_point_set_rebuilds():
    sched = built_square()
    sched.report_point(10.0, 10.0)
    sched.on_coarse_interval(2)
    while sched.job_running:
        sched.on_tick(2)

    sched.evaluate_need(SQUARE, 3)
    assert sched.job_running


def test_update_evaluates_on_interval_ticks_only():
    sched = make_scheduler(update_interval=5)
    sched.report_points(SQUARE)
    for tick in range(1, 5):
        assert not sched.update(tick)
    assert perf_stats.hull.evaluations == 0
    assert sched.update(5)
    assert perf_stats.hull.evaluations == 1
    assert sched.get_published_hull() == tuple(SQUARE)


def test_is_inside_hull_margin():
    sched = make_scheduler()
    assert not sched.is_inside_hull((2, 2), margin=5.0)

    sched = built_square()
    assert sched.is_inside_hull((4, 2))
    assert not sched.is_inside_hull((4.5, 2))
    assert sched.is_inside_hull((4.5, 2), margin=0.5)
    assert not sched.is_inside_hull((4.5, 2), margin=0.25)


def test_reset_keeps_points_unless_asked():
    sched = built_square()
    sched.reset()
    assert sched.get_published_hull() is None
    assert sched.fingerprint == EMPTY_FINGERPRINT
    assert sched.last_build_tick is None
    assert len(sched.points) == 4

    sched.on_coarse_interval(7)
    assert sched.job_running
    sched.reset(clear_points=True)
    assert not sched.job_running
    assert len(sched.points) == 0
    assert perf_stats.hull.jobs_discarded == 1


def test_snapshot():
    sched = make_scheduler(steps_per_tick=1)
    sched.report_points(SQUARE)
    sched.on_coarse_interval(1)
    sched.on_tick(1)

    snap = sched.snapshot()
    assert snap.job_phase == "build"
    assert snap.job_k == 3
    assert snap.job_micro_steps == 1
    assert snap.hull_vertices == 0

    while sched.job_running:
        sched.on_tick(2)
    d = sched.snapshot().to_dict()
    assert d["tick"] == 2
    assert d["points"] == 4
    assert d["job_phase"] is None
    assert d["last_build_tick"] == 2
    assert d["fingerprint"]["count"] == 4
    assert d["hull"] == [[0.0, 0.0], [4.0, 0.0], [4.0, 4.0], [0.0, 4.0]]


@pytest.mark.parametrize("budget", [0, -5])
def test_steps_per_tick_is_at_least_one(budget):
    assert make_scheduler(steps_per_tick=budget).steps_per_tick == 1


def test_schedulers_are_independent():
    a = built_square()
    b = make_scheduler()
    assert b.get_published_hull() is None
    b.report_point(100.0, 100.0)
    assert len(a.points) == 4
