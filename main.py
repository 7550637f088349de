"""
Mapper Hull - headless survey run with incremental coverage hulls.

Usage:
    python main.py [--ticks N] [--seed S] [--features F] [--screenshot out.png]

A surveyor sweeps a seeded feature field, reports what it sees, and the hull
scheduler keeps a concave coverage hull up to date a few micro-steps per tick.
Exit code is non-zero if the final hull does not contain every committed point.
"""
from __future__ import annotations

import argparse
import json
import os
import sys
import time

import config
from mapper.graphics.hull_overlay import HullOverlay, render_points
from mapper.sim.determinism import get_sim_seed, set_sim_seed
from mapper.survey_world import Surveyor, SurveyWorld
from mapper.systems import perf_stats
from mapper.systems.geometry import point_in_polygon, polygon_area
from mapper.systems.hull_scheduler import HullScheduler
from mapper.systems.mapping import MappedEntityRegistry


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Mapper Hull - headless survey run with incremental concave hulls"
    )
    parser.add_argument("--ticks", type=int, default=20000, help="simulation ticks to run")
    parser.add_argument("--seed", type=int, default=config.SIM_SEED, help="rng seed")
    parser.add_argument("--features", type=int, default=config.FEATURE_COUNT, help="static features in the world")
    parser.add_argument("--quantum", type=float, default=config.HULL_QUANTUM, help="hull quantization step")
    parser.add_argument("--k0", type=int, default=config.HULL_K0, help="starting neighbour count")
    parser.add_argument("--max-k", type=int, default=config.HULL_MAX_K, help="k ceiling before convex fallback")
    parser.add_argument("--budget", type=int, default=config.HULL_STEPS_PER_TICK, help="micro-steps per tick")
    parser.add_argument("--interval", type=int, default=config.HULL_UPDATE_INTERVAL, help="ticks between evaluations")
    parser.add_argument("--stale", type=int, default=config.HULL_STALE_TICKS, help="min ticks between rebuilds")
    parser.add_argument("--log-every", type=int, default=0, help="progress log cadence in ticks (0 = off)")
    parser.add_argument("--screenshot", type=str, default="", help="optional PNG path for the final overlay")
    parser.add_argument("--json", action="store_true", help="print the summary as JSON")
    return parser.parse_args(argv)


def drain(scheduler: HullScheduler, tick: int, max_ticks: int = 100000) -> int:
    """Evaluate and step until the published hull accounts for every reported point. Returns the last tick."""
    end = tick + max_ticks
    while tick < end:
        if not scheduler.job_running:
            if len(scheduler.points) < 3 or scheduler.fingerprint == scheduler.points.fingerprint():
                break
            # Jump past the debounce window so the evaluation is never deferred.
            tick += max(1, scheduler.stale_ticks)
            scheduler.on_coarse_interval(tick)
            continue
        tick += 1
        scheduler.on_tick(tick)
    return tick


def committed_points_outside(scheduler: HullScheduler) -> int:
    """How many committed points fall outside the published hull (must be 0)."""
    hull = scheduler.get_published_hull()
    if hull is None:
        return 0
    q = scheduler.quantum
    outside = 0
    for ix, iy in scheduler.membership:
        if not point_in_polygon(hull, (ix * q, iy * q)):
            outside += 1
    return outside


def save_screenshot(
    path: str, world: SurveyWorld, scheduler: HullScheduler, surveyor: Surveyor | None = None, scale: float = 3.0
) -> None:
    # Headless-friendly defaults (safe on Windows + CI).
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    import pygame

    pygame.init()
    surface = pygame.Surface((int(world.width * scale), int(world.height * scale)))
    surface.fill(config.COLOR_BG)
    render_points(surface, (f.position for f in world.features), scale=scale, color=config.COLOR_FEATURE, radius=1)
    HullOverlay(scale=scale).render(surface, scheduler)
    if surveyor is not None:
        render_points(surface, [(surveyor.x, surveyor.y)], scale=scale, color=config.COLOR_SURVEYOR, radius=4)
    pygame.image.save(surface, path)


def run_survey(ns) -> dict:
    set_sim_seed(int(ns.seed))
    perf_stats.reset_hull()

    world = SurveyWorld(feature_count=int(ns.features))
    surveyor = Surveyor(world.width / 2.0, world.height / 2.0)
    registry = MappedEntityRegistry()
    scheduler = HullScheduler(
        quantum=ns.quantum,
        k0=ns.k0,
        max_k=ns.max_k,
        steps_per_tick=ns.budget,
        stale_ticks=ns.stale,
        update_interval=ns.interval,
    )

    t0 = time.perf_counter()
    tick = 0
    for tick in range(1, int(ns.ticks) + 1):
        surveyor.step()
        for feature in surveyor.scan(world):
            if registry.upsert(feature, tick):
                scheduler.report_point(*feature.position)
        scheduler.update(tick)

        if ns.log_every and tick % int(ns.log_every) == 0:
            snap = scheduler.snapshot()
            print(
                f"[mapper] tick={tick} mapped={len(registry)} points={snap.points} "
                f"hull={snap.hull_vertices} job={snap.job_phase or '-'}"
            )

    final_tick = drain(scheduler, tick)
    wall_ms = (time.perf_counter() - t0) * 1000.0

    hull = scheduler.get_published_hull() or ()
    summary = {
        "seed": get_sim_seed(),
        "ticks": int(ns.ticks),
        "final_tick": int(final_tick),
        "mapped_entities": len(registry),
        "points": len(scheduler.points),
        "hull_vertices": len(hull),
        "hull_area": round(polygon_area(hull), 3) if hull else 0.0,
        "outside": committed_points_outside(scheduler),
        "fingerprint": scheduler.fingerprint.to_dict(),
        "perf": perf_stats.hull.to_dict(),
        "wall_ms": round(wall_ms, 3),
    }

    if ns.screenshot:
        save_screenshot(ns.screenshot, world, scheduler, surveyor)
        summary["screenshot"] = ns.screenshot

    return summary


def main(argv=None) -> int:
    """Main entry point."""
    ns = parse_args(argv)
    if ns.ticks < 0 or ns.budget < 1 or ns.interval < 1:
        print("[mapper] ERROR: --ticks must be >= 0, --budget and --interval >= 1")
        return 2

    summary = run_survey(ns)

    if ns.json:
        print(json.dumps(summary, indent=2, sort_keys=True))
    else:
        perf = summary["perf"]
        print("=" * 50)
        print(f"  {config.TITLE} - survey summary")
        print("=" * 50)
        print(f"  seed={summary['seed']} ticks={summary['ticks']} (drained to {summary['final_tick']})")
        print(f"  mapped entities : {summary['mapped_entities']}")
        print(f"  hull points     : {summary['points']}")
        print(f"  hull vertices   : {summary['hull_vertices']} (area {summary['hull_area']})")
        print(
            f"  jobs            : started={perf['jobs_started']} completed={perf['jobs_completed']} "
            f"fallbacks={perf['fallbacks']} skipped={perf['skipped_rebuilds']}"
        )
        print(f"  micro-steps     : {perf['micro_steps']} ({perf['step_ms']:.2f} ms stepping)")
        if summary.get("screenshot"):
            print(f"  screenshot      : {summary['screenshot']}")

    if summary["outside"]:
        print(f"[mapper] FAIL: {summary['outside']} committed point(s) outside the published hull")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
