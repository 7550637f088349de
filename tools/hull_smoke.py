"""
QA smoke runner (headless).

Wraps main.py into a few standard profiles so hull regressions can be run as a single
command that returns a useful exit code.

Examples:
  python tools/hull_smoke.py --quick
  python tools/hull_smoke.py --ticks 40000 --features 800 --seed 7
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]
MAIN = PROJECT_ROOT / "main.py"
DETERMINISM_GUARD = PROJECT_ROOT / "tools" / "determinism_guard.py"


def _run_determinism_guard(*, title: str) -> int:
    if not DETERMINISM_GUARD.exists():
        print(f"\n[hull_smoke] === {title} ===")
        print(f"[hull_smoke] WARN: missing {DETERMINISM_GUARD}; skipping determinism guard")
        return 0

    cmd = [sys.executable, str(DETERMINISM_GUARD)]
    print(f"\n[hull_smoke] === {title} ===")
    print("[hull_smoke] cmd:", " ".join(cmd))
    completed = subprocess.run(cmd, cwd=str(PROJECT_ROOT))
    print(f"[hull_smoke] exit_code={completed.returncode}")
    return int(completed.returncode)


def _run_profile(args_list: list[str], *, title: str) -> int:
    env = os.environ.copy()
    # Screenshots go through pygame; keep it headless.
    env.setdefault("SDL_VIDEODRIVER", "dummy")
    env.setdefault("SDL_AUDIODRIVER", "dummy")

    cmd = [sys.executable, str(MAIN), *args_list]
    print(f"\n[hull_smoke] === {title} ===")
    print("[hull_smoke] cmd:", " ".join(cmd))
    completed = subprocess.run(cmd, env=env, cwd=str(PROJECT_ROOT))
    print(f"[hull_smoke] exit_code={completed.returncode}")
    return int(completed.returncode)


def main() -> int:
    ap = argparse.ArgumentParser(description="Run headless hull smoke profiles")
    ap.add_argument("--ticks", type=int, default=12000, help="simulation ticks per profile")
    ap.add_argument("--features", type=int, default=300, help="static features in the world")
    ap.add_argument("--seed", type=int, default=3, help="rng seed")
    ap.add_argument("--quick", action="store_true", help="run the standard smoke profiles")
    ap.add_argument("--screenshot", type=str, default="", help="PNG path (single profile mode only)")
    ap.add_argument("--log-every", type=int, default=2000, help="log cadence in ticks (single profile mode only)")
    ns = ap.parse_args()

    if not MAIN.exists():
        print(f"[hull_smoke] ERROR: missing {MAIN}")
        return 2

    base = ["--ticks", str(ns.ticks), "--features", str(ns.features), "--seed", str(ns.seed)]

    if ns.quick:
        profiles: list[tuple[str, list[str]]] = [
            ("base (default cadence + budget)", [*base]),
            ("fast cadence (evaluate every tick)", [*base, "--interval", "1", "--stale", "2"]),
            ("slow cadence (evaluate every 1000 ticks)", [*base, "--interval", "1000"]),
            ("starved budget (1 micro-step per tick)", [*base, "--budget", "1"]),
            ("forced fallback (max_k below k0)", [*base, "--k0", "8", "--max-k", "4"]),
            ("half-tile quantization", [*base, "--quantum", "0.5"]),
        ]

        # Determinism is a release gate: fail fast if sim code picked up wall-clock/RNG/hash().
        rc = _run_determinism_guard(title="determinism_guard (static)")
        if rc != 0:
            print("\n[hull_smoke] DONE:", f"FAIL (rc={rc})")
            return rc

        for title, a in profiles:
            prc = _run_profile(a, title=title)
            if prc != 0:
                rc = prc
                break

        print("\n[hull_smoke] DONE:", "PASS" if rc == 0 else f"FAIL (rc={rc})")
        return rc

    # Single-profile mode
    args_list = [*base, "--log-every", str(ns.log_every)]
    if ns.screenshot:
        args_list += ["--screenshot", ns.screenshot]

    rc = _run_profile(args_list, title="custom")
    print("\n[hull_smoke] DONE:", "PASS" if rc == 0 else f"FAIL (rc={rc})")
    return rc


if __name__ == "__main__":
    raise SystemExit(main())
