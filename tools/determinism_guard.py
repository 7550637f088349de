"""
Determinism guard (static check).

Purpose:
- Keep hull systems reproducible: the same discovered points and tick sequence must
  always produce the same jobs, the same hull and the same fingerprints.

What we flag (in simulation code):
- Wall-clock-ish time used for decisions: time.time(), time.monotonic(), datetime.now(), etc.
  (time.perf_counter() is allowed: it only feeds perf counters/log throttling)
- Unseeded / global RNG: random.random/randint/choice/shuffle/...
- Python's hash() (process-randomized by default)
- pygame imports (simulation must stay render-free)

We intentionally DO NOT scan:
- mapper/graphics/** (render-only)
- mapper/sim/** (this contains the deterministic wrappers)
"""

from __future__ import annotations

import argparse
import ast
import json
import sys
from pathlib import Path
from typing import Iterable


PROJECT_ROOT = Path(__file__).resolve().parents[1]


DEFAULT_SCAN_PATHS = [
    PROJECT_ROOT / "mapper" / "systems",
    PROJECT_ROOT / "mapper" / "survey_world.py",
]

DEFAULT_EXCLUDE_DIRS = [
    PROJECT_ROOT / "mapper" / "graphics",
    PROJECT_ROOT / "mapper" / "sim",
]

_RANDOM_ATTRS = {
    "random",
    "randint",
    "uniform",
    "choice",
    "shuffle",
    "seed",
    "randrange",
    "gauss",
    "sample",
}

_TIME_ATTRS_FORBIDDEN = {"time", "monotonic", "time_ns"}

_DATETIME_ATTRS_FORBIDDEN = {"now", "utcnow", "today"}


def _is_under(path: Path, parent: Path) -> bool:
    try:
        path.resolve().relative_to(parent.resolve())
        return True
    except ValueError:
        return False


def _display_path(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(PROJECT_ROOT))
    except ValueError:
        return str(path)


def iter_py_files(roots: Iterable[Path], *, exclude_dirs: list[Path]) -> list[Path]:
    out: list[Path] = []
    for root in roots:
        if not root.exists():
            continue
        if root.is_file():
            if root.suffix.lower() == ".py":
                out.append(root)
            continue
        for p in root.rglob("*.py"):
            if any(_is_under(p, ex) for ex in exclude_dirs):
                continue
            out.append(p)
    return sorted(set(out))


def _attr_chain(node: ast.AST) -> list[str] | None:
    """["time", "time"] for time.time, ["hash"] for hash, None for anything fancier."""
    if isinstance(node, ast.Name):
        return [node.id]
    if isinstance(node, ast.Attribute):
        base = _attr_chain(node.value)
        if base is None:
            return None
        return [*base, node.attr]
    return None


class _Scanner(ast.NodeVisitor):
    def __init__(self, display: str):
        self.display = display
        self.findings: list[dict] = []

    def _flag(self, kind: str, node: ast.AST, detail: str) -> None:
        self.findings.append(
            {
                "kind": kind,
                "file": self.display,
                "line": int(getattr(node, "lineno", 0) or 0),
                "col": int(getattr(node, "col_offset", 0) or 0),
                "detail": detail,
            }
        )

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            if alias.name.split(".")[0] == "pygame":
                self._flag("render_import", node, "Simulation code must not import pygame; draw from mapper/graphics.")
        self.generic_visit(node)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        if (node.module or "").split(".")[0] == "pygame":
            self._flag("render_import", node, "Simulation code must not import pygame; draw from mapper/graphics.")
        self.generic_visit(node)

    def visit_Call(self, node: ast.Call) -> None:
        chain = _attr_chain(node.func)
        if chain:
            self._check_call(chain, node)
        self.generic_visit(node)

    def _check_call(self, chain: list[str], node: ast.Call) -> None:
        if len(chain) == 2 and chain[0] == "time" and chain[1] in _TIME_ATTRS_FORBIDDEN:
            self._flag(
                "wall_clock_time",
                node,
                f"Drive decisions from the tick argument; avoid time.{chain[1]}() in hull systems.",
            )
        elif chain[-1] in _DATETIME_ATTRS_FORBIDDEN and "datetime" in chain:
            self._flag("wall_clock_time", node, "Avoid datetime.now()/utcnow() in simulation logic; use ticks.")
        elif len(chain) == 2 and chain[0] == "random" and chain[1] in _RANDOM_ATTRS:
            self._flag(
                "global_rng",
                node,
                "Use mapper.sim.determinism.get_rng(tag) (seeded) instead of random.* in simulation logic.",
            )
        elif chain == ["hash"]:
            self._flag(
                "unstable_hash",
                node,
                "Avoid Python hash(); fingerprints use explicit integer hashing (see point_set.hash_combine).",
            )


def scan_source(src: str, display: str = "<string>") -> list[dict]:
    try:
        tree = ast.parse(src, filename=display)
    except SyntaxError as e:
        return [
            {
                "kind": "parse_error",
                "file": display,
                "line": int(getattr(e, "lineno", 0) or 0),
                "col": int(getattr(e, "offset", 0) or 0),
                "detail": f"SyntaxError: {e}",
            }
        ]
    scanner = _Scanner(display)
    scanner.visit(tree)
    return scanner.findings


def scan_file(file_path: Path) -> list[dict]:
    try:
        src = file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        src = file_path.read_text(encoding="utf-8", errors="replace")
    return scan_source(src, _display_path(file_path))


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Static determinism guard (hull simulation code)")
    ap.add_argument(
        "--paths",
        nargs="*",
        default=[],
        help="Optional paths to scan (files or dirs). Default scans mapper/systems and mapper/survey_world.py.",
    )
    ap.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    ns = ap.parse_args(argv)

    roots = [Path(p) for p in ns.paths] if ns.paths else list(DEFAULT_SCAN_PATHS)
    files = iter_py_files(roots, exclude_dirs=list(DEFAULT_EXCLUDE_DIRS))

    all_findings: list[dict] = []
    for f in files:
        all_findings.extend(scan_file(f))

    if ns.json:
        print(json.dumps({"files": len(files), "findings": all_findings}, indent=2))
    elif not all_findings:
        print(f"[determinism_guard] PASS: {len(files)} file(s), no violations found")
    else:
        print(f"[determinism_guard] FAIL: {len(all_findings)} violation(s)")
        for v in all_findings:
            print(f"- {v['file']}:{v['line']}:{v['col']} [{v['kind']}] {v['detail']}")

    return 0 if not all_findings else 1


if __name__ == "__main__":
    sys.exit(main())
