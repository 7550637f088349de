"""
Point-set bookkeeping: quantization, de-duplication and change fingerprints.

Observations of the same physical feature rarely land on exactly the same float
coordinates, so every point is snapped to a grid (`quantize`) before it is tracked.
The (count, hash) fingerprint lets the scheduler detect "did anything change"
without deep-comparing point lists.
"""

from __future__ import annotations

import math
from typing import Iterable, Iterator

from mapper.sim.contracts import Fingerprint, Point
from mapper.sim.hull_tunables import HASH_GOLDEN, HASH_MASK, HASH_PRIME_X, HASH_PRIME_Y


def quantize(v: float, step: float) -> float:
    """Snap `v` to the nearest multiple of `step` (halves round up)."""
    return math.floor(v / step + 0.5) * step


def quantize_point(p: Point, step: float) -> Point:
    return quantize(p[0], step), quantize(p[1], step)


def grid_key(p: Point, step: float) -> tuple[int, int]:
    """Integer grid indices of a point (the stable identity used for hashing)."""
    return math.floor(p[0] / step + 0.5), math.floor(p[1] / step + 0.5)


def hash_combine(h: int, v: int) -> int:
    """Order-independent 32-bit combiner: h + v * golden (mod 2**32)."""
    return (h + v * HASH_GOLDEN) & HASH_MASK


def point_hash(ix: int, iy: int) -> int:
    return ix * HASH_PRIME_X + iy * HASH_PRIME_Y


def dedupe(points: Iterable[Point]) -> tuple[Point, ...]:
    """Exact de-duplication, first-seen order kept (quantize first for fuzzy matching)."""
    seen: set[Point] = set()
    out: list[Point] = []
    for p in points:
        key = (float(p[0]), float(p[1]))
        if key in seen:
            continue
        seen.add(key)
        out.append(key)
    return tuple(out)


def quantized_points(points: Iterable[Point], step: float) -> tuple[tuple[Point, ...], Fingerprint]:
    """
    Quantize + dedupe + fingerprint in one pass.

    Returns the unique quantized points (first-seen order) and their fingerprint.
    """
    seen: set[tuple[int, int]] = set()
    out: list[Point] = []
    h = 0
    for p in points:
        ix, iy = grid_key(p, step)
        if (ix, iy) in seen:
            continue
        seen.add((ix, iy))
        out.append((ix * step, iy * step))
        h = hash_combine(h, point_hash(ix, iy))
    return tuple(out), Fingerprint(count=len(out), hash=h)


def fingerprint(points: Iterable[Point], step: float) -> Fingerprint:
    """Order-insensitive (count, hash) of the quantized unique points."""
    return quantized_points(points, step)[1]


class PointSetManager:
    """
    The live collection of discovered points.

    Points are quantized on the way in, so repeated sightings of a feature collapse
    to one entry. Insertion order is preserved; hull jobs take `snapshot()` copies.
    """

    def __init__(self, step: float = 1.0):
        self.step = float(step)
        # grid key -> quantized point (dicts keep insertion order)
        self._points: dict[tuple[int, int], Point] = {}
        self._hash = 0

    def add(self, x: float, y: float) -> bool:
        """Add one observation. Returns True if it introduced a new quantized point."""
        ix, iy = grid_key((x, y), self.step)
        if (ix, iy) in self._points:
            return False
        self._points[(ix, iy)] = (ix * self.step, iy * self.step)
        self._hash = hash_combine(self._hash, point_hash(ix, iy))
        return True

    def extend(self, points: Iterable[Point]) -> int:
        added = 0
        for x, y in points:
            if self.add(x, y):
                added += 1
        return added

    def snapshot(self) -> tuple[Point, ...]:
        return tuple(self._points.values())

    def fingerprint(self) -> Fingerprint:
        # Maintained incrementally; equals fingerprint(self.snapshot(), self.step).
        return Fingerprint(count=len(self._points), hash=self._hash)

    def clear(self) -> None:
        self._points.clear()
        self._hash = 0

    def __len__(self) -> int:
        return len(self._points)

    def __contains__(self, p: object) -> bool:
        try:
            key = grid_key(p, self.step)  # type: ignore[arg-type]
        except (TypeError, IndexError):
            return False
        return key in self._points

    def __iter__(self) -> Iterator[Point]:
        return iter(tuple(self._points.values()))
